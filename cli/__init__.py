"""Command-line surface of the crawl dashboard."""
