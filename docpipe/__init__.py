"""docpipe — scrape documentation pages and PDFs into simplified viewer content."""

__version__ = "1.0.0"
