"""
Exception hierarchy for schema_scraper.

Configuration and transport errors abort a scrape; everything raised while
resolving a single field is reported as a field warning instead.
"""


class ScraperError(Exception):
    """Base class for all schema_scraper errors."""
    pass


class ConfigurationError(ScraperError, ValueError):
    """Invalid scraper input or configuration."""
    pass


class SchemaError(ConfigurationError):
    """A schema node could not be classified or constructed."""

    def __init__(self, message: str, path: str = ""):
        if path:
            message = f"{path}: {message}"
        super().__init__(message)
        self.path = path


class SourceError(ConfigurationError):
    """Both or neither of url/html were supplied to a scrape."""
    pass


class FetchError(ScraperError):
    """A document could not be retrieved."""

    def __init__(self, url: str, message: str = "Failed to fetch document"):
        super().__init__(f"{message}: {url}")
        self.url = url
