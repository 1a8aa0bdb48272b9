"""Error taxonomy for the scraping core.

Everything below the orchestrator raises one of these; the orchestrator turns
them into user-facing reply text at the point of detection.
"""

from __future__ import annotations


class ScraperError(Exception):
    """Base class for scraping failures."""


class ConfigError(ScraperError):
    """A rule record could not be turned into a usable scraper."""


class URLBuildError(ScraperError):
    """Not enough capture groups to fill the URL template."""


class FetchError(ScraperError):
    """The endpoint could not be reached or returned a terminal status."""


class ReadError(ScraperError):
    """The response body could not be read or decoded."""


class ExtractionEmpty(ScraperError):
    """No selector matched and the template needs a value."""
