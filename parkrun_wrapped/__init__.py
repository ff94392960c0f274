"""parkrun wrapped: a runner's yearly parkrun results, scraped, cached and summarised."""

__version__ = "0.1.0"
