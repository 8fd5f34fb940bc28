"""Command-line interface for building and querying storage rate cards."""

from ratecard import __version__

__all__ = ["__version__"]
