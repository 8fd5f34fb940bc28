"""Ratecard — canonical storage rate cards from versioned cloud pricing catalogs."""

from ratecard.errors import (
    AmbiguousRateError,
    MalformedCatalogError,
    RateCardError,
    UnknownRateError,
    UnknownRateKindError,
    UnsupportedCurrencyError,
)
from ratecard.models import (
    RateEntry,
    RawCatalog,
    RawStorageType,
    RawTier,
    RawType,
    RawValue,
    TiersRegion,
    TypesRegion,
)

__version__ = "0.1.0"

__all__ = [
    "AmbiguousRateError",
    "build_rate_card",
    "CatalogSource",
    "extract",
    "MalformedCatalogError",
    "merge",
    "parse",
    "RateCard",
    "RateCardError",
    "RateCardHolder",
    "RateEntry",
    "RawCatalog",
    "RawStorageType",
    "RawTier",
    "RawType",
    "RawValue",
    "refresh_rate_card",
    "Settings",
    "TiersRegion",
    "TypesRegion",
    "UnknownRateError",
    "UnknownRateKindError",
    "UnsupportedCurrencyError",
]

_LAZY = {
    "RateCard": "ratecard.card",
    "Settings": "ratecard.config",
    "CatalogSource": "ratecard.catalog",
    "RateCardHolder": "ratecard.catalog",
    "build_rate_card": "ratecard.catalog",
    "refresh_rate_card": "ratecard.catalog",
    "parse": "ratecard.catalog",
    "extract": "ratecard.catalog",
    "merge": "ratecard.catalog",
}


def __getattr__(name: str):
    # Lazy imports keep `import ratecard` cheap for callers that only need the models
    module = _LAZY.get(name)
    if module is None:
        raise AttributeError(f"module 'ratecard' has no attribute {name!r}")
    from importlib import import_module

    return getattr(import_module(module), name)
