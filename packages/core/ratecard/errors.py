"""Errors raised while ingesting catalogs and querying rate cards."""

from __future__ import annotations

from collections.abc import Iterable


class RateCardError(Exception):
    """Base class for every error raised by the rate card pipeline."""


class MalformedCatalogError(RateCardError, ValueError):
    """Raised when a payload is not JSONP-wrapped JSON or misses required structure."""

    def __init__(self, message: str, source: str = ""):
        self.source = source
        if source:
            message = f"{source}: {message}"
        super().__init__(message)


class UnknownRateKindError(RateCardError, ValueError):
    """Raised when a rate tag is outside the known set for its product family."""

    def __init__(self, rate_kind: str, family: str | None, known: Iterable[str] = ()):
        self.rate_kind = rate_kind
        self.family = family
        self.known = sorted(known)
        message = f"Unknown rate kind {rate_kind!r} for family {family or '<any>'}"
        if self.known:
            message += f" (known: {', '.join(self.known)})"
        super().__init__(message)


class AmbiguousRateError(RateCardError, ValueError):
    """Raised when two different prices collide on the same key with no precedence between them."""

    def __init__(self, key: tuple, detail: str = ""):
        self.key = key
        message = f"Ambiguous rate for {_format_key(key)}"
        if detail:
            message += f": {detail}"
        super().__init__(message)


class UnknownRateError(RateCardError, LookupError):
    """Raised when a (region, storage type, tier, rate kind) combination has no entry."""

    def __init__(self, key: tuple, available: Iterable[str] = ()):
        self.key = key
        self.available = sorted(available)
        message = f"No rate for {_format_key(key)}"
        if self.available:
            message += f" (rate kinds available: {', '.join(self.available)})"
        super().__init__(message)


class UnsupportedCurrencyError(RateCardError, LookupError):
    """Raised when a rate exists but is not priced in the requested currency."""

    def __init__(self, currency: str, key: tuple, available: Iterable[str] = ()):
        self.currency = currency
        self.key = key
        self.available = sorted(available)
        message = f"Currency {currency!r} not available for {_format_key(key)}"
        if self.available:
            message += f" (available: {', '.join(self.available)})"
        super().__init__(message)


def _format_key(key: tuple) -> str:
    return "/".join("-" if part is None else str(part) for part in key)
