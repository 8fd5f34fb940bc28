"""Pricing data model: the raw catalog tree and the canonical rate entry.

A catalog is parsed once into a RawCatalog whose regions come in one of two
shapes: EBS-style ``types`` (each type carries its own rate tags) or S3-style
``tiers`` (volume brackets, one default rate for the whole catalog). The
extractor flattens both shapes into RateEntry records so nothing downstream
branches on shape again.
"""

from __future__ import annotations

import re
from decimal import Decimal
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

_CURRENCY_PATTERN = re.compile(r"^[A-Z]{3}$")

RateKey = tuple[str, str, str | None, str]


def validate_currency(code: str) -> str:
    if not _CURRENCY_PATTERN.match(code):
        raise ValueError(f"Currency code {code!r} is not a 3-letter upper-case code")
    return code


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True)


# Raw catalog tree


class RawValue(_Frozen):
    prices: dict[str, Decimal]
    rate: str | None = None


class RawType(_Frozen):
    name: str
    values: tuple[RawValue, ...] = ()


class TypesRegion(_Frozen):
    """EBS-style region: storage types, each priced on one or more rate kinds."""

    shape: Literal["types"] = "types"
    region: str
    types: tuple[RawType, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.types


class RawStorageType(_Frozen):
    type: str
    prices: dict[str, Decimal]


class RawTier(_Frozen):
    name: str
    storage_types: tuple[RawStorageType, ...] = ()


class TiersRegion(_Frozen):
    """S3-style region: volume tiers, each pricing several storage classes."""

    shape: Literal["tiers"] = "tiers"
    region: str
    tiers: tuple[RawTier, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.tiers


RawRegion = Annotated[Union[TypesRegion, TiersRegion], Field(discriminator="shape")]


class RawCatalog(_Frozen):
    """A decoded JSONP payload. Discarded once its entries are extracted."""

    version: Decimal
    currencies: tuple[str, ...] = ()
    default_rate: str | None = None
    regions: tuple[RawRegion, ...] = ()
    family: str | None = None
    value_columns: tuple[str, ...] = ()
    footnotes: dict[str, str] = Field(default_factory=dict)

    @property
    def shapes(self) -> set[str]:
        return {r.shape for r in self.regions}


# Canonical records


class RateEntry(_Frozen):
    """One price on one billing dimension for one storage type (and tier) in one region."""

    region: str
    storage_type: str
    tier_id: str | None = None
    rate_kind: str
    prices: dict[str, Decimal]
    source_version: Decimal
    footnotes: tuple[str, ...] = ()

    @field_validator("prices")
    @classmethod
    def validate_prices(cls, v: dict[str, Decimal]) -> dict[str, Decimal]:
        if not v:
            raise ValueError("A rate entry needs at least one price")
        for code in v:
            validate_currency(code)
        return v

    @property
    def key(self) -> RateKey:
        return (self.region, self.storage_type, self.tier_id, self.rate_kind)

    @property
    def currencies(self) -> frozenset[str]:
        return frozenset(self.prices)

    def __hash__(self) -> int:
        return hash((self.key, self.source_version, self.footnotes, tuple(sorted(self.prices.items()))))
