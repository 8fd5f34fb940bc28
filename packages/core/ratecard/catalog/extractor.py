"""Rate extractor — flattens a RawCatalog into RateEntry records.

Both region shapes land in the same record type: ``types`` values keep their
own rate tag and have no tier, ``tiers`` storage types take the catalog's
default rate and carry the enclosing tier name. One entry is emitted per
currency, in source order (region, then type/tier, then value).
"""

from __future__ import annotations

import re
from collections.abc import Iterator

from ratecard.errors import MalformedCatalogError, UnknownRateKindError
from ratecard.families import FamilyRegistry, get_registry
from ratecard.models import RateEntry, RawCatalog, TiersRegion, TypesRegion


def extract(
    catalog: RawCatalog,
    registry: FamilyRegistry | None = None,
    regions: str | re.Pattern[str] | None = None,
) -> list[RateEntry]:
    """Emit one RateEntry per (region, type-or-tier, value, currency) in the catalog.

    Args:
        catalog: A parsed catalog.
        registry: Family registry for rate kind validation and region aliases.
        regions: Optional full-match pattern restricting the canonical region codes emitted.

    Raises:
        UnknownRateKindError: A rate tag is not known for the catalog's family.
        MalformedCatalogError: A value has no rate and the catalog declares no default.
    """
    registry = registry or get_registry()
    known = registry.known_rate_kinds(catalog.family)
    return list(_iter_entries(catalog, registry, known, _compile(regions)))


def extract_regions(
    catalog: RawCatalog,
    registry: FamilyRegistry | None = None,
    regions: str | re.Pattern[str] | None = None,
) -> list[str]:
    """Canonical region codes present in the catalog, priced or not, in source order."""
    registry = registry or get_registry()
    pattern = _compile(regions)
    seen: list[str] = []
    for raw in catalog.regions:
        code = registry.canonical_region(raw.region)
        if _enabled(code, pattern) and code not in seen:
            seen.append(code)
    return seen


def _iter_entries(
    catalog: RawCatalog,
    registry: FamilyRegistry,
    known: frozenset[str],
    pattern: re.Pattern[str] | None,
) -> Iterator[RateEntry]:
    for raw in catalog.regions:
        region = registry.canonical_region(raw.region)
        if not _enabled(region, pattern):
            continue

        if isinstance(raw, TypesRegion):
            for storage in raw.types:
                storage_type, notes = _split_footnotes(storage.name, catalog.footnotes)
                for value in storage.values:
                    rate_kind = _rate_kind(value.rate or catalog.default_rate, catalog, known, region, storage_type)
                    for currency, amount in value.prices.items():
                        yield RateEntry(
                            region=region,
                            storage_type=storage_type,
                            rate_kind=rate_kind,
                            prices={currency: amount},
                            source_version=catalog.version,
                            footnotes=notes,
                        )

        elif isinstance(raw, TiersRegion):
            for tier in raw.tiers:
                tier_id, tier_notes = _split_footnotes(tier.name, catalog.footnotes)
                for storage in tier.storage_types:
                    storage_type, notes = _split_footnotes(storage.type, catalog.footnotes)
                    rate_kind = _rate_kind(catalog.default_rate, catalog, known, region, storage_type)
                    for currency, amount in storage.prices.items():
                        yield RateEntry(
                            region=region,
                            storage_type=storage_type,
                            tier_id=tier_id,
                            rate_kind=rate_kind,
                            prices={currency: amount},
                            source_version=catalog.version,
                            footnotes=tier_notes + notes,
                        )


def _rate_kind(
    rate: str | None,
    catalog: RawCatalog,
    known: frozenset[str],
    region: str,
    storage_type: str,
) -> str:
    if rate is None:
        raise MalformedCatalogError(f"{region}.{storage_type}: no rate and no catalog default rate")
    if rate not in known:
        raise UnknownRateKindError(rate, catalog.family, known)
    return rate


def _split_footnotes(name: str, footnotes: dict[str, str]) -> tuple[str, tuple[str, ...]]:
    """Strip trailing footnote markers from a name, returning the classes they stand for."""
    notes: list[str] = []
    stripped = True
    while stripped and footnotes:
        stripped = False
        for marker, meaning in footnotes.items():
            if marker and name.endswith(marker) and len(name) > len(marker):
                name = name[: -len(marker)]
                notes.insert(0, meaning)
                stripped = True
                break
    return name, tuple(notes)


def _compile(regions: str | re.Pattern[str] | None) -> re.Pattern[str] | None:
    if regions is None or isinstance(regions, re.Pattern):
        return regions
    return re.compile(regions) if regions else None


def _enabled(region: str, pattern: re.Pattern[str] | None) -> bool:
    return pattern is None or pattern.fullmatch(region) is not None
