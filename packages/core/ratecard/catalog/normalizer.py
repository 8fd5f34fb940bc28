"""Catalog normalizer — merges extracted entries from many catalogs into one RateCard.

Precedence on a (region, storage type, tier, rate kind) collision: the higher
catalog version wins, then the later ingestion. A remaining tie between two
different prices raises AmbiguousRateError; identical entries are kept once.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal

from ratecard.card import RateCard, SourceInfo
from ratecard.catalog.extractor import extract, extract_regions
from ratecard.catalog.parser import parse
from ratecard.errors import AmbiguousRateError
from ratecard.families import FamilyRegistry, get_registry
from ratecard.models import RateEntry, RateKey

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IngestedBatch:
    """Entries extracted from one catalog, tagged for precedence resolution."""

    entries: tuple[RateEntry, ...]
    regions: tuple[str, ...]
    source_version: Decimal
    ingested_at: datetime
    family: str | None = None
    source: str = ""
    currencies: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        if self.ingested_at.tzinfo is None:
            object.__setattr__(self, "ingested_at", self.ingested_at.replace(tzinfo=timezone.utc))


def ingest(
    raw_text: str,
    ingested_at: datetime | None = None,
    family: str | None = None,
    registry: FamilyRegistry | None = None,
    regions: str | re.Pattern[str] | None = None,
    source: str = "",
) -> IngestedBatch:
    """Parse and extract one payload into a batch ready for merge."""
    registry = registry or get_registry()
    catalog = parse(raw_text, family=family, registry=registry, source=source)
    entries = extract(catalog, registry=registry, regions=regions)
    batch = IngestedBatch(
        entries=tuple(entries),
        regions=tuple(extract_regions(catalog, registry=registry, regions=regions)),
        source_version=catalog.version,
        ingested_at=ingested_at or datetime.now(timezone.utc),
        family=catalog.family,
        source=source,
        currencies=catalog.currencies,
    )
    logger.info(
        "Ingested %s%s v%s: %d entries across %d regions",
        catalog.family or "catalog",
        f" ({source})" if source else "",
        catalog.version,
        len(batch.entries),
        len(batch.regions),
    )
    return batch


@dataclass
class _Winner:
    entry: RateEntry
    version: Decimal
    ingested_at: datetime
    source: str


def merge(batches: Iterable[IngestedBatch], registry: FamilyRegistry | None = None) -> RateCard:
    """Build a RateCard from every batch; the only step that needs all inputs at once.

    Raises:
        AmbiguousRateError: Two different prices for one key with equal version and ingestion time.
    """
    registry = registry or get_registry()
    batches = list(batches)

    regions: dict[str, None] = {}
    aliases: dict[str, str] = {}
    winners: dict[RateKey, _Winner] = {}
    sources: list[SourceInfo] = []
    superseded = 0

    for batch in batches:
        for code in batch.regions:
            regions.setdefault(code, None)
        if batch.family:
            aliases.update(registry.storage_aliases(batch.family))

        folded = _fold_currencies(batch)
        for key, entry in folded.items():
            regions.setdefault(entry.region, None)
            current = winners.get(key)
            if current is None:
                winners[key] = _Winner(entry, batch.source_version, batch.ingested_at, batch.source)
                continue

            incoming = (batch.source_version, batch.ingested_at)
            existing = (current.version, current.ingested_at)
            if incoming > existing:
                winners[key] = _Winner(entry, batch.source_version, batch.ingested_at, batch.source)
                superseded += 1
            elif incoming < existing:
                superseded += 1
            elif entry != current.entry:
                raise AmbiguousRateError(
                    key,
                    f"{current.source or 'a catalog'} and {batch.source or 'a catalog'} both "
                    f"publish version {batch.source_version} at {batch.ingested_at.isoformat()}",
                )

        sources.append(
            SourceInfo(
                source=batch.source,
                family=batch.family,
                version=batch.source_version,
                ingested_at=batch.ingested_at,
                entries=len(batch.entries),
            )
        )

    card = RateCard(
        entries=tuple(w.entry for w in winners.values()),
        regions=tuple(regions),
        aliases=aliases,
        sources=tuple(sources),
    )
    logger.info(
        "Merged %d catalog(s): %d rates in %d regions (%d superseded)",
        len(batches),
        len(card.entries),
        len(card.regions),
        superseded,
    )
    return card


def _fold_currencies(batch: IngestedBatch) -> dict[RateKey, RateEntry]:
    """Combine the single-currency entries of one batch that share a key."""
    folded: dict[RateKey, RateEntry] = {}
    for entry in batch.entries:
        existing = folded.get(entry.key)
        if existing is None:
            folded[entry.key] = entry
            continue

        prices = dict(existing.prices)
        for currency, amount in entry.prices.items():
            previous = prices.get(currency)
            if previous is not None and previous != amount:
                raise AmbiguousRateError(
                    entry.key,
                    f"{batch.source or 'catalog'} prices {currency} both {previous} and {amount}",
                )
            prices[currency] = amount
        footnotes = existing.footnotes + tuple(n for n in entry.footnotes if n not in existing.footnotes)
        folded[entry.key] = existing.model_copy(update={"prices": prices, "footnotes": footnotes})
    return folded
