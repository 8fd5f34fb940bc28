"""Rate card refresh: ingest every source in parallel and publish the merged card atomically."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path

from ratecard.card import RateCard
from ratecard.catalog.normalizer import IngestedBatch, ingest, merge
from ratecard.config import Settings
from ratecard.errors import RateCardError
from ratecard.families import FamilyRegistry, get_registry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CatalogSource:
    """A raw payload handed over by the fetch layer."""

    name: str
    text: str
    family: str | None = None
    ingested_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def from_file(
        cls,
        path: str | Path,
        family: str | None = None,
        ingested_at: datetime | None = None,
    ) -> CatalogSource:
        p = Path(path)
        return cls(
            name=str(p),
            text=p.read_text(encoding="utf-8"),
            family=family,
            ingested_at=ingested_at or datetime.now(timezone.utc),
        )


def sources_from_files(paths: Sequence[str | Path], family: str | None = None) -> list[CatalogSource]:
    """Read catalog files; a later path counts as a later ingestion, so it wins version ties."""
    start = datetime.now(timezone.utc)
    return [
        CatalogSource.from_file(path, family=family, ingested_at=start + timedelta(microseconds=i))
        for i, path in enumerate(paths)
    ]


@dataclass
class RefreshResult:
    source: str
    family: str | None = None
    version: str = ""
    entries: int = 0
    regions: int = 0
    errors: list[str] = field(default_factory=list)


@dataclass
class RefreshSummary:
    results: list[RefreshResult] = field(default_factory=list)
    card: RateCard | None = None
    published: bool = False
    errors: list[str] = field(default_factory=list)

    @property
    def total_entries(self) -> int:
        return sum(r.entries for r in self.results)

    @property
    def total_errors(self) -> int:
        return len(self.errors) + sum(len(r.errors) for r in self.results)


class RateCardHolder:
    """Owns the published RateCard reference.

    Readers take ``current`` once and keep using that card; ``publish`` swaps
    the reference in a single assignment, so a reader sees either the old or
    the new card in full.
    """

    def __init__(self, card: RateCard | None = None):
        self._card = card

    @property
    def current(self) -> RateCard | None:
        return self._card

    def publish(self, card: RateCard) -> RateCard | None:
        """Replace the published card, returning the previous one."""
        previous = self._card
        self._card = card
        logger.info("Published rate card: %d rates, %d regions", len(card.entries), len(card.regions))
        return previous


def _ingest_source(
    source: CatalogSource,
    registry: FamilyRegistry,
    settings: Settings,
) -> IngestedBatch:
    return ingest(
        source.text,
        ingested_at=source.ingested_at,
        family=source.family,
        registry=registry,
        regions=settings.regions,
        source=source.name,
    )


def _registry_for(settings: Settings) -> FamilyRegistry:
    if settings.families_dir is not None:
        return FamilyRegistry(settings.families_dir)
    return get_registry()


def build_rate_card(sources: Sequence[CatalogSource], settings: Settings | None = None) -> RateCard:
    """Ingest every source (in parallel) and merge the batches into a new RateCard.

    Errors from any source propagate; nothing is published here.
    """
    settings = settings or Settings()
    registry = _registry_for(settings)
    with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
        batches = list(pool.map(lambda s: _ingest_source(s, registry, settings), sources))
    return merge(batches, registry=registry)


def refresh_rate_card(
    sources: Sequence[CatalogSource],
    holder: RateCardHolder,
    settings: Settings | None = None,
) -> RefreshSummary:
    """Rebuild the rate card from all sources and publish it if every step succeeds.

    Any ingestion or merge failure aborts the cycle: the summary carries the
    errors and the holder keeps its previous card.
    """
    settings = settings or Settings()
    registry = _registry_for(settings)
    summary = RefreshSummary()

    with ThreadPoolExecutor(max_workers=settings.max_workers) as pool:
        futures = [(s, pool.submit(_ingest_source, s, registry, settings)) for s in sources]

    batches: list[IngestedBatch] = []
    for source, future in futures:
        result = RefreshResult(source=source.name, family=source.family)
        try:
            batch = future.result()
        except RateCardError as exc:
            msg = f"{source.name}: {exc}" if source.name not in str(exc) else str(exc)
            logger.warning("Ingestion failed: %s", msg)
            result.errors.append(msg)
        else:
            batches.append(batch)
            result.family = batch.family
            result.version = str(batch.source_version)
            result.entries = len(batch.entries)
            result.regions = len(batch.regions)
        summary.results.append(result)

    if any(r.errors for r in summary.results):
        logger.warning("Refresh aborted, keeping the previously published rate card")
        return summary

    try:
        card = merge(batches, registry=registry)
    except RateCardError as exc:
        logger.warning("Merge failed, keeping the previously published rate card: %s", exc)
        summary.errors.append(str(exc))
        return summary

    holder.publish(card)
    summary.card = card
    summary.published = True
    return summary
