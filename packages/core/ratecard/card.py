"""RateCard — the normalized, read-only view of every ingested price.

A RateCard is built in full by the normalizer and never mutated; a refresh
produces a new card. Entries are kept in merge order and indexed by
(region, storage type, tier) on construction.
"""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, model_validator

from ratecard.errors import UnknownRateError, UnsupportedCurrencyError
from ratecard.models import RateEntry, RateKey

SlotKey = tuple[str, str, str | None]


class SourceInfo(BaseModel):
    """Provenance of one ingested catalog."""

    model_config = ConfigDict(frozen=True)

    source: str = ""
    family: str | None = None
    version: Decimal
    ingested_at: datetime
    entries: int = 0


class RateCard(BaseModel):
    model_config = ConfigDict(frozen=True)

    entries: tuple[RateEntry, ...] = ()
    regions: tuple[str, ...] = ()
    # API name (gp2, s3-ia, ...) -> catalog storage type id
    aliases: dict[str, str] = Field(default_factory=dict)
    sources: tuple[SourceInfo, ...] = ()
    built_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    _by_key: dict[RateKey, RateEntry] = PrivateAttr(default_factory=dict)
    _by_slot: dict[SlotKey, frozenset[RateEntry]] = PrivateAttr(default_factory=dict)
    _storage_ids: frozenset[str] = PrivateAttr(default_factory=frozenset)

    @model_validator(mode="after")
    def check_entries(self) -> RateCard:
        seen: set[RateKey] = set()
        known_regions = set(self.regions)
        for entry in self.entries:
            if entry.key in seen:
                raise ValueError(f"Duplicate rate entry for {'/'.join(str(p) for p in entry.key)}")
            if entry.region not in known_regions:
                raise ValueError(f"Entry region {entry.region!r} is not listed in regions")
            seen.add(entry.key)
        return self

    def model_post_init(self, __context: Any) -> None:
        slots: dict[SlotKey, list[RateEntry]] = {}
        for entry in self.entries:
            self._by_key[entry.key] = entry
            slots.setdefault((entry.region, entry.storage_type, entry.tier_id), []).append(entry)
        self._by_slot = {slot: frozenset(group) for slot, group in slots.items()}
        self._storage_ids = frozenset(e.storage_type for e in self.entries)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def lookup(self, region: str, storage_type: str, tier_id: str | None = None) -> frozenset[RateEntry]:
        """All rate kinds priced for a storage type (and tier) in a region; empty when unpriced."""
        return self._by_slot.get((region, self._resolve(storage_type), tier_id), frozenset())

    def list_regions(self) -> frozenset[str]:
        """Every region known to the card, including regions with no published prices."""
        return frozenset(self.regions)

    def has_region(self, region: str) -> bool:
        return region in self.regions

    def rate(
        self,
        region: str,
        storage_type: str,
        rate_kind: str,
        tier_id: str | None = None,
        currency: str = "USD",
    ) -> Decimal:
        """Price of one rate kind in one currency.

        Raises:
            UnknownRateError: No entry for (region, storage_type, tier_id, rate_kind).
            UnsupportedCurrencyError: The entry exists but is not priced in ``currency``.
        """
        key = (region, self._resolve(storage_type), tier_id, rate_kind)
        entry = self._by_key.get(key)
        if entry is None:
            available = (e.rate_kind for e in self.lookup(region, storage_type, tier_id))
            raise UnknownRateError(key, available)
        price = entry.prices.get(currency)
        if price is None:
            raise UnsupportedCurrencyError(currency, key, entry.prices)
        return price

    def tier(self, region: str, tier_id: str) -> frozenset[RateEntry]:
        """Every storage type priced under one volume tier in a region."""
        return frozenset(e for e in self.entries if e.region == region and e.tier_id == tier_id)

    def tiers(self, region: str, storage_type: str) -> list[str]:
        """Tier ids of a storage type in a region, in catalog order."""
        resolved = self._resolve(storage_type)
        result: list[str] = []
        for e in self.entries:
            if e.region == region and e.storage_type == resolved and e.tier_id and e.tier_id not in result:
                result.append(e.tier_id)
        return result

    def storage_types(self, region: str) -> list[str]:
        result: list[str] = []
        for e in self.entries:
            if e.region == region and e.storage_type not in result:
                result.append(e.storage_type)
        return result

    def currencies(self) -> frozenset[str]:
        found: set[str] = set()
        for e in self.entries:
            found |= e.currencies
        return frozenset(found)

    def stats(self) -> dict[str, Any]:
        priced = {e.region for e in self.entries}
        return {
            "entries": len(self.entries),
            "regions": len(self.regions),
            "unpriced_regions": len([r for r in self.regions if r not in priced]),
            "sources": len(self.sources),
            "currencies": sorted(self.currencies()),
        }

    def _resolve(self, storage_type: str) -> str:
        if storage_type in self._storage_ids:
            return storage_type
        return self.aliases.get(storage_type, storage_type)

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    def to_json(self, indent: int = 2) -> str:
        return self.model_dump_json(indent=indent)

    def to_yaml(self) -> str:
        data = self.model_dump(mode="json")
        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def save(self, path: str | Path) -> Path:
        p = Path(path)
        p.write_text(self.to_yaml() if p.suffix in (".yaml", ".yml") else self.to_json())
        return p

    @classmethod
    def from_json(cls, json_str: str) -> RateCard:
        return cls.model_validate_json(json_str)

    @classmethod
    def from_yaml(cls, yaml_str: str) -> RateCard:
        data = yaml.safe_load(yaml_str)
        return cls.model_validate(data)

    @classmethod
    def from_file(cls, path: str | Path) -> RateCard:
        p = Path(path)
        text = p.read_text()
        if p.suffix in (".yaml", ".yml"):
            return cls.from_yaml(text)
        return cls.from_json(text)
