"""Product family registry — loads YAML definitions of the priced storage products.

Each family declares the region shape its catalogs use, the rate kinds its
prices may be tagged with, and the mapping from catalog storage type ids to
API volume/class names. Family data lives in data/families/*.yaml; legacy
region aliases live in data/regions.yaml.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml

_DATA_DIR = Path(__file__).parent / "data"
_FAMILIES_DIR = _DATA_DIR / "families"
_REGIONS_FILE = _DATA_DIR / "regions.yaml"


class FamilyDef:
    """A single product family definition."""

    __slots__ = ("family", "name", "shape", "rate_kinds", "storage_types")

    def __init__(
        self,
        family: str,
        name: str,
        shape: str,
        rate_kinds: frozenset[str],
        storage_types: dict[str, str],
    ):
        self.family = family
        self.name = name
        self.shape = shape
        self.rate_kinds = rate_kinds
        self.storage_types = storage_types

    def to_dict(self) -> dict[str, Any]:
        return {
            "family": self.family,
            "name": self.name,
            "shape": self.shape,
            "rate_kinds": sorted(self.rate_kinds),
            "storage_types": dict(self.storage_types),
        }


class FamilyRegistry:
    """Registry of product families and region aliases loaded from YAML.

    Loaded once from disk; read-only afterwards.
    """

    def __init__(self, families_dir: str | Path | None = None, regions_file: str | Path | None = None):
        self._dir = Path(families_dir) if families_dir else _FAMILIES_DIR
        self._regions_file = Path(regions_file) if regions_file else _REGIONS_FILE
        self._families: dict[str, FamilyDef] = {}
        # legacy region code -> current region code
        self._region_aliases: dict[str, str] = {}
        self._load()

    def _load(self) -> None:
        for yaml_path in sorted(self._dir.glob("*.yaml")):
            data = yaml.safe_load(yaml_path.read_text()) or {}
            family = data.get("family", yaml_path.stem)
            shape = data.get("shape")
            if shape not in ("types", "tiers"):
                raise ValueError(f"{yaml_path.name}: shape must be 'types' or 'tiers', got {shape!r}")
            self._families[family] = FamilyDef(
                family=family,
                name=data.get("name", family),
                shape=shape,
                rate_kinds=frozenset(data.get("rate_kinds") or ()),
                storage_types=dict(data.get("storage_types") or {}),
            )

        if self._regions_file.exists():
            data = yaml.safe_load(self._regions_file.read_text()) or {}
            self._region_aliases = dict(data.get("aliases") or {})

    def get(self, family: str) -> FamilyDef | None:
        """Return the family definition or None if not registered."""
        return self._families.get(family)

    def list_families(self) -> list[str]:
        return sorted(self._families)

    def for_shape(self, shape: str) -> FamilyDef | None:
        """Return the single family using a region shape, or None when zero or several do."""
        matches = [f for f in self._families.values() if f.shape == shape]
        return matches[0] if len(matches) == 1 else None

    def known_rate_kinds(self, family: str | None) -> frozenset[str]:
        """Rate kinds accepted for a family; the union of all families when family is None."""
        if family is None:
            kinds: set[str] = set()
            for f in self._families.values():
                kinds |= f.rate_kinds
            return frozenset(kinds)
        defn = self._families.get(family)
        return defn.rate_kinds if defn else frozenset()

    def storage_aliases(self, family: str) -> dict[str, str]:
        """API name -> catalog storage type id for one family."""
        defn = self._families.get(family)
        if defn is None:
            return {}
        return {api: storage for storage, api in defn.storage_types.items()}

    def canonical_region(self, code: str) -> str:
        return self._region_aliases.get(code, code)

    def stats(self) -> dict[str, Any]:
        return {
            "families": len(self._families),
            "rate_kinds": len(self.known_rate_kinds(None)),
            "region_aliases": len(self._region_aliases),
        }


# Module-level singleton — loaded lazily on first access
_registry: FamilyRegistry | None = None


def get_registry() -> FamilyRegistry:
    """Return the shared registry singleton, loading from disk if needed."""
    global _registry
    if _registry is None:
        _registry = FamilyRegistry()
    return _registry


def reload_registry(families_dir: str | Path | None = None) -> FamilyRegistry:
    """Force-reload the registry (useful in tests or after YAML changes)."""
    global _registry
    _registry = FamilyRegistry(families_dir)
    return _registry
