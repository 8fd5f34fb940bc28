"""Ingestion settings loaded from YAML."""

from __future__ import annotations

import re
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator

from ratecard.models import validate_currency


class Settings(BaseModel):
    default_currency: str = "USD"
    # Full-match pattern on canonical region codes; None ingests every region
    regions: str | None = None
    max_workers: int = Field(default=4, ge=1)
    families_dir: Path | None = None

    @field_validator("default_currency")
    @classmethod
    def validate_default_currency(cls, v: str) -> str:
        return validate_currency(v)

    @field_validator("regions")
    @classmethod
    def validate_regions(cls, v: str | None) -> str | None:
        if v:
            try:
                re.compile(v)
            except re.error as exc:
                raise ValueError(f"Invalid regions pattern {v!r}: {exc}") from exc
        return v or None

    @classmethod
    def from_yaml(cls, yaml_str: str) -> Settings:
        data = yaml.safe_load(yaml_str) or {}
        return cls.model_validate(data)


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from a YAML file; defaults when path is None or missing."""
    if path is None:
        return Settings()
    p = Path(path)
    if not p.exists():
        return Settings()
    settings = Settings.from_yaml(p.read_text())
    if settings.families_dir is not None and not settings.families_dir.is_absolute():
        settings = settings.model_copy(update={"families_dir": p.parent / settings.families_dir})
    return settings
