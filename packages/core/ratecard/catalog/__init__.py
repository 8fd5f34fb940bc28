"""Catalog pipeline: parse JSONP payloads, extract rate entries and merge them into a RateCard."""

from ratecard.catalog.extractor import extract, extract_regions
from ratecard.catalog.normalizer import IngestedBatch, ingest, merge
from ratecard.catalog.parser import parse, strip_jsonp
from ratecard.catalog.refresh import (
    CatalogSource,
    RateCardHolder,
    RefreshResult,
    RefreshSummary,
    build_rate_card,
    refresh_rate_card,
    sources_from_files,
)

__all__ = [
    "CatalogSource",
    "IngestedBatch",
    "RateCardHolder",
    "RefreshResult",
    "RefreshSummary",
    "build_rate_card",
    "extract",
    "extract_regions",
    "ingest",
    "merge",
    "parse",
    "refresh_rate_card",
    "sources_from_files",
    "strip_jsonp",
]
