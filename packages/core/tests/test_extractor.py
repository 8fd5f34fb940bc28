"""Tests for flattening parsed catalogs into rate entries."""

from __future__ import annotations

import re
from decimal import Decimal

import pytest
from ratecard.catalog.extractor import extract, extract_regions
from ratecard.catalog.parser import parse
from ratecard.errors import MalformedCatalogError, UnknownRateKindError
from ratecard.families import FamilyRegistry


class TestExtractTypes:
    def test_entry_count(self, ebs_v1_text, registry):
        entries = extract(parse(ebs_v1_text, registry=registry), registry=registry)
        assert len(entries) == 12

    def test_one_entry_per_value(self, ebs_v1_text, registry):
        entries = extract(parse(ebs_v1_text, registry=registry), registry=registry)
        piops = [e for e in entries if e.region == "eu-west-1" and e.storage_type == "ebsPIOPSSSD"]
        assert {e.rate_kind: e.prices["USD"] for e in piops} == {
            "perGBmoProvStorage": Decimal("0.138"),
            "perPIOPSreq": Decimal("0.072"),
        }

    def test_types_have_no_tier(self, ebs_v1_text, registry):
        entries = extract(parse(ebs_v1_text, registry=registry), registry=registry)
        assert all(e.tier_id is None for e in entries)

    def test_source_order(self, ebs_v1_text, registry):
        entries = extract(parse(ebs_v1_text, registry=registry), registry=registry)
        assert [e.storage_type for e in entries[:3]] == ["ebsGPSSD", "ebsPIOPSSSD", "ebsPIOPSSSD"]
        assert entries[0].region == "eu-west-1"
        assert entries[-1].region == "eu-west-2"

    def test_carries_source_version(self, ebs_v1_text, registry):
        entries = extract(parse(ebs_v1_text, registry=registry), registry=registry)
        assert {e.source_version for e in entries} == {Decimal("0.01")}

    def test_empty_regions_emit_nothing(self, ebs_v1_text, registry):
        entries = extract(parse(ebs_v1_text, registry=registry), registry=registry)
        assert {e.region for e in entries} == {"eu-west-1", "eu-west-2"}

    def test_one_entry_per_currency(self, ebs_newer_text, registry):
        entries = extract(parse(ebs_newer_text, registry=registry), registry=registry)
        assert len(entries) == 2
        assert [e.prices for e in entries] == [{"USD": Decimal("0.09")}, {"EUR": Decimal("0.085")}]
        assert len({e.key for e in entries}) == 1

    def test_default_rate_applies(self, registry):
        text = (
            'callback({"vers":1,"config":{"currencies":["USD"],"rate":"perGBmoProvStorage","regions":['
            '{"region":"eu-west-1","types":[{"name":"ebsGPSSD","values":[{"prices":{"USD":"0.1"}}]}]}]}});'
        )
        [entry] = extract(parse(text, registry=registry), registry=registry)
        assert entry.rate_kind == "perGBmoProvStorage"

    def test_missing_rate_without_default(self, registry):
        text = (
            'callback({"vers":1,"config":{"currencies":["USD"],"regions":['
            '{"region":"eu-west-1","types":[{"name":"ebsGPSSD","values":[{"prices":{"USD":"0.1"}}]}]}]}});'
        )
        with pytest.raises(MalformedCatalogError, match="no rate"):
            extract(parse(text, registry=registry), registry=registry)

    def test_unknown_rate_kind(self, registry):
        text = (
            'callback({"vers":1,"config":{"currencies":["USD"],"rate":"perGB","regions":['
            '{"region":"eu-west-1","types":[{"name":"ebsGPSSD","values":'
            '[{"prices":{"USD":"0.1"},"rate":"perFortnight"}]}]}]}});'
        )
        with pytest.raises(UnknownRateKindError) as exc_info:
            extract(parse(text, registry=registry), registry=registry)
        assert exc_info.value.rate_kind == "perFortnight"
        assert exc_info.value.family == "ebs"
        assert "perGBmoProvStorage" in exc_info.value.known

    def test_unregistered_family_accepts_nothing(self, ebs_v1_text, registry):
        with pytest.raises(UnknownRateKindError):
            extract(parse(ebs_v1_text, family="unknown", registry=registry), registry=registry)

    def test_dropped_placeholder_emits_no_entry(self, registry):
        text = (
            'callback({"vers":1,"config":{"currencies":["USD"],"rate":"perGB","regions":['
            '{"region":"eu-west-1","types":[{"name":"ebsGPSSD","values":'
            '[{"prices":{"USD":"N/A"},"rate":"perGBmoProvStorage"}]}]}]}});'
        )
        assert extract(parse(text, registry=registry), registry=registry) == []


class TestExtractTiers:
    def test_entry_count(self, s3_text, registry):
        assert len(extract(parse(s3_text, registry=registry), registry=registry)) == 18

    def test_tier_and_default_rate(self, s3_text, registry):
        entries = extract(parse(s3_text, registry=registry), registry=registry)
        first = [e for e in entries if e.region == "eu-west-1" and e.tier_id == "first50TBstorage"]
        assert {e.storage_type: e.prices["USD"] for e in first} == {
            "storage": Decimal("0.022"),
            "infrequentAccessStorage": Decimal("0.0125"),
            "glacierStorage": Decimal("0.004"),
        }
        assert {e.rate_kind for e in entries} == {"perGB"}

    def test_footnote_markers_become_footnotes(self, registry):
        text = (
            'callback({"vers":1,"config":{"currencies":["USD"],"rate":"perGB",'
            '"footnotes":{"&dagger;":"designed109Durable"},"regions":['
            '{"region":"eu-west-1","tiers":[{"name":"first50TBstorage","storageTypes":['
            '{"type":"storage&dagger;","prices":{"USD":"0.022"}},'
            '{"type":"glacierStorage","prices":{"USD":"0.004"}}]}]}]}});'
        )
        storage, glacier = extract(parse(text, registry=registry), registry=registry)
        assert storage.storage_type == "storage"
        assert storage.footnotes == ("designed109Durable",)
        assert glacier.footnotes == ()


class TestRegionFilter:
    def test_pattern_filters_entries(self, ebs_v1_text, registry):
        catalog = parse(ebs_v1_text, registry=registry)
        entries = extract(catalog, registry=registry, regions="eu-west-2")
        assert len(entries) == 6
        assert {e.region for e in entries} == {"eu-west-2"}

    def test_pattern_is_full_match(self, ebs_v1_text, registry):
        catalog = parse(ebs_v1_text, registry=registry)
        assert extract(catalog, registry=registry, regions="eu-west") == []

    def test_compiled_pattern(self, ebs_v1_text, registry):
        catalog = parse(ebs_v1_text, registry=registry)
        entries = extract(catalog, registry=registry, regions=re.compile(r"eu-west-\d"))
        assert len(entries) == 12

    def test_extract_regions_keeps_empty(self, ebs_v1_text, registry):
        catalog = parse(ebs_v1_text, registry=registry)
        assert extract_regions(catalog, registry=registry) == ["eu-west-1", "eu-west-2", "eu-central-1", "us-east-1"]

    def test_extract_regions_filtered(self, ebs_v1_text, registry):
        catalog = parse(ebs_v1_text, registry=registry)
        assert extract_regions(catalog, registry=registry, regions=r"eu-.*") == [
            "eu-west-1",
            "eu-west-2",
            "eu-central-1",
        ]


class TestRegionAliases:
    def test_legacy_codes_are_canonicalized(self, registry):
        text = (
            'callback({"vers":1,"config":{"currencies":["USD"],"rate":"perGB","regions":['
            '{"region":"eu-ireland","types":[{"name":"ebsGPSSD","values":'
            '[{"prices":{"USD":"0.1"},"rate":"perGBmoProvStorage"}]}]},'
            '{"region":"us-east","types":[]}]}});'
        )
        catalog = parse(text, registry=registry)
        [entry] = extract(catalog, registry=registry)
        assert entry.region == "eu-west-1"
        assert extract_regions(catalog, registry=registry) == ["eu-west-1", "us-east-1"]

    def test_custom_regions_file(self, tmp_path, ebs_v1_text):
        regions_file = tmp_path / "regions.yaml"
        regions_file.write_text("aliases:\n  eu-west-1: europe-1\n")
        registry = FamilyRegistry(regions_file=regions_file)
        entries = extract(parse(ebs_v1_text, registry=registry), registry=registry)
        assert {e.region for e in entries} == {"europe-1", "eu-west-2"}
