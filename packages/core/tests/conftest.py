"""Shared fixtures for core tests."""

from __future__ import annotations

from pathlib import Path

import pytest
from ratecard.families import FamilyRegistry

_FIXTURES = Path(__file__).parent / "fixtures"

# Multi-currency EBS catalog published after the fixture files
_EBS_NEWER = """\
callback({"vers":0.02,"config":{"currencies":["USD","EUR"],"rate":"perGB","regions":[
{"region":"eu-west-1","types":[
{"name":"ebsGPSSD","values":[{"prices":{"USD":"0.09","EUR":"0.085"},"rate":"perGBmoProvStorage"}]}]},
{"region":"eu-north-1","types":[]}
]}});
"""


@pytest.fixture
def fixtures_dir() -> Path:
    return _FIXTURES


@pytest.fixture
def registry() -> FamilyRegistry:
    return FamilyRegistry()


@pytest.fixture
def ebs_v1_text() -> str:
    """EBS catalog with two priced regions and two regions without prices."""
    return (_FIXTURES / "pricing-ebs.js").read_text()


@pytest.fixture
def ebs_v2_text() -> str:
    """Later EBS catalog, same version tag, lower eu-west-1 prices."""
    return (_FIXTURES / "v2" / "pricing-ebs.js").read_text()


@pytest.fixture
def s3_text() -> str:
    """S3 catalog with three volume tiers per region."""
    return (_FIXTURES / "v2" / "pricing-storage-s3.js").read_text()


@pytest.fixture
def ebs_newer_text() -> str:
    return _EBS_NEWER
