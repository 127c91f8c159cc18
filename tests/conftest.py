"""Pytest configuration and fixtures for vcf-table tests."""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).parent))

from fixtures.vcf_generator import (  # noqa: E402
    SyntheticVariant,
    VCFGenerator,
    make_basic_variants,
    make_trio_vcf,
)


@pytest.fixture
def vcf_generator():
    """Provide VCFGenerator class for tests."""
    return VCFGenerator


@pytest.fixture
def synthetic_variant_factory():
    """Factory for creating SyntheticVariant instances."""

    def _factory(**kwargs):
        defaults = {
            "chrom": "chr1",
            "pos": 100,
            "ref": "A",
            "alt": ["G"],
        }
        defaults.update(kwargs)
        return SyntheticVariant(**defaults)

    return _factory


@pytest.fixture
def basic_vcf_file(tmp_path) -> Path:
    """Plain VCF with 8 meta lines, 5 variants and 2 samples."""
    return VCFGenerator.generate_file(
        tmp_path / "basic.vcf", make_basic_variants(), samples=["NA001", "NA002"]
    )


@pytest.fixture
def basic_vcf_gz_file(tmp_path) -> Path:
    """Gzipped copy of the basic VCF, under a name without a .gz suffix."""
    return VCFGenerator.generate_file(
        tmp_path / "basic_compressed.vcf",
        make_basic_variants(),
        samples=["NA001", "NA002"],
        compress=True,
    )


@pytest.fixture
def trio_vcf_file(tmp_path) -> Path:
    """VCF with three samples."""
    path = tmp_path / "trio.vcf"
    path.write_text(make_trio_vcf(), encoding="utf-8")
    return path


@pytest.fixture
def write_vcf_text(tmp_path):
    """Write raw VCF text to a file and return its path."""

    def _write(text: str, name: str = "raw.vcf") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
