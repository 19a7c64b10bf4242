"""
Tests for tier policies and extraction modes.
"""

import pytest

from invoice_pipeline.extraction import DocumentType
from invoice_pipeline.pipeline import ExtractionMode, TierPolicy
from invoice_pipeline.utils.exceptions import ConfigurationError


def policy_data(**overrides):
    data = {
        "max_files_per_batch": 5,
        "max_file_size_bytes": 2 * 1024 * 1024,
        "max_pdf_pages": 10,
        "allowed_document_types": ["Standard Invoice"],
        "ocr_enabled": False,
        "ocr_max_file_size_bytes": 10 * 1024 * 1024,
        "ocr_timeout_ms": 30000,
    }
    data.update(overrides)
    return data


class TestTierPolicy:
    """Tests for TierPolicy construction and limits."""

    def test_free_plan_from_settings(self, free_policy):
        assert free_policy.name == "free"
        assert free_policy.max_files_per_batch == 5
        assert free_policy.ocr_enabled is False
        assert free_policy.allowed_document_types == frozenset({DocumentType.STANDARD_INVOICE})

    def test_premium_plan_licenses_every_type(self, premium_policy):
        assert premium_policy.ocr_enabled is True
        for document_type in DocumentType:
            assert premium_policy.allows(document_type)

    def test_unknown_plan(self):
        with pytest.raises(ConfigurationError, match="Unknown plan: gold"):
            TierPolicy.from_plan("gold")

    def test_missing_setting(self):
        data = policy_data()
        del data["ocr_timeout_ms"]
        with pytest.raises(ConfigurationError) as exc_info:
            TierPolicy.from_dict("custom", data)
        assert exc_info.value.details["missing"] == ["ocr_timeout_ms"]

    def test_unknown_document_type(self):
        with pytest.raises(ConfigurationError):
            TierPolicy.from_dict("custom", policy_data(allowed_document_types=["Payslip"]))

    def test_ocr_batch_limit_is_tighter(self, premium_policy):
        assert premium_policy.batch_limit(ExtractionMode.STANDARD) == 50
        assert premium_policy.batch_limit(ExtractionMode.OCR) == 3

    def test_ocr_size_limit_is_the_stricter_one(self):
        policy = TierPolicy.from_dict("custom", policy_data(ocr_max_file_size_bytes=1024))
        assert policy.file_size_limit(ExtractionMode.OCR) == 1024
        assert policy.file_size_limit(ExtractionMode.ENHANCED) == 2 * 1024 * 1024

    def test_policy_is_immutable(self, free_policy):
        with pytest.raises(AttributeError):
            free_policy.max_files_per_batch = 100


class TestExtractionMode:
    """Tests for mode flags."""

    def test_flags(self):
        assert ExtractionMode.OCR.uses_ocr
        assert not ExtractionMode.ENHANCED.uses_ocr
        assert ExtractionMode.ENHANCED.uses_type_patterns
        assert not ExtractionMode.STANDARD.uses_type_patterns

    def test_from_string(self):
        assert ExtractionMode("enhanced") is ExtractionMode.ENHANCED
