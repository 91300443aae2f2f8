"""Tests for derived field normalization."""

import pytest
from companypulse.pipeline.normalizer import (
    clean_text, detect_remote_type, extract_seniority, normalize_fields,
)


class TestExtractSeniority:
    def test_senior_checked_before_staff(self):
        assert extract_seniority("Senior Staff Engineer") == "senior"

    def test_intern(self):
        assert extract_seniority("Backend Intern") == "intern"
        assert extract_seniority("Co-op Software Developer") == "intern"

    def test_empty_or_missing_title(self):
        assert extract_seniority("") == "mid"
        assert extract_seniority(None) == "mid"

    @pytest.mark.parametrize("title, level", [
        ("Junior Data Analyst", "entry"),
        ("Associate Product Manager", "entry"),
        ("Tech Lead, Payments", "senior"),
        ("Sr. Backend Engineer", "senior"),
        ("Staff Engineer", "staff"),
        ("Principal Designer", "staff"),
        ("Director of Engineering", "executive"),
        ("Head of Growth", "executive"),
        ("Product Manager", "mid"),
    ])
    def test_levels(self, title, level):
        assert extract_seniority(title) == level

    def test_entry_wins_over_senior(self):
        # associate is checked before lead
        assert extract_seniority("Associate Team Lead") == "entry"

    def test_case_insensitive(self):
        assert extract_seniority("SENIOR ENGINEER") == "senior"


class TestDetectRemoteType:
    def test_remote_location(self):
        assert detect_remote_type("Remote - US", "Engineer") == "remote"

    def test_onsite(self):
        assert detect_remote_type("New York", "Engineer") == "onsite"

    def test_hybrid(self):
        assert detect_remote_type("Hybrid - London", "Engineer") == "hybrid"

    def test_remote_in_title(self):
        assert detect_remote_type("Berlin", "Engineer (Remote)") == "remote"

    def test_remote_beats_hybrid(self):
        assert detect_remote_type("Hybrid or Remote", None) == "remote"

    def test_missing_inputs(self):
        assert detect_remote_type(None, None) == "onsite"

    def test_work_from_home(self):
        assert detect_remote_type("Work From Home", "Support Agent") == "remote"


class TestNormalizeFields:
    def test_combines_both(self):
        fields = normalize_fields("Senior Staff Engineer", "Remote - US")
        assert fields.remote_type == "remote"
        assert fields.seniority_level == "senior"

    def test_defaults(self):
        fields = normalize_fields()
        assert fields.remote_type == "onsite"
        assert fields.seniority_level == "mid"


class TestCleanText:
    def test_collapses_whitespace(self):
        assert clean_text("  Full  Stack   Dev  ") == "Full Stack Dev"

    def test_blank_is_none(self):
        assert clean_text("   ") is None
        assert clean_text(None) is None
