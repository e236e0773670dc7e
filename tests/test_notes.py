"""
Unit tests for grid_regrid.notes module.
"""

import pytest

from map_projector import InvalidParameterError
from grid_regrid import append_note


class TestAppendNote:
    """Test merging of provenance notes."""

    def test_first_note_has_no_separator(self):
        assert append_note("", "KSEA") == "KSEA"

    def test_appends_with_comma(self):
        assert append_note("KSEA", "KPDX") == "KSEA,KPDX"

    def test_already_present(self):
        assert append_note("KSEA,KPDX", "KPDX") == "KSEA,KPDX"

    def test_substring_counts_as_present(self):
        assert append_note("KSEAX", "KSEA") == "KSEAX"

    def test_truncated_at_capacity(self):
        result = append_note("a" * 250, "XYZXYZ")
        assert len(result) == 255
        assert result.endswith(",XYZX")

    def test_full_note_unchanged(self):
        full = "a" * 255
        assert append_note(full, "B") == full

    def test_trailing_comma_when_only_separator_fits(self):
        result = append_note("a" * 254, "B")
        assert result == "a" * 254 + ","

    def test_capacity_counts_bytes(self):
        assert append_note("a" * 250, "ééé") == "a" * 250 + ",éé"

    def test_truncation_drops_partial_character(self):
        result = append_note("a" * 251, "ééé")
        assert result == "a" * 251 + ",é"
        assert len(result.encode("utf-8")) <= 255

    def test_multibyte_note_within_capacity(self):
        assert append_note("", "é" * 39) == "é" * 39

    @pytest.mark.parametrize("regridded_note,note", [
        ("", ""),
        ("", "n" * 80),
        ("a" * 256, "B"),
        ("", "é" * 40),
        ("é" * 128, "B"),
    ])
    def test_invalid(self, regridded_note, note):
        with pytest.raises(InvalidParameterError):
            append_note(regridded_note, note)
