from backend.services.classifier import derive_status, get_unit_info, normalize_unit, select_focus_series
from backend.services.row_parser import sanitize_rows


def _rows(*entries) -> list:
    return sanitize_rows(
        [
            {"t": 1705000000000 + i * 86400000, "y": entry.get("y", 10), "parameter_name": entry.get("name", "A"), **entry.get("extra", {})}
            for i, entry in enumerate(entries)
        ]
    )


def test_focus_uses_hinted_series():
    rows = _rows({"name": "B", "y": 20}, {"name": "A", "y": 10}, {"name": "A", "y": 15}, {"name": "B", "y": 25})
    focus = select_focus_series(rows, "B")
    assert focus.name == "B"
    assert [row.y for row in focus.rows] == [20, 25]


def test_focus_defaults_to_first_alphabetically():
    rows = _rows({"name": "Zinc"}, {"name": "Albumin"}, {"name": "Zinc"}, {"name": "Zinc"})
    assert select_focus_series(rows).name == "Albumin"
    assert select_focus_series(rows, "Missing").name == "Albumin"


def test_focus_is_absent_for_no_rows():
    focus = select_focus_series([], "A")
    assert focus.name is None
    assert focus.rows == []


def test_normalize_unit():
    assert normalize_unit(" Mg/dL ") == "mg/dl"
    assert normalize_unit(None) == ""
    assert normalize_unit("") == ""


def test_unit_info_single_unit_ignores_case():
    rows = _rows({"extra": {"unit": "mg/dL"}}, {"extra": {"unit": "MG/DL"}})
    info = get_unit_info(rows)
    assert info.is_mixed is False
    assert info.unit_raw == "MG/DL"
    assert info.unit_display == " MG/DL"


def test_unit_info_detects_mixed_units():
    rows = _rows({"extra": {"unit": "mg/dL"}}, {"extra": {"unit": "mmol/L"}})
    assert get_unit_info(rows).is_mixed is True


def test_unit_info_treats_missing_and_empty_as_same():
    rows = _rows({}, {"extra": {"unit": ""}})
    info = get_unit_info(rows)
    assert info.is_mixed is False
    assert info.unit_raw is None
    assert info.unit_display is None


def test_status_mixed_units_override_everything():
    rows = _rows({"extra": {"reference_lower": 30, "reference_upper": 70}})
    assert derive_status("normal", 50, rows, True) == "unknown"


def test_status_trusts_confident_hint():
    rows = _rows({"extra": {"reference_lower": 30, "reference_upper": 70}})
    assert derive_status("high", 50, rows, False) == "high"
    assert derive_status("low", 50, rows, False) == "low"
    assert derive_status("normal", 500, rows, False) == "normal"


def test_status_from_reference_bounds():
    rows = _rows({"extra": {"reference_lower": 30, "reference_upper": 70}})
    assert derive_status("unknown", 80, rows, False) == "high"
    assert derive_status("unknown", 20, rows, False) == "low"
    assert derive_status("unknown", 50, rows, False) == "normal"
    assert derive_status("unknown", 70, rows, False) == "normal"


def test_status_with_single_bound():
    upper_only = _rows({"extra": {"reference_upper": 5}})
    lower_only = _rows({"extra": {"reference_lower": 30}})
    assert derive_status("unknown", 1, upper_only, False) == "normal"
    assert derive_status("unknown", 6, upper_only, False) == "high"
    assert derive_status("unknown", 500, lower_only, False) == "normal"


def test_status_uses_latest_row_bounds_only():
    rows = _rows({"extra": {"reference_upper": 5}}, {})
    assert derive_status("unknown", 50, rows, False) == "unknown"
