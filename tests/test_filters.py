import pytest

from conftest import DEFECT_HEADERS, MAIN_HEADERS
from weld_dashboard.errors import FilterValidationError
from weld_dashboard.filters import (
    filter_defects_by_date,
    filter_records,
    numeric_matches,
    validate_filter_spec,
)
from weld_dashboard.models import FilterSpec
from weld_dashboard.transforms import normalize_defects, normalize_main


@pytest.fixture
def frame(table):
    raw = table(MAIN_HEADERS, [
        {"Дата": "15.01.2024", "Номер заказа": "A-100", "№Днища": "C1", "Сварщик": "Иванов И.",
         "Диаметр": "1200", "Толщина": "8", "Раскрой": "Б"},
        {"Дата": "15.02.2024", "Номер заказа": "A-101", "№Днища": "C2", "Сварщик": "Петров П.",
         "Диаметр": "1600", "Толщина": "12", "Раскрой": "В"},
        {"Дата": "", "Номер заказа": "B-200", "№Днища": "C3", "Сварщик": "Иванов И.",
         "Диаметр": "", "Толщина": "8", "Раскрой": "Б"},
    ])
    df, _, _ = normalize_main(raw.rows, raw.headers)
    return df


def test_date_range_is_inclusive(frame):
    result = filter_records(frame, FilterSpec(date_from="01.01.2024", date_to="31.01.2024"))
    assert list(result["date"]) == ["15.01.2024"]

    result = filter_records(frame, FilterSpec(date_from="15.01.2024", date_to="15.02.2024"))
    assert list(result["date"]) == ["15.01.2024", "15.02.2024"]


def test_undated_rows_excluded_only_when_range_given(frame):
    assert len(filter_records(frame, FilterSpec())) == 3
    assert len(filter_records(frame, FilterSpec(date_to="31.12.2030"))) == 2


def test_text_filters_are_case_insensitive_substrings(frame):
    assert list(filter_records(frame, FilterSpec(order="a-10"))["order_id"]) == ["A-100", "A-101"]
    assert list(filter_records(frame, FilterSpec(welder="иванов"))["component_id"]) == ["C1", "C3"]
    assert list(filter_records(frame, FilterSpec(cutting="в"))["component_id"]) == ["C2"]


def test_numeric_filters(frame):
    assert list(filter_records(frame, FilterSpec(diameter="1200"))["component_id"]) == ["C1"]
    assert list(filter_records(frame, FilterSpec(thickness="8,0"))["component_id"]) == ["C1", "C3"]


def test_numeric_matches():
    assert numeric_matches(1200, "1200")
    assert numeric_matches("1200", "1200.0")
    assert not numeric_matches(1200, "120")
    assert numeric_matches("ø1200", "1200")
    assert not numeric_matches("", "1200")
    assert not numeric_matches(None, "1200")


def test_invalid_date_is_rejected(frame):
    with pytest.raises(FilterValidationError) as exc:
        filter_records(frame, FilterSpec(date_from="2024-01-01"))
    assert exc.value.field == "date_from"
    assert exc.value.value == "2024-01-01"

    assert validate_filter_spec(FilterSpec(date_from=" ", date_to="31.01.2024")) == (None, 20240131)


def test_filter_defects_keeps_undated_rows(table):
    raw = table(DEFECT_HEADERS, [
        {"Номер заказа": "1", "№Днища": "C1", "Дата выяв-ния несоответствия": "10.01.2024"},
        {"Номер заказа": "1", "№Днища": "C2", "Дата выяв-ния несоответствия": "10.03.2024"},
        {"Номер заказа": "1", "№Днища": "C3", "Дата выяв-ния несоответствия": ""},
    ])
    defects, _, _ = normalize_defects(raw.rows, raw.headers)

    result = filter_defects_by_date(defects, "01.01.2024", "31.01.2024")

    assert list(result["component_id"]) == ["C1", "C3"]
    assert filter_defects_by_date(None, "01.01.2024") is None


def test_session_filter_rejection_keeps_view(make_session, ivanov_rows):
    session = make_session(ivanov_rows)
    session.apply_filters({"date_from": "02.01.2024"})
    before = session.filtered

    with pytest.raises(FilterValidationError):
        session.apply_filters({"date_from": "31/01/2024"})

    assert session.filtered is before
    assert session.filter_spec.date_from == "02.01.2024"
    assert len(session.reset_filters()) == 4
