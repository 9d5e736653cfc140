import pytest

from conftest import MAIN_HEADERS
from weld_dashboard.config import COLOR_PALETTE
from weld_dashboard.dashboard import (
    export_csv,
    generate_colors,
    get_defect_pie,
    get_defect_summary,
    get_mode_name,
    get_other_defects,
    get_overview,
    get_production_series,
    get_rework_chart,
    get_rework_pie,
    get_table_page,
    get_trend_summary,
    get_welder_lines,
    get_welder_ranking,
)


def test_overview_cards(make_session, ivanov_rows, ivanov_rejection):
    session = make_session(ivanov_rows, ivanov_rejection)

    overview = get_overview(session)

    assert overview["total"]["value"] == 4
    assert overview["total_length"]["value"] == pytest.approx(14.0)
    assert overview["defect_pct"]["value"] == 25.0
    assert overview["defect_pct"]["status"] == "bad"
    # 2 + 3 m in the first half, 5 + 4 m in the second
    assert overview["total_length"]["trend"] == 80.0
    assert overview["total_length"]["trend_info"]["quality"] == "good"
    # C2 falls in the first half: 50% -> 0%
    assert overview["defect_pct"]["trend"] == -50.0
    assert overview["defect_pct"]["trend_info"]["quality"] == "good"
    assert overview["defect_count"] == 1
    assert "Defect sheet" in overview["defect_source"]
    assert get_mode_name(session) == "real-data"


def test_rule_mode_labels(make_session, ivanov_rows):
    session = make_session(ivanov_rows)
    assert get_overview(session)["defect_source"] == "Rule: ИТОГО проволока = 0"
    assert get_mode_name(session) == "rule-based"


def test_ranking_and_defect_summary(make_session, ivanov_rows, ivanov_rejection):
    rows = ivanov_rows + [
        {"Дата": "05.01.2024", "Номер заказа": "200", "№Днища": "D1", "Сварщик": "Petrov",
         "Длина сварных швов": "50000"},
    ]
    session = make_session(rows, ivanov_rejection)

    ranking = get_welder_ranking(session)
    assert list(ranking["welder"]) == ["PETROV", "IVANOV"]
    assert ranking.iloc[1]["score"] == pytest.approx(23.6)

    summary = get_defect_summary(session)
    assert summary["defect_count"] == 1
    assert summary["defect_pct"] == 20.0
    assert summary["status"] == "high"
    assert summary["top_welders"] == [("IVANOV", 1), ("PETROV", 0)]

    pie = get_defect_pie(session)
    assert pie.set_index("welder")["defect_pct"].to_dict() == {"IVANOV": 25.0, "PETROV": 0.0}


def test_quality_breakdowns(make_session, ivanov_rows, ivanov_rejection):
    defect_rows = ivanov_rejection + [
        {"Номер заказа": "100", "№Днища": "C2", "Технологическая операция": "Исправление повторное"},
        {"Номер заказа": "100", "№Днища": "C3", "Технологическая операция": "Сборка"},
    ]
    session = make_session(ivanov_rows, defect_rows)

    assert get_rework_pie(session) == {"rejection": 1, "rework": 1}
    assert get_other_defects(session) == {"labels": ["Сборка"], "counts": [1]}
    rework = get_rework_chart(session)
    assert rework.iloc[0]["rework_count"] == 1


def test_rework_chart_without_defect_data(make_session, ivanov_rows):
    session = make_session(ivanov_rows)
    assert get_rework_chart(session).empty
    assert get_rework_pie(session) == {"rejection": 0, "rework": 0}


def test_trend_summary(make_session):
    rows = [
        {"Дата": date, "Сварщик": "Ivanov", "Длина сварных швов": length}
        for date, length in [
            ("10.01.2024", "100000"),
            ("10.02.2024", "120000"),
            ("10.03.2024", "90000"),
            ("10.04.2024", "950000"),
        ]
    ]
    session = make_session(rows)

    summary = get_trend_summary(session)

    assert summary["available"]
    assert summary["current_month"] == pytest.approx(950.0)
    assert summary["previous_month"] == pytest.approx(90.0)
    assert summary["target_met"]
    assert summary["months"] == 4

    series = get_production_series(session)
    assert series["labels"] == ["2024-01", "2024-02", "2024-03", "2024-04"]
    assert series["above_mean"] == [False, False, False, True]

    lines = get_welder_lines(session)
    assert list(lines.index) == ["IVANOV"]

    session.apply_filters({"date_to": "31.01.2024"})
    assert get_trend_summary(session) == {"available": False, "months": 1}


def test_table_page_is_newest_first(make_session, ivanov_rows):
    session = make_session(ivanov_rows)

    page = get_table_page(session, limit=2)

    assert list(page.columns) == MAIN_HEADERS
    assert list(page["№Днища"]) == ["C4", "C3"]


def test_export_csv(make_session, ivanov_rows):
    session = make_session(ivanov_rows)

    data = export_csv(session)

    assert data.startswith(b"\xef\xbb\xbf")
    lines = data.decode("utf-8-sig").splitlines()
    assert lines[0] == ",".join(MAIN_HEADERS)
    assert len(lines) == 5
    first = dict(zip(MAIN_HEADERS, lines[1].split(",")))
    assert first["Длина сварных швов"] == "2.00"
    assert first["ИТОГО проволока"] == "1.50"
    assert first["Сварщик"] == "Ivanov I."
    assert first["Диаметр"] == ""


def test_export_csv_requires_rows(make_session, ivanov_rows):
    session = make_session(ivanov_rows)
    session.apply_filters({"welder": "nobody"})
    with pytest.raises(ValueError):
        export_csv(session)


def test_generate_colors():
    assert generate_colors(0) == []
    assert generate_colors(3) == COLOR_PALETTE[:3]

    colors = generate_colors(len(COLOR_PALETTE) + 2)
    assert colors[:len(COLOR_PALETTE)] == COLOR_PALETTE
    assert colors[-1].startswith("hsl(")
    assert len(set(colors)) == len(colors)


def test_shared_component_counts_once(make_session, ivanov_rejection):
    rows = [
        {"Дата": "02.01.2024", "Номер заказа": "100", "№Днища": "C2", "Сварщик": "Ivanov",
         "Длина сварных швов": "1000"},
        {"Дата": "03.01.2024", "Номер заказа": "100", "№Днища": "C2", "Сварщик": "Petrov",
         "Длина сварных швов": "1000"},
    ]
    session = make_session(rows, ivanov_rejection)

    overview = get_overview(session)
    summary = get_defect_summary(session)

    assert overview["defect_count"] == 1
    assert summary["defect_count"] == overview["defect_count"]
    assert summary["defect_pct"] == overview["defect_pct"]["value"] == 50.0
    # each welder still carries the component in the top list
    assert dict(summary["top_welders"]) == {"IVANOV": 1, "PETROV": 1}
