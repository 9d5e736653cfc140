import math

from conftest import MAIN_HEADERS
from weld_dashboard.transforms import (
    classify_column,
    coerce_value,
    cutting_coefficient,
    first_populated,
    material_coefficient,
    normalize_defects,
    normalize_main,
    normalize_rows,
    stage_category,
)


def test_classify_column():
    assert classify_column("Сварщик") == "string"
    assert classify_column("Дата выяв-ния несоответствия") == "string"
    # Listed both as string and integer: string wins
    assert classify_column("Номер днища") == "string"
    assert classify_column("Толщина") == "integer"
    assert classify_column("ИТОГО проволока") == "numeric"
    assert classify_column("WireTotal") == "numeric"


def test_weld_length_is_converted_to_metres():
    assert math.isclose(coerce_value("Длина сварных швов", "1500"), 1.5)
    assert math.isclose(coerce_value("Длина сварных швов", "1500,5"), 1.5005)
    assert math.isclose(coerce_value("Weld Length", "250"), 0.25)


def test_coerce_value_by_column_kind():
    assert coerce_value("Сварщик", " Иванов ") == "Иванов"
    assert coerce_value("Номер заказа", "0012") == "0012"
    assert coerce_value("Толщина", "12") == 12
    assert coerce_value("Толщина", "abc") == 0
    assert coerce_value("Толщина", "") == ""
    assert coerce_value("ИТОГО проволока", "2,5") == 2.5
    assert coerce_value("ИТОГО проволока", "n/a") == "n/a"
    assert coerce_value("ИТОГО проволока", "inf") == "inf"


def test_normalize_rows_drops_misaligned_rows():
    headers = ["Дата", "Сварщик"]
    rows = [
        {"Дата": "15.01.2024", "Сварщик": "Иванов"},
        {"Дата": "16.01.2024", "Сварщик": None},
        {"Дата": "17.01.2024"},
    ]
    typed, warnings = normalize_rows(rows, headers)

    assert len(typed) == 1
    assert typed[0]["_line"] == 2
    assert warnings == [
        "Row 3: column count mismatch, row dropped",
        "Row 4: column count mismatch, row dropped",
    ]


def test_first_populated_respects_alias_priority():
    row = {"Номер заказа": "  ", "Заказ": "77", "Order": "99"}
    assert first_populated(row, ["Номер заказа", "Заказ", "Order"]) == "77"
    assert first_populated(row, ["Missing"]) is None


def test_coefficients():
    assert cutting_coefficient("А") == 2
    assert cutting_coefficient("г-12") == 4
    assert cutting_coefficient("Е") == 4.5
    assert cutting_coefficient("") == 1
    assert cutting_coefficient("X") == 1
    assert material_coefficient("Св-08Г2С") == 1.0
    assert material_coefficient("12Х18Н10Т") == 1.2
    assert material_coefficient("") == 1.2


def test_stage_category():
    assert stage_category("Предъявление продукции") == "primary-rejection"
    assert stage_category(" ИСПРАВЛЕНИЕ ПОВТОРНОЕ ") == "rework"
    assert stage_category("Сборка") == "other"
    assert stage_category("") == "other"


def test_normalize_main_builds_canonical_columns(table):
    raw = table(MAIN_HEADERS, [
        {
            "Дата": "15.01.2024",
            "Номер заказа": "100",
            "№Днища": "C1",
            "Сварщик": "Иванов И.И. 5р",
            "Диаметр": "1200",
            "Раскрой": "В",
            "Проволока": "08Г2С",
            "Длина сварных швов": "2500",
            "ИТОГО проволока": "1,2",
        },
    ])
    df, headers, warnings = normalize_main(raw.rows, raw.headers)

    assert headers == MAIN_HEADERS
    assert warnings == []
    row = df.iloc[0]
    assert row["date"] == "15.01.2024"
    assert row["date_key"] == 20240115
    assert row["component_key"] == "100_C1"
    assert row["welder_raw"] == "Иванов И.И. 5р"
    assert row["welder_normalized"] == "ИВАНОВ"
    assert math.isclose(row["weld_length_m"], 2.5)
    assert math.isclose(row["wire_total"], 1.2)
    assert row["diameter"] == 1200
    assert row["cutting_coefficient"] == 3
    assert row["material_coefficient"] == 1.0
    # Source columns keep their typed values
    assert math.isclose(row["Длина сварных швов"], 2.5)


def test_normalize_main_date_handling(table):
    raw = table(MAIN_HEADERS, [
        {"Дата": "15.01.2024", "Сварщик": "A", "Длина сварных швов": "1000"},
        {"Дата": "2024-01-16", "Сварщик": "B", "Длина сварных швов": "1000"},
        {"Дата": "", "Сварщик": "C", "Длина сварных швов": "1000"},
    ])
    df, _, warnings = normalize_main(raw.rows, raw.headers)

    assert list(df["welder_normalized"]) == ["A", "C"]
    assert df.iloc[1]["date"] is None
    assert len(warnings) == 1
    assert "invalid date" in warnings[0]


def test_normalize_main_clamps_negative_length(table):
    raw = table(MAIN_HEADERS, [{"Дата": "15.01.2024", "Длина сварных швов": "-500"}])
    df, _, warnings = normalize_main(raw.rows, raw.headers)

    assert df.iloc[0]["weld_length_m"] == 0.0
    assert df.iloc[0]["welder_normalized"] == "Unknown"
    assert "negative weld length" in warnings[0]


def test_missing_join_key_gives_no_component_key(table):
    raw = table(MAIN_HEADERS, [{"Дата": "15.01.2024", "Номер заказа": "100"}])
    df, _, _ = normalize_main(raw.rows, raw.headers)
    assert df.iloc[0]["component_key"] is None


def test_normalize_defects(table):
    headers = ["Номер заказа", "№Днища", "Технологическая операция", "Дата выяв-ния несоответствия",
               "Исполнитель, допустивший несоответствие"]
    raw = table(headers, [
        {"Номер заказа": "100", "№Днища": "C1", "Технологическая операция": "Предъявление продукции",
         "Дата выяв-ния несоответствия": "20.01.2024", "Исполнитель, допустивший несоответствие": "Петров П."},
        {"Номер заказа": "100", "№Днища": "C2", "Технологическая операция": "Сборка"},
    ])
    df, _, warnings = normalize_defects(raw.rows, raw.headers)

    assert warnings == []
    assert list(df["stage_category"]) == ["primary-rejection", "other"]
    assert df.iloc[0]["detection_date_key"] == 20240120
    assert df.iloc[0]["executor_normalized"] == "ПЕТРОВ"
    assert df.iloc[1]["detection_date"] is None
