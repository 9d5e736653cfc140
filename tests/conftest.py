import sys
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

import pytest

from weld_dashboard.loaders import RawTable
from weld_dashboard.session import DashboardSession, snapshot_from_tables

MAIN_HEADERS = [
    "Дата",
    "Номер заказа",
    "№Днища",
    "Сварщик",
    "Диаметр",
    "Толщина",
    "Раскрой",
    "Проволока",
    "Длина сварных швов",
    "ИТОГО проволока",
]

DEFECT_HEADERS = [
    "Номер заказа",
    "№Днища",
    "Технологическая операция",
    "Дата выяв-ния несоответствия",
]


def make_table(headers, rows):
    """RawTable with every header present; unspecified cells are blank."""
    return RawTable(rows=[{h: row.get(h, "") for h in headers} for row in rows], headers=list(headers))


@pytest.fixture
def table():
    return make_table


@pytest.fixture
def make_session():
    def _make(main_rows, defect_rows=None, main_headers=MAIN_HEADERS, defect_headers=DEFECT_HEADERS, rule=None):
        main = make_table(main_headers, main_rows)
        defects = make_table(defect_headers, defect_rows) if defect_rows is not None else None
        session = DashboardSession(defect_rule=rule)
        session.load(lambda: snapshot_from_tables(main, defects))
        return session

    return _make


@pytest.fixture
def ivanov_rows():
    # Four operations, lengths 2, 3, 5, 4 m, cutting "А", stainless wire
    return [
        {
            "Дата": f"0{day}.01.2024",
            "Номер заказа": "100",
            "№Днища": f"C{day}",
            "Сварщик": "Ivanov I.",
            "Раскрой": "А",
            "Проволока": "12Х18Н10Т",
            "Длина сварных швов": str(length_mm),
            "ИТОГО проволока": "1,5",
        }
        for day, length_mm in zip((1, 2, 3, 4), (2000, 3000, 5000, 4000))
    ]


@pytest.fixture
def ivanov_rejection():
    return [
        {
            "Номер заказа": "100",
            "№Днища": "C2",
            "Технологическая операция": "Предъявление продукции",
            "Дата выяв-ния несоответствия": "10.01.2024",
        }
    ]
