"""
Simulated data generator for the weld production dashboard.

Produces raw string tables in the same shape as the workshop's CSV exports
(Russian headers, DD.MM.YYYY dates, weld lengths in millimetres with a
decimal comma) so that demo data runs through the full normalisation path.
All values are synthetic.
"""

import numpy as np
import pandas as pd

from .loaders import RawTable

# Seed for reproducibility
_RNG = np.random.default_rng(42)

# ---------------------------------------------------------------------------
# Typical workshop parameters
# ---------------------------------------------------------------------------
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
    "Исполнитель, допустивший несоответствие",
    "Вид дефекта",
]

_WELDERS = [
    "Иванов И.И.",
    "Петров П.П. 5р",
    "Сидоров С.С.",
    "Кузнецов А.В.",
    "Смирнов Д.А. 4р",
    "Попов Е.Н.",
]

_DIAMETERS = [800, 1000, 1200, 1600, 2000, 2400]
_THICKNESSES = [6, 8, 10, 12, 16]
_CUTTING_TYPES = ["А", "Б", "В", "Г", "Д", "Е", ""]
_WIRES = ["08Г2С", "10НМА", "08ГА", "12Х18Н10Т", "04Х19Н11М3"]

_OTHER_STAGES = ["Входной контроль", "Сборка", "Термообработка", ""]
_DEFECT_KINDS = ["Пора", "Непровар", "Трещина", "Подрез"]


def _mm_text(value_mm: float) -> str:
    """Millimetres as the sheet shows them (decimal comma for fractions)."""
    if float(value_mm).is_integer():
        return str(int(value_mm))
    return f"{value_mm:.1f}".replace(".", ",")


def generate_weld_operations(
    start_date: str = "2025-09-01",
    n_days: int = 120,
    ops_per_day: tuple[int, int] = (3, 9),
) -> RawTable:
    """Generate simulated weld operations.

    Each working day has a random number of operations. Some wire totals
    are zero so that the default defect rule has something to match.
    """
    dates = pd.date_range(start_date, periods=n_days, freq="D")
    rows = []
    order_no = 2400

    for date in dates:
        # Sundays off
        if date.dayofweek == 6:
            continue
        n_ops = int(_RNG.integers(*ops_per_day))
        for _ in range(n_ops):
            if _RNG.random() < 0.3:
                order_no += 1
            length_mm = max(_RNG.normal(6500, 2500), 500)
            if _RNG.random() < 0.5:
                length_mm = round(length_mm)
            wire_total = 0 if _RNG.random() < 0.04 else round(length_mm / 1000 * _RNG.uniform(0.4, 0.7), 2)

            rows.append({
                "Дата": date.strftime("%d.%m.%Y"),
                "Номер заказа": str(order_no),
                "№Днища": f"Д-{int(_RNG.integers(1, 40)):03d}",
                "Сварщик": str(_RNG.choice(_WELDERS)),
                "Диаметр": str(_RNG.choice(_DIAMETERS)),
                "Толщина": str(_RNG.choice(_THICKNESSES)),
                "Раскрой": str(_RNG.choice(_CUTTING_TYPES)),
                "Проволока": str(_RNG.choice(_WIRES)),
                "Длина сварных швов": _mm_text(length_mm),
                "ИТОГО проволока": str(wire_total).replace(".", ","),
            })

    return RawTable(rows=rows, headers=list(MAIN_HEADERS))


def generate_defect_records(
    operations: RawTable,
    rejection_rate: float = 0.05,
    rework_rate: float = 0.03,
    other_rate: float = 0.04,
) -> RawTable:
    """Generate simulated quality events for a sample of operations.

    Rejections are detected a few days after the weld; some of them are
    followed by a repeated correction.
    """
    rows = []
    for op in operations.rows:
        roll = _RNG.random()
        weld_date = pd.Timestamp(pd.to_datetime(op["Дата"], format="%d.%m.%Y"))
        base = {
            "Номер заказа": op["Номер заказа"],
            "№Днища": op["№Днища"],
            "Исполнитель, допустивший несоответствие": op["Сварщик"],
            "Вид дефекта": str(_RNG.choice(_DEFECT_KINDS)),
        }

        if roll < rejection_rate:
            detected = weld_date + pd.Timedelta(days=int(_RNG.integers(1, 6)))
            rows.append({
                **base,
                "Технологическая операция": "Предъявление продукции",
                "Дата выяв-ния несоответствия": detected.strftime("%d.%m.%Y"),
            })
            if _RNG.random() < rework_rate / rejection_rate:
                reworked = detected + pd.Timedelta(days=int(_RNG.integers(1, 10)))
                rows.append({
                    **base,
                    "Технологическая операция": "Исправление повторное",
                    "Дата выяв-ния несоответствия": reworked.strftime("%d.%m.%Y"),
                })
        elif roll < rejection_rate + other_rate:
            detected = weld_date + pd.Timedelta(days=int(_RNG.integers(0, 3)))
            rows.append({
                **base,
                "Технологическая операция": str(_RNG.choice(_OTHER_STAGES)),
                "Дата выяв-ния несоответствия": detected.strftime("%d.%m.%Y"),
            })

    return RawTable(rows=rows, headers=list(DEFECT_HEADERS))


def generate_demo_tables() -> tuple[RawTable, RawTable]:
    """Weld operations plus matching defect records."""
    operations = generate_weld_operations()
    return operations, generate_defect_records(operations)
