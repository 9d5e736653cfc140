"""
Configuration: column aliases, field classification, coefficients, targets.

Source spreadsheets are maintained by hand, so the same logical field can
appear under several header spellings. Each alias list is ordered by
priority; the first populated alias wins for a given row.
"""

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Data sources: a path or an http(s) URL (e.g. a published Google Sheet CSV)
# ---------------------------------------------------------------------------
DATA_DIR = Path(__file__).resolve().parent.parent

MAIN_DATA_SOURCE = os.environ.get(
    "WELD_DASHBOARD_MAIN_SOURCE", str(DATA_DIR / "data.csv")
)
DEFECT_DATA_SOURCE = os.environ.get(
    "WELD_DASHBOARD_DEFECT_SOURCE", str(DATA_DIR / "defect.csv")
)

# ---------------------------------------------------------------------------
# Column aliases (logical field -> header spellings, priority order)
# ---------------------------------------------------------------------------
ORDER_ALIASES = ["Номер заказа", "№Заказа", "Заказ", "Order Number", "OrderNo", "Order"]

COMPONENT_ALIASES = [
    "№ Днища, № чертежа, артикул",
    "№Днища",
    "№ Днища",
    "Номер днища",
    "Номер Днища",
    "Component Number",
    "ComponentNo",
    "Component",
]

WELDER_ALIASES = ["Сварщик", "ФИО", "ФИО сварщика", "Welder", "Welder Name"]

DATE_ALIASES = ["Дата", "Date"]

WELD_LENGTH_ALIASES = ["Длина сварных швов", "Weld Length"]

WIRE_TOTAL_ALIASES = ["ИТОГО проволока", "WireTotal", "Wire Total"]

DIAMETER_ALIASES = ["Диаметр", "Diameter"]

THICKNESS_ALIASES = ["Толщина", "Thickness"]

CUTTING_ALIASES = ["Раскрой", "Cutting", "Cutting Type"]

WIRE_MATERIAL_ALIASES = ["Проволока", "Wire", "Wire Material"]

STAGE_ALIASES = ["Технологическая операция", "Operation", "Stage"]

DETECTION_DATE_ALIASES = ["Дата выяв-ния несоответствия", "Detection Date", "Date"]

EXECUTOR_ALIASES = ["Исполнитель, допустивший несоответствие", "Executor"]

# ---------------------------------------------------------------------------
# Field classification (case-insensitive substring match on column name)
# ---------------------------------------------------------------------------
STRING_FIELDS = [
    "Заказ",
    "№Заказа",
    "Номер заказа",
    "Заказчик",
    "Сварщик",
    "ФИО",
    "ФИО сварщика",
    "Тип днища",
    "Дата",
    "№Днища",
    "№ Днища",
    "№ Днища, № чертежа, артикул",
    "Номер днища",
    "Номер Днища",
    "Материал",
    "Вид контроля",
    "Вид дефекта",
    "Описание несоответствия",
    "№ акта о несоответствии",
    "Исполнитель",
    "Причина несоответствия",
    "Способ устранения",
    "Контроль выполнил",
    "Раскрой",
    "Технологическая операция",
    "Order",
    "Component",
    "Welder",
    "Date",
    "Cutting",
    "Material",
    "Operation",
    "Stage",
    "Executor",
]

INTEGER_FIELDS = [
    "Месяц",
    "Днище",
    "Толщина",
    "Диаметр",
    "Количество выявленных дефектов",
    "Номер днища",
    "Номер Днища",
    "Month",
    "Diameter",
    "Thickness",
]

# Columns holding millimetres that are stored in metres
MILLIMETRE_FIELDS = ["длина сварных швов", "weld length"]

# ---------------------------------------------------------------------------
# Dates
# ---------------------------------------------------------------------------
DATE_FORMAT_HINT = "DD.MM.YYYY"
MIN_YEAR = 2000
MAX_YEAR = 2100

# ---------------------------------------------------------------------------
# Welders
# ---------------------------------------------------------------------------
UNKNOWN_WELDER = "Unknown"

# "upper" for grouping keys, "title" for the alternate presentation path
WELDER_NAME_CASE = "upper"

# ---------------------------------------------------------------------------
# Weighted scoring
# ---------------------------------------------------------------------------
# Cutting complexity by first letter of the cutting type (Cyrillic)
CUTTING_COEFFICIENTS: dict[str, float] = {
    "А": 2,
    "Б": 2,
    "В": 3,
    "Г": 4,
    "Д": 5,
    "Е": 4.5,
}
DEFAULT_CUTTING_COEFFICIENT = 1

CARBON_WIRE_CODES = ["08Г2С", "10НМА", "08ГА"]
CARBON_MATERIAL_COEFFICIENT = 1.0
STAINLESS_MATERIAL_COEFFICIENT = 1.2

PENALTY_PER_DEFECT = 10
RANKING_SIZE = 10
TOP_DEFECT_WELDERS = 3

# ---------------------------------------------------------------------------
# Defect workflow stages
# ---------------------------------------------------------------------------
STAGE_PRIMARY_REJECTION = "primary-rejection"
STAGE_REWORK = "rework"
STAGE_OTHER = "other"

STAGE_LABELS: dict[str, str] = {
    "предъявление продукции": STAGE_PRIMARY_REJECTION,
    "primary rejection": STAGE_PRIMARY_REJECTION,
    "primary-rejection": STAGE_PRIMARY_REJECTION,
    "product presentation": STAGE_PRIMARY_REJECTION,
    "исправление повторное": STAGE_REWORK,
    "rework": STAGE_REWORK,
    "repeated correction": STAGE_REWORK,
}

UNSPECIFIED_STAGE = "Unspecified"

COMPONENT_KEY_SEPARATOR = "_"

# ---------------------------------------------------------------------------
# Rule-based defect fallback
# ---------------------------------------------------------------------------
RULE_OPERATORS = ("=", "!=", ">", "<")

DEFAULT_DEFECT_RULE: dict = {
    "field": "ИТОГО проволока",
    "operator": "=",
    "value": 0,
}

# ---------------------------------------------------------------------------
# Trends
# ---------------------------------------------------------------------------
PERIODS = ("day", "month", "quarter", "year")
AGGREGATIONS = ("sum", "avg", "count")
ROLLING_WINDOW = 3

# ---------------------------------------------------------------------------
# KPI targets
# ---------------------------------------------------------------------------
KPI_TARGETS: dict[str, float] = {
    "defect_rate": 5,
    "avg_length": 30,
    "monthly_target": 900,
}

# ---------------------------------------------------------------------------
# Presentation
# ---------------------------------------------------------------------------
TABLE_PAGE_SIZE = 500
TABLE_VISIBLE_COLUMNS = 15

COLOR_PALETTE = [
    "#3b82f6", "#ef4444", "#22c55e", "#eab308", "#a855f7",
    "#ec4899", "#14b8a6", "#f97316", "#6b7280", "#8b5cf6",
    "#06b6d4", "#f43f5e", "#84cc16", "#6366f1", "#fbbf24",
    "#10b981", "#f59e0b", "#0ea5e9", "#d946ef",
]

STATUS_COLORS = {
    "good": "#22c55e",
    "warning": "#eab308",
    "bad": "#ef4444",
    "neutral": "#95a5a6",
}
