"""
Value objects shared across the analytics modules.

Datasets themselves are pandas DataFrames (see transforms.py for their
canonical columns); the classes here describe filter and rule inputs,
derived per-welder metrics, and the loaded snapshot.
"""

from dataclasses import dataclass, field
from typing import Union

import pandas as pd

from .config import PENALTY_PER_DEFECT, RULE_OPERATORS
from .errors import RuleError


@dataclass(frozen=True)
class FilterSpec:
    """User filter options. Blank or None means unconstrained."""

    date_from: str | None = None
    date_to: str | None = None
    order: str | None = None
    component: str | None = None
    welder: str | None = None
    diameter: str | None = None
    thickness: str | None = None
    cutting: str | None = None

    @classmethod
    def from_dict(cls, options: dict) -> "FilterSpec":
        known = {k: options.get(k) for k in cls.__dataclass_fields__}
        return cls(**{k: (str(v).strip() if v is not None else None) for k, v in known.items()})

    def is_empty(self) -> bool:
        return not any(getattr(self, name) for name in self.__dataclass_fields__)


@dataclass(frozen=True)
class DefectRule:
    """``field operator value`` predicate used when no defect dataset exists."""

    field: str
    operator: str
    value: Union[str, float, int]

    def __post_init__(self):
        if self.operator not in RULE_OPERATORS:
            raise RuleError(
                f"Unsupported operator {self.operator!r}; expected one of {RULE_OPERATORS}"
            )

    @classmethod
    def from_dict(cls, spec: dict) -> "DefectRule":
        return cls(field=spec["field"], operator=spec["operator"], value=spec["value"])


@dataclass
class WelderStats:
    """Per-welder aggregates.

    Derived metrics are properties so that a freshly created (empty) instance
    can be probed safely.
    """

    total: int = 0
    total_length: float = 0.0
    weighted_total: float = 0.0
    unique_components: set = field(default_factory=set)
    unique_shift_dates: set = field(default_factory=set)
    defect_count: int = 0

    @property
    def defect_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return round(self.defect_count / self.total * 100, 1)

    @property
    def avg_length_per_shift(self) -> float:
        if not self.unique_shift_dates:
            return 0.0
        return round(self.total_length / len(self.unique_shift_dates), 2)

    @property
    def avg_length(self) -> float:
        if self.total == 0:
            return 0.0
        return round(self.total_length / self.total, 2)

    @property
    def score(self) -> float:
        return self.weighted_total - self.defect_count * PENALTY_PER_DEFECT

    def as_dict(self) -> dict:
        return {
            "total": self.total,
            "total_length": self.total_length,
            "weighted_total": self.weighted_total,
            "unique_components": len(self.unique_components),
            "shifts": len(self.unique_shift_dates),
            "defect_count": self.defect_count,
            "defect_rate": self.defect_rate,
            "avg_length": self.avg_length,
            "avg_length_per_shift": self.avg_length_per_shift,
            "score": self.score,
        }


@dataclass(frozen=True)
class TrendSeries:
    labels: list[str]
    values: list[float]

    def __len__(self) -> int:
        return len(self.labels)


@dataclass(frozen=True)
class PeriodComparison:
    """Current vs previous bucket and rolling-window comparison.

    When fewer than two buckets exist ``available`` is False and every
    numeric attribute is None.
    """

    available: bool
    current: float | None = None
    previous: float | None = None
    change_pct: float | None = None
    rolling_avg: float | None = None
    previous_rolling_avg: float | None = None
    rolling_change_pct: float | None = None
    total: float | None = None
    periods: int = 0


@dataclass(frozen=True, eq=False)
class DefectBreakdown:
    """Defect records partitioned by workflow stage."""

    rejection: pd.DataFrame
    rework: pd.DataFrame
    other_by_stage: dict[str, int]


@dataclass(frozen=True)
class LinkageIndex:
    """Composite-key sets built from the defect dataset."""

    rejection_keys: frozenset = frozenset()
    rework_keys: frozenset = frozenset()
    stage_counts: dict[str, int] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.rejection_keys)


@dataclass(frozen=True)
class RealData:
    """Defects come from the defect dataset via the linkage index."""

    index: LinkageIndex


@dataclass(frozen=True)
class RuleBased:
    """No defect dataset: defects are decided per operation by a rule."""

    rule: DefectRule


LinkageMode = Union[RealData, RuleBased]


@dataclass(frozen=True, eq=False)
class Snapshot:
    """Immutable result of one data load."""

    main: pd.DataFrame
    main_headers: list[str]
    defects: pd.DataFrame | None = None
    defect_headers: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    linkage: LinkageIndex = field(default_factory=LinkageIndex)

    @property
    def has_defect_data(self) -> bool:
        return self.defects is not None and not self.defects.empty
