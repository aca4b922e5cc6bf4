"""Records for YNAB categories, months, and the analysis built from them.

Money is always int milliunits. Input records are built from raw YNAB API
dicts at the boundary; output records are produced by the analysis engine
and never mutated afterwards.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class GoalType(str, Enum):
    NO_GOAL = "NONE"
    TB = "TB"      # Target Category Balance
    TBD = "TBD"    # Target Category Balance by Date
    MF = "MF"      # Monthly Funding
    NEED = "NEED"  # Plan Your Spending
    DEBT = "DEBT"  # Debt Payoff

    @classmethod
    def from_api(cls, value: Optional[str]) -> "GoalType":
        """Map the API's goal_type (None or "" for no goal) to a GoalType.

        Unknown strings raise ValueError.
        """
        if not value:
            return cls.NO_GOAL
        if value == cls.NO_GOAL.value:
            raise ValueError(f"Unknown goal type: {value!r}")
        return cls(value)


class ReadOnlyDict(dict):
    """A dict that refuses mutation, for the trace and debug payloads.

    Stays a dict subclass so dataclasses.asdict and FastAPI's encoder
    serialize it like any other mapping.
    """

    def _readonly(self, *args, **kwargs):
        raise TypeError(f"{type(self).__name__} is read-only")

    __setitem__ = __delitem__ = __ior__ = _readonly
    clear = pop = popitem = setdefault = update = _readonly

    def __reduce__(self):
        return type(self), (dict(self),)


def freeze(value: Any) -> Any:
    """Recursively turn dicts into ReadOnlyDicts and lists into tuples."""
    if isinstance(value, dict):
        return ReadOnlyDict((k, freeze(v)) for k, v in value.items())
    if isinstance(value, list):
        return tuple(freeze(v) for v in value)
    return value


class AlignmentStatus(str, Enum):
    ON_TARGET = "on-target"
    OVER_TARGET = "over-target"
    UNDER_TARGET = "under-target"
    NO_TARGET = "no-target"


class DisciplineRating(str, Enum):
    EXCELLENT = "Excellent"
    GOOD = "Good"
    FAIR = "Fair"
    NEEDS_IMPROVEMENT = "Needs Improvement"


class TargetRule(str, Enum):
    """Which branch of the needed-this-month rule chain produced an amount."""

    ZERO_TARGET = "No Goal - Zero Target"
    MISSING_TARGET = "Goal Without Target"
    FUTURE_GOAL = "Future Goal Creation"
    MONTHS_TO_BUDGET = "Months to Budget"
    MONTHLY_CADENCE = "Monthly NEED"
    WEEKLY_CADENCE = "Weekly NEED"
    WEEKLY_FALLBACK = "Weekly NEED (fallback)"
    GOAL_PERIOD_COMPLETE = "Goal Period Complete"
    FALLBACK = "Fallback"


_MONEY_FIELDS = ("budgeted", "activity", "balance")
_OPTIONAL_INT_FIELDS = (
    "goal_target",
    "goal_months_to_budget",
    "goal_overall_left",
    "goal_overall_funded",
    "goal_under_funded",
    "goal_percentage_complete",
    "goal_cadence",
    "goal_cadence_frequency",
    "goal_day",
)


def _require_int(name: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise TypeError(f"{name} must be an int, got {type(value).__name__}")
    return value


def _optional_int(name: str, value: Any) -> Optional[int]:
    if value is None:
        return None
    return _require_int(name, value)


@dataclass(frozen=True)
class Category:
    """One YNAB category for one budget month."""

    id: str
    name: str
    budgeted: int   # milliunits assigned this month
    activity: int   # milliunits spent this month
    balance: int    # milliunits available
    hidden: bool = False
    deleted: bool = False
    category_group_name: str = ""
    goal_type: GoalType = GoalType.NO_GOAL
    goal_target: Optional[int] = None
    goal_creation_month: Optional[str] = None   # YYYY-MM-DD
    goal_target_month: Optional[str] = None     # YYYY-MM-DD
    goal_months_to_budget: Optional[int] = None
    goal_overall_left: Optional[int] = None
    goal_overall_funded: Optional[int] = None
    goal_under_funded: Optional[int] = None
    goal_percentage_complete: Optional[int] = None
    goal_cadence: Optional[int] = None
    goal_cadence_frequency: Optional[int] = None
    goal_day: Optional[int] = None              # 0=Sunday .. 6=Saturday for weekly goals
    goal_needs_whole_amount: Optional[bool] = None

    @classmethod
    def from_api(cls, data: dict, group_name: str = "") -> "Category":
        """Build a Category from a YNAB API category dict.

        Missing required keys raise KeyError and non-integer amounts raise
        TypeError, so malformed payloads never reach the calculator.
        """
        money = {name: _require_int(name, data[name]) for name in _MONEY_FIELDS}
        goals = {name: _optional_int(name, data.get(name)) for name in _OPTIONAL_INT_FIELDS}
        return cls(
            id=data["id"],
            name=data["name"],
            hidden=bool(data.get("hidden", False)),
            deleted=bool(data.get("deleted", False)),
            category_group_name=group_name or data.get("category_group_name") or "",
            goal_type=GoalType.from_api(data.get("goal_type")),
            goal_creation_month=data.get("goal_creation_month"),
            goal_target_month=data.get("goal_target_month"),
            goal_needs_whole_amount=data.get("goal_needs_whole_amount"),
            **money,
            **goals,
        )


@dataclass(frozen=True)
class MonthRecord:
    """A budget month as returned by GET /budgets/{id}/months/{month}."""

    month: str  # YYYY-MM-DD, first of month
    income: int = 0
    budgeted: int = 0
    activity: int = 0
    to_be_budgeted: int = 0
    age_of_money: Optional[int] = None
    note: Optional[str] = None
    categories: tuple[Category, ...] = ()

    @classmethod
    def from_api(cls, data: dict) -> "MonthRecord":
        return cls(
            month=data["month"],
            income=_require_int("income", data.get("income", 0)),
            budgeted=_require_int("budgeted", data.get("budgeted", 0)),
            activity=_require_int("activity", data.get("activity", 0)),
            to_be_budgeted=_require_int("to_be_budgeted", data.get("to_be_budgeted", 0)),
            age_of_money=data.get("age_of_money"),
            note=data.get("note"),
            categories=tuple(Category.from_api(c) for c in data.get("categories", [])),
        )


@dataclass(frozen=True)
class Budget:
    id: str
    name: str
    first_month: Optional[str] = None
    last_month: Optional[str] = None
    currency_iso_code: str = "USD"

    @classmethod
    def from_api(cls, data: dict) -> "Budget":
        currency = data.get("currency_format") or {}
        return cls(
            id=data["id"],
            name=data["name"],
            first_month=data.get("first_month"),
            last_month=data.get("last_month"),
            currency_iso_code=currency.get("iso_code", "USD"),
        )


@dataclass(frozen=True)
class AnalysisConfig:
    tolerance_milliunits: int = 1000
    include_hidden_categories: bool = False
    include_deleted_categories: bool = False
    minimum_assignment_threshold: int = 0
    top_variance_limit: int = 10


@dataclass(frozen=True)
class NeededCalculation:
    """Needed-this-month amount plus the rule that produced it."""

    amount: Optional[int]
    rule: TargetRule
    trace: dict = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "trace", freeze(self.trace))


@dataclass(frozen=True)
class ProcessedCategory:
    id: str
    name: str
    category_group_name: str
    assigned: int
    needed_this_month: Optional[int]
    target_type: Optional[GoalType]
    variance: int                           # assigned - needed; positive = over
    alignment_status: AlignmentStatus
    percentage_of_target: Optional[float]
    is_hidden: bool
    has_target: bool
    goal_percentage_complete: Optional[int] = None
    goal_under_funded: Optional[int] = None
    goal_overall_left: Optional[int] = None
    debug: dict = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "debug", freeze(self.debug))


@dataclass(frozen=True)
class CategoryVariance:
    category_id: str
    category_name: str
    category_group_name: str
    assigned: int
    target: int
    variance: int
    variance_percentage: Optional[float]
    target_type: Optional[GoalType]
    month: str


@dataclass(frozen=True)
class MonthlyAnalysis:
    month: str
    budget_id: str
    budget_name: str
    total_income: int
    total_activity: int
    total_assigned: int
    total_targeted: int
    on_target_amount: int
    over_target_amount: int
    under_target_amount: int
    no_target_amount: int
    on_target_percentage: float
    over_target_percentage: float
    under_target_percentage: float
    no_target_percentage: float
    categories_analyzed: int
    categories_with_targets: int
    categories_on_target: int
    categories_over_target: int
    categories_under_target: int
    categories_without_targets: int
    budget_discipline_rating: DisciplineRating


@dataclass(frozen=True)
class KeyMetrics:
    target_alignment_score: float           # 0-100
    budget_discipline_rating: DisciplineRating
    total_variance: int                     # milliunits, sum of |variance| in top lists
    average_target_achievement: float


@dataclass(frozen=True)
class DashboardSummary:
    selected_month: str
    monthly_analysis: MonthlyAnalysis
    top_over_target_categories: list[CategoryVariance]
    top_under_target_categories: list[CategoryVariance]
    categories_without_targets: list[ProcessedCategory]
    categories: list[ProcessedCategory]
    key_metrics: KeyMetrics
