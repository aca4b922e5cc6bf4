"""Milliunit conversion and display formatting."""

from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from ynab_alignment.models import GoalType

MILLIUNITS_PER_UNIT = 1000

GOAL_TYPE_DESCRIPTIONS: dict[GoalType, str] = {
    GoalType.NO_GOAL: "No Target",
    GoalType.TB: "Target Category Balance",
    GoalType.TBD: "Target Category Balance by Date",
    GoalType.MF: "Monthly Funding",
    GoalType.NEED: "Plan Your Spending",
    GoalType.DEBT: "Debt Payoff Goal",
}


def milliunits_to_dollars(milliunits: int) -> Decimal:
    return Decimal(milliunits) / MILLIUNITS_PER_UNIT


def dollars_to_milliunits(dollars) -> int:
    """Convert a dollar amount to milliunits, rounding half away from zero.

    Accepts int, str, Decimal or float; floats go through str() first so
    2.675 stays 2675 rather than 2674.
    """
    if isinstance(dollars, float):
        dollars = str(dollars)
    amount = Decimal(dollars) * MILLIUNITS_PER_UNIT
    return int(amount.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_currency(milliunits: int, symbol: str = "$") -> str:
    """Format milliunits as "$1,234.50" / "-$1.50"."""
    dollars = milliunits_to_dollars(milliunits).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    sign = "-" if dollars < 0 else ""
    return f"{sign}{symbol}{abs(dollars):,.2f}"


def goal_type_description(goal_type: Optional[GoalType]) -> str:
    if goal_type is None:
        return GOAL_TYPE_DESCRIPTIONS[GoalType.NO_GOAL]
    return GOAL_TYPE_DESCRIPTIONS[goal_type]


def round_half_away(numerator: int, denominator: int) -> int:
    """Integer division rounded to nearest, ties away from zero.

    denominator must be positive.
    """
    if denominator <= 0:
        raise ValueError("denominator must be positive")
    quotient, remainder = divmod(abs(numerator), denominator)
    if remainder * 2 >= denominator:
        quotient += 1
    return quotient if numerator >= 0 else -quotient
