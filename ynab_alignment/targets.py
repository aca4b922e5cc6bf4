"""Needed-this-month calculation for YNAB category goals.

YNAB does not expose "needed this month" for every goal configuration, so it
is rebuilt from the goal fields. The rules run in a fixed order and the first
match wins:

    1. no goal                        -> 0
    2. goal but no goal_target        -> None
    3. goal created after the month   -> 0
    4. goal_months_to_budget > 0      -> (overall_left + budgeted) / months
    5. monthly cadence (1, 1)         -> goal_target
    6. weekly cadence (2, 1) + day    -> goal_target * occurrences of that weekday
    7. goal_months_to_budget <= 0     -> 0
    8. anything else                  -> goal_target

Rule 4 deliberately precedes the cadence rules. Goals whose target month is
still in the future fall through to rule 8 and use the full goal_target,
which is not what YNAB's own UI shows for them; see
tests/test_targets.py::test_future_target_month_spreads_remaining_amount.
"""

import logging
from typing import Optional

from ynab_alignment.currency import round_half_away
from ynab_alignment.models import Category, GoalType, NeededCalculation, TargetRule
from ynab_alignment.months import compare_months, count_weekday_occurrences, parse_month

logger = logging.getLogger(__name__)

CADENCE_MONTHLY = 1
CADENCE_WEEKLY = 2


def _future_goal(category: Category, analysis_month: Optional[str]) -> Optional[NeededCalculation]:
    if not category.goal_creation_month or not analysis_month:
        return None
    created = parse_month(category.goal_creation_month)
    current = parse_month(analysis_month)
    if created is None or current is None:
        logger.warning(
            "Skipping goal creation check for %s: created=%r month=%r",
            category.name, category.goal_creation_month, analysis_month,
        )
        return None
    if compare_months(created, current) <= 0:
        return None
    return NeededCalculation(
        amount=0,
        rule=TargetRule.FUTURE_GOAL,
        trace={
            "goal_creation_month": category.goal_creation_month,
            "analysis_month": analysis_month,
            "calculation": f"goal created {category.goal_creation_month} > {analysis_month} -> 0",
        },
    )


def _months_to_budget(category: Category) -> NeededCalculation:
    overall_left = category.goal_overall_left or 0
    budgeted = category.budgeted or 0
    months = category.goal_months_to_budget
    amount = round_half_away(overall_left + budgeted, months)
    return NeededCalculation(
        amount=amount,
        rule=TargetRule.MONTHS_TO_BUDGET,
        trace={
            "goal_overall_left": overall_left,
            "budgeted": budgeted,
            "goal_months_to_budget": months,
            "calculation": f"({overall_left} + {budgeted}) / {months} = {amount}",
        },
    )


def _weekly(category: Category, analysis_month: Optional[str]) -> NeededCalculation:
    target = category.goal_target
    trace = {
        "goal_cadence": category.goal_cadence,
        "goal_cadence_frequency": category.goal_cadence_frequency,
        "goal_day": category.goal_day,
        "analysis_month": analysis_month,
    }

    if not 0 <= category.goal_day <= 6:
        reason = "goal_day outside 0-6"
    elif not analysis_month:
        reason = "no analysis month provided"
    else:
        parsed = parse_month(analysis_month)
        if parsed is not None:
            occurrences = count_weekday_occurrences(parsed[0], parsed[1], category.goal_day)
            amount = target * occurrences
            return NeededCalculation(
                amount=amount,
                rule=TargetRule.WEEKLY_CADENCE,
                trace={
                    **trace,
                    "occurrences": occurrences,
                    "calculation": f"{target} x {occurrences} = {amount}",
                },
            )
        logger.warning("Invalid analysis month %r for weekly goal %s", analysis_month, category.name)
        reason = "invalid analysis month"

    return NeededCalculation(
        amount=target,
        rule=TargetRule.WEEKLY_FALLBACK,
        trace={**trace, "reason": reason, "calculation": f"goal_target = {target} ({reason})"},
    )


def explain_needed_this_month(
    category: Category, analysis_month: Optional[str] = None
) -> NeededCalculation:
    """Run the rule chain and report which rule fired and what it used.

    Args:
        category: The category whose goal is evaluated.
        analysis_month: YYYY-MM-DD month under analysis. Only weekly goals and
            the goal-creation check need it; without it both degrade.

    Never raises for a structurally valid Category.
    """
    goal_type = category.goal_type
    target = category.goal_target

    if goal_type is GoalType.NO_GOAL:
        return NeededCalculation(
            amount=0,
            rule=TargetRule.ZERO_TARGET,
            trace={"goal_type": None, "reason": "category has no goal; needs nothing"},
        )

    if target is None:
        return NeededCalculation(
            amount=None,
            rule=TargetRule.MISSING_TARGET,
            trace={"goal_type": goal_type.value, "goal_target": None, "reason": "goal has no goal_target"},
        )

    future = _future_goal(category, analysis_month)
    if future is not None:
        return future

    months = category.goal_months_to_budget
    if months is not None and months > 0:
        return _months_to_budget(category)

    cadence = (category.goal_cadence, category.goal_cadence_frequency)
    if cadence == (CADENCE_MONTHLY, 1):
        return NeededCalculation(
            amount=target,
            rule=TargetRule.MONTHLY_CADENCE,
            trace={
                "goal_cadence": category.goal_cadence,
                "goal_cadence_frequency": category.goal_cadence_frequency,
                "calculation": f"goal_target = {target}",
            },
        )

    if cadence == (CADENCE_WEEKLY, 1) and category.goal_day is not None:
        return _weekly(category, analysis_month)

    if months is not None:
        # months <= 0 here: the goal period is over
        return NeededCalculation(
            amount=0,
            rule=TargetRule.GOAL_PERIOD_COMPLETE,
            trace={
                "goal_months_to_budget": months,
                "calculation": f"goal_months_to_budget = {months} (<= 0) -> 0",
            },
        )

    return _fallback(category)


def _fallback(category: Category) -> NeededCalculation:
    # TB, TBD, DEBT and cadences other than the two above land here
    return NeededCalculation(
        amount=category.goal_target,
        rule=TargetRule.FALLBACK,
        trace={
            "goal_type": category.goal_type.value,
            "goal_cadence": category.goal_cadence,
            "goal_cadence_frequency": category.goal_cadence_frequency,
            "calculation": f"goal_target = {category.goal_target}",
            "reason": "no specific rule matched",
        },
    )


def calculate_needed_this_month(
    category: Category, analysis_month: Optional[str] = None
) -> Optional[int]:
    """Milliunits the category's goal needs this month, or None if it can't be computed."""
    return explain_needed_this_month(category, analysis_month).amount
