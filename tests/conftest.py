"""Shared factories for YNAB category and month records."""

import os

# config.py exits at import when required variables are missing
os.environ.setdefault("YNAB_ACCESS_TOKEN", "test-token")

from ynab_alignment.models import Category, GoalType, MonthRecord  # noqa: E402


def make_category(
    id: str = "cat-1",
    name: str = "Groceries",
    budgeted: int = 0,
    activity: int = 0,
    balance: int = 0,
    goal_type=GoalType.NO_GOAL,
    **kwargs,
) -> Category:
    if not isinstance(goal_type, GoalType):
        goal_type = GoalType.from_api(goal_type)
    return Category(
        id=id,
        name=name,
        budgeted=budgeted,
        activity=activity,
        balance=balance,
        goal_type=goal_type,
        **kwargs,
    )


def make_api_category(**overrides) -> dict:
    """A category dict shaped like the YNAB API response."""
    data = {
        "id": "cat-1",
        "category_group_id": "group-1",
        "category_group_name": "Everyday",
        "name": "Groceries",
        "hidden": False,
        "deleted": False,
        "note": None,
        "budgeted": 0,
        "activity": 0,
        "balance": 0,
        "goal_type": None,
        "goal_target": None,
        "goal_target_month": None,
        "goal_creation_month": None,
        "goal_percentage_complete": None,
        "goal_months_to_budget": None,
        "goal_under_funded": None,
        "goal_overall_funded": None,
        "goal_overall_left": None,
        "goal_needs_whole_amount": None,
        "goal_day": None,
        "goal_cadence": None,
        "goal_cadence_frequency": None,
    }
    data.update(overrides)
    return data


def make_month(categories=(), month: str = "2024-12-01", **kwargs) -> MonthRecord:
    return MonthRecord(month=month, categories=tuple(categories), **kwargs)
