"""Tests for building records from YNAB API payloads."""

from dataclasses import asdict

import pytest

from tests.conftest import make_api_category
from ynab_alignment.models import Budget, Category, GoalType, MonthRecord, NeededCalculation, TargetRule


def test_category_from_api():
    cat = Category.from_api(
        make_api_category(
            budgeted=25000, goal_type="NEED", goal_target=100000,
            goal_cadence=2, goal_cadence_frequency=1, goal_day=1,
        )
    )
    assert cat.goal_type is GoalType.NEED
    assert cat.goal_target == 100000
    assert cat.goal_day == 1
    assert cat.category_group_name == "Everyday"


def test_null_goal_type_is_no_goal():
    assert Category.from_api(make_api_category()).goal_type is GoalType.NO_GOAL


def test_group_name_argument_wins():
    assert Category.from_api(make_api_category(), group_name="Bills").category_group_name == "Bills"


def test_unknown_goal_type_fails_loudly():
    with pytest.raises(ValueError):
        Category.from_api(make_api_category(goal_type="WHATEVER"))
    with pytest.raises(ValueError):
        Category.from_api(make_api_category(goal_type="NONE"))


def test_missing_required_field_fails_loudly():
    data = make_api_category()
    del data["budgeted"]
    with pytest.raises(KeyError):
        Category.from_api(data)


@pytest.mark.parametrize("field", ["budgeted", "goal_target", "goal_months_to_budget"])
def test_non_integer_amounts_fail_loudly(field):
    with pytest.raises(TypeError):
        Category.from_api(make_api_category(**{field: 12.5}))


def test_month_record_from_api():
    record = MonthRecord.from_api(
        {
            "month": "2024-12-01",
            "income": 500000,
            "budgeted": 300000,
            "activity": -250000,
            "to_be_budgeted": 0,
            "deleted": False,
            "categories": [make_api_category(id="a"), make_api_category(id="b")],
        }
    )
    assert record.income == 500000
    assert [c.id for c in record.categories] == ["a", "b"]


def test_budget_from_api():
    budget = Budget.from_api(
        {
            "id": "b1",
            "name": "Household",
            "first_month": "2023-01-01",
            "last_month": "2025-01-01",
            "currency_format": {"iso_code": "CAD"},
        }
    )
    assert budget.currency_iso_code == "CAD"
    assert budget.last_month == "2025-01-01"


def test_empty_goal_type_is_no_goal():
    assert Category.from_api(make_api_category(goal_type="")).goal_type is GoalType.NO_GOAL


def test_read_only_dict_serializes_like_a_dict():
    calc = NeededCalculation(amount=1000, rule=TargetRule.FALLBACK, trace={"inner": {"a": 1}})
    with pytest.raises(TypeError):
        calc.trace["inner"]["a"] = 2
    assert asdict(calc)["trace"] == {"inner": {"a": 1}}
