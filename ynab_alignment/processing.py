"""Per-category variance and alignment classification."""

import logging
from typing import Iterable, Optional

from ynab_alignment.models import (
    AlignmentStatus,
    AnalysisConfig,
    Category,
    CategoryVariance,
    GoalType,
    ProcessedCategory,
)
from ynab_alignment.targets import explain_needed_this_month

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = AnalysisConfig()


def determine_alignment_status(
    assigned: int, target: Optional[int], tolerance: int = DEFAULT_CONFIG.tolerance_milliunits
) -> AlignmentStatus:
    if not target:
        return AlignmentStatus.NO_TARGET
    variance = assigned - target
    if abs(variance) <= tolerance:
        return AlignmentStatus.ON_TARGET
    return AlignmentStatus.OVER_TARGET if variance > 0 else AlignmentStatus.UNDER_TARGET


def calculate_target_percentage(assigned: int, target: Optional[int]) -> Optional[float]:
    if not target:
        return None
    return assigned / target * 100


def should_include_category(category: Category, config: AnalysisConfig = DEFAULT_CONFIG) -> bool:
    """Filter applied before processing: deleted, hidden, and below-threshold categories."""
    if category.deleted and not config.include_deleted_categories:
        return False
    if category.hidden and not config.include_hidden_categories:
        return False
    if abs(category.budgeted) < config.minimum_assignment_threshold:
        return False
    return True


def process_category(
    category: Category,
    group_name: str = "",
    config: AnalysisConfig = DEFAULT_CONFIG,
    analysis_month: Optional[str] = None,
) -> ProcessedCategory:
    """Compute needed-this-month, variance and alignment for one category.

    The debug dict carries the raw goal fields plus the rule and trace from
    the calculator so operators can see why a figure came out the way it did.
    """
    calculation = explain_needed_this_month(category, analysis_month)
    needed = calculation.amount
    assigned = category.budgeted

    debug = {
        "raw_fields": {
            "goal_type": None if category.goal_type is GoalType.NO_GOAL else category.goal_type.value,
            "goal_target": category.goal_target,
            "goal_creation_month": category.goal_creation_month,
            "goal_target_month": category.goal_target_month,
            "goal_cadence": category.goal_cadence,
            "goal_cadence_frequency": category.goal_cadence_frequency,
            "goal_day": category.goal_day,
            "goal_months_to_budget": category.goal_months_to_budget,
            "goal_overall_left": category.goal_overall_left,
            "budgeted": category.budgeted,
            "balance": category.balance,
            "activity": category.activity,
        },
        "calculation_rule": calculation.rule.value,
        "calculation_details": calculation.trace,
    }

    return ProcessedCategory(
        id=category.id,
        name=category.name,
        category_group_name=group_name or category.category_group_name or "Unknown",
        assigned=assigned,
        needed_this_month=needed,
        target_type=None if category.goal_type is GoalType.NO_GOAL else category.goal_type,
        variance=assigned - needed if needed is not None else 0,
        alignment_status=determine_alignment_status(assigned, needed, config.tolerance_milliunits),
        percentage_of_target=calculate_target_percentage(assigned, needed),
        is_hidden=category.hidden,
        has_target=needed is not None,
        goal_percentage_complete=category.goal_percentage_complete,
        goal_under_funded=category.goal_under_funded,
        goal_overall_left=category.goal_overall_left,
        debug=debug,
    )


def process_categories(
    categories: Iterable[Category],
    config: AnalysisConfig = DEFAULT_CONFIG,
    analysis_month: Optional[str] = None,
) -> list[ProcessedCategory]:
    """Filter then process every category. Each item is independent of the rest."""
    included = [c for c in categories if should_include_category(c, config)]
    logger.debug("Processing %d categories for %s", len(included), analysis_month)
    return [process_category(c, "", config, analysis_month) for c in included]


def calculate_category_variance(category: ProcessedCategory, month: str) -> Optional[CategoryVariance]:
    """Variance detail for a category with a non-zero target, else None."""
    if not category.has_target or not category.needed_this_month:
        return None
    return CategoryVariance(
        category_id=category.id,
        category_name=category.name,
        category_group_name=category.category_group_name,
        assigned=category.assigned,
        target=category.needed_this_month,
        variance=category.variance,
        variance_percentage=category.variance / category.needed_this_month * 100,
        target_type=category.target_type,
        month=month,
    )
