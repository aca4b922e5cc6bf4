"""Monthly aggregation of processed categories into a dashboard summary."""

import logging
from typing import Iterable, Optional

from ynab_alignment.models import (
    AlignmentStatus,
    AnalysisConfig,
    Category,
    CategoryVariance,
    DashboardSummary,
    DisciplineRating,
    KeyMetrics,
    MonthlyAnalysis,
    MonthRecord,
    ProcessedCategory,
)
from ynab_alignment.months import validate_month_format
from ynab_alignment.processing import DEFAULT_CONFIG, calculate_category_variance, process_categories

logger = logging.getLogger(__name__)

# (minimum on-target percentage, rating), highest first
DISCIPLINE_THRESHOLDS = (
    (85.0, DisciplineRating.EXCELLENT),
    (70.0, DisciplineRating.GOOD),
    (50.0, DisciplineRating.FAIR),
)


def _percentage(amount: int, total: int) -> float:
    return amount / total * 100 if total > 0 else 0.0


def calculate_budget_discipline_rating(on_target_percentage: float) -> DisciplineRating:
    """Step function over the on-target percentage; every value maps to one rating."""
    for threshold, rating in DISCIPLINE_THRESHOLDS:
        if on_target_percentage >= threshold:
            return rating
    return DisciplineRating.NEEDS_IMPROVEMENT


def generate_monthly_analysis(
    month_record: MonthRecord,
    budget_id: str,
    budget_name: str,
    categories: Iterable[ProcessedCategory],
) -> MonthlyAnalysis:
    """Reduce processed categories into the month's totals and buckets.

    Bucket amounts are sums of `assigned`, so the four of them always add up
    to total_assigned.
    """
    categories = list(categories)
    amounts = {status: 0 for status in AlignmentStatus}
    counts = {status: 0 for status in AlignmentStatus}
    for cat in categories:
        amounts[cat.alignment_status] += cat.assigned
        counts[cat.alignment_status] += 1

    total_assigned = sum(cat.assigned for cat in categories)
    with_targets = [cat for cat in categories if cat.has_target]
    on_target_percentage = _percentage(amounts[AlignmentStatus.ON_TARGET], total_assigned)

    return MonthlyAnalysis(
        month=month_record.month,
        budget_id=budget_id,
        budget_name=budget_name,
        total_income=month_record.income,
        total_activity=month_record.activity,
        total_assigned=total_assigned,
        total_targeted=sum(cat.needed_this_month for cat in with_targets),
        on_target_amount=amounts[AlignmentStatus.ON_TARGET],
        over_target_amount=amounts[AlignmentStatus.OVER_TARGET],
        under_target_amount=amounts[AlignmentStatus.UNDER_TARGET],
        no_target_amount=amounts[AlignmentStatus.NO_TARGET],
        on_target_percentage=on_target_percentage,
        over_target_percentage=_percentage(amounts[AlignmentStatus.OVER_TARGET], total_assigned),
        under_target_percentage=_percentage(amounts[AlignmentStatus.UNDER_TARGET], total_assigned),
        no_target_percentage=_percentage(amounts[AlignmentStatus.NO_TARGET], total_assigned),
        categories_analyzed=len(categories),
        categories_with_targets=len(with_targets),
        categories_on_target=counts[AlignmentStatus.ON_TARGET],
        categories_over_target=counts[AlignmentStatus.OVER_TARGET],
        categories_under_target=counts[AlignmentStatus.UNDER_TARGET],
        categories_without_targets=counts[AlignmentStatus.NO_TARGET],
        budget_discipline_rating=calculate_budget_discipline_rating(on_target_percentage),
    )


def _variance_sort_key(v: CategoryVariance):
    return (-abs(v.variance), v.category_name, v.category_id)


def get_top_variance_categories(
    categories: Iterable[ProcessedCategory], month: str, limit: int = 10
) -> tuple[list[CategoryVariance], list[CategoryVariance]]:
    """Largest over- and under-target categories by |variance|.

    Ties are broken by category name, then id, so ordering is stable.
    Returns (over_target, under_target).
    """
    over, under = [], []
    for cat in categories:
        if cat.alignment_status is AlignmentStatus.OVER_TARGET:
            bucket = over
        elif cat.alignment_status is AlignmentStatus.UNDER_TARGET:
            bucket = under
        else:
            continue
        variance = calculate_category_variance(cat, month)
        if variance is not None:
            bucket.append(variance)

    over.sort(key=_variance_sort_key)
    under.sort(key=_variance_sort_key)
    return over[:limit], under[:limit]


def calculate_target_alignment_score(analysis: MonthlyAnalysis) -> float:
    """0-100 score: on-target share, partial credit for over, penalty for under."""
    score = analysis.on_target_percentage
    score += analysis.over_target_percentage * 0.3
    score -= analysis.under_target_percentage * 0.5
    if analysis.categories_analyzed > 0:
        coverage = analysis.categories_with_targets / analysis.categories_analyzed * 100
        score += coverage * 0.1
    return max(0.0, min(100.0, score))


def analyze_month(
    month_record: MonthRecord,
    budget_id: str,
    budget_name: str,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> MonthlyAnalysis:
    if not validate_month_format(month_record.month):
        raise ValueError(f"Invalid month format: {month_record.month}")
    processed = process_categories(month_record.categories, config, month_record.month)
    return generate_monthly_analysis(month_record, budget_id, budget_name, processed)


def analyze_category_groups(
    category_groups: list[dict],
    month: str,
    budget_id: str,
    budget_name: str,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> MonthlyAnalysis:
    """Analyze raw category groups (GET /budgets/{id}/categories) as one month."""
    categories = tuple(
        Category.from_api(cat, group_name=group["name"])
        for group in category_groups
        for cat in group.get("categories", [])
    )
    month_record = MonthRecord(
        month=month,
        budgeted=sum(c.budgeted for c in categories),
        activity=sum(c.activity for c in categories),
        categories=categories,
    )
    return analyze_month(month_record, budget_id, budget_name, config)


def generate_dashboard_summary(
    month_record: MonthRecord,
    budget_id: str,
    budget_name: str,
    config: Optional[AnalysisConfig] = None,
) -> DashboardSummary:
    """Full analysis for one budget month: summary, top variances, and every category."""
    config = config or DEFAULT_CONFIG
    if not validate_month_format(month_record.month):
        raise ValueError(f"Invalid month format: {month_record.month}")

    month = month_record.month
    processed = process_categories(month_record.categories, config, month)
    analysis = generate_monthly_analysis(month_record, budget_id, budget_name, processed)
    over, under = get_top_variance_categories(processed, month, config.top_variance_limit)

    total_variance = sum(abs(v.variance) for v in over + under)
    achieved = analysis.on_target_amount + analysis.over_target_amount
    average_achievement = (
        achieved / analysis.total_targeted * 100
        if analysis.categories_with_targets > 0 and analysis.total_targeted > 0
        else 0.0
    )

    logger.info(
        "Analyzed %s for %s: %d categories, %.1f%% on target (%s)",
        month, budget_name, analysis.categories_analyzed,
        analysis.on_target_percentage, analysis.budget_discipline_rating.value,
    )

    return DashboardSummary(
        selected_month=month,
        monthly_analysis=analysis,
        top_over_target_categories=over,
        top_under_target_categories=under,
        categories_without_targets=[c for c in processed if not c.has_target and c.assigned != 0],
        categories=processed,
        key_metrics=KeyMetrics(
            target_alignment_score=calculate_target_alignment_score(analysis),
            budget_discipline_rating=analysis.budget_discipline_rating,
            total_variance=total_variance,
            average_target_achievement=average_achievement,
        ),
    )
