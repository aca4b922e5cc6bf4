"""FastAPI app serving monthly target alignment analysis over the YNAB API."""

import logging
from datetime import datetime, timezone
from typing import Optional

import httpx
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from ynab_alignment.analysis import generate_dashboard_summary
from ynab_alignment.config import (
    ANALYSIS_TOLERANCE_MILLIUNITS,
    INCLUDE_DELETED_CATEGORIES,
    INCLUDE_HIDDEN_CATEGORIES,
    LOG_LEVEL,
    MINIMUM_ASSIGNMENT_THRESHOLD,
    YNAB_BUDGET_ID,
    configuration_status,
)
from ynab_alignment.models import AnalysisConfig, Budget
from ynab_alignment.months import month_in_budget_range, safe_default_month
from ynab_alignment.processing import process_category
from ynab_alignment.tools import ynab

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="YNAB Target Alignment")


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------

class AnalysisConfigRequest(BaseModel):
    tolerance_milliunits: int = Field(ANALYSIS_TOLERANCE_MILLIUNITS, ge=0)
    include_hidden_categories: bool = INCLUDE_HIDDEN_CATEGORIES
    include_deleted_categories: bool = INCLUDE_DELETED_CATEGORIES
    minimum_assignment_threshold: int = Field(MINIMUM_ASSIGNMENT_THRESHOLD, ge=0)
    top_variance_limit: int = Field(10, ge=0)

    def to_config(self) -> AnalysisConfig:
        return AnalysisConfig(**self.model_dump())


class MonthlyAnalysisRequest(BaseModel):
    budget_id: Optional[str] = None
    month: Optional[str] = None  # YYYY-MM-DD, first of month
    config: Optional[AnalysisConfigRequest] = None


def _default_config() -> AnalysisConfig:
    return AnalysisConfigRequest().to_config()


# ---------------------------------------------------------------------------
# YNAB helpers
# ---------------------------------------------------------------------------

def _ynab_http_error(e: Exception, context: str) -> HTTPException:
    """Translate an httpx failure into the HTTPException the client sees."""
    if isinstance(e, httpx.HTTPStatusError):
        status = e.response.status_code
        logger.error("[%s] YNAB API error: %s", context, status)
        if status == 401:
            return HTTPException(status_code=401, detail="YNAB access token is invalid or expired")
        if status == 404:
            return HTTPException(status_code=404, detail="Budget or month not found in YNAB")
        if status == 429:
            return HTTPException(status_code=429, detail="YNAB rate limit exceeded, try again later")
        return HTTPException(status_code=502, detail=f"YNAB API returned {status}")
    logger.error("[%s] YNAB request failed: %s", context, e)
    return HTTPException(status_code=503, detail="Unable to reach YNAB")


def _resolve_budget(budget_id: Optional[str]) -> Budget:
    """Requested budget, else YNAB_BUDGET_ID, else the account's first budget."""
    wanted = budget_id or YNAB_BUDGET_ID
    if wanted:
        budget = ynab.get_budget(wanted)
        if budget is None:
            raise HTTPException(status_code=404, detail=f"Budget not found: {wanted}")
        return budget
    budget = ynab.get_default_budget()
    if budget is None:
        raise HTTPException(status_code=404, detail="No budgets found")
    return budget


def _resolve_month(month: Optional[str], budget: Budget) -> str:
    if not month:
        try:
            return safe_default_month(budget.first_month, budget.last_month)
        except ValueError as e:
            raise HTTPException(status_code=400, detail=str(e))

    ok, error = month_in_budget_range(month, budget.first_month, budget.last_month)
    if not ok:
        logger.warning("Month validation failed for %s: %s", budget.id, error)
        raise HTTPException(
            status_code=400,
            detail={
                "type": "invalid_month",
                "message": error,
                "available_range": {
                    "first_month": budget.first_month,
                    "last_month": budget.last_month,
                },
            },
        )
    return month


def _run_analysis(budget_id: Optional[str], month: Optional[str], config: AnalysisConfig, context: str) -> dict:
    try:
        budget = _resolve_budget(budget_id)
        analysis_month = _resolve_month(month, budget)
        logger.info("[%s] Budget=%s (%s), Month=%s", context, budget.name, budget.id, analysis_month)
        month_record = ynab.get_month(budget.id, analysis_month)
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        raise _ynab_http_error(e, context)

    summary = generate_dashboard_summary(month_record, budget.id, budget.name, config)
    return {
        "success": True,
        "data": summary,
        "metadata": {
            "budget_id": budget.id,
            "budget_name": budget.name,
            "month": analysis_month,
            "budget_range": {
                "first_month": budget.first_month,
                "last_month": budget.last_month,
            },
            "config": config,
            "generated_at": datetime.now(timezone.utc).isoformat(),
        },
    }


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@app.get("/health")
def health():
    """Health check endpoint."""
    return {"status": "ok"}


@app.get("/api/config")
def config_status():
    """Report which environment variables are configured (never their values)."""
    return {**configuration_status(), "timestamp": datetime.now(timezone.utc).isoformat()}


@app.get("/api/budgets")
def list_budgets():
    try:
        budgets = ynab.get_budgets()
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        raise _ynab_http_error(e, "BUDGETS")
    return {"success": True, "data": budgets}


@app.get("/api/ynab/test-connection")
def check_connection():
    """Check that the configured token can reach YNAB."""
    now = datetime.now(timezone.utc).isoformat()
    try:
        budgets = ynab.get_budgets()
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        error = _ynab_http_error(e, "TEST_CONNECTION")
        return {"connected": False, "error": error.detail, "timestamp": now}
    return {"connected": True, "budget_count": len(budgets), "timestamp": now}


@app.get("/api/analysis/monthly")
def monthly_analysis(budget_id: Optional[str] = None, month: Optional[str] = None):
    """Analyze a budget month's target alignment with the configured defaults."""
    return _run_analysis(budget_id, month, _default_config(), "MONTHLY_ANALYSIS")


@app.post("/api/analysis/monthly")
def monthly_analysis_custom(req: MonthlyAnalysisRequest):
    """Analyze a budget month with a caller-supplied analysis config."""
    config = req.config.to_config() if req.config else _default_config()
    return _run_analysis(req.budget_id, req.month, config, "MONTHLY_ANALYSIS_POST")


@app.get("/api/debug/category/{category_id}")
def explain_category(category_id: str, budget_id: Optional[str] = None, month: Optional[str] = None):
    """Show how one category's needed-this-month figure was derived."""
    try:
        budget = _resolve_budget(budget_id)
        analysis_month = _resolve_month(month, budget)
        month_record = ynab.get_month(budget.id, analysis_month)
    except (httpx.HTTPStatusError, httpx.RequestError) as e:
        raise _ynab_http_error(e, "DEBUG_CATEGORY")

    for category in month_record.categories:
        if category.id == category_id:
            processed = process_category(category, "", _default_config(), analysis_month)
            return {"success": True, "data": processed}
    raise HTTPException(status_code=404, detail=f"Category not found: {category_id}")


@app.post("/api/debug/clear-cache")
def clear_cache():
    cleared = ynab.clear_cache()
    return {"success": True, "cleared": cleared}
