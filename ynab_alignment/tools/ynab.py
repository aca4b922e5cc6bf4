"""Read-only YNAB API wrapper for budgets, months, and category groups."""

import logging
import time
from typing import Optional

import httpx

from ynab_alignment.config import CACHE_TTL_SECONDS, YNAB_ACCESS_TOKEN, YNAB_API_BASE_URL
from ynab_alignment.models import Budget, MonthRecord
from ynab_alignment.months import validate_month_format

logger = logging.getLogger(__name__)

BASE_URL = YNAB_API_BASE_URL
HEADERS = {"Authorization": f"Bearer {YNAB_ACCESS_TOKEN}"}
BUDGETS_TTL = 600  # budgets rarely change

# --- Caches ---
_cache: dict = {}  # key → (stored_at, ttl, value)


def _cache_get(key: str):
    entry = _cache.get(key)
    if not entry:
        return None
    stored_at, ttl, value = entry
    if time.time() - stored_at > ttl:
        _cache.pop(key, None)
        return None
    return value


def _cache_set(key: str, value, ttl: float = CACHE_TTL_SECONDS) -> None:
    _cache[key] = (time.time(), ttl, value)


def clear_cache() -> int:
    """Drop every cached response. Returns how many entries were removed."""
    count = len(_cache)
    _cache.clear()
    logger.info("Cleared %d YNAB cache entries", count)
    return count


def cache_stats() -> dict:
    return {"size": len(_cache), "keys": sorted(_cache)}


def _get(path: str) -> dict:
    resp = httpx.get(f"{BASE_URL}{path}", headers=HEADERS)
    resp.raise_for_status()
    return resp.json()["data"]


def get_budgets() -> list[Budget]:
    """Fetch all budgets, cached for 10 minutes."""
    cached = _cache_get("budgets")
    if cached is not None:
        return cached

    budgets = [Budget.from_api(b) for b in _get("/budgets")["budgets"]]
    _cache_set("budgets", budgets, BUDGETS_TTL)
    logger.info("Cached %d YNAB budgets", len(budgets))
    return budgets


def get_budget(budget_id: str) -> Optional[Budget]:
    for budget in get_budgets():
        if budget.id == budget_id:
            return budget
    return None


def get_default_budget() -> Optional[Budget]:
    """First budget on the account, or None when there are none."""
    budgets = get_budgets()
    return budgets[0] if budgets else None


def get_month(budget_id: str, month: str) -> MonthRecord:
    """Fetch one budget month with all of its categories.

    Args:
        budget_id: YNAB budget ID.
        month: Month in YYYY-MM-DD format (first of month).
    """
    if not validate_month_format(month):
        raise ValueError(f"Invalid month format: {month}")

    key = f"month:{budget_id}:{month}"
    cached = _cache_get(key)
    if cached is not None:
        return cached

    record = MonthRecord.from_api(_get(f"/budgets/{budget_id}/months/{month}")["month"])
    _cache_set(key, record)
    logger.info("Cached YNAB month %s (%d categories)", month, len(record.categories))
    return record


def get_category_groups(budget_id: str) -> list[dict]:
    """Fetch raw category groups (each with its categories) for the current month."""
    key = f"categories:{budget_id}"
    cached = _cache_get(key)
    if cached is not None:
        return cached

    groups = _get(f"/budgets/{budget_id}/categories")["category_groups"]
    groups = [g for g in groups if not g.get("deleted")]
    _cache_set(key, groups)
    logger.info("Cached %d YNAB category groups", len(groups))
    return groups
