"""
KPI computation functions — pure functions with no side effects.

Provides utilization and variance calculation, threshold classification,
group aggregation for the CAPEX dashboard and the healthiness score for
the instrument dashboard.
"""

import logging
import math

import pandas as pd

from .config import (
    BUDGET_STATUSES,
    INSTRUMENT_STATUSES,
    SCORE_LABEL_FLOOR,
    SCORE_LABELS,
    STATUS_SCORES,
    UTILIZATION_THRESHOLDS,
)

logger = logging.getLogger(__name__)

GROUP_COLUMNS = [
    "group_key",
    "approved_budget",
    "actual_spend",
    "planned_spend",
    "remaining",
    "utilization_pct",
    "variance",
    "status",
    "member_count",
    "active_count",
]


def calc_variance(actual: float, planned: float) -> tuple[float, float | None]:
    """Return (absolute_variance, pct_variance) of actual against plan.

    pct_variance is None if planned == 0.
    """
    absolute = actual - planned
    if planned == 0:
        return absolute, None
    pct = (absolute / planned) * 100
    return absolute, pct


def calc_utilization(spend: float, budget: float) -> float:
    """Spend as a percentage of budget.

    Returns 0.0 when the budget is zero, negative or not finite. The result
    is not clamped: values above 100 represent an overrun.
    """
    if pd.isna(spend) or pd.isna(budget):
        return 0.0
    if not math.isfinite(budget) or budget <= 0:
        return 0.0
    return (spend / budget) * 100


def classify_utilization(
    utilization_pct: float,
    thresholds: tuple[float, float] = UTILIZATION_THRESHOLDS,
) -> str:
    """Return 'Healthy', 'Caution' or 'Overrun'.

    Logic
    -----
    - Healthy  if utilization <= thresholds[0]
    - Caution  if utilization <= thresholds[1]
    - Overrun  otherwise
    """
    healthy_max, caution_max = thresholds
    if utilization_pct <= healthy_max:
        return "Healthy"
    if utilization_pct <= caution_max:
        return "Caution"
    return "Overrun"


# ---------------------------------------------------------------------------
# CAPEX budget aggregation
# ---------------------------------------------------------------------------

def aggregate_budget_groups(
    rows: pd.DataFrame,
    group_by: str = "discipline",
    statuses: list[str] | None = None,
    thresholds: tuple[float, float] = UTILIZATION_THRESHOLDS,
) -> pd.DataFrame:
    """Roll filtered project rows up to one metric row per group.

    Rules
    -----
    - approved_budget, actual_spend, planned_spend: sum
    - remaining = approved_budget - actual_spend (negative on overrun)
    - utilization_pct = actual_spend / approved_budget * 100 (0 if no budget)
    - variance = actual_spend - planned_spend
    - status from utilization via classify_utilization()

    Parameters
    ----------
    rows : Normalized CAPEX rows, already filtered.
    group_by : Categorical column to partition on.
    statuses : If non-empty, keep only groups whose status is listed.

    Returns
    -------
    DataFrame with GROUP_COLUMNS, sorted by group_key.
    """
    if rows.empty:
        return pd.DataFrame(columns=GROUP_COLUMNS)

    df = rows.assign(_active=(rows["project_status"] == "Active").astype(int))
    grouped = (
        df.groupby(group_by, sort=True)
        .agg(
            approved_budget=("current_budget", "sum"),
            actual_spend=("actual_spend", "sum"),
            planned_spend=("planned_spend", "sum"),
            member_count=("id", "count"),
            active_count=("_active", "sum"),
        )
        .reset_index()
        .rename(columns={group_by: "group_key"})
    )

    grouped["remaining"] = grouped["approved_budget"] - grouped["actual_spend"]
    grouped["utilization_pct"] = [
        calc_utilization(spend, budget)
        for spend, budget in zip(grouped["actual_spend"], grouped["approved_budget"])
    ]
    grouped["variance"] = [
        calc_variance(actual, planned)[0]
        for actual, planned in zip(grouped["actual_spend"], grouped["planned_spend"])
    ]
    grouped["status"] = [
        classify_utilization(pct, thresholds) for pct in grouped["utilization_pct"]
    ]

    if statuses:
        grouped = grouped[grouped["status"].isin(statuses)]

    logger.info("Aggregated %d rows into %d '%s' groups", len(rows), len(grouped), group_by)
    return grouped[GROUP_COLUMNS].reset_index(drop=True)


def summarise_budget_kpis(groups: pd.DataFrame) -> dict:
    """Return a dict suitable for the CAPEX KPI cards.

    Totals are summed over the group frame, so the cards always agree with
    the group table rendered for the same filter state.

    Returns
    -------
    Dict with structure:
    {
        "total_approved": ..., "actual_spend": ..., "remaining": ...,
        "utilization_pct": ..., "overrun": ...,
        "healthy_count": ..., "caution_count": ..., "overrun_count": ...,
        "total_projects": ..., "active_projects": ...,
    }
    """
    total_approved = float(groups["approved_budget"].sum()) if not groups.empty else 0.0
    actual_spend = float(groups["actual_spend"].sum()) if not groups.empty else 0.0

    status_counts = {status: 0 for status in BUDGET_STATUSES}
    if not groups.empty:
        for status, count in groups["status"].value_counts().items():
            status_counts[status] = int(count)

    return {
        "total_approved": total_approved,
        "actual_spend": actual_spend,
        "remaining": total_approved - actual_spend,
        "utilization_pct": calc_utilization(actual_spend, total_approved),
        "overrun": max(0.0, actual_spend - total_approved),
        "healthy_count": status_counts["Healthy"],
        "caution_count": status_counts["Caution"],
        "overrun_count": status_counts["Overrun"],
        "total_projects": int(groups["member_count"].sum()) if not groups.empty else 0,
        "active_projects": int(groups["active_count"].sum()) if not groups.empty else 0,
    }


# ---------------------------------------------------------------------------
# Instrument healthiness scoring
# ---------------------------------------------------------------------------

def calculate_overall_score(rows: pd.DataFrame) -> float:
    """Mean of STATUS_SCORES over rows, ignoring Unknown status.

    Unknown rows count in neither the sum nor the denominator. An empty or
    all-Unknown collection scores 0.0.
    """
    if rows.empty:
        return 0.0
    known = rows.loc[rows["status"] != "Unknown", "status"]
    if known.empty:
        return 0.0
    return float(known.map(STATUS_SCORES).fillna(0).mean())


def score_label(score: float) -> str:
    """Band label for a healthiness score."""
    for lower_bound, label in SCORE_LABELS:
        if score >= lower_bound:
            return label
    return SCORE_LABEL_FLOOR


def get_status_counts(rows: pd.DataFrame) -> dict[str, int]:
    """Count rows per instrument status, with every status present."""
    counts = {status: 0 for status in INSTRUMENT_STATUSES}
    if rows.empty:
        return counts
    for status, count in rows["status"].value_counts().items():
        if status in counts:
            counts[status] = int(count)
    return counts


def get_group_status_breakdown(rows: pd.DataFrame, group_by: str) -> pd.DataFrame:
    """Per-group status counts, percentages and score.

    Returns
    -------
    DataFrame with columns:
        group_key, total, <status> count for each status,
        <status>_pct for each status (rounded to whole percent), score
    """
    pct_cols = [f"{status.lower()}_pct" for status in INSTRUMENT_STATUSES]
    columns = ["group_key", "total", *INSTRUMENT_STATUSES, *pct_cols, "score"]
    if rows.empty:
        return pd.DataFrame(columns=columns)

    records = []
    for key, group in rows.groupby(group_by, sort=True):
        counts = get_status_counts(group)
        total = len(group)
        record: dict = {"group_key": key, "total": total, **counts}
        for status, pct_col in zip(INSTRUMENT_STATUSES, pct_cols):
            record[pct_col] = round(counts[status] / total * 100) if total else 0
        record["score"] = calculate_overall_score(group)
        records.append(record)

    return pd.DataFrame(records, columns=columns)


def summarise_instrument_kpis(rows: pd.DataFrame) -> dict:
    """Return a dict suitable for the instrument gauge and count cards."""
    score = calculate_overall_score(rows)
    return {
        "score": score,
        "label": score_label(score),
        "status_counts": get_status_counts(rows),
        "total": len(rows),
    }
