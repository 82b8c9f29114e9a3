"""Generic filtering utilities for SQLAlchemy selects."""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from sqlalchemy import Select, and_, or_
from sqlalchemy.orm import InstrumentedAttribute


# ── Generic filtering ──────────────────────────────────────────────

def apply_filters(
    query: Select,
    model: Any,
    filters: dict[str, Any],
) -> Select:
    """
    Apply a dict of ``column -> value`` equality filters to a ``Select``.

    ``None`` values are silently skipped; unknown column names are ignored.
    """
    conditions: list = []

    for key, value in filters.items():
        if value is None:
            continue
        col = _get_column(model, key)
        if col is not None:
            conditions.append(col == value)

    if conditions:
        query = query.where(and_(*conditions))

    return query


# ── Date window ─────────────────────────────────────────────────────

def apply_date_window(
    query: Select,
    start_col: InstrumentedAttribute,
    end_col: InstrumentedAttribute,
    window_start: Optional[date],
    window_end: Optional[date],
) -> Select:
    """
    Keep rows whose start **or** end date falls inside
    ``[window_start, window_end]``.

    A row that begins before and ends after the window is not matched.
    The window is ignored unless both bounds are given.
    """
    if window_start is None or window_end is None:
        return query

    return query.where(
        or_(
            and_(start_col >= window_start, start_col <= window_end),
            and_(end_col >= window_start, end_col <= window_end),
        )
    )


# ── Internal helper ─────────────────────────────────────────────────

def _get_column(model: Any, name: str) -> Optional[InstrumentedAttribute]:
    """Safely retrieve a mapped column attribute by name."""
    return getattr(model, name, None)
