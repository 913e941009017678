"""
Dashboard statistics.

All four numbers are derived from one snapshot and the current date:

- active courses:       start <= today <= end (both dates required)
- total participants:   size of the participant collection
- enrollments/month:    enrollment date on or after the 1st of the current month
- utilization (%):      all enrollments / sum of course capacities, 0 without capacity

Utilization is an organisation-wide signal. It is NOT per-course occupancy,
so the enrollment count is global.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional

from courseadmin.store import Snapshot


@dataclass(frozen=True)
class DashboardStats:
    active_courses: int
    total_participants: int
    enrollments_this_month: int
    utilization: int


def parse_day(value: Any) -> Optional[date]:
    """
    Parse 'YYYY-MM-DD' (optionally followed by a time part) into a date.
    Returns None for missing or invalid values.
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return date.fromisoformat(value.strip()[:10])
    except ValueError:
        return None


def _capacity(value: Any) -> float:
    if isinstance(value, bool) or value is None:
        return 0.0
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).strip())
    except ValueError:
        return 0.0


def _round_half_up(x: float) -> int:
    # built-in round() would round half to even (2.5 -> 2)
    return int(math.floor(x + 0.5))


def count_active_courses(snapshot: Snapshot, today: date) -> int:
    n = 0
    for course in snapshot.courses:
        start = parse_day(course.get("startdatum"))
        end = parse_day(course.get("enddatum"))
        if start is None or end is None:
            continue
        if start <= today <= end:
            n += 1
    return n


def count_enrollments_since(snapshot: Snapshot, since: date) -> int:
    n = 0
    for e in snapshot.enrollments:
        d = parse_day(e.get("anmeldedatum"))
        if d is not None and d >= since:
            n += 1
    return n


def capacity_utilization(snapshot: Snapshot) -> int:
    total_capacity = sum(_capacity(c.get("max_teilnehmer")) for c in snapshot.courses)
    if total_capacity <= 0:
        return 0
    return _round_half_up(100 * len(snapshot.enrollments) / total_capacity)


def compute_stats(snapshot: Snapshot, today: Optional[date] = None) -> DashboardStats:
    today = today or date.today()
    return DashboardStats(
        active_courses=count_active_courses(snapshot, today),
        total_participants=len(snapshot.participants),
        enrollments_this_month=count_enrollments_since(snapshot, today.replace(day=1)),
        utilization=capacity_utilization(snapshot),
    )
