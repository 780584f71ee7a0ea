"""
Stats helpers - pure aggregation over schedule rows.

Nothing here touches the database; callers pass rows (or plain values) and an
explicit `now`/`today`, which keeps every calculation reproducible in tests.
"""
import math
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Sequence, Tuple

DEFAULT_WINDOW_DAYS = 7
MAX_WINDOW_DAYS = 365


def parse_days(raw, default: int = DEFAULT_WINDOW_DAYS) -> int:
    """Window length from a query value; unusable values fall back to the default."""
    if raw is None:
        return default
    try:
        days = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    if days <= 0:
        return default
    return min(days, MAX_WINDOW_DAYS)


def schedule_start(schedule) -> datetime:
    return datetime.combine(schedule.date, schedule.time)


def intervals_overlap(start: datetime, duration: int, other_start: datetime, other_duration: int) -> bool:
    """Half-open [start, start+duration) against [other_start, other_start+other_duration), in minutes."""
    end = start + timedelta(minutes=duration)
    other_end = other_start + timedelta(minutes=other_duration)
    return start < other_end and other_start < end


def find_conflict(start: datetime, duration: int, schedules: Iterable, exclude_id: Optional[int] = None):
    """First schedule whose interval overlaps the proposed one, or None."""
    for schedule in schedules:
        if exclude_id is not None and schedule.id == exclude_id:
            continue
        if intervals_overlap(start, duration, schedule_start(schedule), schedule.duration):
            return schedule
    return None


# --- UPCOMING WINDOW ---
def build_calendar(today: date, days: int, session_dates: Sequence[date]) -> List[dict]:
    counts = {}
    for d in session_dates:
        counts[d] = counts.get(d, 0) + 1

    calendar = []
    for offset in range(days):
        day = today + timedelta(days=offset)
        count = counts.get(day, 0)
        calendar.append({
            "date": day,
            "day_name": day.strftime("%A"),
            "is_today": offset == 0,
            "has_session": count > 0,
            "session_count": count,
        })
    return calendar


def build_upcoming_window(schedules: Iterable, days: int, now: datetime) -> Tuple[list, List[dict]]:
    """
    Sessions starting in [now, now + days), ordered by start, plus one
    calendar cell per day beginning today.

    Status filtering is the caller's job; this only looks at start times.
    """
    window_end = now + timedelta(days=days)
    sessions = sorted(
        (s for s in schedules if now <= schedule_start(s) < window_end),
        key=lambda s: (s.date, s.time),
    )
    calendar = build_calendar(now.date(), days, [s.date for s in sessions])
    return sessions, calendar


# --- STREAKS ---
def compute_streaks(session_dates: Iterable[date], today: date) -> Tuple[int, int]:
    """
    (current, longest) runs of consecutive days with a completed session.

    The current streak counts back from today, or from yesterday when today
    has no session yet; otherwise it is 0.
    """
    days = sorted({d for d in session_dates if d <= today})
    if not days:
        return 0, 0

    longest = run = 1
    for previous, current in zip(days, days[1:]):
        run = run + 1 if current - previous == timedelta(days=1) else 1
        longest = max(longest, run)

    latest = days[-1]
    if latest not in (today, today - timedelta(days=1)):
        return 0, longest

    current_streak = 1
    for previous, current in zip(reversed(days[:-1]), reversed(days)):
        if current - previous != timedelta(days=1):
            break
        current_streak += 1
    return current_streak, longest


# --- RATES ---
def workout_hours(total_minutes: Optional[float]) -> float:
    return round((total_minutes or 0) / 60, 2)


def progress_percentage(completed: int, total: int) -> float:
    if not total:
        return 0.0
    return round(min(completed / total * 100, 100.0), 2)


def attendance_rate(completed: int, cancelled: int, no_show: int) -> float:
    attended_or_missed = completed + cancelled + no_show
    if not attended_or_missed:
        return 0.0
    return round(completed / attended_or_missed * 100, 2)


def average_sessions_per_week(session_dates: Sequence[date], today: date) -> float:
    if not session_dates:
        return 0.0
    first = min(session_dates)
    weeks = max(1, math.ceil(((today - first).days + 1) / 7))
    return round(len(session_dates) / weeks, 2)


def week_start(day: date) -> date:
    return day - timedelta(days=day.weekday())


def sessions_per_week(session_dates: Iterable[date], today: date, weeks: int = 8) -> List[dict]:
    """Counts per Monday-based week, oldest first, ending with the current week."""
    current = week_start(today)
    buckets = [current - timedelta(weeks=i) for i in range(weeks - 1, -1, -1)]
    counts = {b: 0 for b in buckets}
    for d in session_dates:
        key = week_start(d)
        if key in counts:
            counts[key] += 1
    return [{"week_start": b, "count": counts[b]} for b in buckets]
