"""
Time formatting and geometry helpers for the weekly timetable.

Catalog meeting times arrive either as "10:10AM" or as 24-hour "10:10";
the timetable works with the display form "10:10am" throughout.
"""

import re

DAYS_OF_THE_WEEK = [
    "Monday",
    "Tuesday",
    "Wednesday",
    "Thursday",
    "Friday",
    "Saturday",
    "Sunday",
]
WEEKDAYS = DAYS_OF_THE_WEEK[:5]

DEFAULT_MIN_HOUR = 8
DEFAULT_MAX_HOUR = 16
HOUR_HEIGHT_PX = 60
HEADER_OFFSET_PX = 50

_DAY_ABBREVIATIONS = {
    "Monday": "M",
    "Tuesday": "T",
    "Wednesday": "W",
    "Thursday": "R",
    "Friday": "F",
    "Saturday": "S",
    "Sunday": "Su",
}
_PATTERN_DAYS = {
    "M": "Monday",
    "T": "Tuesday",
    "W": "Wednesday",
    "R": "Thursday",
    "F": "Friday",
    "S": "Saturday",
    "Su": "Sunday",
}

_TWELVE_HOUR_RE = re.compile(r"(\d+):(\d+)(\w{2})")
_HOUR_MINUTE_RE = re.compile(r"(\d+):(\d+)")
_DISPLAY_TIME_RE = re.compile(r"(\d+):(\d+)(AM|PM)", re.IGNORECASE)


# ── Time formatting ───────────────────────────────────────────────────────────
def convert_24_to_12_hour(time_str: str) -> str:
    """'13:05' -> '1:05pm'. Strings without a numeric hour are returned as-is."""
    hour_str, _, minute_str = str(time_str).partition(":")
    try:
        hour = int(hour_str)
    except ValueError:
        return time_str
    minutes = minute_str or "00"
    period = "am" if hour < 12 else "pm"
    if hour == 0:
        display_hour = 12
    elif hour > 12:
        display_hour = hour - 12
    else:
        display_hour = hour
    return f"{display_hour}:{minutes}{period}"


def format_time(time_str: str) -> str:
    """Normalize '10:00AM' or '10:00' to the display form '10:00am'."""
    if not time_str:
        return time_str
    m = _TWELVE_HOUR_RE.search(time_str)
    if m:
        return f"{int(m.group(1))}:{m.group(2)}{m.group(3).lower()}"
    if _HOUR_MINUTE_RE.search(time_str):
        return convert_24_to_12_hour(time_str)
    return time_str


def parse_time_string(time: str) -> tuple[int, int]:
    """Parse '10:00am' into 24-hour (hours, minutes). Raises ValueError."""
    m = _DISPLAY_TIME_RE.search(str(time or ""))
    if not m:
        raise ValueError(f"Invalid time format: {time!r}")
    hours = int(m.group(1))
    minutes = int(m.group(2))
    period = m.group(3).upper()
    if period == "PM" and hours < 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0
    return hours, minutes


def display_time_to_minutes(time: str) -> int:
    hours, minutes = parse_time_string(time)
    return hours * 60 + minutes


# ── Day patterns ──────────────────────────────────────────────────────────────
def get_day_abbreviation(day: str) -> str:
    return _DAY_ABBREVIATIONS.get(day, day)


def get_days_of_the_week(pattern: str | None) -> list[str]:
    """
    Expand a catalog day pattern ('MWF', 'TR', 'SSu') into day names.
    'Su' is Sunday; a lone 'S' is Saturday. Unknown letters are ignored.
    """
    if not pattern:
        return []
    days = []
    i = 0
    while i < len(pattern):
        if pattern[i] == "S" and i + 1 < len(pattern) and pattern[i + 1] == "u":
            days.append("Sunday")
            i += 2
            continue
        day = _PATTERN_DAYS.get(pattern[i])
        if day:
            days.append(day)
        i += 1
    return days


def pattern_includes_day(pattern: str | None, day: str) -> bool:
    return day in get_days_of_the_week(pattern)


# ── Calendar geometry ─────────────────────────────────────────────────────────
def get_min_max_hours(classes_schedule: dict) -> tuple[int, int]:
    """
    Earliest start hour and latest end hour (rounded up) over all blocks,
    widened to at least the default 8am-4pm window.
    """
    min_hour = 23
    max_hour = 0
    for blocks in classes_schedule.values():
        for block in blocks:
            start_hour, _ = parse_time_string(block["timeStart"])
            end_hour, end_minutes = parse_time_string(block["timeEnd"])
            min_hour = min(min_hour, start_hour)
            max_hour = max(max_hour, end_hour + (1 if end_minutes > 0 else 0))
    return min(min_hour, DEFAULT_MIN_HOUR), max(max_hour, DEFAULT_MAX_HOUR)


def generate_hours_range(min_hour: int, max_hour: int) -> list[str]:
    labels = []
    for hour in range(min_hour, max_hour + 1):
        suffix = "am" if hour < 12 else "pm"
        labels.append(f"{hour if hour <= 12 else hour - 12}{suffix}")
    return labels


def get_total_minutes(min_hour: int, max_hour: int) -> int:
    return (max_hour - min_hour) * 60


def get_pixels(
    time: str,
    min_hour: int,
    total_minutes: int,
    available_pixels: float,
    header_offset: int = HEADER_OFFSET_PX,
) -> int:
    hours, minutes = parse_time_string(time)
    offset = ((hours - min_hour) * 60 + minutes) / total_minutes
    return round(offset * available_pixels) + header_offset


def get_block_style(
    color: str,
    time_start: str,
    time_end: str,
    min_hour: int,
    total_minutes: int,
    available_pixels: float,
    header_offset: int = HEADER_OFFSET_PX,
) -> dict:
    start_px = get_pixels(time_start, min_hour, total_minutes, available_pixels, header_offset)
    end_px = get_pixels(time_end, min_hour, total_minutes, available_pixels, header_offset)
    return {
        "borderColor": color,
        "top": f"{start_px}px",
        "height": f"{end_px - start_px}px",
    }


# ── Grouping ──────────────────────────────────────────────────────────────────
def organize_courses_by_day(blocks: list[dict]) -> dict:
    """Index blocks by day; a block meeting on several days is split per day."""
    schedule = {day: [] for day in DAYS_OF_THE_WEEK}
    for block in blocks:
        for day in block.get("daysOfTheWeek", []):
            if day not in schedule:
                continue
            schedule[day].append({**block, "daysOfTheWeek": [day]})
    return schedule


def _block_span(item: dict):
    block = item["block"]
    return (
        display_time_to_minutes(block["timeStart"]),
        display_time_to_minutes(block["timeEnd"]),
    )


def _sort_key(item: dict):
    try:
        return (0, _block_span(item)[0])
    except ValueError:
        return (1, 0)


def _fits_in_column(item: dict, column: list[dict]) -> bool:
    try:
        start, end = _block_span(item)
        for existing in column:
            other_start, other_end = _block_span(existing)
            if not (end <= other_start or start >= other_end):
                return False
    except ValueError:
        return False
    return True


def get_overlap_columns(day_items: list[dict]) -> list[list[dict]]:
    """
    Greedy first-fit placement of {"block", "metadata"} items into columns
    so that no two items in a column overlap. Touching endpoints don't overlap.
    """
    columns: list[list[dict]] = []
    for item in sorted(day_items, key=_sort_key):
        for column in columns:
            if _fits_in_column(item, column):
                column.append(item)
                break
        else:
            columns.append([item])
    return columns
