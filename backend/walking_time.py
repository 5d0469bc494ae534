"""
Walking-time validation between back-to-back classes, and the per-day
walking routes shown on the campus map.

Both work sequentially over injected `geocode_fn(address)` and
`directions_fn(origin, destination)` callables (the server passes its
cached maps client methods). A failed lookup never blocks a schedule:
when a walk cannot be measured the pair is treated as feasible.
"""

import math
import sys
from collections import namedtuple

from calendar_layout import WEEKDAYS, display_time_to_minutes, format_time, pattern_includes_day
from geocoding import building_name
from maps_client import MapsError
from route_polyline import decode_polyline
from schedule_transform import (
    course_code,
    course_meetings,
    create_course_color_map,
    get_course_marker_color,
    is_multi_section_mode,
)

TimeSlot = namedtuple("TimeSlot", ["hour", "minute"])

ROUTE_COLOR = "#666666"
# Routes are only drawn between points on (or right next to) campus.
CAMPUS_BOUNDS = {"lat_min": 42.4, "lat_max": 42.5, "lng_min": -76.5, "lng_max": -76.4}
# A walk that could not be measured; the placement is allowed as-is.
_UNVERIFIED = object()


# ── Time helpers ──────────────────────────────────────────────────────────────
def parse_time(time_str: str) -> TimeSlot:
    """Accepts '14:30', '2:30PM' or '2:30pm'. Raises ValueError."""
    minutes = display_time_to_minutes(format_time(str(time_str or "")))
    return minutes_to_time(minutes)


def time_to_minutes(slot: TimeSlot) -> int:
    return slot.hour * 60 + slot.minute


def minutes_to_time(minutes: int) -> TimeSlot:
    return TimeSlot(minutes // 60, minutes % 60)


def _minutes(time_str: str) -> int:
    return time_to_minutes(parse_time(time_str))


# ── Day filtering ─────────────────────────────────────────────────────────────
def get_meetings_for_day(course: dict, day: str) -> list[dict]:
    return [m for m in course_meetings(course) if pattern_includes_day(m.get("pattern"), day)]


def get_courses_for_day(courses: list[dict], day: str) -> list[dict]:
    return [c for c in courses if get_meetings_for_day(c, day)]


def _first_meeting(course: dict | None, day: str) -> dict | None:
    if course is None:
        return None
    meetings = get_meetings_for_day(course, day)
    return meetings[0] if meetings else None


def find_adjacent_courses(courses: list[dict], day: str, new_start: str) -> tuple[dict | None, dict | None]:
    """
    Neighbours of a class starting at `new_start` on `day`: the latest-starting
    course that ends at or before it, and the first course starting after it.
    Courses overlapping the start time are neither.
    """
    start = _minutes(new_start)
    timed = []
    for course in get_courses_for_day(courses, day):
        meeting = _first_meeting(course, day)
        try:
            timed.append((_minutes(meeting["timeStart"]), _minutes(meeting["timeEnd"]), course))
        except ValueError:
            continue
    timed.sort(key=lambda row: row[0])

    previous = None
    following = None
    for course_start, course_end, course in timed:
        if course_end <= start:
            previous = course
        elif course_start > start:
            following = course
            break
    return previous, following


# ── Walking-time check ────────────────────────────────────────────────────────
def _ensure_coordinates(meeting: dict, geocode_fn) -> bool:
    """Geocode the meeting's building once, caching it on the meeting."""
    if meeting.get("coordinates"):
        return True
    name = building_name(meeting)
    if not name:
        return False
    try:
        result = geocode_fn(name)
    except MapsError as exc:
        print(f"[WARN] Geocoding {name!r} failed: {exc}", file=sys.stderr)
        return False
    meeting["coordinates"] = {"lat": result["lat"], "lng": result["lng"]}
    return True


def _check_pair(earlier_course, earlier_meeting, later_course, later_meeting, geocode_fn, directions_fn):
    try:
        gap = _minutes(later_meeting["timeStart"]) - _minutes(earlier_meeting["timeEnd"])
    except ValueError:
        return None
    if gap <= 0:
        return None
    if not _ensure_coordinates(earlier_meeting, geocode_fn):
        return _UNVERIFIED
    if not _ensure_coordinates(later_meeting, geocode_fn):
        return _UNVERIFIED
    try:
        directions = directions_fn(earlier_meeting["coordinates"], later_meeting["coordinates"])
    except MapsError as exc:
        print(f"[WARN] Directions lookup failed: {exc}", file=sys.stderr)
        return _UNVERIFIED

    walking_minutes = math.ceil(directions["duration"] / 60)
    if walking_minutes > gap:
        return (
            f"Insufficient time between {course_code(earlier_course)} and {course_code(later_course)}. "
            f"Walking time: {walking_minutes} minutes, available time: {gap} minutes."
        )
    return None


def check_walking_time(previous, current, following, day, geocode_fn, directions_fn) -> dict:
    """
    Can a student walk from `previous` to `current` and from `current` to
    `following` on `day`? The gap after the current class is checked first.

    Returns {"insufficient": bool, "message": str | None}. If either walk
    cannot be measured the whole check gives up as not insufficient.
    Coordinates found along the way are stored on the meeting dicts.
    """
    current_meeting = _first_meeting(current, day)
    if current_meeting is None:
        return {"insufficient": False, "message": None}

    next_meeting = _first_meeting(following, day)
    if next_meeting is not None:
        message = _check_pair(current, current_meeting, following, next_meeting, geocode_fn, directions_fn)
        if message is _UNVERIFIED:
            return {"insufficient": False, "message": None}
        if message:
            return {"insufficient": True, "message": message}

    prev_meeting = _first_meeting(previous, day)
    if prev_meeting is not None:
        message = _check_pair(previous, prev_meeting, current, current_meeting, geocode_fn, directions_fn)
        if message is _UNVERIFIED:
            return {"insufficient": False, "message": None}
        if message:
            return {"insufficient": True, "message": message}

    return {"insufficient": False, "message": None}


def validate_course_walking_time(courses: list[dict], candidate: dict, geocode_fn, directions_fn) -> dict:
    """Check a candidate course against its neighbours on every weekday it meets."""
    others = [c for c in courses if c.get("id") != candidate.get("id")]
    days = []
    first_warning = None
    for day in WEEKDAYS:
        meeting = _first_meeting(candidate, day)
        if meeting is None:
            continue
        try:
            previous, following = find_adjacent_courses(others, day, meeting["timeStart"])
        except ValueError:
            continue
        result = check_walking_time(previous, candidate, following, day, geocode_fn, directions_fn)
        days.append({
            "day": day,
            "insufficient": result["insufficient"],
            "message": result["message"],
            "previous": course_code(previous) if previous else None,
            "next": course_code(following) if following else None,
        })
        if result["insufficient"] and first_warning is None:
            first_warning = result["message"]

    return {
        "hasWarning": first_warning is not None,
        "message": first_warning or "",
        "days": days,
    }


# ── Day routes for the map ────────────────────────────────────────────────────
def find_day_meeting(course: dict, day: str) -> dict | None:
    """Prefer a selected-section meeting that already has coordinates."""
    if is_multi_section_mode(course):
        for section in course["selectedSections"]:
            for meeting in section.get("meetings", []):
                if pattern_includes_day(meeting.get("pattern"), day) and meeting.get("coordinates"):
                    return meeting
    for meeting in course.get("meetings", []):
        if pattern_includes_day(meeting.get("pattern"), day):
            return meeting
    return None


def _valid_point(point) -> bool:
    if not isinstance(point, dict):
        return False
    lat = point.get("lat")
    lng = point.get("lng")
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        return False
    if math.isnan(lat) or math.isnan(lng):
        return False
    return True


def on_campus(point: dict) -> bool:
    return (
        CAMPUS_BOUNDS["lat_min"] <= point["lat"] <= CAMPUS_BOUNDS["lat_max"]
        and CAMPUS_BOUNDS["lng_min"] <= point["lng"] <= CAMPUS_BOUNDS["lng_max"]
    )


def build_day_routes(courses: list[dict], day: str, directions_fn) -> dict:
    """
    Stops (one per course meeting on `day`, in time order), walking routes
    between consecutive stops, and the courses whose location is unknown.
    `courses` should already carry geocoded meeting coordinates.
    """
    color_map = create_course_color_map(courses)
    stops = []
    tba = []
    for course in courses:
        meeting = find_day_meeting(course, day)
        if meeting is None:
            continue
        code = course_code(course)
        if not meeting.get("coordinates") or meeting.get("displayLocation") == "TBA":
            tba.append({"courseCode": code})
        try:
            start = _minutes(meeting["timeStart"])
        except ValueError:
            start = None
        stops.append({
            "courseId": course.get("id"),
            "courseCode": code,
            "title": course.get("title", ""),
            "timeStart": meeting.get("timeStart", ""),
            "timeEnd": meeting.get("timeEnd", ""),
            "location": " ".join(p for p in (meeting.get("bldgDescr"), meeting.get("facilityDescr")) if p),
            "coordinates": meeting.get("coordinates"),
            "color": get_course_marker_color(code, color_map),
            "_start": start,
        })

    stops.sort(key=lambda s: (s["_start"] is None, s["_start"] or 0))
    for stop in stops:
        del stop["_start"]

    routes = []
    for src, dst in zip(stops, stops[1:]):
        a, b = src["coordinates"], dst["coordinates"]
        if not (_valid_point(a) and _valid_point(b)):
            continue
        if not (on_campus(a) and on_campus(b)):
            continue
        label = f"{src['courseCode']} -> {dst['courseCode']}"
        try:
            directions = directions_fn(a, b)
        except MapsError as exc:
            print(f"[WARN] Failed to get directions for {label}: {exc}", file=sys.stderr)
            continue
        path = [
            p for p in decode_polyline(directions.get("polyline"))
            if _valid_point(p)
        ]
        if len(path) < 2:
            print(f"[WARN] Invalid decoded path for {label}", file=sys.stderr)
            continue
        routes.append({
            "path": path,
            "color": ROUTE_COLOR,
            "fromCourse": src["courseCode"],
            "toCourse": dst["courseCode"],
            "distance": directions.get("distance"),
            "duration": directions.get("duration"),
        })

    return {"day": day, "stops": stops, "routes": routes, "tbaCourses": tba}
