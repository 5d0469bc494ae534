"""
Conversions between catalog classes, stored schedule courses and the
timetable block model, plus helpers for multi-section selections.

No Flask imports; everything here works on plain dicts shaped like the
catalog / schedule JSON.
"""

from calendar_layout import (
    DEFAULT_MAX_HOUR,
    DEFAULT_MIN_HOUR,
    DAYS_OF_THE_WEEK,
    HEADER_OFFSET_PX,
    HOUR_HEIGHT_PX,
    format_time,
    generate_hours_range,
    get_block_style,
    get_days_of_the_week,
    get_min_max_hours,
    get_overlap_columns,
    get_total_minutes,
    organize_courses_by_day,
    parse_time_string,
    pattern_includes_day,
)

COURSE_COLOR_PALETTE = [
    "#4285F4",  # blue
    "#EA4335",  # red
    "#34A853",  # green
    "#FBBC04",  # yellow
    "#9C27B0",  # purple
    "#00BCD4",  # cyan
    "#FF5722",  # deep orange
    "#607D8B",  # blue grey
    "#E91E63",  # pink
    "#009688",  # teal
    "#795548",  # brown
    "#3F51B5",  # indigo
]

COURSE_COLOR_PALETTE_LIGHT = [
    "#e3f2fd",
    "#ffebee",
    "#e8f5e9",
    "#fff8e1",
    "#f3e5f5",
    "#e0f7fa",
    "#fbe9e7",
    "#eceff1",
    "#fce4ec",
    "#e0f2f1",
    "#efebe9",
    "#e8eaf6",
]


def course_code(course: dict) -> str:
    return f"{course.get('subject', '')} {course.get('catalogNbr', '')}"


# ── Colours ───────────────────────────────────────────────────────────────────
def create_course_color_map(courses: list[dict]) -> dict[str, int]:
    """Assign each distinct 'SUBJECT NBR' a palette index, cycling the palette."""
    color_map: dict[str, int] = {}
    color_index = 0
    for course in courses:
        code = course_code(course)
        if code in color_map:
            continue
        color_map[code] = color_index
        color_index = (color_index + 1) % len(COURSE_COLOR_PALETTE)
    return color_map


def get_course_marker_color(code: str, color_map: dict[str, int]) -> str:
    index = color_map.get(code, 0)
    return COURSE_COLOR_PALETTE[index % len(COURSE_COLOR_PALETTE)]


def get_course_background_color(code: str, color_map: dict[str, int]) -> str:
    index = color_map.get(code, 0)
    return COURSE_COLOR_PALETTE_LIGHT[index % len(COURSE_COLOR_PALETTE_LIGHT)]


# ── Section helpers ───────────────────────────────────────────────────────────
def is_multi_section_mode(course: dict) -> bool:
    return bool(course.get("selectedSections"))


def course_meetings(course: dict) -> list[dict]:
    """All meetings of a course, from selected sections when present."""
    if is_multi_section_mode(course):
        return [m for s in course["selectedSections"] for m in s.get("meetings", [])]
    return list(course.get("meetings", []))


def sections_equal(a: dict, b: dict) -> bool:
    return (
        a.get("section") == b.get("section")
        and a.get("ssrComponent") == b.get("ssrComponent")
        and a.get("enrollGroupIndex") == b.get("enrollGroupIndex")
    )


def flatten_class_sections(cornell_class: dict | None) -> list[dict]:
    """Flatten enrollGroups[].classSections[] into position-tagged entries."""
    if not cornell_class:
        return []
    flat = []
    for eg_idx, group in enumerate(cornell_class.get("enrollGroups", [])):
        for cs_idx, class_section in enumerate(group.get("classSections", [])):
            flat.append({
                "enrollGroupIndex": eg_idx,
                "classSectionIndex": cs_idx,
                "classSection": class_section,
            })
    return flat


def _flat_identity(entry: dict) -> dict:
    return {
        "section": entry["classSection"].get("section"),
        "ssrComponent": entry["classSection"].get("ssrComponent"),
        "enrollGroupIndex": entry["enrollGroupIndex"],
    }


def find_primary_section_index(course: dict, all_sections: list[dict]) -> int:
    """
    Index of the course's primary (first selected) section in the flattened
    list. Falls back to course-level fields, then to the enroll group alone,
    then to 0.
    """
    if is_multi_section_mode(course):
        primary = course["selectedSections"][0]
        for idx, entry in enumerate(all_sections):
            if sections_equal(_flat_identity(entry), primary):
                return idx

    for idx, entry in enumerate(all_sections):
        if (
            entry["enrollGroupIndex"] == course.get("enrollGroupIndex")
            and entry["classSection"].get("section") == course.get("classSection")
            and entry["classSection"].get("ssrComponent") == course.get("ssrComponent")
        ):
            return idx

    for idx, entry in enumerate(all_sections):
        if entry["enrollGroupIndex"] == course.get("enrollGroupIndex"):
            return idx
    return 0


def categorize_sections(all_sections: list[dict]) -> dict:
    lectures = [s for s in all_sections if "LEC" in s["classSection"].get("ssrComponent", "")]
    others = [s for s in all_sections if "LEC" not in s["classSection"].get("ssrComponent", "")]
    return {"lectureSections": lectures, "additionalSections": others}


def get_selected_additional_indices(course: dict, all_sections: list[dict]) -> list[str]:
    selected = course.get("selectedSections") or []
    if len(selected) <= 1:
        return []
    indices = []
    for section in selected[1:]:
        for idx, entry in enumerate(all_sections):
            if sections_equal(_flat_identity(entry), section):
                indices.append(str(idx))
                break
    return indices


# ── Catalog -> schedule transforms ────────────────────────────────────────────
def to_scheduled_meeting(meeting: dict) -> dict:
    return {
        "pattern": meeting.get("pattern") or "",
        "timeStart": meeting.get("timeStart") or "",
        "timeEnd": meeting.get("timeEnd") or "",
        "bldgDescr": meeting.get("bldgDescr") or "",
        "facilityDescr": meeting.get("facilityDescr") or "",
        "instructors": list(meeting.get("instructors") or []),
    }


def to_scheduled_meetings(meetings: list[dict]) -> list[dict]:
    return [to_scheduled_meeting(m) for m in meetings or []]


def to_scheduled_section(class_section: dict, enroll_group_index: int, class_section_index: int) -> dict:
    return {
        "enrollGroupIndex": enroll_group_index,
        "classSectionIndex": class_section_index,
        "section": class_section.get("section", ""),
        "ssrComponent": class_section.get("ssrComponent", ""),
        "classNbr": str(class_section.get("classNbr", "")),
        "meetings": to_scheduled_meetings(class_section.get("meetings")),
    }


def build_selected_sections(primary: dict | None, additional: list[dict]) -> list[dict]:
    """Primary section first, then additional ones not duplicating it."""
    sections = []
    primary_key = None
    if primary:
        sections.append(to_scheduled_section(
            primary["classSection"],
            primary["enrollGroupIndex"],
            primary["classSectionIndex"],
        ))
        cs = primary["classSection"]
        primary_key = f"{cs.get('section')}-{cs.get('ssrComponent')}"

    for entry in additional:
        cs = entry["classSection"]
        if f"{cs.get('section')}-{cs.get('ssrComponent')}" == primary_key:
            continue
        sections.append(to_scheduled_section(cs, entry["enrollGroupIndex"], entry["classSectionIndex"]))
    return sections


def to_scheduled_course(
    cornell_class: dict,
    enroll_group_index: int,
    class_section_index: int,
    course_id: str,
) -> dict:
    """Build a ScheduledCourse from a catalog class and a chosen section."""
    groups = cornell_class.get("enrollGroups") or []
    if not (0 <= enroll_group_index < len(groups)):
        raise IndexError("Enroll group not found")
    group = groups[enroll_group_index]
    class_sections = group.get("classSections") or []
    if not (0 <= class_section_index < len(class_sections)):
        raise IndexError("Class section not found")
    class_section = class_sections[class_section_index]

    return {
        "id": course_id,
        "crseId": str(cornell_class.get("crseId", "")),
        "subject": cornell_class.get("subject", ""),
        "catalogNbr": cornell_class.get("catalogNbr", ""),
        "title": cornell_class.get("titleShort") or cornell_class.get("title", ""),
        "classSection": class_section.get("section", ""),
        "ssrComponent": class_section.get("ssrComponent", ""),
        "classNbr": str(class_section.get("classNbr", "")),
        "enrollGroupIndex": enroll_group_index,
        "meetings": to_scheduled_meetings(class_section.get("meetings")),
        "units": str(group.get("unitsMinimum", group.get("units", ""))),
    }


# ── Schedule -> timetable blocks ──────────────────────────────────────────────
def _meeting_blocks(meeting: dict, base: dict, ssr_component: str) -> list[dict]:
    days = get_days_of_the_week(meeting.get("pattern"))
    if not days:
        return []
    time_start = format_time(meeting.get("timeStart", ""))
    time_end = format_time(meeting.get("timeEnd", ""))
    return [
        {
            **base,
            "timeStart": time_start,
            "timeEnd": time_end,
            "daysOfTheWeek": [day],
            "ssrComponent": ssr_component,
        }
        for day in days
    ]


def transform_to_course_blocks(courses: list[dict]) -> list[dict]:
    """One block per meeting per day; selected sections take precedence."""
    color_map = create_course_color_map(courses)
    blocks = []
    for course in courses:
        code = course_code(course)
        base = {
            "code": code,
            "name": course.get("title") or code,
            "color": get_course_background_color(code, color_map),
            "borderColor": get_course_marker_color(code, color_map),
        }
        if is_multi_section_mode(course):
            for section in course["selectedSections"]:
                for meeting in section.get("meetings", []):
                    blocks.extend(_meeting_blocks(meeting, base, section.get("ssrComponent", "")))
        else:
            for meeting in course.get("meetings", []):
                blocks.extend(_meeting_blocks(meeting, base, course.get("ssrComponent", "")))
    return blocks


def _meets_at(meeting: dict, day: str, time_start: str) -> bool:
    return (
        pattern_includes_day(meeting.get("pattern"), day)
        and format_time(meeting.get("timeStart", "")) == time_start
    )


def get_course_metadata(courses: list[dict], code: str, day: str, time_start: str) -> dict | None:
    """Find the scheduled course behind a timetable block."""
    for course in courses:
        if course_code(course) != code:
            continue
        if any(_meets_at(m, day, time_start) for m in course_meetings(course)):
            return course
    return None


def get_section_component(course: dict, day: str, time_start: str, block_component: str | None = None) -> str:
    if block_component:
        return block_component
    for section in course.get("selectedSections") or []:
        if section.get("ssrComponent") and any(
            _meets_at(m, day, time_start) for m in section.get("meetings", [])
        ):
            return section["ssrComponent"]
    return course.get("ssrComponent", "")


def _has_valid_times(block: dict) -> bool:
    try:
        parse_time_string(block["timeStart"])
        parse_time_string(block["timeEnd"])
    except ValueError:
        return False
    return True


def build_calendar(courses: list[dict], hour_height_px: int = HOUR_HEIGHT_PX) -> dict:
    """
    Everything the timetable view renders: per-day blocks placed into
    overlap columns with pixel geometry, plus the hour axis.
    """
    if not courses:
        min_hour, max_hour = DEFAULT_MIN_HOUR, DEFAULT_MAX_HOUR
        by_day = {day: [] for day in DAYS_OF_THE_WEEK}
    else:
        # Meetings without a parseable time (TBA) have no place on the grid.
        blocks = [b for b in transform_to_course_blocks(courses) if _has_valid_times(b)]
        by_day = organize_courses_by_day(blocks)
        min_hour, max_hour = get_min_max_hours(by_day)

    total_minutes = get_total_minutes(min_hour, max_hour)
    available_pixels = (max_hour - min_hour) * hour_height_px

    days = {}
    for day in DAYS_OF_THE_WEEK:
        items = [
            {"block": block, "metadata": get_course_metadata(courses, block["code"], day, block["timeStart"])}
            for block in by_day[day]
        ]
        columns = get_overlap_columns(items)
        placed = []
        for col_idx, column in enumerate(columns):
            for item in column:
                block = item["block"]
                metadata = item["metadata"]
                placed.append({
                    **block,
                    "courseId": metadata.get("id") if metadata else None,
                    "ssrComponent": (
                        get_section_component(metadata, day, block["timeStart"], block.get("ssrComponent"))
                        if metadata else block.get("ssrComponent", "")
                    ),
                    "column": col_idx,
                    "columnCount": len(columns),
                    "style": get_block_style(
                        block["borderColor"],
                        block["timeStart"],
                        block["timeEnd"],
                        min_hour,
                        total_minutes,
                        available_pixels,
                        HEADER_OFFSET_PX,
                    ),
                })
        days[day] = placed

    return {
        "days": days,
        "minHour": min_hour,
        "maxHour": max_hour,
        "totalMinutes": total_minutes,
        "hours": generate_hours_range(min_hour, max_hour),
    }
