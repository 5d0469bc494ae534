"""
Firestore persistence for user schedules.

One document per (userId, roster) in the `schedules` collection:
    {userId, roster, courses: [ScheduledCourse], createdAt, updatedAt}
Timestamps are ISO-8601 UTC strings. Every operation is scoped to the
calling user; documents owned by someone else raise ScheduleForbidden.
"""

from datetime import datetime, timezone

COLLECTION = "schedules"

_COURSE_FIELDS = ("enrollGroupIndex", "meetings", "selectedSections")


class ScheduleStoreError(Exception):
    status_code = 500


class ScheduleNotFound(ScheduleStoreError):
    status_code = 404

    def __init__(self):
        super().__init__("Schedule not found")


class ScheduleForbidden(ScheduleStoreError):
    status_code = 403

    def __init__(self):
        super().__init__("Forbidden")


class CourseNotFound(ScheduleStoreError):
    status_code = 404

    def __init__(self):
        super().__init__("Course not found")


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _with_id(doc) -> dict:
    return {"id": doc.id, **(doc.to_dict() or {})}


def _user_roster_query(db, user_id: str, roster: str):
    return (
        db.collection(COLLECTION)
        .where("userId", "==", user_id)
        .where("roster", "==", roster)
    )


def list_schedules(db, user_id: str, roster: str) -> list[dict]:
    return [_with_id(doc) for doc in _user_roster_query(db, user_id, roster).get()]


def save_schedule(db, user_id: str, roster: str, courses: list[dict]) -> dict:
    """Create the user's schedule for `roster`, or replace its courses."""
    now = _now_iso()
    existing = list(_user_roster_query(db, user_id, roster).limit(1).get())
    if existing:
        doc = existing[0]
        doc.reference.update({"courses": courses, "updatedAt": now})
        return {
            "id": doc.id,
            "userId": user_id,
            "roster": roster,
            "courses": courses,
            "createdAt": (doc.to_dict() or {}).get("createdAt", now),
            "updatedAt": now,
        }

    data = {
        "userId": user_id,
        "roster": roster,
        "courses": courses,
        "createdAt": now,
        "updatedAt": now,
    }
    _, ref = db.collection(COLLECTION).add(data)
    return {"id": ref.id, **data}


def _owned_schedule(db, user_id: str, schedule_id: str):
    ref = db.collection(COLLECTION).document(schedule_id)
    snapshot = ref.get()
    if not snapshot.exists:
        raise ScheduleNotFound()
    schedule = snapshot.to_dict() or {}
    if schedule.get("userId") != user_id:
        raise ScheduleForbidden()
    return ref, schedule


def get_schedule(db, user_id: str, schedule_id: str) -> dict:
    _, schedule = _owned_schedule(db, user_id, schedule_id)
    return {**schedule, "id": schedule_id}


def _write_courses(ref, schedule: dict, schedule_id: str, courses: list[dict]) -> dict:
    now = _now_iso()
    ref.update({"courses": courses, "updatedAt": now})
    return {**schedule, "id": schedule_id, "courses": courses, "updatedAt": now}


def update_course(
    db,
    user_id: str,
    schedule_id: str,
    course_id: str,
    enroll_group_index: int | None = None,
    meetings: list[dict] | None = None,
    selected_sections: list[dict] | None = None,
) -> dict:
    """Replace only the supplied fields of one course."""
    ref, schedule = _owned_schedule(db, user_id, schedule_id)
    courses = list(schedule.get("courses") or [])
    idx = next((i for i, c in enumerate(courses) if c.get("id") == course_id), None)
    if idx is None:
        raise CourseNotFound()

    changes = dict(zip(_COURSE_FIELDS, (enroll_group_index, meetings, selected_sections)))
    courses[idx] = {
        **courses[idx],
        **{key: value for key, value in changes.items() if value is not None},
    }
    return _write_courses(ref, schedule, schedule_id, courses)


def delete_course(db, user_id: str, schedule_id: str, course_id: str) -> dict:
    ref, schedule = _owned_schedule(db, user_id, schedule_id)
    courses = [c for c in schedule.get("courses") or [] if c.get("id") != course_id]
    return _write_courses(ref, schedule, schedule_id, courses)


def add_course(db, user_id: str, schedule_id: str, course: dict) -> dict:
    """Append a course; one already present under the same id is replaced."""
    ref, schedule = _owned_schedule(db, user_id, schedule_id)
    courses = [c for c in schedule.get("courses") or [] if c.get("id") != course.get("id")]
    courses.append(course)
    return _write_courses(ref, schedule, schedule_id, courses)


def find_course(schedule: dict, course_id: str) -> dict:
    for course in schedule.get("courses") or []:
        if course.get("id") == course_id:
            return course
    raise CourseNotFound()
