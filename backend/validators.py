"""
Pure request-validation helpers for the /api routes.
No Flask imports.

Every public validator returns (error_message, cleaned_value). On success
error_message is None; on failure cleaned_value is None and the message is
a "field.path: reason" string (several reasons joined by ", ").
Unknown keys are dropped from cleaned objects.
"""

import re
from typing import Any, List, Optional, Tuple

DEFAULT_ROSTER = "SP26"
ROSTER_RE = re.compile(r"^(FA|SP|SU)\d{2}$")
ROSTER_MESSAGE = "Roster must be in format FA25, SP26, etc."
MAX_ADDRESS_LENGTH = 500

Result = Tuple[Optional[str], Any]


class _Errors:
    """Collects 'path: message' entries while walking a payload."""

    def __init__(self):
        self.items: List[str] = []

    def add(self, path: str, message: str) -> None:
        self.items.append(f"{path}: {message}" if path else message)

    def message(self) -> Optional[str]:
        return ", ".join(self.items) if self.items else None


def _join(path: str, key) -> str:
    return f"{path}.{key}" if path else str(key)


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _is_int(value) -> bool:
    if isinstance(value, bool):
        return False
    return isinstance(value, int) or (isinstance(value, float) and value.is_integer())


# ── Field checkers (append to errors, return cleaned value or None) ───────────
def _string(obj: dict, key: str, path: str, errors: _Errors, required=True, min_len=0, max_len=None):
    if key not in obj or obj[key] is None:
        if required:
            errors.add(_join(path, key), "Required")
        return None
    value = obj[key]
    if not isinstance(value, str):
        errors.add(_join(path, key), "Expected string")
        return None
    if len(value) < min_len:
        errors.add(_join(path, key), f"String must contain at least {min_len} character(s)")
        return None
    if max_len is not None and len(value) > max_len:
        errors.add(_join(path, key), f"String must contain at most {max_len} character(s)")
        return None
    return value


def _non_negative_int(obj: dict, key: str, path: str, errors: _Errors, required=True):
    if key not in obj or obj[key] is None:
        if required:
            errors.add(_join(path, key), "Required")
        return None
    value = obj[key]
    if not _is_int(value):
        errors.add(_join(path, key), "Expected integer")
        return None
    if value < 0:
        errors.add(_join(path, key), "Number must be greater than or equal to 0")
        return None
    return int(value)


def _coordinates(value, path: str, errors: _Errors):
    if not isinstance(value, dict):
        errors.add(path, "Expected object")
        return None
    lat = value.get("lat")
    lng = value.get("lng")
    ok = True
    if not _is_number(lat) or not (-90 <= lat <= 90):
        errors.add(_join(path, "lat"), "Latitude must be a number between -90 and 90")
        ok = False
    if not _is_number(lng) or not (-180 <= lng <= 180):
        errors.add(_join(path, "lng"), "Longitude must be a number between -180 and 180")
        ok = False
    return {"lat": lat, "lng": lng} if ok else None


def _list(obj: dict, key: str, path: str, errors: _Errors, item_fn, required=True, default=None):
    if key not in obj or obj[key] is None:
        if required:
            errors.add(_join(path, key), "Required")
        return default
    value = obj[key]
    if not isinstance(value, list):
        errors.add(_join(path, key), "Expected array")
        return None
    cleaned = []
    for idx, item in enumerate(value):
        cleaned.append(item_fn(item, _join(_join(path, key), idx), errors))
    return cleaned


def _instructor(value, path: str, errors: _Errors):
    if not isinstance(value, dict):
        errors.add(path, "Expected object")
        return None
    out = {
        "instrAssignSeq": None,
        "firstName": _string(value, "firstName", path, errors),
        "lastName": _string(value, "lastName", path, errors),
    }
    seq = value.get("instrAssignSeq")
    if not _is_number(seq):
        errors.add(_join(path, "instrAssignSeq"), "Expected number")
    else:
        out["instrAssignSeq"] = seq
    for optional in ("netid", "middleName"):
        text = _string(value, optional, path, errors, required=False)
        if text is not None:
            out[optional] = text
    return out


def _meeting(value, path: str, errors: _Errors):
    if not isinstance(value, dict):
        errors.add(path, "Expected object")
        return None
    out = {}
    for key in ("pattern", "timeStart", "timeEnd", "bldgDescr", "facilityDescr"):
        out[key] = _string(value, key, path, errors)
    out["instructors"] = _list(value, "instructors", path, errors, _instructor)
    display = _string(value, "displayLocation", path, errors, required=False)
    if display is not None:
        out["displayLocation"] = display
    if value.get("coordinates") is not None:
        coords = _coordinates(value["coordinates"], _join(path, "coordinates"), errors)
        if coords is not None:
            out["coordinates"] = coords
    return out


def _section(value, path: str, errors: _Errors):
    if not isinstance(value, dict):
        errors.add(path, "Expected object")
        return None
    return {
        "enrollGroupIndex": _non_negative_int(value, "enrollGroupIndex", path, errors),
        "classSectionIndex": _non_negative_int(value, "classSectionIndex", path, errors),
        "section": _string(value, "section", path, errors),
        "ssrComponent": _string(value, "ssrComponent", path, errors),
        "classNbr": _string(value, "classNbr", path, errors),
        "meetings": _list(value, "meetings", path, errors, _meeting),
    }


def _course(value, path: str, errors: _Errors):
    if not isinstance(value, dict):
        errors.add(path, "Expected object")
        return None
    out = {}
    for key in ("id", "crseId", "subject", "catalogNbr", "title", "classSection", "ssrComponent", "classNbr"):
        out[key] = _string(value, key, path, errors)
    out["enrollGroupIndex"] = _non_negative_int(value, "enrollGroupIndex", path, errors)
    out["meetings"] = _list(value, "meetings", path, errors, _meeting)
    out["units"] = _string(value, "units", path, errors)
    sections = _list(value, "selectedSections", path, errors, _section, required=False)
    if sections is not None:
        out["selectedSections"] = sections
    return out


def _done(errors: _Errors, value) -> Result:
    msg = errors.message()
    return (msg, None) if msg else (None, value)


# ── Public validators ─────────────────────────────────────────────────────────
def validate_roster(raw) -> Result:
    if raw is None or raw == "":
        return None, DEFAULT_ROSTER
    if not isinstance(raw, str) or not ROSTER_RE.match(raw):
        return f"roster: {ROSTER_MESSAGE}", None
    return None, raw


def validate_catalog_search(args: dict) -> Result:
    err, roster = validate_roster(args.get("roster"))
    if err:
        return err, None
    q = args.get("q") or None
    subject = args.get("subject") or None
    if not q and not subject:
        return "Either 'q' or 'subject' parameter is required", None
    return None, {"roster": roster, "q": q, "subject": subject}


def validate_subjects_query(args: dict) -> Result:
    err, roster = validate_roster(args.get("roster"))
    if err:
        return err, None
    return None, {"roster": roster}


def validate_class_lookup(args: dict) -> Result:
    err, roster = validate_roster(args.get("roster"))
    if err:
        return err, None
    errors = _Errors()
    subject = _string(args, "subject", "", errors, min_len=1)
    crse_id = _string(args, "crseId", "", errors, min_len=1)
    return _done(errors, {"roster": roster, "subject": subject, "crseId": crse_id})


def validate_geocode_body(body) -> Result:
    if not isinstance(body, dict):
        return "Invalid request body", None
    errors = _Errors()
    address = _string(body, "address", "", errors, min_len=1, max_len=MAX_ADDRESS_LENGTH)
    if address is not None and not address.strip():
        errors.add("address", "Address is required")
    return _done(errors, {"address": address})


def _place(body: dict, key: str, errors: _Errors):
    value = body.get(key)
    if isinstance(value, str):
        if not value:
            errors.add(key, "String must contain at least 1 character(s)")
            return None
        return value
    if isinstance(value, dict):
        return _coordinates(value, key, errors)
    errors.add(key, "Expected a place name or {lat, lng} coordinates")
    return None


def validate_directions_body(body) -> Result:
    if not isinstance(body, dict):
        return "Invalid request body", None
    errors = _Errors()
    origin = _place(body, "origin", errors)
    destination = _place(body, "destination", errors)
    return _done(errors, {"origin": origin, "destination": destination})


def validate_schedules_query(args: dict) -> Result:
    return validate_subjects_query(args)


def validate_create_schedule_body(body) -> Result:
    if not isinstance(body, dict):
        return "Invalid request body", None
    err, roster = validate_roster(body.get("roster"))
    if err:
        return err, None
    errors = _Errors()
    courses = _list(body, "courses", "", errors, _course, required=False, default=[])
    return _done(errors, {"roster": roster, "courses": courses})


def validate_update_course_body(body) -> Result:
    if not isinstance(body, dict):
        return "Invalid request body", None
    errors = _Errors()
    cleaned = {
        "enrollGroupIndex": _non_negative_int(body, "enrollGroupIndex", "", errors, required=False),
        "meetings": _list(body, "meetings", "", errors, _meeting, required=False),
        "selectedSections": _list(body, "selectedSections", "", errors, _section, required=False),
    }
    return _done(errors, cleaned)


def validate_schedule_params(schedule_id, course_id=None, require_course=True) -> Result:
    errors = _Errors()
    if not isinstance(schedule_id, str) or not schedule_id.strip():
        errors.add("scheduleId", "String must contain at least 1 character(s)")
    if require_course and (not isinstance(course_id, str) or not course_id.strip()):
        errors.add("courseId", "String must contain at least 1 character(s)")
    return _done(errors, {"scheduleId": schedule_id, "courseId": course_id})


def validate_course_id_query(args: dict) -> Result:
    raw = args.get("courseId")
    try:
        course_id = int(str(raw).strip())
    except (TypeError, ValueError):
        return "courseId: Expected number", None
    if course_id <= 0:
        return "courseId: courseId must be a positive integer", None
    return None, {"courseId": course_id}


def validate_requirement_search(args: dict) -> Result:
    q = args.get("q")
    if not q:
        return "q: Search query is required", None
    return None, {"q": q}


def validate_requirement_name(args: dict) -> Result:
    name = args.get("requirementName")
    if not name:
        return "requirementName: Requirement name is required", None
    return None, {"requirementName": name}


def validate_walking_check_body(body) -> Result:
    if not isinstance(body, dict):
        return "Invalid request body", None
    errors = _Errors()
    candidate = None
    if not isinstance(body.get("candidate"), dict):
        errors.add("candidate", "Required")
    else:
        candidate = _course(body["candidate"], "candidate", errors)
    courses = _list(body, "courses", "", errors, _course, required=False, default=[])
    return _done(errors, {"candidate": candidate, "courses": courses})


def _flat_index(value, path: str, errors: _Errors):
    """Position in the flattened section list; the section picker sends strings."""
    if isinstance(value, str) and value.strip().isdigit():
        return int(value.strip())
    if _is_int(value) and value >= 0:
        return int(value)
    errors.add(path, "Expected a non-negative section index")
    return None


def _crse_id(body: dict, errors: _Errors):
    raw = body.get("crseId")
    if _is_int(raw):
        return str(int(raw))
    if isinstance(raw, str) and raw.strip():
        return raw.strip()
    errors.add("crseId", "Required")
    return None


def validate_add_course_body(body) -> Result:
    if not isinstance(body, dict):
        return "Invalid request body", None
    errors = _Errors()
    cleaned = {
        "subject": _string(body, "subject", "", errors, min_len=1),
        "crseId": _crse_id(body, errors),
        "enrollGroupIndex": _non_negative_int(body, "enrollGroupIndex", "", errors, required=False),
        "classSectionIndex": _non_negative_int(body, "classSectionIndex", "", errors, required=False),
        "additionalSections": _list(
            body, "additionalSections", "", errors, _flat_index, required=False, default=[],
        ),
        "force": body.get("force", False),
    }
    if not isinstance(cleaned["force"], bool):
        errors.add("force", "Expected boolean")
    if cleaned["enrollGroupIndex"] is None:
        cleaned["enrollGroupIndex"] = 0
    if cleaned["classSectionIndex"] is None:
        cleaned["classSectionIndex"] = 0
    return _done(errors, cleaned)


def validate_section_selection_body(body) -> Result:
    if not isinstance(body, dict):
        return "Invalid request body", None
    errors = _Errors()
    primary = None
    if body.get("primaryIndex") is None:
        errors.add("primaryIndex", "Required")
    else:
        primary = _flat_index(body["primaryIndex"], "primaryIndex", errors)
    cleaned = {
        "primaryIndex": primary,
        "additionalIndices": _list(
            body, "additionalIndices", "", errors, _flat_index, required=False, default=[],
        ),
    }
    return _done(errors, cleaned)
