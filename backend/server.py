import copy
import os
import sys
import time
import threading
from collections import defaultdict
from functools import wraps

# Ensure backend/ is on sys.path so sibling imports work
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from flask import Flask, g, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import HTTPException
from dotenv import load_dotenv

from calendar_layout import DAYS_OF_THE_WEEK
from cornell_client import CornellApiError, CornellClient, find_class_in
from firebase_client import init_firebase
from geocoding import MeetingGeocoder
from maps_client import MapsClient, MapsError, MapsNotConfigured, MapsNotFound
from normalizer import resolve_search_terms
from requirements_data import (
    all_requirement_names,
    courses_by_requirement,
    load_requirements,
    search_by_id,
    search_requirements,
    stats as requirements_stats,
)
from schedule_store import (
    ScheduleStoreError,
    add_course,
    delete_course,
    find_course,
    get_schedule,
    list_schedules,
    save_schedule,
    update_course,
)
from schedule_transform import (
    build_calendar,
    build_selected_sections,
    categorize_sections,
    find_primary_section_index,
    flatten_class_sections,
    get_selected_additional_indices,
    to_scheduled_course,
)
from ttl_cache import (
    TtlCache,
    cached,
    cornell_search_key,
    cornell_subject_key,
    cornell_subjects_key,
    directions_key,
    geocode_key,
)
from validators import (
    validate_add_course_body,
    validate_catalog_search,
    validate_class_lookup,
    validate_course_id_query,
    validate_create_schedule_body,
    validate_directions_body,
    validate_geocode_body,
    validate_requirement_name,
    validate_requirement_search,
    validate_schedule_params,
    validate_schedules_query,
    validate_section_selection_body,
    validate_subjects_query,
    validate_update_course_body,
    validate_walking_check_body,
)
from walking_time import build_day_routes, validate_course_walking_time

load_dotenv()

app = Flask(__name__)

API_VERSION = "1.0.0"

# ── Paths ─────────────────────────────────────────────────────────────────────
BACKEND_DIR = os.path.dirname(os.path.abspath(__file__))
PROJECT_ROOT = os.path.dirname(BACKEND_DIR)
_DEFAULT_REQUIREMENTS_PATH = os.path.join(PROJECT_ROOT, "data", "decorated-requirements.json")
_env_requirements_path = os.environ.get("REQUIREMENTS_DATA_PATH")
if not _env_requirements_path:
    REQUIREMENTS_DATA_PATH = _DEFAULT_REQUIREMENTS_PATH
elif not os.path.isabs(_env_requirements_path):
    REQUIREMENTS_DATA_PATH = os.path.join(PROJECT_ROOT, _env_requirements_path)
else:
    REQUIREMENTS_DATA_PATH = _env_requirements_path
_requirements_lock = threading.Lock()
_requirements_mtime = None


def _env_float(name: str, default: float, minimum: float = 0.0) -> float:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, float(raw))
    except (TypeError, ValueError):
        return default


def _env_int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.environ.get(name, "")
    try:
        return max(minimum, int(raw))
    except (TypeError, ValueError):
        return default


_SLOW_REQUEST_LOG_MS = _env_float("SLOW_REQUEST_LOG_MS", 750.0, minimum=0.0)
_CACHE_TTL_SECONDS = _env_float("CACHE_TTL_SECONDS", 300.0, minimum=0.0)
_CORNELL_MIN_INTERVAL = _env_float("CORNELL_MIN_INTERVAL_SECONDS", 1.0, minimum=0.0)
_HTTP_TIMEOUT = _env_float("HTTP_TIMEOUT_SECONDS", 10.0, minimum=1.0)
_CORS_ORIGINS = [o.strip() for o in os.environ.get("CORS_ORIGINS", "*").split(",") if o.strip()] or ["*"]

# -- Rate limiting on the maps proxy (sliding window per IP) ---------------
_RATE_LIMIT_MAX = _env_int("MAPS_RATE_LIMIT_PER_MIN", 60, minimum=1)
_RATE_LIMIT_WINDOW = 60  # seconds
_rate_limit_lock = threading.Lock()
_rate_limit_tracker: dict[str, list[float]] = defaultdict(list)

CORS(app, resources={r"/api/*": {"origins": _CORS_ORIGINS}})

# ── Upstream clients ──────────────────────────────────────────────────────────
_cache = TtlCache(_CACHE_TTL_SECONDS)
_cornell = CornellClient(min_interval=_CORNELL_MIN_INTERVAL, timeout=_HTTP_TIMEOUT)
_maps = MapsClient(os.environ.get("GOOGLE_MAPS_API_KEY"), timeout=_HTTP_TIMEOUT)
if not _maps.configured:
    print("[WARN] GOOGLE_MAPS_API_KEY not set; geocoding and directions are disabled.", file=sys.stderr)

_db, _auth = init_firebase(
    os.environ.get("FIREBASE_PROJECT_ID"),
    os.environ.get("FIREBASE_CLIENT_EMAIL"),
    os.environ.get("FIREBASE_PRIVATE_KEY"),
)


def _cache_enabled() -> bool:
    return not app.config.get("TESTING", False)


def _upstream_cache() -> TtlCache | None:
    return _cache if _cache_enabled() else None


def _check_rate_limit(ip: str) -> bool:
    """Return True if request is allowed, False if rate-limited."""
    now = time.time()
    with _rate_limit_lock:
        timestamps = _rate_limit_tracker[ip]
        _rate_limit_tracker[ip] = [t for t in timestamps if now - t < _RATE_LIMIT_WINDOW]
        if len(_rate_limit_tracker[ip]) >= _RATE_LIMIT_MAX:
            return False
        _rate_limit_tracker[ip].append(now)
        return True


def _client_ip() -> str:
    return request.headers.get("X-Forwarded-For", request.remote_addr or "").split(",")[0].strip()


def _rate_limited_response():
    if app.config.get("TESTING") or _check_rate_limit(_client_ip()):
        return None
    return jsonify({"error": "Too many requests. Please wait before retrying."}), 429


def _data_file_mtime(path: str):
    try:
        return os.path.getmtime(path)
    except OSError:
        return None


# ── Startup data load ──────────────────────────────────────────────────────────
_requirements = None
try:
    _requirements = load_requirements(REQUIREMENTS_DATA_PATH)
    _requirements_mtime = _data_file_mtime(REQUIREMENTS_DATA_PATH)
except FileNotFoundError:
    print(
        f"[WARN] Requirements data not found: {REQUIREMENTS_DATA_PATH}; "
        "requirement lookups will answer 503.",
        file=sys.stderr,
    )
except Exception as exc:
    print(f"[FATAL] Failed to load requirements data: {exc}", file=sys.stderr)
    sys.exit(1)


def _reload_requirements_if_changed(force: bool = False) -> bool:
    """
    Hot-reload requirements data when REQUIREMENTS_DATA_PATH changes on disk.

    Returns True when a reload occurred, else False.
    """
    global _requirements, _requirements_mtime

    candidate_mtime = _data_file_mtime(REQUIREMENTS_DATA_PATH)
    if not force:
        if candidate_mtime is None:
            return False
        if _requirements_mtime is not None and candidate_mtime <= _requirements_mtime:
            return False

    with _requirements_lock:
        latest_mtime = _data_file_mtime(REQUIREMENTS_DATA_PATH)
        if not force:
            if latest_mtime is None:
                return False
            if _requirements_mtime is not None and latest_mtime <= _requirements_mtime:
                return False

        try:
            new_data = load_requirements(REQUIREMENTS_DATA_PATH)
        except Exception as exc:
            print(f"[WARN] Requirements reload failed; keeping previous dataset: {exc}", file=sys.stderr)
            return False

        _requirements = new_data
        _requirements_mtime = latest_mtime if latest_mtime is not None else candidate_mtime
        print(f"[OK] Reloaded requirements from {REQUIREMENTS_DATA_PATH}")
        return True


def _refresh_requirements_if_needed() -> None:
    try:
        _reload_requirements_if_changed()
    except Exception as exc:
        print(f"[WARN] Requirements reload check failed: {exc}", file=sys.stderr)


# ── Cached upstream lookups ───────────────────────────────────────────────────
def _geocode(address: str) -> dict:
    return cached(_upstream_cache(), geocode_key(address), lambda: _maps.geocode(address))


def _directions(origin, destination) -> dict:
    return cached(
        _upstream_cache(),
        directions_key(origin, destination),
        lambda: _maps.directions(origin, destination),
    )


def _search_classes(roster: str, q: str | None, subject: str | None) -> dict:
    if subject and not q:
        key = cornell_subject_key(subject, roster)
    else:
        key = cornell_search_key(f"{subject or ''}:{q or ''}", roster)
    return cached(_upstream_cache(), key, lambda: _cornell.search_classes(roster, q=q, subject=subject))


# -- Security headers ------------------------------------------------------
@app.before_request
def _start_request_timer():
    g._request_start_time = time.perf_counter()


@app.after_request
def _add_security_headers(response):
    response.headers["X-Frame-Options"] = "DENY"
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["Referrer-Policy"] = "same-origin"

    started = getattr(g, "_request_start_time", None)
    if started is not None:
        duration_ms = (time.perf_counter() - started) * 1000.0
        if duration_ms >= _SLOW_REQUEST_LOG_MS:
            endpoint = request.endpoint or "unknown"
            print(
                f"[SLOW] {request.method} {request.path} "
                f"endpoint={endpoint} status={response.status_code} duration_ms={duration_ms:.1f}"
            )
    return response


# -- Service guards ---------------------------------------------------------
def require_firestore(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if _db is None:
            return jsonify({"error": "Database service temporarily unavailable"}), 503
        return view(*args, **kwargs)
    return wrapper


def require_auth(view):
    """Verify the Firebase ID token in `Authorization: Bearer <token>`."""
    @wraps(view)
    def wrapper(*args, **kwargs):
        if _auth is None:
            return jsonify({"error": "Firebase not initialized"}), 503
        header = request.headers.get("Authorization", "")
        if not header.startswith("Bearer "):
            return jsonify({"error": "Unauthorized"}), 401
        token = header[len("Bearer "):].strip()
        try:
            decoded = _auth.verify_id_token(token)
        except Exception as exc:
            print(f"[AUTH] Token rejected: {exc}", file=sys.stderr)
            return jsonify({"error": "Invalid token"}), 401
        g.user_id = decoded["uid"]
        g.decoded_token = decoded
        return view(*args, **kwargs)
    return wrapper


# -- Health endpoint --------------------------------------------------------
@app.route("/api/health", methods=["GET"])
def health_endpoint():
    return jsonify({
        "status": "ok",
        "version": API_VERSION,
        "firebase_ready": _db is not None and _auth is not None,
        "maps_ready": _maps.configured,
        "requirements_loaded": _requirements is not None,
    })


# ── 500 handler ────────────────────────────────────────────────────────────────
@app.errorhandler(Exception)
def handle_unexpected_error(e):
    if isinstance(e, HTTPException):
        return jsonify({"error": e.description}), e.code
    print(f"[WARN] Unhandled error on {request.method} {request.path}: {e!r}", file=sys.stderr)
    return jsonify({"error": "An unexpected server error occurred."}), 500


# ── Cornell catalog proxy ─────────────────────────────────────────────────────
def _catalog_class(roster: str, subject: str, crse_id):
    """(class, None) from the cached subject search, or (None, error_response)."""
    try:
        payload = _search_classes(roster, None, subject.strip().upper())
    except CornellApiError:
        return None, (jsonify({"error": "Failed to fetch from Cornell API"}), 500)
    cls = find_class_in(payload, crse_id)
    if cls is None:
        return None, (jsonify({"error": "Class not found"}), 404)
    return cls, None


@app.route("/api/cornell/search", methods=["GET"])
def cornell_search():
    err, params = validate_catalog_search(request.args)
    if err:
        return jsonify({"error": err}), 400
    q, subject = resolve_search_terms(params["q"], params["subject"])
    try:
        return jsonify(_search_classes(params["roster"], q, subject))
    except CornellApiError:
        return jsonify({"error": "Failed to fetch from Cornell API"}), 500


@app.route("/api/cornell/subjects", methods=["GET"])
def cornell_subjects():
    err, params = validate_subjects_query(request.args)
    if err:
        return jsonify({"error": err}), 400
    roster = params["roster"]
    try:
        payload = cached(_upstream_cache(), cornell_subjects_key(roster), lambda: _cornell.get_subjects(roster))
    except CornellApiError:
        return jsonify({"error": "Failed to fetch subjects"}), 500
    return jsonify(payload)


@app.route("/api/cornell/class", methods=["GET"])
def cornell_class():
    """One catalog class plus its sections split into lectures / others."""
    err, params = validate_class_lookup(request.args)
    if err:
        return jsonify({"error": err}), 400
    cls, error = _catalog_class(params["roster"], params["subject"], params["crseId"])
    if error:
        return error
    return jsonify({
        "class": cls,
        "sections": categorize_sections(flatten_class_sections(cls)),
    })


# ── Maps proxy ────────────────────────────────────────────────────────────────
@app.route("/api/geocode", methods=["POST"])
def geocode_endpoint():
    limited = _rate_limited_response()
    if limited:
        return limited
    err, body = validate_geocode_body(request.get_json(force=True, silent=True))
    if err:
        return jsonify({"error": err}), 400
    try:
        return jsonify(_geocode(body["address"]))
    except MapsNotFound as exc:
        return jsonify({"error": str(exc)}), 404
    except MapsNotConfigured as exc:
        return jsonify({"error": str(exc)}), 500
    except MapsError:
        return jsonify({"error": "Failed to geocode address"}), 500


@app.route("/api/directions", methods=["POST"])
def directions_endpoint():
    limited = _rate_limited_response()
    if limited:
        return limited
    err, body = validate_directions_body(request.get_json(force=True, silent=True))
    if err:
        return jsonify({"error": err}), 400
    try:
        return jsonify(_directions(body["origin"], body["destination"]))
    except MapsNotFound as exc:
        return jsonify({"error": str(exc)}), 404
    except MapsNotConfigured as exc:
        return jsonify({"error": str(exc)}), 500
    except MapsError:
        return jsonify({"error": "Failed to get directions"}), 500


@app.route("/api/walking-check", methods=["POST"])
def walking_check_endpoint():
    limited = _rate_limited_response()
    if limited:
        return limited
    err, body = validate_walking_check_body(request.get_json(force=True, silent=True))
    if err:
        return jsonify({"error": err}), 400
    result = validate_course_walking_time(body["courses"], body["candidate"], _geocode, _directions)
    return jsonify(result)


# ── Auth ──────────────────────────────────────────────────────────────────────
@app.route("/api/auth/verify", methods=["POST"])
@require_auth
def auth_verify():
    return jsonify({"valid": True, "userId": g.user_id})


# ── Schedules ─────────────────────────────────────────────────────────────────
@app.route("/api/schedules", methods=["GET"])
@require_firestore
@require_auth
def get_schedules():
    err, params = validate_schedules_query(request.args)
    if err:
        return jsonify({"error": err}), 400
    try:
        schedules = list_schedules(_db, g.user_id, params["roster"])
    except Exception as exc:
        print(f"[WARN] Get schedules failed: {exc}", file=sys.stderr)
        return jsonify({"error": "Failed to get schedules"}), 500
    return jsonify({"schedules": schedules})


@app.route("/api/schedules", methods=["POST"])
@require_firestore
@require_auth
def create_schedule():
    err, body = validate_create_schedule_body(request.get_json(force=True, silent=True))
    if err:
        return jsonify({"error": err}), 400
    try:
        schedule = save_schedule(_db, g.user_id, body["roster"], body["courses"])
    except Exception as exc:
        print(f"[WARN] Create schedule failed: {exc}", file=sys.stderr)
        return jsonify({"error": "Failed to create schedule"}), 500
    return jsonify({"schedule": schedule})


def _load_owned_schedule(schedule_id: str):
    """(schedule, None) or (None, error_response) for the current user."""
    err, _ = validate_schedule_params(schedule_id, require_course=False)
    if err:
        return None, (jsonify({"error": err}), 400)
    try:
        return get_schedule(_db, g.user_id, schedule_id), None
    except ScheduleStoreError as exc:
        return None, (jsonify({"error": str(exc)}), exc.status_code)


@app.route("/api/schedules/<schedule_id>", methods=["GET"])
@require_firestore
@require_auth
def get_schedule_endpoint(schedule_id):
    schedule, error = _load_owned_schedule(schedule_id)
    if error:
        return error
    return jsonify({"schedule": schedule})


@app.route("/api/schedules/<schedule_id>/calendar", methods=["GET"])
@require_firestore
@require_auth
def schedule_calendar(schedule_id):
    schedule, error = _load_owned_schedule(schedule_id)
    if error:
        return error
    return jsonify({"calendar": build_calendar(schedule.get("courses") or [])})


@app.route("/api/schedules/<schedule_id>/routes", methods=["GET"])
@require_firestore
@require_auth
def schedule_routes(schedule_id):
    day = request.args.get("day", "")
    if day not in DAYS_OF_THE_WEEK:
        return jsonify({"error": f"day: Day must be one of {', '.join(DAYS_OF_THE_WEEK)}"}), 400
    schedule, error = _load_owned_schedule(schedule_id)
    if error:
        return error
    courses = MeetingGeocoder(_geocode).geocode_courses(schedule.get("courses") or [])
    return jsonify(build_day_routes(courses, day, _directions))


@app.route("/api/schedules/<schedule_id>/courses/<course_id>", methods=["PUT"])
@require_firestore
@require_auth
def update_course_endpoint(schedule_id, course_id):
    err, _ = validate_schedule_params(schedule_id, course_id)
    if err:
        return jsonify({"error": err}), 400
    err, body = validate_update_course_body(request.get_json(force=True, silent=True))
    if err:
        return jsonify({"error": err}), 400
    try:
        schedule = update_course(
            _db,
            g.user_id,
            schedule_id,
            course_id,
            enroll_group_index=body["enrollGroupIndex"],
            meetings=body["meetings"],
            selected_sections=body["selectedSections"],
        )
    except ScheduleStoreError as exc:
        return jsonify({"error": str(exc)}), exc.status_code
    except Exception as exc:
        print(f"[WARN] Update course failed: {exc}", file=sys.stderr)
        return jsonify({"error": "Failed to update course"}), 500
    return jsonify({"schedule": schedule})


@app.route("/api/schedules/<schedule_id>/courses/<course_id>", methods=["DELETE"])
@require_firestore
@require_auth
def delete_course_endpoint(schedule_id, course_id):
    err, _ = validate_schedule_params(schedule_id, course_id)
    if err:
        return jsonify({"error": err}), 400
    try:
        schedule = delete_course(_db, g.user_id, schedule_id, course_id)
    except ScheduleStoreError as exc:
        return jsonify({"error": str(exc)}), exc.status_code
    except Exception as exc:
        print(f"[WARN] Delete course failed: {exc}", file=sys.stderr)
        return jsonify({"error": "Failed to delete course"}), 500
    return jsonify({"schedule": schedule})


def _pick_sections(all_sections: list[dict], indices: list[int]) -> list[dict]:
    picked = []
    for idx in indices:
        if not (0 <= idx < len(all_sections)):
            raise IndexError("Class section not found")
        picked.append(all_sections[idx])
    return picked


def _section_entry(all_sections: list[dict], enroll_group_index: int, class_section_index: int) -> dict:
    return next(
        entry for entry in all_sections
        if entry["enrollGroupIndex"] == enroll_group_index
        and entry["classSectionIndex"] == class_section_index
    )


@app.route("/api/schedules/<schedule_id>/courses", methods=["POST"])
@require_firestore
@require_auth
def add_course_endpoint(schedule_id):
    """
    Add a catalog class to the schedule. Walking time to the neighbouring
    classes is checked first; a warning answers 409 unless `force` is set.
    """
    err, body = validate_add_course_body(request.get_json(force=True, silent=True))
    if err:
        return jsonify({"error": err}), 400
    schedule, error = _load_owned_schedule(schedule_id)
    if error:
        return error
    cls, error = _catalog_class(schedule.get("roster", ""), body["subject"], body["crseId"])
    if error:
        return error

    all_sections = flatten_class_sections(cls)
    course_id = f"{cls.get('crseId')}-{int(time.time() * 1000)}"
    try:
        course = to_scheduled_course(cls, body["enrollGroupIndex"], body["classSectionIndex"], course_id)
        additional = _pick_sections(all_sections, body["additionalSections"])
    except IndexError as exc:
        return jsonify({"error": str(exc)}), 400
    if additional:
        primary = _section_entry(all_sections, body["enrollGroupIndex"], body["classSectionIndex"])
        course["selectedSections"] = build_selected_sections(primary, additional)

    # Geocoded coordinates from the check stay on the copies.
    walking = validate_course_walking_time(
        copy.deepcopy(schedule.get("courses") or []), copy.deepcopy(course), _geocode, _directions,
    )
    if walking["hasWarning"] and not body["force"]:
        return jsonify({"error": walking["message"], "walking": walking}), 409

    try:
        schedule = add_course(_db, g.user_id, schedule_id, course)
    except ScheduleStoreError as exc:
        return jsonify({"error": str(exc)}), exc.status_code
    except Exception as exc:
        print(f"[WARN] Add course failed: {exc}", file=sys.stderr)
        return jsonify({"error": "Failed to add course"}), 500
    return jsonify({"schedule": schedule, "course": course, "walking": walking})


@app.route("/api/schedules/<schedule_id>/courses/<course_id>/sections", methods=["GET"])
@require_firestore
@require_auth
def course_sections(schedule_id, course_id):
    """Catalog sections of a scheduled course and which of them are selected."""
    schedule, error = _load_owned_schedule(schedule_id)
    if error:
        return error
    try:
        course = find_course(schedule, course_id)
    except ScheduleStoreError as exc:
        return jsonify({"error": str(exc)}), exc.status_code
    cls, error = _catalog_class(schedule.get("roster", ""), course.get("subject", ""), course.get("crseId"))
    if error:
        return error
    all_sections = flatten_class_sections(cls)
    return jsonify({
        "class": cls,
        "sections": categorize_sections(all_sections),
        "primaryIndex": find_primary_section_index(course, all_sections),
        "additionalIndices": get_selected_additional_indices(course, all_sections),
    })


@app.route("/api/schedules/<schedule_id>/courses/<course_id>/sections", methods=["PUT"])
@require_firestore
@require_auth
def select_course_sections(schedule_id, course_id):
    """Replace a course's selected sections by flattened section index."""
    err, body = validate_section_selection_body(request.get_json(force=True, silent=True))
    if err:
        return jsonify({"error": err}), 400
    schedule, error = _load_owned_schedule(schedule_id)
    if error:
        return error
    try:
        course = find_course(schedule, course_id)
    except ScheduleStoreError as exc:
        return jsonify({"error": str(exc)}), exc.status_code
    cls, error = _catalog_class(schedule.get("roster", ""), course.get("subject", ""), course.get("crseId"))
    if error:
        return error

    all_sections = flatten_class_sections(cls)
    try:
        primary, = _pick_sections(all_sections, [body["primaryIndex"]])
        additional = _pick_sections(all_sections, body["additionalIndices"])
    except IndexError as exc:
        return jsonify({"error": str(exc)}), 400
    try:
        schedule = update_course(
            _db,
            g.user_id,
            schedule_id,
            course_id,
            enroll_group_index=primary["enrollGroupIndex"],
            selected_sections=build_selected_sections(primary, additional),
        )
    except ScheduleStoreError as exc:
        return jsonify({"error": str(exc)}), exc.status_code
    except Exception as exc:
        print(f"[WARN] Update sections failed: {exc}", file=sys.stderr)
        return jsonify({"error": "Failed to update course"}), 500
    return jsonify({"schedule": schedule})


# ── Requirements lookups ──────────────────────────────────────────────────────
def _requirements_unavailable():
    _refresh_requirements_if_needed()
    if _requirements is None:
        return jsonify({"error": "Requirements data not loaded"}), 503
    return None


@app.route("/api/courses/search/by-id", methods=["GET"])
def search_course_by_id():
    unavailable = _requirements_unavailable()
    if unavailable:
        return unavailable
    err, params = validate_course_id_query(request.args)
    if err:
        return jsonify({"error": err}), 400
    results = search_by_id(_requirements, params["courseId"])
    return jsonify({"results": results, "count": len(results)})


@app.route("/api/courses/search/requirements", methods=["GET"])
def search_requirements_endpoint():
    unavailable = _requirements_unavailable()
    if unavailable:
        return unavailable
    err, params = validate_requirement_search(request.args)
    if err:
        return jsonify({"error": err}), 400
    results = search_requirements(_requirements, params["q"])
    return jsonify({"results": results, "count": len(results)})


@app.route("/api/courses/search/by-requirement", methods=["GET"])
def search_by_requirement():
    unavailable = _requirements_unavailable()
    if unavailable:
        return unavailable
    err, params = validate_requirement_name(request.args)
    if err:
        return jsonify({"error": err}), 400
    name = params["requirementName"]
    course_ids = courses_by_requirement(_requirements, name)
    results = [
        {
            "courseId": course_id,
            "requirementName": name,
            "requirementDescription": "",
            "college": "",
            "university": "",
        }
        for course_id in course_ids
    ]
    return jsonify({"results": results, "count": len(results)})


@app.route("/api/courses/requirements", methods=["GET"])
def list_requirements():
    unavailable = _requirements_unavailable()
    if unavailable:
        return unavailable
    return jsonify({"requirements": all_requirement_names(_requirements)})


@app.route("/api/courses/stats", methods=["GET"])
def requirements_stats_endpoint():
    unavailable = _requirements_unavailable()
    if unavailable:
        return unavailable
    return jsonify(requirements_stats(_requirements))

# -- API catch-all (405 or 404 for unrouted /api/* requests) -------------
# -- API catch-all (404 for unknown /api/* routes) -------------------
_API_METHODS = ["GET", "POST", "PUT", "DELETE", "PATCH"]


def _methods_routed_elsewhere(path: str) -> list[str]:
    """Methods that reach a real endpoint for `path` (the catch-all aside)."""
    adapter = app.url_map.bind_to_environ(request.environ)
    allowed = []
    for method in _API_METHODS:
        try:
            endpoint, _ = adapter.match(path, method=method)
        except HTTPException:
            continue
        if endpoint != "api_catch_all":
            allowed.append(method)
    return allowed


@app.route("/api/<path:rest>", methods=_API_METHODS)
def api_catch_all(rest):
    allowed = _methods_routed_elsewhere(request.path)
    if allowed:
        return (
            jsonify({"error": f"{request.method} not allowed on /api/{rest}"}),
            405,
            {"Allow": ", ".join(allowed)},
        )
    return jsonify({"error": f"/api/{rest} not found"}), 404


if __name__ == "__main__":
    port = _env_int("PORT", 8080)
    debug = os.environ.get("FLASK_DEBUG", "0") == "1"
    app.run(host="0.0.0.0", port=port, debug=debug)
