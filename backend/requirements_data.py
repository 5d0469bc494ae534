import json
import os

import pandas as pd

INDEX_COLUMNS = ["courseId", "requirementName", "requirementDescription", "college", "university"]
_SCOPES = ("university", "college")


def _iter_requirements(raw: dict):
    """Yield (scope, key, requirement) for university then college entries."""
    for scope in _SCOPES:
        for key, group in (raw.get(scope) or {}).items():
            for req in (group or {}).get("requirements") or []:
                if isinstance(req, dict):
                    yield scope, key, req


def _course_ids(requirement: dict):
    """Course ids across all slots; malformed slots are skipped."""
    slots = requirement.get("courses")
    if not isinstance(slots, list):
        return
    for slot in slots:
        if not isinstance(slot, list):
            continue
        for course_id in slot:
            if isinstance(course_id, bool):
                continue
            if isinstance(course_id, int):
                yield course_id


def build_index(raw: dict) -> pd.DataFrame:
    rows = []
    for scope, key, req in _iter_requirements(raw):
        for course_id in _course_ids(req):
            rows.append({
                "courseId": course_id,
                "requirementName": req.get("name", ""),
                "requirementDescription": req.get("description", ""),
                "college": key if scope == "college" else "",
                "university": key if scope == "university" else "",
            })
    if not rows:
        return pd.DataFrame(columns=INDEX_COLUMNS)
    df = pd.DataFrame(rows, columns=INDEX_COLUMNS)
    df["courseId"] = df["courseId"].astype(int)
    return df


def load_requirements(path: str) -> dict:
    """Load decorated-requirements JSON. Raises on file/JSON errors."""
    if not os.path.exists(path):
        raise FileNotFoundError(f"Course data file not found at {path}")
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    if not isinstance(raw, dict):
        raise ValueError("Requirements file must contain a JSON object")

    requirements = [req for _, _, req in _iter_requirements(raw)]
    index_df = build_index(raw)
    print(
        f"[OK] Requirements loaded: {len(requirements)} requirement(s), "
        f"{index_df['courseId'].nunique()} unique course(s) indexed"
    )
    return {"raw": raw, "requirements": requirements, "index_df": index_df}


def search_by_id(data: dict, course_id: int) -> list[dict]:
    df = data["index_df"]
    hits = df[df["courseId"] == int(course_id)]
    return [
        {**row, "courseId": int(row["courseId"])}
        for row in hits.to_dict(orient="records")
    ]


def search_requirements(data: dict, query: str) -> list[dict]:
    """Requirements whose name or description contains `query` (any case)."""
    needle = str(query).lower()
    return [
        req for req in data["requirements"]
        if needle in str(req.get("name", "")).lower()
        or needle in str(req.get("description", "")).lower()
    ]


def courses_by_requirement(data: dict, name: str) -> list[int]:
    seen = []
    for req in data["requirements"]:
        if req.get("name") != name:
            continue
        for course_id in _course_ids(req):
            if course_id not in seen:
                seen.append(course_id)
    return seen


def all_requirement_names(data: dict) -> list[str]:
    return sorted({str(req.get("name", "")) for req in data["requirements"]})


def stats(data: dict) -> dict:
    raw = data["raw"]
    return {
        "totalUniqueCourses": int(data["index_df"]["courseId"].nunique()),
        "universities": list((raw.get("university") or {}).keys()),
        "colleges": list((raw.get("college") or {}).keys()),
    }
