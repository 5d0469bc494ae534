"""
Data-quality check for decorated-requirements.json.

Reports structural problems that the server would silently skip (malformed
course slots, requirements without a name) and prints an index summary.
Importable for tests and runnable as a standalone CLI.

Usage:
    python scripts/validate_requirements.py
    python scripts/validate_requirements.py --path path/to/decorated-requirements.json
"""

import argparse
import json
import os
import sys

import pandas as pd

REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_PATH = os.path.join(REPO_ROOT, "data", "decorated-requirements.json")
SCOPES = ("university", "college")


# ── Validation result ─────────────────────────────────────────────────────────

class ValidationResult:
    """Collects errors and warnings for one requirements file."""

    def __init__(self, path: str):
        self.path = path
        self.errors: list[str] = []
        self.warnings: list[str] = []
        self.course_rows: list[dict] = []

    def error(self, msg: str) -> None:
        self.errors.append(msg)

    def warn(self, msg: str) -> None:
        self.warnings.append(msg)

    @property
    def passed(self) -> bool:
        return len(self.errors) == 0

    def summary(self) -> str:
        status = "PASS" if self.passed else "FAIL"
        lines = [f"[{status}] {self.path}"]
        for e in self.errors:
            lines.append(f"  [ERROR] {e}")
        for w in self.warnings:
            lines.append(f"  [WARN]  {w}")
        if self.course_rows:
            df = pd.DataFrame(self.course_rows)
            lines.append(
                f"  {df['courseId'].nunique()} unique course(s) across "
                f"{df['requirement'].nunique()} requirement name(s)."
            )
            per_scope = df.groupby("scope")["courseId"].nunique().to_dict()
            for scope in SCOPES:
                lines.append(f"    {scope}: {per_scope.get(scope, 0)} course(s)")
        if self.passed and not self.warnings:
            lines.append("  All checks passed.")
        return "\n".join(lines)


# ── Checks ────────────────────────────────────────────────────────────────────

def check_requirement(scope: str, key: str, idx: int, req, result: ValidationResult) -> None:
    where = f"{scope}.{key}.requirements[{idx}]"
    if not isinstance(req, dict):
        result.error(f"{where} is not an object.")
        return
    name = req.get("name")
    if not isinstance(name, str) or not name.strip():
        result.error(f"{where} has no name.")
        name = ""
    if not isinstance(req.get("description"), str):
        result.warn(f"{where} ('{name}') has no description.")

    slots = req.get("courses")
    if not isinstance(slots, list):
        result.warn(f"{where} ('{name}') courses is not a list; it will not be indexed.")
        return
    for slot_idx, slot in enumerate(slots):
        if not isinstance(slot, list):
            result.warn(f"{where} ('{name}') slot {slot_idx} is not a list; skipped.")
            continue
        for course_id in slot:
            if isinstance(course_id, bool) or not isinstance(course_id, int):
                result.error(f"{where} ('{name}') slot {slot_idx} has non-integer course id {course_id!r}.")
                continue
            result.course_rows.append({"scope": scope, "requirement": name, "courseId": course_id})


def validate_requirements(raw, path: str = "<memory>") -> ValidationResult:
    result = ValidationResult(path)
    if not isinstance(raw, dict):
        result.error("Top level must be a JSON object.")
        return result
    for scope in SCOPES:
        groups = raw.get(scope)
        if groups is None:
            result.warn(f"Missing '{scope}' section.")
            continue
        if not isinstance(groups, dict):
            result.error(f"'{scope}' must be an object keyed by {scope} code.")
            continue
        for key, group in groups.items():
            reqs = (group or {}).get("requirements") if isinstance(group, dict) else None
            if not isinstance(reqs, list):
                result.error(f"{scope}.{key} has no requirements list.")
                continue
            for idx, req in enumerate(reqs):
                check_requirement(scope, key, idx, req, result)
    return result


def validate_file(path: str) -> ValidationResult:
    with open(path, encoding="utf-8") as f:
        raw = json.load(f)
    return validate_requirements(raw, path)


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Validate a decorated-requirements.json file.")
    parser.add_argument("--path", default=DEFAULT_PATH, help="Path to the requirements JSON")
    args = parser.parse_args(argv)

    if not os.path.exists(args.path):
        print(f"[ERROR] File not found: {args.path}", file=sys.stderr)
        return 1
    try:
        result = validate_file(args.path)
    except json.JSONDecodeError as exc:
        print(f"[ERROR] Invalid JSON in {args.path}: {exc}", file=sys.stderr)
        return 1
    print(result.summary())
    return 0 if result.passed else 1


if __name__ == "__main__":
    raise SystemExit(main())
