import re

# Matches: CS 2110, cs2110, CS-2110, INFO 1300, BIOEE 1610, etc.
CANONICAL = re.compile(r'^([A-Za-z]{2,6})\s*[-]?\s*(\d{4})$')
SUBJECT = re.compile(r'^[A-Za-z]{2,6}$')


def normalize_code(raw: str) -> str | None:
    """
    Normalizes a course code to canonical 'SUBJ NNNN' format.
    Handles: 'cs2110', 'CS-2110', 'CS 2110', 'BIOEE 1610'
    Returns None if the string cannot be parsed as a course code.
    """
    if not raw or not raw.strip():
        return None
    m = CANONICAL.match(raw.strip())
    if m:
        return f"{m.group(1).upper()} {m.group(2)}"
    return None


def split_code(raw: str) -> tuple[str, str] | None:
    """'cs2110' -> ('CS', '2110'); None when raw is not a course code."""
    code = normalize_code(raw)
    if code is None:
        return None
    subject, number = code.split(" ", 1)
    return subject, number


def normalize_subject(raw: str) -> str | None:
    if not raw or not SUBJECT.match(raw.strip()):
        return None
    return raw.strip().upper()


def resolve_search_terms(q: str | None, subject: str | None) -> tuple[str | None, str | None]:
    """
    Turn free-text catalog search input into (q, subject) upstream params.

    The roster API scopes class searches by subject, so a query that is
    itself a course code ('cs2110') becomes subject='CS', q='2110' when no
    subject was given. Other queries pass through trimmed.
    """
    q = (q or "").strip() or None
    subject = normalize_subject(subject) or ((subject or "").strip() or None)
    if q and not subject:
        parts = split_code(q)
        if parts:
            return parts[1], parts[0]
    return q, subject
