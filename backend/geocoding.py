import sys

from maps_client import MapsError


def building_name(meeting: dict) -> str:
    return (meeting.get("bldgDescr") or meeting.get("facilityDescr") or "").strip()


class MeetingGeocoder:
    """
    Attaches {lat, lng} coordinates to schedule meetings, one geocode call
    per distinct building. Meetings that already carry coordinates, or that
    have no building, are returned untouched.
    """

    def __init__(self, geocode_fn):
        self._geocode = geocode_fn
        self._cache: dict[str, dict] = {}

    def geocode_meeting(self, meeting: dict) -> dict:
        if meeting.get("coordinates"):
            return meeting
        name = building_name(meeting)
        if not name:
            return meeting
        if name not in self._cache:
            try:
                result = self._geocode(name)
            except MapsError as exc:
                print(f"[WARN] Failed to geocode {name!r}: {exc}", file=sys.stderr)
                return meeting
            self._cache[name] = {"lat": result["lat"], "lng": result["lng"]}
        return {**meeting, "coordinates": dict(self._cache[name])}

    def geocode_course(self, course: dict) -> dict:
        out = {**course, "meetings": [self.geocode_meeting(m) for m in course.get("meetings", [])]}
        if course.get("selectedSections"):
            out["selectedSections"] = [
                {**section, "meetings": [self.geocode_meeting(m) for m in section.get("meetings", [])]}
                for section in course["selectedSections"]
            ]
        return out

    def geocode_courses(self, courses: list[dict]) -> list[dict]:
        return [self.geocode_course(c) for c in courses]

    def clear(self) -> None:
        self._cache.clear()
