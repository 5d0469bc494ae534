"""
Walking-time validation and per-day map routes, driven by fake geocode /
directions callables so no network is involved.
"""

import pytest

from maps_client import MapsNotFound, MapsUpstreamError
from walking_time import (
    ROUTE_COLOR,
    build_day_routes,
    check_walking_time,
    find_adjacent_courses,
    find_day_meeting,
    get_courses_for_day,
    get_meetings_for_day,
    minutes_to_time,
    parse_time,
    time_to_minutes,
    validate_course_walking_time,
)

BUILDINGS = {
    "Gates Hall": {"lat": 42.4450, "lng": -76.4810},
    "Malott Hall": {"lat": 42.4480, "lng": -76.4800},
    "Rockefeller Hall": {"lat": 42.4490, "lng": -76.4820},
}

# Reference polyline from the Google format docs; three points.
POLYLINE = "_p~iF~ps|U_ulLnnqC_mqNvxq`@"


def _meeting(pattern, start, end, bldg, **extra):
    return {
        "pattern": pattern,
        "timeStart": start,
        "timeEnd": end,
        "bldgDescr": bldg,
        "facilityDescr": "",
        "instructors": [],
        **extra,
    }


def _course(course_id, subject, nbr, meetings, **extra):
    return {
        "id": course_id,
        "subject": subject,
        "catalogNbr": nbr,
        "title": f"{subject} {nbr}",
        "ssrComponent": "LEC",
        "meetings": meetings,
        **extra,
    }


class FakeMaps:
    """Geocodes from BUILDINGS; walking duration in seconds per building pair."""

    def __init__(self, durations=None, fail_geocode=(), fail_directions=False):
        self.durations = durations or {}
        self.fail_geocode = set(fail_geocode)
        self.fail_directions = fail_directions
        self.geocode_calls = []
        self.directions_calls = []

    def _name(self, point):
        for name, coords in BUILDINGS.items():
            if coords == point:
                return name
        return None

    def geocode(self, address):
        self.geocode_calls.append(address)
        if address in self.fail_geocode or address not in BUILDINGS:
            raise MapsNotFound("Address not found")
        return {**BUILDINGS[address], "formattedAddress": address}

    def directions(self, origin, destination):
        self.directions_calls.append((origin, destination))
        if self.fail_directions:
            raise MapsUpstreamError("OVER_QUERY_LIMIT")
        key = (self._name(origin), self._name(destination))
        return {"distance": 400, "duration": self.durations.get(key, 300), "polyline": POLYLINE, "steps": []}


@pytest.fixture
def day_courses():
    cs = _course("a", "CS", "2110", [_meeting("MWF", "09:05AM", "09:55AM", "Gates Hall")])
    math = _course("b", "MATH", "1920", [_meeting("MW", "10:10AM", "11:00AM", "Malott Hall")])
    phys = _course("c", "PHYS", "2213", [_meeting("M", "11:15AM", "12:05PM", "Rockefeller Hall")])
    return cs, math, phys


class TestTimeHelpers:
    def test_parse_24_hour(self):
        assert parse_time("10:10") == (10, 10)

    def test_parse_catalog_form(self):
        assert parse_time("02:30PM") == (14, 30)

    def test_parse_invalid(self):
        with pytest.raises(ValueError):
            parse_time("TBA")

    def test_round_trip_minutes(self):
        assert time_to_minutes(parse_time("13:45")) == 825
        assert minutes_to_time(605) == (10, 5)


class TestDayFiltering:
    def test_courses_for_day(self, day_courses):
        cs, math, phys = day_courses
        assert get_courses_for_day([cs, math, phys], "Friday") == [cs]
        assert get_courses_for_day([cs, math, phys], "Tuesday") == []

    def test_meetings_prefer_selected_sections(self):
        course = _course("x", "CS", "2110", [_meeting("MWF", "10:10AM", "11:00AM", "Gates Hall")],
                         selectedSections=[{"meetings": [_meeting("TR", "10:10AM", "11:00AM", "Gates Hall")]}])
        assert get_meetings_for_day(course, "Monday") == []
        assert len(get_meetings_for_day(course, "Tuesday")) == 1


class TestFindAdjacentCourses:
    def test_previous_and_next(self, day_courses):
        cs, math, phys = day_courses
        previous, following = find_adjacent_courses([phys, cs], "Monday", "10:10AM")
        assert previous is cs
        assert following is phys

    def test_overlapping_course_is_neither(self, day_courses):
        cs, math, phys = day_courses
        previous, following = find_adjacent_courses([cs, math, phys], "Monday", "10:30AM")
        assert previous is cs
        assert following is phys

    def test_none_when_alone(self, day_courses):
        cs, _, _ = day_courses
        assert find_adjacent_courses([cs], "Tuesday", "10:10AM") == (None, None)


class TestCheckWalkingTime:
    def test_insufficient_next_gap(self, day_courses):
        cs, math, phys = day_courses
        maps = FakeMaps(durations={("Malott Hall", "Rockefeller Hall"): 901})
        result = check_walking_time(cs, math, phys, "Monday", maps.geocode, maps.directions)
        assert result == {
            "insufficient": True,
            "message": (
                "Insufficient time between MATH 1920 and PHYS 2213. "
                "Walking time: 16 minutes, available time: 15 minutes."
            ),
        }
        # Next class is checked first; no need to look at the previous one.
        assert len(maps.directions_calls) == 1

    def test_walk_equal_to_gap_is_fine(self, day_courses):
        cs, math, phys = day_courses
        maps = FakeMaps(durations={("Malott Hall", "Rockefeller Hall"): 900})
        result = check_walking_time(None, math, phys, "Monday", maps.geocode, maps.directions)
        assert result["insufficient"] is False

    def test_insufficient_previous_gap(self, day_courses):
        cs, math, phys = day_courses
        maps = FakeMaps(durations={("Gates Hall", "Malott Hall"): 16 * 60})
        result = check_walking_time(cs, math, None, "Monday", maps.geocode, maps.directions)
        assert result["insufficient"] is True
        assert result["message"].startswith("Insufficient time between CS 2110 and MATH 1920.")

    def test_coordinates_cached_on_meetings(self, day_courses):
        cs, math, phys = day_courses
        maps = FakeMaps()
        check_walking_time(cs, math, phys, "Monday", maps.geocode, maps.directions)
        assert math["meetings"][0]["coordinates"] == BUILDINGS["Malott Hall"]
        assert maps.geocode_calls.count("Malott Hall") == 1

    def test_geocode_failure_allows_course(self, day_courses):
        cs, math, phys = day_courses
        maps = FakeMaps(durations={("Malott Hall", "Rockefeller Hall"): 5000}, fail_geocode={"Rockefeller Hall"})
        result = check_walking_time(None, math, phys, "Monday", maps.geocode, maps.directions)
        assert result == {"insufficient": False, "message": None}

    def test_directions_failure_allows_course(self, day_courses):
        cs, math, phys = day_courses
        maps = FakeMaps(fail_directions=True)
        result = check_walking_time(cs, math, phys, "Monday", maps.geocode, maps.directions)
        assert result["insufficient"] is False

    def test_unmeasurable_next_walk_skips_previous_check(self, day_courses):
        cs, math, _ = day_courses
        unknown = _course("d", "ECON", "1110", [_meeting("M", "11:15AM", "12:05PM", "Nowhere Hall")])
        maps = FakeMaps(durations={("Gates Hall", "Malott Hall"): 1800})
        result = check_walking_time(cs, math, unknown, "Monday", maps.geocode, maps.directions)
        assert result == {"insufficient": False, "message": None}
        assert maps.directions_calls == []

    def test_directions_failure_on_next_walk_skips_previous_check(self, day_courses):
        cs, math, phys = day_courses
        maps = FakeMaps(durations={("Gates Hall", "Malott Hall"): 1800}, fail_directions=True)
        result = check_walking_time(cs, math, phys, "Monday", maps.geocode, maps.directions)
        assert result == {"insufficient": False, "message": None}
        assert len(maps.directions_calls) == 1

    def test_non_positive_gap_not_checked(self):
        first = _course("a", "CS", "2110", [_meeting("M", "10:10AM", "11:00AM", "Gates Hall")])
        second = _course("b", "MATH", "1920", [_meeting("M", "11:00AM", "11:50AM", "Malott Hall")])
        maps = FakeMaps(durations={("Malott Hall", "Gates Hall"): 5000})
        result = check_walking_time(None, second, first, "Monday", maps.geocode, maps.directions)
        assert result["insufficient"] is False
        assert maps.directions_calls == []

    def test_current_not_meeting_that_day(self, day_courses):
        cs, math, phys = day_courses
        maps = FakeMaps()
        assert check_walking_time(cs, phys, None, "Wednesday", maps.geocode, maps.directions)["insufficient"] is False


class TestValidateCourseWalkingTime:
    def test_reports_first_warning_and_all_days(self, day_courses):
        cs, math, phys = day_courses
        maps = FakeMaps(durations={("Malott Hall", "Rockefeller Hall"): 1200})
        result = validate_course_walking_time([cs, phys], math, maps.geocode, maps.directions)
        assert result["hasWarning"] is True
        assert "MATH 1920 and PHYS 2213" in result["message"]
        assert [d["day"] for d in result["days"]] == ["Monday", "Wednesday"]
        monday, wednesday = result["days"]
        assert monday["insufficient"] is True
        assert monday["previous"] == "CS 2110"
        assert monday["next"] == "PHYS 2213"
        assert wednesday["insufficient"] is False
        assert wednesday["next"] is None

    def test_no_warning(self, day_courses):
        cs, math, phys = day_courses
        maps = FakeMaps()
        result = validate_course_walking_time([cs, phys], math, maps.geocode, maps.directions)
        assert result["hasWarning"] is False
        assert result["message"] == ""

    def test_candidate_already_in_schedule_is_ignored(self, day_courses):
        cs, math, phys = day_courses
        maps = FakeMaps()
        result = validate_course_walking_time([cs, math], math, maps.geocode, maps.directions)
        assert result["days"][0]["next"] is None


class TestBuildDayRoutes:
    def _geocoded(self, course):
        for meeting in course["meetings"]:
            if meeting["bldgDescr"] in BUILDINGS:
                meeting["coordinates"] = dict(BUILDINGS[meeting["bldgDescr"]])
        return course

    def test_routes_between_consecutive_stops(self, day_courses):
        cs, math, phys = (self._geocoded(c) for c in day_courses)
        maps = FakeMaps()
        result = build_day_routes([phys, cs, math], "Monday", maps.directions)
        assert [s["courseCode"] for s in result["stops"]] == ["CS 2110", "MATH 1920", "PHYS 2213"]
        assert [(r["fromCourse"], r["toCourse"]) for r in result["routes"]] == [
            ("CS 2110", "MATH 1920"),
            ("MATH 1920", "PHYS 2213"),
        ]
        assert all(r["color"] == ROUTE_COLOR == "#666666" for r in result["routes"])
        assert len(result["routes"][0]["path"]) == 3
        assert result["tbaCourses"] == []

    def test_tba_and_off_campus_stops(self, day_courses):
        cs, math, _ = (self._geocoded(c) for c in day_courses)
        tba = _course("t", "ENGL", "1105", [_meeting("M", "01:25PM", "02:15PM", "", displayLocation="TBA")])
        far = _course("f", "HIST", "1000", [
            _meeting("M", "03:00PM", "03:50PM", "Downtown", coordinates={"lat": 40.7, "lng": -74.0}),
        ])
        maps = FakeMaps()
        result = build_day_routes([cs, math, tba, far], "Monday", maps.directions)
        assert result["tbaCourses"] == [{"courseCode": "ENGL 1105"}]
        assert [(r["fromCourse"], r["toCourse"]) for r in result["routes"]] == [("CS 2110", "MATH 1920")]

    def test_short_paths_are_dropped(self, day_courses):
        cs, math, _ = (self._geocoded(c) for c in day_courses)

        def one_point(origin, destination):
            return {"distance": 1, "duration": 1, "polyline": "_p~iF~ps|U", "steps": []}

        assert build_day_routes([cs, math], "Monday", one_point)["routes"] == []

    def test_directions_failure_skips_route(self, day_courses):
        cs, math, _ = (self._geocoded(c) for c in day_courses)
        maps = FakeMaps(fail_directions=True)
        result = build_day_routes([cs, math], "Monday", maps.directions)
        assert result["routes"] == []
        assert len(result["stops"]) == 2

    def test_find_day_meeting_prefers_geocoded_section(self):
        section_meeting = _meeting("M", "02:30PM", "03:20PM", "Malott Hall", coordinates=BUILDINGS["Malott Hall"])
        course = _course("x", "CS", "2110", [_meeting("M", "10:10AM", "11:00AM", "Gates Hall")],
                         selectedSections=[{"meetings": [section_meeting]}])
        assert find_day_meeting(course, "Monday") is section_meeting
