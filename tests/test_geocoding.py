from geocoding import MeetingGeocoder, building_name
from maps_client import MapsNotFound


class CountingGeocoder:
    def __init__(self, known):
        self.known = known
        self.calls = []

    def __call__(self, address):
        self.calls.append(address)
        if address not in self.known:
            raise MapsNotFound("Address not found")
        lat, lng = self.known[address]
        return {"lat": lat, "lng": lng, "formattedAddress": address}


def _meeting(bldg, facility="", **extra):
    return {"pattern": "MWF", "timeStart": "10:10AM", "timeEnd": "11:00AM",
            "bldgDescr": bldg, "facilityDescr": facility, "instructors": [], **extra}


def test_building_name_falls_back_to_facility():
    assert building_name(_meeting("", "Barton Hall")) == "Barton Hall"
    assert building_name(_meeting("Gates Hall", "G01")) == "Gates Hall"


def test_geocodes_each_building_once():
    fn = CountingGeocoder({"Gates Hall": (42.4449, -76.4813)})
    geocoder = MeetingGeocoder(fn)
    first = geocoder.geocode_meeting(_meeting("Gates Hall"))
    second = geocoder.geocode_meeting(_meeting("Gates Hall"))
    assert first["coordinates"] == {"lat": 42.4449, "lng": -76.4813}
    assert second["coordinates"] == first["coordinates"]
    assert fn.calls == ["Gates Hall"]


def test_existing_coordinates_are_kept():
    fn = CountingGeocoder({})
    meeting = _meeting("Gates Hall", coordinates={"lat": 1.0, "lng": 2.0})
    assert MeetingGeocoder(fn).geocode_meeting(meeting) is meeting
    assert fn.calls == []


def test_failure_returns_meeting_unchanged():
    fn = CountingGeocoder({})
    meeting = _meeting("Nowhere Hall")
    result = MeetingGeocoder(fn).geocode_meeting(meeting)
    assert result is meeting
    assert "coordinates" not in result


def test_meeting_without_building_is_skipped():
    fn = CountingGeocoder({})
    MeetingGeocoder(fn).geocode_meeting(_meeting("", ""))
    assert fn.calls == []


def test_geocode_course_covers_selected_sections():
    fn = CountingGeocoder({"Statler Hall": (42.446, -76.482), "Hollister Hall": (42.444, -76.485)})
    course = {
        "id": "c1",
        "meetings": [_meeting("Statler Hall")],
        "selectedSections": [
            {"section": "001", "meetings": [_meeting("Statler Hall")]},
            {"section": "201", "meetings": [_meeting("Hollister Hall")]},
        ],
    }
    out = MeetingGeocoder(fn).geocode_courses([course])[0]
    assert out["meetings"][0]["coordinates"]["lat"] == 42.446
    assert out["selectedSections"][1]["meetings"][0]["coordinates"]["lng"] == -76.485
    assert "coordinates" not in course["meetings"][0]
    assert sorted(fn.calls) == ["Hollister Hall", "Statler Hall"]


def test_clear_forgets_cached_buildings():
    fn = CountingGeocoder({"Gates Hall": (42.4449, -76.4813)})
    geocoder = MeetingGeocoder(fn)
    geocoder.geocode_meeting(_meeting("Gates Hall"))
    geocoder.clear()
    geocoder.geocode_meeting(_meeting("Gates Hall"))
    assert fn.calls == ["Gates Hall", "Gates Hall"]
