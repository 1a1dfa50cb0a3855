"""
Unit tests for TripQuery.py, TripPlan.py and itinerary_text.py
"""
import pytest

from errors import ValidationError
from itinerary_text import split_itinerary
from TripPlan import LocationEntry, PlaceReference, TripPlan
from TripQuery import LatLng, TripQuery


class TestTripQuery:
    def test_complete_query_validates(self, query):
        query.validate()
        assert query.missing_fields() == []

    @pytest.mark.parametrize("field", ["source", "destination", "interests"])
    def test_blank_field_rejected(self, query, field):
        setattr(query, field, "")
        assert query.missing_fields() == [field]
        with pytest.raises(ValidationError, match="Please fill in all fields."):
            query.validate()

    @pytest.mark.parametrize("field", ["source", "destination", "interests"])
    def test_whitespace_field_accepted(self, query, field):
        setattr(query, field, " ")
        assert query.missing_fields() == []
        query.validate()

    def test_location_hint(self, query, located_query):
        assert query.location_hint() == ""
        assert "latitude 37.77, longitude -122.42" in located_query.location_hint()

    def test_round_trips_through_dict(self, located_query):
        restored = TripQuery.from_dict(located_query.to_dict())
        assert restored.user_location == LatLng(37.77, -122.42)


class TestLocationEntry:
    def _entry(self):
        return LocationEntry(place=PlaceReference("https://maps/1", "Mystery Spot"))

    def test_starts_idle(self):
        entry = self._entry()
        assert entry.image_loading is False and entry.image_url is None
        assert entry.title == "Mystery Spot"

    def test_loading_then_settled_with_image(self):
        entry = self._entry()
        assert entry.start_loading()
        assert entry.settle("data:image/png;base64,AA")
        assert entry.image_loading is False
        assert entry.image_url == "data:image/png;base64,AA"

    def test_cannot_reload_once_imaged(self):
        entry = self._entry()
        entry.start_loading()
        entry.settle("data:x")
        assert entry.start_loading() is False
        assert entry.image_loading is False

    def test_settle_requires_loading(self):
        entry = self._entry()
        assert entry.settle("data:x") is False
        assert entry.image_url is None

    def test_camel_case_json(self):
        data = self._entry().to_dict()
        assert set(data) == {"place", "id", "imageUrl", "imageLoading"}


class TestTripPlan:
    def test_from_places_keeps_order_and_unique_ids(self):
        places = [PlaceReference("u1", "A"), PlaceReference("u2", "A"), PlaceReference("u3", "C")]
        plan = TripPlan.from_places("**A**", places, generation=3)
        assert [e.place for e in plan.locations] == places
        assert len({e.id for e in plan.locations}) == 3
        assert plan.generation == 3

    def test_entry_lookup_by_id(self):
        plan = TripPlan.from_places("t", [PlaceReference("u1", "A"), PlaceReference("u2", "B")])
        target = plan.locations[1]
        assert plan.entry(target.id) is target
        assert plan.entry("missing") is None


class TestSplitItinerary:
    def test_headings_and_body(self):
        text = "Intro line.\n**Mystery Spot**\nA wonky cabin.\n**Madonna Inn**\nPink."
        assert split_itinerary(text) == [
            {"kind": "body", "text": "Intro line."},
            {"kind": "heading", "text": "Mystery Spot"},
            {"kind": "body", "text": "A wonky cabin."},
            {"kind": "heading", "text": "Madonna Inn"},
            {"kind": "body", "text": "Pink."},
        ]

    def test_plain_text_is_single_body(self):
        assert split_itinerary("Just drive.") == [{"kind": "body", "text": "Just drive."}]

    def test_non_greedy_bold_runs(self):
        sections = split_itinerary("**A** and **B**")
        assert [s["kind"] for s in sections] == ["heading", "body", "heading"]

    def test_empty_and_none(self):
        assert split_itinerary("") == []
        assert split_itinerary(None) == []

    def test_empty_bold_run_dropped(self):
        assert split_itinerary("****") == []
