"""Tests for the individual normalization stages."""

import pytest

from availability_scraper.normalizers.date_consistency import fix_date_consistency
from availability_scraper.normalizers.date_formatter import format_dates
from availability_scraper.normalizers.href_cleaner import clean_hrefs, is_valid_href
from availability_scraper.normalizers.location_mapper import extract_location_id, map_locations
from availability_scraper.normalizers.name_cleaner import clean_name, clean_names
from availability_scraper.utils.date_utils import extract_iso_date, long_format

from conftest import slot_href


class TestHrefCleaner:
    def test_drops_missing_and_placeholder_hrefs(self):
        """Test that slots without a bookable href are removed."""
        data = {
            "1": {
                "name": "A",
                "slots": [
                    {"href": slot_href("2025-03-10")},
                    {"href": "#"},
                    {"href": ""},
                    {"time": "9:00 AM"},
                    {"href": "  #  "},
                ],
            }
        }

        stats = clean_hrefs(data)

        assert [s["href"] for s in data["1"]["slots"]] == [slot_href("2025-03-10")]
        assert stats["slots_removed"] == 4

    def test_wraps_single_slot_object(self):
        data = {"1": {"name": "A", "slots": {"href": slot_href("2025-03-10")}}}
        clean_hrefs(data)
        assert isinstance(data["1"]["slots"], list)
        assert len(data["1"]["slots"]) == 1

    def test_missing_slots_become_empty_list(self):
        data = {"1": {"name": "A", "status": "no_appointments"}}
        clean_hrefs(data)
        assert data["1"]["slots"] == []

    def test_defaults_status_but_keeps_booked(self):
        data = {
            "1": {
                "name": "A",
                "slots": [
                    {"href": slot_href("2025-03-10")},
                    {"href": slot_href("2025-03-11"), "status": "booked"},
                ],
            }
        }
        clean_hrefs(data)
        assert [s["status"] for s in data["1"]["slots"]] == ["listed", "booked"]

    def test_backfills_missing_name(self):
        data = {"42": {"slots": []}, "43": {"name": "", "slots": []}}
        stats = clean_hrefs(data)
        assert data["42"]["name"] == "Clinician 42"
        assert data["43"]["name"] == "Clinician 43"
        assert stats["names_backfilled"] == 2

    @pytest.mark.parametrize("href,valid", [
        ("https://x/?timeSlot=2025-03-10T09:00", True),
        ("#", False),
        ("", False),
        (None, False),
        (12, False),
    ])
    def test_is_valid_href(self, href, valid):
        assert is_valid_href(href) is valid


class TestLocationMapper:
    def test_maps_known_location_codes(self):
        """Test that slot locations resolve from the href code."""
        data = {
            "1": {
                "name": "A",
                "slots": [
                    {"href": slot_href("2025-03-10", location="250637")},
                    {"href": slot_href("2025-03-10", "10:00", "172794")},
                    {"href": slot_href("2025-03-11", location="250637")},
                ],
            }
        }

        stats = map_locations(data)

        slots = data["1"]["slots"]
        assert slots[0]["locationId"] == "250637"
        assert slots[0]["location"] == "Main Office 1"
        assert slots[1]["location"] == "Telehealth"
        assert data["1"]["locations"] == [
            {"id": "250637", "name": "Main Office 1"},
            {"id": "172794", "name": "Telehealth"},
        ]
        assert stats["locations_added"] == 3

    def test_unknown_code_keeps_id_without_name(self):
        data = {"1": {"name": "A", "slots": [{"href": slot_href("2025-03-10", location="999999")}]}}

        stats = map_locations(data)

        slot = data["1"]["slots"][0]
        assert slot["locationId"] == "999999"
        assert "location" not in slot
        assert data["1"]["locations"] == []
        assert stats["unknown_codes"] == 1

    def test_reverse_lookup_by_name(self):
        data = {"1": {"name": "A", "slots": [{"href": "https://x/?timeSlot=2025-03-10T09:00", "location": "Telehealth"}]}}
        map_locations(data)
        assert data["1"]["slots"][0]["locationId"] == "172794"
        assert data["1"]["locations"] == [{"id": "172794", "name": "Telehealth"}]

    def test_locations_recomputed_from_current_slots(self):
        """Test that stale locations are replaced, never accumulated."""
        data = {
            "1": {
                "name": "A",
                "slots": [{"href": slot_href("2025-03-10", location="232862")}],
                "locations": [{"id": "172794", "name": "Telehealth"}],
            }
        }
        map_locations(data)
        assert data["1"]["locations"] == [{"id": "232862", "name": "Main Office 2"}]

    def test_extract_location_id(self):
        assert extract_location_id(slot_href("2025-03-10", location="233904")) == "233904"
        assert extract_location_id("https://x/?timeSlot=2025-03-10T09:00") is None
        assert extract_location_id(None) is None


class TestNameCleaner:
    @pytest.mark.parametrize("raw,clean,searchable", [
        ("Jane Smith, PhD - Remote", "Jane Smith", "janesmith"),
        ("Dr. John O'Neil (he/him)", "John O'Neil", "johnoneil"),
        ("Ann Lee LCSW", "Ann Lee", "annlee"),
        ("John Doe LCSW MFT", "John Doe", "johndoe"),
        ("Robert Brown Jr.", "Robert Brown", "robertbrown"),
        ("Robert Brown III", "Robert Brown", "robertbrown"),
        ("Mary-Kate Olsen, LMHC, LPC", "Mary-Kate Olsen", "marykateolsen"),
        ("Levi", "Levi", "levi"),
    ])
    def test_clean_name(self, raw, clean, searchable):
        assert clean_name(raw) == (clean, searchable)

    def test_empty_result_falls_back_to_raw(self):
        assert clean_name("(Intake)")[0] == "(Intake)"

    def test_clean_names_always_derives_from_name(self):
        """Test that stale cleanName values are overwritten."""
        data = {
            "1": {"name": "Jane Smith, PhD - Remote", "cleanName": "Old", "searchableName": "old"},
            "2": {"slots": []},
        }

        stats = clean_names(data)

        assert data["1"]["cleanName"] == "Jane Smith"
        assert data["1"]["searchableName"] == "janesmith"
        assert "cleanName" not in data["2"]
        assert stats["clinicians_processed"] == 1


class TestDateFormatter:
    def test_formats_from_href(self):
        """Test the bad-date example: the href is authoritative."""
        data = {"1": {"slots": [{"href": slot_href("2025-03-10"), "time": "9:00 AM", "date": "bad"}]}}

        format_dates(data)

        slot = data["1"]["slots"][0]
        assert slot["isoDate"] == "2025-03-10"
        assert slot["date"] == "Monday, March 10, 2025"
        assert slot["shortDate"] == "bad"

    def test_short_date_is_write_once(self):
        data = {"1": {"slots": [{"href": slot_href("2025-03-10"), "date": "Mon 3/10"}]}}

        format_dates(data)
        first = dict(data["1"]["slots"][0])
        format_dates(data)

        assert data["1"]["slots"][0]["shortDate"] == "Mon 3/10"
        assert data["1"]["slots"][0] == first

    def test_slot_without_timestamp_is_skipped(self):
        data = {"1": {"slots": [{"href": "https://x/?location=250637", "date": "Mon 3/10"}]}}

        stats = format_dates(data)

        assert data["1"]["slots"][0] == {"href": "https://x/?location=250637", "date": "Mon 3/10"}
        assert stats["skipped"] == 1

    def test_impossible_date_is_skipped(self):
        data = {"1": {"slots": [{"href": "https://x/?timeSlot=2025-02-30T09:00"}]}}
        stats = format_dates(data)
        assert "isoDate" not in data["1"]["slots"][0]
        assert stats["skipped"] == 1


class TestDateConsistency:
    def test_overwrites_drifted_date(self):
        data = {
            "1": {
                "slots": [
                    {"isoDate": "2025-03-10", "date": "Tuesday, March 11, 2025", "shortDate": "Mon 3/10"},
                    {"isoDate": "2025-03-11", "date": "Tuesday, March 11, 2025"},
                ]
            }
        }

        stats = fix_date_consistency(data)

        assert data["1"]["slots"][0]["date"] == "Monday, March 10, 2025"
        assert data["1"]["slots"][0]["shortDate"] == "Mon 3/10"
        assert stats["fixed_slots"] == 1
        assert stats["total_slots"] == 2

    def test_invalid_iso_date_left_alone(self):
        data = {"1": {"slots": [{"isoDate": "2025-13-01", "date": "whatever"}]}}
        stats = fix_date_consistency(data)
        assert data["1"]["slots"][0]["date"] == "whatever"
        assert stats["invalid_iso_dates"] == 1

    def test_slots_without_iso_date_are_ignored(self):
        data = {"1": {"slots": [{"href": "#", "date": "Mon 3/10"}]}}
        stats = fix_date_consistency(data)
        assert data["1"]["slots"][0]["date"] == "Mon 3/10"
        assert stats["fixed_slots"] == 0


class TestDateUtils:
    def test_long_format_is_locale_independent(self):
        assert long_format("2025-03-10") == "Monday, March 10, 2025"
        assert long_format("2024-02-29") == "Thursday, February 29, 2024"
        assert long_format("not-a-date") is None

    def test_extract_iso_date(self):
        assert extract_iso_date(slot_href("2025-12-31", "23:30")) == "2025-12-31"
        assert extract_iso_date("https://x/?timeSlot=2025-03-10") is None
        assert extract_iso_date(None) is None
