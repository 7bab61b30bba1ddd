"""
Endpoint extraction tests: ZIP sanitizing and candidate field priority.
"""

import pytest

from src.utils.zip_utils import Endpoint, extract_endpoints, extract_zips, sanitize_zip


class TestSanitizeZip:

    @pytest.mark.parametrize("raw, expected", [
        ("las vegas nv 89011", "89011"),
        ("89011", "89011"),
        ("  85001  ", "85001"),
        ("89011-1234", "89011"),
        ("Phoenix, AZ 85001, USA", "85001"),
        (89011, "89011"),
    ])
    def test_embedded_five_digit_run(self, raw, expected):
        assert sanitize_zip(raw) == expected

    @pytest.mark.parametrize("raw", ["abc12", "", None, "1234", "123456", True, {"zip": "89011"}])
    def test_malformed_returns_none(self, raw):
        assert sanitize_zip(raw) is None

    def test_first_match_wins(self):
        assert sanitize_zip("from 89011 to 85001") == "89011"


class TestExtractEndpoints:

    def test_non_mapping_yields_empty_endpoints(self):
        for value in (None, "89011", 42, ["89011"]):
            endpoints = extract_endpoints(value)
            assert endpoints["origin"] == Endpoint()
            assert endpoints["destination"] == Endpoint()
            assert endpoints["origin"].is_empty

    def test_structured_address(self):
        load = {
            "origin": {"city": "Las Vegas", "state": "NV", "zip": "89011"},
            "destination": {"city": "Phoenix", "state": "AZ", "zipCode": "85001"},
        }
        endpoints = extract_endpoints(load)
        assert endpoints["origin"] == Endpoint("89011", "Las Vegas, NV, 89011")
        assert endpoints["destination"] == Endpoint("85001", "Phoenix, AZ")

    def test_zip_priority_order(self):
        load = {"pickupZip": "11111", "originZip": "22222", "origin": {"zip": "33333"}}
        assert extract_endpoints(load)["origin"].postal_code == "33333"

        load = {"pickupZip": "11111", "originZip": "22222"}
        assert extract_endpoints(load)["origin"].postal_code == "11111"

    def test_messy_zip_field_is_pattern_matched(self):
        load = {"pickupZip": "las vegas nv 89011", "deliveryZip": "zip: 85001"}
        assert extract_zips(load) == ("89011", "85001")

    def test_invalid_zip_falls_through_to_next_candidate(self):
        load = {"origin": {"zip": "n/a"}, "pickupZip": "abc12", "fromZip": "89011"}
        assert extract_endpoints(load)["origin"].postal_code == "89011"

    def test_plain_string_origin_supplies_text_and_zip(self):
        load = {"origin": "Las Vegas, NV 89011", "destination": "Phoenix, AZ"}
        endpoints = extract_endpoints(load)
        assert endpoints["origin"] == Endpoint("89011", "Las Vegas, NV 89011")
        assert endpoints["destination"] == Endpoint(None, "Phoenix, AZ")

    def test_freeform_address_preferred_over_city_state(self):
        load = {
            "pickupAddress": "  4000 Warm Springs Rd, Henderson NV  ",
            "origin": {"city": "Henderson", "state": "NV"},
        }
        assert extract_endpoints(load)["origin"].freeform_text == "4000 Warm Springs Rd, Henderson NV"

    def test_blank_candidates_are_skipped(self):
        load = {"origin": {"address": "   "}, "pickup": {"city": "Henderson", "state": "NV"}}
        assert extract_endpoints(load)["origin"].freeform_text == "Henderson, NV"

    def test_snake_case_fields(self):
        load = {"origin_city": "Dallas", "origin_state": "TX", "origin_zip": "75201",
                "dest_city": "Houston", "dest_state": "TX", "dest_zip": "77002"}
        endpoints = extract_endpoints(load)
        assert endpoints["origin"] == Endpoint("75201", "Dallas, TX, 75201")
        assert endpoints["destination"] == Endpoint("77002", "Houston, TX, 77002")

    def test_missing_everything(self):
        endpoints = extract_endpoints({"rate": 1000})
        assert endpoints["origin"].key is None
        assert endpoints["destination"].key is None
