"""
Tests for the Steam store-details client
"""
import pytest
import requests
from unittest.mock import MagicMock

from services.steam_store import SteamStoreClient


def make_client(payload=None, error=None):
    session = MagicMock()
    session.headers = {}
    if error is not None:
        session.get.side_effect = error
    else:
        response = MagicMock()
        response.raise_for_status.return_value = None
        response.json.return_value = payload
        session.get.return_value = response
    return SteamStoreClient(country_code="JP", language="english", timeout=5, session=session), session


class TestClassifyAvailability:

    def test_is_free_flag(self, steam_entry_free):
        assert SteamStoreClient.classify_availability(steam_entry_free) == "free"

    def test_zero_final_price(self):
        entry = {"success": True, "data": {"is_free": False, "price_overview": {"final": 0}}}
        assert SteamStoreClient.classify_availability(entry) == "free"

    def test_paid(self, steam_entry_paid):
        assert SteamStoreClient.classify_availability(steam_entry_paid) == "paid"

    def test_unreleased(self):
        entry = {"success": True, "data": {"is_free": False, "release_date": {"coming_soon": True}}}
        assert SteamStoreClient.classify_availability(entry) == "unreleased"

    def test_unsuccessful_entry_is_removed(self):
        assert SteamStoreClient.classify_availability({"success": False}) == "removed"

    def test_released_without_price_is_removed(self):
        entry = {"success": True, "data": {"is_free": False, "release_date": {"coming_soon": False}}}
        assert SteamStoreClient.classify_availability(entry) == "removed"

    @pytest.mark.parametrize("entry", [None, {}, {"success": True, "data": {}}])
    def test_unknown(self, entry):
        assert SteamStoreClient.classify_availability(entry) is None


class TestGetAppDetails:

    def test_returns_app_entry(self, steam_entry_free):
        client, session = make_client({"123456": steam_entry_free})

        assert client.get_app_details(123456) == steam_entry_free
        _, kwargs = session.get.call_args
        assert kwargs["params"] == {"appids": 123456, "cc": "JP", "l": "english"}
        assert kwargs["timeout"] == 5

    def test_network_error(self):
        client, _ = make_client(error=requests.Timeout("slow"))
        assert client.get_app_details(1) is None
        assert client.get_availability(1) is None

    def test_invalid_json(self):
        client, session = make_client()
        session.get.return_value.json.side_effect = ValueError("bad json")
        assert client.get_app_details(1) is None

    def test_missing_entry(self, steam_entry_free):
        client, _ = make_client({"999": steam_entry_free})
        assert client.get_app_details(1) is None

    def test_get_availability(self, steam_entry_paid):
        client, _ = make_client({"7": steam_entry_paid})
        assert client.get_availability(7) == "paid"
