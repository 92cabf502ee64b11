"""Tests for the archive API client.

Uses the `responses` library to mock HTTP requests.
"""

from urllib.parse import parse_qs, urlparse

import pytest
import requests
import responses

from src.core.config import ProviderConfig
from src.core.earthquake import Source
from src.shell.archive_client import (
    ArchiveClient,
    ArchiveQueryParams,
    create_archive_clients,
)


AFAD_URL = "https://api.orhanaydogdu.com.tr/deprem/afad/archive"


def make_item(earthquake_id: str, mag: float = 3.2):
    return {
        "earthquake_id": earthquake_id,
        "title": "SINDIRGI (BALIKESIR)",
        "mag": mag,
        "depth": 7.0,
        "geojson": {"type": "Point", "coordinates": [28.18, 39.21]},
        "created_at": 1723400000,
        "date_time": "2024-08-11 21:13:20",
    }


@pytest.fixture
def client():
    return ArchiveClient(source=Source.AFAD, base_url=AFAD_URL, timeout=5)


def sent_params():
    return parse_qs(urlparse(responses.calls[0].request.url).query)


class TestArchiveClientFetchPage:
    """Tests for ArchiveClient.fetch_page()."""

    @responses.activate
    def test_successful_page(self, client):
        responses.add(
            responses.GET,
            AFAD_URL,
            json={"status": True, "result": [make_item("1"), make_item("2", mag=4.1)]},
            status=200,
        )

        records = client.fetch_page("2024-08-11", None, 100, 0)

        assert [r.id for r in records] == ["afad-1", "afad-2"]
        assert records[0].source == Source.AFAD
        assert records[0].latitude == 39.21
        assert records[1].magnitude == 4.1

    @responses.activate
    def test_sends_window_and_paging(self, client):
        responses.add(responses.GET, AFAD_URL, json={"status": True, "result": []})

        client.fetch_page("2024-08-01", "2024-08-11", 50, 150)

        params = sent_params()
        assert params == {
            "date": ["2024-08-01"],
            "date_end": ["2024-08-11"],
            "limit": ["50"],
            "skip": ["150"],
        }

    @responses.activate
    def test_open_ended_window_omits_date_end(self, client):
        responses.add(responses.GET, AFAD_URL, json={"status": True, "result": []})

        client.fetch_page("2024-08-01", None, 100, 0)

        assert "date_end" not in sent_params()

    @responses.activate
    def test_http_error_returns_empty(self, client):
        responses.add(responses.GET, AFAD_URL, status=503)

        assert client.fetch_page("2024-08-11", None, 100, 0) == []

    @responses.activate
    def test_connection_error_returns_empty(self, client):
        responses.add(
            responses.GET,
            AFAD_URL,
            body=requests.exceptions.ConnectionError("Connection refused"),
        )

        assert client.fetch_page("2024-08-11", None, 100, 0) == []

    @responses.activate
    def test_timeout_returns_empty(self, client):
        responses.add(
            responses.GET,
            AFAD_URL,
            body=requests.exceptions.Timeout("Request timed out"),
        )

        assert client.fetch_page("2024-08-11", None, 100, 0) == []

    @responses.activate
    def test_non_json_body_returns_empty(self, client):
        responses.add(responses.GET, AFAD_URL, body="<html>Bad Gateway</html>", status=200)

        assert client.fetch_page("2024-08-11", None, 100, 0) == []

    @responses.activate
    def test_unsuccessful_envelope_returns_empty(self, client):
        responses.add(
            responses.GET,
            AFAD_URL,
            json={"status": False, "result": [make_item("1")]},
        )

        assert client.fetch_page("2024-08-11", None, 100, 0) == []

    @responses.activate
    def test_malformed_items_dropped(self, client):
        bad = make_item("2")
        del bad["geojson"]
        responses.add(
            responses.GET,
            AFAD_URL,
            json={"status": True, "result": [make_item("1"), bad, make_item("3")]},
        )

        records = client.fetch_page("2024-08-11", None, 100, 0)

        assert [r.id for r in records] == ["afad-1", "afad-3"]

    @responses.activate
    def test_out_of_range_instant_keeps_page(self, client):
        far = make_item("2")
        far["created_at"] = 1e15
        responses.add(
            responses.GET,
            AFAD_URL,
            json={"status": True, "result": [make_item("1"), {"created_at": 1e15}, far]},
        )

        records = client.fetch_page("2024-08-11", None, 100, 0)

        assert [r.id for r in records] == ["afad-1", "afad-2"]
        # Falls back to the Istanbul-local date_time
        assert records[1].timestamp == 1723400000000


class TestArchiveClientFetchRaw:
    """Tests for ArchiveClient.fetch_raw()."""

    @responses.activate
    def test_raises_on_http_error(self, client):
        responses.add(responses.GET, AFAD_URL, status=500)

        with pytest.raises(requests.HTTPError):
            client.fetch_raw(ArchiveQueryParams(date="2024-08-11"))

    @responses.activate
    def test_sends_accept_header(self, client):
        responses.add(responses.GET, AFAD_URL, json={"status": True, "result": []})

        client.fetch_raw(ArchiveQueryParams(date="2024-08-11"))

        assert responses.calls[0].request.headers["Accept"] == "application/json"


class TestCreateArchiveClients:
    """Tests for create_archive_clients()."""

    def test_keeps_order_and_skips_disabled(self):
        providers = [
            ProviderConfig(name="kandilli", base_url="https://k"),
            ProviderConfig(name="afad", base_url="https://a"),
            ProviderConfig(name="kandilli", base_url="https://k2", enabled=False),
        ]

        clients = create_archive_clients(providers, timeout=7)

        assert [c.name for c in clients] == ["kandilli", "afad"]
        assert clients[1].base_url == "https://a"
        assert clients[0].timeout == 7
