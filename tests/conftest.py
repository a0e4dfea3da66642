"""Shared pytest fixtures for splunkjobs tests."""

import pytest
from httpx import Response

from splunkjobs.client import SplunkClient
from splunkjobs.config import SplunkSettings

BASE_URL = "https://splunk.test:8089"


@pytest.fixture
def mock_settings():
    """Return test settings that don't require real credentials."""
    return SplunkSettings(
        base_url=BASE_URL,
        username="admin",
        password="changeme",
    )


@pytest.fixture
def client(mock_settings):
    """SplunkClient with test settings."""
    return SplunkClient(mock_settings)


@pytest.fixture
def base_url():
    """Base URL for mocked API."""
    return BASE_URL


@pytest.fixture
def mock_auth(respx_mock):
    """Mock the credential check endpoint."""
    return respx_mock.get(f"{BASE_URL}/services/authentication/current-context").mock(
        return_value=Response(200, json={"entry": [{"content": {"username": "admin"}}]})
    )


@pytest.fixture
def results_page():
    """Build a results_preview body."""
    def build(records, preview=False, offset=0):
        return {
            "preview": preview,
            "init_offset": offset,
            "messages": [],
            "fields": [{"name": name} for name in (records[0] if records else {})],
            "results": records,
        }
    return build


@pytest.fixture
def status_document():
    """Build a job status body with one entry."""
    def build(dispatch_state, sid="abc123", **content):
        return {
            "generator": {"build": "abc", "version": "9.1.0"},
            "entry": [
                {
                    "name": "search * TEST",
                    "id": f"{BASE_URL}/services/search/jobs/{sid}",
                    "content": {"dispatchState": dispatch_state, "sid": sid, **content},
                }
            ],
            "paging": {"total": 1, "perPage": 0, "offset": 0},
        }
    return build
