"""
Tests for provider.py - fetching the remote job feed.
"""

import pytest
import requests

from jobcatalog.provider import ProviderError, extract_job_payloads, fetch_external_jobs


class StubResponse:
    def __init__(self, payload=None, status_code=200, bad_json=False):
        self.payload = payload
        self.status_code = status_code
        self.bad_json = bad_json

    def raise_for_status(self):
        if self.status_code >= 400:
            response = requests.Response()
            response.status_code = self.status_code
            raise requests.exceptions.HTTPError(f"{self.status_code} Error", response=response)

    def json(self):
        if self.bad_json:
            raise ValueError("No JSON object could be decoded")
        return self.payload


class StubSession:
    """Stands in for requests.Session; returns a canned response or raises."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append((url, kwargs))
        if self.error is not None:
            raise self.error
        return self.response


class TestExtractJobPayloads:
    """Test unwrapping of the feed response body."""

    def test_bare_list(self):
        assert extract_job_payloads([{"id": 1}]) == [{"id": 1}]

    def test_jobs_key(self):
        assert extract_job_payloads({"jobs": [{"id": 1}]}) == [{"id": 1}]

    def test_data_key(self):
        assert extract_job_payloads({"data": [{"id": 2}]}) == [{"id": 2}]

    def test_jobs_preferred_over_data(self):
        assert extract_job_payloads({"jobs": [{"id": 1}], "data": [{"id": 2}]}) == [{"id": 1}]

    def test_unknown_shapes(self):
        assert extract_job_payloads({"results": []}) == []
        assert extract_job_payloads("nope") == []
        assert extract_job_payloads(None) == []


class TestFetchExternalJobs:
    """Test the HTTP fetch and its error mapping."""

    def test_success(self):
        session = StubSession(StubResponse({"jobs": [{"id": "a"}]}))
        payloads = fetch_external_jobs("https://feed.example/", session=session, timeout=5)

        assert payloads == [{"id": "a"}]
        url, kwargs = session.calls[0]
        assert url == "https://feed.example/jobs"
        assert kwargs["timeout"] == 5
        assert kwargs["headers"]["Accept"] == "application/json"

    def test_missing_base_url(self):
        with pytest.raises(ProviderError, match="JOBCATALOG_API_URL"):
            fetch_external_jobs("", session=StubSession())

    def test_http_error(self):
        session = StubSession(StubResponse(status_code=503))
        with pytest.raises(ProviderError, match="503"):
            fetch_external_jobs("https://feed.example", session=session)

    def test_timeout(self):
        session = StubSession(error=requests.exceptions.Timeout("slow"))
        with pytest.raises(ProviderError, match="timed out"):
            fetch_external_jobs("https://feed.example", session=session)

    def test_connection_error(self):
        session = StubSession(error=requests.exceptions.ConnectionError("refused"))
        with pytest.raises(ProviderError, match="request error"):
            fetch_external_jobs("https://feed.example", session=session)

    def test_invalid_json(self):
        session = StubSession(StubResponse(bad_json=True))
        with pytest.raises(ProviderError, match="invalid JSON"):
            fetch_external_jobs("https://feed.example", session=session)

    def test_provider_error_is_value_error(self):
        assert issubclass(ProviderError, ValueError)
