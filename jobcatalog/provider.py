"""HTTP client for the remote job feed."""

from typing import Any, Dict, List, Optional

import requests

from .logger import get_logger

logger = get_logger()

DEFAULT_TIMEOUT = 15


class ProviderError(ValueError):
    """The remote feed could not be fetched or understood."""


def extract_job_payloads(data: Any) -> List[Dict[str, Any]]:
    """Pull the list of job objects out of a feed response body.

    The feed may answer with a bare list or wrap it under ``jobs`` or
    ``data``. Anything else yields an empty list.
    """
    if isinstance(data, list):
        return data
    if isinstance(data, dict):
        for key in ("jobs", "data"):
            if isinstance(data.get(key), list):
                return data[key]
    return []


def fetch_external_jobs(
    base_url: str,
    session: Optional[requests.Session] = None,
    timeout: float = DEFAULT_TIMEOUT,
) -> List[Dict[str, Any]]:
    """Fetch raw job payloads from ``{base_url}/jobs``.

    Raises:
        ProviderError: On any HTTP error, timeout, request failure or
            non-JSON body
    """
    if not base_url:
        raise ProviderError("No job feed URL configured. Set JOBCATALOG_API_URL.")
    url = f"{base_url.rstrip('/')}/jobs"
    http = session or requests
    try:
        resp = http.get(url, headers={"Accept": "application/json"}, timeout=timeout)
        resp.raise_for_status()
    except requests.exceptions.HTTPError as e:
        status = e.response.status_code if e.response is not None else "HTTPError"
        logger.error("Job feed request failed", url=url, status=status)
        raise ProviderError(f"Job feed request failed ({status}): {url}") from e
    except requests.exceptions.Timeout as e:
        logger.warning("Job feed request timed out", url=url)
        raise ProviderError("Job feed request timed out. Try again later.") from e
    except requests.exceptions.RequestException as e:
        logger.error("Job feed request error", url=url, error=str(e))
        raise ProviderError(f"Job feed request error: {e}") from e

    try:
        data = resp.json()
    except ValueError as e:
        logger.error("Job feed returned invalid JSON", url=url)
        raise ProviderError(f"Job feed returned invalid JSON: {url}") from e

    payloads = extract_job_payloads(data)
    logger.debug("Fetched job feed", url=url, jobs=len(payloads))
    return payloads
