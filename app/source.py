import logging
import os
from typing import List

import requests
from pydantic import ValidationError

from app.errors import ConnectivityError, ParseError, UpstreamError
from app.schemas import ShowRecord

USER_AGENT = "ShowCatalog/1.0 (+https://example.com)"
SHOWS_API_URL = os.getenv("SHOWS_API_URL", "https://api.tvmaze.com")
SHOWS_API_TIMEOUT = float(os.getenv("SHOWS_API_TIMEOUT", "20"))

logger = logging.getLogger(__name__)


def shows_url(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/shows"


def parse_show_records(payload) -> List[ShowRecord]:
    if not isinstance(payload, list):
        raise ParseError(f"Expected a JSON array of shows, got {type(payload).__name__}.")
    records = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            raise ParseError(f"Show record at position {index} is not an object.")
        try:
            records.append(ShowRecord.model_validate(item))
        except ValidationError as exc:
            raise ParseError(f"Show record at position {index} is invalid: {exc}") from exc
    return records


def fetch_shows(
    base_url: str | None = None, timeout: float | None = None
) -> List[ShowRecord]:
    """Fetch the full show list from the listings API in a single attempt.

    Transport failures raise ConnectivityError, non-2xx statuses raise
    UpstreamError and unusable bodies raise ParseError. No retries happen here.
    """
    url = shows_url(base_url or SHOWS_API_URL)
    logger.info("Fetching shows from %s", url)
    try:
        response = requests.get(
            url,
            headers={"User-Agent": USER_AGENT, "Accept": "application/json"},
            timeout=timeout or SHOWS_API_TIMEOUT,
        )
    except requests.RequestException as exc:
        raise ConnectivityError(f"Error fetching shows from {url}: {exc}") from exc
    if not 200 <= response.status_code < 300:
        raise UpstreamError(
            response.status_code,
            f"Failed to fetch shows from {url}: HTTP {response.status_code}.",
        )
    try:
        payload = response.json()
    except ValueError as exc:
        raise ParseError(f"Response from {url} is not valid JSON.") from exc
    records = parse_show_records(payload)
    logger.info("Fetched %s show records.", len(records))
    return records
