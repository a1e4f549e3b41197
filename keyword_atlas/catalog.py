"""Retrieve a data catalog and pull out its records array."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, List

import requests

from .config import FETCH_TIMEOUT, RECORDS_FIELD
from .errors import FetchError, SchemaError

logger = logging.getLogger(__name__)


def _is_url(location: str) -> bool:
    return location.lower().startswith(("http://", "https://"))


def fetch_catalog(location: str, timeout: float = FETCH_TIMEOUT) -> Any:
    """Load a JSON catalog from a URL or a local file path.

    Parameters
    ----------
    location : str
        ``http(s)://`` URL or filesystem path.
    timeout : float
        Seconds to wait for the HTTP response.

    Returns
    -------
    Any
        The decoded JSON document.

    Raises
    ------
    FetchError
        On network, HTTP status, file system or JSON decoding failures.
    """
    location = location.strip()
    if not location:
        raise FetchError("No catalog location given.")

    if _is_url(location):
        logger.info("Fetching %s", location)
        try:
            response = requests.get(location, timeout=timeout)
            response.raise_for_status()
        except requests.RequestException as e:
            raise FetchError(f"Could not retrieve {location}: {e}") from e
        try:
            return json.loads(response.text)
        except ValueError as e:
            raise FetchError(f"{location} is not valid JSON: {e}") from e

    logger.info("Reading %s", location)
    try:
        with open(location, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise FetchError(f"Could not read {location}: {e}") from e
    except ValueError as e:
        raise FetchError(f"{location} is not valid JSON: {e}") from e


def extract_records(document: Any, field: str = RECORDS_FIELD) -> List[Dict[str, Any]]:
    """Return the records array of a catalog document.

    Raises
    ------
    SchemaError
        If the document is not an object, has no ``field`` or the field is
        not an array.
    """
    if not isinstance(document, dict) or field not in document:
        raise SchemaError(f"The catalog did not contain a {field} element.")
    records = document[field]
    if not isinstance(records, list):
        raise SchemaError(f"The catalog did not contain a {field} array.")
    return records
