"""Utility functions for loading schema documents.

This module provides functions for loading schema documents from files, URLs
and streams with proper error handling and validation.
"""

import json
from pathlib import Path
from typing import Any, TextIO
from urllib.parse import urlparse

import requests

from .logging_config import get_logger

logger = get_logger(__name__)


class SchemaDocumentError(Exception):
    """Custom exception for schema document loading errors."""

    pass


def _check_document(data: Any, origin: str) -> dict:
    if not isinstance(data, dict):
        logger.error(f"Schema document from {origin} is not a JSON object")
        raise SchemaDocumentError(f"Schema document from {origin} must be a JSON object")
    return data


def load_schema_from_file(file_path: str | Path) -> tuple[str, dict]:
    """Load a schema document from a local file.

    Args:
        file_path: Path to the JSON schema document.

    Returns:
        Tuple of (source name, parsed document).

    Raises:
        FileNotFoundError: If file doesn't exist.
        SchemaDocumentError: If file cannot be read or JSON is invalid.
    """
    file_path = Path(file_path)
    logger.debug(f"Attempting to load schema from file: {file_path}")

    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        raise FileNotFoundError(f"File not found: {file_path}")

    if file_path.suffix.lower() != ".json":
        logger.warning(f"File does not have .json extension: {file_path}")

    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in file {file_path}: {e}")
        raise SchemaDocumentError(f"Invalid JSON in file {file_path}: {e}") from e
    except OSError as e:
        logger.error(f"Error reading file {file_path}: {e}")
        raise SchemaDocumentError(f"Error reading file {file_path}: {e}") from e

    logger.info(f"Loaded schema document from {file_path}")
    return file_path.name, _check_document(data, str(file_path))


def load_schema_from_url(url: str, timeout: int = 30) -> tuple[str, dict]:
    """Load a schema document from a URL.

    Args:
        url: URL to fetch the document from.
        timeout: Request timeout in seconds.

    Returns:
        Tuple of (source name, parsed document).

    Raises:
        SchemaDocumentError: If URL is invalid, request fails, or response isn't valid JSON.
    """
    logger.debug(f"Attempting to load schema from URL: {url}")

    parsed_url = urlparse(url)
    if not all([parsed_url.scheme, parsed_url.netloc]):
        logger.error(f"Invalid URL format: {url}")
        raise SchemaDocumentError(f"Invalid URL: {url}")

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()

        content_type = response.headers.get("content-type", "").lower()
        if "application/json" not in content_type and not url.endswith(".json"):
            logger.warning(f"URL {url} does not have JSON content type: {content_type}")

        data = response.json()
    except requests.exceptions.Timeout as e:
        logger.error(f"Request timeout for URL: {url}")
        raise SchemaDocumentError(f"Request timeout for URL: {url}") from e
    except requests.exceptions.ConnectionError as e:
        logger.error(f"Connection error for URL {url}: {e}")
        raise SchemaDocumentError(f"Connection error for URL: {url}") from e
    except requests.exceptions.HTTPError as e:
        logger.error(f"HTTP error {e.response.status_code} for URL: {url}")
        raise SchemaDocumentError(f"HTTP error {e.response.status_code} for URL: {url}") from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Request error for URL {url}: {e}")
        raise SchemaDocumentError(f"Request error for URL {url}: {e}") from e
    except ValueError as e:
        # requests raises a ValueError subclass for undecodable JSON bodies
        logger.error(f"Invalid JSON response from URL {url}: {e}")
        raise SchemaDocumentError(f"Invalid JSON response from URL {url}: {e}") from e

    logger.info(f"Loaded schema document from {url}")
    source = Path(parsed_url.path).name or parsed_url.netloc
    return source, _check_document(data, url)


def load_schema_from_stream(stream: TextIO, name: str = "<stdin>") -> tuple[str, dict]:
    """Load a schema document from an open text stream."""
    try:
        data = json.load(stream)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in {name}: {e}")
        raise SchemaDocumentError(f"Invalid JSON in {name}: {e}") from e
    return name, _check_document(data, name)


def load_schema_document(
    file_path: str | Path | None = None,
    url: str | None = None,
    timeout: int = 30,
) -> tuple[str, dict]:
    """Load a schema document from either a file or URL.

    Args:
        file_path: Path to local JSON file (mutually exclusive with url).
        url: URL to fetch the document from (mutually exclusive with file_path).
        timeout: Request timeout in seconds (only used for URLs).

    Returns:
        Tuple of (source name, parsed document).

    Raises:
        SchemaDocumentError: If neither or both parameters are provided, or loading fails.
        FileNotFoundError: If file doesn't exist.
    """
    if not file_path and not url:
        logger.error("Neither file_path nor url provided")
        raise SchemaDocumentError("Either file_path or url must be provided")

    if file_path and url:
        logger.error("Both file_path and url provided")
        raise SchemaDocumentError("Cannot specify both file_path and url")

    if file_path:
        return load_schema_from_file(file_path)
    return load_schema_from_url(url, timeout)
