"""Utility functions for loading schema snapshot documents.

This module provides functions for loading JSON or YAML snapshots from
files and URLs with proper error handling and validation.
"""

import json
from pathlib import Path
from typing import Any
from urllib.parse import urlparse

import requests
import yaml

from .logging_config import get_logger

logger = get_logger(__name__)

YAML_SUFFIXES = (".yaml", ".yml")


class SnapshotLoaderError(Exception):
    """Custom exception for snapshot loading errors."""

    pass


def is_url(source: str) -> bool:
    """Return True when source looks like an http(s) URL."""
    parsed = urlparse(str(source))
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def _parse(text: str, name: str) -> Any:
    if name.lower().endswith(YAML_SUFFIXES):
        return yaml.safe_load(text)
    return json.loads(text)


def load_snapshot_from_file(file_path: str | Path) -> tuple[str, Any]:
    """Load a snapshot document from a local file.

    Files ending in .yaml or .yml are parsed as YAML, everything else as JSON.

    Args:
        file_path: Path to the snapshot file.

    Returns:
        Tuple of (source description, parsed document).

    Raises:
        FileNotFoundError: If file doesn't exist.
        SnapshotLoaderError: If file cannot be read or parsed.
    """
    file_path = Path(file_path)
    logger.debug(f"Attempting to load snapshot from file: {file_path}")

    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        raise FileNotFoundError(f"File not found: {file_path}")

    try:
        text = file_path.read_text(encoding="utf-8")
        data = _parse(text, file_path.name)
        logger.info(f"Successfully loaded snapshot from {file_path}")
        return str(file_path), data
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.error(f"Invalid snapshot document {file_path}: {e}", exc_info=True)
        raise SnapshotLoaderError(f"Invalid snapshot document {file_path}: {e}") from e
    except OSError as e:
        logger.error(f"Error reading file {file_path}: {e}", exc_info=True)
        raise SnapshotLoaderError(f"Error reading file {file_path}: {e}") from e


def load_snapshot_from_url(url: str, timeout: float = 30) -> tuple[str, Any]:
    """Load a snapshot document from a URL.

    Args:
        url: URL to fetch the snapshot from.
        timeout: Request timeout in seconds.

    Returns:
        Tuple of (source description, parsed document).

    Raises:
        SnapshotLoaderError: If URL is invalid, request fails, or the body can't be parsed.
    """
    logger.debug(f"Attempting to load snapshot from URL: {url}")

    if not is_url(url):
        logger.error(f"Invalid URL format: {url}")
        raise SnapshotLoaderError(f"Invalid URL: {url}")

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()

        content_type = response.headers.get("content-type", "").lower()
        path = urlparse(url).path
        if "yaml" in content_type:
            data = yaml.safe_load(response.text)
        else:
            data = _parse(response.text, path)
        logger.info(f"Successfully loaded snapshot from {url}")
        return url, data

    except requests.exceptions.Timeout:
        logger.error(f"Request timeout for URL: {url}")
        raise SnapshotLoaderError(f"Request timeout for URL: {url}")
    except requests.exceptions.ConnectionError as e:
        logger.error(f"Connection error for URL {url}: {e}")
        raise SnapshotLoaderError(f"Connection error for URL: {url}") from e
    except requests.exceptions.HTTPError as e:
        logger.error(f"HTTP error {e.response.status_code} for URL: {url}")
        raise SnapshotLoaderError(
            f"HTTP error {e.response.status_code} for URL: {url}"
        ) from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Request error for URL {url}: {e}", exc_info=True)
        raise SnapshotLoaderError(f"Request error for URL {url}: {e}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        logger.error(f"Invalid snapshot response from URL {url}: {e}", exc_info=True)
        raise SnapshotLoaderError(f"Invalid snapshot response from URL {url}: {e}") from e


def load_snapshot(source: str | Path, timeout: float = 30) -> tuple[str, Any]:
    """Load a snapshot document from a file path or an http(s) URL.

    Args:
        source: Local path or URL.
        timeout: Request timeout in seconds (only used for URLs).

    Returns:
        Tuple of (source description, parsed document).

    Raises:
        SnapshotLoaderError: If no source is given or loading fails.
        FileNotFoundError: If a local file doesn't exist.
    """
    if not source:
        logger.error("No snapshot source provided")
        raise SnapshotLoaderError("A snapshot file or URL must be provided")

    if is_url(str(source)):
        return load_snapshot_from_url(str(source), timeout)
    return load_snapshot_from_file(source)
