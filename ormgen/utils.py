"""Utility functions around the generator core.

Loads custom table definitions from files and URLs, writes generated
artifacts to disk and looks up connection strings in .env files.
"""

import json
import re
from pathlib import Path
from typing import Any, Iterable, Sequence
from urllib.parse import urlparse

import requests

from .codegen.core.generator import Artifact
from .codegen.core.schema import InvalidTableDefinition, TableDefinition, tables_from_data
from .logging_config import get_logger

logger = get_logger(__name__)

ENV_FILES = (
    ".env",
    ".env.local",
    ".env.development",
    ".env.production",
    "apps/backend/.env",
    "apps/api/.env",
)

DATABASE_URL_VARIABLES = ("DATABASE_URL", "POSTGRES_URL", "DB_URL", "DATABASE_CONNECTION")


class DefinitionLoaderError(Exception):
    """Custom exception for definition loading errors."""

    pass


class ArtifactWriteError(Exception):
    """Raised when a generated artifact cannot be written."""

    pass


def _parse_definitions(data: Any, source: str) -> list[TableDefinition]:
    try:
        return tables_from_data(data)
    except InvalidTableDefinition as e:
        logger.error(f"Invalid table definitions in {source}: {e}")
        raise DefinitionLoaderError(f"Invalid table definitions in {source}: {e}") from e


def load_definitions_from_file(file_path: str | Path) -> tuple[str, list[TableDefinition]]:
    """Load table definitions from a local JSON file.

    Args:
        file_path: Path to the JSON file.

    Returns:
        Tuple of (source description, table definitions).

    Raises:
        FileNotFoundError: If file doesn't exist.
        DefinitionLoaderError: If file cannot be read or holds invalid definitions.
    """
    file_path = Path(file_path)
    logger.debug(f"Attempting to load definitions from file: {file_path}")

    if not file_path.exists():
        logger.error(f"File not found: {file_path}")
        raise FileNotFoundError(f"File not found: {file_path}")

    if file_path.suffix.lower() != ".json":
        logger.warning(f"File does not have .json extension: {file_path}")

    try:
        with file_path.open("r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.error(f"Invalid JSON in file {file_path}: {e}", exc_info=True)
        raise DefinitionLoaderError(f"Invalid JSON in file {file_path}: {e}") from e
    except OSError as e:
        logger.error(f"Error reading file {file_path}: {e}", exc_info=True)
        raise DefinitionLoaderError(f"Error reading file {file_path}: {e}") from e

    tables = _parse_definitions(data, str(file_path))
    logger.info(f"Loaded {len(tables)} table definition(s) from {file_path}")
    return str(file_path), tables


def load_definitions_from_url(url: str, timeout: int = 30) -> tuple[str, list[TableDefinition]]:
    """Load table definitions from a URL.

    Args:
        url: URL to fetch JSON from.
        timeout: Request timeout in seconds.

    Returns:
        Tuple of (source description, table definitions).

    Raises:
        DefinitionLoaderError: If the URL is invalid, unreachable or returns bad data.
    """
    logger.debug(f"Attempting to load definitions from URL: {url}")

    parsed_url = urlparse(url)
    if parsed_url.scheme not in ("http", "https") or not parsed_url.netloc:
        logger.error(f"Invalid URL: {url}")
        raise DefinitionLoaderError(f"Invalid URL: {url}")

    try:
        response = requests.get(url, timeout=timeout)
        response.raise_for_status()
        data = response.json()
    except requests.exceptions.Timeout as e:
        logger.error(f"Request timeout for URL: {url}")
        raise DefinitionLoaderError(f"Request timeout for URL: {url}") from e
    except requests.exceptions.ConnectionError as e:
        logger.error(f"Connection error for URL {url}: {e}")
        raise DefinitionLoaderError(f"Connection error for URL: {url}") from e
    except requests.exceptions.HTTPError as e:
        logger.error(f"HTTP error {e.response.status_code} for URL: {url}")
        raise DefinitionLoaderError(
            f"HTTP error {e.response.status_code} for URL: {url}"
        ) from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Request error for URL {url}: {e}", exc_info=True)
        raise DefinitionLoaderError(f"Request error for URL {url}: {e}") from e
    except ValueError as e:
        logger.error(f"Invalid JSON response from URL {url}: {e}", exc_info=True)
        raise DefinitionLoaderError(f"Invalid JSON response from URL {url}: {e}") from e

    tables = _parse_definitions(data, url)
    logger.info(f"Loaded {len(tables)} table definition(s) from {url}")
    return url, tables


def load_definitions(
    file_path: str | Path | None = None,
    url: str | None = None,
    timeout: int = 30,
) -> tuple[str, list[TableDefinition]]:
    """Load table definitions from either a file or URL.

    Raises:
        DefinitionLoaderError: If neither or both sources are given, or loading fails.
    """
    if not file_path and not url:
        raise DefinitionLoaderError("Either file_path or url must be provided")

    if file_path and url:
        raise DefinitionLoaderError("Cannot specify both file_path and url")

    if file_path:
        return load_definitions_from_file(file_path)
    return load_definitions_from_url(url, timeout)


def write_artifacts(
    artifacts: Sequence[Artifact], output_dir: str | Path, overwrite: bool = True
) -> list[Path]:
    """Write artifacts below a directory, creating parents as needed.

    Args:
        artifacts: Generated artifacts with relative paths.
        output_dir: Project root the relative paths are joined to.
        overwrite: Replace files that already exist.

    Returns:
        Paths of the files written, in artifact order.

    Raises:
        ArtifactWriteError: If a path escapes the output directory or a write fails.
    """
    root = Path(output_dir).resolve()
    targets = []
    for artifact in artifacts:
        target = (root / artifact.path).resolve()
        if root != target and root not in target.parents:
            raise ArtifactWriteError(f"Artifact path escapes output directory: {artifact.path}")
        if target.exists() and not overwrite:
            raise ArtifactWriteError(f"File already exists: {target}")
        targets.append(target)

    written = []
    for artifact, target in zip(artifacts, targets):
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(artifact.content, encoding="utf-8")
        except OSError as e:
            logger.error(f"Failed to write {target}: {e}")
            raise ArtifactWriteError(f"Failed to write {target}: {e}") from e
        logger.info(f"Wrote {target}")
        written.append(target)

    return written


def find_database_url(
    root: str | Path = ".",
    env_files: Iterable[str] = ENV_FILES,
    variables: Iterable[str] = DATABASE_URL_VARIABLES,
) -> tuple[str, Path] | None:
    """Find a connection string in the project's .env files.

    Files are searched in order; within a file, variables are tried in
    order. Surrounding quotes are stripped from the value.

    Returns:
        Tuple of (url, file it was found in), or None.
    """
    root = Path(root)
    variables = list(variables)

    for name in env_files:
        path = root / name
        if not path.is_file():
            continue
        try:
            content = path.read_text(encoding="utf-8")
        except OSError as e:
            logger.warning(f"Could not read {path}: {e}")
            continue

        for variable in variables:
            match = re.search(rf"^{re.escape(variable)}\s*=\s*(.+)$", content, re.MULTILINE)
            if match:
                url = match.group(1).strip().strip("\"'")
                logger.debug(f"Found {variable} in {path}")
                return url, path

    return None
