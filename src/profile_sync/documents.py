"""Reading and writing stored documents."""

import logging
import os
import shutil
from pathlib import Path
from typing import Any

import yaml

from .exceptions import ProfileDocumentError

logger = logging.getLogger(__name__)

# Owner-only permissions for documents that may hold sensitive data
PRIVATE_MODE = 0o600


def read_yaml(path: Path) -> Any | None:
    """Read YAML file.

    Args:
        path: Path to YAML file

    Returns:
        Parsed document, {} for an empty file, or None if the file doesn't exist

    Raises:
        ProfileDocumentError: If the file can't be read or parsed
    """
    if not path.exists():
        return None

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ProfileDocumentError(f"Failed to read {path}: {e}") from e

    logger.debug(f"Read {path}")
    return data if data is not None else {}


def write_yaml(path: Path, data: Any, private: bool = False) -> None:
    """Write YAML file.

    Args:
        path: Path to YAML file
        data: Document to write
        private: Restrict the file to owner read/write

    Raises:
        ProfileDocumentError: If write fails
    """
    write_text(path, yaml.dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True), private=private)


def read_text(path: Path) -> str | None:
    """Read a text file, or None if it doesn't exist."""
    if not path.exists():
        return None

    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ProfileDocumentError(f"Failed to read {path}: {e}") from e


def write_text(path: Path, text: str, private: bool = False) -> None:
    """Write a text file, creating parent directories.

    Raises:
        ProfileDocumentError: If write fails
    """
    path.parent.mkdir(parents=True, exist_ok=True)

    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
        if private:
            os.chmod(path, PRIVATE_MODE)
    except OSError as e:
        raise ProfileDocumentError(f"Failed to write {path}: {e}") from e

    logger.debug(f"Wrote {path}")


def remove_path(path: Path) -> None:
    """Remove a file or directory tree if it exists."""
    if path.is_dir() and not path.is_symlink():
        shutil.rmtree(path)
        logger.debug(f"Removed directory {path}")
    elif path.exists() or path.is_symlink():
        path.unlink()
        logger.debug(f"Removed {path}")


def empty_dir(path: Path) -> None:
    """Make sure `path` is an existing, empty directory."""
    remove_path(path)
    path.mkdir(parents=True, exist_ok=True)


def copy_file(source: Path, destination: Path) -> None:
    """Copy a file's contents, creating the destination's parent directories.

    Raises:
        ProfileDocumentError: If the copy fails
    """
    destination.parent.mkdir(parents=True, exist_ok=True)
    try:
        shutil.copyfile(source, destination)
    except OSError as e:
        raise ProfileDocumentError(f"Failed to copy {source} to {destination}: {e}") from e
