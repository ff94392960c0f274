"""
File utilities for persisted results and debug artifacts.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Any, Union

PathLike = Union[str, Path]


def ensure_directory(directory: PathLike) -> Path:
    """
    Ensure directory exists, create if it doesn't.

    Args:
        directory: Directory path

    Returns:
        Directory path
    """
    path = Path(directory)
    path.mkdir(parents=True, exist_ok=True)
    return path


def load_json(filepath: PathLike) -> Any:
    """
    Load a JSON document.

    Args:
        filepath: Path to the JSON file

    Returns:
        Decoded document

    Raises:
        FileNotFoundError: if the file does not exist
        ValueError: if the content is not valid JSON
    """
    with open(filepath, "r", encoding="utf-8") as fh:
        return json.load(fh)


def save_json(data: Any, filepath: PathLike) -> Path:
    """
    Write a JSON document atomically (temp file in the same directory, then rename).

    Args:
        data: JSON-serialisable document
        filepath: Destination path

    Returns:
        Path to saved file
    """
    filepath = Path(filepath)
    ensure_directory(filepath.parent)
    fd, tmp_path = tempfile.mkstemp(dir=filepath.parent, prefix=f".{filepath.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as fh:
            json.dump(data, fh, indent=2, ensure_ascii=False)
        os.replace(tmp_path, filepath)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise
    return filepath


def save_debug_html(html: str, filepath: PathLike) -> Path:
    """Write a raw page to disk for inspection."""
    filepath = Path(filepath)
    ensure_directory(filepath.parent)
    filepath.write_text(html or "", encoding="utf-8")
    return filepath
