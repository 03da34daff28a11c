"""Load logic files from disk."""

import logging
import os
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class LogicSources:
    """Container for the raw text of a set of logic files."""

    areas: str
    locations: str
    areas_path: str
    locations_path: str


def load_logic_sources(areas_path: str, locations_path: str) -> LogicSources:
    """
    Load areas and location files.

    Args:
        areas_path: Path to the areas logic file (e.g. areas.wotw)
        locations_path: Path to the location table (e.g. loc_data.csv)

    Returns:
        LogicSources with the text of both files

    Raises:
        FileNotFoundError: If either file doesn't exist
        ValueError: If either file cannot be read or is not valid UTF-8
    """
    areas = _read_text(areas_path)
    locations = _read_text(locations_path)

    logger.info(
        f"Loaded logic: {len(areas.splitlines())} areas lines from {areas_path}, "
        f"{len(locations.splitlines())} location lines from {locations_path}"
    )

    return LogicSources(
        areas=areas,
        locations=locations,
        areas_path=areas_path,
        locations_path=locations_path,
    )


def _read_text(path: str) -> str:
    if not os.path.exists(path):
        raise FileNotFoundError(f"Logic file not found: {path}")

    try:
        with open(path, "rb") as logic_file:
            data = logic_file.read()
    except OSError as e:
        raise ValueError(f"Failed to read {path}: {e}") from e

    # Editors on Windows may prefix a byte order mark
    try:
        return data.decode("utf-8-sig")
    except UnicodeDecodeError as e:
        raise ValueError(f"Failed to decode {path}: {e}") from e
