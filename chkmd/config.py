"""
Configuration constants and config file loading for chkmd.

Example config file (chkmd.yaml):
    mime_types:
      - image/jpeg
      - image/tiff
      - video/mp4
    exiftool: /usr/local/bin/exiftool
"""
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Optional

import yaml

from .exceptions import ConfigError

# --- Report Layout ---
NA = "N/A"

CSV_HEADER = [
    "Path",
    "Status",
    "Reason",
    "NASA ID",
    "Title",
    "508 Description",
    "Description",
    "Date Created",
    "Location",
    "Keywords",
    "Media Type",
    "File Format",
    "Center",
    "Secondary Creator Credit",
    "Photographer",
    "Album",
]

MINIMUM_METADATA_REASON = "Minimum metadata not provided"

# --- Pipeline ---
# Capacity of both the path queue and the result queue
QUEUE_SIZE = 64

# --- Extraction ---
EXIFTOOL = "exiftool"
# -G = group names, -s = short tag names, -a = allow duplicate tags
EXIFTOOL_ARGS = ["-G", "-s", "-a"]

# Only the type part of a MIME type is reported as Media Type, and only these
MEDIA_TYPES = {"audio", "image", "video"}

# --- Date Layouts (as printed by exiftool) ---
EXIF_DATE_ONLY = "%Y:%m:%d"
EXIF_DATE = "%Y:%m:%d %H:%M:%S"
EXIF_NANO_DATE = "%Y:%m:%d %H:%M:%S.%f"
EXIF_DATE_ZONE = "%Y:%m:%d %H:%M:%S%z"
EXIF_NANO_DATE_ZONE = "%Y:%m:%d %H:%M:%S.%f%z"

# --- Accepted MIME Types ---
DEFAULT_MIME_TYPES = [
    # audio
    "audio/aac",
    "audio/amr",
    "audio/flac",
    "audio/mp4",
    "audio/mpeg",
    "audio/ogg",
    "audio/wav",
    "audio/x-aiff",
    "audio/x-wav",
    # image
    "image/bmp",
    "image/gif",
    "image/jpeg",
    "image/png",
    "image/tiff",
    # video
    "video/mp4",
    "video/mpeg",
    "video/quicktime",
    "video/x-m4v",
    "video/x-msvideo",
]

# Searched in order when no config file is given explicitly
CONFIG_LOCATIONS = [
    Path("chkmd.yaml"),
    Path.home() / ".config" / "chkmd" / "config.yaml",
]


@dataclass(frozen=True)
class ChkmdConfig:
    """Settings for a run. Built once at startup and passed to each component."""
    mime_types: FrozenSet[str] = field(default_factory=lambda: frozenset(DEFAULT_MIME_TYPES))
    exiftool: str = EXIFTOOL


def _read_yaml(path: Path) -> dict:
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        raise ConfigError(f"Couldn't open config file: {path}. Error: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Error parsing file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Error parsing file {path}: expected a mapping at the top level")
    return data


def _find_config() -> Optional[Path]:
    for candidate in CONFIG_LOCATIONS:
        if candidate.is_file():
            return candidate
    return None


def load_config(path: Optional[Path] = None) -> ChkmdConfig:
    """
    Loads the run configuration.

    Priority (highest first):
    1. CHKMD_EXIFTOOL environment variable (exiftool binary only)
    2. The config file: `path` if given, otherwise the first of CONFIG_LOCATIONS
    3. Default values

    An explicit `path` that cannot be read or parsed raises ConfigError.
    """
    if path is None:
        path = _find_config()

    data = {}
    if path is not None:
        logging.debug(f"Reading config from {path}")
        data = _read_yaml(Path(path))

    mime_types = data.get("mime_types")
    if mime_types is None or mime_types == []:
        mime_types = DEFAULT_MIME_TYPES
    elif not isinstance(mime_types, list) or not all(isinstance(t, str) for t in mime_types):
        raise ConfigError(f"Error parsing file {path}: mime_types must be a list of strings")

    exiftool = os.environ.get("CHKMD_EXIFTOOL") or data.get("exiftool") or EXIFTOOL

    return ChkmdConfig(
        mime_types=frozenset(t.strip() for t in mime_types if t.strip()),
        exiftool=str(exiftool),
    )
