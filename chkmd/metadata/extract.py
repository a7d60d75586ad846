import logging
import re
import subprocess
from pathlib import Path
from typing import Optional, Tuple, Union

from .. import config
from ..exceptions import MetadataExtractionError
from ..models import MetadataRecord

# One line of `exiftool -G -s -a` output, e.g.
#   [IPTC]          Caption-Abstract                : A caption: with colons
# The group column is optional; keys never contain spaces or colons with -s.
_LINE_RE = re.compile(
    r"^(?:\[(?P<group>[^\]]+)\]\s+)?(?P<key>[^\s:\[\]]+)\s*:(?:\s(?P<value>.*))?$"
)

# exiftool group -> MetadataRecord attribute. Anything else is file info.
_GROUPS = {
    "IPTC": "iptc",
    "EXIF": "exif",
    "XMP": "xmp",
}


def parse_line(line: str) -> Optional[Tuple[Optional[str], str, str]]:
    """
    Splits one exiftool line into (group, key, value).
    Returns None for lines that don't look like a tag.
    """
    m = _LINE_RE.match(line.strip())
    if not m:
        return None
    return m.group("group"), m.group("key"), (m.group("value") or "").strip()


def parse_output(text: str, source: Union[str, Path] = "") -> MetadataRecord:
    """Builds a MetadataRecord from the full exiftool output for one file."""
    record = MetadataRecord()
    for line in text.splitlines():
        if not line.strip():
            continue
        parsed = parse_line(line)
        if parsed is None:
            logging.debug(f"Skipping malformed exiftool line for {source}: {line!r}")
            continue

        group, key, value = parsed
        target = getattr(record, _GROUPS.get((group or "").strip().upper(), "file_info"))
        target[key] = value
    return record


class ExifToolExtractor:
    """
    Wraps the 'exiftool' command line utility.
    Must be installed and on the system PATH (or configured explicitly).

    Each call to read() runs one blocking exiftool process. Any failure is
    raised as MetadataExtractionError so callers can treat it per file.
    """

    def __init__(self, executable: str = config.EXIFTOOL):
        self.executable = executable

    def read(self, path: Union[str, Path]) -> MetadataRecord:
        cmd = [self.executable, *config.EXIFTOOL_ARGS, str(path)]
        try:
            proc = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
            )
        except OSError as e:
            # Missing binary, permission problems, ...
            raise MetadataExtractionError(str(e)) from e

        if proc.returncode != 0:
            raise MetadataExtractionError(self._error_text(proc))

        return parse_output(proc.stdout, source=path)

    def _error_text(self, proc: subprocess.CompletedProcess) -> str:
        for line in (proc.stderr or "").splitlines():
            if line.strip():
                return line.strip()
        return f"exit status {proc.returncode}"
