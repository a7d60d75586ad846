import csv
import logging
from datetime import datetime
from typing import Iterable, List, TextIO

from tqdm import tqdm

from . import config
from .metadata.resolve import ResolvedFields
from .models import ClassificationResult, Status


def format_rfc3339(dt: datetime) -> str:
    """
    Formats dt as RFC 3339. UTC is written as 'Z'; sub-seconds are only
    written when present, without trailing zeros.
    """
    s = (f"{dt.year:04d}-{dt.month:02d}-{dt.day:02d}"
         f"T{dt.hour:02d}:{dt.minute:02d}:{dt.second:02d}")
    if dt.microsecond:
        s += f".{dt.microsecond:06d}".rstrip("0")

    offset = dt.utcoffset()
    if not offset:
        return s + "Z"
    minutes = int(offset.total_seconds()) // 60
    sign = "+" if minutes >= 0 else "-"
    minutes = abs(minutes)
    return s + f"{sign}{minutes // 60:02d}:{minutes % 60:02d}"


def make_error_row(path: str, error: object) -> List[str]:
    """Row used when a file could not be processed: path, Rejected, the error, blanks."""
    row = [str(path), Status.REJECTED.value, str(error)]
    row.extend("" for _ in config.CSV_HEADER[3:])
    return row


def make_row(path: str, fields: ResolvedFields, result: ClassificationResult) -> List[str]:
    """
    Builds the report row for a file, in CSV_HEADER order.
    Falls back to the error row rather than emitting a half-built one.
    """
    try:
        dc = format_rfc3339(fields.date_created) if fields.has_date_created else ""
    except (ValueError, OverflowError) as e:
        logging.debug(f"Error getting DateCreated for {path}: {e}")
        return make_error_row(path, e)

    return [
        str(path),
        result.status.value,
        result.reason,
        fields.asset_id,
        fields.title,
        config.NA,          # 508 Description
        fields.description,
        dc,
        fields.location,
        fields.keywords,
        fields.media_type,
        fields.file_format,
        config.NA,          # Center
        config.NA,          # Secondary Creator Credit
        fields.photographer,
        config.NA,          # Album
    ]


class ReportWriter:
    """
    Writes report rows as CSV. The only object that touches the output;
    the pipeline runs exactly one of these.
    """

    def __init__(self, out: TextIO, progress: bool = False):
        self.out = out
        self.writer = csv.writer(out)
        self.progress = progress
        self.rows_written = 0

    def write_header(self):
        try:
            self.writer.writerow(config.CSV_HEADER)
            self.out.flush()
        except Exception as e:
            logging.error(f"Error writing csv header: {e}")

    def write_row(self, row: List[str]) -> bool:
        try:
            self.writer.writerow(row)
        except Exception as e:
            # One bad row (unencodable text, full disk, ...) must not stop the writer
            logging.error(f"Error writing row for {row[0] if row else '?'}: {e}")
            return False
        self.rows_written += 1
        return True

    def write_rows(self, rows: Iterable[List[str]]) -> int:
        """Drains rows until exhausted, then flushes. Returns the number written."""
        start = self.rows_written
        try:
            for row in tqdm(rows, desc="Checking", unit="file", disable=not self.progress):
                self.write_row(row)
        finally:
            # Producers block on a full queue if nobody keeps reading
            for _ in rows:
                pass
            try:
                self.out.flush()
            except Exception as e:
                logging.error(f"Error flushing report: {e}")
        return self.rows_written - start
