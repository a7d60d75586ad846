"""
Canonical import fields resolved from exiftool output.

Acquiring metadata can be pretty hairy. Each field is looked up in IPTC first,
then Exif, then XMP (where the standard has an equivalent tag), taking the
first non-empty value. The standards have changed over time, tools store data
in the wrong fields, and users enter data in whatever field is handy, so the
order below is fixed on purpose rather than configurable.

Tag references:
  IPTC IIM 4.2 and the IPTC Photo Metadata Core fields
  Exif 2.2 / 2.3 (CIPA DC-008, DC-010)
  XMP Specification Parts 1 and 2
"""
import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import AbstractSet, Optional

from .. import config
from ..exceptions import DateParseError
from ..models import MetadataRecord

# Trailing UTC offset: -07:00, +0530 or Z
_ZONE_RE = re.compile(r"(?:[+-]\d{2}:?\d{2}|Z)$")
# Sub-seconds beyond microseconds, which strptime can't take
_LONG_FRACTION_RE = re.compile(r"(\.\d{6})\d+")


def parse_exif_date(value: str) -> datetime:
    """
    Parses a date in one of the layouts exiftool prints:

        2015:01:09 01:32:16
        2015:01:09 01:32:16.90
        2015:01:09 01:32:16-08:00
        2015:01:09 01:32:16.23-05:00
        2015:01:09

    exiftool converts all dates to this Exif-like form, even ISO 8601 ones.
    Values without an offset are taken as UTC.
    """
    d = _LONG_FRACTION_RE.sub(r"\1", value.strip())
    zoned = bool(_ZONE_RE.search(d))
    if "." in d:
        layout = config.EXIF_NANO_DATE_ZONE if zoned else config.EXIF_NANO_DATE
    else:
        layout = config.EXIF_DATE_ZONE if zoned else config.EXIF_DATE

    try:
        dt = datetime.strptime(d, layout)
    except ValueError:
        try:
            dt = datetime.strptime(d, config.EXIF_DATE_ONLY)
        except ValueError as e:
            raise DateParseError(f"cannot parse date {d!r}") from e

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def _first(*candidates: Optional[str]) -> str:
    for c in candidates:
        if c:
            return c
    return ""


@dataclass(frozen=True)
class ResolvedFields:
    """
    One value per import template field. Build with ResolvedFields.resolve().

    An empty string means the field could not be found. date_created is None
    when no source tag is set or when the value found could not be parsed.
    """
    date_created: Optional[datetime]
    title: str
    description: str
    keywords: str
    asset_id: str
    location: str
    media_type: str
    file_format: str
    photographer: str
    date_created_raw: str = ""

    @classmethod
    def resolve(cls, record: MetadataRecord, mime_types: AbstractSet[str]) -> "ResolvedFields":
        raw_date = _date_created_raw(record)
        date_created = None
        if raw_date:
            try:
                date_created = parse_exif_date(raw_date)
            except DateParseError as e:
                logging.debug(f"Ignoring unparsable DateCreated for {record.file_info.get('FileName', '?')}: {e}")

        return cls(
            date_created=date_created,
            title=_title(record),
            description=_description(record),
            keywords=_keywords(record),
            asset_id=_asset_id(record),
            location=_location(record),
            media_type=_media_type(record, mime_types),
            file_format=_file_format(record, mime_types),
            photographer=_photographer(record),
            date_created_raw=raw_date,
        )

    @property
    def has_date_created(self) -> bool:
        return self.date_created is not None

    @property
    def has_title(self) -> bool:
        return self.title != ""

    @property
    def has_description(self) -> bool:
        return self.description != ""

    @property
    def has_keywords(self) -> bool:
        return self.keywords != ""

    @property
    def has_asset_id(self) -> bool:
        return self.asset_id != ""

    @property
    def has_location(self) -> bool:
        return self.location != ""

    @property
    def has_media_type(self) -> bool:
        return self.media_type != ""

    @property
    def has_file_format(self) -> bool:
        return self.file_format != ""

    @property
    def has_photographer(self) -> bool:
        return self.photographer != ""


# --- Field Resolvers ---

def _date_created_raw(r: MetadataRecord) -> str:
    # IPTC stores date and time separately; just the date still parses.
    # A bare time fails to parse, which is fine: it is useless without a date.
    # XMP DateCreated is photoshop:DateCreated, when the intellectual property
    # was created (xmp:CreateDate is about the digital representation).
    iptc = f"{r.iptc.get('DateCreated', '')} {r.iptc.get('TimeCreated', '')}".strip()
    return _first(
        iptc,
        r.exif.get("DateTimeOriginal"),
        r.xmp.get("DateCreated"),
    )


def _title(r: MetadataRecord) -> str:
    # No Exif equivalent.
    return _first(
        r.iptc.get("ObjectName"),
        r.iptc.get("Headline"),
        r.xmp.get("Title"),
    )


def _description(r: MetadataRecord) -> str:
    return _first(
        r.iptc.get("Caption-Abstract"),
        r.exif.get("ImageDescription"),
        r.xmp.get("Description"),
    )


def _keywords(r: MetadataRecord) -> str:
    # Exif has no keywords tag (UserComment was suggested once, then dropped).
    return _first(
        r.iptc.get("Keywords"),
        r.xmp.get("Subject"),
    )


def _asset_id(r: MetadataRecord) -> str:
    """
    The ID is supposed to also be the file name, but is commonly found in
    IPTC JobID or the older OriginalTransmissionReference. Falls back to the
    file name without its extension.
    """
    found = _first(
        r.iptc.get("OriginalTransmissionReference"),
        r.iptc.get("JobID"),
        r.exif.get("ImageUniqueID"),
        r.xmp.get("Identifier"),
        r.xmp.get("TransmissionReference"),
    )
    if found:
        return found
    name = r.file_info.get("FileName", "")
    return os.path.splitext(name)[0]


def _location(r: MetadataRecord) -> str:
    # Only the subject location is used; XMP "Creator City" and friends
    # describe the photographer, not the content.
    parts = [
        _first(r.iptc.get("City"), r.xmp.get("City")),
        _first(r.iptc.get("Province-State"), r.xmp.get("State")),
        _first(r.iptc.get("Country-PrimaryLocationName"), r.xmp.get("Country")),
    ]
    return ", ".join(p for p in parts if p)


def _media_type(r: MetadataRecord, mime_types: AbstractSet[str]) -> str:
    mime = _first(r.xmp.get("Format"), r.file_info.get("MIMEType"))
    if mime not in mime_types:
        return ""
    kind = mime.split("/")[0]
    return kind if kind in config.MEDIA_TYPES else ""


def _file_format(r: MetadataRecord, mime_types: AbstractSet[str]) -> str:
    # None of the standards has a file format tag; exiftool's FileType is it.
    if r.file_info.get("MIMEType", "") in mime_types:
        return r.file_info.get("FileType", "")
    return ""


def _photographer(r: MetadataRecord) -> str:
    return _first(
        r.iptc.get("By-line"),
        r.exif.get("Artist"),
        r.xmp.get("Artist"),
        r.xmp.get("Creator"),
    )
