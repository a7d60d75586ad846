"""
Custom exception hierarchy for chkmd.

Fatal errors (ConfigError, ScanError) abort the whole run. Per-file errors
(MetadataExtractionError, DateParseError) are turned into Rejected report rows
by the pipeline workers and never escape them.
"""


class ChkmdError(Exception):
    """Base exception for all chkmd errors."""
    pass


class ConfigError(ChkmdError):
    """Raised when the configuration file cannot be read or is invalid."""
    pass


class ScanError(ChkmdError):
    """Raised when the root directory is missing or traversal fails."""
    pass


class MetadataExtractionError(ChkmdError):
    """Raised when exiftool cannot be run or fails for a single file."""
    pass


class DateParseError(ChkmdError, ValueError):
    """Raised when a date string matches none of the exiftool layouts."""
    pass
