from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional


class Status(str, Enum):
    ACCEPTED = "Accepted"
    INCOMPLETE = "Incomplete"
    REJECTED = "Rejected"


@dataclass
class MetadataRecord:
    """
    Tags reported by exiftool for a single file, split by group.

    file_info holds everything outside the three metadata standards
    (FileName, MIMEType, FileType, ...). All four maps always exist.
    """
    file_info: Dict[str, str] = field(default_factory=dict)
    iptc: Dict[str, str] = field(default_factory=dict)
    exif: Dict[str, str] = field(default_factory=dict)
    xmp: Dict[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class ClassificationResult:
    status: Status
    reason: str = ""
    error: Optional[Exception] = None


@dataclass
class RunStatistics:
    """
    Counters for one run.

    The scanner owns total/relevant and each worker owns its own instance for
    accept/reject; the coordinator merges them after the workers finish.
    """
    total: int = 0
    relevant: int = 0
    accept: int = 0
    reject: int = 0

    def merge(self, other: "RunStatistics") -> "RunStatistics":
        self.total += other.total
        self.relevant += other.relevant
        self.accept += other.accept
        self.reject += other.reject
        return self

    def summary(self) -> str:
        return (f"Total Found: {self.total}\n"
                f"Relevant Files: {self.relevant}\n"
                f"Rejected Files: {self.reject}\n"
                f"Accepted Files: {self.accept}")
