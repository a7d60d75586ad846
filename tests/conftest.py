import pytest

from chkmd.config import ChkmdConfig
from chkmd.exceptions import MetadataExtractionError
from chkmd.models import MetadataRecord


class FakeExtractor:
    """Stands in for exiftool. Records are looked up by file name."""

    def __init__(self, records=None, failures=None):
        self.records = records or {}
        self.failures = failures or {}
        self.calls = []

    def read(self, path):
        self.calls.append(path)
        name = path.name
        if name in self.failures:
            raise MetadataExtractionError(self.failures[name])
        record = self.records.get(name)
        if record is None:
            record = MetadataRecord(file_info={"FileName": name})
        return record


@pytest.fixture
def cfg():
    """Returns the default configuration."""
    return ChkmdConfig()


@pytest.fixture
def fake_extractor():
    return FakeExtractor()


@pytest.fixture
def extractor_factory():
    return FakeExtractor
