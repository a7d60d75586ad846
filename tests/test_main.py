import csv
import io
import logging
import sys

import pytest

from chkmd import config, main as main_module
from chkmd.exceptions import MetadataExtractionError
from chkmd.metadata.extract import ExifToolExtractor
from chkmd.models import MetadataRecord


@pytest.fixture(autouse=True)
def isolated(monkeypatch, tmp_path):
    monkeypatch.setattr(config, "CONFIG_LOCATIONS", [tmp_path / "missing.yaml"])
    monkeypatch.delenv("CHKMD_EXIFTOOL", raising=False)


@pytest.fixture(autouse=True)
def restore_root_logger():
    """main.setup_logging installs its own handlers; take them off again."""
    root = logging.getLogger()
    before, level = set(root.handlers), root.level
    try:
        yield
    finally:
        for h in root.handlers[:]:
            if h not in before and type(h) in (logging.StreamHandler, logging.FileHandler):
                root.removeHandler(h)
                h.close()
        root.setLevel(level)


@pytest.fixture
def fake_exiftool(monkeypatch):
    def read(self, path):
        if path.name == "bad.jpg":
            raise MetadataExtractionError("Error: File format error")
        return MetadataRecord(
            file_info={"FileName": path.name, "MIMEType": "image/jpeg", "FileType": "JPEG"},
            exif={"DateTimeOriginal": "2003:09:01 18:28:44"},
            iptc={"Keywords": "desert"},
        )

    monkeypatch.setattr(ExifToolExtractor, "read", read)


def test_main_writes_report_and_summary(tmp_path, capsys, monkeypatch, fake_exiftool):
    src = tmp_path / "src"
    src.mkdir()
    (src / "good.jpg").write_bytes(b"")
    (src / "bad.jpg").write_bytes(b"")
    (src / "skip.txt").write_text("x")
    out_path = tmp_path / "report.csv"

    monkeypatch.setattr(sys, "argv", ["chkmd", str(src), "-o", str(out_path), "-p", "2", "--no-progress"])
    assert main_module.main() == 0

    with out_path.open(newline="", encoding="utf-8") as f:
        rows = list(csv.reader(f))
    assert rows[0] == config.CSV_HEADER
    by_name = {r[0]: r for r in rows[1:]}
    assert by_name[str(src / "good.jpg")][1] == "Accepted"
    assert by_name[str(src / "good.jpg")][7] == "2003-09-01T18:28:44Z"
    assert by_name[str(src / "bad.jpg")][1:3] == ["Rejected", "Error: File format error"]

    err = capsys.readouterr().err
    assert "Total Found: 3" in err
    assert "Relevant Files: 2" in err
    assert "Rejected Files: 1" in err
    assert "Accepted Files: 1" in err


def test_main_writes_to_stdout(tmp_path, capsys, fake_exiftool):
    (tmp_path / "good.jpg").write_bytes(b"")

    assert main_module.main([str(tmp_path), "--no-progress"]) == 0

    captured = capsys.readouterr()
    lines = captured.out.splitlines()
    assert lines[0] == ",".join(config.CSV_HEADER)
    assert lines[1].startswith(f"{tmp_path / 'good.jpg'},Accepted,")
    assert "Path,Status" not in captured.err


def test_main_uses_config_file(tmp_path, capsys, fake_exiftool):
    (tmp_path / "good.jpg").write_bytes(b"")
    cfg = tmp_path / "only-png.yaml"
    cfg.write_text("mime_types: [image/png]\n")

    assert main_module.main([str(tmp_path), "-c", str(cfg), "--no-progress"]) == 0

    out = capsys.readouterr().out
    assert out.splitlines() == [",".join(config.CSV_HEADER)]


def test_main_missing_dir_is_fatal(tmp_path, capsys):
    out_path = tmp_path / "report.csv"
    assert main_module.main([str(tmp_path / "nope"), "-o", str(out_path)]) == 1
    assert not out_path.exists()
    assert "Error opening" in capsys.readouterr().err


def test_main_bad_config_is_fatal(tmp_path, capsys):
    assert main_module.main([str(tmp_path), "-c", str(tmp_path / "nope.yaml")]) == 1
    assert "Couldn't open config file" in capsys.readouterr().err


def test_main_requires_dir(capsys):
    with pytest.raises(SystemExit) as exc:
        main_module.main([])
    assert exc.value.code == 2


def test_verbose_logs_per_file_errors(tmp_path, capsys, fake_exiftool):
    (tmp_path / "bad.jpg").write_bytes(b"")

    main_module.main([str(tmp_path), "-v", "--no-progress"])
    assert "Error processing" in capsys.readouterr().err

    main_module.main([str(tmp_path), "--no-progress"])
    assert "Error processing" not in capsys.readouterr().err


def test_log_file(tmp_path, fake_exiftool, capsys):
    (tmp_path / "good.jpg").write_bytes(b"")
    log_file = tmp_path / "logs" / "chkmd.log"

    main_module.main([str(tmp_path), "--no-progress", "--log-file", str(log_file)])

    logging_text = log_file.read_text(encoding="utf-8")
    assert "Accepted Files: 1" in logging_text


def test_stdout_report_is_utf8(tmp_path, monkeypatch):
    (tmp_path / "caption.jpg").write_bytes(b"")

    def read(self, path):
        return MetadataRecord(
            file_info={"FileName": path.name, "MIMEType": "image/jpeg", "FileType": "JPEG"},
            exif={"DateTimeOriginal": "2003:09:01 18:28:44"},
            iptc={"Caption-Abstract": "汉字/漢字"},
        )

    monkeypatch.setattr(ExifToolExtractor, "read", read)
    raw = io.BytesIO()
    stdout = io.TextIOWrapper(raw, encoding="ascii")
    monkeypatch.setattr(sys, "stdout", stdout)

    assert main_module.main([str(tmp_path), "--no-progress"]) == 0

    stdout.flush()
    rows = list(csv.reader(io.StringIO(raw.getvalue().decode("utf-8"), newline="")))
    assert rows[0] == config.CSV_HEADER
    assert rows[1][1] == "Accepted"
    assert rows[1][6] == "汉字/漢字"
