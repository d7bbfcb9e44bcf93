"""
Unit tests for collecting the converted document.
"""

import pytest

from pandoc_batch.pipeline import collect
from pandoc_batch.utils.error_handling import WorkspaceIOError


@pytest.mark.parametrize("target_format,mime_type,file_name", [
    ("markdown", "text/markdown", "report.md"),
    ("html", "text/html", "report.html"),
    ("docx", "application/vnd.openxmlformats-officedocument.wordprocessingml.document", "report.docx"),
    ("pdf", "application/pdf", "report.pdf"),
    ("latex", "application/x-latex", "report.tex"),
    ("plain", "text/plain", "report.txt"),
])
def test_known_formats(tmp_path, target_format, mime_type, file_name):
    output = tmp_path / "pandoc_output_1"
    output.write_bytes(b"converted")

    payload = collect(str(output), "report.docx", target_format)

    assert payload.data == b"converted"
    assert payload.mime_type == mime_type
    assert payload.file_name == file_name


def test_unknown_format_falls_back(tmp_path):
    output = tmp_path / "pandoc_output_1"
    output.write_bytes(b"= Title")

    payload = collect(str(output), "notes.md", "asciidoc")

    assert payload.mime_type == "application/octet-stream"
    assert payload.file_name == "notes.asciidoc"


@pytest.mark.parametrize("original,expected", [
    ("archive.2024.final.docx", "archive.2024.final.html"),
    ("README", "README.html"),
    (None, "document.html"),
    ("", "document.html"),
])
def test_output_file_name(tmp_path, original, expected):
    output = tmp_path / "pandoc_output_1"
    output.write_bytes(b"<p>x</p>")

    assert collect(str(output), original, "html").file_name == expected


def test_missing_output_is_an_error(tmp_path):
    missing = tmp_path / "pandoc_output_1"

    with pytest.raises(WorkspaceIOError, match="no output file") as exc_info:
        collect(str(missing), "doc.md", "html")

    assert exc_info.value.path == str(missing)
