import pytest

from doc_consolidator.core.errors import OutputWriteError
from doc_consolidator.core.models import PackagedOutput, SupportedKind
from doc_consolidator.core.packaging import (
    deliver, find_unique_path, output_filename, package_output, sanitize_filename
)


# An extension-only or blank stem falls back to "merged", and invalid
# filename characters are replaced, rather than using the stem as-is.
@pytest.mark.parametrize(
    "kind,stem,expected",
    [
        (SupportedKind.PDF, "report", "report.pdf"),
        (SupportedKind.PDF, "report.pdf", "report.pdf"),
        (SupportedKind.PDF, "REPORT.PDF", "REPORT.PDF"),
        (SupportedKind.CSV, "sales.2024", "sales.2024.csv"),
        (SupportedKind.WORD_DOCX, "letters", "letters.docx"),
        (SupportedKind.WORD_DOC, "letters", "letters.docx"),
        (SupportedKind.CSV, "", "merged.csv"),
        (SupportedKind.PDF, ".pdf", "merged.pdf"),
        (SupportedKind.PDF, "  ", "merged.pdf"),
    ],
)
def test_output_filename(kind, stem, expected):
    assert output_filename(kind, stem) == expected


def test_sanitize_filename_replaces_invalid_characters():
    assert sanitize_filename('a<b>:c"d/e\\f|g?h*') == "a_b__c_d_e_f_g_h_"
    assert sanitize_filename(" ..name.. ") == "name"


def test_package_output_sets_media_type():
    packaged = package_output(SupportedKind.WORD_DOC, b"data", "out")

    assert packaged.filename == "out.docx"
    assert packaged.media_type == (
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
    )
    assert packaged.payload == b"data"


def test_package_output_encodes_text():
    packaged = package_output(SupportedKind.CSV, "h\r\nÄ\r\n", "table")

    assert packaged.payload == "h\r\nÄ\r\n".encode("utf-8")
    assert packaged.media_type == "text/csv"


def test_deliver_into_directory(tmp_path):
    packaged = PackagedOutput(filename="merged.pdf", media_type="application/pdf", payload=b"%PDF")

    written = deliver(packaged, tmp_path)

    assert written == tmp_path / "merged.pdf"
    assert written.read_bytes() == b"%PDF"
    assert [p.name for p in tmp_path.iterdir()] == ["merged.pdf"]


def test_deliver_to_explicit_path(tmp_path):
    packaged = PackagedOutput(filename="merged.csv", media_type="text/csv", payload=b"a,b\r\n")
    target = tmp_path / "nested" / "chosen.csv"

    written = deliver(packaged, target)

    assert written == target
    assert target.read_bytes() == b"a,b\r\n"


def test_deliver_overwrites_existing_file(tmp_path):
    target = tmp_path / "out.csv"
    target.write_bytes(b"old")

    deliver(PackagedOutput("out.csv", "text/csv", b"new"), target)

    assert target.read_bytes() == b"new"


def test_deliver_failure_raises_output_write_error(tmp_path):
    blocker = tmp_path / "blocker"
    blocker.write_bytes(b"")

    with pytest.raises(OutputWriteError) as excinfo:
        deliver(PackagedOutput("out.pdf", "application/pdf", b"x"), blocker / "out.pdf")

    assert excinfo.value.file_names == ["out.pdf"]


def test_find_unique_path(tmp_path):
    base = tmp_path / "merged.pdf"
    assert find_unique_path(base) == base

    base.write_bytes(b"")
    assert find_unique_path(base) == tmp_path / "merged_01.pdf"

    (tmp_path / "merged_01.pdf").write_bytes(b"")
    assert find_unique_path(base) == tmp_path / "merged_02.pdf"
