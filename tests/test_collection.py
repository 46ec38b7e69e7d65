import pytest

from doc_consolidator.core.collection import FileCollection
from doc_consolidator.core.errors import (
    CorruptOrProtectedError, ErrorCode, MixedKindsError, SizeCapExceededError,
    UnsupportedFormatError
)
from doc_consolidator.core.models import (
    Direction, SourceFile, SupportedKind, MAX_TOTAL_SIZE_BYTES
)


MB = 1024 * 1024


@pytest.fixture
def pdf_collection(make_pdf):
    collection = FileCollection()
    collection.add([make_pdf(name) for name in ("a.pdf", "b.pdf", "c.pdf")])
    return collection


def test_add_keeps_submission_order(make_pdf):
    collection = FileCollection()

    result = collection.add([
        make_pdf("first.pdf", widths=(72,)),
        make_pdf("second.pdf", widths=(72, 72)),
    ])

    assert result.accepted == 2
    assert result.errors == []
    assert collection.names == ["first.pdf", "second.pdf"]
    assert collection.kind == SupportedKind.PDF
    assert collection.total_pages == 3


def test_later_batches_append(make_csv):
    collection = FileCollection()
    collection.add([make_csv("one.csv", "h\n1\n")])
    collection.add([make_csv("two.csv", "h\n2\n"), make_csv("three.csv", "h\n3\n")])

    assert collection.names == ["one.csv", "two.csv", "three.csv"]
    assert collection.total_rows == 6


def test_duplicate_files_are_allowed(make_pdf):
    collection = FileCollection()
    source = make_pdf("same.pdf")

    collection.add([source, source])

    assert collection.names == ["same.pdf", "same.pdf"]


def test_empty_batch_is_a_noop():
    collection = FileCollection()

    result = collection.add([])

    assert result.accepted == 0
    assert result.error is None
    assert len(collection) == 0


def test_mixed_batch_is_rejected_whole(make_pdf, make_csv):
    collection = FileCollection()

    result = collection.add([make_pdf("a.pdf"), make_csv("b.csv", "h\n1\n")])

    assert result.accepted == 0
    assert isinstance(result.error, MixedKindsError)
    assert result.error.code == ErrorCode.MIXED_KINDS
    assert set(result.rejected_names) == {"a.pdf", "b.csv"}
    assert len(collection) == 0


def test_batch_conflicting_with_existing_kind_is_rejected(make_pdf, make_csv):
    collection = FileCollection()
    collection.add([make_pdf("a.pdf")])

    result = collection.add([make_csv("b.csv", "h\n1\n"), make_csv("c.csv", "h\n2\n")])

    assert isinstance(result.error, MixedKindsError)
    assert "Only PDF files" in result.error.message
    assert collection.names == ["a.pdf"]


def test_docx_and_doc_do_not_mix(make_docx):
    collection = FileCollection()
    collection.add([make_docx("new.docx", ["text"])])

    result = collection.add([SourceFile.from_bytes("old.doc", b"x", "application/msword")])

    assert isinstance(result.error, MixedKindsError)
    assert collection.names == ["new.docx"]


def test_size_cap_rejects_whole_batch():
    collection = FileCollection()
    big = [
        SourceFile(name=f"big{i}.pdf", size_bytes=300 * MB, media_type="application/pdf", data=b"")
        for i in range(2)
    ]

    result = collection.add(big)

    assert isinstance(result.error, SizeCapExceededError)
    assert result.rejected_names == ["big0.pdf", "big1.pdf"]
    assert len(collection) == 0
    assert MAX_TOTAL_SIZE_BYTES == 500 * MB


def test_size_cap_counts_existing_files(make_pdf):
    first = make_pdf("a.pdf")
    collection = FileCollection(max_total_bytes=first.size_bytes * 2 + first.size_bytes // 2)
    collection.add([first, make_pdf("b.pdf")])

    result = collection.add([make_pdf("c.pdf")])

    assert isinstance(result.error, SizeCapExceededError)
    assert collection.names == ["a.pdf", "b.pdf"]
    assert collection.total_size_bytes <= collection.max_total_bytes


def test_unsupported_files_are_reported_and_others_added(make_pdf):
    collection = FileCollection()

    result = collection.add([
        make_pdf("a.pdf"),
        SourceFile.from_bytes("photo.png", b"\x89PNG", "image/png"),
        make_pdf("b.pdf"),
    ])

    assert result.accepted == 2
    assert result.rejected_names == ["photo.png"]
    assert isinstance(result.error, UnsupportedFormatError)
    assert '"photo.png"' in result.message
    assert collection.names == ["a.pdf", "b.pdf"]


def test_only_unsupported_files_changes_nothing():
    collection = FileCollection()

    result = collection.add([SourceFile.from_bytes("notes.txt", b"hi", "text/plain")])

    assert result.accepted == 0
    assert result.error.code == ErrorCode.UNSUPPORTED_FORMAT
    assert len(collection) == 0


def test_invalid_files_are_excluded(make_pdf):
    collection = FileCollection()

    result = collection.add([
        make_pdf("good.pdf"),
        SourceFile.from_bytes("broken.pdf", b"garbage", "application/pdf"),
        make_pdf("locked.pdf", password="secret"),
        make_pdf("also_good.pdf"),
    ])

    assert result.accepted == 2
    assert isinstance(result.error, CorruptOrProtectedError)
    assert result.rejected_names == ["broken.pdf", "locked.pdf"]
    assert collection.names == ["good.pdf", "also_good.pdf"]


def test_remove_keeps_relative_order(pdf_collection):
    removed = pdf_collection.remove(1)

    assert removed.name == "b.pdf"
    assert pdf_collection.names == ["a.pdf", "c.pdf"]


def test_remove_out_of_range(pdf_collection):
    with pytest.raises(IndexError):
        pdf_collection.remove(3)


def test_move_swaps_neighbors(pdf_collection):
    assert pdf_collection.move(0, Direction.DOWN) is True
    assert pdf_collection.names == ["b.pdf", "a.pdf", "c.pdf"]

    assert pdf_collection.move(2, "up") is True
    assert pdf_collection.names == ["b.pdf", "c.pdf", "a.pdf"]


def test_move_at_boundaries_is_noop(pdf_collection):
    pdf_collection.select(1)

    assert pdf_collection.move(0, Direction.UP) is False
    assert pdf_collection.move(2, Direction.DOWN) is False
    assert pdf_collection.names == ["a.pdf", "b.pdf", "c.pdf"]
    assert pdf_collection.selected_index == 1


def test_selection_follows_moved_entry(pdf_collection):
    pdf_collection.select(1)

    pdf_collection.move(1, Direction.UP)

    assert pdf_collection.selected_index == 0
    assert pdf_collection[0].name == "b.pdf"


def test_removing_selected_entry_selects_previous(pdf_collection):
    pdf_collection.select(2)

    pdf_collection.remove(2)

    assert pdf_collection.selected_index == 1


def test_removing_selected_first_entry_selects_new_first(pdf_collection):
    pdf_collection.select(0)

    pdf_collection.remove(0)

    assert pdf_collection.selected_index == 0
    assert pdf_collection[0].name == "b.pdf"


def test_removing_last_remaining_entry_clears_selection(make_pdf):
    collection = FileCollection()
    collection.add([make_pdf("only.pdf")])
    collection.select(0)

    collection.remove(0)

    assert collection.selected_index is None


def test_removing_earlier_entry_keeps_selected_file(pdf_collection):
    pdf_collection.select(2)

    pdf_collection.remove(0)

    assert pdf_collection.selected_index == 1
    assert pdf_collection[1].name == "c.pdf"


def test_select_validates_index(pdf_collection):
    with pytest.raises(IndexError):
        pdf_collection.select(5)

    pdf_collection.select(None)
    assert pdf_collection.selected_index is None


def test_clear_empties_collection(pdf_collection):
    pdf_collection.select(1)

    pdf_collection.clear()

    assert len(pdf_collection) == 0
    assert pdf_collection.kind is None
    assert pdf_collection.selected_index is None


def test_snapshot_is_independent(pdf_collection):
    snapshot = pdf_collection.snapshot()

    pdf_collection.remove(0)

    assert [f.name for f in snapshot] == ["a.pdf", "b.pdf", "c.pdf"]
