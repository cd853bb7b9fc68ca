import pytest

from docchat.config import PipelineSettings
from docchat.context import (
    BLOCK_SEPARATOR,
    ContextAssembler,
    format_page_label,
    truncate_at_sentence,
)
from docchat.ingest.models import DocumentRecord


def test_missing_or_empty_record_gives_empty_context(assembler):
    assert assembler.prepare_document_context(None, "What about rent?") == ""
    assert assembler.prepare_document_context(DocumentRecord.empty("empty.txt"), "rent") == ""


def test_page_question_returns_the_referenced_page(assembler_factory, paginated_text):
    assembler = assembler_factory(max_chunk_size=200)
    record = assembler.process_document(paginated_text, "lease.txt")

    context = assembler.prepare_document_context(record, "What does page 2 say about refunds?")

    assert [chunk.pages for chunk in record.chunks] == [(1,), (2,), (3,)]
    assert context == "Document: lease.txt" + BLOCK_SEPARATOR + "[Page 2]\n" + record.chunks[1].text
    assert "Acme Group Lease Agreement" not in context


def test_context_respects_the_character_budget(record_factory):
    texts = [f"Rent clause {number}. " + "x" * 280 for number in range(6)]
    record = record_factory(texts)
    assembler = ContextAssembler(PipelineSettings(context_max_tokens=200))

    context = assembler.prepare_document_context(record, "rent")

    assert len(context) <= 800
    assert context.count(BLOCK_SEPARATOR) == 2


def test_lowest_ranked_blocks_are_dropped_first(record_factory):
    alpha_only = ("alpha " * 20).rstrip()
    alpha_bravo = ("alpha bravo " * 6).rstrip()
    all_three = ("alpha bravo delta " * 5).rstrip()
    record = record_factory([alpha_only, alpha_bravo, all_three])
    assembler = ContextAssembler(PipelineSettings(context_max_tokens=250, chars_per_token=1))

    context = assembler.prepare_document_context(record, "alpha bravo delta")

    assert context == BLOCK_SEPARATOR.join(["Document: document.txt", all_three, alpha_bravo])


def test_oversized_top_chunk_is_cut_at_a_sentence_end(record_factory):
    record = record_factory(
        ["First sentence here. Second sentence is much longer and will not fit at all."]
    )
    assembler = ContextAssembler(PipelineSettings(context_max_tokens=60, chars_per_token=1))

    context = assembler.prepare_document_context(record, "sentence")

    assert context == "Document: document.txt" + BLOCK_SEPARATOR + "First sentence here."
    assert len(context) <= 60


def test_budget_too_small_for_any_text_gives_empty_context(record_factory):
    record = record_factory(["Rent is due monthly."])
    assembler = ContextAssembler(PipelineSettings(context_max_tokens=10, chars_per_token=1))

    assert assembler.prepare_document_context(record, "rent") == ""


def test_supplied_terms_override_the_message(assembler, record_factory):
    record = record_factory(["Rent is due monthly.", "The deposit is refundable."])

    context = assembler.prepare_document_context(
        record, "unrelated chatter", search_terms=["deposit"]
    )

    assert "The deposit is refundable." in context
    assert "Rent is due monthly." not in context


def test_unmatched_message_falls_back_to_opening_chunks(assembler, record_factory):
    record = record_factory(["Opening clause text.", "Second clause.", "Third clause."])

    context = assembler.prepare_document_context(record, "zebra")

    assert context == BLOCK_SEPARATOR.join(
        ["Document: document.txt", "Opening clause text.", "Second clause."]
    )


def test_fallback_can_be_disabled(assembler_factory, record_factory):
    record = record_factory(["Opening clause text.", "Second clause."])

    assert assembler_factory(fallback_chunks=0).prepare_document_context(record, "zebra") == ""


def test_context_is_stable_across_calls(assembler, paginated_text):
    record = assembler.process_document(paginated_text, "lease.txt")

    first = assembler.prepare_document_context(record, "terminate notice")
    second = assembler.prepare_document_context(record, "terminate notice")

    assert first
    assert first == second
    assert all(chunk.relevance_score == 0.0 for chunk in record.chunks)


@pytest.mark.anyio
async def test_process_document_async_builds_a_record(assembler, paginated_text):
    record = await assembler.process_document_async(paginated_text, "lease.txt")

    assert record.file_name == "lease.txt"
    assert record.page_count == 3
    assert record.chunks[0].pages == (1, 2, 3)


@pytest.mark.parametrize(
    "pages, expected",
    [
        ((), ""),
        ((4,), "[Page 4]"),
        ((4, 4), "[Page 4]"),
        ((4, 5, 6), "[Pages 4-6]"),
        ((7, 2), "[Pages 2, 7]"),
    ],
)
def test_format_page_label(pages, expected):
    assert format_page_label(pages) == expected


def test_truncate_at_sentence_falls_back_to_whitespace_then_hard_cut():
    assert truncate_at_sentence("alpha beta gamma", 12) == "alpha beta"
    assert truncate_at_sentence("abcdefghij", 4) == "abcd"
    assert truncate_at_sentence("short", 10) == "short"
    assert truncate_at_sentence("anything", 0) == ""


def test_processing_is_repeatable(assembler_factory, paginated_text):
    assembler = assembler_factory(max_chunk_size=200)

    first = assembler.process_document(paginated_text, "lease.txt")
    second = assembler.process_document(paginated_text, "lease.txt")

    assert first == second


def test_unknown_page_gets_no_fallback_context(assembler, record_factory):
    record = record_factory(
        ["Opening clause.", "Second clause.", "Third clause."],
        pages=[(1,), (2,), (3,)],
    )

    assert assembler.prepare_document_context(record, "page 9") == ""


def test_missing_page_is_answered_from_nearby_pages(assembler, record_factory):
    record = record_factory(
        ["Opening clause.", "Second clause.", "Third clause."],
        pages=[(1,), (2,), (3,)],
    )

    context = assembler.prepare_document_context(record, "page 4")

    assert context == BLOCK_SEPARATOR.join(
        ["Document: document.txt", "[Page 2]\nSecond clause.", "[Page 3]\nThird clause."]
    )


def test_large_document_fallback_samples_beginning_and_middle(assembler, record_factory):
    texts = [f"Clause {number} text." for number in range(150)]
    record = record_factory(texts)

    context = assembler.prepare_document_context(record, "zebra")

    expected = [texts[index] for index in (0, 1, 2, 74, 75, 76)]
    assert context == BLOCK_SEPARATOR.join(["Document: document.txt", *expected])


def test_very_large_document_fallback_also_samples_the_end(assembler, record_factory):
    record = record_factory([f"Clause {number} text." for number in range(250)])

    sampled = assembler.fallback_chunks(record)

    assert [chunk.index for chunk in sampled] == [0, 1, 2, 124, 125, 126, 247, 248, 249]
