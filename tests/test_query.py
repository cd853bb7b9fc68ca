import pytest

from docchat.query import QueryAnalysis, QueryAnalyzer, analyze, extract_page_references, extract_search_terms


def test_page_question_yields_terms_and_page():
    analysis = analyze("What does page 4 say about refunds?")

    assert analysis == QueryAnalysis(search_terms=("refunds",), page_references=(4,))


@pytest.mark.parametrize(
    "message, expected",
    [
        ("Summarize pages 3-5", [3, 4, 5]),
        ("Compare p. 7 and p12", [7, 12]),
        ("See pages 2, 4 and 6", [2, 4, 6]),
        ("What is on page4?", [4]),
        ("pages 2-4, 3 please", [2, 3, 4]),
        ("page 4 and page 4 again", [4]),
        ("Read pages 10 through 12", [10, 11, 12]),
    ],
)
def test_page_reference_formats(message, expected):
    assert extract_page_references(message) == expected


@pytest.mark.parametrize("message", ["page 0", "page 99999", "pages 5-3", "no pages mentioned"])
def test_invalid_page_references_are_ignored(message):
    assert extract_page_references(message) == []


def test_page_bound_is_configurable():
    analyzer = QueryAnalyzer(max_page_number=10)

    assert analyzer.extract_page_references("page 11 and page 3") == [3]


def test_search_terms_keep_first_occurrence_order():
    assert extract_search_terms("Lease lease TERMS, terms and rent?") == ["lease", "terms", "rent"]


def test_page_phrases_do_not_become_terms():
    assert extract_search_terms("Compare p. 7 and p12") == ["compare"]


def test_minimum_term_length_is_configurable():
    analyzer = QueryAnalyzer(min_term_length=5)

    assert analyzer.extract_search_terms("rent deposit fee") == ["deposit"]


@pytest.mark.parametrize("message", [None, "", "   "])
def test_empty_messages_yield_nothing(message):
    assert extract_search_terms(message) == []
    assert extract_page_references(message) == []
    assert analyze(message).is_empty


def test_stop_words_only_message_is_empty():
    assert analyze("What does it say about this?").is_empty
