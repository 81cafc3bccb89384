import pytest

from app.models.progress_entry import NOT_APPLICABLE, ProgressEntry, ReadingResult, Scored
from app.services.statistics_service import (
    aggregate_month, average, build_comment_digest, reading_pass_rate, unique_book_titles
)


def _entry(**kwargs):
    return ProgressEntry(**kwargs)


def test_aggregate_month_example():
    """三条记录：完成率、词汇平均、书单去重"""
    entries = [
        _entry(completion_rate=60, vocab_score=Scored(70), book_titles=["A", "B"]),
        _entry(completion_rate=80, vocab_score=NOT_APPLICABLE, book_titles=["B"]),
        _entry(completion_rate=100, vocab_score=Scored(90), book_titles=["C"]),
    ]
    stats = aggregate_month(entries)

    assert stats.attendance_days == 3
    assert stats.completion_rate_avg == 80
    assert stats.vocab_score_avg == 80
    assert stats.unique_book_titles == ["A", "B", "C"]
    assert stats.total_books == 3


def test_aggregate_month_empty():
    stats = aggregate_month([])
    assert stats.attendance_days == 0
    assert stats.completion_rate_avg == 0
    assert stats.vocab_score_avg == 0
    assert stats.grammar_score_avg == 0
    assert stats.reading_pass_rate == 0
    assert stats.total_books == 0
    assert stats.book_list_text == "읽은 책 없음"


def test_average_excludes_not_applicable_but_keeps_zero():
    assert average([Scored(0), NOT_APPLICABLE, Scored(100), None]) == 50
    assert average([NOT_APPLICABLE, None]) == 0


def test_average_skips_non_finite_values():
    assert average([Scored(float("inf")), Scored(80), float("nan")]) == 80
    assert average([Scored(float("-inf"))]) == 0

    entries = [
        _entry(completion_rate=90, vocab_score=Scored(float("inf"))),
        _entry(completion_rate=70, vocab_score=Scored(60)),
    ]
    stats = aggregate_month(entries)
    assert stats.vocab_score_avg == 60
    assert stats.completion_rate_avg == 80


def test_average_rounds_half_up():
    assert average([Scored(70), Scored(71)]) == 71
    assert average([85, 86, 86]) == 86


def test_same_day_entries_each_count():
    entries = [
        _entry(date="2025-10-01", completion_rate=100),
        _entry(date="2025-10-01", completion_rate=50),
    ]
    stats = aggregate_month(entries)
    assert stats.attendance_days == 2
    assert stats.completion_rate_avg == 75


@pytest.mark.parametrize("results,expected", [
    ([ReadingResult.PASS, ReadingResult.FAIL, None], 50),
    ([ReadingResult.PASS, ReadingResult.PASS, ReadingResult.FAIL], 67),
    ([None, None], 0),
    ([], 0),
])
def test_reading_pass_rate(results, expected):
    assert reading_pass_rate(results) == expected


def test_unique_book_titles_preserves_first_seen_order():
    entries = [_entry(book_titles=["Wonder", "Holes"]), _entry(book_titles=["Holes", "Matilda", "Wonder"])]
    assert unique_book_titles(entries) == ["Wonder", "Holes", "Matilda"]


def test_comment_digest_keeps_only_long_comments():
    entries = [
        _entry(date="2025-10-01", teacher_comment="짧음"),
        _entry(date="2025-10-02", teacher_comment="  오늘은 독해 숙제를 꼼꼼하게 잘 해왔습니다.  "),
        _entry(date="2025-10-03", teacher_comment="a" * 15),
    ]
    assert build_comment_digest(entries) == "[2025-10-02] 오늘은 독해 숙제를 꼼꼼하게 잘 해왔습니다."
