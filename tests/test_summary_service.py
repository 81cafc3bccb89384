import pytest
from unittest.mock import AsyncMock, Mock

from app.models.monthly_report import MonthlyStatistics
from app.services.summary_service import (
    SUMMARY_UNAVAILABLE, ReportSummarizer, build_summary_prompt, name_particles, short_name
)


@pytest.fixture
def stats():
    return MonthlyStatistics(
        attendance_days=10, completion_rate_avg=82, vocab_score_avg=91,
        grammar_score_avg=64, reading_pass_rate=75, unique_book_titles=["Holes"],
    )


@pytest.mark.parametrize("name,expected", [
    ("김하늘", "하늘"),
    ("Test 하늘", "하늘"),
    ("남궁 민수", "남궁 민수"),
    ("Alex", "Alex"),
])
def test_short_name(name, expected):
    assert short_name(name) == expected


def test_name_particles():
    assert name_particles("하늘") == ("이는", "이가")
    assert name_particles("민수") == ("는", "가")
    assert name_particles("Alex") == ("이는", "이가")


def test_build_summary_prompt_contains_statistics(stats):
    prompt = build_summary_prompt("김민수", "2025-10", stats, "[2025-10-02] 독해 숙제를 꼼꼼하게 해왔습니다.")

    assert "민수의 10월 리포트" in prompt
    assert "민수는" in prompt
    assert "숙제 수행율(평균): 82%" in prompt
    assert "읽은 책: 1권 (Holes)" in prompt
    assert "[2025-10-02] 독해 숙제를 꼼꼼하게 해왔습니다." in prompt


@pytest.mark.asyncio
async def test_summarize_without_client(stats):
    summarizer = ReportSummarizer()
    assert not summarizer.available
    assert await summarizer.summarize("김하늘", "2025-10", stats, "") == SUMMARY_UNAVAILABLE


@pytest.mark.asyncio
async def test_summarize_success(stats):
    client = Mock()
    client.generate_response = AsyncMock(return_value="  이번 달 총평입니다.  ")

    summary = await ReportSummarizer(client).summarize("김하늘", "2025-10", stats, "")

    assert summary == "이번 달 총평입니다."
    messages = client.generate_response.call_args.args[0]
    assert messages[0]["role"] == "user"


@pytest.mark.asyncio
async def test_summarize_failure_falls_back(stats):
    client = Mock()
    client.generate_response = AsyncMock(side_effect=RuntimeError("quota exceeded"))

    assert await ReportSummarizer(client).summarize("김하늘", "2025-10", stats, "") == SUMMARY_UNAVAILABLE


@pytest.mark.asyncio
async def test_summarize_empty_response_falls_back(stats):
    client = Mock()
    client.generate_response = AsyncMock(return_value="   ")

    assert await ReportSummarizer(client).summarize("김하늘", "2025-10", stats, "") == SUMMARY_UNAVAILABLE
