import logging
import math
from typing import Iterable, List, Optional, Sequence, Union

from app.models.monthly_report import MonthlyStatistics
from app.models.progress_entry import ProgressEntry, ReadingResult, Scored
from app.utils.helpers import round_half_up

logger = logging.getLogger(__name__)

# 评语超过该长度才作为AI总评的上下文
MIN_COMMENT_LENGTH = 15


def average(values: Iterable[Union[Scored, float, int, None]]) -> int:
    """
    过滤掉“不适用”、空值和非有限数后求算术平均并取整
    过滤后为空时返回 0
    """
    numbers = []
    for value in values:
        if isinstance(value, Scored):
            value = value.value
        if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
            numbers.append(value)

    if not numbers:
        return 0
    return round_half_up(sum(numbers) / len(numbers))


def reading_pass_rate(results: Iterable[Optional[ReadingResult]]) -> int:
    """PASS / (PASS + FAIL) * 100，没有测试结果时为 0"""
    graded = [r for r in results if r in (ReadingResult.PASS, ReadingResult.FAIL)]
    if not graded:
        return 0
    passed = sum(1 for r in graded if r == ReadingResult.PASS)
    return round_half_up(passed / len(graded) * 100)


def unique_book_titles(entries: Sequence[ProgressEntry]) -> List[str]:
    """展开所有记录的书名并按首次出现顺序去重"""
    seen = set()
    titles = []
    for entry in entries:
        for title in entry.book_titles:
            if title not in seen:
                seen.add(title)
                titles.append(title)
    return titles


def aggregate_month(entries: Sequence[ProgressEntry]) -> MonthlyStatistics:
    """
    汇总一个学生一个月的学习记录

    Args:
        entries: 当月的 ProgressEntry 列表（同一天的多条记录各自计数）

    Returns:
        MonthlyStatistics: 出勤天数、各项平均分、阅读通过率、去重书单
    """
    stats = MonthlyStatistics(
        attendance_days=len(entries),
        completion_rate_avg=average(e.completion_rate for e in entries),
        vocab_score_avg=average(e.vocab_score for e in entries),
        grammar_score_avg=average(e.grammar_score for e in entries),
        reading_pass_rate=reading_pass_rate(e.reading_result for e in entries),
        unique_book_titles=unique_book_titles(entries),
    )
    logger.debug(
        f"月度统计: 出勤{stats.attendance_days}天, 完成率{stats.completion_rate_avg}%, "
        f"词汇{stats.vocab_score_avg}, 语法{stats.grammar_score_avg}, "
        f"阅读通过率{stats.reading_pass_rate}%, 书籍{stats.total_books}本"
    )
    return stats


def build_comment_digest(entries: Sequence[ProgressEntry]) -> str:
    """按天拼接老师评语（[日期] 评语），只保留超过15个字符的评语"""
    lines = [
        f"[{entry.date}] {entry.teacher_comment.strip()}"
        for entry in entries
        if len(entry.teacher_comment.strip()) > MIN_COMMENT_LENGTH
    ]
    return "\n".join(lines)
