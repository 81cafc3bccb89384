from dataclasses import dataclass, field
from datetime import date
from typing import List


"""
月度报告模型
按 (学生, 月份) 派生的统计结果。除AI总评外，是当月学习进度记录的纯函数，可以重复生成。
"""

NO_BOOK_TEXT = "읽은 책 없음"


@dataclass
class MonthlyStatistics:
    attendance_days: int = 0
    completion_rate_avg: int = 0
    vocab_score_avg: int = 0
    grammar_score_avg: int = 0
    reading_pass_rate: int = 0
    unique_book_titles: List[str] = field(default_factory=list)

    @property
    def total_books(self) -> int:
        return len(self.unique_book_titles)

    @property
    def book_list_text(self) -> str:
        return ", ".join(self.unique_book_titles) or NO_BOOK_TEXT


@dataclass
class MonthlyReport:
    student_page_id: str
    student_name: str
    month: str
    first_day: date
    last_day: date
    statistics: MonthlyStatistics
    ai_summary: str = ""
    report_url: str = ""

    @property
    def total_books(self) -> int:
        return self.statistics.total_books
