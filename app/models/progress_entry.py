from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Union


"""
学习进度模型
学生每天提交一次的学习记录在内存中的投影：日期、作业完成率、词汇/语法成绩、阅读测试结果、当天读过的书和老师评语。
"""


class ReadingResult(str, Enum):
    PASS = "PASS"
    FAIL = "FAIL"


@dataclass(frozen=True)
class Scored:
    value: float


class NotApplicable:
    """成绩不适用（区别于0分）"""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "NOT_APPLICABLE"

    def __bool__(self) -> bool:
        return False


NOT_APPLICABLE = NotApplicable()
NOT_APPLICABLE_TEXT = "N/A"

Score = Union[Scored, NotApplicable]


def score_to_json(score: Optional[Score]):
    """成绩对外输出：数值或 "N/A" """
    if isinstance(score, Scored):
        value = score.value
        return int(value) if float(value).is_integer() else value
    return NOT_APPLICABLE_TEXT


@dataclass
class ProgressEntry:
    date: str = ""
    completion_rate: Optional[int] = 0
    vocab_score: Score = NOT_APPLICABLE
    grammar_score: Score = NOT_APPLICABLE
    reading_result: Optional[ReadingResult] = None
    book_titles: List[str] = field(default_factory=list)
    teacher_comment: str = ""

    # 列表展示用字段
    page_id: str = ""
    student_id: str = ""
    student_name: str = ""
    english_reading: str = ""
    feeling: str = ""
