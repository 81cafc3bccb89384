#!/usr/bin/env python3
"""
学习进度服务模块
学生端保存每日学习记录，教师端查看进度列表和作业完成情况
"""

import logging
from datetime import date
from typing import Any, Dict, Iterable, List, Optional, Tuple

from app.context import AppContext
from app.models.progress_entry import ProgressEntry, score_to_json
from app.services.exceptions import StudentNotFoundError
from app.utils.helpers import parse_iso_date, parse_month, format_month, today_in, week_range
from app.utils.record_parser import HOMEWORK_SCHEMA, PROGRESS_SCHEMA, rich_text

logger = logging.getLogger(__name__)

# 学习表单中可保存的字段，按 Notion 属性类型分组
NUMBER_FIELDS = ("어휘정답", "어휘총문제", "문법 전체 개수", "문법숙제오답", "독해오답갯수")
SELECT_FIELDS = {
    "독해하브루타": "독해하브",
    "📖 영어독서": "📖 영어독서",
    "어휘학습": "어휘학습",
    "Writing": "Writing",
    "📕 책 읽는 거인": "📕 책 읽는 거인",
}
STATUS_FIELDS = ("영어 더빙 학습 완료", "더빙 워크북 완료") + tuple(HOMEWORK_SCHEMA.values())
TEXT_FIELDS = ("오늘의 학습 소감",)

PERIODS = ("today", "week", "month", "custom")


def _to_int(value: Any) -> int:
    """'12', 12.7 -> 12；无法解析时为 0"""
    try:
        return int(float(str(value).strip()))
    except (TypeError, ValueError):
        return 0


def build_progress_properties(form: Dict[str, Any]) -> Dict[str, Any]:
    """把学习表单转换成 Notion 属性，未知字段和空值忽略"""
    properties: Dict[str, Any] = {}

    for name in NUMBER_FIELDS:
        if form.get(name):
            properties[name] = {"number": _to_int(form[name])}

    for field_name, property_name in SELECT_FIELDS.items():
        if form.get(field_name):
            properties[property_name] = {"select": {"name": str(form[field_name])}}

    for name in STATUS_FIELDS:
        if form.get(name):
            properties[name] = {"status": {"name": str(form[name])}}

    for name in TEXT_FIELDS:
        if form.get(name):
            properties[name] = rich_text(str(form[name]))

    return properties


def progress_row(entry: ProgressEntry) -> Dict[str, Any]:
    """教师端进度列表的一行"""
    return {
        "id": entry.page_id,
        "studentId": entry.student_id,
        "date": entry.date,
        "vocabScore": score_to_json(entry.vocab_score),
        "grammarScore": score_to_json(entry.grammar_score),
        "readingResult": entry.reading_result.value if entry.reading_result else "",
        "englishReading": entry.english_reading,
        "bookTitle": ", ".join(entry.book_titles),
        "feeling": entry.feeling,
    }


def period_range(period: Optional[str], today: date, start: Optional[str] = None,
                 end: Optional[str] = None) -> Tuple[Optional[date], Optional[date]]:
    """
    计算查询区间
    - today: 今天
    - week: 本周一到周日
    - month: 本月
    - custom: start ~ end（必填，格式 YYYY-MM-DD）
    - 未指定: 不限日期
    """
    if not period:
        return None, None
    if period not in PERIODS:
        raise ValueError(f"不支持的查询区间: {period}")
    if period == "today":
        return today, today
    if period == "week":
        return week_range(today)
    if period == "month":
        return parse_month(format_month(today))

    if not start or not end:
        raise ValueError("custom 区间需要 startDate 和 endDate")
    first_day, last_day = parse_iso_date(start), parse_iso_date(end)
    if first_day > last_day:
        raise ValueError("startDate 不能晚于 endDate")
    return first_day, last_day


class ProgressService:
    def __init__(self, context: AppContext):
        self.settings = context.settings
        self.student_repo = context.students
        self.progress_repo = context.progress
        self.book_repo = context.books

    def _resolve_books(self, books: Iterable[Dict[str, Any]], finder) -> List[Dict[str, str]]:
        """书目关联：有ID直接用，否则按书名精确查找，找不到则跳过"""
        relations = []
        for book in books or []:
            book_id = book.get("id")
            title = (book.get("title") or "").strip()
            if not book_id and title:
                book_id = finder(title)
            if book_id:
                relations.append({"id": book_id})
            else:
                logger.warning(f"未找到书目，已跳过: {title or book}")
        return relations

    def save_progress(self, student_id: str, form: Dict[str, Any],
                      english_books: Optional[List[Dict[str, Any]]] = None,
                      korean_books: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        """
        保存今日学习记录
        每次提交都追加一条新记录，不修改已有记录
        """
        student = self.student_repo.get_by_student_id(student_id)
        if not student:
            raise StudentNotFoundError(f"학생 ID {student_id}를 찾을 수 없습니다.")

        today = today_in(self.settings.TIMEZONE)
        properties = {
            PROGRESS_SCHEMA["date"]: {"date": {"start": today.isoformat()}},
            PROGRESS_SCHEMA["student_relation"]: {"relation": [{"id": student.page_id}]},
        }
        properties.update(build_progress_properties(form))

        english = self._resolve_books(english_books, self.book_repo.find_english_id)
        if english:
            properties[PROGRESS_SCHEMA["english_books"]] = {"relation": english}
        korean = self._resolve_books(korean_books, self.book_repo.find_korean_id)
        if korean:
            properties[PROGRESS_SCHEMA["korean_books"]] = {"relation": korean}

        page = self.progress_repo.create_entry(properties)
        logger.info(f"学习记录保存成功: 学生 {student_id}, 页面 {page.get('id')}")
        return page

    def list_progress(self, student_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """进度列表（按日期倒序）"""
        entries = self.progress_repo.list_progress(student_id)
        return [progress_row(entry) for entry in entries]

    def homework_status(self, period: Optional[str] = None, start: Optional[str] = None,
                        end: Optional[str] = None, teacher_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """作业完成情况"""
        first_day, last_day = period_range(period, today_in(self.settings.TIMEZONE), start, end)
        if teacher_id == "all":
            teacher_id = None
        return self.progress_repo.list_by_period(first_day, last_day, teacher_id)
