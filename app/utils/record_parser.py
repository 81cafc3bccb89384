"""
Notion 页面解析器
把外部数据库中类型各异的属性（title、rich_text、number、formula、rollup、select、relation、date）
映射成纯领域值。所有字段名耦合都集中在这里的 schema 常量中。

所有提取函数都是全函数：属性缺失或结构异常时返回字段默认值，不抛异常，
单条坏记录不会中断整批解析。
"""

import logging
import math
from typing import Any, Callable, Dict, List, Optional

from app.models.book import EnglishBook, KoreanBook
from app.models.monthly_report import MonthlyReport, MonthlyStatistics
from app.models.progress_entry import (
    NOT_APPLICABLE, NOT_APPLICABLE_TEXT, ProgressEntry, ReadingResult, Score, Scored
)
from app.models.student import StudentRecord
from app.models.teacher import TeacherRecord
from app.utils.helpers import parse_month, round_half_up

logger = logging.getLogger(__name__)

NO_BOOK_SENTINEL = "읽은 책 없음"

# 领域字段 -> Notion 属性名
PROGRESS_SCHEMA = {
    "date": "🕐 날짜",
    "completion_rate": "수행율",
    "vocab_score": "📰 단어 테스트 점수",
    "grammar_score": "📑 문법 시험 점수",
    "reading_result": "📚 독해 해석 시험 결과",
    "book_titles": "📖 책제목 (롤업)",
    "teacher_comment": "❤ Today's Notice!",
    "student_name": "이름",
    "student_id": "학생 ID",
    "english_reading": "📖 영어독서",
    "feeling": "오늘의 학습 소감",
    "student_relation": "학생 명부 관리",
    "english_books": "영어 책",
    "korean_books": "3독 독서",
    "teachers": "담당쌤",
}

STUDENT_SCHEMA = {
    "name": "이름",
    "student_id": "학생 ID",
    "password": "비밀번호",
}

TEACHER_SCHEMA = {
    "name": "이름",
    "role": "권한",
}

# 可以出现在教师列表中的权限
TEACHER_ROLES = ("teacher", "manager")

REPORT_SCHEMA = {
    "title": "이름",
    "student": "학생",
    "month": "리포트 월",
    "url": "월간리포트URL",
    "completion_rate_avg": "숙제수행율(평균)",
    "vocab_score_avg": "어휘점수(평균)",
    "grammar_score_avg": "문법점수(평균)",
    "total_books": "총 읽은 권수",
    "book_list": "읽은 책 목록",
    "ai_summary": "AI 요약",
    "reading_pass_rate": "독해 통과율(%)",
}

ENGLISH_BOOK_SCHEMA = {
    "title": "Title",
    "author": "Author",
    "ar": "AR",
    "lexile": "Lexile",
    "level": "Level",
}

KOREAN_BOOK_SCHEMA = {
    "title": "책제목",
    "author": "지은이",
    "publisher": "출판사",
}

HOMEWORK_SCHEMA = {
    "grammarHomework": "⭕ 지난 문법 숙제 검사",
    "vocabCards": "1️⃣ 어휘 클카 암기 숙제",
    "readingCards": "2️⃣ 독해 단어 클카 숙제",
    "summary": "4️⃣ Summary 숙제",
    "readingHomework": "5️⃣ 매일 독해 숙제",
    "diary": "6️⃣ 영어 일기(초등) / 개인 독해서 (중고등)",
}

NO_HOMEWORK_TEXT = "숙제 없음"


def _safe(extractor: Callable[[], Any], default: Any, field_name: str) -> Any:
    try:
        value = extractor()
    except (KeyError, IndexError, TypeError, AttributeError, ValueError, OverflowError) as e:
        logger.debug(f"属性 {field_name} 解析失败，使用默认值: {e}")
        return default
    return default if value is None else value


def _page(page: Any) -> Dict[str, Any]:
    return page if isinstance(page, dict) else {}


def _prop(properties: Optional[Dict[str, Any]], name: str) -> Dict[str, Any]:
    if not isinstance(properties, dict):
        return {}
    return properties.get(name) or {}


def _first_span(spans: Any) -> str:
    if not spans:
        return ""
    return spans[0].get("plain_text") or ""


def plain_text(prop: Dict[str, Any]) -> str:
    """title / rich_text 属性的第一段纯文本"""
    for key in ("title", "rich_text"):
        if prop.get(key):
            return _first_span(prop[key])
    return ""


def full_text(prop: Dict[str, Any]) -> str:
    """rich_text / title 属性的所有文本段拼接"""
    for key in ("rich_text", "title"):
        if prop.get(key):
            return "".join(span.get("plain_text") or "" for span in prop[key])
    return ""


def formula_text(prop: Dict[str, Any]) -> Optional[str]:
    formula = prop.get("formula") or {}
    if formula.get("type") == "number" or ("number" in formula and "string" not in formula):
        number = formula.get("number")
        return None if number is None else str(number)
    return formula.get("string")


def select_name(prop: Dict[str, Any]) -> str:
    for key in ("select", "status"):
        if prop.get(key):
            return prop[key].get("name") or ""
    return ""


def parse_percentage(text: Optional[str]) -> int:
    """'87%' -> 87；缺失或无法解析时为 0"""
    if text is None:
        return 0
    try:
        value = float(str(text).strip().rstrip("%").strip())
    except ValueError:
        return 0
    # Infinity / NaN 也能被 float 解析
    if not math.isfinite(value):
        return 0
    return round_half_up(value)


def parse_score(prop: Dict[str, Any]) -> Score:
    """formula 成绩：数值 -> Scored，'N/A'、缺失或非有限数 -> NOT_APPLICABLE"""
    formula = prop.get("formula") or {}
    number = formula.get("number")
    if isinstance(number, (int, float)) and not isinstance(number, bool):
        return Scored(float(number)) if math.isfinite(number) else NOT_APPLICABLE

    text = formula.get("string")
    if text is None or text.strip() in ("", NOT_APPLICABLE_TEXT):
        return NOT_APPLICABLE
    try:
        value = float(text.strip())
    except ValueError:
        return Scored(0.0)
    return Scored(value) if math.isfinite(value) else NOT_APPLICABLE


def parse_reading_result(prop: Dict[str, Any]) -> Optional[ReadingResult]:
    text = (formula_text(prop) or "").strip().upper()
    if text in (ReadingResult.PASS.value, ReadingResult.FAIL.value):
        return ReadingResult(text)
    return None


def parse_rollup_titles(prop: Dict[str, Any]) -> List[str]:
    """
    rollup 数组中的书名
    每个子项是 title 或 rich_text，取第一段文本；丢弃空值和“没有读书”占位
    """
    rollup = prop.get("rollup") or {}
    titles = []
    for item in rollup.get("array") or []:
        if not isinstance(item, dict):
            continue
        kind = item.get("type")
        if kind not in ("title", "rich_text"):
            continue
        title = _safe(lambda: _first_span(item.get(kind)), "", "rollup item").strip()
        if title and title != NO_BOOK_SENTINEL:
            titles.append(title)
    return titles


def relation_ids(prop: Dict[str, Any]) -> List[str]:
    return [rel["id"] for rel in prop.get("relation") or [] if rel.get("id")]


def date_start(prop: Dict[str, Any]) -> str:
    return (prop.get("date") or {}).get("start") or ""


def parse_progress_page(page: Dict[str, Any]) -> ProgressEntry:
    """进度页面 -> ProgressEntry（尽力而为）"""
    props = _page(page).get("properties") or {}
    schema = PROGRESS_SCHEMA

    return ProgressEntry(
        date=_safe(lambda: date_start(_prop(props, schema["date"]))[:10], "", "date"),
        completion_rate=_safe(
            lambda: parse_percentage(formula_text(_prop(props, schema["completion_rate"]))),
            0, "completion_rate"
        ),
        vocab_score=_safe(lambda: parse_score(_prop(props, schema["vocab_score"])), NOT_APPLICABLE, "vocab_score"),
        grammar_score=_safe(lambda: parse_score(_prop(props, schema["grammar_score"])), NOT_APPLICABLE, "grammar_score"),
        reading_result=_safe(lambda: parse_reading_result(_prop(props, schema["reading_result"])), None, "reading_result"),
        book_titles=_safe(lambda: parse_rollup_titles(_prop(props, schema["book_titles"])), [], "book_titles"),
        teacher_comment=_safe(lambda: full_text(_prop(props, schema["teacher_comment"])), "", "teacher_comment"),
        page_id=_page(page).get("id") or "",
        student_id=_safe(lambda: plain_text(_prop(props, schema["student_id"])), "", "student_id"),
        student_name=_safe(lambda: plain_text(_prop(props, schema["student_name"])), "", "student_name"),
        english_reading=_safe(lambda: select_name(_prop(props, schema["english_reading"])), "", "english_reading"),
        feeling=_safe(lambda: full_text(_prop(props, schema["feeling"])), "", "feeling"),
    )


def parse_homework_page(page: Dict[str, Any]) -> Dict[str, Any]:
    """进度页面 -> 作业完成情况（教师端列表）"""
    props = _page(page).get("properties") or {}
    row = {
        "pageId": _page(page).get("id") or "",
        "studentId": _safe(lambda: plain_text(_prop(props, PROGRESS_SCHEMA["student_name"])), "", "name") or "이름 없음",
        "date": _safe(lambda: date_start(_prop(props, PROGRESS_SCHEMA["date"])), "", "date") or "날짜없음",
        "teachers": _safe(lambda: relation_ids(_prop(props, PROGRESS_SCHEMA["teachers"])), [], "teachers"),
        "completionRate": _safe(
            lambda: parse_percentage(formula_text(_prop(props, PROGRESS_SCHEMA["completion_rate"]))),
            0, "completion_rate"
        ),
    }
    for key, name in HOMEWORK_SCHEMA.items():
        row[key] = _safe(lambda: select_name(_prop(props, name)), "", key) or NO_HOMEWORK_TEXT
    return row


def parse_student_page(page: Dict[str, Any]) -> StudentRecord:
    props = _page(page).get("properties") or {}
    student_id = _safe(lambda: plain_text(_prop(props, STUDENT_SCHEMA["student_id"])), "", "student_id")
    name = _safe(lambda: plain_text(_prop(props, STUDENT_SCHEMA["name"])), "", "name")
    return StudentRecord(
        page_id=_page(page).get("id") or "",
        student_id=student_id,
        name=name or student_id,
    )


def parse_teacher_page(page: Dict[str, Any]) -> TeacherRecord:
    props = _page(page).get("properties") or {}
    return TeacherRecord(
        id=_page(page).get("id") or "",
        name=_safe(lambda: plain_text(_prop(props, TEACHER_SCHEMA["name"])), "", "name") or "이름 없음",
    )


def _number(prop: Dict[str, Any]) -> int:
    value = prop.get("number")
    if isinstance(value, (int, float)) and math.isfinite(value):
        return round_half_up(value)
    return 0


def parse_report_page(page: Dict[str, Any], student_name: str = "") -> Optional[MonthlyReport]:
    """已保存的月度报告页面 -> MonthlyReport；月份无法解析时返回 None"""
    props = _page(page).get("properties") or {}
    schema = REPORT_SCHEMA

    month = _safe(lambda: full_text(_prop(props, schema["month"])).strip(), "", "month")
    try:
        first_day, last_day = parse_month(month)
    except ValueError:
        logger.warning(f"报告页面 {_page(page).get('id')} 的月份无效: {month!r}")
        return None

    book_list = _safe(lambda: full_text(_prop(props, schema["book_list"])), "", "book_list")
    titles = [t.strip() for t in book_list.split(",") if t.strip() and t.strip() != NO_BOOK_SENTINEL]

    statistics = MonthlyStatistics(
        attendance_days=0,
        completion_rate_avg=_safe(lambda: _number(_prop(props, schema["completion_rate_avg"])), 0, "hw"),
        vocab_score_avg=_safe(lambda: _number(_prop(props, schema["vocab_score_avg"])), 0, "vocab"),
        grammar_score_avg=_safe(lambda: _number(_prop(props, schema["grammar_score_avg"])), 0, "grammar"),
        reading_pass_rate=_safe(lambda: _number(_prop(props, schema["reading_pass_rate"])), 0, "reading"),
        unique_book_titles=titles,
    )
    student_ids = _safe(lambda: relation_ids(_prop(props, schema["student"])), [], "student")

    return MonthlyReport(
        student_page_id=student_ids[0] if student_ids else "",
        student_name=student_name,
        month=month,
        first_day=first_day,
        last_day=last_day,
        statistics=statistics,
        ai_summary=_safe(lambda: full_text(_prop(props, schema["ai_summary"])), "", "ai_summary"),
        report_url=_safe(lambda: _prop(props, schema["url"]).get("url"), "", "url"),
    )


def _number_or_select(prop: Dict[str, Any]):
    number = prop.get("number")
    if number is not None:
        return number
    name = select_name(prop)
    return name or None


def parse_english_book_page(page: Dict[str, Any]) -> EnglishBook:
    props = _page(page).get("properties") or {}
    schema = ENGLISH_BOOK_SCHEMA
    return EnglishBook(
        id=_page(page).get("id") or "",
        title=_safe(lambda: plain_text(_prop(props, schema["title"])), "", "title") or "No Title",
        author=_safe(lambda: plain_text(_prop(props, schema["author"])), "", "author"),
        ar=_safe(lambda: _number_or_select(_prop(props, schema["ar"])), None, "ar"),
        lexile=_safe(lambda: _number_or_select(_prop(props, schema["lexile"])), None, "lexile"),
        level=_safe(lambda: select_name(_prop(props, schema["level"])), "", "level"),
    )


def parse_korean_book_page(page: Dict[str, Any]) -> KoreanBook:
    props = _page(page).get("properties") or {}
    schema = KOREAN_BOOK_SCHEMA
    return KoreanBook(
        id=_page(page).get("id") or "",
        title=_safe(lambda: plain_text(_prop(props, schema["title"])), "", "title") or "No Title",
        author=_safe(lambda: plain_text(_prop(props, schema["author"])), "", "author"),
        publisher=_safe(lambda: plain_text(_prop(props, schema["publisher"])), "", "publisher"),
    )


NOTION_TEXT_LIMIT = 2000


def rich_text(content: str) -> Dict[str, Any]:
    """rich_text 属性值，超长文本按 Notion 单段上限切分"""
    content = content or ""
    chunks = [content[i:i + NOTION_TEXT_LIMIT] for i in range(0, len(content), NOTION_TEXT_LIMIT)] or [""]
    return {"rich_text": [{"text": {"content": chunk}} for chunk in chunks]}


def report_properties(report: MonthlyReport, include_identity: bool = False) -> Dict[str, Any]:
    """MonthlyReport -> Notion 属性（用于创建或更新报告页面）"""
    schema = REPORT_SCHEMA
    stats = report.statistics
    properties: Dict[str, Any] = {
        schema["url"]: {"url": report.report_url},
        schema["completion_rate_avg"]: {"number": stats.completion_rate_avg},
        schema["vocab_score_avg"]: {"number": stats.vocab_score_avg},
        schema["grammar_score_avg"]: {"number": stats.grammar_score_avg},
        schema["total_books"]: {"number": stats.total_books},
        schema["book_list"]: rich_text(stats.book_list_text),
        schema["ai_summary"]: rich_text(report.ai_summary),
        schema["reading_pass_rate"]: {"number": stats.reading_pass_rate},
    }
    if include_identity:
        properties[schema["title"]] = {
            "title": [{"text": {"content": f"{report.student_name} - {report.month} 월간 리포트"}}]
        }
        properties[schema["student"]] = {"relation": [{"id": report.student_page_id}]}
        properties[schema["month"]] = rich_text(report.month)
    return properties
