"""
月度报告 HTML 渲染
模板中的 {{TOKEN}} 占位符按一次从左到右的扫描替换：已替换的文本不会被再次扫描，
未识别的占位符原样保留。
"""

import html
import logging
from dataclasses import dataclass
from typing import Dict, Mapping

from app.models.monthly_report import MonthlyReport

logger = logging.getLogger(__name__)

TOKEN_OPEN = "{{"
TOKEN_CLOSE = "}}"

EMPTY_BOOK_LIST_HTML = '<li class="text-gray-500 font-normal">이번 달에 읽은 원서가 없습니다.</li>'

WARNING_TEXT_COLOR = "text-red-600"
NORMAL_TEXT_COLOR = "text-teal-600"

WARNING_NOTICE = {
    "bg": "bg-red-50",
    "border": "border-red-400",
    "title_color": "text-red-900",
    "text_color": "text-red-800",
    "title": " RT-Check Point 경고",
}

NORMAL_NOTICE = {
    "bg": "bg-green-50",
    "border": "border-green-400",
    "title_color": "text-green-900",
    "text_color": "text-green-800",
    "title": " RT-Check Point 칭찬",
}


@dataclass(frozen=True)
class StyleCutoffs:
    completion: int = 70
    score: int = 60


def render_template(template: str, replacements: Mapping[str, str]) -> str:
    """
    单次扫描替换占位符

    Args:
        template: 含 {{TOKEN}} 占位符的模板文本
        replacements: 完整占位符（含花括号）-> 替换值

    Returns:
        str: 替换后的文本
    """
    parts = []
    position = 0
    length = len(template)

    while position < length:
        start = template.find(TOKEN_OPEN, position)
        if start == -1:
            break
        end = template.find(TOKEN_CLOSE, start + len(TOKEN_OPEN))
        if end == -1:
            break

        token = template[start:end + len(TOKEN_CLOSE)]
        if token in replacements:
            parts.append(template[position:start])
            parts.append(str(replacements[token]))
            position = end + len(TOKEN_CLOSE)
        else:
            # 未识别：保留开头的花括号，从下一个字符继续找
            parts.append(template[position:start + 1])
            position = start + 1

    parts.append(template[position:])
    return "".join(parts)


def escape_value(value) -> str:
    """HTML 转义并转义花括号，替换值中不会出现可被再次识别的占位符"""
    return html.escape(str(value)).replace("{", "&#123;").replace("}", "&#125;")


def text_color(value: int, cutoff: int) -> str:
    return WARNING_TEXT_COLOR if value < cutoff else NORMAL_TEXT_COLOR


def notice_style(completion_rate: int, cutoff: int) -> Dict[str, str]:
    return WARNING_NOTICE if completion_rate < cutoff else NORMAL_NOTICE


def book_list_html(titles) -> str:
    if not titles:
        return EMPTY_BOOK_LIST_HTML
    return "\n".join(f"<li>{escape_value(title)}</li>" for title in titles)


def summary_html(summary: str) -> str:
    return escape_value(summary or "").replace("\n", "<br>")


def build_replacements(report: MonthlyReport, cutoffs: StyleCutoffs = StyleCutoffs()) -> Dict[str, str]:
    """MonthlyReport -> 占位符替换表"""
    stats = report.statistics
    notice = notice_style(stats.completion_rate_avg, cutoffs.completion)

    values = {
        "STUDENT_NAME": escape_value(report.student_name),
        "REPORT_MONTH": f"{report.first_day.year}년 {report.first_day.month}월",
        "START_DATE": report.first_day.isoformat(),
        "END_DATE": report.last_day.isoformat(),

        # RT-Check Point（作业完成率）
        "HW_AVG_SCORE": stats.completion_rate_avg,
        "HW_SCORE_COLOR": text_color(stats.completion_rate_avg, cutoffs.completion),
        "RT_NOTICE_BG_COLOR": notice["bg"],
        "RT_NOTICE_BORDER_COLOR": notice["border"],
        "RT_NOTICE_TITLE_COLOR": notice["title_color"],
        "RT_NOTICE_TEXT_COLOR": notice["text_color"],
        "RT_NOTICE_TITLE": notice["title"],

        "AI_SUMMARY": summary_html(report.ai_summary),

        # 月度统计
        "ATTENDANCE_DAYS": stats.attendance_days,
        "TOTAL_DAYS_IN_MONTH": report.last_day.day,
        "VOCAB_AVG_SCORE": stats.vocab_score_avg,
        "VOCAB_SCORE_COLOR": text_color(stats.vocab_score_avg, cutoffs.score),
        "GRAMMAR_AVG_SCORE": stats.grammar_score_avg,
        "GRAMMAR_SCORE_COLOR": text_color(stats.grammar_score_avg, cutoffs.score),
        "READING_PASS_RATE": stats.reading_pass_rate,
        "READING_PASS_RATE_COLOR": text_color(stats.reading_pass_rate, cutoffs.score),
        "TOTAL_BOOKS_READ": stats.total_books,

        "BOOK_LIST_HTML": book_list_html(stats.unique_book_titles),
    }
    return {f"{TOKEN_OPEN}{key}{TOKEN_CLOSE}": str(value) for key, value in values.items()}


def render_monthly_report(template: str, report: MonthlyReport,
                          cutoffs: StyleCutoffs = StyleCutoffs()) -> str:
    """渲染月度报告 HTML"""
    document = render_template(template, build_replacements(report, cutoffs))
    logger.info(f"月度报告渲染完成: {report.student_name} {report.month}")
    return document
