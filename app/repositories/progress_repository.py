from datetime import date
from typing import Any, Dict, List, Optional

from app.models.progress_entry import ProgressEntry
from app.repositories.base import BaseRepository
from app.utils.notion_client import NotionGateway
from app.utils.record_parser import (
    PROGRESS_SCHEMA, parse_homework_page, parse_progress_page
)

DATE_PROPERTY = PROGRESS_SCHEMA["date"]
TEACHER_PROPERTY = PROGRESS_SCHEMA["teachers"]


def date_range_filter(first_day: date, last_day: date) -> List[Dict[str, Any]]:
    """闭区间日期过滤条件"""
    return [
        {"property": DATE_PROPERTY, "date": {"on_or_after": first_day.isoformat()}},
        {"property": DATE_PROPERTY, "date": {"on_or_before": last_day.isoformat()}},
    ]


class ProgressRepository(BaseRepository):
    def __init__(self, gateway: NotionGateway, database_id: Optional[str]):
        super().__init__(gateway, database_id)

    def create_entry(self, properties: Dict[str, Any]) -> Dict[str, Any]:
        """追加一条进度记录（不做原地更新）"""
        return self.create(properties)

    def list_for_month(self, student_name: str, first_day: date, last_day: date) -> List[ProgressEntry]:
        """获取学生在日期区间内的所有进度记录"""
        pages = self.query(filter={
            "and": [
                {"property": PROGRESS_SCHEMA["student_name"], "title": {"equals": student_name}},
                *date_range_filter(first_day, last_day),
            ]
        }, sorts=[{"property": DATE_PROPERTY, "direction": "ascending"}], page_size=100)
        return [parse_progress_page(page) for page in pages]

    def list_progress(self, student_id: Optional[str] = None) -> List[ProgressEntry]:
        """按日期倒序获取进度记录，可按学生ID过滤"""
        filter = None
        if student_id:
            filter = {"property": PROGRESS_SCHEMA["student_id"], "rich_text": {"equals": student_id}}
        pages = self.query(filter=filter, sorts=[{"property": DATE_PROPERTY, "direction": "descending"}])
        return [parse_progress_page(page) for page in pages]

    def list_by_period(self, first_day: Optional[date] = None, last_day: Optional[date] = None,
                       teacher_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """按日期倒序获取作业完成情况，可按日期区间和负责老师过滤"""
        conditions: List[Dict[str, Any]] = []
        if first_day and last_day:
            conditions.extend(date_range_filter(first_day, last_day))
        if teacher_id:
            conditions.append({"property": TEACHER_PROPERTY, "relation": {"contains": teacher_id}})
        filter = {"and": conditions} if conditions else None
        pages = self.query(filter=filter, sorts=[{"property": DATE_PROPERTY, "direction": "descending"}])
        return [parse_homework_page(page) for page in pages]
