import logging
from typing import Any, Dict, Optional

from app.models.monthly_report import MonthlyReport
from app.repositories.base import BaseRepository
from app.utils.notion_client import NotionGateway
from app.utils.record_parser import REPORT_SCHEMA, parse_report_page, report_properties

logger = logging.getLogger(__name__)


class ReportRepository(BaseRepository):
    """月度报告数据库，以 (学生页面ID, 月份) 为键"""

    def __init__(self, gateway: NotionGateway, database_id: Optional[str]):
        super().__init__(gateway, database_id)

    def _find_page(self, student_page_id: str, month: str) -> Optional[Dict[str, Any]]:
        return self.first({
            "and": [
                {"property": REPORT_SCHEMA["student"], "relation": {"contains": student_page_id}},
                {"property": REPORT_SCHEMA["month"], "rich_text": {"equals": month}},
            ]
        })

    def find(self, student_page_id: str, month: str, student_name: str = "") -> Optional[MonthlyReport]:
        """获取已保存的月度报告"""
        page = self._find_page(student_page_id, month)
        if not page:
            return None
        report = parse_report_page(page, student_name)
        if report and not report.student_page_id:
            report.student_page_id = student_page_id
        return report

    def upsert(self, report: MonthlyReport) -> Dict[str, Any]:
        """已存在则更新，否则新建"""
        existing = self._find_page(report.student_page_id, report.month)
        if existing:
            page = self.update(existing["id"], report_properties(report))
            logger.info(f"{report.student_name} {report.month} 月度报告已更新")
        else:
            page = self.create(report_properties(report, include_identity=True))
            logger.info(f"{report.student_name} {report.month} 月度报告已新建")
        return page
