from typing import List, Optional

from app.models.student import StudentRecord
from app.repositories.base import BaseRepository
from app.utils.notion_client import NotionAPIError, NotionGateway
from app.utils.record_parser import STUDENT_SCHEMA, parse_student_page


class StudentRepository(BaseRepository):
    def __init__(self, gateway: NotionGateway, database_id: Optional[str]):
        super().__init__(gateway, database_id)

    def authenticate(self, student_id: str, password: str) -> Optional[StudentRecord]:
        """学生ID和密码都精确匹配时返回学生"""
        page = self.first({
            "and": [
                {"property": STUDENT_SCHEMA["student_id"], "rich_text": {"equals": student_id}},
                {"property": STUDENT_SCHEMA["password"], "rich_text": {"equals": str(password)}},
            ]
        })
        return parse_student_page(page) if page else None

    def get_by_student_id(self, student_id: str) -> Optional[StudentRecord]:
        """根据登录用学生ID获取学生"""
        page = self.first({"property": STUDENT_SCHEMA["student_id"], "rich_text": {"equals": student_id}})
        return parse_student_page(page) if page else None

    def find_by_name(self, name: str) -> List[StudentRecord]:
        """根据姓名获取学生（可能重名）"""
        pages = self.query(filter={"property": STUDENT_SCHEMA["name"], "title": {"equals": name}})
        return [student for student in map(parse_student_page, pages) if student.name]

    def get_by_page_id(self, page_id: str) -> Optional[StudentRecord]:
        """根据页面ID获取学生，不存在时返回 None"""
        try:
            page = self.get_by_id(page_id)
        except NotionAPIError as e:
            if e.is_not_found or e.status_code == 400:
                return None
            raise
        return parse_student_page(page)
