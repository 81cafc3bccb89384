from typing import List, Optional

from app.models.teacher import TeacherRecord
from app.repositories.base import BaseRepository
from app.utils.notion_client import NotionGateway
from app.utils.record_parser import TEACHER_ROLES, TEACHER_SCHEMA, parse_teacher_page


class TeacherRepository(BaseRepository):
    def __init__(self, gateway: NotionGateway, database_id: Optional[str]):
        super().__init__(gateway, database_id)

    def list_teachers(self) -> List[TeacherRecord]:
        """权限为 teacher 或 manager 的教师"""
        pages = self.query(filter={
            "or": [
                {"property": TEACHER_SCHEMA["role"], "rich_text": {"equals": role}}
                for role in TEACHER_ROLES
            ]
        })
        return [parse_teacher_page(page) for page in pages]
