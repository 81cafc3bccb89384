from typing import Any, Dict, List, Optional

from app.models.book import EnglishBook, KoreanBook
from app.repositories.base import BaseRepository
from app.utils.notion_client import NotionGateway
from app.utils.record_parser import (
    ENGLISH_BOOK_SCHEMA, KOREAN_BOOK_SCHEMA, parse_english_book_page, parse_korean_book_page
)

SEARCH_LIMIT = 20


class BookRepository:
    """英文原著书单和韩文读书（사유독평）书单"""

    def __init__(self, gateway: NotionGateway, english_database_id: Optional[str],
                 korean_database_id: Optional[str]):
        self.english = BaseRepository(gateway, english_database_id)
        self.korean = BaseRepository(gateway, korean_database_id)

    @staticmethod
    def _title_filter(kind: str, property_name: str, operator: str, value: str) -> Dict[str, Any]:
        return {"property": property_name, kind: {operator: value}}

    def search_english(self, query: Optional[str]) -> List[EnglishBook]:
        """按书名模糊搜索英文书，最多20本"""
        filter = None
        if query:
            filter = self._title_filter("title", ENGLISH_BOOK_SCHEMA["title"], "contains", query)
        pages = self.english.query(filter=filter, page_size=SEARCH_LIMIT)
        return [parse_english_book_page(page) for page in pages[:SEARCH_LIMIT]]

    def search_korean(self, query: Optional[str]) -> List[KoreanBook]:
        """按书名模糊搜索韩文书，最多20本"""
        filter = None
        if query:
            filter = self._title_filter("rich_text", KOREAN_BOOK_SCHEMA["title"], "contains", query)
        pages = self.korean.query(filter=filter, page_size=SEARCH_LIMIT)
        return [parse_korean_book_page(page) for page in pages[:SEARCH_LIMIT]]

    def find_english_id(self, title: str) -> Optional[str]:
        page = self.english.first(self._title_filter("title", ENGLISH_BOOK_SCHEMA["title"], "equals", title))
        return page.get("id") if page else None

    def find_korean_id(self, title: str) -> Optional[str]:
        page = self.korean.first(self._title_filter("rich_text", KOREAN_BOOK_SCHEMA["title"], "equals", title))
        return page.get("id") if page else None
