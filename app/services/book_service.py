import logging
from dataclasses import asdict
from typing import Any, Dict, List, Optional

from app.context import AppContext

logger = logging.getLogger(__name__)


class BookService:
    """书目搜索"""

    def __init__(self, context: AppContext):
        self.book_repo = context.books

    def search_english(self, query: Optional[str]) -> List[Dict[str, Any]]:
        books = self.book_repo.search_english((query or "").strip())
        logger.info(f"英文书搜索 '{query}': {len(books)} 本")
        return [asdict(book) for book in books]

    def search_korean(self, query: Optional[str]) -> List[Dict[str, Any]]:
        books = self.book_repo.search_korean((query or "").strip())
        logger.info(f"韩文书搜索 '{query}': {len(books)} 本")
        return [asdict(book) for book in books]
