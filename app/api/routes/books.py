import logging
from fastapi import APIRouter, Depends, status, Query
from fastapi.responses import JSONResponse
from typing import List, Optional

from app.context import AppContext, get_context
from app.services.book_service import BookService
from app.api.schemas.book_schemas import EnglishBookResponse, KoreanBookResponse

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/search-books", response_model=List[EnglishBookResponse])
def search_english_books(
    query: Optional[str] = Query(None, description="书名关键字"),
    context: AppContext = Depends(get_context)
):
    """搜索英文原著，最多返回20本"""
    try:
        return BookService(context).search_english(query)
    except Exception as e:
        logger.error(f"英文书搜索失败: {e}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=[])


@router.get("/api/search-sayu-books", response_model=List[KoreanBookResponse])
def search_korean_books(
    query: Optional[str] = Query(None, description="书名关键字"),
    context: AppContext = Depends(get_context)
):
    """搜索韩文读书书目，最多返回20本"""
    try:
        return BookService(context).search_korean(query)
    except Exception as e:
        logger.error(f"韩文书搜索失败: {e}")
        return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=[])
