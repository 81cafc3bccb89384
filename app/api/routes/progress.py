import logging
from fastapi import APIRouter, Body, Depends, HTTPException, Request, status, Query
from fastapi.responses import JSONResponse
from pydantic import ValidationError
from typing import Any, Dict, List, Optional

from app.context import AppContext, get_context
from app.services.exceptions import StudentNotFoundError
from app.services.progress_service import ProgressService
from app.services.user_service import UserService
from app.api.schemas.auth_schemas import MessageResponse, TeacherResponse
from app.api.schemas.progress_schemas import BookSelection, HomeworkRow, ProgressRow

logger = logging.getLogger(__name__)
router = APIRouter()

SAVE_SUCCESS = "학습 데이터가 성공적으로 저장되었습니다!"
LOGIN_REQUIRED = "로그인이 필요합니다."
TEACHER_AUTH_REQUIRED = "선생님 인증이 필요합니다."
DEV_TOKEN_HINT = "Bearer dev-teacher-token 헤더를 추가하세요"


def require_teacher(request: Request, context: AppContext = Depends(get_context)) -> None:
    """教师接口鉴权：Authorization: Bearer <TEACHER_ACCESS_TOKEN>"""
    token = context.settings.TEACHER_ACCESS_TOKEN
    authorization = request.headers.get("Authorization")
    if token and authorization == f"Bearer {token}":
        return

    detail: Dict[str, Any] = {"error": TEACHER_AUTH_REQUIRED}
    if not context.settings.is_production:
        detail["hint"] = DEV_TOKEN_HINT
    raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)


def _book_selections(raw: Any) -> List[Dict[str, Any]]:
    if not isinstance(raw, list):
        return []
    return [BookSelection.model_validate(item).model_dump() for item in raw if isinstance(item, dict)]


@router.post("/save-progress", response_model=MessageResponse)
def save_progress(
    request: Request,
    form: Dict[str, Any] = Body(...),
    context: AppContext = Depends(get_context)
):
    """
    保存今日学习记录
    - 需要学生登录
    - englishBooks / koreanBooks 为可选的书目数组
    """
    student_id = request.session.get("studentId")
    if not student_id:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"success": False, "message": LOGIN_REQUIRED}
        )

    form = dict(form)
    try:
        english_books = _book_selections(form.pop("englishBooks", None))
        korean_books = _book_selections(form.pop("koreanBooks", None))
    except ValidationError as e:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"success": False, "message": f"책 정보 형식이 올바르지 않습니다: {e.error_count()}건"}
        )

    try:
        progress_service = ProgressService(context)
        progress_service.save_progress(student_id, form, english_books, korean_books)
    except StudentNotFoundError as e:
        logger.error(f"保存学习记录失败: {e}")
        return JSONResponse(
            status_code=status.HTTP_404_NOT_FOUND,
            content={"success": False, "message": str(e)}
        )
    except Exception as e:
        logger.error(f"保存学习记录失败: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": f"저장 중 오류가 발생했습니다: {e}"}
        )
    return MessageResponse(success=True, message=SAVE_SUCCESS)


@router.get("/api/student-progress", response_model=List[ProgressRow],
            dependencies=[Depends(require_teacher)])
def get_all_progress(context: AppContext = Depends(get_context)):
    """全部学生的学习记录（教师端）"""
    try:
        return ProgressService(context).list_progress()
    except Exception as e:
        logger.error(f"获取全部学习记录失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="진도 조회 중 오류가 발생했습니다."
        )


@router.get("/api/student-progress/{student_id}", response_model=List[ProgressRow],
            dependencies=[Depends(require_teacher)])
def get_student_progress(student_id: str, context: AppContext = Depends(get_context)):
    """指定学生的学习记录（教师端）"""
    try:
        return ProgressService(context).list_progress(student_id)
    except Exception as e:
        logger.error(f"获取学生 {student_id} 学习记录失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="진도 조회 중 오류가 발생했습니다."
        )


@router.get("/api/homework-status", response_model=List[HomeworkRow],
            dependencies=[Depends(require_teacher)])
def get_homework_status(
    period: Optional[str] = Query(None, description="today / week / month / custom"),
    start_date: Optional[str] = Query(None, alias="startDate", description="YYYY-MM-DD"),
    end_date: Optional[str] = Query(None, alias="endDate", description="YYYY-MM-DD"),
    teacher: Optional[str] = Query(None, description="负责老师页面ID，all 表示全部"),
    context: AppContext = Depends(get_context)
):
    """作业完成情况（教师端）"""
    try:
        return ProgressService(context).homework_status(period, start_date, end_date, teacher)
    except ValueError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except Exception as e:
        logger.error(f"获取作业完成情况失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="숙제 현황 데이터를 처리하는 중 오류가 발생했습니다."
        )


@router.get("/api/teachers", response_model=List[TeacherResponse],
            dependencies=[Depends(require_teacher)])
def get_teachers(context: AppContext = Depends(get_context)):
    """教师列表（作业现况按负责老师筛选）"""
    try:
        return UserService(context).list_teachers()
    except Exception as e:
        logger.error(f"获取教师列表失败: {e}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Notion에서 강사 목록을 가져오는 데 실패했습니다."
        )
