import logging
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse

from app.context import AppContext, get_context
from app.services.user_service import UserService
from app.api.schemas.auth_schemas import LoginRequest, MessageResponse, StudentInfoResponse

logger = logging.getLogger(__name__)
router = APIRouter()

LOGIN_SUCCESS = "로그인 성공!"
LOGIN_FAILED = "아이디 또는 비밀번호가 올바르지 않습니다."
LOGIN_ERROR = "로그인 중 오류가 발생했습니다."
STUDENT_AUTH_REQUIRED = "학생 인증이 필요합니다."


@router.post("/login", response_model=MessageResponse)
def login(
    login_data: LoginRequest,
    request: Request,
    context: AppContext = Depends(get_context)
):
    """
    学生登录
    - 成功时在会话中保存 studentId 和 studentName
    """
    try:
        user_service = UserService(context)
        student = user_service.login(login_data.student_id, str(login_data.password))
    except Exception as e:
        logger.error(f"学生登录失败: {e}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"success": False, "message": LOGIN_ERROR}
        )

    if not student:
        return MessageResponse(success=False, message=LOGIN_FAILED)

    request.session["studentId"] = login_data.student_id
    request.session["studentName"] = student.name
    return MessageResponse(success=True, message=LOGIN_SUCCESS)


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request):
    """退出登录，清空会话"""
    student_id = request.session.get("studentId")
    request.session.clear()
    if student_id:
        logger.info(f"学生退出登录: {student_id}")
    return MessageResponse(success=True)


@router.get("/api/student-info", response_model=StudentInfoResponse)
def get_student_info(request: Request):
    """当前登录学生的信息"""
    student_id = request.session.get("studentId")
    if not student_id:
        return JSONResponse(
            status_code=status.HTTP_401_UNAUTHORIZED,
            content={"error": STUDENT_AUTH_REQUIRED}
        )
    return StudentInfoResponse(
        studentId=student_id,
        studentName=request.session.get("studentName") or student_id
    )
