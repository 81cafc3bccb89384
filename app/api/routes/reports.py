import logging
from fastapi import APIRouter, Depends, status, Query
from fastapi.responses import HTMLResponse, JSONResponse
from typing import Optional

from app.context import AppContext, get_context
from app.services.exceptions import NoProgressDataError, StudentNotFoundError
from app.services.report_service import ReportService
from app.utils.helpers import MONTH_PATTERN, parse_iso_date, parse_month, today_in
from app.api.schemas.report_schemas import ReportGenerationResponse, ReportUrlResponse

logger = logging.getLogger(__name__)
router = APIRouter()

INVALID_GENERATION_QUERY = "오류: 'studentName'과 'month' (YYYY-MM 형식) 쿼리 파라미터가 필요합니다."
REPORT_DB_MISSING = "서버 환경변수(MONTHLY_REPORT_DB_ID)가 설정되지 않았습니다."


def _failure(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@router.get("/monthly-report", response_class=HTMLResponse)
def view_monthly_report(
    student_id: Optional[str] = Query(None, alias="studentId", description="学生页面ID"),
    month: Optional[str] = Query(None, description="YYYY-MM"),
    context: AppContext = Depends(get_context)
):
    """
    月度报告页面
    - 每次请求根据学习记录重新统计
    """
    if not student_id or not month:
        return HTMLResponse("studentId와 month 쿼리 파라미터가 필요합니다.", status_code=status.HTTP_400_BAD_REQUEST)
    try:
        parse_month(month)
    except ValueError:
        return HTMLResponse("month는 YYYY-MM 형식이어야 합니다.", status_code=status.HTTP_400_BAD_REQUEST)

    if not context.template:
        logger.error("月度报告模板未加载")
        return HTMLResponse("리포트 템플릿을 찾을 수 없습니다.", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    try:
        document = ReportService(context).get_report_document(student_id, month)
    except StudentNotFoundError:
        return HTMLResponse("학생 정보를 찾을 수 없습니다.", status_code=status.HTTP_404_NOT_FOUND)
    except NoProgressDataError:
        return HTMLResponse(f"{month} 학습 데이터가 없습니다.", status_code=status.HTTP_404_NOT_FOUND)
    except Exception as e:
        logger.error(f"月度报告渲染失败 {student_id} {month}: {e}")
        return HTMLResponse("리포트 생성 중 오류가 발생했습니다.", status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return HTMLResponse(document)


@router.get("/api/manual-monthly-report-gen", response_model=ReportGenerationResponse)
async def generate_monthly_report(
    student_name: Optional[str] = Query(None, alias="studentName"),
    month: Optional[str] = Query(None, description="YYYY-MM"),
    context: AppContext = Depends(get_context)
):
    """手动生成指定学生指定月份的月度报告"""
    if not student_name or not month or not MONTH_PATTERN.match(month):
        return _failure(status.HTTP_400_BAD_REQUEST, INVALID_GENERATION_QUERY)
    if not context.settings.MONTHLY_REPORT_DB_ID:
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, REPORT_DB_MISSING)

    logger.info(f"收到手动生成月度报告请求: {student_name} {month}")
    try:
        result = await ReportService(context).generate(student_name, month)
    except ValueError as e:
        return _failure(status.HTTP_400_BAD_REQUEST, str(e))
    except (StudentNotFoundError, NoProgressDataError) as e:
        return _failure(status.HTTP_404_NOT_FOUND, str(e))
    except Exception as e:
        logger.error(f"月度报告生成失败 {student_name} {month}: {e}")
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, f"리포트 생성 오류 발생: {e}")

    return ReportGenerationResponse(success=True, url=result.url, message=result.message)


@router.get("/api/monthly-report-url", response_model=ReportUrlResponse)
def get_monthly_report_url(
    student_name: Optional[str] = Query(None, alias="studentName"),
    date: Optional[str] = Query(None, description="YYYY-MM-DD，默认今天"),
    context: AppContext = Depends(get_context)
):
    """查询给定日期上一个月的月度报告链接"""
    if not student_name:
        return _failure(status.HTTP_400_BAD_REQUEST, "studentName 쿼리 파라미터가 필요합니다.")
    try:
        on_date = parse_iso_date(date) if date else today_in(context.settings.TIMEZONE)
    except ValueError:
        return _failure(status.HTTP_400_BAD_REQUEST, "date는 YYYY-MM-DD 형식이어야 합니다.")
    if not context.settings.MONTHLY_REPORT_DB_ID:
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, REPORT_DB_MISSING)

    try:
        url = ReportService(context).get_report_url(student_name, on_date)
    except StudentNotFoundError as e:
        return _failure(status.HTTP_404_NOT_FOUND, str(e))
    except Exception as e:
        logger.error(f"查询月度报告链接失败 {student_name}: {e}")
        return _failure(status.HTTP_500_INTERNAL_SERVER_ERROR, "리포트 URL 조회 중 오류가 발생했습니다.")

    if not url:
        return _failure(status.HTTP_404_NOT_FOUND, "지난달 리포트가 없습니다.")
    return ReportUrlResponse(success=True, url=url)
