import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from fastapi import Request

from app.config.settings import Settings
from app.repositories.book_repository import BookRepository
from app.repositories.progress_repository import ProgressRepository
from app.repositories.report_repository import ReportRepository
from app.repositories.student_repository import StudentRepository
from app.repositories.teacher_repository import TeacherRepository
from app.services.summary_service import ReportSummarizer
from app.utils.llm_client import create_llm_client
from app.utils.notion_client import AccessTokenProvider, NotionGateway
from app.utils.report_renderer import StyleCutoffs

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parent.parent


@dataclass
class AppContext:
    """
    进程级应用上下文
    启动时构建一次，通过 get_context 依赖注入到各个路由
    """
    settings: Settings
    gateway: NotionGateway
    summarizer: ReportSummarizer = field(default_factory=ReportSummarizer)
    template: str = ""

    @property
    def cutoffs(self) -> StyleCutoffs:
        return StyleCutoffs(
            completion=self.settings.COMPLETION_WARNING_CUTOFF,
            score=self.settings.SCORE_WARNING_CUTOFF,
        )

    @property
    def students(self) -> StudentRepository:
        return StudentRepository(self.gateway, self.settings.STUDENT_DATABASE_ID)

    @property
    def teachers(self) -> TeacherRepository:
        return TeacherRepository(self.gateway, self.settings.TEACHER_DB_ID)

    @property
    def progress(self) -> ProgressRepository:
        return ProgressRepository(self.gateway, self.settings.PROGRESS_DATABASE_ID)

    @property
    def books(self) -> BookRepository:
        return BookRepository(self.gateway, self.settings.ENG_BOOKS_ID, self.settings.KOR_BOOKS_ID)

    @property
    def reports(self) -> ReportRepository:
        return ReportRepository(self.gateway, self.settings.MONTHLY_REPORT_DB_ID)


def load_template(path: str) -> str:
    """读取月度报告模板，文件不存在时返回空字符串"""
    template_path = Path(path)
    if not template_path.is_absolute():
        template_path = PROJECT_ROOT / template_path
    if not template_path.is_file():
        logger.warning(f"月度报告模板不存在: {template_path}")
        return ""
    return template_path.read_text(encoding="utf-8")


def build_context(config: Settings, template: Optional[str] = None) -> AppContext:
    """根据配置构建应用上下文"""
    gateway = NotionGateway(config, AccessTokenProvider(config))

    llm_client = create_llm_client(config)
    if llm_client is None:
        logger.warning("未配置 LLM_API_KEY，AI总评功能不可用")

    return AppContext(
        settings=config,
        gateway=gateway,
        summarizer=ReportSummarizer(llm_client),
        template=load_template(config.REPORT_TEMPLATE_PATH) if template is None else template,
    )


def get_context(request: Request) -> AppContext:
    """FastAPI 依赖：获取应用上下文"""
    return request.app.state.context
