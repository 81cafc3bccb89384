from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.testclient import TestClient

from app.config.settings import Settings
from app.context import AppContext, get_context, load_template
from app.main import create_application
from app.services.summary_service import ReportSummarizer
from tests.fakes import FakeNotionGateway


# ---- fixtures ----

@pytest.fixture
def test_settings(tmp_path):
    return Settings(
        _env_file=None,
        ENVIRONMENT="development",
        STUDENT_DATABASE_ID="students-db",
        PROGRESS_DATABASE_ID="progress-db",
        ENG_BOOKS_ID="english-books-db",
        KOR_BOOKS_ID="korean-books-db",
        MONTHLY_REPORT_DB_ID="reports-db",
        TEACHER_DB_ID="teachers-db",
        TEACHER_ACCESS_TOKEN="teacher-token",
        NOTION_ACCESS_TOKEN="secret-token",
        DOMAIN_URL="https://planner.example.com",
        LLM_API_KEY="",
        LOG_DIR=str(tmp_path / "logs"),
    )


@pytest.fixture
def gateway():
    return FakeNotionGateway()


@pytest.fixture
def llm_client():
    client = Mock()
    client.generate_response = AsyncMock(return_value="이번 달도 열심히 했어요.")
    client.check_connection = AsyncMock(return_value=True)
    return client


@pytest.fixture
def context(test_settings, gateway, llm_client):
    return AppContext(
        settings=test_settings,
        gateway=gateway,
        summarizer=ReportSummarizer(llm_client),
        template=load_template(test_settings.REPORT_TEMPLATE_PATH),
    )


@pytest.fixture
def app(test_settings, context):
    """不触发 lifespan，直接注入上下文"""
    application = create_application(test_settings)
    application.state.context = context
    application.dependency_overrides[get_context] = lambda: context
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
def client(app):
    """创建测试客户端"""
    return TestClient(app)
