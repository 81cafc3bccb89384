import logging
from pathlib import Path

import pytest

from app.services.user_service import UserService
from app.utils.logger import setup_logging
from app.utils.notion_client import NotionAPIError
from tests.fakes import student_page


@pytest.fixture
def roster(gateway):
    gateway.add(
        "students-db",
        student_page("s1", "김하늘", "haneul01", password="1234"),
        student_page("s2", "", "bada02", password="abcd"),
    )
    return gateway


def test_login_success(context, roster):
    student = UserService(context).login("haneul01", "1234")

    assert student.page_id == "s1"
    assert student.name == "김하늘"

    # 学生ID和密码在同一个 and 过滤条件里
    conditions = roster.queries[-1]["filter"]["and"]
    assert {c["property"] for c in conditions} == {"학생 ID", "비밀번호"}


def test_login_name_falls_back_to_student_id(context, roster):
    assert UserService(context).login("bada02", "abcd").name == "bada02"


@pytest.mark.parametrize("student_id, password", [
    ("haneul01", "0000"),
    ("haneul01", ""),
    ("nobody", "1234"),
    ("HANEUL01", "1234"),
])
def test_login_rejected(context, roster, student_id, password):
    assert UserService(context).login(student_id, password) is None


def test_login_propagates_gateway_errors(context, roster):
    roster.failing = True
    with pytest.raises(NotionAPIError):
        UserService(context).login("haneul01", "1234")


def test_setup_logging_writes_file(test_settings):
    setup_logging(test_settings)
    logging.getLogger("tests.test_user_service").info("登录测试日志")

    for handler in logging.getLogger().handlers:
        handler.flush()
    log_file = Path(test_settings.LOG_DIR) / "study_planner.log"
    assert "登录测试日志" in log_file.read_text(encoding="utf-8")
