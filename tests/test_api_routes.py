import pytest

from tests.fakes import page, progress_page, relation, student_page, text, title, url

TEACHER_HEADERS = {"Authorization": "Bearer teacher-token"}


@pytest.fixture
def seeded(gateway):
    gateway.add("students-db", student_page("s1", "김하늘", "haneul01", password="1234"))
    gateway.add(
        "progress-db",
        progress_page("p1", "김하늘", "2025-10-01", completion="90%", vocab=85, books=["Holes"],
                      student_id="haneul01"),
        progress_page("p2", "김하늘", "2025-10-08", completion="70%", vocab=75, books=["Wonder"],
                      student_id="haneul01"),
    )
    return gateway


def _login(client, password="1234"):
    return client.post("/login", json={"studentId": "haneul01", "password": password})


# ---- 登录 ----

def test_login_success_sets_session(client, seeded):
    response = _login(client)

    assert response.status_code == 200
    assert response.json() == {"success": True, "message": "로그인 성공!"}

    # 会话已建立，可以保存学习记录
    assert client.post("/save-progress", json={}).status_code == 200


def test_login_accepts_numeric_password(client, seeded):
    response = client.post("/login", json={"studentId": "haneul01", "password": 1234})
    assert response.json()["success"] is True


def test_login_wrong_password(client, seeded):
    response = _login(client, password="0000")

    assert response.status_code == 200
    assert response.json() == {"success": False, "message": "아이디 또는 비밀번호가 올바르지 않습니다."}
    assert client.post("/save-progress", json={}).status_code == 401


def test_login_backend_failure(client, seeded):
    seeded.failing = True
    response = _login(client)

    assert response.status_code == 500
    assert response.json() == {"success": False, "message": "로그인 중 오류가 발생했습니다."}


def test_login_missing_fields_is_bad_request(client):
    response = client.post("/login", json={"password": "1234"})

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_logout_clears_session(client, seeded):
    _login(client)
    assert client.post("/logout").json() == {"success": True, "message": None}
    assert client.post("/save-progress", json={}).status_code == 401


def test_student_info_requires_session(client):
    response = client.get("/api/student-info")

    assert response.status_code == 401
    assert response.json() == {"error": "학생 인증이 필요합니다."}


def test_student_info_after_login(client, seeded):
    _login(client)

    response = client.get("/api/student-info")

    assert response.status_code == 200
    assert response.json() == {"studentId": "haneul01", "studentName": "김하늘"}

    client.post("/logout")
    assert client.get("/api/student-info").status_code == 401


# ---- 保存学习记录 ----

def test_save_progress_requires_login(client):
    response = client.post("/save-progress", json={"어휘정답": 10})

    assert response.status_code == 401
    assert response.json() == {"success": False, "message": "로그인이 필요합니다."}


def test_save_progress_creates_page(client, seeded):
    seeded.add("english-books-db", page("eng-holes", Title=title("Holes")))
    _login(client)

    response = client.post("/save-progress", json={
        "어휘정답": "9",
        "오늘의 학습 소감": "재미있었어요",
        "englishBooks": [{"title": "Holes"}],
    })

    assert response.status_code == 200
    assert response.json()["message"] == "학습 데이터가 성공적으로 저장되었습니다!"
    properties = seeded.created[-1]["properties"]
    assert properties["어휘정답"] == {"number": 9}
    assert properties["학생 명부 관리"] == {"relation": [{"id": "s1"}]}
    assert properties["영어 책"] == {"relation": [{"id": "eng-holes"}]}
    assert "englishBooks" not in properties


def test_save_progress_rejects_malformed_books(client, seeded):
    _login(client)
    response = client.post("/save-progress", json={"englishBooks": [{"id": ["not", "a", "string"]}]})

    assert response.status_code == 400
    assert response.json()["success"] is False
    assert seeded.created == []


def test_save_progress_backend_failure(client, seeded):
    _login(client)
    seeded.failing = True
    response = client.post("/save-progress", json={})

    assert response.status_code == 500
    assert response.json()["message"].startswith("저장 중 오류가 발생했습니다")


# ---- 书目搜索 ----

def test_search_english_books(client, gateway):
    gateway.add("english-books-db", page("b1", Title=title("Holes")), page("b2", Title=title("Wonder")))

    response = client.get("/api/search-books", params={"query": "Hol"})

    assert response.status_code == 200
    books = response.json()
    assert [book["title"] for book in books] == ["Holes"]
    assert books[0]["id"] == "b1"


def test_search_korean_books(client, gateway):
    gateway.add("korean-books-db", page("k1", **{"책제목": text("어린 왕자")}))

    response = client.get("/api/search-sayu-books", params={"query": "왕자"})
    assert [book["title"] for book in response.json()] == ["어린 왕자"]


def test_search_without_matches_is_empty(client, gateway):
    response = client.get("/api/search-books", params={"query": "nothing"})
    assert response.status_code == 200
    assert response.json() == []


def test_search_failure_returns_empty_list(client, gateway):
    gateway.failing = True

    response = client.get("/api/search-sayu-books", params={"query": "왕자"})

    assert response.status_code == 500
    assert response.json() == []


# ---- 教师端 ----

def test_teacher_routes_require_token(client, seeded):
    response = client.get("/api/student-progress")

    assert response.status_code == 401
    body = response.json()
    assert body["error"] == "선생님 인증이 필요합니다."
    assert "hint" in body


def test_teacher_hint_hidden_in_production(client, context, seeded):
    context.settings = context.settings.model_copy(update={"ENVIRONMENT": "production"})

    response = client.get("/api/homework-status", headers={"Authorization": "Bearer wrong"})

    assert response.status_code == 401
    assert response.json() == {"error": "선생님 인증이 필요합니다."}


def test_student_progress_rows(client, seeded):
    response = client.get("/api/student-progress/haneul01", headers=TEACHER_HEADERS)

    assert response.status_code == 200
    rows = response.json()
    assert [row["id"] for row in rows] == ["p2", "p1"]
    assert rows[0]["vocabScore"] == 75
    assert rows[1]["bookTitle"] == "Holes"


def test_homework_status(client, gateway):
    gateway.add(
        "progress-db",
        page("h1", **{"이름": title("김하늘"), "🕐 날짜": {"date": {"start": "2025-10-14"}}, "담당쌤": relation("t1")}),
    )

    response = client.get("/api/homework-status", headers=TEACHER_HEADERS)

    assert response.status_code == 200
    row = response.json()[0]
    assert row["pageId"] == "h1"
    assert row["studentId"] == "김하늘"
    assert row["teachers"] == ["t1"]


def test_homework_status_invalid_period(client, gateway):
    response = client.get("/api/homework-status", params={"period": "yearly"}, headers=TEACHER_HEADERS)
    assert response.status_code == 400


def test_homework_status_custom_requires_dates(client, gateway):
    response = client.get(
        "/api/homework-status", params={"period": "custom", "startDate": "2025-10-01"}, headers=TEACHER_HEADERS
    )
    assert response.status_code == 400


def test_teachers_list(client, gateway):
    gateway.add(
        "teachers-db",
        page("t1", **{"이름": title("박선생"), "권한": text("teacher")}),
        page("t2", **{"이름": title("최원장"), "권한": text("manager")}),
        page("t3", **{"이름": title("알바"), "권한": text("assistant")}),
        page("t4", **{"권한": text("teacher")}),
    )

    response = client.get("/api/teachers", headers=TEACHER_HEADERS)

    assert response.status_code == 200
    assert response.json() == [
        {"id": "t1", "name": "박선생"},
        {"id": "t2", "name": "최원장"},
        {"id": "t4", "name": "이름 없음"},
    ]


def test_teachers_requires_token(client, gateway):
    assert client.get("/api/teachers").status_code == 401


def test_teachers_without_database(client, context, gateway):
    context.settings = context.settings.model_copy(update={"TEACHER_DB_ID": None})

    response = client.get("/api/teachers", headers=TEACHER_HEADERS)

    assert response.status_code == 500
    assert response.json() == {"error": "Notion에서 강사 목록을 가져오는 데 실패했습니다."}


# ---- 月度报告 ----

def test_monthly_report_page(client, seeded):
    response = client.get("/monthly-report", params={"studentId": "s1", "month": "2025-10"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "김하늘" in response.text
    assert "<li>Holes</li>" in response.text


@pytest.mark.parametrize("params", [
    {"studentId": "s1"},
    {"month": "2025-10"},
    {"studentId": "s1", "month": "2025-13"},
    {"studentId": "s1", "month": "10-2025"},
])
def test_monthly_report_bad_query(client, seeded, params):
    assert client.get("/monthly-report", params=params).status_code == 400


def test_monthly_report_unknown_student(client, seeded):
    response = client.get("/monthly-report", params={"studentId": "missing", "month": "2025-10"})
    assert response.status_code == 404


def test_monthly_report_without_data(client, seeded):
    response = client.get("/monthly-report", params={"studentId": "s1", "month": "2025-03"})
    assert response.status_code == 404


def test_monthly_report_without_template(client, context, seeded):
    context.template = ""
    response = client.get("/monthly-report", params={"studentId": "s1", "month": "2025-10"})
    assert response.status_code == 500


def test_manual_generation(client, seeded):
    response = client.get("/api/manual-monthly-report-gen", params={"studentName": "김하늘", "month": "2025-10"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["url"] == "https://planner.example.com/monthly-report?studentId=s1&month=2025-10"
    assert len(seeded.created) == 1


@pytest.mark.parametrize("params", [
    {"studentName": "김하늘"},
    {"month": "2025-10"},
    {"studentName": "김하늘", "month": "2025/10"},
])
def test_manual_generation_bad_query(client, seeded, params):
    response = client.get("/api/manual-monthly-report-gen", params=params)

    assert response.status_code == 400
    assert response.json()["success"] is False


def test_manual_generation_invalid_month_number(client, seeded):
    response = client.get("/api/manual-monthly-report-gen", params={"studentName": "김하늘", "month": "2025-13"})
    assert response.status_code == 400


def test_manual_generation_unknown_student(client, seeded):
    response = client.get("/api/manual-monthly-report-gen", params={"studentName": "없는학생", "month": "2025-10"})
    assert response.status_code == 404


def test_manual_generation_without_data(client, seeded):
    response = client.get("/api/manual-monthly-report-gen", params={"studentName": "김하늘", "month": "2025-02"})
    assert response.status_code == 404
    assert seeded.created == []


def test_manual_generation_without_report_database(client, context, seeded):
    context.settings = context.settings.model_copy(update={"MONTHLY_REPORT_DB_ID": None})
    response = client.get("/api/manual-monthly-report-gen", params={"studentName": "김하늘", "month": "2025-10"})
    assert response.status_code == 500


def test_monthly_report_url(client, seeded):
    report_url = "https://planner.example.com/monthly-report?studentId=s1&month=2025-10"
    seeded.add("reports-db", page("r1", **{
        "학생": relation("s1"), "리포트 월": text("2025-10"), "월간리포트URL": url(report_url),
    }))

    response = client.get("/api/monthly-report-url", params={"studentName": "김하늘", "date": "2025-11-20"})

    assert response.status_code == 200
    assert response.json() == {"success": True, "url": report_url, "message": None}


def test_monthly_report_url_missing(client, seeded):
    response = client.get("/api/monthly-report-url", params={"studentName": "김하늘", "date": "2025-11-20"})

    assert response.status_code == 404
    assert response.json() == {"success": False, "message": "지난달 리포트가 없습니다."}


def test_monthly_report_url_bad_input(client, seeded):
    assert client.get("/api/monthly-report-url").status_code == 400
    assert client.get("/api/monthly-report-url", params={"studentName": "김하늘", "date": "20-11-2025"}).status_code == 400
    assert client.get("/api/monthly-report-url", params={"studentName": "없는학생"}).status_code == 404


# ---- 服务状态 ----

def test_root(client):
    body = client.get("/").json()
    assert body["status"] == "running"
    assert body["version"]


def test_health(client, gateway):
    assert client.get("/health").json()["status"] == "healthy"

    gateway.failing = True
    body = client.get("/health").json()
    assert body["status"] == "unhealthy"
    assert body["notion"] == "disconnected"
