from portal.models import AccessRequest


def login(client, code="AB-1234", device_id="phone-A"):
    return client.post("/api/login", json={"code": code, "device_id": device_id})


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json()["status"] == "healthy"
    assert "X-Request-ID" in resp.headers


# ── Login ────────────────────────────────────────────────────

def test_first_login_returns_pending_student(client, students):
    resp = login(client)

    assert resp.status_code == 200
    assert resp.json() == {
        "success": True,
        "student": {
            "id": students["amina"],
            "full_name": "Amina Benali",
            "secret_code": "AB-1234",
            "status": "PENDING"
        }
    }


def test_unknown_code_is_not_found(client, students):
    resp = login(client, code="ZZ-9999")

    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Incorrect student code"}


def test_other_device_is_a_conflict(client, students):
    login(client, device_id="phone-A")

    resp = login(client, device_id="phone-B")

    assert resp.status_code == 409
    assert resp.json() == {"success": False, "message": "This code is already linked to another device"}
    # Original device still works
    assert login(client, device_id="phone-A").json()["success"] is True


def test_login_requires_device_id(client, students):
    resp = client.post("/api/login", json={"code": "AB-1234"})
    assert resp.status_code == 422

    resp = client.post("/api/login", json={"code": "AB-1234", "device_id": ""})
    assert resp.status_code == 422


def test_device_id_is_stored_verbatim(client, students):
    device = "  Pixel 7 / f3a9-11ee  "
    assert login(client, device_id=device).status_code == 200
    assert login(client, device_id=device.strip()).status_code == 409


# ── Admin workflow ───────────────────────────────────────────

def test_requests_listing(client, students):
    login(client, code="AB-1234")
    login(client, code="CD-5678", device_id="phone-B")

    resp = client.get("/api/admin/requests")

    assert resp.status_code == 200
    rows = resp.json()
    assert {r["code"] for r in rows} == {"AB-1234", "CD-5678"}
    assert set(rows[0]) == {"student_id", "name", "code", "status", "message", "request_date"}


def test_approve_unlocks_grades(client, students):
    amina = students["amina"]
    client.post("/api/grades", json={"student_id": "AB-1234", "subject": "Maths", "score": 17})
    client.post("/api/grades", json={"student_id": "CD-5678", "subject": "Maths", "score": 8})
    login(client)

    locked = client.get(f"/api/my-grades/{amina}").json()
    assert locked["locked"] is True
    assert locked["grades"] == []

    resp = client.post("/api/admin/approve", json={"student_id": amina})
    assert resp.json() == {"success": True}

    view = client.get(f"/api/my-grades/{amina}").json()
    assert view["locked"] is False
    assert view["grades"] == [{"subject": "Maths", "score": 17.0}]
    assert login(client).json()["student"]["status"] == "APPROVED"


def test_reject_reaches_login_and_view(client, students):
    amina = students["amina"]
    login(client)

    resp = client.post("/api/admin/reject", json={"student_id": amina, "reason": "late payment"})
    assert resp.json() == {"success": True}

    student = login(client).json()["student"]
    assert student["status"] == "REJECTED"
    assert student["message"] == "late payment"

    view = client.get(f"/api/my-grades/{amina}").json()
    assert view["locked"] is True
    assert view["rejected"] is True
    assert view["reject_reason"] == "late payment"
    assert view["grades"] == []


def test_reject_needs_a_reason(client, students):
    login(client)
    resp = client.post("/api/admin/reject", json={"student_id": students["amina"], "reason": "   "})

    assert resp.status_code == 400
    assert resp.json() == {"success": False, "message": "Rejection reason cannot be empty"}
    assert login(client).json()["student"]["status"] == "PENDING"


def test_reject_reason_is_stored_as_sent(client, students):
    login(client)
    reason = "  late payment\n"

    client.post("/api/admin/reject", json={"student_id": students["amina"], "reason": reason})

    assert login(client).json()["student"]["message"] == reason
    assert client.get("/api/admin/requests").json()[0]["message"] == reason


def test_reset_frees_the_code(client, students):
    amina = students["amina"]
    login(client, device_id="phone-A")
    client.post("/api/admin/approve", json={"student_id": amina})

    resp = client.post("/api/admin/reset", json={"student_id": amina})
    assert resp.json() == {"success": True}

    resp = login(client, device_id="phone-new")
    assert resp.status_code == 200
    assert resp.json()["student"]["status"] == "PENDING"
    assert login(client, device_id="phone-A").status_code == 409


def test_reset_without_request_succeeds(client, students):
    resp = client.post("/api/admin/reset", json={"student_id": students["youssef"]})
    assert resp.status_code == 200
    assert resp.json() == {"success": True}


def test_approve_without_request_is_reported(client, students):
    resp = client.post("/api/admin/approve", json={"student_id": students["youssef"]})

    assert resp.status_code == 404
    assert resp.json()["success"] is False
    assert client.get("/api/admin/requests").json() == []


def test_admin_action_on_unknown_student(client, students):
    resp = client.post("/api/admin/approve", json={"student_id": 999})
    assert resp.status_code == 404
    assert resp.json() == {"success": False, "message": "Student not found"}


# ── Student data ─────────────────────────────────────────────

def test_absences_and_notifications_always_visible(client, students):
    amina = students["amina"]
    client.post("/api/absences", json={"student_id": "AB-1234", "date": "2026-10-05", "reason": "Sick"})
    client.post("/api/notifications", json={"type": "info", "title": "School trip", "message": "Friday"})
    client.post("/api/notifications",
                json={"type": "alert", "title": "Meeting", "message": "Parents", "target_id": "AB-1234"})
    client.post("/api/notifications",
                json={"type": "alert", "title": "Not for Amina", "target_id": "CD-5678"})

    view = client.get(f"/api/my-grades/{amina}").json()

    assert view["locked"] is True
    assert view["absences"] == [{"date": "2026-10-05", "reason": "Sick"}]
    assert [n["title"] for n in view["notifications"]] == ["Meeting", "School trip"]


def test_view_for_unknown_student(client, students):
    resp = client.get("/api/my-grades/999")
    assert resp.status_code == 404
    assert resp.json()["success"] is False


def test_list_students_newest_first(client, students):
    resp = client.get("/api/students")

    assert resp.status_code == 200
    assert [s["code"] for s in resp.json()] == ["CD-5678", "AB-1234"]


def test_record_endpoints_validate_payload(client):
    assert client.post("/api/grades", json={"student_id": "AB-1234", "subject": "Maths"}).status_code == 422
    assert client.post("/api/absences", json={"student_id": "AB-1234"}).status_code == 422
    assert client.post("/api/notifications", json={"type": "info"}).status_code == 422
    assert client.post("/api/grades",
                       json={"student_id": "AB-1234", "subject": "Maths", "score": 12}).json() == {"message": "OK"}


def test_store_failure_is_a_generic_server_error(client, students, engine):
    AccessRequest.__table__.drop(engine)

    resp = login(client)

    assert resp.status_code == 500
    assert resp.json() == {"success": False, "message": "Server error"}
