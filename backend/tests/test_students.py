import pytest

from weekplan.api.deps import get_student_or_404
from weekplan.core.exceptions import ResourceNotFoundError
from weekplan.models.student import Student


def test_student_crud(client):
    created = client.post(
        "/api/students",
        json={"name": "  Choi Yuna ", "grade": "10", "student_phone": "010-1111-2222"},
    )
    assert created.status_code == 201
    student = created.json()
    assert student["id"] == "1"
    assert student["name"] == "Choi Yuna"

    second = client.post("/api/students", json={"name": "Han Jisoo"})
    assert second.json()["id"] == "2"

    listed = client.get("/api/students")
    assert [item["name"] for item in listed.json()] == ["Choi Yuna", "Han Jisoo"]

    updated = client.put("/api/students/1", json={"grade": "11", "parent_phone": "010-3333-4444"})
    assert updated.status_code == 200
    assert updated.json()["grade"] == "11"
    assert updated.json()["name"] == "Choi Yuna"

    deleted = client.delete("/api/students/1")
    assert deleted.status_code == 204
    missing = client.get("/api/students/1")
    assert missing.status_code == 404
    assert missing.json()["message"] == "Student with id 1 not found"


def test_duplicate_student_id_conflicts(client):
    assert client.post("/api/students", json={"id": "A-7", "name": "Kang"}).status_code == 201

    duplicate = client.post("/api/students", json={"id": "A-7", "name": "Other"})
    assert duplicate.status_code == 409

    numbered = client.post("/api/students", json={"name": "Next"})
    assert numbered.json()["id"] == "1"


def test_blank_name_rejected(client):
    response = client.post("/api/students", json={"name": "   "})
    assert response.status_code == 422


def test_unknown_student_reports_the_same_error_on_every_route(client, week_payload):
    responses = [
        client.get("/api/students/77"),
        client.put("/api/students/77", json={"grade": "9"}),
        client.post("/api/student/schedules", json=week_payload("77")),
        client.post("/api/student/schedules/copy-from-previous", json={"student_id": "77"}),
    ]

    assert {response.status_code for response in responses} == {404}
    assert {response.json()["message"] for response in responses} == {"Student with id 77 not found"}


def test_get_student_or_404_looks_up_by_primary_key(db_session):
    db_session.add(Student(id="5", name="Yoon"))
    db_session.commit()

    assert get_student_or_404(db_session, "5").name == "Yoon"
    with pytest.raises(ResourceNotFoundError):
        get_student_or_404(db_session, "6")
