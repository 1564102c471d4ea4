import pytest

pytestmark = pytest.mark.integration


class TestHomework:
    def test_crud_round(self, client, student_headers):
        created = client.post(
            "/api/homework",
            json={"title": "Read chapter 3", "subject": "English", "due_date": "2025-10-01"},
            headers=student_headers,
        )
        assert created.status_code == 201, created.text
        homework = created.json()
        assert homework["priority"] == "medium"
        assert homework["completed"] is False

        updated = client.patch(
            f"/api/homework/{homework['id']}",
            json={"completed": True, "priority": "HIGH"},
            headers=student_headers,
        )
        assert updated.status_code == 200, updated.text
        assert updated.json()["completed"] is True
        assert updated.json()["priority"] == "high"

        deleted = client.delete(f"/api/homework/{homework['id']}", headers=student_headers)
        assert deleted.status_code == 204
        assert client.get("/api/homework", headers=student_headers).json() == []

    def test_listing_orders_by_due_date(self, client, student_headers):
        for title, due in [("undated", None), ("later", "2025-12-01"), ("sooner", "2025-11-01")]:
            client.post(
                "/api/homework", json={"title": title, "due_date": due}, headers=student_headers
            )
        titles = [h["title"] for h in client.get("/api/homework", headers=student_headers).json()]
        assert titles == ["sooner", "later", "undated"]

    def test_invalid_priority(self, client, student_headers):
        resp = client.post(
            "/api/homework", json={"title": "x", "priority": "urgent"}, headers=student_headers
        )
        assert resp.status_code == 422

    def test_blank_title_and_null_fields(self, client, student_headers):
        assert (
            client.post("/api/homework", json={"title": "  "}, headers=student_headers).status_code
            == 400
        )
        homework = client.post(
            "/api/homework", json={"title": "Essay"}, headers=student_headers
        ).json()
        resp = client.patch(
            f"/api/homework/{homework['id']}", json={"title": None}, headers=student_headers
        )
        assert resp.status_code == 400

    def test_other_students_homework_is_hidden(self, client, student_headers, make_user, login):
        homework = client.post(
            "/api/homework", json={"title": "Private"}, headers=student_headers
        ).json()
        make_user("classmate")
        other = login("classmate")

        assert client.get("/api/homework", headers=other).json() == []
        assert (
            client.patch(
                f"/api/homework/{homework['id']}", json={"completed": True}, headers=other
            ).status_code
            == 404
        )
        assert client.delete(f"/api/homework/{homework['id']}", headers=other).status_code == 404


class TestAchievements:
    def test_record_own_progress(self, client, student_headers):
        resp = client.post(
            "/api/achievements",
            json={"title": "Fractions path", "type": "path", "progress": 2, "max_progress": 5},
            headers=student_headers,
        )
        assert resp.status_code == 201, resp.text
        achievement = resp.json()
        assert achievement["created_by_educator"] is None

        resp = client.patch(
            f"/api/achievements/{achievement['id']}",
            json={"progress": 5},
            headers=student_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["progress"] == 5

    def test_progress_above_max_is_rejected(self, client, student_headers):
        resp = client.post(
            "/api/achievements",
            json={"title": "Too far", "progress": 6, "max_progress": 5},
            headers=student_headers,
        )
        assert resp.status_code == 400

        achievement = client.post(
            "/api/achievements",
            json={"title": "Path", "progress": 1, "max_progress": 5},
            headers=student_headers,
        ).json()
        resp = client.patch(
            f"/api/achievements/{achievement['id']}",
            json={"progress": 9},
            headers=student_headers,
        )
        assert resp.status_code == 400

    def test_educator_awards_enrolled_student(self, client, school_world, login):
        student_user = school_world["student_user1"]
        resp = client.post(
            "/api/achievements",
            json={"title": "Star", "user_id": student_user.id},
            headers=login("educator1"),
        )
        assert resp.status_code == 201, resp.text
        assert resp.json()["user_id"] == student_user.id
        assert resp.json()["created_by_educator"] == school_world["educator_user1"].id

        mine = client.get("/api/achievements", headers=login("student1")).json()
        assert [a["title"] for a in mine] == ["Star"]

    def test_educator_cannot_award_outside_scope(self, client, school_world, login):
        resp = client.post(
            "/api/achievements",
            json={"title": "Star", "user_id": school_world["student_user2"].id},
            headers=login("educator1"),
        )
        assert resp.status_code == 404

    def test_students_cannot_award_others(self, client, school_world, login):
        resp = client.post(
            "/api/achievements",
            json={"title": "Star", "user_id": school_world["student_user2"].id},
            headers=login("student1"),
        )
        assert resp.status_code == 403

    def test_public_achievement_is_read_only_for_others(
        self, client, school_world, make_user, login
    ):
        make_user("schoolmate", school_id=school_world["schools"][0].id)
        owner = login("schoolmate")
        achievement = client.post(
            "/api/achievements",
            json={"title": "Shared", "is_public": True},
            headers=owner,
        ).json()

        other = login("student1")
        listed = [a["id"] for a in client.get("/api/achievements", headers=other).json()]
        assert achievement["id"] in listed

        resp = client.patch(
            f"/api/achievements/{achievement['id']}", json={"title": "Mine now"}, headers=other
        )
        assert resp.status_code == 403

    def test_public_achievements_stay_within_the_school(self, client, school_world, login):
        client.post(
            "/api/achievements",
            json={"title": "Far away", "is_public": True},
            headers=login("student2"),
        )
        assert client.get("/api/achievements", headers=login("student1")).json() == []
