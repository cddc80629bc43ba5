import inspect
import io
import unittest

from fastapi.testclient import TestClient
from PIL import Image

from backend import routes
from backend.app import create_app
from backend.dependencies import get_access_policy, get_db_client, get_storage_client
from backend.db import InMemoryDbClient
from backend.storage import InMemoryStorageClient
from backend.users import EmailAccessPolicy


def make_png():
    buffer = io.BytesIO()
    Image.new("RGB", (40, 30), (255, 200, 0)).save(buffer, format="PNG")
    return buffer.getvalue()


class BackendApiTests(unittest.TestCase):
    def setUp(self):
        app = create_app()
        app.dependency_overrides[get_access_policy] = lambda: EmailAccessPolicy(
            admin_email="admin@school.kr",
            teacher_email="",
            allowed_domain="korea.kr",
        )
        self.client = TestClient(app)
        db = get_db_client()
        if isinstance(db, InMemoryDbClient):
            db.reset()
        storage = get_storage_client()
        if isinstance(storage, InMemoryStorageClient):
            storage.stored_objects.clear()

    def _create_board(self, title="Spring Art", admin_id="teacher-1"):
        response = self.client.post(
            "/api/boards", json={"title": title, "admin_id": admin_id}
        )
        self.assertEqual(response.status_code, 201)
        return response.json()

    def _join(self, board_id, name="Kim Minsu", student_id="s-1"):
        response = self.client.post(
            f"/api/boards/{board_id}/students",
            json={"name": name, "student_id": student_id},
        )
        self.assertEqual(response.status_code, 201)
        return response.json()

    def _upload(self, board_id, student_doc_id):
        return self.client.post(
            f"/api/boards/{board_id}/photos",
            data={"student_id": student_doc_id, "title": "My drawing"},
            files={"file": ("drawing.png", make_png(), "image/png")},
        )

    def test_board_lifecycle(self):
        board = self._create_board()
        self.assertEqual(board["title"], "Spring Art")
        self.assertTrue(board["is_active"])
        self.assertEqual(board["settings"]["background_image"], "pastelBlue")

        by_qr = self.client.get(f"/api/boards/by-qr/{board['qr_code']}")
        self.assertEqual(by_qr.status_code, 200)
        self.assertEqual(by_qr.json()["id"], board["id"])

        patched = self.client.patch(
            f"/api/boards/{board['id']}",
            json={"title": "Autumn Art", "settings": {"theme": "dark"}},
        )
        self.assertEqual(patched.status_code, 200)
        self.assertEqual(patched.json()["title"], "Autumn Art")
        self.assertEqual(patched.json()["settings"]["theme"], "dark")

        listed = self.client.get("/api/boards", params={"admin_id": "teacher-1"})
        self.assertEqual([b["id"] for b in listed.json()], [board["id"]])

        deactivated = self.client.post(f"/api/boards/{board['id']}/deactivate")
        self.assertFalse(deactivated.json()["is_active"])
        self.assertEqual(
            self.client.get(f"/api/boards/by-qr/{board['qr_code']}").status_code, 404
        )

        self.assertEqual(self.client.delete(f"/api/boards/{board['id']}").status_code, 200)
        self.assertEqual(self.client.get(f"/api/boards/{board['id']}").status_code, 404)

    def test_errors_are_rendered(self):
        response = self.client.get("/api/boards/missing")
        self.assertEqual(response.status_code, 404)
        error = response.json()["error"]
        self.assertEqual(error["code"], "board_not_found")
        self.assertIn("message", error)
        self.assertIn("recovery", error)

        response = self.client.post(
            "/api/boards", json={"title": "   ", "admin_id": "teacher-1"}
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["error"]["code"], "invalid_board_title")

    def test_students_and_participations(self):
        board = self._create_board()
        student = self._join(board["id"])
        self.assertNotIn("password_hash", student)

        duplicate = self.client.post(
            f"/api/boards/{board['id']}/students",
            json={"name": "Park Hana", "student_id": "s-1"},
        )
        self.assertEqual(duplicate.status_code, 409)

        students = self.client.get(f"/api/boards/{board['id']}/students").json()
        self.assertEqual([s["id"] for s in students], [student["id"]])

        patched = self.client.patch(
            f"/api/students/{student['id']}", json={"name": "Kim Minho"}
        )
        self.assertEqual(patched.json()["name"], "Kim Minho")

        moved = self.client.patch(
            f"/api/students/{student['id']}", json={"board_id": "no-such-board"}
        )
        self.assertEqual(moved.status_code, 200)
        self.assertEqual(moved.json()["board_id"], board["id"])

        participations = self.client.get("/api/students/s-1/participations").json()
        self.assertEqual(len(participations), 1)
        self.assertEqual(participations[0]["board_title"], "Spring Art")

        teacher_boards = self.client.get("/api/teachers/teacher-1/boards").json()
        self.assertEqual(teacher_boards[0]["student_count"], 1)

        self.assertEqual(
            self.client.delete(f"/api/students/{student['id']}").status_code, 200
        )
        self.assertEqual(self.client.get(f"/api/students/{student['id']}").status_code, 404)

    def test_student_register_and_login(self):
        response = self.client.post(
            "/api/students/register",
            json={"name": "Kim Minsu", "student_id": "s-7", "password": "secret1"},
        )
        self.assertEqual(response.status_code, 201)
        self.assertEqual(response.json()["board_id"], "")

        login = self.client.post(
            "/api/students/login",
            json={"name": "Kim Minsu", "student_id": "s-7", "password": "secret1"},
        )
        self.assertEqual(login.status_code, 200)
        self.assertEqual(login.json()["id"], response.json()["id"])

        bad = self.client.post(
            "/api/students/login",
            json={"name": "Kim Minsu", "student_id": "s-7", "password": "nope-nope"},
        )
        self.assertEqual(bad.status_code, 401)

        board = self._create_board()
        added = self.client.post(
            f"/api/students/{response.json()['id']}/boards/{board['id']}"
        )
        self.assertEqual(added.json()["board_id"], board["id"])

    def test_photo_upload_moderation_and_delete(self):
        board = self._create_board()
        student = self._join(board["id"])

        response = self._upload(board["id"], student["id"])
        self.assertEqual(response.status_code, 201)
        photo = response.json()
        self.assertEqual(photo["title"], "My drawing")
        self.assertTrue(photo["image_url"].endswith(f"{photo['id']}.jpg"))

        photos = self.client.get(f"/api/boards/{board['id']}/photos").json()
        self.assertEqual([p["id"] for p in photos], [photo["id"]])
        mine = self.client.get(
            f"/api/boards/{board['id']}/students/{student['id']}/photos"
        ).json()
        self.assertEqual(len(mine), 1)

        hidden = self.client.patch(
            f"/api/photos/{photo['id']}/visibility",
            json={"is_visible": False, "actor_id": "teacher-1"},
        )
        self.assertFalse(hidden.json()["is_visible"])
        denied = self.client.patch(
            f"/api/photos/{photo['id']}/visibility",
            json={"is_visible": True, "actor_id": "stranger"},
        )
        self.assertEqual(denied.status_code, 403)

        forbidden = self.client.delete(
            f"/api/photos/{photo['id']}", params={"student_id": "stranger"}
        )
        self.assertEqual(forbidden.status_code, 403)
        deleted = self.client.delete(
            f"/api/photos/{photo['id']}", params={"student_id": student["id"]}
        )
        self.assertEqual(deleted.status_code, 200)
        self.assertEqual(get_storage_client().stored_objects, {})

    def test_upload_runs_in_threadpool(self):
        self.assertFalse(inspect.iscoroutinefunction(routes.upload_photo))

    def test_upload_rejects_non_images(self):
        board = self._create_board()
        student = self._join(board["id"])
        response = self.client.post(
            f"/api/boards/{board['id']}/photos",
            data={"student_id": student["id"]},
            files={"file": ("notes.txt", b"hello", "text/plain")},
        )
        self.assertEqual(response.status_code, 422)
        self.assertEqual(response.json()["error"]["code"], "photo_upload_failed")

    def test_photo_views(self):
        board = self._create_board()
        student = self._join(board["id"])
        photo = self._upload(board["id"], student["id"]).json()

        before = self.client.get(f"/api/photos/{photo['id']}/views").json()
        self.assertEqual(before["display_status"], "unviewed")

        tracked = self.client.post(
            f"/api/photos/{photo['id']}/views",
            json={"teacher_id": "teacher-1", "board_id": board["id"], "session_duration": 4},
        )
        self.assertEqual(tracked.status_code, 201)

        after = self.client.get(f"/api/photos/{photo['id']}/views").json()
        self.assertEqual(after["display_status"], "viewed")
        self.assertEqual(after["total_views"], 1)

        marked = self.client.post(
            f"/api/boards/{board['id']}/views",
            json={"teacher_id": "teacher-2", "photo_ids": [photo["id"]]},
        )
        self.assertEqual(len(marked.json()), 1)

        statuses = self.client.get(f"/api/boards/{board['id']}/views").json()
        self.assertEqual(statuses[photo["id"]]["unique_viewers"], 2)

        stats = self.client.get("/api/teachers/teacher-1/view-stats").json()
        self.assertEqual(stats["total_photos_viewed"], 1)
        self.assertEqual(stats["average_view_time"], 4)

    def test_users_and_admin(self):
        signed_up = self.client.post(
            "/api/users",
            json={"username": "Principal", "email": "admin@school.kr", "password": "123456"},
        )
        self.assertEqual(signed_up.status_code, 201)
        self.assertEqual(signed_up.json()["role"], "admin")
        self.assertNotIn("password_hash", signed_up.json())

        rejected = self.client.post(
            "/api/users",
            json={"username": "Eve", "email": "eve@gmail.com", "password": "123456"},
        )
        self.assertEqual(rejected.status_code, 403)
        self.assertEqual(rejected.json()["error"]["code"], "sign_up_failed")

        login = self.client.post(
            "/api/users/login", json={"email": "admin@school.kr", "password": "123456"}
        )
        self.assertEqual(login.status_code, 200)
        user_id = login.json()["id"]

        self.assertEqual(self.client.get(f"/api/users/{user_id}").status_code, 200)
        missing = self.client.get("/api/users/missing")
        self.assertEqual(missing.status_code, 404)
        self.assertEqual(missing.json()["error"]["code"], "user_not_found")
        self.assertEqual(len(self.client.get("/api/users").json()), 1)

        dashboard = self.client.get("/api/admin/dashboard").json()
        self.assertEqual(dashboard["users_by_role"]["admin"], 1)

        activities = self.client.get("/api/admin/activities", params={"limit": 5}).json()
        self.assertEqual(
            {activity["type"] for activity in activities},
            {"user_signed_up", "admin_logged_in"},
        )

    def test_config(self):
        response = self.client.get("/api/config")
        self.assertEqual(response.status_code, 200)
        self.assertIn("allowed_domain", response.json())
        self.assertIn("config_version", response.json())


if __name__ == "__main__":
    unittest.main()
