import unittest

from fastapi.testclient import TestClient

from unirecords.app import app, get_records_service
from unirecords.services.records_service import RecordsService
from unirecords.services.storage import Storage


class ApiTests(unittest.TestCase):
    def setUp(self):
        self.store = Storage(":memory:")
        self.addCleanup(self.store.close)
        service = RecordsService(self.store)
        app.dependency_overrides[get_records_service] = lambda: service
        self.addCleanup(app.dependency_overrides.clear)
        self.client = TestClient(app)

        admin_id = self.store.create_user("registrar@example.edu", "secret123", role="admin")
        self.admin = {"x-user-id": str(admin_id)}

    def sign_up(self, email):
        res = self.client.post("/auth/signup", json={"email": email, "password": "secret123"})
        self.assertEqual(res.status_code, 200)
        return {"x-user-id": str(res.json()["uid"])}, res.json()["uid"]

    def create_student(self, number, category, user_id=None):
        res = self.client.post(
            "/students",
            headers=self.admin,
            json={
                "student_id": number,
                "name": "Dana Reyes",
                "type": category,
                "enrollment_year": 2023,
                "user_id": user_id,
            },
        )
        self.assertEqual(res.status_code, 200, res.text)
        return res.json()["id"]

    def create_course(self, code, credits):
        res = self.client.post(
            "/courses",
            headers=self.admin,
            json={"course_code": code, "course_name": f"Course {code}", "credits": credits},
        )
        self.assertEqual(res.status_code, 200, res.text)
        return res.json()["id"]

    def enroll_and_grade(self, student_id, course_id, grade):
        res = self.client.post(f"/students/{student_id}/enrollments", headers=self.admin, json={"course_id": course_id})
        self.assertEqual(res.status_code, 200, res.text)
        enrollment_id = res.json()["id"]
        res = self.client.put(f"/enrollments/{enrollment_id}/grade", headers=self.admin, json={"grade": grade})
        self.assertEqual(res.status_code, 200, res.text)
        return enrollment_id

    def test_health(self):
        self.assertEqual(self.client.get("/health").json(), {"status": "ok"})

    def test_signup_and_login(self):
        self.sign_up("dana@example.edu")
        res = self.client.post("/auth/login", json={"email": "dana@example.edu", "password": "secret123"})
        self.assertEqual(res.status_code, 200)
        self.assertEqual(res.json()["role"], "user")
        res = self.client.post("/auth/login", json={"email": "dana@example.edu", "password": "nope"})
        self.assertEqual(res.status_code, 401)

    def test_duplicate_signup(self):
        self.sign_up("dana@example.edu")
        res = self.client.post("/auth/signup", json={"email": "dana@example.edu", "password": "secret123"})
        self.assertEqual(res.status_code, 400)

    def test_requires_user_header(self):
        self.assertEqual(self.client.get("/courses").status_code, 401)
        self.assertEqual(self.client.get("/courses", headers={"x-user-id": "999"}).status_code, 401)
        self.assertEqual(self.client.get("/courses", headers={"x-user-id": "abc"}).status_code, 401)

    def test_oversized_user_header(self):
        res = self.client.get("/courses", headers={"x-user-id": "9" * 25})
        self.assertEqual(res.status_code, 401)

    def test_me(self):
        res = self.client.get("/auth/me", headers=self.admin)
        self.assertEqual(res.json()["role"], "admin")

    def test_non_admin_forbidden(self):
        headers, _ = self.sign_up("dana@example.edu")
        res = self.client.post(
            "/courses", headers=headers, json={"course_code": "CS101", "course_name": "Intro", "credits": 3}
        )
        self.assertEqual(res.status_code, 403)
        self.assertEqual(self.client.get("/students", headers=headers).status_code, 403)

    def test_validation(self):
        res = self.client.post(
            "/courses", headers=self.admin, json={"course_code": "CS101", "course_name": "Intro", "credits": 0}
        )
        self.assertEqual(res.status_code, 422)
        res = self.client.post(
            "/students",
            headers=self.admin,
            json={"student_id": "S-1", "name": "Dana", "type": "arts", "enrollment_year": 2023},
        )
        self.assertEqual(res.status_code, 422)

    def test_grade_out_of_range(self):
        student_id = self.create_student("S-1", "engineering")
        course_id = self.create_course("CS101", 3)
        res = self.client.post(f"/students/{student_id}/enrollments", headers=self.admin, json={"course_id": course_id})
        enrollment_id = res.json()["id"]
        res = self.client.put(f"/enrollments/{enrollment_id}/grade", headers=self.admin, json={"grade": 101})
        self.assertEqual(res.status_code, 422)

    def test_not_found(self):
        self.assertEqual(self.client.get("/students/42", headers=self.admin).status_code, 404)
        self.assertEqual(self.client.get("/courses/42", headers=self.admin).status_code, 404)
        self.assertEqual(self.client.get("/students/42/transcript", headers=self.admin).status_code, 404)

    def test_oversized_path_ids(self):
        huge = "9" * 25
        for path in (f"/students/{huge}/transcript", f"/students/{huge}", f"/courses/{huge}"):
            with self.subTest(path=path):
                self.assertEqual(self.client.get(path, headers=self.admin).status_code, 422)
        res = self.client.put(f"/enrollments/{huge}/grade", headers=self.admin, json={"grade": 80})
        self.assertEqual(res.status_code, 422)

    def test_oversized_payload_numbers(self):
        res = self.client.post(
            "/students",
            headers=self.admin,
            json={"student_id": "S-1", "name": "Dana", "type": "engineering", "enrollment_year": 10**25},
        )
        self.assertEqual(res.status_code, 422)
        student_id = self.create_student("S-2", "engineering")
        res = self.client.post(
            f"/students/{student_id}/enrollments", headers=self.admin, json={"course_id": 10**25}
        )
        self.assertEqual(res.status_code, 422)
        res = self.client.patch(f"/students/{student_id}", headers=self.admin, json={"user_id": 10**25})
        self.assertEqual(res.status_code, 422)

    def test_duplicate_course_code(self):
        self.create_course("CS101", 3)
        res = self.client.post(
            "/courses", headers=self.admin, json={"course_code": "CS101", "course_name": "Again", "credits": 3}
        )
        self.assertEqual(res.status_code, 400)

    def test_gpa(self):
        student_id = self.create_student("S-1", "management")
        self.enroll_and_grade(student_id, self.create_course("CS101", 3), 85)
        self.enroll_and_grade(student_id, self.create_course("MA201", 4), 90)
        res = self.client.get(f"/students/{student_id}/gpa", headers=self.admin)
        self.assertEqual(
            res.json(),
            {"gpa": 3.57, "studentType": "management", "courseCount": 2, "totalCredits": 7},
        )

    def test_student_transcript(self):
        headers, uid = self.sign_up("dana@example.edu")
        student_id = self.create_student("S-1", "engineering", user_id=uid)
        self.enroll_and_grade(student_id, self.create_course("CS101", 3), 85)
        self.enroll_and_grade(student_id, self.create_course("MA201", 4), 90)
        self.enroll_and_grade(student_id, self.create_course("PH110", 3), 78)

        self.assertEqual(self.client.get("/students/me", headers=headers).json()["id"], student_id)
        body = self.client.get(f"/students/{student_id}/transcript", headers=headers).json()
        self.assertEqual(body["gpa"], 3.0)
        self.assertEqual(body["totalCredits"], 10)
        self.assertEqual(body["calculationMethod"], "Simple Average")
        self.assertEqual([c["gpaScale"] for c in body["courses"]], ["3.00", "4.00", "2.00"])

    def test_other_students_transcript_forbidden(self):
        headers, _ = self.sign_up("omar@example.edu")
        student_id = self.create_student("S-1", "engineering")
        res = self.client.get(f"/students/{student_id}/transcript", headers=headers)
        self.assertEqual(res.status_code, 403)

    def test_empty_transcript(self):
        student_id = self.create_student("S-1", "management")
        body = self.client.get(f"/students/{student_id}/transcript", headers=self.admin).json()
        self.assertEqual(body["courses"], [])
        self.assertEqual(body["gpa"], 0)
        self.assertEqual(body["totalCredits"], 0)
        self.assertEqual(body["calculationMethod"], "Credit-Weighted Average")

    def test_update_and_delete_student(self):
        student_id = self.create_student("S-1", "engineering")
        res = self.client.patch(f"/students/{student_id}", headers=self.admin, json={"type": "management"})
        self.assertEqual(res.json()["type"], "management")
        res = self.client.delete(f"/students/{student_id}", headers=self.admin)
        self.assertEqual(res.json(), {"status": "deleted"})
        self.assertEqual(self.client.get(f"/students/{student_id}", headers=self.admin).status_code, 404)

    def test_grades_and_unenroll(self):
        student_id = self.create_student("S-1", "engineering")
        enrollment_id = self.enroll_and_grade(student_id, self.create_course("CS101", 3), 64)
        [entry] = self.client.get(f"/students/{student_id}/grades", headers=self.admin).json()
        self.assertEqual(entry["grade"]["gpaScale"], "1.00")
        self.assertEqual(entry["course"]["courseCode"], "CS101")
        self.assertEqual(len(self.client.get(f"/students/{student_id}/enrollments", headers=self.admin).json()), 1)
        self.client.delete(f"/enrollments/{enrollment_id}", headers=self.admin)
        self.assertEqual(self.client.get(f"/students/{student_id}/grades", headers=self.admin).json(), [])


if __name__ == "__main__":
    unittest.main()
