import unittest
from dataclasses import FrozenInstanceError
from decimal import Decimal

from unirecords.core.grades import InvalidGradeInput, StudentCategory
from unirecords.core.transcript import StudentSummary, TranscriptRow, build_transcript


def _student(category):
    return StudentSummary(
        id=1,
        student_number="S-1001",
        name="Dana Reyes",
        category=category,
        major="Civil Engineering",
        enrollment_year=2023,
    )


ROWS = [
    TranscriptRow("CS101", "Intro to Programming", 85, 3),
    TranscriptRow("MA201", "Linear Algebra", 90, 4),
    TranscriptRow("PH110", "Physics I", 78, 3),
]


class BuildTranscriptTests(unittest.TestCase):
    def test_engineering_transcript(self):
        record = build_transcript(_student(StudentCategory.ENGINEERING), ROWS)
        self.assertEqual(record.gpa, Decimal("3.00"))
        self.assertEqual(record.total_credits, 10)
        self.assertEqual(record.calculation_method, "Simple Average")
        self.assertEqual([c.course_code for c in record.courses], ["CS101", "MA201", "PH110"])

    def test_management_transcript(self):
        record = build_transcript(_student(StudentCategory.MANAGEMENT), ROWS[:2])
        self.assertEqual(record.gpa, Decimal("3.57"))
        self.assertEqual(record.total_credits, 7)
        self.assertEqual(record.calculation_method, "Credit-Weighted Average")

    def test_each_course_shows_its_own_scale(self):
        record = build_transcript(_student(StudentCategory.ENGINEERING), ROWS)
        self.assertEqual([c.gpa_scale_label for c in record.courses], ["3.00", "4.00", "2.00"])
        first = record.courses[0]
        self.assertEqual(
            (first.course_code, first.course_name, first.credits, first.grade),
            ("CS101", "Intro to Programming", 3, 85),
        )

    def test_stored_label_is_recomputed(self):
        rows = [TranscriptRow("CS101", "Intro to Programming", 85, 3, gpa_scale_label="9.99")]
        record = build_transcript(_student(StudentCategory.ENGINEERING), rows)
        self.assertEqual(record.courses[0].gpa_scale_label, "3.00")

    def test_no_courses(self):
        for category in StudentCategory:
            with self.subTest(category=category):
                record = build_transcript(_student(category), [])
                self.assertEqual(record.courses, ())
                self.assertEqual(record.gpa, 0)
                self.assertEqual(record.total_credits, 0)
                self.assertEqual(record.calculation_method, category.calculation_method)

    def test_invalid_row_rejected(self):
        rows = [TranscriptRow("CS101", "Intro to Programming", 120, 3)]
        with self.assertRaises(InvalidGradeInput):
            build_transcript(_student(StudentCategory.ENGINEERING), rows)

    def test_record_is_immutable(self):
        record = build_transcript(_student(StudentCategory.ENGINEERING), ROWS)
        with self.assertRaises(FrozenInstanceError):
            record.gpa = Decimal("4.00")

    def test_as_dict(self):
        record = build_transcript(_student(StudentCategory.MANAGEMENT), ROWS[:1])
        self.assertEqual(
            record.as_dict(),
            {
                "student": {
                    "id": 1,
                    "studentId": "S-1001",
                    "name": "Dana Reyes",
                    "type": "management",
                    "major": "Civil Engineering",
                    "enrollmentYear": 2023,
                },
                "courses": [
                    {
                        "courseCode": "CS101",
                        "courseName": "Intro to Programming",
                        "credits": 3,
                        "grade": 85,
                        "gpaScale": "3.00",
                    }
                ],
                "gpa": 3.0,
                "totalCredits": 3,
                "calculationMethod": "Credit-Weighted Average",
            },
        )


if __name__ == "__main__":
    unittest.main()
