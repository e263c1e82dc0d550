#!/usr/bin/env python3
"""
Tests for the student attendance controller: role-gated class loading,
marking, mark-all-present and derived statistics.
"""

import csv
import os
import sys
import tempfile
import unittest
from datetime import date

# Add src directory to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from api import ApiError
from models import AttendanceEntry, User
from views.student_attendance_view import StudentAttendanceController, classes_endpoint_for

TODAY = date(2024, 5, 15)

CLASSES = [
    {"_id": "c1", "className": "Grade 1A", "floor": 1, "userRole": "classIncharge",
     "classIncharge": {"_id": "t1", "name": "Ms. Lead"}},
    {"_id": "c2", "className": "Grade 1B", "floor": 2, "userRole": "teacher",
     "classIncharge": "t2"},
    {"_id": "c3", "className": "Grade 2A", "floor": 2, "userRole": "classIncharge",
     "classIncharge": "t1"},
]

STUDENTS = [
    {"_id": "s1", "name": "alice", "rollNumber": "01"},
    {"_id": "s2", "name": "Bob", "rollNumber": "02"},
    {"_id": "s3", "name": "", "rollNumber": None},
]


class FakeBackend:
    """Routes call_api(endpoint, method, data) to canned responses and records calls."""

    def __init__(self, classes=None, students=None, records=None, failing_students=()):
        self.classes = CLASSES if classes is None else classes
        self.students = STUDENTS if students is None else students
        self.records = records or []
        self.failing_students = set(failing_students)
        self.calls = []

    def __call__(self, endpoint, method='GET', data=None):
        self.calls.append((method, endpoint, data))
        if endpoint == '/api/classes' or endpoint.startswith('/api/classes/teacher-access/'):
            return {"success": True, "data": self.classes}
        if endpoint.endswith('/students'):
            return {"success": True, "data": self.students}
        if endpoint.startswith('/api/attendance/class/'):
            return {"success": True, "data": self.records}
        if endpoint == '/api/attendance/mark':
            if data['studentId'] in self.failing_students:
                raise ApiError("Server error", status=500)
            return {"success": True, "data": dict(data)}
        raise AssertionError(f"Unexpected call {method} {endpoint}")

    def posts(self):
        return [c for c in self.calls if c[0] == 'POST']


def admin():
    return User("a1", name="Admin", role="InstituteAdmin")


def teacher(user_id="t1"):
    return User(user_id, name="Teacher", role="Teacher")


class TestClassAccess(unittest.TestCase):
    """Which classes each role can see."""

    def test_endpoint_by_role(self):
        self.assertEqual(classes_endpoint_for(admin()), '/api/classes')
        self.assertEqual(classes_endpoint_for(User("i1", role="IT")), '/api/classes')
        self.assertEqual(classes_endpoint_for(teacher("t9")), '/api/classes/teacher-access/t9')
        self.assertIsNone(classes_endpoint_for(User("x", role="Accounts")))
        self.assertIsNone(classes_endpoint_for(None))

    def test_admin_sees_all_classes_and_loads_first(self):
        backend = FakeBackend()
        controller = StudentAttendanceController(admin(), backend, today=TODAY)

        controller.load_accessible_classes()

        self.assertEqual([c.id for c in controller.classes], ["c1", "c2", "c3"])
        self.assertEqual(controller.selected_class.id, "c1")
        self.assertEqual([s.id for s in controller.students], ["s1", "s2", "s3"])
        self.assertIn(('GET', '/api/classes/c1/students', None), backend.calls)
        self.assertIn(('GET', '/api/attendance/class/c1/date/2024-05-15', None), backend.calls)
        self.assertFalse(controller.loading)

    def test_teacher_only_sees_classes_they_lead(self):
        backend = FakeBackend()
        controller = StudentAttendanceController(teacher("t1"), backend, today=TODAY)

        controller.load_accessible_classes()

        self.assertEqual(backend.calls[0], ('GET', '/api/classes/teacher-access/t1', None))
        self.assertEqual([c.id for c in controller.classes], ["c1", "c3"])

    def test_teacher_without_lead_classes_gets_nothing(self):
        backend = FakeBackend()
        controller = StudentAttendanceController(teacher("t7"), backend, today=TODAY)

        controller.load_accessible_classes()

        self.assertEqual(controller.classes, [])
        self.assertIsNone(controller.selected_class)

    def test_other_roles_make_no_request(self):
        backend = FakeBackend()
        controller = StudentAttendanceController(User("s", role="Student"), backend, today=TODAY)

        controller.load_accessible_classes()

        self.assertEqual(controller.classes, [])
        self.assertEqual(backend.calls, [])
        self.assertFalse(controller.loading)

    def test_class_load_failure_is_contained(self):
        def failing(endpoint, method='GET', data=None):
            raise ApiError("Network error")

        controller = StudentAttendanceController(admin(), failing, today=TODAY)
        controller.load_accessible_classes()
        self.assertEqual(controller.classes, [])
        self.assertFalse(controller.loading)


class TestAttendanceSelection(unittest.TestCase):
    """Class and date changes reload roster and attendance."""

    def setUp(self):
        self.backend = FakeBackend(records=[
            {"student": {"_id": "s2", "name": "Bob"}, "status": "absent",
             "markedAt": "2024-05-15T08:00:00Z", "markedBy": {"_id": "t1"}},
        ])
        self.controller = StudentAttendanceController(admin(), self.backend, today=TODAY)
        self.controller.load_accessible_classes()

    def test_existing_records_are_keyed_by_student(self):
        self.assertEqual(
            self.controller.attendance,
            {"s2": AttendanceEntry("absent", "2024-05-15T08:00:00Z", "t1")},
        )

    def test_select_class_reloads(self):
        self.controller.select_class("c2")
        self.assertEqual(self.controller.selected_class.class_name, "Grade 1B")
        self.assertIn(('GET', '/api/classes/c2/students', None), self.backend.calls)
        self.assertIn(('GET', '/api/attendance/class/c2/date/2024-05-15', None), self.backend.calls)

    def test_select_unknown_class_raises(self):
        with self.assertRaises(ValueError):
            self.controller.select_class("nope")

    def test_set_date_reloads_for_new_date(self):
        self.controller.set_date("2024-05-10")
        self.assertEqual(self.controller.attendance_date, "2024-05-10")
        self.assertIn(('GET', '/api/attendance/class/c1/date/2024-05-10', None), self.backend.calls)

    def test_future_date_is_rejected(self):
        with self.assertRaises(ValueError):
            self.controller.set_date(date(2024, 5, 16))
        self.assertEqual(self.controller.attendance_date, "2024-05-15")

    def test_attendance_load_failure_resets_map(self):
        def failing(endpoint, method='GET', data=None):
            if endpoint.startswith('/api/attendance/class/'):
                raise ApiError("boom", status=500)
            return self.backend(endpoint, method, data)

        self.controller.call_api = failing
        self.controller.load_existing_attendance()
        self.assertEqual(self.controller.attendance, {})


class TestMarking(unittest.TestCase):
    """Single marks, mark-all-present and derived statistics."""

    def setUp(self):
        self.backend = FakeBackend()
        self.controller = StudentAttendanceController(teacher("t1"), self.backend, today=TODAY)
        self.controller.load_accessible_classes()

    def test_mark_attendance_posts_and_merges(self):
        self.assertTrue(self.controller.mark_attendance("s1", "present"))

        self.assertEqual(self.backend.posts(), [(
            'POST', '/api/attendance/mark',
            {"studentId": "s1", "classId": "c1", "date": "2024-05-15",
             "status": "present", "markedBy": "t1"},
        )])
        entry = self.controller.attendance["s1"]
        self.assertEqual(entry.status, "present")
        self.assertEqual(entry.marked_by, "t1")
        self.assertTrue(entry.marked_at)
        self.assertFalse(self.controller.saving)

    def test_failed_mark_keeps_previous_state(self):
        self.controller.mark_attendance("s2", "present")
        self.backend.failing_students.add("s2")

        self.assertFalse(self.controller.mark_attendance("s2", "absent"))
        self.assertEqual(self.controller.attendance["s2"].status, "present")
        self.assertFalse(self.controller.saving)

    def test_unknown_status_is_rejected(self):
        with self.assertRaises(ValueError):
            self.controller.mark_attendance("s1", "late")

    def test_mark_all_present_only_touches_unmarked(self):
        self.controller.mark_attendance("s2", "absent")
        before = self.controller.attendance["s2"]

        marked = self.controller.mark_all_present()

        self.assertEqual(marked, 2)
        self.assertEqual(self.controller.attendance["s1"].status, "present")
        self.assertEqual(self.controller.attendance["s3"].status, "present")
        self.assertIs(self.controller.attendance["s2"], before)
        posted_ids = [c[2]["studentId"] for c in self.backend.posts()]
        self.assertEqual(posted_ids, ["s2", "s1", "s3"])

    def test_mark_all_present_keeps_going_after_failure(self):
        self.backend.failing_students.add("s2")

        marked = self.controller.mark_all_present()

        self.assertEqual(marked, 2)
        self.assertIn("s1", self.controller.attendance)
        self.assertNotIn("s2", self.controller.attendance)
        self.assertIn("s3", self.controller.attendance)
        self.assertFalse(self.controller.saving)

    def test_stats_partition_the_roster(self):
        self.controller.mark_attendance("s1", "present")
        self.controller.mark_attendance("s2", "absent")

        stats = self.controller.get_attendance_stats()

        self.assertEqual(stats, {"total": 3, "marked": 2, "present": 1, "absent": 1, "unmarked": 1})
        self.assertEqual(stats["unmarked"], stats["total"] - (stats["present"] + stats["absent"]))

    def test_stats_after_mark_all(self):
        self.controller.mark_all_present()
        stats = self.controller.get_attendance_stats()
        self.assertEqual(stats["present"], 3)
        self.assertEqual(stats["unmarked"], 0)

    def test_on_change_is_notified(self):
        events = []
        self.controller.on_change = lambda: events.append(self.controller.saving)
        self.controller.mark_attendance("s1", "present")
        self.assertEqual(events, [True, False])

    def test_export_csv(self):
        self.controller.mark_attendance("s1", "present")
        with tempfile.TemporaryDirectory() as tmpdir:
            filename = self.controller.export_csv(tmpdir)
            with open(filename, newline='', encoding='utf-8') as f:
                rows = list(csv.reader(f))

        self.assertEqual(rows[0][:4], ['Student ID', 'Name', 'Roll Number', 'Status'])
        self.assertEqual(rows[1][:4], ['s1', 'alice', '01', 'present'])
        self.assertEqual(rows[3][:4], ['s3', 'Unknown Student', 'N/A', 'unmarked'])


if __name__ == '__main__':
    unittest.main()
