"""
Student attendance marking view.

`StudentAttendanceController` holds the selected class and date, the roster
and the attendance map keyed by student id; `create_student_attendance_view`
renders it with Flet and forwards clicks to the controller.
"""

import logging
from datetime import date, datetime, timezone
from typing import Callable, Dict, List, Optional

import flet as ft

import config
from models import (
    AttendanceEntry, ClassInfo, StudentInfo, User, record_id,
    ATTENDANCE_ABSENT, ATTENDANCE_PRESENT, ATTENDANCE_STATUSES,
    ROLE_INSTITUTE_ADMIN, ROLE_IT, ROLE_TEACHER,
)
from sections.ui_utils import ResponsiveCard, ResponsiveRow, empty_state, get_breakpoint, stat_tile
from utils import export_attendance_to_csv, format_marked_time

logger = logging.getLogger(__name__)

ALL_CLASSES_ROLES = (ROLE_INSTITUTE_ADMIN, ROLE_IT)


def classes_endpoint_for(user: Optional[User]) -> Optional[str]:
    """Endpoint listing the classes the user may see, or None when the role has no access."""
    if user is None:
        return None
    if user.role in ALL_CLASSES_ROLES:
        return '/api/classes'
    if user.role == ROLE_TEACHER:
        return f'/api/classes/teacher-access/{user.id}'
    return None


class StudentAttendanceController:
    """State of the attendance view for one user."""

    def __init__(self, user: User, call_api: Callable, today: Optional[date] = None,
                 on_change: Optional[Callable[[], None]] = None):
        self.user = user
        self.call_api = call_api
        self.today = today or date.today()
        self.on_change = on_change
        self.classes: List[ClassInfo] = []
        self.selected_class: Optional[ClassInfo] = None
        self.attendance_date = self.today.isoformat()
        self.students: List[StudentInfo] = []
        self.attendance: Dict[str, AttendanceEntry] = {}
        self.loading = False
        self.saving = False

    def _changed(self):
        if self.on_change:
            self.on_change()

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------
    def load_accessible_classes(self):
        """Load the classes the user may mark attendance for and select the first."""
        try:
            self.loading = True
            self._changed()

            endpoint = classes_endpoint_for(self.user)
            if endpoint is None:
                self.classes = []
                self.selected_class = None
                return

            response = self.call_api(endpoint, 'GET')
            if response.get('success'):
                classes = [ClassInfo.from_dict(c) for c in response.get('data') or []]
                if self.user.role == ROLE_TEACHER:
                    # Student attendance is marked by the class incharge only
                    classes = [c for c in classes if c.class_incharge == self.user.id]
                self.classes = classes
                if classes:
                    self.select_class(classes[0].id)
        except Exception as e:
            logger.error("Error loading classes: %s", e)
        finally:
            self.loading = False
            self._changed()

    def load_students(self):
        if self.selected_class is None:
            return
        try:
            self.loading = True
            response = self.call_api(f'/api/classes/{self.selected_class.id}/students', 'GET')
            if response.get('success'):
                self.students = [StudentInfo.from_dict(s) for s in response.get('data') or []]
        except Exception as e:
            logger.error("Error loading students: %s", e)
        finally:
            self.loading = False

    def load_existing_attendance(self):
        if self.selected_class is None:
            return
        try:
            response = self.call_api(
                f'/api/attendance/class/{self.selected_class.id}/date/{self.attendance_date}', 'GET')
            attendance = {}
            if response.get('success') and response.get('data'):
                for record in response['data']:
                    student_id = record_id(record.get('student'))
                    if student_id is None:
                        continue
                    attendance[student_id] = AttendanceEntry(
                        status=record.get('status'),
                        marked_at=record.get('markedAt'),
                        marked_by=record_id(record.get('markedBy')),
                    )
            self.attendance = attendance
        except Exception as e:
            logger.error("Error loading attendance: %s", e)
            self.attendance = {}

    def reload(self):
        """Reload roster and attendance for the current class and date."""
        self.load_students()
        self.load_existing_attendance()
        self._changed()

    def select_class(self, class_id):
        selected = next((c for c in self.classes if c.id == class_id), None)
        if selected is None:
            raise ValueError(f"Class {class_id} is not accessible")
        self.selected_class = selected
        self.reload()

    def set_date(self, value):
        """Change the attendance date; dates after today are rejected."""
        if isinstance(value, datetime):
            value = value.date()
        if isinstance(value, str):
            value = date.fromisoformat(value)
        if value > self.today:
            raise ValueError("Attendance cannot be marked for a future date")
        self.attendance_date = value.isoformat()
        if self.selected_class is not None:
            self.reload()

    # ------------------------------------------------------------------
    # Marking
    # ------------------------------------------------------------------
    def _mark(self, student_id, status) -> bool:
        if status not in ATTENDANCE_STATUSES:
            raise ValueError(f"Unknown attendance status: {status}")
        try:
            response = self.call_api('/api/attendance/mark', 'POST', {
                'studentId': student_id,
                'classId': self.selected_class.id,
                'date': self.attendance_date,
                'status': status,
                'markedBy': self.user.id,
            })
            if response.get('success'):
                self.attendance[student_id] = AttendanceEntry(
                    status=status,
                    marked_at=datetime.now(timezone.utc).isoformat(),
                    marked_by=self.user.id,
                )
                return True
        except Exception as e:
            logger.error("Error marking attendance for %s: %s", student_id, e)
        return False

    def mark_attendance(self, student_id, status) -> bool:
        """Mark one student; returns whether the server accepted it."""
        try:
            self.saving = True
            self._changed()
            return self._mark(student_id, status)
        finally:
            self.saving = False
            self._changed()

    def mark_all_present(self) -> int:
        """Mark every unmarked student present, one request at a time.

        Earlier successes are kept when a later request fails. Returns the
        number of students newly marked.
        """
        marked = 0
        try:
            self.saving = True
            self._changed()
            unmarked = [s for s in self.students if s.id not in self.attendance]
            for student in unmarked:
                if self._mark(student.id, ATTENDANCE_PRESENT):
                    marked += 1
        finally:
            self.saving = False
            self._changed()
        return marked

    def get_attendance_stats(self):
        total = len(self.students)
        entries = list(self.attendance.values())
        marked = len(entries)
        present = sum(1 for a in entries if a.status == ATTENDANCE_PRESENT)
        absent = sum(1 for a in entries if a.status == ATTENDANCE_ABSENT)
        return {'total': total, 'marked': marked, 'present': present,
                'absent': absent, 'unmarked': total - marked}

    def export_csv(self, directory: str = config.EXPORT_DIR) -> str:
        if self.selected_class is None:
            raise ValueError("No class selected")
        return export_attendance_to_csv(self.selected_class.class_name, self.attendance_date,
                                        self.students, self.attendance, directory)


def create_student_attendance_view(page: ft.Page, show_snackbar, user: User, call_api):
    """Create the student attendance marking view."""
    breakpoint = get_breakpoint(page)
    content = ft.Column(spacing=24, expand=True, scroll=ft.ScrollMode.AUTO)
    controller = StudentAttendanceController(user, call_api)

    def render():
        content.controls = build_controls()
        page.update()

    def run_in_background(target, *args):
        page.run_thread(target, *args)

    def on_class_change(e):
        if e.control.value:
            run_in_background(controller.select_class, e.control.value)

    def on_date_picked(e):
        if e.control.value is None:
            return
        try:
            controller.set_date(e.control.value)
        except ValueError as ex:
            show_snackbar(str(ex), True)

    def open_calendar(e):
        date_picker = ft.DatePicker(
            on_change=lambda ev: run_in_background(on_date_picked, ev),
            first_date=date(2020, 1, 1),
            last_date=controller.today,
        )
        page.open(date_picker)

    def mark(student_id, status):
        if not controller.mark_attendance(student_id, status):
            show_snackbar("Could not save attendance", True)

    def mark_all(e):
        stats_before = controller.get_attendance_stats()
        count = controller.mark_all_present()
        if count == stats_before['unmarked']:
            show_snackbar(f"Marked {count} students present")
        else:
            show_snackbar(f"Marked {count} of {stats_before['unmarked']} students present", True)

    def export(e):
        try:
            filename = controller.export_csv()
            show_snackbar(f"Exported to {filename}")
        except (OSError, ValueError) as ex:
            show_snackbar(f"Export failed: {ex}", True)

    def student_row(student: StudentInfo):
        entry = controller.attendance.get(student.id)
        is_marked = entry is not None
        is_present = is_marked and entry.status == ATTENDANCE_PRESENT

        trailing = []
        if is_marked:
            trailing.append(ft.Text(format_marked_time(entry.marked_at), size=11, color=ft.Colors.GREY_500))
        trailing.extend([
            ft.IconButton(
                icon=ft.Icons.CHECK_CIRCLE,
                tooltip="Present",
                icon_color=ft.Colors.GREEN_800 if is_present else ft.Colors.GREY_700,
                bgcolor=ft.Colors.GREEN_100 if is_present else ft.Colors.GREY_100,
                disabled=controller.saving,
                on_click=lambda e, sid=student.id: run_in_background(mark, sid, ATTENDANCE_PRESENT),
            ),
            ft.IconButton(
                icon=ft.Icons.CANCEL,
                tooltip="Absent",
                icon_color=ft.Colors.RED_800 if is_marked and not is_present else ft.Colors.GREY_700,
                bgcolor=ft.Colors.RED_100 if is_marked and not is_present else ft.Colors.GREY_100,
                disabled=controller.saving,
                on_click=lambda e, sid=student.id: run_in_background(mark, sid, ATTENDANCE_ABSENT),
            ),
        ])

        return ft.Container(
            content=ft.Row([
                ft.Row([
                    ft.CircleAvatar(content=ft.Text(student.initial, size=14, weight=ft.FontWeight.W_500),
                                    bgcolor=ft.Colors.GREY_200, radius=20),
                    ft.Column([
                        ft.Text(student.display_name, weight=ft.FontWeight.W_500),
                        ft.Text(f"Roll: {student.roll_number or 'N/A'}", size=12, color=ft.Colors.GREY_600),
                    ], spacing=2),
                ], spacing=12),
                ft.Row(trailing, spacing=8),
            ], alignment=ft.MainAxisAlignment.SPACE_BETWEEN),
            padding=16,
        )

    def build_controls():
        if controller.loading and not controller.classes:
            return [ft.Container(content=ft.ProgressRing(), alignment=ft.alignment.center, padding=40)]

        if not controller.classes:
            return [empty_state(
                ft.Icons.PEOPLE, "No Classes Assigned",
                "You don't have attendance access to any classes. "
                "Contact your administrator for access.", icon_size=48,
            )]

        stats = controller.get_attendance_stats()

        header = ft.Row([
            ft.Column([
                ft.Text("Student Attendance", size=18, weight=ft.FontWeight.W_600),
                ft.Text("Mark and track student attendance", size=13, color=ft.Colors.GREY_600),
            ], spacing=2),
            ft.Row([
                ft.OutlinedButton("Export", icon=ft.Icons.DOWNLOAD, on_click=export),
                ft.OutlinedButton("Refresh", icon=ft.Icons.REFRESH, disabled=controller.loading,
                                  on_click=lambda e: run_in_background(controller.reload)),
            ], spacing=12),
        ], alignment=ft.MainAxisAlignment.SPACE_BETWEEN)

        class_dropdown = ft.Dropdown(
            label="Class",
            value=controller.selected_class.id if controller.selected_class else None,
            options=[ft.dropdown.Option(key=c.id, text=c.label) for c in controller.classes],
            on_change=on_class_change,
            expand=True,
        )
        date_field = ft.TextField(
            label="Date",
            value=controller.attendance_date,
            prefix_icon=ft.Icons.CALENDAR_TODAY,
            read_only=True,
            on_click=open_calendar,
            expand=True,
        )
        mark_all_button = ft.ElevatedButton(
            f"Mark All Present ({stats['unmarked']})",
            bgcolor=ft.Colors.GREEN_600,
            color=ft.Colors.WHITE,
            disabled=controller.saving or stats['unmarked'] == 0,
            on_click=lambda e: run_in_background(mark_all, e),
            expand=True,
        )

        controls_row = ResponsiveCard(
            ResponsiveRow([class_dropdown, date_field, mark_all_button], breakpoint=breakpoint),
        )

        stats_row = ResponsiveRow([
            stat_tile(ft.Icons.PEOPLE, "Total", stats['total'], ft.Colors.BLUE_900, ft.Colors.BLUE_50),
            stat_tile(ft.Icons.CHECK_CIRCLE, "Present", stats['present'], ft.Colors.GREEN_900, ft.Colors.GREEN_50),
            stat_tile(ft.Icons.CANCEL, "Absent", stats['absent'], ft.Colors.RED_900, ft.Colors.RED_50),
            stat_tile(ft.Icons.SCHEDULE, "Pending", stats['unmarked'], ft.Colors.ORANGE_900, ft.Colors.ORANGE_50),
        ], breakpoint=breakpoint, spacing=16)

        if controller.students:
            rows = []
            for student in controller.students:
                rows.append(student_row(student))
                rows.append(ft.Divider(height=1))
            student_list = ft.Column(rows[:-1], spacing=0)
        else:
            student_list = empty_state(ft.Icons.PEOPLE, "No students found for this class", icon_size=32)

        students_card = ft.Container(
            content=ft.Column([
                ft.Container(
                    content=ft.Text(f"Students ({len(controller.students)})", weight=ft.FontWeight.W_600),
                    padding=16,
                ),
                ft.Divider(height=1),
                student_list,
            ], spacing=0),
            border=ft.border.all(1, ft.Colors.GREY_200),
            border_radius=8,
        )

        return [header, controls_row, stats_row, students_card]

    controller.on_change = render
    content.controls = build_controls()
    run_in_background(controller.load_accessible_classes)

    return ft.Container(content=content, padding=20, expand=True)
