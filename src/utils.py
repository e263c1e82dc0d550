import csv
import os
from datetime import datetime
from typing import Dict, Iterable, Optional


def format_number(value) -> str:
    """Format a count with thousands separators."""
    try:
        return f"{int(value or 0):,}"
    except (TypeError, ValueError):
        return str(value)


def format_percentage(value) -> str:
    return f"{float(value or 0):.1f}%"


def format_timestamp(value: Optional[datetime]) -> str:
    """Format a 'last updated' timestamp for display."""
    if value is None:
        return ""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return value.strftime("%d/%m/%Y, %H:%M:%S")


def format_marked_time(iso_value: Optional[str]) -> str:
    """Time of day an attendance entry was marked, in local time."""
    if not iso_value:
        return ""
    try:
        marked = datetime.fromisoformat(iso_value.replace("Z", "+00:00"))
    except ValueError:
        return ""
    if marked.tzinfo is not None:
        marked = marked.astimezone()
    return marked.strftime("%H:%M:%S")


def export_attendance_to_csv(class_name: str, date_str: str, students: Iterable,
                             attendance: Dict, directory: str = ".") -> str:
    """Export the attendance sheet for one class and date to a CSV file."""
    safe_class = "".join(ch if ch.isalnum() else "_" for ch in class_name) or "class"
    filename = os.path.join(
        directory,
        f"attendance_{safe_class}_{date_str}_{datetime.now().strftime('%H%M%S')}.csv",
    )
    with open(filename, 'w', newline='', encoding='utf-8') as csvfile:
        writer = csv.writer(csvfile)
        writer.writerow(['Student ID', 'Name', 'Roll Number', 'Status', 'Marked At', 'Marked By'])
        for student in students:
            entry = attendance.get(student.id)
            writer.writerow([
                student.id, student.display_name, student.roll_number or 'N/A',
                entry.status if entry else 'unmarked',
                entry.marked_at if entry else '',
                entry.marked_by if entry else '',
            ])
    return filename
