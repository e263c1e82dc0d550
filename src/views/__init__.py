"""
Views module for the Institute Portal.

This module contains all UI view functions organized by feature.
"""

from .login_view import create_login_view
from .dashboard_view import create_dashboard_view
from .student_attendance_view import create_student_attendance_view
from .account_view import create_account_view

__all__ = [
    'create_login_view',
    'create_dashboard_view',
    'create_student_attendance_view',
    'create_account_view',
]
