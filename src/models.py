from typing import Any, Dict, List, Optional


ROLE_INSTITUTE_ADMIN = "InstituteAdmin"
ROLE_COLLEGE_ADMIN = "CollegeAdmin"
ROLE_PRINCIPAL = "Principal"
ROLE_TEACHER = "Teacher"
ROLE_STUDENT = "Student"
ROLE_SRO = "SRO"
ROLE_ACCOUNTS = "Accounts"
ROLE_IT = "IT"
ROLE_EMS = "EMS"
ROLE_RECEPTIONIST = "Receptionist"

ATTENDANCE_PRESENT = "present"
ATTENDANCE_ABSENT = "absent"
ATTENDANCE_STATUSES = (ATTENDANCE_PRESENT, ATTENDANCE_ABSENT)


def record_id(value) -> Optional[str]:
    """Return the id of a server record, or the value itself if it is already an id."""
    if value is None:
        return None
    if isinstance(value, dict):
        ident = value.get("_id", value.get("id"))
        return str(ident) if ident is not None else None
    return str(value)


class User:
    """Authenticated user as sent by the server."""
    def __init__(self, id: Optional[str], name: str = "", email: str = "",
                 role: str = "", permissions: Optional[list] = None,
                 raw: Optional[Dict[str, Any]] = None):
        self.id = id
        self.name = name
        self.email = email
        self.role = role
        self.permissions = permissions or []
        self.raw = raw or {}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "User":
        name = data.get("name") or " ".join(
            part for part in (data.get("firstName"), data.get("lastName")) if part
        )
        return cls(
            id=record_id(data),
            name=name,
            email=data.get("email", ""),
            role=data.get("role", ""),
            permissions=data.get("permissions") or [],
            raw=dict(data),
        )

    def merged(self, changes: Dict[str, Any]) -> "User":
        """Return a copy with profile changes applied on top of this user."""
        data = dict(self.raw)
        data.setdefault("_id", self.id)
        data.setdefault("name", self.name)
        data.setdefault("email", self.email)
        data.setdefault("role", self.role)
        data.setdefault("permissions", self.permissions)
        data.update(changes)
        return User.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.raw)
        data.update({"_id": self.id, "name": self.name, "email": self.email,
                     "role": self.role, "permissions": self.permissions})
        return data

    def __eq__(self, other):
        return isinstance(other, User) and self.to_dict() == other.to_dict()

    def __repr__(self):
        return f"User(id={self.id!r}, role={self.role!r})"


class ClassInfo:
    """Class (section) a user may mark attendance for."""
    def __init__(self, id: str, class_name: str, floor: Any = "",
                 user_role: str = "", class_incharge: Optional[str] = None):
        self.id = id
        self.class_name = class_name
        self.floor = floor
        self.user_role = user_role
        self.class_incharge = class_incharge

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ClassInfo":
        return cls(
            id=record_id(data),
            class_name=data.get("className", ""),
            floor=data.get("floor", ""),
            user_role=data.get("userRole", ""),
            class_incharge=record_id(data.get("classIncharge")),
        )

    @property
    def label(self) -> str:
        return f"{self.class_name} - Floor {self.floor} ({self.user_role})"


class StudentInfo:
    """Student on a class roster."""
    def __init__(self, id: str, name: str = "", roll_number: str = ""):
        self.id = id
        self.name = name
        self.roll_number = roll_number

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "StudentInfo":
        return cls(
            id=record_id(data),
            name=data.get("name") or "",
            roll_number=data.get("rollNumber") or "",
        )

    @property
    def display_name(self) -> str:
        return self.name or "Unknown Student"

    @property
    def initial(self) -> str:
        return self.name[:1].upper() if self.name else "S"


class AttendanceEntry:
    """Attendance status of one student for the selected class and date."""
    def __init__(self, status: str, marked_at: Optional[str] = None,
                 marked_by: Optional[str] = None):
        self.status = status
        self.marked_at = marked_at
        self.marked_by = marked_by

    def __eq__(self, other):
        return (isinstance(other, AttendanceEntry)
                and (self.status, self.marked_at, self.marked_by)
                == (other.status, other.marked_at, other.marked_by))

    def __repr__(self):
        return f"AttendanceEntry(status={self.status!r}, marked_at={self.marked_at!r})"


class StatisticsSnapshot:
    """Enquiry statistics for the dashboard, supplied wholesale by the server."""
    def __init__(self, total: int = 0, boys: int = 0, girls: int = 0,
                 programs: Optional[Dict[str, Dict[str, int]]] = None,
                 level_progression: Optional[Dict[str, Any]] = None,
                 gender_level_progression: Optional[Dict[str, Any]] = None):
        self.total = total
        self.boys = boys
        self.girls = girls
        self.programs = programs or {}
        self.level_progression = level_progression or {}
        self.gender_level_progression = gender_level_progression or {}

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "StatisticsSnapshot":
        data = data or {}
        return cls(
            total=int(data.get("total") or 0),
            boys=int(data.get("boys") or 0),
            girls=int(data.get("girls") or 0),
            programs=data.get("programs") or {},
            level_progression=data.get("levelProgression") or {},
            gender_level_progression=data.get("genderLevelProgression") or {},
        )

    def program_rows(self) -> List[Dict[str, Any]]:
        """Per-program counts for both genders, sorted by program name."""
        boys = self.programs.get("boys") or {}
        girls = self.programs.get("girls") or {}
        rows = []
        for program in sorted(set(boys) | set(girls)):
            b = int(boys.get(program) or 0)
            g = int(girls.get(program) or 0)
            rows.append({"program": program, "boys": b, "girls": g, "total": b + g})
        return rows


def action_success(data=None) -> Dict[str, Any]:
    return {"success": True, "data": data}


def action_failure(error: str) -> Dict[str, Any]:
    return {"success": False, "error": error}
