"""Dataclasses representing the reception board document."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Dict, List, Optional


@dataclass(slots=True)
class Branding:
    logo: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {"logo": self.logo}


@dataclass(slots=True)
class Employee:
    id: str
    name: str
    department: str
    role: str = ""
    photo: str = ""
    is_checked_in: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "department": self.department,
            "role": self.role,
            "photo": self.photo,
            "isCheckedIn": self.is_checked_in,
        }


@dataclass(slots=True)
class Absence:
    id: str
    employee_id: str
    start: str
    end: str
    reason: str = "other"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "employeeId": self.employee_id,
            "from": self.start,
            "to": self.end,
            "reason": self.reason,
        }

    def covers(self, day: date) -> bool:
        start, end = parse_day(self.start), parse_day(self.end)
        if start is None or end is None:
            return False
        return start <= day <= end


@dataclass(slots=True)
class Document:
    """The single aggregate persisted to the state file."""

    branding: Branding = field(default_factory=Branding)
    employees: List[Employee] = field(default_factory=list)
    absences: List[Absence] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "branding": self.branding.to_dict(),
            "employees": [employee.to_dict() for employee in self.employees],
            "absences": [absence.to_dict() for absence in self.absences],
        }

    def find_employee(self, employee_id: str) -> Optional[Employee]:
        for employee in self.employees:
            if employee.id == employee_id:
                return employee
        return None

    def absences_on(self, day: date) -> List[Absence]:
        return [absence for absence in self.absences if absence.covers(day)]


@dataclass(slots=True)
class EmployeeChange:
    """Result of updating an employee, with the photo reference it replaced."""

    employee: Employee
    previous_photo: str


@dataclass(slots=True)
class LogoChange:
    """Result of replacing or clearing the branding logo."""

    state: Document
    previous_logo: str


def parse_moment(value: str) -> Optional[datetime]:
    """Return the datetime of an ISO date/datetime string, or None."""

    try:
        return datetime.fromisoformat(value.strip())
    except (AttributeError, ValueError):
        return None


def parse_day(value: str) -> Optional[date]:
    moment = parse_moment(value)
    return moment.date() if moment is not None else None


def in_order(first: datetime, last: datetime) -> bool:
    """True when ``first`` is not after ``last``.

    Naive and aware values cannot be compared directly, so a mixed pair is
    compared by calendar day.
    """

    if (first.tzinfo is None) != (last.tzinfo is None):
        return first.date() <= last.date()
    return first <= last


__all__ = [
    "Branding",
    "Employee",
    "Absence",
    "Document",
    "EmployeeChange",
    "LogoChange",
    "in_order",
    "parse_day",
    "parse_moment",
]
