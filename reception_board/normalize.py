"""Tolerant coercion of loaded or submitted data into canonical records.

Nothing in this module raises on bad input. Malformed employee fields fall back
to sentinel values, malformed or dangling absences are dropped, and a document
that is not a mapping at all is replaced by the built-in default.
"""

from __future__ import annotations

import uuid
from collections.abc import Mapping
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, TypeVar

from .models import Absence, Branding, Document, Employee, in_order, parse_moment

UNKNOWN_NAME = "Unknown employee"
OTHER_DEPARTMENT = "Other"
DEFAULT_REASON = "other"

IdFactory = Callable[[], str]
Coercer = Callable[[Any], Any]
Rule = Tuple[str, str, Coercer]

SEED_EMPLOYEES: Tuple[Dict[str, Any], ...] = (
    {"id": "amalie-korvig", "name": "Amalie Korvig", "department": "Administration", "role": "Receptionist", "isCheckedIn": True},
    {"id": "jonas-lindholm", "name": "Jonas Lindholm", "department": "Administration", "role": "HR Partner", "isCheckedIn": False},
    {"id": "freja-holm", "name": "Freja Holm", "department": "Design", "role": "Lead Designer", "isCheckedIn": True},
    {"id": "mathias-hagen", "name": "Mathias Hagen", "department": "Design", "role": "UX Designer", "isCheckedIn": False},
    {"id": "henrik-nord", "name": "Henrik Nord", "department": "Sales", "role": "Head of Sales", "isCheckedIn": True},
    {"id": "sofie-iversen", "name": "Sofie Iversen", "department": "Sales", "role": "Account Manager", "isCheckedIn": False},
)


def new_uuid() -> str:
    return str(uuid.uuid4())


def _text(fallback: str = "") -> Coercer:
    def coerce(value: Any) -> str:
        if isinstance(value, str) and value.strip():
            return value.strip()
        return fallback

    return coerce


def _string(fallback: str) -> Coercer:
    def coerce(value: Any) -> str:
        return value if isinstance(value, str) else fallback

    return coerce


# (attribute, JSON key, coercer) per entity kind; ids and dates are handled separately.
EMPLOYEE_RULES: Tuple[Rule, ...] = (
    ("name", "name", _text(UNKNOWN_NAME)),
    ("department", "department", _text(OTHER_DEPARTMENT)),
    ("role", "role", _text()),
    ("photo", "photo", _text()),
    ("is_checked_in", "isCheckedIn", bool),
)

ABSENCE_RULES: Tuple[Rule, ...] = (
    ("reason", "reason", _string(DEFAULT_REASON)),
)


def _coerce(raw: Mapping, rules: Iterable[Rule]) -> Dict[str, Any]:
    return {attr: coerce(raw.get(key)) for attr, key, coerce in rules}


def _identifier(value: Any, new_id: IdFactory) -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return new_id()


Record = TypeVar("Record", Employee, Absence)


def _unique_ids(records: List[Record], new_id: IdFactory) -> List[Record]:
    """Regenerate ids that collide with an earlier record in the list."""

    taken: set[str] = set()
    for record in records:
        while record.id in taken:
            record.id = new_id()
        taken.add(record.id)
    return records


def default_employees() -> List[Employee]:
    return [normalize_employee(seed) for seed in SEED_EMPLOYEES]


def default_document() -> Document:
    return Document(branding=Branding(), employees=default_employees(), absences=[])


def normalize_employee(raw: Any, new_id: IdFactory = new_uuid) -> Employee:
    if not isinstance(raw, Mapping):
        raw = {}
    return Employee(id=_identifier(raw.get("id"), new_id), **_coerce(raw, EMPLOYEE_RULES))


def normalize_absence(
    raw: Any,
    valid_ids: Optional[set[str]] = None,
    new_id: IdFactory = new_uuid,
) -> Optional[Absence]:
    """Return a canonical absence, or None when the record cannot be kept."""

    if not isinstance(raw, Mapping):
        return None
    employee_id = raw.get("employeeId")
    if not isinstance(employee_id, str) or not employee_id:
        return None
    if valid_ids is not None and employee_id not in valid_ids:
        return None
    start, end = raw.get("from"), raw.get("to")
    if not isinstance(start, str) or not isinstance(end, str):
        return None
    first, last = parse_moment(start), parse_moment(end)
    if first is None or last is None or not in_order(first, last):
        return None
    return Absence(
        id=_identifier(raw.get("id"), new_id),
        employee_id=employee_id,
        start=start.strip(),
        end=end.strip(),
        **_coerce(raw, ABSENCE_RULES),
    )


def normalize_document(raw: Any, new_id: IdFactory = new_uuid) -> Document:
    if not isinstance(raw, Mapping):
        return default_document()

    branding = raw.get("branding")
    logo = branding.get("logo") if isinstance(branding, Mapping) else None

    raw_employees = raw.get("employees")
    if isinstance(raw_employees, list) and raw_employees:
        employees = _unique_ids([normalize_employee(item, new_id) for item in raw_employees], new_id)
    else:
        employees = default_employees()

    valid_ids = {employee.id for employee in employees}
    latest: Dict[str, Absence] = {}
    raw_absences = raw.get("absences")
    if isinstance(raw_absences, list):
        for item in raw_absences:
            absence = normalize_absence(item, valid_ids, new_id)
            if absence is None:
                continue
            # a later absence for the same employee supersedes the earlier one
            latest.pop(absence.employee_id, None)
            latest[absence.employee_id] = absence

    return Document(
        branding=Branding(logo=logo if isinstance(logo, str) else ""),
        employees=employees,
        absences=_unique_ids(list(latest.values()), new_id),
    )


__all__ = [
    "DEFAULT_REASON",
    "OTHER_DEPARTMENT",
    "UNKNOWN_NAME",
    "IdFactory",
    "default_document",
    "new_uuid",
    "normalize_absence",
    "normalize_document",
    "normalize_employee",
]
