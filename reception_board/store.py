"""In-memory owner of the reception board document."""

from __future__ import annotations

import asyncio
import copy
import logging
from collections.abc import Mapping
from typing import Any, Callable, TypeVar

from .errors import NotFoundError, ValidationError
from .models import Absence, Document, Employee, EmployeeChange, LogoChange
from .mutations import MutationQueue
from .normalize import IdFactory, new_uuid, normalize_absence, normalize_employee
from .persistence import StateFile

logger = logging.getLogger(__name__)

T = TypeVar("T")
Change = Callable[[Document], T]


def _require_text(fields: Mapping, key: str, label: str) -> None:
    value = fields.get(key)
    if not isinstance(value, str) or not value.strip():
        raise ValidationError(f"{label} is required")


class StateStore:
    """Holds the committed document and serializes every write to it.

    Write methods enqueue their work immediately and return an awaitable that
    resolves with a deep copy of the affected record. Each write is applied to
    a private copy of the committed document, persisted, and only then
    committed, so ``get_state`` never observes a change whose write failed.
    """

    def __init__(self, state_file: StateFile, new_id: IdFactory = new_uuid) -> None:
        self._state_file = state_file
        self._new_id = new_id
        self._queue = MutationQueue()
        self._document = Document()

    async def init(self) -> None:
        self._document = await asyncio.to_thread(self._state_file.load)
        logger.info(
            "Loaded %d employees and %d absences from %s",
            len(self._document.employees),
            len(self._document.absences),
            self._state_file.path,
        )

    async def aclose(self) -> None:
        await self._queue.aclose()

    def get_state(self) -> Document:
        return copy.deepcopy(self._document)

    # region Branding
    def set_branding_logo(self, logo_path: str) -> asyncio.Future[LogoChange]:
        def change(document: Document) -> LogoChange:
            previous = document.branding.logo
            document.branding.logo = logo_path
            return LogoChange(state=document, previous_logo=previous)

        return self._mutate(change)

    def remove_branding_logo(self) -> asyncio.Future[LogoChange]:
        return self.set_branding_logo("")

    # endregion

    # region Employees
    def add_employee(self, fields: Mapping[str, Any]) -> asyncio.Future[Employee]:
        fields = dict(fields)

        def change(document: Document) -> Employee:
            _require_text(fields, "name", "Name")
            _require_text(fields, "role", "Role")
            employee = normalize_employee(
                {**fields, "isCheckedIn": fields.get("isCheckedIn") is True},
                self._new_id,
            )
            if document.find_employee(employee.id) is not None:
                raise ValidationError(f"Employee id already exists: {employee.id}")
            document.employees.append(employee)
            return employee

        return self._mutate(change)

    def update_employee(self, employee_id: str, fields: Mapping[str, Any]) -> asyncio.Future[Employee]:
        fields = dict(fields)

        def change(document: Document) -> Employee:
            return self._revise(document, employee_id, fields).employee

        return self._mutate(change)

    def revise_employee(self, employee_id: str, fields: Mapping[str, Any]) -> asyncio.Future[EmployeeChange]:
        """Like ``update_employee`` but also reports the photo it replaced."""

        fields = dict(fields)

        def change(document: Document) -> EmployeeChange:
            return self._revise(document, employee_id, fields)

        return self._mutate(change)

    def set_employee_status(self, employee_id: str, is_checked_in: bool) -> asyncio.Future[Employee]:
        def change(document: Document) -> Employee:
            employee = document.employees[self._employee_index(document, employee_id)]
            employee.is_checked_in = bool(is_checked_in)
            return employee

        return self._mutate(change)

    def remove_employee(self, employee_id: str) -> asyncio.Future[Employee]:
        def change(document: Document) -> Employee:
            removed = document.employees.pop(self._employee_index(document, employee_id))
            document.absences = [a for a in document.absences if a.employee_id != employee_id]
            return removed

        return self._mutate(change)

    # endregion

    # region Absences
    def add_absence(self, fields: Mapping[str, Any]) -> asyncio.Future[Absence]:
        fields = dict(fields)

        def change(document: Document) -> Absence:
            valid_ids = {employee.id for employee in document.employees}
            absence = normalize_absence(fields, valid_ids, self._new_id)
            if absence is None:
                raise ValidationError("Absence needs a known employee and a valid from/to date range")
            remaining = [a for a in document.absences if a.employee_id != absence.employee_id]
            if any(a.id == absence.id for a in remaining):
                raise ValidationError(f"Absence id already exists: {absence.id}")
            document.absences = [*remaining, absence]
            return absence

        return self._mutate(change)

    def remove_absence(self, absence_id: str) -> asyncio.Future[Absence]:
        def change(document: Document) -> Absence:
            for index, absence in enumerate(document.absences):
                if absence.id == absence_id:
                    return document.absences.pop(index)
            raise NotFoundError("Absence", absence_id)

        return self._mutate(change)

    # endregion

    def _mutate(self, change: Change) -> asyncio.Future:
        async def unit() -> Any:
            pending = copy.deepcopy(self._document)
            result = change(pending)
            await asyncio.to_thread(self._state_file.save, pending)
            self._document = pending
            return copy.deepcopy(result)

        return self._queue.submit(unit)

    def _revise(self, document: Document, employee_id: str, fields: Mapping[str, Any]) -> EmployeeChange:
        index = self._employee_index(document, employee_id)
        current = document.employees[index].to_dict()
        merged = {**current, **fields, "id": current["id"]}
        if not isinstance(fields.get("isCheckedIn"), bool):
            merged["isCheckedIn"] = current["isCheckedIn"]
        _require_text(merged, "name", "Name")
        _require_text(merged, "role", "Role")
        employee = normalize_employee(merged, self._new_id)
        document.employees[index] = employee
        return EmployeeChange(employee=employee, previous_photo=current["photo"])

    @staticmethod
    def _employee_index(document: Document, employee_id: str) -> int:
        for index, employee in enumerate(document.employees):
            if employee.id == employee_id:
                return index
        raise NotFoundError("Employee", employee_id)


__all__ = ["StateStore"]
