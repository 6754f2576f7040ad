"""Core orchestration logic for the reception board."""

from __future__ import annotations

from datetime import date
from typing import Any, Dict, Optional

from fastapi import UploadFile

from .errors import NotFoundError, ReceptionError
from .models import Absence, Document, Employee
from .store import StateStore
from .uploads import UploadStorage


class ReceptionService:
    """High-level service pairing state writes with upload file housekeeping."""

    def __init__(self, store: StateStore, uploads: UploadStorage) -> None:
        self.store = store
        self.uploads = uploads

    def get_state(self) -> Document:
        return self.store.get_state()

    # region Branding
    async def replace_logo(self, upload: UploadFile) -> str:
        logo = await self.uploads.save(upload, "branding", "logo")
        try:
            change = await self.store.set_branding_logo(logo)
        except ReceptionError:
            await self.uploads.remove(logo)
            raise
        if change.previous_logo and change.previous_logo != logo:
            await self.uploads.remove(change.previous_logo)
        return change.state.branding.logo

    async def clear_logo(self) -> None:
        change = await self.store.remove_branding_logo()
        if change.previous_logo:
            await self.uploads.remove(change.previous_logo)

    # endregion

    # region Employees
    async def create_employee(
        self,
        name: str,
        department: str,
        role: str,
        photo: Optional[UploadFile] = None,
    ) -> Employee:
        fields: Dict[str, Any] = {"name": name, "department": department, "role": role, "photo": ""}
        if photo is not None:
            fields["photo"] = await self.uploads.save(photo, "employees", "photo")
        try:
            return await self.store.add_employee(fields)
        except ReceptionError:
            if fields["photo"]:
                await self.uploads.remove(fields["photo"])
            raise

    async def update_employee(
        self,
        employee_id: str,
        name: str,
        department: str,
        role: str,
        photo: Optional[UploadFile] = None,
        remove_photo: bool = False,
    ) -> Employee:
        updates: Dict[str, Any] = {"name": name, "department": department, "role": role}
        if photo is not None:
            updates["photo"] = await self.uploads.save(photo, "employees", "photo")
        elif remove_photo:
            updates["photo"] = ""

        try:
            change = await self.store.revise_employee(employee_id, updates)
        except ReceptionError:
            if updates.get("photo"):
                await self.uploads.remove(updates["photo"])
            raise
        if "photo" in updates and change.previous_photo and change.previous_photo != change.employee.photo:
            await self.uploads.remove(change.previous_photo)
        return change.employee

    async def delete_employee(self, employee_id: str) -> Employee:
        removed = await self.store.remove_employee(employee_id)
        if removed.photo:
            await self.uploads.remove(removed.photo)
        return removed

    async def set_status(self, employee_id: str, is_checked_in: bool) -> Employee:
        return await self.store.set_employee_status(employee_id, is_checked_in)

    # endregion

    # region Absences
    async def add_absence(self, employee_id: str, start: str, end: str, reason: Optional[str] = None) -> Absence:
        if self.store.get_state().find_employee(employee_id) is None:
            raise NotFoundError("Employee", employee_id)
        return await self.store.add_absence(
            {"employeeId": employee_id, "from": start, "to": end, "reason": reason or "other"}
        )

    async def remove_absence(self, absence_id: str) -> Absence:
        return await self.store.remove_absence(absence_id)

    # endregion


def board_summary(document: Document, day: date) -> Dict[str, Any]:
    """Return who is checked in and who is away on ``day``."""

    absent = []
    for absence in document.absences_on(day):
        employee = document.find_employee(absence.employee_id)
        if employee is None:
            continue
        absent.append({"employee": employee.to_dict(), "absence": absence.to_dict()})
    return {
        "date": day.isoformat(),
        "checked_in": [e.to_dict() for e in document.employees if e.is_checked_in],
        "absent": absent,
    }


__all__ = ["ReceptionService", "board_summary"]
