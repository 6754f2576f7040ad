"""MCP server exposing read-only reception board tools."""

from __future__ import annotations

import asyncio
from datetime import date, datetime
from typing import Any, Dict, List, Optional

from mcp.server.fastmcp import FastMCP

from .config import load_settings
from .models import Document
from .persistence import StateFile
from .service import board_summary

mcp = FastMCP("reception-board")

_settings = load_settings()
_state_file = StateFile(_settings.state_path)


async def _read_document() -> Document:
    # the API process owns the file; never write it from here
    return await asyncio.to_thread(_state_file.load, False)


def _ensure_date(day_str: Optional[str] = None) -> date:
    if not day_str:
        return date.today()
    try:
        return datetime.strptime(day_str, "%Y-%m-%d").date()
    except ValueError as exc:
        raise ValueError("Invalid date format. Use YYYY-MM-DD.") from exc


@mcp.tool()
async def get_board(date: Optional[str] = None) -> dict:
    """Return who is checked in and who is away on the given date (default today)."""

    document = await _read_document()
    return board_summary(document, _ensure_date(date))


@mcp.tool()
async def get_checked_in() -> List[Dict[str, Any]]:
    """Return the employees currently checked in."""

    document = await _read_document()
    return [employee.to_dict() for employee in document.employees if employee.is_checked_in]


@mcp.tool()
async def get_absences(date: Optional[str] = None) -> List[Dict[str, Any]]:
    """Return absences covering the date, or every registered absence when omitted."""

    document = await _read_document()
    if not date:
        return [absence.to_dict() for absence in document.absences]
    return [absence.to_dict() for absence in document.absences_on(_ensure_date(date))]


if __name__ == "__main__":  # pragma: no cover
    mcp.run()


__all__ = ["mcp", "get_board", "get_checked_in", "get_absences"]
