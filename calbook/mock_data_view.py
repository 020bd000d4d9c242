"""Routes for browsing appointments held by the in-memory store.

When a booking backend is configured the appointments live there, and the
view shows only the reserved windows alongside a notice.
"""
from __future__ import annotations

import html
from datetime import date
from typing import Any, Dict, Iterable, List, Mapping

from fastapi import APIRouter, Depends
from fastapi.responses import HTMLResponse

from calbook.clients.backend import BookingBackendClient
from calbook.clock import Clock
from calbook.dependencies.services import get_backend_client, get_clock
from calbook.schemas.booking import Appointment
from calbook.services.mock_store import get_mock_store
from calbook.services.timeslots import (
    RESERVED_WINDOW_END,
    RESERVED_WINDOW_START,
    format_date,
    format_time,
)
from calbook.services.validator import reserved_date_for_month

router = APIRouter()

RESERVED_MONTHS_SHOWN = 12


def _build_table(title: str, rows: Iterable[Mapping[str, Any]]) -> str:
    row_list: List[Dict[str, Any]] = [dict(row) for row in rows]
    section_parts = [f"<section><h2>{html.escape(title)}</h2>"]
    if not row_list:
        section_parts.append("<p>No records found.</p></section>")
        return "".join(section_parts)

    columns: List[str] = []
    for row in row_list:
        for key in row.keys():
            if key not in columns:
                columns.append(key)

    header = "".join(f"<th>{html.escape(column)}</th>" for column in columns)
    body_rows: List[str] = []
    for row in row_list:
        cells = [f"<td>{html.escape(str(row.get(column, '')))}</td>" for column in columns]
        body_rows.append("<tr>" + "".join(cells) + "</tr>")
    table_html = (
        "<table><thead><tr>"
        + header
        + "</tr></thead><tbody>"
        + "".join(body_rows)
        + "</tbody></table>"
    )
    section_parts.append(table_html)
    section_parts.append("</section>")
    return "".join(section_parts)


def _appointment_rows(appointments: Iterable[Appointment]) -> List[Dict[str, Any]]:
    return [
        {
            "appointment_id": appointment.appointment_id,
            "date": format_date(appointment.appointment_date),
            "start": format_time(appointment.start_time),
            "end": format_time(appointment.end_time),
        }
        for appointment in appointments
    ]


def _reserved_rows(today: date, months: int = RESERVED_MONTHS_SHOWN) -> List[Dict[str, Any]]:
    rows: List[Dict[str, Any]] = []
    year, month = today.year, today.month
    for _ in range(months):
        rows.append(
            {
                "date": format_date(reserved_date_for_month(year, month)),
                "window": f"{format_time(RESERVED_WINDOW_START)}-{format_time(RESERVED_WINDOW_END)}",
            }
        )
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)
    return rows


@router.get("/mock-data", response_class=HTMLResponse)
async def view_mock_data(
    clock: Clock = Depends(get_clock),
    client: BookingBackendClient = Depends(get_backend_client),
) -> HTMLResponse:
    """Render the in-memory appointments and upcoming reserved windows."""
    if client.use_mock_data:
        appointments = await get_mock_store().appointments.list_all()
        appointments_html = _build_table("Appointments", _appointment_rows(appointments))
    else:
        appointments_html = (
            "<section><h2>Appointments</h2>"
            "<p>Appointments are stored by the booking backend and are not listed here.</p>"
            "</section>"
        )

    sections = [
        appointments_html,
        _build_table("Reserved windows", _reserved_rows(clock.today())),
    ]

    sections_html = "".join(sections)
    html_content = f"""
    <html>
        <head>
            <title>Booking Overview</title>
            <style>
                body {{ font-family: Arial, sans-serif; margin: 2rem; }}
                h1 {{ text-align: center; }}
                section {{ margin-bottom: 2rem; }}
                table {{ border-collapse: collapse; width: 100%; }}
                th, td {{ border: 1px solid #ccc; padding: 0.5rem; text-align: left; }}
                th {{ background-color: #f0f0f0; }}
                tbody tr:nth-child(even) {{ background-color: #fafafa; }}
            </style>
        </head>
        <body>
            <h1>Booking Overview</h1>
            {sections_html}
        </body>
    </html>
    """

    return HTMLResponse(content=html_content)
