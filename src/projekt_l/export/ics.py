"""
iCalendar (RFC 5545) export of contact birthdays and anniversaries.

Each date becomes a yearly all-day VEVENT with reminders one day and one
week ahead.
"""

from datetime import date, datetime, timezone
from typing import Iterable, List, Optional

from ..core.enums import IcsExportType
from ..domain.contacts import display_name, relationship_label

CALENDAR_HEADER = [
    "BEGIN:VCALENDAR",
    "VERSION:2.0",
    "PRODID:-//Projekt L//Kontakte Kalender//DE",
    "CALSCALE:GREGORIAN",
    "METHOD:PUBLISH",
    "X-WR-CALNAME:Projekt L - Wichtige Daten",
    "X-WR-TIMEZONE:Europe/Berlin",
]
CALENDAR_FOOTER = "END:VCALENDAR"
CRLF = "\r\n"

EVENT_KINDS = {
    "birthday": ("🎂", "Geburtstag"),
    "anniversary": ("💕", "Jahrestag"),
}

FILENAME_LABELS = {
    IcsExportType.ALL: "termine",
    IcsExportType.BIRTHDAYS: "geburtstage",
    IcsExportType.ANNIVERSARIES: "jahrestage",
}


def escape_ics_text(text: str) -> str:
    return (
        text.replace("\\", "\\\\")
        .replace(";", "\\;")
        .replace(",", "\\,")
        .replace("\n", "\\n")
    )


def ics_timestamp(now: Optional[datetime] = None) -> str:
    now = (now or datetime.now(timezone.utc)).astimezone(timezone.utc)
    return now.strftime("%Y%m%dT%H%M%SZ")


def _description(contact) -> str:
    parts = [
        f"Beziehung: {relationship_label(contact.relationship_type)}",
        f"Level: {contact.relationship_level}",
    ]
    info = contact.contact_info or {}
    if info.get("phone"):
        parts.append(f"Tel: {info['phone']}")
    if info.get("email"):
        parts.append(f"Email: {info['email']}")
    if contact.notes:
        parts.append(f"Notizen: {contact.notes}")
    return escape_ics_text("\n".join(parts))


def generate_event(
    contact,
    kind: str,
    include_description: bool = True,
    now: Optional[datetime] = None,
) -> Optional[str]:
    """Render one VEVENT for a contact's birthday or anniversary, if set."""
    event_date: Optional[date] = contact.birthday if kind == "birthday" else contact.anniversary
    if event_date is None:
        return None

    emoji, label = EVENT_KINDS[kind]
    name = display_name(contact.first_name, contact.last_name, contact.nickname)

    lines: List[str] = [
        "BEGIN:VEVENT",
        f"UID:contact-{contact.id}-{kind}@projekt-l",
        f"DTSTAMP:{ics_timestamp(now)}",
        f"DTSTART;VALUE=DATE:{event_date.strftime('%Y%m%d')}",
        "RRULE:FREQ=YEARLY",
        f"SUMMARY:{escape_ics_text(f'{emoji} {name} - {label}')}",
    ]
    if include_description:
        lines.append(f"DESCRIPTION:{_description(contact)}")

    for trigger, when in (("-P1D", "morgen"), ("-P7D", "in einer Woche")):
        lines.extend(
            [
                "BEGIN:VALARM",
                "ACTION:DISPLAY",
                f"DESCRIPTION:{escape_ics_text(f'{name} hat {when} {label}!')}",
                f"TRIGGER:{trigger}",
                "END:VALARM",
            ]
        )

    lines.append("END:VEVENT")
    return CRLF.join(lines)


def generate_calendar(
    contacts: Iterable,
    export_type: IcsExportType = IcsExportType.ALL,
    include_description: bool = True,
    now: Optional[datetime] = None,
) -> str:
    """Render a VCALENDAR; archived contacts are left out."""
    export_type = IcsExportType(export_type)
    kinds = []
    if export_type in (IcsExportType.ALL, IcsExportType.BIRTHDAYS):
        kinds.append("birthday")
    if export_type in (IcsExportType.ALL, IcsExportType.ANNIVERSARIES):
        kinds.append("anniversary")

    events: List[str] = []
    for contact in contacts:
        if getattr(contact, "is_archived", False):
            continue
        for kind in kinds:
            event = generate_event(contact, kind, include_description, now)
            if event:
                events.append(event)

    return CRLF.join(CALENDAR_HEADER + events + [CALENDAR_FOOTER])


def ics_filename(export_type: IcsExportType = IcsExportType.ALL, today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"projekt-l-{FILENAME_LABELS[IcsExportType(export_type)]}-{today.isoformat()}.ics"
