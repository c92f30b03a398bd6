"""Unit tests for contact rules and the iCalendar export."""

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace
from uuid import uuid4

import pytest

from projekt_l.core.enums import IcsExportType, RelationshipCategory
from projekt_l.domain.contacts import (
    add_contact_xp,
    category_for_type,
    days_since_interaction,
    days_until,
    display_name,
    interaction_xp,
    level_progress_percent,
    needs_attention,
    relationship_label,
    running_average,
    xp_for_next_level,
)
from projekt_l.export.ics import escape_ics_text, generate_calendar, generate_event, ics_filename

NOW = datetime(2026, 5, 12, 9, 30, tzinfo=timezone.utc)


def make_contact(**overrides):
    values = dict(
        id=uuid4(),
        first_name="Lena",
        last_name="Müller",
        nickname=None,
        birthday=date(1990, 5, 12),
        anniversary=None,
        relationship_type="friend",
        relationship_level=2,
        contact_info={"phone": "+49 1"},
        notes="Mag Kaffee; Tee",
        is_archived=False,
    )
    values.update(overrides)
    return SimpleNamespace(**values)


@pytest.mark.unit
class TestContactRules:
    """Test relationship metadata and contact levels."""

    def test_relationship_metadata(self):
        assert category_for_type("colleague") == RelationshipCategory.PROFESSIONAL
        assert category_for_type("sibling") == RelationshipCategory.FAMILY
        assert relationship_label("friend") == "Freund/in"

    @pytest.mark.parametrize(
        "interaction_type,quality,duration,expected",
        [
            ("call", "good", None, 23),
            ("meeting", "great", 60, 120),
            ("message", "poor", 600, 5),
            ("other", "neutral", 0, 10),
        ],
    )
    def test_interaction_xp(self, interaction_type, quality, duration, expected):
        assert interaction_xp(interaction_type, quality, duration) == expected

    def test_contact_levels_use_ceiling(self):
        assert xp_for_next_level(1) == 100
        assert xp_for_next_level(2) == 283

    def test_add_contact_xp(self):
        level = add_contact_xp(1, 90, 20)

        assert (level.level, level.current_xp, level.leveled_up) == (2, 10, True)
        assert add_contact_xp(2, 0, 50).leveled_up is False

    def test_level_progress_percent(self):
        assert level_progress_percent(1, 50) == 50

    def test_running_average(self):
        assert running_average(None, 0, 3) == 3.0
        assert running_average(3.0, 1, 5) == 4.0
        assert running_average(4.0, 2, 1) == 3.0

    def test_display_name(self):
        assert display_name("Lena", "Müller", None) == "Lena Müller"
        assert display_name("Lena", "Müller", "Leni") == "Leni"
        assert display_name("Lena", None, None) == "Lena"

    def test_days_until_birthday(self):
        today = date(2026, 5, 12)

        assert days_until(date(1990, 5, 12), today) == 0
        assert days_until(date(1990, 5, 11), today) == 364
        assert days_until(None, today) is None

    def test_leap_day_birthday_in_common_year(self):
        assert days_until(date(2000, 2, 29), date(2027, 2, 1)) == 27

    def test_days_since_interaction(self):
        assert days_since_interaction(None, NOW) is None
        assert days_since_interaction(NOW - timedelta(days=3, hours=2), NOW) == 3

    def test_needs_attention(self):
        assert needs_attention(None, None, False, NOW) is True
        assert needs_attention(None, None, True, NOW) is False
        assert needs_attention(NOW - timedelta(days=30), None, False, NOW) is False
        assert needs_attention(NOW - timedelta(days=31), None, False, NOW) is True
        assert needs_attention(NOW - timedelta(days=8), 7, False, NOW) is True


@pytest.mark.unit
class TestIcsExport:
    """Test calendar rendering of birthdays and anniversaries."""

    def test_escape(self):
        assert escape_ics_text("a,b;c\\d\ne") == "a\\,b\\;c\\\\d\\ne"

    def test_birthday_event(self):
        contact = make_contact()

        event = generate_event(contact, "birthday", now=NOW)
        lines = event.split("\r\n")

        assert lines[0] == "BEGIN:VEVENT"
        assert lines[-1] == "END:VEVENT"
        assert f"UID:contact-{contact.id}-birthday@projekt-l" in lines
        assert "DTSTAMP:20260512T093000Z" in lines
        assert "DTSTART;VALUE=DATE:19900512" in lines
        assert "RRULE:FREQ=YEARLY" in lines
        assert "SUMMARY:🎂 Lena Müller - Geburtstag" in lines
        assert "TRIGGER:-P1D" in lines
        assert "TRIGGER:-P7D" in lines
        assert "DESCRIPTION:Lena Müller hat morgen Geburtstag!" in lines

    def test_description_is_escaped(self):
        event = generate_event(make_contact(), "birthday", now=NOW)

        assert "DESCRIPTION:Beziehung: Freund/in\\nLevel: 2\\nTel: +49 1\\nNotizen: Mag Kaffee\\; Tee" in event

    def test_description_can_be_left_out(self):
        event = generate_event(make_contact(), "birthday", include_description=False, now=NOW)

        assert "Beziehung" not in event

    def test_missing_date_gives_no_event(self):
        assert generate_event(make_contact(), "anniversary", now=NOW) is None

    def test_calendar_filters_by_type_and_skips_archived(self):
        contacts = [
            make_contact(anniversary=date(2015, 8, 1)),
            make_contact(first_name="Tom", is_archived=True),
        ]

        everything = generate_calendar(contacts, IcsExportType.ALL, now=NOW)
        birthdays = generate_calendar(contacts, "birthdays", now=NOW)

        assert everything.startswith("BEGIN:VCALENDAR\r\nVERSION:2.0")
        assert everything.endswith("END:VCALENDAR")
        assert everything.count("BEGIN:VEVENT") == 2
        assert birthdays.count("BEGIN:VEVENT") == 1
        assert "Tom" not in everything

    def test_filename(self):
        assert ics_filename("birthdays", date(2026, 10, 19)) == "projekt-l-geburtstage-2026-10-19.ics"
        assert ics_filename(IcsExportType.ALL, date(2026, 10, 19)) == "projekt-l-termine-2026-10-19.ics"
