"""
Contact import parsers.

Turns Google Contacts CSV exports, vCard (.vcf) files and arbitrary CSV files
into ImportContact records that can be previewed and then created as contacts.
"""

import csv
import io
import re
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from dateutil import parser as dateutil_parser

from ..core.enums import ImportFormat, RelationshipCategory, RelationshipType
from ..utils.logging_config import get_logger

logger = get_logger("importers")

EMPTY_CSV_ERROR = "CSV ist leer oder hat keine Daten"

_ISO_DATE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_GERMAN_DATE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")
_US_DATE = re.compile(r"^(\d{1,2})/(\d{1,2})/(\d{4})$")
_YEARLESS_DATE = re.compile(r"^--?(\d{2})-(\d{2})$")
_VCARD_COMPACT_DATE = re.compile(r"^\d{8}$")
_VCARD_YEARLESS_DATE = re.compile(r"^--?(\d{2})-?(\d{2})$")
_VCARD_SPLIT = re.compile(r"(?=BEGIN:VCARD)", re.IGNORECASE)


@dataclass
class ImportContact:
    """A parsed contact awaiting import."""

    first_name: str
    last_name: Optional[str] = None
    nickname: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    birthday: Optional[str] = None
    suggested_type: RelationshipType = RelationshipType.FRIEND
    suggested_category: RelationshipCategory = RelationshipCategory.FRIEND
    raw_data: Dict[str, str] = field(default_factory=dict)
    selected: bool = True


@dataclass
class ImportResult:
    contacts: List[ImportContact] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)


@dataclass
class ColumnMapping:
    """Header names to read each field from in a generic CSV."""

    first_name: str
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    birthday: Optional[str] = None
    address: Optional[str] = None
    notes: Optional[str] = None


# Google Contacts CSV


def parse_google_csv(content: str) -> ImportResult:
    """Parse a Google Contacts CSV export."""
    result = ImportResult()
    lines = parse_csv_lines(content)
    if len(lines) < 2:
        result.errors.append(EMPTY_CSV_ERROR)
        return result

    headers = [h.lower().strip() for h in lines[0]]

    name_idx = _find_column(headers, ["name", "full name"])
    given_idx = _find_column(headers, ["given name", "first name", "vorname"])
    family_idx = _find_column(headers, ["family name", "last name", "nachname"])
    birthday_idx = _find_column(headers, ["birthday", "geburtstag"])
    email_idx = _find_column(headers, ["e-mail 1 - value", "email", "e-mail"])
    phone_idx = _find_column(headers, ["phone 1 - value", "phone", "telefon"])
    address_idx = _find_column(headers, ["address 1 - formatted", "address", "adresse"])
    group_idx = _find_column(headers, ["group membership", "groups", "gruppen"])

    for line_no, row in enumerate(lines[1:], start=2):
        if not any(cell.strip() for cell in row):
            continue

        first_name = _cell(row, given_idx)
        last_name = _cell(row, family_idx)

        if not first_name and name_idx >= 0:
            parts = _cell(row, name_idx).split(" ")
            first_name = parts[0] if parts else ""
            last_name = " ".join(parts[1:])

        if not first_name:
            result.warnings.append(f"Zeile {line_no}: Kein Name gefunden, übersprungen")
            continue

        birthday = parse_date(_cell(row, birthday_idx)) if birthday_idx >= 0 else None
        relationship_type, category = guess_relationship_from_group(
            _cell(row, group_idx).lower()
        )

        result.contacts.append(
            ImportContact(
                first_name=first_name,
                last_name=last_name or None,
                email=_cell(row, email_idx) or None,
                phone=_cell(row, phone_idx) or None,
                address=_cell(row, address_idx) or None,
                birthday=birthday,
                suggested_type=relationship_type,
                suggested_category=category,
                raw_data=_raw_row(headers, row),
            )
        )

    logger.info(
        f"Parsed Google CSV: {len(result.contacts)} contacts, {len(result.warnings)} warnings"
    )
    return result


# vCard


def parse_vcard(content: str) -> ImportResult:
    """Parse a vCard 3.0/4.0 file with one or more cards."""
    result = ImportResult()
    cards = [card for card in _VCARD_SPLIT.split(content) if card.strip()]

    for index, card in enumerate(cards, start=1):
        if "BEGIN:VCARD" not in card.upper():
            continue

        props = parse_vcard_properties(card)
        first_name = ""
        last_name = ""

        structured = props.get("n")
        if structured:
            parts = structured.split(";")
            last_name = parts[0] if parts else ""
            first_name = parts[1] if len(parts) > 1 else ""

        if not first_name and props.get("fn"):
            parts = props["fn"].split(" ")
            first_name = parts[0]
            last_name = " ".join(parts[1:])

        if not first_name:
            result.warnings.append(f"vCard {index}: Kein Name gefunden, übersprungen")
            continue

        result.contacts.append(
            ImportContact(
                first_name=first_name,
                last_name=last_name or None,
                nickname=props.get("nickname") or None,
                email=props.get("email") or None,
                phone=props.get("tel") or None,
                address=parse_vcard_address(props["adr"]) if props.get("adr") else None,
                birthday=parse_vcard_date(props["bday"]) if props.get("bday") else None,
                raw_data=props,
            )
        )

    logger.info(
        f"Parsed vCard file: {len(result.contacts)} contacts, {len(result.warnings)} warnings"
    )
    return result


def parse_vcard_properties(card: str) -> Dict[str, str]:
    """Read NAME:value lines, unfolding continuations and dropping parameters."""
    props: Dict[str, str] = {}
    current_key = ""
    current_value = ""

    for line in re.split(r"\r?\n", card):
        if line.startswith((" ", "\t")):
            current_value += line.strip()
            continue

        if current_key:
            props[current_key] = current_value

        colon = line.find(":")
        if colon > 0:
            # TEL;TYPE=CELL -> tel
            current_key = line[:colon].lower().split(";")[0]
            current_value = line[colon + 1:].strip()

    if current_key:
        props[current_key] = current_value
    return props


def parse_vcard_date(value: str) -> Optional[str]:
    """BDAY values: YYYYMMDD, YYYY-MM-DD or --MMDD (stored with year 1900)."""
    if not value:
        return None
    clean = re.sub(r"[^0-9-]", "", value)

    if _VCARD_COMPACT_DATE.match(clean):
        return f"{clean[0:4]}-{clean[4:6]}-{clean[6:8]}"
    if _ISO_DATE.match(clean):
        return clean
    yearless = _VCARD_YEARLESS_DATE.match(clean)
    if yearless:
        return f"1900-{yearless.group(1)}-{yearless.group(2)}"
    return parse_date(value)


def parse_vcard_address(adr: str) -> str:
    # PO Box;Extended;Street;City;Region;Postal;Country
    return ", ".join(part for part in adr.split(";") if part.strip())


# Generic CSV


def parse_generic_csv(content: str, mapping: ColumnMapping) -> ImportResult:
    """Parse a CSV file using explicit header names for each field."""
    result = ImportResult()
    lines = parse_csv_lines(content)
    if len(lines) < 2:
        result.errors.append(EMPTY_CSV_ERROR)
        return result

    headers = [h.lower().strip() for h in lines[0]]

    def index_of(name: Optional[str]) -> int:
        if not name:
            return -1
        try:
            return headers.index(name.lower())
        except ValueError:
            return -1

    first_idx = index_of(mapping.first_name)
    if first_idx < 0:
        result.errors.append(f'Spalte "{mapping.first_name}" nicht gefunden')
        return result

    last_idx = index_of(mapping.last_name)
    email_idx = index_of(mapping.email)
    phone_idx = index_of(mapping.phone)
    birthday_idx = index_of(mapping.birthday)
    address_idx = index_of(mapping.address)

    for line_no, row in enumerate(lines[1:], start=2):
        if not any(cell.strip() for cell in row):
            continue

        first_name = _cell(row, first_idx)
        if not first_name:
            result.warnings.append(f"Zeile {line_no}: Kein Vorname, übersprungen")
            continue

        result.contacts.append(
            ImportContact(
                first_name=first_name,
                last_name=_cell(row, last_idx) or None,
                email=_cell(row, email_idx) or None,
                phone=_cell(row, phone_idx) or None,
                address=_cell(row, address_idx) or None,
                birthday=parse_date(_cell(row, birthday_idx)) if birthday_idx >= 0 else None,
                raw_data=_raw_row(headers, row),
            )
        )

    logger.info(
        f"Parsed generic CSV: {len(result.contacts)} contacts, {len(result.warnings)} warnings"
    )
    return result


def detect_csv_headers(content: str) -> List[str]:
    lines = parse_csv_lines(content)
    if not lines:
        return []
    return [h.strip() for h in lines[0]]


def detect_import_format(content: str, filename: Optional[str] = None) -> ImportFormat:
    """Guess the import format from the file extension and content."""
    if filename and filename.lower().rsplit(".", 1)[-1] == "vcf":
        return ImportFormat.VCARD

    if "BEGIN:VCARD" in content:
        return ImportFormat.VCARD

    first_line = content.split("\n", 1)[0].lower()
    if "given name" in first_line or "family name" in first_line or "e-mail 1" in first_line:
        return ImportFormat.GOOGLE

    if "," in content or ";" in content:
        return ImportFormat.CSV

    return ImportFormat.UNKNOWN


def to_contact_payload(imported: ImportContact) -> Dict[str, object]:
    """Shape an ImportContact like a contact create request."""
    contact_info = {
        key: value
        for key, value in (
            ("email", imported.email),
            ("phone", imported.phone),
            ("address", imported.address),
        )
        if value
    }
    payload: Dict[str, object] = {
        "first_name": imported.first_name,
        "last_name": imported.last_name,
        "nickname": imported.nickname,
        "relationship_type": RelationshipType(imported.suggested_type).value,
        "birthday": imported.birthday,
    }
    if contact_info:
        payload["contact_info"] = contact_info
    return payload


# Helpers


def parse_csv_lines(content: str) -> List[List[str]]:
    """Split CSV content into rows of cells.

    The delimiter is ';' when the first line has more semicolons than commas.
    Rows with no text are dropped.
    """
    reader = csv.reader(io.StringIO(content, newline=""), delimiter=sniff_delimiter(content))
    return [row for row in reader if any(cell.strip() for cell in row)]


def sniff_delimiter(content: str, default: str = ",") -> str:
    first_line = content.lstrip().split("\n", 1)[0]
    semicolons, commas = first_line.count(";"), first_line.count(",")
    if semicolons == commas:
        return default
    return ";" if semicolons > commas else ","


def parse_date(value: Optional[str]) -> Optional[str]:
    """Normalize a date string to YYYY-MM-DD, or None if it is not a date."""
    if not value:
        return None
    clean = value.strip()
    if not clean:
        return None

    if _ISO_DATE.match(clean):
        return clean

    german = _GERMAN_DATE.match(clean)
    if german:
        day, month, year = german.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    us = _US_DATE.match(clean)
    if us:
        month, day, year = us.groups()
        return f"{year}-{month.zfill(2)}-{day.zfill(2)}"

    yearless = _YEARLESS_DATE.match(clean)
    if yearless:
        return f"1900-{yearless.group(1)}-{yearless.group(2)}"

    try:
        return dateutil_parser.parse(clean).date().isoformat()
    except (ValueError, OverflowError):
        logger.debug(f"Unparseable date skipped: {clean!r}")
        return None


def guess_relationship_from_group(
    group: str,
) -> Tuple[RelationshipType, RelationshipCategory]:
    lower = group.lower()
    if "familie" in lower or "family" in lower:
        return RelationshipType.PARENT, RelationshipCategory.FAMILY
    if any(word in lower for word in ("arbeit", "work", "beruf", "kollege")):
        return RelationshipType.COLLEAGUE, RelationshipCategory.PROFESSIONAL
    if "freund" in lower or "friend" in lower:
        return RelationshipType.FRIEND, RelationshipCategory.FRIEND
    return RelationshipType.ACQUAINTANCE, RelationshipCategory.OTHER


def _find_column(headers: List[str], candidates: List[str]) -> int:
    """Index of the first header containing any candidate, in candidate order."""
    for name in candidates:
        for idx, header in enumerate(headers):
            if name in header:
                return idx
    return -1


def _cell(row: List[str], idx: int) -> str:
    if idx < 0 or idx >= len(row):
        return ""
    return row[idx].strip()


def _raw_row(headers: List[str], row: List[str]) -> Dict[str, str]:
    return {h: (row[i] if i < len(row) else "") for i, h in enumerate(headers)}
