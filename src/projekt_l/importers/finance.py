"""Bank statement CSV import."""

import csv
import io
import re
from dataclasses import dataclass
from datetime import date
from typing import Dict, List, Optional

from ..utils.logging_config import get_logger
from .contacts import sniff_delimiter

logger = get_logger("importers")

DEFAULT_CATEGORY = "Sonstiges"

CATEGORY_KEYWORDS: Dict[str, List[str]] = {
    "Wohnen": ["miete", "nebenkosten", "strom", "gas", "wasser"],
    "Essen": ["rewe", "edeka", "aldi", "lidl", "supermarkt", "restaurant"],
    "Transport": ["tanken", "benzin", "bahn", "mvv", "uber", "taxi", "auto"],
    "Unterhaltung": ["netflix", "spotify", "kino", "theater", "konzert"],
    "Gesundheit": ["apotheke", "arzt", "krankenversicherung", "fitnessstudio"],
    "Shopping": ["amazon", "zalando", "mediamarkt"],
    "Gehalt": ["gehalt", "lohn", "salary"],
}

_GERMAN_DATE = re.compile(r"^(\d{1,2})\.(\d{1,2})\.(\d{4})$")


@dataclass(frozen=True)
class CsvTransaction:
    """One parsed statement row; amount keeps its sign."""

    occurred_at: date
    description: str
    amount: float
    category: str


def detect_category(description: str) -> str:
    lower = description.lower()
    for category, keywords in CATEGORY_KEYWORDS.items():
        if any(keyword in lower for keyword in keywords):
            return category
    return DEFAULT_CATEGORY


def parse_german_amount(value: str) -> Optional[float]:
    """'1.234,56' -> 1234.56; None if the cell is not a number."""
    cleaned = value.replace(".", "").replace(",", ".", 1)
    try:
        return float(cleaned)
    except ValueError:
        return None


def parse_statement_date(value: str) -> Optional[date]:
    value = value.strip()
    german = _GERMAN_DATE.match(value)
    try:
        if german:
            day, month, year = german.groups()
            return date(int(year), int(month), int(day))
        return date.fromisoformat(value)
    except ValueError:
        return None


def parse_bank_csv(content: str) -> List[CsvTransaction]:
    """Parse a bank export, semicolon separated unless the header says otherwise.

    Columns are found by header substring: datum/date,
    beschreibung/verwendung/description and betrag/amount. Quoted cells may
    hold the delimiter. Rows whose amount or date cannot be read are skipped.
    """
    delimiter = sniff_delimiter(content, default=";")
    rows = [
        row
        for row in csv.reader(io.StringIO(content.strip(), newline=""), delimiter=delimiter)
        if any(cell.strip() for cell in row)
    ]
    if len(rows) < 2:
        return []

    headers = [h.strip().lower() for h in rows[0]]
    date_idx = _find(headers, ("datum", "date"))
    desc_idx = _find(headers, ("beschreibung", "verwendung", "description"))
    amount_idx = _find(headers, ("betrag", "amount"))

    if date_idx < 0 or amount_idx < 0:
        logger.warning("Bank CSV has no date or amount column")
        return []

    transactions: List[CsvTransaction] = []
    skipped = 0
    for row in rows[1:]:
        values = [v.strip() for v in row]
        if amount_idx >= len(values) or date_idx >= len(values):
            skipped += 1
            continue

        amount = parse_german_amount(values[amount_idx])
        occurred_at = parse_statement_date(values[date_idx])
        if amount is None or occurred_at is None:
            skipped += 1
            continue

        description = values[desc_idx] if 0 <= desc_idx < len(values) else ""
        transactions.append(
            CsvTransaction(
                occurred_at=occurred_at,
                description=description,
                amount=amount,
                category=detect_category(description),
            )
        )

    logger.info(f"Parsed bank CSV: {len(transactions)} rows, {skipped} unreadable")
    return transactions


def _find(headers: List[str], needles) -> int:
    for idx, header in enumerate(headers):
        if any(needle in header for needle in needles):
            return idx
    return -1
