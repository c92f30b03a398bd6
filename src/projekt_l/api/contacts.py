"""Contact API endpoints: CRUD, interactions, import, calendar export and reminders."""

from collections import Counter
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import ValidationError
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ..auth.dependencies import get_current_user
from ..core.enums import (
    ActivityType,
    IcsExportType,
    ImportFormat,
    InteractionQuality,
    InteractionType,
    RelationshipCategory,
)
from ..core.progression import ProgressionEngine
from ..db.database import get_db
from ..db.models import Contact, ContactInteraction, Skill, User
from ..domain.contacts import (
    INTERACTION_TYPES,
    QUALITY_SCORE,
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
from ..domain.factions import faction_for_category
from ..export.ics import generate_calendar, ics_filename
from ..importers.contacts import (
    ColumnMapping,
    ImportContact,
    ImportResult,
    detect_csv_headers,
    detect_import_format,
    parse_generic_csv,
    parse_google_csv,
    parse_vcard,
    to_contact_payload,
)
from ..repositories.dependencies import get_progression_engine
from ..utils.logging_config import get_logger
from .middleware import not_found
from .ownership import get_owned
from .schemas import (
    BulkImportRequest,
    BulkImportResponse,
    ContactCreate,
    ContactResponse,
    ContactStatsResponse,
    ContactUpdate,
    ImportContactSchema,
    ImportErrorItem,
    ImportPreviewRequest,
    ImportPreviewResponse,
    InteractionCreate,
    InteractionCreateResponse,
    InteractionResponse,
    InteractionStatsResponse,
    ProblemDetails,
    UpcomingBirthdayResponse,
)

router = APIRouter(prefix="/v1/contacts", tags=["contacts"])
logger = get_logger("api")

OWNERSHIP_RESPONSES = {
    403: {"model": ProblemDetails, "description": "Contact belongs to another user"},
    404: {"model": ProblemDetails, "description": "Contact not found"},
}

_DEFAULTS = {
    "contact_info": dict,
    "shared_interests": list,
    "tags": list,
    "trust_level": lambda: 50,
    "is_favorite": lambda: False,
    "suppress_attention_reminder": lambda: False,
}


def _now() -> datetime:
    return datetime.now(timezone.utc)


def contact_response(contact: Contact, now: Optional[datetime] = None) -> ContactResponse:
    """Serialize a contact together with its derived fields."""
    now = now or _now()
    return ContactResponse(
        id=contact.id,
        first_name=contact.first_name,
        last_name=contact.last_name,
        nickname=contact.nickname,
        photo_url=contact.photo_url,
        display_name=display_name(contact.first_name, contact.last_name, contact.nickname),
        relationship_type=contact.relationship_type,
        relationship_category=contact.relationship_category,
        relationship_label=relationship_label(contact.relationship_type),
        trust_level=contact.trust_level,
        relationship_level=contact.relationship_level,
        current_xp=contact.current_xp,
        xp_for_next_level=xp_for_next_level(contact.relationship_level),
        progress_percent=level_progress_percent(contact.relationship_level, contact.current_xp),
        birthday=contact.birthday,
        anniversary=contact.anniversary,
        met_date=contact.met_date,
        met_context=contact.met_context,
        contact_info=contact.contact_info or {},
        shared_interests=contact.shared_interests or [],
        notes=contact.notes,
        tags=contact.tags or [],
        last_interaction_at=contact.last_interaction_at,
        interaction_count=contact.interaction_count,
        avg_interaction_quality=contact.avg_interaction_quality,
        days_since_interaction=days_since_interaction(contact.last_interaction_at, now),
        days_until_birthday=days_until(contact.birthday, now.date()),
        needs_attention=_needs_attention(contact, now),
        is_favorite=contact.is_favorite,
        is_archived=contact.is_archived,
        reminder_frequency_days=contact.reminder_frequency_days,
        suppress_attention_reminder=contact.suppress_attention_reminder,
        created_at=contact.created_at,
        updated_at=contact.updated_at,
    )


def _needs_attention(contact: Contact, now: datetime) -> bool:
    return needs_attention(
        contact.last_interaction_at,
        contact.reminder_frequency_days,
        contact.suppress_attention_reminder,
        now,
    )


def _contact_values(data, exclude_unset: bool) -> Dict:
    values = data.model_dump(exclude_unset=exclude_unset)
    if values.get("relationship_type"):
        values["relationship_category"] = category_for_type(values["relationship_type"]).value
    for key, default in _DEFAULTS.items():
        if key in values and values[key] is None:
            values[key] = default()
    return values


def _active_contacts(db: Session, user: User) -> List[Contact]:
    return (
        db.query(Contact)
        .filter(Contact.user_id == user.id, Contact.is_archived.is_(False))
        .all()
    )


def _list_order(contact: Contact):
    last = contact.last_interaction_at
    return (
        not contact.is_favorite,
        last is None,
        -last.timestamp() if last else 0,
        contact.first_name.lower(),
    )


def _dedupe_key(first_name: str, last_name: Optional[str]) -> str:
    return f"{first_name} {last_name or ''}".strip().lower()


# Collection-level queries


@router.get("/stats", response_model=ContactStatsResponse)
def get_contact_stats(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContactStatsResponse:
    contacts = _active_contacts(db, current_user)
    now = _now()
    by_category = {category.value: 0 for category in RelationshipCategory}
    for contact in contacts:
        by_category[contact.relationship_category] = by_category.get(contact.relationship_category, 0) + 1
    return ContactStatsResponse(
        total=len(contacts),
        by_category=by_category,
        favorites=sum(1 for c in contacts if c.is_favorite),
        needing_attention=sum(1 for c in contacts if _needs_attention(c, now)),
    )


@router.get("/birthdays/upcoming", response_model=List[UpcomingBirthdayResponse])
def get_upcoming_birthdays(
    days: int = Query(30, ge=0, le=366),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[UpcomingBirthdayResponse]:
    """Birthdays within the next N days, soonest first."""
    now = _now()
    today = now.date()
    upcoming = []
    for contact in _active_contacts(db, current_user):
        remaining = days_until(contact.birthday, today)
        if remaining is None or remaining > days:
            continue
        # yearless birthdays are stored in 1900
        turns = None
        if contact.birthday.year > 1900:
            turns = (today + timedelta(days=remaining)).year - contact.birthday.year
        upcoming.append(
            UpcomingBirthdayResponse(
                contact=contact_response(contact, now), days_until=remaining, turns=turns
            )
        )
    upcoming.sort(key=lambda b: b.days_until)
    return upcoming


@router.get("/attention", response_model=List[ContactResponse])
def get_contacts_needing_attention(
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[ContactResponse]:
    """Contacts past their reminder interval, longest neglected first."""
    now = _now()
    neglected = [c for c in _active_contacts(db, current_user) if _needs_attention(c, now)]
    neglected.sort(
        key=lambda c: (
            c.last_interaction_at is not None,
            c.last_interaction_at.timestamp() if c.last_interaction_at else 0,
        )
    )
    return [contact_response(c, now) for c in neglected[:limit]]


@router.get(
    "/export/ics",
    response_class=Response,
    responses={200: {"content": {"text/calendar": {}}, "description": "iCalendar file"}},
)
def export_ics(
    export_type: IcsExportType = Query(IcsExportType.ALL, alias="type"),
    include_description: bool = Query(True),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    """Birthdays and anniversaries as yearly recurring calendar events."""
    contacts = _active_contacts(db, current_user)
    calendar = generate_calendar(contacts, export_type, include_description)
    filename = ics_filename(export_type)

    logger.info(f"Exported {export_type.value} calendar for user {current_user.id}")
    return Response(
        content=calendar,
        media_type="text/calendar; charset=utf-8",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.post("/import/preview", response_model=ImportPreviewResponse)
def preview_import(
    data: ImportPreviewRequest,
    current_user: User = Depends(get_current_user),
) -> ImportPreviewResponse:
    """
    Parse an uploaded contact file without saving anything.

    The format is taken from the request or detected from filename and
    content. Plain CSV files need a column mapping; without one only the
    detected headers are returned.
    """
    import_format = ImportFormat(data.format) if data.format else detect_import_format(
        data.content, data.filename
    )
    headers: List[str] = []

    if import_format == ImportFormat.VCARD:
        result = parse_vcard(data.content)
    elif import_format == ImportFormat.GOOGLE:
        result = parse_google_csv(data.content)
    elif import_format == ImportFormat.CSV:
        headers = detect_csv_headers(data.content)
        if data.mapping is not None:
            result = parse_generic_csv(data.content, ColumnMapping(**data.mapping.model_dump()))
        else:
            result = ImportResult(warnings=["Bitte Spalten zuordnen"])
    else:
        result = ImportResult(errors=["Unbekanntes Dateiformat"])

    logger.info(
        f"Import preview ({import_format.value}) for user {current_user.id}: "
        f"{len(result.contacts)} contacts"
    )
    return ImportPreviewResponse(
        format=import_format.value,
        headers=headers,
        contacts=[
            ImportContactSchema(
                first_name=c.first_name,
                last_name=c.last_name,
                nickname=c.nickname,
                email=c.email,
                phone=c.phone,
                address=c.address,
                birthday=c.birthday,
                suggested_type=c.suggested_type,
                suggested_category=c.suggested_category,
                selected=c.selected,
            )
            for c in result.contacts
        ],
        errors=result.errors,
        warnings=result.warnings,
    )


@router.post("/import", response_model=BulkImportResponse)
def bulk_import(
    data: BulkImportRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> BulkImportResponse:
    """Create contacts from previewed rows, skipping name duplicates if asked."""
    existing = {
        _dedupe_key(first, last)
        for first, last in db.query(Contact.first_name, Contact.last_name).filter(
            Contact.user_id == current_user.id
        )
    }

    imported = 0
    skipped = 0
    errors: List[ImportErrorItem] = []
    for item in data.contacts:
        if not item.selected:
            continue
        name = f"{item.first_name} {item.last_name or ''}".strip()
        key = _dedupe_key(item.first_name, item.last_name)
        if data.skip_duplicates and key in existing:
            skipped += 1
            continue

        payload = to_contact_payload(
            ImportContact(
                first_name=item.first_name,
                last_name=item.last_name,
                nickname=item.nickname,
                email=item.email,
                phone=item.phone,
                address=item.address,
                birthday=item.birthday,
                suggested_type=item.suggested_type,
                suggested_category=item.suggested_category,
            )
        )
        try:
            contact_data = ContactCreate.model_validate(payload)
        except ValidationError as e:
            errors.append(ImportErrorItem(name=name, error=e.errors()[0]["msg"]))
            continue

        db.add(Contact(user_id=current_user.id, **_contact_values(contact_data, exclude_unset=False)))
        existing.add(key)
        imported += 1

    db.commit()
    logger.info(
        f"Imported {imported} contacts for user {current_user.id} "
        f"({skipped} skipped, {len(errors)} errors)"
    )
    return BulkImportResponse(imported=imported, skipped=skipped, errors=errors)


# Contact CRUD


@router.post(
    "",
    response_model=ContactResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        201: {"description": "Contact created"},
        422: {"model": ProblemDetails, "description": "Validation error"},
    },
)
def create_contact(
    data: ContactCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContactResponse:
    contact = Contact(user_id=current_user.id, **_contact_values(data, exclude_unset=False))
    db.add(contact)
    db.commit()
    db.refresh(contact)

    logger.info(f"Created contact {contact.id} for user {current_user.id}")
    return contact_response(contact)


@router.get("", response_model=List[ContactResponse])
def list_contacts(
    category: Optional[RelationshipCategory] = Query(None),
    relationship_type: Optional[str] = Query(None),
    is_favorite: Optional[bool] = Query(None),
    include_archived: bool = Query(False),
    attention: Optional[bool] = Query(None, alias="needs_attention"),
    search: Optional[str] = Query(None, max_length=100),
    tag: Optional[str] = Query(None, max_length=50),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[ContactResponse]:
    """List contacts: favourites first, then most recently contacted, then by name."""
    query = db.query(Contact).filter(Contact.user_id == current_user.id)
    if not include_archived:
        query = query.filter(Contact.is_archived.is_(False))
    if category is not None:
        query = query.filter(Contact.relationship_category == category.value)
    if relationship_type:
        query = query.filter(Contact.relationship_type == relationship_type)
    if is_favorite is not None:
        query = query.filter(Contact.is_favorite.is_(is_favorite))
    if search:
        pattern = f"%{search.lower()}%"
        query = query.filter(
            or_(
                func.lower(Contact.first_name).like(pattern),
                func.lower(Contact.last_name).like(pattern),
                func.lower(Contact.nickname).like(pattern),
            )
        )

    now = _now()
    contacts = query.all()
    if tag:
        contacts = [c for c in contacts if tag in (c.tags or [])]
    if attention is not None:
        contacts = [c for c in contacts if _needs_attention(c, now) == attention]
    contacts.sort(key=_list_order)
    return [contact_response(c, now) for c in contacts[offset: offset + limit]]


@router.get("/{contact_id}", response_model=ContactResponse, responses=OWNERSHIP_RESPONSES)
def get_contact(
    contact_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContactResponse:
    return contact_response(get_owned(db, Contact, contact_id, current_user, "Contact"))


@router.patch("/{contact_id}", response_model=ContactResponse, responses=OWNERSHIP_RESPONSES)
def update_contact(
    contact_id: UUID,
    data: ContactUpdate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContactResponse:
    contact = get_owned(db, Contact, contact_id, current_user, "Contact")
    for key, value in _contact_values(data, exclude_unset=True).items():
        if value is None and key in ("first_name", "relationship_type"):
            continue
        setattr(contact, key, value)
    db.commit()
    db.refresh(contact)

    logger.info(f"Updated contact {contact.id}")
    return contact_response(contact)


@router.delete("/{contact_id}", status_code=status.HTTP_204_NO_CONTENT, responses=OWNERSHIP_RESPONSES)
def delete_contact(
    contact_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    contact = get_owned(db, Contact, contact_id, current_user, "Contact")
    db.delete(contact)
    db.commit()
    logger.info(f"Deleted contact {contact_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


def _set_flag(db: Session, user: User, contact_id: UUID, **flags) -> ContactResponse:
    contact = get_owned(db, Contact, contact_id, user, "Contact")
    for key, value in flags.items():
        setattr(contact, key, value)
    db.commit()
    db.refresh(contact)
    logger.info(f"Contact {contact.id} flags updated: {flags}")
    return contact_response(contact)


@router.post("/{contact_id}/archive", response_model=ContactResponse, responses=OWNERSHIP_RESPONSES)
def archive_contact(
    contact_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContactResponse:
    return _set_flag(db, current_user, contact_id, is_archived=True)


@router.post("/{contact_id}/unarchive", response_model=ContactResponse, responses=OWNERSHIP_RESPONSES)
def unarchive_contact(
    contact_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContactResponse:
    return _set_flag(db, current_user, contact_id, is_archived=False)


@router.post("/{contact_id}/favorite", response_model=ContactResponse, responses=OWNERSHIP_RESPONSES)
def toggle_favorite(
    contact_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> ContactResponse:
    contact = get_owned(db, Contact, contact_id, current_user, "Contact")
    return _set_flag(db, current_user, contact_id, is_favorite=not contact.is_favorite)


# Interactions


@router.post(
    "/{contact_id}/interactions",
    response_model=InteractionCreateResponse,
    status_code=status.HTTP_201_CREATED,
    responses=OWNERSHIP_RESPONSES,
)
async def create_interaction(
    contact_id: UUID,
    data: InteractionCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    engine: ProgressionEngine = Depends(get_progression_engine),
) -> InteractionCreateResponse:
    """
    Record an interaction with a contact.

    The interaction's XP levels up the relationship and is credited to the
    faction of the contact's relationship category.
    """
    contact = get_owned(db, Contact, contact_id, current_user, "Contact")
    if data.related_skill_id is not None:
        get_owned(db, Skill, data.related_skill_id, current_user, "Skill")

    occurred_at = data.occurred_at or _now()
    if occurred_at.tzinfo is None:
        occurred_at = occurred_at.replace(tzinfo=timezone.utc)

    xp = interaction_xp(data.interaction_type, data.quality, data.duration_minutes)
    interaction = ContactInteraction(
        contact_id=contact.id,
        user_id=current_user.id,
        xp_gained=xp,
        **{**data.model_dump(), "occurred_at": occurred_at},
    )
    db.add(interaction)

    level = add_contact_xp(contact.relationship_level, contact.current_xp, xp)
    contact.relationship_level = level.level
    contact.current_xp = level.current_xp
    contact.avg_interaction_quality = running_average(
        contact.avg_interaction_quality,
        contact.interaction_count,
        QUALITY_SCORE[InteractionQuality(data.quality)],
    )
    contact.interaction_count = (contact.interaction_count or 0) + 1
    if contact.last_interaction_at is None or occurred_at > contact.last_interaction_at:
        contact.last_interaction_at = occurred_at

    faction = faction_for_category(contact.relationship_category).value
    await engine.update_faction_stats(current_user.id, faction, xp)

    meta = INTERACTION_TYPES[InteractionType(data.interaction_type)]
    name = display_name(contact.first_name, contact.last_name, contact.nickname)
    await engine.log_activity(
        current_user.id,
        ActivityType.SOCIAL_INTERACTION,
        title=f"{meta.icon} {meta.label_de} mit {name}",
        description=data.title,
        faction_id=faction,
        xp_amount=xp,
        related_entity_type="contact",
        related_entity_id=contact.id,
        details={"interaction_type": data.interaction_type, "quality": data.quality},
    )
    await engine.repos.commit()
    db.refresh(interaction)

    logger.info(f"Interaction {interaction.id} with contact {contact.id} (+{xp} XP)")
    return InteractionCreateResponse(
        interaction=InteractionResponse.model_validate(interaction),
        xp_gained=xp,
        relationship_level=level.level,
        leveled_up=level.leveled_up,
        faction_id=faction,
    )


@router.get(
    "/{contact_id}/interactions",
    response_model=List[InteractionResponse],
    responses=OWNERSHIP_RESPONSES,
)
def list_interactions(
    contact_id: UUID,
    limit: int = Query(50, ge=1, le=500),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[InteractionResponse]:
    contact = get_owned(db, Contact, contact_id, current_user, "Contact")
    interactions = (
        db.query(ContactInteraction)
        .filter(ContactInteraction.contact_id == contact.id)
        .order_by(ContactInteraction.occurred_at.desc())
        .limit(limit)
        .all()
    )
    return [InteractionResponse.model_validate(i) for i in interactions]


@router.get(
    "/{contact_id}/interactions/stats",
    response_model=InteractionStatsResponse,
    responses=OWNERSHIP_RESPONSES,
)
def get_interaction_stats(
    contact_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> InteractionStatsResponse:
    contact = get_owned(db, Contact, contact_id, current_user, "Contact")
    interactions = (
        db.query(ContactInteraction).filter(ContactInteraction.contact_id == contact.id).all()
    )
    now = _now()
    scores = [QUALITY_SCORE[InteractionQuality(i.quality)] for i in interactions]
    return InteractionStatsResponse(
        total=len(interactions),
        last_30_days=sum(1 for i in interactions if i.occurred_at >= now - timedelta(days=30)),
        last_7_days=sum(1 for i in interactions if i.occurred_at >= now - timedelta(days=7)),
        avg_quality=round(sum(scores) / len(scores), 2) if scores else None,
        total_xp=sum(i.xp_gained for i in interactions),
        by_type=dict(Counter(i.interaction_type for i in interactions)),
        quality_distribution=dict(Counter(i.quality for i in interactions)),
    )


@router.delete(
    "/{contact_id}/interactions/{interaction_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    responses=OWNERSHIP_RESPONSES,
)
def delete_interaction(
    contact_id: UUID,
    interaction_id: UUID,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> Response:
    """Delete an interaction record; XP already earned is kept."""
    contact = get_owned(db, Contact, contact_id, current_user, "Contact")
    interaction = get_owned(db, ContactInteraction, interaction_id, current_user, "Interaction")
    if interaction.contact_id != contact.id:
        raise not_found("Interaction", interaction_id)
    db.delete(interaction)
    db.commit()
    logger.info(f"Deleted interaction {interaction_id}")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
