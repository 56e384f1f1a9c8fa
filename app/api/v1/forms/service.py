"""
Form lifecycle: create, update, trash (soft delete), restore and purge (hard delete).

Uniqueness of (name, rank_type, rank_number) per owner among live forms is enforced
by the partial unique index on the forms table. The existence checks here only turn
the common case into a friendly error before hitting the database; an IntegrityError
raised by the index maps to the same DuplicateRecordError.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional
from uuid import UUID

from loguru import logger
from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.exceptions import (
    DuplicateRecordError,
    ForbiddenError,
    NotFoundError,
    RecordValidationError,
)
from app.core.models import Form
from app.core.models.form import LIVE_UNIQUE_INDEX

from .schemas import FormFields, FormResponse

_REQUIRED_LABELS = {
    "name": "Name",
    "rank_type": "Rank type",
    "rank_number": "Rank number",
}

_EDITABLE = (
    "name",
    "rank_type",
    "rank_number",
    "belt_color",
    "category",
    "description",
    "reference_url",
    "learned",
)


def _to_uuid(val):
    if val is None:
        return None
    return val if isinstance(val, UUID) else UUID(str(val))


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _to_response(form: Form) -> FormResponse:
    return FormResponse.model_validate(form)


def _format_errors(exc: ValidationError) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    for err in exc.errors():
        field = str(err["loc"][0]) if err.get("loc") else "form"
        if field in errors:
            continue
        if err["type"] == "missing":
            errors[field] = f"{_REQUIRED_LABELS.get(field, field)} is required"
        elif err["type"] == "value_error" and "error" in err.get("ctx", {}):
            errors[field] = str(err["ctx"]["error"])
        else:
            errors[field] = err["msg"]
    return errors


def validate_form_fields(fields: Mapping[str, Any]) -> FormFields:
    """Validate and normalize raw input. Raises RecordValidationError with a field map."""
    try:
        return FormFields.model_validate(dict(fields))
    except ValidationError as e:
        raise RecordValidationError(_format_errors(e)) from e


def _column_values(data: FormFields) -> Dict[str, Any]:
    return {
        "name": data.name,
        "rank_type": data.rank_type.value,
        "rank_number": data.rank_number,
        "belt_color": data.belt_color,
        "category": data.category.value,
        "description": data.description,
        "reference_url": data.reference_url,
        "learned": data.learned,
    }


def _is_live_unique_violation(exc: IntegrityError) -> bool:
    # Postgres names the index; SQLite lists the indexed columns
    msg = str(exc.orig)
    return LIVE_UNIQUE_INDEX in msg or "UNIQUE constraint failed: forms." in msg


async def _live_duplicate_exists(
    db: AsyncSession,
    owner_id: UUID,
    data: Mapping[str, Any],
    exclude_id: Optional[UUID] = None,
) -> bool:
    stmt = select(Form.id).where(
        Form.owner_id == owner_id,
        Form.name == data["name"],
        Form.rank_type == data["rank_type"],
        Form.rank_number == data["rank_number"],
        Form.deleted_at.is_(None),
    )
    if exclude_id is not None:
        stmt = stmt.where(Form.id != exclude_id)
    result = await db.execute(stmt.limit(1))
    return result.scalar_one_or_none() is not None


async def _commit_or_duplicate(db: AsyncSession) -> None:
    try:
        await db.commit()
    except IntegrityError as e:
        await db.rollback()
        if _is_live_unique_violation(e):
            raise DuplicateRecordError() from e
        raise


async def get_owned_form(
    db: AsyncSession,
    owner_id: UUID,
    form_id: UUID,
    *,
    live_only: bool = False,
) -> Form:
    """
    Single authorization guard for every entry point addressing one form.

    Returns the form, or raises NotFoundError (missing, or trashed when live_only)
    or ForbiddenError (owned by someone else).
    """
    form = await db.get(Form, _to_uuid(form_id))
    if form is None or (live_only and form.deleted_at is not None):
        raise NotFoundError()
    if form.owner_id != _to_uuid(owner_id):
        raise ForbiddenError()
    return form


async def create_form(
    db: AsyncSession,
    owner_id: UUID,
    fields: Mapping[str, Any],
) -> FormResponse:
    owner_id = _to_uuid(owner_id)
    values = _column_values(validate_form_fields(fields))

    if await _live_duplicate_exists(db, owner_id, values):
        logger.warning(
            "Duplicate form rejected for owner {}: {} ({} {})",
            owner_id, values["name"], values["rank_type"], values["rank_number"],
        )
        raise DuplicateRecordError()

    form = Form(owner_id=owner_id, deleted_at=None, **values)
    db.add(form)
    await _commit_or_duplicate(db)
    await db.refresh(form)
    logger.info("Created form {} for owner {}", form.id, owner_id)
    return _to_response(form)


async def update_form(
    db: AsyncSession,
    owner_id: UUID,
    form_id: UUID,
    fields: Mapping[str, Any],
) -> FormResponse:
    """Merge ``fields`` over the stored values, re-validate and save. Trashed forms are not editable."""
    form = await get_owned_form(db, owner_id, form_id, live_only=True)

    merged = {attr: getattr(form, attr) for attr in _EDITABLE}
    merged.update(fields)
    values = _column_values(validate_form_fields(merged))

    # Checked before touching the instance so autoflush can't write a conflicting row
    if await _live_duplicate_exists(db, form.owner_id, values, exclude_id=form.id):
        logger.warning("Duplicate form rejected on update of {}", form.id)
        raise DuplicateRecordError()

    for attr, value in values.items():
        setattr(form, attr, value)
    await _commit_or_duplicate(db)
    await db.refresh(form)
    return _to_response(form)


async def soft_delete_form(
    db: AsyncSession,
    owner_id: UUID,
    form_id: UUID,
) -> FormResponse:
    """Move a form to the trash. Trashing an already trashed form is a no-op."""
    form = await get_owned_form(db, owner_id, form_id)
    if form.deleted_at is None:
        form.deleted_at = _utcnow()
        await db.commit()
        await db.refresh(form)
        logger.info("Trashed form {}", form.id)
    return _to_response(form)


async def restore_form(
    db: AsyncSession,
    owner_id: UUID,
    form_id: UUID,
) -> FormResponse:
    """
    Bring a trashed form back. Fails with DuplicateRecordError when a live form with
    the same name and rank was created in the meantime; the form then stays trashed.
    """
    form = await get_owned_form(db, owner_id, form_id)
    if form.deleted_at is None:
        return _to_response(form)

    values = {"name": form.name, "rank_type": form.rank_type, "rank_number": form.rank_number}
    if await _live_duplicate_exists(db, form.owner_id, values, exclude_id=form.id):
        logger.warning("Restore of {} blocked by a live duplicate", form.id)
        raise DuplicateRecordError(
            "A live form with the same name and rank already exists. Rename or delete it before restoring."
        )

    form.deleted_at = None
    await _commit_or_duplicate(db)
    await db.refresh(form)
    logger.info("Restored form {}", form.id)
    return _to_response(form)


async def hard_delete_form(
    db: AsyncSession,
    owner_id: UUID,
    form_id: UUID,
) -> None:
    """Remove a form permanently, live or trashed."""
    form = await get_owned_form(db, owner_id, form_id)
    await db.delete(form)
    await db.commit()
    logger.info("Purged form {}", form_id)


async def get_form(
    db: AsyncSession,
    owner_id: UUID,
    form_id: UUID,
) -> FormResponse:
    form = await get_owned_form(db, owner_id, form_id, live_only=True)
    return _to_response(form)


async def list_live_forms(db: AsyncSession, owner_id: UUID) -> List[FormResponse]:
    result = await db.execute(
        select(Form)
        .where(Form.owner_id == _to_uuid(owner_id), Form.deleted_at.is_(None))
        .order_by(Form.created_at, Form.id)
    )
    return [_to_response(f) for f in result.scalars().all()]


async def list_trashed_forms(db: AsyncSession, owner_id: UUID) -> List[FormResponse]:
    result = await db.execute(
        select(Form)
        .where(Form.owner_id == _to_uuid(owner_id), Form.deleted_at.is_not(None))
        .order_by(Form.updated_at.desc(), Form.id)
    )
    return [_to_response(f) for f in result.scalars().all()]


async def get_learned_names(db: AsyncSession, owner_id: UUID) -> List[str]:
    """Names of the owner's live forms marked as learned."""
    result = await db.execute(
        select(Form.name).where(
            Form.owner_id == _to_uuid(owner_id),
            Form.deleted_at.is_(None),
            Form.learned.is_(True),
        )
    )
    return [row[0] for row in result.all()]
