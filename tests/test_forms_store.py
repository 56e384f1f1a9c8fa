"""Lifecycle and uniqueness rules of forms, exercised at the service layer."""

import uuid

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.forms import service
from app.auth.models import User
from app.core.exceptions import (
    DuplicateRecordError,
    ForbiddenError,
    NotFoundError,
    RecordValidationError,
)
from app.core.models import Form
from app.core.models.form import LIVE_UNIQUE_INDEX


def fields(name: str, rank_type: str = "Kyu", rank_number=5, **extra):
    return {"name": name, "rank_type": rank_type, "rank_number": rank_number, **extra}


async def count_tuple(db: AsyncSession, owner_id, name, rank_type, rank_number, live_only=False) -> int:
    stmt = select(func.count(Form.id)).where(
        Form.owner_id == owner_id,
        Form.name == name,
        Form.rank_type == rank_type,
        Form.rank_number == rank_number,
    )
    if live_only:
        stmt = stmt.where(Form.deleted_at.is_(None))
    return (await db.execute(stmt)).scalar_one()


async def test_create_assigns_id_and_defaults(db_session: AsyncSession, owner: User) -> None:
    form = await service.create_form(
        db_session, owner.id, fields("  Sanchin Kata  ", "Kyu", "10", belt_color=" White ")
    )
    assert isinstance(form.id, uuid.UUID)
    assert form.owner_id == owner.id
    assert form.name == "Sanchin Kata"
    assert form.rank_number == 10
    assert form.belt_color == "white"
    assert form.category.value == "Kata"  # inferred from the name
    assert form.description == ""
    assert form.learned is False
    assert form.deleted_at is None


async def test_recreate_after_soft_delete(db_session: AsyncSession, owner: User) -> None:
    first = await service.create_form(db_session, owner.id, fields("Seisan Kata", "Kyu", 2))
    await service.soft_delete_form(db_session, owner.id, first.id)

    second = await service.create_form(db_session, owner.id, fields("Seisan Kata", "Kyu", 2))

    assert second.id != first.id
    assert await count_tuple(db_session, owner.id, "Seisan Kata", "Kyu", 2) == 2
    live = await service.list_live_forms(db_session, owner.id)
    trashed = await service.list_trashed_forms(db_session, owner.id)
    assert [f.id for f in live] == [second.id]
    assert [f.id for f in trashed] == [first.id]


async def test_same_tuple_for_different_owners(
    db_session: AsyncSession, owner: User, other_owner: User
) -> None:
    a = await service.create_form(db_session, owner.id, fields("Sanchin Kata", "Kyu", 10))
    b = await service.create_form(db_session, other_owner.id, fields("Sanchin Kata", "Kyu", 10))
    assert a.id != b.id
    assert a.deleted_at is None and b.deleted_at is None


async def test_duplicate_rejected_while_live(db_session: AsyncSession, owner: User) -> None:
    await service.create_form(db_session, owner.id, fields("Tensho Kata", "Kyu", 6))
    with pytest.raises(DuplicateRecordError):
        await service.create_form(db_session, owner.id, fields("Tensho Kata", "Kyu", 6))
    assert await count_tuple(db_session, owner.id, "Tensho Kata", "Kyu", 6) == 1


async def test_same_name_at_other_rank_is_allowed(db_session: AsyncSession, owner: User) -> None:
    await service.create_form(db_session, owner.id, fields("Tonfa Kata", "Dan", 1))
    await service.create_form(db_session, owner.id, fields("Tonfa Kata", "Dan", 2))
    live = await service.list_live_forms(db_session, owner.id)
    assert len(live) == 2


async def test_update_does_not_conflict_with_itself(db_session: AsyncSession, owner: User) -> None:
    form = await service.create_form(db_session, owner.id, fields("Saifa Kata", "Kyu", 5))
    updated = await service.update_form(
        db_session, owner.id, form.id, {"description": "Ripping and tearing", "learned": "on"}
    )
    assert updated.description == "Ripping and tearing"
    assert updated.learned is True
    assert updated.name == "Saifa Kata"
    assert updated.updated_at >= form.updated_at


async def test_update_into_existing_tuple_is_duplicate(db_session: AsyncSession, owner: User) -> None:
    await service.create_form(db_session, owner.id, fields("Saifa Kata", "Kyu", 5))
    other = await service.create_form(db_session, owner.id, fields("Geikiha Kata", "Kyu", 5))
    with pytest.raises(DuplicateRecordError):
        await service.update_form(db_session, owner.id, other.id, {"name": "Saifa Kata"})
    reloaded = await service.get_form(db_session, owner.id, other.id)
    assert reloaded.name == "Geikiha Kata"


async def test_update_trashed_form_is_not_found(db_session: AsyncSession, owner: User) -> None:
    form = await service.create_form(db_session, owner.id, fields("Saifa Kata", "Kyu", 5))
    await service.soft_delete_form(db_session, owner.id, form.id)
    with pytest.raises(NotFoundError):
        await service.update_form(db_session, owner.id, form.id, {"description": "x"})


async def test_update_revalidates_fields(db_session: AsyncSession, owner: User) -> None:
    form = await service.create_form(db_session, owner.id, fields("Saifa Kata", "Kyu", 5))
    with pytest.raises(RecordValidationError) as exc:
        await service.update_form(db_session, owner.id, form.id, {"rank_number": 0, "reference_url": "ftp://x"})
    assert exc.value.errors == {
        "rank_number": "Rank must be at least 1",
        "reference_url": "Reference URL must start with http:// or https://",
    }


async def test_other_owner_is_forbidden(db_session: AsyncSession, owner: User, other_owner: User) -> None:
    form = await service.create_form(db_session, owner.id, fields("Kakuha Kata", "Kyu", 3))
    with pytest.raises(ForbiddenError):
        await service.update_form(db_session, other_owner.id, form.id, {"description": "mine now"})
    with pytest.raises(ForbiddenError):
        await service.soft_delete_form(db_session, other_owner.id, form.id)
    with pytest.raises(ForbiddenError):
        await service.restore_form(db_session, other_owner.id, form.id)
    with pytest.raises(ForbiddenError):
        await service.hard_delete_form(db_session, other_owner.id, form.id)
    with pytest.raises(ForbiddenError):
        await service.get_form(db_session, other_owner.id, form.id)


async def test_unknown_id_is_not_found(db_session: AsyncSession, owner: User) -> None:
    missing = uuid.uuid4()
    for call in (
        service.soft_delete_form,
        service.restore_form,
        service.hard_delete_form,
        service.get_form,
    ):
        with pytest.raises(NotFoundError):
            await call(db_session, owner.id, missing)


async def test_soft_delete_twice_is_a_no_op(db_session: AsyncSession, owner: User) -> None:
    form = await service.create_form(db_session, owner.id, fields("Seyunchin Kata", "Kyu", 3))
    first = await service.soft_delete_form(db_session, owner.id, form.id)
    second = await service.soft_delete_form(db_session, owner.id, form.id)
    assert first.deleted_at is not None
    assert second.deleted_at == first.deleted_at


async def test_restore_brings_form_back(db_session: AsyncSession, owner: User) -> None:
    form = await service.create_form(db_session, owner.id, fields("Seyunchin Kata", "Kyu", 3))
    await service.soft_delete_form(db_session, owner.id, form.id)
    restored = await service.restore_form(db_session, owner.id, form.id)
    assert restored.deleted_at is None
    # Restoring a live form changes nothing
    again = await service.restore_form(db_session, owner.id, form.id)
    assert again.deleted_at is None
    assert await service.list_trashed_forms(db_session, owner.id) == []


async def test_restore_is_blocked_by_live_duplicate(db_session: AsyncSession, owner: User) -> None:
    """
    A form trashed and then re-created cannot be restored while the new one is live.
    Allowing it would leave two live forms with the same name and rank, which the
    partial unique index forbids; restore reports a duplicate and leaves it trashed.
    """
    original = await service.create_form(db_session, owner.id, fields("X Kata", "Kyu", 5))
    await service.soft_delete_form(db_session, owner.id, original.id)
    replacement = await service.create_form(db_session, owner.id, fields("X Kata", "Kyu", 5))

    with pytest.raises(DuplicateRecordError):
        await service.restore_form(db_session, owner.id, original.id)

    assert await count_tuple(db_session, owner.id, "X Kata", "Kyu", 5, live_only=True) == 1
    trashed = await service.list_trashed_forms(db_session, owner.id)
    assert [f.id for f in trashed] == [original.id]

    # Once the replacement is gone the original can come back
    await service.hard_delete_form(db_session, owner.id, replacement.id)
    restored = await service.restore_form(db_session, owner.id, original.id)
    assert restored.deleted_at is None


async def test_hard_delete_is_irreversible(db_session: AsyncSession, owner: User) -> None:
    form = await service.create_form(db_session, owner.id, fields("Kakuha Bunkai", "Kyu", 2))
    await service.soft_delete_form(db_session, owner.id, form.id)
    await service.hard_delete_form(db_session, owner.id, form.id)

    with pytest.raises(NotFoundError):
        await service.restore_form(db_session, owner.id, form.id)
    assert await count_tuple(db_session, owner.id, "Kakuha Bunkai", "Kyu", 2) == 0


async def test_hard_delete_live_form(db_session: AsyncSession, owner: User) -> None:
    form = await service.create_form(db_session, owner.id, fields("Kakuha Bunkai", "Kyu", 2))
    await service.hard_delete_form(db_session, owner.id, form.id)
    assert await service.list_live_forms(db_session, owner.id) == []


async def test_learned_names_only_live_and_learned(db_session: AsyncSession, owner: User) -> None:
    await service.create_form(db_session, owner.id, fields("Saifa Kata", learned=True))
    await service.create_form(db_session, owner.id, fields("Geikiha Kata", learned=False))
    gone = await service.create_form(db_session, owner.id, fields("Saifa Bunkai", "Kyu", 4, learned=True))
    await service.soft_delete_form(db_session, owner.id, gone.id)

    assert await service.get_learned_names(db_session, owner.id) == ["Saifa Kata"]


@pytest.mark.parametrize(
    "raw, expected",
    [
        ({"name": " a ", "rank_type": "Kyu", "rank_number": 1}, {"name": "Name must be at least 2 characters"}),
        ({"rank_type": "Kyu", "rank_number": 1}, {"name": "Name is required"}),
        ({"name": "Kata", "rank_type": "Belt", "rank_number": 1}, {"rank_type": "Rank type must be Kyu or Dan"}),
        ({"name": "Kata", "rank_number": 1}, {"rank_type": "Rank type is required"}),
        ({"name": "Kata", "rank_type": "Dan", "rank_number": "abc"}, {"rank_number": "Rank number must be a valid number"}),
        ({"name": "Kata", "rank_type": "Dan", "rank_number": 2.5}, {"rank_number": "Rank number must be a whole number"}),
        ({"name": "Kata", "rank_type": "Dan", "rank_number": 0}, {"rank_number": "Rank must be at least 1"}),
        ({"name": "Kata", "rank_type": "Dan"}, {"rank_number": "Rank number is required"}),
        ({"name": "Kata", "rank_type": "Dan", "rank_number": 10**20}, {"rank_number": "Rank must be at most 2147483647"}),
        ({"name": "Kata", "rank_type": "Dan", "rank_number": "9007199254740993"}, {"rank_number": "Rank must be at most 2147483647"}),
        ({"name": "Kata", "rank_type": "Dan", "rank_number": "1e400"}, {"rank_number": "Rank must be at most 2147483647"}),
        ({"name": "Kata", "rank_type": "Dan", "rank_number": "nan"}, {"rank_number": "Rank number must be a valid number"}),
        ({"name": "Kata", "rank_type": "Dan", "rank_number": "2.5"}, {"rank_number": "Rank number must be a whole number"}),
        ({"name": "K" * 201, "rank_type": "Kyu", "rank_number": 1}, {"name": "Name must be at most 200 characters"}),
        (
            {"name": "Kata", "rank_type": "Kyu", "rank_number": 1, "belt_color": "b" * 51},
            {"belt_color": "Belt color must be at most 50 characters"},
        ),
        (
            {"name": "Kata", "rank_type": "Kyu", "rank_number": 1, "reference_url": "https://x.io/" + "a" * 2036},
            {"reference_url": "Reference URL must be at most 2048 characters"},
        ),
        (
            {"name": "Kata", "rank_type": "Dan", "rank_number": 1, "reference_url": "www.example.com"},
            {"reference_url": "Reference URL must start with http:// or https://"},
        ),
    ],
)
async def test_create_validation_errors(db_session: AsyncSession, owner: User, raw, expected) -> None:
    with pytest.raises(RecordValidationError) as exc:
        await service.create_form(db_session, owner.id, raw)
    assert exc.value.errors == expected
    assert await service.list_live_forms(db_session, owner.id) == []


@pytest.mark.parametrize(
    "raw_number, stored",
    [("7", 7), (" 2.0 ", 2), (3.0, 3), ("2147483647", 2147483647), (2147483647, 2147483647)],
)
async def test_create_parses_rank_number_exactly(
    db_session: AsyncSession, owner: User, raw_number, stored
) -> None:
    form = await service.create_form(db_session, owner.id, fields("Seipai Kata", "Dan", raw_number))
    assert form.rank_number == stored


async def test_create_accepts_values_at_column_limits(db_session: AsyncSession, owner: User) -> None:
    url = "https://x.io/" + "a" * 2035
    form = await service.create_form(
        db_session, owner.id, fields("K" * 200, belt_color="b" * 50, reference_url=url)
    )
    assert len(form.name) == 200
    assert form.belt_color == "b" * 50
    assert form.reference_url == url


async def test_create_accepts_reference_url_and_kiso_kumite(db_session: AsyncSession, owner: User) -> None:
    form = await service.create_form(
        db_session,
        owner.id,
        fields("Kiso Kumite #3", "Kyu", 6, category="Kiso Kumite", reference_url=" HTTPS://example.com/k3 "),
    )
    assert form.category.value == "Kumite"
    assert form.reference_url == "HTTPS://example.com/k3"


# ---- storage layer ---------------------------------------------------------


async def test_partial_unique_index_is_declared() -> None:
    indexes = {ix.name: ix for ix in Form.__table__.indexes}
    ix = indexes[LIVE_UNIQUE_INDEX]
    assert ix.unique is True
    assert [c.name for c in ix.columns] == ["owner_id", "name", "rank_type", "rank_number"]
    assert str(ix.dialect_options["postgresql"]["where"]) == "deleted_at IS NULL"
    assert str(ix.dialect_options["sqlite"]["where"]) == "deleted_at IS NULL"


async def test_storage_rejects_second_live_row(db_session: AsyncSession, owner: User) -> None:
    db_session.add(Form(owner_id=owner.id, name="Sanchin Kata", rank_type="Kyu", rank_number=10))
    await db_session.commit()

    db_session.add(Form(owner_id=owner.id, name="Sanchin Kata", rank_type="Kyu", rank_number=10))
    with pytest.raises(IntegrityError):
        await db_session.commit()
    await db_session.rollback()


async def test_storage_allows_live_row_next_to_trashed(db_session: AsyncSession, owner: User) -> None:
    db_session.add(
        Form(
            owner_id=owner.id,
            name="Sanchin Kata",
            rank_type="Kyu",
            rank_number=10,
            deleted_at=service._utcnow(),
        )
    )
    db_session.add(Form(owner_id=owner.id, name="Sanchin Kata", rank_type="Kyu", rank_number=10))
    await db_session.commit()
    assert await count_tuple(db_session, owner.id, "Sanchin Kata", "Kyu", 10) == 2


async def test_race_past_precheck_maps_to_duplicate(
    db_session: AsyncSession, owner: User, monkeypatch: pytest.MonkeyPatch
) -> None:
    """Two concurrent creates both pass the existence check; the index rejects the second."""

    async def no_duplicate(*args, **kwargs) -> bool:
        return False

    await service.create_form(db_session, owner.id, fields("Geikisai #1 Kata", "Kyu", 8))
    monkeypatch.setattr(service, "_live_duplicate_exists", no_duplicate)

    with pytest.raises(DuplicateRecordError):
        await service.create_form(db_session, owner.id, fields("Geikisai #1 Kata", "Kyu", 8))
    assert await count_tuple(db_session, owner.id, "Geikisai #1 Kata", "Kyu", 8) == 1
