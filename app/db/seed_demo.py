"""
Seed the whole syllabus for a single demo user.

Run with env set (or rely on the defaults from settings):
  DEMO_EMAIL=demo@dojo.app
  DEMO_PASSWORD=demo123
  SEED_MARK_LEARNED=true    (optional; marks every seeded form as learned)

  python -m app.db.seed_demo

Creates the demo user if missing, deletes only that user's forms (so re-running
resets them) and inserts one form per syllabus entry with the category inferred
from its name and the belt color of its rank.
"""
import asyncio
from typing import List

from loguru import logger
from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.auth.models import User
from app.auth.security import hash_password
from app.core.config import settings
from app.core.enums import UserStatus
from app.core.models import Form
from app.core.normalization import infer_category
from app.core.syllabus import BELT_COLORS, Syllabus, load_syllabus
from app.db.session import AsyncSessionLocal


def build_demo_forms(owner: User, syllabus: Syllabus, mark_learned: bool = False) -> List[Form]:
    forms: List[Form] = []
    seen = set()
    for rank, name in syllabus.iter_entries():
        key = (name, rank)
        if key in seen:
            continue
        seen.add(key)
        forms.append(
            Form(
                owner_id=owner.id,
                name=name,
                rank_type=rank.rank_type.value,
                rank_number=rank.rank_number,
                belt_color=BELT_COLORS.get(rank),
                category=infer_category(name).value,
                description="",
                reference_url=None,
                learned=mark_learned,
            )
        )
    return forms


async def seed_demo(db: AsyncSession, syllabus: Syllabus) -> int:
    email = settings.demo_email.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    user = result.scalar_one_or_none()
    if not user:
        user = User(
            email=email,
            full_name="Demo Student",
            password_hash=hash_password(settings.demo_password),
            status=UserStatus.ACTIVE.value,
        )
        db.add(user)
        await db.flush()
        logger.info("Created demo user {}", email)

    await db.execute(delete(Form).where(Form.owner_id == user.id))
    forms = build_demo_forms(user, syllabus, settings.seed_mark_learned)
    db.add_all(forms)
    await db.commit()
    logger.info("Seeded {} forms for {} (learned={})", len(forms), email, settings.seed_mark_learned)
    return len(forms)


async def main() -> None:
    async with AsyncSessionLocal() as db:
        try:
            await seed_demo(db, load_syllabus(settings.syllabus_file))
        except Exception:
            await db.rollback()
            logger.exception("Demo seed failed")
            raise


if __name__ == "__main__":
    asyncio.run(main())
