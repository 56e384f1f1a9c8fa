"""Read-only summaries for the progress chart and the per-rank requirement checklist."""

from collections import Counter
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.v1.forms.service import get_learned_names
from app.api.v1.syllabus.resolver import AvailabilityResolver
from app.core.enums import RankType
from app.core.models import Form
from app.core.syllabus import BELT_COLORS, Rank, Syllabus, all_ranks

from .schemas import ChartBar, ProgressChartResponse, RankRequirements, RequirementItem

# Bar colors per chart label; split belts are drawn as two halves.
BELT_HEX = {
    "white": "#ffffff",
    "orange": "#ff7f00",
    "green": "#10b981",
    "purple": "#7c3aed",
    "brown": "#8b5a2b",
    "black": "#000000",
}
SPLIT_KYU = {8, 6, 4, 2}
FALLBACK_HEX = "#9ca3af"


def bar_colors(rank: Rank) -> Tuple[str, Optional[str]]:
    color = BELT_HEX.get(BELT_COLORS.get(rank, ""), FALLBACK_HEX)
    if rank.rank_type is RankType.KYU and rank.rank_number in SPLIT_KYU:
        return color, BELT_HEX["white"]
    return color, None


async def _learned_rank_counts(db: AsyncSession, owner_id: UUID) -> Counter:
    result = await db.execute(
        select(Form.rank_type, Form.rank_number).where(
            Form.owner_id == owner_id,
            Form.deleted_at.is_(None),
            Form.learned.is_(True),
        )
    )
    return Counter(f"{str(rt).upper()} {int(n)}" for rt, n in result.all())


async def get_progress_chart(db: AsyncSession, owner_id: UUID) -> ProgressChartResponse:
    """Learned counts for KYU 10..1 then DAN 1..8. Ranks outside that set are not charted."""
    counts = await _learned_rank_counts(db, owner_id)
    bars: List[ChartBar] = []
    for rank in all_ranks():
        color, stripe = bar_colors(rank)
        bars.append(
            ChartBar(
                label=rank.chart_label,
                count=counts.get(rank.chart_label, 0),
                color=color,
                stripe_color=stripe,
            )
        )
    return ProgressChartResponse(
        labels=[b.label for b in bars],
        counts=[b.count for b in bars],
        bars=bars,
        total_learned=sum(b.count for b in bars),
    )


async def get_requirements(
    db: AsyncSession,
    owner_id: UUID,
    syllabus: Syllabus,
) -> List[RankRequirements]:
    resolver = AvailabilityResolver(syllabus, await get_learned_names(db, owner_id))
    out: List[RankRequirements] = []
    for rank in syllabus.ranks():
        items = [
            RequirementItem(name=c.name, learned=c.learned)
            for c in resolver.annotate(syllabus.names_for(rank))
        ]
        out.append(
            RankRequirements(
                rank_type=rank.rank_type,
                rank_number=rank.rank_number,
                label=rank.label,
                belt_color=BELT_COLORS.get(rank),
                items=items,
                learned_count=sum(1 for i in items if i.learned),
            )
        )
    return out
