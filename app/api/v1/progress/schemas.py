from typing import List, Optional

from pydantic import BaseModel

from app.core.enums import RankType


class ChartBar(BaseModel):
    label: str  # "KYU 10", "DAN 2"
    count: int
    color: str
    # Second half of a split bar for the striped kyu belts (8, 6, 4, 2)
    stripe_color: Optional[str] = None


class ProgressChartResponse(BaseModel):
    labels: List[str]
    counts: List[int]
    bars: List[ChartBar]
    total_learned: int


class RequirementItem(BaseModel):
    name: str
    learned: bool


class RankRequirements(BaseModel):
    rank_type: RankType
    rank_number: int
    label: str
    belt_color: Optional[str] = None
    items: List[RequirementItem]
    learned_count: int
