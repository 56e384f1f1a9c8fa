from typing import List, Optional

from pydantic import BaseModel

from app.core.enums import RankType


class CandidateItem(BaseModel):
    name: str
    learned: bool


class CandidateListResponse(BaseModel):
    rank_type: Optional[RankType] = None
    rank_number: Optional[int] = None
    query: str = ""
    items: List[CandidateItem]
    # True when every candidate is already learned (or there is none)
    all_learned: bool
