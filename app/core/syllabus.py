"""
Canonical syllabus: form names required at each rank.

The syllabus is read-only reference data. It is built once, stored on
``app.state.syllabus`` and passed to whatever needs it; nothing mutates it.
"""

import json
from dataclasses import dataclass, field
from pathlib import Path
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, NamedTuple, Optional, Sequence, Tuple, Union

from app.core.enums import RankType

KYU_RANKS = range(10, 0, -1)  # 10th kyu (white) up to 1st kyu
DAN_RANKS = range(1, 9)


class Rank(NamedTuple):
    rank_type: RankType
    rank_number: int

    @property
    def label(self) -> str:
        return f"{self.rank_type.value} {self.rank_number}"

    @property
    def chart_label(self) -> str:
        return f"{self.rank_type.value.upper()} {self.rank_number}"


def parse_rank(rank_type, rank_number) -> Optional[Rank]:
    """Build a Rank from loose input; None when either part is missing or malformed."""
    if rank_type is None or rank_number is None:
        return None
    try:
        rt = rank_type if isinstance(rank_type, RankType) else RankType(str(rank_type).strip().capitalize())
        number = int(str(rank_number).strip())
    except ValueError:
        return None
    if number < 1:
        return None
    return Rank(rt, number)


def rank_seniority(rank_type, rank_number) -> Tuple[int, int]:
    """Total order over ranks: Kyu 10 < ... < Kyu 1 < Dan 1 < ... < Dan 8.

    Unknown rank types sort after every Dan rank.
    """
    value = rank_type.value if isinstance(rank_type, RankType) else str(rank_type)
    number = int(rank_number)
    if value == RankType.KYU.value:
        return (0, -number)
    if value == RankType.DAN.value:
        return (1, number)
    return (2, number)


def all_ranks() -> List[Rank]:
    return [Rank(RankType.KYU, n) for n in KYU_RANKS] + [Rank(RankType.DAN, n) for n in DAN_RANKS]


# Belt color worn at each rank; dan grades are all black belts.
BELT_COLORS: Mapping[Rank, str] = MappingProxyType(
    {
        Rank(RankType.KYU, 10): "white",
        Rank(RankType.KYU, 9): "orange",
        Rank(RankType.KYU, 8): "orange",
        Rank(RankType.KYU, 7): "green",
        Rank(RankType.KYU, 6): "green",
        Rank(RankType.KYU, 5): "purple",
        Rank(RankType.KYU, 4): "purple",
        Rank(RankType.KYU, 3): "brown",
        Rank(RankType.KYU, 2): "brown",
        Rank(RankType.KYU, 1): "black",
        **{Rank(RankType.DAN, n): "black" for n in DAN_RANKS},
    }
)


@dataclass(frozen=True)
class Syllabus:
    """Immutable mapping of rank -> ordered names."""

    requirements: Mapping[Rank, Tuple[str, ...]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        frozen = {rank: tuple(names) for rank, names in self.requirements.items()}
        object.__setattr__(self, "requirements", MappingProxyType(frozen))

    @classmethod
    def from_mapping(
        cls,
        kyu: Mapping[Union[int, str], Sequence[str]],
        dan: Mapping[Union[int, str], Sequence[str]],
    ) -> "Syllabus":
        reqs: Dict[Rank, Tuple[str, ...]] = {}
        for rank_type, table in ((RankType.KYU, kyu), (RankType.DAN, dan)):
            for number, names in table.items():
                reqs[Rank(rank_type, int(number))] = tuple(str(n) for n in names)
        return cls(reqs)

    def __contains__(self, rank: object) -> bool:
        return rank in self.requirements

    def names_for(self, rank: Rank) -> Tuple[str, ...]:
        return self.requirements.get(rank, ())

    def ranks(self) -> List[Rank]:
        return sorted(self.requirements, key=lambda r: rank_seniority(*r))

    def all_names(self) -> List[str]:
        """Every name across all ranks, de-duplicated and sorted case-insensitively."""
        seen: Dict[str, None] = {}
        for rank in self.ranks():
            for name in self.requirements[rank]:
                seen.setdefault(name, None)
        return sorted(seen, key=lambda n: (n.casefold(), n))

    def iter_entries(self) -> Iterable[Tuple[Rank, str]]:
        for rank in self.ranks():
            for name in self.requirements[rank]:
                yield rank, name


KYU_REQUIREMENTS: Dict[int, List[str]] = {
    10: [
        "Basic (Kihon, Tando Ku, Fukyu) Kata #1",
        "Basic Kata #1 Bunkai (both sides)",
        "Sanchin Kata",
    ],
    9: [
        "Basic (Kihon, Tando Ku, Fukyu) Kata #2",
        "Basic Kata #2 Bunkai (both sides)",
        "Kiso Kumite #1",
    ],
    8: ["Geikisai #1 Kata", "Geikisai #1 Bunkai (both sides)"],
    7: ["Geikisai #2 Kata", "Geikisai #2 Bunkai (both sides)", "Kiso Kumite #2"],
    6: [
        "Geikisai #3 Kata",
        "Geikisai #3 Bunkai (both sides)",
        "Tensho Kata",
        "Kiso Kumite #3",
    ],
    5: ["Saifa Kata", "Geikiha Kata"],
    4: ["Saifa Bunkai", "Geikiha Bunkai", "Kiso Kumite #4"],
    3: ["Seyunchin Kata", "Kakuha Kata", "Kiso Kumite #5"],
    2: ["Kakuha Bunkai", "Seisan Kata", "Bo Kata #1 - Chi Hon NoKun"],
    1: ["Seisan Bunkai", "Kiso Kumite #6", "Sai Kata #1"],
}

DAN_REQUIREMENTS: Dict[int, List[str]] = {
    1: [
        "Seipai Kata",
        "Kiso Kumite #7",
        "Jisien Kumite",
        "Seipai Kai Sai Kumite",
        "Sagawa No Kun",
        "Tonfa Kata",
    ],
    2: [
        "Shisochin Kata",
        "Shisochin Kai Sai Kumite",
        "Sagakawa No Kun",
        "Tonfa Kata",
    ],
    3: [
        "Sanseiru Kata",
        "Sanseiru Kai Sai Kumite",
        "Shushi No Kun",
        "Nunchaku Kata",
    ],
    4: [
        "Kururunfa Kata",
        "Kururunfa Kai Sai Kumite",
        "Tsuken No Kun",
        "Kama Kata",
    ],
    5: ["Pichurin Kata", "Peichurin Kai Sai Kumite", "Nunti-Bo Kata"],
    6: ["Hakatsuru Kata Sho"],
    7: ["Hakatsuru Kata Dai"],
    8: [
        "Kin Gai Ryu Kakaho Kata",
        "Kin Gai Ryu #1 Kata",
        "Kin Gai Ryu #2 Kata",
        "Knife Kata",
    ],
}

DEFAULT_SYLLABUS = Syllabus.from_mapping(kyu=KYU_REQUIREMENTS, dan=DAN_REQUIREMENTS)


def load_syllabus(path: Optional[str] = None) -> Syllabus:
    """Load a syllabus JSON file ({"Kyu": {"10": [...]}, "Dan": {...}}), or the built-in one."""
    if not path:
        return DEFAULT_SYLLABUS
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    return Syllabus.from_mapping(kyu=data.get("Kyu", {}), dan=data.get("Dan", {}))
