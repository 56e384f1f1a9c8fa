from enum import Enum


class RankType(str, Enum):
    KYU = "Kyu"
    DAN = "Dan"


class FormCategory(str, Enum):
    KATA = "Kata"
    BUNKAI = "Bunkai"
    KUMITE = "Kumite"
    WEAPON = "Weapon"
    OTHER = "Other"


class UserStatus(str, Enum):
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
