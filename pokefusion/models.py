from __future__ import annotations

from enum import Enum
from typing import List, NamedTuple, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


# -------------------- Roster --------------------

class CreatureRecord(BaseModel):
    """One roster entry, as found in the FusionDex data file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True, alias_generator=to_camel)

    id: int = Field(gt=0)
    full_name: str = Field(min_length=1)
    types: Tuple[str, ...] = Field(min_length=1, max_length=2)
    hp: int = Field(ge=0)
    attack: int = Field(ge=0)
    defense: int = Field(ge=0)
    special_attack: int = Field(ge=0)
    special_defense: int = Field(ge=0)
    speed: int = Field(ge=0)
    pokedex_entry: str = ""
    category: str = ""
    height: str = ""
    weight: str = ""

    @field_validator("full_name")
    @classmethod
    def _strip_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("fullName must not be blank")
        return v

    @field_validator("types")
    @classmethod
    def _normalize_types(cls, v: Tuple[str, ...]) -> Tuple[str, ...]:
        # "FLYING" and "flying" both become "Flying"
        out = tuple(t.strip().capitalize() for t in v)
        if not all(out):
            raise ValueError("type tags must not be blank")
        return out


SplitName = Tuple[str, str]


# -------------------- Custom entries --------------------

class EntryKey(NamedTuple):
    head_id: int
    body_id: int
    variant: Optional[str] = None

    @property
    def pair(self) -> Tuple[int, int]:
        return (self.head_id, self.body_id)


class CustomEntry(NamedTuple):
    text: str
    author: str


# -------------------- Images --------------------

class Attribution(str, Enum):
    CURATED = "curated"
    GENERATED = "generated"
    MISSING = "missing"


class ImageRef(BaseModel):
    model_config = ConfigDict(frozen=True)

    locator: str
    attribution: Attribution


# -------------------- Fusion output --------------------

class _Camel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, alias_generator=to_camel)

    def to_json(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class FusionStats(BaseModel):
    HP: int
    ATTACK: int
    DEFENSE: int
    SPECIAL_ATTACK: int
    SPECIAL_DEFENSE: int
    SPEED: int
    TOTAL: int


class DexEntry(NamedTuple):
    entry: str
    author: str


class FusionResult(_Camel):
    head_id: int
    body_id: int
    head_name: str
    body_name: str
    fusion_name: str
    fusion_id: str
    types: List[str] = Field(min_length=1, max_length=2)
    stats: FusionStats
    category: str
    pokedex_entry: str
    pokedex_author: str
    height: str
    weight: str
    image_ref: Optional[ImageRef] = None
