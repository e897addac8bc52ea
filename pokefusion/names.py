from __future__ import annotations

from typing import Dict, Mapping, Optional

from .data.split_names import ID_REMAP, SPLIT_NAMES
from .models import SplitName
from .roster import RosterStore


class NameSplitTable:
    """Curated (prefix, suffix) halves used to splice fusion names.

    The table is hand-authored and does not cover every roster id, so
    ``split_for`` degrades to the creature's full name instead of failing.
    """

    def __init__(
        self,
        splits: Mapping[int, SplitName],
        remap: Optional[Mapping[int, int]] = None,
        roster: Optional[RosterStore] = None,
    ):
        self._splits: Dict[int, SplitName] = {int(k): (str(v[0]), str(v[1])) for k, v in splits.items()}
        self._remap: Dict[int, int] = {int(k): int(v) for k, v in (remap or {}).items()}
        self._roster = roster

    @classmethod
    def default(cls, roster: Optional[RosterStore] = None) -> "NameSplitTable":
        return cls(SPLIT_NAMES, ID_REMAP, roster)

    def __len__(self) -> int:
        return len(self._splits)

    def remap(self, creature_id: int) -> int:
        return self._remap.get(creature_id, creature_id)

    def split_for(self, creature_id: int) -> SplitName:
        pair = self._splits.get(creature_id)
        if pair is not None:
            return pair
        rec = self._roster.by_id(creature_id) if self._roster is not None else None
        if rec is not None:
            return (rec.full_name, "")
        return ("", "")
