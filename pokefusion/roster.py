"""Roster of creatures that can take part in a fusion."""

from __future__ import annotations

import json
import logging
import pathlib
import random
import time
from typing import Dict, Iterable, Mapping, Optional, Tuple, Union

from pydantic import ValidationError

from .errors import DataLoadError, EmptyRosterError
from .models import CreatureRecord

logger = logging.getLogger(__name__)

RosterSource = Union[str, pathlib.Path, Mapping, list]


def _read_json(source: Union[str, pathlib.Path]):
    p = pathlib.Path(source)
    try:
        return json.loads(p.read_text(encoding="utf-8"))
    except FileNotFoundError as e:
        raise DataLoadError(f"roster source not found: {p}") from e
    except (OSError, ValueError) as e:
        raise DataLoadError(f"roster source unreadable: {p}: {e}") from e


def _raw_records(doc) -> Iterable[Tuple[str, dict]]:
    # FusionDex data is keyed by name; plain lists are accepted as well
    if isinstance(doc, Mapping):
        for key, value in doc.items():
            yield str(key), value
    elif isinstance(doc, list):
        for i, value in enumerate(doc):
            yield f"#{i}", value
    else:
        raise DataLoadError(f"roster must be an object or a list, got {type(doc).__name__}")


class RosterStore:
    """Read-only index of creature records by id and by lower-cased name."""

    def __init__(self, records: Iterable[CreatureRecord]):
        by_id: Dict[int, CreatureRecord] = {}
        by_name: Dict[str, CreatureRecord] = {}
        for rec in records:
            key = rec.full_name.lower()
            if rec.id in by_id:
                raise DataLoadError(
                    f"duplicate id {rec.id}: {by_id[rec.id].full_name!r} and {rec.full_name!r}"
                )
            if key in by_name:
                raise DataLoadError(f"duplicate name {rec.full_name!r}")
            by_id[rec.id] = rec
            by_name[key] = rec
        self._by_id = by_id
        self._by_name = by_name
        self._names = tuple(sorted(r.full_name for r in by_id.values()))

    @classmethod
    def load(cls, source: RosterSource) -> "RosterStore":
        started = time.perf_counter()
        doc = _read_json(source) if isinstance(source, (str, pathlib.Path)) else source
        records = []
        for key, raw in _raw_records(doc):
            if not isinstance(raw, Mapping):
                raise DataLoadError(f"roster entry {key} is not an object")
            if raw.get("id") in (None, ""):
                raise DataLoadError(f"roster entry {key} has no id")
            if not raw.get("fullName") and not raw.get("full_name"):
                raise DataLoadError(f"roster entry {key} has no fullName")
            try:
                records.append(CreatureRecord.model_validate(raw))
            except ValidationError as e:
                raise DataLoadError(f"roster entry {key} is invalid: {e}") from e
        if not records:
            raise EmptyRosterError("roster contains no records")
        store = cls(records)
        logger.info(
            "Loaded %d Pokemon entries in %.1fms",
            len(store), (time.perf_counter() - started) * 1000,
        )
        return store

    def __len__(self) -> int:
        return len(self._by_id)

    def __contains__(self, name) -> bool:
        return self.is_valid_name(name)

    def by_name(self, name: str, case_insensitive: bool = True) -> Optional[CreatureRecord]:
        if not isinstance(name, str) or not name:
            return None
        rec = self._by_name.get(name.strip().lower())
        if rec is None:
            return None
        if not case_insensitive and rec.full_name != name.strip():
            return None
        return rec

    def by_id(self, creature_id: int) -> Optional[CreatureRecord]:
        try:
            return self._by_id.get(int(creature_id))
        except (TypeError, ValueError):
            return None

    def is_valid_name(self, name) -> bool:
        return self.by_name(name) is not None

    def normalize_name(self, name) -> Optional[str]:
        rec = self.by_name(name)
        return rec.full_name if rec else None

    def random_name(self, rng: random.Random | None = None) -> str:
        if not self._names:
            raise EmptyRosterError("cannot pick from an empty roster")
        return (rng or random).choice(self._names)

    def all_names(self) -> Tuple[str, ...]:
        return self._names

    def types_by_id(self) -> Dict[int, Tuple[str, ...]]:
        return {cid: rec.types for cid, rec in sorted(self._by_id.items())}
