"""Hand-written Pokedex entries for specific head/body pairs."""

from __future__ import annotations

import json
import logging
import pathlib
import random
import re
from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from .errors import DataLoadError
from .models import CustomEntry, EntryKey

logger = logging.getLogger(__name__)

PLACEHOLDER = "{NAME}"
DEFAULT_AUTHOR = "Unknown"

# "<head>.<body>" with an optional single variant letter, e.g. 12.7 or 12.7a
SPRITE_KEY_RE = re.compile(r"^(\d+)\.(\d+)([a-z])?$", re.IGNORECASE)
IMAGE_EXT_RE = re.compile(r"\.(png|gif|jpe?g|webp)$", re.IGNORECASE)


def parse_sprite_key(sprite: str) -> Optional[EntryKey]:
    """Turn ``"12.7a.png"`` into ``EntryKey(12, 7, "a")``; None if it does not parse."""
    stem = IMAGE_EXT_RE.sub("", sprite.strip())
    m = SPRITE_KEY_RE.match(stem)
    if not m:
        return None
    variant = m.group(3).lower() if m.group(3) else None
    return EntryKey(int(m.group(1)), int(m.group(2)), variant)


class CustomEntryStore:
    def __init__(self, index: Mapping[Tuple[int, int], List[CustomEntry]] | None = None):
        self._index: Dict[Tuple[int, int], Tuple[CustomEntry, ...]] = {
            pair: tuple(entries) for pair, entries in (index or {}).items() if entries
        }

    @classmethod
    def empty(cls) -> "CustomEntryStore":
        return cls()

    @classmethod
    def load(cls, source: Union[str, pathlib.Path, Iterable[Mapping]]) -> "CustomEntryStore":
        if isinstance(source, (str, pathlib.Path)):
            p = pathlib.Path(source)
            try:
                doc = json.loads(p.read_text(encoding="utf-8"))
            except FileNotFoundError as e:
                raise DataLoadError(f"custom entry source not found: {p}") from e
            except (OSError, ValueError) as e:
                raise DataLoadError(f"custom entry source unreadable: {p}: {e}") from e
        else:
            doc = source
        if not isinstance(doc, list):
            raise DataLoadError("custom entries must be a list")

        index: Dict[Tuple[int, int], List[CustomEntry]] = defaultdict(list)
        variants = skipped = 0
        for i, raw in enumerate(doc):
            if not isinstance(raw, Mapping):
                raise DataLoadError(f"custom entry #{i} is not an object")
            sprite, text = raw.get("sprite"), raw.get("entry")
            if not isinstance(sprite, str) or not sprite.strip():
                raise DataLoadError(f"custom entry #{i} has no sprite")
            if not isinstance(text, str) or not text.strip():
                raise DataLoadError(f"custom entry #{i} ({sprite}) has no entry text")
            key = parse_sprite_key(sprite)
            if key is None:
                logger.warning("Skipping custom entry with unrecognised sprite name %r", sprite)
                skipped += 1
                continue
            if key.variant is not None:
                # alternate forms must never leak into the primary pair's text
                variants += 1
                continue
            author = raw.get("author") or DEFAULT_AUTHOR
            index[key.pair].append(CustomEntry(text=text, author=str(author)))

        store = cls(index)
        logger.info(
            "Indexed %d custom entries across %d pairs (%d variants dropped, %d skipped)",
            sum(len(v) for v in index.values()), len(store), variants, skipped,
        )
        return store

    def __len__(self) -> int:
        return len(self._index)

    def entries_for(self, head_id: int, body_id: int) -> Tuple[CustomEntry, ...]:
        return self._index.get((head_id, body_id), ())

    def entry_for(self, head_id: int, body_id: int, rng: random.Random | None = None) -> Optional[CustomEntry]:
        entries = self.entries_for(head_id, body_id)
        if not entries:
            return None
        return (rng or random).choice(entries)
