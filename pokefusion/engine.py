"""Fusion engine: derives every fused attribute from two creature records.

Head and body play different roles. The head contributes the start of the
name, the primary type and the special stats. The body contributes the end
of the name, the secondary type and the physical stats.
"""

from __future__ import annotations

import logging
import random
import re
from typing import List, Optional, Tuple

from .entries import PLACEHOLDER, CustomEntryStore
from .errors import FusionComputationError, UnknownCreatureError
from .images import ImageResolver
from .models import CreatureRecord, DexEntry, FusionResult, FusionStats
from .names import NameSplitTable
from .roster import RosterStore

logger = logging.getLogger(__name__)

CATEGORY_SUFFIX = "Pokémon"
AUTO_ENTRY_AUTHOR = "Auto-generated"
SENTENCE_SEP = "."
_SENTENCE_ENDS = (".", "!", "?")

_CATEGORY_SUFFIX_RE = re.compile(r"\s*\bpok[eé]mon\s*$", re.IGNORECASE)
_MAGNITUDE_RE = re.compile(r"^\s*(\d+(?:\.\d+)?)")
_WS_RE = re.compile(r"\s+")


# -------------------- Pure helpers --------------------

def calculate_fused_stat(dominant: int, other: int) -> int:
    return (2 * dominant) // 3 + other // 3


def calculate_types(head: CreatureRecord, body: CreatureRecord) -> List[str]:
    head_types = list(head.types)
    body_types = list(body.types)

    if head_types[:2] == ["Normal", "Flying"]:
        type1 = "Flying"
    else:
        type1 = head_types[0] if head_types else None

    body_second = body_types[1] if len(body_types) > 1 else None
    if body_second is not None and body_second == type1:
        type2 = body_types[0]
    else:
        type2 = body_second

    out: List[str] = []
    for t in (type1, type2):
        if t and t not in out:
            out.append(t)
    return out


def calculate_base_stats(head: CreatureRecord, body: CreatureRecord) -> FusionStats:
    stats = dict(
        HP=calculate_fused_stat(head.hp, body.hp),
        ATTACK=calculate_fused_stat(body.attack, head.attack),
        DEFENSE=calculate_fused_stat(body.defense, head.defense),
        SPECIAL_ATTACK=calculate_fused_stat(head.special_attack, body.special_attack),
        SPECIAL_DEFENSE=calculate_fused_stat(head.special_defense, body.special_defense),
        SPEED=calculate_fused_stat(body.speed, head.speed),
    )
    return FusionStats(TOTAL=sum(stats.values()), **stats)


def strip_category(category: str) -> str:
    return _CATEGORY_SUFFIX_RE.sub("", category or "").strip()


def combine_categories(head_category: str, body_category: str) -> str:
    """Join head phrase then body phrase; the order matters ("Seed Lizard" != "Lizard Seed")."""
    parts = [p for p in (strip_category(head_category), strip_category(body_category)) if p]
    return " ".join(parts + [CATEGORY_SUFFIX])


def calculate_category(head: CreatureRecord, body: CreatureRecord) -> str:
    return combine_categories(head.category, body.category)


def parse_magnitude(value: str) -> float:
    m = _MAGNITUDE_RE.match(value or "")
    return float(m.group(1)) if m else 0.0


def average_measure(a: str, b: str, unit: str) -> str:
    return f"{int((parse_magnitude(a) + parse_magnitude(b)) // 2)} {unit}"


def calculate_height(head: CreatureRecord, body: CreatureRecord) -> str:
    return average_measure(head.height, body.height, "cm")


def calculate_weight(head: CreatureRecord, body: CreatureRecord) -> str:
    return average_measure(head.weight, body.weight, "kg")


def _sentences(text: str) -> List[str]:
    # first sentence and the remainder, at most two segments
    return text.split(SENTENCE_SEP, 1)


def splice_dex_entry(head: CreatureRecord, body: CreatureRecord, fusion_name: str) -> str:
    body_text = (body.pokedex_entry or "").replace(body.full_name, fusion_name)
    head_text = (head.pokedex_entry or "").replace(head.full_name, fusion_name)

    opening = _sentences(body_text)[0].strip()
    head_parts = _sentences(head_text)
    closing = head_parts[1] if len(head_parts) > 1 and head_parts[1].strip() else head_parts[0]
    closing = closing.strip()
    if closing and not closing.endswith(_SENTENCE_ENDS):
        closing += SENTENCE_SEP

    parts = [opening + SENTENCE_SEP] if opening else []
    if closing:
        parts.append(closing)
    return _WS_RE.sub(" ", " ".join(parts)).strip()


# -------------------- Engine --------------------

class FusionEngine:
    def __init__(
        self,
        roster: RosterStore,
        splits: NameSplitTable,
        entries: Optional[CustomEntryStore] = None,
        rng: Optional[random.Random] = None,
        images: Optional[ImageResolver] = None,
    ):
        self.roster = roster
        self.splits = splits
        self.entries = entries or CustomEntryStore.empty()
        self.rng = rng or random.Random()
        self.images = images

    # ---- resolution ----

    def _resolve(self, name: Optional[str], role: str) -> CreatureRecord:
        if name is None or (isinstance(name, str) and not name.strip()):
            name = self.roster.random_name(self.rng)
        rec = self.roster.by_name(name)
        if rec is None:
            raise UnknownCreatureError(name, role)
        return rec

    def prepare_fusion(
        self, head_name: Optional[str] = None, body_name: Optional[str] = None
    ) -> Tuple[CreatureRecord, CreatureRecord]:
        head = self._resolve(head_name, "head")
        body = self._resolve(body_name, "body")
        return head, body

    # ---- attributes ----

    def calculate_name(self, head_id: int, body_id: int, head: CreatureRecord, body: CreatureRecord) -> str:
        try:
            head_prefix, _ = self.splits.split_for(self.splits.remap(head_id))
            body_prefix, body_suffix = self.splits.split_for(self.splits.remap(body_id))
            if not body_suffix:
                body_suffix = body_prefix
            if head_prefix and body_suffix and head_prefix[-1] == body_suffix[0]:
                head_prefix = head_prefix[:-1]
            name = head_prefix + body_suffix
            if name:
                return name
        except (AttributeError, IndexError, KeyError, TypeError, ValueError) as e:
            logger.warning("Name splice failed for %s.%s: %s", head_id, body_id, e)
        return f"{head.full_name}{body.full_name}"

    def calculate_types(self, head: CreatureRecord, body: CreatureRecord) -> List[str]:
        return calculate_types(head, body)

    def calculate_base_stats(self, head: CreatureRecord, body: CreatureRecord) -> FusionStats:
        return calculate_base_stats(head, body)

    def calculate_category(self, head: CreatureRecord, body: CreatureRecord) -> str:
        return calculate_category(head, body)

    def calculate_height(self, head: CreatureRecord, body: CreatureRecord) -> str:
        return calculate_height(head, body)

    def calculate_weight(self, head: CreatureRecord, body: CreatureRecord) -> str:
        return calculate_weight(head, body)

    def calculate_dex_entry(self, head: CreatureRecord, body: CreatureRecord, fusion_name: str) -> DexEntry:
        custom = self.entries.entry_for(head.id, body.id, self.rng)
        if custom is not None:
            return DexEntry(custom.text.replace(PLACEHOLDER, fusion_name), custom.author)
        return DexEntry(splice_dex_entry(head, body, fusion_name), AUTO_ENTRY_AUTHOR)

    # ---- pipeline ----

    def fuse(self, head: CreatureRecord, body: CreatureRecord) -> FusionResult:
        """Compute a fusion from two already-resolved records."""
        try:
            fusion_name = self.calculate_name(head.id, body.id, head, body)
            dex = self.calculate_dex_entry(head, body, fusion_name)
            return FusionResult(
                head_id=head.id,
                body_id=body.id,
                head_name=head.full_name,
                body_name=body.full_name,
                fusion_name=fusion_name,
                fusion_id=f"{head.id}.{body.id}",
                types=self.calculate_types(head, body),
                stats=self.calculate_base_stats(head, body),
                category=self.calculate_category(head, body),
                pokedex_entry=dex.entry,
                pokedex_author=dex.author,
                height=self.calculate_height(head, body),
                weight=self.calculate_weight(head, body),
                image_ref=self.images.resolve(head.id, body.id) if self.images else None,
            )
        except Exception as e:
            raise FusionComputationError(head.id, body.id, e) from e

    def generate_fusion(self, head_name: Optional[str] = None, body_name: Optional[str] = None) -> FusionResult:
        head, body = self.prepare_fusion(head_name, body_name)
        logger.info(
            "Generating fusion: %s (#%d) + %s (#%d)",
            head.full_name, head.id, body.full_name, body.id,
        )
        return self.fuse(head, body)

    # ---- projections ----

    def get_names(self, head_name: Optional[str] = None, body_name: Optional[str] = None) -> dict:
        f = self.generate_fusion(head_name, body_name)
        return {"fusionName": f.fusion_name, "headName": f.head_name, "bodyName": f.body_name}

    def get_types(self, head_name: Optional[str] = None, body_name: Optional[str] = None) -> dict:
        f = self.generate_fusion(head_name, body_name)
        return {"fusionName": f.fusion_name, "types": f.types}

    def get_stats(self, head_name: Optional[str] = None, body_name: Optional[str] = None) -> dict:
        f = self.generate_fusion(head_name, body_name)
        return {"fusionName": f.fusion_name, "stats": f.stats.model_dump()}

    def get_pokedex(self, head_name: Optional[str] = None, body_name: Optional[str] = None) -> dict:
        f = self.generate_fusion(head_name, body_name)
        return {
            "fusionName": f.fusion_name,
            "pokedexEntry": f.pokedex_entry,
            "pokedexAuthor": f.pokedex_author,
            "category": f.category,
            "height": f.height,
            "weight": f.weight,
        }
