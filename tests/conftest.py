from __future__ import annotations

import random

import pytest

from pokefusion.engine import FusionEngine
from pokefusion.entries import CustomEntryStore
from pokefusion.models import CreatureRecord
from pokefusion.names import NameSplitTable
from pokefusion.roster import RosterStore


def make_record(
    creature_id: int,
    name: str,
    types=("Normal",),
    *,
    hp: int = 50,
    attack: int = 50,
    defense: int = 50,
    special_attack: int = 50,
    special_defense: int = 50,
    speed: int = 50,
    entry: str = "",
    category: str = "Test Pokémon",
    height: str = "100 cm",
    weight: str = "10 kg",
) -> CreatureRecord:
    return CreatureRecord(
        id=creature_id,
        full_name=name,
        types=tuple(types),
        hp=hp,
        attack=attack,
        defense=defense,
        special_attack=special_attack,
        special_defense=special_defense,
        speed=speed,
        pokedex_entry=entry,
        category=category,
        height=height,
        weight=weight,
    )


@pytest.fixture
def bulbasaur() -> CreatureRecord:
    return make_record(
        1, "Bulbasaur", ("Grass", "Poison"),
        hp=45, attack=49, defense=49, special_attack=65, special_defense=65, speed=45,
        entry="A strange seed was planted on its back at birth. The plant sprouts and grows with this Bulbasaur.",
        category="Seed Pokémon", height="70 cm", weight="6.9 kg",
    )


@pytest.fixture
def charmander() -> CreatureRecord:
    return make_record(
        4, "Charmander", ("Fire",),
        hp=39, attack=52, defense=43, special_attack=60, special_defense=50, speed=65,
        entry="Obviously prefers hot places. When it rains, steam is said to spout from the tip of its tail.",
        category="Lizard Pokémon", height="60 cm", weight="8.5 kg",
    )


@pytest.fixture
def pidgey() -> CreatureRecord:
    return make_record(16, "Pidgey", ("Normal", "Flying"), category="Tiny Bird Pokémon",
                       height="30 cm", weight="1.8 kg")


@pytest.fixture
def lapras() -> CreatureRecord:
    return make_record(131, "Lapras", ("Water", "Ice"), category="Transport Pokémon",
                       height="250 cm", weight="220 kg")


@pytest.fixture
def mew() -> CreatureRecord:
    return make_record(151, "Mew", ("Psychic",), category="New Species Pokémon")


@pytest.fixture
def roster(bulbasaur, charmander, pidgey, lapras, mew) -> RosterStore:
    return RosterStore([bulbasaur, charmander, pidgey, lapras, mew])


@pytest.fixture
def splits(roster) -> NameSplitTable:
    return NameSplitTable(
        {1: ("Bulba", "saur"), 4: ("Char", "mander"), 16: ("Pid", "dgey"), 131: ("Lap", "pras")},
        roster=roster,
    )


@pytest.fixture
def engine(roster, splits) -> FusionEngine:
    return FusionEngine(roster, splits, CustomEntryStore.empty(), rng=random.Random(7))


class ExplodingEntries(CustomEntryStore):
    """Entry store whose lookups always fail."""

    def entry_for(self, head_id, body_id, rng=None):
        raise RuntimeError("entry index corrupted")
