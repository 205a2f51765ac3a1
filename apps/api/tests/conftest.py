"""
Shared fixtures: the packaged field layout, in-memory Sheets and cache
collaborators, and a realistic filled-in character sheet.
"""
from typing import Dict, List, Optional, Sequence

import pytest

from app.core import settings
from app.core.errors import CacheUnavailable, CharacterNotFound, UpstreamIOFailure
from app.core.sheets import CellBlock, CellWrite
from app.modules.characters.layout import FieldId, load_registry


def row(width: int, cells: Dict[int, str]) -> List[str]:
    out = [""] * width
    for col, value in cells.items():
        out[col] = value
    return out


class FakeSheets:
    """Spreadsheet keyed by A1 range; records every call."""

    def __init__(self, cells: Optional[Dict[str, CellBlock]] = None, documents: Sequence[str] = ("doc-1",)):
        self.cells = dict(cells or {})
        self.documents = set(documents)
        self.reads: List[tuple] = []
        self.writes: List[tuple] = []
        self.fail = False

    def batch_read(self, document_id, ranges):
        if self.fail:
            raise UpstreamIOFailure("sheets batch_read failed", {"document_id": document_id})
        if document_id not in self.documents:
            raise CharacterNotFound(f"spreadsheet not found: {document_id}", {"document_id": document_id})
        self.reads.append((document_id, list(ranges)))
        return [self.cells.get(r) for r in ranges]

    def batch_write(self, document_id, writes: Sequence[CellWrite]) -> int:
        if self.fail:
            raise UpstreamIOFailure("sheets batch_write failed", {"document_id": document_id})
        if document_id not in self.documents:
            raise CharacterNotFound(f"spreadsheet not found: {document_id}", {"document_id": document_id})
        self.writes.append((document_id, list(writes)))
        total = 0
        for w in writes:
            self.cells[w.range] = w.values
            total += sum(len(r) for r in w.values)
        return total


class FakeCache:
    def __init__(self, data: Optional[Dict[str, bytes]] = None):
        self.data = dict(data or {})
        self.ttls: Dict[str, int] = {}
        self.fail = False

    def _check(self):
        if self.fail:
            raise CacheUnavailable("cache down")

    def get(self, key):
        self._check()
        return self.data.get(key)

    def set_with_ttl(self, key, value, ttl_seconds):
        self._check()
        self.data[key] = value
        self.ttls[key] = ttl_seconds

    def delete(self, key):
        self._check()
        self.data.pop(key, None)


@pytest.fixture(scope="session")
def registry():
    return load_registry(settings.get_field_layout_path())


@pytest.fixture
def sheet_fields() -> Dict[FieldId, CellBlock]:
    """A filled-in sheet, by field. Absent fields read back as empty ranges."""
    empty_discipline = row(8, {0: "-", 7: "-"})
    return {
        FieldId.CHARACTER_NAME: [["Viktor Kral"]],
        FieldId.PLAYER_NAME: [["Anna"]],
        FieldId.VERSION_SHEET: [["v3.2"]],
        FieldId.ARCHETYPE: [["Architect"]],
        FieldId.GENERATION: [["9"]],
        FieldId.CLAN: [["Tremere"]],
        FieldId.BLOOD_PER_TURN: [["2"]],
        FieldId.BLOOD_POOL: [["14"]],
        FieldId.ATTRIBUTE_PHYSICAL_VALUE: [["4"]],
        FieldId.ATTRIBUTE_SOCIAL_VALUE: [["3"]],
        FieldId.ATTRIBUTE_MENTAL_VALUE: [["5"]],
        FieldId.ATTRIBUTE_PHYSICAL_FOCI: [["Dexterity"], ["Stamina"], ["-"]],
        FieldId.ATTRIBUTE_SOCIAL_FOCI: [["-"], ["-"], ["-"]],
        FieldId.ATTRIBUTE_MENTAL_FOCI: [["Wits"]],
        FieldId.SKILL_ACADEMICS: [["2"]],
        FieldId.SKILL_ACADEMICS_SPECIALIZATION: [["History, -, Law"]],
        FieldId.SKILL_OCCULT: [["4"]],
        FieldId.SKILL_LORE: [["3"]],
        FieldId.SKILL_LORE_SPECIALIZATION: [["-"]],
        FieldId.SKILL_DODGE: [["-"]],
        FieldId.IN_CLAN_DISCIPLINES: [
            row(8, {0: "Auspex", 7: "3"}),
            row(8, {0: "Thaumaturgy", 7: "4"}),
            empty_discipline,
            empty_discipline,
            empty_discipline,
            empty_discipline,
        ],
        FieldId.OUT_OF_CLAN_DISCIPLINES: [empty_discipline] * 6,
        FieldId.TECHNIQUES: [["Telepathic Directions"]],
        FieldId.IN_CLAN_ELDER_POWERS: [["-"], ["-"]],
        FieldId.MORALITY_NAME: [["Humanity"]],
        FieldId.MORALITY_VALUE: [["6"]],
        FieldId.FACTION_NAME: [["Camarilla"]],
        FieldId.MERITS_FLAWS: [
            row(8, {0: "V Allies: Mortal Police", 7: "2"}),
            row(8, {0: "V Eidetic Memory", 7: "1"}),
            row(8, {0: "N Addiction: Blood", 7: "-2"}),
            row(8, {0: "N Nightmares", 7: "-1"}),
            row(8, {0: "-", 7: "-"}),
        ],
        FieldId.BACKGROUNDS: [
            row(10, {0: "Resources", 7: "3", 9: "Family money"}),
            row(10, {7: "-"}),
        ],
        FieldId.EXPERIENCE_START_VALUE: [["30"]],
        FieldId.EXPERIENCE_SPENT_TOTAL: [["120"]],
        FieldId.EXPERIENCE_AVAILABLE: [["15"]],
        FieldId.EXPERIENCE_RECEIVED_TOTAL: [["135"]],
        FieldId.INITIATIVE: [["6"]],
        FieldId.INITIATIVE_WITH_CELERITY: [["8"]],
        FieldId.HEALTH_HEALTHY: [row(8, {0: "x", 1: "x", 5: "3", 7: "5"})],
        FieldId.HEALTH_INJURED: [row(8, {5: "3", 7: "3"})],
        FieldId.HEALTH_INCAPACITATED: [row(8, {0: "x", 1: "x", 2: "x", 3: "x", 4: "x", 5: "3", 7: "3"})],
        FieldId.PHYSICAL_DEFENSE_BASE: [["7"]],
        FieldId.PHYSICAL_DEFENSE_WITH_CELERITY: [["9"]],
        FieldId.PHYSICAL_DEFENSE_FRENZY_MODIFIER: [["-2"]],
        FieldId.PHYSICAL_DEFENSE_GROUND_CLOSER: [["-1"]],
        FieldId.PHYSICAL_DEFENSE_GROUND_FURTHER: [["3"]],
        FieldId.PHYSICAL_DEFENSE_SPECIAL: [["0"]],
        FieldId.SOCIAL_DEFENSE_POOL: [["5", "Pool", "1", "2", "3", "4", "5", "6", "7"]],
        FieldId.MENTAL_DEFENSE_POOL: [["6", "Pool", "2", "2", "2", "2", "2", "2", "2"]],
        FieldId.OFFENSE_POOLS: [
            row(27, {0: "Melee", 7: "3", 10: "Physical", 14: "4", 17: "Potence", 21: "2", 24: "9", 26: "Sword"}),
            row(27, {0: "-", 10: "-"}),
        ],
        FieldId.RITUALS: [
            row(10, {0: "T2Blood Rage", 7: "2", 9: "Burns vitae"}),
            row(10, {0: "X3Unknown Rite", 7: "3"}),
            row(10, {0: "-", 7: "0"}),
        ],
        FieldId.ITEMS: [
            row(26, {0: "Sword", 5: "Sharp", 9: "+1 damage"}),
            row(26, {}),
        ],
    }


@pytest.fixture
def make_batch(registry):
    """Field map -> batch-read result in registry slot order."""

    def _make(fields: Dict[FieldId, CellBlock]) -> List[Optional[CellBlock]]:
        return [fields.get(d.id) for d in registry.sorted_by_slot()]

    return _make


@pytest.fixture
def fake_sheets(registry, sheet_fields):
    cells = {registry.lookup(field_id).range: block for field_id, block in sheet_fields.items()}
    return FakeSheets(cells)


@pytest.fixture
def fake_cache():
    return FakeCache({"identity:api-key-1": b"doc-1"})
