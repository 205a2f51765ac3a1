"""
Field registry: which spreadsheet range holds which character field.

The layout is static data (field_layout.toml, or FIELD_LAYOUT_PATH), loaded
once at startup into an immutable FieldRegistry and injected into the
decoder/encoder/service. Batch-read results are only ever addressed through
FieldId via FieldRegistry.bind(), never by raw list offset.
"""
from __future__ import annotations

import tomllib
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Sequence

from app.core.errors import LayoutError, MissingMandatoryBlock, UnknownField
from app.core.sheets import CellBlock


class FieldId(str, Enum):
    CHARACTER_NAME = "character_name"
    PLAYER_NAME = "player_name"
    VERSION_SHEET = "version_sheet"
    ARCHETYPE = "archetype"
    GENERATION = "generation"
    CLAN = "clan"
    BLOOD_PER_TURN = "blood_per_turn"
    BLOOD_POOL = "blood_pool"

    ATTRIBUTE_PHYSICAL_VALUE = "attribute_physical_value"
    ATTRIBUTE_SOCIAL_VALUE = "attribute_social_value"
    ATTRIBUTE_MENTAL_VALUE = "attribute_mental_value"
    ATTRIBUTE_PHYSICAL_FOCI = "attribute_physical_foci"
    ATTRIBUTE_SOCIAL_FOCI = "attribute_social_foci"
    ATTRIBUTE_MENTAL_FOCI = "attribute_mental_foci"

    SKILL_ACADEMICS = "skill_academics"
    SKILL_ACADEMICS_SPECIALIZATION = "skill_academics_specialization"
    SKILL_SUBTERFUGE = "skill_subterfuge"
    SKILL_DODGE = "skill_dodge"
    SKILL_COMPUTER = "skill_computer"
    SKILL_INTIMIDATION = "skill_intimidation"
    SKILL_EMPATHY = "skill_empathy"
    SKILL_DRIVE = "skill_drive"
    SKILL_LEADERSHIP = "skill_leadership"
    SKILL_BRAWL = "skill_brawl"
    SKILL_CRAFT_A = "skill_craft_a"
    SKILL_CRAFT_A_SPECIALIZATION = "skill_craft_a_specialization"
    SKILL_CRAFT_B = "skill_craft_b"
    SKILL_CRAFT_B_SPECIALIZATION = "skill_craft_b_specialization"
    SKILL_STEALTH = "skill_stealth"
    SKILL_LINGUISTICS = "skill_linguistics"
    SKILL_LINGUISTICS_SPECIALIZATION = "skill_linguistics_specialization"
    SKILL_AWARENESS = "skill_awareness"
    SKILL_MEDICINE = "skill_medicine"
    SKILL_INVESTIGATION = "skill_investigation"
    SKILL_MELEE = "skill_melee"
    SKILL_SCIENCE_A = "skill_science_a"
    SKILL_SCIENCE_A_SPECIALIZATION = "skill_science_a_specialization"
    SKILL_SCIENCE_B = "skill_science_b"
    SKILL_SCIENCE_B_SPECIALIZATION = "skill_science_b_specialization"
    SKILL_OCCULT = "skill_occult"
    SKILL_FIREARMS = "skill_firearms"
    SKILL_SECURITY = "skill_security"
    SKILL_ATHLETICS = "skill_athletics"
    SKILL_STREETWISE = "skill_streetwise"
    SKILL_ANIMAL_KEN = "skill_animal_ken"
    SKILL_SURVIVAL = "skill_survival"
    SKILL_PERFORMANCE_A = "skill_performance_a"
    SKILL_PERFORMANCE_A_SPECIALIZATION = "skill_performance_a_specialization"
    SKILL_PERFORMANCE_B = "skill_performance_b"
    SKILL_PERFORMANCE_B_SPECIALIZATION = "skill_performance_b_specialization"
    SKILL_LORE = "skill_lore"
    SKILL_LORE_SPECIALIZATION = "skill_lore_specialization"

    IN_CLAN_DISCIPLINES = "in_clan_disciplines"
    OUT_OF_CLAN_DISCIPLINES = "out_of_clan_disciplines"
    TECHNIQUES = "techniques"
    IN_CLAN_ELDER_POWERS = "in_clan_elder_powers"
    OUT_OF_CLAN_ELDER_POWERS = "out_of_clan_elder_powers"

    MORALITY_NAME = "morality_name"
    MORALITY_VALUE = "morality_value"
    FACTION_NAME = "faction_name"
    MERITS_FLAWS = "merits_flaws"
    MERITS_FLAWS_NAME = "merits_flaws_name"
    BACKGROUNDS = "backgrounds"

    EXPERIENCE_START_VALUE = "experience_start_value"
    EXPERIENCE_SPENT_TOTAL = "experience_spent_total"
    EXPERIENCE_AVAILABLE = "experience_available"
    EXPERIENCE_RECEIVED_TOTAL = "experience_received_total"

    INITIATIVE = "initiative"
    INITIATIVE_WITH_CELERITY = "initiative_with_celerity"
    HEALTH_HEALTHY = "health_healthy"
    HEALTH_INJURED = "health_injured"
    HEALTH_INCAPACITATED = "health_incapacitated"

    PHYSICAL_DEFENSE_BASE = "physical_defense_base"
    PHYSICAL_DEFENSE_WITH_CELERITY = "physical_defense_with_celerity"
    PHYSICAL_DEFENSE_FRENZY_MODIFIER = "physical_defense_frenzy_modifier"
    PHYSICAL_DEFENSE_GROUND_CLOSER = "physical_defense_ground_closer"
    PHYSICAL_DEFENSE_GROUND_FURTHER = "physical_defense_ground_further"
    PHYSICAL_DEFENSE_SPECIAL = "physical_defense_special"
    SOCIAL_DEFENSE_POOL = "social_defense_pool"
    MENTAL_DEFENSE_POOL = "mental_defense_pool"
    OFFENSE_POOLS = "offense_pools"

    RITUALS = "rituals"
    ITEMS = "items"


@dataclass(frozen=True)
class FieldDescriptor:
    id: FieldId
    slot: int
    range: str
    fixed_row_count: Optional[int] = None
    write_only: bool = False


class FieldRegistry:
    """Immutable, thread-safe view over the configured field layout."""

    def __init__(self, descriptors: Sequence[FieldDescriptor]) -> None:
        by_id: Dict[FieldId, FieldDescriptor] = {}
        slots: Dict[int, FieldId] = {}
        for d in descriptors:
            if d.id in by_id:
                raise LayoutError(f"duplicate field in layout: {d.id.value}", {"field": d.id.value})
            if d.slot in slots:
                raise LayoutError(
                    f"slot {d.slot} used by both {slots[d.slot].value} and {d.id.value}",
                    {"slot": d.slot},
                )
            by_id[d.id] = d
            slots[d.slot] = d.id

        self._by_id: Mapping[FieldId, FieldDescriptor] = MappingProxyType(by_id)
        self._ordered = tuple(sorted(by_id.values(), key=lambda d: d.slot))
        self._readable = tuple(d for d in self._ordered if not d.write_only)

    def __len__(self) -> int:
        return len(self._ordered)

    def lookup(self, field_id: FieldId) -> FieldDescriptor:
        try:
            return self._by_id[field_id]
        except KeyError:
            raise UnknownField(field_id) from None

    def sorted_by_slot(self) -> List[FieldDescriptor]:
        """Readable fields in batch-fetch order."""
        return list(self._readable)

    def ordered(self) -> List[FieldDescriptor]:
        """Every field, write-only included, in slot order."""
        return list(self._ordered)

    def read_ranges(self) -> List[str]:
        return [d.range for d in self._readable]

    def bind(self, blocks: Sequence[Optional[CellBlock]]) -> Dict[FieldId, Optional[CellBlock]]:
        if len(blocks) != len(self._readable):
            raise MissingMandatoryBlock(
                "batch",
                f"expected {len(self._readable)} blocks, got {len(blocks)}",
            )
        return {d.id: block for d, block in zip(self._readable, blocks)}

    def require_complete(self) -> None:
        for field_id in FieldId:
            self.lookup(field_id)


def _descriptor_from_entry(entry: Dict[str, Any]) -> FieldDescriptor:
    raw_id = entry.get("id")
    try:
        field_id = FieldId(raw_id)
    except ValueError:
        raise UnknownField(raw_id) from None

    slot = entry.get("slot")
    rng = entry.get("range")
    if not isinstance(slot, int) or slot < 0:
        raise LayoutError(f"invalid slot for {raw_id}: {slot!r}", {"field": raw_id})
    if not isinstance(rng, str) or not rng.strip():
        raise LayoutError(f"invalid range for {raw_id}: {rng!r}", {"field": raw_id})

    fixed = entry.get("fixed_row_count")
    if fixed is not None and (not isinstance(fixed, int) or fixed < 1):
        raise LayoutError(f"invalid fixed_row_count for {raw_id}: {fixed!r}", {"field": raw_id})

    return FieldDescriptor(
        id=field_id,
        slot=slot,
        range=rng.strip(),
        fixed_row_count=fixed,
        write_only=bool(entry.get("write_only", False)),
    )


def parse_layout(data: Dict[str, Any]) -> FieldRegistry:
    entries = data.get("sheet_field")
    if not isinstance(entries, list) or not entries:
        raise LayoutError("layout has no [[sheet_field]] entries")
    registry = FieldRegistry([_descriptor_from_entry(e) for e in entries])
    registry.require_complete()
    return registry


def load_registry(path: Path) -> FieldRegistry:
    try:
        with open(path, "rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        raise LayoutError(f"cannot read field layout {path}: {e}", {"path": str(path)}) from e
    return parse_layout(data)
