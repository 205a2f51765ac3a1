"""
Character model composer.

decode(registry, blocks): batch-read result (registry slot order) -> Character
encode(registry, payload): CharacterUpdateIn -> ordered list of CellWrite

Both directions address sheet data only through FieldId; the raw position of
a block in the batch is resolved once by FieldRegistry.bind().
"""
from __future__ import annotations

from typing import Callable, Dict, List, Optional, Sequence, Tuple

from app.core.sheets import CellBlock, CellWrite

from . import decoder as dec
from . import encoder as enc
from .layout import FieldId, FieldRegistry
from .schemas import (
    Attribute,
    Attributes,
    BattleBaseInformation,
    BattleDefenseInformation,
    BattleInformation,
    Character,
    CharacterUpdateIn,
    ExperienceInformation,
    HealthTracks,
    Morality,
    PhysicalDefensePool,
    Powers,
    Skill,
    Skills,
)

VALID_EXPERIENCE_LIMIT = 900

# skill -> (value field, specialization field or None)
SKILL_FIELDS: Dict[str, Tuple[FieldId, Optional[FieldId]]] = {
    "academics": (FieldId.SKILL_ACADEMICS, FieldId.SKILL_ACADEMICS_SPECIALIZATION),
    "animal_ken": (FieldId.SKILL_ANIMAL_KEN, None),
    "athletics": (FieldId.SKILL_ATHLETICS, None),
    "awareness": (FieldId.SKILL_AWARENESS, None),
    "brawl": (FieldId.SKILL_BRAWL, None),
    "computer": (FieldId.SKILL_COMPUTER, None),
    "craft_a": (FieldId.SKILL_CRAFT_A, FieldId.SKILL_CRAFT_A_SPECIALIZATION),
    "craft_b": (FieldId.SKILL_CRAFT_B, FieldId.SKILL_CRAFT_B_SPECIALIZATION),
    "dodge": (FieldId.SKILL_DODGE, None),
    "drive": (FieldId.SKILL_DRIVE, None),
    "empathy": (FieldId.SKILL_EMPATHY, None),
    "firearms": (FieldId.SKILL_FIREARMS, None),
    "intimidation": (FieldId.SKILL_INTIMIDATION, None),
    "investigation": (FieldId.SKILL_INVESTIGATION, None),
    "leadership": (FieldId.SKILL_LEADERSHIP, None),
    "linguistics": (FieldId.SKILL_LINGUISTICS, FieldId.SKILL_LINGUISTICS_SPECIALIZATION),
    "lore": (FieldId.SKILL_LORE, FieldId.SKILL_LORE_SPECIALIZATION),
    "medicine": (FieldId.SKILL_MEDICINE, None),
    "melee": (FieldId.SKILL_MELEE, None),
    "occult": (FieldId.SKILL_OCCULT, None),
    "performance_a": (FieldId.SKILL_PERFORMANCE_A, FieldId.SKILL_PERFORMANCE_A_SPECIALIZATION),
    "performance_b": (FieldId.SKILL_PERFORMANCE_B, FieldId.SKILL_PERFORMANCE_B_SPECIALIZATION),
    "security": (FieldId.SKILL_SECURITY, None),
    "science_a": (FieldId.SKILL_SCIENCE_A, FieldId.SKILL_SCIENCE_A_SPECIALIZATION),
    "science_b": (FieldId.SKILL_SCIENCE_B, FieldId.SKILL_SCIENCE_B_SPECIALIZATION),
    "stealth": (FieldId.SKILL_STEALTH, None),
    "streetwise": (FieldId.SKILL_STREETWISE, None),
    "subterfuge": (FieldId.SKILL_SUBTERFUGE, None),
    "survival": (FieldId.SKILL_SURVIVAL, None),
}

ATTRIBUTE_FIELDS: Dict[str, Tuple[FieldId, FieldId]] = {
    "physical": (FieldId.ATTRIBUTE_PHYSICAL_VALUE, FieldId.ATTRIBUTE_PHYSICAL_FOCI),
    "social": (FieldId.ATTRIBUTE_SOCIAL_VALUE, FieldId.ATTRIBUTE_SOCIAL_FOCI),
    "mental": (FieldId.ATTRIBUTE_MENTAL_VALUE, FieldId.ATTRIBUTE_MENTAL_FOCI),
}


class _Reader:
    """Bound batch + registry; each call decodes one field by id."""

    def __init__(self, registry: FieldRegistry, blocks: Sequence[Optional[CellBlock]]) -> None:
        self.registry = registry
        self.bound = registry.bind(blocks)

    def __call__(self, field_id: FieldId, fn: Callable, *args):
        return fn(self.bound.get(field_id), self.registry.lookup(field_id), *args)


# --- decode ---
def decode(registry: FieldRegistry, blocks: Sequence[Optional[CellBlock]]) -> Character:
    r = _Reader(registry, blocks)

    attributes = Attributes(
        **{
            name: Attribute(value=r(value_id, dec.decode_int), foci=r(foci_id, dec.decode_column_list))
            for name, (value_id, foci_id) in ATTRIBUTE_FIELDS.items()
        }
    )

    skills = Skills(
        **{
            name: Skill(
                value=r(value_id, dec.decode_int),
                foci=r(spec_id, dec.decode_specialization) if spec_id is not None else None,
            )
            for name, (value_id, spec_id) in SKILL_FIELDS.items()
        }
    )

    powers = Powers(
        in_clan_disciplines=r(FieldId.IN_CLAN_DISCIPLINES, dec.decode_disciplines),
        out_of_clan_disciplines=r(FieldId.OUT_OF_CLAN_DISCIPLINES, dec.decode_disciplines),
        techniques=r(FieldId.TECHNIQUES, dec.decode_column_list),
        in_clan_elder_powers=r(FieldId.IN_CLAN_ELDER_POWERS, dec.decode_column_list),
        out_of_clan_elder_powers=r(FieldId.OUT_OF_CLAN_ELDER_POWERS, dec.decode_column_list),
    )

    experience = ExperienceInformation(
        start_value=r(FieldId.EXPERIENCE_START_VALUE, dec.decode_int),
        spent_total=r(FieldId.EXPERIENCE_SPENT_TOTAL, dec.decode_int, dec.U16),
        available=r(FieldId.EXPERIENCE_AVAILABLE, dec.decode_int, dec.I16),
        received_total=r(FieldId.EXPERIENCE_RECEIVED_TOTAL, dec.decode_int, dec.U16),
    )

    battle = BattleInformation(
        base=BattleBaseInformation(
            initiative=r(FieldId.INITIATIVE, dec.decode_int),
            initiative_with_celerity=r(FieldId.INITIATIVE_WITH_CELERITY, dec.decode_int),
            health=HealthTracks(
                healthy=r(FieldId.HEALTH_HEALTHY, dec.decode_health_track),
                injured=r(FieldId.HEALTH_INJURED, dec.decode_health_track),
                incapacitated=r(FieldId.HEALTH_INCAPACITATED, dec.decode_health_track),
            ),
        ),
        defense=BattleDefenseInformation(
            physical_defense_pool=PhysicalDefensePool(
                base_value=r(FieldId.PHYSICAL_DEFENSE_BASE, dec.decode_int),
                base_value_with_celerity=r(FieldId.PHYSICAL_DEFENSE_WITH_CELERITY, dec.decode_int),
                frenzy_modifier=r(FieldId.PHYSICAL_DEFENSE_FRENZY_MODIFIER, dec.decode_int, dec.I8),
                on_the_ground_closer_than_three_meters_modifier=r(
                    FieldId.PHYSICAL_DEFENSE_GROUND_CLOSER, dec.decode_int, dec.I8
                ),
                on_the_ground_further_than_three_meters_modifier=r(
                    FieldId.PHYSICAL_DEFENSE_GROUND_FURTHER, dec.decode_int
                ),
                special=r(FieldId.PHYSICAL_DEFENSE_SPECIAL, dec.decode_int, dec.I8),
            ),
            social_defense_pool=r(FieldId.SOCIAL_DEFENSE_POOL, dec.decode_defense_pool),
            mental_defense_pool=r(FieldId.MENTAL_DEFENSE_POOL, dec.decode_defense_pool),
        ),
        offense=r(FieldId.OFFENSE_POOLS, dec.decode_offense_pools),
    )

    return Character(
        character_name=r(FieldId.CHARACTER_NAME, dec.decode_str),
        player_name=r(FieldId.PLAYER_NAME, dec.decode_str),
        version_sheet=r(FieldId.VERSION_SHEET, dec.decode_str),
        valid=experience.spent_total <= VALID_EXPERIENCE_LIMIT,
        archetype=r(FieldId.ARCHETYPE, dec.decode_str),
        generation=r(FieldId.GENERATION, dec.decode_generation),
        clan=r(FieldId.CLAN, dec.decode_str),
        blood_per_turn=r(FieldId.BLOOD_PER_TURN, dec.decode_int),
        blood_pool=r(FieldId.BLOOD_POOL, dec.decode_int),
        attributes=attributes,
        skills=skills,
        powers=powers,
        morality=Morality(
            name=r(FieldId.MORALITY_NAME, dec.decode_str),
            value=r(FieldId.MORALITY_VALUE, dec.decode_int),
        ),
        faction=r(FieldId.FACTION_NAME, dec.decode_str),
        merits=r(FieldId.MERITS_FLAWS, dec.decode_merits),
        flaws=r(FieldId.MERITS_FLAWS, dec.decode_flaws),
        backgrounds=r(FieldId.BACKGROUNDS, dec.decode_backgrounds),
        experience_information=experience,
        battle_information=battle,
        rituals=r(FieldId.RITUALS, dec.decode_rituals),
        items=r(FieldId.ITEMS, dec.decode_items),
    )


# --- encode ---
def _fragments(registry: FieldRegistry, payload: CharacterUpdateIn) -> Dict[FieldId, Optional[CellBlock]]:
    out: Dict[FieldId, Optional[CellBlock]] = {}

    def put(field_id: FieldId, fn: Callable, *args) -> None:
        out[field_id] = fn(*args, registry.lookup(field_id))

    put(FieldId.CHARACTER_NAME, enc.encode_scalar, payload.character_name)
    put(FieldId.PLAYER_NAME, enc.encode_scalar, payload.player_name)
    put(FieldId.ARCHETYPE, enc.encode_scalar, payload.archetype)
    put(FieldId.GENERATION, enc.encode_scalar, payload.generation)
    put(FieldId.CLAN, enc.encode_scalar, payload.clan)
    put(FieldId.FACTION_NAME, enc.encode_scalar, payload.faction)

    if payload.attributes is not None:
        for name, (value_id, foci_id) in ATTRIBUTE_FIELDS.items():
            attribute = getattr(payload.attributes, name)
            if attribute is None:
                continue
            put(value_id, enc.encode_scalar, attribute.value)
            put(foci_id, enc.encode_column_list, attribute.foci)

    if payload.skills is not None:
        for name, (value_id, spec_id) in SKILL_FIELDS.items():
            skill = getattr(payload.skills, name)
            if skill is None:
                continue
            put(value_id, enc.encode_scalar, skill.value)
            # foci on a skill without a specialization cell has nowhere to go
            if spec_id is not None:
                put(spec_id, enc.encode_specialization, skill.foci)

    powers = payload.powers
    if powers is not None:
        put(FieldId.IN_CLAN_DISCIPLINES, enc.encode_disciplines, powers.in_clan_disciplines)
        put(FieldId.OUT_OF_CLAN_DISCIPLINES, enc.encode_disciplines, powers.out_of_clan_disciplines)
        out[FieldId.TECHNIQUES] = enc.encode_column_list(
            powers.techniques, registry.lookup(FieldId.TECHNIQUES), padding=""
        )
        put(FieldId.IN_CLAN_ELDER_POWERS, enc.encode_column_list, powers.in_clan_elder_powers)
        put(FieldId.OUT_OF_CLAN_ELDER_POWERS, enc.encode_column_list, powers.out_of_clan_elder_powers)

    if payload.morality is not None:
        put(FieldId.MORALITY_NAME, enc.encode_scalar, payload.morality.name)
        put(FieldId.MORALITY_VALUE, enc.encode_scalar, payload.morality.value)

    put(FieldId.MERITS_FLAWS_NAME, enc.encode_merits_flaws, payload.merits, payload.flaws)
    put(FieldId.BACKGROUNDS, enc.encode_backgrounds, payload.backgrounds)

    if payload.experience_information is not None:
        put(FieldId.EXPERIENCE_START_VALUE, enc.encode_scalar, payload.experience_information.start_value)

    put(FieldId.RITUALS, enc.encode_rituals, payload.rituals)
    return out


def encode(registry: FieldRegistry, payload: CharacterUpdateIn) -> List[CellWrite]:
    fragments = _fragments(registry, payload)
    writes: List[CellWrite] = []
    for d in registry.ordered():
        block = fragments.get(d.id)
        if block is not None:
            writes.append(CellWrite(range=d.range, values=block))
    return writes
