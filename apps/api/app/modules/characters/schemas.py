from __future__ import annotations

from typing import Dict, List, Optional, Union
from pydantic import BaseModel, Field

# generation: number for ordinary vampires, free text for timeless beings
Generation = Union[int, str]


# --- read model ---
class Attribute(BaseModel):
    value: int = Field(0, ge=0, le=255)
    foci: List[str] = Field(default_factory=list)


class Attributes(BaseModel):
    physical: Attribute
    social: Attribute
    mental: Attribute


class Skill(BaseModel):
    value: int = Field(0, ge=0, le=255)
    foci: Optional[List[str]] = None


class Skills(BaseModel):
    academics: Skill
    animal_ken: Skill
    athletics: Skill
    awareness: Skill
    brawl: Skill
    computer: Skill
    craft_a: Skill
    craft_b: Skill
    dodge: Skill
    drive: Skill
    empathy: Skill
    firearms: Skill
    intimidation: Skill
    investigation: Skill
    leadership: Skill
    linguistics: Skill
    lore: Skill
    medicine: Skill
    melee: Skill
    occult: Skill
    performance_a: Skill
    performance_b: Skill
    security: Skill
    science_a: Skill
    science_b: Skill
    stealth: Skill
    streetwise: Skill
    subterfuge: Skill
    survival: Skill


class Discipline(BaseModel):
    name: str
    value: int = 0


class Powers(BaseModel):
    in_clan_disciplines: List[Discipline] = Field(default_factory=list)
    out_of_clan_disciplines: List[Discipline] = Field(default_factory=list)
    techniques: List[str] = Field(default_factory=list)
    in_clan_elder_powers: List[str] = Field(default_factory=list)
    out_of_clan_elder_powers: List[str] = Field(default_factory=list)


class Morality(BaseModel):
    name: str = ""
    value: int = 0


class Merit(BaseModel):
    name: str
    value: int = 0
    merit_type: str = "General"


class Flaw(BaseModel):
    name: str
    value: int = 0
    flaw_type: str = "General"


class Background(BaseModel):
    name: str
    value: int = 0
    description: str = ""


class ExperienceInformation(BaseModel):
    start_value: int = 0
    spent_total: int = 0
    available: int = 0
    received_total: int = 0


class HealthTrack(BaseModel):
    base_value: int = 0
    with_boni: int = 0
    remaining: int = 0


class HealthTracks(BaseModel):
    healthy: HealthTrack
    injured: HealthTrack
    incapacitated: HealthTrack


class BattleBaseInformation(BaseModel):
    initiative: int = 0
    initiative_with_celerity: int = 0
    health: HealthTracks


class PhysicalDefensePool(BaseModel):
    base_value: int = 0
    base_value_with_celerity: int = 0
    frenzy_modifier: int = 0
    on_the_ground_closer_than_three_meters_modifier: int = 0
    on_the_ground_further_than_three_meters_modifier: int = 0
    special: int = 0


class BattleDefenseInformation(BaseModel):
    physical_defense_pool: PhysicalDefensePool
    social_defense_pool: Dict[int, int] = Field(default_factory=dict)
    mental_defense_pool: Dict[int, int] = Field(default_factory=dict)


class NameValue(BaseModel):
    name: str
    value: int = 0


class OffensePool(BaseModel):
    skill: NameValue
    attribute: NameValue
    wildcard: NameValue
    pool: int = 0
    description: str = ""


class BattleInformation(BaseModel):
    base: BattleBaseInformation
    defense: BattleDefenseInformation
    offense: List[OffensePool] = Field(default_factory=list)


class Ritual(BaseModel):
    name: str
    level: int = 0
    description: str = ""
    ritual_type: str = "Unbekannt"


class Item(BaseModel):
    name: str
    trait_1: str = ""
    trait_1_description: str = ""
    trait_2: str = ""
    trait_2_description: str = ""
    additional_trait: str = ""
    additional_trait_description: str = ""


class Character(BaseModel):
    character_name: str
    player_name: str
    version_sheet: str
    valid: bool
    archetype: str
    generation: Generation
    clan: str
    blood_per_turn: int
    blood_pool: int
    attributes: Attributes
    skills: Skills
    powers: Powers
    morality: Morality
    faction: str
    merits: List[Merit] = Field(default_factory=list)
    flaws: List[Flaw] = Field(default_factory=list)
    backgrounds: List[Background] = Field(default_factory=list)
    experience_information: ExperienceInformation
    battle_information: BattleInformation
    rituals: List[Ritual] = Field(default_factory=list)
    items: List[Item] = Field(default_factory=list)


# --- update payload: every field optional, None = leave the sheet untouched ---
class AttributeUpdateIn(BaseModel):
    value: Optional[int] = Field(None, ge=0, le=255)
    foci: Optional[List[str]] = None


class AttributesUpdateIn(BaseModel):
    physical: Optional[AttributeUpdateIn] = None
    social: Optional[AttributeUpdateIn] = None
    mental: Optional[AttributeUpdateIn] = None


class SkillUpdateIn(BaseModel):
    value: Optional[int] = Field(None, ge=0, le=255)
    foci: Optional[List[str]] = None


class SkillsUpdateIn(BaseModel):
    academics: Optional[SkillUpdateIn] = None
    animal_ken: Optional[SkillUpdateIn] = None
    athletics: Optional[SkillUpdateIn] = None
    awareness: Optional[SkillUpdateIn] = None
    brawl: Optional[SkillUpdateIn] = None
    computer: Optional[SkillUpdateIn] = None
    craft_a: Optional[SkillUpdateIn] = None
    craft_b: Optional[SkillUpdateIn] = None
    dodge: Optional[SkillUpdateIn] = None
    drive: Optional[SkillUpdateIn] = None
    empathy: Optional[SkillUpdateIn] = None
    firearms: Optional[SkillUpdateIn] = None
    intimidation: Optional[SkillUpdateIn] = None
    investigation: Optional[SkillUpdateIn] = None
    leadership: Optional[SkillUpdateIn] = None
    linguistics: Optional[SkillUpdateIn] = None
    lore: Optional[SkillUpdateIn] = None
    medicine: Optional[SkillUpdateIn] = None
    melee: Optional[SkillUpdateIn] = None
    occult: Optional[SkillUpdateIn] = None
    performance_a: Optional[SkillUpdateIn] = None
    performance_b: Optional[SkillUpdateIn] = None
    security: Optional[SkillUpdateIn] = None
    science_a: Optional[SkillUpdateIn] = None
    science_b: Optional[SkillUpdateIn] = None
    stealth: Optional[SkillUpdateIn] = None
    streetwise: Optional[SkillUpdateIn] = None
    subterfuge: Optional[SkillUpdateIn] = None
    survival: Optional[SkillUpdateIn] = None


class DisciplineIn(BaseModel):
    name: str = Field(min_length=1)
    value: int = Field(0, ge=0, le=255)


class PowersUpdateIn(BaseModel):
    in_clan_disciplines: Optional[List[DisciplineIn]] = None
    out_of_clan_disciplines: Optional[List[DisciplineIn]] = None
    techniques: Optional[List[str]] = None
    in_clan_elder_powers: Optional[List[str]] = None
    out_of_clan_elder_powers: Optional[List[str]] = None


class MoralityUpdateIn(BaseModel):
    name: Optional[str] = None
    value: Optional[int] = Field(None, ge=0, le=255)


class MeritIn(BaseModel):
    """Only the name column is writable; merit values stay as the sheet computes them."""

    name: str = Field(min_length=1)
    merit_type: str = "General"


class FlawIn(BaseModel):
    name: str = Field(min_length=1)
    flaw_type: str = "General"


class BackgroundIn(BaseModel):
    name: str = Field(min_length=1)
    value: int = Field(0, ge=0, le=255)
    description: Optional[str] = None


class ExperienceUpdateIn(BaseModel):
    start_value: int = Field(ge=0, le=255)


class RitualIn(BaseModel):
    name: str = Field(min_length=1)
    level: int = Field(ge=1, le=9)
    ritual_type: str = "Unbekannt"


class CharacterUpdateIn(BaseModel):
    character_name: Optional[str] = None
    player_name: Optional[str] = None
    archetype: Optional[str] = None
    generation: Optional[Generation] = None
    clan: Optional[str] = None
    attributes: Optional[AttributesUpdateIn] = None
    skills: Optional[SkillsUpdateIn] = None
    powers: Optional[PowersUpdateIn] = None
    morality: Optional[MoralityUpdateIn] = None
    faction: Optional[str] = None
    merits: Optional[List[MeritIn]] = None
    flaws: Optional[List[FlawIn]] = None
    backgrounds: Optional[List[BackgroundIn]] = None
    experience_information: Optional[ExperienceUpdateIn] = None
    rituals: Optional[List[RitualIn]] = None


class CharacterUpdateOut(BaseModel):
    updated_cells: int
