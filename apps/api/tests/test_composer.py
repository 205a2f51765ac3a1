"""
End-to-end transcoding: full batch -> Character, UpdatePayload -> CellWrites.
"""
import pytest

from app.core.errors import FieldCapacityExceeded, MissingMandatoryBlock
from app.modules.characters import composer
from app.modules.characters.layout import FieldId
from app.modules.characters.schemas import CharacterUpdateIn, Skills


class TestDecode:
    def test_full_sheet(self, registry, sheet_fields, make_batch):
        c = composer.decode(registry, make_batch(sheet_fields))

        assert c.character_name == "Viktor Kral"
        assert c.player_name == "Anna"
        assert c.version_sheet == "v3.2"
        assert c.generation == 9
        assert c.clan == "Tremere"
        assert (c.blood_per_turn, c.blood_pool) == (2, 14)
        assert c.valid is True

        assert c.attributes.physical.value == 4
        assert c.attributes.physical.foci == ["Dexterity", "Stamina"]
        assert c.attributes.social.foci == []
        assert c.attributes.mental.foci == ["Wits"]

        assert c.skills.academics.value == 2
        assert c.skills.academics.foci == ["History", "Law"]
        assert c.skills.lore.foci == []
        assert c.skills.occult.foci is None
        assert c.skills.dodge.value == 0
        assert c.skills.survival.value == 0

        assert [(d.name, d.value) for d in c.powers.in_clan_disciplines] == [("Auspex", 3), ("Thaumaturgy", 4)]
        assert c.powers.out_of_clan_disciplines == []
        assert c.powers.techniques == ["Telepathic Directions"]
        assert c.powers.in_clan_elder_powers == []
        assert c.powers.out_of_clan_elder_powers == []

        assert (c.morality.name, c.morality.value) == ("Humanity", 6)
        assert c.faction == "Camarilla"
        assert [m.name for m in c.merits] == ["Mortal Police", "Eidetic Memory"]
        assert [f.flaw_type for f in c.flaws] == ["Addiction", "General"]
        assert [b.name for b in c.backgrounds] == ["Resources"]

        xp = c.experience_information
        assert (xp.start_value, xp.spent_total, xp.available, xp.received_total) == (30, 120, 15, 135)

        base = c.battle_information.base
        assert (base.initiative, base.initiative_with_celerity) == (6, 8)
        assert base.health.healthy.remaining == 3
        assert base.health.injured.remaining == 3
        assert base.health.incapacitated.remaining == 0

        defense = c.battle_information.defense
        assert defense.physical_defense_pool.frenzy_modifier == -2
        assert defense.physical_defense_pool.on_the_ground_closer_than_three_meters_modifier == -1
        assert defense.physical_defense_pool.special == 0
        assert defense.social_defense_pool[0] == 5
        assert defense.mental_defense_pool[7] == 2

        assert len(c.battle_information.offense) == 1
        assert [(r.name, r.ritual_type) for r in c.rituals] == [
            ("Blood Rage", "Thaumaturgy"),
            ("Unknown Rite", "Unbekannt"),
        ]
        assert [i.name for i in c.items] == ["Sword"]

    def test_every_skill_is_mapped(self):
        assert set(composer.SKILL_FIELDS) == set(Skills.model_fields)

    @pytest.mark.parametrize("spent,valid", [("900", True), ("901", False), ("0", True)])
    def test_valid_flag(self, registry, sheet_fields, make_batch, spent, valid):
        sheet_fields[FieldId.EXPERIENCE_SPENT_TOTAL] = [[spent]]
        assert composer.decode(registry, make_batch(sheet_fields)).valid is valid

    def test_timeless_generation(self, registry, sheet_fields, make_batch):
        sheet_fields[FieldId.GENERATION] = [["Antediluvian"]]
        assert composer.decode(registry, make_batch(sheet_fields)).generation == "Antediluvian"

    def test_missing_optional_blocks_are_empty(self, registry, sheet_fields, make_batch):
        for field_id in (FieldId.RITUALS, FieldId.ITEMS, FieldId.MERITS_FLAWS, FieldId.OFFENSE_POOLS):
            del sheet_fields[field_id]
        c = composer.decode(registry, make_batch(sheet_fields))
        assert c.rituals == []
        assert c.items == []
        assert c.merits == [] and c.flaws == []
        assert c.battle_information.offense == []

    def test_missing_mandatory_block(self, registry, sheet_fields, make_batch):
        del sheet_fields[FieldId.HEALTH_INJURED]
        with pytest.raises(MissingMandatoryBlock):
            composer.decode(registry, make_batch(sheet_fields))

    def test_decode_is_deterministic(self, registry, sheet_fields, make_batch):
        batch = make_batch(sheet_fields)
        assert composer.decode(registry, batch) == composer.decode(registry, batch)


class TestEncode:
    def test_empty_update(self, registry):
        assert composer.encode(registry, CharacterUpdateIn()) == []

    def test_faction_only(self, registry):
        writes = composer.encode(registry, CharacterUpdateIn(faction="Anarchs"))
        assert len(writes) == 1
        assert writes[0].range == "E42"
        assert writes[0].values == [["Anarchs"]]

    def test_nested_partial_update(self, registry):
        payload = CharacterUpdateIn.model_validate(
            {
                "attributes": {"social": {"value": 0}},
                "skills": {"lore": {"foci": ["Kindred"]}, "brawl": {"value": 2, "foci": ["ignored"]}},
                "experience_information": {"start_value": 30},
            }
        )
        writes = {w.range: w.values for w in composer.encode(registry, payload)}
        assert writes == {
            registry.lookup(FieldId.ATTRIBUTE_SOCIAL_VALUE).range: [["-"]],
            registry.lookup(FieldId.SKILL_LORE_SPECIALIZATION).range: [["Kindred"]],
            registry.lookup(FieldId.SKILL_BRAWL).range: [["2"]],
            registry.lookup(FieldId.EXPERIENCE_START_VALUE).range: [["30"]],
        }

    def test_merits_go_to_name_column(self, registry):
        writes = composer.encode(registry, CharacterUpdateIn.model_validate({"merits": [], "flaws": [{"name": "Nightmares"}]}))
        assert [w.range for w in writes] == [registry.lookup(FieldId.MERITS_FLAWS_NAME).range]
        assert writes[0].values[0] == ["N Nightmares"]

    def test_writes_follow_slot_order(self, registry):
        payload = CharacterUpdateIn(faction="Anarchs", character_name="Viktor", clan="Tremere")
        ranges = [w.range for w in composer.encode(registry, payload)]
        slots = {d.range: d.slot for d in registry.ordered()}
        assert ranges == sorted(ranges, key=slots.__getitem__)

    def test_techniques_use_blank_padding(self, registry):
        payload = CharacterUpdateIn.model_validate({"powers": {"techniques": []}})
        writes = composer.encode(registry, payload)
        assert len(writes) == 1
        assert writes[0].values == [[""]] * 9

    def test_over_capacity(self, registry):
        payload = CharacterUpdateIn.model_validate({"rituals": [{"name": f"R{i}", "level": 1} for i in range(16)]})
        with pytest.raises(FieldCapacityExceeded):
            composer.encode(registry, payload)

    def test_encode_is_idempotent(self, registry):
        payload = CharacterUpdateIn.model_validate(
            {
                "generation": 9,
                "powers": {"in_clan_disciplines": [{"name": "Auspex", "value": 3}]},
                "backgrounds": [{"name": "Herd", "value": 2}],
                "merits": [{"name": "Lucky"}],
                "flaws": [],
            }
        )
        assert composer.encode(registry, payload) == composer.encode(registry, payload)
