"""
시너지 카탈로그 로드/검증 테스트
"""
import json

import pytest

from exceptions import CatalogLoadError, DuplicateSynergyError, SynergyNotFoundError
from service.synergy.catalog import DEFAULT_DATA_DIR, SynergyCatalog, parse_effect, parse_requirement
from service.synergy.types import (
    ChainEnable,
    EffectBoost,
    GenreRequirement,
    LineupSizeRequirement,
    Rarity,
    RequirementOperator,
    ThresholdRequirement,
    UnknownCondition,
    UnknownRequirement,
)


def _synergy(synergy_id: str, **overrides) -> dict:
    data = {
        "id": synergy_id,
        "name": synergy_id.title(),
        "rarity": "common",
        "requirements": [],
        "effects": [{"type": "bonus_reputation", "value": 1}],
    }
    data.update(overrides)
    return data


class TestShippedCatalog:
    """배포용 data/*.json"""

    def test_loads_from_default_directory(self):
        catalog = SynergyCatalog.from_directory(DEFAULT_DATA_DIR)
        assert "punk_in_basement" in catalog
        assert "perfect_storm" in catalog
        assert catalog.get("underground_legend").is_achievement_gated

    def test_dangling_edges_dropped(self, caplog):
        catalog = SynergyCatalog.from_directory(DEFAULT_DATA_DIR)
        targets = {edge.target_id for edge in catalog.edges}
        assert "crowd_singalong" not in targets
        assert "Dangling chain edge" in caplog.text

    def test_conflicts_reference_known_synergies_only(self):
        catalog = SynergyCatalog.from_directory(DEFAULT_DATA_DIR)
        for record in catalog.conflicts.values():
            assert all(other in catalog for other in record.conflicts_with)
        assert "band_drama" not in catalog.conflicts

    def test_every_enhancement_targets_known_synergy(self):
        catalog = SynergyCatalog.from_directory(DEFAULT_DATA_DIR)
        for synergy in catalog:
            for enhancement in catalog.enhancements_for(synergy.id):
                assert enhancement.synergy_id == synergy.id
                if isinstance(enhancement.kind, ChainEnable):
                    assert enhancement.kind.target_id in catalog


class TestParsing:
    def test_requirement_aliases(self):
        assert isinstance(parse_requirement({"type": "band_genre", "value": "PUNK"}), GenreRequirement)
        bill = parse_requirement({"type": "bill_size", "value": 3, "operator": "greater_than"})
        assert isinstance(bill, LineupSizeRequirement)
        assert bill.operator == RequirementOperator.GREATER_THAN

    def test_threshold_requirement_keeps_metric(self):
        requirement = parse_requirement({"type": "energy", "value": 80, "operator": "greater_than"})
        assert isinstance(requirement, ThresholdRequirement)
        assert requirement.metric == "energy"
        assert requirement.kind == "energy"

    def test_unknown_requirement_kind(self):
        requirement = parse_requirement({"type": "moon_phase", "value": "full"})
        assert isinstance(requirement, UnknownRequirement)
        assert requirement.kind == "moon_phase"

    def test_unknown_operator_becomes_unknown_requirement(self):
        requirement = parse_requirement({"type": "bill_size", "value": 3, "operator": "between"})
        assert isinstance(requirement, UnknownRequirement)

    def test_effect_aliases_normalized(self):
        assert parse_effect({"type": "money", "value": 1.2}).kind == "multiply_revenue"
        assert parse_effect({"type": "stress_reduction", "value": 5}).kind == "reduce_stress"
        assert parse_effect({"type": "transform_card", "value": "legend"}).kind == "transform_entity"

    def test_effect_kind_is_plain_str(self):
        kind = parse_effect({"type": "multiply_attendance", "value": 1.5}).kind
        assert type(kind) is str

    def test_percentage_flag_camel_case(self):
        effect = parse_effect({"type": "reputation", "value": 5, "isPercentage": True})
        assert effect.is_percentage

    def test_side_channel_effect_requires_string(self):
        with pytest.raises(CatalogLoadError):
            parse_effect({"type": "spawn_event", "value": 3})

    def test_numeric_effect_requires_number(self):
        with pytest.raises(CatalogLoadError):
            parse_effect({"type": "bonus_reputation", "value": "lots"})


class TestValidation:
    def test_duplicate_ids_rejected(self):
        with pytest.raises(DuplicateSynergyError) as exc_info:
            SynergyCatalog.from_dict({"synergies": [_synergy("a"), _synergy("a")]})
        assert exc_info.value.synergy_id == "a"

    def test_duplicate_across_achievement_synergies(self):
        data = {
            "synergies": [_synergy("a")],
            "achievement_synergies": [_synergy("a", required_achievement="x")],
        }
        with pytest.raises(DuplicateSynergyError):
            SynergyCatalog.from_dict(data)

    def test_missing_name_is_fatal(self):
        broken = _synergy("a")
        del broken["name"]
        with pytest.raises(CatalogLoadError):
            SynergyCatalog.from_dict({"synergies": [broken]})

    def test_unknown_rarity_is_fatal(self):
        with pytest.raises(CatalogLoadError):
            SynergyCatalog.from_dict({"synergies": [_synergy("a", rarity="mythic")]})

    def test_gated_synergy_needs_achievement(self):
        with pytest.raises(CatalogLoadError):
            SynergyCatalog.from_dict({"achievement_synergies": [_synergy("a")]})

    def test_missing_directory_is_fatal(self, tmp_path):
        with pytest.raises(CatalogLoadError):
            SynergyCatalog.from_directory(str(tmp_path))

    def test_invalid_json_is_fatal(self, tmp_path):
        (tmp_path / "synergies.json").write_text("{not json", encoding="utf-8")
        with pytest.raises(CatalogLoadError):
            SynergyCatalog.from_directory(str(tmp_path))

    def test_optional_files_may_be_missing(self, tmp_path):
        (tmp_path / "synergies.json").write_text(
            json.dumps({"synergies": [_synergy("a")]}), encoding="utf-8"
        )
        catalog = SynergyCatalog.from_directory(str(tmp_path))
        assert len(catalog) == 1
        assert catalog.edges == ()

    def test_malformed_required_level_is_fatal(self):
        """숫자가 아닌 강화 레벨은 ValueError 가 아닌 CatalogLoadError"""
        with pytest.raises(CatalogLoadError) as exc_info:
            SynergyCatalog.from_dict(
                {"synergies": [_synergy("a")]},
                enhancements={"enhancements": [
                    {
                        "id": "a_1", "synergy_id": "a", "required_level": "three",
                        "type": "effect_boost",
                        "enhancement": {"effect": "attendance", "multiplier": 1.5},
                    },
                ]},
            )
        assert exc_info.value.source == "enhancement:a_1"

    def test_malformed_boost_multiplier_is_fatal(self):
        with pytest.raises(CatalogLoadError):
            SynergyCatalog.from_dict(
                {"synergies": [_synergy("a")]},
                enhancements={"enhancements": [
                    {
                        "id": "a_1", "synergy_id": "a", "required_level": 1,
                        "type": "effect_boost",
                        "enhancement": {"effect": "attendance", "multiplier": [1.5]},
                    },
                ]},
            )

    def test_malformed_edge_bonus_is_fatal(self):
        with pytest.raises(CatalogLoadError) as exc_info:
            SynergyCatalog.from_dict(
                {"synergies": [_synergy("a"), _synergy("b")]},
                chains={"edges": [{"from": "a", "to": "b", "multiplier_bonus": "lots"}]},
            )
        assert exc_info.value.source == "chain_edge:a"

    def test_unknown_enhancement_type_skipped(self):
        catalog = SynergyCatalog.from_dict(
            {"synergies": [_synergy("a")]},
            enhancements={"enhancements": [
                {"id": "a_1", "synergy_id": "a", "required_level": 1, "type": "teleport", "enhancement": {}},
            ]},
        )
        assert catalog.enhancements_for("a") == ()

    def test_chain_enable_to_unknown_target_skipped(self):
        catalog = SynergyCatalog.from_dict(
            {"synergies": [_synergy("a")]},
            enhancements={"enhancements": [
                {"id": "a_3", "synergy_id": "a", "required_level": 3, "type": "chain_enable",
                 "enhancement": {"enables_chain": "nowhere"}},
            ]},
        )
        assert catalog.enhancements_for("a") == ()

    def test_unknown_condition_kept_as_never_firing(self):
        catalog = SynergyCatalog.from_dict(
            {"synergies": [_synergy("a"), _synergy("b")]},
            chains={"edges": [{"from": "a", "to": "b", "conditions": [{"type": "full_moon", "value": 1}]}]},
        )
        assert isinstance(catalog.edges[0].conditions[0], UnknownCondition)


class TestLookup:
    def test_get_unknown_raises(self, catalog):
        with pytest.raises(SynergyNotFoundError):
            catalog.get("nope")

    def test_find_unknown_returns_none(self, catalog):
        assert catalog.find("nope") is None

    def test_context_and_achievement_partition(self, catalog):
        gated = {s.id for s in catalog.achievement_synergies}
        regular = {s.id for s in catalog.context_synergies}
        assert gated == {"scene_veteran_bonus", "punk_master"}
        assert not gated & regular
        assert len(gated) + len(regular) == len(catalog)

    def test_sample_dangling_edge_and_conflict_pruned(self, catalog):
        assert all(edge.target_id != "ghost_synergy" for edge in catalog.edges)
        assert "ghost_synergy" not in catalog.conflicts["commercial_sellout"].conflicts_with

    def test_enhancements_in_definition_order(self, catalog):
        ids = [e.id for e in catalog.enhancements_for("metal_brotherhood")]
        assert ids == ["metal_brotherhood_1", "metal_brotherhood_2", "metal_brotherhood_4"]
        assert isinstance(catalog.enhancements_for("metal_brotherhood")[0].kind, EffectBoost)

    def test_rarity_parsed(self, catalog):
        assert catalog.get("perfect_storm").rarity == Rarity.LEGENDARY
