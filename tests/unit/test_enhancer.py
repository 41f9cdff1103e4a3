"""
시너지 강화기 테스트
"""
import pytest

from exceptions import SynergyNotFoundError
from service.synergy.types import EffectKind


class TestEffectiveSynergy:
    def test_no_record_returns_base_effects(self, enhancer, catalog):
        effective = enhancer.effective("metal_brotherhood")
        assert effective.effects == catalog.get("metal_brotherhood").effects
        assert effective.level == 0
        assert effective.applied_enhancements == ()

    def test_example_e_effect_boost(self, enhancer, level_up):
        """레벨 1: authenticity 10 -> 15"""
        level_up("metal_brotherhood", 5)
        effective = enhancer.effective("metal_brotherhood")

        assert effective.level == 1
        assert effective.effects[0].kind == "authenticity"
        assert effective.effects[0].value == pytest.approx(15)
        assert effective.applied_enhancements == ("metal_brotherhood_1",)

    def test_example_e_new_effect_at_level_2(self, enhancer, level_up):
        level_up("metal_brotherhood", 15)
        effective = enhancer.effective("metal_brotherhood")

        assert len(effective.effects) == 2
        assert effective.effects[1].kind == "intimidation"
        assert effective.effects[1].value == 20

    def test_boost_does_not_compound(self, enhancer, level_up):
        """여러 번 계산해도 기본 정의 기준 (10 * 1.5 한 번만)"""
        level_up("metal_brotherhood", 5)
        first = enhancer.effective("metal_brotherhood")
        second = enhancer.effective("metal_brotherhood")
        assert first.effects[0].value == second.effects[0].value == pytest.approx(15)

    def test_base_definition_untouched(self, enhancer, catalog, level_up):
        level_up("metal_brotherhood", 5)
        enhancer.effective("metal_brotherhood")
        assert catalog.get("metal_brotherhood").effects[0].value == 10

    def test_transform_effect(self, enhancer, level_up):
        level_up("metal_brotherhood", 50)
        effective = enhancer.effective("metal_brotherhood")

        transforms = [e for e in effective.effects if e.kind == EffectKind.TRANSFORM_ENTITY.value]
        assert [e.value for e in transforms] == ["legendary_metal_band"]

    def test_unknown_id_raises(self, enhancer):
        with pytest.raises(SynergyNotFoundError):
            enhancer.effective("nope")


class TestDynamicEdges:
    def test_locked_chain_enable(self, enhancer, level_up):
        level_up("punk_unity", 15)
        assert enhancer.dynamic_edges("punk_unity") == ()

    def test_chain_enable_bonus_scales_with_level(self, enhancer, level_up):
        """기본 0.5 + 레벨 * 0.1"""
        level_up("punk_unity", 30)
        edges = enhancer.dynamic_edges("punk_unity")

        assert len(edges) == 1
        assert edges[0].source_id == "punk_unity"
        assert edges[0].target_id == "punk_in_basement"
        assert edges[0].dynamic
        assert edges[0].multiplier_bonus == pytest.approx(0.5 + 3 * 0.1)

        level_up("punk_unity", 20)
        assert enhancer.dynamic_edges("punk_unity")[0].multiplier_bonus == pytest.approx(0.9)

    def test_chain_enable_keeps_effects(self, enhancer, catalog, level_up):
        level_up("punk_unity", 30)
        assert enhancer.effective("punk_unity").effects == catalog.get("punk_unity").effects

    def test_unknown_id_has_no_edges(self, enhancer):
        assert enhancer.dynamic_edges("nope") == ()
