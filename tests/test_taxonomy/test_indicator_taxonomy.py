"""Tests for macro_rebalancer/taxonomy/indicator_taxonomy.py."""

from __future__ import annotations

from macro_rebalancer.taxonomy.indicator_taxonomy import (
    ASSET_CLASS_ALIASES,
    GDP_DECLINE_TERMS,
    GDP_GROWTH_TERMS,
    REGION_ALIASES,
    TREND_BEARING_INDICATORS,
    AssetClass,
    IndicatorKey,
    Region,
)


def test_seven_indicators() -> None:
    assert len(IndicatorKey) == 7
    assert IndicatorKey("yield_curve") is IndicatorKey.YIELD_CURVE


def test_gdp_is_the_only_indicator_without_trend() -> None:
    assert set(IndicatorKey) - TREND_BEARING_INDICATORS == {IndicatorKey.GDP}


def test_aliases_are_lower_case() -> None:
    for alias in (*ASSET_CLASS_ALIASES, *REGION_ALIASES):
        assert alias == alias.lower()


def test_every_enum_value_is_its_own_alias() -> None:
    for asset_class in AssetClass:
        assert ASSET_CLASS_ALIASES[asset_class.value] is asset_class
    for region in Region:
        assert REGION_ALIASES[region.value] is region


def test_gdp_vocabularies_disjoint() -> None:
    assert not set(GDP_GROWTH_TERMS) & set(GDP_DECLINE_TERMS)
