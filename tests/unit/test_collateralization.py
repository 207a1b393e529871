"""
Тесты Collateralization Calculator

Coverage:
- Sentinel при нулевом supply
- Сценарий 1_000_000 / 900_000 → 11111 bps (NORMAL) и 905_000 → 10055 bps (LIQUIDATION)
- Учёт агрегированной маржи и комиссий
- can_mint / mint eligibility
"""

import pytest

from qvault.core.domain import PRICE_UNIT, to_reserve_units, to_synthetic_units
from qvault.core.errors import OracleInvalid
from qvault.core.math import RATIO_SENTINEL_MAX

from tests.conftest import set_price


class TestCollateralizationRatio:
    """Ratio обеспечения"""

    def test_sentinel_when_no_supply(self, vault):
        assert vault.collateralization_ratio_bps() == RATIO_SENTINEL_MAX

    def test_sentinel_even_with_invalid_oracle(self, vault, price_source, clock):
        clock.advance()
        price_source.set_price(PRICE_UNIT, is_valid=False)
        assert vault.collateralization_ratio_bps() == RATIO_SENTINEL_MAX

    def test_scenario_normal_then_liquidation(self, vault):
        """held=1_000_000, supply=900_000 @1.0 → 11111 bps (OFF); held=905_000 → 10055 bps (ON)."""
        vault.ledger.apply(
            reserve_held_direct=to_reserve_units(1_000_000),
            synthetic_supply=to_synthetic_units(900_000),
        )
        assert vault.collateralization_ratio_bps() == 11_111
        assert not vault.should_trigger_liquidation()

        vault.ledger.apply(reserve_held_direct=to_reserve_units(905_000))
        assert vault.collateralization_ratio_bps() == 10_055
        assert vault.should_trigger_liquidation()

    def test_exactly_at_critical_is_liquidation(self, vault):
        vault.ledger.apply(
            reserve_held_direct=to_reserve_units(1_010_000),
            synthetic_supply=to_synthetic_units(1_000_000),
        )
        assert vault.collateralization_ratio_bps() == 10_100
        assert vault.should_trigger_liquidation()

    def test_deployed_reserve_counts(self, vault):
        vault.ledger.apply(
            reserve_held_direct=to_reserve_units(500_000),
            reserve_deployed_to_yield=to_reserve_units(500_000),
            synthetic_supply=to_synthetic_units(900_000),
        )
        assert vault.collateralization_ratio_bps() == 11_111

    def test_aggregate_margin_counts(self, vault, margin_pool):
        vault.ledger.apply(
            reserve_held_direct=to_reserve_units(900_000),
            synthetic_supply=to_synthetic_units(900_000),
        )
        assert vault.collateralization_ratio_bps() == 10_000

        margin_pool.aggregate_margin = to_reserve_units(90_000)
        assert vault.collateralization_ratio_bps() == 11_000

    def test_accumulated_fees_excluded(self, vault):
        vault.ledger.apply(
            reserve_held_direct=to_reserve_units(1_000_000),
            accumulated_fees=to_reserve_units(100_000),
            synthetic_supply=to_synthetic_units(900_000),
        )
        assert vault.collateralization_ratio_bps() == 10_000

    def test_price_increase_reduces_ratio(self, vault, price_source):
        vault.ledger.apply(
            reserve_held_direct=to_reserve_units(1_080_000),
            synthetic_supply=to_synthetic_units(1_000_000),
        )
        assert vault.collateralization_ratio_bps() == 10_800

        set_price(vault, price_source, 1_080_000_000_000_000_000)
        assert vault.collateralization_ratio_bps() == 10_000

    def test_invalid_oracle_with_supply_raises(self, vault, price_source, clock):
        vault.ledger.apply(
            reserve_held_direct=to_reserve_units(1_000_000),
            synthetic_supply=to_synthetic_units(900_000),
        )
        clock.advance()
        price_source.set_price(PRICE_UNIT, is_valid=False)
        with pytest.raises(OracleInvalid):
            vault.collateralization_ratio_bps()
        with pytest.raises(OracleInvalid):
            vault.should_trigger_liquidation()


class TestCanMint:
    """can_mint и mint eligibility"""

    def test_can_mint_with_no_supply(self, vault):
        assert vault.can_mint()

    def test_cannot_mint_below_minimum(self, vault):
        vault.ledger.apply(
            reserve_held_direct=to_reserve_units(1_040_000),
            synthetic_supply=to_synthetic_units(1_000_000),
        )
        eligibility = vault.mint_eligibility()
        assert not eligibility.allowed
        assert eligibility.block_reason == "ratio_below_minimum"
        assert eligibility.ratio_bps == 10_400
        assert eligibility.min_ratio_bps == 10_500

    def test_can_mint_at_minimum(self, vault):
        vault.ledger.apply(
            reserve_held_direct=to_reserve_units(1_050_000),
            synthetic_supply=to_synthetic_units(1_000_000),
        )
        assert vault.can_mint()

    def test_cannot_mint_with_invalid_oracle(self, vault, price_source, clock):
        clock.advance()
        price_source.set_price(PRICE_UNIT, is_valid=False)
        eligibility = vault.mint_eligibility()
        assert not eligibility.allowed
        assert eligibility.block_reason == "oracle_invalid"
        assert eligibility.ratio_bps is None
