"""
Тесты domain моделей

Покрывает:
- VaultConfig: defaults, границы, загрузка из JSON
- CollateralLedger: инварианты, атомарный apply, restore
- PriceCache
- Units: конверсии reserve ↔ synthetic
- AccessControl
"""

import json

import jsonschema
import pytest
from pydantic import ValidationError

from qvault.core.domain import (
    PRICE_UNIT,
    AccessControl,
    BlockClock,
    Capability,
    CollateralLedger,
    PriceCache,
    VaultConfig,
    config_from_dict,
    load_config,
    normalize_feed_price,
    reserve_to_synthetic,
    synthetic_value_in_reserve,
    to_reserve_units,
    to_synthetic_units,
)
from qvault.core.errors import Unauthorized


# =============================================================================
# CONFIG
# =============================================================================


class TestVaultConfig:
    """Тесты VaultConfig"""

    def test_defaults(self):
        config = VaultConfig()
        assert config.schema_version == "1"
        assert config.mint_fee_bps == 10
        assert config.redeem_fee_bps == 10
        assert config.min_collateral_ratio_bps == 10_500
        assert config.critical_collateral_ratio_bps == 10_100
        assert config.max_deviation_bps == 200
        assert config.min_blocks_between_updates == 1
        assert config.yield_withdraw_tolerance == 0

    def test_frozen(self):
        config = VaultConfig()
        with pytest.raises(ValidationError):
            config.mint_fee_bps = 20

    def test_fee_above_100_percent_rejected(self):
        with pytest.raises(ValidationError):
            VaultConfig(mint_fee_bps=10_001)

    def test_min_must_exceed_critical(self):
        with pytest.raises(ValidationError, match="must exceed"):
            VaultConfig(min_collateral_ratio_bps=10_100, critical_collateral_ratio_bps=10_100)

    def test_critical_below_100_percent_rejected(self):
        with pytest.raises(ValidationError):
            VaultConfig(critical_collateral_ratio_bps=9_999)

    def test_unknown_field_rejected(self):
        with pytest.raises(ValidationError):
            VaultConfig(liquidation_penalty_bps=500)

    def test_load_config_from_file(self, tmp_path):
        path = tmp_path / "vault.json"
        path.write_text(
            json.dumps({"schema_version": "1", "mint_fee_bps": 25, "max_deviation_bps": 500}),
            encoding="utf-8",
        )
        config = load_config(path)
        assert config.mint_fee_bps == 25
        assert config.max_deviation_bps == 500
        assert config.redeem_fee_bps == 10

    def test_config_contract_rejects_wrong_version(self):
        with pytest.raises(jsonschema.ValidationError):
            config_from_dict({"schema_version": "2"})

    def test_config_contract_rejects_float_fee(self):
        with pytest.raises(jsonschema.ValidationError):
            config_from_dict({"schema_version": "1", "mint_fee_bps": 0.5})

    def test_cross_field_bounds_checked_after_contract(self):
        with pytest.raises(ValidationError):
            config_from_dict(
                {
                    "schema_version": "1",
                    "min_collateral_ratio_bps": 10_000,
                    "critical_collateral_ratio_bps": 10_100,
                }
            )


# =============================================================================
# LEDGER
# =============================================================================


class TestCollateralLedger:
    """Тесты CollateralLedger"""

    def test_from_config(self):
        ledger = CollateralLedger.from_config(VaultConfig(mint_fee_bps=5))
        assert ledger.mint_fee_bps == 5
        assert ledger.reserve_held_direct == 0
        assert ledger.synthetic_supply == 0
        assert ledger.paused is False

    def test_total_and_backing_reserve(self):
        ledger = CollateralLedger.from_config(VaultConfig())
        ledger.apply(reserve_held_direct=700, reserve_deployed_to_yield=300, accumulated_fees=50)
        assert ledger.total_reserve == 1_000
        assert ledger.backing_reserve == 950
        assert ledger.free_held_direct == 650

    def test_apply_negative_rejected_and_state_unchanged(self):
        ledger = CollateralLedger.from_config(VaultConfig())
        ledger.apply(reserve_held_direct=100)
        with pytest.raises(ValidationError):
            ledger.apply(reserve_held_direct=50, synthetic_supply=-1)
        assert ledger.reserve_held_direct == 100
        assert ledger.synthetic_supply == 0

    def test_fees_cannot_exceed_reserve(self):
        ledger = CollateralLedger.from_config(VaultConfig())
        with pytest.raises(ValidationError, match="accumulated_fees"):
            ledger.apply(accumulated_fees=1)

    def test_unknown_field_rejected(self):
        ledger = CollateralLedger.from_config(VaultConfig())
        with pytest.raises(ValidationError):
            ledger.apply(reserve_total=1)

    def test_restore_roundtrip_keeps_identity(self):
        ledger = CollateralLedger.from_config(VaultConfig())
        state = ledger.model_dump()
        ledger.apply(reserve_held_direct=10, synthetic_supply=5, paused=True)
        same = ledger
        ledger.restore(state)
        assert same is ledger
        assert ledger.model_dump() == state


class TestPriceCache:
    """Тесты PriceCache"""

    def test_empty_cache_has_no_price(self):
        cache = PriceCache.from_config(VaultConfig())
        assert not cache.has_price
        assert cache.max_deviation_bps == 200

    def test_apply_updates(self):
        cache = PriceCache.from_config(VaultConfig())
        cache.apply(last_valid_price=PRICE_UNIT, last_update_block=5, last_update_time=60)
        assert cache.has_price
        assert cache.last_update_block == 5


# =============================================================================
# UNITS
# =============================================================================


class TestUnits:
    """Тесты конверсий"""

    def test_value_of_one_synthetic_at_eurusd(self):
        price = normalize_feed_price(108_000_000)
        assert price == 1_080_000_000_000_000_000
        assert synthetic_value_in_reserve(to_synthetic_units(1), price) == 1_080_000

    def test_reserve_to_synthetic_at_par(self):
        assert reserve_to_synthetic(to_reserve_units(5), PRICE_UNIT) == to_synthetic_units(5)

    def test_reserve_to_synthetic_floors(self):
        # 1 USDC / 3.0 → 0.333... QEURO (floor)
        assert reserve_to_synthetic(to_reserve_units(1), 3 * PRICE_UNIT) == 333_333_333_333_333_333

    def test_dust_synthetic_has_zero_value(self):
        assert synthetic_value_in_reserve(10**11, PRICE_UNIT) == 0


# =============================================================================
# ACCESS / CLOCK
# =============================================================================


class TestAccessControl:
    """Тесты AccessControl"""

    def test_require_passes_with_any_capability(self):
        access = AccessControl({"ops": [Capability.EMERGENCY]})
        access.require("ops", Capability.EMERGENCY, Capability.GOVERNANCE)

    def test_require_raises_unauthorized(self):
        access = AccessControl()
        with pytest.raises(Unauthorized) as exc_info:
            access.require("mallory", Capability.GOVERNANCE)
        assert exc_info.value.context["caller"] == "mallory"
        assert exc_info.value.context["required"] == "GOVERNANCE"

    def test_revoke(self):
        access = AccessControl({"gov": [Capability.GOVERNANCE]})
        access.revoke("gov", Capability.GOVERNANCE)
        assert not access.has("gov", Capability.GOVERNANCE)


class TestBlockClock:
    def test_advance(self):
        clock = BlockClock(block_number=1, timestamp=0)
        clock.advance(blocks=2, seconds=24)
        assert clock.block_number == 3
        assert clock.timestamp == 24

    def test_cannot_go_backwards(self):
        with pytest.raises(ValueError):
            BlockClock().advance(blocks=-1)
