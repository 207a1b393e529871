"""
Tests for JSON Schema contracts

Покрывает:
- Загрузку и meta-validation схем
- ledger_state / price_cache / vault_config / vault_snapshot
- Совместимость pydantic model_dump() со схемами
"""

import pytest
from jsonschema import ValidationError

from qvault.core.contracts import (
    LedgerStateValidator,
    SchemaLoader,
    validate_ledger_state,
    validate_price_cache,
    validate_vault_config,
    validate_vault_snapshot,
)
from qvault.core.domain import CollateralLedger, PriceCache, VaultConfig


@pytest.fixture
def ledger_state():
    return CollateralLedger.from_config(VaultConfig()).model_dump()


@pytest.fixture
def price_cache_state():
    return PriceCache.from_config(VaultConfig()).model_dump()


class TestSchemaLoader:
    """Загрузка схем"""

    @pytest.mark.parametrize(
        "name", ["vault_config", "ledger_state", "price_cache", "vault_snapshot"]
    )
    def test_all_schemas_load(self, name):
        schema = SchemaLoader().load_schema(name)
        assert schema["title"] == name

    def test_missing_schema(self):
        with pytest.raises(FileNotFoundError):
            SchemaLoader().load_schema("trade_history")

    def test_missing_directory(self, tmp_path):
        with pytest.raises(RuntimeError, match="Schema directory not found"):
            SchemaLoader(tmp_path / "absent")

    def test_schema_is_cached(self):
        loader = SchemaLoader()
        assert loader.load_schema("ledger_state") is loader.load_schema("ledger_state")

    def test_broken_schema_rejected(self, tmp_path):
        (tmp_path / "ledger_state.json").write_text('{"type": 42}', encoding="utf-8")
        with pytest.raises(ValueError, match="ledger_state.json"):
            SchemaLoader(tmp_path).load_schema("ledger_state")

    def test_validator_with_custom_loader(self, tmp_path, ledger_state):
        (tmp_path / "ledger_state.json").write_text('{"type": "object"}', encoding="utf-8")
        validator = LedgerStateValidator(SchemaLoader(tmp_path))
        ledger_state["anything"] = "goes"
        assert validator.is_valid(ledger_state)


class TestLedgerStateContract:
    """ledger_state.json"""

    def test_model_dump_is_valid(self, ledger_state):
        validate_ledger_state(ledger_state)

    def test_negative_reserve_invalid(self, ledger_state):
        ledger_state["reserve_held_direct"] = -1
        with pytest.raises(ValidationError):
            validate_ledger_state(ledger_state)

    def test_missing_field_invalid(self, ledger_state):
        del ledger_state["synthetic_supply"]
        assert not LedgerStateValidator().is_valid(ledger_state)

    def test_extra_field_invalid(self, ledger_state):
        ledger_state["liquidation_mode"] = True
        errors = list(LedgerStateValidator().iter_errors(ledger_state))
        assert len(errors) == 1

    def test_big_integers_valid(self, ledger_state):
        ledger_state["synthetic_supply"] = 10**40
        validate_ledger_state(ledger_state)


class TestPriceCacheContract:
    """price_cache.json"""

    def test_model_dump_is_valid(self, price_cache_state):
        validate_price_cache(price_cache_state)

    def test_zero_deviation_invalid(self, price_cache_state):
        price_cache_state["max_deviation_bps"] = 0
        with pytest.raises(ValidationError):
            validate_price_cache(price_cache_state)


class TestVaultConfigContract:
    """vault_config.json"""

    def test_default_dump_is_valid(self):
        validate_vault_config(VaultConfig().model_dump())

    def test_version_required(self):
        with pytest.raises(ValidationError):
            validate_vault_config({"mint_fee_bps": 10})


class TestVaultSnapshotContract:
    """vault_snapshot.json"""

    def test_valid_snapshot(self, ledger_state, price_cache_state):
        validate_vault_snapshot(
            {"schema_version": "1", "ledger": ledger_state, "price_cache": price_cache_state}
        )

    def test_nested_ledger_checked(self, ledger_state, price_cache_state):
        ledger_state["paused"] = "no"
        with pytest.raises(ValidationError):
            validate_vault_snapshot(
                {"schema_version": "1", "ledger": ledger_state, "price_cache": price_cache_state}
            )

    def test_wrong_version(self, ledger_state, price_cache_state):
        with pytest.raises(ValidationError):
            validate_vault_snapshot(
                {"schema_version": "0", "ledger": ledger_state, "price_cache": price_cache_state}
            )
