"""
Контракты персистентного состояния vault

Всё, что vault читает с диска или отдаёт наружу как снапшот, проверяется
JSON Schema (Draft 2020-12) до того, как попадёт в pydantic модели:
- vault_config — конфигурация при старте
- ledger_state — CollateralLedger.model_dump()
- price_cache — PriceCache.model_dump()
- vault_snapshot — конверт {schema_version, ledger, price_cache}

Схемы лежат в qvault/core/contracts/schema/ и ставятся вместе с пакетом.
"""

import json
from pathlib import Path
from typing import Any, Dict, Iterator

import jsonschema
from jsonschema import Draft202012Validator

SCHEMA_DIR = Path(__file__).parent / "schema"


# =============================================================================
# SCHEMA LOADER
# =============================================================================


class SchemaLoader:
    """Чтение и meta-проверка файлов схем с кэшем по имени."""

    def __init__(self, schema_dir: Path | None = None):
        self._schema_dir = schema_dir or SCHEMA_DIR
        if not self._schema_dir.exists():
            raise RuntimeError(f"Schema directory not found: {self._schema_dir}")
        self._schemas: Dict[str, Dict[str, Any]] = {}

    def load_schema(self, schema_name: str) -> Dict[str, Any]:
        """
        Args:
            schema_name: 'ledger_state', 'vault_snapshot', ...

        Raises:
            FileNotFoundError: нет файла <schema_name>.json
            ValueError: файл не проходит meta-schema Draft 2020-12
        """
        cached = self._schemas.get(schema_name)
        if cached is not None:
            return cached

        path = self._schema_dir / f"{schema_name}.json"
        if not path.exists():
            raise FileNotFoundError(f"Schema not found: {path}")

        schema = json.loads(path.read_text(encoding="utf-8"))
        try:
            Draft202012Validator.check_schema(schema)
        except jsonschema.SchemaError as e:
            raise ValueError(f"Invalid JSON Schema in {path.name}: {e.message}") from e

        self._schemas[schema_name] = schema
        return schema


_SCHEMA_LOADER = SchemaLoader()


# =============================================================================
# CONTRACT VALIDATORS
# =============================================================================


class ContractValidator:
    """Валидатор одного контракта (schema_name задаётся подклассом)."""

    schema_name: str = ""

    def __init__(self, loader: SchemaLoader | None = None):
        self.schema = (loader or _SCHEMA_LOADER).load_schema(self.schema_name)
        self._validator = Draft202012Validator(self.schema)

    def validate(self, data: Dict[str, Any]) -> None:
        """Raises jsonschema.ValidationError на первом нарушении."""
        self._validator.validate(data)

    def is_valid(self, data: Dict[str, Any]) -> bool:
        return self._validator.is_valid(data)

    def iter_errors(self, data: Dict[str, Any]) -> Iterator[jsonschema.ValidationError]:
        return self._validator.iter_errors(data)


class VaultConfigValidator(ContractValidator):
    schema_name = "vault_config"


class LedgerStateValidator(ContractValidator):
    schema_name = "ledger_state"


class PriceCacheValidator(ContractValidator):
    schema_name = "price_cache"


class VaultSnapshotValidator(ContractValidator):
    """Конверт снапшота; ledger и price_cache проверяются своими контрактами."""

    schema_name = "vault_snapshot"

    def __init__(self, loader: SchemaLoader | None = None):
        super().__init__(loader)
        self._parts = {
            "ledger": LedgerStateValidator(loader),
            "price_cache": PriceCacheValidator(loader),
        }

    def validate(self, data: Dict[str, Any]) -> None:
        super().validate(data)
        for key, validator in self._parts.items():
            validator.validate(data[key])

    def is_valid(self, data: Dict[str, Any]) -> bool:
        if not super().is_valid(data):
            return False
        return all(validator.is_valid(data[key]) for key, validator in self._parts.items())


# =============================================================================
# SHORTCUTS
# =============================================================================


def validate_vault_config(data: Dict[str, Any]) -> None:
    VaultConfigValidator().validate(data)


def validate_ledger_state(data: Dict[str, Any]) -> None:
    LedgerStateValidator().validate(data)


def validate_price_cache(data: Dict[str, Any]) -> None:
    PriceCacheValidator().validate(data)


def validate_vault_snapshot(data: Dict[str, Any]) -> None:
    """Конверт + ledger + price_cache; Raises jsonschema.ValidationError."""
    VaultSnapshotValidator().validate(data)
