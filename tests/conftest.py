"""
Общие fixtures: vault поверх in-memory collaborators.

Цена по умолчанию 1.0 (PRICE_UNIT), кэш цены инициализирован через refresh.
"""

import pytest

from qvault import QuantVault
from qvault.collaborators import (
    InMemorySyntheticToken,
    InMemoryToken,
    InMemoryYieldVenue,
    StaticMarginPool,
    StaticPriceSource,
)
from qvault.core.domain import (
    PRICE_UNIT,
    AccessControl,
    BlockClock,
    Capability,
    VaultConfig,
    to_reserve_units,
)

GOVERNANCE = "governance"
GUARDIAN = "guardian"
MARGIN_POOL = "margin_pool"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"
TREASURY = "treasury"

INITIAL_BALANCE = to_reserve_units(10_000_000)
HEDGER_MARGIN = to_reserve_units(10_000_000)


@pytest.fixture
def config() -> VaultConfig:
    return VaultConfig()


@pytest.fixture
def zero_fee_config() -> VaultConfig:
    return VaultConfig(mint_fee_bps=0, redeem_fee_bps=0)


@pytest.fixture
def reserve_token() -> InMemoryToken:
    token = InMemoryToken("USDC")
    for account in (ALICE, BOB, CAROL, MARGIN_POOL):
        token.mint(account, INITIAL_BALANCE)
    return token


@pytest.fixture
def synthetic_token() -> InMemorySyntheticToken:
    return InMemorySyntheticToken()


@pytest.fixture
def price_source() -> StaticPriceSource:
    return StaticPriceSource(price=PRICE_UNIT)


@pytest.fixture
def margin_pool() -> StaticMarginPool:
    return StaticMarginPool()


@pytest.fixture
def hedger_margin(margin_pool) -> StaticMarginPool:
    """
    Агрегированная маржа, держащая ratio выше critical.

    Без маржи vault, наполненный только mint'ами по неизменной цене,
    стоит на ~10000 bps, то есть в liquidation mode, и redeem по номиналу закрыт.
    """
    margin_pool.aggregate_margin = HEDGER_MARGIN
    return margin_pool


@pytest.fixture
def yield_venue(reserve_token) -> InMemoryYieldVenue:
    return InMemoryYieldVenue(token=reserve_token, depositor="vault")


@pytest.fixture
def access() -> AccessControl:
    return AccessControl(
        {
            GOVERNANCE: [Capability.GOVERNANCE],
            GUARDIAN: [Capability.EMERGENCY],
            MARGIN_POOL: [Capability.MARGIN_POOL],
        }
    )


@pytest.fixture
def clock() -> BlockClock:
    return BlockClock(block_number=100, timestamp=1_700_000_000)


@pytest.fixture
def make_vault(price_source, synthetic_token, reserve_token, margin_pool, yield_venue, access, clock):
    """Фабрика vault с произвольной конфигурацией (кэш цены уже инициализирован)."""

    def _make(cfg: VaultConfig | None = None, state: dict | None = None) -> QuantVault:
        vault = QuantVault(
            config=cfg or VaultConfig(),
            price_source=price_source,
            synthetic_token=synthetic_token,
            reserve_token=reserve_token,
            margin_pool=margin_pool,
            yield_venue=yield_venue,
            access=access,
            clock=clock,
            vault_address="vault",
            state=state,
        )
        if state is None:
            vault.refresh_price(GOVERNANCE)
        return vault

    return _make


@pytest.fixture
def vault(make_vault, config) -> QuantVault:
    return make_vault(config)


@pytest.fixture
def zero_fee_vault(make_vault, zero_fee_config) -> QuantVault:
    return make_vault(zero_fee_config)


def set_price(vault: QuantVault, price_source: StaticPriceSource, price: int) -> None:
    """Перевод feed и кэша на новую цену (через привилегированный refresh)."""
    price_source.set_price(price)
    vault.refresh_price(GOVERNANCE)
