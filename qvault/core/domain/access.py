"""
Access — capability-проверки для привилегированных операций

Каждая capability соответствует одной внешней роли:
- GOVERNANCE: параметры, пороги, refresh цены, yield deployment, комиссии
- EMERGENCY: pause/unpause
- MARGIN_POOL: credit_margin / debit_margin

Проверка выполняется на входе каждой операции, до любых изменений.
"""

from enum import Enum
from typing import Iterable

from qvault.core.errors import Unauthorized


class Capability(str, Enum):
    """Capability вызывающей стороны."""

    GOVERNANCE = "GOVERNANCE"
    EMERGENCY = "EMERGENCY"
    MARGIN_POOL = "MARGIN_POOL"


class AccessControl:
    """Таблица identity → set[Capability]."""

    def __init__(self, grants: dict[str, Iterable[Capability]] | None = None):
        self._grants: dict[str, set[Capability]] = {}
        for identity, capabilities in (grants or {}).items():
            for capability in capabilities:
                self.grant(identity, capability)

    def grant(self, identity: str, capability: Capability) -> None:
        self._grants.setdefault(identity, set()).add(capability)

    def revoke(self, identity: str, capability: Capability) -> None:
        self._grants.get(identity, set()).discard(capability)

    def has(self, identity: str, capability: Capability) -> bool:
        return capability in self._grants.get(identity, set())

    def require(self, identity: str, *capabilities: Capability) -> None:
        """
        Проверка, что identity владеет хотя бы одной из capabilities.

        Raises:
            Unauthorized: Если ни одной capability нет
        """
        if any(self.has(identity, c) for c in capabilities):
            return
        raise Unauthorized(
            "caller lacks required capability",
            caller=identity,
            required=",".join(c.value for c in capabilities),
        )
