"""Domain models for ku_wallet: pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.ku_common.enums import PrincipalKind, WalletTarget


@dataclass(frozen=True)
class Principal:
    """Wallet owner: a user id or a study-group id."""
    kind: PrincipalKind
    id: str

    @classmethod
    def user(cls, user_id: str) -> "Principal":
        return cls(PrincipalKind.USER, user_id)

    @classmethod
    def group(cls, group_id: str) -> "Principal":
        return cls(PrincipalKind.GROUP, group_id)

    @classmethod
    def for_target(
        cls, target: WalletTarget, user_id: str, group_id: str | None
    ) -> "Principal":
        if target == WalletTarget.GROUP:
            if not group_id:
                raise ValueError("group target requires a group_id")
            return cls.group(group_id)
        return cls.user(user_id)


@dataclass
class Wallet:
    principal_kind: PrincipalKind
    principal_id: str
    balance: int             # whole Knowledge Units, never negative
    library_slots: int
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def principal(self) -> Principal:
        return Principal(self.principal_kind, self.principal_id)

    @classmethod
    def empty(cls, principal: Principal) -> "Wallet":
        """What a principal without a wallet row reads as."""
        return cls(
            principal_kind=principal.kind,
            principal_id=principal.id,
            balance=0,
            library_slots=1 if principal.kind == PrincipalKind.USER else 0,
        )
