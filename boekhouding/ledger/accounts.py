"""
Account Resolution

Journal lines reference accounts by id. A line whose account is unknown, or
inactive, cannot be classified. What happens to it is an explicit policy
(UnresolvedAccountPolicy) rather than a silent drop.
"""

from typing import Iterable, Optional

import structlog
from pydantic import BaseModel

from boekhouding.config import UnresolvedAccountPolicy
from boekhouding.exceptions import UnresolvedAccountError
from boekhouding.models.ledger import Account, AccountRole


logger = structlog.get_logger(__name__)

_LEGACY_PRIVATE_MARKERS = ("privé", "prive")


def is_private_account(account: Account, match_legacy_names: bool = True) -> bool:
    """
    True for owner drawings/deposits accounts.

    The explicit role wins. Name matching on "privé"/"prive" only applies when
    match_legacy_names is set, for charts that predate account roles.
    """
    if account.role == AccountRole.PRIVATE:
        return True
    if not match_legacy_names:
        return False
    name = account.name.lower()
    return any(marker in name for marker in _LEGACY_PRIVATE_MARKERS)


class UnresolvedReference(BaseModel):
    """A line that was left out because its account could not be resolved."""

    account_id: str
    journal_entry_id: str


class AccountResolver:
    """
    Resolves account ids against the active chart of accounts.

    One resolver is created per computation; it records the references it
    excluded so callers can report them.
    """

    def __init__(
        self,
        accounts: Iterable[Account],
        policy: UnresolvedAccountPolicy = UnresolvedAccountPolicy.EXCLUDE,
        company_id: Optional[str] = None,
    ):
        self._by_id = {a.id: a for a in accounts if a.is_active}
        self._policy = policy
        self._company_id = company_id
        self.excluded: list[UnresolvedReference] = []

    @property
    def accounts(self) -> list[Account]:
        return list(self._by_id.values())

    def resolve(self, account_id: str, journal_entry_id: str) -> Optional[Account]:
        """
        Look up an account for a line.

        Returns None when the line must be excluded.

        Raises:
            UnresolvedAccountError: Under the FAIL policy
        """
        account = self._by_id.get(account_id)
        if account is not None:
            return account

        if self._policy == UnresolvedAccountPolicy.FAIL:
            raise UnresolvedAccountError(account_id, journal_entry_id)

        logger.warning(
            "unresolved_account_line_excluded",
            company_id=self._company_id,
            account_id=account_id,
            journal_entry_id=journal_entry_id,
        )
        self.excluded.append(UnresolvedReference(
            account_id=account_id,
            journal_entry_id=journal_entry_id,
        ))
        return None
