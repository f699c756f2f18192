"""
Reporting Core Exceptions

Storage failures have their own hierarchy in
`boekhouding.services.storage.interface`; these cover the computations.
"""


class ReportingError(Exception):
    """Base exception for reporting computations."""
    pass


class UnresolvedAccountError(ReportingError):
    """
    A Final journal line references an account that is unknown or inactive.

    Only raised under UnresolvedAccountPolicy.FAIL.
    """

    def __init__(self, account_id: str, journal_entry_id: str):
        self.account_id = account_id
        self.journal_entry_id = journal_entry_id
        super().__init__(
            f"Journal entry {journal_entry_id} references unknown or inactive "
            f"account {account_id}"
        )


class InvalidPeriodError(ReportingError, ValueError):
    """A requested fiscal period does not exist."""
    pass
