"""
Ledger Aggregation Engine

Turns the stream of Final journal lines into balances: per account as of a
date boundary, opening balances for a period, balance-sheet positions and the
annual tax figures.

DESIGN DECISION: Every operation is one async read followed by a synchronous
pass over locally owned totals. Nothing is cached between calls, so two
concurrent reports never share state.

Date boundaries:
- Opening balances use entry_date < start (strict).
- Closing balances and balance-sheet positions use entry_date <= cutoff.
Hence balance_before(a, start) + period_activity(a, start, end)
== balance_through(a, end) for any start <= end.
"""

from collections import defaultdict
from datetime import date, timedelta
from decimal import Decimal
from typing import Iterable, Optional

import structlog

from boekhouding.config import UnresolvedAccountPolicy
from boekhouding.exceptions import InvalidPeriodError
from boekhouding.ledger.accounts import AccountResolver, is_private_account
from boekhouding.models.ledger import (
    ZERO,
    Account,
    AccountType,
    CompanyContext,
    JournalStatus,
    PostedLine,
    PostedTransaction,
)
from boekhouding.models.period import FiscalPeriod
from boekhouding.models.reports import (
    AccountBalance,
    AnnualTaxSummary,
    BalanceSheetPosition,
    round_money,
)
from boekhouding.services.storage.interface import LedgerStoreInterface


logger = structlog.get_logger(__name__)


def _final_only(lines: Iterable[PostedLine]) -> list[PostedLine]:
    # Adapters are asked for Final lines; anything else is dropped regardless.
    return [line for line in lines if line.status == JournalStatus.FINAL]


def _sum_lines(lines: Iterable[PostedLine]) -> AccountBalance:
    debit = ZERO
    credit = ZERO
    for line in lines:
        debit += line.debit
        credit += line.credit
    return AccountBalance(debit=debit, credit=credit)


def unbalanced_entry_ids(lines: Iterable[PostedLine]) -> list[str]:
    """Ids of entries whose lines do not sum to debit == credit, in first-seen order."""
    totals: dict[str, list[Decimal]] = {}
    for line in lines:
        entry_totals = totals.setdefault(line.line.journal_entry_id, [ZERO, ZERO])
        entry_totals[0] += line.debit
        entry_totals[1] += line.credit
    return [entry_id for entry_id, (debit, credit) in totals.items() if debit != credit]


class LedgerAggregationEngine:
    """
    Balance computations for one company.

    Usage:
        engine = LedgerAggregationEngine(store, CompanyContext(company_id="acme"))
        opening = await engine.opening_balances(date(2024, 1, 1))
    """

    def __init__(
        self,
        store: LedgerStoreInterface,
        company: CompanyContext,
        unresolved_policy: UnresolvedAccountPolicy = UnresolvedAccountPolicy.EXCLUDE,
        match_private_account_names: bool = True,
    ):
        self._store = store
        self._company = company
        self._unresolved_policy = unresolved_policy
        self._match_private_account_names = match_private_account_names

    @property
    def company(self) -> CompanyContext:
        return self._company

    @property
    def store(self) -> LedgerStoreInterface:
        return self._store

    async def resolver(self) -> AccountResolver:
        """A fresh resolver over the active chart of accounts."""
        accounts = await self._store.list_accounts(
            self._company.company_id,
            active_only=True,
        )
        return AccountResolver(
            accounts,
            policy=self._unresolved_policy,
            company_id=self._company.company_id,
        )

    async def _lines(
        self,
        date_from: Optional[date] = None,
        until: Optional[date] = None,
        until_inclusive: bool = True,
    ) -> list[PostedLine]:
        lines = await self._store.list_posted_lines(
            self._company.company_id,
            status=JournalStatus.FINAL,
            date_from=date_from,
            until=until,
            until_inclusive=until_inclusive,
        )
        return _final_only(lines)

    # =========================================================================
    # PER-ACCOUNT BALANCES
    # =========================================================================

    async def balance_as_of(
        self,
        account_id: str,
        cutoff: date,
        inclusive: bool = True,
    ) -> AccountBalance:
        """
        Raw debit/credit totals of an account up to a cutoff.

        Args:
            account_id: Account to total
            cutoff: Date boundary
            inclusive: `<= cutoff` when True, `< cutoff` when False
        """
        lines = await self._lines(until=cutoff, until_inclusive=inclusive)
        return _sum_lines(line for line in lines if line.account_id == account_id)

    async def balance_before(self, account_id: str, cutoff: date) -> AccountBalance:
        """Opening position: lines strictly before the cutoff."""
        return await self.balance_as_of(account_id, cutoff, inclusive=False)

    async def balance_through(self, account_id: str, cutoff: date) -> AccountBalance:
        """Closing position: lines up to and including the cutoff."""
        return await self.balance_as_of(account_id, cutoff, inclusive=True)

    async def period_activity(
        self,
        account_id: str,
        start: date,
        end: date,
    ) -> AccountBalance:
        """Debit/credit totals of an account over start <= entry_date <= end."""
        if end < start:
            raise InvalidPeriodError(f"Period end {end} is before start {start}")
        lines = await self._lines(date_from=start, until=end)
        return _sum_lines(line for line in lines if line.account_id == account_id)

    async def opening_balances(self, period_start: date) -> dict[str, AccountBalance]:
        """
        Debit and credit totals per account over all Final lines dated
        strictly before period_start.

        The two sides are kept apart, never netted.
        Accounts without prior lines are absent from the result.
        """
        lines = await self._lines(until=period_start, until_inclusive=False)

        balances: dict[str, AccountBalance] = {}
        for line in lines:
            current = balances.get(line.account_id, AccountBalance())
            balances[line.account_id] = current.add(line.debit, line.credit)
        return balances

    # =========================================================================
    # TRANSACTIONS
    # =========================================================================

    async def transactions_in_period(
        self,
        start: date,
        end: date,
    ) -> list[PostedTransaction]:
        """Final entries dated within [start, end] with their lines, oldest first."""
        if end < start:
            raise InvalidPeriodError(f"Period end {end} is before start {start}")

        entries = await self._store.list_journal_entries(
            self._company.company_id,
            status=JournalStatus.FINAL,
            date_from=start,
            date_to=end,
        )
        transactions = [
            PostedTransaction(entry=entry)
            for entry in entries
            if entry.is_final and start <= entry.entry_date <= end
        ]
        transactions.sort(key=lambda t: t.entry.entry_date)

        for transaction in transactions:
            if not transaction.entry.is_balanced:
                logger.warning(
                    "unbalanced_entry_detected",
                    company_id=self._company.company_id,
                    journal_entry_id=transaction.entry.id,
                    debit=str(transaction.entry.total_debit),
                    credit=str(transaction.entry.total_credit),
                )
        return transactions

    # =========================================================================
    # BALANCE SHEET
    # =========================================================================

    @staticmethod
    def _resolve(
        lines: Iterable[PostedLine],
        resolver: AccountResolver,
    ) -> list[tuple[PostedLine, Account]]:
        resolved = []
        for line in lines:
            account = resolver.resolve(line.account_id, line.line.journal_entry_id)
            if account is not None:
                resolved.append((line, account))
        return resolved

    @staticmethod
    def _position_from(
        resolved: Iterable[tuple[PostedLine, Account]],
    ) -> BalanceSheetPosition:
        nets: dict[str, Decimal] = defaultdict(lambda: ZERO)
        types: dict[str, AccountType] = {}
        for line, account in resolved:
            nets[account.id] += line.net
            types[account.id] = account.type

        total_assets = ZERO
        total_liabilities = ZERO
        for account_id, net in nets.items():
            if types[account_id] == AccountType.ASSET:
                total_assets += net
            elif types[account_id] == AccountType.LIABILITY:
                total_liabilities -= net

        return BalanceSheetPosition(
            total_assets=round_money(total_assets),
            total_liabilities=round_money(total_liabilities),
        )

    async def balance_sheet_position(
        self,
        cutoff: date,
        resolver: Optional[AccountResolver] = None,
    ) -> BalanceSheetPosition:
        """
        Cumulative balance sheet as of cutoff (inclusive).

        Asset nets (debit - credit) sum into total_assets; Liability nets are
        negated into total_liabilities. Equity is their difference.
        """
        resolver = resolver or await self.resolver()
        lines = await self._lines(until=cutoff)
        return self._position_from(self._resolve(lines, resolver))

    # =========================================================================
    # ANNUAL TAX FIGURES
    # =========================================================================

    async def annual_tax_summary(self, year: int) -> AnnualTaxSummary:
        """
        Revenue, costs, balance sheet and private movements for a calendar year.

        Revenue and costs are signed per-account nets over the year, so a
        credit note reduces revenue. Private withdrawals and deposits are
        gross: each private line counts by the sign of its own net.
        Start equity rolls forward from the previous year-end.
        """
        period = FiscalPeriod.for_year(year)
        resolver = await self.resolver()

        # One scan through year end serves all figures
        lines = await self._lines(until=period.end)
        resolved = self._resolve(lines, resolver)
        excluded_count = len(lines) - len(resolved)
        unbalanced = unbalanced_entry_ids(lines)
        for entry_id in unbalanced:
            logger.warning(
                "unbalanced_entry_detected",
                company_id=self._company.company_id,
                journal_entry_id=entry_id,
            )

        start_position = self._position_from(
            (line, account) for line, account in resolved
            if line.entry_date <= period.previous_year_end
        )
        end_position = self._position_from(resolved)

        revenue = ZERO
        costs = ZERO
        in_year = 0
        withdrawals = ZERO
        deposits = ZERO
        for line, account in resolved:
            if not period.contains(line.entry_date):
                continue
            in_year += 1
            if account.type == AccountType.REVENUE:
                revenue += line.credit - line.debit
            elif account.type == AccountType.EXPENSE:
                costs += line.debit - line.credit
            if is_private_account(account, self._match_private_account_names):
                if line.net > 0:
                    withdrawals += line.net
                elif line.net < 0:
                    deposits -= line.net

        summary = AnnualTaxSummary(
            year=year,
            revenue=round_money(revenue),
            costs=round_money(costs),
            total_assets=end_position.total_assets,
            total_liabilities=end_position.total_liabilities,
            private_withdrawals=round_money(withdrawals),
            private_deposits=round_money(deposits),
            start_equity=start_position.equity,
            excluded_line_count=excluded_count,
            unbalanced_entry_count=len(unbalanced),
        )

        logger.info(
            "annual_tax_summary_computed",
            company_id=self._company.company_id,
            year=year,
            line_count=in_year,
            excluded_line_count=excluded_count,
            unbalanced_entry_count=len(unbalanced),
        )
        return summary

    async def start_equity(self, year: int) -> Decimal:
        """Equity at the last day of the previous year."""
        position = await self.balance_sheet_position(date(year, 1, 1) - timedelta(days=1))
        return position.equity
