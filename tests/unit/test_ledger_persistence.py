# tests/unit/test_ledger_persistence.py
"""Unit tests for PlayLedgerRepository using MagicMock AsyncSession."""
import json
from datetime import UTC, datetime
from unittest.mock import AsyncMock, MagicMock

import pytest

from src.sc_catalog.domain.outcome import LOSS, Outcome
from src.sc_catalog.domain.prize_table import PrizeTier
from src.sc_common.enums import ReserveStatus, SettlementReason, SettleStatus
from src.sc_common.errors import InternalError
from src.sc_wallet.infrastructure.persistence import PlayLedgerRepository

_WIN = Outcome(is_win=True, tier=PrizeTier("pix-10", "10 Reais", 1000, 600))


def _result(row=None, rows=None):
    result = MagicMock()
    result.fetchone.return_value = row
    result.fetchall.return_value = rows or []
    return result


def _account_row(balance: int, user_id: str = "user-1"):
    row = MagicMock()
    row.user_id = user_id
    row.balance = balance
    row.version = 1
    row.created_at = datetime.now(UTC)
    row.updated_at = datetime.now(UTC)
    return row


def _ledger_row(entry_id: int = 1, amount: int = -50, balance_after: int = 950):
    row = MagicMock()
    row.id = entry_id
    row.user_id = "user-1"
    row.entry_type = "PLAY_STAKE"
    row.amount = amount
    row.balance_after = balance_after
    row.reference_type = "PLAY"
    row.reference_id = "play-1"
    row.description = None
    row.created_at = datetime.now(UTC)
    return row


def _play_row(**kwargs):
    row = MagicMock()
    row.id = kwargs.get("id", "play-1")
    row.user_id = kwargs.get("user_id", "user-1")
    row.category_id = kwargs.get("category_id", 1)
    row.stake_cents = kwargs.get("stake_cents", 50)
    row.state = kwargs.get("state", "PURCHASED")
    row.is_win = kwargs.get("is_win")
    row.tier_id = kwargs.get("tier_id")
    row.prize_cents = kwargs.get("prize_cents", 0)
    row.rtp_bps = kwargs.get("rtp_bps")
    row.grid = kwargs.get("grid")
    row.coverage_bps = kwargs.get("coverage_bps", 0)
    row.credited_cents = kwargs.get("credited_cents", 0)
    row.settlement_reason = kwargs.get("settlement_reason")
    row.created_at = datetime.now(UTC)
    row.revealed_at = None
    row.settled_at = None
    return row


@pytest.fixture
def db():
    return MagicMock()


@pytest.fixture
def repo() -> PlayLedgerRepository:
    return PlayLedgerRepository()


def _params(db, call: int) -> dict:
    return db.execute.call_args_list[call].args[1]


class TestReserve:
    async def test_ok_debits_and_writes_stake_entry(self, db, repo) -> None:
        db.execute = AsyncMock(
            side_effect=[_result(_play_row()), _result(_account_row(950)), _result(_ledger_row())]
        )

        result = await repo.reserve(db, "user-1", "play-1", 1, 50)

        assert result.status == ReserveStatus.OK
        assert result.ok
        assert result.play is not None and result.play.id == "play-1"
        assert result.account is not None and result.account.balance_cents == 950
        assert _params(db, 1) == {"user_id": "user-1", "amount": 50}
        ledger = _params(db, 2)
        assert ledger["entry_type"] == "PLAY_STAKE"
        assert ledger["amount"] == -50
        assert ledger["balance_after"] == 950
        assert ledger["reference_id"] == "play-1"

    async def test_duplicate_play_debits_nothing(self, db, repo) -> None:
        db.execute = AsyncMock(side_effect=[_result(None), _result(_play_row(state="SETTLED"))])

        result = await repo.reserve(db, "user-1", "play-1", 1, 50)

        assert result.status == ReserveStatus.DUPLICATE_PLAY
        assert result.play is not None and result.play.state == "SETTLED"
        assert db.execute.await_count == 2

    async def test_insufficient_funds(self, db, repo) -> None:
        db.execute = AsyncMock(
            side_effect=[_result(_play_row()), _result(None), _result(_account_row(20))]
        )

        result = await repo.reserve(db, "user-1", "play-1", 1, 50)

        assert result.status == ReserveStatus.INSUFFICIENT_FUNDS
        assert result.available_cents == 20
        assert not result.ok

    async def test_insufficient_funds_without_account(self, db, repo) -> None:
        db.execute = AsyncMock(side_effect=[_result(_play_row()), _result(None), _result(None)])

        result = await repo.reserve(db, "user-new", "play-1", 1, 50)

        assert result.status == ReserveStatus.INSUFFICIENT_FUNDS
        assert result.available_cents == 0


class TestRecordOutcome:
    async def test_writes_outcome_and_grid(self, db, repo) -> None:
        grid = ("pix-10",) * 3 + ("pix-1", "pix-1", "pix-2", "pix-2", "pix-5", "pix-5")
        row = _play_row(is_win=True, tier_id="pix-10", prize_cents=1000, grid=list(grid))
        db.execute = AsyncMock(return_value=_result(row))

        play = await repo.record_outcome(db, "play-1", _WIN, grid, 3000)

        params = _params(db, 0)
        assert params["is_win"] is True
        assert params["tier_id"] == "pix-10"
        assert params["prize_cents"] == 1000
        assert params["rtp_bps"] == 3000
        assert json.loads(params["grid"]) == list(grid)
        assert play.grid == list(grid)

    async def test_second_write_rejected(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_result(None))
        with pytest.raises(InternalError):
            await repo.record_outcome(db, "play-1", LOSS, ("a",) * 9, 3000)

    async def test_grid_read_back_from_json_string(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_result(_play_row(grid='["a", "b"]')))
        play = await repo.get_play(db, "play-1")
        assert play is not None
        assert play.grid == ["a", "b"]


class TestSettle:
    async def test_win_credits_prize_once(self, db, repo) -> None:
        settled = _play_row(state="SETTLED", is_win=True, tier_id="pix-10", prize_cents=1000,
                            credited_cents=1000)
        db.execute = AsyncMock(
            side_effect=[
                _result(settled),
                _result(_account_row(1950)),
                _result(_ledger_row(2, 1000, 1950)),
            ]
        )

        result = await repo.settle(db, "play-1", "user-1", _WIN)

        assert result.status == SettleStatus.OK
        assert result.credited_cents == 1000
        transition = _params(db, 0)
        assert transition["credited_cents"] == 1000
        assert transition["reason"] == "CLIENT_COMPLETE"
        assert _params(db, 1) == {"user_id": "user-1", "amount": 1000}
        assert _params(db, 2)["entry_type"] == "PRIZE_PAYOUT"

    async def test_loss_moves_no_money(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_result(_play_row(state="SETTLED", is_win=False)))

        result = await repo.settle(db, "play-1", "user-1", LOSS)

        assert result.status == SettleStatus.OK
        assert result.credited_cents == 0
        assert db.execute.await_count == 1

    async def test_replay_is_already_settled(self, db, repo) -> None:
        existing = _play_row(state="SETTLED", is_win=True, tier_id="pix-10", prize_cents=1000,
                             credited_cents=1000)
        db.execute = AsyncMock(side_effect=[_result(None), _result(existing)])

        result = await repo.settle(db, "play-1", "user-1", _WIN)

        assert result.status == SettleStatus.ALREADY_SETTLED
        assert result.credited_cents == 1000
        # no credit statement issued
        assert db.execute.await_count == 2

    async def test_unknown_play(self, db, repo) -> None:
        db.execute = AsyncMock(side_effect=[_result(None), _result(None)])
        result = await repo.settle(db, "ghost", "user-1", _WIN)
        assert result.status == SettleStatus.UNKNOWN_PLAY

    async def test_foreign_play_is_unknown(self, db, repo) -> None:
        foreign = _play_row(user_id="user-2", state="PURCHASED", is_win=True)
        db.execute = AsyncMock(side_effect=[_result(None), _result(foreign)])
        result = await repo.settle(db, "play-1", "user-1", _WIN)
        assert result.status == SettleStatus.UNKNOWN_PLAY

    async def test_reconciled_reason_passed_through(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_result(_play_row(state="SETTLED", is_win=False)))
        await repo.settle(db, "play-1", "user-1", LOSS, SettlementReason.RECONCILED_FORFEIT)
        assert _params(db, 0)["reason"] == "RECONCILED_FORFEIT"


class TestSettleWithRefund:
    async def test_refunds_stake(self, db, repo) -> None:
        db.execute = AsyncMock(
            side_effect=[
                _result(_play_row(is_win=False)),
                _result(_play_row(state="SETTLED", credited_cents=50)),
                _result(_account_row(1000)),
                _result(_ledger_row(3, 50, 1000)),
            ]
        )

        result = await repo.settle_with_refund(db, "play-1", "user-1")

        assert result.status == SettleStatus.OK
        assert result.credited_cents == 50
        assert _params(db, 1)["reason"] == "RECONCILED_REFUND"
        assert _params(db, 3)["entry_type"] == "STAKE_REFUND"

    async def test_missing_play(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_result(None))
        result = await repo.settle_with_refund(db, "ghost", "user-1")
        assert result.status == SettleStatus.UNKNOWN_PLAY


class TestAccounts:
    async def test_balance_of_missing_account_is_zero(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_result(None))
        assert await repo.balance_of(db, "user-new") == 0

    async def test_deposit_upserts_and_logs(self, db, repo) -> None:
        db.execute = AsyncMock(
            side_effect=[_result(_account_row(1000)), _result(_ledger_row(1, 1000, 1000))]
        )

        account, entry = await repo.deposit(db, "user-1", 1000)

        assert account.balance_cents == 1000
        assert entry.id == 1
        assert _params(db, 1)["entry_type"] == "DEPOSIT"

    async def test_credit_without_account_is_internal_error(self, db, repo) -> None:
        db.execute = AsyncMock(side_effect=[_result(_play_row(state="SETTLED")), _result(None)])
        with pytest.raises(InternalError):
            await repo.settle(db, "play-1", "user-1", _WIN)


class TestListQueries:
    async def test_list_stale_plays(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_result(rows=[_play_row(id="a"), _play_row(id="b")]))
        plays = await repo.list_stale_plays(db, datetime.now(UTC), 10)
        assert [p.id for p in plays] == ["a", "b"]

    async def test_list_ledger_entries(self, db, repo) -> None:
        db.execute = AsyncMock(return_value=_result(rows=[_ledger_row(5)]))
        entries = await repo.list_ledger_entries(db, "user-1", None, 21, "PLAY_STAKE")
        assert entries[0].id == 5
        assert _params(db, 0)["entry_type"] == "PLAY_STAKE"
