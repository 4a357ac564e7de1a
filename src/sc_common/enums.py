"""Global enums — must match DB CHECK constraints exactly."""

from enum import Enum


class PlayState(str, Enum):
    PURCHASED = "PURCHASED"
    REVEALED = "REVEALED"
    SETTLED = "SETTLED"


class ReserveStatus(str, Enum):
    OK = "OK"
    INSUFFICIENT_FUNDS = "INSUFFICIENT_FUNDS"
    DUPLICATE_PLAY = "DUPLICATE_PLAY"


class SettleStatus(str, Enum):
    OK = "OK"
    ALREADY_SETTLED = "ALREADY_SETTLED"
    UNKNOWN_PLAY = "UNKNOWN_PLAY"


class SettlementReason(str, Enum):
    CLIENT_COMPLETE = "CLIENT_COMPLETE"
    RECONCILED_HONOR = "RECONCILED_HONOR"
    RECONCILED_FORFEIT = "RECONCILED_FORFEIT"
    RECONCILED_REFUND = "RECONCILED_REFUND"


class OrphanPolicy(str, Enum):
    HONOR = "HONOR"
    FORFEIT = "FORFEIT"
    REFUND = "REFUND"


class LedgerEntryType(str, Enum):
    DEPOSIT = "DEPOSIT"
    PLAY_STAKE = "PLAY_STAKE"
    PRIZE_PAYOUT = "PRIZE_PAYOUT"
    STAKE_REFUND = "STAKE_REFUND"
