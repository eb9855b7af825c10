from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional

from .cards import Card


class Phase(str, Enum):
    BETTING = "BETTING"
    DEALING = "DEALING"
    RESULT = "RESULT"


class Side(str, Enum):
    PLAYER = "PLAYER"
    BANKER = "BANKER"
    TIE = "TIE"


class RejectReason(str, Enum):
    UNKNOWN_PARTICIPANT = "UNKNOWN_PARTICIPANT"
    WRONG_PHASE = "WRONG_PHASE"
    INVALID_SIDE = "INVALID_SIDE"
    INVALID_AMOUNT = "INVALID_AMOUNT"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    ALREADY_WAGERED = "ALREADY_WAGERED"


@dataclass
class TableConfig:
    betting_time: int = 20
    result_show_ms: int = 5_000
    decks: int = 8
    min_cards_before_shuffle: int = 20
    starting_balance: int = 10_000
    history_limit: int = 20
    name_limit: int = 10

    def validate(self) -> None:
        if self.betting_time < 1:
            raise ValueError("betting_time must be at least 1 second")
        if self.result_show_ms < 0:
            raise ValueError("result_show_ms cannot be negative")
        if self.decks < 1:
            raise ValueError("decks must be at least 1")
        # A coup uses at most six cards, so the threshold must leave room for one.
        if self.min_cards_before_shuffle < 6:
            raise ValueError("min_cards_before_shuffle must be at least 6")
        if self.min_cards_before_shuffle > self.decks * 52:
            raise ValueError("min_cards_before_shuffle exceeds shoe size")
        if self.starting_balance < 0:
            raise ValueError("starting_balance cannot be negative")
        if self.history_limit < 1 or self.name_limit < 1:
            raise ValueError("history_limit and name_limit must be positive")


@dataclass
class Wager:
    side: Side
    amount: int

    def to_dict(self) -> Dict[str, object]:
        return {"type": self.side.value, "amount": self.amount}


@dataclass
class Participant:
    identity: str
    display_name: str
    balance: int
    wager: Optional[Wager] = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "id": self.identity,
            "nickname": self.display_name,
            "balance": self.balance,
            "currentBet": self.wager.to_dict() if self.wager else None,
        }


@dataclass
class WagerResult:
    accepted: bool
    reason: Optional[RejectReason] = None

    def to_dict(self) -> Dict[str, object]:
        return {"accepted": self.accepted, "reason": self.reason.value if self.reason else None}


@dataclass
class Settlement:
    identity: str
    side: Side
    amount: int
    credit: int

    @property
    def net(self) -> int:
        return self.credit - self.amount


@dataclass
class RoundSnapshot:
    status: Phase = Phase.BETTING
    timer: int = 0
    history: List[str] = field(default_factory=list)
    player_hand: List[Card] = field(default_factory=list)
    banker_hand: List[Card] = field(default_factory=list)
    player_score: int = 0
    banker_score: int = 0
    result: Optional[Side] = None
    round_id: int = 0

    def reset_for_round(self) -> None:
        self.player_hand = []
        self.banker_hand = []
        self.player_score = 0
        self.banker_score = 0
        self.result = None

    def to_dict(self) -> Dict[str, object]:
        return {
            "status": self.status.value,
            "timer": self.timer,
            "history": list(self.history),
            "hands": {
                "player": [card.to_dict() for card in self.player_hand],
                "banker": [card.to_dict() for card in self.banker_hand],
            },
            "scores": {"player": self.player_score, "banker": self.banker_score},
            "result": self.result.value if self.result else None,
            "roundId": self.round_id,
        }
