"""Baccarat table primitives reused by the WebSocket host and the simulator."""

from .cards import CARD_VALUES, RANKS, SUITS, Card, Shoe, ShoeExhausted, compose, shuffle
from .clock import AsyncioScheduler, Scheduler, VirtualScheduler
from .evaluator import HandResult, banker_draws, decide_outcome, hand_score, is_natural, play_hand, player_draws
from .game import Gateway, RoundEngine, TableState
from .ledger import Ledger, payout_for
from .models import Participant, Phase, RejectReason, RoundSnapshot, Side, TableConfig, Wager, WagerResult

__all__ = [
    "CARD_VALUES",
    "RANKS",
    "SUITS",
    "Card",
    "Shoe",
    "ShoeExhausted",
    "compose",
    "shuffle",
    "AsyncioScheduler",
    "Scheduler",
    "VirtualScheduler",
    "HandResult",
    "banker_draws",
    "decide_outcome",
    "hand_score",
    "is_natural",
    "play_hand",
    "player_draws",
    "Gateway",
    "RoundEngine",
    "TableState",
    "Ledger",
    "payout_for",
    "Participant",
    "Phase",
    "RejectReason",
    "RoundSnapshot",
    "Side",
    "TableConfig",
    "Wager",
    "WagerResult",
]
