from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Tuple

from baccarat.cards import Card, parse_cards
from baccarat.clock import VirtualScheduler
from baccarat.game import RoundEngine
from baccarat.models import TableConfig


@dataclass
class RecordingGateway:
    """Collects everything the engine publishes, in order."""

    snapshots: List[Dict[str, object]] = field(default_factory=list)
    timers: List[int] = field(default_factory=list)
    ledgers: List[Dict[str, Dict[str, object]]] = field(default_factory=list)

    def publish_snapshot(self, snapshot: Dict[str, object]) -> None:
        self.snapshots.append(snapshot)

    def publish_timer(self, seconds: int) -> None:
        self.timers.append(seconds)

    def publish_ledger(self, participants: Dict[str, Dict[str, object]]) -> None:
        self.ledgers.append(participants)

    def statuses(self) -> List[str]:
        return [snapshot["status"] for snapshot in self.snapshots]


def create_engine(
    *,
    players: int = 0,
    seed: int = 42,
    betting_time: int = 20,
    result_show_ms: int = 5_000,
    decks: int = 8,
    starting_balance: int = 10_000,
) -> Tuple[RoundEngine, RecordingGateway, VirtualScheduler]:
    """Build an engine on a virtual clock, optionally with seated players."""
    gateway = RecordingGateway()
    clock = VirtualScheduler()
    config = TableConfig(
        betting_time=betting_time,
        result_show_ms=result_show_ms,
        decks=decks,
        starting_balance=starting_balance,
    )
    engine = RoundEngine(config, gateway, clock, rng=random.Random(seed))
    for idx in range(players):
        engine.on_connect(f"player{idx}")
    return engine, gateway, clock


def stack_shoe(engine: RoundEngine, labels: Iterable[str], filler: int = 40) -> List[Card]:
    """Put ``labels`` on top of the shoe, followed by enough tens to skip the reshuffle."""
    cards = parse_cards(labels) + parse_cards(["10S"] * filler)
    engine.state.shoe.preload(cards)
    return cards


def finish_betting(engine: RoundEngine, clock: VirtualScheduler) -> None:
    """Advance the virtual clock through the rest of the betting window."""
    clock.advance(engine.snapshot.timer)


def play_rounds(engine: RoundEngine, clock: VirtualScheduler, rounds: int) -> None:
    for _ in range(rounds):
        current = engine.snapshot.round_id
        assert clock.run_until(lambda: engine.snapshot.round_id > current)
