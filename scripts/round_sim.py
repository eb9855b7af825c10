#!/usr/bin/env python3
"""Play many baccarat rounds offline on a virtual clock.

Random bettors join the table, place one wager per round during the betting
window, and the engine runs without any real delays. Useful for eyeballing
outcome frequencies and the house take.

Example:
    python scripts/round_sim.py --players 6 --rounds 500 --seed 7
"""

from __future__ import annotations

import argparse
import logging
import random
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

from baccarat.clock import VirtualScheduler
from baccarat.game import RoundEngine
from baccarat.models import Phase, Side, TableConfig

LOGGER = logging.getLogger("round_sim")


@dataclass
class TallyGateway:
    snapshots: int = 0
    ticks: int = 0
    ledger_updates: int = 0
    outcomes: Counter = field(default_factory=Counter)

    def publish_snapshot(self, snapshot: Dict[str, object]) -> None:
        self.snapshots += 1
        if snapshot["status"] == Phase.RESULT.value:
            self.outcomes[snapshot["result"]] += 1

    def publish_timer(self, seconds: int) -> None:
        self.ticks += 1

    def publish_ledger(self, participants: Dict[str, Dict[str, object]]) -> None:
        self.ledger_updates += 1


def place_random_wagers(engine: RoundEngine, identities: List[str], rng: random.Random, max_stake: int) -> int:
    staked = 0
    for identity in identities:
        participant = engine.ledger.get(identity)
        if participant is None or participant.balance <= 0:
            continue
        side = rng.choices([Side.PLAYER, Side.BANKER, Side.TIE], weights=[45, 45, 10])[0]
        amount = rng.randint(1, min(max_stake, participant.balance))
        if engine.place_wager(identity, side, amount).accepted:
            staked += amount
    return staked


def main() -> None:
    parser = argparse.ArgumentParser(description="Offline baccarat round simulator")
    parser.add_argument("--players", type=int, default=4)
    parser.add_argument("--rounds", type=int, default=200)
    parser.add_argument("--max-stake", type=int, default=500)
    parser.add_argument("--decks", type=int, default=8)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--log-level", default="WARNING")
    args = parser.parse_args()

    logging.basicConfig(level=getattr(logging, args.log_level.upper(), logging.WARNING))

    rng = random.Random(args.seed)
    config = TableConfig(decks=args.decks)
    gateway = TallyGateway()
    clock = VirtualScheduler()
    engine = RoundEngine(config, gateway, clock, rng=random.Random(rng.random()))
    identities = [engine.on_connect(f"bot{idx:04d}").identity for idx in range(args.players)]

    engine.start()
    total_staked = 0
    house_take = 0
    for _ in range(args.rounds):
        total_staked += place_random_wagers(engine, identities, rng, args.max_stake)
        current = engine.snapshot.round_id
        clock.run_until(lambda: engine.snapshot.round_id > current)
        house_take -= sum(settlement.net for settlement in engine.state.last_settlements)
    engine.stop()

    played = sum(gateway.outcomes.values())
    LOGGER.info("Simulated %s rounds in %.0f virtual seconds", played, clock.now)

    print(f"Rounds played: {played}")
    for side in Side:
        count = gateway.outcomes.get(side.value, 0)
        share = count / played if played else 0.0
        print(f"  {side.value:<6} {count:>6}  ({share:.2%})")
    print(f"Total staked: {total_staked}")
    print(f"House take:   {house_take} ({(house_take / total_staked) if total_staked else 0.0:.2%} of stakes)")
    print(f"Last history: {''.join(engine.snapshot.history)}")


if __name__ == "__main__":
    main()
