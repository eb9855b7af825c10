from __future__ import annotations

import logging
import random
import uuid
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Protocol

from .cards import Shoe, ShoeExhausted
from .clock import Scheduler, TimerHandle
from .evaluator import play_hand
from .ledger import Ledger
from .models import Participant, Phase, RoundSnapshot, Settlement, TableConfig, WagerResult

LOGGER = logging.getLogger("baccarat.engine")

# RoundEngine owns one table's state and its clock. No networking lives here;
# every outward notification goes through the Gateway.


class Gateway(Protocol):
    def publish_snapshot(self, snapshot: Dict[str, object]) -> None: ...

    def publish_timer(self, seconds: int) -> None: ...

    def publish_ledger(self, participants: Dict[str, Dict[str, object]]) -> None: ...


@dataclass
class TableState:
    # Everything one table mutates: shoe, balances and the visible round.
    shoe: Shoe
    ledger: Ledger
    snapshot: RoundSnapshot = field(default_factory=RoundSnapshot)
    last_settlements: List[Settlement] = field(default_factory=list)


class RoundEngine:
    """Drives the BETTING -> DEALING -> RESULT cycle of a single baccarat table."""

    def __init__(
        self,
        config: TableConfig,
        gateway: Gateway,
        scheduler: Scheduler,
        rng: Optional[random.Random] = None,
    ) -> None:
        config.validate()
        self.config = config
        self.gateway = gateway
        self.scheduler = scheduler
        self.state = TableState(shoe=Shoe(config.decks, rng=rng), ledger=Ledger(config))
        self.running = False
        self.halted = False
        self._wake: Optional[TimerHandle] = None

    @property
    def snapshot(self) -> RoundSnapshot:
        return self.state.snapshot

    @property
    def ledger(self) -> Ledger:
        return self.state.ledger

    @property
    def phase(self) -> Phase:
        return self.state.snapshot.status

    # Lifecycle -------------------------------------------------------

    def start(self) -> None:
        if self.running:
            raise RuntimeError("Round engine already running")
        if self.halted:
            raise RuntimeError("Round engine halted after a fatal error")
        self.running = True
        self._begin_betting()

    def stop(self) -> None:
        if self._wake is not None:
            self._wake.cancel()
            self._wake = None
        self.running = False
        # A round cut short never settles, so its stakes go back.
        if self.ledger.outstanding():
            refunds = self.ledger.refund_open()
            LOGGER.info(
                "Table stopped in round %s; refunded %s open wagers (%s units)",
                self.snapshot.round_id,
                len(refunds),
                sum(refund.credit for refund in refunds),
            )
            self._publish_ledger()

    # Participant API -------------------------------------------------

    def on_connect(self, identity: Optional[str] = None) -> Participant:
        participant = self.ledger.join(identity or uuid.uuid4().hex)
        LOGGER.info("Participant %s joined as %s", participant.identity, participant.display_name)
        self._publish_ledger()
        return participant

    def on_disconnect(self, identity: str) -> None:
        participant = self.ledger.leave(identity)
        if participant is None:
            return
        if participant.wager is not None:
            LOGGER.info(
                "Participant %s left with an open %s wager of %s (not refunded)",
                identity,
                participant.wager.side.value,
                participant.wager.amount,
            )
        else:
            LOGGER.info("Participant %s left", identity)
        self._publish_ledger()

    def set_display_name(self, identity: str, name: str) -> bool:
        if not self.ledger.rename(identity, name):
            return False
        self._publish_ledger()
        return True

    def place_wager(self, identity: str, side: object, amount: object) -> WagerResult:
        result = self.ledger.accept_wager(identity, side, amount, self.phase)
        if not result.accepted:
            LOGGER.debug(
                "Rejected wager participant=%s side=%s amount=%s reason=%s",
                identity,
                side,
                amount,
                result.reason.value if result.reason else None,
            )
            return result
        LOGGER.debug("Accepted wager participant=%s side=%s amount=%s", identity, side, amount)
        self._publish_ledger()
        return result

    # Phase transitions -----------------------------------------------

    def _begin_betting(self) -> None:
        snapshot = self.snapshot
        snapshot.reset_for_round()
        snapshot.status = Phase.BETTING
        snapshot.round_id += 1
        snapshot.timer = self.config.betting_time
        LOGGER.info("Round %s open for betting (%ss)", snapshot.round_id, snapshot.timer)
        self._publish_snapshot()
        self._schedule(1.0, self._tick)

    def _tick(self) -> None:
        self._wake = None
        snapshot = self.snapshot
        snapshot.timer = max(snapshot.timer - 1, 0)
        self.gateway.publish_timer(snapshot.timer)
        if snapshot.timer > 0:
            self._schedule(1.0, self._tick)
            return

        snapshot.status = Phase.DEALING
        self._publish_snapshot()
        try:
            self._deal()
        except ShoeExhausted:
            self.halted = True
            self.running = False
            LOGGER.exception("Shoe exhausted mid-deal in round %s; halting table", snapshot.round_id)
            raise

    def _deal(self) -> None:
        state = self.state
        snapshot = state.snapshot
        state.shoe.ensure_ready(self.config.min_cards_before_shuffle)

        hand = play_hand(state.shoe)
        snapshot.player_hand = list(hand.player)
        snapshot.banker_hand = list(hand.banker)
        snapshot.player_score = hand.player_score
        snapshot.banker_score = hand.banker_score
        snapshot.result = hand.outcome
        snapshot.history.insert(0, hand.code)
        del snapshot.history[self.config.history_limit :]

        state.last_settlements = state.ledger.settle(hand.outcome)
        LOGGER.info(
            "Round %s result %s (player=%s banker=%s natural=%s, %s wagers settled)",
            snapshot.round_id,
            hand.outcome.value,
            hand.player_score,
            hand.banker_score,
            hand.natural,
            len(state.last_settlements),
        )
        self._publish_ledger()

        snapshot.status = Phase.RESULT
        self._publish_snapshot()
        self._schedule(self.config.result_show_ms / 1000, self._begin_betting)

    # Helpers ---------------------------------------------------------

    def _schedule(self, delay: float, callback) -> None:
        if not self.running:
            return
        self._wake = self.scheduler.call_later(delay, callback)

    def _publish_snapshot(self) -> None:
        self.gateway.publish_snapshot(self.snapshot.to_dict())

    def _publish_ledger(self) -> None:
        self.gateway.publish_ledger(self.ledger.snapshot())
