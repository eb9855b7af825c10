from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from .models import Participant, Phase, RejectReason, Settlement, Side, TableConfig, Wager, WagerResult

LOGGER = logging.getLogger("baccarat.ledger")

# Winning credit per staked unit, stake included, as (numerator, denominator).
# Banker pays 0.95:1; fractional units are kept by the house.
PAYOUT_RATIOS: Dict[Side, Tuple[int, int]] = {
    Side.PLAYER: (2, 1),
    Side.BANKER: (195, 100),
    Side.TIE: (9, 1),
}


def payout_for(wager: Wager, outcome: Side) -> int:
    """Amount credited back for ``wager`` once ``outcome`` is known."""
    if wager.side == outcome:
        numerator, denominator = PAYOUT_RATIOS[wager.side]
        return wager.amount * numerator // denominator
    if outcome == Side.TIE:
        # Player and banker bets push on a tie.
        return wager.amount
    return 0


class Ledger:
    """Balances and active wagers of everyone seated at the table."""

    def __init__(self, config: TableConfig) -> None:
        self.config = config
        self.participants: Dict[str, Participant] = {}

    def __contains__(self, identity: str) -> bool:
        return identity in self.participants

    def get(self, identity: str) -> Optional[Participant]:
        return self.participants.get(identity)

    def join(self, identity: str, display_name: Optional[str] = None) -> Participant:
        if identity in self.participants:
            raise ValueError(f"Participant already seated: {identity}")
        name = display_name if display_name is not None else f"Guest{identity[:4]}"
        participant = Participant(
            identity=identity,
            display_name=name[: self.config.name_limit],
            balance=self.config.starting_balance,
        )
        self.participants[identity] = participant
        return participant

    def leave(self, identity: str) -> Optional[Participant]:
        # Any debited wager leaves with the participant.
        return self.participants.pop(identity, None)

    def rename(self, identity: str, name: str) -> bool:
        participant = self.participants.get(identity)
        if participant is None:
            return False
        participant.display_name = name[: self.config.name_limit]
        return True

    def accept_wager(self, identity: str, side: object, amount: object, phase: Phase) -> WagerResult:
        participant = self.participants.get(identity)
        if participant is None:
            return WagerResult(False, RejectReason.UNKNOWN_PARTICIPANT)
        if phase != Phase.BETTING:
            return WagerResult(False, RejectReason.WRONG_PHASE)
        try:
            bet_side = Side(side)
        except (TypeError, ValueError):
            return WagerResult(False, RejectReason.INVALID_SIDE)
        # bool is an int subclass but never a stake.
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            return WagerResult(False, RejectReason.INVALID_AMOUNT)
        if participant.wager is not None:
            return WagerResult(False, RejectReason.ALREADY_WAGERED)
        if amount > participant.balance:
            return WagerResult(False, RejectReason.INSUFFICIENT_BALANCE)

        participant.balance -= amount
        participant.wager = Wager(side=bet_side, amount=amount)
        return WagerResult(True)

    def settle(self, outcome: Side) -> List[Settlement]:
        settlements: List[Settlement] = []
        for participant in self.participants.values():
            wager = participant.wager
            if wager is None:
                continue
            credit = payout_for(wager, outcome)
            participant.balance += credit
            participant.wager = None
            settlements.append(
                Settlement(identity=participant.identity, side=wager.side, amount=wager.amount, credit=credit)
            )
        return settlements

    def refund_open(self) -> List[Settlement]:
        """Return every open stake to its owner, e.g. when the table closes mid-round."""
        refunds: List[Settlement] = []
        for participant in self.participants.values():
            wager = participant.wager
            if wager is None:
                continue
            participant.balance += wager.amount
            participant.wager = None
            refunds.append(
                Settlement(identity=participant.identity, side=wager.side, amount=wager.amount, credit=wager.amount)
            )
        return refunds

    def outstanding(self) -> int:
        return sum(p.wager.amount for p in self.participants.values() if p.wager)

    def snapshot(self) -> Dict[str, Dict[str, object]]:
        return {identity: participant.to_dict() for identity, participant in self.participants.items()}
