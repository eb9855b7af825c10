from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Sequence

from .cards import Card, Shoe
from .models import Side

# Banker third-card table keyed by banker score, listing the player
# third-card values that make the banker draw. Scores 0-2 always draw, 7 stands.
BANKER_DRAWS_ON = {
    3: frozenset({0, 1, 2, 3, 4, 5, 6, 7, 9}),
    4: frozenset({2, 3, 4, 5, 6, 7}),
    5: frozenset({4, 5, 6, 7}),
    6: frozenset({6, 7}),
}

OUTCOME_CODES = {Side.PLAYER: "P", Side.BANKER: "B", Side.TIE: "T"}


@dataclass
class HandResult:
    player: List[Card]
    banker: List[Card]
    natural: bool
    outcome: Side

    @property
    def player_score(self) -> int:
        return hand_score(self.player)

    @property
    def banker_score(self) -> int:
        return hand_score(self.banker)

    @property
    def code(self) -> str:
        return OUTCOME_CODES[self.outcome]


def hand_score(cards: Sequence[Card]) -> int:
    return sum(card.value for card in cards) % 10


def is_natural(cards: Sequence[Card]) -> bool:
    return len(cards) == 2 and hand_score(cards) >= 8


def player_draws(score: int) -> bool:
    return score <= 5


def banker_draws(banker_score: int, player_third_value: Optional[int]) -> bool:
    """Return True when the banker takes a third card.

    ``player_third_value`` is None when the player stood on two cards.
    """
    if player_third_value is None:
        return banker_score <= 5
    if banker_score <= 2:
        return True
    drawing_values = BANKER_DRAWS_ON.get(banker_score)
    if drawing_values is None:
        return False
    return player_third_value in drawing_values


def decide_outcome(player_score: int, banker_score: int) -> Side:
    if player_score > banker_score:
        return Side.PLAYER
    if banker_score > player_score:
        return Side.BANKER
    return Side.TIE


def play_hand(shoe: Shoe) -> HandResult:
    """Deal one coup from ``shoe``: two cards to the player, two to the banker, then third cards."""
    player = [shoe.draw(), shoe.draw()]
    banker = [shoe.draw(), shoe.draw()]

    natural = is_natural(player) or is_natural(banker)
    if not natural:
        player_third: Optional[Card] = None
        if player_draws(hand_score(player)):
            player_third = shoe.draw()
            player.append(player_third)
        third_value = player_third.value if player_third is not None else None
        if banker_draws(hand_score(banker), third_value):
            banker.append(shoe.draw())

    outcome = decide_outcome(hand_score(player), hand_score(banker))
    return HandResult(player=player, banker=banker, natural=natural, outcome=outcome)
