from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

LOGGER = logging.getLogger("baccarat.shoe")

RANKS = ("A", "2", "3", "4", "5", "6", "7", "8", "9", "10", "J", "Q", "K")
SUITS = ("H", "D", "C", "S")
CARD_VALUES = {
    "A": 1,
    "2": 2,
    "3": 3,
    "4": 4,
    "5": 5,
    "6": 6,
    "7": 7,
    "8": 8,
    "9": 9,
    "10": 0,
    "J": 0,
    "Q": 0,
    "K": 0,
}


class ShoeExhausted(RuntimeError):
    """Raised when a card is drawn from an empty shoe."""


@dataclass(frozen=True)
class Card:
    rank: str
    suit: str

    def __post_init__(self) -> None:
        if self.rank not in CARD_VALUES:
            raise ValueError(f"Invalid rank: {self.rank}")
        if self.suit not in SUITS:
            raise ValueError(f"Invalid suit: {self.suit}")

    @property
    def value(self) -> int:
        return CARD_VALUES[self.rank]

    @property
    def label(self) -> str:
        return f"{self.rank}{self.suit}"

    def to_dict(self) -> Dict[str, object]:
        return {"suit": self.suit, "rank": self.rank, "value": self.value}


def compose(decks: int) -> List[Card]:
    if decks < 1:
        raise ValueError("At least one deck required")
    return [Card(rank, suit) for _ in range(decks) for suit in SUITS for rank in RANKS]


def shuffle(cards: List[Card], rng: random.Random) -> List[Card]:
    # Fisher-Yates, walking down from the last index.
    for i in range(len(cards) - 1, 0, -1):
        j = rng.randint(0, i)
        cards[i], cards[j] = cards[j], cards[i]
    return cards


def parse_label(label: str) -> Card:
    if len(label) < 2:
        raise ValueError(f"Invalid card label: {label}")
    return Card(label[:-1], label[-1])


def parse_cards(labels: Iterable[str]) -> List[Card]:
    return [parse_label(label) for label in labels]


class Shoe:
    """Depleting pool of cards dealt from the end of the list."""

    def __init__(self, decks: int = 8, rng: Optional[random.Random] = None, cards: Optional[List[Card]] = None) -> None:
        self.decks = decks
        self.rng = rng or random.Random()
        self.cards: List[Card] = list(cards) if cards is not None else self._fresh()

    def _fresh(self) -> List[Card]:
        return shuffle(compose(self.decks), self.rng)

    def __len__(self) -> int:
        return len(self.cards)

    def draw(self) -> Card:
        if not self.cards:
            raise ShoeExhausted("Shoe is empty")
        return self.cards.pop()

    def reshuffle(self) -> None:
        self.cards = self._fresh()
        LOGGER.info("Reshuffled shoe (%s decks, %s cards)", self.decks, len(self.cards))

    def ensure_ready(self, min_cards: int) -> bool:
        if len(self.cards) >= min_cards:
            return False
        self.reshuffle()
        return True

    def preload(self, deal_order: Iterable[Card]) -> None:
        """Stack the shoe so cards come out in ``deal_order``."""
        self.cards = list(deal_order)[::-1]
