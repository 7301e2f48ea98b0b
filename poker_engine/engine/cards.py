"""Playing cards, the 52-card deck and the shuffle.

Cards travel through the store as two-character codes, rank then suit:
``"AH"`` is the ace of hearts, ``"TD"`` the ten of diamonds.
"""

from __future__ import annotations

import random
import secrets
from dataclasses import dataclass
from enum import Enum
from typing import Sequence


# =============================================================================
# Card Models
# =============================================================================


class Rank(Enum):
    """Card rank with numeric value and symbol."""

    ACE = (1, "A")
    TWO = (2, "2")
    THREE = (3, "3")
    FOUR = (4, "4")
    FIVE = (5, "5")
    SIX = (6, "6")
    SEVEN = (7, "7")
    EIGHT = (8, "8")
    NINE = (9, "9")
    TEN = (10, "T")
    JACK = (11, "J")
    QUEEN = (12, "Q")
    KING = (13, "K")

    @property
    def symbol(self) -> str:
        """Get single-character rank symbol."""
        return self._value_[1]

    @classmethod
    def from_symbol(cls, symbol: str) -> "Rank":
        """Parse rank from symbol (A, 2-9, T, J, Q, K)."""
        for rank in cls:
            if rank.symbol == symbol:
                return rank
        raise ValueError(f"Invalid rank symbol: {symbol}")


class Suit(Enum):
    """Card suit with symbol."""

    HEARTS = ("H", "♥")
    DIAMONDS = ("D", "♦")
    CLUBS = ("C", "♣")
    SPADES = ("S", "♠")

    @property
    def symbol(self) -> str:
        """Get single-character suit symbol (H, D, C, S)."""
        return self._value_[0]

    @property
    def unicode(self) -> str:
        """Get unicode suit symbol."""
        return self._value_[1]

    @classmethod
    def from_symbol(cls, symbol: str) -> "Suit":
        """Parse suit from symbol (H, D, C, S)."""
        for suit in cls:
            if suit.symbol == symbol:
                return suit
        raise ValueError(f"Invalid suit symbol: {symbol}")


@dataclass(frozen=True)
class Card:
    """Immutable playing card."""

    rank: Rank
    suit: Suit

    def __str__(self) -> str:
        """Return the store code, e.g. 'AH', 'TD'."""
        return f"{self.rank.symbol}{self.suit.symbol}"

    def __repr__(self) -> str:
        return f"Card({self})"

    @property
    def code(self) -> str:
        return str(self)

    @classmethod
    def from_code(cls, code: str) -> "Card":
        """Parse a card from its code.

        Raises:
            ValueError: If the code is not a valid two-character card
        """
        if len(code) != 2:
            raise ValueError(f"Card code must be 2 characters: {code}")
        return cls(rank=Rank.from_symbol(code[0]), suit=Suit.from_symbol(code[1]))


RANK_SYMBOLS = tuple(rank.symbol for rank in Rank)
SUIT_SYMBOLS = tuple(suit.symbol for suit in Suit)
DECK_SIZE = len(RANK_SYMBOLS) * len(SUIT_SYMBOLS)


# =============================================================================
# Deck
# =============================================================================


def new_deck() -> list[str]:
    """Return the 52 card codes in canonical order (suit-major, then A..K)."""
    return [str(Card(rank, suit)) for suit in Suit for rank in Rank]


def default_rng() -> random.Random:
    """A random source seeded from OS entropy, so hands differ across restarts."""
    return random.Random(secrets.randbits(128))


def shuffle(deck: Sequence[str], rng: random.Random) -> list[str]:
    """Return a uniformly random permutation of ``deck`` (Fisher-Yates).

    The input is not modified.
    """
    shuffled = list(deck)
    for i in range(len(shuffled) - 1, 0, -1):
        j = rng.randint(0, i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def create_shuffled_deck(rng: random.Random) -> list[str]:
    return shuffle(new_deck(), rng)


# =============================================================================
# Code helpers
# =============================================================================


def parse_card(code: str) -> tuple[str, str]:
    """Split a code into (rank, suit); malformed codes give ``("", "")``."""
    if len(code) != 2:
        return "", ""
    return code[0], code[1]


def is_valid_card(code: str) -> bool:
    rank, suit = parse_card(code)
    return rank in RANK_SYMBOLS and suit in SUIT_SYMBOLS


def format_card(code: str) -> str:
    """Render a code with its suit glyph, e.g. 'AH' -> 'A♥'."""
    rank, suit = parse_card(code)
    if not rank:
        return code
    try:
        return rank + Suit.from_symbol(suit).unicode
    except ValueError:
        return code


def format_cards(codes: Sequence[str]) -> list[str]:
    return [format_card(code) for code in codes]
