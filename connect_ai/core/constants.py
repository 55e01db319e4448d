"""
Constants for the connection game.

This module defines the cell values, default board geometry and the line
directions used by the rules and the search.
"""
from enum import IntEnum
from typing import Dict, Final, List, Tuple


class Cell(IntEnum):
    """Values a board cell can hold."""
    EMPTY = 0
    PLAYER_A = 1
    PLAYER_B = 2


# Both player identities, in turn order
PLAYERS: Final[List[Cell]] = [Cell.PLAYER_A, Cell.PLAYER_B]

# Characters used for text boards and fixtures
CELL_SYMBOLS: Final[Dict[Cell, str]] = {
    Cell.EMPTY: ".",
    Cell.PLAYER_A: "X",
    Cell.PLAYER_B: "O",
}

# Default board geometry (classic seven columns by six rows, four to win)
DEFAULT_WIDTH: Final[int] = 7
DEFAULT_HEIGHT: Final[int] = 6
DEFAULT_TARGET: Final[int] = 4

# Line directions checked from every occupied cell, in scan order:
# horizontal, diagonal, vertical, anti-diagonal
DIRECTIONS: Final[List[Tuple[int, int]]] = [
    (1, 0),
    (1, 1),
    (0, 1),
    (-1, 1),
]

# Padding value for cells outside the board; never equal to a player
OUT_OF_BOUNDS: Final[int] = -1

# AI settings
DEFAULT_TIME_LIMIT: Final[float] = 5.0  # Seconds per decision
DEFAULT_EXPLORATION: Final[float] = 2.0  # UCB1 exploration constant
DEFAULT_EPSILON: Final[float] = 1e-5  # Guards every UCB1 division


def other_player(player: int) -> Cell:
    """Return the identity of the player who is not `player`."""
    return Cell.PLAYER_B if player == Cell.PLAYER_A else Cell.PLAYER_A
