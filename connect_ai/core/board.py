"""
Board snapshots for the connection game.

This module defines the Action placed by a player and the BoardSnapshot the
search manipulates. A snapshot is a private copy of the grid together with
the fixed "me"/"opponent" identities of one search and the player to move.
Derived positions are always produced from a copy, so the live game is never
touched by the search.
"""
from __future__ import annotations
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence

import numpy as np

from connect_ai.core.constants import (
    Cell, CELL_SYMBOLS, DEFAULT_TARGET, PLAYERS, other_player
)


@dataclass(frozen=True)
class Action:
    """A piece dropped into `column`, landing on `row`."""
    column: int
    row: int

    def __str__(self) -> str:
        return f"column {self.column} (row {self.row})"


class BoardSnapshot:
    """
    Copy of a board position used to simulate hypothetical futures.

    The grid is indexed ``grid[x, y]`` with ``y = 0`` the bottom row. The
    dimensions never change and a cell, once filled, is never emptied.
    """

    def __init__(
        self,
        grid: np.ndarray,
        me: int,
        opponent: Optional[int] = None,
        current_player: Optional[int] = None,
        target: int = DEFAULT_TARGET,
    ):
        """
        Initialize a snapshot.

        Args:
            grid: Board of shape (width, height) holding Cell values
            me: Identity of the searching player
            opponent: Identity of the other player (derived from `me` if omitted)
            current_player: Player to move (defaults to `me`)
            target: Number of pieces in a line needed to win
        """
        self.grid = np.asarray(grid, dtype=np.int8)
        if self.grid.ndim != 2:
            raise ValueError("grid must be two-dimensional")
        if target < 1:
            raise ValueError("target must be positive")

        self.me = Cell(me)
        self.opponent = Cell(opponent) if opponent is not None else other_player(me)
        if self.me not in PLAYERS or self.opponent not in PLAYERS:
            raise ValueError("me and opponent must both be players, not EMPTY")
        if self.me == self.opponent:
            raise ValueError("me and opponent must be different players")

        self.current_player = Cell(current_player) if current_player is not None else self.me
        if self.current_player not in (self.me, self.opponent):
            raise ValueError("current_player must be me or opponent")
        self.target = target

    @classmethod
    def empty(
        cls,
        width: int,
        height: int,
        me: int = Cell.PLAYER_A,
        target: int = DEFAULT_TARGET,
    ) -> 'BoardSnapshot':
        """Create a snapshot of an empty board with `me` to move."""
        if width <= 0 or height <= 0:
            raise ValueError("board dimensions must be positive")
        return cls(np.zeros((width, height), dtype=np.int8), me=me, target=target)

    @classmethod
    def from_game(cls, state: Any, player_id: int) -> 'BoardSnapshot':
        """
        Load a snapshot from a live game.

        Only the board size, the target length and the occupant of each cell
        are read from `state`; the searching player is `player_id` and it is
        assumed to be their turn.

        Args:
            state: Object exposing width, height, target and get_piece(x, y)
            player_id: Identity of the player who is deciding

        Returns:
            BoardSnapshot owned by the caller
        """
        grid = np.zeros((state.width, state.height), dtype=np.int8)
        for x in range(state.width):
            for y in range(state.height):
                grid[x, y] = int(state.get_piece(x, y))

        return cls(grid, me=player_id, target=state.target)

    @classmethod
    def from_rows(
        cls,
        rows: Sequence[str],
        me: int = Cell.PLAYER_A,
        current_player: Optional[int] = None,
        target: int = DEFAULT_TARGET,
    ) -> 'BoardSnapshot':
        """
        Build a snapshot from a text picture of the board.

        `rows` lists the board from the top row down, one character per
        column: ``.`` empty, ``X`` PLAYER_A, ``O`` PLAYER_B. Whitespace is
        ignored.
        """
        symbols = {symbol: cell for cell, symbol in CELL_SYMBOLS.items()}
        cleaned = ["".join(row.split()) for row in rows]
        if not cleaned or len({len(row) for row in cleaned}) != 1:
            raise ValueError("rows must be non-empty and of equal length")

        width, height = len(cleaned[0]), len(cleaned)
        grid = np.zeros((width, height), dtype=np.int8)
        for i, row in enumerate(cleaned):
            y = height - 1 - i
            for x, char in enumerate(row):
                if char not in symbols:
                    raise ValueError(f"Unknown cell symbol {char!r}")
                grid[x, y] = symbols[char]

        return cls(grid, me=me, current_player=current_player, target=target)

    @property
    def width(self) -> int:
        return self.grid.shape[0]

    @property
    def height(self) -> int:
        return self.grid.shape[1]

    def in_bounds(self, x: int, y: int) -> bool:
        return 0 <= x < self.width and 0 <= y < self.height

    def get_piece(self, x: int, y: int) -> Cell:
        """
        Get the occupant of a cell.

        Raises:
            IndexError: If (x, y) is off the board
        """
        if not self.in_bounds(x, y):
            raise IndexError(f"Cell ({x}, {y}) is outside a {self.width}x{self.height} board")
        return Cell(int(self.grid[x, y]))

    def is_empty(self) -> bool:
        """Check whether no piece has been placed yet."""
        return not bool(self.grid.any())

    def clone(self) -> 'BoardSnapshot':
        """Deep copy of this snapshot."""
        return BoardSnapshot(
            self.grid.copy(),
            me=self.me,
            opponent=self.opponent,
            current_player=self.current_player,
            target=self.target,
        )

    def apply_action(self, action: Action) -> None:
        """
        Place the current player's piece in place.

        Raises:
            IndexError: If the action is off the board
            ValueError: If the target cell is already occupied
        """
        if self.get_piece(action.column, action.row) != Cell.EMPTY:
            raise ValueError(f"Cell for {action} is already occupied")
        self.grid[action.column, action.row] = self.current_player

    def next_turn(self) -> Cell:
        """
        Hand the move to the other player.

        Returns:
            The new current player
        """
        self.current_player = self.opponent if self.current_player == self.me else self.me
        return self.current_player

    def result(self, action: Action) -> 'BoardSnapshot':
        """
        Get the position reached by playing `action`.

        Returns:
            New snapshot with the piece placed and the mover swapped
        """
        child = self.clone()
        child.apply_action(action)
        child.next_turn()
        return child

    def rows(self) -> List[str]:
        """Text rows of the board, top row first."""
        return [
            "".join(CELL_SYMBOLS[Cell(int(self.grid[x, y]))] for x in range(self.width))
            for y in range(self.height - 1, -1, -1)
        ]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, BoardSnapshot):
            return NotImplemented
        return (
            self.me == other.me
            and self.current_player == other.current_player
            and self.target == other.target
            and np.array_equal(self.grid, other.grid)
        )

    __hash__ = None  # mutable

    def __str__(self) -> str:
        header = " ".join(str(x % 10) for x in range(self.width))
        body = "\n".join(" ".join(row) for row in self.rows())
        return f"{body}\n{header}"

    def __repr__(self) -> str:
        return (f"BoardSnapshot({self.width}x{self.height}, target={self.target}, "
                f"me={self.me.name}, to_move={self.current_player.name})")
