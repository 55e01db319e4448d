"""
Rules of the connection game.

This module provides the move generator and the terminal/win detector shared
by the live game and the search:
- Legal moves are one per column that is not full, landing on the lowest
  empty row, in ascending column order.
- A player wins with `target` of their pieces in a line along one of the
  four directions in DIRECTIONS.
- A position is terminal once someone has won or the board is full.
"""
from typing import List, Optional, Tuple

import numpy as np

from connect_ai.core.constants import Cell, DIRECTIONS, OUT_OF_BOUNDS
from connect_ai.core.board import Action, BoardSnapshot


def get_legal_columns(grid: np.ndarray) -> np.ndarray:
    """Columns whose top cell is still empty, ascending."""
    return np.flatnonzero(grid[:, -1] == Cell.EMPTY)


def get_legal_actions(snapshot: BoardSnapshot) -> List[Action]:
    """
    Get every legal placement for a snapshot.

    The order is ascending column index; tree children are created in the
    same order, so an action and the child it produced share an index.

    Args:
        snapshot: Position to generate moves for

    Returns:
        List of actions (empty when the board is full)
    """
    return get_grid_actions(snapshot.grid)


def get_grid_actions(grid: np.ndarray) -> List[Action]:
    """Legal placements on a raw grid; see get_legal_actions."""
    columns = get_legal_columns(grid)
    if columns.size == 0:
        return []

    # Pieces stack upward, so the landing row is the first empty cell from the bottom
    rows = np.argmax(grid[columns] == Cell.EMPTY, axis=1)
    return [Action(int(column), int(row)) for column, row in zip(columns, rows)]


def is_board_full(grid: np.ndarray) -> bool:
    return get_legal_columns(grid).size == 0


def find_winning_run(grid: np.ndarray, target: int) -> Optional[Tuple[int, int, int]]:
    """
    Find the first line of `target` pieces owned by one player.

    Every occupied cell is tried as the start of a run along each direction.
    A run matches when all of its cells are on the board and hold the same
    player as the start cell. Runs are tried in order of x, then y, then the
    direction order of DIRECTIONS, and the first match is returned.

    Args:
        grid: Board of shape (width, height)
        target: Run length needed to win

    Returns:
        (x, y, direction index) of the first matching run, or None
    """
    if target < 1:
        raise ValueError("target must be positive")

    width, height = grid.shape
    pad = target - 1
    padded = np.pad(grid, pad, mode="constant", constant_values=OUT_OF_BOUNDS)
    occupied = grid != Cell.EMPTY

    matches = np.empty((width, height, len(DIRECTIONS)), dtype=bool)
    for index, (dx, dy) in enumerate(DIRECTIONS):
        run = occupied.copy()
        for step in range(1, target):
            ox, oy = pad + step * dx, pad + step * dy
            run &= padded[ox:ox + width, oy:oy + height] == grid
        matches[:, :, index] = run

    flat = matches.ravel()
    first = int(np.argmax(flat))
    if not flat[first]:
        return None

    x, y, direction = np.unravel_index(first, matches.shape)
    return int(x), int(y), int(direction)


def check_grid_winner(grid: np.ndarray, target: int) -> Optional[Cell]:
    """Owner of the first winning run on a raw grid, or None."""
    run = find_winning_run(grid, target)
    if run is None:
        return None
    x, y, _ = run
    return Cell(int(grid[x, y]))


def check_winner(snapshot: BoardSnapshot, target: Optional[int] = None) -> Optional[Cell]:
    """
    Decide who, if anyone, has won a position.

    Args:
        snapshot: Position to evaluate
        target: Run length (defaults to the snapshot's own target)

    Returns:
        Winning player, or None if there is no winner
    """
    return check_grid_winner(snapshot.grid, snapshot.target if target is None else target)


def is_terminal(snapshot: BoardSnapshot, target: Optional[int] = None) -> bool:
    """
    Check whether a position is finished.

    A position is terminal when somebody has won or no legal move remains
    (full board, draw).
    """
    if check_winner(snapshot, target) is not None:
        return True
    return is_board_full(snapshot.grid)


def get_outcome(snapshot: BoardSnapshot, target: Optional[int] = None) -> Tuple[bool, Optional[Cell]]:
    """
    Evaluate a position once.

    Returns:
        Tuple of (terminal, winner)
    """
    winner = check_winner(snapshot, target)
    if winner is not None:
        return True, winner
    return is_board_full(snapshot.grid), None
