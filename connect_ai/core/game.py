"""
Game state and flow management for the connection game.

This module defines the live game the AI players take part in:
- GameState: the board, the player to move and the result so far
- Game: manager for turn order, agent callbacks and game statistics
- Helper functions for creating and simulating games

Pieces drop to the lowest empty row of the chosen column and a player wins
with `target` pieces in a line. Board size and line length are configurable.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Tuple
import random
import time
from enum import Enum, auto

import numpy as np

from connect_ai.core.constants import (
    Cell, PLAYERS, DEFAULT_WIDTH, DEFAULT_HEIGHT, DEFAULT_TARGET, other_player
)
from connect_ai.core.board import Action
from connect_ai.core.rules import check_grid_winner, get_grid_actions, is_board_full


class GameResult(Enum):
    """Enum representing possible game results."""
    IN_PROGRESS = auto()
    WINNER = auto()  # Game has a winner
    DRAW = auto()  # Board filled without a winning line


@dataclass
class GameState:
    """
    Complete representation of a game in progress.

    The grid is indexed ``grid[x, y]`` with ``y = 0`` the bottom row.
    """
    grid: np.ndarray
    target: int = DEFAULT_TARGET
    current_player: Cell = Cell.PLAYER_A

    # Game state
    turn_count: int = 0
    actions_history: List[Tuple[Cell, Action]] = field(default_factory=list)
    game_over: bool = False
    winner: Optional[Cell] = None
    result: GameResult = GameResult.IN_PROGRESS

    # Statistics
    start_time: float = field(default_factory=time.time)
    end_time: Optional[float] = None

    @classmethod
    def new(
        cls,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        target: int = DEFAULT_TARGET
    ) -> 'GameState':
        """Create the state of a game that has not started yet."""
        if width <= 0 or height <= 0:
            raise ValueError("board dimensions must be positive")
        if target < 1:
            raise ValueError("target must be positive")
        return cls(grid=np.zeros((width, height), dtype=np.int8), target=target)

    @property
    def width(self) -> int:
        return self.grid.shape[0]

    @property
    def height(self) -> int:
        return self.grid.shape[1]

    def get_dimensions(self) -> Tuple[int, int]:
        return self.width, self.height

    def get_piece(self, x: int, y: int) -> Cell:
        """
        Get the occupant of a cell.

        Raises:
            IndexError: If (x, y) is off the board
        """
        if not (0 <= x < self.width and 0 <= y < self.height):
            raise IndexError(f"Cell ({x}, {y}) is outside a {self.width}x{self.height} board")
        return Cell(int(self.grid[x, y]))

    def get_valid_actions(self) -> List[Action]:
        """Get all legal placements for the player to move."""
        if self.game_over:
            return []
        return get_grid_actions(self.grid)

    def drop_row(self, column: int) -> int:
        """
        Find where a piece dropped into `column` would land.

        Raises:
            ValueError: If the column does not exist or is full
        """
        if not 0 <= column < self.width:
            raise ValueError(f"Column {column} does not exist")
        empty = np.flatnonzero(self.grid[column] == Cell.EMPTY)
        if empty.size == 0:
            raise ValueError(f"Column {column} is full")
        return int(empty[0])

    def apply_action(self, player_id: int, action: Action) -> bool:
        """
        Apply an action to the game state.

        Args:
            player_id: Player placing the piece
            action: Placement to apply

        Returns:
            True if the action was applied, False if it is not legal
        """
        if self.game_over or player_id != self.current_player:
            return False
        if not 0 <= action.column < self.width:
            return False
        if self.grid[action.column, -1] != Cell.EMPTY:
            return False
        if self.drop_row(action.column) != action.row:
            return False

        self.grid[action.column, action.row] = player_id
        self.actions_history.append((Cell(player_id), action))
        self._check_game_end()
        return True

    def _check_game_end(self) -> None:
        """End the game if the last placement completed a line or filled the board."""
        winner = check_grid_winner(self.grid, self.target)
        if winner is not None:
            self.winner = winner
            self.result = GameResult.WINNER
        elif is_board_full(self.grid):
            self.result = GameResult.DRAW
        else:
            return

        self.game_over = True
        self.end_time = time.time()

    def next_turn(self) -> Cell:
        """
        Advance to the next player's turn.

        Returns:
            The new current player
        """
        self.current_player = other_player(self.current_player)

        # A full round has been played once the first player is back on move
        if self.current_player == PLAYERS[0]:
            self.turn_count += 1

        return self.current_player

    def clone(self) -> 'GameState':
        """Deep copy of the state."""
        return GameState(
            grid=self.grid.copy(),
            target=self.target,
            current_player=self.current_player,
            turn_count=self.turn_count,
            actions_history=list(self.actions_history),
            game_over=self.game_over,
            winner=self.winner,
            result=self.result,
            start_time=self.start_time,
            end_time=self.end_time,
        )

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert the game state to a dictionary for serialization.

        Returns:
            Dictionary representation of the game state
        """
        return {
            "width": self.width,
            "height": self.height,
            "target": self.target,
            "grid": self.grid.tolist(),
            "current_player": int(self.current_player),
            "turn_count": self.turn_count,
            "actions_history": [
                (int(player), action.column, action.row)
                for player, action in self.actions_history
            ],
            "game_over": self.game_over,
            "winner": int(self.winner) if self.winner is not None else None,
            "result": self.result.name,
        }


AgentCallback = Callable[[GameState, int], Action]


class Game:
    """
    Manager for the flow of one game.

    This class handles setup, turn order and hands the move to registered
    agents. It is the collaborator AI players read the board from and
    submit their placements to.
    """
    def __init__(
        self,
        width: int = DEFAULT_WIDTH,
        height: int = DEFAULT_HEIGHT,
        target: int = DEFAULT_TARGET,
        player_names: Optional[List[str]] = None
    ):
        """
        Initialize a new game.

        Args:
            width: Number of columns
            height: Number of rows
            target: Pieces in a line needed to win
            player_names: Names for PLAYER_A and PLAYER_B
        """
        self.width = width
        self.height = height
        self.target = target

        if player_names is None:
            self.player_names = {player: f"Player {i+1}" for i, player in enumerate(PLAYERS)}
        else:
            if len(player_names) != len(PLAYERS):
                raise ValueError("Exactly two player names are required")
            self.player_names = dict(zip(PLAYERS, player_names))

        self.state = GameState.new(width, height, target)

        # Map from player ID to agent callback function
        self.agent_callbacks: Dict[Cell, AgentCallback] = {}

    def reset(self) -> GameState:
        """
        Reset the game to a new initial state.

        Returns:
            New game state
        """
        self.state = GameState.new(self.width, self.height, self.target)
        return self.state

    def register_agent(self, player_id: int, agent_callback: AgentCallback) -> None:
        """
        Register an AI agent for a player.

        The callback takes the game state and the player ID and returns an action.

        Args:
            player_id: PLAYER_A or PLAYER_B
            agent_callback: Function that selects an action given the game state
        """
        self.agent_callbacks[Cell(player_id)] = agent_callback

    def place_piece(self, column: int) -> Action:
        """
        Drop a piece for the player to move into `column`.

        Returns:
            The action that was applied

        Raises:
            ValueError: If the game is over or the column cannot take a piece
        """
        if self.state.game_over:
            raise ValueError("Game is already over")

        action = Action(column, self.state.drop_row(column))
        self.step(action)
        return action

    def step(self, action: Optional[Action] = None) -> Tuple[GameState, bool]:
        """
        Advance the game by one placement.

        If no action is provided, the agent registered for the current player
        is asked for one.

        Args:
            action: Optional action to apply

        Returns:
            Tuple of (new game state, whether the game is over)
        """
        if self.state.game_over:
            return self.state, True

        current_player = self.state.current_player

        if action is None and current_player in self.agent_callbacks:
            action = self.agent_callbacks[current_player](self.state, current_player)

        if action is None:
            raise ValueError("No action provided and no agent callback registered for current player")

        if not self.state.apply_action(current_player, action):
            raise ValueError(f"Invalid action {action} for player {current_player.name}")

        if self.state.game_over:
            return self.state, True

        self.state.next_turn()

        return self.state, self.state.game_over

    def run_game(self, max_turns: Optional[int] = None) -> GameState:
        """
        Run the game until completion or max turns.

        This method requires both players to have agent callbacks registered.

        Args:
            max_turns: Optional limit on full rounds

        Returns:
            Final game state
        """
        for player in PLAYERS:
            if player not in self.agent_callbacks:
                raise ValueError(f"No agent callback registered for {player.name}")

        while not self.state.game_over:
            if max_turns is not None and self.state.turn_count >= max_turns:
                break
            self.step()

        return self.state

    def get_game_statistics(self) -> Dict[str, Any]:
        """
        Get statistics about the current game.

        Returns:
            Dictionary of game statistics
        """
        state = self.state
        stats: Dict[str, Any] = {
            "turns": state.turn_count,
            "moves": len(state.actions_history),
            "result": state.result.name,
            "board": f"{state.width}x{state.height}",
            "target": state.target,
        }

        if state.end_time is not None:
            stats["duration"] = state.end_time - state.start_time

        if state.winner is not None:
            stats["winner"] = int(state.winner)
            stats["winner_name"] = self.player_names[state.winner]

        return stats


def create_game(
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    target: int = DEFAULT_TARGET,
    player_names: Optional[List[str]] = None
) -> Game:
    """
    Create a new game.

    Args:
        width: Number of columns
        height: Number of rows
        target: Pieces in a line needed to win
        player_names: Names for both players

    Returns:
        Game object
    """
    return Game(
        width=width,
        height=height,
        target=target,
        player_names=player_names
    )


def simulate_random_game(
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    target: int = DEFAULT_TARGET,
    random_seed: Optional[int] = None
) -> GameState:
    """
    Simulate a game between two uniformly random players.

    Returns:
        Final game state
    """
    rng = random.Random(random_seed)
    game = create_game(width=width, height=height, target=target)

    for player in PLAYERS:
        game.register_agent(player, lambda state, player_id: rng.choice(state.get_valid_actions()))

    return game.run_game()
