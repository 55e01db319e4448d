"""
Connect AI Core Package

This package contains the core game logic, including:
- Board snapshots and actions
- Move generation and win detection
- Game state and turn management
- Constants and enums

All core components can be imported directly from this package.
"""

# Game and game state
from connect_ai.core.game import (
    Game, GameState, GameResult,
    create_game, simulate_random_game
)

# Board snapshots and actions
from connect_ai.core.board import Action, BoardSnapshot

# Rules
from connect_ai.core.rules import (
    get_legal_actions, get_legal_columns, find_winning_run,
    check_winner, is_terminal, is_board_full, get_outcome
)

# Constants
from connect_ai.core.constants import (
    Cell, PLAYERS, DIRECTIONS,
    DEFAULT_WIDTH, DEFAULT_HEIGHT, DEFAULT_TARGET,
    other_player
)

__all__ = [
    # Game
    'Game', 'GameState', 'GameResult',
    'create_game', 'simulate_random_game',

    # Board
    'Action', 'BoardSnapshot',

    # Rules
    'get_legal_actions', 'get_legal_columns', 'find_winning_run',
    'check_winner', 'is_terminal', 'is_board_full', 'get_outcome',

    # Constants
    'Cell', 'PLAYERS', 'DIRECTIONS',
    'DEFAULT_WIDTH', 'DEFAULT_HEIGHT', 'DEFAULT_TARGET',
    'other_player'
]
