"""
Connect AI - Monte Carlo Tree Search players for gravity-drop connection games.

This package provides the rules of a generalized connect-N game (configurable
board size and line length) together with an MCTS agent that plays it using
UCB1 selection and uniformly random rollouts.
"""

__version__ = "0.1.0"
__author__ = "Connect AI Team"

# Make key components available at package level
from connect_ai.core.game import Game, GameState, GameResult
from connect_ai.core.board import Action, BoardSnapshot
from connect_ai.core.constants import Cell
from connect_ai.mcts.agent import MCTSAgent
from connect_ai.mcts.config import MCTSConfig
from connect_ai.agents import RandomAgent

# Version info as a tuple for programmatic access
VERSION_INFO = tuple(map(int, __version__.split('.')))

# Default configuration
DEFAULT_CONFIG = {
    "width": 7,
    "height": 6,
    "target": 4,
    "time_limit": 5.0
}
