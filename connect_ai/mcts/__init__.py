"""
Monte Carlo Tree Search (MCTS) implementation for the connection game.

This package provides a complete MCTS agent that plays without any training
or evaluation heuristics. The MCTS algorithm works by:

1. Selection: Starting from the root node, descend by UCB1 until reaching a
   node without children.
2. Expansion: A node visited before gets one child per legal column.
3. Simulation: From the chosen node, play uniformly random moves to the end
   of the game.
4. Backpropagation: Add the result (+1 win, -1 loss, 0 draw) and one visit
   to every node on the path back to the root.

The search runs until its time limit or iteration budget is used up.
"""

from connect_ai.mcts.node import MCTSNode
from connect_ai.mcts.agent import MCTSAgent, MCTSAgentFactory
from connect_ai.mcts.search import (
    mcts_search,
    build_tree,
    run_search,
    select_node,
    expand_node,
    simulate_game,
    backpropagate,
    finalize,
    random_rollout_policy,
    first_action_policy
)
from connect_ai.mcts.config import MCTSConfig

# Default configuration
DEFAULT_CONFIG = MCTSConfig(
    time_limit=5.0,           # Seconds per move
    iterations=None,          # No fixed iteration budget
    exploration_weight=2.0,   # UCB1 exploration constant
    selection_policy="first", # Keep the first child when no UCB1 value is positive
    simulation_policy="random"  # Uniform random rollouts
)

__all__ = [
    'MCTSAgent',
    'MCTSAgentFactory',
    'MCTSNode',
    'MCTSConfig',
    'mcts_search',
    'build_tree',
    'run_search',
    'select_node',
    'expand_node',
    'simulate_game',
    'backpropagate',
    'finalize',
    'random_rollout_policy',
    'first_action_policy',
    'DEFAULT_CONFIG'
]
