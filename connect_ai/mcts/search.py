"""
Monte Carlo Tree Search (MCTS) algorithm.

This module implements the search loop with the four standard phases:
1. Selection: Descend from the root by UCB1 until reaching a childless node
2. Expansion: Create all children of a node that has been visited before
3. Simulation: Play random moves from the node until the game is over
4. Backpropagation: Record the result on every node back up to the root

The loop runs until the time limit or the iteration budget is used up, and
the final move is the root child with the best UCB1 value. Every rollout
result is scored from the point of view of the searching player: +1 for a
win, -1 for a loss and 0 for a draw.
"""
from __future__ import annotations
from typing import Any, Callable, Dict, List, Optional, Tuple
import random
import time

from connect_ai.core.board import Action, BoardSnapshot
from connect_ai.core.constants import Cell
from connect_ai.core.rules import get_legal_actions, get_outcome
from connect_ai.mcts.node import MCTSNode
from connect_ai.mcts.config import MCTSConfig


RolloutPolicy = Callable[[BoardSnapshot, List[Action], random.Random], Action]


def random_rollout_policy(snapshot: BoardSnapshot, actions: List[Action], rng: random.Random) -> Action:
    """Pick a legal action uniformly at random."""
    return rng.choice(actions)


def first_action_policy(snapshot: BoardSnapshot, actions: List[Action], rng: random.Random) -> Action:
    """Always play the lowest open column."""
    return actions[0]


ROLLOUT_POLICIES: Dict[str, RolloutPolicy] = {
    "random": random_rollout_policy,
    "first": first_action_policy,
}


def mcts_search(
    snapshot: BoardSnapshot,
    config: Optional[MCTSConfig] = None,
    rng: Optional[random.Random] = None,
    rollout_policy: Optional[RolloutPolicy] = None,
    clock: Callable[[], float] = time.time
) -> Tuple[Action, Dict[str, Any]]:
    """
    Run Monte Carlo Tree Search to find the move to play.

    A fresh tree is built for the position and discarded afterwards.

    Args:
        snapshot: Current position, with the searching player to move
        config: MCTS configuration parameters
        rng: Random source for rollouts (defaults to one seeded from config.seed)
        rollout_policy: Overrides config.simulation_policy when given
        clock: Time source in seconds, checked once per iteration

    Returns:
        Tuple of (chosen action, search statistics)

    Raises:
        ValueError: If the position has no legal action
    """
    root, stats = build_tree(snapshot, config, rng, rollout_policy, clock)
    return finalize(root), stats


def build_tree(
    snapshot: BoardSnapshot,
    config: Optional[MCTSConfig] = None,
    rng: Optional[random.Random] = None,
    rollout_policy: Optional[RolloutPolicy] = None,
    clock: Callable[[], float] = time.time
) -> Tuple[MCTSNode, Dict[str, Any]]:
    """
    Create the root for a position and run the search on it.

    The root is expanded before the first iteration.

    Returns:
        Tuple of (root node, search statistics)
    """
    if config is None:
        config = MCTSConfig()

    root = MCTSNode.create_root(snapshot, config)
    if not root.expand():
        raise ValueError("Cannot search a position without legal actions")

    stats = run_search(root, config, rng, rollout_policy, clock)
    return root, stats


def run_search(
    root: MCTSNode,
    config: MCTSConfig,
    rng: Optional[random.Random] = None,
    rollout_policy: Optional[RolloutPolicy] = None,
    clock: Callable[[], float] = time.time
) -> Dict[str, Any]:
    """
    Repeat select, rollout and backpropagate until the budget runs out.

    Every iteration restarts from the root. The time limit is checked once
    at the start of each iteration; a started iteration always completes.

    Args:
        root: Root of the tree to grow
        config: MCTS configuration parameters
        rng: Random source for rollouts
        rollout_policy: Overrides config.simulation_policy when given
        clock: Time source in seconds

    Returns:
        Dictionary of search statistics
    """
    if rng is None:
        rng = random.Random(config.seed)
    if rollout_policy is None:
        rollout_policy = ROLLOUT_POLICIES[config.simulation_policy]

    stats: Dict[str, Any] = {
        "iterations": 0,
        "max_rollout_length": 0,
        "total_simulation_steps": 0,
        "time_elapsed": 0.0,
        "stopped_by": None,
    }

    start_time = clock()

    while True:
        if config.iterations is not None and stats["iterations"] >= config.iterations:
            stats["stopped_by"] = "iterations"
            break

        if config.time_limit is not None and clock() - start_time >= config.time_limit:
            stats["stopped_by"] = "time_limit"
            break

        # 1. Selection & Expansion: Find the node to roll out from
        node = select_node(root)

        # 2. Simulation: Play the position out
        result, steps = simulate_game(node, rng, rollout_policy)

        # 3. Backpropagation: Update statistics up the tree
        backpropagate(node, result)

        stats["iterations"] += 1
        stats["total_simulation_steps"] += steps
        stats["max_rollout_length"] = max(stats["max_rollout_length"], steps)

    stats["time_elapsed"] = clock() - start_time
    stats["iterations_per_second"] = stats["iterations"] / max(0.001, stats["time_elapsed"])
    stats["average_rollout_length"] = stats["total_simulation_steps"] / max(1, stats["iterations"])
    stats["node_count"] = count_nodes(root)
    stats["root_visits"] = root.visits
    stats["root_score"] = root.score
    stats["action_visits"] = {str(child.action.column): child.visits for child in root.children}
    stats["action_rewards"] = {
        str(child.action.column): child.mean_score
        for child in root.children if child.visits > 0
    }

    return stats


def select_node(root: MCTSNode) -> MCTSNode:
    """
    Select the node to roll out from.

    Descends from the root by UCB1 while the current node has children. At a
    childless node:
    - never visited: roll out the node itself
    - visited before: expand it and roll out its first child, or the node
      itself when it has no legal move left

    Args:
        root: Root node of the MCTS tree

    Returns:
        Node selected for simulation
    """
    current = root
    while current.children:
        current = current.select_child()

    if current.visits == 0:
        return current

    children = expand_node(current)
    if children:
        return children[0]

    return current


def expand_node(node: MCTSNode) -> List[MCTSNode]:
    """
    Expand a node by adding all its children.

    Args:
        node: Node to expand

    Returns:
        The node's children
    """
    return node.expand()


def score_result(winner: Optional[Cell], snapshot: BoardSnapshot) -> float:
    """Map a game outcome to +1, -1 or 0 for the snapshot's "me" player."""
    if winner == snapshot.me:
        return 1.0
    if winner == snapshot.opponent:
        return -1.0
    return 0.0


def simulate_game(
    node: MCTSNode,
    rng: random.Random,
    rollout_policy: RolloutPolicy = random_rollout_policy
) -> Tuple[float, int]:
    """
    Run a simulation from a node to estimate its value.

    Moves are drawn by `rollout_policy` from the legal actions until someone
    wins or the board is full. The node's own snapshot is left untouched.

    Args:
        node: Node to simulate from
        rng: Random source handed to the policy
        rollout_policy: Chooses one of the legal actions

    Returns:
        Tuple of (score for the searching player, number of moves played)
    """
    state = node.snapshot.clone()

    steps = 0
    terminal, winner = get_outcome(state)
    while not terminal:
        action = rollout_policy(state, get_legal_actions(state), rng)
        state.apply_action(action)
        state.next_turn()
        steps += 1
        terminal, winner = get_outcome(state)

    return score_result(winner, state), steps


def backpropagate(node: MCTSNode, result: float) -> None:
    """
    Update statistics up the tree.

    Every node from `node` up to and including the root gets one more visit
    and `result` added to its score.

    Args:
        node: Node to start backpropagation from
        result: Simulation result
    """
    current = node
    while current is not None:
        current.record(result)
        current = current.parent


def finalize(root: MCTSNode) -> Action:
    """
    Choose the move once the search is over.

    The root's children are ranked by UCB1 with the root's visit count as
    the parent term and the same tie-break as during selection.

    Returns:
        The action of the winning child
    """
    return root.children[root.select_child_index(explore_unvisited=False)].action


def count_nodes(node: MCTSNode) -> int:
    """
    Count the total number of nodes in the tree.

    Args:
        node: Root node of the tree

    Returns:
        Total number of nodes
    """
    count = 0
    stack = [node]
    while stack:
        current = stack.pop()
        count += 1
        stack.extend(current.children)
    return count


def get_principal_variation(root: MCTSNode, max_depth: int = 10) -> List[Tuple[Action, float]]:
    """
    Get the principal variation (most visited path) from the root.

    This is useful for analysis and debugging.

    Args:
        root: Root node of the MCTS tree
        max_depth: Maximum depth to explore

    Returns:
        List of (action, mean score) pairs along the principal variation
    """
    result = []
    current = root

    while current.children and len(result) < max_depth:
        best_child = max(current.children, key=lambda c: c.visits)
        if best_child.visits == 0:
            break

        result.append((best_child.action, best_child.mean_score))
        current = best_child

    return result


def get_action_statistics(root: MCTSNode) -> Dict[str, Dict[str, float]]:
    """
    Get statistics for all actions from the root.

    Returns:
        Dictionary mapping action strings to statistics
    """
    return {
        str(child.action): {
            "visits": child.visits,
            "score": child.score,
            "value": child.mean_score,
            "ucb": root.ucb_score(child),
        }
        for child in root.children
    }
