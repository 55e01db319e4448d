"""
Monte Carlo Tree Search Node.

This module defines the MCTSNode class which represents a node in the MCTS tree.
Each node owns one board snapshot, the statistics of the rollouts that passed
through it (visits, score) and its child nodes.
"""
from __future__ import annotations
from typing import List, Optional
import math

from connect_ai.core.board import Action, BoardSnapshot
from connect_ai.core.rules import get_legal_actions, is_terminal
from connect_ai.mcts.config import MCTSConfig


class MCTSNode:
    """
    A node in the Monte Carlo Tree Search.

    Children are created all at once by expand(), one per legal action and in
    the order the move generator returns them. The score is accumulated from
    the point of view of the snapshot's fixed "me" player at every depth.
    """

    def __init__(
        self,
        snapshot: BoardSnapshot,
        parent: Optional['MCTSNode'] = None,
        action: Optional[Action] = None,
        config: Optional[MCTSConfig] = None,
    ):
        """
        Initialize an MCTS node.

        Args:
            snapshot: The position this node represents (owned by the node)
            parent: The parent node (None for root)
            action: The action that led to this position (None for root)
            config: MCTS configuration parameters
        """
        self.snapshot = snapshot
        self.parent = parent
        self.action = action
        self.config = config or MCTSConfig()

        # Node statistics
        self.visits = 0
        self.score = 0.0
        self.children: List[MCTSNode] = []

    @classmethod
    def create_root(cls, snapshot: BoardSnapshot, config: Optional[MCTSConfig] = None) -> 'MCTSNode':
        """Create a parentless node with no statistics."""
        return cls(snapshot=snapshot, config=config)

    def is_leaf(self) -> bool:
        """A node is a leaf until it has been expanded with at least one child."""
        return not self.children

    def is_root(self) -> bool:
        return self.parent is None

    def is_terminal(self) -> bool:
        """
        Check if this node represents a finished position.

        Returns:
            True if someone has won or the board is full
        """
        return is_terminal(self.snapshot)

    @property
    def mean_score(self) -> float:
        """Average rollout result, 0.0 for an unvisited node."""
        return self.score / self.visits if self.visits else 0.0

    def expand(self) -> List['MCTSNode']:
        """
        Create one child per legal action.

        Each child holds the position reached by applying its action and
        passing the move to the other player. Calling expand() on a node that
        already has children changes nothing.

        Returns:
            The node's children (empty if the board is full)
        """
        if self.children:
            return self.children

        for action in get_legal_actions(self.snapshot):
            child = MCTSNode(
                snapshot=self.snapshot.result(action),
                parent=self,
                action=action,
                config=self.config,
            )
            self.children.append(child)

        return self.children

    def record(self, score_delta: float) -> None:
        """
        Count one rollout through this node.

        Args:
            score_delta: Rollout result from the root player's point of view
        """
        self.visits += 1
        self.score += score_delta

    def ucb_score(self, child: 'MCTSNode') -> float:
        """
        Calculate the UCB1 score for a child node.

        UCB1 = score / (visits + eps) + C * sqrt(ln(parent_visits) / (visits + eps))

        Unvisited children get a very large but finite exploration bonus. While
        the parent itself is unvisited the exploration term is zero.

        Args:
            child: Child node to calculate score for

        Returns:
            UCB1 score
        """
        eps = self.config.epsilon
        log_visits = math.log(self.visits) if self.visits > 0 else 0.0

        exploitation = child.score / (child.visits + eps)
        exploration = math.sqrt(log_visits / (child.visits + eps))

        return exploitation + self.config.exploration_weight * exploration

    def select_child_index(self, explore_unvisited: bool = True) -> int:
        """
        Pick the child to descend into.

        The child with the strictly greatest UCB1 value wins and the first one
        found keeps a tie. Under the 'first' policy the running maximum starts
        at zero, so child 0 is chosen whenever no value is positive. Under the
        'unvisited' policy the first zero-visit child is taken outright and the
        maximum is a plain argmax; `explore_unvisited=False` skips the
        zero-visit shortcut when choosing the final move.

        Returns:
            Index into self.children
        """
        if not self.children:
            raise ValueError("Cannot select child from node with no children")

        best_value = 0.0
        if self.config.selection_policy == "unvisited":
            if explore_unvisited:
                for index, child in enumerate(self.children):
                    if child.visits == 0:
                        return index
            best_value = -math.inf

        best_index = 0
        for index, child in enumerate(self.children):
            value = self.ucb_score(child)
            if value > best_value:
                best_index, best_value = index, value

        return best_index

    def select_child(self) -> 'MCTSNode':
        """
        Select a child node using the UCB1 formula.

        Returns:
            Selected child node
        """
        return self.children[self.select_child_index()]

    def depth(self) -> int:
        """Number of edges between this node and the root."""
        depth, current = 0, self.parent
        while current is not None:
            depth += 1
            current = current.parent
        return depth

    def __str__(self) -> str:
        return (f"MCTSNode(action={self.action}, "
                f"visits={self.visits}, "
                f"score={self.score:.0f}, "
                f"children={len(self.children)})")

    __repr__ = __str__
