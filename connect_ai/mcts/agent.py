"""
Monte Carlo Tree Search Agent.

This module provides the MCTSAgent class, a ready-to-use AI player that uses
Monte Carlo Tree Search to choose its column. The agent reads the board from
the game, searches a private copy of it and submits exactly one placement
per decision. A fresh tree is built for every decision; only summary
statistics are kept afterwards.
"""
from typing import Any, Callable, Dict, List, Optional, Tuple
import json
import random
import time

from connect_ai.core.board import Action, BoardSnapshot
from connect_ai.core.game import Game, GameState
from connect_ai.core.rules import get_legal_actions
from connect_ai.mcts.config import MCTSConfig
from connect_ai.mcts.search import (
    build_tree, finalize, get_action_statistics, get_principal_variation
)


class MCTSAgent:
    """
    Monte Carlo Tree Search agent for playing the connection game.

    This agent uses MCTS to select actions. It can be configured with
    different parameters and provides statistics about its search process.
    """

    def __init__(
        self,
        config: Optional[MCTSConfig] = None,
        name: str = "MCTS Agent",
        verbose: bool = False,
        rng: Optional[random.Random] = None
    ):
        """
        Initialize an MCTS agent.

        Args:
            config: MCTS configuration parameters
            name: Name of the agent
            verbose: Whether to print detailed information during search
            rng: Random source for rollouts (defaults to one seeded from config.seed)
        """
        self.config = config or MCTSConfig()
        self.name = name
        self.verbose = verbose
        self.rng = rng if rng is not None else random.Random(self.config.seed)

        # Statistics from the most recent search
        self.last_stats: Dict[str, Any] = {}
        self.last_principal_variation: List[Tuple[Action, float]] = []
        self.last_action_statistics: Dict[str, Dict[str, float]] = {}

        # History of all actions and their statistics
        self.action_history: List[Tuple[Action, Dict[str, Any]]] = []

    def select_action(self, state: GameState, player_id: int) -> Action:
        """
        Select an action for the player to move.

        Args:
            state: Current game state
            player_id: ID of the player making the decision

        Returns:
            Selected action
        """
        if state.current_player != player_id:
            raise ValueError(f"Not player {int(player_id)}'s turn")

        return self.choose(BoardSnapshot.from_game(state, player_id))

    def choose(self, snapshot: BoardSnapshot) -> Action:
        """
        Decide the move for a snapshot with the searching player to move.

        Args:
            snapshot: Position to decide on

        Returns:
            Chosen action

        Raises:
            ValueError: If the position has no legal action
        """
        valid_actions = get_legal_actions(snapshot)
        if not valid_actions:
            raise ValueError("No legal actions: the board is full")

        # If there's only one valid action, no need to search
        if len(valid_actions) == 1:
            return self._record(valid_actions[0], {"iterations": 0, "forced_move": True})

        # Open in the middle of an empty board
        if self.config.open_in_center and snapshot.is_empty():
            center = snapshot.width // 2
            action = next(a for a in valid_actions if a.column == center)
            return self._record(action, {"iterations": 0, "opening_move": True})

        start_time = time.time()
        root, stats = build_tree(snapshot, self.config, self.rng)
        action = finalize(root)
        stats["total_time"] = time.time() - start_time

        self.last_principal_variation = get_principal_variation(root)
        self.last_action_statistics = get_action_statistics(root)

        self._record(action, stats)

        if self.verbose:
            self._print_search_info(action, stats)

        return action

    def take_turn(self, game: Game, player_id: int) -> Action:
        """
        Choose a column and play it in `game`.

        Returns:
            The action that was played
        """
        action = self.select_action(game.state, player_id)
        game.place_piece(action.column)
        return action

    def _record(self, action: Action, stats: Dict[str, Any]) -> Action:
        self.last_stats = stats
        self.action_history.append((action, stats))
        return action

    def _print_search_info(self, action: Action, stats: Dict[str, Any]) -> None:
        """
        Print information about the search.

        Args:
            action: Selected action
            stats: Search statistics
        """
        print(f"\n{self.name} selected: {action}")
        print(f"Iterations: {stats['iterations']} (stopped by {stats['stopped_by']})")
        print(f"Time: {stats['time_elapsed']:.3f}s ({stats['iterations_per_second']:.1f} it/s)")
        print(f"Nodes: {stats['node_count']}")
        print(f"Longest rollout: {stats['max_rollout_length']} moves")

        # Print top actions by visit count
        print("\nTop actions:")
        actions_by_visits = sorted(
            stats['action_visits'].items(),
            key=lambda x: x[1],
            reverse=True
        )
        for i, (column, visits) in enumerate(actions_by_visits[:5]):
            value = stats['action_rewards'].get(column, 0.0)
            print(f"{i+1}. column {column} - {visits} visits, {value:.3f} value")

    def get_action_callback(self) -> Callable[[GameState, int], Action]:
        """
        Get a callback function for selecting actions.

        This is useful for registering the agent with a Game object.

        Returns:
            Callback function that takes a game state and player ID and returns an action
        """
        return lambda state, player_id: self.select_action(state, player_id)

    def register_with_game(self, game: Game, player_id: int) -> None:
        """
        Register this agent with a game.

        Args:
            game: Game object
            player_id: ID of the player to register as
        """
        game.register_agent(player_id, self.get_action_callback())

    def get_last_statistics(self) -> Dict[str, Any]:
        return self.last_stats

    def get_principal_variation(self) -> List[Tuple[Action, float]]:
        """
        Get the principal variation (most visited path) from the last search.

        Returns:
            List of (action, value) pairs representing the principal variation
        """
        return self.last_principal_variation

    def get_action_statistics(self) -> Dict[str, Dict[str, float]]:
        return self.last_action_statistics

    def reset_statistics(self) -> None:
        """Reset all statistics."""
        self.last_stats = {}
        self.last_principal_variation = []
        self.last_action_statistics = {}
        self.action_history = []

    def save_statistics(self, filename: str) -> None:
        """
        Save statistics to a file.

        Args:
            filename: Name of the file to save to
        """
        # Convert actions to plain values for JSON serialization
        history = []
        for action, stats in self.action_history:
            history.append({
                "column": action.column,
                "row": action.row,
                "stats": {k: v for k, v in stats.items() if not isinstance(v, dict)}
            })

        data = {
            "agent_name": self.name,
            "config": self.config.to_dict(),
            "history": history,
            "total_actions": len(self.action_history)
        }

        with open(filename, 'w') as f:
            json.dump(data, f, indent=2)

    def __str__(self) -> str:
        if self.config.iterations is not None:
            budget = f"{self.config.iterations} iterations"
        else:
            budget = f"{self.config.time_limit}s"
        return f"{self.name} (MCTS, {budget})"


class MCTSAgentFactory:
    """
    Factory for creating MCTS agents with different configurations.
    """

    @staticmethod
    def create_fast() -> MCTSAgent:
        return MCTSAgent(config=MCTSConfig.fast(), name="Fast MCTS")

    @staticmethod
    def create_standard() -> MCTSAgent:
        return MCTSAgent(config=MCTSConfig.default(), name="Standard MCTS")

    @staticmethod
    def create_strong() -> MCTSAgent:
        return MCTSAgent(config=MCTSConfig.deep(), name="Strong MCTS")

    @staticmethod
    def create_custom(
        time_limit: Optional[float] = None,
        iterations: Optional[int] = 1000,
        exploration_weight: float = 2.0,
        selection_policy: str = "first",
        seed: Optional[int] = None,
        name: str = "Custom MCTS"
    ) -> MCTSAgent:
        """
        Create a custom MCTS agent.

        Args:
            time_limit: Optional time limit in seconds
            iterations: Optional number of MCTS iterations
            exploration_weight: UCB1 exploration parameter
            selection_policy: 'first' or 'unvisited'
            seed: Seed for the rollout random source
            name: Name of the agent

        Returns:
            MCTSAgent
        """
        config = MCTSConfig(
            time_limit=time_limit,
            iterations=iterations,
            exploration_weight=exploration_weight,
            selection_policy=selection_policy,
            seed=seed
        )
        return MCTSAgent(config=config, name=name)
