"""
Baseline agents.

RandomAgent plays a uniformly random legal column. It is the reference
opponent for evaluating the MCTS agent.
"""
from typing import Callable, Optional
import random

from connect_ai.core.board import Action
from connect_ai.core.game import GameState


class RandomAgent:
    """
    Agent that selects actions randomly.

    This agent serves as a baseline for comparison with the search agent.
    """

    def __init__(self, name: str = "Random Agent", rng: Optional[random.Random] = None):
        """
        Initialize the random agent.

        Args:
            name: Name of the agent
            rng: Random source (defaults to a fresh unseeded one)
        """
        self.name = name
        self.rng = rng if rng is not None else random.Random()

    def select_action(self, state: GameState, player_id: int) -> Action:
        """
        Select a random valid action.

        Args:
            state: Current game state
            player_id: ID of the player making the decision

        Returns:
            Randomly selected action
        """
        valid_actions = state.get_valid_actions()
        if not valid_actions:
            raise ValueError(f"No valid actions for player {int(player_id)}")

        return self.rng.choice(valid_actions)

    def get_action_callback(self) -> Callable[[GameState, int], Action]:
        return lambda state, player_id: self.select_action(state, player_id)

    def __str__(self) -> str:
        return f"{self.name} (random)"
