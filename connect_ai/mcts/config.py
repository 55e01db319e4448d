"""
Configuration for Monte Carlo Tree Search (MCTS).

This module defines the configuration parameters for the MCTS algorithm,
including the search budget, the UCB1 constants and the selection and
simulation policies.
"""
from dataclasses import dataclass, fields
from typing import Optional, Literal, ClassVar

from connect_ai.core.constants import (
    DEFAULT_TIME_LIMIT, DEFAULT_EXPLORATION, DEFAULT_EPSILON
)


@dataclass
class MCTSConfig:
    """
    Configuration parameters for Monte Carlo Tree Search.

    The search stops at whichever budget runs out first: the wall-clock
    `time_limit` or the fixed number of `iterations`. At least one of the
    two must be set.
    """
    # Search budget
    time_limit: Optional[float] = DEFAULT_TIME_LIMIT
    """Wall-clock seconds per decision (None = no limit)"""

    iterations: Optional[int] = None
    """Number of rollouts per decision (None = run until the time limit)"""

    # UCB1 parameters
    exploration_weight: float = DEFAULT_EXPLORATION
    """UCB1 exploration constant C"""

    epsilon: float = DEFAULT_EPSILON
    """Small constant added to visit counts in every UCB1 division"""

    # Strategy parameters
    selection_policy: Literal["first", "unvisited"] = "first"
    """
    How ties against the zero baseline are broken: 'first' keeps the first
    child when no UCB1 value is positive, 'unvisited' tries zero-visit
    children before consulting UCB1
    """

    simulation_policy: Literal["random", "first"] = "random"
    """Policy for the rollout phase ('random' or deterministic 'first')"""

    open_in_center: bool = True
    """Play the centre column on an empty board without searching"""

    seed: Optional[int] = None
    """Seed for the agent's random source (None = nondeterministic)"""

    # Constants
    SELECTION_POLICIES: ClassVar[tuple] = ("first", "unvisited")
    SIMULATION_POLICIES: ClassVar[tuple] = ("random", "first")

    def __post_init__(self):
        """Validate configuration parameters."""
        if self.time_limit is None and self.iterations is None:
            raise ValueError("either time_limit or iterations must be set")

        if self.time_limit is not None and self.time_limit <= 0:
            raise ValueError("time_limit must be positive or None")

        if self.iterations is not None and self.iterations < 0:
            raise ValueError("iterations must be non-negative or None")

        if self.exploration_weight < 0:
            raise ValueError("exploration_weight must be non-negative")

        if self.epsilon <= 0:
            raise ValueError("epsilon must be positive")

        if self.selection_policy not in self.SELECTION_POLICIES:
            raise ValueError("selection_policy must be 'first' or 'unvisited'")

        if self.simulation_policy not in self.SIMULATION_POLICIES:
            raise ValueError("simulation_policy must be 'random' or 'first'")

    @classmethod
    def default(cls) -> 'MCTSConfig':
        """
        Get the default configuration (five seconds per move).

        Returns:
            Default MCTSConfig object
        """
        return cls()

    @classmethod
    def fast(cls) -> 'MCTSConfig':
        """
        Get a configuration optimized for speed.

        Returns:
            Fast MCTSConfig object
        """
        return cls(time_limit=0.5)

    @classmethod
    def deep(cls) -> 'MCTSConfig':
        """
        Get a configuration optimized for deep search.

        Returns:
            Deep MCTSConfig object
        """
        return cls(time_limit=15.0)

    @classmethod
    def fixed(cls, iterations: int, **kwargs) -> 'MCTSConfig':
        """
        Get a configuration bounded only by an iteration count.

        Searches with a fixed count and a seeded random source are
        reproducible regardless of machine speed.

        Returns:
            MCTSConfig object without a time limit
        """
        return cls(time_limit=None, iterations=iterations, **kwargs)

    @classmethod
    def from_dict(cls, config_dict: dict) -> 'MCTSConfig':
        """
        Create a configuration from a dictionary.

        Args:
            config_dict: Dictionary of configuration parameters

        Returns:
            MCTSConfig object
        """
        # Filter out any keys that aren't valid parameters
        names = {f.name for f in fields(cls)}
        valid_params = {k: v for k, v in config_dict.items() if k in names}
        return cls(**valid_params)

    def to_dict(self) -> dict:
        """
        Convert the configuration to a dictionary.

        Returns:
            Dictionary of configuration parameters
        """
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def __str__(self) -> str:
        params = [f"{name}={value}" for name, value in self.to_dict().items()]
        return f"MCTSConfig({', '.join(params)})"
