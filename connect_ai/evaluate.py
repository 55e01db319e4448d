#!/usr/bin/env python
"""
Evaluate the MCTS agent against a random baseline.

Games alternate which side moves first. Example usage:
    connect-evaluate --games 20 --iterations 500 --seed 0
"""
import argparse
import random
from typing import Any, Dict, Optional

from tqdm import tqdm

from connect_ai.agents import RandomAgent
from connect_ai.core.constants import (
    Cell, DEFAULT_WIDTH, DEFAULT_HEIGHT, DEFAULT_TARGET
)
from connect_ai.core.game import Game, GameResult
from connect_ai.mcts.agent import MCTSAgent
from connect_ai.mcts.config import MCTSConfig


def play_match(agent, opponent, agent_first: bool, width: int, height: int, target: int) -> Optional[Cell]:
    """
    Play one game between two agents.

    Returns:
        The agent's identity if it won, the opponent's if it lost, None for a draw
    """
    agent_id = Cell.PLAYER_A if agent_first else Cell.PLAYER_B
    opponent_id = Cell.PLAYER_B if agent_first else Cell.PLAYER_A

    game = Game(width=width, height=height, target=target)
    game.register_agent(agent_id, agent.get_action_callback())
    game.register_agent(opponent_id, opponent.get_action_callback())

    state = game.run_game()
    if state.result == GameResult.WINNER:
        return state.winner
    return None


def evaluate_agent(
    agent,
    opponent,
    num_games: int = 20,
    width: int = DEFAULT_WIDTH,
    height: int = DEFAULT_HEIGHT,
    target: int = DEFAULT_TARGET,
    show_progress: bool = True
) -> Dict[str, Any]:
    """
    Play a series of games and count the agent's results.

    Returns:
        Dictionary with wins, losses, draws and win_rate
    """
    wins = losses = draws = 0

    pbar = tqdm(total=num_games, desc="Evaluating", disable=not show_progress)
    for game_index in range(num_games):
        agent_first = game_index % 2 == 0
        agent_id = Cell.PLAYER_A if agent_first else Cell.PLAYER_B

        winner = play_match(agent, opponent, agent_first, width, height, target)
        if winner is None:
            draws += 1
        elif winner == agent_id:
            wins += 1
        else:
            losses += 1

        pbar.update(1)
        pbar.set_postfix({"win_rate": f"{wins / (game_index + 1):.2f}"})
    pbar.close()

    return {
        "games": num_games,
        "wins": wins,
        "losses": losses,
        "draws": draws,
        "win_rate": wins / max(1, num_games),
    }


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description="Evaluate the MCTS agent against a random agent")
    parser.add_argument("--games", type=int, default=20, help="Number of games to play")
    parser.add_argument("--time-limit", type=float, default=1.0, help="Seconds per MCTS move")
    parser.add_argument("--iterations", type=int, default=None,
                        help="Fixed number of MCTS iterations per move (overrides --time-limit)")
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH, help="Number of columns")
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT, help="Number of rows")
    parser.add_argument("--target", type=int, default=DEFAULT_TARGET,
                        help="Pieces in a line needed to win")
    parser.add_argument("--seed", type=int, default=None, help="Random seed")
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)

    if args.iterations is not None:
        config = MCTSConfig.fixed(args.iterations, seed=args.seed)
    else:
        config = MCTSConfig(time_limit=args.time_limit, seed=args.seed)

    agent = MCTSAgent(config=config, name="MCTS")
    opponent = RandomAgent(name="Random", rng=random.Random(args.seed))

    print(f"Evaluating {agent} against {opponent} for {args.games} games...")
    results = evaluate_agent(agent, opponent, args.games, args.width, args.height, args.target)

    print("\nResults:")
    print(f"  Wins: {results['wins']}")
    print(f"  Losses: {results['losses']}")
    print(f"  Draws: {results['draws']}")
    print(f"  Win rate: {results['win_rate']:.2%}")


if __name__ == "__main__":
    main()
