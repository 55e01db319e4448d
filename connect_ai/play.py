#!/usr/bin/env python
"""
Interactive command-line interface for playing against the AI.

Example usage:
    # Play against the MCTS agent (five seconds per move)
    connect-play --opponent mcts

    # Play first against a random agent on a larger board
    connect-play --opponent random --human-first --width 9 --height 7 --target 5

    # Watch the MCTS agent play a random agent
    connect-play --watch --iterations 2000
"""
import argparse
import os
import random
import sys
import time
from typing import Optional

from connect_ai.agents import RandomAgent
from connect_ai.core.board import Action
from connect_ai.core.constants import (
    Cell, CELL_SYMBOLS, DEFAULT_WIDTH, DEFAULT_HEIGHT, DEFAULT_TARGET, DEFAULT_TIME_LIMIT
)
from connect_ai.core.game import Game, GameResult, GameState
from connect_ai.mcts.agent import MCTSAgent
from connect_ai.mcts.config import MCTSConfig


# ANSI color codes for terminal output
class Colors:
    RESET = "\033[0m"
    BOLD = "\033[1m"
    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"

    @staticmethod
    def piece(cell: Cell) -> str:
        """Get ANSI color code for a piece."""
        if cell == Cell.PLAYER_A:
            return Colors.RED
        elif cell == Cell.PLAYER_B:
            return Colors.YELLOW
        return Colors.RESET


def parse_args(argv=None):
    """Parse command-line arguments for game configuration."""
    parser = argparse.ArgumentParser(description="Play a connection game against AI agents")

    # Opponent configuration
    parser.add_argument("--opponent", type=str, default="mcts",
                        choices=["mcts", "random"],
                        help="Type of AI opponent")
    parser.add_argument("--watch", action="store_true",
                        help="Watch the MCTS agent play the opponent instead of playing")

    # MCTS configuration
    parser.add_argument("--time-limit", type=float, default=DEFAULT_TIME_LIMIT,
                        help="Seconds per MCTS move")
    parser.add_argument("--iterations", type=int, default=None,
                        help="Fixed number of MCTS iterations per move (overrides --time-limit)")
    parser.add_argument("--seed", type=int, default=None,
                        help="Random seed")

    # Game configuration
    parser.add_argument("--width", type=int, default=DEFAULT_WIDTH, help="Number of columns")
    parser.add_argument("--height", type=int, default=DEFAULT_HEIGHT, help="Number of rows")
    parser.add_argument("--target", type=int, default=DEFAULT_TARGET,
                        help="Pieces in a line needed to win")
    parser.add_argument("--human-first", action="store_true",
                        help="Human player goes first")
    parser.add_argument("--verbose", action="store_true",
                        help="Show search information")

    return parser.parse_args(argv)


def build_config(args) -> MCTSConfig:
    """MCTS configuration from command-line arguments."""
    if args.iterations is not None:
        return MCTSConfig.fixed(args.iterations, seed=args.seed)
    return MCTSConfig(time_limit=args.time_limit, seed=args.seed)


def create_opponent(args, name: str = "AI"):
    """Create an AI opponent based on command-line arguments."""
    if args.opponent == "random":
        return RandomAgent(name=f"Random {name}", rng=random.Random(args.seed))
    return MCTSAgent(config=build_config(args), name=f"MCTS {name}", verbose=args.verbose)


def render_board(state: GameState, last_action: Optional[Action] = None) -> str:
    """Text picture of the board, top row first, with column numbers below."""
    lines = []
    for y in range(state.height - 1, -1, -1):
        cells = []
        for x in range(state.width):
            cell = state.get_piece(x, y)
            symbol = CELL_SYMBOLS[cell]
            if cell != Cell.EMPTY:
                style = Colors.BOLD if last_action == Action(x, y) else ""
                symbol = f"{style}{Colors.piece(cell)}{symbol}{Colors.RESET}"
            cells.append(symbol)
        lines.append("| " + " ".join(cells) + " |")
    lines.append("  " + " ".join(str(x % 10) for x in range(state.width)))
    return "\n".join(lines)


def display_game_state(game: Game) -> None:
    """Print the board and whose turn it is."""
    state = game.state
    last_action = state.actions_history[-1][1] if state.actions_history else None

    print("\n" + render_board(state, last_action))
    if not state.game_over:
        player = state.current_player
        print(f"{Colors.piece(player)}{CELL_SYMBOLS[player]}{Colors.RESET} "
              f"{game.player_names[player]} to move")


def get_human_action(state: GameState) -> Action:
    """Ask the human for a column until a legal one is entered."""
    valid = {action.column: action for action in state.get_valid_actions()}
    columns = ", ".join(str(column) for column in sorted(valid))

    while True:
        choice = input(f"\nChoose a column ({columns}): ").strip()
        try:
            column = int(choice)
        except ValueError:
            print("Please enter a number.")
            continue

        if column in valid:
            return valid[column]
        print(f"Column {column} is not available.")


def announce_result(game: Game, human_player: Optional[Cell] = None) -> None:
    """Print the final board and the result."""
    display_game_state(game)
    print("\n" + Colors.BOLD + Colors.YELLOW + "=== GAME OVER ===" + Colors.RESET)

    state = game.state
    if state.result == GameResult.WINNER:
        name = game.player_names[state.winner]
        if human_player is None:
            print(Colors.BOLD + f"{name} wins!" + Colors.RESET)
        elif state.winner == human_player:
            print(Colors.BOLD + Colors.GREEN + "You win!" + Colors.RESET)
        else:
            print(Colors.BOLD + Colors.RED + f"{name} wins!" + Colors.RESET)
    else:
        print(Colors.BOLD + Colors.YELLOW + "It's a draw!" + Colors.RESET)

    stats = game.get_game_statistics()
    print(f"\nMoves played: {stats['moves']}")


def play_game(args) -> GameResult:
    """Play one game of a human against an AI opponent."""
    human_player = Cell.PLAYER_A if args.human_first else Cell.PLAYER_B
    ai_player = Cell.PLAYER_B if args.human_first else Cell.PLAYER_A

    opponent = create_opponent(args)
    names = ["You", opponent.name] if args.human_first else [opponent.name, "You"]
    game = Game(width=args.width, height=args.height, target=args.target, player_names=names)
    game.register_agent(ai_player, opponent.get_action_callback())

    while not game.state.game_over:
        display_game_state(game)

        if game.state.current_player == human_player:
            game.step(get_human_action(game.state))
        else:
            print(f"\n{opponent.name} is thinking...")
            game.step()

    announce_result(game, human_player)
    return game.state.result


def watch_game(args) -> GameResult:
    """Let the MCTS agent play the chosen opponent."""
    searcher = MCTSAgent(config=build_config(args), name="MCTS", verbose=args.verbose)
    opponent = create_opponent(args, name="Opponent")

    game = Game(width=args.width, height=args.height, target=args.target,
                player_names=[searcher.name, opponent.name])
    searcher.register_with_game(game, Cell.PLAYER_A)
    game.register_agent(Cell.PLAYER_B, opponent.get_action_callback())

    while not game.state.game_over:
        display_game_state(game)
        game.step()
        time.sleep(0.2)

    announce_result(game)
    return game.state.result


def main(argv=None):
    """Main function."""
    args = parse_args(argv)

    # Set up colored output for Windows
    if os.name == 'nt':
        os.system('color')

    print(Colors.BOLD + Colors.CYAN +
          f"Connect {args.target} on a {args.width}x{args.height} board" + Colors.RESET)

    try:
        if args.watch:
            watch_game(args)
            return

        play_game(args)
        while True:
            play_again = input("\nPlay again? (y/n): ").lower()
            if play_again in ['y', 'yes']:
                play_game(args)
            elif play_again in ['n', 'no']:
                print("Thanks for playing!")
                break
            else:
                print("Please enter 'y' or 'n'.")
    except KeyboardInterrupt:
        print("\nGame interrupted by user.")
        sys.exit(0)


if __name__ == "__main__":
    main()
