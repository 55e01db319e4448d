#!/usr/bin/env python
"""
Tests for the MCTS node, search loop and agent.
"""
import itertools
import json
import math
import os
import random
import tempfile
import unittest

from connect_ai.core.board import Action, BoardSnapshot
from connect_ai.core.constants import Cell
from connect_ai.core.game import Game, GameState
from connect_ai.core.rules import get_legal_actions
from connect_ai.mcts.agent import MCTSAgent, MCTSAgentFactory
from connect_ai.mcts.config import MCTSConfig
from connect_ai.mcts.node import MCTSNode
from connect_ai.mcts.search import (
    backpropagate, build_tree, count_nodes, finalize, first_action_policy,
    get_action_statistics, get_principal_variation, mcts_search, select_node,
    simulate_game
)


# X to move. Column 5 wins at once; column 0 lets O win in column 5.
TACTICAL_ROWS = [
    ".OXXX.X",
    "XXOOXOX",
    "OOXXOOX",
    "XXOOXOO",
    "OOXXOXX",
    "XXOOXXO",
]


def walk(node):
    """Yield every node of a tree."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(current.children)


class TestMCTSConfig(unittest.TestCase):
    """Test case for MCTSConfig."""

    def test_defaults(self):
        config = MCTSConfig()
        self.assertEqual(config.time_limit, 5.0)
        self.assertIsNone(config.iterations)
        self.assertEqual(config.exploration_weight, 2.0)
        self.assertEqual(config.epsilon, 1e-5)
        self.assertEqual(config.selection_policy, "first")

    def test_fixed(self):
        config = MCTSConfig.fixed(100, seed=3)
        self.assertIsNone(config.time_limit)
        self.assertEqual(config.iterations, 100)
        self.assertEqual(config.seed, 3)

    def test_validation(self):
        with self.assertRaises(ValueError):
            MCTSConfig(time_limit=None, iterations=None)
        with self.assertRaises(ValueError):
            MCTSConfig(time_limit=0)
        with self.assertRaises(ValueError):
            MCTSConfig.fixed(-1)
        with self.assertRaises(ValueError):
            MCTSConfig(epsilon=0)
        with self.assertRaises(ValueError):
            MCTSConfig(selection_policy="best")
        with self.assertRaises(ValueError):
            MCTSConfig(simulation_policy="heavy")

    def test_dict_round_trip(self):
        config = MCTSConfig.fixed(50, exploration_weight=1.5, selection_policy="unvisited")
        data = config.to_dict()
        self.assertNotIn("SELECTION_POLICIES", data)

        data["unknown"] = True
        self.assertEqual(MCTSConfig.from_dict(data), config)


class TestMCTSNode(unittest.TestCase):
    """Test case for MCTSNode."""

    def setUp(self):
        self.root = MCTSNode.create_root(BoardSnapshot.empty(3, 3, target=3))

    def test_root_starts_empty(self):
        self.assertTrue(self.root.is_root())
        self.assertTrue(self.root.is_leaf())
        self.assertEqual(self.root.visits, 0)
        self.assertEqual(self.root.score, 0.0)
        self.assertEqual(self.root.mean_score, 0.0)

    def test_expand_follows_move_generator(self):
        children = self.root.expand()
        expected = get_legal_actions(self.root.snapshot)

        self.assertEqual([child.action for child in children], expected)
        for child in children:
            self.assertIs(child.parent, self.root)
            self.assertEqual(child.depth(), 1)
            self.assertEqual(child.visits, 0)
            self.assertEqual(child.snapshot.get_piece(child.action.column, child.action.row), Cell.PLAYER_A)
            self.assertEqual(child.snapshot.current_player, Cell.PLAYER_B)
            self.assertEqual(child.snapshot.me, Cell.PLAYER_A)

        # The parent position is untouched
        self.assertTrue(self.root.snapshot.is_empty())

    def test_expand_is_idempotent(self):
        first = list(self.root.expand())
        second = self.root.expand()
        self.assertEqual(len(second), 3)
        for a, b in zip(first, second):
            self.assertIs(a, b)

    def test_expand_full_board(self):
        node = MCTSNode.create_root(BoardSnapshot.from_rows(["XO", "OX"]))
        self.assertEqual(node.expand(), [])
        self.assertTrue(node.is_terminal())

    def test_record(self):
        self.root.record(1.0)
        self.root.record(-1.0)
        self.root.record(1.0)
        self.assertEqual(self.root.visits, 3)
        self.assertEqual(self.root.score, 1.0)
        self.assertAlmostEqual(self.root.mean_score, 1 / 3)

    def test_ucb_score(self):
        children = self.root.expand()
        self.root.visits = 4
        children[0].visits = 2
        children[0].score = 1.0

        eps = 1e-5
        expected = 1.0 / (2 + eps) + 2.0 * math.sqrt(math.log(4) / (2 + eps))
        self.assertAlmostEqual(self.root.ucb_score(children[0]), expected)

    def test_ucb_with_unvisited_parent(self):
        children = self.root.expand()
        children[1].visits = 1
        children[1].score = -1.0
        self.assertAlmostEqual(self.root.ucb_score(children[1]), -1.0 / (1 + 1e-5))
        self.assertEqual(self.root.ucb_score(children[0]), 0.0)

    def test_unvisited_children_dominate(self):
        children = self.root.expand()
        self.root.visits = 10
        children[1].visits = 10
        children[1].score = 10.0
        self.assertEqual(self.root.select_child_index(), 0)

    def test_first_policy_defaults_to_first_child(self):
        children = self.root.expand()
        children[0].visits = 1
        children[0].score = -1.0

        # No value is positive, so the first child keeps the lead
        self.assertEqual(self.root.select_child_index(), 0)

    def test_unvisited_policy(self):
        root = MCTSNode.create_root(
            BoardSnapshot.empty(3, 3, target=3),
            MCTSConfig.fixed(10, selection_policy="unvisited")
        )
        children = root.expand()
        children[0].visits = 1
        children[0].score = -1.0
        self.assertEqual(root.select_child_index(), 1)

        # Final ranking ignores the zero-visit shortcut
        children[1].visits = children[2].visits = 1
        children[2].score = -0.5
        root.visits = 3
        self.assertEqual(root.select_child_index(explore_unvisited=False), 1)

    def test_strict_comparison_keeps_first_of_ties(self):
        children = self.root.expand()
        self.root.visits = 6
        for child in children:
            child.visits = 2
            child.score = 1.0
        self.assertEqual(self.root.select_child_index(), 0)

    def test_select_from_leaf_raises(self):
        with self.assertRaises(ValueError):
            self.root.select_child_index()


class TestSearchPhases(unittest.TestCase):
    """Test case for the individual phases of one iteration."""

    def setUp(self):
        self.root = MCTSNode.create_root(BoardSnapshot.empty(4, 4))
        self.root.expand()

    def test_select_unvisited_leaf(self):
        node = select_node(self.root)
        self.assertIs(node, self.root.children[0])
        self.assertTrue(node.is_leaf())

    def test_select_expands_visited_leaf(self):
        leaf = self.root.children[0]
        backpropagate(leaf, 0.0)

        # With one root visit every value is zero and the first child is kept
        node = select_node(self.root)
        self.assertIs(node.parent, leaf)
        self.assertIs(node, leaf.children[0])
        self.assertEqual(len(leaf.children), 4)

        # Now the unvisited siblings carry a huge exploration bonus
        backpropagate(node, 1.0)
        self.assertIs(select_node(self.root), self.root.children[1])

    def test_select_visited_full_board(self):
        root = MCTSNode.create_root(BoardSnapshot.from_rows(["XO", "OX"]))
        root.record(0.0)
        self.assertIs(select_node(root), root)

    def test_backpropagate_reaches_root(self):
        leaf = self.root.children[2]
        grandchild = leaf.expand()[0]
        backpropagate(grandchild, -1.0)

        for node in (grandchild, leaf, self.root):
            self.assertEqual(node.visits, 1)
            self.assertEqual(node.score, -1.0)
        self.assertEqual(self.root.children[0].visits, 0)

    def test_simulate_scores_from_me(self):
        won = MCTSNode.create_root(BoardSnapshot.from_rows(["X...", "X...", "X...", "XOOO"]))
        self.assertEqual(simulate_game(won, random.Random(0)), (1.0, 0))

        lost = MCTSNode.create_root(
            BoardSnapshot.from_rows(["O...", "O...", "OX..", "OXX."], me=Cell.PLAYER_A)
        )
        self.assertEqual(simulate_game(lost, random.Random(0)), (-1.0, 0))

        drawn = MCTSNode.create_root(BoardSnapshot.from_rows(["XO", "OX"]))
        self.assertEqual(simulate_game(drawn, random.Random(0)), (0.0, 0))

    def test_simulate_does_not_touch_node(self):
        node = self.root.children[0]
        before = node.snapshot.clone()
        score, steps = simulate_game(node, random.Random(1))

        self.assertIn(score, (-1.0, 0.0, 1.0))
        self.assertGreater(steps, 0)
        self.assertEqual(node.snapshot, before)

    def test_first_action_rollout(self):
        # Columns 0 to 2 fill up alternately, then X completes the bottom row
        node = MCTSNode.create_root(BoardSnapshot.empty(7, 6))
        score, steps = simulate_game(node, random.Random(0), first_action_policy)
        self.assertEqual(score, 1.0)
        self.assertEqual(steps, 19)


class TestSearch(unittest.TestCase):
    """Test case for the full search loop."""

    def test_takes_immediate_win(self):
        snapshot = BoardSnapshot.from_rows(TACTICAL_ROWS)
        action, stats = mcts_search(snapshot, MCTSConfig.fixed(300), rng=random.Random(0))

        self.assertEqual(action, Action(5, 5))
        self.assertEqual(stats["iterations"], 300)
        self.assertGreater(stats["action_visits"]["5"], stats["action_visits"]["0"])

    def test_takes_immediate_win_on_open_board(self):
        snapshot = BoardSnapshot.from_rows([
            ".......",
            ".......",
            ".......",
            ".......",
            ".......",
            "XXX.OO.",
        ])
        winning = Action(3, 0)

        chosen = []
        for seed in range(5, 10):
            action, stats = mcts_search(snapshot, MCTSConfig.fixed(2000), rng=random.Random(seed))
            chosen.append(action)

            visits = stats["action_visits"]
            self.assertEqual(max(visits, key=visits.get), "3")
            self.assertGreater(visits["3"], 1000)

        # The final move is ranked by UCB1, not by visits, so a rarely
        # explored sibling can occasionally edge out the winning column
        self.assertGreaterEqual(chosen.count(winning), 3)

    def test_takes_immediate_win_trying_unvisited_first(self):
        snapshot = BoardSnapshot.from_rows(TACTICAL_ROWS)
        config = MCTSConfig.fixed(300, selection_policy="unvisited")
        action, _ = mcts_search(snapshot, config, rng=random.Random(0))
        self.assertEqual(action, Action(5, 5))

    def test_visit_conservation(self):
        root, stats = build_tree(BoardSnapshot.empty(7, 6), MCTSConfig.fixed(200), random.Random(4))

        self.assertEqual(root.visits, 200)
        self.assertEqual(sum(child.visits for child in root.children), 200)
        for node in walk(root):
            if node is root or not node.children:
                continue
            # One rollout from the node itself before it was expanded
            self.assertEqual(node.visits, 1 + sum(child.visits for child in node.children))

        self.assertEqual(stats["root_visits"], 200)
        self.assertEqual(stats["node_count"], count_nodes(root))
        self.assertEqual(sum(stats["action_visits"].values()), 200)

    def test_scores_are_bounded(self):
        root, _ = build_tree(BoardSnapshot.empty(5, 4, target=3), MCTSConfig.fixed(150), random.Random(2))
        for node in walk(root):
            self.assertLessEqual(abs(node.score), node.visits)

    def test_deterministic_with_first_action_rollouts(self):
        snapshot = BoardSnapshot.empty(7, 6)
        config = MCTSConfig.fixed(200)

        first, _ = mcts_search(snapshot, config, random.Random(0), first_action_policy)
        second, _ = mcts_search(snapshot, config, random.Random(99), first_action_policy)

        self.assertEqual(first, second)
        self.assertEqual(first.row, 0)

    def test_first_action_regression(self):
        # Rollouts after an opening in columns 0-3 are won by X; after 4-6 O
        # completes the bottom row first. The twelfth rollout, below column 0,
        # is lost.
        action, stats = mcts_search(
            BoardSnapshot.empty(7, 6), MCTSConfig.fixed(12), random.Random(0), first_action_policy
        )

        self.assertEqual(action, Action(1, 0))
        self.assertEqual(
            stats["action_visits"],
            {"0": 3, "1": 2, "2": 2, "3": 2, "4": 1, "5": 1, "6": 1},
        )
        self.assertAlmostEqual(stats["action_rewards"]["0"], 1 / 3)
        self.assertEqual(stats["action_rewards"]["4"], -1.0)
        self.assertEqual(stats["root_score"], 4.0)

    def test_deterministic_with_seed(self):
        snapshot = BoardSnapshot.from_rows([
            ".......",
            ".......",
            ".......",
            "...O...",
            "..XX...",
            "O.XOX..",
        ])
        config = MCTSConfig.fixed(250, seed=11)

        first, first_stats = mcts_search(snapshot, config)
        second, second_stats = mcts_search(snapshot, config)

        self.assertEqual(first, second)
        self.assertEqual(first_stats["action_visits"], second_stats["action_visits"])

    def test_simulation_policy_from_config(self):
        config = MCTSConfig.fixed(50, simulation_policy="first")
        root, _ = build_tree(BoardSnapshot.empty(7, 6), config, random.Random(0))
        again, _ = build_tree(BoardSnapshot.empty(7, 6), config, random.Random(1))
        self.assertEqual(
            [child.score for child in root.children],
            [child.score for child in again.children],
        )

    def test_time_limit(self):
        ticks = itertools.count(0, 0.25)
        config = MCTSConfig(time_limit=1.0)

        root, stats = build_tree(
            BoardSnapshot.empty(5, 4), config, random.Random(0), clock=lambda: next(ticks)
        )

        self.assertEqual(stats["stopped_by"], "time_limit")
        self.assertEqual(stats["iterations"], 3)
        self.assertEqual(root.visits, 3)

    def test_iteration_budget_wins_when_reached_first(self):
        config = MCTSConfig(time_limit=1000.0, iterations=20)
        _, stats = mcts_search(BoardSnapshot.empty(5, 4), config, random.Random(0))
        self.assertEqual(stats["stopped_by"], "iterations")
        self.assertEqual(stats["iterations"], 20)

    def test_zero_iterations(self):
        snapshot = BoardSnapshot.empty(5, 4)
        action, stats = mcts_search(snapshot, MCTSConfig.fixed(0), random.Random(0))
        self.assertEqual(stats["iterations"], 0)
        self.assertEqual(action, get_legal_actions(snapshot)[0])

    def test_full_board_raises(self):
        with self.assertRaises(ValueError):
            mcts_search(BoardSnapshot.from_rows(["XO", "OX"]), MCTSConfig.fixed(10))

    def test_input_snapshot_unchanged(self):
        snapshot = BoardSnapshot.empty(5, 4)
        before = snapshot.clone()
        mcts_search(snapshot, MCTSConfig.fixed(100), random.Random(0))
        self.assertEqual(snapshot, before)

    def test_finalize_and_analysis(self):
        root, _ = build_tree(BoardSnapshot.empty(5, 4), MCTSConfig.fixed(100), random.Random(0))
        action = finalize(root)
        self.assertIn(action, get_legal_actions(root.snapshot))

        variation = get_principal_variation(root, max_depth=3)
        self.assertTrue(1 <= len(variation) <= 3)
        self.assertEqual(variation[0][0], max(root.children, key=lambda c: c.visits).action)

        statistics = get_action_statistics(root)
        self.assertEqual(len(statistics), len(root.children))
        self.assertEqual(sum(s["visits"] for s in statistics.values()), 100)


class TestMCTSAgent(unittest.TestCase):
    """Test case for MCTSAgent."""

    def setUp(self):
        self.agent = MCTSAgent(config=MCTSConfig.fixed(300, seed=0), name="Test MCTS")

    def test_opens_in_center(self):
        game = Game(width=7, height=6)
        action = self.agent.select_action(game.state, Cell.PLAYER_A)
        self.assertEqual(action, Action(3, 0))
        self.assertTrue(self.agent.get_last_statistics()["opening_move"])

    def test_searches_empty_board_without_center_opening(self):
        agent = MCTSAgent(config=MCTSConfig.fixed(50, seed=0, open_in_center=False))
        action = agent.choose(BoardSnapshot.empty(7, 6))
        self.assertEqual(action.row, 0)
        self.assertEqual(agent.get_last_statistics()["iterations"], 50)

    def test_forced_move(self):
        rows = ["X" + TACTICAL_ROWS[0][1:]] + TACTICAL_ROWS[1:]
        action = self.agent.choose(BoardSnapshot.from_rows(rows))
        self.assertEqual(action, Action(5, 5))
        self.assertTrue(self.agent.last_stats["forced_move"])
        self.assertEqual(self.agent.last_stats["iterations"], 0)

    def test_no_legal_action(self):
        with self.assertRaises(ValueError):
            self.agent.choose(BoardSnapshot.from_rows(["XO", "OX"]))

    def test_wrong_turn(self):
        game = Game()
        with self.assertRaises(ValueError):
            self.agent.select_action(game.state, Cell.PLAYER_B)

    def test_take_turn_wins_game(self):
        snapshot = BoardSnapshot.from_rows(TACTICAL_ROWS)
        game = Game()
        game.state = GameState(grid=snapshot.grid.copy())

        action = self.agent.take_turn(game, Cell.PLAYER_A)

        self.assertEqual(action, Action(5, 5))
        self.assertTrue(game.state.game_over)
        self.assertEqual(game.state.winner, Cell.PLAYER_A)
        self.assertEqual(self.agent.last_stats["iterations"], 300)
        self.assertEqual(self.agent.get_principal_variation()[0][0], Action(5, 5))
        self.assertIn(str(Action(5, 5)), self.agent.get_action_statistics())

    def test_history_and_save(self):
        game = Game(width=5, height=4, target=3)
        self.agent.register_with_game(game, Cell.PLAYER_A)
        game.step()
        game.place_piece(0)
        game.step()

        self.assertEqual(len(self.agent.action_history), 2)

        with tempfile.TemporaryDirectory() as tmpdir:
            path = os.path.join(tmpdir, "stats.json")
            self.agent.save_statistics(path)
            with open(path) as f:
                data = json.load(f)

        self.assertEqual(data["agent_name"], "Test MCTS")
        self.assertEqual(data["total_actions"], 2)
        self.assertEqual(data["config"]["iterations"], 300)
        self.assertEqual(data["history"][0]["column"], 2)

        self.agent.reset_statistics()
        self.assertEqual(self.agent.action_history, [])
        self.assertEqual(self.agent.get_last_statistics(), {})

    def test_factory(self):
        self.assertEqual(MCTSAgentFactory.create_fast().config.time_limit, 0.5)
        custom = MCTSAgentFactory.create_custom(iterations=10, seed=1, name="Tiny")
        self.assertEqual(custom.config.iterations, 10)
        self.assertEqual(str(custom), "Tiny (MCTS, 10 iterations)")


if __name__ == "__main__":
    unittest.main()
