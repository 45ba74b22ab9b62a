"""
Tests for the multi-start local search optimizer.
"""

import unittest
import numpy as np

from powernet.data_models import ConsumptionLevel, Generator, House
from powernet.io_utils import format_network
from powernet.network import IssueKind, Network
from powernet.optimizer import NetworkOptimizer, optimize_multi_start


def build_network(generators, houses, assignments, lambda_=10.0):
    """Build a network from (name, capacity), (name, level) and (house, generator) tuples."""
    network = Network(lambda_=lambda_)
    for name, capacity in generators:
        network.add_generator(Generator(name, capacity))
    for name, level in houses:
        network.add_house(House(name, level))
    for house_name, generator_name in assignments:
        network.connect(network.find_house_by_name(house_name),
                        network.find_generator_by_name(generator_name))
    return network


class TestMultiStart(unittest.TestCase):
    """Test the full multi-start optimization."""

    def setUp(self):
        """Three houses all on g1, g2 empty."""
        self.network = build_network(
            [("g1", 100), ("g2", 100)],
            [("m1", ConsumptionLevel.LOW), ("m2", ConsumptionLevel.NORMAL),
             ("m3", ConsumptionLevel.HIGH)],
            [("m1", "g1"), ("m2", "g1"), ("m3", "g1")]
        )
        self.optimizer = NetworkOptimizer(random_seed=42)

    def test_returns_network(self):
        result = self.optimizer.optimize_multi_start(self.network, 5)
        self.assertIsInstance(result, Network)
        self.assertIsNot(result, self.network)

    def test_does_not_degrade_cost(self):
        initial = self.network.cost()
        result = self.optimizer.optimize_multi_start(self.network, 10)
        self.assertLessEqual(result.cost(), initial)

    def test_finds_balanced_assignment(self):
        # Best split is {m1, m2} / {m3} or {m3} / {m1, m2}: ratios 0.3 and 0.4
        result = self.optimizer.optimize_multi_start(self.network, 3)
        self.assertAlmostEqual(result.cost(), 0.1)

    def test_all_houses_stay_connected(self):
        result = self.optimizer.optimize_multi_start(self.network, 10)

        for house in result.houses():
            self.assertIsNotNone(result.current_generator(house),
                                 f"House {house.name} must be connected")
        self.assertEqual(result.validate(), [])

    def test_single_restart(self):
        result = self.optimizer.optimize_multi_start(self.network, 1)
        self.assertIsNotNone(result)
        self.assertEqual(len(self.optimizer.restart_records), 1)
        self.assertEqual(self.optimizer.restart_records[0].strategy, "greedy")

    def test_many_restarts_keep_entities(self):
        result = self.optimizer.optimize_multi_start(self.network, 20)

        self.assertEqual([g.name for g in result.generators()], ["g1", "g2"])
        self.assertEqual([h.name for h in result.houses()], ["m1", "m2", "m3"])

    def test_input_network_unchanged(self):
        before = format_network(self.network)
        self.optimizer.optimize_multi_start(self.network, 5)
        self.assertEqual(format_network(self.network), before)

    def test_restart_records(self):
        self.optimizer.optimize_multi_start(self.network, 4)
        records = self.optimizer.restart_records

        self.assertEqual([r.restart for r in records], [0, 1, 2, 3])
        self.assertEqual([r.strategy for r in records], ["greedy", "random", "random", "random"])
        for record in records:
            self.assertLessEqual(record.final_cost, record.seed_cost)

    def test_zero_restarts_rejected(self):
        with self.assertRaises(ValueError):
            self.optimizer.optimize_multi_start(self.network, 0)

    def test_lambda_carried_over(self):
        self.network.set_lambda(2.5)
        result = self.optimizer.optimize_multi_start(self.network, 2)
        self.assertEqual(result.get_lambda(), 2.5)

    def test_module_level_function(self):
        result = optimize_multi_start(self.network, 2, random_seed=1)
        self.assertLessEqual(result.cost(), self.network.cost())


class TestReproducibility(unittest.TestCase):
    """Test that a fixed seed gives identical runs."""

    def setUp(self):
        levels = [ConsumptionLevel.LOW, ConsumptionLevel.NORMAL, ConsumptionLevel.HIGH]
        houses = [(f"h{i}", levels[i % 3]) for i in range(9)]
        self.network = build_network(
            [("g1", 90), ("g2", 60), ("g3", 120)],
            houses,
            [(name, "g1") for name, _ in houses]
        )

    def test_same_seed_same_result(self):
        first = NetworkOptimizer(random_seed=7).optimize_multi_start(self.network, 4)
        second = NetworkOptimizer(random_seed=7).optimize_multi_start(self.network, 4)

        self.assertEqual(format_network(first), format_network(second))
        self.assertEqual(first.cost(), second.cost())

    def test_injected_rng(self):
        first = NetworkOptimizer(rng=np.random.default_rng(3)).optimize_multi_start(self.network, 3)
        second = NetworkOptimizer(random_seed=3).optimize_multi_start(self.network, 3)

        self.assertEqual(format_network(first), format_network(second))

    def test_non_degradation_on_overloaded_start(self):
        for seed in range(5):
            result = NetworkOptimizer(random_seed=seed).optimize_multi_start(self.network, 3)
            self.assertLessEqual(result.cost(), self.network.cost())
            self.assertLess(result.surcharge(), self.network.surcharge())


class TestSearchSteps(unittest.TestCase):
    """Test greedy pass, random assignment and hill-climbing individually."""

    def setUp(self):
        self.network = build_network(
            [("g1", 100), ("g2", 100)],
            [("m1", ConsumptionLevel.LOW), ("m2", ConsumptionLevel.NORMAL),
             ("m3", ConsumptionLevel.HIGH)],
            [("m1", "g1"), ("m2", "g1"), ("m3", "g1")]
        )
        self.optimizer = NetworkOptimizer(random_seed=0)

    def test_iteration_budget(self):
        self.assertEqual(self.optimizer.iteration_budget(self.network), 3 * 2 * 1000)
        self.assertEqual(self.optimizer.iteration_budget(Network()), 0)

    def test_greedy_pass_single_sweep(self):
        # m1 -> g2 (0.5), then m2 -> g2 (0.1), then m3 stays
        result = self.optimizer.greedy_pass(self.network)

        self.assertEqual(result.current_generator(House("m1", ConsumptionLevel.LOW)).name, "g2")
        self.assertEqual(result.current_generator(House("m2", ConsumptionLevel.LOW)).name, "g2")
        self.assertEqual(result.current_generator(House("m3", ConsumptionLevel.LOW)).name, "g1")
        self.assertAlmostEqual(result.cost(), 0.1)

    def test_greedy_pass_connects_unconnected_house(self):
        network = build_network(
            [("g1", 100), ("g2", 100)],
            [("m1", ConsumptionLevel.HIGH), ("m2", ConsumptionLevel.HIGH)],
            [("m1", "g1")]
        )
        result = self.optimizer.greedy_pass(network)

        self.assertEqual(result.current_generator(House("m2", ConsumptionLevel.HIGH)).name, "g2")
        self.assertEqual(result.cost(), 0.0)

    def test_random_assignment_connects_every_house_once(self):
        network = build_network(
            [("g1", 100), ("g2", 100), ("g3", 100)],
            [(f"h{i}", ConsumptionLevel.NORMAL) for i in range(10)],
            [("h0", "g1")]
        )
        result = self.optimizer.random_assignment(network)
        kinds = [issue.kind for issue in result.validate()]

        self.assertNotIn(IssueKind.UNCONNECTED_HOUSE, kinds)
        self.assertNotIn(IssueKind.MULTIPLY_CONNECTED_HOUSE, kinds)

    def test_hill_climb_never_increases_cost(self):
        start = self.network.copy()
        result, trials, improvements = self.optimizer.hill_climb(start, 500)

        self.assertLessEqual(result.cost(), start.cost())
        self.assertLessEqual(trials, 500)
        self.assertLessEqual(improvements, trials)

    def test_hill_climb_zero_budget(self):
        result, trials, improvements = self.optimizer.hill_climb(self.network, 0)

        self.assertEqual(trials, 0)
        self.assertEqual(improvements, 0)
        self.assertEqual(format_network(result), format_network(self.network))

    def test_hill_climb_stops_when_stale(self):
        optimizer = NetworkOptimizer(random_seed=0, max_stale_trials=5)
        balanced = build_network(
            [("g1", 100), ("g2", 100)],
            [("m1", ConsumptionLevel.HIGH), ("m2", ConsumptionLevel.HIGH)],
            [("m1", "g1"), ("m2", "g2")]
        )
        _, trials, improvements = optimizer.hill_climb(balanced, 10000)

        # Five rejected moves, plus any draws of the current generator
        self.assertGreaterEqual(trials, 5)
        self.assertLess(trials, 10000)
        self.assertEqual(improvements, 0)

    def test_hill_climb_current_generator_draws_use_budget_only(self):
        # With one generator every draw is the current one: never stale
        single = build_network(
            [("g1", 100)],
            [("m1", ConsumptionLevel.LOW), ("m2", ConsumptionLevel.HIGH)],
            [("m1", "g1"), ("m2", "g1")]
        )
        budget = self.optimizer.iteration_budget(single)
        result, trials, improvements = self.optimizer.hill_climb(single, budget)

        self.assertEqual(budget, 2000)
        self.assertEqual(trials, budget)
        self.assertEqual(improvements, 0)
        self.assertEqual(format_network(result), format_network(single))


class TestDegenerateNetworks(unittest.TestCase):
    """Test networks without houses or generators."""

    def test_no_generators(self):
        network = build_network([], [("h1", ConsumptionLevel.LOW)], [])
        result = NetworkOptimizer(random_seed=0).optimize_multi_start(network, 3)

        self.assertEqual(result.cost(), 0.0)
        self.assertEqual(len(result.houses()), 1)
        self.assertIsNone(result.current_generator(House("h1", ConsumptionLevel.LOW)))

    def test_no_houses(self):
        network = build_network([("g1", 100)], [], [])
        result = NetworkOptimizer(random_seed=0).optimize_multi_start(network, 3)

        self.assertEqual(result.cost(), 0.0)
        self.assertEqual(len(result.generators()), 1)

    def test_invalid_settings(self):
        with self.assertRaises(ValueError):
            NetworkOptimizer(max_stale_trials=0)
        with self.assertRaises(ValueError):
            NetworkOptimizer(iterations_per_pair=-1)


if __name__ == '__main__':
    unittest.main()
