"""
Multi-start local search over house -> generator assignments.

Restart 0 starts from a greedy single pass over the input network; every
other restart starts from a uniformly random assignment. Each start is then
improved by randomized hill-climbing, and the cheapest network found across
all restarts is returned. The input network is never modified.
"""

from typing import List, Optional, Tuple

import numpy as np

from .data_models import Generator, House, RestartRecord
from .network import Network


DEFAULT_MAX_STALE_TRIALS = 1000
DEFAULT_ITERATIONS_PER_PAIR = 1000


class NetworkOptimizer:
    """Multi-start stochastic local search minimizing Network.cost()"""

    def __init__(self,
                 random_seed: Optional[int] = None,
                 rng: Optional[np.random.Generator] = None,
                 max_stale_trials: int = DEFAULT_MAX_STALE_TRIALS,
                 iterations_per_pair: int = DEFAULT_ITERATIONS_PER_PAIR,
                 verbose: bool = False):
        """
        Initialize optimizer

        Args:
            random_seed: Seed for the random source (None for a fresh, unseeded run)
            rng: Random number generator to use instead of seeding a new one
            max_stale_trials: Consecutive non-improving trials that end hill-climbing
            iterations_per_pair: Hill-climbing budget per (house, generator) pair
            verbose: Print per-restart progress
        """
        if max_stale_trials <= 0:
            raise ValueError("max_stale_trials must be positive")
        if iterations_per_pair < 0:
            raise ValueError("iterations_per_pair must be non-negative")

        self.random_seed = random_seed
        self.rng = rng if rng is not None else np.random.default_rng(random_seed)
        self.max_stale_trials = max_stale_trials
        self.iterations_per_pair = iterations_per_pair
        self.verbose = verbose
        self.restart_records: List[RestartRecord] = []

    def iteration_budget(self, network: Network) -> int:
        """Hill-climbing trials allowed per restart."""
        return len(network.houses()) * len(network.generators()) * self.iterations_per_pair

    def optimize_multi_start(self, network: Network, restarts: int) -> Network:
        """
        Search for a cheaper assignment of houses to generators.

        Args:
            network: Network to optimize (left unchanged)
            restarts: Number of restarts, at least 1

        Returns:
            New Network with the lowest cost found

        Raises:
            ValueError: If restarts is less than 1
        """
        if restarts < 1:
            raise ValueError(f"restarts must be at least 1, got {restarts}")

        self.restart_records = []

        if not network.houses() or not network.generators():
            # Nothing to assign
            return network.copy()

        budget = self.iteration_budget(network)
        best_network = None
        best_cost = float('inf')

        for restart in range(restarts):
            if restart == 0:
                strategy = "greedy"
                solution = self.greedy_pass(network)
            else:
                strategy = "random"
                solution = self.random_assignment(network)

            seed_cost = solution.cost()
            solution, trials, improvements = self.hill_climb(solution, budget)
            cost = solution.cost()

            self.restart_records.append(RestartRecord(
                restart=restart,
                strategy=strategy,
                seed_cost=seed_cost,
                final_cost=cost,
                trials=trials,
                improvements=improvements
            ))

            if cost < best_cost:
                best_network = solution
                best_cost = cost

            if self.verbose:
                print(f"  Restart {restart + 1}/{restarts} ({strategy}): "
                      f"{seed_cost:.6f} -> {cost:.6f} (best {best_cost:.6f})")

        return best_network

    def greedy_pass(self, network: Network) -> Network:
        """
        Improve a copy of the network with one greedy sweep over the houses.

        For each house in network order, every other generator is tried on a
        copy; the single move that lowers the cost the most is kept before
        moving to the next house. A house with no generator is connected to
        the cheapest one.

        Returns:
            New Network
        """
        best = network.copy()
        generators = best.generators()

        for house in best.houses():
            current = best.current_generator(house)
            current_cost = best.cost()
            best_generator = current

            if current is None:
                # An unconnected house always gets a generator
                current_cost = float('inf')

            for generator in generators:
                if current is not None and generator == current:
                    continue

                trial = best.copy()
                _reassign(trial, house, current, generator)
                trial_cost = trial.cost()

                if trial_cost < current_cost:
                    current_cost = trial_cost
                    best_generator = generator

            if best_generator is not None and best_generator != current:
                _reassign(best, house, current, best_generator)

        return best

    def random_assignment(self, network: Network) -> Network:
        """
        Copy the network and connect every house to a uniformly random generator.

        Returns:
            New Network
        """
        solution = network.copy()
        generators = solution.generators()

        for house in solution.houses():
            current = solution.current_generator(house)
            new = generators[self.rng.integers(0, len(generators))]
            _reassign(solution, house, current, new)

        return solution

    def hill_climb(self, network: Network, max_iterations: int) -> Tuple[Network, int, int]:
        """
        Randomized hill-climbing on a copy of the network.

        Each trial moves a random house to a random generator and keeps the
        move only if the cost strictly decreases. Stops after max_iterations
        trials or max_stale_trials consecutive rejected moves. Drawing the
        house's current generator counts as a trial but not as a rejection.

        Args:
            network: Starting network (left unchanged)
            max_iterations: Maximum number of trials

        Returns:
            Tuple of (improved_network, trials_run, improvements_kept)
        """
        current = network.copy()
        houses = current.houses()
        generators = current.generators()

        if not houses or not generators:
            return current, 0, 0

        current_cost = current.cost()
        stale = 0
        trials = 0
        improvements = 0

        while trials < max_iterations and stale < self.max_stale_trials:
            trials += 1
            house = houses[self.rng.integers(0, len(houses))]
            new = generators[self.rng.integers(0, len(generators))]
            old = current.current_generator(house)

            if old is not None and old == new:
                # Uses budget but does not count towards max_stale_trials
                continue

            _reassign(current, house, old, new)
            new_cost = current.cost()

            if new_cost < current_cost:
                current_cost = new_cost
                improvements += 1
                stale = 0
            else:
                _undo_reassign(current, house, old, new)
                stale += 1

        return current, trials, improvements


def _reassign(network: Network, house: House, old: Optional[Generator], new: Generator) -> None:
    """Move a house to a generator, connecting it if it has none."""
    if old is None:
        network.connect(house, new)
    else:
        network.modify_connection(house, old, new)


def _undo_reassign(network: Network, house: House, old: Optional[Generator], new: Generator) -> None:
    if old is None:
        network.disconnect(house, new)
    else:
        network.modify_connection(house, new, old)


def optimize_multi_start(network: Network, restarts: int,
                         random_seed: Optional[int] = None) -> Network:
    """
    Run a multi-start optimization with default settings.

    Args:
        network: Network to optimize (left unchanged)
        restarts: Number of restarts, at least 1
        random_seed: Optional seed for reproducible runs

    Returns:
        New Network with the lowest cost found
    """
    optimizer = NetworkOptimizer(random_seed=random_seed)
    return optimizer.optimize_multi_start(network, restarts)
