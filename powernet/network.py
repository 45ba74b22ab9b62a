"""
Power Network Aggregate

Owns the houses, the generators and the house -> generator connections of a
network, and computes the load-balancing cost used by the optimizer:

    cost = dispersion + lambda * surcharge

where dispersion sums the absolute deviation of every generator's load ratio
from the mean load ratio, and surcharge sums the fractional overload of every
generator whose charge exceeds its capacity.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from .data_models import Generator, House


DEFAULT_LAMBDA = 10.0


class NetworkError(ValueError):
    """Base class for errors raised by network operations."""
    pass


class UnknownEntityError(NetworkError):
    """Raised when an operation references a house or generator that is not registered."""
    pass


class NotConnectedToExpectedError(NetworkError):
    """Raised when a house is not connected to the generator a move starts from."""
    pass


class NotConnectedError(NetworkError):
    """Raised when disconnecting a house that has no generator."""
    pass


class WrongGeneratorError(NetworkError):
    """Raised when disconnecting a house from a generator it is not connected to."""
    pass


class IssueKind(Enum):
    """Structural problems reported by Network.validate()"""
    NO_GENERATORS = "no_generators"
    NO_HOUSES = "no_houses"
    UNCONNECTED_HOUSE = "unconnected_house"
    MULTIPLY_CONNECTED_HOUSE = "multiply_connected_house"
    DEMAND_EXCEEDS_CAPACITY = "demand_exceeds_capacity"


@dataclass(frozen=True)
class ValidationIssue:
    """One structural problem found in a network"""
    kind: IssueKind
    message: str
    subject: Optional[str] = None  # house name for per-house issues

    def __str__(self) -> str:
        return self.message


class Network:
    """
    A set of houses connected to a set of generators.

    Houses and generators are identified by name. Adding an entity whose name
    is already registered updates the stored entity instead of adding a new
    one. Entities are never removed.

    connect() appends without checking whether the house is already
    connected somewhere; modify_connection() and disconnect() check the
    current connection first. A house connected twice is reported by
    validate().
    """

    def __init__(self, lambda_: float = DEFAULT_LAMBDA):
        self._houses: Dict[str, House] = {}
        self._generators: Dict[str, Generator] = {}
        self._connections: Dict[str, List[House]] = {}  # generator name -> houses
        self._lambda = DEFAULT_LAMBDA
        self.set_lambda(lambda_)

    # ------------------------------------------------------------------
    # Entities
    # ------------------------------------------------------------------

    def add_house(self, house: House) -> bool:
        """
        Register a house, or update the consumption of the house with that name.

        Args:
            house: House to add

        Returns:
            True if the house is new, False if its name was already registered
        """
        existing = self._houses.get(house.name)
        if existing is not None:
            existing.consumption = house.consumption
            return False

        self._houses[house.name] = house.copy()
        return True

    def add_generator(self, generator: Generator) -> bool:
        """
        Register a generator, or update the capacity of the generator with that name.

        A new generator starts with no connected houses.

        Args:
            generator: Generator to add

        Returns:
            True if the generator is new, False if its name was already registered
        """
        existing = self._generators.get(generator.name)
        if existing is not None:
            existing.capacity_max = generator.capacity_max
            return False

        self._generators[generator.name] = generator.copy()
        self._connections[generator.name] = []
        return True

    def houses(self) -> List[House]:
        """Houses in insertion order."""
        return list(self._houses.values())

    def generators(self) -> List[Generator]:
        """Generators in insertion order."""
        return list(self._generators.values())

    def find_house_by_name(self, name: str) -> Optional[House]:
        return self._houses.get(name)

    def find_generator_by_name(self, name: str) -> Optional[Generator]:
        return self._generators.get(name)

    def _registered_house(self, house: House) -> House:
        registered = self._houses.get(house.name)
        if registered is None:
            raise UnknownEntityError(f"House not registered: {house.name}")
        return registered

    def _registered_generator(self, generator: Generator, role: str = "Generator") -> Generator:
        registered = self._generators.get(generator.name)
        if registered is None:
            raise UnknownEntityError(f"{role} not registered: {generator.name}")
        return registered

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    def connect(self, house: House, generator: Generator) -> None:
        """
        Connect a house to a generator.

        Raises:
            UnknownEntityError: If the house or the generator is not registered
        """
        registered_house = self._registered_house(house)
        registered_generator = self._registered_generator(generator)

        self._connections[registered_generator.name].append(registered_house)

    def modify_connection(self, house: House, old_generator: Generator,
                          new_generator: Generator) -> None:
        """
        Move a house from one generator to another.

        Args:
            house: House to move
            old_generator: Generator the house is currently connected to
            new_generator: Generator to connect the house to

        Raises:
            UnknownEntityError: If the house or either generator is not registered
            NotConnectedToExpectedError: If the house is not connected to old_generator
        """
        registered_house = self._registered_house(house)
        old = self._registered_generator(old_generator, "Old generator")
        new = self._registered_generator(new_generator, "New generator")

        current = self.current_generator(registered_house)
        if current is None or current.name != old.name:
            raise NotConnectedToExpectedError(
                f"House {house.name} is not connected to generator {old.name}"
            )

        self._connections[old.name].remove(registered_house)
        self._connections[new.name].append(registered_house)

    def disconnect(self, house: House, generator: Generator) -> None:
        """
        Remove the connection between a house and a generator.

        Raises:
            UnknownEntityError: If the house or the generator is not registered
            NotConnectedError: If the house is not connected to any generator
            WrongGeneratorError: If the house is connected to another generator
        """
        registered_house = self._registered_house(house)
        registered_generator = self._registered_generator(generator)

        current = self.current_generator(registered_house)
        if current is None:
            raise NotConnectedError(f"House {house.name} is not connected")

        if current.name != registered_generator.name:
            raise WrongGeneratorError(
                f"House {house.name} is connected to {current.name}, not {registered_generator.name}"
            )

        self._connections[registered_generator.name].remove(registered_house)

    def current_generator(self, house: House) -> Optional[Generator]:
        """
        Find the generator a house is connected to.

        Buckets are scanned in generator insertion order; if the house is
        connected more than once, the first generator found is returned.

        Returns:
            The generator, or None if the house is not connected
        """
        for generator_name, bucket in self._connections.items():
            if house in bucket:
                return self._generators[generator_name]
        return None

    def houses_of(self, generator: Generator) -> List[House]:
        """Houses connected to a generator (empty if the generator is unknown)."""
        return list(self._connections.get(generator.name, []))

    def connections(self) -> Dict[Generator, List[House]]:
        """Copy of the generator -> houses adjacency, in generator order."""
        return {
            self._generators[name]: list(bucket)
            for name, bucket in self._connections.items()
        }

    def unconnected_houses(self) -> List[House]:
        """Houses not connected to any generator, in insertion order."""
        connected = set()
        for bucket in self._connections.values():
            connected.update(h.name for h in bucket)
        return [h for h in self._houses.values() if h.name not in connected]

    # ------------------------------------------------------------------
    # Cost
    # ------------------------------------------------------------------

    @property
    def lambda_(self) -> float:
        """Penalty weight applied to surcharge."""
        return self._lambda

    @lambda_.setter
    def lambda_(self, value: float) -> None:
        self.set_lambda(value)

    def set_lambda(self, value: float) -> None:
        if value < 0:
            raise ValueError(f"lambda must be non-negative, got {value}")
        self._lambda = float(value)

    def get_lambda(self) -> float:
        return self._lambda

    def charge_by_generator(self) -> Dict[Generator, int]:
        """
        Total demand of the houses connected to each generator.

        Returns:
            Dictionary mapping every generator to its charge (0 if no houses)
        """
        return {
            self._generators[name]: sum(h.demand for h in bucket)
            for name, bucket in self._connections.items()
        }

    def load_ratio(self, generator: Generator, charges: Optional[Dict[Generator, int]] = None) -> float:
        """Charge divided by capacity, or 0 for a zero-capacity generator."""
        if charges is None:
            charges = self.charge_by_generator()
        registered = self._generators.get(generator.name, generator)
        if registered.capacity_max <= 0:
            return 0.0
        return charges.get(registered, 0) / registered.capacity_max

    def overload(self, generator: Generator, charges: Optional[Dict[Generator, int]] = None) -> float:
        """Fraction of capacity by which charge exceeds capacity (0 if not overloaded)."""
        if charges is None:
            charges = self.charge_by_generator()
        registered = self._generators.get(generator.name, generator)
        capacity = registered.capacity_max
        charge = charges.get(registered, 0)
        if capacity <= 0 or charge <= capacity:
            return 0.0
        return (charge - capacity) / capacity

    def dispersion(self) -> float:
        """Sum of absolute deviations of load ratios from their mean."""
        if not self._generators:
            return 0.0

        charges = self.charge_by_generator()
        ratios = [self.load_ratio(g, charges) for g in self._generators.values()]
        mean = sum(ratios) / len(ratios)
        return sum(abs(ratio - mean) for ratio in ratios)

    def surcharge(self) -> float:
        """Sum of the overload of every generator."""
        charges = self.charge_by_generator()
        return sum(self.overload(g, charges) for g in self._generators.values())

    def cost(self) -> float:
        """Network cost: dispersion + lambda * surcharge."""
        return self.dispersion() + self._lambda * self.surcharge()

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------

    def total_demand(self) -> int:
        return sum(h.demand for h in self._houses.values())

    def total_capacity(self) -> int:
        return sum(g.capacity_max for g in self._generators.values())

    def validate(self) -> List[ValidationIssue]:
        """
        Check the network structure.

        Every check runs and every problem found is reported:
        no generators, no houses, unconnected houses, houses connected to
        more than one generator, and total demand above total capacity.

        Returns:
            List of issues (empty if the network is valid)
        """
        issues = []

        if not self._generators:
            issues.append(ValidationIssue(
                IssueKind.NO_GENERATORS, "The network has no generators."
            ))

        if not self._houses:
            issues.append(ValidationIssue(
                IssueKind.NO_HOUSES, "The network has no houses."
            ))

        for house in self.unconnected_houses():
            issues.append(ValidationIssue(
                IssueKind.UNCONNECTED_HOUSE,
                f"House {house.name} is not connected to a generator.",
                subject=house.name
            ))

        connection_count: Dict[str, int] = {}
        for bucket in self._connections.values():
            for house in bucket:
                connection_count[house.name] = connection_count.get(house.name, 0) + 1

        for name, count in connection_count.items():
            if count > 1:
                issues.append(ValidationIssue(
                    IssueKind.MULTIPLY_CONNECTED_HOUSE,
                    f"House {name} is connected to {count} generators.",
                    subject=name
                ))

        demand = self.total_demand()
        capacity = self.total_capacity()
        if demand > capacity:
            issues.append(ValidationIssue(
                IssueKind.DEMAND_EXCEEDS_CAPACITY,
                f"Total demand ({demand}) exceeds total generator capacity ({capacity})."
            ))

        return issues

    def is_valid(self) -> bool:
        return not self.validate()

    # ------------------------------------------------------------------
    # Copy / report
    # ------------------------------------------------------------------

    def copy(self) -> "Network":
        """
        Create an independent copy of this network.

        Entities are duplicated and every house is reconnected to its current
        generator, so a house connected more than once comes out connected
        exactly once.

        Returns:
            New Network sharing no objects with this one
        """
        clone = Network(lambda_=self._lambda)
        for generator in self._generators.values():
            clone.add_generator(generator)
        for house in self._houses.values():
            clone.add_house(house)

        for house in self._houses.values():
            generator = self.current_generator(house)
            if generator is not None:
                clone.connect(house, generator)

        return clone

    def __str__(self) -> str:
        lines = ["GENERATORS:"]
        for g in self._generators.values():
            lines.append(f" - {g.name} (capacity {g.capacity_max})")

        lines.append("")
        lines.append("HOUSES:")
        for h in self._houses.values():
            lines.append(f" - {h.name} ({h.consumption.name}, demand {h.demand})")

        lines.append("")
        lines.append("CONNECTIONS:")
        for name, bucket in self._connections.items():
            targets = ", ".join(h.name for h in bucket) if bucket else "(no houses)"
            lines.append(f" - {name} -> {targets}")

        return "\n".join(lines)

    def __repr__(self) -> str:
        return (f"Network(houses={len(self._houses)}, generators={len(self._generators)}, "
                f"lambda_={self._lambda})")
