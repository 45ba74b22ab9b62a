"""
Data models for the power network.

Core data structures representing consumption levels, houses, generators,
and the per-restart records produced by the optimizer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class ConsumptionLevel(Enum):
    """Fixed demand magnitudes a house can draw"""
    LOW = 10
    NORMAL = 20
    HIGH = 40

    @property
    def demand(self) -> int:
        """Integer demand of this level."""
        return self.value

    @property
    def literal(self) -> str:
        """Literal used by the persisted text format."""
        return _LEVEL_TO_LITERAL[self]

    @classmethod
    def from_literal(cls, text: str) -> "ConsumptionLevel":
        """Convert a persisted literal (BASSE, NORMAL, FORTE), case-insensitively."""
        key = text.strip().upper()
        if key not in _LITERAL_TO_LEVEL:
            raise ValueError(f"Invalid consumption literal: {text!r}")
        return _LITERAL_TO_LEVEL[key]


_LEVEL_TO_LITERAL = {
    ConsumptionLevel.LOW: "BASSE",
    ConsumptionLevel.NORMAL: "NORMAL",
    ConsumptionLevel.HIGH: "FORTE",
}
_LITERAL_TO_LEVEL = {literal: level for level, literal in _LEVEL_TO_LITERAL.items()}


@dataclass(eq=False)
class Generator:
    """
    A capacity-bounded supply resource.

    Two generators are equal when their names match, whatever their
    capacities.

    Attributes:
        name: Identity of the generator
        capacity_max: Maximum charge the generator can carry without overload
    """
    name: str
    capacity_max: int

    def __post_init__(self):
        """Validate capacity."""
        if self.capacity_max < 0:
            raise ValueError(
                f"Generator {self.name} capacity must be non-negative, got {self.capacity_max}"
            )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Generator):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    def copy(self) -> "Generator":
        """Return a new generator with the same name and capacity."""
        return Generator(name=self.name, capacity_max=self.capacity_max)


@dataclass(eq=False)
class House:
    """
    A demand point connected to at most one generator.

    Equality is name-scoped, like Generator.

    Attributes:
        name: Identity of the house
        consumption: Consumption level of the house
    """
    name: str
    consumption: ConsumptionLevel

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, House):
            return NotImplemented
        return self.name == other.name

    def __hash__(self) -> int:
        return hash(self.name)

    @property
    def demand(self) -> int:
        return self.consumption.demand

    def copy(self) -> "House":
        """Return a new house with the same name and consumption."""
        return House(name=self.name, consumption=self.consumption)


@dataclass
class RestartRecord:
    """
    Tracks how one optimizer restart went.

    Attributes:
        restart: Restart index (0 is the greedy start)
        strategy: How the starting point was built ("greedy" or "random")
        seed_cost: Cost of the starting point before hill-climbing
        final_cost: Cost after hill-climbing
        trials: Hill-climbing trials run
        improvements: Trials that were kept
        metadata: Additional information
    """
    restart: int
    strategy: str  # "greedy" or "random"
    seed_cost: float
    final_cost: float
    trials: int = 0
    improvements: int = 0
    metadata: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self):
        """Validate restart record."""
        if self.strategy not in ["greedy", "random"]:
            raise ValueError(f"Invalid strategy: {self.strategy}. Must be 'greedy' or 'random'")

        if self.strategy == "greedy" and self.restart != 0:
            raise ValueError("Only restart 0 uses the greedy strategy")

    def to_dict(self) -> dict[str, Any]:
        """
        Convert restart record to dictionary for CSV export.

        Returns:
            Dictionary with string-serializable values
        """
        return {
            "restart": self.restart,
            "strategy": self.strategy,
            "seed_cost": self.seed_cost,
            "final_cost": self.final_cost,
            "trials": self.trials,
            "improvements": self.improvements,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RestartRecord":
        """
        Create restart record from dictionary (e.g., from CSV).

        Args:
            data: Dictionary with restart information

        Returns:
            RestartRecord instance
        """
        return cls(
            restart=int(data["restart"]),
            strategy=data["strategy"],
            seed_cost=float(data["seed_cost"]),
            final_cost=float(data["final_cost"]),
            trials=int(data.get("trials") or 0),
            improvements=int(data.get("improvements") or 0),
        )
