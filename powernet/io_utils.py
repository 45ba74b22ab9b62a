"""
I/O utilities for power networks.

Handles the persisted text format, restart log CSV files and YAML metadata
sidecars.

Text format (one fact per line, generators first, then houses, then
connections):

    generateur(gen1,60).
    maison(house1,NORMAL).
    connexion(gen1,house1).
"""

import csv
from pathlib import Path
from typing import Iterable, Optional, Union
import yaml

from .data_models import ConsumptionLevel, Generator, House, RestartRecord
from .network import DEFAULT_LAMBDA, Network


GENERATOR_FACT = "generateur"
HOUSE_FACT = "maison"
CONNECTION_FACT = "connexion"

# Section reached once a fact of that kind has been read
_SECTION = {GENERATOR_FACT: 0, HOUSE_FACT: 1, CONNECTION_FACT: 2}


class ParseError(ValueError):
    """Raised when a network file cannot be parsed."""

    def __init__(self, line_number: int, line: str, cause: str):
        self.line_number = line_number
        self.line = line
        self.cause = cause
        super().__init__(f"Line {line_number}: {cause}\n>> {line}")


def _split_fact(body: str, line_number: int, raw: str) -> tuple[str, list[str]]:
    """Split 'kind(a,b)' into its kind and stripped arguments."""
    open_idx = body.find("(")
    if open_idx <= 0:
        raise ParseError(line_number, raw, "Unknown fact kind")

    kind = body[:open_idx].strip()
    if kind not in _SECTION:
        raise ParseError(line_number, raw, f"Unknown fact kind: {kind}")

    if not body.endswith(")"):
        raise ParseError(line_number, raw, f"Malformed {kind} fact: missing closing parenthesis")

    args = [arg.strip() for arg in body[open_idx + 1:-1].split(",")]
    if len(args) != 2:
        raise ParseError(
            line_number, raw, f"{kind} expects 2 arguments, got {len(args)}"
        )

    if not all(args):
        raise ParseError(line_number, raw, f"Empty argument in {kind} fact")

    return kind, args


def parse_network(lines: Iterable[str], lambda_: float = DEFAULT_LAMBDA) -> Network:
    """
    Build a network from lines of the text format.

    Args:
        lines: Lines to parse (e.g., an open file or str.splitlines())
        lambda_: Penalty weight for the new network (not stored in the format)

    Returns:
        Network built from the facts

    Raises:
        ParseError: On the first invalid line; no partial network is returned
    """
    network = Network(lambda_=lambda_)
    section = 0

    for line_number, raw_line in enumerate(lines, start=1):
        raw = raw_line.rstrip("\r\n")
        line = raw.strip()

        if not line:
            continue

        if not line.endswith("."):
            raise ParseError(line_number, raw, "Line must end with '.'")

        kind, args = _split_fact(line[:-1].rstrip(), line_number, raw)

        if _SECTION[kind] < section:
            raise ParseError(
                line_number, raw,
                f"{kind} fact after the {_section_name(section)} section"
            )
        section = _SECTION[kind]

        if kind == GENERATOR_FACT:
            name, capacity_text = args
            try:
                capacity = int(capacity_text)
            except ValueError:
                raise ParseError(line_number, raw, f"Invalid capacity: {capacity_text}")
            if capacity < 0:
                raise ParseError(line_number, raw, f"Invalid capacity: {capacity_text}")
            network.add_generator(Generator(name, capacity))

        elif kind == HOUSE_FACT:
            name, level_text = args
            try:
                level = ConsumptionLevel.from_literal(level_text)
            except ValueError:
                raise ParseError(
                    line_number, raw,
                    f"Invalid consumption level: {level_text} (expected BASSE, NORMAL or FORTE)"
                )
            network.add_house(House(name, level))

        else:
            first, second = args
            house = network.find_house_by_name(first)
            generator = network.find_generator_by_name(second)

            if house is None or generator is None:
                house = network.find_house_by_name(second)
                generator = network.find_generator_by_name(first)

            if house is None or generator is None:
                raise ParseError(
                    line_number, raw,
                    f"Unresolved reference: no house/generator pair named {first}, {second}"
                )

            network.connect(house, generator)

    return network


def _section_name(section: int) -> str:
    for kind, index in _SECTION.items():
        if index == section:
            return kind
    return str(section)


def read_network(network_path: Union[str, Path], lambda_: float = DEFAULT_LAMBDA) -> Network:
    """
    Load a network file.

    Args:
        network_path: Path to the network file
        lambda_: Penalty weight for the loaded network

    Returns:
        Network loaded from the file

    Raises:
        FileNotFoundError: If the file doesn't exist
        ParseError: If the file content is invalid
    """
    network_path = Path(network_path)

    if not network_path.exists():
        raise FileNotFoundError(f"Network file not found: {network_path}")

    with open(network_path, 'r', encoding='utf-8') as f:
        return parse_network(f, lambda_=lambda_)


def format_network(network: Network) -> str:
    """
    Serialize a network to the text format.

    Generators come first, then houses, then one connexion line per
    connected house, grouped by generator.
    """
    lines = []
    for generator in network.generators():
        lines.append(f"{GENERATOR_FACT}({generator.name},{generator.capacity_max}).")

    for house in network.houses():
        lines.append(f"{HOUSE_FACT}({house.name},{house.consumption.literal}).")

    for generator, houses in network.connections().items():
        for house in houses:
            lines.append(f"{CONNECTION_FACT}({generator.name},{house.name}).")

    return "\n".join(lines) + "\n" if lines else ""


def write_network(
    network: Network,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save a network to a text file.

    Args:
        network: Network to save
        output_path: Path for output file
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Output file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', encoding='utf-8') as f:
        f.write(format_network(network))

    return output_path


RESTART_LOG_FIELDS = ['restart', 'strategy', 'seed_cost', 'final_cost', 'trials', 'improvements']


def save_restart_log(
    records: list[RestartRecord],
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save optimizer restart records to CSV file.

    Args:
        records: List of RestartRecord objects
        output_path: Path for output CSV
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved restart log

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Restart log already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w', newline='') as f:
        writer = csv.DictWriter(f, fieldnames=RESTART_LOG_FIELDS)
        writer.writeheader()

        for record in records:
            writer.writerow(record.to_dict())

    return output_path


def load_restart_log(log_path: Union[str, Path]) -> list[RestartRecord]:
    """
    Load restart records from a CSV written by save_restart_log().

    Raises:
        FileNotFoundError: If the log doesn't exist
        ValueError: If required columns are missing
    """
    log_path = Path(log_path)

    if not log_path.exists():
        raise FileNotFoundError(f"Restart log not found: {log_path}")

    with open(log_path, 'r', newline='') as f:
        reader = csv.DictReader(f)

        missing = set(RESTART_LOG_FIELDS[:4]) - set(reader.fieldnames or [])
        if missing:
            raise ValueError(f"Invalid restart log format. Missing columns: {sorted(missing)}")

        return [RestartRecord.from_dict(row) for row in reader]


def save_metadata(
    metadata: dict,
    output_path: Union[str, Path],
    overwrite: bool = False
) -> Path:
    """
    Save metadata to YAML sidecar file.

    Args:
        metadata: Metadata dictionary
        output_path: Path for output YAML
        overwrite: If True, overwrite existing file

    Returns:
        Path to saved metadata file

    Raises:
        FileExistsError: If file exists and overwrite=False
    """
    output_path = Path(output_path)

    if output_path.exists() and not overwrite:
        raise FileExistsError(f"Metadata file already exists: {output_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)

    with open(output_path, 'w') as f:
        yaml.dump(metadata, f, default_flow_style=False, sort_keys=False)

    return output_path


def validate_network_file(network_path: Union[str, Path]) -> tuple[bool, Optional[str]]:
    """
    Check that a network file parses.

    Args:
        network_path: Path to network file

    Returns:
        Tuple of (is_valid, error_message)
    """
    network_path = Path(network_path)

    if not network_path.exists():
        return False, f"File not found: {network_path}"

    try:
        read_network(network_path)
    except ParseError as e:
        return False, str(e)

    return True, None
