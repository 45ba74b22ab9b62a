"""
Configuration Loading System

Loads YAML run configurations for the network optimizer and converts them
into validated settings.
"""

import time
from pathlib import Path
from typing import Any, Dict, List

import yaml

from .network import DEFAULT_LAMBDA
from .optimizer import DEFAULT_ITERATIONS_PER_PAIR, DEFAULT_MAX_STALE_TRIALS


DEFAULT_RESTARTS = 10


class ConfigurationError(Exception):
    """Raised when configuration is invalid"""
    pass


def load_run_config(config_path: str) -> Dict[str, Any]:
    """
    Load run configuration from YAML file.

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        Dictionary containing run configuration

    Raises:
        FileNotFoundError: If config file doesn't exist
        ConfigurationError: If the file is empty or not valid YAML
    """
    config_file = Path(config_path)

    if not config_file.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    try:
        with open(config_file, 'r') as f:
            config = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in configuration file: {e}")

    if config is None:
        raise ConfigurationError("Configuration file is empty")

    if not isinstance(config, dict):
        raise ConfigurationError("Configuration file must contain a mapping")

    return config


def _is_int(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_config(config: Dict[str, Any]) -> List[str]:
    """
    Validate configuration and return list of issues

    Returns:
        List of validation error messages (empty if valid)
    """
    issues = []

    for section in ["input", "output"]:
        if section not in config:
            issues.append(f"Missing required section: {section}")
        elif not isinstance(config[section], dict):
            issues.append(f"'{section}' must be a dictionary")

    if isinstance(config.get("input"), dict) and "network" not in config["input"]:
        issues.append("Missing required field: 'input.network'")

    if isinstance(config.get("output"), dict) and "root" not in config["output"]:
        issues.append("Missing required field: 'output.root'")

    optimization = config.get("optimization", {})
    if optimization is None:
        optimization = {}
    if not isinstance(optimization, dict):
        issues.append("'optimization' must be a dictionary")
        return issues

    restarts = optimization.get("restarts", DEFAULT_RESTARTS)
    if not _is_int(restarts) or restarts <= 0:
        issues.append(f"'optimization.restarts' must be a positive integer, got: {restarts}")

    lambda_ = optimization.get("lambda", DEFAULT_LAMBDA)
    if not _is_number(lambda_) or lambda_ < 0:
        issues.append(f"'optimization.lambda' must be a non-negative number, got: {lambda_}")

    for key in ["max_stale_trials", "iterations_per_pair"]:
        if key in optimization:
            value = optimization[key]
            if not _is_int(value) or value <= 0:
                issues.append(f"'optimization.{key}' must be a positive integer, got: {value}")

    seed = optimization.get("random_seed")
    if not (seed is None or seed == "random" or _is_int(seed)
            or (isinstance(seed, str) and seed.isdigit())):
        issues.append(f"'optimization.random_seed' must be an integer, null or 'random', got: {seed}")

    return issues


def validate_run_config(config: Dict[str, Any]) -> None:
    """
    Validate run configuration structure.

    Args:
        config: Run configuration dictionary

    Raises:
        ConfigurationError: If configuration is invalid (first issue found)
    """
    issues = validate_config(config)
    if issues:
        raise ConfigurationError(issues[0])

    network_path = Path(config["input"]["network"])
    if not network_path.exists():
        raise ConfigurationError(f"Network file not found: {network_path}")


def resolve_random_seed(seed: Any) -> int:
    """Turn a configured seed into an integer, drawing one if it is null or 'random'."""
    if seed is None or seed == "random":
        return int(time.time() * 1000000) % 2147483647
    if isinstance(seed, str) and seed.isdigit():
        return int(seed)
    return int(seed)


def get_optimization_config(config: Dict[str, Any]) -> Dict[str, Any]:
    """
    Get optimization settings with defaults filled in.

    The random seed is resolved to an integer so the run can be reproduced
    from its metadata.
    """
    optimization = config.get("optimization") or {}
    return {
        "restarts": optimization.get("restarts", DEFAULT_RESTARTS),
        "lambda": float(optimization.get("lambda", DEFAULT_LAMBDA)),
        "random_seed": resolve_random_seed(optimization.get("random_seed")),
        "max_stale_trials": optimization.get("max_stale_trials", DEFAULT_MAX_STALE_TRIALS),
        "iterations_per_pair": optimization.get("iterations_per_pair", DEFAULT_ITERATIONS_PER_PAIR),
    }
