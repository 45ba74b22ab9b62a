"""
CLI module for the network optimizer.

Handles run configuration loading, network loading and the optimization run.
"""

from datetime import datetime
from pathlib import Path
from typing import List

from .config_loader import get_optimization_config, load_run_config, validate_run_config
from .io_utils import read_network, save_metadata, save_restart_log, write_network
from .network import Network, ValidationIssue
from .optimizer import NetworkOptimizer


class InvalidNetworkError(ValueError):
    """Raised when the input network fails structural validation."""

    def __init__(self, issues: List[ValidationIssue]):
        self.issues = issues
        details = "\n".join(f"  - {issue}" for issue in issues)
        super().__init__(f"Network has {len(issues)} structural issue(s):\n{details}")


def print_network_report(network: Network, title: str) -> None:
    """Print a network with its cost breakdown."""
    print("=" * 70)
    print(title)
    print("=" * 70)
    print(network)
    print()
    print(f"Dispersion: {network.dispersion():.6f}")
    print(f"Surcharge:  {network.surcharge():.6f}")
    print(f"Lambda:     {network.lambda_}")
    print(f"Cost:       {network.cost():.6f}")
    print()


def run_from_config(config_path: str) -> Network:
    """
    Load run configuration, optimize the network and write the results.

    This is the main entry point called by grid_cli.py.

    Outputs written to output.root:
        optimized_network.txt, restart_log.csv, run_metadata.yaml

    Args:
        config_path: Path to run configuration YAML file

    Returns:
        The optimized network

    Raises:
        FileNotFoundError: If config or network file doesn't exist
        ConfigurationError: If config is invalid
        ParseError: If the network file is invalid
        InvalidNetworkError: If the network fails structural validation
        FileExistsError: If outputs exist and output.overwrite is false
    """
    print(f"Loading configuration from: {config_path}")
    config = load_run_config(config_path)

    print("Validating configuration...")
    validate_run_config(config)

    settings = get_optimization_config(config)
    network_path = config['input']['network']

    print(f"Loading network from: {network_path}")
    network = read_network(network_path, lambda_=settings['lambda'])
    print(f"Houses: {len(network.houses())}, generators: {len(network.generators())}\n")

    issues = network.validate()
    if issues:
        print("Network has structural issues:")
        for issue in issues:
            print(f"  - {issue}")
        raise InvalidNetworkError(issues)

    output_root = Path(config['output']['root'])
    overwrite = config['output'].get('overwrite', False)

    if output_root.exists() and any(output_root.iterdir()) and not overwrite:
        raise FileExistsError(
            f"Output directory already exists: {output_root}\n"
            f"Set 'output.overwrite: true' in config to overwrite"
        )

    output_root.mkdir(parents=True, exist_ok=True)
    print(f"Output directory: {output_root}\n")

    print_network_report(network, "INITIAL NETWORK")

    restarts = settings['restarts']
    print(f"Random seed: {settings['random_seed']}")
    print(f"Running {restarts} restarts...")
    optimizer = NetworkOptimizer(
        random_seed=settings['random_seed'],
        max_stale_trials=settings['max_stale_trials'],
        iterations_per_pair=settings['iterations_per_pair'],
        verbose=True
    )
    started_at = datetime.now()
    optimized = optimizer.optimize_multi_start(network, restarts)
    print()

    print_network_report(optimized, "OPTIMIZED NETWORK")

    network_out = write_network(optimized, output_root / 'optimized_network.txt', overwrite=overwrite)
    log_out = save_restart_log(optimizer.restart_records, output_root / 'restart_log.csv',
                               overwrite=overwrite)
    metadata_out = save_metadata(
        {
            'input_network': str(network_path),
            'started_at': started_at.isoformat(),
            'finished_at': datetime.now().isoformat(),
            'restarts': restarts,
            'lambda': settings['lambda'],
            'random_seed': settings['random_seed'],
            'max_stale_trials': settings['max_stale_trials'],
            'iterations_per_pair': settings['iterations_per_pair'],
            'initial_cost': float(network.cost()),
            'final_cost': float(optimized.cost()),
        },
        output_root / 'run_metadata.yaml',
        overwrite=overwrite
    )

    print("=" * 70)
    print("SUMMARY")
    print("=" * 70)
    print(f"Initial cost: {network.cost():.6f}")
    print(f"Final cost:   {optimized.cost():.6f}")
    print(f"Network:      {network_out}")
    print(f"Restart log:  {log_out}")
    print(f"Metadata:     {metadata_out}")

    return optimized
