#!/usr/bin/env python3
"""
grid_cli - optimize which generator feeds each house of a power network.

Reads the network file named in a YAML run configuration, runs the
multi-start optimizer and writes optimized_network.txt, restart_log.csv and
run_metadata.yaml to the configured output directory.

Usage:
    python3 grid_cli.py RUN_CONFIG
    python3 grid_cli.py --config RUN_CONFIG
    python3 grid_cli.py --config=RUN_CONFIG
    python3 grid_cli.py --help

Exit status:
    0  run finished (or help shown)
    1  bad arguments, missing configuration or a failed run
    2  the network file failed validation

Example:
    python3 grid_cli.py examples/sample_run.yaml
"""

import sys
from pathlib import Path

project_root = Path(__file__).parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from powernet.cli import InvalidNetworkError, run_from_config


def parse_config_path(args):
    """
    Extract the run configuration path from command-line arguments.

    Args:
        args: Arguments without the program name

    Returns:
        Configuration path, or None when help was requested

    Raises:
        ValueError: If the arguments do not name exactly one configuration
    """
    if not args:
        raise ValueError("no run configuration given")
    if args[0] in ('-h', '--help', 'help'):
        return None

    if args[0] == '--config':
        if len(args) < 2:
            raise ValueError("--config requires a path")
        rest = args[2:]
        config_path = args[1]
    elif args[0].startswith('--config='):
        rest = args[1:]
        config_path = args[0].split('=', 1)[1]
        if not config_path:
            raise ValueError("--config requires a path")
    elif args[0].startswith('-'):
        raise ValueError(f"unknown option: {args[0]}")
    else:
        rest = args[1:]
        config_path = args[0]

    if rest:
        raise ValueError(f"unexpected arguments: {' '.join(rest)}")
    return config_path


def main(argv=None):
    """Run the optimizer for one configuration and return the exit status."""
    args = sys.argv[1:] if argv is None else list(argv)

    try:
        config_path = parse_config_path(args)
    except ValueError as e:
        print(f"Error: {e}")
        print(__doc__)
        return 1

    if config_path is None:
        print(__doc__)
        return 0

    if not Path(config_path).is_file():
        print(f"Error: run configuration not found: {config_path}")
        return 1

    try:
        run_from_config(config_path)
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 1
    except InvalidNetworkError as e:
        print(f"\nError: {e}")
        return 2
    except Exception as e:
        print(f"\nError: {e}")
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
