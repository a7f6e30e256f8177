from __future__ import annotations

import argparse
import importlib.util
import json
import logging
import platform
import sys
from pathlib import Path

from geombridge import __version__
from geombridge.errors import BridgeError
from geombridge.models import MODEL_NAMES


LOG_FORMAT = "%(message)s"
LOG_LEVELS = {
    "quiet": logging.WARNING,
    "default": logging.INFO,
    "verbose": logging.DEBUG,
}
logger = logging.getLogger(__name__)

COMMON_FLOW_EXAMPLES = """Examples:
  # Optimize a water molecule on the harmonic pair model
  geombridge optimize --xyz water.xyz --model harmonic --out results

  # Same, with optimizer options from TOML and a kept log
  geombridge optimize --xyz water.xyz --params params.toml --keep-log --out results

  # Config-driven run
  geombridge --config job.toml

  # Plot the energy trajectory of a finished job
  geombridge plot --summary results/job.json --out results/energy.png
"""


def configure_logging(verbose: bool, quiet: bool) -> int:
    if verbose and quiet:
        raise SystemExit("--verbose and --quiet cannot be used together")

    if verbose:
        level = LOG_LEVELS["verbose"]
    elif quiet:
        level = LOG_LEVELS["quiet"]
    else:
        level = LOG_LEVELS["default"]

    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stdout, force=True)
    return level


def build_optimize_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "optimize", help="Optimize a molecule with one of the built-in evaluators."
    )
    parser.add_argument("--xyz", type=Path, required=True, help="Input molecule (.xyz).")
    parser.add_argument(
        "--model",
        choices=list(MODEL_NAMES),
        default="harmonic",
        help="Evaluator used for energies and gradients.",
    )
    parser.add_argument(
        "--energy",
        type=float,
        default=0.0,
        help="Energy (Hartree) returned by the constant model.",
    )
    parser.add_argument(
        "--params",
        type=Path,
        default=None,
        help="TOML file with geomeTRIC run_optimizer options.",
    )
    parser.add_argument("--out", type=Path, default=Path("."), help="Output directory.")
    parser.add_argument(
        "--keep-log",
        action="store_true",
        help="Keep the geomeTRIC log as <out>/optimize.log (discarded by default).",
    )
    return parser


def build_plot_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
    parser = subparsers.add_parser(
        "plot",
        help="Plot the energy trajectory of a finished job (requires geometric-bridge[plot]).",
    )
    parser.add_argument("--summary", type=Path, required=True, help="job.json written by a run.")
    parser.add_argument("--out", type=Path, default=None, help="Output PNG (default: next to job.json).")
    return parser


def build_doctor_parser(subparsers: argparse._SubParsersAction[argparse.ArgumentParser]) -> argparse.ArgumentParser:
    return subparsers.add_parser("doctor", help="Print environment diagnostics.")


def handle_optimize(args: argparse.Namespace) -> None:
    from geombridge.config import load_config
    from geombridge.run_config import run_job_from_files

    options = {} if args.params is None else load_config(args.params)
    run_job_from_files(
        args.xyz,
        args.model,
        options,
        args.out,
        energy=args.energy,
        keep_log=args.keep_log,
    )


def handle_plot(args: argparse.Namespace) -> None:
    if importlib.util.find_spec("matplotlib") is None:
        raise SystemExit("Plotting requires matplotlib: pip install geometric-bridge[plot]")
    from geombridge.viz.trajectory import plot_energy_trajectory

    summary_path = Path(args.summary)
    if not summary_path.exists():
        raise SystemExit(f"Summary not found: {summary_path}")
    payload = json.loads(summary_path.read_text(encoding="utf-8"))
    energies = payload.get("energies_hartree")
    if not isinstance(energies, list) or not energies:
        raise SystemExit(f"No energies_hartree list in {summary_path}")

    out_png = args.out if args.out is not None else summary_path.with_name("energy.png")
    plot_energy_trajectory(energies, out_png)
    logger.info("Wrote: %s", out_png)


def handle_doctor(args: argparse.Namespace) -> None:
    logger.info("geombridge doctor")
    logger.info("%s", "-" * 60)
    logger.info("geombridge_version: %s", __version__)
    logger.info("python_executable : %s", sys.executable)
    logger.info("python_version    : %s", sys.version.split()[0])
    logger.info("platform          : %s", platform.platform())
    try:
        import geombridge

        logger.info("geombridge_package: %s", Path(geombridge.__file__).resolve().parent)
    except Exception as e:
        logger.info("geombridge_package: <ERROR> %s", e)

    for module in ("geometric", "numpy", "matplotlib"):
        status = "available" if importlib.util.find_spec(module) is not None else "missing"
        logger.info("%-18s: %s", module, status)
    logger.info("logging_level     : %s", logging.getLevelName(logging.getLogger().getEffectiveLevel()))
    logger.info("%s", "-" * 60)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="geombridge",
        description="Run geomeTRIC geometry optimizations driven by Python evaluators.",
        epilog=COMMON_FLOW_EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Run an optimization job from a TOML config file.",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    parser.add_argument("--quiet", action="store_true", help="Suppress non-essential output.")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    subparsers = parser.add_subparsers(dest="command")

    build_optimize_parser(subparsers)
    build_plot_parser(subparsers)
    build_doctor_parser(subparsers)

    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    configure_logging(verbose=args.verbose, quiet=args.quiet)

    if args.config is not None:
        from geombridge.run_config import run_from_config

        config_path = Path(args.config)
        if not config_path.exists():
            raise SystemExit(f"Config file not found: {config_path}")
        try:
            run_from_config(config_path)
        except BridgeError as e:
            raise SystemExit(f"Optimization failed: {e}") from e
        except ValueError as e:
            raise SystemExit(f"Config validation error: {e}") from e
        return

    if args.command == "optimize":
        try:
            handle_optimize(args)
        except BridgeError as e:
            raise SystemExit(f"Optimization failed: {e}") from e
        except ValueError as e:
            raise SystemExit(f"Invalid input: {e}") from e
    elif args.command == "plot":
        handle_plot(args)
    elif args.command == "doctor":
        handle_doctor(args)
    else:
        parser.print_help()


if __name__ == "__main__":
    main()
