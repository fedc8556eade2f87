import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from rich.console import Console
from rich.logging import RichHandler

from config import RecognitionConfig, load_config
from ui import TutorUI


def create_parser() -> argparse.ArgumentParser:
    """Create argument parser with subcommands."""
    parser = argparse.ArgumentParser(description="Ink Tutor")
    parser.add_argument(
        "--log-level",
        type=str,
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Simulate subcommand
    sim_parser = subparsers.add_parser(
        "simulate", help="Run simulated handwriting sessions"
    )
    add_simulation_arguments(sim_parser)

    return parser


def add_simulation_arguments(sim_parser: argparse.ArgumentParser) -> None:
    sim_parser.add_argument(
        "--sessions",
        "-n",
        type=int,
        default=3,
        help="Number of sessions to simulate (default: 3)",
    )
    sim_parser.add_argument(
        "--accuracy",
        "-a",
        type=float,
        default=0.8,
        help="Probability the student writes the right answer 0.0-1.0 (default: 0.8)",
    )
    sim_parser.add_argument(
        "--misread-rate",
        "-m",
        type=float,
        default=0.05,
        help="Probability the recognizer misreads a digit 0.0-1.0 (default: 0.05)",
    )
    sim_parser.add_argument(
        "--garble-rate",
        "-g",
        type=float,
        default=0.02,
        help="Probability the recognizer returns no number 0.0-1.0 (default: 0.02)",
    )
    sim_parser.add_argument(
        "--timeout-ms",
        "-t",
        type=int,
        default=None,
        help="Settlement timeout in milliseconds (default: from config)",
    )
    sim_parser.add_argument(
        "--config",
        "-c",
        type=str,
        default=None,
        help="JSON configuration file",
    )
    sim_parser.add_argument(
        "--output",
        "-o",
        type=str,
        default="simulation_results.json",
        help="Output JSON file path (default: simulation_results.json)",
    )
    sim_parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Print every exercise, status and verdict",
    )
    sim_parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed for reproducibility",
    )


def configure_logging(level: str, console: Console) -> None:
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True)],
    )


def run_simulation(args, console: Console) -> int:
    """Run the simulation subcommand."""
    from simulate import run_simulation_and_report
    from simulator_models import SimulatedRecognizerConfig, SimulatedStudentConfig

    ui = TutorUI(console)

    try:
        config = load_config(Path(args.config) if args.config else None)
        if args.timeout_ms is not None:
            config.recognition = RecognitionConfig.model_validate(
                {
                    **config.recognition.model_dump(),
                    "settlement_timeout_ms": args.timeout_ms,
                }
            )
        student = SimulatedStudentConfig(accuracy=args.accuracy)
        recognizer = SimulatedRecognizerConfig(
            misread_rate=args.misread_rate,
            garble_rate=args.garble_rate,
        )
    except ValidationError as e:
        ui.show_error(f"Invalid configuration:\n{e}")
        return 2
    except OSError as e:
        ui.show_error(f"Could not read configuration: {e}")
        return 2

    console.print("=" * 40, style="bold blue")
    console.print("    Handwriting Simulator", style="bold blue")
    console.print("=" * 40, style="bold blue")
    console.print()

    console.print(
        f"Simulating {args.sessions} sessions of "
        f"{config.session.session_length} exercises..."
    )
    if args.seed is not None:
        console.print(f"Random seed: {args.seed}")
    console.print()

    run_simulation_and_report(
        config=config,
        student=student,
        recognizer=recognizer,
        sessions=args.sessions,
        output_path=Path(args.output),
        verbose=args.verbose,
        seed=args.seed,
        console=console,
    )
    return 0


def main():
    """Main entry point with CLI routing."""
    parser = create_parser()
    args = parser.parse_args()

    console = Console()
    configure_logging(args.log_level, console)

    if args.command is None:
        # Default to simulate mode
        args = parser.parse_args(sys.argv[1:] + ["simulate"])

    sys.exit(run_simulation(args, console))


if __name__ == "__main__":
    main()
