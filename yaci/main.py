"""
YACI -- Yet Another CHIP-8 Interpreter

Command-line entry point.  Parses arguments, creates the machine from a ROM
file, and launches the pygame display window.

Usage examples::

    # Run a ROM with default settings
    yaci roms/pong.ch8

    # Larger window, faster CPU
    yaci roms/pong.ch8 --scale 15 --cycles 30

    # COSMAC VIP shift and load/store behaviour
    yaci roms/game.ch8 --shift-quirk --load-store-quirk

    # Print ROM metadata without launching
    yaci roms/pong.ch8 --info

    # Disable audio
    yaci roms/pong.ch8 --no-audio
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional

from yaci.core.errors import LoadError
from yaci.core.types import RandomMode
from yaci.shell.services.machine_factory import MachineFactory


# ---------------------------------------------------------------------------
# CLI definition
# ---------------------------------------------------------------------------

def _build_parser() -> argparse.ArgumentParser:
    """Construct the argument parser."""
    parser = argparse.ArgumentParser(
        prog="yaci",
        description=(
            "YACI -- a CHIP-8 interpreter.  Load a ROM file and run it in a "
            "pygame window."
        ),
    )

    parser.add_argument(
        "rom",
        help="Path to the ROM file (.ch8, .c8, .rom)",
    )

    # Display
    parser.add_argument(
        "--scale", "-s",
        type=int,
        default=10,
        help="Display scale factor (1-30).  Default: 10.",
    )

    # Timing
    parser.add_argument(
        "--cycles", "-c",
        type=int,
        default=None,
        metavar="N",
        help="Instructions executed per 60 Hz timer tick.  Default: 18.",
    )

    # Audio
    parser.add_argument(
        "--no-audio",
        action="store_true",
        default=False,
        help="Disable the beeper.",
    )

    # Behaviour
    parser.add_argument(
        "--random-mode",
        choices=[mode.value for mode in RandomMode],
        default=RandomMode.AND.value,
        help="How CXNN combines the random byte with NN.  Default: and.",
    )
    parser.add_argument(
        "--skip-unknown-opcodes",
        action="store_true",
        default=False,
        help="Step over unrecognised opcodes instead of halting.",
    )
    parser.add_argument(
        "--shift-quirk",
        action="store_true",
        default=False,
        help="8XY6/8XYE shift VY into VX (COSMAC VIP behaviour).",
    )
    parser.add_argument(
        "--load-store-quirk",
        action="store_true",
        default=False,
        help="FX55/FX65 advance I past the transferred bytes.",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the random number source.",
    )

    # Debugging / info
    parser.add_argument(
        "--info",
        action="store_true",
        default=False,
        help="Print ROM metadata and exit without launching the interpreter.",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="count",
        default=0,
        help="Increase log verbosity (-v for INFO, -vv for DEBUG).",
    )

    return parser


# ---------------------------------------------------------------------------
# Logging setup
# ---------------------------------------------------------------------------

def _configure_logging(verbosity: int) -> None:
    """Set up the root logger based on requested verbosity."""
    if verbosity >= 2:
        level = logging.DEBUG
    elif verbosity >= 1:
        level = logging.INFO
    else:
        level = logging.WARNING

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


# ---------------------------------------------------------------------------
# Info mode
# ---------------------------------------------------------------------------

def _print_rom_info(rom_path: str) -> int:
    """Print human-readable metadata for a ROM."""
    try:
        info = MachineFactory.describe(rom_path)
    except LoadError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print("YACI ROM Information")
    print("=" * 40)
    for key, value in info.items():
        label = key.replace("_", " ").title()
        print(f"  {label:20s}: {value}")
    print("=" * 40)
    return 0


# ---------------------------------------------------------------------------
# Main
# ---------------------------------------------------------------------------

def main(argv: Optional[list[str]] = None) -> int:
    """Application entry point.

    Parameters
    ----------
    argv:
        Command-line arguments.  ``None`` to use ``sys.argv``.

    Returns
    -------
    int
        Exit code: 0 on success, 1 on a load error, 2 when the machine
        halted on a fault.
    """
    parser = _build_parser()
    args = parser.parse_args(argv)

    _configure_logging(args.verbose)
    logger = logging.getLogger("yaci.main")

    if args.info:
        return _print_rom_info(args.rom)

    if args.cycles is not None and args.cycles < 1:
        parser.error("--cycles must be at least 1")

    try:
        machine = MachineFactory.create(
            args.rom,
            random_mode=args.random_mode,
            skip_unknown_opcodes=args.skip_unknown_opcodes,
            shift_quirk=args.shift_quirk,
            load_store_quirk=args.load_store_quirk,
            cycles_per_tick=args.cycles,
            seed=args.seed,
        )
    except LoadError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    # Imported late so that --info and load errors never need a display.
    from yaci.platform.window import Window

    logger.info("Starting interpreter ...")
    try:
        window = Window(
            machine,
            scale=args.scale,
            enable_audio=not args.no_audio,
        )
        fault = window.run()
    except KeyboardInterrupt:
        fault = None

    if fault is not None:
        print(f"Machine halted: {fault}", file=sys.stderr)
        return 2

    logger.info("Exited cleanly")
    return 0


if __name__ == "__main__":
    sys.exit(main())
