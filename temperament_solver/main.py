"""Command-line entry point for the Adaptive Temperament Solver.

Builds a SolverInput from a JSON file and/or flags, solves it, prints the
degree table and interval errors, and optionally writes Scala/CSV files
and broadcasts the result to a visualizer over OSC.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import Optional, Sequence

from . import config
from .models import KeySpecificity, OctaWeighting, RatioSpec, SolverInput, WolfPlacement
from .osc_sender import MockSolutionBroadcaster, SolutionBroadcaster
from .solver import SolverOutput, run_solver

DEFAULT_TARGETS = "3/2,5/4,6/5"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Adaptive Temperament Solver - fit a generator and period to just intervals"
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="JSON solver configuration (flags below override its values)",
    )
    parser.add_argument("--scale-size", type=int, help="Number of scale degrees (default: 12)")
    parser.add_argument(
        "--cycle",
        type=float,
        help=f"Period in cents (default: {config.DEFAULT_CYCLE_CENTS})",
    )
    parser.add_argument(
        "--targets",
        help=f"Comma-separated just ratios (default: {DEFAULT_TARGETS})",
    )
    parser.add_argument(
        "--weight",
        action="append",
        default=[],
        metavar="N/D=W",
        help="Matrix weight for a target ratio (repeatable)",
    )
    parser.add_argument(
        "--octa",
        type=float,
        nargs=3,
        metavar=("X", "Y", "Z"),
        help="Enable octave weighting at the given cube position",
    )
    parser.add_argument(
        "--stiffness",
        type=float,
        help="Octave stiffness, 1.0 = rigid octave, <1.0 = allow stretch",
    )
    parser.add_argument("--tonic", type=int, help="Tonic degree")
    parser.add_argument("--flats", type=int, help="Number of flats (automatic wolf placement)")
    parser.add_argument(
        "--wolf-edge",
        type=int,
        help="Place the wolf manually at this edge index",
    )
    parser.add_argument("--base-hz", type=float, help="Frequency of degree 0 in Hz")
    parser.add_argument("--base-midi", type=int, help="MIDI note of degree 0")
    parser.add_argument("--scl", type=Path, help="Write a Scala .scl file")
    parser.add_argument("--kbm", type=Path, help="Write a Scala .kbm keyboard map")
    parser.add_argument("--csv", type=Path, help="Write notes and beat rates as CSV")
    parser.add_argument(
        "--intervals",
        action="store_true",
        help="Print every interval-error row, not just the tonic's",
    )
    parser.add_argument(
        "--broadcast",
        action="store_true",
        help=f"Broadcast the result to a visualizer on port {config.BROADCAST_PORT}",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Log broadcast messages instead of sending them",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Reduce output verbosity",
    )
    return parser


def _parse_weights(entries: Sequence[str]) -> dict[str, float]:
    weights = {}
    for entry in entries:
        ratio, sep, value = entry.partition("=")
        if not sep:
            raise ValueError(f"Weight must look like 'n/d=w', got {entry!r}")
        weights[RatioSpec.parse(ratio).key] = float(value)
    return weights


def build_input(args: argparse.Namespace) -> SolverInput:
    """Merge the JSON config (if any) with command-line overrides.

    Raises:
        ValueError: On malformed ratios, weights or config values
    """
    data: dict = {}
    if args.config is not None:
        try:
            data = json.loads(args.config.read_text())
        except (OSError, json.JSONDecodeError) as exc:
            raise ValueError(f"Cannot read config {args.config}: {exc}") from exc

    base = SolverInput.from_dict({"scaleSize": 12, **data})

    targets = base.targets
    if args.targets is not None or not data:
        text = args.targets if args.targets is not None else DEFAULT_TARGETS
        targets = tuple(RatioSpec.parse(t) for t in text.split(",") if t.strip())

    target_weights = base.target_weights
    if args.weight:
        target_weights = _parse_weights(args.weight)

    octa_weighting = base.octa_weighting
    if args.octa is not None:
        x, y, z = args.octa
        anchors = octa_weighting.targets if octa_weighting else None
        octa_weighting = OctaWeighting(enabled=True, x=x, y=y, z=z, targets=anchors)

    key = base.key_specificity
    key = KeySpecificity(
        tonic=args.tonic if args.tonic is not None else key.tonic,
        flats=args.flats if args.flats is not None else key.flats,
        sharps=key.sharps,
    )

    wolf_placement = base.wolf_placement
    wolf_edge_index = base.wolf_edge_index
    if args.wolf_edge is not None:
        wolf_placement = WolfPlacement.MANUAL
        wolf_edge_index = args.wolf_edge

    def pick(value, default):
        return value if value is not None else default

    return SolverInput(
        scale_size=pick(args.scale_size, base.scale_size),
        cycle_cents=pick(args.cycle, base.cycle_cents),
        targets=targets,
        target_weights=target_weights,
        octa_weighting=octa_weighting,
        octave_stiffness=pick(args.stiffness, base.octave_stiffness),
        key_specificity=key,
        wolf_placement=wolf_placement,
        wolf_edge_index=wolf_edge_index,
        base_midi_note=pick(args.base_midi, base.base_midi_note),
        base_frequency_hz=pick(args.base_hz, base.base_frequency_hz),
    )


def print_report(output: SolverOutput, all_intervals: bool = False) -> None:
    """Print the solved scale and its interval errors."""
    result = output.result
    print(f"✓ Strategy: {result.strategy.value}")
    print(f"✓ Generator: {result.generator_cents:.4f}¢")
    if result.optimized_period_cents is not None:
        print(
            f"✓ Period: {result.optimized_period_cents:.4f}¢ "
            f"(stretch {result.period_stretch_cents:+.3f}¢)"
        )
        if result.period_stretch_warning:
            print(f"⚠ Period stretch exceeds {config.PERIOD_STRETCH_WARNING_CENTS:.0f}¢")
    print(f"✓ RMS error: {output.rms_error_cents:.3f}¢, max |error|: {output.max_abs_error_cents:.3f}¢")
    print()
    print("Degree  Name    Cents        Hz")
    print("-" * 38)
    for note in output.notes:
        print(f"{note.degree:6d}  {note.name:6s} {note.cents_from_root:9.3f}  {note.frequency_hz:10.3f}")
    print()

    tonic = output.input.key_specificity.tonic % output.input.scale_size
    rows = [
        it for it in result.intervals
        if all_intervals or it.i == tonic
    ]
    print("Interval errors" + ("" if all_intervals else f" (from degree {tonic})") + ":")
    for it in rows:
        marker = "*" if it.is_skeleton else " "
        print(
            f" {marker} {it.target.key:>6s} {it.kind.value:3s} {it.i:3d}→{it.j:<3d} "
            f"target {it.target_cents:8.3f}¢  actual {it.actual_cents:8.3f}¢  "
            f"error {it.error_cents:+8.3f}¢"
        )


def write_exports(output: SolverOutput, args: argparse.Namespace, verbose: bool) -> None:
    """Write the requested Scala/CSV files."""
    for path, text in ((args.scl, output.scl_text), (args.kbm, output.kbm_text), (args.csv, output.csv_text)):
        if path is None:
            continue
        path.write_text(text)
        if verbose:
            print(f"✓ Wrote {path}")


def main(argv: Optional[Sequence[str]] = None) -> None:
    """Entry point for the temperament solver CLI."""
    args = build_parser().parse_args(argv)
    verbose = not args.quiet

    try:
        solver_input = build_input(args)
        output = run_solver(solver_input)
    except ValueError as exc:
        print(f"✗ {exc}", file=sys.stderr)
        sys.exit(1)

    if verbose:
        print_report(output, all_intervals=args.intervals)
    else:
        print(" ".join(f"{c:.6f}" for c in output.result.notes_cents))

    write_exports(output, args, verbose)

    if args.broadcast:
        if args.mock:
            broadcaster = MockSolutionBroadcaster(verbose=verbose)
        else:
            broadcaster = SolutionBroadcaster()
        with broadcaster:
            sent = broadcaster.send_result(output.result, solver_input.base_frequency_hz)
        if verbose:
            print(f"✓ OSC: Sent {sent} messages to {broadcaster.host}:{broadcaster.port}")


if __name__ == "__main__":
    main()
