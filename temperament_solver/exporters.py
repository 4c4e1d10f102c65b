"""Text exports of a solved scale: Scala .scl/.kbm and CSV."""

from typing import Optional, Sequence

from . import config
from .cents import cents_to_ratio_approx, degree_name, wrap_to_cycle
from .interval_errors import BeatRateRow
from .models import NoteResult, SolverInput


def build_scl(
    notes_cents: Sequence[float],
    period_cents: float,
    header: Optional[dict[str, str]] = None,
    title: str = config.SCALE_TITLE,
) -> str:
    """Scala scale file for a degree -> cents table.

    Degree 0 is implicit in the format; the period closes the list.
    """
    n = len(notes_cents)
    lines = [f"! {title} - generated by temperament_solver"]
    for key, value in (header or {}).items():
        lines.append(f"! {key}: {value}")
    lines.append("!")
    lines.append(f"{title} ({n} notes)")
    lines.append(f"{n}")
    for cents in notes_cents[1:]:
        lines.append(f"{wrap_to_cycle(cents, period_cents):.6f}")
    lines.append(f"{period_cents:.6f}")
    return "\n".join(lines) + "\n"


def build_kbm(solver_input: SolverInput, root_degree: int = 0) -> str:
    """Scala keyboard mapping: linear map with the base note on degree 0."""
    n = solver_input.scale_size
    lines = [
        f"! {config.SCALE_TITLE} - KBM",
        "! 0..127 mapping; unmapped entries use -1",
        "!",
        f"{n}",   # Map size
        "0",      # First MIDI note
        "127",    # Last MIDI note
        f"{solver_input.base_midi_note}",  # Middle note (degree 0)
        f"{solver_input.base_midi_note}",  # Reference note
        f"{solver_input.base_frequency_hz:.6f}",
        f"{n}",   # Formal octave degree
    ]
    # Linear mapping starting at root_degree
    lines.extend(f"{(root_degree + k) % n}" for k in range(n))
    return "\n".join(lines) + "\n"


def build_csv(notes: Sequence[NoteResult], beat_rows: Sequence[BeatRateRow] = ()) -> str:
    """CSV of the notes followed by the beat-rate table."""
    lines = ["Note,Degree,FrequencyHz,Cents,RatioApprox"]
    for note in notes:
        lines.append(
            f"{note.name},{note.degree},{note.frequency_hz:.6f},"
            f"{note.cents_from_root:.6f},{cents_to_ratio_approx(note.cents_from_root)}"
        )
    lines.append("")
    lines.append("BeatRates")
    lines.append("Low,High,Ratio,BeatHz,LowHz,HighHz")
    for row in beat_rows:
        lines.append(
            f"{row.low_degree},{row.high_degree},{row.ratio.key},"
            f"{row.beat_hz:.6f},{row.low_hz:.6f},{row.high_hz:.6f}"
        )
    return "\n".join(lines) + "\n"


def scl_header(
    solver_input: SolverInput,
    generator_cents: float,
    period_cents: float,
    period_stretch_cents: Optional[float] = None,
) -> dict[str, str]:
    """Comment header describing how a scale was solved."""
    n = solver_input.scale_size
    key = solver_input.key_specificity
    header = {
        "CycleCents": f"{period_cents:.6f}",
        "BaseFrequencyHz": f"{solver_input.base_frequency_hz:.6f}",
        "BaseMidiNote": f"{solver_input.base_midi_note}",
        "GeneratorCents": f"{generator_cents:.6f}",
        "KeySpecificity": f"tonic={degree_name(key.tonic % n, n)} flats={key.flats} sharps={key.sharps}",
    }
    if period_stretch_cents is not None:
        header["PeriodStretch"] = f"{period_stretch_cents:+.3f}¢"
    return header
