"""Continuous weighting across the eight reference anchors.

The anchors sit on the corners of a unit cube. Each of the three axes
blends from one family of intervals to another, so moving a point inside
the cube morphs emphasis between, e.g., a 3-limit temperament and a
5-/7-limit blended one without switching modes:

    x: lower prime → higher prime (3 → 5, 7 → 11/13)
    y: 3-/5-limit → 7-/11-/13-limit
    z: primary interval → companion (3/2 → 4/3, 5/4 → 6/5, ...)
"""

from .cents import clamp
from .models import OctaAnchor

OCTA_ANCHORS: tuple[OctaAnchor, ...] = (
    OctaAnchor("v000", 3, 2, "Perfect Fifth"),
    OctaAnchor("v001", 4, 3, "Perfect Fourth"),
    OctaAnchor("v100", 5, 4, "Major Third"),
    OctaAnchor("v101", 6, 5, "Minor Third"),
    OctaAnchor("v010", 7, 4, "Harmonic Seventh"),
    OctaAnchor("v011", 7, 6, "Septimal Minor Third"),
    OctaAnchor("v110", 11, 8, "Undecimal Tritone"),
    OctaAnchor("v111", 13, 8, "Tridecimal Sixth"),
)


def compute_octa_weights(x: float, y: float, z: float) -> dict[str, float]:
    """Trilinear weight of each cube vertex for the point (x, y, z).

    Vertex ids are "v" followed by the x, y and z bits, so "v101" is the
    corner at x=1, y=0, z=1. Weights are non-negative and, for in-range
    axes, sum to 1.

    Args:
        x: First blend axis (clamped to [0, 1])
        y: Second blend axis (clamped to [0, 1])
        z: Third blend axis (clamped to [0, 1])

    Returns:
        Dict mapping vertex id -> weight
    """
    cx = clamp(x, 0.0, 1.0)
    cy = clamp(y, 0.0, 1.0)
    cz = clamp(z, 0.0, 1.0)

    weights = {}
    for bx in (0, 1):
        wx = cx if bx else 1.0 - cx
        for by in (0, 1):
            wy = cy if by else 1.0 - cy
            for bz in (0, 1):
                wz = cz if bz else 1.0 - cz
                weights[f"v{bx}{by}{bz}"] = wx * wy * wz
    return weights


def weight_for_anchor(weights: dict[str, float], anchor: OctaAnchor) -> float:
    """Weight of an anchor, 0.0 when its id is not a cube vertex."""
    return weights.get(anchor.id, 0.0)
