"""Easing curves for temperature transitions.

Every curve maps normalized progress in [0, 1] to eased progress in [0, 1],
with f(0) == 0 and f(1) == 1. Curves are selected by name, or by a
"cubic_bezier(x1,y1,x2,y2)" descriptor. Unknown or malformed identifiers
fall back to linear so a configuration typo never stops the daemon.
"""

import math
from typing import Callable, Optional

EasingFunction = Callable[[float], float]

MIN_TEMPERATURE = 0
MAX_TEMPERATURE = 65535

BEZIER_PREFIX = "cubic_bezier("
BEZIER_MAX_ITERATIONS = 8
BEZIER_EPSILON = 1e-7
BEZIER_MIN_SLOPE = 1e-6


def linear(t: float) -> float:
    return t


def ease_in(t: float) -> float:
    return t * t


def ease_out(t: float) -> float:
    return t * (2.0 - t)


def ease_in_out(t: float) -> float:
    if t < 0.5:
        return 2.0 * t * t
    return -1.0 + (4.0 - 2.0 * t) * t


def sine(t: float) -> float:
    return (1.0 - math.cos(math.pi * t)) / 2.0


def smooth(t: float) -> float:
    """Smoothstep: zero slope at both ends."""
    return t * t * (3.0 - 2.0 * t)


def smoother(t: float) -> float:
    """Quintic smootherstep: zero slope and curvature at both ends."""
    return t * t * t * (t * (6.0 * t - 15.0) + 10.0)


EASING_FUNCTIONS: dict[str, EasingFunction] = {
    "linear": linear,
    "ease_in": ease_in,
    "ease_out": ease_out,
    "ease_in_out": ease_in_out,
    "sine": sine,
    "smooth": smooth,
    "smoother": smoother,
}


def parse_cubic_bezier(curve: str) -> Optional[tuple[float, float, float, float]]:
    """Parse a "cubic_bezier(x1,y1,x2,y2)" descriptor.

    Args:
        curve: The easing identifier.

    Returns:
        The four control point components, or None if the descriptor is
        malformed (wrong prefix, missing parenthesis, wrong argument count,
        unparsable or non-finite numbers).
    """
    text = curve.strip()
    if not text.startswith(BEZIER_PREFIX) or not text.endswith(")"):
        return None

    parts = text[len(BEZIER_PREFIX) : -1].split(",")
    if len(parts) != 4:
        return None

    try:
        x1, y1, x2, y2 = (float(part) for part in parts)
    except ValueError:
        return None

    if not all(math.isfinite(v) for v in (x1, y1, x2, y2)):
        return None
    return x1, y1, x2, y2


def _bezier(u: float, p1: float, p2: float) -> float:
    # One component of a cubic Bezier anchored at 0 and 1
    inv = 1.0 - u
    return 3.0 * inv * inv * u * p1 + 3.0 * inv * u * u * p2 + u * u * u


def _bezier_slope(u: float, p1: float, p2: float) -> float:
    inv = 1.0 - u
    return 3.0 * inv * inv * p1 + 6.0 * inv * u * (p2 - p1) + 3.0 * u * u * (1.0 - p2)


def cubic_bezier(t: float, x1: float, y1: float, x2: float, y2: float) -> float:
    """Evaluate a CSS-style cubic Bezier timing curve at progress `t`.

    Solves x(u) == t with Newton-Raphson, then returns y(u).
    """
    u = t
    for _ in range(BEZIER_MAX_ITERATIONS):
        error = _bezier(u, x1, x2) - t
        if abs(error) < BEZIER_EPSILON:
            break
        slope = _bezier_slope(u, x1, x2)
        if abs(slope) < BEZIER_MIN_SLOPE:
            break
        u = min(1.0, max(0.0, u - error / slope))
    return _bezier(u, y1, y2)


def resolve_easing(curve: str) -> EasingFunction:
    """Return the easing function for an identifier, linear if unknown."""
    func = EASING_FUNCTIONS.get(curve)
    if func is not None:
        return func

    points = parse_cubic_bezier(curve)
    if points is not None:
        x1, y1, x2, y2 = points
        return lambda t: cubic_bezier(t, x1, y1, x2, y2)

    return linear


def is_known_easing(curve: str) -> bool:
    """True if the identifier names a curve instead of falling back."""
    return curve in EASING_FUNCTIONS or parse_cubic_bezier(curve) is not None


def apply_easing(progress: float, curve: str) -> float:
    """Map normalized progress through the named easing curve.

    Args:
        progress: Time progress, clamped to [0, 1].
        curve: Curve name or cubic Bezier descriptor.

    Returns:
        Eased progress. Never raises.
    """
    t = min(1.0, max(0.0, progress))
    return resolve_easing(curve)(t)


def interpolate(start: int, target: int, eased: float) -> int:
    """Temperature at `eased` progress between `start` and `target`.

    The result is rounded and clamped to the segment between the endpoints
    and to the representable temperature range, so curves that overshoot
    (cubic Bezier with y outside [0, 1]) never leave it.
    """
    value = start + round(eased * (target - start))
    low, high = min(start, target), max(start, target)
    value = min(high, max(low, value))
    return min(MAX_TEMPERATURE, max(MIN_TEMPERATURE, value))
