"""Dataset generation: noisy samples of a scalar function over an interval."""
import math
from typing import Callable

import numpy as np

Sample = tuple[float, float]

# Stand-ins for user-typed f(x) expressions, which are parsed client-side
PRESET_FUNCTIONS: dict[str, Callable[[float], float]] = {
    "linear": lambda x: 2 * x,
    "quadratic": lambda x: x * x,
    "cubic": lambda x: x * x * x,
    "sine": math.sin,
    "abs": abs,
}


def get_preset(name: str) -> Callable[[float], float]:
    if name not in PRESET_FUNCTIONS:
        raise KeyError(f"Unknown function: {name}")
    return PRESET_FUNCTIONS[name]


def _check_domain(domain: tuple[float, float]) -> tuple[float, float]:
    low, high = domain
    if low > high:
        raise ValueError(f"Invalid domain [{low}, {high}]")
    return float(low), float(high)


def generate_samples(
    fn: Callable[[float], float],
    domain: tuple[float, float],
    count: int,
    variance: float,
    rng: np.random.Generator | None = None,
) -> list[Sample]:
    """Draw ``count`` (x, fn(x) + noise) pairs.

    x is uniform over ``domain``; noise is uniform in
    ``[-variance / 2, variance / 2]``.
    """
    low, high = _check_domain(domain)
    if count < 0:
        raise ValueError(f"count must be non-negative, got {count}")
    if variance < 0:
        raise ValueError(f"variance must be non-negative, got {variance}")

    rng = rng if rng is not None else np.random.default_rng()
    xs = rng.uniform(low, high, size=count)
    noise = rng.uniform(-variance / 2, variance / 2, size=count)
    return [(float(x), float(fn(float(x))) + float(n)) for x, n in zip(xs, noise)]


def function_curve(
    fn: Callable[[float], float],
    domain: tuple[float, float],
    steps: int = 100,
) -> list[Sample]:
    """Noise-free ``fn`` at ``steps + 1`` evenly spaced points, for plotting against the model."""
    low, high = _check_domain(domain)
    return [(float(x), float(fn(float(x)))) for x in np.linspace(low, high, steps + 1)]
