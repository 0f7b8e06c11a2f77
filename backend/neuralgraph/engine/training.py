"""Training loop: online gradient descent over sampled examples, per-epoch loss."""
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, Callable

import numpy as np

from .backprop import CostFn, backward
from .graph import Edge, Graph
from .training_control import TrainingController, TrainingState
from .validator import check_structure

logger = logging.getLogger(__name__)

Sample = tuple[float, float]
ProgressCallback = Callable[[dict[str, Any]], None]


@dataclass
class TrainingResult:
    graph: Graph
    epoch_losses: list[float] = field(default_factory=list)
    updated_edges: list[Edge] = field(default_factory=list)
    stopped_early: bool = False


def draw_samples(
    samples: Sequence[Sample],
    count: int,
    rng: np.random.Generator | None = None,
) -> list[Sample]:
    """Draw ``count`` samples uniformly with replacement."""
    if not samples:
        raise ValueError("Cannot draw from an empty sample set")
    rng = rng if rng is not None else np.random.default_rng()
    indices = rng.integers(0, len(samples), size=count)
    return [samples[i] for i in indices]


def train_batch(
    graph: Graph,
    samples: Sequence[Sample],
    activation: Callable[[float], float],
    activation_derivative: Callable[[float], float],
    cost: CostFn,
    cost_derivative: CostFn,
    learning_rate: float = 0.01,
    epochs: int = 1,
    rng: np.random.Generator | None = None,
    shuffle: bool = True,
    clip: float | None = None,
    controller: TrainingController | None = None,
    progress_callback: ProgressCallback | None = None,
) -> TrainingResult:
    """Train ``graph`` for ``epochs`` epochs of online gradient descent.

    Each epoch runs ``len(samples)`` single-example ``backward`` updates,
    threading the returned graph into the next call, and records the mean
    loss.  With ``shuffle`` the epoch's examples are drawn with replacement;
    without it they are visited in order.

    A controller is consulted before every epoch: a pause blocks there and a
    stop ends training with ``stopped_early`` set.
    """
    if not samples:
        raise ValueError("Training requires at least one sample")
    if epochs < 0:
        raise ValueError(f"epochs must be non-negative, got {epochs}")
    check_structure(graph)

    rng = rng if rng is not None else np.random.default_rng()
    current = graph.copy()
    result = TrainingResult(graph=current)

    for epoch in range(epochs):
        if controller:
            state = controller.check()  # blocks while paused
            if state == TrainingState.STOPPED:
                result.stopped_early = True
                logger.info("training stopped before epoch %d/%d", epoch + 1, epochs)
                break

        batch = draw_samples(samples, len(samples), rng) if shuffle else list(samples)
        total = 0.0
        for x, y in batch:
            step = backward(
                current, x, y,
                activation, activation_derivative, cost, cost_derivative,
                learning_rate=learning_rate, clip=clip,
            )
            current = step.graph
            result.updated_edges = step.updated_edges
            total += step.loss

        avg_loss = total / len(batch)
        result.epoch_losses.append(avg_loss)
        result.graph = current
        logger.info("epoch %d/%d loss=%.6f", epoch + 1, epochs, avg_loss)

        if progress_callback:
            progress_callback({
                "type": "training_progress",
                "epoch": epoch + 1,
                "total_epochs": epochs,
                "loss": avg_loss,
            })

    return result
