"""REST API routes."""
import asyncio
import logging
import math
import uuid
from concurrent.futures import ThreadPoolExecutor
from contextlib import contextmanager
from typing import Any

import numpy as np
from fastapi import APIRouter, HTTPException

from ..config import settings
from ..data.samples import function_curve, generate_samples, get_preset
from ..engine.backprop import backward
from ..engine.executor import forward, predict_curve
from ..engine.graph import Edge, Graph, build_graph, default_graph, layered_graph
from ..engine.session import active_session_count, create_session, get_session, remove_session
from ..engine.training import train_batch
from ..engine.validator import InvalidGraphError, check_structure, validate_graph
from ..functions.base import ActivationFns, CostFns
from ..functions.registry import FunctionRegistry
from ..models.schemas import (
    BackwardRequest, BackwardResponse, BuildGraphRequest, EdgeSchema,
    ForwardRequest, ForwardResponse, FunctionDefinitionResponse, GraphSchema,
    LayersRequest, NodeSchema, PredictRequest, PredictResponse,
    SamplesRequest, SamplesResponse, TrainRequest, TrainResponse,
    ValidateResponse,
)
from .websocket import manager

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")
executor_pool = ThreadPoolExecutor(max_workers=settings.max_training_runs)

# In-memory stores (capped at _MAX_RESULTS to prevent unbounded growth)
_MAX_RESULTS = 20
_results: dict[str, Any] = {}
_tasks: set[asyncio.Task] = set()


def _finite(value: float) -> float | None:
    """JSON has no NaN/Infinity; report them as null."""
    return value if math.isfinite(value) else None


def _rng(seed: int | None) -> np.random.Generator:
    return np.random.default_rng(seed)


def _schema_to_graph(schema: GraphSchema, previous: Graph | None = None, seed: int | None = None) -> Graph:
    return build_graph(schema.nodes, schema.edges, previous=previous, rng=_rng(seed))


def _compute_graph(schema: GraphSchema) -> Graph:
    """Graph for forward/backward/predict/train.

    Every edge must carry a finite weight.  A diverged weight comes back from
    the API as null, and silently redrawing it would hide the divergence.
    """
    errors = [
        f"Edge {e.id} has no finite weight"
        for e in schema.edges
        if e.weight is None or not math.isfinite(e.weight)
    ]
    if errors:
        raise InvalidGraphError(errors)
    return _schema_to_graph(schema)


def _edge_to_schema(edge: Edge) -> EdgeSchema:
    return EdgeSchema(
        id=edge.id, source=edge.source, target=edge.target,
        weight=_finite(edge.weight), label=edge.label,
    )


def _graph_to_schema(graph: Graph) -> GraphSchema:
    return GraphSchema(
        nodes=[
            NodeSchema(id=n.id, kind=n.kind, value=_finite(n.value), position=n.position)
            for n in graph.nodes.values()
        ],
        edges=[_edge_to_schema(e) for e in graph.edges.values()],
    )


@contextmanager
def _engine_errors():
    """Map engine exceptions onto HTTP errors."""
    try:
        yield
    except InvalidGraphError as e:
        raise HTTPException(status_code=422, detail=e.errors) from e
    except KeyError as e:
        raise HTTPException(status_code=404, detail=str(e.args[0]) if e.args else str(e)) from e
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e


def _resolve_functions(activation: str | None, cost: str | None = None) -> tuple[ActivationFns, CostFns]:
    with _engine_errors():
        return (
            FunctionRegistry.get_activation(activation or settings.default_activation),
            FunctionRegistry.get_cost(cost or settings.default_cost),
        )


@router.get("/functions")
async def list_functions():
    """Return all registered activation and cost functions."""
    return {
        name: FunctionDefinitionResponse(
            name=defn.name,
            kind=defn.kind.value,
            display_name=defn.display_name,
            description=defn.description,
        )
        for name, defn in FunctionRegistry.all_definitions().items()
    }


@router.get("/graph/default", response_model=GraphSchema)
async def get_default_graph():
    return _graph_to_schema(default_graph())


@router.post("/graph/layers", response_model=GraphSchema)
async def build_layers(request: LayersRequest):
    """Fully connected graph from a hidden layer spec such as ``3x3``."""
    with _engine_errors():
        graph = layered_graph(request.layers, rng=_rng(request.seed))
    return _graph_to_schema(graph)


@router.post("/graph/build", response_model=GraphSchema)
async def rebuild_graph(request: BuildGraphRequest):
    """Rebuild a graph after an edit, keeping weights of edges in ``previous``."""
    with _engine_errors():
        previous = _schema_to_graph(request.previous) if request.previous else None
        graph = build_graph(request.nodes, request.edges, previous=previous, rng=_rng(request.seed))
    return _graph_to_schema(graph)


@router.post("/validate", response_model=ValidateResponse)
async def validate(schema: GraphSchema):
    try:
        graph = _schema_to_graph(schema)
    except InvalidGraphError as e:
        return ValidateResponse(valid=False, errors=e.errors)
    errors = validate_graph(graph)
    return ValidateResponse(valid=not errors, errors=errors)


@router.post("/forward", response_model=ForwardResponse)
async def run_forward(request: ForwardRequest):
    act, _ = _resolve_functions(request.activation)
    with _engine_errors():
        graph = _compute_graph(request.graph)
        result, output = forward(graph, request.input, act.fn)
    return ForwardResponse(graph=_graph_to_schema(result), output=_finite(output))


@router.post("/backward", response_model=BackwardResponse)
async def run_backward(request: BackwardRequest):
    act, cost = _resolve_functions(request.activation, request.cost)
    lr = request.learning_rate or settings.learning_rate
    with _engine_errors():
        graph = _compute_graph(request.graph)
        step = backward(
            graph, request.input, request.target,
            act.fn, act.derivative, cost.fn, cost.derivative,
            learning_rate=lr, clip=settings.gradient_clip,
        )
    return BackwardResponse(
        graph=_graph_to_schema(step.graph),
        updated_edges=[_edge_to_schema(e) for e in step.updated_edges],
        loss=_finite(step.loss),
        prediction=_finite(step.prediction),
    )


@router.post("/predict", response_model=PredictResponse)
async def predict(request: PredictRequest):
    """Model output across the domain, optionally with a preset target curve."""
    act, _ = _resolve_functions(request.activation)
    with _engine_errors():
        graph = _compute_graph(request.graph)
        points = predict_curve(graph, request.domain, act.fn, steps=request.steps)
        target_points = None
        if request.function:
            target_points = function_curve(get_preset(request.function), request.domain, request.steps)
    return PredictResponse(
        points=[(x, _finite(y)) for x, y in points],
        target_points=target_points,
    )


@router.post("/samples", response_model=SamplesResponse)
async def make_samples(request: SamplesRequest):
    with _engine_errors():
        samples = generate_samples(
            get_preset(request.function),
            request.domain,
            request.count if request.count is not None else settings.sample_count,
            request.variance if request.variance is not None else settings.noise_variance,
            rng=_rng(request.seed),
        )
    return SamplesResponse(samples=samples)


@router.post("/train", response_model=TrainResponse)
async def train(request: TrainRequest):
    """Start training in the background.

    Returns immediately with execution_id.  Per-epoch progress, completion,
    and errors are delivered via WebSocket; the final result is also kept
    for ``GET /api/results/{execution_id}``.
    """
    act, cost = _resolve_functions(request.activation, request.cost)
    epochs = request.epochs if request.epochs is not None else settings.epochs
    if epochs > settings.max_epochs:
        raise HTTPException(status_code=400, detail=f"epochs must be at most {settings.max_epochs}")
    if not request.samples:
        raise HTTPException(status_code=400, detail="Training requires at least one sample")
    with _engine_errors():
        graph = _compute_graph(request.graph)
        check_structure(graph)
    if active_session_count() >= settings.max_training_runs:
        # Queued runs would wait behind paused ones indefinitely
        raise HTTPException(
            status_code=503,
            detail=f"At most {settings.max_training_runs} training runs may be active; stop one first",
        )

    lr = request.learning_rate or settings.learning_rate
    session_id = request.session_id or str(uuid.uuid4())
    execution_id = str(uuid.uuid4())
    loop = asyncio.get_running_loop()
    send_progress = manager.make_progress_callback(session_id, execution_id, loop)
    session = create_session(execution_id, session_id, epochs)

    def progress_cb(message: dict[str, Any]):
        message = {**message, "loss": _finite(message["loss"])}
        session.record_progress(message)
        send_progress(message)

    def run():
        return train_batch(
            graph, request.samples,
            act.fn, act.derivative, cost.fn, cost.derivative,
            learning_rate=lr, epochs=epochs,
            rng=_rng(request.seed), shuffle=request.shuffle,
            clip=settings.gradient_clip,
            controller=session.controller,
            progress_callback=progress_cb,
        )

    async def _run_training():
        try:
            await manager.send_to_session(session_id, {
                "type": "execution_start", "execution_id": execution_id,
            })

            result = await loop.run_in_executor(executor_pool, run)

            serialized = {
                "graph": _graph_to_schema(result.graph).model_dump(mode="json"),
                "epoch_losses": [_finite(loss) for loss in result.epoch_losses],
                "stopped_early": result.stopped_early,
            }
            # Evict oldest entries if at capacity
            while len(_results) >= _MAX_RESULTS:
                _results.pop(next(iter(_results)))
            _results[execution_id] = serialized
            logger.info(
                "training run %s finished after %d epochs%s", execution_id,
                len(result.epoch_losses), " (stopped)" if result.stopped_early else "",
            )

            await manager.send_to_session(session_id, {
                "type": "execution_complete",
                "execution_id": execution_id,
                "results": serialized,
            })
        except Exception as e:
            logger.exception("training run %s failed", execution_id)
            await manager.send_to_session(session_id, {
                "type": "execution_error",
                "execution_id": execution_id,
                "error": str(e),
            })
        finally:
            remove_session(execution_id)

    task = asyncio.create_task(_run_training())
    _tasks.add(task)
    task.add_done_callback(_tasks.discard)
    logger.info("training run %s started: %d epochs, %d samples", execution_id, epochs, len(request.samples))

    return TrainResponse(execution_id=execution_id, status="started")


def _require_session(execution_id: str):
    session = get_session(execution_id)
    if not session:
        raise HTTPException(status_code=404, detail="Execution not found or already completed")
    return session


@router.get("/train/{execution_id}")
async def training_status(execution_id: str):
    return _require_session(execution_id).status()


@router.post("/train/{execution_id}/pause")
async def pause_training(execution_id: str):
    session = _require_session(execution_id)
    session.controller.pause()
    await manager.send_to_session(session.session_id, {
        "type": "training_paused", "execution_id": execution_id,
    })
    return {"status": session.controller.state.value}


@router.post("/train/{execution_id}/resume")
async def resume_training(execution_id: str):
    session = _require_session(execution_id)
    session.controller.resume()
    await manager.send_to_session(session.session_id, {
        "type": "training_resumed", "execution_id": execution_id,
    })
    return {"status": session.controller.state.value}


@router.post("/train/{execution_id}/stop")
async def stop_training(execution_id: str):
    session = _require_session(execution_id)
    session.controller.stop()
    await manager.send_to_session(session.session_id, {
        "type": "training_stopped", "execution_id": execution_id,
    })
    return {"status": session.controller.state.value}


@router.get("/results/{execution_id}")
async def get_results(execution_id: str):
    if execution_id not in _results:
        raise HTTPException(status_code=404, detail="Execution not found")
    return _results[execution_id]
