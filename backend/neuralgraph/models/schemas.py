"""Pydantic schemas for API request/response models."""
from typing import Any

from pydantic import BaseModel, Field

from ..engine.graph import NodeKind


class NodeSchema(BaseModel):
    id: str
    kind: NodeKind = NodeKind.HIDDEN
    value: float | None = None  # None = keep previous / per-kind default
    position: dict[str, float] = {}


class EdgeSchema(BaseModel):
    id: str
    source: str
    target: str
    weight: float | None = None  # None = keep previous / fresh random weight
    label: str = ""


class GraphSchema(BaseModel):
    nodes: list[NodeSchema]
    edges: list[EdgeSchema] = []


class BuildGraphRequest(BaseModel):
    nodes: list[NodeSchema]
    edges: list[EdgeSchema] = []
    previous: GraphSchema | None = None
    seed: int | None = None


class LayersRequest(BaseModel):
    layers: str = "3x3"
    seed: int | None = None


class ValidateResponse(BaseModel):
    valid: bool
    errors: list[str] = []


class ForwardRequest(BaseModel):
    graph: GraphSchema
    input: float
    activation: str | None = None


class ForwardResponse(BaseModel):
    graph: GraphSchema
    output: float | None


class BackwardRequest(BaseModel):
    graph: GraphSchema
    input: float
    target: float
    activation: str | None = None
    cost: str | None = None
    learning_rate: float | None = Field(default=None, gt=0)


class BackwardResponse(BaseModel):
    graph: GraphSchema
    updated_edges: list[EdgeSchema]
    loss: float | None
    prediction: float | None


class PredictRequest(BaseModel):
    graph: GraphSchema
    domain: tuple[float, float] = (-1.0, 1.0)
    activation: str | None = None
    steps: int = Field(default=100, ge=1, le=10000)
    function: str | None = None  # optional preset to plot alongside the model


class PredictResponse(BaseModel):
    points: list[tuple[float, float | None]]
    target_points: list[tuple[float, float]] | None = None


class SamplesRequest(BaseModel):
    function: str = "linear"
    domain: tuple[float, float] = (-1.0, 1.0)
    count: int | None = Field(default=None, ge=0)
    variance: float | None = Field(default=None, ge=0)
    seed: int | None = None


class SamplesResponse(BaseModel):
    samples: list[tuple[float, float]]


class TrainRequest(BaseModel):
    graph: GraphSchema
    samples: list[tuple[float, float]]
    activation: str | None = None
    cost: str | None = None
    learning_rate: float | None = Field(default=None, gt=0)
    epochs: int | None = Field(default=None, ge=0)
    shuffle: bool = True
    seed: int | None = None
    session_id: str | None = None


class TrainResponse(BaseModel):
    execution_id: str
    status: str
    results: dict[str, Any] = {}
    errors: list[str] = []


class FunctionDefinitionResponse(BaseModel):
    name: str
    kind: str
    display_name: str
    description: str
