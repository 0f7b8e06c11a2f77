"""Base function abstractions for activations and cost functions."""
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Callable


class FunctionKind(str, Enum):
    ACTIVATION = "ACTIVATION"
    COST = "COST"


@dataclass(frozen=True)
class ActivationFns:
    """Resolved activation handed to the engine: f(x) and the derivative it applies."""
    name: str
    fn: Callable[[float], float]
    derivative: Callable[[float], float]


@dataclass(frozen=True)
class CostFns:
    """Resolved cost function: cost(y, y_hat) and d cost / d y_hat."""
    name: str
    fn: Callable[[float, float], float]
    derivative: Callable[[float, float], float]


@dataclass
class FunctionDefinition:
    """Serializable function definition sent to the frontend."""
    name: str
    kind: FunctionKind
    display_name: str
    description: str


class BaseFunction(ABC):
    KIND: FunctionKind
    DISPLAY_NAME: str = ""
    DESCRIPTION: str = ""

    @classmethod
    def get_definition(cls, name: str) -> FunctionDefinition:
        return FunctionDefinition(
            name=name,
            kind=cls.KIND,
            display_name=cls.DISPLAY_NAME or cls.__name__,
            description=cls.DESCRIPTION or cls.__doc__ or "",
        )


class Activation(BaseFunction):
    """Scalar activation applied to every non-output node.

    ``derivative`` is the derivative with respect to the pre-activation
    input.  ``output_derivative`` expresses the same derivative in terms of
    the activated value, which is what the backward pass has on hand.
    """

    KIND = FunctionKind.ACTIVATION

    @staticmethod
    @abstractmethod
    def value(x: float) -> float:
        ...

    @staticmethod
    @abstractmethod
    def derivative(x: float) -> float:
        ...

    @staticmethod
    @abstractmethod
    def output_derivative(out: float) -> float:
        ...

    @classmethod
    def resolve(cls, name: str, exact_derivative: bool = False) -> ActivationFns:
        derivative = cls.output_derivative if exact_derivative else cls.derivative
        return ActivationFns(name=name, fn=cls.value, derivative=derivative)


class CostFunction(BaseFunction):
    """Per-sample cost between a target ``y`` and a prediction ``y_hat``."""

    KIND = FunctionKind.COST

    @staticmethod
    @abstractmethod
    def value(y: float, y_hat: float) -> float:
        ...

    @staticmethod
    @abstractmethod
    def derivative(y: float, y_hat: float) -> float:
        ...

    @classmethod
    def resolve(cls, name: str) -> CostFns:
        return CostFns(name=name, fn=cls.value, derivative=cls.derivative)
