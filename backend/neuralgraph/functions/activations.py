"""Activation functions: Sigmoid, ReLU, Tanh, Identity."""
import math

from .base import Activation
from .registry import FunctionRegistry


def _sigmoid(x: float) -> float:
    # Split on sign so math.exp never overflows
    if x >= 0:
        return 1.0 / (1.0 + math.exp(-x))
    z = math.exp(x)
    return z / (1.0 + z)


@FunctionRegistry.register("sigmoid")
class Sigmoid(Activation):
    DISPLAY_NAME = "Sigmoid"
    DESCRIPTION = "Logistic function 1 / (1 + e^-x)"

    @staticmethod
    def value(x: float) -> float:
        return _sigmoid(x)

    @staticmethod
    def derivative(x: float) -> float:
        s = _sigmoid(x)
        return s * (1.0 - s)

    @staticmethod
    def output_derivative(out: float) -> float:
        return out * (1.0 - out)


@FunctionRegistry.register("relu")
class ReLU(Activation):
    DISPLAY_NAME = "ReLU"
    DESCRIPTION = "Rectified linear unit max(0, x)"

    @staticmethod
    def value(x: float) -> float:
        return max(0.0, x)

    @staticmethod
    def derivative(x: float) -> float:
        return 1.0 if x > 0 else 0.0

    @staticmethod
    def output_derivative(out: float) -> float:
        return 1.0 if out > 0 else 0.0


@FunctionRegistry.register("tanh")
class Tanh(Activation):
    DISPLAY_NAME = "Tanh"
    DESCRIPTION = "Hyperbolic tangent"

    @staticmethod
    def value(x: float) -> float:
        return math.tanh(x)

    @staticmethod
    def derivative(x: float) -> float:
        t = math.tanh(x)
        return 1.0 - t * t

    @staticmethod
    def output_derivative(out: float) -> float:
        return 1.0 - out * out


@FunctionRegistry.register("identity")
class Identity(Activation):
    DISPLAY_NAME = "Identity"
    DESCRIPTION = "Linear passthrough f(x) = x"

    @staticmethod
    def value(x: float) -> float:
        return x

    @staticmethod
    def derivative(x: float) -> float:
        return 1.0

    @staticmethod
    def output_derivative(out: float) -> float:
        return 1.0
