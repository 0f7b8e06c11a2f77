"""Cost functions: squared error and absolute error."""
from .base import CostFunction
from .registry import FunctionRegistry


@FunctionRegistry.register("mse")
class SquaredError(CostFunction):
    DISPLAY_NAME = "MSE"
    DESCRIPTION = "Squared error (y - y_hat)^2"

    @staticmethod
    def value(y: float, y_hat: float) -> float:
        diff = y - y_hat
        return diff * diff

    @staticmethod
    def derivative(y: float, y_hat: float) -> float:
        return 2 * (y_hat - y)


@FunctionRegistry.register("mae")
class AbsoluteError(CostFunction):
    DISPLAY_NAME = "MAE"
    DESCRIPTION = "Absolute error |y - y_hat|"

    @staticmethod
    def value(y: float, y_hat: float) -> float:
        return abs(y - y_hat)

    @staticmethod
    def derivative(y: float, y_hat: float) -> float:
        if y_hat > y:
            return 1.0
        if y_hat < y:
            return -1.0
        return 0.0
