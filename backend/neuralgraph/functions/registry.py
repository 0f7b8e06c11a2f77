"""Function registry with auto-discovery."""
import importlib
import pkgutil

from ..config import settings
from .base import Activation, ActivationFns, BaseFunction, CostFns, CostFunction, FunctionDefinition


class FunctionRegistry:
    """Singleton registry mapping names to activation and cost function classes."""

    _activations: dict[str, type[Activation]] = {}
    _costs: dict[str, type[CostFunction]] = {}

    @classmethod
    def register(cls, name: str | None = None):
        """Decorator to register an activation or cost function class.

        Usage:
            @FunctionRegistry.register("relu")
            class ReLU(Activation):
                ...
        """
        def decorator(fn_cls: type[BaseFunction]) -> type[BaseFunction]:
            key = name or fn_cls.__name__.lower()
            if issubclass(fn_cls, Activation):
                cls._activations[key] = fn_cls
            elif issubclass(fn_cls, CostFunction):
                cls._costs[key] = fn_cls
            else:
                raise TypeError(f"{fn_cls.__name__} is neither an Activation nor a CostFunction")
            return fn_cls
        return decorator

    @classmethod
    def get_activation(cls, name: str, exact_derivative: bool | None = None) -> ActivationFns:
        if name not in cls._activations:
            raise KeyError(f"Unknown activation: {name}")
        if exact_derivative is None:
            exact_derivative = settings.exact_activation_derivative
        return cls._activations[name].resolve(name, exact_derivative=exact_derivative)

    @classmethod
    def get_cost(cls, name: str) -> CostFns:
        if name not in cls._costs:
            raise KeyError(f"Unknown cost function: {name}")
        return cls._costs[name].resolve(name)

    @classmethod
    def activation_names(cls) -> list[str]:
        return list(cls._activations)

    @classmethod
    def cost_names(cls) -> list[str]:
        return list(cls._costs)

    @classmethod
    def all_definitions(cls) -> dict[str, FunctionDefinition]:
        defs = {name: fn_cls.get_definition(name) for name, fn_cls in cls._activations.items()}
        defs.update({name: fn_cls.get_definition(name) for name, fn_cls in cls._costs.items()})
        return defs

    @classmethod
    def discover(cls, package_name: str) -> None:
        """Import all modules in the given package to trigger @register decorators."""
        try:
            package = importlib.import_module(package_name)
        except ImportError:
            return
        if not hasattr(package, "__path__"):
            return
        for _, module_name, _ in pkgutil.iter_modules(package.__path__):
            if module_name.startswith("_") or module_name in ("base", "registry"):
                continue
            importlib.import_module(f"{package_name}.{module_name}")
