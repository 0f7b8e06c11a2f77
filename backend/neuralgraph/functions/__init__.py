"""Auto-discover all function modules on import."""
from .registry import FunctionRegistry

FunctionRegistry.discover("neuralgraph.functions")
