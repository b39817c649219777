from .loader import LoadedModule, ModuleLoader, PythonModuleLoader
from .registry import ADVICE_KINDS, AdviceRegistration, InterceptedModule, InterceptionRegistry

__all__ = [
    "ADVICE_KINDS",
    "AdviceRegistration",
    "InterceptedModule",
    "InterceptionRegistry",
    "LoadedModule",
    "ModuleLoader",
    "PythonModuleLoader",
]
