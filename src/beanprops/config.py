"""
Library-wide defaults for new controllers.

Module-level storage with explicit setters/getters. Controllers read these once,
at construction; changing a default never affects an existing controller.

- capability provider: introspection backend (PythonIntrospection by default)
- extraction depth: METHODS
- path budget: -1 (unlimited path segments)
- instantiation policy: NO_ARGS
"""
from typing import Optional

from beanprops.capabilities import CapabilityProvider, PythonIntrospection
from beanprops.extraction import ExtractionDepth
from beanprops.instantiation import InstantiationPolicy

DEFAULT_EXTRACTION_DEPTH = ExtractionDepth.METHODS
DEFAULT_PATH_BUDGET = -1  # negative means unlimited
DEFAULT_INSTANTIATION_POLICY = InstantiationPolicy.NO_ARGS

_capability_provider: Optional[CapabilityProvider] = None
_extraction_depth: ExtractionDepth = DEFAULT_EXTRACTION_DEPTH
_path_budget: int = DEFAULT_PATH_BUDGET
_instantiation_policy: InstantiationPolicy = DEFAULT_INSTANTIATION_POLICY


def set_capability_provider(provider: Optional[CapabilityProvider]) -> None:
    """Set the provider used by controllers that don't get one explicitly.

    Args:
        provider: Provider instance, or None to fall back to PythonIntrospection
    """
    global _capability_provider
    if provider is not None and not isinstance(provider, CapabilityProvider):
        raise TypeError(f"Expected a CapabilityProvider, got {type(provider).__name__}")
    _capability_provider = provider


def get_capability_provider() -> CapabilityProvider:
    """Get the default provider, creating the stdlib one on first use."""
    global _capability_provider
    if _capability_provider is None:
        _capability_provider = PythonIntrospection()
    return _capability_provider


def set_default_extraction_depth(depth: ExtractionDepth) -> None:
    global _extraction_depth
    _extraction_depth = ExtractionDepth(depth)


def get_default_extraction_depth() -> ExtractionDepth:
    return _extraction_depth


def set_default_path_budget(budget: int) -> None:
    """Set the default number of dots honoured in a path (negative = unlimited)."""
    global _path_budget
    if isinstance(budget, bool) or not isinstance(budget, int):
        raise TypeError(f"Path budget must be an int, got {type(budget).__name__}")
    _path_budget = budget


def get_default_path_budget() -> int:
    return _path_budget


def set_default_instantiation_policy(policy: InstantiationPolicy) -> None:
    global _instantiation_policy
    _instantiation_policy = InstantiationPolicy(policy)


def get_default_instantiation_policy() -> InstantiationPolicy:
    return _instantiation_policy


def reset_defaults() -> None:
    """Restore every default, dropping any configured provider."""
    global _capability_provider, _extraction_depth, _path_budget, _instantiation_policy
    _capability_provider = None
    _extraction_depth = DEFAULT_EXTRACTION_DEPTH
    _path_budget = DEFAULT_PATH_BUDGET
    _instantiation_policy = DEFAULT_INSTANTIATION_POLICY
