"""
Class instantiation policies.

A controller built from a class keeps a ClassInstantiator so that recycle() can
manufacture fresh targets. Policies don't cascade: NO_ARGS never falls back to
NICE and vice versa.
"""
import logging
from enum import Enum
from typing import Any, List, Optional

from beanprops.capabilities import CapabilityProvider, ConstructorHandle
from beanprops.exceptions import InstantiationFailed, InvocationFailed
from beanprops.nice_values import nice_value_for

logger = logging.getLogger(__name__)


class InstantiationPolicy(Enum):
    """How to build an instance when the caller supplies a class."""
    NO_ARGS = "no_args"  # zero-argument construction only
    NICE = "nice"        # shortest constructor, filled with nice values


class ClassInstantiator:
    """Produces new instances of ``cls`` under one InstantiationPolicy.

    Stateless apart from its configuration: every call to instantiate() returns
    a newly constructed object.
    """

    def __init__(self, cls: type, policy: InstantiationPolicy = InstantiationPolicy.NO_ARGS,
                 provider: Optional[CapabilityProvider] = None):
        if not isinstance(cls, type):
            raise TypeError(f"ClassInstantiator needs a class, got {type(cls).__name__}")
        self.cls = cls
        self.policy = InstantiationPolicy(policy)
        self._provider = provider

    def __repr__(self) -> str:
        return f"ClassInstantiator({self.cls.__qualname__}, {self.policy.name})"

    def __getstate__(self):
        state = self.__dict__.copy()
        state['_provider'] = None  # providers hold per-process introspection caches
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)

    @property
    def provider(self) -> CapabilityProvider:
        if self._provider is None:
            # Inline import: config imports this module for its defaults
            from beanprops.config import get_capability_provider
            return get_capability_provider()
        return self._provider

    def instantiate(self) -> Any:
        if self.policy is InstantiationPolicy.NO_ARGS:
            instance = self._instantiate_no_args()
        else:
            instance = self._instantiate_nice()
        logger.debug(f"Instantiated {self.cls.__name__} with policy {self.policy.name}")
        return instance

    def _instantiate_no_args(self) -> Any:
        constructors = self.provider.constructors(self.cls)
        init = next((c for c in constructors if c.name == '__init__'), None)
        if init is None:
            # signature not introspectable; let the call itself decide
            init = ConstructorHandle('__init__', ())
        if init.arity != 0:
            required = ', '.join(name for name, _, _ in init.parameters)
            raise InstantiationFailed(
                self.cls,
                [TypeError(f"{self.cls.__name__} has no zero-argument constructor (requires: {required})")],
            )
        return self._construct(init, [])

    def _instantiate_nice(self) -> Any:
        constructors = self.provider.constructors(self.cls)
        if not constructors:
            raise InstantiationFailed(self.cls, [TypeError(f"{self.cls.__name__} exposes no constructors")])

        # min() keeps the first of equal arities: __init__, then definition order
        chosen = min(constructors, key=lambda c: c.arity)
        args = [nice_value_for(param_type) for param_type in chosen.param_types]
        logger.debug(f"NICE instantiation of {self.cls.__name__} via {chosen.name} with {len(args)} argument(s)")
        return self._construct(chosen, args)

    def _construct(self, handle: ConstructorHandle, args: List[Any]) -> Any:
        try:
            return self.provider.construct(self.cls, handle, args)
        except InvocationFailed as e:
            raise InstantiationFailed(self.cls, [e]) from e
