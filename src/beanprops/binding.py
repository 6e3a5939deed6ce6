"""
Readers, writers and the BoundProperty that pairs them with an owning instance.

A BoundProperty is the reusable product of extraction: its reader/writer pair
never changes after binding, while its owner can be swapped (see
PropertyController.recycle) without rediscovering anything.
"""
import logging
import types
from abc import ABC, abstractmethod
from typing import Any, ForwardRef, Optional, Tuple, TypeVar, Union, get_args, get_origin

from beanprops.capabilities import CapabilityProvider, FieldHandle, MethodHandle, PropertyHandle
from beanprops.exceptions import IncompatibleAccessorMutator, ReadOnlyProperty
from beanprops.nice_values import is_array_type, runtime_class

logger = logging.getLogger(__name__)


# =============================================================================
# READER / WRITER CAPABILITIES
# =============================================================================

class Reader(ABC):
    """Reads one value from an instance and reports the declared value type."""
    kind = 'reader'

    @property
    @abstractmethod
    def value_type(self) -> Any:
        pass

    @abstractmethod
    def read(self, instance: Any) -> Any:
        pass


class Writer(ABC):
    """Writes one value into an instance and reports the accepted value type."""
    kind = 'writer'

    @property
    @abstractmethod
    def value_type(self) -> Any:
        pass

    @abstractmethod
    def write(self, instance: Any, value: Any) -> None:
        pass


class MethodReader(Reader):
    kind = 'method accessor'

    def __init__(self, handle: MethodHandle, provider: CapabilityProvider):
        self.handle = handle
        self._provider = provider

    @property
    def value_type(self) -> Any:
        return self.handle.value_type

    def read(self, instance: Any) -> Any:
        return self._provider.invoke_reader(self.handle, instance)

    def __repr__(self) -> str:
        return f"MethodReader({self.handle.name})"


class MethodWriter(Writer):
    kind = 'method mutator'

    def __init__(self, handle: MethodHandle, provider: CapabilityProvider):
        self.handle = handle
        self._provider = provider

    @property
    def value_type(self) -> Any:
        return self.handle.value_type

    def write(self, instance: Any, value: Any) -> None:
        self._provider.invoke_writer(self.handle, instance, value)

    def __repr__(self) -> str:
        return f"MethodWriter({self.handle.name})"


class PropertyAccess(Reader, Writer):
    """``property`` descriptor; only used as a writer when it has a setter."""
    kind = 'property descriptor'

    def __init__(self, handle: PropertyHandle, provider: CapabilityProvider):
        self.handle = handle
        self._provider = provider

    @property
    def value_type(self) -> Any:
        return self.handle.value_type

    def read(self, instance: Any) -> Any:
        return self._provider.read_property(self.handle, instance)

    def write(self, instance: Any, value: Any) -> None:
        self._provider.write_property(self.handle, instance, value)

    def __repr__(self) -> str:
        return f"PropertyAccess({self.handle.name})"


class FieldAccess(Reader, Writer):
    """Data member serving as both reader and writer."""
    kind = 'field accessor/mutator'

    def __init__(self, handle: FieldHandle, provider: CapabilityProvider):
        self.handle = handle
        self._provider = provider

    @property
    def value_type(self) -> Any:
        return self.handle.value_type

    def read(self, instance: Any) -> Any:
        return self._provider.read_field(self.handle, instance)

    def write(self, instance: Any, value: Any) -> None:
        self._provider.write_field(self.handle, instance, value)

    def __repr__(self) -> str:
        return f"FieldAccess({self.handle.name})"


# =============================================================================
# TYPE COMPATIBILITY
# =============================================================================

# PEP 484 numeric tower: int is acceptable where float/complex is declared
_NUMERIC_PROMOTIONS = {
    float: (int,),
    complex: (int, float),
}


def _is_unknown(declared_type: Any) -> bool:
    return (
        declared_type is Any
        or declared_type is object
        or isinstance(declared_type, (TypeVar, str, ForwardRef))
    )


def _union_members(declared_type: Any) -> Tuple[Any, ...]:
    origin = get_origin(declared_type)
    if origin is Union or origin is types.UnionType:
        return get_args(declared_type)
    return (declared_type,)


def _accepts(target: Any, value: Any) -> bool:
    if target == value or _is_unknown(target) or _is_unknown(value):
        return True
    target_cls = type(None) if target is None else runtime_class(target)
    value_cls = type(None) if value is None else runtime_class(value)
    if target_cls is None or value_cls is None:
        return False
    if issubclass(value_cls, target_cls):
        return True
    return any(
        issubclass(value_cls, promoted) and not issubclass(value_cls, bool)
        for promoted in _NUMERIC_PROMOTIONS.get(target_cls, ())
    )


def is_assignable(value_type: Any, target_type: Any) -> bool:
    """True when every value of ``value_type`` is accepted by ``target_type``.

    Unknown types (Any, object, TypeVars, unresolved forward references) are
    compatible with everything. Unions are checked member-wise.
    """
    if value_type == target_type or _is_unknown(target_type) or _is_unknown(value_type):
        return True
    targets = _union_members(target_type)
    return all(
        any(_accepts(target, value) for target in targets)
        for value in _union_members(value_type)
    )


def validate_pair(path: str, reader: Reader, writer: Optional[Writer]) -> None:
    """Fail fast unless the writer accepts everything the reader can yield."""
    if writer is None or writer is reader:
        return
    if not is_assignable(reader.value_type, writer.value_type):
        raise IncompatibleAccessorMutator(path, reader.value_type, writer.value_type)


# =============================================================================
# BOUND PROPERTY
# =============================================================================

class BoundProperty:
    """Immutable reader/writer pair plus a live reference to the owning instance.

    The writer may be None (read-only property); the reader is always present.
    """

    def __init__(self, owner: Any, name: str, reader: Reader, writer: Optional[Writer] = None):
        if owner is None:
            raise ValueError("Can't construct BoundProperty with None owner")
        if name is None:
            raise ValueError("Can't construct BoundProperty with None name")
        if name == "":
            raise ValueError("Can't construct BoundProperty with empty name")
        if reader is None:
            raise ValueError("Can't construct BoundProperty with None reader")
        self._owner = owner
        self._owner_type = type(owner)
        self._name = name
        self._reader = reader
        self._writer = writer

    def __repr__(self) -> str:
        writer = self._writer.kind if self._writer is not None else 'no mutator'
        return f"BoundProperty({self._owner_type.__qualname__}#{self._name} with {self._reader.kind}, {writer})"

    @property
    def owner(self) -> Any:
        return self._owner

    @owner.setter
    def owner(self, new_owner: Any) -> None:
        if new_owner is None:
            raise ValueError(f"Can't rebind property '{self._name}' to None")
        self._owner = new_owner

    @property
    def owner_type(self) -> type:
        """Type the reader/writer pair was discovered on."""
        return self._owner_type

    @property
    def name(self) -> str:
        return self._name

    @property
    def reader(self) -> Reader:
        return self._reader

    @property
    def writer(self) -> Optional[Writer]:
        return self._writer

    @property
    def type(self) -> Any:
        return self._reader.value_type

    @property
    def is_array(self) -> bool:
        return is_array_type(self.type)

    @property
    def is_read_only(self) -> bool:
        return self._writer is None

    def get(self) -> Any:
        return self._reader.read(self._owner)

    def set(self, value: Any) -> None:
        if self._writer is None:
            raise ReadOnlyProperty(self._name)
        self._writer.write(self._owner, value)
