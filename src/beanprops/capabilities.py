"""
Capability provider: the introspection boundary of beanprops.

The extraction engine never touches ``inspect`` or ``getattr`` directly. It asks a
CapabilityProvider for the readers, writers and data members of an object and
for the constructors of a class, and it invokes them through the same provider.

PythonIntrospection is the default provider. It maps Python's object model onto
the contract:

- readers: public functions on the class taking only ``self``
- writers: public functions on the class taking ``self`` and exactly one parameter
- properties: ``property`` descriptors (fget/fset)
- fields: public data members visible on the instance (instance ``__dict__``,
  ``__slots__``, annotated or plain class-level data), anywhere on the MRO
- declared fields: every data member of the exact runtime type, private and
  name-mangled ones included
- constructors: ``__init__`` plus classmethods marked with ``@constructor``

Runtime failures are translated into AccessDenied / InvocationFailed with the
original exception chained.
"""
import inspect
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, ClassVar, Dict, List, Optional, Sequence, Tuple, get_origin

from beanprops.exceptions import AccessDenied, InvocationFailed

logger = logging.getLogger(__name__)

_CONSTRUCTOR_MARKER = '__beanprops_constructor__'


# =============================================================================
# HANDLES - immutable descriptions of invocable members
# =============================================================================

@dataclass(frozen=True)
class MethodHandle:
    """Zero-argument reader or one-argument writer method."""
    name: str
    param_count: int
    value_type: Any  # return type for readers, parameter type for writers
    function: Callable = field(compare=False, repr=False)


@dataclass(frozen=True)
class FieldHandle:
    """Data member; a single handle serves as reader and writer."""
    name: str
    value_type: Any
    public: bool


@dataclass(frozen=True)
class PropertyHandle:
    """``property`` descriptor found on the class."""
    name: str
    value_type: Any
    writable: bool
    descriptor: property = field(compare=False, repr=False)


@dataclass(frozen=True)
class ConstructorHandle:
    """``__init__`` or an alternate constructor.

    ``parameters`` lists only the REQUIRED parameters as
    (name, declared type, keyword_only) triples; optional ones keep their defaults.
    """
    name: str
    parameters: Tuple[Tuple[str, Any, bool], ...]

    @property
    def param_types(self) -> Tuple[Any, ...]:
        return tuple(param_type for _, param_type, _ in self.parameters)

    @property
    def arity(self) -> int:
        return len(self.parameters)


@dataclass(frozen=True)
class Members:
    """Everything a provider reports for one object."""
    readers: Tuple[MethodHandle, ...] = ()
    writers: Tuple[MethodHandle, ...] = ()
    properties: Tuple[PropertyHandle, ...] = ()
    fields: Tuple[FieldHandle, ...] = ()
    declared_fields: Tuple[FieldHandle, ...] = ()


def constructor(func):
    """Mark a classmethod as an alternate constructor for NICE instantiation.

    Works on either side of ``@classmethod``::

        class Point:
            def __init__(self, x: int, y: int): ...

            @classmethod
            @constructor
            def on_axis(cls, x: int) -> 'Point':
                return cls(x, 0)
    """
    target = func.__func__ if isinstance(func, classmethod) else func
    setattr(target, _CONSTRUCTOR_MARKER, True)
    return func


# =============================================================================
# PROVIDER CONTRACT
# =============================================================================

class CapabilityProvider(ABC):
    """Narrow introspection contract consumed by the extraction engine."""

    @abstractmethod
    def list_members(self, owner: Any) -> Members:
        """Enumerate readers, writers, properties and data members of ``owner``."""

    @abstractmethod
    def invoke_reader(self, handle: MethodHandle, instance: Any) -> Any:
        pass

    @abstractmethod
    def invoke_writer(self, handle: MethodHandle, instance: Any, value: Any) -> None:
        pass

    @abstractmethod
    def read_property(self, handle: PropertyHandle, instance: Any) -> Any:
        pass

    @abstractmethod
    def write_property(self, handle: PropertyHandle, instance: Any, value: Any) -> None:
        pass

    @abstractmethod
    def read_field(self, handle: FieldHandle, instance: Any) -> Any:
        pass

    @abstractmethod
    def write_field(self, handle: FieldHandle, instance: Any, value: Any) -> None:
        pass

    @abstractmethod
    def constructors(self, cls: type) -> List[ConstructorHandle]:
        """Constructors of ``cls`` in a deterministic order, ``__init__`` first."""

    @abstractmethod
    def construct(self, cls: type, handle: ConstructorHandle, args: Sequence[Any]) -> Any:
        pass


# =============================================================================
# DEFAULT PROVIDER - stdlib inspect
# =============================================================================

def _signature(func: Callable) -> Optional[inspect.Signature]:
    """Signature with string annotations evaluated where possible."""
    try:
        return inspect.signature(func, eval_str=True)
    except (NameError, SyntaxError):
        pass
    except (ValueError, TypeError) as e:
        logger.debug(f"No signature for {func!r}: {e}")
        return None
    try:
        return inspect.signature(func)
    except (ValueError, TypeError) as e:
        logger.debug(f"No signature for {func!r}: {e}")
        return None


def _annotation(annotation: Any) -> Any:
    return Any if annotation is inspect.Parameter.empty else annotation


def _is_class_var(hint: Any) -> bool:
    return hint is ClassVar or get_origin(hint) is ClassVar


def _class_annotations(cls: type, own_only: bool) -> Tuple[Dict[str, Any], set]:
    """Field annotations of ``cls`` (own only, or merged along the MRO) and the ClassVar names."""
    classes = [cls] if own_only else list(reversed(cls.__mro__))
    merged: Dict[str, Any] = {}
    for klass in classes:
        if klass is object:
            continue
        try:
            annotations = inspect.get_annotations(klass, eval_str=True)
        except (NameError, SyntaxError, TypeError):
            annotations = inspect.get_annotations(klass)
        merged.update(annotations)
    class_vars = {name for name, hint in merged.items() if _is_class_var(hint)}
    return {name: hint for name, hint in merged.items() if name not in class_vars}, class_vars


def _is_dunder(name: str) -> bool:
    return name.startswith('__') and name.endswith('__')


def _slot_names(cls: type) -> List[str]:
    slots = cls.__dict__.get('__slots__', ())
    if isinstance(slots, str):
        slots = (slots,)
    names = []
    for name in slots:
        if _is_dunder(name):
            continue
        if name.startswith('__'):
            name = f"_{cls.__name__.lstrip('_')}{name}"
        names.append(name)
    return names


@dataclass(frozen=True)
class _ClassMembers:
    """Per-type part of Members; instance attributes are merged in per call."""
    readers: Tuple[MethodHandle, ...]
    writers: Tuple[MethodHandle, ...]
    properties: Tuple[PropertyHandle, ...]
    public_field_types: Dict[str, Any]
    declared_field_types: Dict[str, Any]


class PythonIntrospection(CapabilityProvider):
    """Capability provider backed by ``inspect`` and attribute access.

    Class-level member tables are memoised per type; instance attributes are read
    on every ``list_members`` call because they can differ between instances.
    """

    def __init__(self):
        self._class_cache: Dict[type, _ClassMembers] = {}

    def __repr__(self) -> str:
        return f"{type(self).__name__}(cached_types={len(self._class_cache)})"

    # ---------------------------------------------------------------- members

    def list_members(self, owner: Any) -> Members:
        cls = type(owner)
        class_members = self._class_members(cls)

        public_types = dict(class_members.public_field_types)
        declared_types = dict(class_members.declared_field_types)

        instance_dict = getattr(owner, '__dict__', None)
        if isinstance(instance_dict, dict):
            for name in instance_dict:
                if _is_dunder(name):
                    continue
                declared_types.setdefault(name, Any)
                if not name.startswith('_'):
                    public_types.setdefault(name, Any)

        fields = tuple(
            FieldHandle(name, public_types[name], public=True)
            for name in sorted(public_types)
        )
        declared = tuple(
            FieldHandle(name, declared_types[name], public=not name.startswith('_'))
            for name in sorted(declared_types)
        )
        return Members(
            readers=class_members.readers,
            writers=class_members.writers,
            properties=class_members.properties,
            fields=fields,
            declared_fields=declared,
        )

    def _class_members(self, cls: type) -> _ClassMembers:
        cached = self._class_cache.get(cls)
        if cached is not None:
            return cached

        readers: List[MethodHandle] = []
        writers: List[MethodHandle] = []
        properties: List[PropertyHandle] = []
        public_types: Dict[str, Any] = {}

        mro_annotations, class_vars = _class_annotations(cls, own_only=False)

        for name in sorted(dir(cls)):
            if name.startswith('_') or name in class_vars:
                continue
            try:
                static = inspect.getattr_static(cls, name)
            except AttributeError:
                continue

            if inspect.isfunction(static):
                handle = self._method_handle(name, static)
                if handle is None:
                    continue
                if handle.param_count == 0:
                    readers.append(handle)
                elif handle.param_count == 1:
                    writers.append(handle)
            elif isinstance(static, property):
                properties.append(self._property_handle(name, static))
            elif inspect.ismemberdescriptor(static) or inspect.isgetsetdescriptor(static):
                public_types[name] = mro_annotations.get(name, Any)
            elif isinstance(static, (classmethod, staticmethod, type)) or callable(static) \
                    or inspect.ismodule(static) or hasattr(static, '__get__'):
                continue
            else:
                public_types[name] = mro_annotations.get(name, Any)

        # Annotated fields without a class-level default (e.g. dataclass fields)
        for name, hint in mro_annotations.items():
            if not name.startswith('_') and name not in public_types \
                    and not isinstance(inspect.getattr_static(cls, name, None), property):
                public_types[name] = hint

        declared_types: Dict[str, Any] = {}
        own_annotations, own_class_vars = _class_annotations(cls, own_only=True)
        for name in _slot_names(cls):
            declared_types[name] = own_annotations.get(name, Any)
        for name, value in cls.__dict__.items():
            if _is_dunder(name) or name in own_class_vars or callable(value) or inspect.ismodule(value):
                continue
            if hasattr(value, '__get__') and not inspect.ismemberdescriptor(value):
                continue
            declared_types[name] = own_annotations.get(name, Any)
        for name, hint in own_annotations.items():
            if not _is_dunder(name):
                declared_types.setdefault(name, hint)

        members = _ClassMembers(
            readers=tuple(readers),
            writers=tuple(writers),
            properties=tuple(properties),
            public_field_types=public_types,
            declared_field_types=declared_types,
        )
        self._class_cache[cls] = members
        logger.debug(
            f"Introspected {cls.__name__}: {len(readers)} readers, {len(writers)} writers, "
            f"{len(properties)} properties, {len(public_types)} public fields, {len(declared_types)} declared fields"
        )
        return members

    @staticmethod
    def _method_handle(name: str, function: Callable) -> Optional[MethodHandle]:
        sig = _signature(function)
        if sig is None:
            return None
        params = list(sig.parameters.values())[1:]  # drop self
        if any(p.kind in (p.VAR_POSITIONAL, p.VAR_KEYWORD, p.KEYWORD_ONLY) for p in params):
            return None
        if not params:
            return MethodHandle(name, 0, _annotation(sig.return_annotation), function)
        if len(params) == 1:
            return MethodHandle(name, 1, _annotation(params[0].annotation), function)
        return MethodHandle(name, len(params), Any, function)

    @staticmethod
    def _property_handle(name: str, descriptor: property) -> PropertyHandle:
        value_type = Any
        if descriptor.fget is not None:
            sig = _signature(descriptor.fget)
            if sig is not None:
                value_type = _annotation(sig.return_annotation)
        return PropertyHandle(name, value_type, descriptor.fset is not None, descriptor)

    # ------------------------------------------------------------- invocation

    def invoke_reader(self, handle: MethodHandle, instance: Any) -> Any:
        try:
            return handle.function(instance)
        except Exception as e:
            raise InvocationFailed(handle.name, type(instance), str(e)) from e

    def invoke_writer(self, handle: MethodHandle, instance: Any, value: Any) -> None:
        try:
            handle.function(instance, value)
        except Exception as e:
            raise InvocationFailed(handle.name, type(instance), str(e)) from e

    def read_property(self, handle: PropertyHandle, instance: Any) -> Any:
        try:
            return handle.descriptor.__get__(instance, type(instance))
        except Exception as e:
            raise InvocationFailed(handle.name, type(instance), str(e)) from e

    def write_property(self, handle: PropertyHandle, instance: Any, value: Any) -> None:
        if not handle.writable:
            raise AccessDenied(handle.name, type(instance), "property has no setter")
        try:
            handle.descriptor.__set__(instance, value)
        except Exception as e:
            raise InvocationFailed(handle.name, type(instance), str(e)) from e

    def read_field(self, handle: FieldHandle, instance: Any) -> Any:
        try:
            return getattr(instance, handle.name)
        except AttributeError as e:
            raise AccessDenied(handle.name, type(instance), str(e)) from e

    def write_field(self, handle: FieldHandle, instance: Any, value: Any) -> None:
        try:
            setattr(instance, handle.name, value)
        except AttributeError as e:
            # dataclasses.FrozenInstanceError is an AttributeError
            raise AccessDenied(handle.name, type(instance), str(e)) from e

    # ----------------------------------------------------------- construction

    def constructors(self, cls: type) -> List[ConstructorHandle]:
        handles: List[ConstructorHandle] = []

        init_handle = self._constructor_handle('__init__', cls)
        if init_handle is not None:
            handles.append(init_handle)

        seen = set()
        for klass in cls.__mro__:
            for name, attr in vars(klass).items():
                if name in seen or not isinstance(attr, classmethod):
                    continue
                seen.add(name)
                if name.startswith('_') or not getattr(attr.__func__, _CONSTRUCTOR_MARKER, False):
                    continue
                handle = self._constructor_handle(name, getattr(cls, name))
                if handle is not None:
                    handles.append(handle)
        return handles

    @staticmethod
    def _constructor_handle(name: str, factory: Callable) -> Optional[ConstructorHandle]:
        sig = _signature(factory)
        if sig is None:
            return None
        required = []
        for param in sig.parameters.values():
            if param.kind in (param.VAR_POSITIONAL, param.VAR_KEYWORD):
                continue
            if param.default is not inspect.Parameter.empty:
                continue
            required.append((param.name, _annotation(param.annotation), param.kind is param.KEYWORD_ONLY))
        return ConstructorHandle(name, tuple(required))

    def construct(self, cls: type, handle: ConstructorHandle, args: Sequence[Any]) -> Any:
        factory = cls if handle.name == '__init__' else getattr(cls, handle.name)
        positional = []
        keywords = {}
        for (param_name, _, keyword_only), arg in zip(handle.parameters, args):
            if keyword_only:
                keywords[param_name] = arg
            else:
                positional.append(arg)
        try:
            instance = factory(*positional, **keywords)
        except Exception as e:
            raise InvocationFailed(handle.name, cls, str(e)) from e
        if not isinstance(instance, cls):
            raise InvocationFailed(handle.name, cls, f"returned {type(instance).__name__}, not {cls.__name__}")
        return instance
