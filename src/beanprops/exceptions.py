"""
Exception taxonomy for property discovery, binding and instantiation.

All failures are deterministic functions of (target type, path, configuration),
so nothing here is retried. Provider-level failures (AccessDenied,
InvocationFailed) carry the original exception as ``__cause__``.
"""
from typing import Any, List, Optional, Sequence


def _type_name(cls: Any) -> str:
    """Fully qualified name used in user-facing messages."""
    if isinstance(cls, str):
        return cls
    module = getattr(cls, '__module__', None)
    qualname = getattr(cls, '__qualname__', None) or getattr(cls, '__name__', repr(cls))
    if module in (None, 'builtins'):
        return qualname
    return f"{module}.{qualname}"


class PropertyControlError(Exception):
    """Base class for every error raised by beanprops."""


class NonexistentProperty(PropertyControlError, AttributeError):
    """No strategy at the configured depth could bind a segment of the path."""

    def __init__(self, path: str, owner_type: Any):
        self.path = path
        self.type_name = _type_name(owner_type)
        super().__init__(f"Property '{path}' doesn't exist for the specified class {self.type_name}")


class IncompatibleAccessorMutator(PropertyControlError, TypeError):
    """Reader and writer of one property disagree on the value type."""

    def __init__(self, path: str, reader_type: Any = None, writer_type: Any = None):
        self.path = path
        self.reader_type = reader_type
        self.writer_type = writer_type
        super().__init__(
            f"Accessor and mutator of property '{path}' don't match: "
            f"reader yields {reader_type!r}, writer accepts {writer_type!r}"
        )


class ReadOnlyProperty(PropertyControlError, AttributeError):
    """Write attempted on a property without a writer."""

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Property '{path}' is read-only")


class InstantiationFailed(PropertyControlError):
    """No usable constructor under the selected policy, or the constructor raised.

    ``causes`` holds every underlying exception for diagnosis.
    """

    def __init__(self, cls: Any, causes: Optional[Sequence[BaseException]] = None):
        self.type_name = _type_name(cls)
        self.causes: List[BaseException] = list(causes or [])
        super().__init__(f"Couldn't instantiate given class {self.type_name}")


class RecycleUnsupported(PropertyControlError):
    """recycle() called on a controller that was built from an instance."""

    def __init__(self, owner_type: Any):
        self.type_name = _type_name(owner_type)
        super().__init__(
            f"Controller for {self.type_name} was built from an instance and has no instantiator to recycle with"
        )


class AccessDenied(PropertyControlError):
    """The runtime refused to read or write a member."""

    def __init__(self, member: str, owner_type: Any, reason: str = ""):
        self.member = member
        self.type_name = _type_name(owner_type)
        detail = f": {reason}" if reason else ""
        super().__init__(f"Access to '{member}' of {self.type_name} denied{detail}")


class InvocationFailed(PropertyControlError):
    """An accessor, mutator or constructor raised while being invoked."""

    def __init__(self, member: str, owner_type: Any, reason: str = ""):
        self.member = member
        self.type_name = _type_name(owner_type)
        detail = f": {reason}" if reason else ""
        super().__init__(f"Invoking '{member}' of {self.type_name} failed{detail}")
