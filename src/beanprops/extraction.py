"""
Escalating property extraction.

Three strategies try to bind a property name against an object, each through
one mechanism:

    METHODS     set_<name>/get_<name>/is_<name> method pairs, property descriptors
    FIELDS      public data members (one member is reader and writer)
    QUESTIMATE  declared data members of the exact runtime type, private ones
                included, combined with whatever shallower strategies found

EscalatingExtractor runs them in that fixed order up to its configured ceiling
and stops at the first usable binding. Reader/writer types are validated at
bind time, so an incompatible pair never reaches the caller as a BoundProperty.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Iterable, Optional, Sequence, Tuple, TypeVar

from beanprops.binding import (
    BoundProperty, FieldAccess, MethodReader, MethodWriter, PropertyAccess, Reader, Writer, validate_pair,
)
from beanprops.capabilities import CapabilityProvider, FieldHandle, Members
from beanprops.exceptions import NonexistentProperty
from beanprops.nice_values import runtime_class

logger = logging.getLogger(__name__)

H = TypeVar('H')


class ExtractionDepth(IntEnum):
    """Ceiling on the strategies tried; each depth includes the previous ones."""
    METHODS = 0
    FIELDS = 1
    QUESTIMATE = 2


@dataclass(frozen=True)
class PartialBinding:
    """Reader/writer found so far; carried upward between strategies."""
    reader: Optional[Reader] = None
    writer: Optional[Writer] = None

    @property
    def has_reader(self) -> bool:
        return self.reader is not None

    @property
    def is_complete(self) -> bool:
        return self.reader is not None and self.writer is not None

    def fill(self, reader: Optional[Reader] = None, writer: Optional[Writer] = None) -> 'PartialBinding':
        """Keep what is already bound, take the given capabilities for the gaps."""
        return PartialBinding(
            reader=self.reader if self.reader is not None else reader,
            writer=self.writer if self.writer is not None else writer,
        )


# =============================================================================
# NAME MATCHING
# =============================================================================

def accessor_names(prefix: str, name: str) -> Tuple[str, str]:
    """Method spellings for a property: ``get_name`` and ``getName``."""
    return f"{prefix}_{name}", f"{prefix}{name[:1].upper()}{name[1:]}"


def find_named(candidates: Iterable[H], names: Sequence[str], key=lambda handle: handle.name) -> Optional[H]:
    """First candidate matching one of ``names``.

    An exact match wins over a case-insensitive one; among equals the
    candidates' own order decides.
    """
    candidates = list(candidates)
    wanted = set(names)
    for candidate in candidates:
        if key(candidate) in wanted:
            return candidate
    lowered = {n.lower() for n in names}
    for candidate in candidates:
        if key(candidate).lower() in lowered:
            return candidate
    return None


def public_spelling(field_name: str, owner_type: type) -> str:
    """Property name a declared member answers to: ``_x`` and ``_Cls__x`` -> ``x``."""
    mangled_prefix = f"_{owner_type.__name__.lstrip('_')}__"
    if field_name.startswith(mangled_prefix):
        field_name = field_name[len(mangled_prefix):]
    return field_name.lstrip('_') or field_name


def _is_bool_type(declared_type: Any) -> bool:
    return runtime_class(declared_type) is bool


def paired_reader(readers: Iterable[H], name: str, writer_handle) -> Optional[H]:
    """Accessor belonging to a mutator: ``is_<name>`` for bool mutators, ``get_<name>`` otherwise."""
    prefix = 'is' if _is_bool_type(writer_handle.value_type) else 'get'
    return find_named(readers, accessor_names(prefix, name))


# =============================================================================
# STRATEGIES
# =============================================================================

class ExtractionStrategy(ABC):
    """One mechanism for binding a named property against an object."""

    #: whether the strategy completes shallower partial matches instead of replacing them
    fills_gaps = False

    def __init__(self, provider: CapabilityProvider, keep_partial: bool = False):
        self.provider = provider
        #: set when a gap-filling strategy runs later; shallower matches are then never discarded
        self.keep_partial = keep_partial

    @abstractmethod
    def attempt(self, name: str, owner: Any, members: Members, partial: PartialBinding) -> PartialBinding:
        """Return ``partial`` unchanged when nothing matches."""


class MethodStrategy(ExtractionStrategy):
    """Accessor/mutator method pairs, then ``property`` descriptors."""

    def attempt(self, name: str, owner: Any, members: Members, partial: PartialBinding) -> PartialBinding:
        writer_handle = find_named(members.writers, accessor_names('set', name))

        if writer_handle is not None:
            writer = MethodWriter(writer_handle, self.provider)
            reader_handle = paired_reader(members.readers, name, writer_handle)
            if reader_handle is None:
                # write-only at this depth; QUESTIMATE may still supply a reader
                return partial.fill(writer=writer)
            return partial.fill(reader=MethodReader(reader_handle, self.provider), writer=writer)

        reader_handle = find_named(members.readers, accessor_names('get', name))
        if reader_handle is not None:
            return partial.fill(reader=MethodReader(reader_handle, self.provider))

        property_handle = find_named(members.properties, (name,))
        if property_handle is not None:
            access = PropertyAccess(property_handle, self.provider)
            return partial.fill(reader=access, writer=access if property_handle.writable else None)

        return partial


class FieldStrategy(ExtractionStrategy):
    """Public data members."""

    def attempt(self, name: str, owner: Any, members: Members, partial: PartialBinding) -> PartialBinding:
        field_handle = find_named(members.fields, (name,))
        if field_handle is None:
            return partial
        access = FieldAccess(field_handle, self.provider)
        if self.keep_partial:
            return partial.fill(reader=access, writer=access)
        return PartialBinding(reader=access, writer=access)


class DeclaredFieldStrategy(ExtractionStrategy):
    """Declared data members of the exact runtime type, visibility ignored."""

    fills_gaps = True

    def attempt(self, name: str, owner: Any, members: Members, partial: PartialBinding) -> PartialBinding:
        field_handle = self._find_declared(name, type(owner), members.declared_fields)
        if field_handle is None:
            return partial
        access = FieldAccess(field_handle, self.provider)
        return partial.fill(reader=access, writer=access)

    @staticmethod
    def _find_declared(name: str, owner_type: type, declared: Sequence[FieldHandle]) -> Optional[FieldHandle]:
        exact = find_named(declared, (name,), key=lambda handle: handle.name)
        if exact is not None and exact.name == name:
            return exact
        spelled = find_named(declared, (name,), key=lambda handle: public_spelling(handle.name, owner_type))
        return spelled if spelled is not None else exact


# Fixed escalation order; ExtractionDepth values index into it
STRATEGY_ORDER = (
    (ExtractionDepth.METHODS, MethodStrategy),
    (ExtractionDepth.FIELDS, FieldStrategy),
    (ExtractionDepth.QUESTIMATE, DeclaredFieldStrategy),
)


class EscalatingExtractor:
    """Tries strategies in escalating order up to ``depth``.

    A binding with both reader and writer ends the escalation at once. A
    read-only binding ends it too, unless a gap-filling strategy (QUESTIMATE)
    is still ahead and may supply the missing writer.
    Within such a run, public fields only fill what methods left open.
    """

    def __init__(self, depth: ExtractionDepth, provider: CapabilityProvider):
        self.depth = ExtractionDepth(depth)
        self.provider = provider
        levels = [(level, strategy_cls) for level, strategy_cls in STRATEGY_ORDER if level <= self.depth]
        mixing = any(strategy_cls.fills_gaps for _, strategy_cls in levels)
        self._strategies = [strategy_cls(provider, keep_partial=mixing) for _, strategy_cls in levels]

    def __repr__(self) -> str:
        return f"EscalatingExtractor(depth={self.depth.name})"

    def extract(self, name: str, owner: Any, path: Optional[str] = None) -> BoundProperty:
        """Bind ``name`` against ``owner``; ``path`` only labels errors."""
        path = path or name
        if owner is None:
            raise NonexistentProperty(path, type(None))

        members = self.provider.list_members(owner)
        partial = PartialBinding()

        for index, strategy in enumerate(self._strategies):
            partial = strategy.attempt(name, owner, members, partial)
            if partial.is_complete:
                break
            if partial.has_reader and not any(s.fills_gaps for s in self._strategies[index + 1:]):
                break

        if not partial.has_reader:
            logger.debug(f"No strategy up to {self.depth.name} binds '{name}' on {type(owner).__name__}")
            raise NonexistentProperty(path, type(owner))

        validate_pair(path, partial.reader, partial.writer)
        bound = BoundProperty(owner, name, partial.reader, partial.writer)
        logger.debug(f"Bound {bound!r} for path '{path}'")
        return bound
