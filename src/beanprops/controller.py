"""
PropertyController: read and write properties of an object by (dotted) name.

The controller owns one live target instance, or a class plus an
instantiation policy from which it builds its target. Every property is
discovered lazily on first use and its BoundProperty chain is cached per
path, so repeated access skips discovery entirely.

Lifecycle:
- access/mutate/type_of/is_array/is_read_only resolve on demand
- property_names() is the one eager operation: it invokes every candidate reader
- recycle() swaps in a fresh target while keeping every cached binding

    >>> controller = PropertyController.of(TraditionalBean)
    >>> controller.mutate('name', 'John').mutate('age', 36)
    >>> controller.access('name')
    'John'
"""
import array
import logging
from decimal import Decimal
from enum import Enum
from fractions import Fraction
from typing import Any, List, Mapping, Optional, Set

from beanprops import config
from beanprops.binding import BoundProperty
from beanprops.capabilities import CapabilityProvider, Members
from beanprops.exceptions import InstantiationFailed, NonexistentProperty, ReadOnlyProperty, RecycleUnsupported
from beanprops.extraction import EscalatingExtractor, ExtractionDepth, paired_reader, public_spelling
from beanprops.instantiation import ClassInstantiator, InstantiationPolicy
from beanprops.property_cache import PropertyCache, PropertyChain, PropertyPath

logger = logging.getLogger(__name__)

# Values property_names() never recurses into: scalars and collections
LEAF_TYPES = (
    str, bytes, bytearray, int, float, complex, bool, Decimal, Fraction, Enum,
    list, tuple, set, frozenset, dict, array.array, type,
)

_UNSET = object()


def _mutator_base_name(method_name: str) -> Optional[str]:
    """Property name behind a mutator: ``set_name`` -> ``name``, ``setName`` -> ``name``."""
    if method_name.startswith('set_') and len(method_name) > 4:
        return method_name[4:]
    if method_name.startswith('set') and len(method_name) > 3 and method_name[3].isupper():
        base = method_name[3:]
        return base[:1].lower() + base[1:]
    return None


class PropertyController:
    """Façade over discovery, binding, caching and recycling.

    Build instances through ``of()``, ``for_instance()`` or ``for_class()``.
    Extraction depth, path budget and instantiation policy are fixed at
    construction.
    """

    def __init__(
        self,
        target: Any,
        extraction_depth: Optional[ExtractionDepth] = None,
        path_budget: Optional[int] = None,
        instantiator: Optional[ClassInstantiator] = None,
        provider: Optional[CapabilityProvider] = None,
    ):
        if target is None:
            raise ValueError("Can't control None")
        if extraction_depth is None:
            extraction_depth = config.get_default_extraction_depth()
        if path_budget is None:
            path_budget = config.get_default_path_budget()
        if isinstance(path_budget, bool) or not isinstance(path_budget, int):
            raise TypeError(f"Path budget must be an int, got {type(path_budget).__name__}")

        self._target = target
        self._extraction_depth = ExtractionDepth(extraction_depth)
        self._path_budget = path_budget
        self._instantiator = instantiator
        self._provider = provider
        self._extractor = EscalatingExtractor(self._extraction_depth, self.provider)
        self._cache = PropertyCache()

    # ------------------------------------------------------------- factories

    @classmethod
    def of(
        cls,
        target: Any,
        extraction_depth: Optional[ExtractionDepth] = None,
        path_budget: Optional[int] = None,
        policy: Optional[InstantiationPolicy] = None,
        provider: Optional[CapabilityProvider] = None,
    ) -> 'PropertyController':
        """Controller for an instance, or for a class instantiated under ``policy``."""
        if isinstance(target, type):
            return cls.for_class(target, extraction_depth, path_budget, policy, provider)
        if policy is not None:
            raise TypeError("An instantiation policy only applies when controlling a class")
        return cls.for_instance(target, extraction_depth, path_budget, provider)

    @classmethod
    def for_instance(
        cls,
        instance: Any,
        extraction_depth: Optional[ExtractionDepth] = None,
        path_budget: Optional[int] = None,
        provider: Optional[CapabilityProvider] = None,
    ) -> 'PropertyController':
        """Controller for an existing object; such a controller can't recycle()."""
        return cls(instance, extraction_depth, path_budget, provider=provider)

    @classmethod
    def for_class(
        cls,
        target_cls: type,
        extraction_depth: Optional[ExtractionDepth] = None,
        path_budget: Optional[int] = None,
        policy: Optional[InstantiationPolicy] = None,
        provider: Optional[CapabilityProvider] = None,
    ) -> 'PropertyController':
        """Controller owning a fresh instance of ``target_cls``."""
        if policy is None:
            policy = config.get_default_instantiation_policy()
        instantiator = ClassInstantiator(target_cls, policy, provider)
        return cls(instantiator.instantiate(), extraction_depth, path_budget, instantiator, provider)

    # ------------------------------------------------------------ attributes

    def __repr__(self) -> str:
        return (
            f"PropertyController({type(self._target).__name__}, depth={self._extraction_depth.name}, "
            f"path_budget={self._path_budget}, cached={len(self._cache)})"
        )

    @property
    def target(self) -> Any:
        """The live instance currently under control."""
        return self._target

    @property
    def extraction_depth(self) -> ExtractionDepth:
        return self._extraction_depth

    @property
    def path_budget(self) -> int:
        return self._path_budget

    @property
    def policy(self) -> Optional[InstantiationPolicy]:
        """Instantiation policy, or None for instance-built controllers."""
        return self._instantiator.policy if self._instantiator is not None else None

    @property
    def is_recyclable(self) -> bool:
        return self._instantiator is not None

    @property
    def provider(self) -> CapabilityProvider:
        if self._provider is None:
            self._provider = config.get_capability_provider()
        return self._provider

    # ------------------------------------------------------------ operations

    def access(self, path: str) -> Any:
        """Current value at ``path``."""
        return self._resolve(path).get()

    def mutate(self, path, value: Any = _UNSET) -> 'PropertyController':
        """Write ``value`` at ``path``, or apply every pair of a mapping in its iteration order.

        Returns the controller so calls can be chained.
        """
        if value is _UNSET:
            if not isinstance(path, Mapping):
                raise TypeError("mutate() takes a path and a value, or a mapping of paths to values")
            for each_path, each_value in path.items():
                self.mutate(each_path, each_value)
            return self

        bound = self._resolve(path)
        if bound.is_read_only:
            raise ReadOnlyProperty(path)
        bound.set(value)
        return self

    def type_of(self, path: str) -> Any:
        """Declared value type of the property's reader (``typing.Any`` when unannotated)."""
        return self._resolve(path).type

    def is_array(self, path: str) -> bool:
        return self._resolve(path).is_array

    def is_read_only(self, path: str) -> bool:
        return self._resolve(path).is_read_only

    def bound_property(self, path: str) -> BoundProperty:
        """Terminal BoundProperty of ``path``, resolving it if needed."""
        return self._resolve(path)

    def property_names(self, max_depth: int = 0) -> Set[str]:
        """Every bindable property name, eagerly discovered.

        With ``max_depth`` > 0, recurses into non-None, non-scalar,
        non-collection values and reports their properties as
        ``"<parent>.<child>"``. Objects already visited (by identity) are not
        entered twice, so cyclic graphs terminate.

        Every candidate reader is invoked, so impure accessors will show their
        side effects.
        """
        return self._collect_names(self._target, '', max_depth, {id(self._target)})

    def recycle(self) -> None:
        """Replace the target with a fresh instance, keeping all cached bindings.

        Only controllers built from a class can recycle. Cached chains are
        re-rooted at the new target; chains that can no longer reach their
        terminal property (an intermediate value became None) are evicted and
        will be rediscovered on next use. If an intermediate accessor raises,
        the controller keeps its previous target and every cached owner.
        """
        if self._instantiator is None:
            raise RecycleUnsupported(type(self._target))

        previous = self._target
        fresh = self._instantiator.instantiate()
        if fresh is previous:
            raise InstantiationFailed(
                self._instantiator.cls,
                [RuntimeError("constructor returned the instance being recycled")],
            )

        staged = []
        stale = []
        for key, chain in self._cache.items():
            try:
                owners = self._owners_along(chain, fresh, str(key))
            except NonexistentProperty:
                owners = None
            if owners is None:
                stale.append(key)
            else:
                staged.append((chain, owners))

        self._target = fresh
        for chain, owners in staged:
            for bound, owner in zip(chain, owners):
                bound.owner = owner
        for key in stale:
            self._cache.evict(key)
        logger.debug(
            f"Recycled {type(fresh).__name__}: {len(staged)} binding(s) kept, {len(stale)} evicted"
        )

    # ------------------------------------------------------------ resolution

    def _resolve(self, path: str) -> BoundProperty:
        key = PropertyPath.parse(path, self._path_budget)
        if not key.segments:
            raise NonexistentProperty(path, type(self._target))

        cached = self._cache.get(key)
        if cached is not None and self._reroot(cached, path):
            return cached[-1]

        chain = self._bind_chain(key, path)
        if cached is None:
            chain = self._cache.put_if_absent(key, chain)
        else:
            # an intermediate value changed type since the chain was bound
            self._cache.replace(key, chain)
        return chain[-1]

    def _bind_chain(self, key: PropertyPath, path: str) -> PropertyChain:
        """Bind every segment, re-rooting at the value read from the previous one."""
        owner = self._target
        chain = []
        last = len(key.segments) - 1
        for index, segment in enumerate(key.segments):
            bound = self._extractor.extract(segment, owner, path)
            chain.append(bound)
            if index < last:
                owner = bound.get()
        logger.debug(f"Resolved '{key}' on {type(self._target).__name__} through {len(chain)} segment(s)")
        return tuple(chain)

    def _owners_along(self, chain: PropertyChain, root: Any, path: str) -> Optional[List[Any]]:
        """Owner each cached binding would have when walked from ``root``.

        Returns None when an intermediate object changed type, meaning the
        chain must be rediscovered. Nothing is rebound here.
        """
        owners = []
        owner = root
        last = len(chain) - 1
        for index, bound in enumerate(chain):
            if owner is None:
                raise NonexistentProperty(path, type(None))
            if type(owner) is not bound.owner_type:
                return None
            owners.append(owner)
            if index < last:
                owner = bound.reader.read(owner)
        return owners

    def _reroot(self, chain: PropertyChain, path: str) -> bool:
        """Point each cached binding at the object currently reached by its prefix."""
        owners = self._owners_along(chain, self._target, path)
        if owners is None:
            return False
        for bound, owner in zip(chain, owners):
            bound.owner = owner
        return True

    # -------------------------------------------------------- name discovery

    def _collect_names(self, root: Any, prefix: str, steps: int, visited: Set[int]) -> Set[str]:
        names = self._names_on(root, self.provider.list_members(root))
        found = {prefix + name for name in names}
        if steps <= 0:
            return found

        for name in sorted(names):
            path = prefix + name
            value = self._extractor.extract(name, root, path).get()
            if value is None or isinstance(value, LEAF_TYPES) or id(value) in visited:
                continue
            visited.add(id(value))
            found |= self._collect_names(value, path + '.', steps - 1, visited)
        return found

    def _names_on(self, root: Any, members: Members) -> Set[str]:
        names = set()

        for writer in members.writers:
            base = _mutator_base_name(writer.name)
            if base is None:
                continue
            if paired_reader(members.readers, base, writer) is not None:
                names.add(base)
        names.update(prop.name for prop in members.properties if prop.writable)

        if self._extraction_depth >= ExtractionDepth.FIELDS:
            names.update(field.name for field in members.fields)
        if self._extraction_depth >= ExtractionDepth.QUESTIMATE:
            names.update(public_spelling(field.name, type(root)) for field in members.declared_fields)
        return names

    # ----------------------------------------------------------- persistence

    def __getstate__(self):
        """Target and configuration only; the cache is rebuilt lazily."""
        return {
            'target': self._target,
            'extraction_depth': self._extraction_depth,
            'path_budget': self._path_budget,
            'instantiator': self._instantiator,
        }

    def __setstate__(self, state):
        self.__init__(
            state['target'],
            state['extraction_depth'],
            state['path_budget'],
            state['instantiator'],
        )
