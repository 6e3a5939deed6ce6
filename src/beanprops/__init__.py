"""
Name-driven property access for arbitrary Python objects.

beanprops reads and writes "properties" of any object, or of a class it
instantiates on demand, using nothing but the property's name, optionally a
dotted path into nested objects. The object doesn't have to expose any uniform
interface: beanprops discovers how to get and set each value, binds it once and
caches the binding.

Key Features:
- Escalating extraction: accessor/mutator methods -> public fields -> private fields
- Dotted paths into nested objects ("owner.address.city")
- Per-controller, thread-safe cache of resolved bindings
- Instantiation policies for controlling a class instead of an instance
- recycle(): swap in a fresh instance without rediscovering anything

Quick Start:
    >>> from beanprops import PropertyController, ExtractionDepth
    >>>
    >>> controller = PropertyController.of(account)
    >>> controller.mutate('owner.name', 'Jill').access('owner.name')
    'Jill'
    >>>
    >>> # Build objects from a class, one after another
    >>> factory = PropertyController.of(Account, policy=InstantiationPolicy.NICE)
    >>> factory.mutate('balance', 10)
    >>> first = factory.target
    >>> factory.recycle()   # new Account, same cached bindings

Architecture:
    Extraction depth controls how hard beanprops looks for a property:

    METHODS:    set_<name>/get_<name>/is_<name> pairs and property descriptors
    FIELDS:     + public data members
    QUESTIMATE: + private/declared data members, mixed with partial method matches

Modules:
    - controller: PropertyController facade, path resolution and recycling
    - extraction: strategies and the escalating extractor
    - binding: readers, writers and BoundProperty
    - property_cache: PropertyPath keys and the per-controller cache
    - instantiation: ClassInstantiator and InstantiationPolicy
    - nice_values: default values for NICE instantiation
    - capabilities: introspection boundary (CapabilityProvider)
    - config: library-wide defaults
    - exceptions: error taxonomy
"""

# Controller
from beanprops.controller import PropertyController

# Extraction
from beanprops.extraction import (
    ExtractionDepth,
    EscalatingExtractor,
    ExtractionStrategy,
    MethodStrategy,
    FieldStrategy,
    DeclaredFieldStrategy,
    PartialBinding,
)

# Binding
from beanprops.binding import (
    BoundProperty,
    Reader,
    Writer,
    MethodReader,
    MethodWriter,
    PropertyAccess,
    FieldAccess,
    is_assignable,
)

# Cache
from beanprops.property_cache import PropertyCache, PropertyPath

# Instantiation
from beanprops.instantiation import ClassInstantiator, InstantiationPolicy
from beanprops.nice_values import nice_value_for

# Capabilities
from beanprops.capabilities import (
    CapabilityProvider,
    PythonIntrospection,
    Members,
    MethodHandle,
    FieldHandle,
    PropertyHandle,
    ConstructorHandle,
    constructor,
)

# Configuration
from beanprops.config import (
    set_capability_provider,
    get_capability_provider,
    set_default_extraction_depth,
    get_default_extraction_depth,
    set_default_path_budget,
    get_default_path_budget,
    set_default_instantiation_policy,
    get_default_instantiation_policy,
    reset_defaults,
)

# Errors
from beanprops.exceptions import (
    PropertyControlError,
    NonexistentProperty,
    IncompatibleAccessorMutator,
    ReadOnlyProperty,
    InstantiationFailed,
    RecycleUnsupported,
    AccessDenied,
    InvocationFailed,
)

__all__ = [
    # Controller
    'PropertyController',
    # Extraction
    'ExtractionDepth',
    'EscalatingExtractor',
    'ExtractionStrategy',
    'MethodStrategy',
    'FieldStrategy',
    'DeclaredFieldStrategy',
    'PartialBinding',
    # Binding
    'BoundProperty',
    'Reader',
    'Writer',
    'MethodReader',
    'MethodWriter',
    'PropertyAccess',
    'FieldAccess',
    'is_assignable',
    # Cache
    'PropertyCache',
    'PropertyPath',
    # Instantiation
    'ClassInstantiator',
    'InstantiationPolicy',
    'nice_value_for',
    # Capabilities
    'CapabilityProvider',
    'PythonIntrospection',
    'Members',
    'MethodHandle',
    'FieldHandle',
    'PropertyHandle',
    'ConstructorHandle',
    'constructor',
    # Configuration
    'set_capability_provider',
    'get_capability_provider',
    'set_default_extraction_depth',
    'get_default_extraction_depth',
    'set_default_path_budget',
    'get_default_path_budget',
    'set_default_instantiation_policy',
    'get_default_instantiation_policy',
    'reset_defaults',
    # Errors
    'PropertyControlError',
    'NonexistentProperty',
    'IncompatibleAccessorMutator',
    'ReadOnlyProperty',
    'InstantiationFailed',
    'RecycleUnsupported',
    'AccessDenied',
    'InvocationFailed',
]

__version__ = '1.0.0'
__description__ = 'Name-driven property access for arbitrary Python objects'
