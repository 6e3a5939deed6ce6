"""Tests for the PythonIntrospection capability provider."""
from dataclasses import dataclass
from typing import Any, ClassVar, Dict

import pytest

from beanprops import (
    AccessDenied,
    ConstructorHandle,
    FieldHandle,
    InvocationFailed,
    constructor,
)

from testbeans import (
    DescriptorBean,
    ExplodingBean,
    FrozenPoint,
    MultipleConstructorsBean,
    PublicFieldBean,
    Settings,
    SlottedBean,
    TraditionalBean,
    VaryingParametersBean,
)


class VariadicBean:
    def get_items(self, *items):
        return items

    def set_options(self, **options):
        self.options = options

    def set_limit(self, *, limit: int):
        self.limit = limit


class RegistryBean:
    registry: ClassVar[Dict[str, Any]] = {}
    kind: str = "plain"


class PrivateSlotBean:
    __slots__ = ('__secret',)


@dataclass
class RequiredField:
    value: int


class WrongFactoryBean:
    @classmethod
    @constructor
    def broken(cls) -> str:
        return "not a bean"

    @classmethod
    def unmarked(cls) -> 'WrongFactoryBean':
        return cls()


def names(handles):
    return [handle.name for handle in handles]


class TestListMembers:
    def test_readers_and_writers(self, provider):
        members = provider.list_members(TraditionalBean())

        assert names(members.readers) == ['get_age', 'get_balance', 'get_name']
        assert names(members.writers) == ['set_age', 'set_balance', 'set_name']
        assert members.fields == ()
        assert names(members.declared_fields) == ['_age', '_balance', '_name']

    def test_arity_sorts_methods(self, provider):
        members = provider.list_members(VaryingParametersBean())

        assert names(members.readers) == ['getValue']
        assert names(members.writers) == ['get_value', 'setValue']

    def test_variadic_and_keyword_only_methods_are_skipped(self, provider):
        members = provider.list_members(VariadicBean())
        assert members.readers == ()
        assert members.writers == ()

    def test_value_types(self, provider):
        members = provider.list_members(TraditionalBean())
        age_reader = next(handle for handle in members.readers if handle.name == 'get_age')
        age_writer = next(handle for handle in members.writers if handle.name == 'set_age')
        assert age_reader.value_type is int
        assert age_writer.value_type is int

    def test_properties(self, provider):
        properties = {handle.name: handle for handle in provider.list_members(DescriptorBean()).properties}

        assert set(properties) == {'label', 'temperature'}
        assert properties['temperature'].writable
        assert properties['temperature'].value_type is float
        assert not properties['label'].writable

    def test_instance_fields(self, provider):
        assert provider.list_members(PublicFieldBean()).fields == (FieldHandle('x', Any, True),)

    def test_dataclass_fields(self, provider):
        fields = {handle.name: handle.value_type for handle in provider.list_members(Settings()).fields}
        assert fields == {'name': str, 'retries': int}

    def test_annotation_only_fields(self, provider):
        fields = provider.list_members(RequiredField(3)).fields
        assert fields == (FieldHandle('value', int, True),)

    def test_class_vars_are_not_fields(self, provider):
        fields = names(provider.list_members(RegistryBean()).fields)
        assert fields == ['kind']

    def test_slots(self, provider):
        members = provider.list_members(SlottedBean())
        assert names(members.fields) == ['visible']
        assert names(members.declared_fields) == ['_hidden', 'visible']

    def test_private_slots_are_mangled(self, provider):
        declared = provider.list_members(PrivateSlotBean()).declared_fields
        assert names(declared) == ['_PrivateSlotBean__secret']
        assert not declared[0].public

    def test_class_tables_are_cached(self, provider):
        assert repr(provider) == "PythonIntrospection(cached_types=0)"
        provider.list_members(TraditionalBean())
        provider.list_members(TraditionalBean())
        assert repr(provider) == "PythonIntrospection(cached_types=1)"


class TestInvocation:
    def test_reader_failure(self, provider):
        members = provider.list_members(ExplodingBean())
        with pytest.raises(InvocationFailed) as exc_info:
            provider.invoke_reader(members.readers[0], ExplodingBean())
        assert exc_info.value.member == 'get_boom'
        assert isinstance(exc_info.value.__cause__, ValueError)

    def test_writer_failure(self, provider):
        members = provider.list_members(ExplodingBean())
        with pytest.raises(InvocationFailed, match="mutator exploded"):
            provider.invoke_writer(members.writers[0], ExplodingBean(), 'x')

    def test_missing_field(self, provider):
        with pytest.raises(AccessDenied):
            provider.read_field(FieldHandle('nope', Any, True), TraditionalBean())

    def test_frozen_field(self, provider):
        with pytest.raises(AccessDenied):
            provider.write_field(FieldHandle('x', int, True), FrozenPoint(), 3)

    def test_property_without_setter(self, provider):
        label = next(
            handle for handle in provider.list_members(DescriptorBean()).properties if handle.name == 'label'
        )
        with pytest.raises(AccessDenied, match="no setter"):
            provider.write_property(label, DescriptorBean(), 'x')


class TestConstructors:
    def test_marked_classmethods(self, provider):
        handles = provider.constructors(MultipleConstructorsBean)

        assert names(handles) == ['__init__', 'from_pair', 'from_single']
        assert [handle.arity for handle in handles] == [3, 2, 1]
        assert handles[2].param_types == (str,)

    def test_unmarked_classmethods_are_ignored(self, provider):
        assert names(provider.constructors(WrongFactoryBean)) == ['__init__', 'broken']

    def test_construct(self, provider):
        handle = ConstructorHandle('from_single', (('plop', str, False),))
        bean = provider.construct(MultipleConstructorsBean, handle, ['x'])
        assert bean.get_instantiated_with() == 'single-arg'

    def test_factory_returning_wrong_type(self, provider):
        with pytest.raises(InvocationFailed, match="returned str"):
            provider.construct(WrongFactoryBean, ConstructorHandle('broken', ()), [])

    def test_constructor_marker_order(self):
        class Either:
            @constructor
            @classmethod
            def outer(cls):
                return cls()

            @classmethod
            @constructor
            def inner(cls):
                return cls()

        assert Either.__dict__['outer'].__func__.__beanprops_constructor__
        assert Either.__dict__['inner'].__func__.__beanprops_constructor__
