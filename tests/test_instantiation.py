"""Tests for ClassInstantiator policies and nice-value synthesis."""
import array
import logging
import pickle
from decimal import Decimal
from fractions import Fraction
from typing import Any, List, Optional, Tuple

import pytest

from beanprops import (
    ClassInstantiator,
    InstantiationFailed,
    InstantiationPolicy,
    InvocationFailed,
    PythonIntrospection,
    constructor,
    get_capability_provider,
    nice_value_for,
)
from beanprops.nice_values import is_array_type, runtime_class

from testbeans import (
    MultipleConstructorsBean,
    NoDefaultConstructorBean,
    TraditionalBean,
    UnsupportedParameterBean,
)


class FailingConstructorBean:
    def __init__(self):
        raise ValueError("constructor exploded")


class TiedConstructorsBean:
    def __init__(self, first: int):
        self.built_by = '__init__'

    @constructor
    @classmethod
    def from_other(cls, other: str) -> 'TiedConstructorsBean':
        bean = cls(0)
        bean.built_by = 'from_other'
        return bean


class KeywordOnlyBean:
    def __init__(self, *, label: str, count: int = 5):
        self.label = label
        self.count = count


class MixedParametersBean:
    def __init__(self, name: str, ratio: float, flags: List[bool], enabled: bool, note: Optional[str]):
        self.args = (name, ratio, flags, enabled, note)


class TestNoArgsPolicy:
    def test_builds_fresh_instances(self):
        instantiator = ClassInstantiator(TraditionalBean)

        first = instantiator.instantiate()
        second = instantiator.instantiate()

        assert isinstance(first, TraditionalBean)
        assert first is not second

    def test_missing_default_constructor(self):
        instantiator = ClassInstantiator(NoDefaultConstructorBean, InstantiationPolicy.NO_ARGS)

        with pytest.raises(InstantiationFailed) as exc_info:
            instantiator.instantiate()

        assert str(exc_info.value) == "Couldn't instantiate given class testbeans.NoDefaultConstructorBean"
        assert len(exc_info.value.causes) == 1
        assert isinstance(exc_info.value.causes[0], TypeError)

    def test_does_not_fall_back_to_nice(self):
        with pytest.raises(InstantiationFailed):
            ClassInstantiator(MultipleConstructorsBean, InstantiationPolicy.NO_ARGS).instantiate()

    def test_constructor_failure_is_wrapped(self):
        with pytest.raises(InstantiationFailed) as exc_info:
            ClassInstantiator(FailingConstructorBean).instantiate()

        cause = exc_info.value.causes[0]
        assert isinstance(cause, InvocationFailed)
        assert isinstance(cause.__cause__, ValueError)


class TestNicePolicy:
    def test_shortest_constructor_wins(self):
        bean = ClassInstantiator(MultipleConstructorsBean, InstantiationPolicy.NICE).instantiate()
        assert bean.get_instantiated_with() == 'single-arg'

    def test_init_wins_ties(self):
        bean = ClassInstantiator(TiedConstructorsBean, InstantiationPolicy.NICE).instantiate()
        assert bean.built_by == '__init__'

    def test_nice_arguments(self):
        bean = ClassInstantiator(MixedParametersBean, InstantiationPolicy.NICE).instantiate()
        assert bean.args == ('', 0.0, [], False, '')

    def test_required_argument_gets_empty_string(self):
        bean = ClassInstantiator(NoDefaultConstructorBean, InstantiationPolicy.NICE).instantiate()
        assert bean.required == ''

    def test_keyword_only_parameters(self):
        bean = ClassInstantiator(KeywordOnlyBean, InstantiationPolicy.NICE).instantiate()
        assert bean.label == ''
        assert bean.count == 5

    def test_unsupported_parameter_type(self, caplog):
        with caplog.at_level(logging.WARNING, logger='beanprops.nice_values'):
            bean = ClassInstantiator(UnsupportedParameterBean, InstantiationPolicy.NICE).instantiate()

        assert bean.handler is None
        assert "Unidentified type for nice value" in caplog.text


class TestInstantiatorConfiguration:
    def test_rejects_instances(self):
        with pytest.raises(TypeError):
            ClassInstantiator(TraditionalBean())

    def test_policy_from_value(self):
        instantiator = ClassInstantiator(TraditionalBean, 'nice')
        assert instantiator.policy is InstantiationPolicy.NICE
        assert repr(instantiator) == "ClassInstantiator(TraditionalBean, NICE)"

    def test_pickle_drops_provider(self):
        instantiator = ClassInstantiator(TraditionalBean, InstantiationPolicy.NICE, PythonIntrospection())

        restored = pickle.loads(pickle.dumps(instantiator))

        assert restored.cls is TraditionalBean
        assert restored.policy is InstantiationPolicy.NICE
        assert restored.provider is get_capability_provider()
        assert isinstance(restored.instantiate(), TraditionalBean)


@pytest.mark.parametrize("declared_type, expected", [
    (int, 0),
    (float, 0.0),
    (complex, 0j),
    (Decimal, Decimal(0)),
    (Fraction, Fraction(0)),
    (str, ''),
    (bytes, b''),
    (List[int], []),
    (list, []),
    (Tuple[int, ...], ()),
    (Optional[int], 0),
    (str | None, ''),
])
def test_nice_values(declared_type, expected):
    """Test nice values for supported types."""
    value = nice_value_for(declared_type)
    assert value == expected
    assert type(value) is type(expected)


def test_nice_bool_is_false():
    """Test that bool gets False rather than the int zero."""
    assert nice_value_for(bool) is False


def test_nice_array():
    """Test that array types get an empty array."""
    value = nice_value_for(array.array)
    assert isinstance(value, array.array)
    assert len(value) == 0
    assert value.typecode == 'd'


def test_nice_value_gap(caplog):
    """Test that unsupported types log a warning and produce None."""
    with caplog.at_level(logging.WARNING, logger='beanprops.nice_values'):
        assert nice_value_for(TraditionalBean) is None
        assert nice_value_for(Any) is None
    assert caplog.text.count("Unidentified type for nice value") == 2


def test_array_type_detection():
    """Test which declared types count as arrays."""
    assert is_array_type(List[float])
    assert is_array_type(tuple)
    assert is_array_type(array.array)
    assert not is_array_type(str)
    assert not is_array_type(dict)
    assert runtime_class(List[int]) is list
    assert runtime_class(int) is int
