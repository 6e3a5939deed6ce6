"""Pytest configuration and shared fixtures."""
import pytest

import beanprops
from beanprops import ExtractionDepth, PropertyController, PythonIntrospection

from testbeans import RecursionBean, SingleValueBean, TraditionalBean


@pytest.fixture(autouse=True)
def reset_library_defaults():
    """Reset library-wide defaults before and after each test."""
    beanprops.reset_defaults()
    yield
    beanprops.reset_defaults()


@pytest.fixture
def provider():
    """Provide a fresh introspection provider with an empty type cache."""
    return PythonIntrospection()


@pytest.fixture
def traditional_controller():
    """Provide a recyclable controller over TraditionalBean."""
    return PropertyController.of(TraditionalBean)


@pytest.fixture
def nested_bean():
    """Provide a RecursionBean wrapping a SingleValueBean."""
    return RecursionBean(SingleValueBean("inner"))


@pytest.fixture
def questimate_controller():
    """Provide a factory for QUESTIMATE-depth controllers over an instance."""
    def _make(instance):
        return PropertyController.of(instance, extraction_depth=ExtractionDepth.QUESTIMATE)
    return _make
