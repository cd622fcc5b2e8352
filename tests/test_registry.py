"""Tests for the command registry."""

import logging
from typing import Any

import pytest

from cmdscribe.descriptors import build_function_descriptor
from cmdscribe.errors import IntrospectionUnavailable, MissReason
from cmdscribe.registry import DispatchResult, Registry, is_dispatchable


def ListAll():
    return ["a", "b"]


def build(target: str, force: bool):
    return target


def build_index(path: str):
    return path


def BuildIndex(path: str, depth: int):
    return path


def run_any(*opts):
    return list(opts)


def run_with_head(a: int, *opts):
    return a


def run_typed(*opts: str):
    return opts


def run_annotated_any(*opts: Any):
    return opts


def run_object(*opts: object):
    return opts


@pytest.fixture
def registry():
    """Registry holding a zero-arg, a fixed-arity and a dispatchable command."""
    return Registry.from_functions(ListAll, build, run_any)


class TestRegister:
    """Test registration and lookup."""

    def test_register_returns_descriptor(self):
        """Test that register() returns the stored descriptor."""
        registry = Registry()
        descriptor = registry.register(build)

        assert registry.lookup("build") is descriptor
        assert len(registry) == 1

    def test_lookup_is_case_insensitive(self, registry):
        """Test lookups under differently cased spellings."""
        descriptor = registry.lookup("list-all")

        assert descriptor is not None
        assert registry.lookup("LIST-ALL") is descriptor
        assert registry.lookup("ListAll") is descriptor
        assert registry.lookup("--list-all") is descriptor

    def test_lookup_unknown_returns_none(self, registry):
        """Test that a miss is a value, not an exception."""
        assert registry.lookup("missing") is None
        assert registry.has("missing") is False
        assert "missing" not in registry

    def test_membership(self, registry):
        """Test has() and the in operator."""
        assert registry.has("build") is True
        assert "Build" in registry
        assert 42 not in registry

    def test_contains_compares_names_only(self, registry):
        """Test that contains() matches any descriptor with the same name."""
        other = build_function_descriptor(build_index, name="build")

        assert registry.contains(other) is True
        assert registry.contains(build_function_descriptor(build_index)) is False

    def test_last_write_wins(self):
        """Test that colliding normalized names keep only the second registration."""
        registry = Registry()
        registry.register(build_index)
        second = registry.register(BuildIndex)

        assert len(registry) == 1
        assert registry.lookup("build-index") == second
        assert registry.lookup("build-index").arity == 2

    def test_replacement_keeps_slot(self):
        """Test that a replaced entry keeps its enumeration position."""
        registry = Registry.from_functions(build_index, ListAll)
        registry.register(BuildIndex)

        assert [d.display_name for d in registry.enumerate()] == ["build-index", "list-all"]
        assert registry.enumerate()[0].function is BuildIndex

    def test_replacement_is_logged(self, caplog):
        """Test that replacing an entry emits a command_replaced event."""
        registry = Registry()
        registry.register(build_index)

        with caplog.at_level(logging.INFO):
            registry.register(BuildIndex)

        assert '"event":"command_replaced"' in caplog.text
        assert '"command":"build-index"' in caplog.text

    def test_register_invalid_function(self):
        """Test that construction failures propagate from register()."""
        registry = Registry()

        with pytest.raises(IntrospectionUnavailable):
            registry.register(lambda: None)
        assert len(registry) == 0

    def test_enumerate_and_iter(self, registry):
        """Test enumeration order and iteration."""
        names = [d.display_name for d in registry.enumerate()]

        assert names == ["list-all", "build", "run-any"]
        assert [d.display_name for d in registry] == names

    def test_invariants_hold_for_all_entries(self, registry):
        """Test arity and variadic slot invariants across registered functions."""
        registry.register(run_with_head)

        for descriptor in registry.enumerate():
            assert descriptor.arity == len(descriptor.arguments)
            slots = [a.is_variadic_slot for a in descriptor.arguments]
            if descriptor.is_variadic:
                assert slots == [False] * (len(slots) - 1) + [True]
            else:
                assert not any(slots)


class TestCommandDecorator:
    """Test the decorator form of register()."""

    def test_decorator_registers_and_returns_function(self):
        """Test that decorated functions are registered and left unchanged."""
        registry = Registry()

        @registry.command()
        def ShowAll():
            return "shown"

        assert registry.has("show-all")
        assert ShowAll() == "shown"

    def test_decorator_with_name_and_names(self):
        """Test explicit command name and parameter names."""
        registry = Registry()

        @registry.command("publish", names=["where"])
        def _push(target: str):
            return target

        descriptor = registry.lookup("publish")
        assert descriptor is not None
        assert descriptor.arguments[0].name == "where"


class TestDispatch:
    """Test the type-gated dispatcher."""

    def test_dispatch_variadic_any(self, registry):
        """Test that a single *args function yields its callable."""
        handler, ok = registry.dispatch("run-any")

        assert ok is True
        assert handler is run_any
        assert handler("x", 1) == ["x", 1]

    def test_dispatch_result_fields(self, registry):
        """Test the DispatchResult fields on a hit."""
        result = registry.dispatch("RUN-ANY")

        assert isinstance(result, DispatchResult)
        assert result.ok is True
        assert result.miss is None

    def test_dispatch_unknown_key(self, registry):
        """Test that unknown names miss with UNKNOWN_KEY."""
        result = registry.dispatch("missing")

        assert result.ok is False
        assert result.handler is None
        assert result.miss is MissReason.UNKNOWN_KEY

    @pytest.mark.parametrize("name", ["build", "list-all"])
    def test_dispatch_fixed_arity_misses(self, registry, name):
        """Test that registered non-variadic commands fail the gate."""
        result = registry.dispatch(name)

        assert registry.lookup(name) is not None
        assert result.ok is False
        assert result.miss is MissReason.SIGNATURE_MISMATCH

    def test_dispatch_requires_single_variadic_slot(self):
        """Test run(*opts) dispatches while run(a, *opts) does not."""
        registry = Registry()
        registry.register(run_any, name="run")
        assert registry.dispatch("run").ok is True

        registry.register(run_with_head, name="run")
        handler, ok = registry.dispatch("run")
        assert ok is False
        assert handler is None
        assert registry.lookup("run") is not None

    def test_dispatch_typed_variadic_misses(self):
        """Test that *args with a concrete element type fails the gate."""
        registry = Registry.from_functions(run_typed)

        assert registry.dispatch("run-typed").miss is MissReason.SIGNATURE_MISMATCH

    @pytest.mark.parametrize("fn", [run_any, run_annotated_any, run_object])
    def test_is_dispatchable_any_spellings(self, fn):
        """Test unannotated, Any and object slots all count as any-typed."""
        assert is_dispatchable(build_function_descriptor(fn)) is True
