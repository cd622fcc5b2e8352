"""Tests for Program composition and dispatch."""

import logging

import pytest

from cmdscribe.errors import ParameterCountMismatch, UsageError
from cmdscribe.manifest import Manifest
from cmdscribe.program import Program


def ListAll():
    return "all"


def build(target: str, force: bool):
    return target


def echo(*words):
    return " ".join(words)


def spread(
    first: int,
    second: int,
):
    return first + second


@pytest.fixture
def program():
    """Program with one dispatchable command."""
    return Program.build("demo", "Demo program.", [ListAll, build, echo])


class TestProgramBuild:
    """Test program construction."""

    def test_usage_rendered_once(self, program):
        """Test that the usage banner is built from the registry."""
        assert program.usage.startswith("Demo program.\n\nusage: demo [[--list-all]")
        assert "[build [target=<str>, force=<bool>]]" in program.usage
        assert "[echo [words [...any]]]" in program.usage

    def test_functions_in_registration_order(self, program):
        """Test that functions keep the order they were given in."""
        assert [d.display_name for d in program.functions] == ["list-all", "build", "echo"]

    def test_from_manifest(self):
        """Test building from manifest metadata."""
        manifest = Manifest(name="emojipedia", description="Emoji packages.")
        program = Program.from_manifest(manifest, [ListAll])

        assert program.name == "emojipedia"
        assert program.usage == "Emoji packages.\n\nusage: emojipedia [[--list-all]]"

    def test_construction_failure_is_raised(self):
        """Test that descriptor errors abort construction."""
        with pytest.raises(ParameterCountMismatch):
            Program.build("demo", "", [ListAll, spread])

    def test_refresh_usage_after_register(self, program):
        """Test re-rendering after the registry changes."""
        program.registry.register(spread, names=["first", "second"])

        assert "[spread [first=<int>, second=<int>]]" in program.refresh_usage()


class TestProgramRun:
    """Test argv dispatch."""

    def test_run_dispatchable_command(self, program):
        """Test that raw strings are passed positionally."""
        assert program.run(["echo", "hello", "world"]) == "hello world"

    def test_run_flag_spelling(self, program):
        """Test that a --name spelling resolves to the same command."""
        assert program.run(["--echo", "x"]) == "x"

    def test_run_logs_event(self, program, caplog):
        """Test that a run emits a program_run event."""
        with caplog.at_level(logging.INFO):
            program.run(["echo", "a", "b"])

        assert '"event":"program_run"' in caplog.text
        assert '"args_summary":"a b"' in caplog.text

    def test_run_unknown_command(self, program):
        """Test unknown commands raise UsageError with the banner."""
        with pytest.raises(UsageError, match="Unknown command: nope") as exc_info:
            program.run(["nope"])

        assert exc_info.value.usage == program.usage

    @pytest.mark.parametrize("command", ["build", "list-all"])
    def test_run_fixed_arity_command(self, program, command):
        """Test that commands failing the dispatch gate are refused."""
        with pytest.raises(UsageError, match="cannot be run directly"):
            program.run([command, "x"])

    def test_run_without_command(self, program):
        """Test that an empty argv is a usage error."""
        with pytest.raises(UsageError, match="No command given"):
            program.run([])
