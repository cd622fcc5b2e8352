"""Pytest configuration and fixtures for cmdscribe tests."""

import json
import logging
import tempfile
import textwrap
from pathlib import Path

import pytest


COMMANDS_MODULE_SOURCE = textwrap.dedent(
    '''
    """Demo commands used by CLI tests."""


    def ListAll():
        return "all"


    def build(target: str, force: bool):
        return target


    def echo(*words):
        return " ".join(words)


    def _hidden(value: int):
        return value
    '''
)


@pytest.fixture(autouse=True)
def restore_logging():
    """Undo logging changes made by setup_logging() and the CLI."""
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers = handlers
    root.setLevel(level)
    logging.disable(logging.NOTSET)


@pytest.fixture
def temp_dir():
    """Create temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_manifest(temp_dir):
    """Create sample manifest JSON for testing."""
    manifest = {
        "name": "demo",
        "description": "Demo program that lists, builds and echoes things.",
    }

    manifest_path = temp_dir / "manifest.json"
    with open(manifest_path, "w", encoding="utf-8") as f:
        json.dump(manifest, f, indent=2)

    return manifest_path


@pytest.fixture
def commands_module(temp_dir, sample_manifest):
    """Write a commands module with a manifest beside it."""
    module_path = temp_dir / "demo_commands.py"
    module_path.write_text(COMMANDS_MODULE_SOURCE, encoding="utf-8")
    return module_path
