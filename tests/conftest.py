"""Pytest configuration and fixtures for CodeFlow tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator, List

import pytest

from codeflow.models import ProjectFile


@pytest.fixture(autouse=True)
def _isolated_config(tmp_path: Path, monkeypatch):
    """Keep tests away from the user's ~/.codeflow/config.toml."""
    monkeypatch.setattr("codeflow.config.CONFIG_FILE", tmp_path / "codeflow-home" / "config.toml")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def sample_project_path() -> Path:
    """Get path to sample test project."""
    return Path(__file__).parent / "fixtures" / "sample_project"


@pytest.fixture
def two_file_project() -> List[ProjectFile]:
    """``a.js`` imports ``x`` from ``b.js``."""
    return [
        ProjectFile("a.js", "import {x} from './b'"),
        ProjectFile("b.js", "export const x = 1"),
    ]


@pytest.fixture
def sample_python_code() -> str:
    """Sample Python code for the conceptual walker."""
    return '''class Calculator:
    def add(self, a, b):
        total = a + b
        return total

    async def fetch(self):
        await self.add(1, 2)


result = Calculator().add(1, 2)
'''


@pytest.fixture
def sample_java_code() -> str:
    """Two classes, one extending the other."""
    return '''class Animal {
    String name;

    void speak() {
        int volume = 3;
        System.out.println(volume);
    }
}

class Dog extends Animal {
    void bark() {
        speak();
    }
}
'''
