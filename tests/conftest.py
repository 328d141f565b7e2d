"""Pytest configuration and fixtures for codegraph-core tests."""

import shutil
import tempfile
from pathlib import Path
from typing import Generator, List
from unittest.mock import MagicMock

import pytest

from codegraph_core.config import PipelineConfig
from codegraph_core.extractor import StructuralExtractor
from codegraph_core.models import SourceFile
from codegraph_core.pipeline import CodeGraphPipeline


@pytest.fixture(autouse=True)
def _no_network(monkeypatch):
    """Fail loudly if a test reaches a real provider endpoint."""

    def _blocked(*args, **kwargs):
        raise AssertionError("tests must not perform real HTTP requests")

    monkeypatch.setattr("codegraph_core.llm.requests.post", _blocked)


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
def extractor() -> StructuralExtractor:
    return StructuralExtractor()


@pytest.fixture
def pipeline() -> CodeGraphPipeline:
    return CodeGraphPipeline(PipelineConfig(max_workers=4))


@pytest.fixture
def mock_provider():
    """Provider double; set ``generate.return_value`` per test."""
    provider = MagicMock()
    provider.generate.return_value = None
    return provider


@pytest.fixture
def sample_python_code() -> str:
    """Sample Python code for testing the extractor."""
    return '''"""Sample module for testing."""

def hello(name: str) -> str:
    """Say hello."""
    return f"Hello, {name}!"

class Calculator:
    """Simple calculator."""

    def add(self, a: int, b: int) -> int:
        """Add two numbers."""
        return a + b

    def multiply(self, a: int, b: int) -> int:
        """Multiply two numbers."""
        result = self.add(a, 0)  # Call to add
        for _ in range(b - 1):
            result = self.add(result, a)
        return result
'''


@pytest.fixture
def go_files() -> List[SourceFile]:
    """a.go imports pkg/b, c.go imports pkg/a; b.go and c.go share package pkg."""
    return [
        SourceFile("a.go", 'package app\n\nimport "pkg/b"\n\nfunc A() {}\n'),
        SourceFile("b.go", "package pkg\n\nfunc B() {}\n"),
        SourceFile("c.go", 'package pkg\n\nimport "pkg/a"\n\nfunc C() {}\n'),
    ]


@pytest.fixture
def go_cycle_files() -> List[SourceFile]:
    """a -> b -> c -> a through explicit imports."""
    return [
        SourceFile("a.go", 'package app\n\nimport "pkg/b"\n\nfunc A() {}\n'),
        SourceFile("b.go", 'package pkg\n\nimport "pkg/c"\n\nfunc B() {}\n'),
        SourceFile("c.go", 'package pkg\n\nimport "pkg/a"\n\nfunc C() {}\n'),
    ]


@pytest.fixture
def mixed_project() -> List[SourceFile]:
    """A small polyglot project with resolvable and external imports."""
    return [
        SourceFile(
            "src/main/java/com/example/model/User.java",
            "package com.example.model;\n\npublic class User {\n    private String name;\n}\n",
        ),
        SourceFile(
            "src/main/java/com/example/service/UserService.java",
            "package com.example.service;\n\n"
            "import com.example.model.User;\n"
            "import java.util.List;\n\n"
            "public class UserService {\n"
            "    public User find(String name) {\n"
            "        if (name == null || name.isEmpty()) {\n"
            "            return null;\n"
            "        }\n"
            "        return new User();\n"
            "    }\n"
            "}\n",
        ),
        SourceFile(
            "web/src/app.ts",
            "import { helper } from './utils/helper';\n"
            "import React from 'react';\n\n"
            "export function render(): string {\n"
            "  return helper();\n"
            "}\n",
        ),
        SourceFile(
            "web/src/utils/helper.ts",
            "// shared helpers\nexport const helper = () => 'ok';\n",
        ),
        SourceFile("tools/build.py", "import os\nfrom tools import config\n\ndef run():\n    return os.getcwd()\n"),
        SourceFile("tools/config.py", "DEBUG = False\n"),
        SourceFile("native/util.c", '#include "util.h"\n\nint add(int a, int b) {\n    return a + b;\n}\n'),
        SourceFile("native/util.h", "int add(int a, int b);\n"),
        SourceFile("README.md", "# Project\n"),
        SourceFile("logo.png", "not really an image"),
    ]
