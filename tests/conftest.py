"""Shared fixtures and helpers for tests."""

import json
from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from sourcemap_publisher.config import PublisherSettings
from sourcemap_publisher.core.ports.publisher import OutputCallback

_REPO_ROOT = Path(__file__).parent.parent


# ---------------------------------------------------------------------------
# Auto-marker: tag tests as "unit" or "integration" based on directory
# ---------------------------------------------------------------------------


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        test_path = Path(str(item.fspath))
        rel = test_path.relative_to(_REPO_ROOT / "tests")
        parts = rel.parts
        if parts and parts[0] == "integration":
            item.add_marker(pytest.mark.integration)
        else:
            item.add_marker(pytest.mark.unit)


# ---------------------------------------------------------------------------
# Fake publisher
# ---------------------------------------------------------------------------


class RecordingPublisher:
    """In-process ``Publisher`` that snapshots the stage instead of running npm."""

    def __init__(self, exit_code: int = 0, output: list[str] | None = None) -> None:
        self.exit_code = exit_code
        self.output = output or []
        self.calls: list[dict[str, Any]] = []
        self.staged_files: dict[str, str] = {}

    def describe(self, *, dry_run: bool = False, provenance: bool = False) -> str:
        return "fake publish"

    async def publish(
        self,
        cwd: Path,
        *,
        dry_run: bool = False,
        provenance: bool = False,
        on_output: OutputCallback | None = None,
    ) -> int:
        self.calls.append({"cwd": cwd, "dry_run": dry_run, "provenance": provenance})
        self.staged_files = {
            path.relative_to(cwd).as_posix(): path.read_bytes().decode("utf-8")
            for path in sorted(cwd.rglob("*"))
            if path.is_file()
        }
        for line in self.output:
            if on_output is not None:
                on_output(line)
        return self.exit_code


# ---------------------------------------------------------------------------
# Shared unit-test fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def write_files() -> Callable[[Path, dict[str, str]], None]:
    def _write(root: Path, files: dict[str, str]) -> None:
        for name, content in files.items():
            path = root / name
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content.encode("utf-8"))

    return _write


@pytest.fixture
def settings() -> PublisherSettings:
    return PublisherSettings()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def project_dir(tmp_path: Path, write_files: Callable[[Path, dict[str, str]], None]) -> Path:
    """A built package: two mapped files, one unmapped, one with a missing map and a declaration file."""
    project = tmp_path / "project"
    package_json = {
        "name": "pkg",
        "version": "1.0.0",
        "main": "./dist/foo.js",
        "files": ["dist"],
        "exports": {".": "./dist/foo.js"},
        "bin": {"pkg": "./dist/foo.js"},
        "license": "MIT",
    }
    write_files(
        project,
        {
            "package.json": json.dumps(package_json, indent=2),
            ".npmrc": "registry=https://registry.npmjs.org/\n",
            "dist/foo.js": "console.log('foo');\n//# sourceMappingURL=foo.js.map\n",
            "dist/foo.js.map": '{"version":3}',
            "dist/nested/bar.js": "console.log('bar');\n//# sourceMappingURL=bar.js.map",
            "dist/nested/bar.js.map": '{"version":3}',
            "dist/plain.js": "console.log('plain');\n",
            "dist/lonely.js": "console.log('lonely');\r\n//# sourceMappingURL=lonely.js.map\r\n",
            "dist/foo.d.ts": "export {};\n//# sourceMappingURL=foo.d.ts.map\n",
            "src/foo.ts": "console.log('foo');\n",
        },
    )
    return project


@pytest.fixture
def make_publisher() -> Callable[..., RecordingPublisher]:
    return RecordingPublisher
