"""Shared pytest fixtures for the Pants Bridge test suite.

Provides reusable fixtures for:
- A recording message sink
- A scripted process launcher standing in for Pants
- Build targets and dirty-file holders
- Temporary build roots with ``dist/export-classpath`` layouts
- A fake ``pants`` executable script for end-to-end runs
"""

from __future__ import annotations

import json
import stat
import sys
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

import pytest

from pants_bridge.compiler.errors import ProcessLaunchError
from pants_bridge.host import AddressDirtyFiles, StaticBuildTarget
from pants_bridge.models import CompilerMessage, ProcessOutput, ProgressMessage, StreamKind
from pants_bridge.ports import DirtyFile


# ---------------------------------------------------------------------------
# Message sink
# ---------------------------------------------------------------------------


@dataclass
class RecordingSink:
    """Message sink that keeps everything it is given, in order."""

    messages: list[CompilerMessage] = field(default_factory=list)
    progress_messages: list[ProgressMessage] = field(default_factory=list)

    def process_message(self, message: CompilerMessage) -> None:
        self.messages.append(message)

    def progress(self, message: ProgressMessage) -> None:
        self.progress_messages.append(message)

    @property
    def texts(self) -> list[str]:
        return [m.text for m in self.messages]


@pytest.fixture
def sink() -> RecordingSink:
    return RecordingSink()


# ---------------------------------------------------------------------------
# Scripted launcher
# ---------------------------------------------------------------------------

ProbeResponse = Union[ProcessOutput, BaseException]


@dataclass
class FakeLauncher:
    """Answers probe commands from a script and replays build output.

    ``responses`` is keyed by the Pants subcommand (``goals``, ``options``,
    ``export``). ``build_lines`` are delivered to the stream callback in order.
    """

    responses: dict[str, ProbeResponse] = field(default_factory=dict)
    build_lines: list[tuple[str, StreamKind]] = field(default_factory=list)
    build_exit_code: int = 0
    build_error: Optional[BaseException] = None
    run_calls: list[list[str]] = field(default_factory=list)
    stream_calls: list[list[str]] = field(default_factory=list)

    async def run(self, command, cwd=None) -> ProcessOutput:
        command = list(command)
        self.run_calls.append(command)
        response = self.responses.get(command[1], ProcessOutput(command=command, exit_code=0))
        if isinstance(response, BaseException):
            raise response
        return response

    async def stream(self, command, on_line, cwd=None) -> ProcessOutput:
        command = list(command)
        self.stream_calls.append(command)
        if self.build_error is not None:
            raise self.build_error
        stdout, stderr = [], []
        for line, kind in self.build_lines:
            (stderr if kind is StreamKind.STDERR else stdout).append(line + "\n")
            on_line(line, kind)
        return ProcessOutput(
            command=command,
            exit_code=self.build_exit_code,
            stdout="".join(stdout),
            stderr="".join(stderr),
        )

    @property
    def subcommands(self) -> list[str]:
        return [call[1] for call in self.run_calls]


def probe_output(stdout: str = "", exit_code: int = 0, stderr: str = "") -> ProcessOutput:
    return ProcessOutput(command=["./pants"], exit_code=exit_code, stdout=stdout, stderr=stderr)


def export_json(version: str = "1.0.5") -> str:
    return json.dumps({"version": version, "targets": {}, "libraries": {}})


@pytest.fixture
def launcher() -> FakeLauncher:
    """Launcher for a modern Pants: export-classpath, naming option, export 1.0.5."""
    return FakeLauncher(
        responses={
            "goals": probe_output("  compile: Compile source code.\n  export-classpath: Export classpath.\n"),
            "options": probe_output("export-classpath.export_classpath_use_old_naming_style = True\n"),
            "export": probe_output(export_json("1.0.5")),
        }
    )


@pytest.fixture
def unlaunchable() -> ProcessLaunchError:
    return ProcessLaunchError(["./pants"], FileNotFoundError("No such file or directory: './pants'"))


# ---------------------------------------------------------------------------
# Build targets
# ---------------------------------------------------------------------------


@pytest.fixture
def pants_executable(tmp_path: Path) -> Path:
    executable = tmp_path / "repo" / "pants"
    executable.parent.mkdir()
    executable.write_text("#!/bin/sh\n", encoding="utf-8")
    return executable


@pytest.fixture
def build_target(pants_executable: Path) -> StaticBuildTarget:
    return StaticBuildTarget(
        pants_executable=pants_executable,
        target_addresses=frozenset(
            {
                "src/java/org/pantsbuild/foo:lib",
                "src/java/org/pantsbuild/bar:bin",
                ".pants.d/gen/thrift/java/org/pantsbuild:thrift-gen",
            }
        ),
    )


@dataclass
class ListDirtyFiles:
    files: list[DirtyFile] = field(default_factory=list)

    def dirty_files(self) -> list[DirtyFile]:
        return list(self.files)


@pytest.fixture
def clean_holder() -> AddressDirtyFiles:
    return AddressDirtyFiles([])


@pytest.fixture
def dirty_holder() -> AddressDirtyFiles:
    return AddressDirtyFiles(["src/java/org/pantsbuild/foo:lib"])


# ---------------------------------------------------------------------------
# Export-classpath layouts
# ---------------------------------------------------------------------------


@pytest.fixture
def build_root(tmp_path: Path) -> Path:
    root = tmp_path / "buildroot"
    root.mkdir()
    return root


@pytest.fixture
def export_dir(build_root: Path) -> Path:
    directory = build_root / "dist" / "export-classpath"
    directory.mkdir(parents=True)
    return directory


@pytest.fixture
def manifest_jar(export_dir: Path) -> Path:
    manifest = export_dir / "manifest.jar"
    manifest.write_bytes(b"PK\x03\x04")
    return manifest


# ---------------------------------------------------------------------------
# Fake pants executable
# ---------------------------------------------------------------------------

_FAKE_PANTS = textwrap.dedent(
    '''\
    #!{python}
    import json
    import os
    import sys

    args = sys.argv[1:]
    log = os.path.join(os.path.dirname(os.path.abspath(__file__)), "pants-calls.log")
    with open(log, "a") as fh:
        fh.write(json.dumps(args) + "\\n")

    if args[:1] == ["goals"]:
        print("  compile: Compile source code.")
        print("  export-classpath: Export classpath.")
    elif args[:1] == ["options"]:
        print("export-classpath.export_classpath_use_old_naming_style = True")
    elif args[:1] == ["export"]:
        print(json.dumps({{"version": "{export_version}"}}))
    else:
        print("12:00:01 00:00   [compile]")
        sys.stdout.flush()
        print("[warn] src/java/org/pantsbuild/foo/Foo.java:3: [deprecation] old api")
        sys.stdout.flush()
        if {fail}:
            print("[error] src/java/org/pantsbuild/foo/Foo.java:7:5: cannot find symbol")
            sys.stdout.flush()
            sys.stderr.write("FAILURE: compilation failed\\n")
            sys.exit(1)
        dist = os.path.join(os.path.dirname(os.path.abspath(__file__)), "dist", "export-classpath")
        os.makedirs(dist, exist_ok=True)
        open(os.path.join(dist, "manifest.jar"), "wb").close()
        print("SUCCESS")
    '''
)


def write_fake_pants(directory: Path, *, export_version: str = "1.0.5", fail: bool = False) -> Path:
    """Write an executable ``pants`` script that mimics the real CLI."""
    script = directory / "pants"
    script.write_text(
        _FAKE_PANTS.format(python=sys.executable, export_version=export_version, fail=fail),
        encoding="utf-8",
    )
    script.chmod(script.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return script


def read_pants_calls(directory: Path) -> list[list[str]]:
    log = directory / "pants-calls.log"
    if not log.exists():
        return []
    return [json.loads(line) for line in log.read_text(encoding="utf-8").splitlines()]
