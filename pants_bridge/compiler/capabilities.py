"""Capability probes run against Pants before a build.

The ``goals`` probe is advisory: if it cannot run, the build proceeds as if
``export-classpath`` were unsupported. The ``options`` and ``export`` probes
gate a command-line flag whose wrong value breaks classpath naming, so any
failure there aborts the build with :class:`ProbeError`.
"""

from __future__ import annotations

from pathlib import Path
from typing import Protocol

from pydantic import BaseModel, ConfigDict, ValidationError

from ..models import TARGET_ID_EXPORT_VERSION, BuildCapabilities, ProcessOutput
from ..utils import print_warning
from ..versions import VersionParseError, compare_versions
from .errors import ProbeError, ProcessLaunchError
from .process import build_root_for, pants_command

EXPORT_CLASSPATH_GOAL = "export-classpath"
NAMING_STYLE_OPTION = "export_classpath_use_old_naming_style"
NAMING_STYLE_FLAG = "--no-export-classpath-use-old-naming-style"
NO_COLORS_FLAG = "--no-colors"


class CommandRunner(Protocol):
    async def run(self, command: list[str], cwd: Path | None = None) -> ProcessOutput:
        ...


class ExportResult(BaseModel):
    """The part of ``./pants export`` output the build cares about."""

    model_config = ConfigDict(extra="ignore")

    version: str


async def _run_probe(runner: CommandRunner, pants_executable: Path, *args: str) -> ProcessOutput:
    command = pants_command(pants_executable, *args)
    return await runner.run(command, cwd=build_root_for(pants_executable))


async def supports_export_classpath(runner: CommandRunner, pants_executable: Path) -> bool:
    """Return ``True`` if ``./pants goals`` lists ``export-classpath``.

    Never raises for probe failures. If Pants cannot be started the goal is
    treated as unsupported; a non-zero exit is only warned about and the
    goal list it printed is still used.
    """
    try:
        output = await _run_probe(runner, pants_executable, "goals")
    except ProcessLaunchError as exc:
        print_warning(f"Could not list Pants goals, assuming no export-classpath: {exc}")
        return False

    if not output.success:
        print_warning(f"./pants goals exited with {output.exit_code}; reading its goal list anyway.")
    return EXPORT_CLASSPATH_GOAL in output.stdout


async def probe_naming_style_flag(runner: CommandRunner, pants_executable: Path) -> bool:
    """Return ``True`` if Pants knows the export-classpath naming-style option.

    Raises:
        ProbeError: If ``./pants options`` cannot be run or fails.
    """
    try:
        output = await _run_probe(runner, pants_executable, "options", NO_COLORS_FLAG)
    except ProcessLaunchError as exc:
        raise ProbeError("options", str(exc)) from exc

    if not output.success:
        raise ProbeError("options", f"exit code {output.exit_code}", stderr=output.stderr)
    return NAMING_STYLE_OPTION in output.stdout


async def probe_export_version(
    runner: CommandRunner,
    pants_executable: Path,
    min_target_id_version: str = TARGET_ID_EXPORT_VERSION,
) -> str:
    """Return the schema ``version`` reported by ``./pants export``.

    The version is checked against *min_target_id_version* here so that a
    malformed version fails the probe instead of a later comparison.

    Raises:
        ProbeError: If the export cannot be run, fails, is not JSON, lacks a
            ``version`` field or carries an unparseable version.
    """
    try:
        output = await _run_probe(runner, pants_executable, "export", NO_COLORS_FLAG)
    except ProcessLaunchError as exc:
        raise ProbeError("export", str(exc)) from exc

    if not output.success:
        raise ProbeError("export", f"exit code {output.exit_code}", stderr=output.stderr)

    try:
        result = ExportResult.model_validate_json(output.stdout)
    except ValidationError as exc:
        raise ProbeError("export", f"unexpected output: {exc.errors()[0]['msg']}") from exc

    try:
        compare_versions(result.version, min_target_id_version)
    except VersionParseError as exc:
        raise ProbeError("export", str(exc)) from exc
    return result.version


async def probe_capabilities(
    runner: CommandRunner,
    pants_executable: Path,
    min_target_id_version: str = TARGET_ID_EXPORT_VERSION,
) -> BuildCapabilities:
    """Run all three probes in order and collect the results."""
    export_classpath = await supports_export_classpath(runner, pants_executable)
    naming_style = await probe_naming_style_flag(runner, pants_executable)
    version = await probe_export_version(runner, pants_executable, min_target_id_version)
    return BuildCapabilities(
        supports_export_classpath=export_classpath,
        supports_naming_style_flag=naming_style,
        export_schema_version=version,
        min_target_id_version=min_target_id_version,
    )
