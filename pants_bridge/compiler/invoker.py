"""Compile Pants targets on behalf of the host.

:class:`BuildInvoker` decides between a no-op, an incremental build of the
targets owning dirty files and a forced full rebuild, probes Pants for the
flags it supports, runs the build and streams every output line, classified,
to the host's message sink.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable, Sequence
from typing import Optional, Protocol

from ..config import BridgeConfig
from ..models import (
    BuildCapabilities,
    BuildResult,
    BuildState,
    CompilerMessage,
    ProcessOutput,
    ProgressMessage,
    Severity,
    StreamKind,
    is_gen_target,
)
from ..ports import BuildTarget, DirtyFilesHolder, MessageSink
from ..utils import format_duration, print_error, print_success
from .capabilities import (
    EXPORT_CLASSPATH_GOAL,
    NAMING_STYLE_FLAG,
    NO_COLORS_FLAG,
    CommandRunner,
    probe_export_version,
    probe_naming_style_flag,
    supports_export_classpath,
)
from .errors import BuildFailedError
from .output import classify
from .process import LineCallback, PantsProcessLauncher, build_root_for

NO_CHANGES_MESSAGE = "No changes to compile."
CLEAN_ALL_GOAL = "clean-all"
DEFAULT_GOALS: tuple[str, ...] = ("compile",)


class ProcessLauncher(CommandRunner, Protocol):
    async def stream(self, command: list[str], on_line: LineCallback, cwd=None) -> ProcessOutput:
        ...


def filter_gen_targets(
    addresses: Iterable[str], is_generated: Callable[[str], bool] = is_gen_target
) -> list[str]:
    """Drop generated target addresses; the rest come back de-duplicated and sorted."""
    return sorted({address for address in addresses if not is_generated(address)})


def has_dirty_targets(
    holder: DirtyFilesHolder, is_generated: Callable[[str], bool] = is_gen_target
) -> bool:
    """True if some dirty file lives under a source root owned by no generated target."""
    for dirty in holder.dirty_files():
        if not any(is_generated(address) for address in dirty.root_target_addresses):
            return True
    return False


def find_dirty_target_addresses(holder: DirtyFilesHolder) -> set[str]:
    """All target addresses owning the source roots of dirty files."""
    addresses: set[str] = set()
    for dirty in holder.dirty_files():
        addresses.update(dirty.root_target_addresses)
    return addresses


def recompile_message(targets: Sequence[str], force_full: bool) -> str:
    """Progress text announcing what is about to be compiled."""
    if force_full:
        return f"Recompiling all {len(targets)} targets"
    if len(targets) == 1:
        return f"Recompiling {targets[0]}"
    return f"Recompiling {len(targets)} targets"


def assemble_command(
    pants_executable: str,
    goals: Sequence[str],
    targets: Sequence[str],
    capabilities: BuildCapabilities,
    force_full: bool = False,
) -> list[str]:
    """Build the main Pants command line.

    ``[pants, --no-colors, (naming flag), (clean-all), goals..., targets...]``
    """
    command = [str(pants_executable), NO_COLORS_FLAG]
    if capabilities.uses_target_id_naming:
        command.append(NAMING_STYLE_FLAG)
    if force_full:
        command.append(CLEAN_ALL_GOAL)
    command.extend(goals)
    command.extend(targets)
    return command


class BuildInvoker:
    """Runs one Pants build per :meth:`build` call.

    Parameters
    ----------
    config:
        Timeouts and version thresholds. Defaults to ``BridgeConfig()``.
    launcher:
        Runs Pants processes. Defaults to a :class:`PantsProcessLauncher`
        built from *config*.
    is_generated:
        Predicate marking synthetic target addresses, which are never passed
        to Pants directly.
    """

    def __init__(
        self,
        config: Optional[BridgeConfig] = None,
        *,
        launcher: Optional[ProcessLauncher] = None,
        is_generated: Callable[[str], bool] = is_gen_target,
    ) -> None:
        self.config = config or BridgeConfig()
        self.launcher = launcher or PantsProcessLauncher(
            probe_timeout=self.config.pants.probe_timeout,
            build_timeout=self.config.pants.build_timeout,
        )
        self.is_generated = is_generated
        self.state = BuildState.IDLE

    async def build(
        self,
        target: BuildTarget,
        holder: DirtyFilesHolder,
        sink: MessageSink,
        *,
        force_full: bool = False,
        goals: Optional[Sequence[str]] = None,
    ) -> BuildResult:
        """Compile *target* with Pants.

        Returns:
            ``BuildResult(status="noop")`` when nothing is dirty and no full
            rebuild was requested, ``status="succeeded"`` otherwise.

        Raises:
            ProbeError: A required capability probe failed.
            ProcessLaunchError: Pants could not be started.
            BuildFailedError: Pants exited unsuccessfully.
        """
        self.state = BuildState.CHECKING_DIRTY
        if not force_full and not has_dirty_targets(holder, self.is_generated):
            sink.process_message(CompilerMessage(severity=Severity.INFO, text=NO_CHANGES_MESSAGE))
            self.state = BuildState.NOOP
            return BuildResult(status="noop")

        self.state = BuildState.INVOKING
        try:
            return await self._invoke(target, holder, sink, force_full, goals)
        except BaseException:
            self.state = BuildState.FAILED
            raise

    async def _invoke(
        self,
        target: BuildTarget,
        holder: DirtyFilesHolder,
        sink: MessageSink,
        force_full: bool,
        goals: Optional[Sequence[str]],
    ) -> BuildResult:
        pants_executable = target.pants_executable
        requested_goals = list(goals) if goals else list(DEFAULT_GOALS)

        export_classpath = await supports_export_classpath(self.launcher, pants_executable)
        if export_classpath and EXPORT_CLASSPATH_GOAL not in requested_goals:
            requested_goals.insert(0, EXPORT_CLASSPATH_GOAL)

        if force_full:
            targets = filter_gen_targets(target.target_addresses, self.is_generated)
        else:
            targets = filter_gen_targets(find_dirty_target_addresses(holder), self.is_generated)

        message = recompile_message(targets, force_full)
        sink.process_message(CompilerMessage(severity=Severity.INFO, text=message))
        sink.progress(ProgressMessage(text=message))

        min_version = self.config.pants.min_target_id_export_version
        naming_style = await probe_naming_style_flag(self.launcher, pants_executable)
        export_version = await probe_export_version(self.launcher, pants_executable, min_version)
        capabilities = BuildCapabilities(
            supports_export_classpath=export_classpath,
            supports_naming_style_flag=naming_style,
            export_schema_version=export_version,
            min_target_id_version=min_version,
        )

        command = assemble_command(
            str(pants_executable), requested_goals, targets, capabilities, force_full
        )

        def forward(line: str, stream: StreamKind) -> None:
            sink.process_message(classify(line, stream))

        self.state = BuildState.STREAMING
        start = time.monotonic()
        output = await self.launcher.stream(command, forward, cwd=build_root_for(pants_executable))
        elapsed = format_duration(time.monotonic() - start)

        if not output.success:
            self.state = BuildState.FAILED
            print_error(f"Pants build failed (exit {output.exit_code}) after {elapsed}.")
            raise BuildFailedError(output.stderr, output.exit_code, command)

        self.state = BuildState.SUCCEEDED
        print_success(f"Pants build succeeded in {elapsed}.")
        return BuildResult(
            status="succeeded",
            command=command,
            targets=targets,
            output=output,
            capabilities=capabilities,
        )
