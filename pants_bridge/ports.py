"""Ports for the host environment collaborators.

The build and classpath layers never touch IDE types directly. Everything
they need from the host is described here as a ``Protocol``; the host
adapts its own objects, tests use small fakes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING, Optional, Protocol, runtime_checkable

if TYPE_CHECKING:
    from collections.abc import Iterable, Mapping

    from .models import CompilerMessage, ProgressMessage, TargetAddressInfo


@dataclass(frozen=True)
class DirtyFile:
    """A changed source file and the target addresses owning its source root."""

    path: Path
    root_target_addresses: frozenset[str] = field(default_factory=frozenset)


@runtime_checkable
class MessageSink(Protocol):
    """Receives compiler messages and progress text, in arrival order."""

    def process_message(self, message: CompilerMessage) -> None:
        ...

    def progress(self, message: ProgressMessage) -> None:
        ...


@runtime_checkable
class DirtyFilesHolder(Protocol):
    """Dirty-file tracking for one build target."""

    def dirty_files(self) -> Iterable[DirtyFile]:
        ...


@runtime_checkable
class BuildTarget(Protocol):
    """The Pants-backed build target being compiled."""

    @property
    def pants_executable(self) -> Path:
        ...

    @property
    def target_addresses(self) -> frozenset[str]:
        ...

    @property
    def target_address_infos(self) -> frozenset[TargetAddressInfo]:
        ...


@runtime_checkable
class ModuleMetadata(Protocol):
    """Key/value option store attached to an imported module."""

    @property
    def name(self) -> str:
        ...

    def option_value(self, key: str) -> Optional[str]:
        ...


@runtime_checkable
class RunConfiguration(Protocol):
    """The slice of a host run configuration the classpath layer rewrites."""

    classpath: list[str]

    def built_by_pants(self) -> bool:
        ...

    def pants_module(self) -> Optional[ModuleMetadata]:
        ...


@dataclass(frozen=True)
class HostPaths:
    """Installation paths of the host used to build the classpath allow-list."""

    home_path: str
    plugins_path: str
    unit_test_mode: bool = False
    plugin_paths: Mapping[str, str] = field(default_factory=dict)


__all__ = [
    "BuildTarget",
    "DirtyFile",
    "DirtyFilesHolder",
    "HostPaths",
    "MessageSink",
    "ModuleMetadata",
    "RunConfiguration",
]
