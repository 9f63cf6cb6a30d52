"""In-process implementations of the host ports.

Used by the command-line entry point, where there is no IDE: targets and
dirty addresses come from arguments and messages go to the console.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from rich.markup import escape

from .models import CompilerMessage, ProgressMessage, Severity, TargetAddressInfo
from .ports import DirtyFile
from .utils import console

_SEVERITY_STYLES: dict[Severity, str] = {
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.INFO: "default",
}


@dataclass(frozen=True)
class StaticBuildTarget:
    """A build target described entirely by its Pants executable and addresses."""

    pants_executable: Path
    target_addresses: frozenset[str] = field(default_factory=frozenset)
    target_address_infos: frozenset[TargetAddressInfo] = field(default_factory=frozenset)


@dataclass
class AddressDirtyFiles:
    """Dirty-file holder where every dirty address stands for one changed source root."""

    addresses: Iterable[str] = ()

    def dirty_files(self) -> Iterator[DirtyFile]:
        for address in self.addresses:
            yield DirtyFile(path=Path(address.split(":", 1)[0]), root_target_addresses=frozenset({address}))


@dataclass
class ConsoleMessageSink:
    """Prints compiler messages to the console and counts them by severity."""

    counts: dict[Severity, int] = field(default_factory=lambda: {s: 0 for s in Severity})

    def process_message(self, message: CompilerMessage) -> None:
        self.counts[message.severity] += 1
        style = _SEVERITY_STYLES[message.severity]
        console.print(f"[{style}]{escape(message.format())}[/{style}]", highlight=False)

    def progress(self, message: ProgressMessage) -> None:
        console.print(f"[bold cyan]{escape(message.text)}[/bold cyan]")


@dataclass
class StaticModule:
    """Module metadata backed by a plain option dictionary."""

    name: str
    options: dict[str, str] = field(default_factory=dict)

    def option_value(self, key: str) -> Optional[str]:
        return self.options.get(key)
