"""Pants subprocess management.

Two ways of running Pants are needed: short capability probes whose output
is captured whole, and the main build whose stdout/stderr lines are pushed
to a callback as they arrive. Both return a :class:`ProcessOutput`.
"""

from __future__ import annotations

import asyncio
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Optional

from ..models import ProcessOutput, StreamKind
from ..utils import print_command, print_warning
from .errors import ProcessLaunchError

LineCallback = Callable[[str, StreamKind], None]

# asyncio's default 64 KiB line limit is too small for some compiler dumps.
_STREAM_LIMIT = 4 * 1024 * 1024


def pants_command(pants_executable: str | Path, *args: str) -> list[str]:
    """Build an argument vector for the given Pants executable."""
    return [str(pants_executable), *args]


def build_root_for(pants_executable: str | Path) -> Path:
    """Pants commands run from the directory holding the executable."""
    return Path(pants_executable).resolve().parent


def _decode(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


async def _read_line(reader: asyncio.StreamReader) -> bytes:
    """Return the next line, or the buffered part of one longer than the limit.

    An over-long line arrives as several chunks; ``b""`` means end of stream.
    """
    try:
        return await reader.readuntil(b"\n")
    except asyncio.IncompleteReadError as exc:
        return exc.partial
    except asyncio.LimitOverrunError as exc:
        return await reader.readexactly(exc.consumed)


class PantsProcessLauncher:
    """Spawns Pants processes with ``asyncio`` subprocesses.

    Parameters
    ----------
    probe_timeout:
        Seconds allowed for a captured (probe) run before it is killed.
    build_timeout:
        Seconds allowed for a streamed (build) run, ``None`` for no limit.
    """

    def __init__(
        self,
        *,
        probe_timeout: float = 120.0,
        build_timeout: Optional[float] = None,
    ) -> None:
        self.probe_timeout = probe_timeout
        self.build_timeout = build_timeout

    async def _spawn(self, command: Sequence[str], cwd: Optional[Path]) -> asyncio.subprocess.Process:
        print_command(command)
        try:
            return await asyncio.create_subprocess_exec(
                *command,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                cwd=str(cwd) if cwd else None,
                limit=_STREAM_LIMIT,
            )
        except OSError as exc:
            raise ProcessLaunchError(command, exc) from exc

    async def run(self, command: Sequence[str], cwd: Optional[Path] = None) -> ProcessOutput:
        """Run *command* to completion and capture its output.

        Raises:
            ProcessLaunchError: If the process cannot be created.
        """
        process = await self._spawn(command, cwd)
        try:
            stdout_bytes, stderr_bytes = await asyncio.wait_for(
                process.communicate(), timeout=self.probe_timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            return ProcessOutput(
                command=list(command),
                exit_code=-1,
                stderr=f"Command timed out after {self.probe_timeout}s",
            )

        return ProcessOutput(
            command=list(command),
            exit_code=process.returncode if process.returncode is not None else -1,
            stdout=_decode(stdout_bytes or b""),
            stderr=_decode(stderr_bytes or b""),
        )

    async def stream(
        self,
        command: Sequence[str],
        on_line: LineCallback,
        cwd: Optional[Path] = None,
    ) -> ProcessOutput:
        """Run *command*, calling *on_line* for every output line as it arrives.

        Lines keep their order within each stream; the interleaving of stdout
        and stderr is whatever the pipes deliver. If the awaiting task is
        cancelled the process is killed, the output it already wrote is still
        passed to *on_line*, and the cancellation is re-raised.

        Raises:
            ProcessLaunchError: If the process cannot be created.
        """
        process = await self._spawn(command, cwd)
        assert process.stdout is not None and process.stderr is not None  # guaranteed by PIPE

        captured: dict[StreamKind, list[str]] = {StreamKind.STDOUT: [], StreamKind.STDERR: []}

        async def pump(reader: asyncio.StreamReader, kind: StreamKind) -> None:
            while True:
                line_bytes = await _read_line(reader)
                if not line_bytes:
                    break
                line = _decode(line_bytes)
                captured[kind].append(line)
                on_line(line.rstrip("\r\n"), kind)

        readers = [
            asyncio.create_task(pump(process.stdout, StreamKind.STDOUT)),
            asyncio.create_task(pump(process.stderr, StreamKind.STDERR)),
        ]
        timed_out = False
        try:
            await asyncio.wait_for(asyncio.shield(asyncio.gather(*readers)), timeout=self.build_timeout)
            await process.wait()
        except asyncio.TimeoutError:
            timed_out = True
            print_warning(f"Pants did not finish within {self.build_timeout}s, killing it.")
            await self._kill_and_drain(process, readers)
        except BaseException:
            # Cancellation or a failing callback: stop Pants but keep what it wrote.
            await self._kill_and_drain(process, readers)
            raise

        stderr = "".join(captured[StreamKind.STDERR])
        if timed_out:
            stderr += f"Command timed out after {self.build_timeout}s\n"
        return ProcessOutput(
            command=list(command),
            exit_code=-1 if timed_out or process.returncode is None else process.returncode,
            stdout="".join(captured[StreamKind.STDOUT]),
            stderr=stderr,
        )

    @staticmethod
    async def _kill_and_drain(
        process: asyncio.subprocess.Process, readers: list[asyncio.Task[None]]
    ) -> None:
        if process.returncode is None:
            process.kill()
        await asyncio.gather(*readers, return_exceptions=True)
        await process.wait()
