"""Data models shared by the build and classpath layers.

Pydantic v2 models for the values that cross component boundaries:
compiler messages sent to the host, probe results, captured process output,
build results and the target-address metadata exported by Pants.
"""

from __future__ import annotations

from enum import Enum
from typing import Literal, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field

from .versions import version_at_least

PANTS = "pants"

# Minimum ``export`` schema version that names published classpath entries
# by target id.
TARGET_ID_EXPORT_VERSION = "1.0.5"

GEN_TARGET_MARKER = ".pants.d/gen"


def is_gen_target(address: str) -> bool:
    """Default predicate: ``True`` for synthetic, code-generated target addresses."""
    return GEN_TARGET_MARKER in address


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class StreamKind(str, Enum):
    STDOUT = "stdout"
    STDERR = "stderr"


class BuildState(str, Enum):
    """Lifecycle of a single build request."""

    IDLE = "idle"
    CHECKING_DIRTY = "checking_dirty"
    NOOP = "noop"
    INVOKING = "invoking"
    STREAMING = "streaming"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


# ---------------------------------------------------------------------------
# Messages
# ---------------------------------------------------------------------------


class CompilerMessage(BaseModel):
    """A single leveled, optionally located message for the host message sink."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    text: str
    file_path: Optional[str] = None
    line: Optional[int] = None
    source: str = PANTS

    def format(self) -> str:
        """Render as ``path:line: text`` (location omitted when unknown)."""
        if self.file_path and self.line is not None:
            return f"{self.file_path}:{self.line}: {self.text}"
        if self.file_path:
            return f"{self.file_path}: {self.text}"
        return self.text


class ProgressMessage(BaseModel):
    """Progress announcement (status-bar text in the host)."""

    model_config = ConfigDict(frozen=True)

    text: str


# ---------------------------------------------------------------------------
# Pants metadata
# ---------------------------------------------------------------------------


class TargetAddressInfo(BaseModel):
    """A published artifact group and the Pants targets that produced it.

    Decoded from module metadata written at import time; accepts both the
    snake_case field names and the camelCase ones used by the exporter.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, extra="ignore")

    id: str
    target_addresses: frozenset[str] = Field(
        default_factory=frozenset,
        validation_alias=AliasChoices("target_addresses", "targetAddresses"),
    )


class BuildCapabilities(BaseModel):
    """Pants features detected by the capability probes for one build."""

    model_config = ConfigDict(frozen=True)

    supports_export_classpath: bool = False
    supports_naming_style_flag: bool = False
    export_schema_version: str = "0"
    min_target_id_version: str = TARGET_ID_EXPORT_VERSION

    @computed_field  # type: ignore[misc]
    @property
    def uses_target_id_naming(self) -> bool:
        """True when published classpath entries can be named by target id."""
        return self.supports_naming_style_flag and (
            version_at_least(self.export_schema_version, self.min_target_id_version)
        )


# ---------------------------------------------------------------------------
# Process / build results
# ---------------------------------------------------------------------------


class ProcessOutput(BaseModel):
    """Captured result of one Pants subprocess."""

    command: list[str] = Field(default_factory=list)
    exit_code: int = -1
    stdout: str = ""
    stderr: str = ""

    @computed_field  # type: ignore[misc]
    @property
    def success(self) -> bool:
        return self.exit_code == 0


class BuildResult(BaseModel):
    """Outcome of a build request that did not fail."""

    status: Literal["noop", "succeeded"]
    command: list[str] = Field(default_factory=list)
    targets: list[str] = Field(default_factory=list)
    output: Optional[ProcessOutput] = None
    capabilities: Optional[BuildCapabilities] = None
