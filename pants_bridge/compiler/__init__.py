"""Pants Bridge compiler module.

Delegates compilation to Pants and turns its output into compiler messages.

Key classes:
    BuildInvoker          - no-op / incremental / full-rebuild orchestration
    PantsProcessLauncher  - captured and streamed Pants subprocesses
    OutputMarker          - parsed ``[level] path:line:`` prefix
"""

from .capabilities import (
    ExportResult,
    probe_capabilities,
    probe_export_version,
    probe_naming_style_flag,
    supports_export_classpath,
)
from .errors import BuildFailedError, PantsBuildError, ProbeError, ProcessLaunchError
from .invoker import BuildInvoker, assemble_command, filter_gen_targets, has_dirty_targets
from .output import OutputMarker, classify, parse_output_marker
from .process import PantsProcessLauncher

__all__ = [
    # Orchestration
    "BuildInvoker",
    "assemble_command",
    "filter_gen_targets",
    "has_dirty_targets",
    # Output classification
    "OutputMarker",
    "classify",
    "parse_output_marker",
    # Processes and probes
    "PantsProcessLauncher",
    "ExportResult",
    "probe_capabilities",
    "probe_export_version",
    "probe_naming_style_flag",
    "supports_export_classpath",
    # Errors
    "PantsBuildError",
    "ProbeError",
    "ProcessLaunchError",
    "BuildFailedError",
]
