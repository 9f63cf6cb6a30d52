"""Pants Bridge configuration.

Typed configuration for the build and classpath layers. All settings use
Pydantic v2 models so they can be validated at construction time and
serialised to/from JSON or environment variables.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, Field

from .models import TARGET_ID_EXPORT_VERSION


class PantsConfig(BaseModel):
    """How to reach and drive the Pants executable."""

    executable: Path = Field(default=Path("./pants"))
    probe_timeout: float = Field(
        default=120.0, gt=0, description="Timeout for goals/options/export probes in seconds"
    )
    build_timeout: Optional[float] = Field(
        default=None, gt=0, description="Kill the main build after this many seconds (None = never)"
    )
    min_target_id_export_version: str = Field(
        default=TARGET_ID_EXPORT_VERSION,
        description="Export schema version from which classpath entries are named by target id",
    )


class ClasspathConfig(BaseModel):
    """Layout of the classpath artifacts published by ``export-classpath``."""

    dist_dir: str = Field(default="dist")
    export_classpath_dir: str = Field(default="export-classpath")
    manifest_jar: str = Field(default="manifest.jar")
    companion_plugins: list[str] = Field(
        default_factory=lambda: ["com.intellij", "JUnit"],
        description="Plugins whose install roots are allowed on the classpath in unit-test mode",
    )


class BridgeConfig(BaseModel):
    """Global Pants Bridge configuration.

    Instances are usually created once by the host integration or the CLI
    and handed to :class:`~pants_bridge.compiler.invoker.BuildInvoker` and
    :class:`~pants_bridge.classpath.reconciler.ClasspathReconciler`.
    """

    pants: PantsConfig = Field(default_factory=PantsConfig)
    classpath: ClasspathConfig = Field(default_factory=ClasspathConfig)

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def build_root(self) -> Path:
        """Directory holding the Pants executable; every Pants command runs here."""
        return self.pants.executable.resolve().parent

    @property
    def export_classpath_path(self) -> Path:
        """``<build_root>/dist/export-classpath``."""
        return self.build_root / self.classpath.dist_dir / self.classpath.export_classpath_dir

    @property
    def manifest_jar_path(self) -> Path:
        """Path where ``export-classpath`` writes the manifest jar."""
        return self.export_classpath_path / self.classpath.manifest_jar

    # ------------------------------------------------------------------
    # Serialisation helpers
    # ------------------------------------------------------------------

    def save(self, path: Path) -> Path:
        """Persist the configuration to a JSON file and return the path written."""
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(self.model_dump_json(indent=2), encoding="utf-8")
        return path

    @classmethod
    def load(cls, path: Path) -> "BridgeConfig":
        """Load a previously-saved configuration from JSON."""
        raw = Path(path).read_text(encoding="utf-8")
        return cls.model_validate_json(raw)

    @classmethod
    def from_env(cls) -> "BridgeConfig":
        """Build a ``BridgeConfig`` from environment variables.

        Recognised variables (all optional):
            PANTS_BRIDGE_EXECUTABLE, PANTS_BRIDGE_PROBE_TIMEOUT,
            PANTS_BRIDGE_BUILD_TIMEOUT, PANTS_BRIDGE_DIST_DIR.
        """
        pants_kwargs: dict[str, Any] = {}
        if os.environ.get("PANTS_BRIDGE_EXECUTABLE"):
            pants_kwargs["executable"] = Path(os.environ["PANTS_BRIDGE_EXECUTABLE"])
        if os.environ.get("PANTS_BRIDGE_PROBE_TIMEOUT"):
            pants_kwargs["probe_timeout"] = float(os.environ["PANTS_BRIDGE_PROBE_TIMEOUT"])
        if os.environ.get("PANTS_BRIDGE_BUILD_TIMEOUT"):
            pants_kwargs["build_timeout"] = float(os.environ["PANTS_BRIDGE_BUILD_TIMEOUT"])

        classpath_kwargs: dict[str, Any] = {}
        if os.environ.get("PANTS_BRIDGE_DIST_DIR"):
            classpath_kwargs["dist_dir"] = os.environ["PANTS_BRIDGE_DIST_DIR"]

        return cls(
            pants=PantsConfig(**pants_kwargs),
            classpath=ClasspathConfig(**classpath_kwargs),
        )
