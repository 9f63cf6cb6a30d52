"""Classpath reconciliation for runs built by Pants.

When Pants built the code, the host's own dependency resolution is wrong
for running it: Pants already exported the complete runtime classpath as a
manifest jar under ``dist/export-classpath``. Reconciliation keeps only the
host's own jars (IDE and plugin installations) and appends the manifest.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import Optional

from ..config import BridgeConfig, ClasspathConfig
from ..models import TargetAddressInfo
from ..ports import HostPaths, ModuleMetadata, RunConfiguration
from ..utils import print_info
from .metadata import load_target_address_infos

MANIFEST_NOT_FOUND_MESSAGE = (
    "manifest.jar is not found. It should be generated by `./pants export-classpath ...`"
)


class ManifestNotFoundError(Exception):
    """Raised when the exported manifest jar is missing at run time."""

    def __init__(self, message: str = MANIFEST_NOT_FOUND_MESSAGE) -> None:
        super().__init__(message)


def filter_classpath(classpath: Iterable[str], allowed: Iterable[str]) -> list[str]:
    """Keep the entries containing at least one allowed path, in order."""
    allowed = list(allowed)
    return [entry for entry in classpath if any(path in entry for path in allowed)]


def reconcile(
    classpath: Iterable[str],
    allowed: Iterable[str],
    manifest_jar: Optional[str | Path],
) -> list[str]:
    """Filter *classpath* to *allowed* and append *manifest_jar* as the last entry.

    Raises:
        ManifestNotFoundError: If *manifest_jar* is ``None``.
    """
    if manifest_jar is None:
        raise ManifestNotFoundError()
    kept = filter_classpath(classpath, allowed)
    kept.append(str(manifest_jar))
    return kept


def calculate_paths_allowed(
    host: HostPaths, companion_plugins: Sequence[str] = ("com.intellij", "JUnit")
) -> set[str]:
    """Paths whose jars survive classpath filtering.

    Always the host home and plugins directories. In unit-test mode the
    companion plugins live in a dependency cache instead, e.g.
    ``~/.ivy2/pants/com.intellij.sdk.community/idea_rt/jars/idea_rt-latest.jar``,
    so the directory three levels above each plugin path is allowed too.
    """
    allowed = {host.home_path, host.plugins_path}
    if host.unit_test_mode:
        for plugin_id in companion_plugins:
            plugin_path = host.plugin_paths.get(plugin_id)
            if not plugin_path:
                continue
            parents = Path(plugin_path).absolute().parents
            if len(parents) > 2:
                allowed.add(str(parents[2]))
    return allowed


class ClasspathReconciler:
    """Resolves Pants-published classpath artifacts under a build root.

    Parameters
    ----------
    build_root:
        The Pants build root (directory holding the ``pants`` executable).
    config:
        Layout of the ``dist/export-classpath`` directory.
    """

    def __init__(self, build_root: str | Path, config: Optional[ClasspathConfig] = None) -> None:
        self.build_root = Path(build_root)
        self.config = config or ClasspathConfig()

    @classmethod
    def from_config(cls, config: BridgeConfig) -> "ClasspathReconciler":
        return cls(config.build_root, config.classpath)

    @property
    def export_classpath_dir(self) -> Path:
        return self.build_root / self.config.dist_dir / self.config.export_classpath_dir

    def find_manifest_jar(self) -> Optional[Path]:
        """Return the exported manifest jar, or ``None`` if it was never generated."""
        manifest = self.export_classpath_dir / self.config.manifest_jar
        return manifest if manifest.is_file() else None

    # -- Published classpath -------------------------------------------------

    def find_published_classpath(self, target_infos: Iterable[TargetAddressInfo]) -> list[str]:
        """Resolve the classpath entries published for each target id.

        Target infos are visited in id order. Returns an empty list when the
        export-classpath directory does not exist.
        """
        if not self.export_classpath_dir.is_dir():
            return []
        result: list[str] = []
        for info in sorted(target_infos, key=lambda i: i.id):
            result.extend(self._find_by_target_id(info))
        return result

    def find_published_classpath_for_module(self, module: ModuleMetadata) -> list[str]:
        """Same as :meth:`find_published_classpath` for the infos recorded on *module*."""
        return self.find_published_classpath(load_target_address_infos(module))

    def _find_by_target_id(self, info: TargetAddressInfo) -> list[str]:
        # Pants publishes ``{id}-0.jar``, ``{id}-1.jar``, ... and at most one
        # final ``{id}-{n}`` directory.
        paths: list[str] = []
        count = 0
        while True:
            folder = self.export_classpath_dir / f"{info.id}-{count}"
            jar = self.export_classpath_dir / f"{info.id}-{count}.jar"
            if folder.is_dir():
                paths.append(str(folder))
                break
            if jar.exists():
                paths.append(str(jar))
                count += 1
                continue
            break
        return paths

    # -- Run configurations --------------------------------------------------

    def reconcile_classpath(self, classpath: Iterable[str], host: HostPaths) -> list[str]:
        """Filter *classpath* to the host allow-list and append the manifest jar.

        Raises:
            ManifestNotFoundError: If ``export-classpath`` has not been run.
        """
        allowed = calculate_paths_allowed(host, self.config.companion_plugins)
        return reconcile(classpath, allowed, self.find_manifest_jar())

    def update_run_classpath(self, run: RunConfiguration, host: HostPaths) -> bool:
        """Rewrite the classpath of *run* in place if Pants built it.

        Returns:
            ``True`` if the classpath was rewritten, ``False`` if the run was
            built by the host itself or is not backed by a Pants module.

        Raises:
            ManifestNotFoundError: If ``export-classpath`` has not been run.
        """
        if not run.built_by_pants():
            return False
        if run.pants_module() is None:
            return False

        reconciled = self.reconcile_classpath(run.classpath, host)
        dropped = len(run.classpath) - (len(reconciled) - 1)
        run.classpath[:] = reconciled
        print_info(f"Using Pants manifest classpath ({dropped} host entries dropped).")
        return True
