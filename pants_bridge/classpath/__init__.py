"""Pants Bridge classpath module.

Rewrites the classpath of runs built by Pants and resolves the classpath
entries Pants published under ``dist/export-classpath``.

Key classes:
    ClasspathReconciler   - manifest lookup, published-classpath scan, run rewrite
    ManifestNotFoundError - ``export-classpath`` has not produced a manifest jar
"""

from .metadata import (
    LIBRARY_EXCLUDES_KEY,
    TARGET_ADDRESS_INFOS_KEY,
    TARGET_ADDRESSES_KEY,
    MetadataError,
    find_library_excludes,
    hydrate_target_addresses,
    load_target_address_infos,
)
from .reconciler import (
    ClasspathReconciler,
    ManifestNotFoundError,
    calculate_paths_allowed,
    filter_classpath,
    reconcile,
)

__all__ = [
    # Reconciliation
    "ClasspathReconciler",
    "ManifestNotFoundError",
    "calculate_paths_allowed",
    "filter_classpath",
    "reconcile",
    # Module metadata
    "MetadataError",
    "TARGET_ADDRESS_INFOS_KEY",
    "TARGET_ADDRESSES_KEY",
    "LIBRARY_EXCLUDES_KEY",
    "find_library_excludes",
    "hydrate_target_addresses",
    "load_target_address_infos",
]
