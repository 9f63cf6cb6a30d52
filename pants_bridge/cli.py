"""Command-line entry point for Pants Bridge.

Usage::

    python -m pants_bridge compile --pants ./pants src/java/foo:lib src/java/bar:bin
    python -m pants_bridge compile --pants ./pants --dirty src/java/foo:lib src/java/foo:lib
    python -m pants_bridge classpath --pants ./pants --home /opt/idea --plugins ~/.idea/plugins a.jar b.jar
    python -m pants_bridge published --pants ./pants --infos infos.json
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import Optional

from .classpath.metadata import TARGET_ADDRESS_INFOS_KEY, MetadataError, load_target_address_infos
from .classpath.reconciler import ClasspathReconciler, ManifestNotFoundError
from .compiler.errors import BuildFailedError, PantsBuildError
from .compiler.invoker import BuildInvoker
from .config import BridgeConfig
from .host import AddressDirtyFiles, ConsoleMessageSink, StaticBuildTarget, StaticModule
from .models import Severity
from .ports import HostPaths
from .utils import print_error, print_summary_table


def _plugin_path(value: str) -> tuple[str, str]:
    plugin_id, sep, path = value.partition("=")
    if not sep or not plugin_id or not path:
        raise argparse.ArgumentTypeError(f"expected ID=PATH, got {value!r}")
    return plugin_id, path


def _load_config(args: argparse.Namespace) -> BridgeConfig:
    config = BridgeConfig.load(Path(args.config)) if args.config else BridgeConfig.from_env()
    if args.pants:
        config.pants.executable = Path(args.pants)
    return config


def _compile(args: argparse.Namespace) -> int:
    config = _load_config(args)
    target = StaticBuildTarget(
        pants_executable=config.pants.executable,
        target_addresses=frozenset(args.targets),
    )
    sink = ConsoleMessageSink()
    invoker = BuildInvoker(config)
    try:
        result = asyncio.run(
            invoker.build(
                target,
                AddressDirtyFiles(args.dirty),
                sink,
                force_full=args.full,
                goals=args.goal or None,
            )
        )
    except BuildFailedError as exc:
        print_error(f"Build failed with exit code {exc.exit_code}.")
        return 1
    except PantsBuildError as exc:
        print_error(str(exc))
        return 1

    print_summary_table(
        {
            "Status": result.status,
            "Targets": str(len(result.targets)),
            "Errors": str(sink.counts[Severity.ERROR]),
            "Warnings": str(sink.counts[Severity.WARNING]),
        },
        title="Pants build",
    )
    return 0


def _classpath(args: argparse.Namespace) -> int:
    config = _load_config(args)
    host = HostPaths(
        home_path=args.home,
        plugins_path=args.plugins,
        unit_test_mode=bool(args.plugin),
        plugin_paths=dict(args.plugin or []),
    )
    reconciler = ClasspathReconciler.from_config(config)
    try:
        entries = reconciler.reconcile_classpath(args.entries, host)
    except ManifestNotFoundError as exc:
        print_error(str(exc))
        return 1
    for entry in entries:
        print(entry)
    return 0


def _published(args: argparse.Namespace) -> int:
    config = _load_config(args)
    module = StaticModule(
        name="cli",
        options={TARGET_ADDRESS_INFOS_KEY: Path(args.infos).read_text(encoding="utf-8")},
    )
    reconciler = ClasspathReconciler.from_config(config)
    try:
        entries = reconciler.find_published_classpath(load_target_address_infos(module))
    except MetadataError as exc:
        print_error(str(exc))
        return 1
    for entry in entries:
        print(entry)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pants-bridge",
        description="Compile with Pants and reconcile its exported classpath",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--pants", default=None, help="Path to the Pants executable (default: ./pants)")
    common.add_argument("--config", default=None, help="JSON configuration file saved by BridgeConfig.save")

    commands = parser.add_subparsers(dest="command", required=True)

    compile_cmd = commands.add_parser("compile", parents=[common], help="Compile targets with Pants")
    compile_cmd.add_argument("targets", nargs="*", help="All target addresses of the project")
    compile_cmd.add_argument("--full", action="store_true", help="Force a clean-all rebuild of every target")
    compile_cmd.add_argument(
        "--dirty", action="append", default=[], metavar="ADDR", help="Target address with changed sources"
    )
    compile_cmd.add_argument("--goal", action="append", default=[], help="Goal to run (default: compile)")
    compile_cmd.set_defaults(handler=_compile)

    classpath_cmd = commands.add_parser(
        "classpath", parents=[common], help="Print a run classpath reconciled with the manifest jar"
    )
    classpath_cmd.add_argument("entries", nargs="*", help="Current classpath entries, in order")
    classpath_cmd.add_argument("--home", required=True, help="IDE installation directory")
    classpath_cmd.add_argument("--plugins", required=True, help="IDE plugins directory")
    classpath_cmd.add_argument(
        "--plugin",
        action="append",
        type=_plugin_path,
        metavar="ID=PATH",
        help="Companion plugin path; enables unit-test mode allow-listing",
    )
    classpath_cmd.set_defaults(handler=_classpath)

    published_cmd = commands.add_parser(
        "published", parents=[common], help="Print classpath entries published per target id"
    )
    published_cmd.add_argument("--infos", required=True, help="JSON file with target address infos")
    published_cmd.set_defaults(handler=_published)

    return parser


def main(argv: Optional[list[str]] = None) -> None:
    """CLI entry point for ``python -m pants_bridge``."""
    args = build_parser().parse_args(argv)
    sys.exit(args.handler(args))


if __name__ == "__main__":
    main()
