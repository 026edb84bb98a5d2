#!/usr/bin/env python3
"""
main.py – jvc, the Java version manager
========================================
Entry point: list, install, remove, alias and default-select JDK builds
from the configured provider.
"""

from __future__ import annotations

import argparse
import logging
import sys
from contextlib import contextmanager
from typing import Callable, Dict, Iterator, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeRemainingColumn,
    TransferSpeedColumn,
)
from rich.table import Table

from alias_manager import AliasState
from java_manager import JavaManager, Result
from java_providers import Provider, VersionRequirements
from java_versions import parse_version_number
from jvc_config import JvcConfig, LogLevel
from jvc_errors import JvcError

logger = logging.getLogger("jvc")

console = Console()
err_console = Console(stderr=True)


# ──────────────────────────────────────────────
#  Logging
# ──────────────────────────────────────────────

def setup_logging(config: JvcConfig) -> None:
    """Log to stderr and to <root>/logs/jvc.log at the configured level."""
    handlers: List[logging.Handler] = []

    stream = logging.StreamHandler(sys.stderr)
    stream.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    handlers.append(stream)

    try:
        config.log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(config.log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        handlers.append(file_handler)
    except OSError as exc:
        err_console.print(f"[yellow]Cannot open log file {config.log_file}: {exc}[/]")

    logging.basicConfig(level=config.log_level.logging_level, handlers=handlers, force=True)
    if config.log_level is LogLevel.SILENT:
        logging.disable(logging.CRITICAL)


# ──────────────────────────────────────────────
#  CLI
# ──────────────────────────────────────────────

def _add_requirement_args(p: argparse.ArgumentParser) -> None:
    g = p.add_argument_group("version requirements")
    g.add_argument("--arch", help="Architecture (adoptopenjdk: x64, aarch64, ...; azul: x86, arm, ...)")
    g.add_argument("--image-type", help="Image type: jdk, jre, ...")
    g.add_argument("--jvm-impl", help="JVM implementation: hotspot, openj9")
    g.add_argument("--heap-size", help="Heap size: normal, large")
    g.add_argument("--release-type", help="Release type: ga, ea")
    g.add_argument("--vendor", help="Vendor: adoptopenjdk, openjdk")
    g.add_argument("--project", help="Project: jdk, valhalla, ...")
    g.add_argument("--os", help="Operating system: linux, windows, mac/macos, ...")


def requirements_from_args(args: argparse.Namespace) -> VersionRequirements:
    return VersionRequirements(
        arch=getattr(args, "arch", None),
        image_type=getattr(args, "image_type", None),
        jvm_impl=getattr(args, "jvm_impl", None),
        heap_size=getattr(args, "heap_size", None),
        release_type=getattr(args, "release_type", None),
        vendor=getattr(args, "vendor", None),
        project=getattr(args, "project", None),
        os=getattr(args, "os", None),
    )


def _version_number(text: str) -> int:
    number = parse_version_number(text)
    if number is None:
        raise argparse.ArgumentTypeError(f"{text!r} is not a Java feature version")
    return number


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="jvc",
        description="☕  jvc – manage Java versions for Windows, Linux and macOS",
    )
    p.add_argument(
        "--jvc-dir", default=None,
        help="Root directory for versions, aliases and config (env JVC_DIR, default ~/.jvc)",
    )
    p.add_argument(
        "-p", "--provider", default=None, choices=[pr.code for pr in Provider],
        help="Provider used to obtain Java versions (env JVC_PROVIDER, default adoptopenjdk)",
    )
    p.add_argument(
        "--log-level", default=None,
        help="debug, info, error or silent (env JVC_LOGLEVEL, default info)",
    )

    sub = p.add_subparsers(dest="command", metavar="COMMAND")
    sub.required = True

    ls = sub.add_parser("list", aliases=["ls"], help="List installed or available feature versions")
    ls.add_argument("--remote", "-r", action="store_true", help="List versions offered by the provider")
    _add_requirement_args(ls)
    ls.set_defaults(handler=cmd_list)

    inst = sub.add_parser("install", aliases=["i"], help="Install a Java feature version")
    inst.add_argument("version", type=_version_number, help="Feature version to install, e.g. 17")
    _add_requirement_args(inst)
    inst.set_defaults(handler=cmd_install)

    rm = sub.add_parser("remove", aliases=["rm"], help="Remove an installed Java feature version")
    rm.add_argument("version", type=_version_number)
    rm.set_defaults(handler=cmd_remove)

    al = sub.add_parser("alias", help="Set an alias for a Java version")
    al.add_argument("to_version", help="Installed version number, or an existing alias")
    al.add_argument("name", help="Alias name (must not be a version number)")
    al.set_defaults(handler=cmd_alias)

    df = sub.add_parser("default", help="Set the default Java version")
    df.add_argument("to_version", help="Installed version number, or an existing alias")
    df.set_defaults(handler=cmd_default)

    als = sub.add_parser("aliases", help="List aliases and flag broken ones")
    als.set_defaults(handler=cmd_aliases)

    return p


# ──────────────────────────────────────────────
#  Progress
# ──────────────────────────────────────────────

@contextmanager
def transfer_progress() -> Iterator[Callable[[str, int, int], None]]:
    """Yield a (stage, done, total) callback rendering one bar per stage."""
    labels = {"download": "⬇ Downloading", "extract": "📦 Extracting"}
    tasks: Dict[str, int] = {}
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        TimeRemainingColumn(),
        console=err_console,
    ) as progress:

        def _update(stage: str, done: int, total: int) -> None:
            if stage not in tasks:
                tasks[stage] = progress.add_task(labels.get(stage, stage), total=total or None)
            progress.update(tasks[stage], completed=done, total=total or None)

        yield _update


# ──────────────────────────────────────────────
#  Commands
# ──────────────────────────────────────────────

def _report(result: Result) -> int:
    if result.success:
        console.print(f"[bold green]✅ {escape(result.message)}[/]")
        return 0
    err_console.print(f"[bold red]❌ {escape(result.message)}[/]: {escape(result.error or '')}")
    return 1


def cmd_list(jm: JavaManager, args: argparse.Namespace) -> int:
    aliases = jm.list_aliases()

    t = Table(title="Available versions" if args.remote else "Installed versions")
    t.add_column("LTS", style="blue", justify="center")
    t.add_column("Version", style="cyan", justify="right")
    t.add_column("Provider", style="green")
    t.add_column("Aliases", style="yellow")

    if args.remote:
        versions = jm.get_remote_versions(requirements_from_args(args))
        rows = [(v, "") for v in versions]
    else:
        rows = [(inst.version, inst.version.provider.code) for inst in jm.list_installed()]

    for version, provider in rows:
        names = " ".join(escape(f"[{a.name}]") for a in aliases if a.points_to(version))
        t.add_row("*" if version.lts else "", version.value, provider, names)

    console.print(t)
    console.print("[blue]All versions marked with * are LTS versions[/]")
    return 0


def cmd_install(jm: JavaManager, args: argparse.Namespace) -> int:
    console.print(f"⬇️  Installing Java {args.version} from {jm.provider.code}...")
    with transfer_progress() as update:
        result = jm.install_java(args.version, requirements_from_args(args), update)
    return _report(result)


def cmd_remove(jm: JavaManager, args: argparse.Namespace) -> int:
    result = jm.uninstall_java(args.version)
    code = _report(result)
    for name in result.details.get("dangling_aliases", []):
        console.print(f"[yellow]⚠️  Alias {name} no longer points to an installed version[/]")
    return code


def cmd_alias(jm: JavaManager, args: argparse.Namespace) -> int:
    return _report(jm.set_alias(args.name, args.to_version))


def cmd_default(jm: JavaManager, args: argparse.Namespace) -> int:
    return _report(jm.set_default_java(args.to_version))


def cmd_aliases(jm: JavaManager, args: argparse.Namespace) -> int:
    t = Table(title="Aliases")
    t.add_column("Alias", style="cyan")
    t.add_column("Status")
    t.add_column("Target", style="white")
    for alias in jm.list_aliases():
        status = "[green]valid[/]" if alias.state is AliasState.VALID else "[red]dangling[/]"
        target = alias.target.name if alias.target else "?"
        t.add_row(escape(alias.name), status, escape(target))
    console.print(t)
    return 0


# ──────────────────────────────────────────────
#  Entry Point
# ──────────────────────────────────────────────

def run(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    try:
        config = JvcConfig.resolve(args.jvc_dir, args.provider, args.log_level)
    except JvcError as exc:
        err_console.print(f"[bold red]❌ {escape(str(exc))}[/]")
        return 1

    setup_logging(config)

    try:
        config.clean_up_downloads_dir()
    except JvcError as exc:
        logger.warning("Cannot clean up downloads dir: %s", exc)

    try:
        config.ensure_directories()
        return args.handler(JavaManager(config), args)
    except JvcError as exc:
        logger.debug("Command failed", exc_info=True)
        err_console.print(f"[bold red]❌ {escape(str(exc))}[/]")
        return 1


def main() -> None:
    sys.exit(run())


if __name__ == "__main__":
    main()
