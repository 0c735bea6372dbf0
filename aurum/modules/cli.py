# aurum/modules/cli.py
"""
cli.py - interface de linha de comando do aurum.
- Usa rich para saída colorida, tabelas, painéis e spinners.
- Subcomandos: search, install, info, remove, list, update (com aliases curtos).
- Flags globais: --no-color, --quiet, --verbose.

Exemplos de uso:
  aurum search yay
  aurum install paru-bin
  aurum info --deps paru
  aurum ls
  aurum up paru-bin

Códigos de saída: 0 sucesso, 1 erro do aurum, 2 erro de uso, 130 interrompido.
"""

from __future__ import annotations
import argparse
import sys
from typing import List, Optional

# UI com rich
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn

from aurum.modules import commands as _commands
from aurum.modules import logger as _logger
from aurum.modules.aur import AurPackage
from aurum.modules.config import config
from aurum.modules.errors import AurumError
from aurum.modules.updater import NOT_INSTALLED

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_USAGE = 2
EXIT_INTERRUPTED = 130


def print_panel(console: Console, title: str, text: str, style: str = "green"):
    console.print(Panel(text, title=title, style=style))


# Console com controle de cores
def make_console(no_color: bool, quiet: bool) -> Console:
    if no_color:
        return Console(no_color=True, highlight=False, quiet=quiet)
    return Console(quiet=quiet)


def apply_global_flags(args: argparse.Namespace):
    """Flags globais ajustam a configuração antes de qualquer Logger ser criado."""
    if args.verbose:
        config.set("logging", "level", "debug")
    if args.quiet:
        config.set("logging", "log_to_console", "false")
    if args.no_color:
        config.set("logging", "color_output", "false")


class CLI:
    def __init__(self, console: Console, manager_factory=None):
        self.console = console
        self._factory = manager_factory or _commands.PackageManager
        self._manager = None

    @property
    def manager(self) -> _commands.PackageManager:
        if self._manager is None:
            self._manager = self._factory()
        return self._manager

    def _spinner(self) -> Progress:
        return Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"),
                        console=self.console, transient=True)

    # -----------------------
    # search
    # -----------------------
    def cmd_search(self, args: argparse.Namespace):
        with self._spinner() as p:
            p.add_task(f"Searching AUR for {args.query}", total=None)
            results = self.manager.search(args.query)
        if not results:
            self.console.print(f"[yellow]No packages found for '{args.query}'[/yellow]")
            return EXIT_OK
        tbl = Table(title=f"AUR: {args.query}")
        tbl.add_column("Name", style="bold green")
        tbl.add_column("Version", style="cyan")
        tbl.add_column("Votes", justify="right")
        tbl.add_column("Description", overflow="fold")
        for pkg in results:
            tbl.add_row(pkg.name, pkg.version, str(pkg.votes), pkg.description or "-")
        self.console.print(tbl)
        return EXIT_OK

    # -----------------------
    # info
    # -----------------------
    def _info_table(self, pkg: AurPackage) -> Table:
        tbl = Table(title=f"Info: {pkg.name}", show_header=False)
        tbl.add_column("Key", style="bold")
        tbl.add_column("Value", overflow="fold")
        tbl.add_row("Package", pkg.name)
        tbl.add_row("Version", pkg.version)
        for label, value in (("Description", pkg.description), ("URL", pkg.url),
                             ("Maintainer", pkg.maintainer)):
            if value:
                tbl.add_row(label, value)
        tbl.add_row("Votes", str(pkg.votes))
        tbl.add_row("Popularity", str(pkg.popularity))
        tbl.add_row("First Submitted", AurPackage.format_date(pkg.first_submitted))
        tbl.add_row("Last Modified", AurPackage.format_date(pkg.last_modified))
        return tbl

    def cmd_info(self, args: argparse.Namespace):
        pkg, deps = self.manager.info(args.package, show_deps=args.deps)
        self.console.print(self._info_table(pkg))
        if deps is not None:
            text = "\n".join(f"- {d}" for d in deps) if deps else "None found"
            print_panel(self.console, "Dependencies", text, style="cyan")
        return EXIT_OK

    # -----------------------
    # install / remove / update
    # -----------------------
    def cmd_install(self, args: argparse.Namespace):
        status = self.manager.install(args.package)
        if status == _commands.ALREADY_INSTALLED:
            self.console.print(f"[yellow]Package {args.package} is already installed[/yellow]")
        else:
            print_panel(self.console, "install", f"{args.package}: {status}")
        return EXIT_OK

    def cmd_remove(self, args: argparse.Namespace):
        removed = self.manager.remove(args.package)
        print_panel(self.console, "remove", "Removed: " + ", ".join(removed))
        return EXIT_OK

    def cmd_update(self, args: argparse.Namespace):
        decision = self.manager.update(args.package)
        text = (f"{decision.cached_version} (cached) vs {decision.remote_version} (latest)\n"
                f"status: {decision.status}")
        if decision.status == NOT_INSTALLED:
            print_panel(self.console, f"update: {args.package}", text, style="red")
            return EXIT_ERROR
        print_panel(self.console, f"update: {args.package}", text)
        return EXIT_OK

    # -----------------------
    # list
    # -----------------------
    def cmd_list(self, args: argparse.Namespace):
        entries = self.manager.list_packages()
        if not entries:
            self.console.print("[bold]No packages installed via aurum found in cache.[/bold]")
            return EXIT_OK
        tbl = Table(title="Packages installed via aurum")
        tbl.add_column("Package", style="bold green")
        tbl.add_column("Version", style="cyan")
        for name, version in entries:
            tbl.add_row(name, version)
        self.console.print(tbl)
        return EXIT_OK


class _Parser(argparse.ArgumentParser):
    """argparse sai com 2 em erro de uso; aqui vira exceção para main() decidir."""

    def error(self, message):
        raise UsageError(message, self.format_usage())


class UsageError(Exception):
    def __init__(self, message, usage=""):
        super().__init__(message)
        self.usage = usage


def build_argparser() -> argparse.ArgumentParser:
    ap = _Parser(prog="aurum", description="AUR helper: build, cache and install AUR packages")
    ap.add_argument("--no-color", action="store_true", help="Disable color output")
    ap.add_argument("--quiet", action="store_true", help="Quiet mode; less output")
    ap.add_argument("--verbose", action="store_true", help="Debug logging")
    sub = ap.add_subparsers(dest="command", required=True, parser_class=_Parser)

    p_search = sub.add_parser("search", aliases=["s"], help="Search the AUR by name")
    p_search.add_argument("query")

    p_install = sub.add_parser("install", aliases=["i"], help="Install a package (repo, cache or AUR build)")
    p_install.add_argument("package")

    p_info = sub.add_parser("info", aliases=["in"], help="Show AUR package info")
    p_info.add_argument("package")
    p_info.add_argument("--deps", action="store_true", help="Also list dependencies from .SRCINFO")

    p_remove = sub.add_parser("remove", aliases=["r"], help="Remove a package and its tracked dependencies")
    p_remove.add_argument("package")

    sub.add_parser("list", aliases=["ls"], help="List packages in the aurum cache")

    p_update = sub.add_parser("update", aliases=["up"], help="Rebuild a package if the AUR has a newer version")
    p_update.add_argument("package")
    return ap


COMMANDS = {
    "search": "cmd_search", "s": "cmd_search",
    "install": "cmd_install", "i": "cmd_install",
    "info": "cmd_info", "in": "cmd_info",
    "remove": "cmd_remove", "r": "cmd_remove",
    "list": "cmd_list", "ls": "cmd_list",
    "update": "cmd_update", "up": "cmd_update",
}


def main(argv: Optional[List[str]] = None, manager_factory=None):
    argv = sys.argv[1:] if argv is None else argv
    # pré-análise de cor / quiet
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--no-color", action="store_true")
    pre.add_argument("--quiet", action="store_true")
    known, _ = pre.parse_known_args(argv)
    console = make_console(known.no_color, known.quiet)

    parser = build_argparser()
    try:
        args = parser.parse_args(argv)
    except UsageError as e:
        console.print(e.usage.rstrip(), markup=False)
        console.print(f"aurum: error: {e}", markup=False, style="red")
        return EXIT_USAGE

    apply_global_flags(args)
    log = _logger.Logger("cli")
    try:
        config.ensure_user_config()
    except OSError as e:
        log.warning(f"Could not create user configuration: {e}")

    cli = CLI(console=console, manager_factory=manager_factory)
    try:
        return getattr(cli, COMMANDS[args.command])(args)
    except AurumError as e:
        console.print(f"✗ {e}", style="red", markup=False)
        log.debug(repr(e))
        return EXIT_ERROR
    except KeyboardInterrupt:
        console.print("Interrupted")
        return EXIT_INTERRUPTED


if __name__ == "__main__":
    raise SystemExit(main())
