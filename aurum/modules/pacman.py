# aurum/modules/pacman.py
"""
pacman.py - consultas ao banco local/sync do pacman e chamadas de instalação.

- PackageDatabase: oráculo "está instalado?" (pacman -Q) e índice do
  repositório oficial "está disponível?" (pacman -Si).
- Installer: pacman -S --needed, pacman -U e pacman -Rs via sudo.

Cada consulta é feita ao vivo; nada é guardado entre chamadas, então o
estado do sistema é sempre relido depois de uma instalação em lote.
"""

from __future__ import annotations
from typing import Iterable, List, Optional

from aurum.modules import logger as _logger
from aurum.modules.errors import OracleError
from aurum.modules.runner import CommandRunner, CommandResult

NOT_FOUND_MARKERS = ("was not found", "not found")


class PackageDatabase:
    def __init__(self,
                 runner: Optional[CommandRunner] = None,
                 pacman: str = "pacman",
                 logger: Optional[_logger.Logger] = None):
        self.runner = runner or CommandRunner()
        self.pacman = pacman
        self.log = logger or _logger.Logger("pacman")

    def _query(self, flag: str, name: str) -> Optional[CommandResult]:
        """Resultado da consulta, None para 'não encontrado', OracleError caso contrário."""
        res = self.runner.run([self.pacman, flag, name])
        if res.ok():
            return res
        text = res.output().lower()
        if res.returncode == 1 and any(m in text for m in NOT_FOUND_MARKERS):
            return None
        raise OracleError(f"pacman {flag} exited with {res.returncode}: {res.output()}", package=name)

    def is_installed(self, name: str) -> bool:
        return self._query("-Q", name) is not None

    def installed_version(self, name: str) -> Optional[str]:
        res = self._query("-Q", name)
        if res is None:
            return None
        fields = res.stdout.split()
        return fields[1] if len(fields) >= 2 else None

    def is_available(self, name: str) -> bool:
        res = self._query("-Si", name)
        if res is None:
            self.log.debug(f"Not found in any enabled repo: {name}")
            return False
        self.log.info(f"Found package '{name}' in the official repositories")
        return True


class Installer:
    def __init__(self,
                 runner: Optional[CommandRunner] = None,
                 pacman: str = "pacman",
                 sudo: Optional[str] = "sudo",
                 logger: Optional[_logger.Logger] = None):
        self.runner = runner or CommandRunner()
        self.pacman = pacman
        self.sudo = sudo
        self.log = logger or _logger.Logger("installer")

    def _pacman(self, *args: str) -> List[str]:
        prefix = [self.sudo] if self.sudo else []
        return prefix + [self.pacman] + list(args)

    def install_from_repo(self, names: Iterable[str]) -> CommandResult:
        names = list(names)
        self.log.info(f"Installing from official repositories: {', '.join(names)}")
        return self.runner.run(self._pacman("-S", "--needed", *names), capture=False)

    def install_from_files(self, paths: Iterable[str]) -> CommandResult:
        paths = list(paths)
        self.log.info(f"Installing from cache/built packages: {', '.join(paths)}")
        return self.runner.run(self._pacman("-U", *paths), capture=False)

    def remove(self, names: Iterable[str]) -> CommandResult:
        names = list(names)
        self.log.info(f"Removing from the system: {', '.join(names)}")
        return self.runner.run(self._pacman("-Rs", *names), capture=False)
