# aurum/modules/cache.py

"""
Cache de artefatos construídos (pacotes .pkg.tar.zst / .pkg.tar.xz).

Layout do diretório:
 - um artefato por pacote: <nome>-<versão>-<release>-<arch>.pkg.tar.{zst|xz}
 - um sidecar por pacote: <nome>.deps (dependências usadas no build,
   uma por linha)

Funcionalidades:
 - localizar o artefato de um pacote (match por prefixo do nome)
 - inserir artefato + sidecar (substitui versões anteriores)
 - ler/gravar sidecar de dependências
 - remover (evict) artefatos e sidecar de um pacote
 - listar pacotes em cache com a versão embutida no nome do arquivo
"""

from __future__ import annotations
import os
import re
import shutil
from typing import List, Optional, Tuple

from aurum.modules import logger as _logger
from aurum.modules.errors import CacheError
from aurum.modules.version import UNKNOWN_VERSION

ARTIFACT_SUFFIXES = (".pkg.tar.zst", ".pkg.tar.xz")
DEBUG_MARKER = "-debug-"
SIDECAR_SUFFIX = ".deps"

# primeiro hífen seguido de dígito marca o início da versão
_VERSION_START = re.compile(r"-(?=\d)")


def is_artifact(filename: str) -> bool:
    return filename.endswith(ARTIFACT_SUFFIXES)


def strip_suffix(filename: str) -> str:
    for suffix in ARTIFACT_SUFFIXES:
        if filename.endswith(suffix):
            return filename[: -len(suffix)]
    return filename


def artifact_matches(filename: str, name: str) -> bool:
    """True se o arquivo é um artefato de `name` (e não de `name-algo`)."""
    if not is_artifact(filename) or not filename.startswith(name + "-"):
        return False
    rest = strip_suffix(filename)[len(name) + 1:]
    return len(rest.split("-")) == 3


def version_from_filename(filename: str, name: str) -> Optional[str]:
    """'foo-1.0-2-x86_64.pkg.tar.zst', 'foo' -> '1.0-2'."""
    if not filename.startswith(name):
        return None
    parts = filename[len(name):].split("-")
    if len(parts) < 3 or not parts[1] or not parts[2]:
        return None
    return f"{parts[1]}-{parts[2]}"


def parse_artifact_filename(filename: str) -> Tuple[str, str]:
    """Nome do pacote e 'versão-release' (sem a arquitetura)."""
    base = strip_suffix(filename)
    m = _VERSION_START.search(base)
    if not m:
        return base, UNKNOWN_VERSION
    name = base[: m.start()]
    version_with_arch = base[m.end():]
    if "-" in version_with_arch:
        version_with_arch = version_with_arch.rsplit("-", 1)[0]
    return name, version_with_arch


class CacheEntry:
    def __init__(self, package: str, artifact_path: str, sidecar_deps: List[str]):
        self.package = package
        self.artifact_path = artifact_path
        self.sidecar_deps = sidecar_deps


class ArtifactCache:
    def __init__(self, cache_dir: str, logger: Optional[_logger.Logger] = None):
        self.cache_dir = os.path.abspath(cache_dir)
        os.makedirs(self.cache_dir, exist_ok=True)
        self.log = logger or _logger.Logger("cache")

    def _listdir(self) -> List[str]:
        try:
            return sorted(os.listdir(self.cache_dir))
        except OSError as e:
            self.log.warning(f"Falha ao ler o diretório de cache {self.cache_dir}: {e}")
            return []

    def sidecar_path(self, name: str) -> str:
        return os.path.join(self.cache_dir, name + SIDECAR_SUFFIX)

    # ------------------------
    # Consulta
    # ------------------------
    def find(self, name: str) -> Optional[str]:
        """Caminho do artefato em cache para `name`, ou None."""
        for fn in self._listdir():
            if artifact_matches(fn, name) and DEBUG_MARKER not in fn:
                path = os.path.join(self.cache_dir, fn)
                if os.path.isfile(path):
                    return path
        return None

    def entry(self, name: str) -> Optional[CacheEntry]:
        # sidecar sem artefato é cache miss
        path = self.find(name)
        if path is None:
            return None
        return CacheEntry(name, path, self.read_deps(name))

    # ------------------------
    # Armazenamento
    # ------------------------
    def insert(self, artifact_path: str, name: str, dependencies: Optional[List[str]] = None) -> str:
        """Copia o artefato para o cache e grava o sidecar. Retorna o caminho no cache."""
        dest = os.path.join(self.cache_dir, os.path.basename(artifact_path))
        for fn in self._listdir():
            old = os.path.join(self.cache_dir, fn)
            if artifact_matches(fn, name) and old != dest:
                try:
                    os.remove(old)
                    self.log.info(f"Removida versão anterior do cache: {fn}")
                except OSError as e:
                    raise CacheError(f"Failed to remove previous artifact {old}: {e}", package=name)
        try:
            if os.path.abspath(artifact_path) != dest:
                shutil.copy2(artifact_path, dest)
        except OSError as e:
            raise CacheError(f"Failed to cache package: {e}", package=name)
        self.save_deps(name, dependencies or [])
        self.log.info(f"Cached package: {name} ({dest})")
        return dest

    def save_deps(self, name: str, dependencies: List[str]) -> str:
        path = self.sidecar_path(name)
        try:
            with open(path, "w", encoding="utf-8") as fh:
                fh.write("\n".join(dependencies))
        except OSError as e:
            raise CacheError(f"Failed to write dependency list to {path}: {e}",
                             package=name, stage="dependency tracking")
        self.log.debug(f"Saved dependency list for {name} ({path})")
        return path

    def read_deps(self, name: str) -> List[str]:
        """Dependências registradas no build; [] se não houver sidecar legível."""
        path = self.sidecar_path(name)
        if not os.path.exists(path):
            return []
        try:
            with open(path, "r", encoding="utf-8") as fh:
                content = fh.read()
        except (OSError, UnicodeDecodeError) as e:
            self.log.warning(f"Failed to read dependency list for {name}: {e}")
            return []
        return [line.strip() for line in content.splitlines() if line.strip()]

    # ------------------------
    # Limpeza
    # ------------------------
    def evict(self, name: str) -> List[str]:
        """Remove todos os artefatos de `name` e o sidecar. Retorna os nomes removidos."""
        removed = []
        for fn in self._listdir():
            if artifact_matches(fn, name):
                path = os.path.join(self.cache_dir, fn)
                try:
                    os.remove(path)
                except OSError as e:
                    raise CacheError(f"Failed to delete cached package: {e}",
                                     package=name, stage="cache cleanup")
                self.log.info(f"Deleted cached package: {name} ({path})")
                removed.append(fn)
        sidecar = self.sidecar_path(name)
        if os.path.exists(sidecar):
            try:
                os.remove(sidecar)
            except OSError as e:
                raise CacheError(f"Failed to delete dependency list: {e}",
                                 package=name, stage="cache cleanup")
            removed.append(os.path.basename(sidecar))
        return removed

    def list_entries(self) -> List[Tuple[str, str, str]]:
        """(nome, versão, arquivo) de todos os artefatos em cache."""
        entries = []
        for fn in self._listdir():
            if is_artifact(fn):
                name, version = parse_artifact_filename(fn)
                entries.append((name, version, fn))
        return sorted(entries)
