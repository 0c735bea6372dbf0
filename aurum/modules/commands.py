# aurum/modules/commands.py
"""
commands.py - comandos do aurum.

PackageManager monta os colaboradores (oráculo e instalador do pacman,
cliente do AUR, cache de artefatos, classificador, batcher, orquestrador,
updater) a partir de um AurumConfig e expõe um método por comando. Todo
colaborador pode ser injetado; os testes trocam assim pacman, git e makepkg.
"""

from __future__ import annotations
from typing import List, Optional, Tuple

from aurum.modules import logger as _logger
from aurum.modules import srcinfo
from aurum.modules.aur import AurClient, AurPackage
from aurum.modules.batcher import InstallBatcher
from aurum.modules.build import AurSource, BuildOrchestrator, Makepkg
from aurum.modules.cache import ArtifactCache
from aurum.modules.config import AurumConfig, config as default_config
from aurum.modules.errors import ClassificationError, InstallError
from aurum.modules.pacman import Installer, PackageDatabase
from aurum.modules.resolver import DependencyClassifier, ResolutionResult, Tier
from aurum.modules.runner import CommandRunner
from aurum.modules.updater import UpdateDecision, UpdateEvaluator
from aurum.modules.workdir import BuildWorkspace

ALREADY_INSTALLED = "already-installed"
INSTALLED_FROM_REPO = "installed-from-repo"
INSTALLED_FROM_CACHE = "installed-from-cache"
BUILT_AND_INSTALLED = "built-and-installed"


class PackageManager:
    def __init__(self,
                 settings: Optional[AurumConfig] = None,
                 runner: Optional[CommandRunner] = None,
                 database=None,
                 installer=None,
                 metadata=None,
                 source=None,
                 builder=None,
                 cache: Optional[ArtifactCache] = None,
                 logger: Optional[_logger.Logger] = None):
        self.settings = settings or default_config
        cfg = self.settings
        self.log = logger or _logger.Logger("aurum", settings=cfg)
        self.runner = runner or CommandRunner()

        pacman = cfg.get("pacman", "pacman", fallback="pacman")
        self.database = database or PackageDatabase(self.runner, pacman=pacman)
        self.installer = installer or Installer(self.runner, pacman=pacman,
                                                sudo=cfg.get("pacman", "sudo", fallback="sudo"))
        base_url = cfg.get("aur", "base_url")
        self.metadata = metadata or AurClient(base_url, timeout=cfg.getfloat("aur", "timeout", fallback=10))
        self.source = source or AurSource(self.runner, base_url, git=cfg.get("build", "git", fallback="git"))
        self.builder = builder or Makepkg(self.runner,
                                          executable=cfg.get("build", "makepkg", fallback="makepkg"),
                                          args=cfg.get("build", "makepkg_args", fallback="--syncdeps"))
        self.cache = cache or ArtifactCache(cfg.cache_path())
        self.build_root = cfg.build_path()
        self.keep_build_dir = cfg.getboolean("build", "keep_build_dir")

        self.classifier = DependencyClassifier(self.database, self.cache, metadata=self.metadata)
        self.batcher = InstallBatcher(self.installer)
        self.orchestrator = BuildOrchestrator(self.cache, self.classifier, self.batcher,
                                              self.source, self.builder,
                                              transitive=cfg.getboolean("build", "transitive"))
        self.updater = UpdateEvaluator(self.cache, self.metadata, self.orchestrator, self.batcher,
                                       self.installer, self.database, build_root=self.build_root,
                                       keep_build_dir=self.keep_build_dir)

    # -----------------------
    # search / info
    # -----------------------
    def search(self, query: str) -> List[AurPackage]:
        self.log.info(f"Searching for: {query}")
        return self.metadata.search(query)

    def info(self, name: str, show_deps: bool = False) -> Tuple[AurPackage, Optional[List[str]]]:
        """Metadados do AUR para `name` e, com show_deps, as dependências de um clone novo."""
        pkg = self.metadata.get_info(name)
        if not show_deps:
            return pkg, None
        with BuildWorkspace(name) as ws:
            self.source.fetch_source(name, ws.path)
            deps = srcinfo.read_dependencies(ws.path, name)
        return pkg, deps

    # -----------------------
    # install
    # -----------------------
    def install(self, name: str) -> str:
        self.log.info(f"Attempting to install package: {name}")
        tier, cached = self.classifier.classify_one(name)

        if tier is Tier.INSTALLED:
            self.log.info(f"Package {name} is already installed")
            return ALREADY_INSTALLED

        if tier is Tier.TRUSTED_REPO:
            self.batcher.apply(ResolutionResult(trusted_repo_batch=[name]))
            return INSTALLED_FROM_REPO

        if tier is Tier.CACHED:
            self.log.info(f"Using cached package: {name} ({cached})")
            deps = self.cache.read_deps(name)
            if not deps:
                self.log.warning("No tracked dependencies found for cached package.")
            result = self.orchestrator.resolve(deps)
            result.add_artifact(cached, name)
            self.batcher.install_artifacts(result)
            return INSTALLED_FROM_CACHE

        self.metadata.get_info(name)
        with BuildWorkspace(name, root=self.build_root, keep=self.keep_build_dir) as ws:
            artifacts = self.orchestrator.build(name, ws.path)
        self.batcher.install_artifacts(ResolutionResult(artifact_batch=artifacts))
        self.log.success(f"Package {name} installed")
        return BUILT_AND_INSTALLED

    # -----------------------
    # remove / list / update
    # -----------------------
    def remove(self, name: str) -> List[str]:
        """Remove `name` e as dependências registradas que ainda estão no sistema. Retorna os nomes removidos."""
        if not self.database.is_installed(name):
            raise ClassificationError("Package not found in system", package=name, stage="removal")

        tracked = self.cache.read_deps(name)
        still_installed = [d for d in tracked if d != name and self.database.is_installed(d)]
        targets = [name] + still_installed

        res = self.installer.remove(targets)
        if not res.ok():
            raise InstallError(f"Failed to remove packages {', '.join(targets)} (exit {res.returncode})",
                               package=name, stage="removal")

        for dep in still_installed:
            self.cache.evict(dep)
        self.cache.evict(name)
        return targets

    def list_packages(self) -> List[Tuple[str, str]]:
        return [(n, v) for n, v, _ in self.cache.list_entries()]

    def update(self, name: str) -> UpdateDecision:
        self.log.info(f"Checking for updates for package: {name}")
        return self.updater.update(name)
