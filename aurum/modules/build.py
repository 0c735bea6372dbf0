# aurum/modules/build.py
"""
build.py - orquestrador de build de pacotes do AUR.

Pipeline de um pacote:
 - atalho pelo cache (exceto com force)
 - download do fonte (git clone) no diretório de build
 - extração das dependências do .SRCINFO
 - classificação e instalação das dependências
   (lote do repositório oficial, builds de dependências do AUR, lote de artefatos)
 - makepkg
 - localização do artefato e cópia para o cache com o sidecar de dependências

Os builds são estritamente sequenciais. Um pacote só pode estar em build uma
vez; entrar nele de novo significa ciclo no grafo de dependências.
"""

from __future__ import annotations
import enum
import os
import shlex
import time
from typing import Dict, List, Optional, Set, Union

from aurum.modules import logger as _logger
from aurum.modules import srcinfo
from aurum.modules.batcher import InstallBatcher
from aurum.modules.cache import ArtifactCache, DEBUG_MARKER, artifact_matches, is_artifact
from aurum.modules.errors import AurumError, BuildError
from aurum.modules.resolver import DependencyClassifier, ResolutionResult, Tier
from aurum.modules.runner import CommandResult, CommandRunner
from aurum.modules.workdir import BuildWorkspace, is_empty


# ---------------------------
# Estado do job
# ---------------------------
class BuildState(enum.Enum):
    REQUESTED = "requested"
    SOURCE_FETCHED = "source-fetched"
    DEPS_EXTRACTED = "deps-extracted"
    DEPS_SATISFIED = "deps-satisfied"
    BUILT = "built"
    CACHED = "cached"
    DONE = "done"
    FAILED = "failed"


class BuildJob:
    def __init__(self, name: str, source_dir: str, declared_deps: Optional[List[str]] = None):
        self.name = name
        self.source_dir = source_dir
        self.declared_deps: List[str] = list(declared_deps or [])
        self.state = BuildState.REQUESTED
        self.reason: Optional[str] = None
        self.artifact: Optional[str] = None
        self.history = [(BuildState.REQUESTED, time.time())]

    def advance(self, state: BuildState):
        self.state = state
        self.history.append((state, time.time()))

    def fail(self, reason: str):
        self.reason = reason
        self.advance(BuildState.FAILED)

    def states(self) -> List[BuildState]:
        return [s for s, _ in self.history]

    def __repr__(self):
        return f"BuildJob({self.name!r}, state={self.state.value})"


# ---------------------------
# Ferramentas externas
# ---------------------------
class AurSource:
    """Baixa a descrição de build de um pacote com git."""

    def __init__(self, runner: Optional[CommandRunner] = None, base_url: str = "https://aur.archlinux.org",
                 git: str = "git", logger: Optional[_logger.Logger] = None):
        self.runner = runner or CommandRunner()
        self.base_url = base_url.rstrip("/")
        self.git = git
        self.log = logger or _logger.Logger("source")

    def url_for(self, name: str) -> str:
        return f"{self.base_url}/{name}.git"

    def fetch_source(self, name: str, dest: str) -> str:
        url = self.url_for(name)
        self.log.info(f"Cloning {url} into {dest}")
        os.makedirs(os.path.dirname(os.path.abspath(dest)), exist_ok=True)
        res = self.runner.run([self.git, "clone", url, dest])
        if not res.ok():
            raise BuildError(f"git clone failed: {res.output()}", package=name, stage="source retrieval")
        return dest


class Makepkg:
    def __init__(self, runner: Optional[CommandRunner] = None, executable: str = "makepkg",
                 args: Union[str, List[str], None] = "--syncdeps"):
        self.runner = runner or CommandRunner()
        self.executable = executable
        if isinstance(args, str):
            args = shlex.split(args)
        self.args = list(args or [])

    def build(self, source_dir: str) -> CommandResult:
        return self.runner.run([self.executable] + self.args, cwd=source_dir)


def find_built_package(build_dir: str, name: str) -> str:
    """Artefato gerado pelo makepkg para `name` (pacotes -debug são ignorados)."""
    try:
        files = sorted(os.listdir(build_dir))
    except OSError as e:
        raise BuildError(f"Failed to read build directory {build_dir}: {e}",
                         package=name, stage="package discovery")
    for fn in files:
        if is_artifact(fn) and DEBUG_MARKER not in fn and artifact_matches(fn, name):
            return os.path.join(build_dir, fn)
    # split packages ou nomes incomuns: aceita qualquer artefato que não seja -debug
    for fn in files:
        if is_artifact(fn) and DEBUG_MARKER not in fn and fn.startswith(name):
            return os.path.join(build_dir, fn)
    raise BuildError(f"No built package found in {build_dir}", package=name, stage="package discovery")


# ---------------------------
# Orquestrador
# ---------------------------
class BuildOrchestrator:
    def __init__(self,
                 cache: ArtifactCache,
                 classifier: DependencyClassifier,
                 batcher: InstallBatcher,
                 source: AurSource,
                 builder: Makepkg,
                 transitive: bool = False,
                 logger: Optional[_logger.Logger] = None):
        self.cache = cache
        self.classifier = classifier
        self.batcher = batcher
        self.source = source
        self.builder = builder
        self.transitive = transitive
        self.log = logger or _logger.Logger("build")
        self.jobs: Dict[str, BuildJob] = {}
        self._in_progress: Set[str] = set()

    def build(self, name: str, source_dir: str, force: bool = False) -> List[str]:
        """
        Constrói `name` em `source_dir` com todas as dependências satisfeitas.
        Retorna os artefatos a instalar: os das dependências primeiro e o do
        pacote por último.
        """
        if not force:
            cached = self._from_cache(name)
            if cached is not None:
                return cached
        return self._run(name, source_dir, resolve_deps=True)

    def _from_cache(self, name: str) -> Optional[List[str]]:
        path = self.cache.find(name)
        if path is None:
            return None
        self.log.info(f"Using cached package: {name} ({path})")
        artifacts = []
        for dep in self.cache.read_deps(name):
            dep_path = self.cache.find(dep)
            if dep_path and dep_path not in artifacts:
                artifacts.append(dep_path)
        artifacts.append(path)
        return artifacts

    def _run(self, name: str, source_dir: str, resolve_deps: bool) -> List[str]:
        if name in self._in_progress:
            raise BuildError(f"Dependency cycle detected: {name} is already being built", package=name)
        self._in_progress.add(name)
        job = BuildJob(name, source_dir)
        self.jobs[name] = job
        try:
            artifacts = self._pipeline(job, resolve_deps)
        except AurumError as e:
            job.fail(str(e))
            self.log.debug(f"Job {name} failed at {job.history[-2][0].value}: {e}")
            raise
        finally:
            self._in_progress.discard(name)
        return artifacts

    def _pipeline(self, job: BuildJob, resolve_deps: bool) -> List[str]:
        name = job.name
        self.log.info(f"Building package {name} in: {job.source_dir}")

        if is_empty(job.source_dir):
            self.source.fetch_source(name, job.source_dir)
        else:
            self.log.info(f"Repository: {name} already exists, skipping clone.")
        job.advance(BuildState.SOURCE_FETCHED)

        job.declared_deps = srcinfo.read_dependencies(job.source_dir, name)
        job.advance(BuildState.DEPS_EXTRACTED)

        if resolve_deps:
            dep_artifacts = self._satisfy(job)
        else:
            dep_artifacts = []
            self._satisfy_direct(job)
        job.advance(BuildState.DEPS_SATISFIED)

        res = self.builder.build(job.source_dir)
        if not res.ok():
            raise BuildError(f"makepkg exited with {res.returncode}: {res.output()}", package=name)
        job.advance(BuildState.BUILT)
        self.log.success(f"Package {name} built successfully")

        built = find_built_package(job.source_dir, name)
        job.artifact = self.cache.insert(built, name, job.declared_deps)
        job.advance(BuildState.CACHED)

        job.advance(BuildState.DONE)
        return dep_artifacts + [job.artifact]

    # ---------------------------
    # Satisfação de dependências
    # ---------------------------
    def _satisfy(self, job: BuildJob) -> List[str]:
        result = self.resolve(job.declared_deps)
        self.batcher.install_artifacts(result)
        return list(result.artifact_batch)

    def resolve(self, dependencies: List[str]) -> ResolutionResult:
        """
        Classifica `dependencies`, instala o lote do repositório oficial e
        constrói as do AUR. O lote de artefatos fica para o chamador instalar.
        """
        classification = self.classifier.classify(dependencies)
        result = ResolutionResult(trusted_repo_batch=classification.trusted_repo)
        self.batcher.install_trusted(result)

        for dep in classification.cached:
            result.add_artifact(classification.cached_paths[dep], dep)

        for dep in classification.needs_build:
            # passos anteriores podem já ter instalado ou guardado
            tier, cached = self.classifier.classify_one(dep)
            if tier is Tier.INSTALLED:
                self.log.info(f"Dependency {dep} is already installed")
                continue
            if tier is Tier.CACHED:
                result.add_artifact(cached, dep)
                continue
            if tier is Tier.TRUSTED_REPO:
                late = ResolutionResult(trusted_repo_batch=[dep])
                self.batcher.install_trusted(late)
                continue
            for path in self._build_dependency(dep):
                result.add_artifact(path)
        return result

    def _build_dependency(self, dep: str) -> List[str]:
        self.log.info(f"Building AUR dependency {dep}")
        with BuildWorkspace(dep, logger=self.log) as ws:
            if self.transitive:
                return self._run(dep, ws.path, resolve_deps=True)
            try:
                return self._run(dep, ws.path, resolve_deps=False)
            except BuildError as e:
                if e.stage == "build":
                    raise BuildError(e.message, package=dep, stage="dependency build")
                raise

    def _satisfy_direct(self, job: BuildJob):
        """
        Sem recursão: instala as dependências que já estão no repositório
        oficial ou no cache, num único ResolutionResult. As que só existem
        no AUR não são construídas, apenas avisadas.
        """
        result = ResolutionResult()
        for dep in job.declared_deps:
            tier, cached = self.classifier.classify_one(dep)
            if tier is Tier.TRUSTED_REPO:
                result.add_trusted(dep)
            elif tier is Tier.CACHED:
                result.add_artifact(cached, dep)
            elif tier is Tier.NEEDS_BUILD:
                self.log.warning(
                    f"{job.name} depends on {dep}, which is only available from the AUR "
                    f"and is not built automatically (set [build] transitive = true)")
        self.batcher.apply(result)
