"""In-memory stand-ins for pacman, the AUR, git and makepkg."""

import os

from aurum.modules import srcinfo
from aurum.modules.aur import AurPackage
from aurum.modules.cache import parse_artifact_filename
from aurum.modules.errors import BuildError, MetadataError, OracleError, PackageNotFound
from aurum.modules.runner import CommandResult


def write_artifact(directory, filename, content=b"pkg"):
    path = os.path.join(str(directory), filename)
    with open(path, "wb") as fh:
        fh.write(content)
    return path


def srcinfo_text(name, version="1.0-1", deps=(), makedeps=()):
    pkgver, pkgrel = version.rsplit("-", 1)
    lines = [f"pkgbase = {name}", f"\tpkgdesc = {name} test package",
             f"\tpkgver = {pkgver}", f"\tpkgrel = {pkgrel}", "\tarch = x86_64"]
    lines += [f"\tdepends = {d}" for d in deps]
    lines += [f"\tmakedepends = {d}" for d in makedeps]
    lines += ["", f"pkgname = {name}", ""]
    return "\n".join(lines)


def _result(command, returncode=0, stderr=""):
    return CommandResult(list(command), returncode, "", stderr, 0.0)


class FakeDatabase:
    def __init__(self, installed=(), available=(), broken=()):
        self.installed = dict.fromkeys(installed, "1.0-1")
        self.available = set(available)
        self.broken = set(broken)
        self.queries = []

    def _check(self, name):
        self.queries.append(name)
        if name in self.broken:
            raise OracleError("pacman -Q exited with 2: database is locked", package=name)

    def is_installed(self, name):
        self._check(name)
        return name in self.installed

    def installed_version(self, name):
        self._check(name)
        return self.installed.get(name)

    def is_available(self, name):
        self._check(name)
        return name in self.available


class FakeInstaller:
    def __init__(self, database, returncode=0):
        self.database = database
        self.returncode = returncode
        self.calls = []

    def install_from_repo(self, names):
        names = list(names)
        self.calls.append(("repo", names))
        if self.returncode == 0:
            for n in names:
                self.database.installed[n] = "1.0-1"
        return _result(["pacman", "-S", "--needed"] + names, self.returncode)

    def install_from_files(self, paths):
        paths = list(paths)
        self.calls.append(("files", paths))
        if self.returncode == 0:
            for p in paths:
                name, version = parse_artifact_filename(os.path.basename(p))
                self.database.installed[name] = version
        return _result(["pacman", "-U"] + paths, self.returncode)

    def remove(self, names):
        names = list(names)
        self.calls.append(("remove", names))
        if self.returncode == 0:
            for n in names:
                self.database.installed.pop(n, None)
        return _result(["pacman", "-Rs"] + names, self.returncode)

    def kinds(self):
        return [kind for kind, _ in self.calls]


class FakeMetadata:
    """AUR info/search backed by the same recipe table as FakeSource."""

    def __init__(self, recipes, broken=False):
        self.recipes = recipes
        self.broken = broken
        self.lookups = []

    def get_info(self, name):
        self.lookups.append(name)
        if self.broken:
            raise MetadataError("AUR request timed out after 10 seconds", package=name)
        if name not in self.recipes:
            raise PackageNotFound("Package not found in AUR", package=name)
        return AurPackage(name, self.recipes[name].get("version", "1.0-1"),
                          description=f"{name} test package")

    def search(self, query):
        return [self.get_info(n) for n in sorted(self.recipes) if query in n]


class FakeSource:
    """git clone replacement: writes a .SRCINFO from the recipe table."""

    def __init__(self, recipes):
        self.recipes = recipes
        self.fetched = []

    def fetch_source(self, name, dest):
        if name not in self.recipes:
            raise BuildError(f"git clone failed: repository '{name}' not found",
                             package=name, stage="source retrieval")
        recipe = self.recipes[name]
        os.makedirs(dest, exist_ok=True)
        with open(os.path.join(dest, srcinfo.SRCINFO), "w", encoding="utf-8") as fh:
            fh.write(srcinfo_text(name, recipe.get("version", "1.0-1"),
                                  recipe.get("deps", ()), recipe.get("makedeps", ())))
        self.fetched.append(name)
        return dest


class FakeBuilder:
    """
    makepkg replacement: drops a package and a debug package next to .SRCINFO.
    Like makepkg --syncdeps it only gets repo packages on its own, so a
    declared dependency that is neither installed nor in the repos fails the build.
    """

    def __init__(self, database=None, fail=()):
        self.database = database
        self.fail = set(fail)
        self.built = []
        self.missing = []

    def _unsatisfied(self, source_dir, name):
        if self.database is None:
            return []
        return [d for d in srcinfo.read_dependencies(source_dir, name)
                if d not in self.database.installed and d not in self.database.available]

    def build(self, source_dir):
        fields = srcinfo.read_fields(source_dir)
        name = fields["pkgname"][0]
        version = f"{fields['pkgver'][0]}-{fields['pkgrel'][0]}"
        command = ["makepkg", "--syncdeps"]
        if name in self.fail:
            return _result(command, 4, "==> ERROR: A failure occurred in build().")
        missing = self._unsatisfied(source_dir, name)
        if missing:
            self.missing += [(name, d) for d in missing]
            return _result(command, 8, "==> ERROR: Could not resolve all dependencies.")
        write_artifact(source_dir, f"{name}-debug-{version}-x86_64.pkg.tar.zst")
        write_artifact(source_dir, f"{name}-{version}-x86_64.pkg.tar.zst")
        self.built.append(name)
        return _result(command)
