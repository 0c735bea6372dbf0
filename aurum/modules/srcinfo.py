# aurum/modules/srcinfo.py
"""
srcinfo.py - leitor de .SRCINFO.

A descrição de build de todo pacote do AUR é um arquivo de linhas
``chave = valor``. Só as chaves de dependência importam para a resolução;
os demais campos ficam disponíveis crus para exibição.
"""

from __future__ import annotations
import os
import re
from typing import Dict, List

from aurum.modules.errors import ExtractionError

SRCINFO = ".SRCINFO"
DEPENDENCY_KEYS = ("depends", "makedepends", "checkdepends")

_VERSION_SPLIT = re.compile(r"[<>=\s]")


def strip_version(token: str) -> str:
    """'foo>=1.2' -> 'foo'."""
    return _VERSION_SPLIT.split(token.strip(), maxsplit=1)[0]


def _split_line(line: str):
    trimmed = line.strip()
    if not trimmed or trimmed.startswith("#") or "=" not in trimmed:
        return None, None
    key, value = trimmed.split("=", 1)
    return key.strip(), value.strip()


def extract_dependencies(text: str) -> List[str]:
    """Nomes das dependências sem versão, na ordem do arquivo, sem repetição."""
    deps: List[str] = []
    for line in text.splitlines():
        key, value = _split_line(line)
        if key not in DEPENDENCY_KEYS or not value:
            continue
        name = strip_version(value)
        if name and name not in deps:
            deps.append(name)
    return deps


def parse_fields(text: str) -> Dict[str, List[str]]:
    fields: Dict[str, List[str]] = {}
    for line in text.splitlines():
        key, value = _split_line(line)
        if key:
            fields.setdefault(key, []).append(value)
    return fields


def _read(source_dir: str, package: str = None) -> str:
    path = os.path.join(source_dir, SRCINFO)
    if not os.path.isfile(path):
        raise ExtractionError(f"{SRCINFO} file not found at {path}", package=package)
    try:
        with open(path, "r", encoding="utf-8") as fh:
            return fh.read()
    except (OSError, UnicodeDecodeError) as e:
        raise ExtractionError(f"Failed to read {path}: {e}", package=package)


def read_dependencies(source_dir: str, package: str = None) -> List[str]:
    return extract_dependencies(_read(source_dir, package))


def read_fields(source_dir: str, package: str = None) -> Dict[str, List[str]]:
    return parse_fields(_read(source_dir, package))
