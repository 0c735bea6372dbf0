# aurum/modules/version.py
"""Ordem total sobre versões no formato do pacman ([epoch:]versão[-release])."""

from __future__ import annotations
import re
from typing import Optional, Tuple

UNKNOWN_VERSION = "unknown"

_DIGITS = re.compile(r"[0-9]+")
_ALPHA = re.compile(r"[a-zA-Z]+")
_SEPARATOR = re.compile(r"[^a-zA-Z0-9]*")


def _is_unknown(v: Optional[str]) -> bool:
    return v is None or (isinstance(v, str) and v.strip() in ("", UNKNOWN_VERSION))


def split_evr(v: str) -> Tuple[str, str, Optional[str]]:
    """Separa (epoch, versão, release). O release vem depois do último '-'."""
    s = v.strip()
    epoch = "0"
    head, sep, rest = s.partition(":")
    if sep and head.isdigit():
        epoch, s = head, rest
    elif sep and not head:
        s = rest
    ver, dash, rel = s.rpartition("-")
    if not dash:
        return epoch, s, None
    return epoch, ver, rel


def vercmp(a: str, b: str) -> int:
    """
    Compara dois trechos de versão por blocos alternados de dígitos e letras,
    como o rpmvercmp do pacman. Blocos numéricos vencem blocos alfabéticos.
    """
    if a == b:
        return 0
    i = j = 0
    while i < len(a) and j < len(b):
        sa = _SEPARATOR.match(a, i).end()
        sb = _SEPARATOR.match(b, j).end()
        if sa >= len(a) or sb >= len(b):
            i, j = sa, sb
            break
        # separadores de tamanho diferente decidem
        if sa - i != sb - j:
            return -1 if sa - i < sb - j else 1
        i, j = sa, sb

        numeric = a[i].isdigit()
        pattern = _DIGITS if numeric else _ALPHA
        ma = pattern.match(a, i)
        mb = pattern.match(b, j)
        if mb is None:
            return 1 if numeric else -1

        xa, xb = ma.group(), mb.group()
        if numeric:
            xa, xb = xa.lstrip("0"), xb.lstrip("0")
            if len(xa) != len(xb):
                return -1 if len(xa) < len(xb) else 1
        if xa != xb:
            return -1 if xa < xb else 1
        i, j = ma.end(), mb.end()

    if i >= len(a) and j >= len(b):
        return 0
    # sobra alfabética nunca vence a string vazia (1.0rc1 < 1.0)
    if (i >= len(a) and not b[j].isalpha()) or (i < len(a) and a[i].isalpha()):
        return -1
    return 1


def compare_versions(a: Optional[str], b: Optional[str]) -> int:
    """-1 se a < b, 0 se iguais, 1 se a > b. 'unknown' fica antes de tudo."""
    if _is_unknown(a) and _is_unknown(b):
        return 0
    if _is_unknown(a):
        return -1
    if _is_unknown(b):
        return 1
    ea, va, ra = split_evr(a)
    eb, vb, rb = split_evr(b)
    c = vercmp(ea, eb)
    if c:
        return c
    c = vercmp(va, vb)
    if c:
        return c
    # release só conta quando os dois lados têm um
    if ra is not None and rb is not None:
        return vercmp(ra, rb)
    return 0


def is_newer(remote: Optional[str], cached: Optional[str]) -> bool:
    return compare_versions(remote, cached) > 0
