# aurum/modules/aur.py
"""
aur.py - cliente da interface RPC do AUR (v5).

Só duas chamadas são usadas: ``search`` (por nome) e ``info`` (nome exato).
Falhas de transporte, status HTTP e decodificação viram MetadataError.
Um info sem resultado vira PackageNotFound, separando "ausente" de "quebrado".
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from aurum.modules import logger as _logger
from aurum.modules.errors import MetadataError, PackageNotFound

DEFAULT_AUR_BASE_URL = "https://aur.archlinux.org"
RPC_VERSION = "5"


class AurPackage:
    def __init__(self,
                 name: str,
                 version: str,
                 description: Optional[str] = None,
                 url: Optional[str] = None,
                 maintainer: Optional[str] = None,
                 votes: int = 0,
                 popularity: float = 0.0,
                 first_submitted: int = 0,
                 last_modified: int = 0):
        self.name = name
        self.version = version
        self.description = description
        self.url = url
        self.maintainer = maintainer
        self.votes = votes
        self.popularity = popularity
        self.first_submitted = first_submitted
        self.last_modified = last_modified

    @classmethod
    def from_rpc(cls, data: Dict[str, Any]) -> "AurPackage":
        try:
            return cls(
                name=data["Name"],
                version=data["Version"],
                description=data.get("Description"),
                url=data.get("URL"),
                maintainer=data.get("Maintainer"),
                votes=int(data.get("NumVotes") or 0),
                popularity=float(data.get("Popularity") or 0.0),
                first_submitted=int(data.get("FirstSubmitted") or 0),
                last_modified=int(data.get("LastModified") or 0),
            )
        except (KeyError, TypeError, ValueError) as e:
            raise MetadataError(f"Failed to parse AUR response: {e}", stage="AUR response parsing")

    @staticmethod
    def format_date(ts: int) -> str:
        return datetime.fromtimestamp(ts, tz=timezone.utc).strftime("%m/%d/%Y")

    def __repr__(self):
        return f"AurPackage({self.name!r}, {self.version!r})"


class AurClient:
    def __init__(self,
                 base_url: str = DEFAULT_AUR_BASE_URL,
                 timeout: float = 10,
                 session: Optional[requests.Session] = None,
                 logger: Optional[_logger.Logger] = None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.log = logger or _logger.Logger("aur")

    def git_url(self, name: str) -> str:
        return f"{self.base_url}/{name}.git"

    def _rpc(self, params: Dict[str, str], package: Optional[str] = None) -> List[Dict[str, Any]]:
        url = f"{self.base_url}/rpc/"
        query = {"v": RPC_VERSION}
        query.update(params)
        self.log.debug(f"GET {url} {query}")
        try:
            res = self.session.get(url, params=query, timeout=self.timeout)
        except requests.Timeout:
            raise MetadataError(f"AUR request timed out after {self.timeout} seconds", package=package)
        except requests.RequestException as e:
            raise MetadataError(f"AUR request failed: {e}", package=package)

        if res.status_code < 200 or res.status_code >= 300:
            raise MetadataError(f"AUR API error: Status: {res.status_code}", package=package)
        try:
            payload = res.json()
        except ValueError as e:
            raise MetadataError(f"Failed to parse AUR response: {e}", package=package)
        if not isinstance(payload, dict):
            raise MetadataError("Failed to parse AUR response: not a JSON object", package=package)
        if payload.get("type") == "error":
            raise MetadataError(f"AUR API error: {payload.get('error')}", package=package)
        results = payload.get("results") or []
        if not isinstance(results, list):
            raise MetadataError("Failed to parse AUR response: 'results' is not a list", package=package)
        return results

    def search(self, query: str) -> List[AurPackage]:
        results = self._rpc({"type": "search", "by": "name", "arg": query})
        return [AurPackage.from_rpc(r) for r in results]

    def get_info(self, name: str) -> AurPackage:
        results = self._rpc({"type": "info", "arg": name}, package=name)
        if not results:
            raise PackageNotFound("Package not found in AUR", package=name)
        return AurPackage.from_rpc(results[-1])
