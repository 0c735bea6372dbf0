"""Tests for the AUR RPC client."""

from unittest.mock import MagicMock

import pytest
import requests

from aurum.modules.aur import AurClient, AurPackage
from aurum.modules.errors import MetadataError, PackageNotFound

PARU = {
    "Name": "paru",
    "Version": "2.0.3-1",
    "Description": "Feature packed AUR helper",
    "URL": "https://github.com/morganamilo/paru",
    "Maintainer": "Morganamilo",
    "NumVotes": 1024,
    "Popularity": 35.5,
    "FirstSubmitted": 1602018225,
    "LastModified": 1712000000,
}


def _client(payload=None, status=200, exc=None):
    session = MagicMock()
    if exc is not None:
        session.get.side_effect = exc
    else:
        response = MagicMock()
        response.status_code = status
        response.json.return_value = payload
        session.get.return_value = response
    return AurClient("https://aur.example.org/", timeout=5, session=session), session


class TestAurClient:
    """RPC calls and error mapping."""

    def test_info(self):
        """Test info parses every field and sends the v5 query."""
        client, session = _client({"type": "multiinfo", "resultcount": 1, "results": [PARU]})

        pkg = client.get_info("paru")

        assert pkg.name == "paru"
        assert pkg.version == "2.0.3-1"
        assert pkg.votes == 1024
        assert pkg.popularity == 35.5
        session.get.assert_called_once_with(
            "https://aur.example.org/rpc/",
            params={"v": "5", "type": "info", "arg": "paru"},
            timeout=5,
        )

    def test_info_not_found(self):
        """Test an empty result is PackageNotFound."""
        client, _ = _client({"type": "multiinfo", "resultcount": 0, "results": []})

        with pytest.raises(PackageNotFound) as exc:
            client.get_info("ghost")

        assert exc.value.package == "ghost"

    def test_search(self):
        """Test search by name returns packages."""
        client, session = _client({"type": "search", "results": [PARU, dict(PARU, Name="paru-bin")]})

        names = [p.name for p in client.search("paru")]

        assert names == ["paru", "paru-bin"]
        assert session.get.call_args.kwargs["params"]["by"] == "name"

    def test_rpc_error(self):
        """Test an RPC error payload is a metadata error."""
        client, _ = _client({"type": "error", "error": "Too many package results."})

        with pytest.raises(MetadataError) as exc:
            client.search("a")

        assert "Too many package results." in exc.value.message

    def test_http_status(self):
        """Test non-2xx responses fail."""
        client, _ = _client({}, status=503)

        with pytest.raises(MetadataError) as exc:
            client.get_info("paru")

        assert "503" in exc.value.message
        assert not isinstance(exc.value, PackageNotFound)

    def test_timeout(self):
        """Test transport timeouts are reported."""
        client, _ = _client(exc=requests.Timeout("slow"))

        with pytest.raises(MetadataError) as exc:
            client.get_info("paru")

        assert "timed out" in exc.value.message

    def test_bad_json(self):
        """Test undecodable bodies fail."""
        client, session = _client()
        session.get.return_value.json.side_effect = ValueError("Expecting value")

        with pytest.raises(MetadataError):
            client.get_info("paru")

    def test_git_url(self):
        """Test the clone URL of a package."""
        client, _ = _client()

        assert client.git_url("paru") == "https://aur.example.org/paru.git"


class TestAurPackage:
    """Record parsing."""

    def test_missing_required_field(self):
        """Test a result without a version is a parse error."""
        with pytest.raises(MetadataError):
            AurPackage.from_rpc({"Name": "paru"})

    def test_optional_fields(self):
        """Test nullable RPC fields become None/zero."""
        pkg = AurPackage.from_rpc({"Name": "x", "Version": "1-1", "Maintainer": None, "NumVotes": None})

        assert pkg.maintainer is None
        assert pkg.votes == 0

    def test_format_date(self):
        """Test dates render as month/day/year in UTC."""
        assert AurPackage.format_date(0) == "01/01/1970"
