"""Tests for definition loading, artifact writing and .env lookup."""

import json

import pytest
import requests

from ormgen.codegen.core.generator import Artifact
from ormgen.utils import (
    ArtifactWriteError,
    DefinitionLoaderError,
    find_database_url,
    load_definitions,
    load_definitions_from_file,
    load_definitions_from_url,
    write_artifacts,
)

DEFINITIONS = [
    {
        "name": "invoices",
        "displayName": "Invoice",
        "fields": [
            {"name": "id", "type": "identifier", "isPrimaryKey": True},
            {"name": "total", "type": "integer", "required": True},
        ],
    }
]


class FakeResponse:
    def __init__(self, payload=None, status_code=200, invalid_json=False):
        self.payload = payload
        self.status_code = status_code
        self.invalid_json = invalid_json

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.exceptions.HTTPError(response=self)

    def json(self):
        if self.invalid_json:
            raise ValueError("Expecting value")
        return self.payload


class TestLoadFromFile:
    def test_valid_file(self, tmp_path):
        """Definitions are parsed into tables."""
        path = tmp_path / "tables.json"
        path.write_text(json.dumps(DEFINITIONS))
        source, tables = load_definitions_from_file(path)
        assert source == str(path)
        assert [t.name for t in tables] == ["invoices"]
        assert tables[0].primary_key.name == "id"

    def test_missing_file(self, tmp_path):
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_definitions_from_file(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path):
        """Malformed JSON is a loader error."""
        path = tmp_path / "tables.json"
        path.write_text("{")
        with pytest.raises(DefinitionLoaderError, match="Invalid JSON"):
            load_definitions_from_file(path)

    def test_invalid_definitions(self, tmp_path):
        """A table without a primary key is rejected."""
        path = tmp_path / "tables.json"
        path.write_text(json.dumps({"name": "bad", "fields": [{"name": "x", "type": "string"}]}))
        with pytest.raises(DefinitionLoaderError, match="Invalid table definitions"):
            load_definitions_from_file(path)


class TestLoadFromUrl:
    def test_valid_url(self, monkeypatch):
        """The response body is parsed as definitions."""
        calls = []

        def fake_get(url, timeout):
            calls.append((url, timeout))
            return FakeResponse({"tables": DEFINITIONS})

        monkeypatch.setattr(requests, "get", fake_get)
        source, tables = load_definitions_from_url("https://example.com/tables.json", timeout=5)
        assert source == "https://example.com/tables.json"
        assert tables[0].display_name == "Invoice"
        assert calls == [("https://example.com/tables.json", 5)]

    def test_invalid_url(self):
        """Only http and https URLs are fetched."""
        with pytest.raises(DefinitionLoaderError, match="Invalid URL"):
            load_definitions_from_url("ftp://example.com/tables.json")

    def test_http_error(self, monkeypatch):
        """HTTP errors include the status code."""
        monkeypatch.setattr(requests, "get", lambda url, timeout: FakeResponse(status_code=404))
        with pytest.raises(DefinitionLoaderError, match="HTTP error 404"):
            load_definitions_from_url("https://example.com/missing.json")

    def test_timeout(self, monkeypatch):
        """Timeouts are reported as loader errors."""

        def fake_get(url, timeout):
            raise requests.exceptions.Timeout()

        monkeypatch.setattr(requests, "get", fake_get)
        with pytest.raises(DefinitionLoaderError, match="timeout"):
            load_definitions_from_url("https://example.com/slow.json")

    def test_connection_error(self, monkeypatch):
        """Connection failures are reported as loader errors."""

        def fake_get(url, timeout):
            raise requests.exceptions.ConnectionError("refused")

        monkeypatch.setattr(requests, "get", fake_get)
        with pytest.raises(DefinitionLoaderError, match="Connection error"):
            load_definitions_from_url("https://example.com/tables.json")

    def test_invalid_json_response(self, monkeypatch):
        """Non-JSON bodies are rejected."""
        monkeypatch.setattr(
            requests, "get", lambda url, timeout: FakeResponse(invalid_json=True)
        )
        with pytest.raises(DefinitionLoaderError, match="Invalid JSON response"):
            load_definitions_from_url("https://example.com/page.html")


class TestLoadDefinitions:
    def test_requires_one_source(self):
        """Exactly one of file and URL must be given."""
        with pytest.raises(DefinitionLoaderError, match="must be provided"):
            load_definitions()
        with pytest.raises(DefinitionLoaderError, match="both"):
            load_definitions(file_path="a.json", url="https://example.com")


class TestWriteArtifacts:
    def test_writes_nested_paths(self, tmp_path):
        """Parent directories are created as needed."""
        artifacts = [
            Artifact("lib/db/schema.ts", "export {}\n"),
            Artifact("drizzle.config.ts", "config\n"),
        ]
        written = write_artifacts(artifacts, tmp_path)
        assert written == [
            (tmp_path / "lib" / "db" / "schema.ts").resolve(),
            (tmp_path / "drizzle.config.ts").resolve(),
        ]
        assert (tmp_path / "lib" / "db" / "schema.ts").read_text() == "export {}\n"

    def test_rejects_escaping_paths(self, tmp_path):
        """Paths outside the output directory are refused before any write."""
        artifacts = [Artifact("lib/ok.ts", "ok"), Artifact("../evil.ts", "bad")]
        with pytest.raises(ArtifactWriteError, match="escapes"):
            write_artifacts(artifacts, tmp_path / "out")
        assert not (tmp_path / "out" / "lib" / "ok.ts").exists()
        assert not (tmp_path / "evil.ts").exists()

    def test_no_overwrite(self, tmp_path):
        """Existing files are kept when overwriting is off."""
        (tmp_path / "schema.ts").write_text("old")
        with pytest.raises(ArtifactWriteError, match="already exists"):
            write_artifacts([Artifact("schema.ts", "new")], tmp_path, overwrite=False)
        assert (tmp_path / "schema.ts").read_text() == "old"


class TestFindDatabaseUrl:
    def test_not_found(self, tmp_path):
        """No .env files means no URL."""
        assert find_database_url(tmp_path) is None

    def test_first_file_wins(self, tmp_path):
        """Files are searched in order."""
        (tmp_path / ".env").write_text("DATABASE_URL=postgres://localhost/app\n")
        (tmp_path / ".env.local").write_text("DATABASE_URL=mysql://localhost/app\n")
        url, path = find_database_url(tmp_path)
        assert url == "postgres://localhost/app"
        assert path == tmp_path / ".env"

    def test_quotes_and_other_variables(self, tmp_path):
        """Quoted values and alternative variable names are recognised."""
        (tmp_path / "apps" / "api").mkdir(parents=True)
        (tmp_path / "apps" / "api" / ".env").write_text(
            "# database\nPORT=3000\nPOSTGRES_URL = 'postgresql://db/app'\n"
        )
        url, _ = find_database_url(tmp_path)
        assert url == "postgresql://db/app"

    def test_commented_line_ignored(self, tmp_path):
        """Commented-out assignments are not matched."""
        (tmp_path / ".env").write_text("# DATABASE_URL=mysql://old\nDB_URL=file:./dev.db\n")
        url, _ = find_database_url(tmp_path)
        assert url == "file:./dev.db"
