"""Tests for filename resolution and outbound HTTP calls."""

import json

import httpx
import pytest

from websync.services.filenames import (
    DEFAULT_FILENAME,
    FilenameError,
    filename_from_content_disposition,
    resolve_filename,
    sanitize_filename,
    unique_filename,
)
from websync.services.http_gateway import GatewayError

BACKUP_URL = "https://backup.example.com/export/report.csv"


class TestFilenames:
    def test_content_disposition_filename(self):
        header = 'attachment; filename="db-2026.sql.gz"'

        assert filename_from_content_disposition(header) == "db-2026.sql.gz"

    def test_extended_filename_wins(self):
        header = "attachment; filename=plain.txt; filename*=UTF-8''caf%C3%A9.txt"

        assert filename_from_content_disposition(header) == "café.txt"

    def test_header_without_filename(self):
        assert filename_from_content_disposition("inline") is None
        assert filename_from_content_disposition(None) is None

    def test_falls_back_to_last_url_segment(self):
        assert resolve_filename(None, BACKUP_URL) == "report.csv"

    def test_default_name_when_nothing_usable(self):
        assert resolve_filename(None, "https://backup.example.com/") == DEFAULT_FILENAME
        assert resolve_filename('attachment; filename=".."', "https://backup.example.com/") == DEFAULT_FILENAME

    def test_sanitize_strips_traversal(self):
        cleaned = sanitize_filename("../../etc/passwd")

        assert "/" not in cleaned
        assert cleaned not in ("", ".", "..")
        assert sanitize_filename('a<b>c:d"e|f?g*h') == "abcdefgh"
        assert sanitize_filename("CON") == ""

    def test_unique_filename_appends_counter(self, tmp_path):
        (tmp_path / "report.csv").write_text("original")

        assert unique_filename(tmp_path, "report.csv") == "report_0.csv"

        (tmp_path / "report_0.csv").write_text("second")

        assert unique_filename(tmp_path, "report.csv") == "report_1.csv"
        assert unique_filename(tmp_path, "fresh.csv") == "fresh.csv"

    def test_unique_filename_skips_reserved_names(self, tmp_path):
        assert unique_filename(tmp_path, "log.json", reserved=["log.json"]) == "log_0.json"
        assert unique_filename(tmp_path, "log_0.json", reserved=["log_0.json"]) == "log_0_0.json"
        assert unique_filename(tmp_path, "report.csv", reserved=["log.json"]) == "report.csv"

    def test_unique_filename_without_extension(self, tmp_path):
        (tmp_path / "dump").write_text("x")

        assert unique_filename(tmp_path, "dump") == "dump_0"

    def test_unique_filename_gives_up(self, tmp_path):
        for name in ("report.csv", "report_0.csv", "report_1.csv"):
            (tmp_path / name).write_text("x")

        with pytest.raises(FilenameError):
            unique_filename(tmp_path, "report.csv", max_attempts=2)


class TestDownload:
    async def test_streams_body_to_folder(self, server, tmp_path):
        server.add("GET", BACKUP_URL, content=b"a,b\n1,2\n")

        result = await server.gateway().download(BACKUP_URL, tmp_path / "reports")

        assert result.filename == "report.csv"
        assert result.size == 8
        assert (tmp_path / "reports" / "report.csv").read_bytes() == b"a,b\n1,2\n"

    async def test_collision_keeps_original(self, server, tmp_path):
        folder = tmp_path / "reports"
        folder.mkdir()
        (folder / "report.csv").write_bytes(b"old")
        server.add("GET", BACKUP_URL, content=b"new")

        result = await server.gateway().download(BACKUP_URL, folder)

        assert result.filename == "report_0.csv"
        assert (folder / "report.csv").read_bytes() == b"old"
        assert (folder / "report_0.csv").read_bytes() == b"new"

    async def test_reserved_name_is_never_written(self, server, tmp_path):
        url = "https://backup.example.com/export/log.json"
        server.add("GET", url, content=b"artifact")

        result = await server.gateway().download(url, tmp_path, reserved=("log.json",))

        assert result.filename == "log_0.json"
        assert not (tmp_path / "log.json").exists()
        assert (tmp_path / "log_0.json").read_bytes() == b"artifact"

    async def test_content_disposition_name_is_used(self, server, tmp_path):
        server.add(
            "GET",
            BACKUP_URL,
            content=b"dump",
            headers={"Content-Disposition": 'attachment; filename="nightly.sql"'},
        )

        result = await server.gateway().download(BACKUP_URL, tmp_path)

        assert result.filename == "nightly.sql"

    async def test_bearer_header_only_with_token(self, server, tmp_path):
        server.add("GET", BACKUP_URL, content=b"x")
        gateway = server.gateway()

        await gateway.download(BACKUP_URL, tmp_path, token="abc")
        await gateway.download(BACKUP_URL, tmp_path, token="")

        first, second = server.requests
        assert first.headers["Authorization"] == "Bearer abc"
        assert "Authorization" not in second.headers

    async def test_non_2xx_raises_and_writes_nothing(self, server, tmp_path):
        server.add("GET", BACKUP_URL, status=500, content=b"boom")

        with pytest.raises(GatewayError, match="500"):
            await server.gateway().download(BACKUP_URL, tmp_path / "reports")

        assert list((tmp_path / "reports").iterdir()) == []

    async def test_connection_error_is_gateway_error(self, server, tmp_path):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        server.add_handler("GET", BACKUP_URL, refuse)

        with pytest.raises(GatewayError):
            await server.gateway().download(BACKUP_URL, tmp_path)


class TestUploadAndPost:
    async def test_upload_sends_multipart_file_field(self, server, tmp_path):
        artifact = tmp_path / "nightly.sql"
        artifact.write_bytes(b"CREATE TABLE t;")
        server.add("POST", "https://backup.example.com/restore")

        await server.gateway().upload("https://backup.example.com/restore", artifact, token="abc")

        request = server.requests[0]
        assert request.headers["Authorization"] == "Bearer abc"
        assert request.headers["Content-Type"].startswith("multipart/form-data")
        assert b'name="file"; filename="nightly.sql"' in request.content
        assert b"CREATE TABLE t;" in request.content

    async def test_upload_failure_status(self, server, tmp_path):
        artifact = tmp_path / "nightly.sql"
        artifact.write_bytes(b"x")
        server.add("POST", "https://backup.example.com/restore", status=413)

        with pytest.raises(GatewayError, match="413"):
            await server.gateway().upload("https://backup.example.com/restore", artifact)

    async def test_post_json_sends_payload(self, server):
        server.add("POST", "https://hooks.example.com/log")

        await server.gateway().post_json("https://hooks.example.com/log", {"description": "down"}, token="t")

        request = server.requests[0]
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Authorization"] == "Bearer t"
        assert json.loads(request.content) == {"description": "down"}

    async def test_post_json_error_includes_response_body(self, server):
        server.add("POST", "https://hooks.example.com/log", status=401, content=b"bad token")

        with pytest.raises(GatewayError, match="bad token"):
            await server.gateway().post_json("https://hooks.example.com/log", {})


class TestProbe:
    async def test_probe_success_has_no_auth(self, server):
        server.add("GET", "https://site.example.com/")

        await server.gateway().probe("https://site.example.com/")

        assert "Authorization" not in server.requests[0].headers

    async def test_probe_failure(self, server):
        server.add("GET", "https://site.example.com/", status=503)

        with pytest.raises(GatewayError, match="503"):
            await server.gateway().probe("https://site.example.com/")
