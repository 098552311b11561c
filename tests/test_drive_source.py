"""Tests for the Google Drive document source."""

import httpx
import pytest

from drive_search.core.errors import (
    BuildError,
    ConfigurationError,
    MalformedProviderResponse,
    ProviderUnavailable,
)
from drive_search.core.models.document import DocumentRef
from drive_search.infrastructure.document_sources.drive_source import (
    FOLDER_MIME,
    DriveDocumentSource,
    escape_for_drive,
)

GDOC = "application/vnd.google-apps.document"


def file_entry(file_id, name, mime="text/plain"):
    return {
        "id": file_id,
        "name": name,
        "mimeType": mime,
        "webViewLink": f"https://drive.google.com/file/d/{file_id}/view",
        "modifiedTime": "2024-05-01T10:00:00.000Z",
    }


class FakeDrive:
    """Minimal Drive v3 API over httpx.MockTransport."""

    def __init__(self, folders, contents=None, page_size=2):
        self.folders = folders
        self.contents = contents or {}
        self.page_size = page_size
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path.removeprefix("/drive/v3")
        params = request.url.params

        if path == "/files":
            folder_id = params["q"].split("'")[1]
            entries = self.folders.get(folder_id, [])
            start = int(params.get("pageToken", 0))
            body = {"files": entries[start:start + self.page_size]}
            if start + self.page_size < len(entries):
                body["nextPageToken"] = str(start + self.page_size)
            return httpx.Response(200, json=body)

        if path.endswith("/export"):
            file_id = path.split("/")[2]
            return httpx.Response(200, text=self.contents[file_id])

        file_id = path.split("/")[2]
        if params.get("alt") == "media":
            return httpx.Response(200, content=self.contents[file_id].encode())
        if file_id in self.folders:
            return httpx.Response(200, json={"id": file_id, "mimeType": FOLDER_MIME})
        return httpx.Response(404, json={"error": {"code": 404}})


def make_source(handler, token="token-123"):
    return DriveDocumentSource(
        access_token=token,
        api_url="https://www.googleapis.com/drive/v3",
        transport=httpx.MockTransport(handler),
    )


class TestListing:

    @pytest.mark.asyncio
    async def test_lists_nested_folders_across_pages(self):
        drive = FakeDrive({
            "root": [
                file_entry("a", "a.txt"),
                file_entry("sub", "Sub", FOLDER_MIME),
                file_entry("b", "b.pdf", "application/pdf"),
            ],
            "sub": [file_entry("c", "c.txt"), file_entry("d", "Notes", GDOC)],
        })
        source = make_source(drive)

        refs = await source.list_all_documents("root")

        assert sorted(r.id for r in refs) == ["a", "b", "c", "d"]
        c = next(r for r in refs if r.id == "c")
        assert c.display_name == "c.txt"
        assert c.view_url == "https://drive.google.com/file/d/c/view"
        assert c.modified_at == "2024-05-01T10:00:00.000Z"
        assert any("pageToken" in r.url.params for r in drive.requests)

    @pytest.mark.asyncio
    async def test_sends_bearer_token(self):
        drive = FakeDrive({"root": []})

        await make_source(drive).list_all_documents("root")

        assert all(r.headers["Authorization"] == "Bearer token-123" for r in drive.requests)

    @pytest.mark.asyncio
    async def test_missing_root_is_build_error(self):
        source = make_source(FakeDrive({}))

        with pytest.raises(BuildError) as exc_info:
            await source.list_all_documents("nope")

        assert exc_info.value.reason == BuildError.MISSING_ROOT

    @pytest.mark.asyncio
    async def test_rejected_credentials_are_provider_unavailable(self):
        source = make_source(lambda request: httpx.Response(401))

        with pytest.raises(ProviderUnavailable):
            await source.list_all_documents("root")

    @pytest.mark.asyncio
    async def test_server_error_is_provider_unavailable(self):
        def handler(request):
            if request.url.path.endswith("/files"):
                return httpx.Response(500, text="backend error")
            return httpx.Response(200, json={"id": "root", "mimeType": FOLDER_MIME})

        with pytest.raises(ProviderUnavailable):
            await make_source(handler).list_all_documents("root")

    @pytest.mark.asyncio
    async def test_non_json_listing_is_malformed(self):
        def handler(request):
            if request.url.path.endswith("/files"):
                return httpx.Response(200, text="<html>login</html>")
            return httpx.Response(200, json={"id": "root", "mimeType": FOLDER_MIME})

        with pytest.raises(MalformedProviderResponse):
            await make_source(handler).list_all_documents("root")

    @pytest.mark.asyncio
    async def test_transport_failure_is_provider_unavailable(self):
        def handler(request):
            raise httpx.ConnectError("connection refused", request=request)

        with pytest.raises(ProviderUnavailable):
            await make_source(handler).list_all_documents("root")

    @pytest.mark.asyncio
    async def test_missing_token_is_configuration_error(self):
        source = make_source(FakeDrive({"root": []}), token="")

        with pytest.raises(ConfigurationError):
            await source.list_all_documents("root")


class TestExtractText:

    @pytest.mark.asyncio
    async def test_exports_google_docs_as_text(self):
        drive = FakeDrive({}, contents={"d": "exported body"})
        ref = DocumentRef(id="d", display_name="Notes", mime_type=GDOC)

        text = await make_source(drive).extract_text(ref)

        assert text == "exported body"
        assert drive.requests[0].url.params["mimeType"] == "text/plain"

    @pytest.mark.asyncio
    async def test_downloads_plain_text(self):
        drive = FakeDrive({}, contents={"a": "plain body"})
        ref = DocumentRef(id="a", display_name="a.txt", mime_type="text/plain")

        assert await make_source(drive).extract_text(ref) == "plain body"

    @pytest.mark.asyncio
    async def test_unsupported_type_yields_empty_text(self):
        drive = FakeDrive({})
        ref = DocumentRef(id="img", display_name="photo.png", mime_type="image/png")

        assert await make_source(drive).extract_text(ref) == ""
        assert drive.requests == []


class TestEscapeForDrive:

    def test_escapes_quotes(self):
        assert escape_for_drive("it's") == "it\\'s"

    def test_escapes_backslashes_first(self):
        assert escape_for_drive("a\\'b") == "a\\\\\\'b"
