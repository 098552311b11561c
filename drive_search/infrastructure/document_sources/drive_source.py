import asyncio
import logging
from typing import Optional

import httpx

from drive_search.core.errors import (
    BuildError,
    ConfigurationError,
    MalformedProviderResponse,
    ProviderUnavailable,
)
from drive_search.core.models.document import DocumentRef
from drive_search.infrastructure.document_loaders import CompositeLoader

logger = logging.getLogger(__name__)

FOLDER_MIME = "application/vnd.google-apps.folder"

# Google-native types have no binary content and must be exported.
EXPORT_MIME = {
    "application/vnd.google-apps.document": "text/plain",
    "application/vnd.google-apps.presentation": "text/plain",
    "application/vnd.google-apps.spreadsheet": "text/csv",
}

LIST_FIELDS = "nextPageToken, files(id, name, mimeType, webViewLink, modifiedTime)"


def escape_for_drive(value: str) -> str:
    """Escape single quotes for a Drive query string literal."""
    return str(value).replace("\\", "\\\\").replace("'", "\\'")


class DriveDocumentSource:
    """Document source backed by the Google Drive v3 REST API."""

    def __init__(
        self,
        access_token: str,
        api_url: str = "https://www.googleapis.com/drive/v3",
        timeout: float = 30.0,
        page_size: int = 100,
        loader: Optional[CompositeLoader] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize Drive source.

        Args:
            access_token: OAuth bearer token with drive.readonly scope.
            api_url: Drive API base URL.
            timeout: HTTP timeout per request.
            page_size: Files per listing page.
            loader: Loader chain for binary files.
            transport: Custom httpx transport (tests).
        """
        self._access_token = access_token
        self._api_url = api_url.rstrip("/")
        self._timeout = timeout
        self._page_size = page_size
        self._loader = loader or CompositeLoader()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self._access_token:
            raise ConfigurationError("DRIVE_SEARCH_DRIVE_ACCESS_TOKEN is not set")
        return httpx.AsyncClient(
            base_url=self._api_url,
            headers={"Authorization": f"Bearer {self._access_token}"},
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _get(self, client: httpx.AsyncClient, path: str, params: dict) -> httpx.Response:
        try:
            resp = await client.get(path, params=params)
        except httpx.TransportError as e:
            raise ProviderUnavailable(f"Drive unreachable: {e}") from e
        if resp.status_code in (401, 403):
            raise ProviderUnavailable(f"Drive rejected credentials ({resp.status_code})")
        return resp

    async def list_all_documents(self, root_id: str) -> list[DocumentRef]:
        async with self._client() as client:
            resp = await self._get(client, f"/files/{root_id}", {
                "fields": "id, mimeType",
                "supportsAllDrives": "true",
            })
            if resp.status_code == 404:
                raise BuildError(BuildError.MISSING_ROOT, f"Drive folder {root_id} not found")
            self._raise_for_status(resp)

            refs: list[DocumentRef] = []
            folders = [root_id]
            visited = {root_id}
            while folders:
                folder_id = folders.pop(0)
                for item in await self._list_folder(client, folder_id):
                    if item.get("mimeType") == FOLDER_MIME:
                        if item["id"] not in visited:
                            visited.add(item["id"])
                            folders.append(item["id"])
                        continue
                    refs.append(
                        DocumentRef(
                            id=item["id"],
                            display_name=item.get("name", item["id"]),
                            mime_type=item.get("mimeType", ""),
                            view_url=item.get("webViewLink", ""),
                            modified_at=item.get("modifiedTime"),
                        )
                    )

        logger.info(f"Listed {len(refs)} files in {len(visited)} Drive folders")
        return refs

    async def _list_folder(self, client: httpx.AsyncClient, folder_id: str) -> list[dict]:
        items: list[dict] = []
        page_token: Optional[str] = None
        while True:
            params = {
                "q": f"'{escape_for_drive(folder_id)}' in parents and trashed = false",
                "fields": LIST_FIELDS,
                "pageSize": self._page_size,
                "orderBy": "name",
                "supportsAllDrives": "true",
                "includeItemsFromAllDrives": "true",
            }
            if page_token:
                params["pageToken"] = page_token
            resp = await self._get(client, "/files", params)
            self._raise_for_status(resp)
            try:
                data = resp.json()
            except ValueError as e:
                raise MalformedProviderResponse(f"Drive listing is not JSON: {e}") from e
            items.extend(data.get("files", []))
            page_token = data.get("nextPageToken")
            if not page_token:
                return items

    async def extract_text(self, ref: DocumentRef) -> str:
        async with self._client() as client:
            export_mime = EXPORT_MIME.get(ref.mime_type)
            if export_mime:
                resp = await self._get(client, f"/files/{ref.id}/export", {"mimeType": export_mime})
                self._raise_for_status(resp)
                return resp.text

            if not self._loader.supports(ref.mime_type):
                logger.debug(f"Unsupported type {ref.mime_type}: {ref.display_name}")
                return ""

            resp = await self._get(client, f"/files/{ref.id}", {
                "alt": "media",
                "supportsAllDrives": "true",
            })
            self._raise_for_status(resp)
            data = resp.content

        text = await asyncio.to_thread(self._loader.load, data, ref.mime_type, ref.display_name)
        return text or ""

    async def ping(self) -> bool:
        async with self._client() as client:
            resp = await self._get(client, "/about", {"fields": "user"})
            return resp.status_code == 200

    def _raise_for_status(self, resp: httpx.Response) -> None:
        if resp.is_error:
            raise ProviderUnavailable(f"Drive error {resp.status_code}: {resp.text[:200]}")
