import asyncio
import logging
from datetime import datetime, timezone
from pathlib import Path

from drive_search.core.errors import BuildError
from drive_search.core.models.document import DocumentRef
from drive_search.infrastructure.document_loaders import DOCX_MIME, CompositeLoader

logger = logging.getLogger(__name__)

EXTENSION_MIME = {
    ".pdf": "application/pdf",
    ".docx": DOCX_MIME,
    ".txt": "text/plain",
    ".md": "text/markdown",
    ".markdown": "text/markdown",
    ".csv": "text/csv",
}
DEFAULT_MIME = "application/octet-stream"


class LocalDocumentSource:
    """Document source over a local folder tree."""

    def __init__(self, docs_path: str = "./docs", loader: CompositeLoader | None = None):
        self._docs_path = Path(docs_path)
        self._loader = loader or CompositeLoader()

    async def list_all_documents(self, root_id: str) -> list[DocumentRef]:
        return await asyncio.to_thread(self._list, Path(root_id))

    def _list(self, root: Path) -> list[DocumentRef]:
        if not root.is_dir():
            raise BuildError(BuildError.MISSING_ROOT, f"docs path not found: {root}")

        refs = []
        for file_path in sorted(root.rglob("*")):
            if not file_path.is_file() or file_path.name.startswith("."):
                continue
            stat = file_path.stat()
            refs.append(
                DocumentRef(
                    id=str(file_path.resolve()),
                    display_name=file_path.name,
                    mime_type=EXTENSION_MIME.get(file_path.suffix.lower(), DEFAULT_MIME),
                    view_url=file_path.resolve().as_uri(),
                    modified_at=datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc).isoformat(),
                )
            )

        logger.info(f"Listed {len(refs)} files under {root}")
        return refs

    async def extract_text(self, ref: DocumentRef) -> str:
        if not self._loader.supports(ref.mime_type):
            return ""
        data = await asyncio.to_thread(Path(ref.id).read_bytes)
        return await asyncio.to_thread(self._loader.load, data, ref.mime_type, ref.display_name) or ""

    async def ping(self) -> bool:
        return self._docs_path.is_dir()
