import logging
from typing import Optional

from .pdf_loader import PDFLoader
from .docx_loader import DocxLoader
from .text_loader import TextLoader

logger = logging.getLogger(__name__)


class CompositeLoader:
    """Dispatches raw file bytes to a parser by MIME type."""

    def __init__(self, loaders: Optional[list] = None):
        self._by_mime = {}
        for loader in loaders or [PDFLoader(), DocxLoader(), TextLoader()]:
            for mime_type in loader.MIME_TYPES:
                self._by_mime.setdefault(mime_type, loader)

    @property
    def mime_types(self) -> set[str]:
        return set(self._by_mime)

    def supports(self, mime_type: str) -> bool:
        return mime_type in self._by_mime

    def load(self, data: bytes, mime_type: str, name: str = "") -> Optional[str]:
        """Parse bytes; a parser failure is logged and yields None."""
        loader = self._by_mime.get(mime_type)
        if loader is None:
            return None
        try:
            return loader.load(data)
        except Exception as e:
            logger.error(f"Failed to parse {name or mime_type} as {mime_type}: {e}")
            return None
