"""Document loader implementations."""
from .pdf_loader import PDFLoader
from .docx_loader import DocxLoader, DOCX_MIME
from .text_loader import TextLoader
from .composite_loader import CompositeLoader

__all__ = ["PDFLoader", "DocxLoader", "DOCX_MIME", "TextLoader", "CompositeLoader"]
