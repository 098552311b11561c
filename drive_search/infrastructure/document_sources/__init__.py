"""Document source implementations."""
from .drive_source import DriveDocumentSource
from .local_source import LocalDocumentSource

__all__ = ["DriveDocumentSource", "LocalDocumentSource"]
