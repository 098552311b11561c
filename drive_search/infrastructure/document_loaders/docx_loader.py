from io import BytesIO

from docx import Document

DOCX_MIME = "application/vnd.openxmlformats-officedocument.wordprocessingml.document"


class DocxLoader:

    MIME_TYPES = {DOCX_MIME}

    def supports(self, mime_type: str) -> bool:
        return mime_type in self.MIME_TYPES

    def load(self, data: bytes) -> str:
        doc = Document(BytesIO(data))
        paragraphs = [p.text.strip() for p in doc.paragraphs if p.text.strip()]
        return "\n\n".join(paragraphs)
