from dataclasses import dataclass


@dataclass
class DocumentChunk:
    """Chunk of a document's text prior to embedding."""

    chunk_id: str
    document_id: str
    filename: str
    chunk_index: int
    text: str

    @property
    def metadata(self) -> dict:
        return {"source": self.document_id, "filename": self.filename}
