from .config import IngestionConfig
from .extraction import extract_text
from .models import DocumentChunk
from .pipeline import IngestionPipeline
from .text_processing import chunk_text, make_chunk_id, split_sentences

__all__ = [
    "IngestionConfig",
    "IngestionPipeline",
    "DocumentChunk",
    "extract_text",
    "chunk_text",
    "make_chunk_id",
    "split_sentences",
]
