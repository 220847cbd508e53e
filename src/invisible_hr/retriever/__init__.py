from .config import RetrievalConfig
from .models import RetrievedChunk
from .retriever import PolicyRetriever

__all__ = ["RetrievalConfig", "RetrievedChunk", "PolicyRetriever"]
