"""
Invisible HR backend.

An HR assistant that answers policy questions with RAG (Retrieval-Augmented
Generation), benchmarks salaries against internal peers and tracks visa
compliance.

Components:
- ingestion: Text extraction, sentence-aware chunking and vector upsert
- vectorstore: Weaviate, S3 Vectors and in-memory vector backends
- retriever: Top-K semantic retrieval of policy chunks
- agent: Tool-calling chat orchestrator built on LangGraph
- benchmark: Salary similarity scoring, statistics and equity checks
"""

__version__ = "0.1.0"
