import argparse
import logging
from pathlib import Path

from dotenv import load_dotenv

from invisible_hr.config import Settings
from invisible_hr.embeddings import create_embedding_client
from invisible_hr.employees import SEED_POLICIES
from invisible_hr.vectorstore import create_vector_store

from .config import IngestionConfig
from .pipeline import IngestionPipeline

logger = logging.getLogger("invisible_hr.ingestion")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Index HR documents into the vector store.")
    subparsers = parser.add_subparsers(dest="command", required=True)

    ingest = subparsers.add_parser("ingest", help="Ingest .txt/.pdf/.docx files")
    ingest.add_argument("files", nargs="+", type=Path)
    ingest.add_argument(
        "--document-id", type=str, default=None, help="Document id (single file only; defaults to the filename)"
    )
    ingest.add_argument("--replace", action="store_true", help="Purge existing vectors for the document first")

    subparsers.add_parser("seed-policies", help="Embed the built-in policy texts")

    purge = subparsers.add_parser("purge", help="Delete all vectors of a document")
    purge.add_argument("document_id", type=str)
    return parser


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)
    settings = Settings.from_env()
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if args.command == "ingest" and args.document_id and len(args.files) > 1:
        raise SystemExit("--document-id can only be used with a single file")

    embedding_client = create_embedding_client(settings)
    vector_store = create_vector_store(settings)
    pipeline = IngestionPipeline(
        embedding_client,
        vector_store,
        IngestionConfig(chunk_size=settings.chunk_size, chunk_overlap=settings.chunk_overlap),
    )

    try:
        if args.command == "ingest":
            for path in args.files:
                document_id = args.document_id or path.name
                run = pipeline.reingest if args.replace else pipeline.ingest
                count = run(path.read_bytes(), path.name, document_id)
                logger.info(f"{path.name}: {count} chunks")
        elif args.command == "seed-policies":
            pipeline.ingest_policies(SEED_POLICIES)
        elif args.command == "purge":
            pipeline.purge(args.document_id)
    finally:
        vector_store.close()
        embedding_client.close()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
