import io
import logging
import zipfile
from pathlib import Path

from docx import Document
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PdfReadError

from invisible_hr.exceptions import UnsupportedFileTypeError

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".txt", ".pdf", ".docx")


def _extract_txt(file_bytes: bytes) -> str:
    return file_bytes.decode("utf-8")


def _extract_pdf(file_bytes: bytes) -> str:
    reader = PdfReader(io.BytesIO(file_bytes))
    pages = [page.extract_text() or "" for page in reader.pages]
    return "\n".join(pages)


def _extract_docx(file_bytes: bytes) -> str:
    document = Document(io.BytesIO(file_bytes))
    return "\n".join(paragraph.text for paragraph in document.paragraphs)


EXTRACTORS = {
    ".txt": _extract_txt,
    ".pdf": _extract_pdf,
    ".docx": _extract_docx,
}


def extract_text(file_bytes: bytes, filename: str) -> str:
    """
    Extract plain text from an uploaded file based on its extension.

    Args:
        file_bytes: Raw file content
        filename: Original filename, used only for its extension

    Returns:
        Extracted text (may be empty)

    Raises:
        UnsupportedFileTypeError: Unknown extension or a file that cannot be parsed
    """
    extension = Path(filename).suffix.lower()
    extractor = EXTRACTORS.get(extension)
    if extractor is None:
        raise UnsupportedFileTypeError(filename, f"unsupported extension '{extension or '(none)'}'")

    try:
        text = extractor(file_bytes)
    except UnicodeDecodeError as e:
        raise UnsupportedFileTypeError(filename, f"not valid UTF-8 text ({e.reason})") from e
    except PdfReadError as e:
        raise UnsupportedFileTypeError(filename, f"invalid PDF ({e})") from e
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise UnsupportedFileTypeError(filename, f"could not parse file ({e})") from e

    logger.info(f"Extracted {len(text)} characters from {filename}")
    return text
