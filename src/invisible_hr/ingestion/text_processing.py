import re
from typing import List

from invisible_hr.exceptions import ValidationError

# A sentence ends at a run of terminal punctuation followed by whitespace or
# the end of the text. The whitespace belongs to the sentence. Matches only
# start at the first mark of a run, which keeps the scan linear.
SENTENCE_END = re.compile(r"(?<![.!?])[.!?]+(?:\s+|$)")


def split_sentences(text: str) -> List[str]:
    """
    Split text into sentence units.

    The units are contiguous: joining them gives back the input. Text after the
    last terminator is kept as a final unit.
    """
    units = []
    position = 0
    for match in SENTENCE_END.finditer(text):
        units.append(text[position : match.end()])
        position = match.end()
    if position < len(text):
        units.append(text[position:])
    return units


def chunk_text(text: str, chunk_size: int = 800, overlap: int = 200) -> List[str]:
    """
    Split text into sentence-aligned chunks that overlap by up to `overlap` characters.

    Sentences are never split, so a single sentence longer than `chunk_size`
    becomes one oversized chunk.
    """
    if chunk_size <= 0:
        raise ValidationError("chunk_size must be positive", field="chunk_size")
    if overlap < 0 or overlap >= chunk_size:
        raise ValidationError("overlap must be in [0, chunk_size)", field="overlap")

    if not text or not text.strip():
        return []

    chunks = []
    buffer = ""
    for sentence in split_sentences(text):
        if buffer and len(buffer) + len(sentence) > chunk_size:
            flushed = buffer.strip()
            if flushed:
                chunks.append(flushed)
            # Shrink the overlap only when the sentence itself fits in a chunk
            if len(sentence) < chunk_size:
                seed_length = min(overlap, chunk_size - len(sentence), len(buffer))
            else:
                seed_length = min(overlap, len(buffer))
            seed = buffer[len(buffer) - seed_length :] if seed_length else ""
            buffer = seed + sentence
        else:
            buffer += sentence

    if buffer.strip():
        chunks.append(buffer.strip())

    return chunks


def make_chunk_id(document_id: str, index: int) -> str:
    """Stable chunk id derived from the owning document and the chunk ordinal."""
    return f"{document_id}-chunk-{index}"

