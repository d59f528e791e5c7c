import logging
from pathlib import Path

from llama_index.core import Document
from llama_index.core.node_parser import MarkdownNodeParser, SentenceSplitter

from .files import list_source_files
from .models import ChunkType, CodeChunk
from .tokens import estimate_tokens

logger = logging.getLogger(__name__)

CHUNK_SIZE = 1000
CHUNK_OVERLAP = 100


def _sentence_splitter(max_size: int, overlap: int) -> SentenceSplitter:
    # tokenizer=list makes every unit a character
    return SentenceSplitter(
        chunk_size=max_size,
        chunk_overlap=overlap,
        tokenizer=list,
        paragraph_separator="\n\n",
    )


def _split_markdown(text: str, splitter: SentenceSplitter) -> list[str]:
    sections = MarkdownNodeParser().get_nodes_from_documents([Document(text=text)])
    chunks: list[str] = []
    for section in sections:
        chunks.extend(splitter.split_text(section.get_content()))
    return chunks


def split_text(
    text: str,
    chunk_type: ChunkType,
    max_size: int = CHUNK_SIZE,
    overlap: int = CHUNK_OVERLAP,
) -> list[str]:
    """Split `text` into ordered chunks of at most `max_size` characters.

    Markdown is first cut at header boundaries; everything is then split
    recursively (paragraph, sentence, word, character) with `overlap`
    characters carried between consecutive chunks. Never returns an empty
    chunk; if splitting yields nothing the whole trimmed text is one chunk.
    """
    trimmed = text.strip()
    if not trimmed:
        return []

    splitter = _sentence_splitter(max_size, overlap)
    chunks: list[str] = []

    if chunk_type == "markdown":
        try:
            chunks = _split_markdown(text, splitter)
        except Exception:
            logger.debug("Markdown splitting failed, falling back to plain splitting", exc_info=True)
            chunks = []

    if not chunks:
        chunks = splitter.split_text(text)

    chunks = [c for c in chunks if c.strip()]
    if chunks:
        return chunks
    return [trimmed]


def chunk_repository_files(
    repo_path: str | Path,
    repository_id: str,
    repository_url: str,
) -> list[CodeChunk]:
    """Walk a cloned repository and chunk every eligible file, in walk order."""
    chunks: list[CodeChunk] = []
    for source in list_source_files(repo_path):
        for chunk_index, content in enumerate(split_text(source.content, source.type)):
            chunks.append(
                CodeChunk(
                    repository_id=repository_id,
                    repository_url=repository_url,
                    file_path=source.relative_path,
                    file_extension=source.extension,
                    chunk_index=chunk_index,
                    type=source.type,
                    content=content,
                    token_estimate=estimate_tokens(content),
                )
            )
    return chunks
