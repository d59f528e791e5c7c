import logging
import os
from dataclasses import dataclass
from pathlib import Path

from .models import ChunkType

logger = logging.getLogger(__name__)

MAX_FILE_BYTES = 10 * 1024 * 1024  # 10 MiB

SKIP_DIRS = {
    ".git",
    "node_modules",
    ".next",
    "dist",
    "build",
    "coverage",
    ".turbo",
    ".vercel",
    "__pycache__",
    ".venv",
}

MARKDOWN_EXTENSIONS = {".md", ".mdx", ".markdown"}
CODE_EXTENSIONS = {
    ".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs",
    ".json", ".yml", ".yaml", ".toml",
    ".css", ".scss", ".html", ".sql", ".prisma",
    ".py", ".go", ".rs", ".java", ".rb", ".php",
    ".c", ".h", ".cpp", ".hpp", ".cs", ".sh", ".env",
}
BINARY_EXTENSIONS = {
    ".png", ".jpg", ".jpeg", ".gif", ".webp", ".ico", ".pdf",
    ".zip", ".gz", ".tar", ".7z",
    ".mp4", ".mp3", ".mov", ".avi",
    ".woff", ".woff2", ".ttf", ".otf",
    ".exe", ".dylib", ".so", ".bin",
}


@dataclass(frozen=True)
class SourceFile:
    path: Path
    relative_path: str      # forward slashes, relative to the clone root
    extension: str
    type: ChunkType
    content: str


def classify(extension: str) -> ChunkType:
    if extension in MARKDOWN_EXTENSIONS:
        return "markdown"
    if extension in CODE_EXTENSIONS:
        return "code"
    return "text"


def is_binary(path: Path, content: bytes) -> bool:
    if path.suffix.lower() in BINARY_EXTENSIONS:
        return True
    return b"\x00" in content


def walk_files(root: str | Path) -> list[Path]:
    """List candidate files under `root` in a deterministic order, pruning SKIP_DIRS."""
    result = []
    for dirpath, dirnames, filenames in os.walk(root):
        # Prune in-place so os.walk never descends into skipped dirs
        dirnames[:] = sorted(d for d in dirnames if d not in SKIP_DIRS)
        for filename in sorted(filenames):
            result.append(Path(dirpath) / filename)
    return result


def read_source_file(root: Path, path: Path) -> SourceFile | None:
    """Read and classify one file. Returns None for oversized, binary or blank files."""
    if path.suffix.lower() in BINARY_EXTENSIONS:
        return None
    try:
        if path.is_symlink() or not path.is_file() or path.stat().st_size > MAX_FILE_BYTES:
            return None
        raw = path.read_bytes()
    except OSError as e:
        logger.warning("Skipping unreadable file %s: %s", path, e)
        return None

    if is_binary(path, raw):
        return None

    content = raw.decode("utf-8", errors="replace")
    if not content.strip():
        return None

    extension = path.suffix.lower()
    return SourceFile(
        path=path,
        relative_path=path.relative_to(root).as_posix(),
        extension=extension,
        type=classify(extension),
        content=content,
    )


def list_source_files(root: str | Path) -> list[SourceFile]:
    root = Path(root)
    files = []
    for path in walk_files(root):
        source = read_source_file(root, path)
        if source is not None:
            files.append(source)
    return files
