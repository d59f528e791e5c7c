"""
Tests for repoindex/splitter.py
Chunk sizing, overlap, markdown structure and whole-file fallback.
"""
from repoindex.splitter import CHUNK_SIZE, chunk_repository_files, split_text
from repoindex.tokens import estimate_tokens


def _words(n: int, prefix: str = "w") -> str:
    return " ".join(f"{prefix}{i}" for i in range(n))


class TestSplitText:
    def test_blank_text_yields_nothing(self):
        assert split_text("", "text") == []
        assert split_text("  \n ", "code") == []

    def test_small_text_is_one_trimmed_chunk(self):
        assert split_text("\n  hello world  \n", "text") == ["hello world"]

    def test_chunks_respect_max_size(self):
        chunks = split_text(_words(1500), "text")
        assert len(chunks) >= 2
        assert all(0 < len(c) <= CHUNK_SIZE for c in chunks)

    def test_consecutive_chunks_overlap(self):
        chunks = split_text(_words(1500), "text")
        for previous, current in zip(chunks, chunks[1:]):
            first_word = current.split()[0]
            assert first_word in previous.split()

    def test_chunks_cover_every_word_in_order(self):
        text = _words(1500)
        chunks = split_text(text, "text")

        covered = set()
        for chunk in chunks:
            covered.update(chunk.split())
        assert covered == set(text.split())
        assert chunks[0].startswith("w0 ")
        assert chunks[-1].endswith("w1499")

    def test_custom_sizes(self):
        chunks = split_text(_words(200), "text", max_size=100, overlap=10)
        assert all(len(c) <= 100 for c in chunks)
        assert len(chunks) > 5

    def test_never_emits_empty_chunks(self):
        text = "\n\n\n".join(["para " * 50] * 30)
        assert all(c.strip() for c in split_text(text, "text"))

    def test_long_unbroken_token_is_split_by_character(self):
        chunks = split_text("x" * 2500, "code")
        assert all(len(c) <= CHUNK_SIZE for c in chunks)
        assert len(chunks) >= 3


class TestMarkdownSplitting:
    def test_sections_start_new_chunks(self):
        text = "# Intro\n\nShort intro.\n\n## Usage\n\nRun the thing.\n"
        chunks = split_text(text, "markdown")
        assert len(chunks) == 2
        assert chunks[0].startswith("# Intro")
        assert chunks[1].startswith("## Usage")

    def test_large_markdown_section_is_split(self):
        text = "# Guide\n\n" + _words(1500)
        chunks = split_text(text, "markdown")
        assert len(chunks) >= 2
        assert all(len(c) <= CHUNK_SIZE for c in chunks)

    def test_markdown_without_headers(self):
        assert split_text(_words(50), "markdown") == [_words(50)]


class TestChunkRepositoryFiles:
    def test_chunks_are_tagged(self, tmp_path):
        (tmp_path / "docs").mkdir()
        (tmp_path / "docs" / "guide.md").write_text("# Guide\n\n" + _words(1500))
        (tmp_path / "main.py").write_text("print('hello')\n")

        chunks = chunk_repository_files(tmp_path, "repo-1", "https://github.com/acme/widgets")

        guide = [c for c in chunks if c.file_path == "docs/guide.md"]
        main = [c for c in chunks if c.file_path == "main.py"]
        assert [c.chunk_index for c in guide] == list(range(len(guide)))
        assert len(guide) >= 2
        assert len(main) == 1

        [only] = main
        assert only.type == "code"
        assert only.file_extension == ".py"
        assert only.repository_id == "repo-1"
        assert only.repository_url == "https://github.com/acme/widgets"
        assert only.content == "print('hello')"
        assert only.token_estimate == estimate_tokens(only.content)

    def test_payload_uses_camel_case_keys(self, tmp_path):
        (tmp_path / "a.txt").write_text("alpha")
        [chunk] = chunk_repository_files(tmp_path, "r", "u")
        payload = chunk.to_payload()
        assert payload["repositoryId"] == "r"
        assert payload["filePath"] == "a.txt"
        assert payload["chunkIndex"] == 0
        assert payload["type"] == "text"
