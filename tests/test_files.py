"""
Tests for repoindex/files.py
Walking a clone, pruning ignored directories, binary/size exclusion, classification.
"""
from repoindex import files
from repoindex.files import classify, list_source_files, walk_files


def _make_tree(root):
    (root / ".git").mkdir()
    (root / ".git" / "config").write_text("[core]\n")
    (root / "node_modules" / "pkg").mkdir(parents=True)
    (root / "node_modules" / "pkg" / "index.js").write_text("module.exports = 1;\n")
    (root / "dist").mkdir()
    (root / "dist" / "bundle.js").write_text("console.log(1);\n")
    (root / "src" / "nested").mkdir(parents=True)
    (root / "src" / "app.py").write_text("def main():\n    return 1\n")
    (root / "src" / "nested" / "util.ts").write_text("export const x = 1;\n")
    (root / "README.md").write_text("# Title\n\nSome docs.\n")
    (root / "NOTES").write_text("plain notes\n")
    (root / "logo.png").write_text("not really an image but the extension says binary")
    (root / "data.txt").write_bytes(b"abc\x00def")
    (root / "blank.txt").write_text("   \n\n")


class TestWalkFiles:
    def test_prunes_ignored_directories(self, tmp_path):
        _make_tree(tmp_path)
        rels = {p.relative_to(tmp_path).as_posix() for p in walk_files(tmp_path)}

        assert "src/app.py" in rels
        assert "src/nested/util.ts" in rels
        assert not any(r.startswith((".git/", "node_modules/", "dist/")) for r in rels)

    def test_order_is_deterministic(self, tmp_path):
        _make_tree(tmp_path)
        assert walk_files(tmp_path) == walk_files(tmp_path)


class TestListSourceFiles:
    def test_binary_and_blank_files_are_skipped(self, tmp_path):
        _make_tree(tmp_path)
        rels = [f.relative_path for f in list_source_files(tmp_path)]

        assert "logo.png" not in rels
        assert "data.txt" not in rels
        assert "blank.txt" not in rels
        assert rels == ["NOTES", "README.md", "src/app.py", "src/nested/util.ts"]

    def test_nul_byte_excludes_regardless_of_extension(self, tmp_path):
        (tmp_path / "main.py").write_bytes(b"print('hi')\n\x00")
        assert list_source_files(tmp_path) == []

    def test_oversized_files_are_skipped(self, tmp_path, monkeypatch):
        monkeypatch.setattr(files, "MAX_FILE_BYTES", 64)
        (tmp_path / "big.md").write_text("word " * 100)
        (tmp_path / "small.md").write_text("word " * 5)

        assert [f.relative_path for f in list_source_files(tmp_path)] == ["small.md"]

    def test_types_and_extensions(self, tmp_path):
        _make_tree(tmp_path)
        by_path = {f.relative_path: f for f in list_source_files(tmp_path)}

        assert by_path["README.md"].type == "markdown"
        assert by_path["README.md"].extension == ".md"
        assert by_path["src/app.py"].type == "code"
        assert by_path["NOTES"].type == "text"
        assert by_path["NOTES"].extension == ""

    def test_invalid_utf8_is_replaced_not_dropped(self, tmp_path):
        (tmp_path / "latin1.txt").write_bytes("caf\xe9 au lait".encode("latin-1"))
        [source] = list_source_files(tmp_path)
        assert source.content.startswith("caf")


class TestClassify:
    def test_markdown_variants(self):
        assert classify(".md") == "markdown"
        assert classify(".mdx") == "markdown"
        assert classify(".markdown") == "markdown"

    def test_code_and_config(self):
        for ext in (".py", ".ts", ".json", ".yaml", ".sql", ".sh"):
            assert classify(ext) == "code"

    def test_fallback_is_text(self):
        assert classify(".txt") == "text"
        assert classify("") == "text"
