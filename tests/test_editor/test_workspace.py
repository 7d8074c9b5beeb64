"""Tests for workspace root detection."""

from editor import find_workspace_root


class TestFindWorkspaceRoot:
    def test_finds_marker_in_parent(self, tmp_path):
        (tmp_path / "pyproject.toml").touch()
        nested = tmp_path / "src" / "pkg"
        nested.mkdir(parents=True)
        source = nested / "mod.py"
        source.touch()

        assert find_workspace_root(source, ["pyproject.toml"]) == str(tmp_path.resolve())

    def test_nearest_marker_wins(self, tmp_path):
        (tmp_path / "pyproject.toml").touch()
        inner = tmp_path / "sub"
        inner.mkdir()
        (inner / "package.json").touch()
        source = inner / "index.ts"
        source.touch()

        root = find_workspace_root(source, ["pyproject.toml", "package.json"])
        assert root == str(inner.resolve())

    def test_directory_argument(self, tmp_path):
        (tmp_path / "go.mod").touch()
        assert find_workspace_root(tmp_path, ["go.mod"]) == str(tmp_path.resolve())

    def test_falls_back_to_file_directory(self, tmp_path):
        nested = tmp_path / "loose"
        nested.mkdir()
        source = nested / "script.py"
        source.touch()

        assert find_workspace_root(source, ["no-such-marker-file-xyz"]) == str(nested.resolve())
