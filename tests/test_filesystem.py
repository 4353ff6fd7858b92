from __future__ import annotations

import sys

import pytest

from toolkit_cli.filesystem import (
    exported_values,
    get_all_module_imports,
    get_local_paths,
    import_module_from_path,
)


def _tree(root):
    (root / "sub").mkdir(parents=True)
    (root / "_skipped").mkdir()
    (root / "a.py").write_text("A = 1\n")
    (root / "_private.py").write_text("raise RuntimeError('do not import')\n")
    (root / "notes.txt").write_text("hi\n")
    (root / "sub" / "b.py").write_text("B = 2\n")
    (root / "_skipped" / "c.py").write_text("C = 3\n")
    return root.resolve()


def test_get_local_paths_filters_and_prunes(tmp_path):
    root = _tree(tmp_path / "bin")
    paths = get_local_paths(root, exts=[".py"], skip=[r"^_"])
    assert paths == [str(root / "a.py"), str(root / "sub" / "b.py")]


def test_get_local_paths_match_and_depth(tmp_path):
    root = _tree(tmp_path / "bin")
    assert get_local_paths(root, match=[r"\.txt$"]) == [str(root / "notes.txt")]
    assert get_local_paths(root, exts=[".py"], skip=[r"^_"], max_depth=0) == [str(root / "a.py")]


def test_get_local_paths_include_dirs(tmp_path):
    root = _tree(tmp_path / "bin")
    paths = get_local_paths(root, skip=[r"^_"], include_dirs=True, max_depth=1)
    assert str(root / "sub") in paths


def test_get_local_paths_rejects_missing_or_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        get_local_paths(tmp_path / "missing")
    f = tmp_path / "file.py"
    f.write_text("")
    with pytest.raises(NotADirectoryError):
        get_local_paths(f)


def test_import_module_from_path_and_exports(tmp_path):
    script = tmp_path / "script.py"
    script.write_text("VALUE = 3\nOTHER = 4\n__all__ = ['VALUE']\n")
    module = import_module_from_path(script)
    assert module.VALUE == 3
    assert exported_values(module) == [3]


def test_public_values_without_all(tmp_path):
    script = tmp_path / "script.py"
    script.write_text("import os\nX = 1\n_hidden = 2\n")
    values = get_all_module_imports(script)
    assert 1 in values
    assert 2 not in values


def test_failed_import_is_not_registered(tmp_path):
    script = tmp_path / "broken.py"
    script.write_text("raise RuntimeError('boom')\n")
    before = set(sys.modules)
    with pytest.raises(RuntimeError, match="boom"):
        import_module_from_path(script)
    assert set(sys.modules) - before == set()
