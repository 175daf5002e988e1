"""Module layout conventions shared by every promptdiff module."""

import ast
from pathlib import Path

import pytest

PACKAGE_DIR = Path(__file__).resolve().parent.parent / "promptdiff"
MODULES = sorted(PACKAGE_DIR.glob("*.py"))


@pytest.mark.parametrize("path", MODULES, ids=lambda p: p.stem)
def test_module_docstring_opens_on_its_own_line(path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    docstring = ast.get_docstring(tree, clean=False)
    assert docstring is not None
    assert docstring.startswith("\n")


@pytest.mark.parametrize("path", MODULES, ids=lambda p: p.stem)
def test_module_uses_postponed_annotations(path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    first_import = next(node for node in tree.body if isinstance(node, (ast.Import, ast.ImportFrom)))
    assert isinstance(first_import, ast.ImportFrom)
    assert first_import.module == "__future__"
    assert [alias.name for alias in first_import.names] == ["annotations"]
