"""Tests for utils.naming."""

import os

import pytest

from utils.naming import module_path, slugify


def test_slugify_basic():
    assert slugify("Implement Hello Component") == "implement_hello_component"
    assert slugify("Working in QA domain!", sep="-") == "working-in-qa-domain"


def test_slugify_max_len_trims_separator():
    assert slugify("aaa bbb ccc", max_len=4) == "aaa"


def test_slugify_empty_falls_back():
    assert slugify("!!!") == "untitled"


def test_module_path_under_src(tmp_path):
    root = str(tmp_path)
    assert module_path(root, "Implement hello component") == os.path.join(
        root, "src", "implement_hello_component.py"
    )


def test_module_path_dedupes(tmp_path):
    root = str(tmp_path)
    first = module_path(root, "Build parser")
    second = module_path(root, "Build parser", taken={first})
    third = module_path(root, "Build parser", taken={first, second})
    assert second.endswith("build_parser_2.py")
    assert third.endswith("build_parser_3.py")


def test_module_path_cannot_escape(tmp_path):
    # slugify strips path separators, so traversal text stays inside src/
    path = module_path(str(tmp_path), "../../etc/passwd")
    assert path.startswith(os.path.join(str(tmp_path), "src"))


def test_module_path_rejects_escaping_root(tmp_path):
    link = tmp_path / "src"
    link.symlink_to("/")
    with pytest.raises(ValueError, match="escapes workspace"):
        module_path(str(tmp_path), "anything")
