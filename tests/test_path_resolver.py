"""Unit tests for mapping request targets onto the document root."""

import os

import pytest

from webserver import path_resolver
from webserver.errors import ForbiddenPath
from webserver.path_resolver import is_within_root, resolve_path


def test_root_target_resolves_to_index(config) -> None:
    assert resolve_path("/", config.root) == os.path.join(config.root, "index.html")


def test_nested_file_resolves_under_root(config) -> None:
    resolved = resolve_path("/assets/style.css", config.root)

    assert resolved == os.path.join(config.root, "assets", "style.css")


def test_query_string_and_fragment_are_ignored(config) -> None:
    assert resolve_path("/app.js?v=3#top", config.root) == os.path.join(config.root, "app.js")


def test_percent_encoded_names_are_decoded(config) -> None:
    assert resolve_path("/my%20page.html", config.root) == os.path.join(config.root, "my page.html")


def test_trailing_slash_is_canonicalized(config) -> None:
    assert resolve_path("/assets/", config.root) == os.path.join(config.root, "assets")


@pytest.mark.parametrize("target", [
    "/../../etc/passwd",
    "/assets/../index.html",
    "/..",
    "/foo..bar.html",
    "/%2e%2e/%2e%2e/etc/passwd",
    "/%2E%2E%2Fsecret.html",
])
def test_parent_token_is_forbidden_before_filesystem_access(config, monkeypatch, target) -> None:
    calls = []
    monkeypatch.setattr(path_resolver.os.path, "realpath", lambda p: calls.append(p) or p)

    with pytest.raises(ForbiddenPath):
        resolve_path(target, config.root)
    assert calls == []


def test_nul_byte_is_forbidden(config) -> None:
    with pytest.raises(ForbiddenPath):
        resolve_path("/index.html%00.js", config.root)


def test_absolute_target_after_strip_is_forbidden(config) -> None:
    with pytest.raises(ForbiddenPath):
        resolve_path("//etc/passwd", config.root)


def test_symlink_escaping_root_is_forbidden(config, tmp_path) -> None:
    outside = tmp_path / "outside.html"
    outside.write_text("secret")
    os.symlink(str(outside), os.path.join(config.root, "escape.html"))

    with pytest.raises(ForbiddenPath):
        resolve_path("/escape.html", config.root)


def test_symlink_into_sibling_with_shared_prefix_is_forbidden(config, tmp_path) -> None:
    sibling = tmp_path / (os.path.basename(config.root) + "2")
    sibling.mkdir()
    (sibling / "secret.html").write_text("secret")
    os.symlink(str(sibling / "secret.html"), os.path.join(config.root, "sibling.html"))

    with pytest.raises(ForbiddenPath):
        resolve_path("/sibling.html", config.root)


def test_symlink_inside_root_is_allowed(config) -> None:
    os.symlink(os.path.join(config.root, "index.html"), os.path.join(config.root, "home.html"))

    assert resolve_path("/home.html", config.root) == os.path.join(config.root, "index.html")


def test_is_within_root_relations() -> None:
    root = os.sep + os.path.join("srv", "web")

    assert is_within_root(root, root)
    assert is_within_root(os.path.join(root, "a", "b.html"), root)
    assert is_within_root(os.path.join(root.upper(), "Index.HTML"), root) == (os.path.normcase("A") == "a")
    assert not is_within_root(root + "2", root)
    assert not is_within_root(os.path.join(root + "2", "x.html"), root)
    assert not is_within_root(os.path.dirname(root), root)


def test_is_within_filesystem_root() -> None:
    assert is_within_root(os.sep + "anything", os.sep)


def test_symlink_into_directory_differing_only_by_case_is_forbidden(tmp_path) -> None:
    root = tmp_path / "WebRoot"
    root.mkdir()
    sibling = tmp_path / "webroot"
    if sibling.exists():
        pytest.skip("case-insensitive filesystem")
    sibling.mkdir()
    (sibling / "secret.html").write_text("secret")
    os.symlink(str(sibling / "secret.html"), str(root / "link.html"))

    with pytest.raises(ForbiddenPath):
        resolve_path("/link.html", os.path.realpath(str(root)))
