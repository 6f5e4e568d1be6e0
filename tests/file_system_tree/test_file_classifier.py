"""Tests for extension-based binary/text classification."""

import pytest

from dirscan.file_system_tree.file_classifier import (
    BINARY_EXTENSIONS,
    SUPPORTED_LANGUAGE_EXTENSIONS,
    TEXT_EXTENSIONS,
    FileClassifier,
    lookup_mime_type,
)


def mime_table(table):
    return lambda ext: table.get(ext)


@pytest.fixture
def classifier():
    return FileClassifier()


@pytest.mark.parametrize("path", ["notes.md", "src/main.py", "app.ts", "config.yaml", "README.txt", "debug.log"])
def test_text_allowlist(classifier, path):
    assert not classifier.is_binary(path)


@pytest.mark.parametrize("path", ["photo.png", "archive.zip", "report.pdf", "tool.exe", "data.sqlite", "song.mp3"])
def test_binary_denylist(classifier, path):
    assert classifier.is_binary(path)


def test_extension_case_is_ignored(classifier):
    assert classifier.is_binary("PHOTO.PNG")
    assert not classifier.is_binary("NOTES.MD")


def test_allowlist_wins_over_mime_lookup():
    # An ambiguous or wrong MIME type never turns an allowlisted file binary
    classifier = FileClassifier(mime_lookup=mime_table({".md": "application/octet-stream"}))
    assert not classifier.is_binary("notes.md")


def test_allowlist_wins_over_denylist():
    classifier = FileClassifier(text_extensions=frozenset({".dat"}), binary_extensions=frozenset({".dat"}))
    assert not classifier.is_binary("table.dat")


@pytest.mark.parametrize(
    "mime_type,expected",
    [
        ("text/x-custom", False),
        ("application/json", False),
        ("application/ld+json", False),
        ("application/xml", False),
        ("application/x-javascript", False),
        ("application/x-typescript", False),
        ("image/x-custom", True),
        ("audio/x-custom", True),
        ("video/x-custom", True),
        ("application/octet-stream", True),
        ("application/x-unknown", False),
    ],
)
def test_mime_fallback(mime_type, expected):
    classifier = FileClassifier(
        text_extensions=frozenset(),
        binary_extensions=frozenset(),
        mime_lookup=mime_table({".zz": mime_type}),
    )
    assert classifier.is_binary("file.zz") == expected


def test_unknown_extension_defaults_to_text():
    classifier = FileClassifier(mime_lookup=mime_table({}))
    assert not classifier.is_binary("file.unknownext")


def test_no_extension_defaults_to_text(classifier):
    assert not classifier.is_binary("Makefile")
    assert not classifier.is_binary(".gitignore")


def test_explicit_extension_overrides_path(classifier):
    assert classifier.is_binary("download", ".png")


def test_lookup_mime_type_uses_builtin_table():
    assert lookup_mime_type(".png") == "image/png"
    assert lookup_mime_type(".PNG") == "image/png"
    assert lookup_mime_type(".definitely-not-registered") is None


def test_default_tables_do_not_overlap():
    assert not TEXT_EXTENSIONS & BINARY_EXTENSIONS
    assert SUPPORTED_LANGUAGE_EXTENSIONS <= TEXT_EXTENSIONS


def test_is_supported_language(classifier):
    assert classifier.is_supported_language(".py")
    assert classifier.is_supported_language(".RS")
    assert not classifier.is_supported_language(".png")
    assert not classifier.is_supported_language("")
