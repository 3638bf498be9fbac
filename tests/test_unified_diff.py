from __future__ import annotations

from mission_control.core.workspace import hunk_count, unified_diff


def test_new_file_renders_as_insertions_only() -> None:
    text = unified_diff(None, "X", "/tmp/a.txt")

    lines = text.split("\n")
    assert lines[:2] == ["--- a.txt", "+++ a.txt"]
    assert "+X" in lines
    assert not [line for line in lines[2:] if line.startswith("-")]


def test_identical_content_has_no_hunks() -> None:
    text = unified_diff("same", "same", "same.txt")

    assert text == "--- same.txt\n+++ same.txt"
    assert hunk_count(text) == 0


def test_single_line_change() -> None:
    text = unified_diff("line1\nline2", "line1\nCHANGED", "/work/notes.md")

    assert text.split("\n") == [
        "--- notes.md",
        "+++ notes.md",
        "@@ -2,1 +2,1 @@",
        "-line2",
        "+CHANGED",
    ]


def test_deletions_resynchronise_on_next_matching_line() -> None:
    text = unified_diff("a\nb\nc\nd\ne", "a\nc\nd", "f.txt")

    assert hunk_count(text) == 2
    assert text.split("\n")[2:] == ["@@ -2,1 +2,0 @@", "-b", "@@ -5,1 +4,0 @@", "-e"]


def test_greedy_alignment_over_reports_an_inserted_line() -> None:
    text = unified_diff("a\nb\nc", "a\nX\nb\nc", "f.txt")

    assert text.split("\n")[2:] == ["@@ -2,2 +2,3 @@", "-b", "-c", "+X", "+b", "+c"]
