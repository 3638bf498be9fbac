from __future__ import annotations

from pathlib import PurePath


def unified_diff(before: str | None, after: str, display_name: str) -> str:
    """Render ``before`` -> ``after`` as unified diff text.

    Alignment is greedy rather than a minimal edit script: at each divergence
    it consumes every old line until one matches the current new line, then
    every new line until one matches the current old line. Interleaved edits
    can therefore show more churn than ``difflib`` would. ``before=None`` is
    an empty original, so the diff is all insertions.
    """
    old_lines = before.split("\n") if before is not None else []
    new_lines = after.split("\n")
    name = PurePath(display_name).name or display_name

    out = [f"--- {name}", f"+++ {name}"]
    i = j = 0
    while i < len(old_lines) or j < len(new_lines):
        while i < len(old_lines) and j < len(new_lines) and old_lines[i] == new_lines[j]:
            i += 1
            j += 1
        if i >= len(old_lines) and j >= len(new_lines):
            break

        old_start, new_start = i, j
        while i < len(old_lines) and (j >= len(new_lines) or old_lines[i] != new_lines[j]):
            i += 1
        while j < len(new_lines) and (i >= len(old_lines) or old_lines[i] != new_lines[j]):
            j += 1

        out.append(f"@@ -{old_start + 1},{i - old_start} +{new_start + 1},{j - new_start} @@")
        out.extend(f"-{line}" for line in old_lines[old_start:i])
        out.extend(f"+{line}" for line in new_lines[new_start:j])
    return "\n".join(out)


def hunk_count(diff_text: str) -> int:
    return sum(1 for line in diff_text.split("\n") if line.startswith("@@ "))
