"""Line-oriented diff and line-number annotation.

Both functions are pure and synchronous: they never touch storage and
return identical output for identical input.

The diff is the Myers O(ND) shortest edit script over the two line lists.
Edits between two unchanged runs are grouped so that the removed lines of
a change region always come before its added lines.
"""

from collections.abc import Iterable

from zarv.models.diff import AnnotatedDiff, AnnotatedLine, DiffHunk, HunkKind


def split_lines(text: str) -> list[str]:
    """Split text on newline boundaries.

    A trailing newline does not produce an empty last line, and the empty
    string has no lines at all.

    Args:
        text: Input text

    Returns:
        List of lines without their newline characters
    """
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


_DEAD = -1


def _predecessor(v: dict[int, int], k: int) -> int | None:
    """Pick the diagonal a d-path on diagonal k extends from.

    Stepping down from k + 1 (an insertion) wins ties; diagonals that were
    never reached or left the edit graph are skipped.

    Returns:
        k + 1, k - 1, or None when neither neighbour is usable
    """
    down_x = v.get(k + 1, _DEAD)
    left_x = v.get(k - 1, _DEAD)
    right_x = left_x + 1 if left_x != _DEAD else _DEAD
    if down_x == _DEAD and right_x == _DEAD:
        return None
    return k + 1 if down_x >= right_x else k - 1


def _shortest_edit_trace(a: list[str], b: list[str]) -> list[dict[int, int]]:
    """Run the Myers forward search and keep the frontier of every round.

    Args:
        a: Old lines
        b: New lines

    Returns:
        One snapshot of the furthest-reaching x per diagonal k for each
        edit distance d, ending with the round that reaches (len(a), len(b))
    """
    n, m = len(a), len(b)
    # Virtual start point (0, -1) on diagonal 1
    v: dict[int, int] = {1: 0}
    trace: list[dict[int, int]] = []

    for d in range(n + m + 1):
        trace.append(dict(v))
        for k in range(-d, d + 1, 2):
            prev_k = _predecessor(v, k)
            if prev_k is None:
                v[k] = _DEAD
                continue
            x = v[prev_k] if prev_k == k + 1 else v[prev_k] + 1
            y = x - k
            if x > n or y > m:
                v[k] = _DEAD
                continue
            while x < n and y < m and a[x] == b[y]:
                x += 1
                y += 1
            v[k] = x
            if x == n and y == m:
                return trace

    return trace


def _edit_script(a: list[str], b: list[str]) -> list[tuple[HunkKind, str]]:
    """Backtrack the Myers trace into a list of per-line operations."""
    trace = _shortest_edit_trace(a, b)
    x, y = len(a), len(b)
    ops: list[tuple[HunkKind, str]] = []

    for d in range(len(trace) - 1, -1, -1):
        v = trace[d]
        k = x - y
        prev_k = _predecessor(v, k)
        prev_x = v[prev_k]
        prev_y = prev_x - prev_k

        while x > prev_x and y > prev_y:
            x -= 1
            y -= 1
            ops.append((HunkKind.UNCHANGED, a[x]))

        if d > 0:
            if x == prev_x:
                ops.append((HunkKind.ADDED, b[prev_y]))
            else:
                ops.append((HunkKind.REMOVED, a[prev_x]))

        x, y = prev_x, prev_y

    ops.reverse()
    return ops


def _group_hunks(ops: Iterable[tuple[HunkKind, str]]) -> list[DiffHunk]:
    """Group operations into maximal hunks, removals before additions."""
    hunks: list[DiffHunk] = []
    unchanged: list[str] = []
    removed: list[str] = []
    added: list[str] = []

    def flush_changes() -> None:
        if removed:
            hunks.append(DiffHunk(kind=HunkKind.REMOVED, lines=tuple(removed)))
            removed.clear()
        if added:
            hunks.append(DiffHunk(kind=HunkKind.ADDED, lines=tuple(added)))
            added.clear()

    for kind, line in ops:
        if kind is HunkKind.UNCHANGED:
            if removed or added:
                flush_changes()
            unchanged.append(line)
            continue

        if unchanged:
            hunks.append(DiffHunk(kind=HunkKind.UNCHANGED, lines=tuple(unchanged)))
            unchanged.clear()
        if kind is HunkKind.REMOVED:
            removed.append(line)
        else:
            added.append(line)

    flush_changes()
    if unchanged:
        hunks.append(DiffHunk(kind=HunkKind.UNCHANGED, lines=tuple(unchanged)))

    return hunks


def diff_lines(old_text: str, new_text: str) -> list[DiffHunk]:
    """Compute the line diff between two texts.

    Identical texts always yield exactly one unchanged hunk holding every
    line (an empty one for two empty texts). Otherwise hunks are maximal
    and non-empty.

    Args:
        old_text: Previous text
        new_text: Current text

    Returns:
        Ordered list of hunks
    """
    old_lines = split_lines(old_text)
    new_lines = split_lines(new_text)

    if old_lines == new_lines:
        return [DiffHunk(kind=HunkKind.UNCHANGED, lines=tuple(old_lines))]

    # Shared head and tail never need the search
    prefix = 0
    limit = min(len(old_lines), len(new_lines))
    while prefix < limit and old_lines[prefix] == new_lines[prefix]:
        prefix += 1

    suffix = 0
    while (
        suffix < limit - prefix
        and old_lines[len(old_lines) - 1 - suffix] == new_lines[len(new_lines) - 1 - suffix]
    ):
        suffix += 1

    old_middle = old_lines[prefix : len(old_lines) - suffix]
    new_middle = new_lines[prefix : len(new_lines) - suffix]

    ops: list[tuple[HunkKind, str]] = [(HunkKind.UNCHANGED, line) for line in old_lines[:prefix]]
    ops.extend(_edit_script(old_middle, new_middle))
    ops.extend(
        (HunkKind.UNCHANGED, line) for line in old_lines[len(old_lines) - suffix :]
    )

    return _group_hunks(ops)


def annotate(hunks: Iterable[DiffHunk]) -> AnnotatedDiff:
    """Assign old/new line numbers to every line and count changes.

    Unchanged lines advance both counters, removed lines only the old one
    and added lines only the new one. Counters start at 1.

    Args:
        hunks: Ordered hunks from `diff_lines`

    Returns:
        AnnotatedDiff with per-line numbers and added/removed line counts
    """
    old_number = 1
    new_number = 1
    additions = 0
    deletions = 0
    lines: list[AnnotatedLine] = []

    for hunk in hunks:
        for content in hunk.lines:
            if hunk.kind is HunkKind.UNCHANGED:
                lines.append(
                    AnnotatedLine(
                        kind=hunk.kind,
                        content=content,
                        old_number=old_number,
                        new_number=new_number,
                    )
                )
                old_number += 1
                new_number += 1
            elif hunk.kind is HunkKind.REMOVED:
                lines.append(
                    AnnotatedLine(kind=hunk.kind, content=content, old_number=old_number)
                )
                old_number += 1
                deletions += 1
            else:
                lines.append(
                    AnnotatedLine(kind=hunk.kind, content=content, new_number=new_number)
                )
                new_number += 1
                additions += 1

    return AnnotatedDiff(lines=lines, additions=additions, deletions=deletions)
