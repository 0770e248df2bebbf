from __future__ import annotations

from typing import Iterable, List

from .models import DiffLine, DiffType

_PREFIX = {
    DiffType.ADDED: "+ ",
    DiffType.REMOVED: "- ",
    DiffType.UNCHANGED: "  ",
}


def generate_diff(original: str, suggested: str) -> List[DiffLine]:
    """Line diff of ``original`` against ``suggested`` via longest common subsequence.

    Lines are split on ``\\n`` only, so ``""`` is a single empty line. Reading the
    unchanged and removed lines in order gives back ``original``; the unchanged
    and added lines give back ``suggested``. Where both directions are equally
    short, removals are emitted before additions.
    """

    a = original.split("\n")
    b = suggested.split("\n")
    n, m = len(a), len(b)

    # lcs[i][j] = LCS length of a[i:] and b[j:]
    lcs = [[0] * (m + 1) for _ in range(n + 1)]
    for i in range(n - 1, -1, -1):
        row, below = lcs[i], lcs[i + 1]
        for j in range(m - 1, -1, -1):
            if a[i] == b[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])

    out: List[DiffLine] = []
    i = j = 0
    while i < n and j < m:
        if a[i] == b[j]:
            out.append(DiffLine(DiffType.UNCHANGED, a[i]))
            i += 1
            j += 1
        elif lcs[i + 1][j] >= lcs[i][j + 1]:
            out.append(DiffLine(DiffType.REMOVED, a[i]))
            i += 1
        else:
            out.append(DiffLine(DiffType.ADDED, b[j]))
            j += 1
    out.extend(DiffLine(DiffType.REMOVED, line) for line in a[i:])
    out.extend(DiffLine(DiffType.ADDED, line) for line in b[j:])
    return out


def reconstruct(lines: Iterable[DiffLine], side: DiffType) -> str:
    """Rebuild one side of a diff. ``side`` is ``REMOVED`` for the original or ``ADDED`` for the suggestion."""

    keep = (DiffType.UNCHANGED, side)
    return "\n".join(line.value for line in lines if line.type in keep)


def format_diff(lines: Iterable[DiffLine]) -> str:
    return "\n".join(_PREFIX[line.type] + line.value for line in lines)
