"""Git diff utilities.

Contains:
- DiffLine, DiffHunk, DiffFile, StructuredDiff: Structured view of a staged diff
- parse_diff: Parse raw unified diff output into a StructuredDiff
- get_staged_diff: Get the staged diff of a repository against HEAD
- normalize_diff: Flatten a StructuredDiff into the line-numbered text sent to the model
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, Union

from gitai.git.exceptions import (
    DiffEncodingError,
    DiffUnavailableError,
    GitError,
    NoStagedChangesError,
)
from gitai.git.runner import _run_git_command, _run_git_command_raw

logger = logging.getLogger(__name__)

# Matches "@@ -12,5 +12,7 @@" and "@@ -1 +1 @@" (counts are optional)
HUNK_HEADER_RE = re.compile(rb"^@@ -(\d+)(?:,\d+)? \+(\d+)(?:,\d+)? @@")

ORIGIN_ADDED = "+"
ORIGIN_REMOVED = "-"
ORIGIN_CONTEXT = " "
ORIGIN_NO_NEWLINE = "\\"


@dataclass
class DiffLine:
    """A single line inside a hunk.

    Attributes:
        origin: One of "+", "-", " " or "\\" (no newline at end of file marker).
        content: Raw line content without the origin character.
        old_lineno: Line number on the old side, None for pure additions.
        new_lineno: Line number on the new side, None for removals.
    """

    origin: str
    content: bytes
    old_lineno: Optional[int] = None
    new_lineno: Optional[int] = None


@dataclass
class DiffHunk:
    """A hunk: its "@@" header line and the lines it covers."""

    header: bytes
    lines: list[DiffLine] = field(default_factory=list)


@dataclass
class DiffFile:
    """One file in the diff: header lines (diff --git, index, ---, +++) and hunks."""

    header: bytes
    hunks: list[DiffHunk] = field(default_factory=list)


@dataclass
class StructuredDiff:
    """The staged diff as a sequence of files."""

    files: list[DiffFile] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.files

    def hunk_count(self) -> int:
        return sum(len(f.hunks) for f in self.files)


def _split_lines(data: bytes) -> list[bytes]:
    """Split on LF only, keeping the terminator (CR stays part of the content)."""
    lines = data.split(b"\n")
    result = [line + b"\n" for line in lines[:-1]]
    if lines[-1]:
        result.append(lines[-1])
    return result


def parse_diff(raw: bytes) -> StructuredDiff:
    """Parse `git diff` unified output into a StructuredDiff.

    Args:
        raw: The raw bytes printed by git diff.

    Returns:
        The parsed StructuredDiff. Empty if ``raw`` contains no file sections.
    """
    diff = StructuredDiff()
    current_file: Optional[DiffFile] = None
    current_hunk: Optional[DiffHunk] = None
    old_lineno = 0
    new_lineno = 0

    for line in _split_lines(raw):
        if line.startswith(b"diff --git "):
            current_file = DiffFile(header=line)
            current_hunk = None
            diff.files.append(current_file)
            continue

        if current_file is None:
            # Preamble before the first file section (never printed by git diff)
            continue

        if line.startswith(b"@@"):
            match = HUNK_HEADER_RE.match(line)
            if match:
                old_lineno = int(match.group(1))
                new_lineno = int(match.group(2))
            current_hunk = DiffHunk(header=line)
            current_file.hunks.append(current_hunk)
            continue

        if current_hunk is None:
            # index, mode, ---/+++ and "Binary files ... differ" lines
            current_file.header += line
            continue

        origin = chr(line[0]) if line else ORIGIN_CONTEXT
        content = line[1:]

        if origin == ORIGIN_ADDED:
            current_hunk.lines.append(DiffLine(origin, content, None, new_lineno))
            new_lineno += 1
        elif origin == ORIGIN_REMOVED:
            current_hunk.lines.append(DiffLine(origin, content, old_lineno, None))
            old_lineno += 1
        elif origin == ORIGIN_NO_NEWLINE:
            current_hunk.lines.append(DiffLine(origin, content, None, None))
        else:
            current_hunk.lines.append(DiffLine(ORIGIN_CONTEXT, content, old_lineno, new_lineno))
            old_lineno += 1
            new_lineno += 1

    return diff


def get_staged_diff(repo_path: Union[str, Path, None] = None, auto_add: bool = False) -> StructuredDiff:
    """Get the diff between HEAD and the index.

    Args:
        repo_path: Path to the repository (defaults to the current directory).
        auto_add: Stage all changes (`git add --all`) before computing the diff.

    Returns:
        The staged changes as a StructuredDiff.

    Raises:
        DiffUnavailableError: If there is no prior commit or the repository cannot be read.
        NoStagedChangesError: If there are no staged changes.
    """
    try:
        head = _run_git_command(["rev-parse", "--verify", "HEAD"], cwd=repo_path)
    except GitError as e:
        raise DiffUnavailableError(
            f"Unable to find the last commit. Make at least one commit first.\n{e}"
        )
    logger.debug("Last commit: %s", head)

    try:
        if auto_add:
            logger.debug("Automatically adding all files to the index")
            _run_git_command(["add", "--all"], cwd=repo_path)

        raw = _run_git_command_raw(
            ["diff", "--cached", "--no-color", "--no-ext-diff"],
            cwd=repo_path,
        )
    except GitError as e:
        raise DiffUnavailableError(
            f"Unable to create git diff, try running `git diff --cached` to see if it works.\n{e}"
        )

    diff = parse_diff(raw)
    if diff.is_empty:
        raise NoStagedChangesError(
            "No staged changes found. Stage your changes first with: git add <files>"
        )

    logger.debug("Staged diff: %d file(s), %d hunk(s)", len(diff.files), diff.hunk_count())
    return diff


def _decode(data: bytes) -> str:
    try:
        return data.decode("utf-8")
    except UnicodeDecodeError as e:
        raise DiffEncodingError(f"Non UTF-8 characters in diff: {e}")


def _terminated(text: str) -> str:
    return text if text.endswith("\n") else text + "\n"


def normalize_diff(diff: StructuredDiff) -> str:
    """Turn a StructuredDiff into the text embedded in prompts.

    Header lines (``diff --git ...`` and the lines following it, ``@@`` hunk
    headers) are passed through verbatim. Every other line becomes its origin
    marker, its old-side line number (0 when there is none) and a space,
    followed by the line content.

    Args:
        diff: The structured staged diff.

    Returns:
        The normalized diff text.

    Raises:
        DiffEncodingError: If any line is not valid UTF-8.
    """
    parts: list[str] = []
    for diff_file in diff.files:
        parts.append(_terminated(_decode(diff_file.header)))
        for hunk in diff_file.hunks:
            parts.append(_terminated(_decode(hunk.header)))
            for line in hunk.lines:
                content = _decode(line.content)
                if line.origin == ORIGIN_NO_NEWLINE:
                    # "\ No newline at end of file" keeps its text as context
                    origin = ORIGIN_CONTEXT
                    content = ORIGIN_NO_NEWLINE + content
                else:
                    origin = line.origin
                lineno = line.old_lineno if line.old_lineno is not None else 0
                parts.append(_terminated(f"{origin}{lineno} {content}"))
    return "".join(parts)
