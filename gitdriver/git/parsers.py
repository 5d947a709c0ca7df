"""
Parsers for git command output.

All functions here are pure: they take the captured text of a command and
return typed values, never touching the filesystem or running processes.
"""

from typing import List, Optional, Set

from gitdriver.git.exceptions import AmbiguousResultError, GitException
from gitdriver.git.models import IndexEntry, ObjectId


def _non_blank_lines(text: Optional[str]) -> List[str]:
    if not text:
        return []
    return [line for line in text.splitlines() if line.strip()]


def parse_lines(text: Optional[str]) -> List[str]:
    """Split output into lines, keeping blank ones."""
    if not text:
        return []
    return text.split("\n")


def first_line(text: Optional[str]) -> Optional[str]:
    """
    Extract a single-line result.

    Args:
        text: Command output

    Returns:
        The only non-blank line, trimmed, or None if there is none

    Raises:
        AmbiguousResultError: If the output has more than one non-blank line
    """
    lines = _non_blank_lines(text)
    if not lines:
        return None
    if len(lines) > 1:
        raise AmbiguousResultError(text or "")
    return lines[0].strip()


def parse_branch_names(text: Optional[str]) -> List[str]:
    """
    Parse `git branch` output into branch names.

    The first two columns hold the current-branch marker. Detached entries
    such as "(no branch)" and symbolic aliases ("origin/HEAD -> origin/main")
    are skipped.
    """
    names = []
    for line in _non_blank_lines(text):
        name = line[2:].strip()
        if name.startswith("(") or " -> " in name:
            continue
        names.append(name)
    return names


def parse_ls_tree(text: Optional[str]) -> List[IndexEntry]:
    """
    Parse `git ls-tree` output.

    Each line is "<mode> <type> <object>\\t<path>".
    """
    entries = []
    for line in _non_blank_lines(text):
        fields = line.split(None, 3)
        if len(fields) != 4:
            raise GitException(f"Error parsing ls tree: '{line}'")
        mode, obj_type, obj, path = fields
        entries.append(IndexEntry(mode, obj_type, obj, path))
    return entries


def parse_rev_list(text: Optional[str]) -> List[ObjectId]:
    """Parse one object id per line, in the order git emitted them."""
    try:
        return [ObjectId.from_string(line) for line in _non_blank_lines(text)]
    except GitException as e:
        raise GitException("Error parsing rev list", e)


def parse_tag_names(text: Optional[str]) -> Set[str]:
    return {line.strip() for line in _non_blank_lines(text)}


def parse_remotes(text: Optional[str]) -> List[str]:
    """Parse `git remote` output, keeping the listed order."""
    return [line.strip() for line in _non_blank_lines(text)]
