"""Parsers for git's line-oriented output formats.

Each parser takes the raw text printed by one git command and returns an
ordered list of records. A line that does not fit the format is logged and
skipped; it never discards the rest of the batch.
"""

from __future__ import annotations

import logging
import re

from gk.models import BranchEntry, ChangeKind, CommitRecord, StagedFileEntry, StashEntry

log = logging.getLogger(__name__)

FIELD_SEP = "|"
COMMIT_FORMAT = "--pretty=format:%H|%h|%s|%ar|%an"
STASH_FORMAT = "--pretty=format:%gd|%s|%cr"

_STATUS_KINDS = {
    "M": ChangeKind.MODIFIED,
    "A": ChangeKind.ADDED,
    "D": ChangeKind.DELETED,
    "R": ChangeKind.RENAMED,
}
_STASH_SUBJECT = re.compile(r"^(?:WIP on|On) (?P<branch>[^:]+): (?P<message>.*)$")
_HEX = re.compile(r"^[0-9a-f]{4,64}$")


def _lines(output: str) -> list[str]:
    return [line for line in output.splitlines() if line.strip()]


def parse_commit_line(line: str) -> CommitRecord | None:
    """Parse one ``%H|%h|%s|%ar|%an`` line.

    The subject is free text and may contain the separator, so the hashes are
    split from the left and time/author from the right.
    """
    head = line.split(FIELD_SEP, 2)
    if len(head) != 3:
        return None
    full_hash, short_hash, rest = head
    tail = rest.rsplit(FIELD_SEP, 2)
    if len(tail) != 3:
        return None
    subject, relative_time, author = tail
    if not _HEX.match(full_hash) or not _HEX.match(short_hash):
        return None
    return CommitRecord(
        full_hash=full_hash,
        short_hash=short_hash,
        subject=subject,
        relative_time=relative_time,
        author=author,
    )


def parse_commits(output: str) -> list[CommitRecord]:
    commits: list[CommitRecord] = []
    for line in _lines(output):
        record = parse_commit_line(line)
        if record is None:
            log.warning("skipping malformed log line: %r", line)
            continue
        commits.append(record)
    return commits


def parse_name_status(output: str) -> list[StagedFileEntry]:
    """Parse ``git diff --name-status -z`` output.

    Fields are NUL-separated: a status code, then one path, or two for renames
    and copies (``R100``), which carry the source before the destination.
    """
    fields = output.split("\0")
    entries: list[StagedFileEntry] = []
    idx = 0
    while idx < len(fields):
        status = fields[idx].strip()
        if not status:
            idx += 1
            continue
        code = status[0]
        width = 2 if code in ("R", "C") else 1
        paths = fields[idx + 1 : idx + 1 + width]
        if len(paths) != width or not all(paths):
            log.warning("skipping malformed name-status entry: %r", fields[idx:])
            break
        idx += 1 + width
        kind = _STATUS_KINDS.get(code, ChangeKind.OTHER)
        if code == "R":
            entries.append(StagedFileEntry(path=paths[1], status=kind, orig_path=paths[0]))
        else:
            entries.append(StagedFileEntry(path=paths[-1], status=kind))
    return entries


def parse_stash_list(output: str) -> list[StashEntry]:
    """Parse ``git stash list --pretty=format:%gd|%s|%cr`` output."""
    entries: list[StashEntry] = []
    for line in _lines(output):
        ref, sep, rest = line.partition(FIELD_SEP)
        subject, sep2, relative_time = rest.rpartition(FIELD_SEP)
        if not sep or not sep2 or not ref.startswith("stash@{"):
            log.warning("skipping malformed stash line: %r", line)
            continue
        match = _STASH_SUBJECT.match(subject)
        if match:
            entries.append(
                StashEntry(
                    ref=ref,
                    message=match.group("message"),
                    relative_time=relative_time,
                    branch=match.group("branch"),
                )
            )
        else:
            entries.append(StashEntry(ref=ref, message=subject, relative_time=relative_time))
    return entries


def parse_ref_names(output: str) -> list[str]:
    """Parse ``for-each-ref --format=%(refname:short)`` output."""
    names: list[str] = []
    for line in _lines(output):
        name = line.strip().strip("'")
        if not name or " " in name:
            log.warning("skipping malformed ref line: %r", line)
            continue
        names.append(name)
    return names


def parse_branch_list(output: str, current: str | None = None) -> list[BranchEntry]:
    """Turn a list of local branch names into entries, flagging the current one."""
    return [BranchEntry(name=name, is_current=name == current) for name in parse_ref_names(output)]


def parse_count(output: str | None) -> int | None:
    """Parse a ``rev-list --count`` result."""
    if output is None:
        return None
    value = output.strip()
    if not value.isdigit():
        log.warning("unexpected rev-list count: %r", output)
        return None
    return int(value)
