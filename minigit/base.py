import json
import os
import string
from datetime import datetime, timezone
from typing import Iterator

from . import data, diff
from . import types
from .errors import (BrokenHistory, FileNotReadable, HeadCorrupt, InvalidPath, NothingStaged,
                     ObjectCorrupt, ObjectNotFound, RefCorrupt)
from .log import get_logger

logger = get_logger(__name__)

BRANCH_PREFIX = 'refs/heads/'


def init() -> bool:
    """Ensure the layout exists and HEAD names the default branch.

    Returns False if the repository was already there.
    """
    existed = data.is_initialized()
    data.init()
    if data.get_ref('HEAD', deref=False).value is None:
        data.update_ref('HEAD', types.RefValue(symbolic=True, value=f'{BRANCH_PREFIX}{data.DEFAULT_BRANCH}'),
                        deref=False)
    if not existed:
        logger.info('repository_initialized', git_dir=data.GIT_DIR)
    return not existed


# Ref resolution: HEAD -> branch name -> branch pointer -> commit digest

def _is_digest(value: str) -> bool:
    return len(value) == 40 and all(c in string.hexdigits for c in value)


def get_branch_name() -> str:
    HEAD = data.get_ref('HEAD', deref=False)
    if not HEAD.symbolic or not HEAD.value.startswith(BRANCH_PREFIX):
        raise HeadCorrupt(HEAD.value)
    name = HEAD.value[len(BRANCH_PREFIX):]
    if not name:
        raise HeadCorrupt(HEAD.value)
    return name


def get_branch_head(name: str) -> types.Digest | None:
    ref = f'{BRANCH_PREFIX}{name}'
    value = data.get_ref(ref, deref=False)
    if value.value is None:
        return None
    if value.symbolic or not _is_digest(value.value):
        raise RefCorrupt(ref, value.value)
    return value.value


def set_branch_head(name: str, oid: types.Digest):
    # a branch may only point at a commit that is already stored
    if not data.object_exists(oid):
        raise ObjectNotFound(oid)
    data.update_ref(f'{BRANCH_PREFIX}{name}', types.RefValue(symbolic=False, value=oid), deref=False)
    logger.debug('branch_advanced', branch=name, digest=oid)


def get_oid(name: str) -> types.Digest:
    if name == '@':
        name = 'HEAD'

    if name == 'HEAD':
        oid = get_branch_head(get_branch_name())
        if oid:
            return oid
    elif oid := get_branch_head(name):
        return oid

    if _is_digest(name):
        return name.lower()

    raise ObjectNotFound(name)


# Staging index

def _normalize_path(path: str) -> types.Path:
    return path.replace('\\', '/')


def stage_file(path: types.Path, content: bytes) -> types.Digest:
    path = _normalize_path(path)
    if not path or '\n' in path or '\r' in path:
        raise InvalidPath(path)
    oid = data.put_object(content)
    with data.get_index() as index:
        index[path] = oid
    logger.info('file_staged', path=path, digest=oid)
    return oid


def add(filenames) -> list[types.IndexEntry]:
    """Stage files (and the files under directories) from the working tree."""
    staged = []

    def add_file(filename):
        filename = os.path.relpath(filename)
        try:
            with open(filename, 'rb') as f:
                content = f.read()
        except OSError as e:
            raise FileNotReadable(filename, e.strerror) from e
        staged.append(types.IndexEntry(_normalize_path(filename), stage_file(filename, content)))

    def add_directory(dirname):
        for root, _, filenames_inner in os.walk(dirname):
            for filename_inner in filenames_inner:
                path = os.path.relpath(f'{root}/{filename_inner}')
                if is_ignored(path) or not os.path.isfile(path):
                    continue
                add_file(path)

    for name in filenames:
        if os.path.isdir(name):
            add_directory(name)
        else:
            add_file(name)
    return staged


def list_staged() -> list[types.IndexEntry]:
    return [types.IndexEntry(path, oid) for path, oid in data.read_index().items()]


def clear_index():
    data.write_index({})
    logger.debug('index_cleared')


def is_ignored(path):
    parts = _normalize_path(path).split('/')
    return '.minigit' in parts or '.git' in parts or '__pycache__' in parts


# Commits

def format_timestamp(now: datetime) -> str:
    now = now.astimezone(timezone.utc)
    return now.strftime('%Y-%m-%dT%H:%M:%S') + f'.{now.microsecond // 1000:03d}Z'


def serialize_commit(commit_: types.Commit) -> bytes:
    record = {
        'message': commit_.message,
        'files': [f'{entry.digest} {entry.path}' for entry in commit_.files],
        'timestamp': commit_.timestamp,
        'parent': commit_.parent,
    }
    return json.dumps(record, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


def parse_commit(oid: types.Digest, raw: bytes) -> types.Commit:
    try:
        record = json.loads(raw.decode('utf-8'))
        files = []
        for line in record['files']:
            entry_oid, path = line.split(' ', 1)
            files.append(types.IndexEntry(path, entry_oid))
        commit_ = types.Commit(message=record['message'], files=files,
                               timestamp=record['timestamp'], parent=record['parent'])
    except (ValueError, KeyError, TypeError, AttributeError) as e:
        raise ObjectCorrupt(oid, f'not a commit ({e})') from e
    if not isinstance(commit_.message, str) or not (commit_.parent is None or isinstance(commit_.parent, str)):
        raise ObjectCorrupt(oid, 'not a commit')
    return commit_


def get_commit(oid: types.Digest) -> types.Commit:
    return parse_commit(oid, data.get_object(oid))


def commit(message: str, now: datetime | None = None) -> types.Digest:
    index = data.read_index()
    if not index:
        raise NothingStaged()

    branch = get_branch_name()
    parent = get_branch_head(branch)
    commit_ = types.Commit(
        message=message,
        files=[types.IndexEntry(path, oid) for path, oid in index.items()],
        timestamp=format_timestamp(now or datetime.now(timezone.utc)),
        parent=parent,
    )

    # object, then pointer, then index: an interruption never leaves a dangling ref
    oid = data.put_object(serialize_commit(commit_))
    set_branch_head(branch, oid)
    clear_index()

    logger.info('commit_created', digest=oid, branch=branch, parent=parent, files=len(commit_.files))
    return oid


def get_staged_changes() -> list[tuple[types.Path, types.Action]]:
    head = get_branch_head(get_branch_name())
    committed = get_commit(head).snapshot() if head else {}
    staged = {**committed, **data.read_index()}
    return list(diff.iter_changed_files(committed, staged))


# History

class History:
    """Commits reachable from `start` by following parent links, newest first.

    Each iteration is a fresh walk. A walk that cannot reach a root commit
    stops early and leaves the reason in `broken`.
    """

    def __init__(self, start: types.Digest | None):
        self.start = start
        self.broken: BrokenHistory | None = None

    def __iter__(self) -> Iterator[types.Commit]:
        for _, commit_ in self.items():
            yield commit_

    def items(self) -> Iterator[tuple[types.Digest, types.Commit]]:
        self.broken = None
        if not self.start or not data.object_exists(self.start):
            return

        visited = set()
        oid = self.start
        while oid:
            if oid in visited:
                self._stop(oid, 'cycle')
                return
            visited.add(oid)
            try:
                commit_ = get_commit(oid)
            except ObjectNotFound:
                self._stop(oid, 'missing')
                return
            except ObjectCorrupt:
                self._stop(oid, 'corrupt')
                return
            yield oid, commit_
            oid = commit_.parent

    def _stop(self, oid, reason):
        self.broken = BrokenHistory(oid, reason)
        logger.warning('history_broken', digest=oid, reason=reason, start=self.start)


def history(start: types.Digest | None) -> History:
    data.ensure_initialized()
    return History(start)


def log_from_current_branch() -> History:
    return history(get_branch_head(get_branch_name()))
