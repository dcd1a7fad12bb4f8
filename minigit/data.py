import os
import hashlib
import tempfile
from contextlib import contextmanager

from minigit import types
from minigit.errors import IndexCorrupt, ObjectNotFound, RepositoryNotInitialized
from minigit.log import get_logger
from minigit.types import RefValue

logger = get_logger(__name__)

GIT_DIR: str | None = None
DEFAULT_BRANCH = 'main'


@contextmanager
def change_git_dir(new_dir):
    global GIT_DIR
    old_dir = GIT_DIR
    GIT_DIR = f'{new_dir}/.minigit'
    try:
        yield
    finally:
        GIT_DIR = old_dir


def is_initialized() -> bool:
    return GIT_DIR is not None and os.path.isdir(f'{GIT_DIR}/objects')


def ensure_initialized():
    if not is_initialized():
        raise RepositoryNotInitialized(GIT_DIR)


def init():
    """Create the directory layout. Safe to call on an existing repository."""
    if GIT_DIR is None:
        raise RepositoryNotInitialized(GIT_DIR)
    os.makedirs(f'{GIT_DIR}/objects', exist_ok=True)
    os.makedirs(f'{GIT_DIR}/refs/heads', exist_ok=True)


def _write_atomic(path, content: bytes):
    # readers see either the old file or the new one, never a partial write
    dirname = os.path.dirname(path)
    os.makedirs(dirname, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=dirname, prefix=os.path.basename(path), suffix='.tmp')
    try:
        with os.fdopen(fd, 'wb') as out:
            out.write(content)
            out.flush()
            os.fsync(out.fileno())
        os.replace(tmp_path, path)
    finally:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)


def digest(data: bytes) -> types.Digest:
    return hashlib.sha1(data).hexdigest()


def _object_path(oid: types.Digest) -> str:
    return f'{GIT_DIR}/objects/{oid[:2]}/{oid[2:]}'


def object_exists(oid: types.Digest) -> bool:
    return len(oid) > 2 and os.path.isfile(_object_path(oid))


def put_object(data: bytes) -> types.Digest:
    ensure_initialized()
    oid = digest(data)
    if object_exists(oid):
        return oid
    _write_atomic(_object_path(oid), data)
    logger.debug('object_stored', digest=oid, size=len(data))
    return oid


def get_object(oid: types.Digest) -> bytes:
    ensure_initialized()
    if not object_exists(oid):
        raise ObjectNotFound(oid)
    with open(_object_path(oid), 'rb') as f:
        return f.read()


def update_ref(ref, value: RefValue, deref=True):
    ensure_initialized()
    ref = _get_ref_internal(ref, deref)[0]

    assert value.value
    if value.symbolic:
        value = f'ref: {value.value}\n'
    else:
        value = value.value
    _write_atomic(f'{GIT_DIR}/{ref}', value.encode())


def get_ref(ref, deref=True) -> RefValue:
    ensure_initialized()
    return _get_ref_internal(ref, deref)[1]


def _get_ref_internal(ref: str, deref: bool) -> tuple[str, RefValue]:
    ref_path = f'{GIT_DIR}/{ref}'
    value = None
    if os.path.isfile(ref_path):
        with open(ref_path) as f:
            value = f.read().strip() or None

    symbolic = bool(value) and value.startswith('ref:')
    if symbolic:
        value = value.split(':', 1)[1].strip()
        if deref:
            return _get_ref_internal(value, deref=True)
    return ref, RefValue(symbolic=symbolic, value=value)


def read_index() -> dict[types.Path, types.Digest]:
    ensure_initialized()
    index = {}
    if os.path.isfile(f'{GIT_DIR}/index'):
        with open(f'{GIT_DIR}/index', encoding='utf-8') as f:
            for line_number, line in enumerate(f, 1):
                line = line.rstrip('\n')
                if not line:
                    continue
                oid, sep, path = line.partition(' ')
                if not sep or not oid or not path:
                    raise IndexCorrupt(line_number, line)
                # a later line for the same path wins but keeps the first slot
                index[path] = oid
    return index


def write_index(index: dict[types.Path, types.Digest]):
    ensure_initialized()
    content = ''.join(f'{oid} {path}\n' for path, oid in index.items())
    _write_atomic(f'{GIT_DIR}/index', content.encode('utf-8'))


@contextmanager
def get_index():
    index = read_index()
    yield index
    write_index(index)
