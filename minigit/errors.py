class MinigitError(Exception):
    """Base class for every error the repository core raises."""


class RepositoryNotInitialized(MinigitError):
    def __init__(self, git_dir=None):
        self.git_dir = git_dir
        super().__init__(f'not a minigit repository: {git_dir or "(unset)"}')


class FileNotReadable(MinigitError):
    def __init__(self, path, reason=None):
        self.path = path
        message = f'cannot read {path}'
        if reason:
            message += f': {reason}'
        super().__init__(message)


class NothingStaged(MinigitError):
    def __init__(self):
        super().__init__('No changes staged for commit.')


class ObjectNotFound(MinigitError):
    def __init__(self, digest):
        self.digest = digest
        super().__init__(f'object not found: {digest}')


class ObjectCorrupt(MinigitError):
    """A stored object could not be decoded as the record it should hold."""

    def __init__(self, digest, reason):
        self.digest = digest
        super().__init__(f'object {digest} is corrupt: {reason}')


class HeadCorrupt(MinigitError):
    def __init__(self, content):
        self.content = content
        super().__init__(f'HEAD is not a branch reference: {content!r}')


class BrokenHistory(MinigitError):
    """The parent chain could not be followed past `digest`.

    `reason` is one of 'missing', 'corrupt' or 'cycle'.
    """

    def __init__(self, digest, reason):
        self.digest = digest
        self.reason = reason
        super().__init__(f'history broken at {digest} ({reason})')


class RefCorrupt(MinigitError):
    def __init__(self, ref, content):
        self.ref = ref
        self.content = content
        super().__init__(f'{ref} does not hold a commit digest: {content!r}')


class InvalidPath(MinigitError):
    def __init__(self, path):
        self.path = path
        super().__init__(f'cannot track path {path!r}')


class IndexCorrupt(MinigitError):
    def __init__(self, line_number, line):
        self.line_number = line_number
        self.line = line
        super().__init__(f'index line {line_number} is malformed: {line!r}')
