from typing import TypeAlias, NamedTuple, Literal

Path: TypeAlias = str  # a tracked path, '/'-separated
Digest: TypeAlias = str  # hex SHA-1
Snapshot: TypeAlias = dict[Path, Digest]
Action: TypeAlias = Literal['new_file', 'deleted', 'modified']


class IndexEntry(NamedTuple):
    path: Path
    digest: Digest


class Commit(NamedTuple):
    message: str
    files: list[IndexEntry]
    timestamp: str
    parent: Digest | None

    def snapshot(self) -> Snapshot:
        return {entry.path: entry.digest for entry in self.files}


class RefValue(NamedTuple):
    symbolic: bool
    value: str | None
