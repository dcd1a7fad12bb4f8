from collections import defaultdict
from typing import Iterable
from typing_extensions import Unpack

from . import types


def compare_snapshots(*snapshots: types.Snapshot) -> Iterable[
        tuple[types.Path, Unpack[tuple[types.Digest | None, ...]]]]:
    entries = defaultdict(lambda: [None] * len(snapshots))
    for i, snapshot in enumerate(snapshots):
        for path, oid in snapshot.items():
            entries[path][i] = oid

    for path, oids in entries.items():
        yield path, *oids


def iter_changed_files(s_from: types.Snapshot, s_to: types.Snapshot) -> Iterable[
        tuple[types.Path, types.Action]]:
    for path, o_from, o_to in compare_snapshots(s_from, s_to):
        if o_from != o_to:
            action = ('new_file' if not o_from else
                      'deleted' if not o_to else
                      'modified')
            yield path, action
