"""Tests for content addressing and the object store."""

import hashlib
import os

import pytest

from minigit import data
from minigit.errors import ObjectNotFound, RepositoryNotInitialized


def test_digest_is_sha1_hex():
    assert data.digest(b'hello') == hashlib.sha1(b'hello').hexdigest()
    assert len(data.digest(b'')) == 40


def test_digest_is_deterministic():
    assert data.digest(b'same bytes') == data.digest(b'same bytes')
    assert data.digest(b'a') != data.digest(b'b')


def test_put_uses_two_level_layout(repo):
    oid = data.put_object(b'hello')

    path = repo / '.minigit' / 'objects' / oid[:2] / oid[2:]
    assert path.is_file()
    assert path.read_bytes() == b'hello'


def test_put_twice_stores_one_object(repo):
    first = data.put_object(b'content')
    mtime = os.stat(repo / '.minigit' / 'objects' / first[:2] / first[2:]).st_mtime_ns

    second = data.put_object(b'content')

    assert first == second
    obj_dir = repo / '.minigit' / 'objects' / first[:2]
    assert [p.name for p in obj_dir.iterdir()] == [first[2:]]
    assert os.stat(obj_dir / first[2:]).st_mtime_ns == mtime
    assert data.get_object(first) == b'content'


def test_get_roundtrips_binary_payload(repo):
    payload = bytes(range(256))
    assert data.get_object(data.put_object(payload)) == payload


def test_get_missing_object_raises(repo):
    with pytest.raises(ObjectNotFound) as exc_info:
        data.get_object('0' * 40)
    assert exc_info.value.digest == '0' * 40


def test_object_exists(repo):
    oid = data.put_object(b'x')
    assert data.object_exists(oid)
    assert not data.object_exists('f' * 40)
    assert not data.object_exists('')


def test_store_requires_initialized_repository(tmp_path):
    with data.change_git_dir(str(tmp_path)):
        with pytest.raises(RepositoryNotInitialized):
            data.put_object(b'x')
        with pytest.raises(RepositoryNotInitialized):
            data.get_object('0' * 40)


def test_store_requires_configured_directory():
    assert data.GIT_DIR is None
    with pytest.raises(RepositoryNotInitialized):
        data.put_object(b'x')


def test_change_git_dir_restores_previous(tmp_path):
    with data.change_git_dir(str(tmp_path / 'outer')):
        outer = data.GIT_DIR
        with data.change_git_dir(str(tmp_path / 'inner')):
            assert data.GIT_DIR.endswith('inner/.minigit')
        assert data.GIT_DIR == outer
    assert data.GIT_DIR is None


def test_interleaved_put_of_same_content(repo, monkeypatch):
    real_replace = os.replace
    calls = []

    def replace_after_second_writer(src, dst):
        calls.append(dst)
        if len(calls) == 1:
            # another writer stores the same bytes while this one is mid-write
            data.put_object(b'payload')
        real_replace(src, dst)

    monkeypatch.setattr(os, 'replace', replace_after_second_writer)

    oid = data.put_object(b'payload')

    assert len(calls) == 2
    assert data.get_object(oid) == b'payload'
    obj_dir = repo / '.minigit' / 'objects' / oid[:2]
    assert [p.name for p in obj_dir.iterdir()] == [oid[2:]]


def test_failed_write_leaves_no_temp_file(repo, monkeypatch):
    def failing_fsync(fd):
        raise OSError('disk full')

    monkeypatch.setattr(os, 'fsync', failing_fsync)

    with pytest.raises(OSError):
        data.put_object(b'payload')

    oid = data.digest(b'payload')
    assert not data.object_exists(oid)
    assert list((repo / '.minigit' / 'objects' / oid[:2]).iterdir()) == []
