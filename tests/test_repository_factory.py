"""Tests for the tinygit.repository() factory function."""

import pytest

from tinygit import DirectoryWorktree, MemoryWorktree, Repository, repository
from tinygit.kv.disk import Disk
from tinygit.kv.memory import Memory


class TestRepositoryFactory:
    def test_default_is_memory(self):
        repo = repository()
        assert isinstance(repo, Repository)
        assert isinstance(repo.store, Memory)
        assert isinstance(repo.worktree, MemoryWorktree)

    def test_invalid_storage(self):
        with pytest.raises(ValueError, match="Unknown storage"):
            repository(storage="redis")

    def test_disk_requires_path(self):
        with pytest.raises(ValueError, match="path is required"):
            repository(storage="disk")

    def test_path_only_for_disk(self, tmp_path):
        with pytest.raises(ValueError, match="path is only valid"):
            repository(path=tmp_path)

    def test_worktree_only_for_memory(self, tmp_path):
        with pytest.raises(ValueError, match="worktree is only valid"):
            repository(storage="disk", path=tmp_path, worktree=MemoryWorktree())

    def test_default_branch(self):
        repo = repository(default_branch="master")
        assert repo.refs.head_branch() == "master"

    def test_hash_algorithm(self):
        repo = repository(hash_algorithm="sha256")
        repo.worktree.write("f", b"x")
        assert len(repo.stage("f")) == 64

    def test_unknown_hash_algorithm(self):
        with pytest.raises(ValueError, match="Unknown hash algorithm"):
            repository(hash_algorithm="crc32")

    def test_disk(self, tmp_path):
        repo = repository(storage="disk", path=tmp_path)
        try:
            assert isinstance(repo.store, Disk)
            assert isinstance(repo.worktree, DirectoryWorktree)
            assert (tmp_path / ".tinygit" / "config.json").exists()
        finally:
            repo.close()

    def test_instances_are_independent(self):
        one = repository()
        two = repository()
        one.worktree.write("f", b"x")
        one.stage("f")
        one.seal_commit("m")
        assert two.refs.head_commit() is None
