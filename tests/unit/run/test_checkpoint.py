"""
Unit tests for the checkpointers.
"""

import os

import pytest

from rotifer.run.checkpoint import Checkpointer, FileCheckpointer, MemoryCheckpointer


class TestFileCheckpointer:

    def test_paths(self, tmp_path):
        checkpointer = FileCheckpointer(str(tmp_path))
        assert checkpointer.best_path('xor') == os.path.join(str(tmp_path), 'xor_best.txt')
        assert checkpointer.world_path('xor') == os.path.join(str(tmp_path), 'xor_world.txt')

    def test_directory_created_on_save(self, tmp_path):
        directory = tmp_path / 'nested' / 'autosave'
        checkpointer = FileCheckpointer(str(directory))
        assert not directory.exists()

        checkpointer.save_best('xor', 'abc;def')
        assert (directory / 'xor_best.txt').read_text() == 'abc;def'

    def test_round_trip(self, tmp_path):
        checkpointer = FileCheckpointer(str(tmp_path))
        checkpointer.save_best('xor', 'abc')
        checkpointer.save_world('xor', 'abc\ndef')

        assert checkpointer.load_best('xor') == 'abc'
        assert checkpointer.load_world('xor') == 'abc\ndef'

    def test_save_overwrites(self, tmp_path):
        checkpointer = FileCheckpointer(str(tmp_path))
        checkpointer.save_best('xor', 'old')
        checkpointer.save_best('xor', 'new')
        assert checkpointer.load_best('xor') == 'new'

    def test_missing_files(self, tmp_path):
        checkpointer = FileCheckpointer(str(tmp_path))
        with pytest.raises(FileNotFoundError, match="xor_best.txt"):
            checkpointer.load_best('xor')
        with pytest.raises(FileNotFoundError):
            checkpointer.load_world('xor')


class TestMemoryCheckpointer:

    def test_round_trip(self):
        checkpointer = MemoryCheckpointer()
        checkpointer.save_best('a', 'genome')
        checkpointer.save_world('a', 'g1\ng2')

        assert checkpointer.load_best('a') == 'genome'
        assert checkpointer.load_world('a') == 'g1\ng2'
        assert checkpointer.best == {'a': 'genome'}

    def test_missing_names(self):
        checkpointer = MemoryCheckpointer()
        with pytest.raises(FileNotFoundError):
            checkpointer.load_best('a')
        with pytest.raises(FileNotFoundError):
            checkpointer.load_world('a')


def test_checkpointer_is_abstract():
    with pytest.raises(TypeError):
        Checkpointer()
