"""
Rotifer Checkpoint Module

This module implements the persistence of evolution runs. A checkpointer stores
two plain-text documents per world name: the genome of the best agent found so
far, and the genomes of the whole population (one per line).

Classes:
    Checkpointer:       Abstract persistence interface used by World
    FileCheckpointer:   Stores checkpoints as text files in a directory
    MemoryCheckpointer: Keeps checkpoints in dictionaries
"""

import logging
import os
from abc import ABC, abstractmethod

logger = logging.getLogger(__name__)

class Checkpointer(ABC):
    """
    Persistence interface of the World.

    Public Methods:
        save_best(name, genome):  Store the genome string of the best agent
        save_world(name, text):   Store the genome strings of the population
        load_best(name):          Read back the best agent's genome string
        load_world(name):         Read back the population's genome strings
    """

    @abstractmethod
    def save_best(self, name: str, genome: str):
        pass

    @abstractmethod
    def save_world(self, name: str, text: str):
        pass

    @abstractmethod
    def load_best(self, name: str) -> str:
        pass

    @abstractmethod
    def load_world(self, name: str) -> str:
        pass

class FileCheckpointer(Checkpointer):
    """
    Writes '<name>_best.txt' and '<name>_world.txt' in a directory,
    which is created on the first save.
    """

    def __init__(self, directory: str = 'autosave'):
        self.directory = directory

    def best_path(self, name: str) -> str:
        return os.path.join(self.directory, f"{name}_best.txt")

    def world_path(self, name: str) -> str:
        return os.path.join(self.directory, f"{name}_world.txt")

    def save_best(self, name: str, genome: str):
        self._write(self.best_path(name), genome)

    def save_world(self, name: str, text: str):
        self._write(self.world_path(name), text)

    def load_best(self, name: str) -> str:
        return self._read(self.best_path(name))

    def load_world(self, name: str) -> str:
        return self._read(self.world_path(name))

    def _write(self, path: str, text: str):
        os.makedirs(self.directory, exist_ok=True)
        with open(path, 'w') as f:
            f.write(text)
        logger.debug(f"Checkpoint written to {path}")

    def _read(self, path: str) -> str:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Checkpoint file '{path}' not found")
        with open(path) as f:
            return f.read()

class MemoryCheckpointer(Checkpointer):
    """
    Keeps checkpoints in memory, e.g. for experiments running many short worlds.
    """

    def __init__(self):
        self.best  : dict[str, str] = {}
        self.worlds: dict[str, str] = {}

    def save_best(self, name: str, genome: str):
        self.best[name] = genome

    def save_world(self, name: str, text: str):
        self.worlds[name] = text

    def load_best(self, name: str) -> str:
        if name not in self.best:
            raise FileNotFoundError(f"No best agent checkpoint for '{name}'")
        return self.best[name]

    def load_world(self, name: str) -> str:
        if name not in self.worlds:
            raise FileNotFoundError(f"No world checkpoint for '{name}'")
        return self.worlds[name]
