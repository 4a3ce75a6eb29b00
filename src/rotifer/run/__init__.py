"""
Rotifer Run Package

This package contains the configuration and persistence of evolution runs, and
the Experiment class that repeats a run in several independent worlds.

Modules:
    config:     Config class (INI file or built-in defaults)
    checkpoint: Checkpointer interface, file and in-memory implementations
    experiment: Experiment class (import it from 'rotifer.run.experiment')

Exported Classes:
    Config:             Evolution parameters
    Checkpointer:       Persistence interface used by World
    FileCheckpointer:   Checkpoints stored as text files
    MemoryCheckpointer: Checkpoints kept in memory
"""

from rotifer.run.config     import Config
from rotifer.run.checkpoint import Checkpointer, FileCheckpointer, MemoryCheckpointer

__all__ = ['Config',
           'Checkpointer',
           'FileCheckpointer',
           'MemoryCheckpointer']
