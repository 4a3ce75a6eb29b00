"""
Rotifer Pool Package

This package contains the World class, which manages the population of agents
and coordinates the evolutionary process across generations.

Modules:
    world: Population management, tournament reproduction and checkpoints

Exported Classes:
    World: Top-level evolutionary coordinator
"""

from rotifer.pool.world import World

__all__ = [
    'World',
]
