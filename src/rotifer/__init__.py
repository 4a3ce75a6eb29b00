"""
Rotifer - neuroevolution of variable-topology neural networks.

This package evolves a population of neural agents whose structure (hidden
neurons, connections, recurrent links) and weights change across generations
through crossover and mutation, guided by a fitness function supplied by the
caller. No gradients are involved.

Main components:
- genotype: Neurons, genes, gene encoders and genetic operators
- phenotype: The Agent (dynamic or layered network, optionally with memory)
- pool: The World, which runs the generational loop
- run: Configuration, checkpoints and repeated experiments
- activations: Activation functions for neurons
- optimization: Bayesian tuning of the evolution parameters (optional, needs optuna)

Example:
    >>> from rotifer import Config, World
    >>> def fitness(agent, row, other_agents, world):
    ...     return 1.0 - abs(agent.get_output_values()[0] - row[1][0])
    >>> world = World('xor', Config())
    >>> world.create_agents(50, 3, 1, hidden_layers=[3, 2])
    >>> world.step(fitness, xor_data, generation_count=30, survive_rate=0.5)
    >>> best = world.get_best_agent()
"""

__version__ = "0.1.0"

# Import main classes for convenient access
from rotifer.run.config           import Config
from rotifer.run.checkpoint       import Checkpointer, FileCheckpointer, MemoryCheckpointer
from rotifer.errors               import (RotiferError, InvalidTopologyError, RangeError,
                                          DegenerateReproductionError, UnsupportedDecodeError)
from rotifer.genotype.neuron      import NeuronType, Neuron
from rotifer.genotype.gene        import Gene
from rotifer.genotype.encoders    import BINARY, HEX, JSON, HUMAN
from rotifer.phenotype.agent      import Agent
from rotifer.pool.world           import World
from rotifer.run.experiment       import Experiment

__all__ = [
    "Config",
    "Checkpointer",
    "FileCheckpointer",
    "MemoryCheckpointer",
    "RotiferError",
    "InvalidTopologyError",
    "RangeError",
    "DegenerateReproductionError",
    "UnsupportedDecodeError",
    "NeuronType",
    "Neuron",
    "Gene",
    "BINARY",
    "HEX",
    "JSON",
    "HUMAN",
    "Agent",
    "World",
    "Experiment",
]
