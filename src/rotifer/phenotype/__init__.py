"""
Rotifer Phenotype Package

This package implements the executable side of an individual: the Agent, whose
neuron graph both computes outputs from inputs and exports the genome the
genetic operators work on.

Modules:
    agent: Agent class (dynamic or layered neural network, with optional memory)

Exported Classes:
    Agent: A variable-topology neural network with optional recurrent memory
"""

from rotifer.phenotype.agent import Agent

__all__ = ['Agent']
