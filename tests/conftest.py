"""Pytest configuration and shared fixtures."""

import random
import sys
from pathlib import Path

import pytest

# Add the source directory to the Python path
root_dir = Path(__file__).parent.parent
sys.path.insert(0, str(root_dir / 'src'))


@pytest.fixture
def rng():
    """A seeded random generator."""
    return random.Random(42)


@pytest.fixture
def config():
    """Default configuration, seeded."""
    from rotifer.run.config import Config
    config = Config()
    config.seed = 42
    return config


@pytest.fixture
def simple_agent():
    """
    A small agent without memory:

        I0 --(1.0)--> H0 --(2.0)--> O0
        I1 --(-1.0)-> H0
        I0 --(0.5)----------------> O0
    """
    from rotifer.genotype.neuron import NeuronType
    from rotifer.phenotype.agent import Agent

    agent = Agent()
    i0 = agent.find_or_create_neuron(NeuronType.INPUT, 0)
    i1 = agent.find_or_create_neuron(NeuronType.INPUT, 1)
    h0 = agent.find_or_create_neuron(NeuronType.HIDDEN, 0)
    o0 = agent.find_or_create_neuron(NeuronType.OUTPUT, 0)
    agent.connect_neurons(i0, h0, 1.0)
    agent.connect_neurons(i1, h0, -1.0)
    agent.connect_neurons(h0, o0, 2.0)
    agent.connect_neurons(i0, o0, 0.5)
    return agent


@pytest.fixture
def xor_data():
    """XOR truth table, with a bias input."""
    return [
        [[1, 0, 0], [0]],
        [[1, 0, 1], [1]],
        [[1, 1, 0], [1]],
        [[1, 1, 1], [0]],
    ]
