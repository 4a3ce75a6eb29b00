"""
Rotifer Genetic Operators Module

This module implements the operators that produce new genomes out of existing
ones. All randomness is drawn from the 'rng' argument (a random.Random instance,
the module 'random' if omitted), so a caller owning the generator controls the
draws made for every offspring.

Operators never raise because a random choice found nothing to act upon
(e.g. no hidden neuron that can safely be deleted); that sub-step is skipped.

Functions:
    crossover(agent_a, agent_b, probability):    Graft some of B's connections onto a copy of A
    mutate(agent, ...):                          Apply the five structural / weight mutations
    translocation(genome, probability):          Swap the positions of two genes
    dominance(genome1, genome2, low, high):      Length-based one-point splice of two genomes
"""

import math
import random

from rotifer.genotype.gene   import Gene, random_weight
from rotifer.genotype.neuron import NeuronType
from rotifer.phenotype.agent import Agent

# Probabilities are evaluated with this granularity
_RESOLUTION = 10000

def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))

def _chance(probability: float, rng) -> bool:
    return rng.randint(1, _RESOLUTION) <= round_half_up(probability * _RESOLUTION)

def _copy(agent: Agent) -> Agent:
    """
    A fresh agent with the structure and weights of 'agent' (and the same settings).
    """
    return Agent.create_from_genome(agent.get_genome_array(),
                                    has_memory   = agent.has_memory,
                                    layers       = agent.layers,
                                    activation   = agent.activation,
                                    input_count  = agent.count_neurons(NeuronType.INPUT),
                                    output_count = agent.count_neurons(NeuronType.OUTPUT))

def crossover(agent_a: Agent, agent_b: Agent, probability: float, rng: random.Random | None = None) -> Agent:
    """
    Create a child that has the body of A, selectively rewired by B.

    The child starts as a copy of A. Each of B's genes is then, with the given
    probability, grafted onto the child: when both its endpoints exist in the
    child the connection is created (or its weight overwritten) with B's weight,
    otherwise the gene is skipped.

    Parameters:
        agent_a:     The parent providing the neurons and the base wiring
        agent_b:     The parent providing the grafted connections
        probability: Probability of grafting each of B's genes

    Returns:
        The child agent (the parents are not modified)
    """
    rng   = rng or random
    child = _copy(agent_a)

    for gene in agent_b.get_genome_array():
        if not _chance(probability, rng):
            continue
        source      = child.find_neuron(gene.from_type, gene.from_index)
        destination = child.find_neuron(gene.to_type, gene.to_index)
        if source is not None and destination is not None:
            child.connect_neurons(source, destination, gene.weight)

    child.delete_redundant_genes()
    return child

def mutate(agent              : Agent,
           p_weight           : float,
           p_add_neuron       : float,
           p_add_connection   : float,
           p_delete_neuron    : float,
           p_delete_connection: float,
           weight_count       : int                  = 1,
           rng                : random.Random | None = None) -> Agent:
    """
    Mutate an agent in place.

    Five independent coins are flipped, then the mutations that came up are
    applied in this order:

      + weight change:     resample the weight of a random gene ('weight_count' times)
      + add neuron:        new hidden neuron fed by a random input and feeding a random output
      + add connection:    one random edge among the legal ones still missing
      + delete neuron:     a random hidden neuron that is not the only link of an input or output
      + delete connection: a random gene; inputs/outputs left unconnected are rewired to everything

    Layered agents have a fixed set of hidden neurons: the two neuron mutations
    are skipped for them.

    Returns:
        The mutated agent
    """
    rng = rng or random

    change_weight     = _chance(p_weight, rng)
    add_neuron        = _chance(p_add_neuron, rng)
    add_connection    = _chance(p_add_connection, rng)
    delete_neuron     = _chance(p_delete_neuron, rng)
    delete_connection = _chance(p_delete_connection, rng)

    if change_weight:
        for _ in range(weight_count):
            _mutate_weight(agent, rng)
    if add_neuron and not agent.is_static:
        _mutate_add_neuron(agent, rng)
    if add_connection:
        _mutate_add_connection(agent, rng)
    if delete_neuron and not agent.is_static:
        _mutate_delete_neuron(agent, rng)
    if delete_connection:
        _mutate_delete_connection(agent, rng)

    return agent

def _mutate_weight(agent: Agent, rng) -> None:
    genome = agent.get_genome_array()
    if not genome:
        return
    gene = rng.choice(genome)
    agent.connect_neurons(agent.find_neuron(gene.from_type, gene.from_index),
                          agent.find_neuron(gene.to_type, gene.to_index),
                          random_weight(rng))

def _mutate_add_neuron(agent: Agent, rng) -> None:
    source      = agent.get_random_neuron_by_type(NeuronType.INPUT, rng)
    destination = agent.get_random_neuron_by_type(NeuronType.OUTPUT, rng)
    if source is None or destination is None:
        return

    neuron = agent.create_neuron(NeuronType.HIDDEN)
    agent.connect_neurons(source, neuron, random_weight(rng))
    agent.connect_neurons(neuron, destination, random_weight(rng))
    agent.delete_redundant_genes()

def _mutate_add_connection(agent: Agent, rng) -> None:
    inputs  = agent.get_neurons_by_type(NeuronType.INPUT)
    hidden  = agent.get_neurons_by_type(NeuronType.HIDDEN)
    outputs = agent.get_neurons_by_type(NeuronType.OUTPUT)

    candidates = []
    for source in inputs:
        for destination in hidden + outputs:
            candidates.append((source, destination))
    for source in hidden:
        for destination in hidden:
            # No new connection from a neuron computed later in the step
            if source.index <= destination.index:
                candidates.append((source, destination))
        for destination in outputs:
            candidates.append((source, destination))

    missing = [(s, d) for s, d in candidates if d.key not in s.out_connections]
    if not missing:
        return

    source, destination = rng.choice(missing)
    agent.connect_neurons(source, destination, random_weight(rng))
    agent.delete_redundant_genes()

def _mutate_delete_neuron(agent: Agent, rng) -> None:
    # Hidden neurons that are the only link of an input or an output must stay
    protected = set()
    for neuron in agent.get_neurons_by_type(NeuronType.INPUT):
        if len(neuron.out_connections) == 1:
            protected.update(neuron.out_connections)
    for neuron in agent.get_neurons_by_type(NeuronType.OUTPUT):
        if len(neuron.in_connections) == 1:
            protected.update(neuron.in_connections)

    candidates = [n for n in agent.get_neurons_by_type(NeuronType.HIDDEN) if n.key not in protected]
    if not candidates:
        return

    agent.remove_neuron(NeuronType.HIDDEN, rng.choice(candidates).index)
    agent.delete_redundant_genes()

def _mutate_delete_connection(agent: Agent, rng) -> None:
    genome = agent.get_genome_array()
    if not genome:
        return

    gene = rng.choice(genome)
    agent.disconnect_neurons(agent.find_neuron(gene.from_type, gene.from_index),
                             agent.find_neuron(gene.to_type, gene.to_index))

    for neuron in agent.get_neurons_by_type(NeuronType.INPUT) + agent.get_neurons_by_type(NeuronType.OUTPUT):
        if not neuron.in_connections and not neuron.out_connections:
            agent.connect_to_all(neuron, rng)

    agent.delete_redundant_genes()

def translocation(genome: list, probability: float, rng: random.Random | None = None) -> list:
    """
    With the given probability, swap the positions of two random genes.

    Only the order of the genes changes (which matters to later crossovers),
    not the network they describe.

    Returns:
        A new list (the argument is not modified)
    """
    rng    = rng or random
    genome = list(genome)
    if len(genome) >= 2 and _chance(probability, rng):
        i, j = rng.sample(range(len(genome)), 2)
        genome[i], genome[j] = genome[j], genome[i]
    return genome

def dominance(genome1   : list,
              genome2   : list,
              low_ratio : float                = 0.3,
              high_ratio: float                = 0.7,
              rng       : random.Random | None = None) -> list[Gene]:
    """
    One-point, length-based splice of two genomes.

    Which genome comes first is chosen at random. The cut point is a random
    fraction in [low_ratio, high_ratio] of the length of the first genome,
    clamped to [1, length - 1] when the length allows it.

    Returns:
        first[:cut] + second[cut:]
    """
    rng = rng or random
    first, second = (genome1, genome2) if rng.random() < 0.5 else (genome2, genome1)

    cut = round_half_up(rng.uniform(low_ratio, high_ratio) * len(first))
    if cut == 0 and len(first) > 1:
        cut = 1
    if cut == len(first) and len(first) > 1:
        cut = len(first) - 1

    return list(first[:cut]) + list(second[cut:])
