"""
Rotifer Gene Module

This module implements the Gene record and the weight helpers shared by the
agents, the genetic operators and the encoders.

Classes:
    Gene: A directed, weighted connection between two neurons

Functions:
    random_weight(rng): Draw a random connection weight
    check_weight(weight): Validate a connection weight
    as_gene(value): Coerce a tuple, list or dictionary to a Gene
"""

import random
from collections.abc import Mapping
from typing          import NamedTuple

from rotifer.errors          import RangeError
from rotifer.genotype.neuron import NeuronType

# Max possible weight for connections. Min possible weight is -MAX_WEIGHT.
# MAX_WEIGHT * 10^6 * 2 fits in the 24 bits reserved for weights by the binary encoding.
MAX_WEIGHT = 8.388607

# Weights are quantized to micro-units
WEIGHT_SCALE = 1_000_000

# Neuron indexes fit in 16 bits
MAX_INDEX = 65535

class Gene(NamedTuple):
    """
    A gene describing a directed, weighted connection between two neurons.

    A genome is the ordered list of the genes of an agent; genes are not stored
    independently, they are exported from the agent's neuron graph on demand.
    """
    from_type : NeuronType
    from_index: int
    to_type   : NeuronType
    to_index  : int
    weight    : float

    def __str__(self):
        return (f"[{self.from_type.name[0]}{self.from_index:02d}=>"
                f"{self.to_type.name[0]}{self.to_index:02d},{self.weight:+.02f}]")

def random_weight(rng: random.Random | None = None) -> float:
    """
    Draw a weight uniformly from [-MAX_WEIGHT, MAX_WEIGHT], with micro-unit granularity.
    """
    rng = rng or random
    limit = round(MAX_WEIGHT * WEIGHT_SCALE)
    return rng.randint(-limit, limit) / WEIGHT_SCALE

def check_weight(weight: float) -> float:
    """
    Raises:
        RangeError: if 'weight' is outside [-MAX_WEIGHT, MAX_WEIGHT]
    """
    if not -MAX_WEIGHT <= weight <= MAX_WEIGHT:
        raise RangeError(f"Weight {weight} is out of allowed range of +-{MAX_WEIGHT}")
    return weight

def as_gene(value) -> Gene:
    """
    Coerce 'value' to a Gene.

    Accepts a Gene, a 5-item sequence (from_type, from_index, to_type, to_index, weight)
    or a mapping with the keys 'from_type', 'from_index', 'to_type', 'to_index', 'weight'.
    """
    if isinstance(value, Gene):
        return value
    if isinstance(value, Mapping):
        value = (value['from_type'], value['from_index'], value['to_type'], value['to_index'], value['weight'])
    from_type, from_index, to_type, to_index, weight = value
    return Gene(NeuronType(from_type), int(from_index), NeuronType(to_type), int(to_index), float(weight))
