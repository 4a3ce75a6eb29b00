"""
Rotifer Neuron Module.

This module implements the Neuron class and NeuronType enumeration.

Classes:
    NeuronType: Enumeration for neuron types (INPUT, HIDDEN, OUTPUT)
    Neuron:     A single computational unit with its incoming and outgoing connections
"""

from enum   import IntEnum
from typing import Callable

from rotifer.activations import sigmoid_activation

class NeuronType(IntEnum):
    """
    Neurons come in three types: input, hidden, output.
    The integer values are used when genes are serialized and
    define the order in which source neurons are listed in a genome.
    """
    INPUT  = 0
    HIDDEN = 1
    OUTPUT = 2

# Key identifying a neuron inside an agent
NeuronKey = tuple[NeuronType, int]

class Neuron:
    """
    A single neuron of an agent's network.

    A neuron knows its type, its index (unique among the neurons of the same type
    inside one agent), its current value and two adjacency maps: the neurons that
    feed it ('in_connections') and the neurons it feeds ('out_connections'). Both
    maps are keyed by (peer type, peer index) and hold the connection weight.

    The neuron only manipulates its own maps. Keeping both endpoints of a
    connection consistent is the job of the Agent owning the neuron.

    Public Attributes:
        type:            Type of neuron (INPUT, HIDDEN or OUTPUT)
        index:           Index of the neuron among the neurons of the same type
        value:           Current activation value
        in_connections:  (type, index) -> weight, for the neurons feeding this one
        out_connections: (type, index) -> weight, for the neurons this one feeds
    """

    def __init__(self, neuron_type: NeuronType, index: int, value: float = 0.0):
        self.type           : NeuronType              = neuron_type
        self.index          : int                     = index
        self.value          : float                   = value
        self.in_connections : dict[NeuronKey, float]  = {}
        self.out_connections: dict[NeuronKey, float]  = {}

    @property
    def key(self) -> NeuronKey:
        return (self.type, self.index)

    def set_value(self, value: float) -> 'Neuron':
        self.value = float(value)
        return self

    def get_value(self) -> float:
        return self.value

    def apply_activation(self, activation: Callable[[float], float] | None = None) -> 'Neuron':
        """
        Replace the value of the neuron by its image through 'activation' (sigmoid if None).
        """
        if activation is None:
            activation = sigmoid_activation
        self.value = float(activation(self.value))
        return self

    def set_in_connection(self, neuron_type: NeuronType, index: int, weight: float) -> None:
        self.in_connections[(neuron_type, index)] = weight

    def set_out_connection(self, neuron_type: NeuronType, index: int, weight: float) -> None:
        self.out_connections[(neuron_type, index)] = weight

    def delete_in_connection(self, neuron_type: NeuronType, index: int) -> None:
        self.in_connections.pop((neuron_type, index), None)

    def delete_out_connection(self, neuron_type: NeuronType, index: int) -> None:
        self.out_connections.pop((neuron_type, index), None)

    def delete_connection(self, neuron_type: NeuronType, index: int) -> None:
        """
        Forget the peer (neuron_type, index) in both directions.
        """
        self.delete_in_connection(neuron_type, index)
        self.delete_out_connection(neuron_type, index)

    def delete_connections(self) -> None:
        self.in_connections.clear()
        self.out_connections.clear()

    def sorted_in_connections(self) -> list[tuple[NeuronType, int, float]]:
        """
        Incoming connections grouped by source type, then ascending source index.
        """
        return [(t, i, w) for (t, i), w in sorted(self.in_connections.items(), key=lambda item: item[0])]

    def __repr__(self):
        return (f"Neuron(neuron_type=NeuronType.{self.type.name}, index={self.index}, "
                f"value={self.value})")

    def __str__(self):
        return f"[{self.type.name[0]}{self.index},v={self.value:+.3f}]"
