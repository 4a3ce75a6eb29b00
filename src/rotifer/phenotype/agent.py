"""
Rotifer Agent Module

This module implements the Agent class, one individual of the evolving population:
its neuron graph (genotype and phenotype at once), the forward computation and
the structural maintenance of the graph.

Classes:
    Agent: A variable-topology neural network with optional recurrent memory
"""

import random
from collections.abc import Iterable, Iterator
from typing          import Any, Callable

import graphviz  # type: ignore

from rotifer.errors            import InvalidTopologyError, RangeError
from rotifer.genotype.encoders import Encoder, HEX
from rotifer.genotype.gene     import Gene, MAX_INDEX, as_gene, check_weight, random_weight
from rotifer.genotype.neuron   import Neuron, NeuronKey, NeuronType

class Agent:
    """
    An individual of the population: a sparse, typed, indexed graph of neurons.

    Neurons are grouped by type (INPUT, HIDDEN, OUTPUT) and identified, inside
    each group, by an index. Connections are stored on both of their endpoints;
    'connect_neurons' and 'disconnect_neurons' are the only methods that touch
    the adjacency maps of two neurons at once, so the two sides never disagree.

    The genome of the agent is not stored: it is exported from the graph on
    demand ('get_genome_array') and it is the unit genetic operators work on.
    Setting a genome ('set_genome') wipes every connection and rebuilds them.

    An agent is either dynamic (free-form hidden graph, grown and shrunk by
    mutation) or layered, when 'layers' lists the sizes of a fixed partition of
    its hidden neurons into feed-forward layers.

    Agents without memory zero their hidden neurons before every step; agents
    with memory keep them, so self-loops and hidden->hidden feedback connections
    carry the previous step's values.

    Public Attributes:
        neurons:    NeuronType -> (index -> Neuron)
        fitness:    Fitness accumulated during the current evaluation
        step_count: Number of steps since the last memory reset
        has_memory: Whether hidden values persist between steps
        additional: Opaque payload, free for the caller to use
        activation: Activation function of hidden and output neurons (None = sigmoid)
        layers:     Sizes of the hidden layers (empty for a dynamic agent)

    Public Methods:
        connect_neurons(n1, n2, weight): Create or update the connection n1 -> n2
        step(inputs):                    Compute one forward pass
        get_genome_array():              Export the genome
        set_genome(genome):              Rebuild all connections from a genome
        delete_redundant_genes():        Prune degenerate structure
    """

    def __init__(self,
                 has_memory: bool                              = False,
                 activation: Callable[[float], float] | None = None,
                 layers    : Iterable[int] | None             = None):
        self.neurons   : dict[NeuronType, dict[int, Neuron]] = {}
        self.fitness   : float                                = 0.0
        self.step_count: int                                  = 0
        self.has_memory: bool                                 = has_memory
        self.additional: Any                                  = None
        self.activation: Callable[[float], float] | None     = activation
        self.layers    : list[int]                            = list(layers) if layers else []

    @classmethod
    def create_from_genome(cls,
                           genome,
                           decoder     : Encoder | None                   = None,
                           separator   : str                              = ';',
                           has_memory  : bool                             = False,
                           layers      : Iterable[int] | None             = None,
                           activation  : Callable[[float], float] | None = None,
                           input_count : int                              = 0,
                           output_count: int                              = 0) -> 'Agent':
        """
        Create an agent from a genome.

        Neurons are created as the genes reference them. Since a neuron without
        connections does not appear in any gene, 'input_count' and 'output_count'
        can be used to guarantee that the input and output neurons [0, count)
        exist (so that inputs keep being assigned to the right neurons).

        Parameters:
            genome:       A sequence of genes, or an encoded genome string
            decoder:      Decoder for encoded genomes (HEX by default)
            separator:    Separator between the genes of an encoded genome
            has_memory:   Whether the new agent has memory
            layers:       Hidden layer sizes (layered agents only)
            activation:   Activation function (None = sigmoid)
            input_count:  Minimum number of input neurons
            output_count: Minimum number of output neurons
        """
        agent = cls(has_memory, activation, layers)
        for index in range(input_count):
            agent.find_or_create_neuron(NeuronType.INPUT, index)
        for index in range(output_count):
            agent.find_or_create_neuron(NeuronType.OUTPUT, index)
        agent.set_genome(genome, decoder, separator)
        return agent

    @property
    def is_static(self) -> bool:
        """Whether the hidden neurons are partitioned into fixed layers."""
        return bool(self.layers)

    # ------------------------------------------------------------------
    # Neurons
    # ------------------------------------------------------------------

    def find_neuron(self, neuron_type: NeuronType, index: int) -> Neuron | None:
        return self.neurons.get(neuron_type, {}).get(index)

    def find_or_create_neuron(self, neuron_type: NeuronType, index: int) -> Neuron:
        """
        Raises:
            RangeError: if 'index' is outside [0, MAX_INDEX]
        """
        if not 0 <= index <= MAX_INDEX:
            raise RangeError(f"Index {index} is out of allowed range [0, {MAX_INDEX}]")

        neuron = self.find_neuron(neuron_type, index)
        if neuron is None:
            neuron = Neuron(neuron_type, index)
            self.neurons.setdefault(neuron_type, {})[index] = neuron
        return neuron

    def create_neuron(self,
                      neuron_type   : NeuronType,
                      count         : int                  = 1,
                      connect_to_all: bool                 = False,
                      rng           : random.Random | None = None) -> Neuron | None:
        """
        Append 'count' neurons of the given type, at the next free indexes.

        Parameters:
            neuron_type:    Type of the new neurons
            count:          How many neurons to create
            connect_to_all: Wire each new hidden neuron to the rest of the graph
            rng:            Random generator for the weights of the new connections

        Returns:
            The last neuron created (None if 'count' is 0)
        """
        neuron = None
        for _ in range(count):
            group = self.neurons.get(neuron_type)
            index = max(group) + 1 if group else 0
            neuron = self.find_or_create_neuron(neuron_type, index)
            if connect_to_all and neuron_type == NeuronType.HIDDEN:
                self.connect_to_all(neuron, rng)
        return neuron

    def create_hidden_layer_neurons(self, layers: Iterable[int]) -> 'Agent':
        """
        Create the hidden neurons of a layered agent, e.g. [5, 4, 5] for three layers.
        """
        self.layers = list(layers)
        self.create_neuron(NeuronType.HIDDEN, sum(self.layers))
        return self

    def remove_neuron(self, neuron_type: NeuronType, index: int) -> None:
        """
        Remove a neuron and every connection starting or ending at it.
        """
        neuron = self.neurons.get(neuron_type, {}).pop(index, None)
        if neuron is None:
            return

        for key in neuron.in_connections:
            peer = self.find_neuron(*key)
            if peer is not None:
                peer.delete_out_connection(neuron_type, index)
        for key in neuron.out_connections:
            peer = self.find_neuron(*key)
            if peer is not None:
                peer.delete_in_connection(neuron_type, index)
        neuron.delete_connections()

    def get_neurons_by_type(self, neuron_type: NeuronType) -> list[Neuron]:
        """
        Neurons of the given type, in ascending index order.
        """
        group = self.neurons.get(neuron_type, {})
        return [group[index] for index in sorted(group)]

    def get_random_neuron_by_type(self,
                                  neuron_type: NeuronType,
                                  rng        : random.Random | None = None) -> Neuron | None:
        neurons = self.get_neurons_by_type(neuron_type)
        return (rng or random).choice(neurons) if neurons else None

    def get_neurons_by_layer(self, layer_index: int) -> list[Neuron]:
        """
        Hidden neurons of a layer of a layered agent (layers are numbered from 0).
        """
        if not 0 <= layer_index < len(self.layers):
            return []
        start = sum(self.layers[:layer_index])
        return self.get_neurons_by_type(NeuronType.HIDDEN)[start:start + self.layers[layer_index]]

    def iter_neurons(self) -> Iterator[Neuron]:
        """
        All neurons, ordered by type, then by index.
        """
        for neuron_type in NeuronType:
            yield from self.get_neurons_by_type(neuron_type)

    def count_neurons(self, neuron_type: NeuronType) -> int:
        return len(self.neurons.get(neuron_type, {}))

    def get_input_values(self) -> list[float]:
        return [neuron.value for neuron in self.get_neurons_by_type(NeuronType.INPUT)]

    def get_output_values(self) -> list[float]:
        return [neuron.value for neuron in self.get_neurons_by_type(NeuronType.OUTPUT)]

    # ------------------------------------------------------------------
    # Connections
    # ------------------------------------------------------------------

    @staticmethod
    def _check_direction(from_type: NeuronType, to_type: NeuronType) -> None:
        """
        Raises:
            InvalidTopologyError: if a connection from 'from_type' to 'to_type' is not allowed
        """
        if from_type == NeuronType.INPUT and to_type == NeuronType.INPUT:
            raise InvalidTopologyError("Cannot connect input to input")
        if from_type == NeuronType.OUTPUT and to_type == NeuronType.OUTPUT:
            raise InvalidTopologyError("Cannot connect output to output")
        if from_type == NeuronType.HIDDEN and to_type == NeuronType.INPUT:
            raise InvalidTopologyError("Cannot connect hidden to input")

        # Nothing feeds inputs and nothing is downstream of outputs
        if to_type == NeuronType.INPUT:
            raise InvalidTopologyError(f"Cannot connect {from_type.name.lower()} to input")
        if from_type == NeuronType.OUTPUT:
            raise InvalidTopologyError(f"Cannot connect output to {to_type.name.lower()}")

    def connect_neurons(self, n1: Neuron, n2: Neuron, weight: float) -> None:
        """
        Create the connection n1 -> n2, or update its weight if it already exists.

        Raises:
            RangeError:           if 'weight' is outside [-MAX_WEIGHT, MAX_WEIGHT]
            InvalidTopologyError: if the connection goes input->input, output->output, hidden->input
                                  (or otherwise into an input or out of an output)
        """
        check_weight(weight)
        self._check_direction(n1.type, n2.type)

        n1.set_out_connection(n2.type, n2.index, weight)
        n2.set_in_connection(n1.type, n1.index, weight)

    def disconnect_neurons(self, n1: Neuron, n2: Neuron) -> None:
        """
        Remove the connection n1 -> n2 (from both endpoints).
        """
        n1.delete_out_connection(n2.type, n2.index)
        n2.delete_in_connection(n1.type, n1.index)

    def _disconnect_keys(self, from_key: NeuronKey, to_key: NeuronKey) -> None:
        source      = self.find_neuron(*from_key)
        destination = self.find_neuron(*to_key)
        if source is not None:
            source.delete_out_connection(*to_key)
        if destination is not None:
            destination.delete_in_connection(*from_key)

    def connect_to_all(self, neuron: Neuron, rng: random.Random | None = None) -> None:
        """
        Wire a neuron to every other neuron of the graph, with random weights.

        Directions are fixed by the types involved:
          + an input feeds every hidden and output neuron
          + an output is fed by every input and hidden neuron
          + a hidden neuron is fed by the inputs, feeds the outputs and the other
            hidden neurons, and feeds itself only if the agent has memory
        """
        for target in list(self.iter_neurons()):
            if neuron.type == NeuronType.INPUT:
                if target.type != NeuronType.INPUT:
                    self.connect_neurons(neuron, target, random_weight(rng))

            elif neuron.type == NeuronType.OUTPUT:
                if target.type != NeuronType.OUTPUT:
                    self.connect_neurons(target, neuron, random_weight(rng))

            elif target.type == NeuronType.INPUT:
                self.connect_neurons(target, neuron, random_weight(rng))

            elif target is neuron:
                if self.has_memory:
                    self.connect_neurons(neuron, neuron, random_weight(rng))

            else:
                self.connect_neurons(neuron, target, random_weight(rng))

    def init_random_connections(self, rng: random.Random | None = None) -> 'Agent':
        """
        Create the genesis topology, with random weights.

          + layered agent: inputs -> layer 0 -> layer 1 -> ... -> outputs, fully
            connected between adjacent layers
          + dynamic agent with hidden neurons: inputs -> most recent hidden neuron -> outputs
          + dynamic agent without hidden neurons: inputs -> outputs
        """
        inputs  = self.get_neurons_by_type(NeuronType.INPUT)
        hidden  = self.get_neurons_by_type(NeuronType.HIDDEN)
        outputs = self.get_neurons_by_type(NeuronType.OUTPUT)

        if self.layers:
            stages = [self.get_neurons_by_layer(i) for i in range(len(self.layers))]
            stages = [inputs] + [stage for stage in stages if stage] + [outputs]
        elif hidden:
            stages = [inputs, [hidden[-1]], outputs]
        else:
            stages = [inputs, outputs]

        for sources, destinations in zip(stages, stages[1:]):
            for source in sources:
                for destination in destinations:
                    self.connect_neurons(source, destination, random_weight(rng))

        self.delete_redundant_genes()
        return self

    # ------------------------------------------------------------------
    # Genome
    # ------------------------------------------------------------------

    def get_genome_array(self,
                         encoder           : Encoder | None            = None,
                         iteration_callback: Callable[[Any], Any] | None = None) -> list:
        """
        Export the genome.

        Genes are listed destination first (hidden neurons by ascending index,
        then output neurons by ascending index) and, for each destination, by
        source type, then ascending source index. Crossover aligns genes by
        position, so this order must not change.

        Parameters:
            encoder:            If given, genes are returned encoded as strings
            iteration_callback: If given, applied to every (encoded) gene

        Returns:
            List of Gene objects, or of strings if an encoder is given
        """
        genome = []
        for neuron in self.get_neurons_by_type(NeuronType.HIDDEN) + self.get_neurons_by_type(NeuronType.OUTPUT):
            for from_type, from_index, weight in neuron.sorted_in_connections():
                gene = Gene(from_type, from_index, neuron.type, neuron.index, weight)
                item = encoder.encode(gene) if encoder is not None else gene
                genome.append(iteration_callback(item) if iteration_callback is not None else item)
        return genome

    def get_genome_string(self,
                          encoder           : Encoder | None            = None,
                          separator         : str                         = ';',
                          iteration_callback: Callable[[str], str] | None = None) -> str:
        """
        Export the genome as a string (HEX encoded by default).
        """
        return separator.join(self.get_genome_array(encoder or HEX, iteration_callback))

    def set_genome(self, genome, decoder: Encoder | None = None, separator: str = ';') -> 'Agent':
        """
        Replace all connections with those described by a genome.

        Every existing connection is removed first; neurons (and the values they
        hold) survive. Missing endpoint neurons are created. The new structure is
        then pruned with 'delete_redundant_genes'.

        Parameters:
            genome:    A sequence of genes (Gene, 5-tuples or dictionaries), or an encoded string
            decoder:   Decoder for encoded genomes (HEX by default)
            separator: Separator between the genes of an encoded genome

        Raises:
            RangeError, InvalidTopologyError: if a gene is invalid (the agent is left untouched)
        """
        if isinstance(genome, str):
            decoder = decoder or HEX
            genes = [decoder.decode_connection(item) for item in genome.split(separator) if item.strip()]
        else:
            genes = [as_gene(item) for item in genome]

        # Validate everything before touching the graph
        for gene in genes:
            check_weight(gene.weight)
            self._check_direction(gene.from_type, gene.to_type)
            for index in (gene.from_index, gene.to_index):
                if not 0 <= index <= MAX_INDEX:
                    raise RangeError(f"Index {index} is out of allowed range [0, {MAX_INDEX}]")

        for neuron in self.iter_neurons():
            neuron.delete_connections()

        for gene in genes:
            source      = self.find_or_create_neuron(gene.from_type, gene.from_index)
            destination = self.find_or_create_neuron(gene.to_type, gene.to_index)
            self.connect_neurons(source, destination, gene.weight)

        self.delete_redundant_genes()
        return self

    def delete_redundant_genes(self) -> 'Agent':
        """
        Prune the structure that cannot influence the outputs.

          1. without inputs or without outputs, every connection is removed
          2. without memory, hidden self-loops and connections coming from a hidden
             neuron with a larger index are removed (that neuron is computed later
             in the same step and nothing carries its previous value)
          3. hidden neurons without incoming or without outgoing connections are removed
          4. hidden neurons whose only incoming, or only outgoing, connection is a
             self-loop are removed
          5. connections to or from neurons that no longer exist are dropped
          6. an empty hidden group is dropped

        Steps 2-5 are repeated until nothing changes, so running the
        method on its own output is a no-op.
        """
        if not self.neurons.get(NeuronType.INPUT) or not self.neurons.get(NeuronType.OUTPUT):
            for neuron in self.iter_neurons():
                neuron.delete_connections()

        changed = True
        while changed:
            changed = False
            hidden  = self.neurons.get(NeuronType.HIDDEN, {})

            if not self.has_memory:
                for neuron in list(hidden.values()):
                    for key in list(neuron.in_connections):
                        if key[0] == NeuronType.HIDDEN and key[1] >= neuron.index:
                            self._disconnect_keys(key, neuron.key)
                            changed = True

            for neuron in list(hidden.values()):
                in_keys  = set(neuron.in_connections)
                out_keys = set(neuron.out_connections)
                if not in_keys or not out_keys or in_keys == {neuron.key} or out_keys == {neuron.key}:
                    self.remove_neuron(NeuronType.HIDDEN, neuron.index)
                    changed = True

            for neuron in self.iter_neurons():
                for connections in (neuron.in_connections, neuron.out_connections):
                    for key in [k for k in connections if self.find_neuron(*k) is None]:
                        del connections[key]
                        changed = True

        if NeuronType.HIDDEN in self.neurons and not self.neurons[NeuronType.HIDDEN]:
            del self.neurons[NeuronType.HIDDEN]

        return self

    # ------------------------------------------------------------------
    # Computation
    # ------------------------------------------------------------------

    def step(self, inputs) -> 'Agent':
        """
        Compute one forward pass.

        Input values are assigned to the input neurons in ascending index order,
        then hidden neurons (ascending index) and output neurons (ascending index)
        are computed as the activation of the weighted sum of their sources'
        current values. A memory agent reading a hidden neuron not yet computed
        in this pass reads its value from the previous step.

        Parameters:
            inputs: One value per input neuron (extra values are ignored)

        Raises:
            IndexError: if there are fewer values than input neurons
        """
        input_neurons = self.get_neurons_by_type(NeuronType.INPUT)
        if len(inputs) < len(input_neurons):
            raise IndexError(f"{len(input_neurons)} input values expected, got {len(inputs)}")
        for neuron, value in zip(input_neurons, inputs):
            neuron.value = float(value)

        hidden_neurons = self.get_neurons_by_type(NeuronType.HIDDEN)
        if not self.has_memory:
            for neuron in hidden_neurons:
                neuron.value = 0.0

        for neuron in hidden_neurons + self.get_neurons_by_type(NeuronType.OUTPUT):
            total = 0.0
            for (source_type, source_index), weight in neuron.in_connections.items():
                total += weight * self.neurons[source_type][source_index].value
            neuron.value = total
            neuron.apply_activation(self.activation)

        self.step_count += 1
        return self

    def reset_memory(self) -> 'Agent':
        """
        Zero the hidden and output values and the step counter.
        """
        for neuron_type in (NeuronType.HIDDEN, NeuronType.OUTPUT):
            for neuron in self.neurons.get(neuron_type, {}).values():
                neuron.value = 0.0
        self.step_count = 0
        return self

    def reset(self) -> 'Agent':
        self.reset_memory()
        self.fitness = 0.0
        return self

    # ------------------------------------------------------------------
    # Utilities
    # ------------------------------------------------------------------

    def clone(self) -> 'Agent':
        """
        Create a new agent with the same structure, weights, settings and fitness.
        Runtime state (neuron values, step counter) is not copied.
        """
        agent = Agent.create_from_genome(self.get_genome_array(),
                                         has_memory   = self.has_memory,
                                         layers       = self.layers,
                                         activation   = self.activation,
                                         input_count  = self.count_neurons(NeuronType.INPUT),
                                         output_count = self.count_neurons(NeuronType.OUTPUT))
        agent.fitness = self.fitness
        return agent

    def summary(self) -> dict:
        return {
            "fitness"             : self.fitness,
            "hidden_neurons_count": self.count_neurons(NeuronType.HIDDEN),
            "connections_count"   : len(self.get_genome_array()),
        }

    def visualize(self, view: bool = False) -> graphviz.Digraph:
        """
        Draw the network using Graphviz.

        Parameters:
            view: If True, render the drawing and open it

        Returns:
            graphviz.Digraph object representing the network
        """
        dot = graphviz.Digraph()
        dot.attr(rankdir='LR')
        dot.attr('graph', labelloc='t')

        node_attrs = {
            NeuronType.INPUT:  {'fillcolor': 'lightgrey', 'color': 'black', 'style': 'filled', 'shape': 'circle', 'penwidth': '0.5', 'fontsize': '7', 'width': '0.4', 'height': '0.4', 'fixedsize': 'true'},
            NeuronType.HIDDEN: {'fillcolor': 'lightblue', 'color': 'black', 'style': 'filled', 'shape': 'circle', 'penwidth': '0.5', 'fontsize': '7', 'width': '0.4', 'height': '0.4', 'fixedsize': 'true'},
            NeuronType.OUTPUT: {'fillcolor': 'white'    , 'color': 'black', 'style': 'filled', 'shape': 'circle', 'penwidth': '0.5', 'fontsize': '7', 'width': '0.4', 'height': '0.4', 'fixedsize': 'true'}
        }
        ranks = {NeuronType.INPUT: 'source', NeuronType.HIDDEN: 'same', NeuronType.OUTPUT: 'sink'}

        for neuron_type in NeuronType:
            neurons = self.get_neurons_by_type(neuron_type)
            if not neurons:
                continue
            with dot.subgraph(name=f'cluster_{neuron_type.name.lower()}') as cluster:
                cluster.attr(rank=ranks[neuron_type], label=neuron_type.name.capitalize(), style='invisible')
                for neuron in neurons:
                    attrs = node_attrs[neuron_type].copy()
                    attrs['label'] = f"{neuron_type.name[0]}{neuron.index}"
                    cluster.node(_node_name(neuron.key), **attrs)

        for gene in self.get_genome_array():
            dot.edge(_node_name((gene.from_type, gene.from_index)),
                     _node_name((gene.to_type, gene.to_index)),
                     label      = f"{gene.weight:.2f}",
                     color      = 'black' if gene.weight >= 0 else 'red',
                     fontsize   = '5',
                     penwidth   = '0.5',
                     arrowsize  = '0.5',
                     labelfloat = 'false')

        if view:
            dot.view(cleanup=True)

        return dot

    def __str__(self):
        neurons_str = ''.join(f"[{n.type.name[0]}{n.index}]" for n in self.iter_neurons())
        genes_str   = ''.join(str(gene) for gene in self.get_genome_array())
        return f"fitness={self.fitness:.4f}, memory={self.has_memory}\nNeurons: {neurons_str}\nGenes: {genes_str}"

    def __repr__(self):
        return f"Agent(has_memory={self.has_memory}, layers={self.layers})"

def _node_name(key: NeuronKey) -> str:
    return f"{key[0].name[0]}{key[1]}"
