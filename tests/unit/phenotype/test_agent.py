"""
Unit tests for the Agent class.
"""

import math
import random

import graphviz  # type: ignore
import pytest

from rotifer.errors            import InvalidTopologyError, RangeError
from rotifer.genotype.encoders import JSON
from rotifer.genotype.gene     import Gene, MAX_WEIGHT
from rotifer.genotype.neuron   import NeuronType
from rotifer.phenotype.agent   import Agent

I, H, O = NeuronType.INPUT, NeuronType.HIDDEN, NeuronType.OUTPUT


def sigmoid(x):
    return 1.0 / (1.0 + math.exp(-x))


def make_dynamic_agent(rng, inputs=3, outputs=2, has_memory=False):
    agent = Agent(has_memory)
    agent.create_neuron(I, inputs)
    agent.create_neuron(O, outputs)
    agent.create_neuron(H)
    return agent.init_random_connections(rng)


@pytest.fixture
def memory_agent():
    """I0 -> H0 -> O0, with a self-loop on H0."""
    return Agent.create_from_genome([(I, 0, H, 0, 1.0),
                                     (H, 0, H, 0, 2.0),
                                     (H, 0, O, 0, 1.0)], has_memory=True)


# ============================================================================
# Neurons
# ============================================================================

class TestNeurons:

    def test_find_or_create_neuron(self):
        agent = Agent()
        neuron = agent.find_or_create_neuron(H, 4)
        assert agent.find_or_create_neuron(H, 4) is neuron
        assert agent.find_neuron(H, 4) is neuron
        assert agent.find_neuron(H, 5) is None

    @pytest.mark.parametrize("index", [-1, 65536])
    def test_index_out_of_range(self, index):
        with pytest.raises(RangeError):
            Agent().find_or_create_neuron(I, index)

    def test_create_neuron_appends(self):
        agent = Agent()
        agent.find_or_create_neuron(H, 3)
        neuron = agent.create_neuron(H, 2)
        assert neuron.index == 5
        assert sorted(agent.neurons[H]) == [3, 4, 5]

    def test_create_zero_neurons(self):
        assert Agent().create_neuron(I, 0) is None

    def test_neurons_by_type_are_sorted(self):
        agent = Agent()
        for index in (2, 0, 1):
            agent.find_or_create_neuron(O, index)
        assert [n.index for n in agent.get_neurons_by_type(O)] == [0, 1, 2]
        assert agent.get_neurons_by_type(H) == []

    def test_random_neuron_by_type(self, rng):
        agent = Agent()
        agent.create_neuron(I, 3)
        assert agent.get_random_neuron_by_type(I, rng).type == I
        assert agent.get_random_neuron_by_type(H, rng) is None

    def test_remove_neuron_removes_both_sides(self, simple_agent):
        simple_agent.remove_neuron(H, 0)

        assert simple_agent.find_neuron(H, 0) is None
        assert (H, 0) not in simple_agent.find_neuron(I, 0).out_connections
        assert (H, 0) not in simple_agent.find_neuron(I, 1).out_connections
        assert (H, 0) not in simple_agent.find_neuron(O, 0).in_connections

    def test_hidden_layers(self):
        agent = Agent()
        agent.create_hidden_layer_neurons([3, 2])
        assert agent.is_static
        assert agent.count_neurons(H) == 5
        assert [n.index for n in agent.get_neurons_by_layer(0)] == [0, 1, 2]
        assert [n.index for n in agent.get_neurons_by_layer(1)] == [3, 4]
        assert agent.get_neurons_by_layer(2) == []


# ============================================================================
# Connections
# ============================================================================

class TestConnections:

    def test_connect_records_both_endpoints(self):
        agent = Agent()
        source = agent.find_or_create_neuron(I, 0)
        destination = agent.find_or_create_neuron(O, 0)
        agent.connect_neurons(source, destination, 0.75)

        assert source.out_connections == {(O, 0): 0.75}
        assert destination.in_connections == {(I, 0): 0.75}

    def test_connect_updates_weight(self, simple_agent):
        i0 = simple_agent.find_neuron(I, 0)
        o0 = simple_agent.find_neuron(O, 0)
        simple_agent.connect_neurons(i0, o0, -0.5)
        assert i0.out_connections[(O, 0)] == -0.5
        assert o0.in_connections[(I, 0)] == -0.5

    @pytest.mark.parametrize("from_type, to_type", [(I, I), (O, O), (H, I), (O, H), (O, I)])
    def test_illegal_directions_are_rejected(self, simple_agent, from_type, to_type):
        genome = simple_agent.get_genome_array()
        source = simple_agent.find_or_create_neuron(from_type, 0)
        destination = simple_agent.find_or_create_neuron(to_type, 1 if from_type == to_type else 0)

        with pytest.raises(InvalidTopologyError):
            simple_agent.connect_neurons(source, destination, 1.0)
        assert simple_agent.get_genome_array() == genome
        assert (destination.type, destination.index) not in source.out_connections

    def test_weight_out_of_range_is_rejected(self, simple_agent):
        genome = simple_agent.get_genome_array()
        with pytest.raises(RangeError):
            simple_agent.connect_neurons(simple_agent.find_neuron(I, 0), simple_agent.find_neuron(O, 0), MAX_WEIGHT * 2)
        assert simple_agent.get_genome_array() == genome

    def test_disconnect(self, simple_agent):
        i0 = simple_agent.find_neuron(I, 0)
        o0 = simple_agent.find_neuron(O, 0)
        simple_agent.disconnect_neurons(i0, o0)
        assert (O, 0) not in i0.out_connections
        assert (I, 0) not in o0.in_connections

    def test_connect_to_all_hidden(self, rng):
        agent = Agent()
        agent.create_neuron(I, 2)
        agent.create_neuron(O, 1)
        neuron = agent.create_neuron(H, connect_to_all=True, rng=rng)

        assert set(neuron.in_connections) == {(I, 0), (I, 1)}
        assert set(neuron.out_connections) == {(O, 0)}

    def test_connect_to_all_hidden_with_memory(self, rng):
        agent = Agent(has_memory=True)
        agent.create_neuron(I, 1)
        agent.create_neuron(O, 1)
        neuron = agent.create_neuron(H, connect_to_all=True, rng=rng)
        assert (H, 0) in neuron.in_connections
        assert (H, 0) in neuron.out_connections

    def test_connect_to_all_input_and_output(self, rng):
        agent = Agent()
        agent.create_neuron(I, 2)
        agent.create_neuron(H, 1)
        agent.create_neuron(O, 2)

        agent.connect_to_all(agent.find_neuron(I, 0), rng)
        assert set(agent.find_neuron(I, 0).out_connections) == {(H, 0), (O, 0), (O, 1)}

        agent.connect_to_all(agent.find_neuron(O, 1), rng)
        assert set(agent.find_neuron(O, 1).in_connections) == {(I, 0), (I, 1), (H, 0)}


# ============================================================================
# Genesis topology
# ============================================================================

class TestInitRandomConnections:

    def test_dynamic_agent_routes_through_seed_neuron(self, rng):
        agent = make_dynamic_agent(rng, inputs=3, outputs=2)
        genome = agent.get_genome_array()

        assert len(genome) == 5
        assert [g[:4] for g in genome] == [(I, 0, H, 0), (I, 1, H, 0), (I, 2, H, 0), (H, 0, O, 0), (H, 0, O, 1)]
        assert all(-MAX_WEIGHT <= g.weight <= MAX_WEIGHT for g in genome)

    def test_agent_without_hidden_neurons_connects_inputs_to_outputs(self, rng):
        agent = Agent()
        agent.create_neuron(I, 2)
        agent.create_neuron(O, 3)
        agent.init_random_connections(rng)
        assert len(agent.get_genome_array()) == 6

    def test_layered_agent(self, rng):
        agent = Agent(layers=[3, 2])
        agent.create_neuron(I, 3)
        agent.create_neuron(O, 1)
        agent.create_hidden_layer_neurons([3, 2])
        agent.init_random_connections(rng)

        genome = agent.get_genome_array()
        assert len(genome) == 3 * 3 + 3 * 2 + 2 * 1
        assert {g[:4] for g in genome if g.to_type == O} == {(H, 3, O, 0), (H, 4, O, 0)}

    def test_same_seed_same_agent(self):
        genome1 = make_dynamic_agent(random.Random(5)).get_genome_array()
        genome2 = make_dynamic_agent(random.Random(5)).get_genome_array()
        assert genome1 == genome2


# ============================================================================
# Genome
# ============================================================================

class TestGenome:

    def test_genome_order(self, simple_agent):
        assert simple_agent.get_genome_array() == [
            Gene(I, 0, H, 0, 1.0),
            Gene(I, 1, H, 0, -1.0),
            Gene(I, 0, O, 0, 0.5),
            Gene(H, 0, O, 0, 2.0),
        ]

    def test_genome_with_encoder_and_callback(self, simple_agent):
        genome = simple_agent.get_genome_array(JSON, iteration_callback=str.upper)
        assert genome[0] == JSON.encode(Gene(I, 0, H, 0, 1.0)).upper()

    def test_genome_string_round_trip(self, simple_agent):
        text = simple_agent.get_genome_string()
        assert text.count(';') == 3

        agent = Agent.create_from_genome(text)
        for original, decoded in zip(simple_agent.get_genome_array(), agent.get_genome_array()):
            assert decoded[:4] == original[:4]
            assert decoded.weight == pytest.approx(original.weight, abs=1e-6)

    def test_genome_string_with_other_encoder(self, simple_agent):
        text = simple_agent.get_genome_string(JSON, separator='|')
        agent = Agent.create_from_genome(text, JSON, separator='|')
        assert agent.get_genome_array() == simple_agent.get_genome_array()

    def test_set_genome_replaces_connections(self, simple_agent):
        simple_agent.set_genome([(I, 1, O, 0, 0.25)])
        assert simple_agent.get_genome_array() == [Gene(I, 1, O, 0, 0.25)]
        # Unconnected hidden neurons are pruned, inputs and outputs remain
        assert simple_agent.count_neurons(H) == 0
        assert simple_agent.count_neurons(I) == 2

    def test_set_genome_rejects_invalid_gene_without_changes(self, simple_agent):
        genome = simple_agent.get_genome_array()
        with pytest.raises(InvalidTopologyError):
            simple_agent.set_genome([(I, 0, O, 0, 1.0), (H, 0, I, 0, 1.0)])
        with pytest.raises(RangeError):
            simple_agent.set_genome([(I, 0, O, 0, 100.0)])
        assert simple_agent.get_genome_array() == genome

    def test_create_from_genome_with_counts(self):
        agent = Agent.create_from_genome([(I, 1, O, 0, 1.0)], input_count=3, output_count=2)
        assert agent.count_neurons(I) == 3
        assert agent.count_neurons(O) == 2

    def test_create_from_genome_settings(self):
        agent = Agent.create_from_genome([(I, 0, O, 0, 1.0)], has_memory=True, layers=[1], activation=abs)
        assert agent.has_memory
        assert agent.layers == [1]
        assert agent.activation is abs

    def test_clone(self, simple_agent):
        simple_agent.fitness = 3.5
        clone = simple_agent.clone()

        assert clone.get_genome_array() == simple_agent.get_genome_array()
        assert clone.fitness == 3.5
        clone.connect_neurons(clone.find_neuron(I, 1), clone.find_neuron(O, 0), 1.0)
        assert len(simple_agent.get_genome_array()) == 4


# ============================================================================
# Pruning
# ============================================================================

class TestDeleteRedundantGenes:

    def test_stray_hidden_neuron_is_removed(self):
        agent = Agent()
        i0 = agent.find_or_create_neuron(I, 0)
        h0 = agent.find_or_create_neuron(H, 0)
        o0 = agent.find_or_create_neuron(O, 0)
        agent.connect_neurons(i0, h0, 1.0)
        agent.connect_neurons(i0, o0, 1.0)

        agent.delete_redundant_genes()
        assert H not in agent.neurons
        assert i0.out_connections == {(O, 0): 1.0}

    def test_future_connections_removed_without_memory(self):
        agent = Agent()
        i0 = agent.find_or_create_neuron(I, 0)
        h0 = agent.find_or_create_neuron(H, 0)
        h1 = agent.find_or_create_neuron(H, 1)
        o0 = agent.find_or_create_neuron(O, 0)
        for hidden in (h0, h1):
            agent.connect_neurons(i0, hidden, 1.0)
            agent.connect_neurons(hidden, o0, 1.0)
        agent.connect_neurons(h1, h0, 1.0)
        agent.connect_neurons(h0, h0, 1.0)
        agent.connect_neurons(h0, h1, 1.0)

        agent.delete_redundant_genes()
        assert (H, 1) not in h0.in_connections
        assert (H, 0) not in h1.out_connections
        assert (H, 0) not in h0.in_connections
        assert (H, 0) not in h0.out_connections
        # Feed-forward hidden connections stay
        assert (H, 0) in h1.in_connections
        assert (H, 1) in h0.out_connections

    def test_recurrent_connections_kept_with_memory(self):
        agent = Agent(has_memory=True)
        i0 = agent.find_or_create_neuron(I, 0)
        h0 = agent.find_or_create_neuron(H, 0)
        h1 = agent.find_or_create_neuron(H, 1)
        o0 = agent.find_or_create_neuron(O, 0)
        for hidden in (h0, h1):
            agent.connect_neurons(i0, hidden, 1.0)
            agent.connect_neurons(hidden, o0, 1.0)
        agent.connect_neurons(h1, h0, 1.0)
        agent.connect_neurons(h0, h0, 1.0)

        genome = agent.get_genome_array()
        agent.delete_redundant_genes()
        assert agent.get_genome_array() == genome

    def test_neuron_fed_only_by_itself_is_removed(self):
        agent = Agent(has_memory=True)
        i0 = agent.find_or_create_neuron(I, 0)
        h0 = agent.find_or_create_neuron(H, 0)
        o0 = agent.find_or_create_neuron(O, 0)
        agent.connect_neurons(h0, h0, 1.0)
        agent.connect_neurons(h0, o0, 1.0)
        agent.connect_neurons(i0, o0, 1.0)

        agent.delete_redundant_genes()
        assert agent.find_neuron(H, 0) is None
        assert o0.in_connections == {(I, 0): 1.0}

    def test_removal_cascades(self):
        # H1 only feeds H0, which has no way out: both go
        agent = Agent()
        i0 = agent.find_or_create_neuron(I, 0)
        h0 = agent.find_or_create_neuron(H, 0)
        h1 = agent.find_or_create_neuron(H, 1)
        o0 = agent.find_or_create_neuron(O, 0)
        agent.connect_neurons(i0, h1, 1.0)
        agent.connect_neurons(h1, h0, 1.0)
        agent.connect_neurons(i0, o0, 1.0)

        agent.delete_redundant_genes()
        assert H not in agent.neurons
        assert agent.get_genome_array() == [Gene(I, 0, O, 0, 1.0)]

    def test_no_inputs_wipes_everything(self):
        agent = Agent()
        h0 = agent.find_or_create_neuron(H, 0)
        o0 = agent.find_or_create_neuron(O, 0)
        agent.connect_neurons(h0, o0, 1.0)

        agent.delete_redundant_genes()
        assert agent.get_genome_array() == []
        assert o0.in_connections == {}

    def test_dangling_references_are_dropped(self, simple_agent):
        # Simulate a neuron vanishing without its peers being told
        del simple_agent.neurons[I][1]
        simple_agent.delete_redundant_genes()
        assert (I, 1) not in simple_agent.find_neuron(H, 0).in_connections

    @pytest.mark.parametrize("has_memory", [False, True])
    def test_idempotent(self, has_memory):
        rng = random.Random(11)
        for _ in range(20):
            agent = Agent(has_memory)
            agent.create_neuron(I, 3)
            agent.create_neuron(O, 2)
            agent.create_neuron(H, 4)
            for neuron in agent.get_neurons_by_type(H):
                if rng.random() < 0.7:
                    agent.connect_to_all(neuron, rng)

            agent.delete_redundant_genes()
            genome = agent.get_genome_array()
            agent.delete_redundant_genes()
            assert agent.get_genome_array() == genome


# ============================================================================
# Computation
# ============================================================================

class TestStep:

    def test_forward_pass(self, simple_agent):
        simple_agent.step([1, 0])

        hidden = sigmoid(1.0)
        assert simple_agent.find_neuron(H, 0).value == pytest.approx(hidden)
        assert simple_agent.get_output_values() == [pytest.approx(sigmoid(0.5 + 2.0 * hidden))]
        assert simple_agent.get_input_values() == [1.0, 0.0]

    def test_custom_activation(self, simple_agent):
        simple_agent.activation = lambda x: x
        simple_agent.step([1, 1])
        assert simple_agent.get_output_values() == [pytest.approx(0.5 + 2.0 * 0.0)]

    def test_step_counter(self, simple_agent):
        simple_agent.step([0, 0]).step([0, 0])
        assert simple_agent.step_count == 2

    def test_too_few_inputs(self, simple_agent):
        with pytest.raises(IndexError):
            simple_agent.step([1])

    def test_extra_inputs_are_ignored(self, simple_agent):
        expected = simple_agent.step([1, 0]).get_output_values()
        simple_agent.reset_memory()
        assert simple_agent.step([1, 0, 7]).get_output_values() == expected

    def test_no_memory_steps_are_independent(self, rng):
        for _ in range(10):
            agent = make_dynamic_agent(rng)
            first = agent.step([0.3, -1.0, 0.5]).get_output_values()
            second = agent.step([0.3, -1.0, 0.5]).get_output_values()
            assert first == second

    def test_memory_steps_depend_on_state(self, memory_agent):
        first = memory_agent.step([1]).get_output_values()
        second = memory_agent.step([1]).get_output_values()
        assert first != second

        h0 = sigmoid(1.0)
        assert first == [pytest.approx(sigmoid(h0))]
        assert second == [pytest.approx(sigmoid(sigmoid(1.0 + 2.0 * h0)))]

    def test_reset_memory_reproduces_sequence(self, memory_agent):
        inputs = [[1], [0.5], [-1], [1]]
        outputs = [memory_agent.step(x).get_output_values() for x in inputs]

        memory_agent.reset_memory()
        assert memory_agent.step_count == 0
        assert [memory_agent.step(x).get_output_values() for x in inputs] == outputs

    def test_reset_clears_fitness(self, simple_agent):
        simple_agent.fitness = 2.0
        simple_agent.step([1, 1])
        simple_agent.reset()

        assert simple_agent.fitness == 0.0
        assert simple_agent.get_output_values() == [0.0]
        assert simple_agent.find_neuron(H, 0).value == 0.0


# ============================================================================
# Reporting
# ============================================================================

class TestReporting:

    def test_summary(self, simple_agent):
        simple_agent.fitness = 1.5
        assert simple_agent.summary() == {"fitness": 1.5, "hidden_neurons_count": 1, "connections_count": 4}

    def test_visualize(self, simple_agent):
        dot = simple_agent.visualize()
        assert isinstance(dot, graphviz.Digraph)
        for name in ('I0', 'I1', 'H0', 'O0'):
            assert name in dot.source
        assert '"2.00"' in dot.source or 'label=2.00' in dot.source

    def test_str(self, simple_agent):
        text = str(simple_agent)
        assert "[I0][I1][H0][O0]" in text
        assert "[I00=>H00,+1.00]" in text
