"""
Rotifer Genotype Package

This package implements the genetic level of the engine: neurons and the
connections (genes) between them, the textual encodings of genes and the
genetic operators.

A genome is the ordered list of the genes of an agent. It is not stored on its
own: agents export it from their neuron graph and rebuild the graph from it.

Modules:
    neuron:    NeuronType enumeration and Neuron class
    gene:      Gene record and weight helpers
    encoders:  Binary, hex, JSON and human-readable gene encoders
    operators: crossover, mutate, translocation and dominance

Exported Classes:
    NeuronType: Enumeration for neuron types (INPUT, HIDDEN, OUTPUT)
    Neuron:     A single neuron with its incoming and outgoing connections
    Gene:       A directed, weighted connection between two neurons
    Encoder:    Abstract interface of the gene encoders
"""

from rotifer.genotype.neuron   import NeuronType, Neuron
from rotifer.genotype.gene     import Gene, MAX_INDEX, MAX_WEIGHT, as_gene, check_weight, random_weight
from rotifer.genotype.encoders import Encoder, BinaryEncoder, HexEncoder, JsonEncoder, HumanEncoder
from rotifer.genotype.encoders import BINARY, HEX, JSON, HUMAN

__all__ = ['NeuronType',
           'Neuron',
           'Gene',
           'MAX_INDEX',
           'MAX_WEIGHT',
           'as_gene',
           'check_weight',
           'random_weight',
           'Encoder',
           'BinaryEncoder',
           'HexEncoder',
           'JsonEncoder',
           'HumanEncoder',
           'BINARY',
           'HEX',
           'JSON',
           'HUMAN']
