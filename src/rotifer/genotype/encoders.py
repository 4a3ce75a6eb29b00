"""
Rotifer Gene Encoders Module

This module implements the textual representations of genes. An encoded genome
is the list of encoded genes joined by a separator (';' by default); an encoded
world is the list of encoded genomes joined by newlines.

Classes:
    Encoder:       Abstract interface of all gene encoders
    BinaryEncoder: Fixed-width, 58 character bitstring
    HexEncoder:    The binary bitstring converted to base 16
    JsonEncoder:   A JSON array [from_type, from_index, to_type, to_index, weight]
    HumanEncoder:  One-way, human-readable description (cannot be decoded)

Constants:
    BINARY, HEX, JSON, HUMAN: Stateless encoder instances
"""

import json
from abc import ABC, abstractmethod

from rotifer.errors          import UnsupportedDecodeError
from rotifer.genotype.gene   import Gene, MAX_INDEX, MAX_WEIGHT, WEIGHT_SCALE
from rotifer.genotype.neuron import NeuronType

class Encoder(ABC):
    """
    Converts genes to strings and back.

    Public Methods:
        encode_connection(...): Encode a connection given its fields
        decode_connection(s):   Decode a string into a Gene
        encode(gene):           Encode a Gene
        decode(s):              Alias of 'decode_connection'
    """

    @abstractmethod
    def encode_connection(self,
                          from_type : NeuronType,
                          from_index: int,
                          to_type   : NeuronType,
                          to_index  : int,
                          weight    : float) -> str:
        pass

    @abstractmethod
    def decode_connection(self, encoded_gene: str) -> Gene:
        pass

    def encode(self, gene: Gene) -> str:
        return self.encode_connection(*gene)

    def decode(self, encoded_gene: str) -> Gene:
        return self.decode_connection(encoded_gene)

class BinaryEncoder(Encoder):
    """
    Bit-packed encoding of a gene:

        [input/hidden] [from index] [hidden/output] [to index] [weight]
             1 bit        16 bits        1 bit        16 bits   24 bits

    The source bit is 0 for an input neuron and 1 otherwise, the destination
    bit is 1 for an output neuron and 0 otherwise. The weight is stored as the
    unsigned integer round((weight + MAX_WEIGHT) * 10^6).
    """

    INDEX_BITS  = 16
    WEIGHT_BITS = 24
    GENE_BITS   = 1 + INDEX_BITS + 1 + INDEX_BITS + WEIGHT_BITS   # 58

    def encode_connection(self, from_type, from_index, to_type, to_index, weight) -> str:
        if not 0 <= from_index <= MAX_INDEX or not 0 <= to_index <= MAX_INDEX:
            raise ValueError(f"Neuron index out of range [0, {MAX_INDEX}]: {from_index}, {to_index}")

        from_bit = '0' if from_type == NeuronType.INPUT  else '1'
        to_bit   = '1' if to_type   == NeuronType.OUTPUT else '0'
        stored   = round((weight + MAX_WEIGHT) * WEIGHT_SCALE)

        return (from_bit
                + format(from_index, f'0{self.INDEX_BITS}b')
                + to_bit
                + format(to_index, f'0{self.INDEX_BITS}b')
                + format(stored, f'0{self.WEIGHT_BITS}b'))

    def decode_connection(self, encoded_gene: str) -> Gene:
        bits = encoded_gene.strip()
        if len(bits) != self.GENE_BITS or set(bits) - {'0', '1'}:
            raise ValueError(f"Not a {self.GENE_BITS}-bit binary gene: '{encoded_gene}'")

        to_bit_pos = 1 + self.INDEX_BITS
        weight_pos = to_bit_pos + 1 + self.INDEX_BITS

        return Gene(from_type  = NeuronType.INPUT if bits[0] == '0' else NeuronType.HIDDEN,
                    from_index = int(bits[1:to_bit_pos], 2),
                    to_type    = NeuronType.HIDDEN if bits[to_bit_pos] == '0' else NeuronType.OUTPUT,
                    to_index   = int(bits[to_bit_pos + 1:weight_pos], 2),
                    weight     = int(bits[weight_pos:], 2) / WEIGHT_SCALE - MAX_WEIGHT)

class HexEncoder(Encoder):
    """
    The binary encoding, converted from base 2 to base 16 as one big integer.
    Leading zero bits are not represented and are restored when decoding.
    """

    def __init__(self):
        self._binary = BinaryEncoder()

    def encode_connection(self, from_type, from_index, to_type, to_index, weight) -> str:
        return bin_to_hex(self._binary.encode_connection(from_type, from_index, to_type, to_index, weight))

    def decode_connection(self, encoded_gene: str) -> Gene:
        return self._binary.decode_connection(hex_to_bin(encoded_gene, BinaryEncoder.GENE_BITS))

class JsonEncoder(Encoder):
    """
    One JSON array per gene: [from_type, from_index, to_type, to_index, weight].
    """

    def encode_connection(self, from_type, from_index, to_type, to_index, weight) -> str:
        return json.dumps([int(from_type), int(from_index), int(to_type), int(to_index), float(weight)])

    def decode_connection(self, encoded_gene: str) -> Gene:
        try:
            from_type, from_index, to_type, to_index, weight = json.loads(encoded_gene)
        except (TypeError, ValueError) as e:
            raise ValueError(f"Not a JSON gene: '{encoded_gene}'") from e
        return Gene(NeuronType(from_type), int(from_index), NeuronType(to_type), int(to_index), float(weight))

class HumanEncoder(Encoder):
    """
    Diagnostic, human-readable description of a gene. Decoding is not supported.
    """

    def encode_connection(self, from_type, from_index, to_type, to_index, weight) -> str:
        source      = 'input'  if from_type == NeuronType.INPUT  else 'neuron'
        destination = 'output' if to_type   == NeuronType.OUTPUT else 'neuron'
        return f"From {source} {from_index} to {destination} {to_index} weight {weight}"

    def decode_connection(self, encoded_gene: str) -> Gene:
        raise UnsupportedDecodeError("HumanEncoder is display-only, genes cannot be decoded")

def bin_to_hex(binary_string: str) -> str:
    return format(int(binary_string, 2), 'x')

def hex_to_bin(hex_string: str, width: int = 0) -> str:
    try:
        value = int(hex_string.strip(), 16)
    except ValueError as e:
        raise ValueError(f"Not a hexadecimal gene: '{hex_string}'") from e
    return format(value, f'0{width}b')

BINARY = BinaryEncoder()
HEX    = HexEncoder()
JSON   = JsonEncoder()
HUMAN  = HumanEncoder()
