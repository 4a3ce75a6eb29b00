"""
Rotifer Errors Module

This module defines the exceptions raised by the neuroevolution engine.

Classes:
    RotiferError:                Base class for all engine errors
    InvalidTopologyError:        A connection violates the directionality rules
    RangeError:                  A neuron index or a connection weight is out of range
    DegenerateReproductionError: Reproduction kept producing empty genomes
    UnsupportedDecodeError:      An encoder cannot decode what it encodes
"""


class RotiferError(Exception):
    """
    Base class for the exceptions raised by rotifer.
    """


class InvalidTopologyError(RotiferError, ValueError):
    """
    Raised when a connection would go input->input, output->output or hidden->input.
    """


class RangeError(RotiferError, ValueError):
    """
    Raised when a neuron index is outside [0, MAX_INDEX] or a weight outside [-MAX_WEIGHT, MAX_WEIGHT].
    """


class DegenerateReproductionError(RotiferError, RuntimeError):
    """
    Raised when crossover and mutation keep producing an empty genome.

    Public Attributes:
        genome_a: human-readable genome of the first parent
        genome_b: human-readable genome of the second parent
    """

    def __init__(self, message: str, genome_a: str = '', genome_b: str = ''):
        super().__init__(message)
        self.genome_a = genome_a
        self.genome_b = genome_b

    def __str__(self):
        s = super().__str__()
        if self.genome_a or self.genome_b:
            s += f"\nParent A: {self.genome_a}\nParent B: {self.genome_b}"
        return s


class UnsupportedDecodeError(RotiferError, NotImplementedError):
    """
    Raised by encoders that produce one-way (display only) representations.
    """
