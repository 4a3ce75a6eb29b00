"""
Activations Package

This package provides the activation functions applied by hidden and output neurons.

Exported:
    activations:      Dictionary mapping activation function names to functions
    activation_codes: Dictionary mapping activation function names to 3-letter codes
    get_activation:   Resolve an activation function by name
    Individual activation functions: identity_activation, sigmoid_activation,
                                     relu_activation, tanh_activation, threshold_activation
"""

from rotifer.activations.basic_activations import (
    activations,
    activation_codes,
    get_activation,
    identity_activation,
    sigmoid_activation,
    relu_activation,
    tanh_activation,
    threshold_activation
)

__all__ = [
    'activations',
    'activation_codes',
    'get_activation',
    'identity_activation',
    'sigmoid_activation',
    'relu_activation',
    'tanh_activation',
    'threshold_activation'
]
