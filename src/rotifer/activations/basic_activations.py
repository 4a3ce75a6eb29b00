import numpy as np

def identity_activation(z):
    return z

def sigmoid_activation(z):
    z = np.clip(z, -500, 500)   # to prevent overflow when calculating exp
    return 1.0 / (1.0 + np.exp(-z))

def relu_activation(z):
    return np.maximum(0.0, z)

def tanh_activation(z):
    return np.tanh(z)

def threshold_activation(z):
    return np.where(z < 0, 0.0, 1.0)

activations = {
    "identity" : identity_activation,
    "sigmoid"  : sigmoid_activation,
    "relu"     : relu_activation,
    "tanh"     : tanh_activation,
    "threshold": threshold_activation
    }

# 3-letter identifiers for each activation function
activation_codes = {
    "identity" : "IDN",
    "sigmoid"  : "SIG",
    "relu"     : "RLU",
    "tanh"     : "TNH",
    "threshold": "THR"
    }

def get_activation(name: str):
    """
    Resolve an activation function by name.

    Raises:
        ValueError: if 'name' is not a known activation function
    """
    if name not in activations:
        raise ValueError(f"Invalid activation function '{name}', "
                         f"allowed values: {', '.join(activations)}")
    return activations[name]
