"""
Optimization module for hyperparameter tuning in rotifer.

This module provides Bayesian tuning of the evolution parameters using Optuna.
It requires the 'tuning' extra (pip install rotifer[tuning]).
"""

from rotifer.optimization.search_space import SearchSpace
from rotifer.optimization.tuner        import HyperparameterTuner

__all__ = [
    'SearchSpace',
    'HyperparameterTuner',
]
