"""
Hyperparameter tuner.

This module provides HyperparameterTuner, which uses the "Optuna" library
(TPE sampler) to search the evolution parameters of a Config that make
an Experiment perform best.

Subclasses can override '_compute_optimization_metric()' to change what is
maximized (the mean, over the trials, of the best fitness by default).
"""

import copy
import logging
from typing import Any, Callable

import optuna                                   # type: ignore
from optuna import Study, Trial as OptunaTrial  # type: ignore

from rotifer.optimization.search_space import SearchSpace
from rotifer.run.config                import Config
from rotifer.run.experiment            import Experiment

logger = logging.getLogger(__name__)

class HyperparameterTuner:
    """
    Bayesian search over Config attributes.

    Each configuration suggested by Optuna is evaluated by running a short
    Experiment (several independent worlds); the tuner maximizes a metric
    computed from the experiment's results.

    Example:

        >>> search_space = SearchSpace()
        >>> search_space.add_float('probability_crossover', 0.1, 0.9)
        >>> search_space.add_float('probability_mutate_weight', 0.1, 0.9)
        >>>
        >>> tuner = HyperparameterTuner(search_space,
        ...                             experiment_kwargs=dict(num_trials=3, fitness_fn=xor_fitness, data=xor_data,
        ...                                                    population=30, input_count=3, output_count=1,
        ...                                                    generation_count=20, survive_rate=0.5,
        ...                                                    hidden_layers=[3, 2]))
        >>> tuner.optimize(num_configs=20)
        >>> best_config = tuner.get_best_config()
    """

    def __init__(self,
                 search_space     : SearchSpace,
                 experiment_kwargs: dict[str, Any],
                 base_config      : Config | None = None,
                 study_name       : str | None    = None,
                 storage          : str | None    = None,
                 seed             : int | None    = None):
        """
        Parameters:
            search_space:      The Config attributes to tune
            experiment_kwargs: Keyword arguments of Experiment, except 'config'
            base_config:       Values of the attributes not tuned (defaults if None)
            study_name:        Name for the Optuna study (for persistence)
            storage:           Database URL for study persistence (e.g., 'sqlite:///tuning.db')
            seed:              Seed of the TPE sampler
        """
        self.search_space      = search_space
        self.experiment_kwargs = dict(experiment_kwargs)
        self.base_config       = base_config if base_config is not None else Config()

        self.study = optuna.create_study(study_name     = study_name,
                                         storage        = storage,
                                         direction      = 'maximize',
                                         sampler        = optuna.samplers.TPESampler(seed=seed),
                                         load_if_exists = True)

    def _make_config(self, params: dict[str, Any]) -> Config:
        return self.search_space.apply(copy.copy(self.base_config), params)

    def _compute_optimization_metric(self, results: list[dict]) -> float:
        """
        The value to maximize, from the results of an experiment's trials.
        """
        return sum(r["best_fitness"] for r in results) / len(results)

    def _objective(self, trial: OptunaTrial) -> float:
        config     = self._make_config(self.search_space.suggest(trial))
        experiment = Experiment(config=config, **self.experiment_kwargs)
        metric     = self._compute_optimization_metric(experiment.run())

        logger.info(f"Tuning trial {trial.number}: {trial.params} -> {metric:.4f}")
        return metric

    def optimize(self,
                 num_configs         : int | None            = None,
                 timeout             : float | None          = None,
                 num_parallel_configs: int                   = 1,
                 callbacks           : list[Callable] | None = None) -> Study:
        """
        Run the search.

        Parameters:
            num_configs:          Total number of configurations to evaluate
            timeout:              Time limit in seconds (alternative to 'num_configs')
            num_parallel_configs: Number of configurations evaluated in parallel
            callbacks:            List of Optuna callback functions

        Returns:
            Optuna Study object with optimization results
        """
        if num_configs is None and timeout is None:
            raise ValueError("Please specify at least one of 'num_configs' or 'timeout' for optimization.")

        self.study.optimize(self._objective,
                            n_trials       = num_configs,
                            timeout        = timeout,
                            n_jobs         = num_parallel_configs,
                            gc_after_trial = True,
                            callbacks      = callbacks)
        return self.study

    def get_best_params(self) -> dict[str, Any]:
        return self.study.best_params

    def get_best_value(self) -> float:
        return self.study.best_value

    def get_best_config(self) -> Config:
        """
        The base configuration, updated with the best parameters found.
        """
        return self._make_config(self.study.best_params)

    def save_best_config(self, path: str) -> None:
        self.get_best_config().save(path)

    def print_summary(self) -> None:
        print("\n" + "="*60)
        print("TUNING SUMMARY")
        print("="*60)
        print(f"Number of finished trials: {len(self.study.trials)}")
        print(f"Best value (maximize): {self.study.best_value:.6f}")
        print("\nBest parameters:")
        for param_name, value in self.study.best_params.items():
            print(f"  {param_name}: {value}")
