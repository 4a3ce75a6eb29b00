"""
Search space definitions for hyperparameter tuning.

Each parameter names a Config attribute and knows how to draw a value for it
from an Optuna trial and how to write that value back into a Config.

Classes:
    ConfigParameter:      Base class, bound to one Config attribute
    FloatParameter:       A float attribute (e.g. a probability)
    IntParameter:         An integer attribute (e.g. 'mutate_weight_count')
    CategoricalParameter: An attribute taking one of a list of values (e.g. 'activation_name')
    SearchSpace:          The set of parameters explored by the tuner
"""

from abc    import ABC, abstractmethod
from typing import Any

import optuna  # type: ignore

from rotifer.run.config import Config

# Attributes holding a probability, bounded to [0, 1]
_PROBABILITIES = {name for name in vars(Config()) if name.startswith('probability_')}

class ConfigParameter(ABC):
    """
    A tunable Config attribute.

    Raises:
        ValueError: if 'name' is not a Config attribute
    """

    def __init__(self, name: str):
        defaults = Config()
        if not hasattr(defaults, name):
            raise ValueError(f"'{name}' is not a configuration parameter")
        self.name    = name
        self.default = getattr(defaults, name)

    @abstractmethod
    def suggest(self, trial: optuna.Trial) -> Any:
        pass

    def coerce(self, value: Any) -> Any:
        return value

    def apply(self, config: Config, value: Any) -> None:
        setattr(config, self.name, self.coerce(value))

class FloatParameter(ConfigParameter):

    def __init__(self, name: str, low: float, high: float, log: bool = False, step: float | None = None):
        super().__init__(name)
        if not low < high:
            raise ValueError(f"'{name}': empty range [{low}, {high}]")
        if name in _PROBABILITIES and (low < 0.0 or high > 1.0):
            raise ValueError(f"'{name}' is a probability, its range must lie in [0, 1], got [{low}, {high}]")
        self.low, self.high, self.log, self.step = low, high, log, step

    def suggest(self, trial: optuna.Trial) -> float:
        if self.step is not None:
            return trial.suggest_float(self.name, self.low, self.high, step=self.step)
        return trial.suggest_float(self.name, self.low, self.high, log=self.log)

    def coerce(self, value: Any) -> float:
        return float(value)

class IntParameter(ConfigParameter):

    def __init__(self, name: str, low: int, high: int, log: bool = False, step: int = 1):
        super().__init__(name)
        if not isinstance(self.default, int):
            raise ValueError(f"'{name}' is not an integer parameter")
        if not low < high:
            raise ValueError(f"'{name}': empty range [{low}, {high}]")
        self.low, self.high, self.log, self.step = low, high, log, step

    def suggest(self, trial: optuna.Trial) -> int:
        return trial.suggest_int(self.name, self.low, self.high, log=self.log, step=self.step)

    def coerce(self, value: Any) -> int:
        return int(value)

class CategoricalParameter(ConfigParameter):

    def __init__(self, name: str, choices: list[Any]):
        super().__init__(name)
        if not choices:
            raise ValueError(f"'{name}': no choices given")
        self.choices = list(choices)

    def suggest(self, trial: optuna.Trial) -> Any:
        return trial.suggest_categorical(self.name, self.choices)

class SearchSpace:
    """
    The Config attributes to tune, with their ranges or choices.

    Example:
        >>> search_space = SearchSpace()
        >>> search_space.add_float('probability_crossover', 0.1, 0.9)
        >>> search_space.add_int('mutate_weight_count', 1, 3)
        >>> search_space.add_categorical('activation_name', ['sigmoid', 'tanh'])
    """

    def __init__(self):
        self.parameters: dict[str, ConfigParameter] = {}

    def add_float(self, name: str, low: float, high: float, log: bool = False, step: float | None = None) -> 'SearchSpace':
        return self._add(FloatParameter(name, low, high, log, step))

    def add_int(self, name: str, low: int, high: int, log: bool = False, step: int = 1) -> 'SearchSpace':
        return self._add(IntParameter(name, low, high, log, step))

    def add_categorical(self, name: str, choices: list[Any]) -> 'SearchSpace':
        return self._add(CategoricalParameter(name, choices))

    def _add(self, param: ConfigParameter) -> 'SearchSpace':
        if param.name in self.parameters:
            raise ValueError(f"'{param.name}' is already in the search space")
        self.parameters[param.name] = param
        return self

    def suggest(self, trial: optuna.Trial) -> dict[str, Any]:
        """
        Parameter name -> value suggested by the Optuna trial.
        """
        return {name: param.suggest(trial) for name, param in self.parameters.items()}

    def apply(self, config: Config, params: dict[str, Any]) -> Config:
        """
        Write parameter values into 'config' (in place) and validate it.

        Raises:
            KeyError:   if a value is given for a parameter outside the search space
            ValueError: if the resulting configuration is invalid
        """
        for name, value in params.items():
            self.parameters[name].apply(config, value)
        config.validate()
        return config

    def get_param_names(self) -> list[str]:
        return list(self.parameters)

    def __len__(self) -> int:
        return len(self.parameters)

    def __repr__(self) -> str:
        return f"SearchSpace({', '.join(self.get_param_names())})"
