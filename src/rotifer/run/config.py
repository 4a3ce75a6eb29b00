import configparser
import os
from typing import Callable

from rotifer.activations import get_activation

class Config:
    """
    Evolution parameters, threaded explicitly through World, operators and agents.

    Created without a file, the configuration holds the built-in defaults.
    Created from an INI file, every key is optional and falls back to its default.

    Public Methods:
        save(config_file): Write the configuration to an INI file
    """

    def __init__(self, config_file: str | None = None):
        """
        Initialize Config by parsing an INI file, or with the built-in defaults.

        Parameters:
            config_file: Path to the INI configuration file.
                         If None, every parameter takes its default value.

        Raises:
            FileNotFoundError: if 'config_file' does not exist
            ValueError:        if a value is malformed or out of range
        """
        parser = configparser.ConfigParser()

        if config_file is not None:
            if not os.path.exists(config_file):
                raise FileNotFoundError(f"Configuration file '{config_file}' not found")
            parser.read(config_file)

        # Helper function to safely parse values
        def get_value(section, key, value_type, default):
            try:
                raw_value = parser.get(section, key)
                if raw_value.lower() == 'none':
                    return None
                if value_type == int:
                    return parser.getint(section, key)
                elif value_type == float:
                    return parser.getfloat(section, key)
                elif value_type == bool:
                    return parser.getboolean(section, key)
                elif value_type == str:
                    return raw_value
            except (configparser.NoSectionError, configparser.NoOptionError):
                return default

        # [CROSSOVER]

        # Probability that each connection of the second parent is
        # grafted onto the child (which starts as a copy of the first parent).
        self.probability_crossover = get_value('CROSSOVER', 'probability_crossover', float, 0.5)

        # Probability that the child's gene order is disturbed by swapping two genes.
        # Gene order matters to crossovers in later generations, not to the network.
        self.probability_translocation = get_value('CROSSOVER', 'probability_translocation', float, 0.0)

        # [MUTATION]

        # Probability that the weight of a random connection is resampled,
        # and how many connections are resampled when it happens.
        self.probability_mutate_weight = get_value('MUTATION', 'probability_mutate_weight', float, 0.4)
        self.mutate_weight_count       = get_value('MUTATION', 'mutate_weight_count'      , int  , 1)

        # Probability that a hidden neuron is added (fed by a random
        # input, feeding a random output) or removed.
        self.probability_mutate_add_neuron    = get_value('MUTATION', 'probability_mutate_add_neuron'   , float, 0.04)
        self.probability_mutate_remove_neuron = get_value('MUTATION', 'probability_mutate_remove_neuron', float, 0.04)

        # Probability that a missing connection is added, or an existing one removed.
        self.probability_mutate_add_gene    = get_value('MUTATION', 'probability_mutate_add_gene'   , float, 0.1)
        self.probability_mutate_remove_gene = get_value('MUTATION', 'probability_mutate_remove_gene', float, 0.1)

        # [REPRODUCTION]

        # How many times crossover and mutation are retried
        # when they produce a child without connections.
        self.max_reproduction_attempts = get_value('REPRODUCTION', 'max_reproduction_attempts', int, 100)

        # Size of the tournament buckets, as a fraction of the population.
        self.tournament_bucket_ratio = get_value('REPRODUCTION', 'tournament_bucket_ratio', float, 0.1)

        # [NEURON]

        # The activation function of hidden and output neurons.
        # For the list of all available choices, see the 'activations' module.
        self.activation_name = get_value('NEURON', 'activation', str, 'sigmoid')

        # [CHECKPOINT]

        # Save the whole population every N generations (0 = never).
        self.save_world_every_generation = get_value('CHECKPOINT', 'save_world_every_generation', int, 0)

        # Directory where checkpoints are written.
        self.autosave_dir = get_value('CHECKPOINT', 'autosave_dir', str, 'autosave')

        # [EXECUTION]

        # Number of parallel processes for fitness evaluation
        # (1 = serial, -1 = all available CPU cores).
        self.num_jobs = get_value('EXECUTION', 'num_jobs', int, 1)

        # Seed of the random generator of the world (None = not reproducible).
        self.seed = get_value('EXECUTION', 'seed', int, None)

        self.validate()

    @property
    def activation_name(self) -> str:
        return self._activation_name

    @activation_name.setter
    def activation_name(self, name: str):
        # Resolved once, so that agents get a function, not a name to look up
        self.activation: Callable = get_activation(name)
        self._activation_name = name

    def validate(self):
        """
        Raises:
            ValueError: if a parameter is out of range
        """
        for key in ('probability_crossover',
                    'probability_translocation',
                    'probability_mutate_weight',
                    'probability_mutate_add_neuron',
                    'probability_mutate_remove_neuron',
                    'probability_mutate_add_gene',
                    'probability_mutate_remove_gene'):
            value = getattr(self, key)
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"'{key}' must be a probability in [0, 1], got {value}")

        if self.mutate_weight_count < 1:
            raise ValueError(f"'mutate_weight_count' must be at least 1, got {self.mutate_weight_count}")
        if self.max_reproduction_attempts < 1:
            raise ValueError(f"'max_reproduction_attempts' must be at least 1, got {self.max_reproduction_attempts}")
        if not 0.0 < self.tournament_bucket_ratio <= 1.0:
            raise ValueError(f"'tournament_bucket_ratio' must be in (0, 1], got {self.tournament_bucket_ratio}")
        if self.save_world_every_generation < 0:
            raise ValueError("'save_world_every_generation' cannot be negative")
        if self.num_jobs == 0:
            raise ValueError("'num_jobs' cannot be 0")

    def save(self, config_file: str):
        """
        Write the configuration to an INI file that Config(config_file) reads back.
        """
        parser = configparser.ConfigParser()
        parser['CROSSOVER'] = {
            'probability_crossover'    : str(self.probability_crossover),
            'probability_translocation': str(self.probability_translocation),
        }
        parser['MUTATION'] = {
            'probability_mutate_weight'       : str(self.probability_mutate_weight),
            'mutate_weight_count'             : str(self.mutate_weight_count),
            'probability_mutate_add_neuron'   : str(self.probability_mutate_add_neuron),
            'probability_mutate_remove_neuron': str(self.probability_mutate_remove_neuron),
            'probability_mutate_add_gene'     : str(self.probability_mutate_add_gene),
            'probability_mutate_remove_gene'  : str(self.probability_mutate_remove_gene),
        }
        parser['REPRODUCTION'] = {
            'max_reproduction_attempts': str(self.max_reproduction_attempts),
            'tournament_bucket_ratio'  : str(self.tournament_bucket_ratio),
        }
        parser['NEURON'] = {
            'activation': self.activation_name,
        }
        parser['CHECKPOINT'] = {
            'save_world_every_generation': str(self.save_world_every_generation),
            'autosave_dir'               : self.autosave_dir,
        }
        parser['EXECUTION'] = {
            'num_jobs': str(self.num_jobs),
            'seed'    : str(self.seed),
        }

        with open(config_file, 'w') as f:
            parser.write(f)
