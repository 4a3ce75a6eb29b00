"""
Rotifer Experiment Module

This module defines the Experiment class, with built-in support for
CPU-based parallelization using joblib.

An experiment represents a collection of multiple independent trials (worlds
evolved on the same problem), used to gather statistical data about how
reliably evolution solves it.
"""

import copy
from joblib     import Parallel, delayed
from statistics import mean
from sys        import stdout

from rotifer.pool.world     import FitnessFunction, World
from rotifer.run.checkpoint import Checkpointer, MemoryCheckpointer
from rotifer.run.config     import Config

class Experiment:
    """
    Runs the same evolution problem in several independent worlds.

    When the configuration has a seed, trial n runs with seed 'config.seed + n',
    so the whole experiment is reproducible. Checkpoints go to an in-memory
    checkpointer unless one is given.

    Subclasses can override:
    - _prepare_world(world, trial_number): Configure each world before it evolves
    - _extract_trial_results(world, trial_number): Extract results after a trial completes
    - _final_report(): Produce aggregated statistical report for entire experiment

    Public Attributes:
        results: One dictionary per trial, in trial order

    Public Methods:
        run(num_jobs_trials=1): Execute the complete experiment
        improvement_rate():     Fraction of trials whose best fitness improved
        mean_best_fitness():    Average of the trials' best fitness

    Parallelization:
        Trial-level parallelization (num_jobs_trials):
            1:  Serial trial execution (no parallelization)
           >1:  Use specified number of parallel processes for trials
           -1:  Use all available CPU cores for trials

        Fitness evaluation inside each trial follows 'config.num_jobs'
        (keep it at 1 when trials run in parallel).
    """

    def __init__(self,
                 num_trials      : int,
                 config          : Config,
                 fitness_fn      : FitnessFunction,
                 data,
                 population      : int,
                 input_count     : int,
                 output_count    : int,
                 generation_count: int,
                 survive_rate    : float,
                 hidden_layers   : list[int] | None    = None,
                 has_memory      : bool                = False,
                 batch_size      : int                 = 0,
                 checkpointer    : Checkpointer | None = None,
                 name            : str                 = 'experiment',
                 suppress_output : bool                = True):
        """
        Parameters:
            num_trials:       Number of independent worlds
            config:           Evolution parameters shared by all trials
            fitness_fn:       See World.next_generation
            data:             See World.next_generation
            population:       Number of agents of each world
            input_count:      Number of input neurons of each agent
            output_count:     Number of output neurons of each agent
            generation_count: Number of generations of each trial
            survive_rate:     See World.next_generation
            hidden_layers:    Hidden layer sizes (dynamic agents if None)
            has_memory:       Whether the agents have memory
            batch_size:       See World.step
            checkpointer:     Shared persistence (in memory if None)
            name:             Prefix of the worlds' names
            suppress_output:  If True, do not print progress and final reports
        """
        self._num_trials      : int             = num_trials
        self._config          : Config          = config
        self._fitness_fn      : FitnessFunction = fitness_fn
        self._data                              = list(data)
        self._population      : int             = population
        self._input_count     : int             = input_count
        self._output_count    : int             = output_count
        self._generation_count: int             = generation_count
        self._survive_rate    : float           = survive_rate
        self._hidden_layers                     = hidden_layers
        self._has_memory      : bool            = has_memory
        self._batch_size      : int             = batch_size
        self._checkpointer    : Checkpointer    = checkpointer if checkpointer is not None else MemoryCheckpointer()
        self._name            : str             = name
        self._suppress_output : bool            = suppress_output

        self.results: list[dict] = []

    def run(self, num_jobs_trials: int = 1) -> list[dict]:
        """
        Run all trials.

        Parameters:
            num_jobs_trials: Number of parallel processes for running trials
                              1 = serial trial execution (default)
                             -1 = use all available CPU cores for trials
                             >1 = use specified number of processes for trials

        Returns:
            The results of each trial
        """
        serialize = num_jobs_trials == 1

        if serialize:
            results = [self._run_trial(n) for n in range(1, self._num_trials + 1)]
        else:
            results = Parallel(num_jobs_trials)(
                delayed(self._run_trial)(n)
                for n in range(1, self._num_trials + 1)
            )

        self.results = list(results)
        if not self._suppress_output:
            self._final_report()
        return self.results

    def _run_trial(self, trial_number: int) -> dict:
        """
        Prepare, run, analyze one trial.
        Returns the relevant data generated by the trial.
        """
        config = copy.copy(self._config)
        if config.seed is not None:
            config.seed = self._config.seed + trial_number

        world = World(f"{self._name}_{trial_number:03d}", config, self._checkpointer, suppress_output=True)
        world.create_agents(self._population,
                            self._input_count,
                            self._output_count,
                            self._hidden_layers,
                            self._has_memory)

        self._prepare_world(world, trial_number)
        world.step(self._fitness_fn, self._data, self._generation_count, self._survive_rate, self._batch_size)

        return self._extract_trial_results(world, trial_number)

    def _prepare_world(self, world: World, trial_number: int):
        """
        Configure a world before it evolves. The default implementation prints a progress report.
        """
        if not self._suppress_output:
            stdout.write(f"Starting trial {trial_number:03d} of {self._num_trials}...\r")
            stdout.flush()

    def _extract_trial_results(self, world: World, trial_number: int) -> dict:
        """
        Extract relevant results at the end of a trial.
        Derived implementations should call this method and extend its result.
        """
        summary = world.best_agent.summary()

        return {
            "trial_number"        : trial_number,
            "best_fitness"        : world.best_agent.fitness,
            "history"             : list(world.history),
            "generations"         : len(world.history),
            "hidden_neurons_count": summary["hidden_neurons_count"],
            "connections_count"   : summary["connections_count"],
        }

    def improvement_rate(self) -> float:
        """
        Fraction of trials whose best fitness after the last generation
        is strictly greater than after the first one.
        """
        if not self.results:
            return 0.0
        improved = [r for r in self.results if r["history"] and r["history"][-1] > r["history"][0]]
        return len(improved) / len(self.results)

    def mean_best_fitness(self) -> float:
        return mean(r["best_fitness"] for r in self.results) if self.results else 0.0

    def _final_report(self):
        print(f"\nTrials: {len(self.results)}")
        print(f"Improvement rate:  {self.improvement_rate():.2%}")
        print(f"Mean best fitness: {self.mean_best_fitness():.4f}")
        print(f"Mean hidden neurons: {mean(r['hidden_neurons_count'] for r in self.results):.2f}")
        print(f"Mean connections:    {mean(r['connections_count'] for r in self.results):.2f}")
