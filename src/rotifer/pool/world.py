"""
Rotifer World Module

This module implements the World class, which owns the population of agents and
drives the generational loop: fitness evaluation, ranking, best agent tracking,
tournament reproduction and checkpointing.

Fitness evaluation can be parallelized across agents using joblib:
    num_jobs=1:  Serial evaluation (no parallelization)
    num_jobs>1:  Use specified number of parallel processes
    num_jobs=-1: Use all available CPU cores
"""

import logging
import math
import random
import time
import warnings
from collections.abc import Mapping
from typing          import Any, Callable

from joblib import Parallel, delayed

from rotifer.errors             import DegenerateReproductionError
from rotifer.genotype.encoders  import Encoder, HEX, HUMAN
from rotifer.genotype.neuron    import NeuronType
from rotifer.genotype.operators import crossover, mutate, round_half_up, translocation
from rotifer.phenotype.agent    import Agent
from rotifer.run.checkpoint     import Checkpointer, FileCheckpointer
from rotifer.run.config         import Config

logger = logging.getLogger(__name__)

# (agent, data row, other agents, world) -> fitness increment
FitnessFunction = Callable[[Agent, Any, list[Agent], 'World'], float]

class World:
    """
    A population of agents evolving across generations.

    Each generation, every agent is run through the data and scored by a
    caller-supplied fitness function (higher is better). Agents are ranked,
    the best one ever seen is kept aside (and checkpointed), the top fraction
    of the ranking survives and repopulates the world through a bucketed
    tournament of pairwise reproductions.

    All random draws are made with the world's own generator, seeded from
    'config.seed', so a seeded run is reproducible.

    Public Attributes:
        name:         Namespace of the checkpoint files
        agents:       The current population
        generation:   Number of the generation about to be evaluated (starts at 1)
        best_agent:   Copy of the fittest agent seen so far (None before the first generation)
        history:      Best-ever fitness after each generation
        config:       Evolution parameters
        checkpointer: Persistence of the best agent and of the population

    Public Methods:
        create_agents(...):                         Create the initial population
        reproduce(agent_a, agent_b):                Create one child out of two parents
        tournament(ranked_agents):                  Create a full generation out of ranked survivors
        next_generation(fitness_fn, data, rate):    Evaluate and replace the population once
        step(fitness_fn, data, count, rate, ...):   Run several generations
        save():                                     Checkpoint the whole population
    """

    def __init__(self,
                 name           : str                 = 'world',
                 config         : Config | None       = None,
                 checkpointer   : Checkpointer | None = None,
                 suppress_output: bool                = True):
        """
        Parameters:
            name:            Namespace of the checkpoint files
            config:          Evolution parameters (built-in defaults if None)
            checkpointer:    Persistence (files in 'config.autosave_dir' if None)
            suppress_output: If True, do not print progress reports
        """
        self.config          : Config        = config if config is not None else Config()
        self.checkpointer    : Checkpointer  = checkpointer if checkpointer is not None else FileCheckpointer(self.config.autosave_dir)
        self.name            : str           = name
        self.agents          : list[Agent]   = []
        self.generation      : int           = 1
        self.best_agent      : Agent | None  = None
        self.history         : list[float]   = []
        self._suppress_output: bool          = suppress_output
        self._rng            : random.Random = random.Random(self.config.seed)

    def create_agents(self,
                      count        : int,
                      input_count  : int,
                      output_count : int,
                      hidden_layers: list[int] | None = None,
                      has_memory   : bool             = False) -> 'World':
        """
        Create the initial population, replacing the current one.

        With 'hidden_layers' (e.g. [3, 2]) the agents are layered; otherwise
        they are dynamic and start with a single hidden neuron.

        Raises:
            ValueError: if 'count' is less than 2, or an agent would lack inputs or outputs
        """
        if count <= 1:
            raise ValueError(f"The world cannot have only {count} agent(s), at least 2 are required")
        if input_count < 1 or output_count < 1:
            raise ValueError(f"Agents need at least one input and one output, got {input_count} and {output_count}")

        self.agents = []
        for _ in range(count):
            agent = Agent(has_memory, self.config.activation)
            agent.create_neuron(NeuronType.INPUT, input_count)
            agent.create_neuron(NeuronType.OUTPUT, output_count)
            if hidden_layers:
                agent.create_hidden_layer_neurons(hidden_layers)
            else:
                agent.create_neuron(NeuronType.HIDDEN)
            agent.init_random_connections(self._rng)
            self.agents.append(agent)

        logger.info(f"World '{self.name}': created {count} agents ({input_count} inputs, {output_count} outputs)")
        return self

    def get_agents(self) -> list[Agent]:
        return self.agents

    def set_agents(self, agents: list[Agent]) -> 'World':
        self.agents = list(agents)
        return self

    def get_best_agent(self) -> Agent | None:
        return self.best_agent

    # ------------------------------------------------------------------
    # Reproduction
    # ------------------------------------------------------------------

    def reproduce(self, agent_a: Agent, agent_b: Agent) -> Agent:
        """
        Create a child: crossover (A's body, B's grafts), mutation, then a fresh
        rebuild from the resulting genome. Memory and layers come from parent A.

        Raises:
            DegenerateReproductionError: if every attempt produced a child without connections
        """
        config = self.config

        for _ in range(config.max_reproduction_attempts):
            child = crossover(agent_a, agent_b, config.probability_crossover, self._rng)
            mutate(child,
                   config.probability_mutate_weight,
                   config.probability_mutate_add_neuron,
                   config.probability_mutate_add_gene,
                   config.probability_mutate_remove_neuron,
                   config.probability_mutate_remove_gene,
                   weight_count = config.mutate_weight_count,
                   rng          = self._rng)

            genome = translocation(child.get_genome_array(), config.probability_translocation, self._rng)
            if genome:
                return Agent.create_from_genome(genome,
                                                has_memory   = agent_a.has_memory,
                                                layers       = agent_a.layers,
                                                activation   = agent_a.activation,
                                                input_count  = agent_a.count_neurons(NeuronType.INPUT),
                                                output_count = agent_a.count_neurons(NeuronType.OUTPUT))

        raise DegenerateReproductionError(f"Reproduction produced an empty genome {config.max_reproduction_attempts} times in a row",
                                          agent_a.get_genome_string(HUMAN, separator='\n'),
                                          agent_b.get_genome_string(HUMAN, separator='\n'))

    def tournament(self, ranked_agents: list[Agent], population: int | None = None) -> list[Agent]:
        """
        Create a full generation out of agents ranked by decreasing fitness.

        The ranking is cut into buckets of ceil(population * tournament_bucket_ratio)
        agents of similar fitness, whose order is shuffled. Buckets take turns;
        each turn, the first two agents left in the bucket are paired and produce
        two children (A x B and B x A). When the current bucket has fewer than two
        agents left, the buckets are dealt again from the full ranking.

        Parameters:
            ranked_agents: Agents sorted by decreasing fitness
            population:    Number of children to produce (size of the world if None)

        Returns:
            Exactly 'population' new agents
        """
        if population is None:
            population = len(self.agents)
        if len(ranked_agents) < 2:
            raise ValueError(f"A tournament needs at least 2 agents, got {len(ranked_agents)}")

        bucket_size = max(2, math.ceil(population * self.config.tournament_bucket_ratio))
        buckets = self._deal_buckets(ranked_agents, bucket_size)

        offspring = []
        turn = 0
        while len(offspring) < population:
            current = turn % len(buckets)
            if len(buckets[current]) < 2:
                buckets = self._deal_buckets(ranked_agents, bucket_size)

            agent_a = buckets[current].pop(0)
            agent_b = buckets[current].pop(0)
            offspring.append(self.reproduce(agent_a, agent_b))
            if len(offspring) < population:
                offspring.append(self.reproduce(agent_b, agent_a))
            turn += 1

        return offspring

    def _deal_buckets(self, ranked_agents: list[Agent], bucket_size: int) -> list[list[Agent]]:
        """
        Cut the ranking into buckets of 'bucket_size' agents, each shuffled.
        A trailing single agent joins the previous bucket.
        """
        buckets = [list(ranked_agents[i:i + bucket_size]) for i in range(0, len(ranked_agents), bucket_size)]
        if len(buckets) > 1 and len(buckets[-1]) < 2:
            buckets[-2].extend(buckets.pop())
        for bucket in buckets:
            self._rng.shuffle(bucket)
        return buckets

    # ------------------------------------------------------------------
    # Evolution
    # ------------------------------------------------------------------

    def next_generation(self, fitness_fn: FitnessFunction, data, survive_rate: float) -> 'World':
        """
        Evaluate the population and replace it with the next generation.

        Parameters:
            fitness_fn:   Called as fitness_fn(agent, row, other_agents, world) after
                          the agent stepped on the row's input; results are summed
            data:         Rows of the form (input, expected), or mappings with an
                          'input' key; an empty row resets the memory of the agent
            survive_rate: Fraction of the ranking allowed to reproduce
        """
        if len(self.agents) < 2:
            raise RuntimeError("The world has no population, call create_agents() first")
        if not 0.0 < survive_rate <= 1.0:
            raise ValueError(f"'survive_rate' must be in (0, 1], got {survive_rate}")

        self._evaluate_fitness_all(fitness_fn, data)

        # Ties are broken at random
        ranked = list(self.agents)
        self._rng.shuffle(ranked)
        ranked.sort(key=lambda agent: agent.fitness, reverse=True)

        champion = ranked[0]
        if self.best_agent is None or champion.fitness > self.best_agent.fitness:
            self.best_agent = champion.clone()
            self._autosave_best()

        population = len(self.agents)
        survivors  = ranked[:max(2, round_half_up(population * survive_rate))]
        self.agents = self.tournament(survivors, population)

        self.history.append(self.best_agent.fitness)
        logger.debug(f"World '{self.name}': generation {self.generation}, champion fitness {champion.fitness:.4f}, "
                     f"best fitness {self.best_agent.fitness:.4f}")

        if not self._suppress_output:
            self._report_progress(champion)

        every = self.config.save_world_every_generation
        if every and self.generation % every == 0:
            self._autosave_world()

        self.generation += 1
        return self

    def step(self,
             fitness_fn      : FitnessFunction,
             data,
             generation_count: int,
             survive_rate    : float,
             batch_size      : int                                = 0,
             stop_fn         : Callable[['World'], bool] | None = None,
             timeout         : float | None                       = None) -> 'World':
        """
        Run several generations.

        Parameters:
            fitness_fn:       See 'next_generation'
            data:             See 'next_generation'
            generation_count: Number of generations (0 = until 'stop_fn' or 'timeout' ends the run)
            survive_rate:     See 'next_generation'
            batch_size:       If > 0 and smaller than the data, each generation sees the next
                              'batch_size' rows only (wrapping around at the end of the data)
            stop_fn:          Called with the world after each generation; True ends the run
            timeout:          Seconds after which no new generation is started
        """
        if generation_count < 0:
            raise ValueError(f"'generation_count' cannot be negative, got {generation_count}")
        if generation_count == 0 and stop_fn is None and timeout is None:
            warnings.warn("generation_count=0 without stop_fn or timeout: this run never ends",
                          RuntimeWarning, stacklevel=2)

        data     = list(data)
        deadline = time.monotonic() + timeout if timeout is not None else None
        offset   = 0
        done     = 0

        while generation_count == 0 or done < generation_count:
            if 0 < batch_size < len(data):
                batch  = [data[(offset + i) % len(data)] for i in range(batch_size)]
                offset = (offset + batch_size) % len(data)
            else:
                batch = data

            self.next_generation(fitness_fn, batch, survive_rate)
            done += 1

            if stop_fn is not None and stop_fn(self):
                break
            if deadline is not None and time.monotonic() >= deadline:
                logger.info(f"World '{self.name}': timeout reached after {done} generations")
                break

        return self

    def _evaluate_fitness_all(self, fitness_fn: FitnessFunction, data):
        """
        Score every agent, serially or in parallel (joblib) depending on 'config.num_jobs'.
        """
        num_jobs  = self.config.num_jobs
        serialize = num_jobs == 1

        if serialize:
            for agent in self.agents:
                _evaluate_agent(agent, fitness_fn, data, self._others(agent), self)
        else:
            fitness_all = Parallel(num_jobs)(delayed(_evaluate_agent)(agent, fitness_fn, data, self._others(agent), self)
                                             for agent in self.agents)
            for agent, fitness in zip(self.agents, fitness_all):
                agent.fitness = fitness

    def _others(self, agent: Agent) -> list[Agent]:
        return [other for other in self.agents if other is not agent]

    def _report_progress(self, champion: Agent):
        summary = champion.summary()
        print(f"Generation {self.generation:4d}: "
              f"best fitness = {self.best_agent.fitness:.4f}, "
              f"generation best = {champion.fitness:.4f}, "
              f"hidden neurons = {summary['hidden_neurons_count']}, "
              f"connections = {summary['connections_count']}")

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def get_genomes_string(self,
                           encoder           : Encoder | None              = None,
                           gene_separator    : str                          = ';',
                           genome_separator  : str                          = '\n',
                           iteration_callback: Callable[[str], str] | None = None) -> str:
        """
        The genomes of the whole population, one per agent (HEX encoded by default).
        """
        return genome_separator.join(agent.get_genome_string(encoder, gene_separator, iteration_callback)
                                     for agent in self.agents)

    def save(self):
        """
        Checkpoint the whole population.
        """
        self.checkpointer.save_world(self.name, self.get_genomes_string())

    def _autosave_best(self):
        try:
            self.checkpointer.save_best(self.name, self.best_agent.get_genome_string())
        except OSError as e:
            logger.warning(f"Failed to save best agent of world '{self.name}': {e}")

    def _autosave_world(self):
        try:
            self.save()
        except OSError as e:
            logger.warning(f"Failed to save world '{self.name}': {e}")

    @classmethod
    def load_autosaved(cls,
                       name        : str,
                       config      : Config | None       = None,
                       checkpointer: Checkpointer | None = None,
                       has_memory  : bool                = False,
                       layers      : list[int] | None    = None,
                       input_count : int                 = 0,
                       output_count: int                 = 0,
                       **kwargs) -> 'World':
        """
        Create a world whose population is read back from its checkpoint.

        Raises:
            FileNotFoundError: if there is no checkpoint for 'name'
            ValueError:        if the checkpoint holds fewer than 2 agents
        """
        world = cls(name, config, checkpointer, **kwargs)
        text  = world.checkpointer.load_world(name)

        world.agents = [Agent.create_from_genome(line, HEX,
                                                 has_memory   = has_memory,
                                                 layers       = layers,
                                                 activation   = world.config.activation,
                                                 input_count  = input_count,
                                                 output_count = output_count)
                        for line in text.splitlines() if line.strip()]
        if len(world.agents) <= 1:
            raise ValueError(f"The checkpoint of world '{name}' holds {len(world.agents)} agent(s), at least 2 are required")

        logger.info(f"World '{name}': loaded {len(world.agents)} agents")
        return world

    @classmethod
    def load_best_agent(cls,
                        name        : str,
                        config      : Config | None       = None,
                        checkpointer: Checkpointer | None = None,
                        has_memory  : bool                = False,
                        layers      : list[int] | None    = None,
                        input_count : int                 = 0,
                        output_count: int                 = 0) -> Agent:
        """
        Read back the best agent checkpointed by the world 'name'.

        Raises:
            FileNotFoundError: if there is no checkpoint for 'name'
        """
        config       = config if config is not None else Config()
        checkpointer = checkpointer if checkpointer is not None else FileCheckpointer(config.autosave_dir)

        return Agent.create_from_genome(checkpointer.load_best(name).strip(), HEX,
                                        has_memory   = has_memory,
                                        layers       = layers,
                                        activation   = config.activation,
                                        input_count  = input_count,
                                        output_count = output_count)

def _evaluate_agent(agent: Agent, fitness_fn: FitnessFunction, data, other_agents: list[Agent], world: World) -> float:
    """
    Run an agent through the data and accumulate its fitness.
    Module level, so that joblib can ship it to worker processes.
    """
    agent.reset()
    for row in data:
        if len(row) == 0:
            agent.reset_memory()
            continue
        agent.step(row['input'] if isinstance(row, Mapping) else row[0])
        agent.fitness += fitness_fn(agent, row, other_agents, world)
    return agent.fitness
