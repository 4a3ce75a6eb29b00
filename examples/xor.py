"""
XOR Problem with Rotifer

The classic XOR benchmark, with a bias input:

    Input (1, 0, 0) -> Output 0
    Input (1, 0, 1) -> Output 1
    Input (1, 1, 0) -> Output 1
    Input (1, 1, 1) -> Output 0
           ^ bias

XOR is not linearly separable, so agents need hidden neurons. Here the agents
are layered (two hidden layers of 3 and 2 neurons); only the weights evolve.

Fitness:
    Sum over the four cases of 1 - |output - target| (maximum 4.0)

Usage:
    python xor.py                 # single world, progress printed every generation
    python xor.py --experiment    # 20 independent worlds, statistics only
"""

import logging
import sys
from pathlib import Path

from rotifer                import Config, World
from rotifer.run.experiment import Experiment

DATA = [
    [[1, 0, 0], [0]],
    [[1, 0, 1], [1]],
    [[1, 1, 0], [1]],
    [[1, 1, 1], [0]],
]

def xor_fitness(agent, row, other_agents, world):
    return 1.0 - abs(agent.get_output_values()[0] - row[1][0])

def main():
    logging.basicConfig(level=logging.INFO)
    config = Config(str(Path(__file__).parent / "config_xor.ini"))

    if "--experiment" in sys.argv:
        experiment = Experiment(num_trials=20, config=config, fitness_fn=xor_fitness, data=DATA,
                                population=100, input_count=3, output_count=1,
                                generation_count=30, survive_rate=0.8, hidden_layers=[3, 2],
                                suppress_output=False)
        experiment.run(num_jobs_trials=-1)
        return

    world = World("xor", config, suppress_output=False)
    world.create_agents(100, 3, 1, hidden_layers=[3, 2])
    world.step(xor_fitness, DATA, generation_count=30, survive_rate=0.8)

    agent = world.get_best_agent()
    agent.reset_memory()
    for inputs, expected in DATA:
        output = agent.step(inputs).get_output_values()[0]
        print(f"Input: {inputs} - Expected: {expected[0]} - Round: {round(output)} - Raw: {output:.4f}")

if __name__ == "__main__":
    main()
