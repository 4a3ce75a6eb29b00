"""
Identity Autoencoder with Rotifer

Agents read a bias and a value x in [0, 1], squeeze them through a hidden layer
of 2 neurons and must reproduce x on their single output.

Fitness:
    Sum over the rows of 1 - |output - x|
"""

import random

from rotifer import Config, World

def make_data(count: int = 10, seed: int = 1):
    rng = random.Random(seed)
    return [[[1, x], [x]] for x in (rng.random() for _ in range(count))]

def echo_fitness(agent, row, other_agents, world):
    return 1.0 - abs(agent.get_output_values()[0] - row[1][0])

def main():
    data = make_data()

    world = World("autoencoder", Config(), suppress_output=False)
    world.create_agents(50, 2, 1, hidden_layers=[2])
    world.step(echo_fitness, data, generation_count=40, survive_rate=0.5)

    agent = world.get_best_agent()
    agent.reset_memory()
    errors = [abs(agent.step(inputs).get_output_values()[0] - expected[0]) for inputs, expected in data]
    print(f"Average reconstruction error: {sum(errors) / len(errors):.4f}")
    agent.visualize(view=True)

if __name__ == "__main__":
    main()
