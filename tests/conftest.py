import pytest

from foodweb_analytics import Edge, NetworkModel, Node


@pytest.fixture
def chain_network():
    """basal -> herbivore -> carnivore, hand-parameterised losses and efficiencies."""
    nodes = [
        Node("basal", body_mass=1.0, biomass=1000.0, organism_type="plant", loss_rate=0.0, efficiency=1.0),
        Node("herbivore", body_mass=10.0, biomass=100.0, organism_type="animal", loss_rate=5.0, efficiency=0.9),
        Node("carnivore", body_mass=100.0, biomass=10.0, organism_type="animal", loss_rate=8.0, efficiency=0.9),
    ]
    edges = [Edge("basal", "herbivore"), Edge("herbivore", "carnivore")]
    return NetworkModel(nodes, edges)


@pytest.fixture
def omnivory_network():
    """
    Basal resource eaten by a herbivore and an omnivore that also eats the
    herbivore. Unstable without self-loss, stable once the self-loss
    multiplier exceeds 0.2.
    """
    nodes = [
        Node("resource", body_mass=1.0, biomass=1.0, organism_type="plant", loss_rate=0.0),
        Node("herbivore", body_mass=1.0, biomass=1.0, organism_type="animal", loss_rate=1.0, efficiency=0.5),
        Node("omnivore", body_mass=1.0, biomass=1.0, organism_type="animal", loss_rate=1.0, efficiency=0.5),
    ]
    edges = [
        Edge("resource", "herbivore"),
        Edge("resource", "omnivore"),
        Edge("herbivore", "omnivore"),
    ]
    return NetworkModel(nodes, edges)


@pytest.fixture
def grazer_network():
    """Logistic plant grazed by a single consumer."""
    nodes = [
        Node("plant", body_mass=1.0, biomass=1.0, organism_type="plant", growth_rate=0.1, loss_rate=0.0),
        Node("grazer", body_mass=1.0, biomass=1.0, organism_type="animal", loss_rate=0.1, efficiency=0.5),
    ]
    return NetworkModel(nodes, [Edge("plant", "grazer")])
