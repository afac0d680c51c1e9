import numpy as np
import pandas as pd
import pytest

from foodweb_analytics import (
    DEFAULT_PARAMETERS,
    Edge,
    InvalidTopology,
    NetworkModel,
    Node,
    TrophicParameters,
)


def _node(node_id, **kwargs):
    defaults = dict(body_mass=1.0, biomass=1.0, organism_type="animal", metabolic_type="inv")
    defaults.update(kwargs)
    return Node(node_id, **defaults)


def test_loss_rate_and_efficiency_from_tables():
    net = NetworkModel([_node("a", body_mass=16.0), _node("b", organism_type="plant", metabolic_type=None)], [])

    a, b = DEFAULT_PARAMETERS.metabolic_coefficients["inv"]
    assert np.isclose(net.loss_rate[0], a * 16.0 ** b)
    assert np.isclose(net.loss_rate[0], 0.314 * 0.5)
    # plant without metabolic type or explicit loss
    assert net.loss_rate[1] == 0.0
    assert net.efficiency[0] == 0.906
    assert net.efficiency[1] == 0.545


def test_explicit_overrides_take_precedence():
    net = NetworkModel([_node("a", loss_rate=2.5, efficiency=0.3)], [])
    assert net.loss_rate[0] == 2.5
    assert net.efficiency[0] == 0.3


def test_custom_parameter_tables():
    params = TrophicParameters(
        metabolic_coefficients={"ecto.vert": (1.0, 0.0), "endo.vert": (2.0, 0.0), "inv": (3.0, 0.0)},
        efficiencies={"animal": 0.8, "plant": 0.4, "detritus": 0.1},
    )
    net = NetworkModel(
        [_node("fish", metabolic_type="ecto.vert"), _node("bird", metabolic_type="endo.vert"),
         _node("leaf", organism_type="detritus")],
        [],
        parameters=params,
    )
    np.testing.assert_allclose(net.loss_rate, [1.0, 2.0, 3.0])
    np.testing.assert_allclose(net.efficiency, [0.8, 0.8, 0.1])


@pytest.mark.parametrize("tables", [
    dict(efficiencies={"animal": 0.8, "plant": 0.4}),
    dict(efficiencies={"animal": 1.5, "plant": 0.4, "detritus": 0.1}),
    dict(metabolic_coefficients={"ecto.vert": (1.0, 0.0), "inv": (3.0, 0.0)}),
    dict(metabolic_coefficients={"ecto.vert": (1.0, np.nan), "endo.vert": (2.0, 0.0), "inv": (3.0, 0.0)}),
])
def test_invalid_parameter_tables(tables):
    with pytest.raises(ValueError):
        TrophicParameters(**tables)


def test_unknown_categories_rejected():
    with pytest.raises(ValueError, match="organism type"):
        NetworkModel([_node("a", organism_type="fungus")], [])
    with pytest.raises(ValueError, match="metabolic type"):
        NetworkModel([_node("a", metabolic_type="reptile")], [])


@pytest.mark.parametrize("kwargs", [
    dict(body_mass=0.0),
    dict(body_mass=np.inf),
    dict(biomass=-1.0),
    dict(biomass=np.nan),
    dict(growth_rate=-0.5),
    dict(loss_rate=-1.0),
    dict(efficiency=1.2),
    dict(body_mass=None),
    dict(body_mass="1.0"),
    dict(biomass="heavy"),
    dict(growth_rate="fast"),
    dict(loss_rate=[0.1]),
    dict(efficiency="0.5"),
])
def test_invalid_node_values(kwargs):
    with pytest.raises(ValueError):
        NetworkModel([_node("a", **kwargs)], [])


@pytest.mark.parametrize("preference", [None, "high", -0.1, np.nan])
def test_invalid_edge_preference(preference):
    with pytest.raises(ValueError, match="Preference of edge"):
        NetworkModel([_node("a"), _node("b")], [Edge("a", "b", preference=preference)])


def test_invalid_topology():
    nodes = [_node("a"), _node("b")]
    with pytest.raises(InvalidTopology, match="unknown node"):
        NetworkModel(nodes, [Edge("a", "z")])
    with pytest.raises(InvalidTopology, match="Self-loop"):
        NetworkModel(nodes, [Edge("a", "a")])
    with pytest.raises(InvalidTopology, match="Duplicate edge"):
        NetworkModel(nodes, [Edge("a", "b"), Edge("a", "b")])
    with pytest.raises(InvalidTopology, match="Duplicate node"):
        NetworkModel([_node("a"), _node("a")], [])
    with pytest.raises(ValueError):
        NetworkModel(nodes, [Edge("a", "b", preference=-1.0)])


def test_invalid_topology_is_a_value_error():
    with pytest.raises(ValueError):
        NetworkModel([_node("a")], [Edge("a", "a")])


def test_adjacency_and_cycles_allowed():
    nodes = [_node("a"), _node("b"), _node("c")]
    net = NetworkModel(nodes, [Edge("a", "b"), Edge("b", "c"), Edge("c", "a", preference=2.0)])

    assert net.adjacency[0, 1] and net.adjacency[1, 2] and net.adjacency[2, 0]
    assert net.adjacency.sum() == 3
    assert net.preferences[2, 0] == 2.0
    assert net.prey_of("a") == ["c"]
    assert list(net.consumers) == [0, 1, 2]


def test_network_is_immutable(chain_network):
    with pytest.raises(ValueError):
        chain_network.biomass[0] = 5.0
    with pytest.raises(AttributeError):
        chain_network.nodes[0].biomass = 5.0


def test_growth_rates(grazer_network):
    np.testing.assert_array_equal(grazer_network.growth_rate, [0.1, 0.0])
    np.testing.assert_array_equal(grazer_network.has_growth, [True, False])


def test_from_frames_keeps_node_ids():
    nodes = pd.DataFrame({
        "id": [10, "fish", 3.5],
        "body_mass": [1.0, 50.0, 2.0],
        "biomass": [500.0, 5.0, 20.0],
        "organism_type": ["plant", "animal", "animal"],
        "metabolic_type": [None, "ecto.vert", "inv"],
        "growth_rate": [0.8, np.nan, np.nan],
    })
    edges = pd.DataFrame({"prey": [10, 3.5], "predator": [3.5, "fish"], "preference": [1.0, np.nan]})

    net = NetworkModel.from_frames(nodes, edges)

    assert net.ids == [10, "fish", 3.5]
    assert net.prey_of("fish") == [3.5]
    assert net.growth_rate[0] == 0.8
    assert not net.has_growth[1]
    assert net.preferences[2, 1] == 1.0
    assert net.loss_rate[0] == 0.0
    assert net.loss_rate[1] > 0


def test_index_of_unknown(chain_network):
    assert chain_network.index_of("carnivore") == 2
    with pytest.raises(KeyError):
        chain_network.index_of("shark")


def test_from_frames_integer_ids_with_float_preference():
    big = 2 ** 53
    nodes = pd.DataFrame({
        "id": [1, 2, big + 1, big + 3],
        "body_mass": [1.0, 1.0, 1.0, 1.0],
        "biomass": [10.0, 10.0, 5.0, 5.0],
        "organism_type": ["plant", "plant", "animal", "animal"],
    })
    edges = pd.DataFrame({
        "prey": [1, 2, big + 1],
        "predator": [big + 1, big + 1, big + 3],
        "preference": [0.25, 0.75, 1.0],
    })

    net = NetworkModel.from_frames(nodes, edges)

    assert net.ids == [1, 2, big + 1, big + 3]
    for edge in net.edges:
        assert type(edge.prey) is int and type(edge.predator) is int
    assert net.edges[0] == Edge(1, big + 1, preference=0.25)
    assert net.prey_of(big + 1) == [1, 2]
    assert net.prey_of(big + 3) == [big + 1]
    assert net.preferences[1, 2] == 0.75
