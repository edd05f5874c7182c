import numpy as np
import pytest

from habicat.layers import GridNode, LayerManager, LayerType, MeshLayer, MeshModel
from habicat.triangle_count import TriangleCountProducer


@pytest.fixture
def model():
    triangles = [
        [[0, 0, 0], [1, 0, 0], [0, 0, 1]],
        [[1, 0, 0], [1, 0, 1], [0, 0, 1]],
        [[2, 0, 0], [3, 0, 0], [2, 0, 1]],
    ]
    return MeshModel(triangles=triangles)


def test_work_on_node_counts_triangles(model):
    node = GridNode(triangles_in_cell=[0, 1, 2])
    TriangleCountProducer().work_on_node(model, node)
    assert node.user_data == 3.0


def test_work_on_node_count_matches_cell_size(model):
    node = GridNode(triangles_in_cell=[2])
    TriangleCountProducer().work_on_node(model, node)
    assert node.user_data == len(node.triangles_in_cell)


def test_work_on_empty_node_leaves_value(model):
    node = GridNode(user_data=7.5)
    TriangleCountProducer().work_on_node(model, node)
    assert node.user_data == 7.5


def test_finish_adds_layer_and_activates(model):
    manager = LayerManager(model)
    layer = MeshLayer(data=[1.0, 2.0, 3.0])
    result = TriangleCountProducer().finish(manager, layer)
    assert result is layer
    assert model.layers[-1] is layer
    assert layer.caption == "Triangle density"
    assert manager.active_layer_index() == len(model.layers) - 1
    assert manager.active_layer() is layer


def test_finish_tags_layer_type(model):
    manager = LayerManager(model)
    layer = TriangleCountProducer().finish(manager, MeshLayer(data=[0.0, 0.0, 0.0]))
    assert layer.type == LayerType.VECTOR_DISPERSION


def test_finish_twice_gives_distinct_captions(model):
    manager = LayerManager(model)
    producer = TriangleCountProducer()
    first = producer.finish(manager, MeshLayer(data=[1.0, 1.0, 1.0]))
    second = producer.finish(manager, MeshLayer(data=[2.0, 2.0, 2.0]))
    assert first.caption == "Triangle density"
    assert second.caption == "Triangle density_2"
    assert manager.active_layer() is second


def test_finish_without_model_returns_none():
    manager = LayerManager()
    layer = MeshLayer(data=[1.0])
    assert TriangleCountProducer().finish(manager, layer) is None
    assert layer.caption == ""


def test_callback_runs_on_finish(model):
    manager = LayerManager(model)
    calls = []
    manager.add_active_layer_changed_callback(lambda: calls.append(manager.active_layer_index()))
    TriangleCountProducer().finish(manager, MeshLayer(data=list(np.zeros(3))))
    assert calls == [0]