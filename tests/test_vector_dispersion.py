import pytest

from habicat.layers import GridNode, LayerManager, LayerType, MeshLayer, MeshModel
from habicat.vector_dispersion import VectorDispersionProducer, vector_dispersion


def flat_model():
    return MeshModel(
        triangles=[
            [[0, 0, 0], [0, 0, 1], [1, 0, 0]],
            [[1, 0, 0], [0, 0, 1], [1, 0, 1]],
        ]
    )


def test_identical_normals_have_no_dispersion():
    assert vector_dispersion([[0, 1, 0]] * 6) == pytest.approx(0.0)


def test_opposite_normals():
    assert vector_dispersion([[0, 1, 0], [0, -1, 0]]) == pytest.approx(1.0)


def test_empty_normals():
    assert vector_dispersion([]) == 0.0


def test_dispersion_is_rotation_invariant():
    a = vector_dispersion([[0, 1, 0], [1, 0, 0], [0, 0, 1]])
    b = vector_dispersion([[1, 0, 0], [0, 0, 1], [0, 1, 0]])
    assert a == pytest.approx(b)
    assert a > 0.0


def test_work_on_node_flat_surface():
    node = GridNode(triangles_in_cell=[0, 1])
    node.user_data = 5.0
    VectorDispersionProducer().work_on_node(flat_model(), node)
    assert node.user_data == pytest.approx(0.0)


def test_work_on_node_uses_model_normals():
    model = MeshModel(
        triangles=[[[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 0, 0], [1, 0, 0], [0, 1, 0]]],
        triangles_normals=[[[0, 1, 0]] * 3, [[0, -1, 0]] * 3],
    )
    node = GridNode(triangles_in_cell=[0, 1])
    VectorDispersionProducer().work_on_node(model, node)
    assert node.user_data == pytest.approx(1.0)


def test_work_on_empty_node_keeps_value():
    node = GridNode()
    node.user_data = 5.0
    VectorDispersionProducer().work_on_node(flat_model(), node)
    assert node.user_data == 5.0


def test_finish_adds_active_layer():
    model = flat_model()
    manager = LayerManager(model)
    ended = []
    layer = VectorDispersionProducer(on_calculations_end=ended.append).finish(
        manager, MeshLayer(data=[0.0, 0.0])
    )
    assert model.layers == [layer]
    assert layer.type is LayerType.VECTOR_DISPERSION
    assert layer.caption == "Vector dispersion"
    assert manager.active_layer() is layer
    assert ended == [layer]


def test_finish_second_layer_gets_numbered_caption():
    model = flat_model()
    manager = LayerManager(model)
    producer = VectorDispersionProducer()
    producer.finish(manager, MeshLayer(data=[0.0, 0.0]))
    second = producer.finish(manager, MeshLayer(data=[0.0, 0.0]))
    assert second.caption == "Vector dispersion_2"
    assert manager.active_layer_index() == 1


def test_finish_adds_deviation_layer():
    model = flat_model()
    manager = LayerManager(model)
    producer = VectorDispersionProducer(calculate_standard_deviation=True)
    layer = producer.finish(manager, MeshLayer(data=[0.0, 0.0]), deviation=[0.5, 0.25])
    deviation_layer = model.layers[1]
    assert deviation_layer.data == [0.5, 0.25]
    assert deviation_layer.caption == "Standard deviation"
    assert deviation_layer.debug_info.type == "VectorDispersionDeviationLayerDebugInfo"
    assert deviation_layer.debug_info.entries["Source layer caption"] == layer.caption


def test_finish_without_model():
    assert VectorDispersionProducer().finish(LayerManager(), MeshLayer()) is None