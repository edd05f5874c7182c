import math
from collections import Counter

import pytest

from habicat.fractal_dimension import (
    AABB,
    FractalDimensionProducer,
    generate_box_sizes,
    linear_regression,
    node_fractal_dimension,
)
from habicat.layers import GridNode, LayerManager, LayerType, MeshLayer, MeshModel


def flat_model():
    # Two triangles covering the unit square at y = 0.4.
    return MeshModel(
        triangles=[
            [[0, 0.4, 0], [1, 0.4, 0], [1, 0.4, 1]],
            [[0, 0.4, 0], [1, 0.4, 1], [0, 0.4, 1]],
        ]
    )


def unit_node(triangles):
    return GridNode(triangles_in_cell=list(triangles), aabb_min=[0, 0, 0], aabb_max=[1, 1, 1])


def test_linear_regression_exact_line():
    slope, intercept = linear_regression([0.0, 1.0, 2.0, 3.0], [1.0, 3.0, 5.0, 7.0])
    assert slope == pytest.approx(2.0)
    assert intercept == pytest.approx(1.0)


def test_linear_regression_equal_x_gives_nan():
    slope, intercept = linear_regression([1.0, 1.0], [1.0, 1.0])
    assert [math.isnan(slope), math.isnan(intercept)] == [True, True]


def test_linear_regression_length_mismatch():
    with pytest.raises(ValueError):
        linear_regression([1.0, 2.0], [1.0])


def test_generate_box_sizes():
    assert generate_box_sizes(1.0, 8.0, 2.0) == [8.0, 4.0, 2.0, 1.0]


def test_generate_box_sizes_bad_factor():
    with pytest.raises(ValueError):
        generate_box_sizes(1.0, 8.0, 1.0)


def test_aabb_from_points():
    box = AABB.from_points([[1, 5, -2], [3, 0, 4]])
    assert box.min.tolist() == [1, 0, -2]
    assert box.max.tolist() == [3, 5, 4]


def test_aabb_intersects_triangle_inside_and_outside():
    box = AABB([0, 0, 0], [1, 1, 1])
    assert box.intersects_triangle([[0.2, 0.2, 0.2], [0.8, 0.2, 0.2], [0.5, 0.8, 0.5]])
    assert not box.intersects_triangle([[5, 5, 5], [6, 5, 5], [5, 6, 5]])


def test_aabb_intersects_triangle_crossing_without_vertices_inside():
    box = AABB([0, 0, 0], [1, 1, 1])
    assert box.intersects_triangle([[-5, 0.5, -5], [5, 0.5, -5], [0, 0.5, 10]])
    assert not box.intersects_triangle([[-5, 2.0, -5], [5, 2.0, -5], [0, 2.0, 10]])


def test_empty_node_has_zero_dimension():
    assert node_fractal_dimension(flat_model(), unit_node([])) == 0.0


def test_flat_surface_has_dimension_two():
    assert node_fractal_dimension(flat_model(), unit_node([0, 1])) == pytest.approx(2.0)


def test_box_callback_counts_every_cell_of_a_plane():
    calls = Counter()
    node_fractal_dimension(flat_model(), unit_node([0, 1]), lambda index, box: calls.update([index]))
    assert calls == Counter({0: 32 * 32, 1: 16 * 16, 2: 8 * 8, 3: 4 * 4})


def test_work_on_node_stores_dimension():
    node = unit_node([0, 1])
    FractalDimensionProducer().work_on_node(flat_model(), node)
    assert node.user_data == pytest.approx(2.0)


def test_work_on_empty_node_stores_zero():
    node = unit_node([])
    node.user_data = 7.0
    FractalDimensionProducer().work_on_node(flat_model(), node)
    assert node.user_data == 0.0


def test_ignore_value_with_and_without_filter():
    producer = FractalDimensionProducer()
    assert producer.ignore_value(1.5) is True
    assert producer.ignore_value(2.5) is False
    producer.filter_values = False
    assert producer.ignore_value(1.5) is False


def test_finish_adds_active_layer():
    model = flat_model()
    manager = LayerManager(model)
    ended = []
    producer = FractalDimensionProducer(on_calculations_end=ended.append)
    layer = producer.finish(manager, MeshLayer(data=[2.0, 2.1]))
    assert model.layers == [layer]
    assert layer.type is LayerType.FRACTAL_DIMENSION
    assert layer.caption == "Fractal dimension"
    assert manager.active_layer_index() == 0
    assert layer.debug_info.entries["FD outliers: "] == "Yes"
    assert ended == [layer]


def test_finish_adds_deviation_layer():
    model = flat_model()
    manager = LayerManager(model)
    producer = FractalDimensionProducer(calculate_standard_deviation=True)
    layer = producer.finish(manager, MeshLayer(data=[2.0, 2.1]), deviation=[0.1, 0.2])
    assert len(model.layers) == 2
    deviation_layer = model.layers[1]
    assert deviation_layer.data == [0.1, 0.2]
    assert deviation_layer.caption == "Standard deviation"
    assert deviation_layer.debug_info.type == "FractalDimensionDeviationLayerDebugInfo"
    assert deviation_layer.debug_info.entries["Source layer ID"] == layer.id
    assert manager.active_layer_index() == 0


def test_finish_without_model():
    assert FractalDimensionProducer().finish(LayerManager(), MeshLayer()) is None