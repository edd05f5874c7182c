# habicat

Per-triangle surface complexity layers for 3D triangle meshes.

A layer holds one value for every triangle of a mesh. habicat computes these:

- **Triangle area**, **height** along the mesh's average normal, and **triangle edge** length (max, min or mean). These are computed directly for each triangle.
- **Compare**: the difference of two existing layers. It can optionally normalise both layers first.
- **Rugosity**: the surface area of a grid cell's triangles divided by the area they project to.
- **Fractal dimension**: a box-counting dimension inside a grid cell.
- **Vector dispersion**: the spread of the vertex normals inside a grid cell.
- **Triangle count**: the number of triangles in a grid cell.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Meshes, layers and the layer manager

`habicat.layers` holds the shared data types:

- `MeshModel(triangles, ...)` stores triangles as 3×3 arrays. It fills in anything you leave out:
  - per-triangle areas;
  - per-vertex normals, taken from the face normal;
  - an area-weighted average normal;
  - an identity 4×4 `transform`.

  `add_layer(layer)` and `add_data_layer(values)` append layers.
- `MeshLayer` has `data`, `caption`, `type` (a `LayerType`), `debug_info` (a `DebugInfo` of named entries) and a random hex `id`.
- `GridNode` is a measurement-grid cell. It holds the indices of its triangles in `triangles_in_cell`, its box in `aabb_min` and `aabb_max`, and its result in `user_data`.
- `LayerManager(model)` tracks the active model and its active layer.
  - `suitable_new_layer_caption(base)` returns a caption that does not clash with existing captions: `"Rugosity"`, then `"Rugosity_2"`, then `"Rugosity_3"`, and so on.
  - `set_active_layer_index(index)` changes the active layer. It ignores indices out of range and accepts -1 for "none". After each change it calls the callbacks added with `add_active_layer_changed_callback`.
  - `active_layer_index()` and `active_layer()` report the current selection.

```python
from habicat.layers import LayerManager, MeshModel
from habicat.simple_layers import EdgeMode, area_layer, height_layer, triangle_edge_layer
from habicat.compare import CompareLayerProducer

model = MeshModel([
    [[0, 0, 0], [1, 0, 0], [0, 0, 1]],
    [[1, 0, 0], [1, 0.5, 1], [0, 0, 1]],
])
manager = LayerManager(model)

model.add_layer(area_layer(manager))
model.add_layer(triangle_edge_layer(manager, EdgeMode.MAX))
model.add_layer(height_layer(manager))

difference = CompareLayerProducer(should_normalize=True).calculate(manager, 0, 1)
model.add_layer(difference)
manager.set_active_layer_index(len(model.layers) - 1)
```

The producer functions return a new layer but do not add it to the model.

`height_layer` shifts its values by the absolute value of the smallest one.

`CompareLayerProducer.calculate` works in two ways:

- With `should_normalize`, it normalises each layer with `normalize`, which scales positives and negatives separately into [-1, 1]. It subtracts the two, then normalises the difference.
- Otherwise it subtracts the raw values. If you pass a callable as `adjust_outliers(values, 0.01, 0.99)`, it applies that callable to the result.

## Per-cell metrics

The grid-based metrics work one `GridNode` at a time:

- `RugosityProducer` in `habicat.rugosity`
- `FractalDimensionProducer` in `habicat.fractal_dimension`
- `VectorDispersionProducer` in `habicat.vector_dispersion`
- `TriangleCountProducer` in `habicat.triangle_count`

Each producer has two steps:

- `work_on_node(model, node)` stores the cell's value in `node.user_data`.
- `finish(manager, layer, ...)` takes a layer of per-triangle values that you built. It sets the layer's type, records the settings used in its debug info, gives it a unique caption, adds it to the model and makes it active. The rugosity, fractal-dimension and vector-dispersion producers also handle a standard-deviation layer: when `calculate_standard_deviation` is set and you pass `deviation` values, they add that second layer after the first. An optional `on_calculations_end` callback receives the finished layer.

```python
from habicat.layers import GridNode, MeshLayer
from habicat.rugosity import RugosityProducer

node = GridNode(triangles_in_cell=[0, 1], aabb_min=[0, -0.5, 0], aabb_max=[1, 0.5, 1])
rugosity = RugosityProducer()
rugosity.work_on_node(model, node)

rugosity.start()  # finish only accepts a layer after start
layer = rugosity.finish(manager, MeshLayer(data=[node.user_data] * len(model.triangles)))
```

### Rugosity options

`RugosityProducer` offers three algorithms, chosen by name with `set_algorithm_name`:

- `"Average normal"`
- `"Min Rugosity(default)"`: the smallest rugosity over the cell's average normal and a set of orientations.
- `"Least square fitting"`: projects onto a least-squares plane through the cell's vertices.

Orientation sets are named `"1"`, `"9"`, … `"441"`. The default is `"91"`. The built-in sets in `ORIENTATION_SETS` hold that many directions spread over the hemisphere y ≥ 0. You can pass your own sets as `orientation_sets`.

Attributes:

- `unique_projected_area`: divides by the area the projections cover, counting overlaps once. With `unique_projected_area_approximation`, which is on by default, it uses the area of their convex hull instead.
- `delete_outliers`: passes the finished layer's values to an `adjust_outliers(values, 0.0, 0.99)` callable, if you give one. The same happens when the min-rugosity algorithm uses set `"1"`.
- `weighted_normals`, `normalized_normals` and `use_plane_frame_in_min` tune the average-normal and per-triangle projection.

### Other per-cell functions

- `node_fractal_dimension(model, node, on_box=None)` counts boxes at 1/32, 1/16, 1/8 and 1/4 of the cell's size. It returns the slope from `linear_regression`. `FractalDimensionProducer.work_on_node` maps NaN to 0 and caps the value at 3. With `filter_values`, which is on by default, `ignore_value` flags values below 2.
- `vector_dispersion(normals)` returns the square root of the summed per-component variance.

## Geometry helpers

`habicat.geometry` provides `Plane` (with `project_point`) and `triangle_area`.

`habicat.fractal_dimension` provides `AABB` (with `from_points` and `intersects_triangle`), `linear_regression` and `generate_box_sizes`.

`habicat.rugosity_projection` provides:

- `local_coordinate_system`
- `project_to_local`
- `project_onto_plane_2d`
- `projected_unique_area`: the union of the projected triangles, computed with shapely.
- `projected_hull_area`
- `fit_plane_normal`

## What habicat does not do

habicat does not:

- load or save mesh files;
- build the measurement grid or assign triangles to its cells;
- turn per-cell values into per-triangle layers, with or without grid jitter;
- compute standard-deviation data or trim outliers itself;
- render meshes, lines or images, or provide a user interface or command line.

You supply the triangles, the `GridNode`s, the per-triangle layers built from node values, and any outlier-adjustment callable. habicat computes the metrics and manages the layers.