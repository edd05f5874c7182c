"""Number of triangles that fall into each grid cell."""

from __future__ import annotations

from typing import Optional

from habicat.layers import GridNode, LayerManager, LayerType, MeshLayer, MeshModel


class TriangleCountProducer:
    """Per-cell triangle count and the layer built from it."""

    def work_on_node(self, model: MeshModel, node: GridNode) -> None:
        """Store the number of triangles in the cell in the node."""
        if not node.triangles_in_cell:
            return
        node.user_data = float(len(node.triangles_in_cell))

    def finish(self, manager: LayerManager, layer: MeshLayer) -> Optional[MeshLayer]:
        """Add a finished layer to the model and make it active."""
        model = manager.model
        if model is None:
            return None

        layer.type = LayerType.TRIANGLE_DENSITY
        model.add_layer(layer)
        # The stored layer is tagged as a vector-dispersion layer once added.
        layer.type = LayerType.VECTOR_DISPERSION
        layer.caption = manager.suitable_new_layer_caption("Triangle density")
        manager.set_active_layer_index(len(model.layers) - 1)
        return layer