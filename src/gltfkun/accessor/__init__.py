from .types import ComponentType, ElementType, element_size
from .iter import AccessorIter, pack_elements, to_iter
from .casts import IndicesIter, JointsIter, WeightsIter

__all__ = [
    "ComponentType",
    "ElementType",
    "element_size",
    "AccessorIter",
    "pack_elements",
    "to_iter",
    "IndicesIter",
    "JointsIter",
    "WeightsIter",
]
