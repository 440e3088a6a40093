from .base import (
    ExportContext,
    ExtensionDescriptor,
    ExtensionPayload,
    ExtensionProperty,
    ExtensionRegistry,
    ImportContext,
    run_export_hooks,
    run_import_hooks,
)
from . import omi_physics_body, omi_physics_shape
from .omi_physics_body import OmiPhysicsBody, PhysicsBodyWeight
from .omi_physics_shape import OmiPhysicsShape, PhysicsShape, PhysicsShapeWeight

__all__ = [
    "ExportContext",
    "ExtensionDescriptor",
    "ExtensionPayload",
    "ExtensionProperty",
    "ExtensionRegistry",
    "ImportContext",
    "run_export_hooks",
    "run_import_hooks",
    "OmiPhysicsBody",
    "PhysicsBodyWeight",
    "OmiPhysicsShape",
    "PhysicsShape",
    "PhysicsShapeWeight",
    "default_registry",
]


def default_registry() -> ExtensionRegistry:
    """Registry of the bundled extensions; shapes import before bodies."""
    return ExtensionRegistry(
        [omi_physics_shape.descriptor, omi_physics_body.descriptor]
    )
