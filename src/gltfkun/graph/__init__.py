from .store import EdgeRef, Graph, GraphMark
from .property import ExtensionEdge, OtherEdge, Property
from .weights import BytesWeight, NamedWeight, OtherWeight
from .buffer import (
    Accessor,
    AccessorEdge,
    AccessorWeight,
    Buffer,
    BufferView,
    BufferViewEdge,
    BufferViewWeight,
    BufferWeight,
)
from .texture import (
    Image,
    ImageEdge,
    ImageWeight,
    Material,
    MaterialEdge,
    MaterialWeight,
    Sampler,
    SamplerWeight,
    Texture,
    TextureEdge,
    TextureWeight,
    extension_for_mime,
    mime_type_for,
)
from .mesh import (
    AttributeEdge,
    Mesh,
    MeshEdge,
    MeshWeight,
    MorphTarget,
    MorphTargetEdge,
    MorphTargetWeight,
    Primitive,
    PrimitiveEdge,
    PrimitiveWeight,
)
from .scene import (
    JointEdge,
    Node,
    NodeEdge,
    NodeWeight,
    Scene,
    SceneEdge,
    SceneWeight,
    Skin,
    SkinEdge,
    SkinWeight,
)
from .animation import (
    Animation,
    AnimationChannel,
    AnimationChannelEdge,
    AnimationChannelWeight,
    AnimationEdge,
    AnimationSampler,
    AnimationSamplerEdge,
    AnimationSamplerWeight,
    AnimationWeight,
)
from .document import Document, DocumentEdge, DocumentWeight

__all__ = [
    "EdgeRef",
    "Graph",
    "GraphMark",
    "ExtensionEdge",
    "OtherEdge",
    "Property",
    "BytesWeight",
    "NamedWeight",
    "OtherWeight",
    "Accessor",
    "AccessorEdge",
    "AccessorWeight",
    "Buffer",
    "BufferView",
    "BufferViewEdge",
    "BufferViewWeight",
    "BufferWeight",
    "Image",
    "ImageEdge",
    "ImageWeight",
    "Material",
    "MaterialEdge",
    "MaterialWeight",
    "Sampler",
    "SamplerWeight",
    "Texture",
    "TextureEdge",
    "TextureWeight",
    "extension_for_mime",
    "mime_type_for",
    "AttributeEdge",
    "Mesh",
    "MeshEdge",
    "MeshWeight",
    "MorphTarget",
    "MorphTargetEdge",
    "MorphTargetWeight",
    "Primitive",
    "PrimitiveEdge",
    "PrimitiveWeight",
    "JointEdge",
    "Node",
    "NodeEdge",
    "NodeWeight",
    "Scene",
    "SceneEdge",
    "SceneWeight",
    "Skin",
    "SkinEdge",
    "SkinWeight",
    "Animation",
    "AnimationChannel",
    "AnimationChannelEdge",
    "AnimationChannelWeight",
    "AnimationEdge",
    "AnimationSampler",
    "AnimationSamplerEdge",
    "AnimationSamplerWeight",
    "AnimationWeight",
    "Document",
    "DocumentEdge",
    "DocumentWeight",
]
