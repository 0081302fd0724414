"""Source importers. Each returns cooked output plus its registry payload."""

from .audio import AUDIO_EXTENSIONS, cook_audio
from .material import (
    MATERIAL_EXTENSIONS,
    PathMapResolver,
    RegistryResolver,
    cook_material,
    cook_material_file,
)
from .mesh import MESH_EXTENSIONS, cook_mesh
from .model import MODEL_EXTENSIONS, cook_model
from .shader import SHADER_EXTENSIONS, cook_shader
from .texture import TEXTURE_EXTENSIONS, cook_texture

__all__ = [
    "AUDIO_EXTENSIONS",
    "MATERIAL_EXTENSIONS",
    "MESH_EXTENSIONS",
    "MODEL_EXTENSIONS",
    "SHADER_EXTENSIONS",
    "TEXTURE_EXTENSIONS",
    "PathMapResolver",
    "RegistryResolver",
    "cook_audio",
    "cook_material",
    "cook_material_file",
    "cook_mesh",
    "cook_model",
    "cook_shader",
    "cook_texture",
]
