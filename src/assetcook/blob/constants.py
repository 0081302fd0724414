"""AAS1 blob format constants.

All multi-byte fields are little-endian. Offsets stored inside a Desc are
relative to the start of the Data region (header + desc precede it).
"""

BLOB_MAGIC = 0x31534141  # "AAS1"
BLOB_VERSION = 1
BLOB_FLAG_SRGB = 1 << 0

BLOB_HEADER_FORMAT = "<IHBBII"
BLOB_HEADER_SIZE = 16

# Texture
TEXTURE_DESC_FORMAT = "<5I"
TEXTURE_DESC_SIZE = 20
TEXTURE_FORMAT_UNKNOWN = 0
TEXTURE_FORMAT_R8 = 1
TEXTURE_FORMAT_RGB8 = 2
TEXTURE_FORMAT_RGBA8 = 3
TEXTURE_BYTES_PER_PIXEL = {
    TEXTURE_FORMAT_R8: 1,
    TEXTURE_FORMAT_RGB8: 3,
    TEXTURE_FORMAT_RGBA8: 4,
}

# Mesh
MESH_DESC_FORMAT = "<12I3f3fI"
MESH_DESC_SIZE = 76
MESH_ATTRIBUTE_FORMAT = "<7I"
MESH_ATTRIBUTE_SIZE = 28
MESH_SUBMESH_FORMAT = "<IIiI"
MESH_SUBMESH_SIZE = 16
MESH_FLAG_HAS_BOUNDS = 1

MESH_SEMANTIC_POSITION = 0
MESH_SEMANTIC_NORMAL = 1
MESH_SEMANTIC_TANGENT = 2
MESH_SEMANTIC_TEXCOORD = 3
MESH_SEMANTIC_COLOR = 4

MESH_VERTEX_MASK_POSITION = 1 << 0
MESH_VERTEX_MASK_NORMAL = 1 << 1
MESH_VERTEX_MASK_TEXCOORD0 = 1 << 2

VERTEX_FORMAT_UNKNOWN = 0
VERTEX_FORMAT_R32_FLOAT = 1
VERTEX_FORMAT_R32G32_FLOAT = 2
VERTEX_FORMAT_R32G32B32_FLOAT = 3
VERTEX_FORMAT_R32G32B32A32_FLOAT = 4
VERTEX_FORMAT_SIZES = {
    VERTEX_FORMAT_R32_FLOAT: 4,
    VERTEX_FORMAT_R32G32_FLOAT: 8,
    VERTEX_FORMAT_R32G32B32_FLOAT: 12,
    VERTEX_FORMAT_R32G32B32A32_FLOAT: 16,
}

INDEX_TYPE_UINT16 = 0
INDEX_TYPE_UINT32 = 1
INDEX_TYPE_SIZES = {INDEX_TYPE_UINT16: 2, INDEX_TYPE_UINT32: 4}
# largest index value a 16-bit index buffer can hold
MAX_UINT16_INDEX = 0xFFFF

# Audio
AUDIO_DESC_FORMAT = "<10I"
AUDIO_DESC_SIZE = 40
AUDIO_CHUNK_FORMAT = "<II"
AUDIO_CHUNK_SIZE = 8
AUDIO_CODEC_UNKNOWN = 0
AUDIO_CODEC_PCM = 1
AUDIO_CODEC_OGG_VORBIS = 2
AUDIO_SAMPLE_FORMAT_UNKNOWN = 0
AUDIO_SAMPLE_FORMAT_PCM16 = 1
AUDIO_SAMPLE_FORMAT_PCM32F = 2
AUDIO_BYTES_PER_SAMPLE = {
    AUDIO_SAMPLE_FORMAT_PCM16: 2,
    AUDIO_SAMPLE_FORMAT_PCM32F: 4,
}

# Model
MODEL_DESC_FORMAT = "<6I"
MODEL_DESC_SIZE = 24
MODEL_NODE_SIZE = 48
MODEL_MESH_REF_SIZE = 28
MODEL_MATERIAL_SLOT_SIZE = 17

U32_MAX = 0xFFFFFFFF
