from .constants import BLOB_MAGIC, BLOB_VERSION, BLOB_HEADER_SIZE, BLOB_FLAG_SRGB
from .inspector import inspect_blob, parse_blob_header, validate_blob
from .packers import assemble_blob, pack_blob_header

__all__ = [
    "BLOB_MAGIC",
    "BLOB_VERSION",
    "BLOB_HEADER_SIZE",
    "BLOB_FLAG_SRGB",
    "inspect_blob",
    "parse_blob_header",
    "validate_blob",
    "assemble_blob",
    "pack_blob_header",
]
