"""Audio importer: RIFF/WAVE PCM and Ogg Vorbis into chunked audio blobs.

WAV sample data is stored as-is (Pcm16 or Pcm32f) and split every 4096
frames. Ogg Vorbis files are stored verbatim, split into 64 KiB pieces; only
the identification header and the page granule positions are read.
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from pathlib import Path
from typing import Any, List, Tuple

from ..blob.constants import (
    AUDIO_BYTES_PER_SAMPLE,
    AUDIO_CHUNK_SIZE,
    AUDIO_CODEC_OGG_VORBIS,
    AUDIO_CODEC_PCM,
    AUDIO_SAMPLE_FORMAT_PCM16,
    AUDIO_SAMPLE_FORMAT_PCM32F,
    U32_MAX,
)
from ..blob.packers import assemble_blob, pack_audio_chunk, pack_audio_desc
from ..errors import (
    E_EMPTY,
    E_FORMAT,
    E_RANGE,
    E_UNSUPPORTED,
    SourceFormatError,
    format_error,
    structural_error,
)
from ..registry.models import AssetType, AudioDesc
from ..utils.io import read_bytes

__all__ = [
    "AUDIO_EXTENSIONS",
    "PCM_FRAMES_PER_CHUNK",
    "OGG_CHUNK_BYTES",
    "DecodedAudio",
    "parse_wav",
    "parse_ogg_vorbis",
    "build_audio_blob",
    "cook_audio_bytes",
    "cook_audio",
]

AUDIO_EXTENSIONS = (".wav", ".ogg")
PCM_FRAMES_PER_CHUNK = 4096
OGG_CHUNK_BYTES = 64 * 1024

WAVE_FORMAT_PCM = 0x0001
WAVE_FORMAT_IEEE_FLOAT = 0x0003
WAVE_FORMAT_EXTENSIBLE = 0xFFFE

_NO_GRANULE = 0xFFFFFFFFFFFFFFFF


@dataclass(slots=True)
class DecodedAudio:
    codec: int
    sample_format: int
    channels: int
    sample_rate: int
    frame_count: int
    data: bytes


def _bad(message: str, **ctx: Any) -> SourceFormatError:
    return format_error(E_FORMAT, message, ctx or None)


def parse_wav(data: bytes) -> DecodedAudio:
    if len(data) < 12 or data[0:4] != b"RIFF" or data[8:12] != b"WAVE":
        raise _bad("Not a RIFF/WAVE file")
    offset = 12
    fmt = None
    samples = None
    while offset + 8 <= len(data):
        tag = data[offset : offset + 4]
        (size,) = struct.unpack_from("<I", data, offset + 4)
        start = offset + 8
        if start + size > len(data):
            raise _bad("WAV chunk overflows file", chunk=tag.decode("latin-1"))
        if tag == b"fmt ":
            if size < 16:
                raise _bad("WAV fmt chunk too small")
            audio_format, channels, rate, _byte_rate, block_align, bits = struct.unpack_from(
                "<HHIIHH", data, start
            )
            if audio_format == WAVE_FORMAT_EXTENSIBLE:
                if size < 40:
                    raise _bad("WAVE_FORMAT_EXTENSIBLE fmt chunk too small")
                (cb_size,) = struct.unpack_from("<H", data, start + 16)
                if cb_size < 22:
                    raise _bad("WAVE_FORMAT_EXTENSIBLE cbSize too small")
                (sub_format,) = struct.unpack_from("<I", data, start + 24)
                if sub_format not in (WAVE_FORMAT_PCM, WAVE_FORMAT_IEEE_FLOAT):
                    raise format_error(E_UNSUPPORTED, f"Unsupported WAV subformat {sub_format}")
                audio_format = sub_format
            fmt = (audio_format, channels, rate, block_align, bits)
        elif tag == b"data":
            samples = data[start : start + size]
        # chunks are word aligned
        offset = start + size + (size & 1)

    if fmt is None or samples is None:
        raise _bad("WAV requires fmt and data chunks")
    audio_format, channels, rate, block_align, bits = fmt
    if channels == 0 or rate == 0:
        raise _bad("WAV has zero channels or sample rate")
    if audio_format == WAVE_FORMAT_PCM:
        if bits != 16:
            raise format_error(E_UNSUPPORTED, f"PCM WAV must be 16-bit, got {bits}")
        sample_format = AUDIO_SAMPLE_FORMAT_PCM16
    elif audio_format == WAVE_FORMAT_IEEE_FLOAT:
        if bits != 32:
            raise format_error(E_UNSUPPORTED, f"Float WAV must be 32-bit, got {bits}")
        sample_format = AUDIO_SAMPLE_FORMAT_PCM32F
    else:
        raise format_error(E_UNSUPPORTED, f"Unsupported WAV format tag {audio_format}")
    frame_bytes = channels * AUDIO_BYTES_PER_SAMPLE[sample_format]
    if block_align != frame_bytes:
        raise _bad("WAV blockAlign does not match channels * sample size")
    if not samples:
        raise structural_error(E_EMPTY, "WAV has no sample data")
    if len(samples) % frame_bytes != 0:
        raise _bad("WAV data is not a whole number of frames")
    frames = len(samples) // frame_bytes
    if frames > U32_MAX:
        raise structural_error(E_RANGE, "WAV frame count exceeds u32")
    return DecodedAudio(
        codec=AUDIO_CODEC_PCM,
        sample_format=sample_format,
        channels=channels,
        sample_rate=rate,
        frame_count=frames,
        data=bytes(samples),
    )


def _parse_vorbis_id(packet: bytes) -> Tuple[int, int]:
    if len(packet) < 30 or packet[0] != 0x01 or packet[1:7] != b"vorbis":
        raise _bad("First Ogg packet is not a Vorbis identification header")
    version, channels, rate = struct.unpack_from("<IBI", packet, 7)
    if version != 0:
        raise format_error(E_UNSUPPORTED, f"Unsupported Vorbis version {version}")
    if channels == 0 or rate == 0:
        raise _bad("Vorbis header has zero channels or sample rate")
    return channels, rate


def parse_ogg_vorbis(data: bytes) -> DecodedAudio:
    if len(data) < 27:
        raise _bad("Ogg file too small")
    offset = 0
    serial = None
    id_info = None
    packet = bytearray()
    last_granule = None
    while offset + 27 <= len(data):
        if data[offset : offset + 4] != b"OggS":
            raise _bad("Missing OggS capture pattern", offset=offset)
        if data[offset + 4] != 0:
            raise _bad("Unsupported Ogg stream structure version")
        granule, page_serial = struct.unpack_from("<QI", data, offset + 6)
        if serial is None:
            serial = page_serial
        elif page_serial != serial:
            raise format_error(E_UNSUPPORTED, "Multiplexed Ogg streams are not supported")
        seg_count = data[offset + 26]
        seg_table = offset + 27
        body = seg_table + seg_count
        if body > len(data):
            raise _bad("Ogg segment table overflows file")
        lacing = data[seg_table:body]
        body_size = sum(lacing)
        if body + body_size > len(data):
            raise _bad("Ogg page body overflows file")
        if granule != _NO_GRANULE:
            last_granule = granule
        if id_info is None:
            pos = body
            for seg in lacing:
                packet += data[pos : pos + seg]
                pos += seg
                if seg < 255:
                    id_info = _parse_vorbis_id(bytes(packet))
                    break
        offset = body + body_size

    if id_info is None or last_granule is None:
        raise _bad("Ogg stream has no Vorbis header or granule position")
    if last_granule == 0 or last_granule > U32_MAX:
        raise structural_error(E_RANGE, f"Ogg frame count {last_granule} out of range")
    channels, rate = id_info
    return DecodedAudio(
        codec=AUDIO_CODEC_OGG_VORBIS,
        sample_format=AUDIO_SAMPLE_FORMAT_PCM16,
        channels=channels,
        sample_rate=rate,
        frame_count=last_granule,
        data=bytes(data),
    )


def _chunk_sizes(audio: DecodedAudio) -> Tuple[List[int], int]:
    if audio.codec == AUDIO_CODEC_PCM:
        frame_bytes = audio.channels * AUDIO_BYTES_PER_SAMPLE[audio.sample_format]
        per_chunk = min(audio.frame_count, PCM_FRAMES_PER_CHUNK)
        sizes = []
        remaining = audio.frame_count
        while remaining > 0:
            take = min(remaining, per_chunk)
            sizes.append(take * frame_bytes)
            remaining -= take
        return sizes, per_chunk
    total = len(audio.data)
    sizes = [min(OGG_CHUNK_BYTES, total - pos) for pos in range(0, total, OGG_CHUNK_BYTES)]
    per_chunk = -(-audio.frame_count // len(sizes))
    return sizes, per_chunk


def build_audio_blob(audio: DecodedAudio) -> Tuple[bytes, AudioDesc]:
    """Header, AudioBlobDesc, chunk table at Data+0, then the sample bytes."""
    if audio.channels == 0 or audio.sample_rate == 0 or audio.frame_count == 0:
        raise structural_error(E_EMPTY, "Audio has no frames")
    if not audio.data:
        raise structural_error(E_EMPTY, "Audio has no data")
    sizes, frames_per_chunk = _chunk_sizes(audio)
    table_bytes = len(sizes) * AUDIO_CHUNK_SIZE
    table = []
    running = 0
    for size in sizes:
        table.append(pack_audio_chunk(table_bytes + running, size))
        running += size
    desc = pack_audio_desc(
        codec=audio.codec,
        sample_format=audio.sample_format,
        channels=audio.channels,
        sample_rate=audio.sample_rate,
        frame_count=audio.frame_count,
        chunk_count=len(sizes),
        frames_per_chunk=frames_per_chunk,
        chunk_table_offset=0,
        data_offset=table_bytes,
        data_size=len(audio.data),
    )
    blob = assemble_blob(AssetType.AUDIO, desc, b"".join(table) + audio.data)
    return blob, AudioDesc(
        codec=audio.codec,
        channels=audio.channels,
        sample_rate=audio.sample_rate,
        duration=audio.frame_count / audio.sample_rate,
    )


def cook_audio_bytes(data: bytes, ext: str) -> Tuple[bytes, AudioDesc]:
    ext = ext.lower()
    if ext == ".wav":
        audio = parse_wav(data)
    elif ext == ".ogg":
        audio = parse_ogg_vorbis(data)
    else:
        raise format_error(E_UNSUPPORTED, f"Unsupported audio source '{ext}'")
    return build_audio_blob(audio)


def cook_audio(path: Path) -> Tuple[bytes, AudioDesc]:
    path = Path(path)
    return cook_audio_bytes(read_bytes(path), path.suffix)
