import struct

import pytest

from assetcook.blob.constants import (
    AUDIO_CODEC_OGG_VORBIS,
    AUDIO_CODEC_PCM,
    AUDIO_SAMPLE_FORMAT_PCM16,
    AUDIO_SAMPLE_FORMAT_PCM32F,
)
from assetcook.blob.inspector import inspect_blob, validate_blob
from assetcook.errors import SourceFormatError, StructuralError
from assetcook.importers.audio import (
    DecodedAudio,
    build_audio_blob,
    cook_audio,
    cook_audio_bytes,
    parse_ogg_vorbis,
    parse_wav,
)


def _wav(frames, channels=2, rate=48000, fmt_tag=1, bits=16, extra_chunks=b""):
    frame_bytes = channels * bits // 8
    fmt = struct.pack("<HHIIHH", fmt_tag, channels, rate, rate * frame_bytes, frame_bytes, bits)
    samples = bytes(frames * frame_bytes)
    body = b"WAVE" + extra_chunks
    body += b"fmt " + struct.pack("<I", len(fmt)) + fmt
    body += b"data" + struct.pack("<I", len(samples)) + samples
    return b"RIFF" + struct.pack("<I", len(body)) + body


def _wav_extensible(frames, sub_format, bits):
    channels, rate = 1, 44100
    frame_bytes = channels * bits // 8
    fmt = struct.pack("<HHIIHH", 0xFFFE, channels, rate, rate * frame_bytes, frame_bytes, bits)
    fmt += struct.pack("<HHI", 22, bits, 0x4) + struct.pack("<I", sub_format) + bytes(12)
    samples = bytes(frames * frame_bytes)
    body = b"WAVE" + b"fmt " + struct.pack("<I", len(fmt)) + fmt
    body += b"data" + struct.pack("<I", len(samples)) + samples
    return b"RIFF" + struct.pack("<I", len(body)) + body


def _ogg_page(body_packets, granule, serial=7, seq=0, header_type=0):
    lacing = b""
    body = b""
    for packet in body_packets:
        n = len(packet)
        lacing += b"\xff" * (n // 255) + bytes([n % 255])
        body += packet
    header = b"OggS" + bytes([0, header_type])
    header += struct.pack("<QIII", granule, serial, seq, 0)
    return header + bytes([len(lacing)]) + lacing + body


def _vorbis_id(channels=2, rate=44100):
    return b"\x01vorbis" + struct.pack("<IBIiiiBB", 0, channels, rate, 0, 128000, 0, 0xB8, 1)


def _ogg(frames, channels=2, rate=44100, payload=b"\x05" * 100):
    return (
        _ogg_page([_vorbis_id(channels, rate)], 0, header_type=2)
        + _ogg_page([payload], frames // 2, seq=1)
        + _ogg_page([payload], frames, seq=2, header_type=4)
    )


def test_pcm16_stereo_layout():
    audio = parse_wav(_wav(10000))
    assert (audio.codec, audio.sample_format) == (AUDIO_CODEC_PCM, AUDIO_SAMPLE_FORMAT_PCM16)
    assert (audio.channels, audio.sample_rate, audio.frame_count) == (2, 48000, 10000)
    blob, desc = build_audio_blob(audio)
    info = inspect_blob(blob)
    d = info["desc"]
    assert d["chunk_count"] == 3
    assert d["frames_per_chunk"] == 4096
    assert d["chunk_table_offset"] == 0
    assert d["data_offset"] == 24
    assert [c["size"] for c in d["chunks"]] == [4096 * 4, 4096 * 4, 1808 * 4]
    assert [c["offset"] for c in d["chunks"]] == [24, 24 + 16384, 24 + 32768]
    assert validate_blob(info) == []
    assert desc.duration == pytest.approx(10000 / 48000)


def test_short_clip_is_one_chunk():
    blob, _ = build_audio_blob(parse_wav(_wav(100, channels=1)))
    d = inspect_blob(blob)["desc"]
    assert d["chunk_count"] == 1
    assert d["frames_per_chunk"] == 100


def test_float_wav_and_unknown_chunks_skipped():
    odd = b"LIST" + struct.pack("<I", 3) + b"abc" + b"\x00"
    audio = parse_wav(_wav(8, channels=1, fmt_tag=3, bits=32, extra_chunks=odd))
    assert audio.sample_format == AUDIO_SAMPLE_FORMAT_PCM32F
    assert audio.frame_count == 8


def test_extensible_pcm_accepted():
    audio = parse_wav(_wav_extensible(16, 1, 16))
    assert audio.sample_format == AUDIO_SAMPLE_FORMAT_PCM16
    assert audio.frame_count == 16


def test_extensible_unknown_subformat_rejected():
    with pytest.raises(SourceFormatError) as exc:
        parse_wav(_wav_extensible(16, 0x55, 16))
    assert exc.value.code == "E_UNSUPPORTED"


@pytest.mark.parametrize(
    "data,code",
    [
        (b"RIFX" + bytes(8), "E_FORMAT"),
        (_wav(4, bits=24), "E_UNSUPPORTED"),
        (_wav(4, fmt_tag=3, bits=16), "E_UNSUPPORTED"),
        (_wav(4, fmt_tag=2), "E_UNSUPPORTED"),
    ],
)
def test_wav_rejections(data, code):
    with pytest.raises(SourceFormatError) as exc:
        parse_wav(data)
    assert exc.value.code == code


def test_empty_wav_data():
    with pytest.raises(StructuralError) as exc:
        parse_wav(_wav(0))
    assert exc.value.code == "E_EMPTY"


def test_partial_frame_rejected():
    data = bytearray(_wav(4))
    # shrink the data chunk by one byte; file no longer holds whole frames
    data_pos = data.index(b"data")
    struct.pack_into("<I", data, data_pos + 4, 15)
    with pytest.raises(SourceFormatError) as exc:
        parse_wav(bytes(data[:-1]))
    assert exc.value.code == "E_FORMAT"


def test_ogg_vorbis_header_and_granule():
    data = _ogg(22050, channels=1, rate=22050)
    audio = parse_ogg_vorbis(data)
    assert (audio.codec, audio.channels, audio.sample_rate) == (AUDIO_CODEC_OGG_VORBIS, 1, 22050)
    assert audio.frame_count == 22050
    assert audio.data == data
    blob, desc = build_audio_blob(audio)
    d = inspect_blob(blob)["desc"]
    assert d["chunk_count"] == 1
    assert d["data_size"] == len(data)
    assert desc.duration == pytest.approx(1.0)


def test_large_ogg_split_in_64k_chunks():
    audio = DecodedAudio(
        codec=AUDIO_CODEC_OGG_VORBIS,
        sample_format=AUDIO_SAMPLE_FORMAT_PCM16,
        channels=2,
        sample_rate=44100,
        frame_count=1000,
        data=b"\x01" * (64 * 1024 * 2 + 10),
    )
    blob, _ = build_audio_blob(audio)
    d = inspect_blob(blob)["desc"]
    assert [c["size"] for c in d["chunks"]] == [65536, 65536, 10]
    assert d["frames_per_chunk"] == 334


def test_multiplexed_ogg_rejected():
    data = _ogg_page([_vorbis_id()], 0, serial=1) + _ogg_page([b"x"], 100, serial=2)
    with pytest.raises(SourceFormatError) as exc:
        parse_ogg_vorbis(data)
    assert exc.value.code == "E_UNSUPPORTED"


def test_ogg_without_vorbis_header_rejected():
    data = _ogg_page([b"\x01opus-not-vorbis" + bytes(20)], 10)
    with pytest.raises(SourceFormatError) as exc:
        parse_ogg_vorbis(data)
    assert exc.value.code == "E_FORMAT"


def test_ogg_zero_granule_rejected():
    data = _ogg_page([_vorbis_id()], 0)
    with pytest.raises(StructuralError) as exc:
        parse_ogg_vorbis(data)
    assert exc.value.code == "E_RANGE"


def test_cook_audio_by_extension(tmp_path):
    src = tmp_path / "click.wav"
    src.write_bytes(_wav(32, channels=1))
    blob, desc = cook_audio(src)
    assert blob[:4] == b"AAS1"
    assert desc.channels == 1
    with pytest.raises(SourceFormatError) as exc:
        cook_audio_bytes(b"", ".mp3")
    assert exc.value.code == "E_UNSUPPORTED"
