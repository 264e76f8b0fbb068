"""
Audio decoders for audiophash.

Each decoder turns a byte buffer into mono float64 samples and a source
sample rate. Decoders are looked up by format name, so support for a new
container is added by registering a decoder rather than by branching in
the pipeline.
"""

import io
import logging
import re
import struct
from pathlib import Path
from typing import Dict, List, Protocol, Union, runtime_checkable

import numpy as np
import soundfile as sf

from audiophash.core.models import AudioFormat, AudioFormatDescriptor, DecodedAudio
from audiophash.utils.errors import FormatError, InputError, UnsupportedFormatError

# RIFF/WAVE layout
RIFF_HEADER_SIZE: int = 12
CHUNK_HEADER_SIZE: int = 8
FMT_BODY_SIZE: int = 16
PCM_FORMAT_CODE: int = 1
SUPPORTED_BIT_DEPTHS = (16, 24, 32)

# Full-scale divisors per bit depth
PCM_SCALE: Dict[int, float] = {
    16: 32768.0,
    24: 8388608.0,
    32: 2147483648.0,
}

logger = logging.getLogger(__name__)


@runtime_checkable
class AudioDecoder(Protocol):
    """Anything that can turn bytes into a DecodedAudio."""

    @property
    def format_tag(self) -> AudioFormat:
        ...

    def decode(self, data: bytes) -> DecodedAudio:
        ...


def _require_bytes(data: bytes) -> None:
    if len(data) == 0:
        raise InputError("Input bytes are empty", size=0)


class Pcm16LeDecoder:
    """
    Headerless signed 16-bit little-endian mono PCM.

    The buffer carries no sample rate, so the decoded rate is reported as
    0 and the pipeline assumes it already matches the target rate.
    """

    format_tag = AudioFormat.RAW_PCM16_LE

    def decode(self, data: bytes) -> DecodedAudio:
        """
        Decode raw PCM16LE bytes.

        Raises:
            InputError: If the buffer is empty
            FormatError: If the buffer length is odd
        """
        _require_bytes(data)
        if len(data) % 2 != 0:
            raise FormatError(
                f"Byte length {len(data)} is not a multiple of 2, invalid PCM16LE",
                field="length",
            )

        samples = np.frombuffer(data, dtype="<i2").astype(np.float64) / PCM_SCALE[16]
        return DecodedAudio(
            samples=samples,
            sample_rate=0,
            descriptor=AudioFormatDescriptor(tag=self.format_tag),
        )


class WaveDecoder:
    """
    RIFF/WAVE decoder for integer PCM at 16, 24 or 32 bits.

    Multi-channel audio is folded to mono by averaging the channels of
    each sample frame.
    """

    format_tag = AudioFormat.WAVE_PCM

    def decode(self, data: bytes) -> DecodedAudio:
        """
        Decode a WAV buffer.

        Args:
            data: Complete file contents

        Returns:
            DecodedAudio: Mono samples at the file's sample rate

        Raises:
            InputError: If the buffer is empty
            FormatError: If the container is malformed, truncated or not
                16/24/32-bit integer PCM
        """
        _require_bytes(data)
        if len(data) < RIFF_HEADER_SIZE:
            raise FormatError("WAV too short to contain RIFF header", field="header")

        riff, _riff_size, wave = struct.unpack_from("<4sI4s", data, 0)
        if riff != b"RIFF":
            raise FormatError("Not a RIFF file", field="riff_magic")
        if wave != b"WAVE":
            raise FormatError("Not a WAVE file", field="wave_magic")

        descriptor = None
        offset = RIFF_HEADER_SIZE
        while True:
            chunk_id, chunk_size = self._read_chunk_header(data, offset, descriptor)
            body = offset + CHUNK_HEADER_SIZE

            if chunk_id == b"fmt ":
                descriptor = self._parse_fmt(data, body, chunk_size)
            elif chunk_id == b"data":
                if descriptor is None:
                    raise FormatError("data chunk precedes fmt chunk", field="fmt")
                samples = self._decode_samples(data, body, chunk_size, descriptor)
                logger.debug(
                    f"Decoded WAV: {len(samples)} frames, {descriptor.channels} ch, "
                    f"{descriptor.bits_per_sample}-bit, {descriptor.sample_rate} Hz"
                )
                return DecodedAudio(
                    samples=samples,
                    sample_rate=descriptor.sample_rate,
                    descriptor=descriptor,
                )
            else:
                logger.debug(f"Skipping chunk {chunk_id!r} ({chunk_size} bytes)")

            # fmt extension bytes and unknown chunks are skipped by declared size
            offset = body + chunk_size

    @staticmethod
    def _read_chunk_header(data: bytes, offset: int, descriptor):
        if offset + CHUNK_HEADER_SIZE > len(data):
            if offset < len(data):
                raise FormatError("Truncated chunk header", field="chunk")
            missing = "data" if descriptor is not None else "fmt"
            raise FormatError(f"Missing {missing} chunk", field=missing)
        return struct.unpack_from("<4sI", data, offset)

    def _parse_fmt(self, data: bytes, body: int, chunk_size: int) -> AudioFormatDescriptor:
        if chunk_size < FMT_BODY_SIZE or body + FMT_BODY_SIZE > len(data):
            raise FormatError("Truncated fmt chunk", field="fmt")

        (
            audio_format,
            channels,
            sample_rate,
            _byte_rate,
            _block_align,
            bits_per_sample,
        ) = struct.unpack_from("<HHIIHH", data, body)

        if audio_format != PCM_FORMAT_CODE:
            raise FormatError(
                f"Only PCM format supported (format code {audio_format})",
                field="audio_format",
            )
        if bits_per_sample not in SUPPORTED_BIT_DEPTHS:
            raise FormatError(
                f"Only 16, 24, or 32-bit WAV supported (got {bits_per_sample})",
                field="bits_per_sample",
            )
        if channels < 1:
            raise FormatError("WAV declares zero channels", field="channels")

        return AudioFormatDescriptor(
            tag=self.format_tag,
            channels=channels,
            bits_per_sample=bits_per_sample,
            sample_rate=sample_rate,
        )

    @staticmethod
    def _decode_samples(
        data: bytes, body: int, data_size: int, descriptor: AudioFormatDescriptor
    ) -> np.ndarray:
        width = descriptor.bits_per_sample // 8
        channels = descriptor.channels
        num_frames = data_size // width // channels
        needed = num_frames * width * channels

        if body + needed > len(data):
            raise FormatError(
                f"Truncated sample data: need {needed} bytes, "
                f"have {max(0, len(data) - body)}",
                field="data",
            )

        raw = memoryview(data)[body:body + needed]
        if width == 2:
            values = np.frombuffer(raw, dtype="<i2").astype(np.float64)
        elif width == 4:
            values = np.frombuffer(raw, dtype="<i4").astype(np.float64)
        else:
            triplets = np.frombuffer(raw, dtype=np.uint8).reshape(-1, 3).astype(np.int32)
            packed = triplets[:, 0] | (triplets[:, 1] << 8) | (triplets[:, 2] << 16)
            # Sign-extend from bit 23
            packed = np.where(packed & 0x800000, packed - 0x1000000, packed)
            values = packed.astype(np.float64)

        values /= PCM_SCALE[descriptor.bits_per_sample]
        if channels == 1:
            return values
        return values.reshape(num_frames, channels).mean(axis=1)


class SoundFileDecoder:
    """
    Decodes any container libsndfile understands (FLAC, OGG, MP3, AIFF...).

    Adapts soundfile's output to the same mono float64 contract as the
    built-in PCM decoders.
    """

    format_tag = AudioFormat.SOUNDFILE

    def decode(self, data: bytes) -> DecodedAudio:
        """
        Decode a buffer through soundfile.

        Raises:
            InputError: If the buffer is empty
            FormatError: If libsndfile cannot read the buffer
        """
        _require_bytes(data)
        try:
            with sf.SoundFile(io.BytesIO(data)) as f:
                frames = f.read(dtype="float64", always_2d=True)
                sample_rate = f.samplerate
                channels = f.channels
                subtype = f.subtype
        except RuntimeError as e:
            raise FormatError(f"soundfile could not decode input: {e}", field="container")

        descriptor = AudioFormatDescriptor(
            tag=self.format_tag,
            channels=channels,
            bits_per_sample=_bits_from_subtype(subtype),
            sample_rate=sample_rate,
        )
        samples = frames[:, 0].copy() if channels == 1 else frames.mean(axis=1)
        return DecodedAudio(samples=samples, sample_rate=sample_rate, descriptor=descriptor)


def _bits_from_subtype(subtype: str) -> int:
    """Bit depth from a libsndfile subtype such as 'PCM_24' (0 if not PCM)."""
    match = re.fullmatch(r"PCM_(?:S|U)?(\d+)", subtype or "")
    return int(match.group(1)) if match else 0


_DECODERS: Dict[str, AudioDecoder] = {}

_EXTENSION_FORMATS: Dict[str, str] = {
    '.wav': 'wav',
    '.wave': 'wav',
    '.raw': 'pcm16le',
    '.pcm': 'pcm16le',
    '.mp3': 'mp3',
    '.flac': 'flac',
    '.ogg': 'ogg',
    '.aif': 'aiff',
    '.aiff': 'aiff',
}


def register_decoder(name: str, decoder: AudioDecoder) -> None:
    """
    Register a decoder under a format name.

    Args:
        name: Format name used by callers (case-insensitive)
        decoder: Object implementing the AudioDecoder protocol
    """
    if not isinstance(decoder, AudioDecoder):
        raise TypeError(f"{decoder!r} does not implement AudioDecoder")
    _DECODERS[name.lower()] = decoder


def get_decoder(name: Union[str, AudioFormat]) -> AudioDecoder:
    """
    Look up the decoder for a format name or tag.

    Raises:
        UnsupportedFormatError: If no decoder is registered
    """
    key = name.value if isinstance(name, AudioFormat) else str(name).lower()
    try:
        return _DECODERS[key]
    except KeyError:
        raise UnsupportedFormatError(
            f"Unsupported audio format: {name}. "
            f"Supported formats: {', '.join(available_formats())}",
            format=str(name),
        )


def available_formats() -> List[str]:
    """Sorted list of registered format names."""
    return sorted(_DECODERS)


def format_for_path(path: Union[str, Path]) -> str:
    """Format name for a file, by extension; unknown extensions map to 'wav'."""
    return _EXTENSION_FORMATS.get(Path(path).suffix.lower(), 'wav')


def _register_builtin_decoders() -> None:
    pcm = Pcm16LeDecoder()
    wave = WaveDecoder()
    soundfile_decoder = SoundFileDecoder()

    for name in ("pcm16", "pcm16le", "raw", AudioFormat.RAW_PCM16_LE.value):
        register_decoder(name, pcm)
    for name in ("wav", "wave", AudioFormat.WAVE_PCM.value):
        register_decoder(name, wave)
    for name in ("flac", "ogg", "mp3", "aiff", "aif", AudioFormat.SOUNDFILE.value):
        register_decoder(name, soundfile_decoder)


_register_builtin_decoders()
