"""
Audio I/O Module

Decodes uncompressed WAV hit sounds into per-channel float arrays.
All operations are deterministic and never modify the source file.

Container parsing is done by scipy.io.wavfile; this module normalizes the
samples by dtype and translates scipy's failures into reasons that can be
shown to a mapper.

Supported layouts: mono or stereo; 8/16/24/32-bit integer PCM or 32-bit
IEEE float, including WAVE_FORMAT_EXTENSIBLE wrappers of those. Integer
depths that are not a whole container (12-bit, 20-bit) are left-justified
in their container and decode as that container.
"""

import logging
import re
import struct
import warnings
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Tuple, Union

import numpy as np
from scipy.io import wavfile

from hitsound_audit import timebase
from hitsound_audit.errors import (
    AssetNotFoundError,
    AudioReadError,
    AuditError,
    ErrorKind,
    MalformedAudioError,
    TruncatedAudioError,
    UnsupportedEncodingError,
)

logger = logging.getLogger(__name__)

RIFF_HEADER_SIZE = 12

# scalar type returned by wavfile.read -> encoding name
ENCODINGS = {
    np.uint8: 'pcm_u8',
    np.int16: 'pcm_s16',
    np.int32: 'pcm_s32',
    np.float32: 'float32',
}


@dataclass(frozen=True, eq=False)
class AudioClip:
    """
    A decoded hit sound.

    Channel arrays are float32 in [-1, 1] and flagged read-only. The header
    sample rate is kept for reference only; timing uses the fixed scan
    resolution. ``bits_per_sample`` is the sample container size (24-bit
    PCM is held in 32 bits).
    """
    identifier: str
    channels: Tuple[np.ndarray, ...]
    sample_rate: int
    bits_per_sample: int
    encoding: str

    @property
    def left(self) -> np.ndarray:
        return self.channels[0]

    @property
    def right(self) -> Optional[np.ndarray]:
        return self.channels[1] if len(self.channels) > 1 else None

    @property
    def is_stereo(self) -> bool:
        return len(self.channels) == 2

    @property
    def n_samples(self) -> int:
        return len(self.channels[0])

    def duration_ms(self, samples_per_ms: int = timebase.DEFAULT_SAMPLES_PER_MS) -> float:
        return timebase.sample_index_to_ms(self.n_samples, samples_per_ms)


@dataclass(frozen=True)
class Decoded:
    """Successful decode."""
    clip: AudioClip


@dataclass(frozen=True)
class Failed:
    """Failed decode with a human-readable reason."""
    reason: str
    kind: ErrorKind


DecodeResult = Union[Decoded, Failed]


# =============================================================================
# ERROR TRANSLATION
# =============================================================================

def _unsupported_detail(message: str) -> str:
    match = re.search(r'has (.+?) data', message) or re.search(r'format: ([^.]+)\.', message)
    return f" ({match.group(1)})" if match else ""


def translate_wavfile_error(error: ValueError) -> AuditError:
    """
    Map a ValueError raised by scipy.io.wavfile to a taxonomy error.

    scipy reports every container problem as ValueError; the message is the
    only thing telling them apart.
    """
    message = str(error)

    if 'Unsupported bit depth' in message or 'Unknown wave file format' in message:
        return UnsupportedEncodingError(f"uses an unsupported encoding{_unsupported_detail(message)}")
    if 'not understood' in message or 'Not a WAV file' in message:
        return MalformedAudioError("is not a RIFF/WAVE file")
    if 'No fmt chunk' in message:
        return MalformedAudioError("has sample data before its format chunk")
    if 'Unexpected end of file' in message:
        return MalformedAudioError("has no data chunk")
    if 'Incomplete chunk ID' in message:
        return TruncatedAudioError("is truncated mid-header")
    if 'multiple of element size' in message:
        return TruncatedAudioError("is truncated mid-sample")
    if 'nAvgBytesPerSec' in message or 'not compliant' in message:
        return MalformedAudioError("declares an inconsistent block layout")
    return MalformedAudioError(f"could not be decoded ({message})")


def _check_premature_eof(caught) -> None:
    """Raise TruncatedAudioError if scipy warned that the file ended early."""
    for warning in caught:
        if not issubclass(warning.category, wavfile.WavFileWarning):
            continue
        message = str(warning.message)
        if 'EOF prematurely' in message:
            match = re.search(r'finished at (\d+) bytes, expected (\d+) bytes', message)
            if match:
                raise TruncatedAudioError(
                    f"is truncated ({match.group(1)} of {match.group(2)} bytes present)"
                )
            raise TruncatedAudioError("is truncated")
        logger.debug("wavfile: %s", message)


# =============================================================================
# SAMPLE CONVERSION
# =============================================================================

def normalize_samples(audio: np.ndarray) -> np.ndarray:
    """
    Convert samples read by wavfile.read to float32 in [-1, 1].

    Normalization follows the dtype: uint8 is centered on 128, int16 and
    int32 are divided by their full scale (24-bit data arrives
    left-justified in int32), float32 is clipped.

    Raises:
        UnsupportedEncodingError: For dtypes outside the supported set
    """
    sample_type = audio.dtype.type
    if sample_type is np.uint8:
        return (audio.astype(np.float32) - 128.0) / 128.0
    elif sample_type is np.int16:
        return audio.astype(np.float32) / 32768.0
    elif sample_type is np.int32:
        return (audio.astype(np.float64) / 2147483648.0).astype(np.float32)
    elif sample_type is np.float32:
        return np.clip(audio, -1.0, 1.0).astype(np.float32)
    else:
        kind = 'float' if audio.dtype.kind == 'f' else 'integer'
        raise UnsupportedEncodingError(
            f"uses an unsupported encoding ({audio.dtype.itemsize * 8}-bit {kind})"
        )


def split_channels(audio: np.ndarray) -> Tuple[np.ndarray, ...]:
    """
    Split a (frames,) or (frames, channels) array into read-only channels.

    Raises:
        UnsupportedEncodingError: If there are not one or two channels
    """
    if audio.ndim == 1:
        audio = audio.reshape(-1, 1)

    n_channels = audio.shape[1]
    if n_channels not in (1, 2):
        raise UnsupportedEncodingError(
            f"has {n_channels} channels; only mono and stereo are supported"
        )

    channels = []
    for ch in range(n_channels):
        channel = np.ascontiguousarray(audio[:, ch])
        channel.setflags(write=False)
        channels.append(channel)
    return tuple(channels)


# =============================================================================
# DECODING
# =============================================================================

def decode_wav_file(fid: BinaryIO, identifier: str = '') -> AudioClip:
    """
    Decode an open WAV file.

    Parameters:
        fid: Binary file object positioned at the start of the file
        identifier: Name used to identify the clip in reports

    Returns:
        AudioClip with one array per channel

    Raises:
        TruncatedAudioError: If the file is empty or ends early
        MalformedAudioError: If the container structure is invalid
        UnsupportedEncodingError: If the encoding or channel count is unsupported
    """
    header = fid.read(RIFF_HEADER_SIZE)
    if not header:
        raise TruncatedAudioError("is empty (0 bytes)")
    if len(header) < RIFF_HEADER_SIZE:
        raise TruncatedAudioError("is truncated mid-header")
    fid.seek(0)

    try:
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter('always')
            sample_rate, audio = wavfile.read(fid)
    except ValueError as e:
        raise translate_wavfile_error(e) from e
    except (EOFError, struct.error) as e:
        raise TruncatedAudioError("is truncated mid-header") from e
    except ZeroDivisionError as e:
        # wavfile divides the block size by the channel count
        raise UnsupportedEncodingError(
            "has 0 channels; only mono and stereo are supported"
        ) from e

    _check_premature_eof(caught)

    channels = split_channels(normalize_samples(audio))

    return AudioClip(
        identifier=identifier,
        channels=channels,
        sample_rate=int(sample_rate),
        bits_per_sample=audio.dtype.itemsize * 8,
        encoding=ENCODINGS[audio.dtype.type]
    )


def read_wav(file_path: Union[str, Path], identifier: Optional[str] = None) -> AudioClip:
    """
    Read and decode a WAV file.

    Parameters:
        file_path: Path to the WAV file
        identifier: Name for reports (None = file name)

    Returns:
        AudioClip

    Raises:
        AssetNotFoundError: If the file doesn't exist
        AudioReadError: If the file exists but can't be read
        AuditError subclasses from decode_wav_file
    """
    file_path = Path(file_path)
    if identifier is None:
        identifier = file_path.name

    try:
        fid = open(file_path, 'rb')
    except FileNotFoundError:
        raise AssetNotFoundError("could not be found")
    except OSError as e:
        raise AudioReadError(f"could not be read ({e.strerror or e})") from e

    with fid:
        return decode_wav_file(fid, identifier)


def decode_clip(file_path: Union[str, Path], identifier: Optional[str] = None) -> DecodeResult:
    """
    Decode a WAV file into a tagged result instead of raising.

    Parameters:
        file_path: Path to the WAV file
        identifier: Name for reports (None = file name)

    Returns:
        Decoded(clip) on success, Failed(reason, kind) otherwise
    """
    try:
        clip = read_wav(file_path, identifier)
    except AuditError as e:
        logger.debug("Unable to decode %s: %s", file_path, e.reason)
        return Failed(reason=e.reason, kind=e.kind)

    logger.debug(
        "Decoded %s: %d channel(s), %d samples, %s",
        clip.identifier, len(clip.channels), clip.n_samples, clip.encoding
    )
    return Decoded(clip)


def load_hit_sound(pool, file_name: str) -> DecodeResult:
    """
    Resolve a hit sound through the mapset pool and decode it.

    Parameters:
        pool: Object with a ``resolve(file_name) -> Path`` method raising
            AssetNotFoundError (see hitsound_audit.mapset.MapsetPool)
        file_name: Hit sound name as referenced by the event lists

    Returns:
        Decoded(clip) or Failed(reason, kind)
    """
    try:
        path = pool.resolve(file_name)
    except AssetNotFoundError as e:
        logger.debug("Unable to resolve %s: %s", file_name, e.reason)
        return Failed(reason=e.reason, kind=e.kind)

    return decode_clip(path, identifier=file_name)
