"""Standard MIDI File encoding of a parameter set.

One note at the start frequency, CC 74 for the filter cutoff and a run of
pitch-bend events approximating the frequency sweep.
"""

from __future__ import annotations

import logging
import math
import struct
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from sfx_synth.errors import EncodingError
from sfx_synth.models import ParameterSet

logger = logging.getLogger(__name__)

TICKS_PER_BEAT = 480
TEMPO_BPM = 120.0
BEND_STEPS = 10
BEND_RANGE = 2.0  # semitones either side
BEND_MAX = 16383
VELOCITY = 100
CUTOFF_CC = 74
CUTOFF_REFERENCE = 10000.0  # Hz mapped to controller value 127

NOTE_ON = 0x90
NOTE_OFF = 0x80
CONTROL_CHANGE = 0xB0
PITCH_BEND = 0xE0
END_OF_TRACK = b"\xff\x2f\x00"


def frequency_to_note(freq: float) -> float:
    """Fractional note number, 12-TET with A4 = 440 Hz = 69."""
    if not isinstance(freq, (int, float)) or not math.isfinite(freq) or freq <= 0.0:
        raise EncodingError(f"cannot map frequency {freq!r} to a note")
    return 69.0 + 12.0 * math.log2(freq / 440.0)


def start_note(freq: float) -> int:
    """Nearest note number, clamped to the 7-bit range."""
    return min(127, max(0, round(frequency_to_note(freq))))


def encode_variable_length(value: int) -> bytes:
    """7 bits per byte, most significant first, high bit set on all but the last."""
    if value < 0:
        raise ValueError(f"variable-length quantity must be >= 0, got {value}")
    out = [value & 0x7F]
    value >>= 7
    while value:
        out.append((value & 0x7F) | 0x80)
        value >>= 7
    return bytes(reversed(out))


def cutoff_value(filter_freq: float) -> int:
    return int(math.floor(min(127.0, max(0.0, filter_freq / CUTOFF_REFERENCE * 127.0))))


def pitch_bend_value(semitones: float) -> int:
    """14-bit bend for an offset in semitones, saturating at +/- BEND_RANGE."""
    normalized = min(1.0, max(-1.0, semitones / BEND_RANGE))
    return min(BEND_MAX, max(0, int(math.floor((normalized + 1.0) * 8191.5))))


def total_ticks(duration: float) -> int:
    return int(math.floor(duration * (TEMPO_BPM / 60.0) * TICKS_PER_BEAT))


def _sweep_end(params: ParameterSet) -> float:
    """End frequency of the bend sweep; an unusable one holds the start pitch."""
    try:
        frequency_to_note(params.frequency_end)
    except EncodingError as e:
        logger.warning("%s; encoding without pitch sweep", e)
        return params.frequency_start
    return params.frequency_end


def bend_offsets(params: ParameterSet) -> list[float]:
    """Semitone offset from the start note at each of the BEND_STEPS bends.

    The frequency moves linearly from start to end; each offset is measured
    against the rounded start note, so an off-grid constant pitch bends by
    the same fraction throughout.
    """
    note = start_note(params.frequency_start)
    start = params.frequency_start
    end = _sweep_end(params)
    return [
        frequency_to_note(start + (end - start) * (i / BEND_STEPS)) - note
        for i in range(1, BEND_STEPS + 1)
    ]


def track_events(params: ParameterSet) -> bytes:
    """Track chunk body: delta-time prefixed events ending with end-of-track."""
    note = start_note(params.frequency_start)
    step = total_ticks(params.duration) // BEND_STEPS

    events = bytearray()
    events += encode_variable_length(0) + bytes([NOTE_ON, note, VELOCITY])
    events += encode_variable_length(0) + bytes(
        [CONTROL_CHANGE, CUTOFF_CC, cutoff_value(params.filter_freq)]
    )
    for offset in bend_offsets(params):
        bend = pitch_bend_value(offset)
        events += encode_variable_length(step)
        events += bytes([PITCH_BEND, bend & 0x7F, (bend >> 7) & 0x7F])
    events += encode_variable_length(0) + bytes([NOTE_OFF, note, 0])
    events += encode_variable_length(0) + END_OF_TRACK
    return bytes(events)


def encode_sequence(params: ParameterSet | Mapping[str, Any]) -> bytes:
    """Encode ``params`` as a format-0, single-track Standard MIDI File."""
    if not isinstance(params, ParameterSet):
        params = ParameterSet.model_validate(params)
    header = b"MThd" + struct.pack(">IHHH", 6, 0, 1, TICKS_PER_BEAT)
    body = track_events(params)
    return header + b"MTrk" + struct.pack(">I", len(body)) + body


def encode_sequence_to_file(
    params: ParameterSet | Mapping[str, Any], path: str | Path
) -> Path:
    out = Path(path)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(encode_sequence(params))
    return out
