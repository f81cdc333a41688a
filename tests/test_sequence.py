"""Tests for the Standard MIDI File encoder."""

from __future__ import annotations

import math
import struct
from pathlib import Path

import pytest

from sfx_synth import (
    EncodingError,
    ParameterSet,
    encode_sequence,
    encode_sequence_to_file,
    encode_variable_length,
    frequency_to_note,
)
from sfx_synth.sequence import (
    END_OF_TRACK,
    bend_offsets,
    cutoff_value,
    pitch_bend_value,
    start_note,
    total_ticks,
    track_events,
)


def _decode_vlq(data: bytes, pos: int) -> tuple[int, int]:
    value = 0
    while True:
        byte = data[pos]
        pos += 1
        value = (value << 7) | (byte & 0x7F)
        if not byte & 0x80:
            return value, pos


def _parse_track(body: bytes) -> list[tuple[int, bytes]]:
    """Split a track body into (delta, event bytes) pairs."""
    events = []
    pos = 0
    while pos < len(body):
        delta, pos = _decode_vlq(body, pos)
        size = 3
        events.append((delta, body[pos : pos + size]))
        pos += size
    return events


# ---------------------------------------------------------------------------
# Note mapping
# ---------------------------------------------------------------------------


class TestNoteMapping:
    def test_a4(self) -> None:
        assert frequency_to_note(440.0) == pytest.approx(69.0)
        assert start_note(440.0) == 69

    def test_octaves(self) -> None:
        assert frequency_to_note(880.0) == pytest.approx(81.0)
        assert frequency_to_note(220.0) == pytest.approx(57.0)

    def test_nearest_note(self) -> None:
        # 450 Hz is about 0.39 semitones above A4
        assert start_note(450.0) == 69
        assert start_note(460.0) == 70

    def test_clamped_to_seven_bits(self) -> None:
        assert start_note(0.001) == 0
        assert start_note(22000.0) == 127

    @pytest.mark.parametrize("freq", [0.0, -10.0, float("nan"), float("inf")])
    def test_invalid_frequency(self, freq: float) -> None:
        with pytest.raises(EncodingError):
            frequency_to_note(freq)


# ---------------------------------------------------------------------------
# Primitive encoders
# ---------------------------------------------------------------------------


class TestVariableLength:
    @pytest.mark.parametrize(
        "value, expected",
        [
            (0, b"\x00"),
            (0x40, b"\x40"),
            (0x7F, b"\x7f"),
            (0x80, b"\x81\x00"),
            (0x2000, b"\xc0\x00"),
            (0x3FFF, b"\xff\x7f"),
            (0x4000, b"\x81\x80\x00"),
            (0x0FFFFFFF, b"\xff\xff\xff\x7f"),
        ],
    )
    def test_known_values(self, value: int, expected: bytes) -> None:
        assert encode_variable_length(value) == expected

    def test_negative_rejected(self) -> None:
        with pytest.raises(ValueError):
            encode_variable_length(-1)


class TestControllerValues:
    def test_cutoff_scaling(self) -> None:
        assert cutoff_value(2000.0) == 25
        assert cutoff_value(5000.0) == 63
        assert cutoff_value(10000.0) == 127
        assert cutoff_value(20000.0) == 127
        assert cutoff_value(20.0) == 0

    def test_bend_center(self) -> None:
        assert pitch_bend_value(0.0) == 8191

    def test_bend_saturates(self) -> None:
        assert pitch_bend_value(2.0) == 16383
        assert pitch_bend_value(24.0) == 16383
        assert pitch_bend_value(-2.0) == 0
        assert pitch_bend_value(-24.0) == 0

    def test_bend_one_semitone(self) -> None:
        assert pitch_bend_value(1.0) == 12287
        assert pitch_bend_value(-1.0) == 4095

    def test_ticks(self) -> None:
        assert total_ticks(0.5) == 480
        assert total_ticks(1.0) == 960
        assert total_ticks(0.01) == 9


# ---------------------------------------------------------------------------
# File layout
# ---------------------------------------------------------------------------


class TestFileLayout:
    def test_header(self) -> None:
        data = encode_sequence(ParameterSet())
        assert data[:4] == b"MThd"
        assert struct.unpack(">IHHH", data[4:14]) == (6, 0, 1, 480)
        assert data[14:18] == b"MTrk"

    def test_track_length_field(self) -> None:
        data = encode_sequence(ParameterSet(duration=1.3))
        (length,) = struct.unpack(">I", data[18:22])
        assert length == len(data) - 22

    def test_half_second_note_size(self) -> None:
        # 4 + 4 + 10 * (1 + 3) + 4 + 4 body bytes
        assert len(encode_sequence(ParameterSet(duration=0.5))) == 78

    def test_ends_with_end_of_track(self) -> None:
        data = encode_sequence(ParameterSet())
        assert data.endswith(b"\x00" + END_OF_TRACK)

    def test_event_order(self) -> None:
        p = ParameterSet(frequency_start=440.0, frequency_end=440.0, filter_freq=5000.0)
        events = _parse_track(track_events(p))
        assert events[0] == (0, bytes([0x90, 69, 100]))
        assert events[1] == (0, bytes([0xB0, 74, 63]))
        bends = events[2:12]
        assert len(bends) == 10
        assert all(ev[0] == 0xE0 for _delta, ev in bends)
        assert all(delta == 48 for delta, _ev in bends)
        assert events[12] == (0, bytes([0x80, 69, 0]))
        assert events[13] == (0, END_OF_TRACK)

    def test_deterministic(self) -> None:
        p = ParameterSet(frequency_start=300.0, frequency_end=900.0, duration=0.7)
        assert encode_sequence(p) == encode_sequence(p)

    def test_mapping_input(self) -> None:
        raw = {"frequencyStart": 440, "frequencyEnd": 440, "duration": 0.5}
        assert encode_sequence(raw) == encode_sequence(
            ParameterSet(frequency_start=440.0, frequency_end=440.0, duration=0.5)
        )

    def test_write_file(self, tmp_path: Path) -> None:
        out = encode_sequence_to_file(ParameterSet(), tmp_path / "sub" / "tone.mid")
        assert out.exists()
        assert out.read_bytes()[:4] == b"MThd"


# ---------------------------------------------------------------------------
# Pitch bend approximation
# ---------------------------------------------------------------------------


def _bend_values(p: ParameterSet) -> list[int]:
    events = _parse_track(track_events(p))[2:12]
    return [ev[1] | (ev[2] << 7) for _delta, ev in events]


class TestPitchBend:
    def test_constant_pitch_stays_centered(self) -> None:
        p = ParameterSet(frequency_start=440.0, frequency_end=440.0)
        assert _bend_values(p) == [8191] * 10

    def test_one_semitone_up(self) -> None:
        p = ParameterSet(frequency_start=440.0, frequency_end=440.0 * 2 ** (1 / 12))
        values = _bend_values(p)
        assert values == sorted(values)
        assert values[-1] == 12287

    def test_wide_sweep_saturates(self) -> None:
        p = ParameterSet(frequency_start=1000.0, frequency_end=100.0)
        values = _bend_values(p)
        assert values == sorted(values, reverse=True)
        assert values[-1] == 0
        assert all(0 <= v <= 16383 for v in values)

    def test_data_bytes_are_seven_bit(self) -> None:
        p = ParameterSet(frequency_start=50.0, frequency_end=20000.0)
        for _delta, ev in _parse_track(track_events(p))[2:12]:
            assert ev[1] < 0x80 and ev[2] < 0x80

    def test_short_harmonics_do_not_affect_encoding(self) -> None:
        a = ParameterSet(waveform="custom", harmonics=[1.0, 0.5])
        b = ParameterSet(waveform="custom", harmonics=[1.0, 0.5, 0, 0, 0, 0, 0, 0])
        assert encode_sequence(a) == encode_sequence(b)

    def test_tiny_duration_zero_deltas(self) -> None:
        events = _parse_track(track_events(ParameterSet(duration=0.01)))
        assert [delta for delta, _ev in events[2:12]] == [0] * 10

    def test_off_grid_constant_pitch_is_flat(self) -> None:
        # 450 Hz sits about 0.39 semitones above the rounded start note 69
        p = ParameterSet(frequency_start=450.0, frequency_end=450.0)
        assert _bend_values(p) == [9784] * 10

    def test_offsets_measured_from_rounded_note(self) -> None:
        p = ParameterSet(frequency_start=450.0, frequency_end=450.0)
        expected = 12.0 * math.log2(450.0 / 440.0)
        assert bend_offsets(p) == pytest.approx([expected] * 10)

    def test_sweep_is_linear_in_frequency(self) -> None:
        p = ParameterSet(frequency_start=440.0, frequency_end=880.0)
        offsets = bend_offsets(p)
        assert offsets[4] == pytest.approx(12.0 * math.log2(660.0 / 440.0))
        assert offsets[-1] == pytest.approx(12.0)

    def test_unusable_end_frequency_holds_pitch(self, caplog: pytest.LogCaptureFixture) -> None:
        p = ParameterSet().model_copy(update={"frequency_end": float("nan")})
        with caplog.at_level("WARNING", logger="sfx_synth.sequence"):
            assert _bend_values(p) == [8191] * 10
        assert "without pitch sweep" in caplog.text
