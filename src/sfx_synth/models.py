from __future__ import annotations

import math
from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Waveform = Literal["sine", "square", "sawtooth", "triangle", "noise", "pulse", "custom"]
FilterType = Literal["lowpass", "highpass", "bandpass", "allpass"]

WAVEFORMS: tuple[str, ...] = (
    "sine",
    "square",
    "sawtooth",
    "triangle",
    "noise",
    "pulse",
    "custom",
)
FILTER_TYPES: tuple[str, ...] = ("lowpass", "highpass", "bandpass", "allpass")
SAMPLE_RATES: tuple[int, ...] = (44100, 48000)

N_HARMONICS = 8
FREQ_EPSILON = 0.001  # Hz floor for anything fed to an exponential ramp
MIN_RAMP = 0.001  # s, stand-in for zero-length ramp segments
MAX_FEEDBACK = 0.9
DELAY_TAIL_FACTOR = 5.0
REVERB_TAIL = 2.0

DEFAULT_HARMONICS: tuple[float, ...] = (1.0,) + (0.0,) * (N_HARMONICS - 1)


# ---------------------------------------------------------------------------
# Raw-input normalization (clamp, never reject)
# ---------------------------------------------------------------------------

# field -> (lo, hi, default)
_NUMERIC_FIELDS: dict[str, tuple[float, float, float]] = {
    "frequency_start": (FREQ_EPSILON, 22000.0, 440.0),
    "frequency_end": (FREQ_EPSILON, 22000.0, 440.0),
    "duration": (0.01, 5.0, 0.5),
    "attack": (0.0, 5.0, 0.01),
    "decay": (0.0, 5.0, 0.1),
    "sustain": (0.0, 1.0, 0.5),
    "release": (0.0, 5.0, 0.2),
    "volume": (0.0, 1.0, 0.5),
    "filter_freq": (20.0, 22000.0, 2000.0),
    "q_factor": (0.0001, 1000.0, 1.0),
    "filter_mod_lfo_rate": (0.0, 100.0, 0.0),
    "filter_mod_lfo_depth": (0.0, 22000.0, 0.0),
    "filter_mod_env_depth": (0.0, 22000.0, 0.0),
    "distortion": (0.0, 1.0, 0.0),
    "delay_time": (0.0, 1.0, 0.0),
    "delay_feedback": (0.0, 1.0, 0.0),
    "reverb": (0.0, 1.0, 0.0),
    "pulse_width": (0.01, 0.99, 0.5),
}

# field -> (choices, default)
_ENUM_FIELDS: dict[str, tuple[tuple[str, ...], str]] = {
    "waveform": (WAVEFORMS, "sine"),
    "filter_type": (FILTER_TYPES, "lowpass"),
}

_MISSING = object()

# (kind, field_name, message)
Note = tuple[str, str, str]


def _as_float(value: Any) -> float | None:
    """Coerce a JSON-ish scalar to a finite float, or None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


def _lookup(data: Mapping[str, Any], name: str) -> Any:
    alias = to_camel(name)
    if alias in data:
        return data[alias]
    return data.get(name, _MISSING)


def _normalize_harmonics(raw: Any, notes: list[Note]) -> tuple[float, ...]:
    if raw is _MISSING or raw is None:
        return DEFAULT_HARMONICS
    if isinstance(raw, (str, bytes, Mapping)) or not hasattr(raw, "__iter__"):
        notes.append(("defaulted", "harmonics", "harmonics is not a sequence, using fundamental"))
        return DEFAULT_HARMONICS

    values: list[float] = []
    for i, item in enumerate(raw):
        if i >= N_HARMONICS:
            notes.append(
                ("truncated", "harmonics", f"harmonics longer than {N_HARMONICS}, extra dropped")
            )
            break
        f = _as_float(item)
        if f is None:
            notes.append(("defaulted", "harmonics", f"harmonics[{i}] is not a number, using 0"))
            f = 0.0
        values.append(f)
    if len(values) < N_HARMONICS:
        notes.append(
            ("padded", "harmonics", f"harmonics has {len(values)} entries, padded with 0")
        )
        values.extend([0.0] * (N_HARMONICS - len(values)))
    return tuple(values)


def normalize_params(data: Mapping[str, Any]) -> tuple[dict[str, Any], list[Note]]:
    """Clamp and default a raw parameter mapping.

    Accepts camelCase (JSON) or snake_case keys. Returns the cleaned mapping
    keyed by field name and a list of ``(kind, field_name, message)`` notes
    describing every change made.
    """
    notes: list[Note] = []
    clean: dict[str, Any] = {}

    for name, (choices, default) in _ENUM_FIELDS.items():
        raw = _lookup(data, name)
        if raw is _MISSING:
            clean[name] = default
            continue
        value = raw.strip().lower() if isinstance(raw, str) else raw
        if value in choices:
            clean[name] = value
        else:
            notes.append(("fallback", name, f"unknown {name} {raw!r}, using {default!r}"))
            clean[name] = default

    for name, (lo, hi, default) in _NUMERIC_FIELDS.items():
        raw = _lookup(data, name)
        if raw is _MISSING:
            clean[name] = default
            continue
        f = _as_float(raw)
        if f is None:
            message = f"{name} {raw!r} is not a finite number, using {default}"
            notes.append(("defaulted", name, message))
            clean[name] = default
        elif f < lo or f > hi:
            clamped = min(max(f, lo), hi)
            message = f"{name} {f} out of range [{lo}, {hi}], clamped to {clamped}"
            notes.append(("clamped", name, message))
            clean[name] = clamped
        else:
            clean[name] = f

    clean["harmonics"] = _normalize_harmonics(_lookup(data, "harmonics"), notes)
    return clean, notes


# ---------------------------------------------------------------------------
# Parameter set
# ---------------------------------------------------------------------------


class ParameterSet(BaseModel):
    """Validated, immutable description of one sound."""

    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)

    waveform: Waveform = "sine"
    frequency_start: float = Field(440.0, ge=FREQ_EPSILON)
    frequency_end: float = Field(440.0, ge=FREQ_EPSILON)
    duration: float = Field(0.5, gt=0.0)
    attack: float = Field(0.01, ge=0.0)
    decay: float = Field(0.1, ge=0.0)
    sustain: float = Field(0.5, ge=0.0, le=1.0)
    release: float = Field(0.2, ge=0.0)
    volume: float = Field(0.5, ge=0.0, le=1.0)
    filter_type: FilterType = "lowpass"
    filter_freq: float = Field(2000.0, gt=0.0)
    q_factor: float = Field(1.0, gt=0.0)
    filter_mod_lfo_rate: float = Field(0.0, ge=0.0)
    filter_mod_lfo_depth: float = Field(0.0, ge=0.0)
    filter_mod_env_depth: float = Field(0.0, ge=0.0)
    distortion: float = Field(0.0, ge=0.0, le=1.0)
    delay_time: float = Field(0.0, ge=0.0, le=1.0)
    delay_feedback: float = Field(0.0, ge=0.0, le=1.0)
    reverb: float = Field(0.0, ge=0.0, le=1.0)
    pulse_width: float = Field(0.5, gt=0.0, lt=1.0)
    harmonics: tuple[float, ...] = Field(
        DEFAULT_HARMONICS, min_length=N_HARMONICS, max_length=N_HARMONICS
    )

    @model_validator(mode="before")
    @classmethod
    def _clamp_raw(cls, data: Any) -> Any:
        if isinstance(data, Mapping):
            clean, _notes = normalize_params(data)
            return clean
        return data

    # -- derived values -----------------------------------------------------

    @property
    def lfo_active(self) -> bool:
        return self.filter_mod_lfo_rate > 0.0 and self.filter_mod_lfo_depth > 0.0

    @property
    def env_mod_active(self) -> bool:
        return self.filter_mod_env_depth > 0.0

    @property
    def effective_feedback(self) -> float:
        """Delay feedback gain, hard-capped below unity for stability."""
        return min(MAX_FEEDBACK, self.delay_feedback)

    @property
    def note_length(self) -> float:
        """Seconds from t=0 until the source stops (end of release)."""
        return self.duration + self.release

    @property
    def tail_length(self) -> float:
        tail = 0.0
        if self.delay_time > 0.0:
            tail += self.delay_time * DELAY_TAIL_FACTOR
        if self.reverb > 0.0:
            tail += REVERB_TAIL
        return tail

    @property
    def total_length(self) -> float:
        return self.note_length + self.tail_length

    def to_json_dict(self) -> dict[str, Any]:
        """Dump with camelCase keys, harmonics as a list."""
        data = self.model_dump(by_alias=True)
        data["harmonics"] = list(self.harmonics)
        return data


class RenderConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    sample_rate: Literal[44100, 48000] = 44100
    seed: int | None = None
