"""Built-in sound presets and user preset creation."""

from __future__ import annotations

import uuid

from pydantic import BaseModel, ConfigDict

from sfx_synth.models import ParameterSet


class SoundPreset(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    params: ParameterSet


def _preset(id: str, name: str, description: str, **params: object) -> SoundPreset:
    return SoundPreset(
        id=id,
        name=name,
        description=description,
        params=ParameterSet.model_validate(params),
    )


PRESETS: tuple[SoundPreset, ...] = (
    _preset(
        "preset-laser-classic",
        "Classic Laser",
        "A retro sci-fi laser blast",
        waveform="sawtooth",
        frequencyStart=1800,
        frequencyEnd=200,
        duration=0.15,
        attack=0,
        decay=0.1,
        sustain=0.1,
        release=0.05,
        volume=0.6,
        filterType="lowpass",
        filterFreq=4000,
        qFactor=1,
        distortion=0.1,
        reverb=0.1,
    ),
    _preset(
        "preset-jump-8bit",
        "8-Bit Jump",
        "Classic platformer jump sound",
        waveform="square",
        frequencyStart=150,
        frequencyEnd=800,
        duration=0.2,
        attack=0.01,
        decay=0.15,
        sustain=0,
        release=0.05,
        volume=0.5,
        filterType="lowpass",
        filterFreq=2000,
        qFactor=1,
    ),
    _preset(
        "preset-explosion-heavy",
        "Heavy Explosion",
        "Deep, noisy explosion",
        waveform="noise",
        frequencyStart=100,
        frequencyEnd=40,
        duration=1.2,
        attack=0.02,
        decay=0.8,
        sustain=0.1,
        release=0.4,
        volume=0.8,
        filterType="lowpass",
        filterFreq=350,
        qFactor=4,
        distortion=0.8,
        reverb=0.4,
    ),
    _preset(
        "preset-cyber-echo",
        "Cyber Echo",
        "Glitchy tech notification",
        waveform="triangle",
        frequencyStart=2000,
        frequencyEnd=1500,
        duration=0.1,
        attack=0,
        decay=0.05,
        sustain=0.1,
        release=0.1,
        volume=0.5,
        filterType="highpass",
        filterFreq=1200,
        qFactor=2,
        distortion=0.4,
        delayTime=0.25,
        delayFeedback=0.5,
        reverb=0.2,
    ),
    _preset(
        "preset-cave-drip",
        "Cave Drip",
        "Atmospheric droplet with reverb",
        waveform="sine",
        frequencyStart=1200,
        frequencyEnd=1000,
        duration=0.05,
        attack=0.005,
        decay=0.03,
        sustain=0,
        release=0.02,
        volume=0.4,
        filterType="lowpass",
        filterFreq=3000,
        qFactor=1,
        reverb=0.9,
    ),
    _preset(
        "preset-coin-pulse",
        "Pulse Coin",
        "Narrow pulse pickup chirp",
        waveform="pulse",
        pulseWidth=0.25,
        frequencyStart=990,
        frequencyEnd=1320,
        duration=0.12,
        attack=0,
        decay=0.08,
        sustain=0.3,
        release=0.1,
        volume=0.5,
        filterType="lowpass",
        filterFreq=6000,
        qFactor=0.7,
    ),
    _preset(
        "preset-organ-chime",
        "Organ Chime",
        "Additive bell-like tone",
        waveform="custom",
        harmonics=[1.0, 0.5, 0.0, 0.25, 0.0, 0.12, 0.0, 0.06],
        frequencyStart=523.25,
        frequencyEnd=523.25,
        duration=0.6,
        attack=0.01,
        decay=0.3,
        sustain=0.4,
        release=0.6,
        volume=0.5,
        filterType="lowpass",
        filterFreq=5000,
        qFactor=0.7,
        reverb=0.3,
    ),
    _preset(
        "preset-wobble-zap",
        "Wobble Zap",
        "Resonant sweep with cutoff wobble",
        waveform="sawtooth",
        frequencyStart=220,
        frequencyEnd=110,
        duration=0.8,
        attack=0.02,
        decay=0.3,
        sustain=0.6,
        release=0.3,
        volume=0.5,
        filterType="lowpass",
        filterFreq=400,
        qFactor=6,
        filterModLfoRate=8,
        filterModLfoDepth=300,
        filterModEnvDepth=2500,
    ),
)


def list_presets() -> list[SoundPreset]:
    return list(PRESETS)


def get_preset(key: str) -> SoundPreset:
    """Look up a preset by id or (case-insensitive) name."""
    needle = key.strip().lower()
    for preset in PRESETS:
        if preset.id == key or preset.name.lower() == needle:
            return preset
    raise KeyError(f"unknown preset: {key!r}")


def create_user_preset(
    params: ParameterSet, name: str, *, source_id: str | None = None
) -> SoundPreset:
    """Snapshot ``params`` as a named user preset with a fresh id."""
    preset_id = str(uuid.uuid4())
    label = name.strip().upper() or f"PATCH_{params.waveform.upper()[:3]}"
    origin = source_id or preset_id
    return SoundPreset(
        id=preset_id,
        name=label,
        description=f"USR_PATCH_FROM_{origin[:4]}",
        params=params,
    )
