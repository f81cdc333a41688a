"""sfx-synth: parameter-driven sound-effect synthesis and MIDI encoding."""

from sfx_synth.automation import Automation
from sfx_synth.effects import (
    FeedbackDelayLine,
    Pipeline,
    Stage,
    build_pipeline,
    distortion_curve,
    impulse_response,
)
from sfx_synth.errors import EncodingError, RenderError, SynthError
from sfx_synth.models import (
    FILTER_TYPES,
    WAVEFORMS,
    FilterType,
    ParameterSet,
    RenderConfig,
    Waveform,
)
from sfx_synth.presets import SoundPreset, create_user_preset, get_preset, list_presets
from sfx_synth.render import RenderedBuffer, render
from sfx_synth.sequence import (
    encode_sequence,
    encode_sequence_to_file,
    encode_variable_length,
    frequency_to_note,
)
from sfx_synth.validate import ParamIssue, validate_params
from sfx_synth.visualize import chain_to_dot, chain_to_dot_file

__all__ = [
    "FILTER_TYPES",
    "WAVEFORMS",
    "Automation",
    "EncodingError",
    "FeedbackDelayLine",
    "FilterType",
    "ParamIssue",
    "ParameterSet",
    "Pipeline",
    "RenderConfig",
    "RenderError",
    "RenderedBuffer",
    "SoundPreset",
    "Stage",
    "SynthError",
    "Waveform",
    "build_pipeline",
    "chain_to_dot",
    "chain_to_dot_file",
    "create_user_preset",
    "distortion_curve",
    "encode_sequence",
    "encode_sequence_to_file",
    "encode_variable_length",
    "frequency_to_note",
    "get_preset",
    "impulse_response",
    "list_presets",
    "render",
    "validate_params",
]
