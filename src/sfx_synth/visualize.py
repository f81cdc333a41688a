"""Graphviz DOT description of the signal chain a parameter set renders through."""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Callable

from sfx_synth.effects import DELAY_WET, REVERB_WET_SCALE
from sfx_synth.models import ParameterSet

_Writer = Callable[[str], None]

_SOURCE_COLOR = "#e2d5f1"
_STAGE_COLOR = "#fde0c8"
_MOD_COLOR = "#cce5ff"
_BUS_COLOR = "#fff3cd"
_OUT_COLOR = "#f8d7da"


def _node(w: _Writer, nid: str, label: str, color: str, shape: str = "box") -> None:
    w(f'    "{nid}" [shape={shape} style=filled fillcolor="{color}" label="{label}"];')


def chain_to_dot(params: ParameterSet, name: str = "sfx") -> str:
    """Convert the active stages of ``params`` to a DOT string.

    The delay feedback loop is drawn as a dashed back edge.
    """
    lines: list[str] = []
    w = lines.append

    w(f'digraph "{name}" {{')
    w("    rankdir=LR;")
    w('    node [fontname="Helvetica" fontsize=10];')
    w("")

    if params.waveform == "noise":
        src_label = "noise"
    else:
        src_label = f"{params.waveform}\\n{params.frequency_start:g} -> {params.frequency_end:g} Hz"
    _node(w, "source", src_label, _SOURCE_COLOR)
    _node(
        w,
        "filter",
        f"{params.filter_type}\\n{params.filter_freq:g} Hz Q={params.q_factor:g}",
        _STAGE_COLOR,
    )
    if params.lfo_active:
        label = f"lfo\\n{params.filter_mod_lfo_rate:g} Hz +/-{params.filter_mod_lfo_depth:g}"
        _node(w, "lfo", label, _MOD_COLOR, "ellipse")
    if params.env_mod_active:
        label = f"cutoff env\\n+{params.filter_mod_env_depth:g} Hz"
        _node(w, "cutoff_env", label, _MOD_COLOR, "ellipse")
    if params.distortion > 0.0:
        _node(w, "distortion", f"waveshaper\\nk={params.distortion * 100:g} 4x", _STAGE_COLOR)
    if params.delay_time > 0.0:
        _node(w, "delay", f"delay\\n{params.delay_time:g}s", _STAGE_COLOR, "box3d")
        _node(w, "delay_wet", f"wet\\n{DELAY_WET:g}", _BUS_COLOR)
    if params.reverb > 0.0:
        _node(w, "reverb", "convolver\\n2.5s ir", _STAGE_COLOR, "box3d")
        _node(w, "reverb_wet", f"wet\\n{params.reverb * REVERB_WET_SCALE:g}", _BUS_COLOR)
    _node(w, "master", f"adsr\\nvol={params.volume:g}", _BUS_COLOR)
    w(f'    "out" [shape=box style="rounded,filled" fillcolor="{_OUT_COLOR}" label="out"];')
    w("")

    w('    "source" -> "filter";')
    if params.lfo_active:
        w('    "lfo" -> "filter" [label="cutoff"];')
    if params.env_mod_active:
        w('    "cutoff_env" -> "filter" [label="cutoff"];')
    send_from = "filter"
    if params.distortion > 0.0:
        w('    "filter" -> "distortion";')
        send_from = "distortion"
    w(f'    "{send_from}" -> "master" [label="dry"];')
    if params.delay_time > 0.0:
        w(f'    "{send_from}" -> "delay";')
        w(f'    "delay" -> "delay" [style=dashed label="fb {params.effective_feedback:g}"];')
        w('    "delay" -> "delay_wet";')
        w('    "delay_wet" -> "master";')
    if params.reverb > 0.0:
        w(f'    "{send_from}" -> "reverb";')
        w('    "reverb" -> "reverb_wet";')
        w('    "reverb_wet" -> "master";')
    w('    "master" -> "out";')

    w("}")
    return "\n".join(lines) + "\n"


def chain_to_dot_file(params: ParameterSet, output_dir: str | Path, name: str = "sfx") -> Path:
    """Write ``output_dir/{name}.dot``.

    If the ``dot`` binary is on PATH, also renders ``output_dir/{name}.pdf``.
    """
    dot_src = chain_to_dot(params, name)
    out = Path(output_dir)
    out.mkdir(parents=True, exist_ok=True)
    dot_path = out / f"{name}.dot"
    dot_path.write_text(dot_src)

    dot_bin = shutil.which("dot")
    if dot_bin is not None:
        pdf_path = out / f"{name}.pdf"
        subprocess.run(
            [dot_bin, "-Tpdf", str(dot_path), "-o", str(pdf_path)],
            check=True,
        )

    return dot_path
