"""Command-line interface for sfx-synth."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from sfx_synth.errors import SynthError
from sfx_synth.models import SAMPLE_RATES, ParameterSet, RenderConfig
from sfx_synth.presets import get_preset, list_presets
from sfx_synth.render import render
from sfx_synth.sequence import encode_sequence_to_file
from sfx_synth.validate import validate_params
from sfx_synth.visualize import chain_to_dot, chain_to_dot_file


def _load_json(path: str) -> object:
    return json.loads(Path(path).read_text())


def _load_params(args: argparse.Namespace) -> ParameterSet:
    """Parameters from a JSON file or a built-in preset."""
    if getattr(args, "preset", None):
        return get_preset(args.preset).params
    if not args.file:
        raise ValueError("a parameter JSON file or --preset is required")
    return ParameterSet.model_validate(_load_json(args.file))


# ---------------------------------------------------------------------------
# Subcommands
# ---------------------------------------------------------------------------


def _cmd_render(args: argparse.Namespace) -> int:
    params = _load_params(args)
    config = RenderConfig(sample_rate=args.sample_rate, seed=args.seed)
    buf = render(params, config)
    out = buf.write_wav(args.output)
    print(f"wrote {out} ({len(buf)} samples, {buf.sample_rate} Hz, peak {buf.peak:.3f})")
    return 0


def _cmd_midi(args: argparse.Namespace) -> int:
    params = _load_params(args)
    path = encode_sequence_to_file(params, args.output)
    print(f"wrote {path} ({path.stat().st_size} bytes)")
    return 0


def _cmd_validate(args: argparse.Namespace) -> int:
    issues = validate_params(_load_json(args.file))

    has_errors = any(i.severity == "error" for i in issues)
    for issue in issues:
        print(f"{issue.severity}: {issue}", file=sys.stderr)

    if has_errors:
        return 1
    if issues:
        print("valid (with warnings)")
    else:
        print("valid")
    return 0


def _cmd_dot(args: argparse.Namespace) -> int:
    params = _load_params(args)
    name = args.preset or Path(args.file).stem
    if args.output:
        chain_to_dot_file(params, args.output, name)
    else:
        sys.stdout.write(chain_to_dot(params, name))
    return 0


def _cmd_presets(args: argparse.Namespace) -> int:
    for preset in list_presets():
        if args.json:
            record = {"id": preset.id, "name": preset.name, "params": preset.params.to_json_dict()}
            print(json.dumps(record))
        else:
            print(f"{preset.id:<24} {preset.name:<16} {preset.description}")
    return 0


def _add_source_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("file", nargs="?", help="Parameter JSON file")
    p.add_argument("--preset", metavar="ID", help="Use a built-in preset (id or name)")


def main(argv: list[str] | None = None) -> int:
    """Entry point for the sfx-synth CLI."""
    parser = argparse.ArgumentParser(
        prog="sfx-synth",
        description="Render, encode and inspect parameter-driven sound effects.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command")

    # render
    p_render = sub.add_parser("render", help="Render parameters to a WAV file")
    _add_source_args(p_render)
    p_render.add_argument("-o", "--output", default="out.wav", help="Output WAV path")
    p_render.add_argument(
        "--sample-rate", type=int, choices=SAMPLE_RATES, default=44100, help="Sample rate"
    )
    p_render.add_argument("--seed", type=int, help="Seed for noise and reverb")

    # midi
    p_midi = sub.add_parser("midi", help="Encode parameters as a MIDI file")
    _add_source_args(p_midi)
    p_midi.add_argument("-o", "--output", default="out.mid", help="Output MIDI path")

    # validate
    p_validate = sub.add_parser("validate", help="Report clamped or defaulted parameters")
    p_validate.add_argument("file", help="Parameter JSON file")

    # dot
    p_dot = sub.add_parser("dot", help="Generate DOT visualization of the signal chain")
    _add_source_args(p_dot)
    p_dot.add_argument("-o", "--output", help="Output directory")

    # presets
    p_presets = sub.add_parser("presets", help="List built-in presets")
    p_presets.add_argument("--json", action="store_true", help="One JSON object per line")

    args = parser.parse_args(argv)

    if args.verbose:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)s %(name)s %(message)s",
        )

    if not args.command:
        parser.print_help(sys.stderr)
        return 1

    try:
        if args.command == "render":
            return _cmd_render(args)
        elif args.command == "midi":
            return _cmd_midi(args)
        elif args.command == "validate":
            return _cmd_validate(args)
        elif args.command == "dot":
            return _cmd_dot(args)
        elif args.command == "presets":
            return _cmd_presets(args)
    except FileNotFoundError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except json.JSONDecodeError as e:
        print(f"error: invalid JSON: {e}", file=sys.stderr)
        return 1
    except ValidationError as e:
        print(f"error: invalid parameters: {e}", file=sys.stderr)
        return 1
    except KeyError as e:
        print(f"error: {e.args[0]}", file=sys.stderr)
        return 1
    except (SynthError, ValueError) as e:
        print(f"error: {e}", file=sys.stderr)
        return 1

    return 0  # pragma: no cover


if __name__ == "__main__":
    sys.exit(main())
