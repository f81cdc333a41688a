from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from sfx_synth.models import Note, normalize_params

# Kinds that block loading; every normalization note is a warning.
ERROR_KINDS = frozenset({"not_a_mapping"})


class ParamIssue(str):
    """A normalization note that prints as its message.

    ``kind`` names what happened (clamped, defaulted, fallback, truncated,
    padded, not_a_mapping) and decides ``severity``.
    """

    kind: str
    field_name: str | None

    def __new__(cls, kind: str, message: str, field_name: str | None = None) -> ParamIssue:
        issue = super().__new__(cls, message)
        issue.kind = kind
        issue.field_name = field_name
        return issue

    @classmethod
    def from_note(cls, note: Note) -> ParamIssue:
        kind, field_name, message = note
        return cls(kind, message, field_name)

    @property
    def severity(self) -> str:
        return "error" if self.kind in ERROR_KINDS else "warning"


def validate_params(data: Any) -> list[ParamIssue]:
    """Report what normalization would change in a raw parameter payload.

    Out-of-range numbers, unknown enum tags and malformed harmonics are
    warnings: ``ParameterSet`` clamps or defaults them. Only a payload that is
    not a mapping at all is an error (empty list = accepted as-is).
    """
    if not isinstance(data, Mapping):
        message = f"parameter payload must be an object, got {type(data).__name__}"
        return [ParamIssue("not_a_mapping", message)]

    _clean, notes = normalize_params(data)
    return [ParamIssue.from_note(note) for note in notes]
