from __future__ import annotations

from sfx_synth import ParamIssue, validate_params


class TestValidPayloads:
    def test_empty_mapping_valid(self) -> None:
        assert validate_params({}) == []

    def test_in_range_payload_valid(self) -> None:
        data = {
            "waveform": "square",
            "frequencyStart": 150,
            "frequencyEnd": 800,
            "duration": 0.2,
            "volume": 0.5,
            "filterType": "lowpass",
            "filterFreq": 2000,
            "qFactor": 1,
        }
        assert validate_params(data) == []


class TestWarnings:
    def test_clamp_reported(self) -> None:
        issues = validate_params({"volume": 1.5})
        assert len(issues) == 1
        issue = issues[0]
        assert issue.kind == "clamped"
        assert issue.field_name == "volume"
        assert issue.severity == "warning"
        assert "volume" in issue

    def test_enum_fallback_reported(self) -> None:
        issues = validate_params({"waveform": "laser"})
        assert [i.kind for i in issues] == ["fallback"]
        assert "'sine'" in issues[0]

    def test_short_harmonics_reported(self) -> None:
        issues = validate_params({"harmonics": [1.0, 0.5]})
        assert [(i.kind, i.field_name) for i in issues] == [("padded", "harmonics")]

    def test_multiple_issues(self) -> None:
        issues = validate_params({"delayFeedback": 4, "reverb": -1, "qFactor": "high"})
        assert {i.field_name for i in issues} == {"delay_feedback", "reverb", "q_factor"}
        assert all(i.severity == "warning" for i in issues)


class TestErrors:
    def test_non_mapping_is_error(self) -> None:
        issues = validate_params(["sine", 440])
        assert len(issues) == 1
        assert issues[0].severity == "error"
        assert issues[0].kind == "not_a_mapping"
        assert "list" in issues[0]


class TestParamIssue:
    def test_behaves_as_string(self) -> None:
        issue = ParamIssue("clamped", "volume out of range", field_name="volume")
        assert issue == "volume out of range"
        assert f"warning: {issue}" == "warning: volume out of range"
        assert "; ".join([issue, issue]) == "volume out of range; volume out of range"

    def test_from_note(self) -> None:
        issue = ParamIssue.from_note(("padded", "harmonics", "harmonics has 2 entries"))
        assert issue.kind == "padded"
        assert issue.field_name == "harmonics"
        assert issue == "harmonics has 2 entries"

    def test_severity_follows_kind(self) -> None:
        assert ParamIssue("clamped", "x").severity == "warning"
        assert ParamIssue("not_a_mapping", "x").severity == "error"
