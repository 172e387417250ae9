"""Tests for modules/app_services.py: settings, screen state and result tables."""

from __future__ import annotations

import logging

import pytest

from modules.app_services import (
    SCREEN_FORM,
    SCREEN_RESULTS,
    SETTINGS_ENV_VAR,
    SettingsError,
    back_to_form,
    current_screen,
    group_by_priority,
    load_settings,
    priority_counts_frame,
    priority_style,
    recommendations_frame,
    rule_trace_frame,
    submit_profile,
)
from modules.vaccination.engine import run_inference


# ── Settings ──────────────────────────────────────────────────────────────────


def test_missing_settings_file_gives_defaults(tmp_path):
    settings = load_settings(tmp_path / "absent.yaml")
    assert settings == {
        "page_title": "VacciGuide",
        "layout": "wide",
        "log_level": "INFO",
        "show_rule_trace": True,
        "show_priority_chart": True,
    }


def test_settings_overrides(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "page_title: My Clinic\nlayout: centered\nlog_level: debug\nshow_rule_trace: false\n",
        encoding="utf-8",
    )
    settings = load_settings(path)

    assert settings["page_title"] == "My Clinic"
    assert settings["layout"] == "centered"
    assert settings["log_level"] == "DEBUG"
    assert settings["show_rule_trace"] is False
    assert settings["show_priority_chart"] is True


def test_bad_values_fall_back_to_defaults(tmp_path, caplog):
    path = tmp_path / "settings.yaml"
    path.write_text(
        "layout: huge\nlog_level: chatty\nshow_rule_trace: 'maybe'\npage_title: ''\ncolour: red\n",
        encoding="utf-8",
    )
    with caplog.at_level(logging.WARNING, logger="modules.app_services"):
        settings = load_settings(path)

    assert settings["layout"] == "wide"
    assert settings["log_level"] == "INFO"
    assert settings["show_rule_trace"] is True
    assert settings["page_title"] == "VacciGuide"
    assert len(caplog.records) == 5


def test_non_mapping_settings_give_defaults(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")
    assert load_settings(path)["page_title"] == "VacciGuide"


def test_malformed_yaml_raises_settings_error(tmp_path):
    path = tmp_path / "settings.yaml"
    path.write_text("page_title: [unclosed\n", encoding="utf-8")
    with pytest.raises(SettingsError) as excinfo:
        load_settings(path)
    assert excinfo.value.path == path


def test_settings_path_from_environment(tmp_path, monkeypatch):
    path = tmp_path / "custom.yaml"
    path.write_text("page_title: From Env\n", encoding="utf-8")
    monkeypatch.setenv(SETTINGS_ENV_VAR, str(path))
    assert load_settings()["page_title"] == "From Env"


# ── Screen state ──────────────────────────────────────────────────────────────


def test_initial_screen_is_form(session_state):
    assert current_screen(session_state) == SCREEN_FORM
    assert session_state["last_result"] is None


def test_submit_moves_to_results(session_state):
    inputs = {"age": "30", "known_history": False}
    result = run_inference(inputs)

    submit_profile(session_state, inputs, result)

    assert current_screen(session_state) == SCREEN_RESULTS
    assert session_state["profile_inputs"] == inputs
    assert session_state["last_result"] is result


def test_back_discards_profile_and_form_widgets(session_state):
    submit_profile(session_state, {"age": "30"}, run_inference({"age": "30"}))
    session_state["input_age"] = "30"
    session_state["input_risk_factors_Diabetes"] = True

    back_to_form(session_state)

    assert current_screen(session_state) == SCREEN_FORM
    assert session_state["profile_inputs"] is None
    assert session_state["last_result"] is None
    assert "input_age" not in session_state
    assert "input_risk_factors_Diabetes" not in session_state


def test_submit_ignored_on_results_screen(session_state):
    first = run_inference({"age": "30"})
    submit_profile(session_state, {"age": "30"}, first)
    submit_profile(session_state, {"age": "70"}, run_inference({"age": "70"}))

    assert session_state["last_result"] is first


def test_results_screen_without_result_falls_back_to_form(session_state):
    session_state.update({"screen": SCREEN_RESULTS, "profile_inputs": None, "last_result": None})
    assert current_screen(session_state) == SCREEN_FORM


# ── Presentation helpers ─────────────────────────────────────────────────────


def test_group_by_priority_keeps_order():
    recs = [
        {"vaccine": "A", "priority": "high"},
        {"vaccine": "B", "priority": "medium"},
        {"vaccine": "C", "priority": "high"},
    ]
    groups = group_by_priority(recs)

    assert [rec["vaccine"] for rec in groups["high"]] == ["A", "C"]
    assert [rec["vaccine"] for rec in groups["medium"]] == ["B"]
    assert groups["low"] == []


def test_priority_style_defaults_to_low():
    assert priority_style("high")["color"] == "#ef4444"
    assert priority_style("unknown") == priority_style("low")


def test_recommendations_frame():
    result = run_inference({"age": "65", "known_history": True})
    df = recommendations_frame(result["recommendations"])

    assert list(df.columns) == ["Priority", "Vaccine", "Age Range", "Reason", "Notes"]
    assert len(df) == result["total"]
    assert df.iloc[0]["Age Range"] == "65+"
    assert df.iloc[0]["Priority"] == "High"


def test_empty_recommendations_frame_has_columns():
    df = recommendations_frame([])
    assert df.empty
    assert "Vaccine" in df.columns


def test_rule_trace_frame():
    result = run_inference({"age": "30"})
    df = rule_trace_frame(result["rule_trace"])
    assert list(df.columns) == ["Rule", "Vaccine", "Priority", "Fired"]
    assert df["Fired"].sum() == result["total"]


def test_priority_counts_frame():
    df = priority_counts_frame({"high": 3, "medium": 1})
    assert df.to_dict("records") == [
        {"Priority": "High", "Count": 3},
        {"Priority": "Medium", "Count": 1},
        {"Priority": "Low", "Count": 0},
    ]
