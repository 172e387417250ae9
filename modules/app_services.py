from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Dict, List, MutableMapping, Optional

import pandas as pd
import yaml
from yaml.loader import SafeLoader


BASE_DIR = Path(__file__).resolve().parent.parent
APP_DATA_DIR = BASE_DIR / "app_data"
SETTINGS_PATH = APP_DATA_DIR / "settings.yaml"
SETTINGS_ENV_VAR = "VACCIGUIDE_SETTINGS"

SCREEN_FORM = "form"
SCREEN_RESULTS = "results"

PRIORITY_STYLES = {
    "high": {"icon": "🔴", "color": "#ef4444", "background": "#fef2f2", "border": "#fecaca"},
    "medium": {"icon": "🟡", "color": "#eab308", "background": "#fefce8", "border": "#fef08a"},
    "low": {"icon": "🔵", "color": "#3b82f6", "background": "#eff6ff", "border": "#bfdbfe"},
}

PRIORITY_SECTIONS = [
    ("high", "High Priority Vaccines", "These vaccines are strongly recommended for you"),
    ("medium", "Consider These Vaccines", "These vaccines may be beneficial based on your profile"),
    ("low", "Optional Vaccines", "Lower priority vaccines to discuss with your provider"),
]

RECOMMENDATION_COLUMNS = ["Priority", "Vaccine", "Age Range", "Reason", "Notes"]

logger = logging.getLogger(__name__)


class SettingsError(Exception):
    def __init__(self, path: Path, message: str):
        super().__init__(f"{path}: {message}")
        self.path = path


def _default_settings() -> Dict:
    return {
        "page_title": "VacciGuide",
        "layout": "wide",
        "log_level": "INFO",
        "show_rule_trace": True,
        "show_priority_chart": True,
    }


def _normalize_settings(config) -> Dict:
    defaults = _default_settings()
    if not isinstance(config, dict):
        if config is not None:
            logger.warning("settings root must be a mapping, got %s; using defaults", type(config).__name__)
        return defaults

    settings = dict(defaults)
    for key, value in config.items():
        if key not in defaults:
            logger.warning("unknown settings key %r ignored", key)
            continue
        default = defaults[key]
        if isinstance(default, bool):
            if not isinstance(value, bool):
                logger.warning("settings key %r expects true/false, got %r", key, value)
                continue
        elif not isinstance(value, str) or not value.strip():
            logger.warning("settings key %r expects text, got %r", key, value)
            continue
        settings[key] = value.strip() if isinstance(value, str) else value

    if settings["layout"] not in {"wide", "centered"}:
        logger.warning("layout %r not supported; using %r", settings["layout"], defaults["layout"])
        settings["layout"] = defaults["layout"]

    level = settings["log_level"].upper()
    if not isinstance(logging.getLevelName(level), int):
        logger.warning("log_level %r not recognised; using %r", settings["log_level"], defaults["log_level"])
        level = defaults["log_level"]
    settings["log_level"] = level
    return settings


def settings_path() -> Path:
    override = os.environ.get(SETTINGS_ENV_VAR, "").strip()
    return Path(override) if override else SETTINGS_PATH


def load_settings(path: Optional[Path] = None) -> Dict:
    path = Path(path) if path is not None else settings_path()
    if not path.exists():
        return _default_settings()
    try:
        with path.open("r", encoding="utf-8") as file_obj:
            config = yaml.load(file_obj, Loader=SafeLoader)
    except yaml.YAMLError as exc:
        raise SettingsError(path, f"invalid YAML ({exc})") from exc
    return _normalize_settings(config)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.getLogger("modules").setLevel(level.upper())


# ── Screen state (Form <-> Results) ────────────────────────────────────


def init_screen_state(state: MutableMapping) -> None:
    if "screen" not in state:
        state["screen"] = SCREEN_FORM
        state["profile_inputs"] = None
        state["last_result"] = None


def current_screen(state: MutableMapping) -> str:
    init_screen_state(state)
    if state["screen"] == SCREEN_RESULTS and state.get("last_result") is None:
        return SCREEN_FORM
    return state["screen"]


def submit_profile(state: MutableMapping, user_inputs: Dict, result: Dict) -> None:
    init_screen_state(state)
    if state["screen"] != SCREEN_FORM:
        logger.debug("submit ignored on %s screen", state["screen"])
        return
    state["profile_inputs"] = dict(user_inputs)
    state["last_result"] = result
    state["screen"] = SCREEN_RESULTS


def back_to_form(state: MutableMapping, widget_prefix: str = "input_") -> None:
    """Return to the form, dropping the submitted profile, its results and the form widgets."""
    init_screen_state(state)
    state["screen"] = SCREEN_FORM
    state["profile_inputs"] = None
    state["last_result"] = None
    for key in [k for k in list(state.keys()) if str(k).startswith(widget_prefix)]:
        del state[key]


# ── Results presentation helpers ───────────────────────────────────────


def priority_style(priority: str) -> Dict[str, str]:
    return PRIORITY_STYLES.get(priority, PRIORITY_STYLES["low"])


def group_by_priority(recommendations: List[Dict]) -> Dict[str, List[Dict]]:
    groups: Dict[str, List[Dict]] = {key: [] for key, _, _ in PRIORITY_SECTIONS}
    for rec in recommendations:
        groups.setdefault(rec.get("priority", "low"), []).append(rec)
    return groups


def recommendations_frame(recommendations: List[Dict]) -> pd.DataFrame:
    if not recommendations:
        return pd.DataFrame(columns=RECOMMENDATION_COLUMNS)
    rows = [
        {
            "Priority": str(rec.get("priority", "")).capitalize(),
            "Vaccine": rec.get("vaccine", ""),
            "Age Range": rec.get("age_range") or "",
            "Reason": rec.get("reason", ""),
            "Notes": rec.get("notes") or "",
        }
        for rec in recommendations
    ]
    return pd.DataFrame(rows, columns=RECOMMENDATION_COLUMNS)


def rule_trace_frame(rule_trace: List[Dict]) -> pd.DataFrame:
    df = pd.DataFrame(rule_trace, columns=["rule", "vaccine", "priority", "fired"])
    return df.rename(columns={"rule": "Rule", "vaccine": "Vaccine", "priority": "Priority", "fired": "Fired"})


def priority_counts_frame(counts: Dict[str, int]) -> pd.DataFrame:
    return pd.DataFrame(
        [
            {"Priority": key.capitalize(), "Count": int(counts.get(key, 0))}
            for key, _, _ in PRIORITY_SECTIONS
        ]
    )
