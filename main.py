from __future__ import annotations

import altair as alt
import streamlit as st

from modules.app_services import (
    PRIORITY_SECTIONS,
    SCREEN_RESULTS,
    SettingsError,
    back_to_form,
    configure_logging,
    current_screen,
    group_by_priority,
    load_settings,
    priority_counts_frame,
    priority_style,
    recommendations_frame,
    rule_trace_frame,
    submit_profile,
)
from modules.vaccination import engine as vaccination
from modules.vaccination.engine import ProfileValidationError

DISCLAIMER = (
    "These recommendations are based on general ACIP guidelines. Please consult with your healthcare "
    "provider to discuss your specific vaccination needs and to verify your vaccination records. "
    "This tool is for informational purposes only and should not replace professional medical advice."
)

PRIORITY_STYLE_COLORS = {key: priority_style(key)["color"] for key, _, _ in PRIORITY_SECTIONS}

def _label_with_unit(label, unit):
    return f"{label} ({unit})" if unit else label

def _to_widget_key(name: str) -> str:
    return f"input_{name}"

def _render_checklist(item, label, widget_key):
    st.markdown(f"**{label}**")
    if item.get("help"):
        st.caption(item["help"])
    col1, col2 = st.columns(2)
    checked = []
    for idx, option in enumerate(item.get("options", [])):
        target_col = col1 if idx % 2 == 0 else col2
        with target_col:
            if st.checkbox(option, key=f"{widget_key}_{option}"):
                checked.append(option)
    if checked:
        st.caption(" · ".join(checked))
    return checked

def _render_input(item):
    field_type = item.get("type")
    label = _label_with_unit(item.get("label", ""), item.get("unit", ""))
    help_text = item.get("help", "") or None
    widget_key = _to_widget_key(item.get("name", "field"))

    if field_type == "text":
        if widget_key not in st.session_state:
            st.session_state[widget_key] = ""
        return st.text_input(
            label,
            key=widget_key,
            help=help_text,
            placeholder=item.get("placeholder", ""),
        )

    if field_type in {"selectbox", "select"}:
        options = item.get("options", [])
        labels = item.get("labels", {})
        default = options[0] if options else None
        if widget_key not in st.session_state:
            st.session_state[widget_key] = default
        return st.selectbox(
            label,
            options,
            key=widget_key,
            help=help_text,
            format_func=lambda value: labels.get(value, value),
        )

    if field_type == "checklist":
        return _render_checklist(item, label, widget_key)

    st.warning(f"Unsupported input type: {field_type}")
    return None

def _normalize_inputs(inputs):
    normalized = []
    for item in inputs:
        field_type = item.get("type", "text")
        if field_type == "select":
            field_type = "selectbox"

        normalized_item = {
            "type": field_type,
            "name": item.get("name"),
            "label": item.get("label", item.get("name", "")),
            "unit": item.get("unit", ""),
            "help": item.get("help", ""),
        }

        if field_type == "text":
            normalized_item["placeholder"] = item.get("placeholder", "")

        if field_type in {"selectbox", "checklist"}:
            normalized_item["options"] = item.get("options", [])
            normalized_item["labels"] = item.get("labels", {})

        if field_type == "toggle":
            normalized_item["children"] = _normalize_inputs(item.get("children", []))

        normalized.append(normalized_item)
    return normalized

def _validate_inputs(inputs):
    required = {"type", "name", "label", "unit", "help"}
    for item in inputs:
        missing = required - set(item.keys())
        if missing:
            st.warning(f"Input '{item.get('name', 'unknown')}' missing keys: {', '.join(sorted(missing))}")
        if item.get("type") in {"selectbox", "checklist"} and not item.get("options"):
            st.warning(f"Input '{item.get('name', 'unknown')}' needs 'options'.")
        if item.get("type") == "toggle":
            _validate_inputs(item.get("children", []))

def _render_form(input_schema):
    user_inputs = {}
    for item in input_schema:
        if item.get("type") == "toggle":
            toggle_name = item["name"]
            toggle_val = st.checkbox(
                item.get("label", toggle_name),
                key=_to_widget_key(toggle_name),
                help=item.get("help", "") or None,
            )
            user_inputs[toggle_name] = toggle_val
            for child in item.get("children", []):
                # hidden children submit empty values
                user_inputs[child["name"]] = _render_input(child) if toggle_val else []
        else:
            user_inputs[item["name"]] = _render_input(item)
    return user_inputs

def _render_recommendation_card(rec):
    style = priority_style(rec.get("priority", ""))
    badge = ""
    if rec.get("age_range"):
        badge = (
            f'<span style="border:1px solid #d4d4d8;border-radius:12px;padding:1px 8px;'
            f'font-size:0.75em;margin-left:6px;">Age {rec["age_range"]}</span>'
        )
    notes = ""
    if rec.get("notes"):
        notes = f'<div style="font-size:0.8em;font-style:italic;color:#71717a;">{rec["notes"]}</div>'
    st.markdown(
        f"""<div style="background:{style['background']};border:2px solid {style['border']};
        border-radius:8px;padding:14px 16px;margin-bottom:10px;">
        <div style="font-weight:600;">{style['icon']} {rec.get('vaccine', '')}{badge}</div>
        <div style="font-size:0.9em;color:#52525b;margin:6px 0;">{rec.get('reason', '')}</div>
        {notes}
        </div>""",
        unsafe_allow_html=True,
    )

def _render_results(result, settings):
    col_back, col_title = st.columns([1, 4])
    with col_back:
        if st.button("⬅ Back to Form", key="back_btn"):
            back_to_form(st.session_state)
            st.rerun()
    with col_title:
        st.markdown("## Your Vaccination Recommendations")
        st.caption("Based on ACIP guidelines and your profile")

    age = result.get("profile", {}).get("age", "")
    st.success(
        f"**Assessment Complete.** Based on your age ({age} years), vaccination history, and risk factors, "
        f"we found {result.get('total', 0)} vaccination recommendations for you."
    )

    groups = group_by_priority(result.get("recommendations", []))
    for priority, title, description in PRIORITY_SECTIONS:
        entries = groups.get(priority, [])
        if not entries:
            continue
        style = priority_style(priority)
        st.markdown(f"<h3 style='color:{style['color']};'>{style['icon']} {title}</h3>", unsafe_allow_html=True)
        st.caption(description)
        for rec in entries:
            _render_recommendation_card(rec)

    if result.get("all_set"):
        st.markdown(
            """<div style="text-align:center;padding:32px;">
            <div style="font-size:3em;">✅</div>
            <h3>You're All Set!</h3>
            <p>Based on your vaccination history and current guidelines,
            you appear to be up to date with recommended vaccines.</p>
            </div>""",
            unsafe_allow_html=True,
        )
    else:
        with st.expander("📋 Recommendations table"):
            st.dataframe(recommendations_frame(result.get("recommendations", [])), use_container_width=True)

    if settings["show_priority_chart"] and not result.get("all_set"):
        counts_df = priority_counts_frame(result.get("counts", {}))
        chart = (
            alt.Chart(counts_df)
            .mark_bar(cornerRadiusEnd=4)
            .encode(
                x=alt.X("Count:Q", title="Recommendations", axis=alt.Axis(tickMinStep=1)),
                y=alt.Y("Priority:N", sort=["High", "Medium", "Low"], title="Priority"),
                color=alt.Color(
                    "Priority:N",
                    scale=alt.Scale(
                        domain=["High", "Medium", "Low"],
                        range=[PRIORITY_STYLE_COLORS["high"], PRIORITY_STYLE_COLORS["medium"], PRIORITY_STYLE_COLORS["low"]],
                    ),
                    legend=None,
                ),
                tooltip=["Priority", "Count"],
            )
        )
        st.altair_chart(chart, use_container_width=True)

    if settings["show_rule_trace"]:
        with st.expander("🔎 Rule Trace"):
            st.caption(result.get("reasoning", ""))
            st.dataframe(rule_trace_frame(result.get("rule_trace", [])), use_container_width=True)

    st.info(f"**Important Note:** {DISCLAIMER}")


try:
    settings = load_settings()
except SettingsError as exc:
    st.error(f"Could not read settings: {exc}")
    st.stop()

configure_logging(settings["log_level"])
st.set_page_config(page_title=settings["page_title"], layout=settings["layout"])

with st.sidebar:
    st.title(settings["page_title"])
    st.caption("ACIP Guidelines Compliant")
    st.divider()
    st.caption("Evidence-based · Personalized · All ages")

if current_screen(st.session_state) == SCREEN_RESULTS:
    _render_results(st.session_state["last_result"], settings)
else:
    st.markdown(f"<h1 style='text-align: center;'>{settings['page_title']}</h1>", unsafe_allow_html=True)
    st.markdown(
        "<p style='text-align: center;'>Get personalized vaccination recommendations based on your health profile</p>",
        unsafe_allow_html=True,
    )

    f1, f2, f3 = st.columns(3)
    with f1:
        st.markdown("#### 🛡️ Evidence-Based")
        st.caption("Recommendations based on CDC's Advisory Committee on Immunization Practices (ACIP) guidelines")
    with f2:
        st.markdown("#### 🩺 Personalized")
        st.caption("Tailored recommendations based on your specific age, health conditions, and risk factors")
    with f3:
        st.markdown("#### 👥 Comprehensive")
        st.caption("Covers all age groups and special populations including healthcare workers and travelers")

    st.markdown("### Start Your Vaccination Assessment")
    input_schema = _normalize_inputs(vaccination.get_inputs())
    _validate_inputs(input_schema)
    user_inputs = _render_form(input_schema)

    st.markdown("---")
    age_missing = not str(user_inputs.get("age") or "").strip()
    if st.button(
        "Get Vaccination Recommendations",
        key="recommend_btn",
        type="primary",
        use_container_width=True,
        disabled=age_missing,
    ):
        try:
            vaccination.validate_form_inputs(user_inputs)
        except ProfileValidationError as exc:
            st.error(str(exc))
        else:
            result = vaccination.run_inference(user_inputs)
            submit_profile(st.session_state, user_inputs, result)
            st.rerun()

    st.markdown("#### Medical Disclaimer")
    st.caption(
        "This tool provides general vaccination recommendations based on CDC guidelines and should not "
        "replace professional medical advice. Always consult with your healthcare provider before making "
        "vaccination decisions. Individual circumstances may require different approaches to immunization."
    )
