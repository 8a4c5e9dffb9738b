"""
Grid Dispatch Center - Streamlit UI
===================================

Operator control surface for splitting a total P/Q setpoint across the
station's units.

Sections:
1. Total dispatch setpoint
2. Unit cards
3. Commit
4. Dispatch history (edit / delete / export)
5. Sequence log
"""

import os
import sys
from datetime import datetime
from pathlib import Path

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from allocation.session import EditUnit, Quantity, SetAggregate, SetEnabled
from ledger.store import LedgerStore
from reporting.export import export_filename, ledger_frame, to_csv, to_json, to_pdf, to_xlsx
from resources.unit import ACTIVE, REACTIVE, SOC
from station.loader import load_station_file
from station.logging_setup import init_logging
from ui.controller import DispatchCenter
from ui.inputs import parse_soc, resolve_setpoint


st.set_page_config(
    page_title="Grid Dispatch Center",
    page_icon="⚡",
    layout="wide",
    initial_sidebar_state="collapsed"
)

LOG_KEY = "sequence_log_text"


def get_center() -> DispatchCenter:
    """Build the controller once per browser session."""
    if "center" not in st.session_state:
        init_logging()
        config = load_station_file(os.environ.get("DISPATCH_STATION_FILE"))
        store_path = os.environ.get("DISPATCH_LEDGER_FILE", config.storage.path)
        st.session_state["center"] = DispatchCenter(config, LedgerStore(store_path, config.storage.key))
    return st.session_state["center"]


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"


def sync_widgets(center: DispatchCenter):
    """Push canonical engine values into the widgets before they render."""
    st.session_state["total_p"] = _fmt(center.session.total_p)
    st.session_state["total_q"] = _fmt(center.session.total_q)
    for unit in center.session.units:
        st.session_state[f"{unit.id}_{ACTIVE}"] = _fmt(unit.active_mw)
        st.session_state[f"{unit.id}_{REACTIVE}"] = _fmt(unit.reac_mvar)
        st.session_state[f"{unit.id}_{SOC}"] = _fmt(unit.soc)
        st.session_state[f"{unit.id}_enabled"] = unit.enabled
    center.refresh_log()
    st.session_state[LOG_KEY] = center.sequence_log.text


# --- Callbacks (run before the script body) ---

def on_total_change(quantity: Quantity, key: str):
    center = get_center()
    center.apply(SetAggregate(quantity, resolve_setpoint(st.session_state[key])))


def on_unit_change(unit_id: str, field: str):
    center = get_center()
    raw = st.session_state[f"{unit_id}_{field}"]
    if field == SOC:
        value = parse_soc(raw)
        value = 0.0 if value is None else value
    else:
        value = resolve_setpoint(raw)
    center.apply(EditUnit(unit_id, field, value))


def on_toggle(unit_id: str):
    center = get_center()
    center.apply(SetEnabled(unit_id, st.session_state[f"{unit_id}_enabled"]))


def on_commit():
    get_center().commit()


def on_log_edit():
    get_center().sequence_log.edit(st.session_state[LOG_KEY])


def on_log_reset():
    get_center().sequence_log.reset()


# --- Sections ---

def section_header(center: DispatchCenter):
    col1, col2, col3 = st.columns([3, 1, 1])
    with col1:
        st.title(f"⚡ {center.config.name}")
    with col2:
        st.metric("Clock", datetime.now().strftime("%H:%M:%S"))
    with col3:
        st.metric("Archive", f"{len(center.ledger)} logs")


def section_setpoint(center: DispatchCenter):
    st.subheader("Total Dispatch Setpoint")
    state = center.state
    col1, col2, col3 = st.columns(3)
    with col1:
        st.text_input(
            "Total Active (MW)", key="total_p",
            on_change=on_total_change, args=(Quantity.ACTIVE, "total_p")
        )
        st.caption(f"Mode: {state.total_p.mode.value}")
    with col2:
        st.text_input(
            "Total Reac (MVAR)", key="total_q",
            on_change=on_total_change, args=(Quantity.REACTIVE, "total_q")
        )
        st.caption(f"Mode: {state.total_q.mode.value}")
    with col3:
        offline = [u.id for u in center.session.units if not u.enabled]
        if offline:
            st.warning(f"Offline: {', '.join(offline)}")
        else:
            st.success("All units active")


def section_units(center: DispatchCenter):
    cols = st.columns(len(center.session.units))
    for col, unit in zip(cols, center.session.units):
        with col:
            with st.container(border=True):
                st.markdown(
                    f"<span style='color:{unit.badge_color if unit.enabled else '#334155'}'>■</span> "
                    f"**{unit.name}** ({unit.id})",
                    unsafe_allow_html=True
                )
                st.caption("STATUS: NOMINAL" if unit.enabled else "STATUS: OFFLINE_DISABLED")
                st.toggle("Enabled", key=f"{unit.id}_enabled", on_change=on_toggle, args=(unit.id,))
                c1, c2, c3 = st.columns(3)
                with c1:
                    st.text_input(
                        "Active (MW)", key=f"{unit.id}_{ACTIVE}", disabled=not unit.enabled,
                        on_change=on_unit_change, args=(unit.id, ACTIVE)
                    )
                with c2:
                    st.text_input(
                        "Reac (MVAR)", key=f"{unit.id}_{REACTIVE}", disabled=not unit.enabled,
                        on_change=on_unit_change, args=(unit.id, REACTIVE)
                    )
                with c3:
                    st.text_input(
                        "SOC (%)", key=f"{unit.id}_{SOC}",
                        on_change=on_unit_change, args=(unit.id, SOC)
                    )
                st.progress(int(unit.soc) / 100)


def section_allocation_chart(center: DispatchCenter):
    units = center.session.units
    fig = go.Figure()
    fig.add_trace(go.Bar(
        x=[u.id for u in units], y=[u.active_mw for u in units],
        name="P (MW)", marker_color=[u.badge_color for u in units]
    ))
    fig.add_trace(go.Bar(
        x=[u.id for u in units], y=[u.reac_mvar for u in units],
        name="Q (MVAR)", marker_color="#22d3ee"
    ))
    fig.update_layout(barmode="group", height=280, margin=dict(t=20, b=20))
    st.plotly_chart(fig, use_container_width=True)


def section_history(center: DispatchCenter):
    st.subheader("Dispatch History")
    entries = center.ledger.entries
    unit_ids = center.config.unit_ids
    now = datetime.now()

    c1, c2, c3, c4 = st.columns(4)
    c1.download_button("CSV", to_csv(entries, unit_ids), export_filename("csv", now), "text/csv")
    c2.download_button(
        "XLSX", to_xlsx(entries, unit_ids), export_filename("xlsx", now),
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
    )
    c3.download_button("JSON", to_json(entries), export_filename("json", now), "application/json")
    c4.download_button(
        "PDF", to_pdf(entries, unit_ids, generated=now.strftime("%Y-%m-%d %H:%M:%S")),
        export_filename("pdf", now), "application/pdf"
    )

    if not entries:
        st.info("NO DISPATCH SEQUENCE COMMITTED")
        return

    st.dataframe(ledger_frame(entries, unit_ids), hide_index=True, use_container_width=True)

    labels = {e.id: e.timestamp for e in entries}
    entry_id = st.selectbox(
        "Entry", list(labels), format_func=lambda i: f"{labels[i]} ({i[:8]})"
    )
    entry = center.ledger.get(entry_id)

    with st.expander("Edit entry"):
        rows = [
            {"unit": uid, "active": s.active, "reac": s.reac, "soc": s.soc}
            for uid, s in entry.units.items()
        ]
        edited = st.data_editor(
            pd.DataFrame(rows), hide_index=True, disabled=["unit"], key=f"edit_{entry_id}"
        )
        if st.button("Save entry", key=f"save_{entry_id}"):
            snapshot = {
                row["unit"]: {"active": row["active"], "reac": row["reac"], "soc": row["soc"]}
                for row in edited.to_dict(orient="records")
            }
            center.update_entry(entry_id, snapshot)
            st.rerun()

    with st.expander("Delete entry"):
        confirmed = st.checkbox(
            "Confirm deletion? The entry is removed from stored history permanently.",
            key=f"confirm_{entry_id}"
        )
        if st.button("Delete", key=f"delete_{entry_id}", disabled=not confirmed, type="primary"):
            center.delete_entry(entry_id)
            st.rerun()


def section_sequence_log(center: DispatchCenter):
    st.subheader("Sequence Log")
    st.text_area("Station live out", key=LOG_KEY, height=220, on_change=on_log_edit)
    st.button("Reset log", on_click=on_log_reset)
    st.code(center.sequence_log.text, language=None)


def main():
    """Main application."""
    center = get_center()
    sync_widgets(center)

    section_header(center)
    section_setpoint(center)
    section_units(center)

    col1, col2 = st.columns([3, 1])
    with col1:
        section_allocation_chart(center)
    with col2:
        st.button("✅ COMMIT SEQUENCE", type="primary", on_click=on_commit, use_container_width=True)

    col1, col2 = st.columns([3, 1])
    with col1:
        section_history(center)
    with col2:
        section_sequence_log(center)


if __name__ == "__main__":
    main()
