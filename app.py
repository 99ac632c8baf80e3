"""
OS Algorithms Visualizer — Page Replacement & CPU Scheduling

This application provides an interactive, step-by-step visualization of two
classic Operating System topics:
    - Page Replacement Algorithms (FIFO, LRU, Optimal)
    - CPU Scheduling Algorithms (FCFS, SJF, SRTF, Round-Robin, Priority)

The simulation engines (engine.py, scheduler.py) compute the whole run up
front; this module only reveals the finished event list at the chosen pace.

Built with Streamlit for the web interface and Plotly for visualizations.
"""

# =============================================================================
# IMPORTS
# =============================================================================

import logging
import time                                  # For timing/pacing the animation

import plotly.graph_objects as go            # Interactive plotting library
import streamlit as st                       # Web application framework

import config
from engine import PageReplacementEngine, ReplacementPolicy, compare_policies
from errors import ValidationError
from scheduler import (
    SchedulingAlgorithm,
    SchedulingEngine,
    insert_idle_gaps,
    merge_intervals,
    summarize_schedule,
)
from session import SimulationRun
from utils import assign_colors, parse_processes, parse_reference_string

logging.basicConfig(level=config.LOG_LEVEL, format=config.LOG_FORMAT)
logger = logging.getLogger("visualizer")


# =============================================================================
# RUN BUILDERS - Engine calls, no Streamlit here
# =============================================================================

def build_paging_run(text: str, capacity: int, policy: ReplacementPolicy) -> SimulationRun:
    """
    Run the page replacement engine and wrap its steps in a playback handle.

    Raises:
        ValidationError: If the reference string or capacity is rejected
    """
    refs = parse_reference_string(text)
    engine = PageReplacementEngine(capacity, policy)
    steps = engine.run(refs)
    return SimulationRun(steps, kind="paging", summary={
        "policy": policy,
        "capacity": capacity,
        "stats": engine.get_stats(),
        "event_log": list(engine.event_log),
        "comparison": compare_policies(refs, capacity),
    })


def build_scheduling_run(text: str, algorithm: SchedulingAlgorithm, quantum: int) -> SimulationRun:
    """
    Run the scheduler and wrap the idle-filled timeline in a playback handle.

    Raises:
        ValidationError: If any process record or the quantum is rejected
    """
    processes = parse_processes(text)
    engine = SchedulingEngine()
    intervals = engine.run(processes, algorithm,
                           quantum if algorithm is SchedulingAlgorithm.RR else None)
    timeline = insert_idle_gaps(intervals)
    return SimulationRun(timeline, kind="scheduling", summary={
        "algorithm": algorithm,
        "metrics": summarize_schedule(processes, intervals),
        "merged": insert_idle_gaps(merge_intervals(intervals)),
        "colors": assign_colors(timeline),
        "event_log": list(engine.event_log),
    })


# =============================================================================
# CHARTS
# =============================================================================

def frame_table_figure(step, capacity: int) -> go.Figure:
    """Bar chart of the frame table after one step, coloured by outcome."""
    x, y, text, colors = [], [], [], []

    for i in range(capacity):
        page = step.frames[i] if i < len(step.frames) else None
        label = f"F{i}: " + (f"P{page}" if page is not None else "Free")
        if page is None:
            color = config.EMPTY_COLOR
        elif page == step.page:
            color = config.HIT_COLOR if step.hit else config.FAULT_COLOR
        else:
            color = "white"
        x.append(i)
        y.append(1)
        text.append(label)
        colors.append(color)

    fig = go.Figure()
    fig.add_trace(go.Bar(x=x, y=y, text=text, marker_color=colors,
                         marker_line_color="gray", marker_line_width=1,
                         hovertext=text, hoverinfo='text'))
    fig.update_layout(height=config.FRAME_CHART_HEIGHT, showlegend=False,
                      yaxis=dict(showticklabels=False), xaxis=dict(dtick=1))
    return fig


def gantt_figure(intervals, colors) -> go.Figure:
    """Horizontal single-lane Gantt chart; Idle gaps use the idle colour."""
    fig = go.Figure()
    fig.add_trace(go.Bar(
        base=[iv.start for iv in intervals],
        x=[iv.duration for iv in intervals],
        y=["CPU"] * len(intervals),
        orientation="h",
        marker_color=[colors[iv.name] for iv in intervals],
        marker_line_color="white",
        marker_line_width=1,
        text=[iv.name for iv in intervals],
        textposition="inside",
        insidetextanchor="middle",
        hovertext=[f"{iv.name}: [{iv.start}, {iv.end})" for iv in intervals],
        hoverinfo="text",
    ))
    ticks = sorted({iv.start for iv in intervals} | {iv.end for iv in intervals})
    fig.update_layout(height=config.GANTT_HEIGHT, showlegend=False, bargap=0.2,
                      xaxis=dict(title="Time", tickmode="array", tickvals=ticks))
    return fig


# =============================================================================
# RENDERERS - Draw whatever part of a run has been revealed
# =============================================================================

def render_paging(run: SimulationRun):
    revealed = run.revealed
    summary = run.summary

    st.progress(run.progress, text=f"Step {run.position} / {len(run)}")
    if not revealed:
        st.info("Press **Play** or **Step** to start revealing the run.")
        return

    last = revealed[-1]
    outcome = "HIT" if last.hit else "FAULT"
    if last.evicted is not None:
        outcome += f" (evicted page {last.evicted})"
    st.subheader(f"Reference {run.position}: page {last.page} → {outcome}")
    st.plotly_chart(frame_table_figure(last, summary["capacity"]),
                    use_container_width=True, key=f"frames-{run.position}")

    rows = []
    for i, s in enumerate(revealed, start=1):
        row = {"step": i, "page": s.page, "result": "Hit" if s.hit else "Fault"}
        for f in range(summary["capacity"]):
            row[f"F{f}"] = s.frames[f] if f < len(s.frames) else ""
        row["evicted"] = "" if s.evicted is None else s.evicted
        rows.append(row)
    st.table(rows)

    if not run.done:
        return

    # ----- Statistics, only once the whole run is visible -----
    st.subheader("Statistics")
    stats = summary["stats"]
    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Total Pages", stats["total_refs"])
    c2.metric("Hits", stats["hits"])
    c3.metric("Faults", stats["faults"])
    c4.metric("Hit Ratio", f"{stats['hit_ratio']:.2f}")

    fig = go.Figure()
    fig.add_trace(go.Bar(x=["Hits", "Faults"], y=[stats["hits"], stats["faults"]],
                         marker_color=[config.HIT_COLOR, config.FAULT_COLOR]))
    fig.update_layout(height=300, title="Hits vs Faults")
    st.plotly_chart(fig, use_container_width=True, key="paging-hits-faults")

    st.subheader("Policy Comparison")
    st.table([{"policy": p.value, **s} for p, s in summary["comparison"].items()])


def render_scheduling(run: SimulationRun, show_merged: bool):
    revealed = run.revealed
    summary = run.summary

    st.progress(run.progress, text=f"Block {run.position} / {len(run)}")
    if not revealed:
        st.info("Press **Play** or **Step** to start revealing the run.")
        return

    st.subheader("Gantt Chart")
    st.plotly_chart(gantt_figure(revealed, summary["colors"]),
                    use_container_width=True, key=f"gantt-{run.position}")

    if not run.done:
        return

    if show_merged:
        st.subheader("Gantt Chart (merged slices)")
        st.plotly_chart(gantt_figure(summary["merged"], summary["colors"]),
                        use_container_width=True, key="gantt-merged")

    metrics = summary["metrics"]
    st.subheader("Process Metrics")
    st.table(metrics["rows"])

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Avg Waiting", metrics["avg_waiting"])
    c2.metric("Avg Turnaround", metrics["avg_turnaround"])
    c3.metric("Avg Response", metrics["avg_response"])
    c4.metric("CPU Utilization", f"{metrics['cpu_utilization']:.0%}")
    st.caption(f"Makespan {metrics['makespan']} · idle {metrics['idle_time']} · "
               f"context switches {metrics['context_switches']}")


def playback_controls(run_key: str, speed: float, draw):
    """
    Play / Step / Stop / Rewind buttons shared by both simulators.

    The run handle lives in st.session_state[run_key]; draw(run) redraws the
    revealed part of the run into the current container.
    """
    run: SimulationRun = st.session_state.get(run_key)
    if run is None:
        return

    b1, b2, b3, b4 = st.columns(4)
    play = b1.button("▶ Play", key=f"{run_key}-play")
    step = b2.button("⏭ Step", key=f"{run_key}-step")
    stop = b3.button("⏹ Stop", key=f"{run_key}-stop")
    rewind = b4.button("⏮ Rewind", key=f"{run_key}-rewind")

    if stop:
        run.cancel()
    if rewind:
        run.reset()
    if step:
        run.resume()
        run.step()

    placeholder = st.empty()

    if play:
        run.prepare_playback()
        # Each click reruns the script, so Stop interrupts this loop
        for _ in run:
            with placeholder.container():
                draw(run)
            time.sleep(1.0 / speed)
    else:
        with placeholder.container():
            draw(run)

    with st.expander("Event Log"):
        for ev in run.summary.get("event_log", [])[-50:][::-1]:
            st.text(ev)


# =============================================================================
# PAGE SETUP
# =============================================================================

st.set_page_config(page_title="OS Algorithms Visualizer", layout="wide")

view = st.sidebar.radio("Choose View", ["Page Replacement", "CPU Scheduling", "Concepts"])

st.title("OS Algorithms Visualizer — Page Replacement & CPU Scheduling")

# =============================================================================
# CONCEPTS PAGE - Educational Content
# =============================================================================

if view == "Concepts":
    st.header("Operating System Concepts Used in This Project")
    st.markdown(
        """
        ## 📘 Page Replacement

        When a referenced page is not resident (**page fault**) and every frame
        is occupied, the OS must pick a **victim** to evict.

        - **FIFO** — evict the page that was loaded first. Simple, but suffers
          from Belady's anomaly.
        - **LRU** — evict the page whose last use is furthest in the past.
        - **OPT** — evict the page whose next use is furthest in the future.
          Not implementable online, but a lower bound on faults.

        ## 📘 CPU Scheduling

        - **FCFS** — run jobs in arrival order, each to completion.
        - **SJF** — among ready jobs, run the shortest burst to completion.
        - **SRTF** — preemptive SJF: a newly arrived job preempts the running
          one if its remaining time is strictly shorter.
        - **Round-Robin** — each job runs for at most one *quantum*, then goes
          to the back of the ready queue (behind anything that arrived meanwhile).
        - **Priority** — run the most urgent job (lowest number) to completion.

        **Turnaround** = completion − arrival · **Waiting** = turnaround − burst ·
        **Response** = first start − arrival.
        """
    )
    st.stop()

st.sidebar.header("Playback")
speed = st.sidebar.slider("Playback speed (steps/sec)",
                          min_value=config.MIN_SPEED, max_value=config.MAX_SPEED,
                          value=config.DEFAULT_SPEED)

# =============================================================================
# PAGE REPLACEMENT SIMULATOR
# =============================================================================

if view == "Page Replacement":
    st.sidebar.header("Page Replacement Settings")

    ref_text = st.sidebar.text_area("Reference string (space or comma separated)",
                                    value=config.DEFAULT_REFERENCE_STRING)
    capacity = st.sidebar.number_input("Frames", min_value=1, max_value=config.MAX_FRAME_COUNT,
                                       value=config.DEFAULT_FRAME_COUNT, step=1)
    policy = st.sidebar.selectbox("Replacement Policy", options=list(ReplacementPolicy),
                                  format_func=lambda p: p.value)

    if st.sidebar.button("Simulate", key="paging-simulate"):
        try:
            st.session_state.paging_run = build_paging_run(ref_text, int(capacity), policy)
        except ValidationError as e:
            logger.warning("Rejected page replacement input: %s", e)
            st.session_state.pop("paging_run", None)
            st.error(str(e))

    if st.sidebar.button("Reset Simulation", key="paging-reset"):
        st.session_state.pop("paging_run", None)
        st.sidebar.success("Simulation reset")

    if "paging_run" in st.session_state:
        playback_controls("paging_run", speed, render_paging)
    else:
        st.write("Enter a reference string and press **Simulate**.")

# =============================================================================
# CPU SCHEDULING SIMULATOR
# =============================================================================

else:
    st.sidebar.header("Scheduling Settings")

    proc_text = st.sidebar.text_area("Processes (name arrival burst [priority], one per line)",
                                     value=config.DEFAULT_PROCESSES, height=160)
    algorithm = st.sidebar.selectbox("Algorithm", options=list(SchedulingAlgorithm),
                                     format_func=lambda a: a.value)
    quantum = st.sidebar.number_input("Quantum (Round-Robin)", min_value=1,
                                      value=config.DEFAULT_QUANTUM, step=1,
                                      disabled=algorithm is not SchedulingAlgorithm.RR)
    show_merged = st.sidebar.checkbox("Also show merged slices", value=False)

    if st.sidebar.button("Simulate", key="sched-simulate"):
        try:
            st.session_state.sched_run = build_scheduling_run(proc_text, algorithm, int(quantum))
        except ValidationError as e:
            logger.warning("Rejected scheduling input: %s", e)
            st.session_state.pop("sched_run", None)
            st.error(str(e))

    if st.sidebar.button("Reset Simulation", key="sched-reset"):
        st.session_state.pop("sched_run", None)
        st.sidebar.success("Simulation reset")

    if "sched_run" in st.session_state:
        playback_controls("sched_run", speed,
                          lambda run: render_scheduling(run, show_merged))
    else:
        st.write("Enter processes and press **Simulate**.")

# =============================================================================
# FOOTER - Usage Tips
# =============================================================================

st.markdown("---")
st.markdown(
    "**Usage tips**:\n"
    "- Press **Simulate** to compute the run, then **Play** to animate it or **Step** through it.\n"
    "- **Stop** halts the animation; **Rewind** starts the reveal over without recomputing.\n"
    "- Try `1 2 3 4 1 2 5 1 2 3 4 5` with 3 and 4 frames under FIFO to see Belady's anomaly."
)
