"""Command-line entry: a live 3D view of the fluid, or a headless run."""

from __future__ import annotations

import argparse
import math
import time

import numpy as np

from pbfluid.scene import (
    BOUNDARY_EDGES,
    HOVERED_BUTTON,
    NORMAL_BUTTON,
    PARTICLE_COLOR,
    RESET_LABEL,
    SWITCH_SCENE_LABEL,
    CameraController,
    Controls,
    boundary_vertices,
)
from pbfluid.simulator import Simulator

DEFAULT_DT = 1.0 / 200.0
FPS_REFRESH = 0.1


def _positive_float(text):
    try:
        value = float(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not a number: {text!r}") from None
    if not value > 0:
        raise argparse.ArgumentTypeError(f"must be positive: {text!r}")
    return value


def _non_negative_int(text):
    try:
        value = int(text)
    except ValueError:
        raise argparse.ArgumentTypeError(f"not an integer: {text!r}") from None
    if value < 0:
        raise argparse.ArgumentTypeError(f"must not be negative: {text!r}")
    return value


def parse_args(argv):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="pbfluid", description="Position-based fluid in a tank."
    )
    parser.add_argument(
        "--dt", type=_positive_float, default=DEFAULT_DT, help="time step in seconds"
    )
    parser.add_argument(
        "--scene", type=int, choices=(0, 1), default=0, help="scene to start with"
    )
    parser.add_argument(
        "--steps",
        type=_non_negative_int,
        default=None,
        help="run this many steps without a window and print a summary",
    )
    return parser.parse_args(argv)


def _run_headless(controls, steps, dt, out=print):
    sim = controls.simulator
    out(f"scene {sim.scene_id}: {sim.num_sphere} particles")
    for n in range(1, steps + 1):
        controls.refresh()
        positions = controls.step(dt)
        mean_y = float(positions[:, 1].mean()) if len(positions) else 0.0
        out(f"step {n}: t={n * dt:.3f}s mean_y={mean_y:.4f}")
    return 0


def _boundary_polyline(sim):
    """Boundary edges as one x/y/z polyline, segments separated by NaN."""
    vertices = boundary_vertices(sim.tank, sim.slide_pos)
    gap = np.full(3, np.nan)
    points = np.array(
        [p for a, b in BOUNDARY_EDGES for p in (vertices[a], vertices[b], gap)],
        dtype=float,
    )
    return points[:, 0], points[:, 1], points[:, 2]


def _view_angles(camera):
    x, y, z = camera.eye()
    elev = math.degrees(math.asin(max(-1.0, min(1.0, y / camera.distance))))
    azim = math.degrees(math.atan2(x, z))
    return elev, azim


def _run_viewer(controls, dt):
    import matplotlib.pyplot as plt
    from matplotlib.animation import FuncAnimation
    from matplotlib.widgets import Button

    sim = controls.simulator
    camera = CameraController()
    pressed = set()
    wheel = []

    fig = plt.figure(figsize=(10, 8), facecolor="black")
    ax = fig.add_subplot(projection="3d", facecolor="black")
    ax.set_axis_off()

    def set_limits():
        half = np.asarray(sim.tank, dtype=float) / 2
        ax.set_xlim(-half[0], half[0])
        ax.set_ylim(-half[1], half[1])
        ax.set_zlim(-half[2], half[2])

    set_limits()
    pos = sim.position
    (particles,) = ax.plot(
        pos[:, 0], pos[:, 1], pos[:, 2],
        linestyle="", marker="o", markersize=3, color=PARTICLE_COLOR,
    )
    (boundary,) = ax.plot(*_boundary_polyline(sim), color="white", linewidth=1.0)
    fps_text = fig.text(
        0.99, 0.98, "", color=(0.0, 1.0, 0.0), ha="right", va="top", fontsize=14
    )

    def make_button(row, label):
        button_ax = fig.add_axes([0.02, 0.88 - 0.1 * row, 0.2, 0.08])
        button = Button(button_ax, label, color=NORMAL_BUTTON, hovercolor=HOVERED_BUTTON)
        button.label.set_color("white")
        return button

    pause_button = make_button(0, controls.pause_label)
    switch_button = make_button(1, SWITCH_SCENE_LABEL)
    reset_button = make_button(2, RESET_LABEL)

    def apply(button, style):
        button.ax.set_facecolor(style.background)
        for spine in button.ax.spines.values():
            spine.set_edgecolor(style.border)
        fig.canvas.draw_idle()

    def on_pause(_event):
        style = controls.press_pause_resume()
        pause_button.label.set_text(controls.pause_label)
        apply(pause_button, style)

    pause_button.on_clicked(on_pause)
    switch_button.on_clicked(lambda _e: apply(switch_button, controls.press_switch_scene()))
    reset_button.on_clicked(lambda _e: apply(reset_button, controls.press_reset()))

    fig.canvas.mpl_connect("key_press_event", lambda e: pressed.add(e.key))
    fig.canvas.mpl_connect("key_release_event", lambda e: pressed.discard(e.key))
    fig.canvas.mpl_connect("scroll_event", lambda e: wheel.append(e.step))

    clock = {"last": time.perf_counter(), "fps_time": time.perf_counter(), "frames": 0}

    def frame(_index):
        now = time.perf_counter()
        elapsed = now - clock["last"]
        clock["last"] = now

        camera.update(elapsed, pressed, wheel)
        wheel.clear()
        if controls.refresh():
            set_limits()
        positions = controls.step(dt)
        particles.set_data_3d(positions[:, 0], positions[:, 1], positions[:, 2])
        boundary.set_data_3d(*_boundary_polyline(sim))

        elev, azim = _view_angles(camera)
        ax.view_init(elev=elev, azim=azim, vertical_axis="y")
        ax.set_box_aspect(tuple(float(v) for v in sim.tank), zoom=3.0 / camera.distance)

        clock["frames"] += 1
        span = now - clock["fps_time"]
        if span >= FPS_REFRESH:
            fps_text.set_text(f"FPS: {clock['frames'] / span:.1f}")
            clock["frames"] = 0
            clock["fps_time"] = now
        return particles, boundary, fps_text

    animation = FuncAnimation(fig, frame, interval=1, cache_frame_data=False)
    plt.show()
    del animation
    return 0


def main(argv=None):
    """Run the simulation; returns the exit status."""
    args = parse_args(argv)
    simulator = Simulator()
    simulator.scene_id = args.scene
    controls = Controls(simulator)
    if args.steps is not None:
        return _run_headless(controls, args.steps, args.dt)
    return _run_viewer(controls, args.dt)


if __name__ == "__main__":
    raise SystemExit(main())