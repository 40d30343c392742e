import math

import numpy as np
import pytest

from pbfluid.scene import (
    BLACK,
    BOUNDARY_EDGES,
    GREEN,
    HOVERED_BUTTON,
    NORMAL_BUTTON,
    RED,
    WHITE,
    ButtonStyle,
    CameraController,
    Controls,
    Interaction,
    boundary_vertices,
    button_style,
)
from pbfluid.simulator import Simulator


def make_controls():
    sim = Simulator()
    sim.radius = 0.05
    return Controls(sim)


def test_button_style_states():
    assert button_style(Interaction.NONE) == ButtonStyle(NORMAL_BUTTON, BLACK)
    assert button_style(Interaction.HOVERED) == ButtonStyle(HOVERED_BUTTON, WHITE)
    assert button_style(Interaction.PRESSED) == ButtonStyle(GREEN, GREEN)


def test_button_style_accepts_value():
    assert button_style("hovered") == button_style(Interaction.HOVERED)
    with pytest.raises(ValueError):
        button_style("clicked")


def test_boundary_vertices_corners_match_tank():
    tank = (2.0, 1.0, 0.5)
    v = boundary_vertices(tank, 1.0)
    assert v.shape == (12, 3)
    assert np.allclose(np.abs(v[:8]), np.array(tank) / 2)
    assert np.allclose(v[8:, 0], v[1, 0])


def test_boundary_vertices_wall_moves_with_slide():
    tank = (2.0, 1.0, 0.5)
    full = boundary_vertices(tank, 1.0)
    half = boundary_vertices(tank, 0.5)
    assert np.allclose(full[:8], half[:8])
    assert np.allclose(half[8:, 0] * 2, full[8:, 0])
    assert np.allclose(half[8:, 1:], full[8:, 1:])


def test_boundary_edges_are_axis_aligned_tank_edges():
    vertices = boundary_vertices((2.0, 1.0, 0.5), 0.75)
    assert len(BOUNDARY_EDGES) == 16
    for a, b in BOUNDARY_EDGES:
        diff = vertices[a] - vertices[b]
        assert np.count_nonzero(~np.isclose(diff, 0.0)) == 1


def test_camera_starts_on_z_axis():
    cam = CameraController()
    assert np.allclose(cam.eye(), [0.0, 0.0, 3.0])


@pytest.mark.parametrize("steps, expected", [([100.0], 2.0), ([-100.0], 50.0)])
def test_camera_distance_clamped(steps, expected):
    cam = CameraController()
    cam.update(0.0, [], steps)
    assert cam.distance == expected


def test_camera_pitch_clamped():
    cam = CameraController()
    cam.update(100.0, {"up"}, [])
    assert cam.pitch == pytest.approx(math.pi / 2 - 0.1)
    cam.update(1000.0, {"down"}, [])
    assert cam.pitch == pytest.approx(-(math.pi / 2 - 0.1))


def test_camera_yaw_follows_keys():
    cam = CameraController()
    cam.update(0.5, {"left"}, [])
    assert cam.yaw == pytest.approx(0.5)
    cam.update(0.5, {"right"}, [])
    assert cam.yaw == pytest.approx(0.0)


def test_camera_eye_at_distance():
    cam = CameraController()
    cam.update(0.7, {"left", "up"}, [-4.0])
    assert np.linalg.norm(cam.eye()) == pytest.approx(cam.distance)


def test_pause_resume_toggles():
    controls = make_controls()
    assert controls.running
    style = controls.press_pause_resume()
    assert not controls.running
    assert controls.pause_label == "Continue"
    assert style == ButtonStyle(RED, RED)
    style = controls.press_pause_resume()
    assert controls.running
    assert controls.pause_label == "Stop Simulation"
    assert style == ButtonStyle(GREEN, GREEN)


def test_step_while_paused_keeps_positions():
    controls = make_controls()
    before = controls.simulator.position.copy()
    controls.press_pause_resume()
    after = controls.step(0.005)
    assert np.array_equal(before, after)


def test_step_while_running_moves_particles_down():
    controls = make_controls()
    before = controls.simulator.position.copy()
    after = controls.step(0.005)
    assert after[:, 1].mean() < before[:, 1].mean()


def test_switch_scene_and_refresh():
    controls = make_controls()
    sim = controls.simulator
    assert controls.refresh() is True
    assert controls.refresh() is False
    controls.press_switch_scene()
    assert sim.scene_id == 1
    assert sim.scene_changed
    assert controls.refresh() is True
    assert not sim.scene_changed
    assert np.allclose(sim.tank, [2.0, 1.0, 0.5])
    controls.press_switch_scene()
    assert sim.scene_id == 0


def test_reset_restores_start():
    controls = make_controls()
    start = controls.simulator.position.copy()
    controls.step(0.005)
    controls.press_reset()
    assert np.array_equal(controls.simulator.position, start)