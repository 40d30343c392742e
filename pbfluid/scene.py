"""Interactive pieces around the solver: buttons, tank outline and orbit camera."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass
from typing import Iterable

import numpy as np

from pbfluid.simulator import Simulator

Color = tuple[float, float, float]

NORMAL_BUTTON: Color = (0.15, 0.15, 0.15)
HOVERED_BUTTON: Color = (0.25, 0.25, 0.25)
WHITE: Color = (1.0, 1.0, 1.0)
BLACK: Color = (0.0, 0.0, 0.0)
GREEN: Color = (0.0, 128.0 / 255.0, 0.0)
RED: Color = (1.0, 0.0, 0.0)
PARTICLE_COLOR: Color = (0.0, 30.0 / 255.0, 1.0)

PAUSE_LABEL_RUNNING = "Stop Simulation"
PAUSE_LABEL_PAUSED = "Continue"
SWITCH_SCENE_LABEL = "Switch Scene"
RESET_LABEL = "Reset Simulation"

NUM_SCENES = 2

# Index pairs into the vertices returned by boundary_vertices(): the tank's
# twelve edges followed by the outline of the movable wall.
BOUNDARY_EDGES: tuple[tuple[int, int], ...] = (
    (0, 1), (1, 2), (2, 3), (3, 0),
    (4, 5), (5, 6), (6, 7), (7, 4),
    (0, 4), (1, 5), (2, 6), (3, 7),
    (8, 9), (9, 10), (10, 11), (11, 8),
)


class Interaction(enum.Enum):
    """State of the pointer relative to a button."""

    NONE = "none"
    HOVERED = "hovered"
    PRESSED = "pressed"


@dataclass(frozen=True)
class ButtonStyle:
    """Fill and border colour of a button."""

    background: Color
    border: Color


def button_style(interaction):
    """Style of a plain button in the given interaction state."""
    interaction = Interaction(interaction)
    if interaction is Interaction.PRESSED:
        return ButtonStyle(GREEN, GREEN)
    if interaction is Interaction.HOVERED:
        return ButtonStyle(HOVERED_BUTTON, WHITE)
    return ButtonStyle(NORMAL_BUTTON, BLACK)


def boundary_vertices(tank, slide_pos):
    """Corners of the tank (0-7) and of the sliding wall (8-11), shape (12, 3)."""
    hx, hy, hz = (float(v) / 2.0 for v in tank)
    wall = hx * float(slide_pos)
    return np.array(
        [
            [-hx, -hy, -hz],
            [hx, -hy, -hz],
            [hx, hy, -hz],
            [-hx, hy, -hz],
            [-hx, -hy, hz],
            [hx, -hy, hz],
            [hx, hy, hz],
            [-hx, hy, hz],
            [wall, -hy, hz],
            [wall, -hy, -hz],
            [wall, hy, -hz],
            [wall, hy, hz],
        ],
        dtype=np.float32,
    )


class CameraController:
    """Orbit camera around the origin, steered by arrow keys and the wheel.

    Keys are given by name: ``"left"``, ``"right"``, ``"up"`` and ``"down"``.
    """

    ROTATION_SPEED = 1.0
    PITCH_SPEED = 1.0
    MIN_DISTANCE = 2.0
    MAX_DISTANCE = 50.0
    PITCH_LIMIT = math.pi / 2 - 0.1

    def __init__(self):
        self.pitch = 0.0
        self.yaw = 0.0
        self.distance = 3.0

    def update(self, dt, pressed, wheel):
        """Apply one frame of input: ``dt`` seconds, held keys and wheel steps."""
        for step in wheel:
            self.distance = min(
                max(self.distance - float(step), self.MIN_DISTANCE), self.MAX_DISTANCE
            )
        keys = set(pressed)
        if "left" in keys:
            self.yaw += self.ROTATION_SPEED * dt
        if "right" in keys:
            self.yaw -= self.ROTATION_SPEED * dt
        if "up" in keys:
            self.pitch += self.PITCH_SPEED * dt
        if "down" in keys:
            self.pitch -= self.PITCH_SPEED * dt
        self.pitch = min(max(self.pitch, -self.PITCH_LIMIT), self.PITCH_LIMIT)

    def eye(self):
        """Camera position; it always looks at the origin with +y up."""
        cp, sp = math.cos(self.pitch), math.sin(self.pitch)
        cy, sy = math.cos(self.yaw), math.sin(self.yaw)
        d = self.distance
        return np.array([d * cp * sy, -d * sp, d * cp * cy])


class Controls:
    """Button actions and per-frame driving of a simulator."""

    def __init__(self, simulator: Simulator):
        self.simulator = simulator
        self.running = True
        self.pause_label = PAUSE_LABEL_RUNNING
        simulator.reset_system()

    def press_pause_resume(self):
        """Toggle running; returns the button's new style."""
        self.running = not self.running
        if self.running:
            self.pause_label = PAUSE_LABEL_RUNNING
            return ButtonStyle(GREEN, GREEN)
        self.pause_label = PAUSE_LABEL_PAUSED
        return ButtonStyle(RED, RED)

    def press_switch_scene(self):
        """Select the next scene; it is built on the next refresh."""
        sim = self.simulator
        sim.scene_id = (sim.scene_id + 1) % NUM_SCENES
        sim.scene_changed = True
        return button_style(Interaction.PRESSED)

    def press_reset(self):
        """Put the particles of the current scene back at their start."""
        self.simulator.reset_system()
        return button_style(Interaction.PRESSED)

    def refresh(self):
        """Rebuild the scene if one was selected; True when that happened."""
        sim = self.simulator
        if not sim.scene_changed:
            return False
        sim.reset_system()
        sim.scene_changed = False
        return True

    def step(self, dt):
        """Advance the fluid if running and return the particle positions."""
        if self.running:
            self.simulator.simulate_timestep(dt)
        return self.simulator.position


def positions_of(items: Iterable[np.ndarray]):
    """Stack vectors into an (n, 3) array."""
    return np.array(list(items), dtype=np.float32).reshape(-1, 3)