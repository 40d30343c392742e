# pbfluid

pbfluid is a position-based fluid (PBF) simulator. A block of water particles
is released inside a box-shaped tank. Each time step does four things:

1. Gravity moves the particles.
2. The particles are clamped to the tank walls.
3. Neighbours are found with a uniform grid.
4. Positions are corrected over several solver iterations so that the density
   stays near its rest value.

The fluid that results settles, splashes and sloshes.

There are two built-in scenes:

- **Scene 0** is a tall tank (1 × 2 × 1) with a slab of water against one
  side. The slab collapses under gravity.
- **Scene 1** is a wide, shallow tank (2 × 1 × 0.5). Its right wall slides back
  and forth between half and full width, which drives waves through the water.

## Installation

```
pip install .
```

To install the test dependencies and run the tests:

```
pip install ".[test]"
pytest
```

## The `pbfluid` command

```
pbfluid [--dt SECONDS] [--scene {0,1}] [--steps N]
```

| Option | Meaning |
| --- | --- |
| `--dt` | Time step in seconds. It must be positive. The default is `0.005` (1/200). |
| `--scene` | The scene to start with, `0` or `1`. The default is `0`. |
| `--steps` | Run this many steps without a window, then exit. |

### Viewer

With no `--steps`, the command opens a matplotlib 3D window. It shows the
particles and the outline of the tank, including the sliding wall. A frame
rate counter sits in the top right corner.

- **Arrow keys** orbit the camera. Left and right change yaw. Up and down
  change pitch, which stays just short of straight up or down.
- **Mouse wheel** zooms. The camera distance stays between 2 and 50.
- **Stop Simulation / Continue** pauses and resumes the simulation.
- **Switch Scene** moves to the other scene and rebuilds its particles.
- **Reset Simulation** puts the particles of the current scene back in their
  starting layout.

### Headless runs

`--steps N` runs the simulation without a window. The first line printed gives
the scene and its particle count. After that, one line is printed per step,
with the simulated time and the mean height of the particles:

```
$ pbfluid --steps 2
scene 0: ... particles
step 1: t=0.005s mean_y=...
step 2: t=0.010s mean_y=...
```

## Using the library

```python
from pbfluid.simulator import Simulator

sim = Simulator()
sim.reset_system()            # build the current scene (scene 0 by default)
for _ in range(100):
    sim.simulate_timestep(1 / 200)

print(sim.num_sphere, sim.position[:3])
```

### `pbfluid.simulator`

`Simulator` keeps its particle data as `float32` NumPy arrays of shape `(n, 3)`:
`position`, `velocity` and `color`.

- `reset_system()` lays out the particles of the current scene. If
  `scene_changed` is set, it first loads the tank size and water block for
  `scene_id`, and it also resets the sliding wall.
- `simulate_timestep(dt)` advances the fluid by `dt` seconds.
  - It raises `RuntimeError` if the scene has not been built yet.
  - It raises `ValueError` if `dt` is not positive.
- `update_particle_colors()` tints each particle by how many neighbours it had
  in the last step.

Public attributes you can read or set:

- `scene_id` and `scene_changed` choose the scene.
- `tank` is the tank size.
- `slide_pos` is the position of the sliding wall, as a fraction of the
  tank's half-width.
- `radius` is the particle radius.
- `num_sphere` is the particle count.
- The solver settings are `solver_iteration`, `relaxation`, `damping` and
  `gravity`.

The module also exports two SPH kernels: `poly6(r, h)` and
`grad_spiky(r, h)`. Both take a single offset or an array of offsets whose
last axis has length 3.

- `poly6` returns a float for a single offset, and an array otherwise.
- `grad_spiky` returns gradient vectors of the same shape as `r`.

### `pbfluid.scene`

This module holds the interactive logic. It contains no drawing code.

- `Controls(simulator)` builds the simulator's scene and tracks whether the
  simulation is running.
  - `press_pause_resume()`, `press_switch_scene()` and `press_reset()` carry
    out the button actions, and each returns the button's new `ButtonStyle`.
  - `refresh()` rebuilds the scene after a switch. It returns `True` when a
    rebuild happened.
  - `step(dt)` advances the simulation if it is running, then returns the
    particle positions.
- `CameraController` is the orbit camera.
  - `update(dt, pressed, wheel)` takes the held key names (`"left"`,
    `"right"`, `"up"`, `"down"`) and the wheel steps.
  - `eye()` returns the camera position. The camera looks at the origin.
- `boundary_vertices(tank, slide_pos)` returns the 12 corner points of the
  tank outline and the sliding wall. `BOUNDARY_EDGES` lists which pairs of
  corners are joined by lines.
- `button_style(interaction)` returns the colours a button takes for an
  `Interaction` state: `NONE`, `HOVERED` or `PRESSED`.

### `pbfluid.app`

- `main(argv=None)` runs the command and returns its exit status.
- `parse_args(argv)` parses the command's options.

## Limitations

- The viewer draws particles as flat point markers in a matplotlib window. It
  does not render shaded spheres.
- Only the two built-in scenes are available.
- The simulation state cannot be saved or loaded.