"""Position-based fluid solver working on particles in a box-shaped tank."""

from __future__ import annotations

import math

import numpy as np

INV_PI = 0.318301

_F = np.float32

# Neighbouring grid cells, visited in x-major order.
_STENCIL = np.array(
    [(i, j, k) for i in (-1, 0, 1) for j in (-1, 0, 1) for k in (-1, 0, 1)],
    dtype=np.intp,
)

# Artificial pressure (tensile instability correction) parameters.
_S_CORR_K = _F(1e-5)
_S_CORR_N = 4

_REST_FACTOR = _F(INV_PI * 315.0 * 5.0 * 5.0 * 5.0 / (64.0 * 9.0 * 9.0 * 9.0))

_BASE_COLOR = (0.0, 30.0 / 255.0, 1.0)

_SCENES = {
    0: ((1.0, 2.0, 1.0), (0.8, 0.8, 0.3), (0.5, 1.0, 0.7)),
    1: ((2.0, 1.0, 0.5), (0.4, 0.6, 1.0), (0.0, 0.0, 0.5)),
}


def _vec(x, y, z):
    return np.array([x, y, z], dtype=_F)


def _poly6(r, h):
    r = np.asarray(r, dtype=_F)
    h = _F(h)
    r2 = np.sum(r * r, axis=-1, dtype=_F)
    h2 = h * h
    diff = h2 - r2
    coeff = _F(315.0 * INV_PI / 64.0)
    h4 = h2 * h2
    h9 = h4 * h4 * h
    value = coeff * diff * diff * diff / h9
    return np.where(diff < 0, _F(0.0), value).astype(_F)


def _grad_spiky(r, h):
    r = np.asarray(r, dtype=_F)
    h = _F(h)
    r2 = np.sum(r * r, axis=-1, dtype=_F)
    h2 = h * h
    r_norm = np.sqrt(r2)
    diff = h - r_norm
    h3 = h * h * h
    h6 = h3 * h3
    coeff = _F(-45.0 * INV_PI)
    scale = coeff * diff * diff / (h6 * np.maximum(r_norm, _F(1e-24)))
    scale = np.where(r2 > h2, _F(0.0), scale).astype(_F)
    return (scale[..., None] * r).astype(_F)


def poly6(r, h):
    """Poly6 smoothing kernel of offset(s) ``r`` (last axis of length 3) with support ``h``."""
    value = _poly6(r, h)
    return float(value) if value.ndim == 0 else value


def grad_spiky(r, h):
    """Gradient of the spiky kernel for offset(s) ``r`` with support ``h``."""
    return _grad_spiky(r, h)


def _sum_rows(owner, values, n):
    out = np.zeros((n, 3), dtype=np.float64)
    np.add.at(out, owner, values)
    return out.astype(_F)


class Simulator:
    """Particle fluid in a tank, advanced with position-based dynamics.

    The scene is built by :meth:`reset_system`; until then the simulator holds
    no particles and cannot be stepped.
    """

    def __init__(self):
        empty = np.zeros((0, 3), dtype=_F)
        self.position = empty.copy()
        self.velocity = empty.copy()
        self.color = empty.copy()

        self._predicted = empty.copy()
        self._nbr_owner = np.zeros(0, dtype=np.intp)
        self._nbr_index = np.zeros(0, dtype=np.intp)
        self._cells = np.zeros(3, dtype=np.intp)

        self.scene_id = 0
        self.scene_changed = True
        self.tank = np.zeros(3, dtype=_F)
        self.rel_water = np.zeros(3, dtype=_F)
        self.offset = np.zeros(3, dtype=_F)
        self.slide_pos = 0.0
        self.slide_vel = 0.0
        self.slide_dir = 0

        self.num_sphere = 0
        self.radius = 0.015

        self.rest_density = 0.0
        self.num = 9
        self.ratio = 3.0
        self.h = 0.0

        self.solver_iteration = 5
        self.relaxation = 1e3
        self.damping = 0.999
        self.gravity = _vec(0.0, -9.81, 0.0)

    @property
    def num_cell(self):
        return int(np.prod(self._cells))

    # -- scene -------------------------------------------------------------

    def reset_system(self):
        """Rebuild the particle block; pick up a new scene if one was selected."""
        if self.scene_changed:
            scene = _SCENES.get(self.scene_id)
            if scene is not None:
                tank, rel_water, offset = scene
                self.tank = _vec(*tank)
                self.rel_water = _vec(*rel_water)
                self.offset = _vec(*offset)
            self.slide_pos = 1.0
            self.slide_vel = 1.0
            self.slide_dir = -1
        self._setup_scene()

    def _setup_scene(self):
        tank = np.asarray(self.tank, dtype=_F)
        rel = np.asarray(self.rel_water, dtype=_F)
        offset = np.asarray(self.offset, dtype=_F)
        radius = _F(self.radius)

        base = -tank * _F(0.5) + offset * (_F(1.0) - rel) * tank

        dx = _F(2.0) * radius
        dy = _F(math.sqrt(3.0)) / _F(2.0) * dx
        dz = dx
        spacing = np.array([dx, dy, dz], dtype=_F)
        num_x, num_y, num_z = np.floor(rel * tank / spacing).astype(np.intp)

        h = radius * _F(self.ratio)
        self.h = float(h)
        self._cells = np.ceil(tank / h).astype(np.intp) + 2
        self.num_sphere = int(num_x * num_y * num_z)
        self.rest_density = float(_REST_FACTOR * _F(self.num) / (h * h * h))

        i, j, k = (
            a.ravel()
            for a in np.meshgrid(
                np.arange(num_x), np.arange(num_y), np.arange(num_z), indexing="ij"
            )
        )
        shift = np.where(j % 2 == 0, _F(0.0), radius).astype(_F)
        points = np.stack(
            [
                radius + dx * i.astype(_F) + shift,
                radius + dy * j.astype(_F),
                radius + dz * k.astype(_F) + shift,
            ],
            axis=1,
        ).astype(_F)

        self.position = (points + base).astype(_F).reshape(-1, 3)
        self.velocity = np.zeros_like(self.position)
        self.color = np.tile(np.array(_BASE_COLOR, dtype=_F), (self.num_sphere, 1))
        self._predicted = self.position.copy()
        self._nbr_owner = np.zeros(0, dtype=np.intp)
        self._nbr_index = np.zeros(0, dtype=np.intp)

    # -- stepping ----------------------------------------------------------

    def simulate_timestep(self, dt):
        """Advance the fluid by ``dt`` seconds."""
        if self.h <= 0.0:
            raise RuntimeError("scene has not been set up; call reset_system() first")
        if dt <= 0:
            raise ValueError(f"time step must be positive, got {dt!r}")
        if self.scene_id == 1:
            self.slide_pos += self.slide_dir * self.slide_vel * dt
            if self.slide_pos > 1.0:
                self.slide_dir = -1
                self.slide_pos = 2.0 - self.slide_pos
            elif self.slide_pos < 0.5:
                self.slide_dir = 1
                self.slide_pos = 1.0 - self.slide_pos
        dt = _F(dt)
        self._integrate(dt)
        self._detect_neighbors()
        for _ in range(self.solver_iteration):
            self._constraint_solve()
        self._velocity_update(dt)

    def update_particle_colors(self):
        """Tint particles by how crowded their neighbourhood is."""
        counts = np.bincount(self._nbr_owner, minlength=self.num_sphere)[: self.num_sphere]
        rel = np.clip(np.sqrt(counts.astype(_F) / _F(13.0)), _F(0.7), _F(1.0)).astype(_F)
        self.color[:, 0] = _F(1.0) - rel
        self.color[:, 1] = _F(1.0) - (_F(1.0) - _F(30.0 / 255.0)) * rel

    def _integrate(self, dt):
        self.velocity += np.asarray(self.gravity, dtype=_F) * dt
        self._predicted += self.velocity * dt

    def _handle_collisions(self):
        half = np.asarray(self.tank, dtype=_F) * _F(0.5)
        radius = _F(self.radius)
        lower = -half + radius
        upper = np.array(
            [half[0] * _F(self.slide_pos) - radius, half[1] - radius, half[2] - radius],
            dtype=_F,
        )
        np.minimum(np.maximum(self._predicted, lower), upper, out=self._predicted)

    def _grid_coords(self, points):
        half = np.asarray(self.tank, dtype=_F) * _F(0.5)
        scaled = np.floor((points + half) / _F(self.h))
        return np.clip(np.nan_to_num(scaled), 0, None).astype(np.intp) + 1

    def _cell_keys(self, coords):
        _, cy, cz = self._cells
        return coords[:, 0] * cy * cz + coords[:, 1] * cz + coords[:, 2]

    def _detect_neighbors(self):
        self._handle_collisions()
        pred = self._predicted
        n = self.num_sphere
        ids = np.arange(n, dtype=np.intp)
        hh = _F(self.h) * _F(self.h)

        coords = self._grid_coords(pred)
        keys = self._cell_keys(coords)
        # Cell-major table; within a cell, later particles come first.
        table = np.lexsort((-ids, keys))
        counts = np.bincount(keys, minlength=self.num_cell)
        start = np.zeros(self.num_cell + 1, dtype=np.intp)
        start[1:] = np.cumsum(counts[: self.num_cell])

        owners = []
        others = []
        for step in _STENCIL:
            cell = self._cell_keys(coords + step)
            lo = start[cell]
            span = start[cell + 1] - lo
            owner = np.repeat(ids, span)
            slot = np.repeat(lo - (np.cumsum(span) - span), span) + np.arange(
                int(span.sum()), dtype=np.intp
            )
            cand = table[slot]
            diff = pred[cand] - pred[owner]
            dist2 = np.einsum("ij,ij->i", diff, diff)
            keep = (cand != owner) & (dist2 < hh)
            owners.append(owner[keep])
            others.append(cand[keep])

        owner = np.concatenate(owners) if owners else np.zeros(0, dtype=np.intp)
        other = np.concatenate(others) if others else np.zeros(0, dtype=np.intp)
        order = np.argsort(owner, kind="stable")
        self._nbr_owner = owner[order]
        self._nbr_index = other[order]

    def _constraint_solve(self):
        pred = self._predicted
        n = self.num_sphere
        h = _F(self.h)
        rest = _F(self.rest_density)
        owner, other = self._nbr_owner, self._nbr_index

        r = pred[owner] - pred[other]
        kernel = _poly6(r, h)
        density = np.bincount(owner, weights=kernel, minlength=n)[:n].astype(_F)
        constraint = density / rest - _F(1.0)

        grad = _grad_spiky(r, h)
        neighbor_grad = grad / rest
        self_grad = _sum_rows(owner, grad, n) / rest
        denominator = (
            np.bincount(
                owner, weights=np.einsum("ij,ij->i", neighbor_grad, neighbor_grad), minlength=n
            )[:n].astype(_F)
            + np.einsum("ij,ij->i", self_grad, self_grad)
            + _F(self.relaxation)
        )
        lam = (-constraint / denominator).astype(_F)

        w = _poly6(_vec(0.3 * h, 0.0, 0.0), h)
        s_corr = -_S_CORR_K * (kernel / w) ** _S_CORR_N
        weight = (lam[owner] + lam[other] + s_corr).astype(_F)
        delta = _sum_rows(owner, weight[:, None] * grad, n) / rest

        self._predicted += delta.astype(_F)
        self._handle_collisions()

    def _velocity_update(self, dt):
        self.velocity = (
            _F(self.damping) * (self._predicted - self.position) / dt
        ).astype(_F)
        self.position = self._predicted.copy()