#!/usr/bin/env python
"""
Force-directed label placement for the correlation plot.

Every data point gets an anchor fixed at its scaled position and a label
that starts on top of it. Labels are tethered to their anchors by a short
spring, pushed apart by a many-body charge and nudged toward the viewport
centre, then clamped inside the viewport after each tick. Integration
follows d3-force: alpha cools geometrically from 1 toward alpha_target and
the run ends once it drops below alpha_min.

Node state lives in numpy arrays indexed by a stable integer (anchors
0..n-1, labels n..2n-1). Listeners only ever see LayoutSnapshot copies.
"""

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from . import config
from .models import DataPoint
from .results import ResultCode
from .scales import LinearScale

logger = logging.getLogger(__name__)

DISTANCE_MIN2 = 1.0
JIGGLE = 1e-6


class NodeKind(str, Enum):
    ANCHOR = "anchor"
    LABEL = "label"


@dataclass(frozen=True)
class NodePosition:
    id: str
    kind: NodeKind
    x: float
    y: float


@dataclass(frozen=True)
class LayoutSnapshot:
    tick: int
    alpha: float
    nodes: Tuple[NodePosition, ...]

    def anchors(self) -> Dict[str, NodePosition]:
        return {node.id: node for node in self.nodes if node.kind is NodeKind.ANCHOR}

    def labels(self) -> Dict[str, NodePosition]:
        return {node.id: node for node in self.nodes if node.kind is NodeKind.LABEL}

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [{"Id": node.id, "Kind": node.kind.value, "X": node.x, "Y": node.y} for node in self.nodes]
        )


@dataclass(frozen=True)
class Margins:
    top: float = 20.0
    right: float = 30.0
    bottom: float = 40.0
    left: float = 50.0


@dataclass(frozen=True)
class LayoutResult:
    code: ResultCode
    snapshot: Optional[LayoutSnapshot] = None
    x_scale: Optional[LinearScale] = None
    y_scale: Optional[LinearScale] = None

    @property
    def ok(self) -> bool:
        return self.code is ResultCode.OK


Listener = Callable[[LayoutSnapshot], None]


def _padded(values: Sequence[float], pad: float = 0.05) -> Tuple[float, float]:
    lo, hi = min(values), max(values)
    span = (hi - lo) or 1.0
    return lo - span * pad, hi + span * pad


def build_scales(points: Sequence[DataPoint], width: float, height: float,
                 margins: Optional[Margins] = None) -> Tuple[LinearScale, LinearScale]:
    """Scales mapping data coordinates into the viewport inside the margins. Y grows upward."""
    margins = margins or Margins(**config.MARGINS)
    x_domain = _padded([p.x for p in points]) if points else (0.0, 1.0)
    y_domain = _padded([p.y for p in points]) if points else (0.0, 1.0)
    x_scale = LinearScale(x_domain, (margins.left, width - margins.right))
    y_scale = LinearScale(y_domain, (height - margins.bottom, margins.top))
    return x_scale, y_scale


class ForceLabelLayout:
    """Iterative label placement around fixed anchors. Drive it with tick() or run()."""

    EVENTS = ("tick", "end")

    def __init__(self, points: Sequence[DataPoint], x_scale: LinearScale, y_scale: LinearScale,
                 width: float, height: float,
                 radius: float = config.NODE_RADIUS,
                 link_distance: float = config.LINK_DISTANCE,
                 link_strength: float = config.LINK_STRENGTH,
                 charge: float = config.CHARGE,
                 center_strength: float = config.CENTER_STRENGTH,
                 alpha_min: float = config.ALPHA_MIN,
                 alpha_decay: Optional[float] = None,
                 alpha_target: float = 0.0,
                 velocity_decay: float = config.VELOCITY_DECAY,
                 max_ticks: Optional[int] = None,
                 seed: Optional[int] = config.LAYOUT_SEED):
        if not points:
            raise ValueError("ForceLabelLayout needs at least one data point")
        ids = [p.id for p in points]
        if len(set(ids)) != len(ids):
            raise ValueError("Data point ids must be unique")
        if width <= 2 * radius or height <= 2 * radius:
            raise ValueError(f"Viewport {width}x{height} is too small for radius {radius}")
        if not 0 < alpha_min < 1:
            raise ValueError("alpha_min must be between 0 and 1")
        if alpha_target >= alpha_min and max_ticks is None:
            raise ValueError("alpha_target >= alpha_min never converges without max_ticks")

        self.points: Tuple[DataPoint, ...] = tuple(points)
        self.x_scale, self.y_scale = x_scale, y_scale
        self.width, self.height, self.radius = float(width), float(height), float(radius)
        self.link_distance = link_distance
        self.link_strength = link_strength
        self.charge = charge
        self.center_strength = center_strength
        self.alpha_min = alpha_min
        self.alpha_decay = 1 - alpha_min ** (1 / 300) if alpha_decay is None else alpha_decay
        self.alpha_target = alpha_target
        self.velocity_decay = velocity_decay
        self.max_ticks = max_ticks
        self._rng = np.random.default_rng(seed)

        n = len(self.points)
        self.size = n
        self.ids: List[str] = ids + ids
        self.kinds: List[NodeKind] = [NodeKind.ANCHOR] * n + [NodeKind.LABEL] * n

        self._anchor_pos = np.array([[x_scale(p.x), y_scale(p.y)] for p in self.points], dtype=float)
        self._pos = np.vstack([self._anchor_pos, self._anchor_pos])
        self._vel = np.zeros_like(self._pos)
        self._fixed = np.arange(2 * n) < n

        anchor_index = {pid: i for i, pid in enumerate(ids)}
        label_index = {pid: n + i for i, pid in enumerate(ids)}
        self._links = np.array([(anchor_index[pid], label_index[pid]) for pid in ids], dtype=int)
        counts = np.bincount(self._links.ravel(), minlength=2 * n)
        source, target = self._links[:, 0], self._links[:, 1]
        self._link_bias = counts[source] / (counts[source] + counts[target])

        self.alpha = 1.0
        self.tick_count = 0
        self._stopped = False
        self._finished = False
        # Guards _stopped and the listener calls it gates, so stop() from another thread
        # waits for an in-flight listener. Reentrant so listeners may call stop().
        self._lock = threading.RLock()
        self._listeners: Dict[str, List[Listener]] = {event: [] for event in self.EVENTS}
        logger.debug("Label layout created for %d points", n)

    # --- Events ---

    def on(self, event: str, listener: Listener) -> "ForceLabelLayout":
        if event not in self._listeners:
            raise ValueError(f"Unknown layout event '{event}', expected one of {self.EVENTS}")
        self._listeners[event].append(listener)
        return self

    def _emit(self, event: str, snapshot: LayoutSnapshot) -> None:
        for listener in list(self._listeners[event]):
            with self._lock:
                if self._stopped:
                    return
                listener(snapshot)

    # --- State ---

    @property
    def running(self) -> bool:
        return not (self._stopped or self._finished)

    @property
    def finished(self) -> bool:
        return self._finished

    @property
    def stopped(self) -> bool:
        return self._stopped

    def snapshot(self) -> LayoutSnapshot:
        nodes = tuple(
            NodePosition(node_id, kind, float(x), float(y))
            for node_id, kind, (x, y) in zip(self.ids, self.kinds, self._pos)
        )
        return LayoutSnapshot(self.tick_count, float(self.alpha), nodes)

    # --- Simulation ---

    def tick(self) -> Optional[LayoutSnapshot]:
        """Advances one step. Returns the new snapshot, or None once the run is over."""
        if not self.running:
            return None

        self.tick_count += 1
        self.alpha += (self.alpha_target - self.alpha) * self.alpha_decay
        self._apply_links(self.alpha)
        self._apply_charge(self.alpha)
        self._apply_centering()
        self._integrate()
        self._clamp_labels()

        snapshot = self.snapshot()
        self._emit("tick", snapshot)

        converged = self.alpha < self.alpha_min
        capped = self.max_ticks is not None and self.tick_count >= self.max_ticks
        if converged or capped:
            with self._lock:
                if self._stopped:
                    return snapshot
                self._finished = True
                logger.debug("Label layout finished after %d ticks (alpha=%.4f)", self.tick_count, self.alpha)
                self._emit("end", snapshot)
        return snapshot

    def run(self) -> LayoutSnapshot:
        """Ticks until convergence or stop() and returns the last positions."""
        while self.tick() is not None:
            pass
        return self.snapshot()

    def stop(self) -> None:
        """Stops the run. Idempotent and thread-safe; no listener fires after this returns."""
        with self._lock:
            if self._stopped:
                return
            self._stopped = True
            if not self._finished:
                logger.debug("Label layout stopped at tick %d", self.tick_count)

    def _jiggle(self, size) -> np.ndarray:
        return (self._rng.random(size) - 0.5) * JIGGLE

    def _apply_links(self, alpha: float) -> None:
        source, target = self._links[:, 0], self._links[:, 1]
        delta = (self._pos[target] + self._vel[target]) - (self._pos[source] + self._vel[source])
        zero = delta == 0
        delta[zero] = self._jiggle(int(zero.sum()))
        distance = np.hypot(delta[:, 0], delta[:, 1])
        k = (distance - self.link_distance) / distance * alpha * self.link_strength
        delta *= k[:, np.newaxis]
        bias = self._link_bias[:, np.newaxis]
        np.add.at(self._vel, target, -delta * bias)
        np.add.at(self._vel, source, delta * (1 - bias))

    def _apply_charge(self, alpha: float) -> None:
        # delta[i, j] points from node i to node j
        delta = self._pos[np.newaxis, :, :] - self._pos[:, np.newaxis, :]
        off_diagonal = ~np.eye(len(self._pos), dtype=bool)
        for axis in (0, 1):
            component = delta[..., axis]
            zero = (component == 0) & off_diagonal
            component[zero] = self._jiggle(int(zero.sum()))
        dist_sq = (delta ** 2).sum(axis=-1)
        dist_sq = np.where(dist_sq < DISTANCE_MIN2, np.sqrt(DISTANCE_MIN2 * dist_sq), dist_sq)
        np.fill_diagonal(dist_sq, np.inf)
        weight = self.charge * alpha / dist_sq
        self._vel += (delta * weight[..., np.newaxis]).sum(axis=1)

    def _apply_centering(self) -> None:
        center = np.array([self.width / 2, self.height / 2])
        self._pos -= (self._pos.mean(axis=0) - center) * self.center_strength

    def _integrate(self) -> None:
        movable = ~self._fixed
        self._vel[movable] *= 1 - self.velocity_decay
        self._pos[movable] += self._vel[movable]
        self._pos[self._fixed] = self._anchor_pos
        self._vel[self._fixed] = 0.0

    def _clamp_labels(self) -> None:
        movable = ~self._fixed
        r = self.radius
        self._pos[movable, 0] = np.clip(self._pos[movable, 0], r, self.width - r)
        self._pos[movable, 1] = np.clip(self._pos[movable, 1], r, self.height - r)


def run_layout(points: Sequence[DataPoint], width: float = config.VIEWPORT_WIDTH,
               height: float = config.VIEWPORT_HEIGHT, margins: Optional[Margins] = None,
               **params) -> LayoutResult:
    """Runs a layout to convergence. An empty point set is reported, not simulated."""
    if not points:
        logger.info("No data points to lay out")
        return LayoutResult(ResultCode.DEGENERATE_DATASET)
    x_scale, y_scale = build_scales(points, width, height, margins)
    layout = ForceLabelLayout(points, x_scale, y_scale, width, height, **params)
    return LayoutResult(ResultCode.OK, layout.run(), x_scale, y_scale)


class LabelLayoutController:
    """Owns the layout run of one visualization; starting a new run cancels the previous one."""

    def __init__(self):
        self.layout: Optional[ForceLabelLayout] = None

    @property
    def running(self) -> bool:
        return self.layout is not None and self.layout.running

    def start(self, points: Sequence[DataPoint], x_scale: LinearScale, y_scale: LinearScale,
              width: float, height: float, on_tick: Optional[Listener] = None,
              on_end: Optional[Listener] = None, **params) -> Optional[ForceLabelLayout]:
        self.cancel()
        if not points:
            logger.info("No data points; label layout not started")
            return None
        self.layout = ForceLabelLayout(points, x_scale, y_scale, width, height, **params)
        if on_tick is not None:
            self.layout.on("tick", on_tick)
        if on_end is not None:
            self.layout.on("end", on_end)
        return self.layout

    def cancel(self) -> None:
        if self.layout is not None:
            self.layout.stop()
            self.layout = None
