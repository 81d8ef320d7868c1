# backend/floodwatch/geometry.py
from typing import List, Sequence, Tuple

import numpy as np

EPS_AREA = 1e-12


def polygon_centroid(points: Sequence[Tuple[float, float]]) -> Tuple[float, float]:
    """
    Area-weighted centroid of a closed (lat, lon) ring, planar approximation.
    Degenerate rings fall back to the vertex mean.
    """
    pts = np.asarray(points, dtype=float)
    if pts.ndim != 2 or pts.shape[0] == 0 or pts.shape[1] != 2:
        raise ValueError("polygon must be a list of (lat, lon) pairs")
    if len(pts) > 1 and np.allclose(pts[0], pts[-1]):
        pts = pts[:-1]

    x, y = pts[:, 0], pts[:, 1]
    x1, y1 = np.roll(x, -1), np.roll(y, -1)
    cross = x * y1 - x1 * y
    area = cross.sum() / 2.0
    if abs(area) < EPS_AREA:
        return float(x.mean()), float(y.mean())
    cx = ((x + x1) * cross).sum() / (6.0 * area)
    cy = ((y + y1) * cross).sum() / (6.0 * area)
    return float(cx), float(cy)


def close_ring(points: Sequence[Tuple[float, float]]) -> List[Tuple[float, float]]:
    ring = [(float(a), float(b)) for a, b in points]
    if ring and ring[0] != ring[-1]:
        ring.append(ring[0])
    return ring
