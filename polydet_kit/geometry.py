from typing import Union

import numpy as np


ArrayLike = Union[float, np.ndarray]

# Corner offsets as multiples of (w, h); order is top-left, top-right,
# bottom-right, bottom-left before rotation.
_CORNER_SIGNS = np.array(
    [
        [-0.5, -0.5],
        [0.5, -0.5],
        [0.5, 0.5],
        [-0.5, 0.5],
    ],
    dtype=np.float64,
)


def rotated_corners(cx: ArrayLike, cy: ArrayLike, w: ArrayLike, h: ArrayLike, theta: ArrayLike) -> np.ndarray:
    """
    Corners of a rectangle rotated by `theta` radians around its center.

    Inputs broadcast against each other, so scalars give a (4, 2) array and
    length-N vectors give (N, 4, 2). Points are (x, y).
    """

    cx, cy, w, h, theta = np.broadcast_arrays(
        *(np.asarray(v, dtype=np.float64) for v in (cx, cy, w, h, theta))
    )
    cos = np.cos(theta)[..., None]
    sin = np.sin(theta)[..., None]

    dx = _CORNER_SIGNS[:, 0] * w[..., None]
    dy = _CORNER_SIGNS[:, 1] * h[..., None]

    x = cx[..., None] + dx * cos - dy * sin
    y = cy[..., None] + dx * sin + dy * cos
    return np.stack([x, y], axis=-1)


def corners_envelope(corners: np.ndarray) -> np.ndarray:
    """
    Axis-aligned envelope of (..., 4, 2) (x, y) corners as [y1, x1, y2, x2].
    """

    corners = np.asarray(corners, dtype=np.float64)
    xs = corners[..., 0]
    ys = corners[..., 1]
    return np.stack([ys.min(axis=-1), xs.min(axis=-1), ys.max(axis=-1), xs.max(axis=-1)], axis=-1)
