"""CPU rendering of the uniform records produced by ViewState.

Stands in for the fragment shader: it consumes exactly the fixed-layout
records (and the orbit buffer) the core hands to the GPU path.
"""

import logging

import numpy as np
from PIL import Image

from .geometry import Region, Vec2, map_to_pixel, map_to_plane

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

HORIZON = 4.0
BASE_VIEW_HEIGHT = Region.default().height
COLOR_DENSITY = 0.03
COLOR_PHASES = np.array([0.0, 0.33, 0.67])


def _pixel_centres(width: int, height: int) -> Vec2:
    px, py = np.meshgrid(np.arange(width) + 0.5, np.arange(height) + 0.5)
    return Vec2(px, py)


def _colorize(smooth: np.ndarray, inside: np.ndarray, color_seed: float) -> np.ndarray:
    t = smooth * COLOR_DENSITY + color_seed
    rgb = 0.5 + 0.5 * np.cos(2 * np.pi * (t[..., None] + COLOR_PHASES))
    rgb[inside] = 0.0
    return (rgb * 255).astype(np.uint8)


def _smooth_counts(counts: np.ndarray, z_final: np.ndarray, iterations: int) -> np.ndarray:
    """Continuous escape count; points that never escaped keep `iterations`."""
    az = np.maximum(np.abs(z_final), HORIZON)
    smooth = counts + 1.0 - np.log(np.log(az)) / np.log(2.0)
    return np.where(counts < iterations, smooth, float(iterations))


def _escape_time(c: np.ndarray, iterations: int) -> tuple[np.ndarray, np.ndarray]:
    """Iterate z <- z^2 + c from z = c, dropping points as they escape."""
    flat_c = c.ravel()
    idx = np.arange(flat_c.size)
    zs = flat_c.copy()
    cs = flat_c.copy()
    counts = np.full(flat_c.size, iterations, dtype=np.int32)
    z_final = np.zeros(flat_c.size, dtype=np.complex128)

    for n in range(iterations):
        escaped = (zs.real ** 2 + zs.imag ** 2) > HORIZON ** 2
        if escaped.any():
            counts[idx[escaped]] = n
            z_final[idx[escaped]] = zs[escaped]
            keep = ~escaped
            idx, zs, cs = idx[keep], zs[keep], cs[keep]
            if idx.size == 0:
                break
        zs = zs * zs + cs

    return counts.reshape(c.shape), z_final.reshape(c.shape)


def _record_region(record: np.ndarray, prefix: str) -> Region:
    return Region(
        Vec2(*(float(v) for v in record[f"{prefix}_top_left"])),
        Vec2(*(float(v) for v in record[f"{prefix}_bottom_right"])),
    )


def _draw_selection(rgb: np.ndarray, draw: Region, select: Region):
    """Dim everything outside the selection and outline it."""
    if select == draw or draw.width == 0 or draw.height == 0:
        return
    height, width = rgb.shape[:2]
    sel = select.normalized()
    tl = map_to_pixel(sel.top_left, (width, height), draw)
    br = map_to_pixel(sel.bottom_right, (width, height), draw)
    x0, x1 = sorted((int(np.clip(tl.x, 0, width - 1)), int(np.clip(br.x, 0, width - 1))))
    y0, y1 = sorted((int(np.clip(tl.y, 0, height - 1)), int(np.clip(br.y, 0, height - 1))))

    outside = np.ones((height, width), dtype=bool)
    outside[y0:y1 + 1, x0:x1 + 1] = False
    rgb[outside] //= 2

    rgb[y0, x0:x1 + 1] = 255
    rgb[y1, x0:x1 + 1] = 255
    rgb[y0:y1 + 1, x0] = 255
    rgb[y0:y1 + 1, x1] = 255


def render_region(record: np.ndarray, width: int, height: int, color_seed: float = 0.0) -> np.ndarray:
    """Render the draw region of a uniform record, with the selection overlay."""
    draw = _record_region(record, "draw")
    select = _record_region(record, "select")
    iterations = int(record["iterations"])

    plane = map_to_plane(_pixel_centres(width, height), (width, height), draw)
    c = plane.x + 1j * plane.y
    counts, z_final = _escape_time(c, iterations)
    rgb = _colorize(_smooth_counts(counts, z_final, iterations), counts >= iterations, color_seed)

    _draw_selection(rgb, draw, select)
    return rgb


def render_perturbation(
    record: np.ndarray,
    orbit: np.ndarray,
    iterations: int,
    width: int,
    height: int,
    color_seed: float = 0.0,
) -> np.ndarray:
    """Render around a reference orbit using perturbation theory.

    `orbit` holds the doubled reference points X_n = 2 * Z_n. Each pixel
    iterates its offset delta from the reference:
        delta_{n+1} = X_n * delta_n + delta_n^2 + dc
    """
    aspect = float(record["aspect"])
    zoom = float(record["zoom"])
    steps = min(iterations, int(record["points"]))

    view_height = BASE_VIEW_HEIGHT / zoom
    centres = _pixel_centres(width, height)
    dc = ((centres.x / width - 0.5) * view_height * aspect
          + 1j * (centres.y / height - 0.5) * view_height).ravel()

    ref = orbit[:steps, 0].astype(np.float64) + 1j * orbit[:steps, 1].astype(np.float64)
    idx = np.arange(dc.size)
    deltas = dc.copy()
    dcs = dc.copy()
    counts = np.full(dc.size, iterations, dtype=np.int32)
    z_final = np.zeros(dc.size, dtype=np.complex128)

    for n in range(steps):
        zs = ref[n] / 2 + deltas
        escaped = (zs.real ** 2 + zs.imag ** 2) > HORIZON ** 2
        if escaped.any():
            counts[idx[escaped]] = n
            z_final[idx[escaped]] = zs[escaped]
            keep = ~escaped
            idx, deltas, dcs = idx[keep], deltas[keep], dcs[keep]
            if idx.size == 0:
                break
        deltas = ref[n] * deltas + deltas * deltas + dcs

    counts = counts.reshape(height, width)
    z_final = z_final.reshape(height, width)
    return _colorize(_smooth_counts(counts, z_final, iterations), counts >= iterations, color_seed)


def save_png(rgb: np.ndarray, path: str):
    Image.fromarray(rgb.astype(np.uint8)).save(path)
    logger.info("Saved %dx%d frame to %s", rgb.shape[1], rgb.shape[0], path)
