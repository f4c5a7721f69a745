import jax
import jax.numpy as jnp

from .utils import dot, lerp

# --- Lattice Hash ---
HASH_SCALE = 43758.5453

# Linear index weights of an integer lattice cell and the seeds of its 8 corners,
# ordered (x, y, z) = 000, 100, 010, 110, 001, 101, 011, 111
LATTICE_WEIGHTS = jnp.array([1.0, 57.0, 113.0], dtype=jnp.float32)
CORNER_OFFSETS = jnp.array([0.0, 1.0, 57.0, 58.0, 113.0, 114.0, 170.0, 171.0], dtype=jnp.float32)


@jax.jit
def lattice_hash(n):
    """Pseudo-random scalar in [0, 1) derived from sin(n)."""
    x = jnp.sin(n) * HASH_SCALE
    f = x - jnp.floor(x)
    # float32 rounding can land a tiny negative fraction on exactly 1.0
    return jnp.where(f < 1.0, f, 0.0)


@jax.jit
def noise(p: jnp.ndarray) -> jnp.ndarray:
    """Value noise over the integer lattice with a smoothstep fade.

    Args:
        p: (3,) sample position.

    Returns:
        Scalar in [0, 1). At integer coordinates this is exactly the hash of
        the cell's linear index.
    """
    cell = jnp.floor(p)
    f = p - cell
    f = f * f * (3.0 - 2.0 * f)
    n = dot(cell, LATTICE_WEIGHTS)
    h = lattice_hash(n + CORNER_OFFSETS)

    fx, fy, fz = f[0], f[1], f[2]
    return lerp(lerp(lerp(h[0], h[1], fx), lerp(h[2], h[3], fx), fy),
                lerp(lerp(h[4], h[5], fx), lerp(h[6], h[7], fx), fy), fz)


# --- Fractal Brownian Motion ---

# Fixed octave rotation, one row per output component
ROTATION = jnp.array([
    [ 0.00,  0.80,  0.60],
    [-0.80,  0.36, -0.48],
    [-0.60, -0.48,  0.64],
], dtype=jnp.float32)

OCTAVE_AMPLITUDES = (0.5, 0.25, 0.125, 0.0625)
OCTAVE_SCALES = (2.32, 3.03, 2.61)  # Applied between octaves
AMPLITUDE_SUM = sum(OCTAVE_AMPLITUDES)  # 0.9375


def rotate(v: jnp.ndarray) -> jnp.ndarray:
    """Apply the fixed fBM rotation to a (3,) vector."""
    return ROTATION @ v


@jax.jit
def fbm(x: jnp.ndarray) -> jnp.ndarray:
    """Four octaves of rotated value noise, normalized to roughly [0, 1]."""
    p = rotate(x)
    f = 0.0
    for i, amplitude in enumerate(OCTAVE_AMPLITUDES):
        f = f + amplitude * noise(p)
        if i < len(OCTAVE_SCALES):
            p = p * OCTAVE_SCALES[i]
    return f / AMPLITUDE_SUM
