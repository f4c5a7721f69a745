import jax.numpy as jnp

from .config import RenderParameters
from .noise import fbm
from .types import Vec3
from .utils import norm

# --- Displacement Constants ---
# The ripple frequency and the normal-estimation offset are a pair: the offset
# must stay well below the ripple period (2*pi/16 ~ 0.39) or normals alias.
RIPPLE_FREQUENCY = 16.0
NORMAL_EPSILON = 0.05

BREATHING_RATE = 2.0      # rad/s of the base radius oscillation
RIPPLE_PHASE_RATE = 6.0   # rad/s shared by all three ripple axes
TURBULENCE_SCALE = 2.0
TURBULENCE_DRIFT = jnp.array([1.0, 0.7, 1.3], dtype=jnp.float32)  # per-axis scroll rate
RIPPLE_WEIGHT = 0.6
TURBULENCE_WEIGHT = 0.8


def signed_distance(p: Vec3, t, params: RenderParameters) -> jnp.ndarray:
    """Approximate signed distance to the animated fire sphere.

    The displacement terms distort the metric, so the returned value is only
    an estimate of the true distance; callers must step conservatively.

    Args:
        p: (3,) query position.
        t: Animation time in seconds.
        params: Surface settings (radius, breathing and noise amplitude).

    Returns:
        Scalar, negative inside the surface.
    """
    radius = params.sphere_radius + params.breathing_amplitude * jnp.sin(t * BREATHING_RATE)

    phase = t * RIPPLE_PHASE_RATE
    ripple = jnp.prod(jnp.sin(RIPPLE_FREQUENCY * p + phase))

    turbulence = fbm(p * TURBULENCE_SCALE + TURBULENCE_DRIFT * t)

    displacement = params.noise_amplitude * (
        RIPPLE_WEIGHT * ripple + TURBULENCE_WEIGHT * (turbulence - 0.5)
    )
    return norm(p) - (radius + displacement)
