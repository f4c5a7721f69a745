import jax.numpy as jnp

from .noise import fbm
from .scene import SceneData
from .types import Color
from .utils import dot, lerp, normalize, vec3

# --- Fire Palette ---
GRAY = vec3(0.4, 0.4, 0.4)
DARKGRAY = vec3(0.2, 0.2, 0.2)
RED = vec3(1.0, 0.0, 0.0)
ORANGE = vec3(1.0, 0.6, 0.0)
YELLOW = vec3(1.7, 1.3, 1.0)  # "hot": components exceed 1

FIRE_STOPS = jnp.stack([GRAY, DARKGRAY, RED, ORANGE, YELLOW])  # (5, 3)
NUM_SEGMENTS = FIRE_STOPS.shape[0] - 1

# --- Lighting Weights ---
AMBIENT = 0.25
DIFFUSE_WEIGHT = 0.9
RIM_WEIGHT = 0.4
RIM_EXPONENT = 2.0

TINT_SCALE = 2.5
TINT_DRIFT = vec3(0.0, 0.0, 1.2)


def palette_fire(d) -> Color:
    """Map a scalar to the gray-darkgray-red-orange-yellow fire ramp.

    The input is clamped to [0, 1] and split into four equal segments; the
    lerp parameter within segment k is 4d - k, so the ramp is continuous.
    The result is HDR and is only clamped by the encoder.
    """
    x = jnp.clip(d, 0.0, 1.0)
    scaled = x * NUM_SEGMENTS
    segment = jnp.clip(jnp.floor(scaled), 0, NUM_SEGMENTS - 1).astype(jnp.int32)
    return lerp(FIRE_STOPS[segment], FIRE_STOPS[segment + 1], scaled - segment)


def surface_tint(p: jnp.ndarray, t) -> Color:
    """Fire colour of a surface point, scrolled upward along z over time."""
    return palette_fire(fbm(p * TINT_SCALE + TINT_DRIFT * t))


def shade(
    p: jnp.ndarray,
    normal: jnp.ndarray,
    t,
    scene: SceneData,
) -> Color:
    """Lambert + rim lighting applied to the animated fire tint.

    Args:
        p: (3,) hit position.
        normal: (3,) unit surface normal at `p`.
        t: Animation time in seconds.
        scene: Camera and light positions.

    Returns:
        (3,) HDR colour.
    """
    to_light = normalize(scene.light_position - p)
    lambert = jnp.maximum(0.0, dot(normal, to_light))

    to_eye = normalize(scene.camera_position - p)
    rim = jnp.maximum(0.0, 1.0 - jnp.maximum(0.0, dot(normal, to_eye))) ** RIM_EXPONENT

    intensity = AMBIENT + DIFFUSE_WEIGHT * lambert + RIM_WEIGHT * rim
    return surface_tint(p, t) * intensity
