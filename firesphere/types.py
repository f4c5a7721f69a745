import jax.numpy as jnp
from flax import struct

# --- Type Aliases for Clarity ---
# Vectors and colours are plain JAX arrays with a trailing axis of size 3
Vec3 = jnp.ndarray  # Shape (..., 3)
Color = jnp.ndarray  # Shape (..., 3), HDR: components may exceed 1.0


@struct.dataclass
class Ray:
    origin: jnp.ndarray     # Shape (..., 3)
    direction: jnp.ndarray  # Shape (..., 3), unit length


@struct.dataclass
class TraceResult:
    hit: jnp.ndarray        # bool, True if the march crossed the surface
    position: jnp.ndarray   # Shape (3,), last marched position (surface point on hit)
    steps: jnp.ndarray      # int32, number of field evaluations performed
