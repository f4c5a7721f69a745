import jax.numpy as jnp

# --- Vector Utilities ---
# Every helper works on a single vector of shape (3,) or on a batch (..., 3).


def vec3(x, y, z) -> jnp.ndarray:
    """Build a float32 vector."""
    return jnp.array([x, y, z], dtype=jnp.float32)


def dot(v1, v2):
    return jnp.sum(v1 * v2, axis=-1)


def norm(v):
    return jnp.linalg.norm(v, axis=-1)


def normalize(v):
    """Normalize a vector.

    A zero-length input has no direction; the zero vector is returned as a
    sentinel instead of letting 0/0 propagate NaN into shading.
    """
    length = jnp.linalg.norm(v, axis=-1, keepdims=True)
    nonzero = length > 0.0
    # Double where keeps the division itself NaN-free
    safe_length = jnp.where(nonzero, length, 1.0)
    return jnp.where(nonzero, v / safe_length, jnp.zeros_like(v))


def lerp(v0, v1, t):
    """Linear interpolation with the parameter clamped to [0, 1]."""
    t = jnp.clip(t, 0.0, 1.0)
    return v0 + (v1 - v0) * t
