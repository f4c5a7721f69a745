import jax.numpy as jnp
from flax import struct
from dataclasses import field

from .utils import vec3

# The scene is a single implicit primitive at the origin; this container only
# carries the camera, the light and the background shared by every pixel.


@struct.dataclass
class SceneData:
    camera_position: jnp.ndarray = field(default_factory=lambda: vec3(0.0, 0.0, 3.0))
    light_position: jnp.ndarray = field(default_factory=lambda: vec3(10.0, 10.0, 10.0))
    # Flat colour for rays that miss the surface
    sky_color: jnp.ndarray = field(default_factory=lambda: vec3(0.2, 0.7, 0.8))
