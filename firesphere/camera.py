import jax
import jax.numpy as jnp
from flax import struct
from dataclasses import field
from functools import partial

from .types import Ray
from .utils import normalize


@struct.dataclass
class Camera:
    # Vertical field of view in radians; static so ray generation can fold it
    fov: float = struct.field(pytree_node=False, default=jnp.pi / 3.0)
    # Eye position; the camera always looks down -z with +y up
    eye: jnp.ndarray = field(default_factory=lambda: jnp.array([0.0, 0.0, 3.0], dtype=jnp.float32))

    @partial(jax.jit, static_argnames=['width', 'height'])
    def generate_rays(self, width: int, height: int) -> Ray:
        """Generate one ray through the centre of every pixel.

        Row 0 is the top of the image. The image plane sits at the distance
        where `height` pixels subtend exactly `fov`.
        """
        # Pixel grid coordinates (image plane, origin at top-left)
        x, y = jnp.meshgrid(jnp.arange(width, dtype=jnp.float32),
                            jnp.arange(height, dtype=jnp.float32))

        dir_x = (x + 0.5) - width / 2.0
        dir_y = -(y + 0.5) + height / 2.0  # Flip Y so row 0 is up
        dir_z = jnp.full_like(dir_x, -height / (2.0 * jnp.tan(self.fov / 2.0)))
        ray_dir = normalize(jnp.stack([dir_x, dir_y, dir_z], axis=-1))

        ray_origin = jnp.tile(self.eye[None, None, :], (height, width, 1))

        return Ray(origin=ray_origin, direction=ray_dir)
