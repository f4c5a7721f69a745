import math

from flax import struct


@struct.dataclass
class RenderParameters:
    """Fixed per-run render settings.

    All fields are static (pytree_node=False): they are baked into the compiled
    frame renderer and the dataclass is hashable, so it can be passed through
    ``static_argnames``. Changing any of them triggers a recompile, changing
    the frame time does not.
    """
    # Image
    width: int = struct.field(pytree_node=False, default=640)
    height: int = struct.field(pytree_node=False, default=480)
    fov: float = struct.field(pytree_node=False, default=math.pi / 3.0)  # Vertical, radians

    # Ray marching
    max_steps: int = struct.field(pytree_node=False, default=128)
    min_step: float = struct.field(pytree_node=False, default=0.01)

    # Surface
    sphere_radius: float = struct.field(pytree_node=False, default=1.5)
    breathing_amplitude: float = struct.field(pytree_node=False, default=0.25)
    noise_amplitude: float = struct.field(pytree_node=False, default=1.0)

    # Animation
    nframes: int = struct.field(pytree_node=False, default=120)
    fps: float = struct.field(pytree_node=False, default=24.0)

    def validate(self) -> "RenderParameters":
        """Raise ValueError on settings the renderer cannot work with."""
        if self.width <= 0 or self.height <= 0:
            raise ValueError(f"Image size must be positive, got {self.width}x{self.height}")
        if not 0.0 < self.fov < math.pi:
            raise ValueError(f"Field of view must be in (0, pi) radians, got {self.fov}")
        if self.max_steps <= 0:
            raise ValueError(f"max_steps must be positive, got {self.max_steps}")
        if self.min_step <= 0.0:
            raise ValueError(f"min_step must be positive, got {self.min_step}")
        if self.sphere_radius <= 0.0:
            raise ValueError(f"sphere_radius must be positive, got {self.sphere_radius}")
        if self.nframes <= 0:
            raise ValueError(f"nframes must be positive, got {self.nframes}")
        if self.fps <= 0.0:
            raise ValueError(f"fps must be positive, got {self.fps}")
        return self


def frame_time(frame_index: int, fps: float) -> float:
    """Animation time in seconds for a frame."""
    return frame_index / fps
