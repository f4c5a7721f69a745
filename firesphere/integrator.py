import jax
import jax.numpy as jnp
from jax import lax
from functools import partial

from .camera import Camera
from .config import RenderParameters
from .geometry import NORMAL_EPSILON, signed_distance
from .scene import SceneData
from .shading import shade
from .types import TraceResult, Vec3
from .utils import normalize

# Fraction of the field value advanced per march step. The displaced field is
# not a true distance, so full steps can tunnel through thin detail.
STEP_DAMPING = 0.1


# --- Sphere Tracing ---
def sphere_trace(
    origin: Vec3,
    direction: Vec3,
    t,
    params: RenderParameters,
) -> TraceResult:
    """March a single ray until the field goes negative or the budget runs out.

    Each iteration evaluates the field once; a negative value is a hit at the
    current position, otherwise the ray advances by
    max(STEP_DAMPING * d, min_step). Running out of steps is a miss.
    """

    def cond_fn(state):
        steps, _, hit = state
        return (steps < params.max_steps) & ~hit

    def body_fn(state):
        steps, position, _ = state
        d = signed_distance(position, t, params)
        hit = d < 0.0
        step = jnp.maximum(d * STEP_DAMPING, params.min_step)
        position = jnp.where(hit, position, position + direction * step)
        return steps + 1, position, hit

    init_state = (jnp.int32(0), origin, jnp.array(False))
    steps, position, hit = lax.while_loop(cond_fn, body_fn, init_state)
    return TraceResult(hit=hit, position=position, steps=steps)


def estimate_normal(p: Vec3, t, params: RenderParameters) -> Vec3:
    """Forward-difference gradient of the field, normalized."""
    d = signed_distance(p, t, params)
    offsets = jnp.eye(3, dtype=jnp.float32) * NORMAL_EPSILON
    neighbours = jax.vmap(lambda offset: signed_distance(p + offset, t, params))(offsets)
    return normalize(neighbours - d)


# --- Per-Pixel Rendering ---
def render_pixel(
    origin: Vec3,
    direction: Vec3,
    t,
    scene: SceneData,
    params: RenderParameters,
) -> jnp.ndarray:
    """Colour of one camera ray: shaded surface on a hit, sky on a miss."""
    result = sphere_trace(origin, direction, t, params)

    def handle_hit(position):
        normal = estimate_normal(position, t, params)
        return shade(position, normal, t, scene)

    def handle_miss(_):
        return scene.sky_color

    return lax.cond(result.hit, handle_hit, handle_miss, result.position)


@partial(jax.jit, static_argnames=('params',))
def render_frame(t, scene: SceneData, params: RenderParameters) -> jnp.ndarray:
    """Render every pixel of one frame at animation time `t`.

    `t` is captured once for the whole frame and passed to every pixel; it is
    a traced argument, so successive frames reuse the same compiled program.
    Pixels are independent: the pixel function is vmapped over columns, then
    over rows, and each result lands in its own slot.

    Returns:
        (height, width, 3) HDR framebuffer, row 0 at the top. Reshaped to
        (height * width, 3), pixel (row, col) is at index row * width + col.
    """
    camera = Camera(fov=params.fov, eye=scene.camera_position)
    rays = camera.generate_rays(params.width, params.height)

    def pixel(origin, direction):
        return render_pixel(origin, direction, t, scene, params)

    render_row = jax.vmap(pixel)
    render_rows = jax.vmap(render_row)
    return render_rows(rays.origin, rays.direction)
