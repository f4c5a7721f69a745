import math
import stat
import numpy as np
import jax.numpy as jnp
import imageio.v3 as iio
import pytest
import sys
import os
from PIL import Image

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from firesphere.camera import Camera
from firesphere.config import RenderParameters, frame_time
from firesphere.image_io import frame_filename, to_uint8, write_gif, write_png, write_ppm
from firesphere.integrator import render_frame
from firesphere.scene import SceneData
from firesphere.utils import norm
import render_frames

# --- Camera ---

def test_camera_rays_are_unit_and_centered():
    camera = Camera(fov=math.pi / 3.0)
    rays = camera.generate_rays(8, 6)
    assert rays.origin.shape == (6, 8, 3)
    assert rays.direction.shape == (6, 8, 3)
    assert jnp.allclose(norm(rays.direction), 1.0, atol=1e-5)
    # Top-left looks up and left, bottom-right looks down and right
    assert rays.direction[0, 0, 0] < 0 and rays.direction[0, 0, 1] > 0
    assert rays.direction[-1, -1, 0] > 0 and rays.direction[-1, -1, 1] < 0
    assert jnp.all(rays.direction[..., 2] < 0)

def test_camera_fov_spans_image_height():
    """The top and bottom pixel edges subtend the vertical field of view."""
    fov = math.pi / 3.0
    height = 480
    rays = Camera(fov=fov).generate_rays(4, height)
    # Direction through the top edge of the image plane, not the pixel centre
    plane_distance = height / (2.0 * math.tan(fov / 2.0))
    top_centre_y = rays.direction[0, 0, 1] / -rays.direction[0, 0, 2] * plane_distance
    assert abs(float(top_centre_y) - (height / 2.0 - 0.5)) < 1e-2

# --- Config ---

def test_frame_time():
    assert frame_time(0, 24.0) == 0.0
    assert frame_time(12, 24.0) == 0.5

@pytest.mark.parametrize("kwargs", [
    {"width": 0},
    {"height": -1},
    {"fov": 0.0},
    {"fov": math.pi},
    {"max_steps": 0},
    {"min_step": 0.0},
    {"nframes": 0},
    {"fps": 0.0},
])
def test_invalid_parameters_rejected(kwargs):
    with pytest.raises(ValueError):
        RenderParameters(**kwargs).validate()

def test_parameters_are_hashable():
    assert hash(RenderParameters()) == hash(RenderParameters())

# --- Encoder ---

def test_frame_filename_zero_padded():
    assert frame_filename(0) == "out_0000.ppm"
    assert frame_filename(42, "png") == "out_0042.png"

def test_to_uint8_clamps_hdr():
    fb = np.array([[[1.7, 0.5, -0.2]]], dtype=np.float32)
    assert to_uint8(fb).tolist() == [[[255, 128, 0]]]

def test_write_ppm_layout(tmp_path):
    fb = np.zeros((2, 3, 3), dtype=np.float32)
    fb[0, 0] = [1.0, 0.0, 0.0]   # Top-left red
    fb[1, 2] = [0.0, 0.0, 1.0]   # Bottom-right blue
    path = tmp_path / "frame.ppm"
    write_ppm(str(path), fb)
    data = path.read_bytes()
    header = b"P6\n3 2\n255\n"
    assert data.startswith(header)
    pixels = data[len(header):]
    assert len(pixels) == 3 * 2 * 3
    assert pixels[0:3] == bytes([255, 0, 0])
    assert pixels[-3:] == bytes([0, 0, 255])

def test_write_ppm_failure_raises_and_leaves_nothing(tmp_path):
    missing_dir = tmp_path / "does-not-exist"
    with pytest.raises(OSError):
        write_ppm(str(missing_dir / "frame.ppm"), np.zeros((2, 2, 3), dtype=np.float32))
    assert not missing_dir.exists()

@pytest.fixture
def umask_022():
    previous = os.umask(0o022)
    yield
    os.umask(previous)

def test_written_frame_follows_umask(tmp_path, umask_022):
    """Frames get the usual 0644 under umask 022, not the 0600 of a temp file."""
    path = tmp_path / "frame.ppm"
    write_ppm(str(path), np.zeros((2, 3, 3), dtype=np.float32))
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o644
    # No temporary siblings left behind
    assert [p.name for p in tmp_path.iterdir()] == ["frame.ppm"]

def test_write_png_round_trip(tmp_path):
    fb = np.zeros((4, 5, 3), dtype=np.float32)
    fb[0, 0] = [1.7, 0.5, 0.0]
    fb[3, 4] = [0.2, 0.7, 0.8]
    path = tmp_path / "frame.png"
    write_png(str(path), fb)
    with Image.open(path) as img:
        assert img.format == "PNG"
        decoded = np.asarray(img.convert("RGB"))
    assert np.array_equal(decoded, to_uint8(fb))

def test_write_gif_stacks_frames(tmp_path):
    frames = [
        np.full((4, 5, 3), 0, dtype=np.uint8),
        np.full((4, 5, 3), 255, dtype=np.uint8),
    ]
    path = tmp_path / "anim.gif"
    write_gif(str(path), frames, fps=24.0)
    decoded = iio.imread(path, index=None)
    assert decoded.shape[:3] == (2, 4, 5)
    assert decoded[0].max() < decoded[1].min()

# --- CLI ---

def test_cli_gif_write_failure_returns_1(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    exit_code = render_frames.main([
        "--width", "8", "--height", "6", "--max-steps", "16", "--nframes", "1",
        "--output-dir", str(tmp_path / "frames"),
        "--gif", str(blocker / "anim.gif"),
    ])
    assert exit_code == 1

def test_cli_output_dir_failure_returns_1(tmp_path):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    exit_code = render_frames.main([
        "--width", "8", "--height", "6", "--max-steps", "16", "--nframes", "1",
        "--output-dir", str(blocker / "frames"),
    ])
    assert exit_code == 1

def test_cli_writes_gif(tmp_path):
    gif_path = tmp_path / "anim.gif"
    exit_code = render_frames.main([
        "--width", "8", "--height", "6", "--max-steps", "16", "--nframes", "2",
        "--output-dir", str(tmp_path), "--format", "png",
        "--gif", str(gif_path),
    ])
    assert exit_code == 0
    assert (tmp_path / "out_0000.png").exists()
    assert (tmp_path / "out_0001.png").exists()
    decoded = iio.imread(gif_path, index=None)
    # Identical consecutive frames may be merged by the GIF writer
    assert decoded.ndim == 4 and decoded.shape[1:3] == (6, 8)

# --- Frame rendering ---

def test_small_frame_is_deterministic():
    params = RenderParameters(width=16, height=12, max_steps=64)
    scene = SceneData()
    first = render_frame(jnp.float32(0.5), scene, params)
    second = render_frame(jnp.float32(0.5), scene, params)
    assert first.shape == (12, 16, 3)
    assert jnp.array_equal(first, second)

def test_frames_differ_over_time():
    params = RenderParameters(width=16, height=12, max_steps=64)
    scene = SceneData()
    a = render_frame(jnp.float32(frame_time(0, params.fps)), scene, params)
    b = render_frame(jnp.float32(frame_time(12, params.fps)), scene, params)
    assert not jnp.array_equal(a, b)

def test_end_to_end_frame_zero(tmp_path):
    """Full-size frame 0 through the CLI: exact header, byte count and a hit at the centre."""
    exit_code = render_frames.main([
        "--width", "640", "--height", "480",
        "--fov", str(math.pi / 3.0),
        "--nframes", "1",
        "--output-dir", str(tmp_path),
    ])
    assert exit_code == 0

    data = (tmp_path / "out_0000.ppm").read_bytes()
    header = b"P6\n640 480\n255\n"
    assert data.startswith(header)
    assert len(data) - len(header) == 640 * 480 * 3

    params = RenderParameters(width=640, height=480, fov=math.pi / 3.0, nframes=1)
    scene = SceneData()
    framebuffer = np.asarray(render_frame(jnp.float32(0.0), scene, params))
    centre = framebuffer[240, 320]
    assert not np.allclose(centre, np.asarray(scene.sky_color))

def test_cli_rejects_bad_config(tmp_path):
    assert render_frames.main(["--width", "0", "--output-dir", str(tmp_path)]) == 2
