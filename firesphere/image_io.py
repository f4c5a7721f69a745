import os
import tempfile

import imageio.v3 as iio
import numpy as np
from PIL import Image


def frame_filename(frame_index: int, extension: str = "ppm", prefix: str = "out_") -> str:
    """Zero-padded per-frame file name, e.g. out_0007.ppm."""
    return f"{prefix}{frame_index:04d}.{extension}"


def to_uint8(framebuffer) -> np.ndarray:
    """Tone-map an HDR framebuffer to bytes: round(255 * clamp(c, 0, 1))."""
    ldr = np.clip(np.asarray(framebuffer, dtype=np.float32), 0.0, 1.0)
    return np.round(ldr * 255.0).astype(np.uint8)


def _default_file_mode() -> int:
    """Mode a plain open() would create a file with under the current umask."""
    umask = os.umask(0)
    os.umask(umask)
    return 0o666 & ~umask


def _save_atomically(image: Image.Image, path: str, image_format: str):
    """Save through a temporary sibling file so a failed write leaves no partial frame."""
    directory = os.path.dirname(os.path.abspath(path))
    fd, tmp_path = tempfile.mkstemp(dir=directory, suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            image.save(f, format=image_format)
        # mkstemp creates 0600; frames should be as readable as any other output
        os.chmod(tmp_path, _default_file_mode())
        os.replace(tmp_path, path)
    except BaseException:
        if os.path.exists(tmp_path):
            os.remove(tmp_path)
        raise


def write_ppm(path: str, framebuffer):
    """Write a (height, width, 3) framebuffer as binary PPM (P6, maxval 255).

    Raises:
        OSError: if the file cannot be written.
    """
    image = Image.fromarray(to_uint8(framebuffer), 'RGB')
    _save_atomically(image, path, "PPM")


def write_png(path: str, framebuffer):
    """Same quantisation as write_ppm, PNG container."""
    image = Image.fromarray(to_uint8(framebuffer), 'RGB')
    _save_atomically(image, path, "PNG")


def write_gif(path: str, frames, fps: float):
    """Assemble already-encoded uint8 frames into a looping GIF."""
    stacked = np.stack([np.asarray(frame, dtype=np.uint8) for frame in frames])
    iio.imwrite(path, stacked, duration=1000.0 / fps, loop=0)
