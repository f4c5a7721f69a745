import argparse
import math
import os
import sys
import time

import jax
import jax.numpy as jnp
from tqdm import tqdm

from firesphere.config import RenderParameters, frame_time
from firesphere.image_io import frame_filename, to_uint8, write_gif, write_png, write_ppm
from firesphere.integrator import render_frame
from firesphere.scene import SceneData

WRITERS = {
    "ppm": write_ppm,
    "png": write_png,
}


def build_parser() -> argparse.ArgumentParser:
    defaults = RenderParameters()
    parser = argparse.ArgumentParser(description="Fire sphere renderer - animated sphere tracing")
    parser.add_argument('--width', type=int, default=defaults.width, help='Image width')
    parser.add_argument('--height', type=int, default=defaults.height, help='Image height')
    parser.add_argument('--fov', type=float, default=defaults.fov, help='Vertical field of view (radians)')
    parser.add_argument('--max-steps', type=int, default=defaults.max_steps, help='Ray march iteration budget')
    parser.add_argument('--min-step', type=float, default=defaults.min_step, help='Minimum forward progress per march step')
    parser.add_argument('--sphere-radius', type=float, default=defaults.sphere_radius, help='Base surface radius')
    parser.add_argument('--noise-amplitude', type=float, default=defaults.noise_amplitude, help='Displacement magnitude')
    parser.add_argument('--nframes', type=int, default=defaults.nframes, help='Number of frames to render')
    parser.add_argument('--fps', type=float, default=defaults.fps, help='Frames per second (t = frame / fps)')
    parser.add_argument('--start-frame', type=int, default=0, help='Index of the first frame to render')
    parser.add_argument('--output-dir', type=str, default='.', help='Directory for the frame files')
    parser.add_argument('--format', choices=sorted(WRITERS), default='ppm', help='Per-frame image format')
    parser.add_argument('--gif', type=str, default=None, help='Also assemble the frames into this GIF')
    return parser


def params_from_args(args) -> RenderParameters:
    return RenderParameters(
        width=args.width,
        height=args.height,
        fov=args.fov,
        max_steps=args.max_steps,
        min_step=args.min_step,
        sphere_radius=args.sphere_radius,
        noise_amplitude=args.noise_amplitude,
        nframes=args.nframes,
        fps=args.fps,
    ).validate()


def render_to_file(frame_index: int, scene: SceneData, params: RenderParameters, path: str, writer=write_ppm):
    """Render one frame and hand the finished framebuffer to the encoder."""
    t = jnp.float32(frame_time(frame_index, params.fps))
    framebuffer = render_frame(t, scene, params)
    framebuffer.block_until_ready()  # All pixels done before anything is written
    writer(path, framebuffer)
    return framebuffer


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        params = params_from_args(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    if args.start_frame < 0:
        print(f"Error: start frame must be non-negative, got {args.start_frame}", file=sys.stderr)
        return 2

    try:
        os.makedirs(args.output_dir, exist_ok=True)
    except OSError as e:
        print(f"Error creating {args.output_dir}: {e}", file=sys.stderr)
        return 1
    scene = SceneData()
    writer = WRITERS[args.format]

    print(f"Rendering {params.nframes} frame(s) at {params.width}x{params.height}, "
          f"fov {math.degrees(params.fov):.1f} deg, {params.max_steps} steps, {params.fps:g} fps")
    print(f"JAX backend: {jax.default_backend()}")

    gif_frames = []
    start_time = time.time()
    frame_indices = range(args.start_frame, args.start_frame + params.nframes)
    for frame_index in tqdm(frame_indices, desc="Frames", unit="frame"):
        path = os.path.join(args.output_dir, frame_filename(frame_index, args.format))
        try:
            framebuffer = render_to_file(frame_index, scene, params, path, writer)
        except OSError as e:
            print(f"Error writing {path}: {e}", file=sys.stderr)
            return 1
        tqdm.write(f"Wrote {path}")
        if args.gif:
            gif_frames.append(to_uint8(framebuffer))

    end_time = time.time()
    print(f"Rendering finished in {end_time - start_time:.2f} seconds.")

    if args.gif:
        try:
            write_gif(args.gif, gif_frames, params.fps)
        except OSError as e:
            print(f"Error writing {args.gif}: {e}", file=sys.stderr)
            return 1
        print(f"GIF saved to {args.gif}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
