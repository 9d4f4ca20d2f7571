#!/usr/bin/env python3
"""Render one of the demo scenes to a PNG or PPM file.

Usage:
    python examples/render_scene.py [options]

Options:
    --scene NAME        Demo scene (default: all_objects)
    --width WIDTH       Image width in pixels (default: 800)
    --spp SAMPLES       Samples per pixel (default: 500)
    --depth DEPTH       Maximum bounces per path (default: 50)
    --seed SEED         Seed for the per-pixel random streams (default: 0)
    --output OUTPUT     Output file, .png or .ppm (default: image.ppm)
    --batch-size SIZE   Samples per progress update (default: 10)
    --no-jitter         Sample every pixel through its center
    --preview           Show the result in a Matplotlib window
    --verbose           Enable debug logging

The image height follows from the width and the 3:2 aspect ratio.

Example:
    python examples/render_scene.py --scene sphere --width 300 --spp 50 --output sphere.png
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

SCENE_NAMES = ("sphere", "plane_cube", "all_objects", "all_objects_alt_camera")


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a demo scene with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--scene",
        choices=SCENE_NAMES,
        default="all_objects",
        help="Demo scene (default: all_objects)",
    )
    parser.add_argument(
        "--width",
        type=int,
        default=800,
        help="Image width in pixels (default: 800)",
    )
    parser.add_argument(
        "--spp",
        type=int,
        default=500,
        help="Samples per pixel (default: 500)",
    )
    parser.add_argument(
        "--depth",
        type=int,
        default=50,
        help="Maximum bounces per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Seed for the per-pixel random streams (default: 0)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default="image.ppm",
        help="Output file path, .png or .ppm (default: image.ppm)",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help="Samples per progress update (default: 10)",
    )
    parser.add_argument(
        "--no-jitter",
        action="store_true",
        help="Sample every pixel through its center",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Show the result in a Matplotlib window",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    return parser.parse_args()


def render_scene(args: argparse.Namespace) -> Path:
    """Render the selected scene and save it.

    Returns:
        Path to the saved image file.
    """
    # Lazy imports so Taichi is initialized before any field is created
    from pathtracer.camera.thin_lens import setup_camera
    from pathtracer.config import RenderSettings
    from pathtracer.core.progressive import ProgressiveRenderer
    from pathtracer.scene.scenes import get_scene

    settings = RenderSettings(
        width=args.width,
        samples_per_pixel=args.spp,
        max_depth=args.depth,
        seed=args.seed,
        jitter=not args.no_jitter,
    )

    scene, camera = get_scene(args.scene, settings.aspect_ratio)
    setup_camera(camera)
    print(f"Scene {args.scene}: {scene}")

    renderer = ProgressiveRenderer(settings)
    print(f"Rendering {settings.width}x{settings.height} at {settings.samples_per_pixel} spp...")

    start_time = time.time()

    def progress_callback(current: int, target: int) -> None:
        elapsed = time.time() - start_time
        samples_per_sec = current / elapsed if elapsed > 0 else 0
        print(
            f"\r  Samples remaining: {target - current:4d} ({samples_per_sec:.1f} spp/s)",
            end="",
            flush=True,
        )

    renderer.render(batch_size=args.batch_size, callback=progress_callback)
    print()

    output_file = Path(args.output)
    renderer.save_image(output_file)

    print(f"Saved to: {output_file.absolute()}")
    print(f"Total time: {time.time() - start_time:.2f}s")

    if args.preview:
        from pathtracer.preview.display import show_preview

        show_preview(renderer, title=f"{args.scene} - {renderer.sample_count} SPP")

    return output_file


def main() -> int:
    """Main entry point."""
    args = parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    # Use GPU if available, fall back to CPU
    try:
        ti.init(arch=ti.gpu)
    except RuntimeError:
        ti.init(arch=ti.cpu)

    try:
        render_scene(args)
        return 0
    except (ValueError, RuntimeError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
