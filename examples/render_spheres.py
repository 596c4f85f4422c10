#!/usr/bin/env python3
"""Render a scene of spheres under a sky gradient.

This script demonstrates end-to-end rendering with the path tracer. It builds
the default four-sphere scene (or loads one from a JSON scene file), sets up
the camera, renders the image band by band and writes it as PPM or PNG.

Usage:
    python -m examples.render_spheres [options]

Options:
    --width WIDTH            Image width in pixels (default: 400)
    --aspect-ratio RATIO     Width divided by height (default: 1.7778)
    --samples SAMPLES        Number of samples per pixel (default: 100)
    --max-depth DEPTH        Bounce budget per path (default: 50)
    --seed SEED              Global seed for the per-pixel generators (default: 0)
    --rows-per-batch ROWS    Rows rendered per kernel launch (default: 16)
    --scene PATH             JSON scene file (default: built-in scene)
    --output OUTPUT          Output path, .ppm or .png, or - for stdout (default: -)
    --arch ARCH              Taichi backend: gpu, cpu, vulkan, metal, cuda (default: gpu)
    --quiet                  Suppress progress output

Example:
    python -m examples.render_spheres --width 200 --samples 20 --output spheres.png
    python -m examples.render_spheres > image.ppm
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

import taichi as ti

logger = logging.getLogger("render_spheres")

STDOUT_TARGET = "-"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Render a scene of spheres with the path tracer.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "--width",
        type=int,
        default=400,
        help="Image width in pixels (default: 400)",
    )
    parser.add_argument(
        "--aspect-ratio",
        type=float,
        default=16.0 / 9.0,
        help="Width divided by height (default: 16/9)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=100,
        help="Number of samples per pixel (default: 100)",
    )
    parser.add_argument(
        "--max-depth",
        type=int,
        default=50,
        help="Bounce budget per path (default: 50)",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=0,
        help="Global seed for the per-pixel generators (default: 0)",
    )
    parser.add_argument(
        "--rows-per-batch",
        type=int,
        default=16,
        help="Rows rendered per kernel launch (default: 16)",
    )
    parser.add_argument(
        "--scene",
        type=str,
        default=None,
        help="JSON scene file (default: built-in four-sphere scene)",
    )
    parser.add_argument(
        "--output",
        type=str,
        default=STDOUT_TARGET,
        help="Output path ending in .ppm or .png, or - for PPM on stdout (default: -)",
    )
    parser.add_argument(
        "--arch",
        choices=["gpu", "cpu", "vulkan", "metal", "cuda"],
        default="gpu",
        help="Taichi backend; gpu falls back to cpu when unavailable (default: gpu)",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress progress output",
    )
    return parser.parse_args(argv)


def render_spheres(
    width: int = 400,
    aspect_ratio: float = 16.0 / 9.0,
    num_samples: int = 100,
    max_depth: int = 50,
    seed: int = 0,
    rows_per_batch: int = 16,
    scene_path: str | None = None,
    output_path: str = STDOUT_TARGET,
    quiet: bool = False,
) -> None:
    """Render a scene and write the image.

    Args:
        width: Image width in pixels.
        aspect_ratio: Width divided by height.
        num_samples: Number of samples per pixel.
        max_depth: Bounce budget per path.
        seed: Global seed for the per-pixel generators.
        rows_per_batch: Rows rendered per kernel launch.
        scene_path: Optional JSON scene file replacing the built-in scene.
        output_path: Output path (.ppm or .png), or "-" for PPM on stdout.
        quiet: If True, suppress progress output.

    Raises:
        OSError: If the scene file cannot be read or the output cannot be written.
        ValueError: If a parameter, the scene file or the output suffix is invalid.
    """
    # Lazy imports to allow Taichi initialization first
    from src.pathtracer.camera.pinhole import PinholeCamera, setup_camera
    from src.pathtracer.core.renderer import Renderer, RenderSettings
    from src.pathtracer.preview.export import save_png, save_ppm, write_ppm
    from src.pathtracer.scene.manager import load_scene_file
    from src.pathtracer.scene.presets import create_default_scene

    settings = RenderSettings(
        width=width,
        aspect_ratio=aspect_ratio,
        samples_per_pixel=num_samples,
        max_depth=max_depth,
        seed=seed,
        rows_per_batch=rows_per_batch,
    )

    suffix = "" if output_path == STDOUT_TARGET else Path(output_path).suffix.lower()
    if suffix not in ("", ".ppm", ".png"):
        raise ValueError(f"Unsupported output format: {output_path} (use .ppm or .png)")

    if scene_path is not None:
        scene = load_scene_file(scene_path)
        camera = PinholeCamera(aspect_ratio=settings.aspect_ratio)
    else:
        scene, camera = create_default_scene(settings.aspect_ratio)

    setup_camera(camera)
    logger.info(
        "Scene: %d materials, %d spheres", scene.get_material_count(), scene.get_sphere_count()
    )

    renderer = Renderer.from_settings(settings)

    start_time = time.time()

    def progress_callback(rows_remaining: int, total_rows: int) -> None:
        if not quiet:
            print(f"\rScanlines remaining: {rows_remaining} ", end="", file=sys.stderr, flush=True)

    renderer.render_settings(settings, callback=progress_callback)

    if not quiet:
        print(file=sys.stderr)  # Newline after progress

    if output_path == STDOUT_TARGET:
        write_ppm(sys.stdout, renderer.width, renderer.height, renderer.pixels())
    elif suffix == ".png":
        save_png(renderer, output_path)
    else:
        save_ppm(renderer, output_path)

    total_time = time.time() - start_time
    if output_path != STDOUT_TARGET:
        logger.info("Saved to: %s", Path(output_path).absolute())
    logger.info("Total time: %.2fs", total_time)


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(argv)

    logging.basicConfig(
        level=logging.WARNING if args.quiet else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )

    # Taichi falls back to the CPU backend when the requested one is unavailable
    ti.init(arch=getattr(ti, args.arch))

    try:
        render_spheres(
            width=args.width,
            aspect_ratio=args.aspect_ratio,
            num_samples=args.samples,
            max_depth=args.max_depth,
            seed=args.seed,
            rows_per_batch=args.rows_per_batch,
            scene_path=args.scene,
            output_path=args.output,
            quiet=args.quiet,
        )
        return 0
    except (OSError, ValueError) as e:
        logger.error("Error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
