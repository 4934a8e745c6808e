#!/usr/bin/env python3
"""
Script to export a composite from the command line without running the API.

Usage:
    python scripts/compose_overlay.py <base_image> [--overlay SOURCE] [--output PATH]
        [--x PCT] [--y PCT] [--scale S] [--rotation DEG] [--opacity O]

Examples:
    # Centered overlay at default size
    python scripts/compose_overlay.py photo.jpg --output composite.png

    # Top-left quadrant, doubled, tilted
    python scripts/compose_overlay.py photo.jpg --x 25 --y 25 --scale 2 --rotation -15

    # Remote overlay asset
    python scripts/compose_overlay.py photo.jpg --overlay https://example.com/chain.png
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path to import overlay_studio modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from overlay_studio.config import settings
from overlay_studio.models.transform import OverlayTransform
from overlay_studio.services.export import export_pipeline
from overlay_studio.services.images import DecodeError


def build_transform(args: argparse.Namespace) -> OverlayTransform:
    """Apply command-line values through the transform setters (values are clamped)."""
    transform = OverlayTransform.create()
    transform.set_position(args.x, args.y)
    transform.set_scale(args.scale)
    transform.set_rotation_degrees(args.rotation)
    if args.opacity is not None:
        transform.set_opacity(args.opacity)
    return transform


async def compose(base_path: Path, overlay_source: str, output_path: Path, transform: OverlayTransform) -> None:
    """Run the export pipeline and write the PNG."""
    if not base_path.is_file():
        print(f"Error: File not found: {base_path}", file=sys.stderr)
        sys.exit(1)

    try:
        result = await export_pipeline.export_composite(base_path, overlay_source, transform)
    except DecodeError as e:
        role = e.details.get("role", "image")
        print(f"Error: could not decode {role}: {e.message}", file=sys.stderr)
        sys.exit(1)

    output_path.write_bytes(result.content)

    print(f"✓ Exported composite:")
    print(f"  Size: {result.width}x{result.height}")
    print(f"  Transform: x={transform.x:.1f}% y={transform.y:.1f}% scale={transform.scale:.2f} "
          f"rotation={transform.rotation:.1f} opacity={transform.opacity:.2f}")
    print(f"  Bytes: {len(result.content)}")
    print(f"  Time: {result.processing_time_ms}ms")
    print(f"  Path: {output_path}")


def main():
    parser = argparse.ArgumentParser(
        description="Composite the overlay onto a photo",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument("base_image", type=Path, help="Base photo to decorate")
    parser.add_argument(
        "--overlay",
        default=settings.overlay_asset,
        help=f"Overlay image path or URL (default: {settings.overlay_asset})",
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=Path(settings.export_filename),
        help=f"Output PNG path (default: {settings.export_filename})",
    )
    parser.add_argument("--x", type=float, default=50.0, help="Overlay center X, percent of width")
    parser.add_argument("--y", type=float, default=50.0, help="Overlay center Y, percent of height")
    parser.add_argument("--scale", type=float, default=1.0, help="Overlay scale multiplier")
    parser.add_argument("--rotation", type=float, default=0.0, help="Rotation in degrees (clockwise)")
    parser.add_argument("--opacity", type=float, default=None, help="Overlay opacity")

    args = parser.parse_args()

    transform = build_transform(args)
    asyncio.run(compose(args.base_image, args.overlay, args.output, transform))


if __name__ == "__main__":
    main()
