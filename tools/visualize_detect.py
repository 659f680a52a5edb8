#!/usr/bin/env python3
"""Dump every stage of the detector on one image for threshold tuning."""
from __future__ import annotations
import argparse, os
import cv2

from nidscan.geometry.enhance import (
    canny_thresholds, classify_scene, close_kernel_size, enhance, image_statistics,
)
from nidscan.geometry.detect import find_biggest_quad
from nidscan.io.ingest import decode_still, load_grayscale, load_image
from nidscan.overlay import draw_overlay


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Save gray / edges / overlay stages for one image.")
    ap.add_argument("image", help="Path to input image.")
    ap.add_argument("--out-dir", default="tests/output", help="Directory for outputs.")
    ap.add_argument("--max-side", type=int, default=1080)
    ap.add_argument("--raw", action="store_true",
                    help="Read pixels as stored (no EXIF rotation, no downsampling).")
    args = ap.parse_args(argv)

    try:
        if args.raw:
            gray, bgr = load_grayscale(args.image), load_image(args.image)
        else:
            gray, rgba = decode_still(args.image, max_side=args.max_side)
            bgr = cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGR)
    except (FileNotFoundError, ValueError) as e:
        raise SystemExit(f"Could not read image: {e}")

    os.makedirs(args.out_dir, exist_ok=True)
    base = os.path.splitext(os.path.basename(args.image))[0]

    stats = image_statistics(gray)
    scene = classify_scene(stats)
    low, high = canny_thresholds(stats.mean_intensity)
    print(f"[dbg] {gray.shape[1]}x{gray.shape[0]} mean={stats.mean_intensity:.1f} "
          f"std={stats.intensity_std:.1f} sharp={stats.laplacian_std:.1f}")
    print(f"[dbg] bright={scene.bright} high_quality={scene.high_quality} "
          f"clahe={scene.low_contrast} canny=({low:.1f},{high:.1f}) close={close_kernel_size(scene)}")

    cv2.imwrite(os.path.join(args.out_dir, f"{base}_01_gray.png"), gray)
    edges = enhance(gray, {"debug": True})
    cv2.imwrite(os.path.join(args.out_dir, f"{base}_02_edges.png"), edges)

    res = find_biggest_quad(edges, {"debug": True})
    if res.quad is not None:
        vis = draw_overlay(bgr, res.quad.pts, True,
                           color=(0, 255, 0) if res.is_size_valid else (0, 0, 255))
    else:
        vis = bgr
    out_viz = os.path.join(args.out_dir, f"{base}_03_overlay.png")
    cv2.imwrite(out_viz, vis)
    print(f"Saved stages → {args.out_dir}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
