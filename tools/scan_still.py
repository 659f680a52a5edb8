#!/usr/bin/env python3
"""Run the still-image path on a photo: detect the ID card, save the crop."""
from __future__ import annotations
import argparse, os
import cv2

from nidscan.core.config import load_config
from nidscan.io.ingest import decode_still, save_jpeg
from nidscan.overlay import draw_overlay
from nidscan.pipeline import scan_still


def main(argv=None) -> int:
    ap = argparse.ArgumentParser(description="Detect and rectify an ID card in a still photo.")
    ap.add_argument("image", help="Path to input image (EXIF orientation is honoured).")
    ap.add_argument("--out-dir", default="output", help="Directory for outputs.")
    ap.add_argument("--config", default=None, help="YAML config (see config/nidscan.yaml).")
    ap.add_argument("--padding", type=int, default=None, help="Margin around the card crop in px.")
    ap.add_argument("--debug", action="store_true", help="Enable debug prints in each stage.")
    args = ap.parse_args(argv)

    cfg = load_config(args.config) if args.config else {}
    if args.padding is not None:
        cfg.setdefault("rectify", {})["padding"] = args.padding
    if args.debug:
        for name in ("enhance", "detect", "rectify"):
            cfg.setdefault(name, {})["debug"] = True

    try:
        gray, rgba = decode_still(args.image, max_side=int(cfg.get("ingest", {}).get("max_side", 1080)))
    except (FileNotFoundError, ValueError) as e:
        raise SystemExit(f"Could not read image: {e}")

    validation, crop = scan_still(gray, rgba, cfg)

    os.makedirs(args.out_dir, exist_ok=True)
    base = os.path.splitext(os.path.basename(args.image))[0]
    out_viz = os.path.join(args.out_dir, f"{base}_viz.png")

    bgr = cv2.cvtColor(rgba, cv2.COLOR_RGBA2BGR)
    if validation.quad is not None:
        vis = draw_overlay(bgr, validation.quad.pts, True,
                           color=(0, 255, 0) if validation.is_size_valid else (0, 0, 255))
        print(f"Detection: valid={validation.is_size_valid}, wide={validation.is_wide}, quad=\n{validation.quad.pts}")
    else:
        vis = bgr.copy()
        cv2.putText(vis, "NO DETECTION", (20, 40),
                    cv2.FONT_HERSHEY_SIMPLEX, 1.0, (0, 0, 255), 2, cv2.LINE_AA)
    cv2.imwrite(out_viz, vis)
    print(f"Saved visualization → {out_viz}")

    if crop is None:
        print("No document detected.")
        return 1

    quality = int(cfg.get("ingest", {}).get("jpeg_quality", 95))
    out_crop = save_jpeg(crop, os.path.join(args.out_dir, f"{base}_crop.jpg"), quality=quality)
    print(f"Saved rectified → {out_crop}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
