"""
PolytopeView - hidden-surface removal for 4D polytopes

Main entry point
"""

import sys
import logging
from pathlib import Path

# Ensure repository root is on sys.path so "src" is importable.
ROOT_DIR = Path(__file__).resolve().parent
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

import numpy as np

from src.polytope.runtime_defaults import DEFAULTS
from src.polytope.output_paths import projection_output_path

_LOGGER = logging.getLogger(__name__)

# Fixed demo view: the tesseract is turned out of the X-D and Y-D planes and
# seen in perspective from 3 units before its centre along the depth axis.
DEMO_ANGLE_XD = np.deg2rad(30.0)
DEMO_ANGLE_YD = np.deg2rad(20.0)
DEMO_EYE_DISTANCE = 3.0


def demo_camera() -> np.ndarray:
    """5x5 camera used by the demo commands."""
    c1, s1 = np.cos(DEMO_ANGLE_XD), np.sin(DEMO_ANGLE_XD)
    c2, s2 = np.cos(DEMO_ANGLE_YD), np.sin(DEMO_ANGLE_YD)

    rot_xd = np.eye(5)
    rot_xd[[0, 0, 3, 3], [0, 3, 0, 3]] = [c1, -s1, s1, c1]
    rot_yd = np.eye(5)
    rot_yd[[1, 1, 3, 3], [1, 3, 1, 3]] = [c2, -s2, s2, c2]

    perspective = np.eye(5)
    perspective[4] = [0.0, 0.0, 0.0, 1.0, DEMO_EYE_DISTANCE]
    return perspective @ rot_yd @ rot_xd


def demo_mesh():
    from src.polytope.mesh import Mesh

    return Mesh.new_tesseract(size=1.0, offset=[-0.5, -0.5, -0.5, -0.5])


def run_cli():
    """Run the command line interface."""
    try:
        from src.polytope.logging_utils import setup_logging

        setup_logging()
    except Exception as e:
        _LOGGER.debug("Failed to initialize logging: %s", e, exc_info=True)

    if len(sys.argv) < 2:
        print_help()
        return

    cmd = sys.argv[1]

    if cmd == '--help' or cmd == '-h':
        print_help()
        return

    if cmd == '--info':
        show_scene_info()
        return

    if cmd == '--demo':
        project_demo(sys.argv[2] if len(sys.argv) > 2 else None)
        return

    print(f"Error: Unknown command: {cmd}")
    print("Use --help for usage information")


def print_help():
    """Print usage."""
    print("=" * 60)
    print("PolytopeView - hidden-surface removal for 4D polytopes")
    print("=" * 60)
    print()
    print("Usage:")
    print("  python main.py --info                 # Describe the demo scene")
    print("  python main.py --demo [output]        # Project the demo tesseract")
    print()
    print("Environment:")
    print(f"  POLYTOPEVIEW_MAX_WORKERS   (current: {DEFAULTS.max_workers})")
    print(f"  POLYTOPEVIEW_CLIP_EXTENT   (current: {DEFAULTS.clip_extent:g})")
    print("  POLYTOPEVIEW_LOG_LEVEL")
    print("  POLYTOPEVIEW_LOG_FILE")
    print()
    print("Examples:")
    print("  python main.py --demo")
    print("  python main.py --demo tesseract.obj")


def show_scene_info():
    """Print per-facet visibility of the demo scene."""
    from src.polytope.projective import outward_hyperplane

    mesh = demo_mesh()
    camera = demo_camera()

    print(f"\nDemo scene: {len(mesh.facets)} facets")
    print("-" * 40)
    for i, facet in enumerate(mesh.facets):
        facing = outward_hyperplane(facet.local_to_screen_depth(camera)) is not None
        box = facet.bounding_box(camera)
        print(
            f"  facet {i}: {'front' if facing else 'back '}  "
            f"box min={np.round(box[0], 3).tolist()} max={np.round(box[1], 3).tolist()}"
        )


def project_demo(output_path: str | None = None):
    """Project the demo tesseract and export the visible triangles."""
    from src.polytope.mesh_exporter import export_triangles

    print("\nProjecting demo tesseract")
    print("-" * 40)

    try:
        mesh = demo_mesh()
        triangles = list(mesh.project(demo_camera()))
        negated = sum(1 for t in triangles if t.negated)

        print(f"  Facets: {len(mesh.facets)}")
        print(f"  Triangles: {len(triangles):,} ({negated:,} negated)")

        save_path = projection_output_path(None, output_path)
        saved = export_triangles(triangles, save_path)
        if saved is None:
            print("  Nothing visible; no file written")
        else:
            print(f"  Saved: {saved}")

    except Exception as e:
        _LOGGER.exception("Demo projection failed")
        print(f"Error: {e}")


if __name__ == '__main__':
    run_cli()
