"""
Point Cloud Triangulation - Command Line
========================================

Smooths a point cloud file and triangulates it:
1. Load points (.xyz/.txt/.csv, .pcd/.ply, or a JSON point-set message)
2. Moving least squares smoothing
3. Convex hull reconstruction
4. Export mesh (.ply/.obj/.stl, or a JSON mesh message)

Usage:
    python run_triangulation.py --input scan.xyz --output mesh.ply --radius 0.05
    python run_triangulation.py --input request.json --output response.json --preset faceted
"""

import argparse
import json
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent))

from PointCloudTriangulation import (
    InsufficientDataError,
    TriangulationPipeline,
    TriangulationService,
    create_config_from_preset,
    load_config,
    validate_config
)
from PointCloudTriangulation.config import PRESET_CONFIGS
from PointCloudTriangulation.io import load_point_cloud, save_mesh
from PointCloudTriangulation.logger import configure_root_logger, disable_console_logging


def build_config(args):
    """Create the pipeline configuration from a file or preset plus CLI overrides"""
    if args.config:
        config = load_config(args.config)
    else:
        config = create_config_from_preset(args.preset)

    if args.radius is not None:
        config.smoothing.search_radius = args.radius
    if args.planar:
        config.smoothing.polynomial_fit = False
    if args.workers is not None:
        config.smoothing.num_workers = args.workers
    if args.fan_polygons:
        config.reconstruction.fan_polygons = True
    if args.merge_facets:
        config.reconstruction.merge_coplanar_facets = True

    config.verbose = args.verbose
    config.log_file = args.log_file
    return config


def run_request(config, input_path: Path, output_path: Path) -> int:
    """Serve a JSON point-set request the way the service does"""
    with open(input_path, 'r') as f:
        request = json.load(f)

    service = TriangulationService(config)
    response = service.handle(request)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    with open(output_path, 'w') as f:
        json.dump(response, f, indent=2)

    if not response['success']:
        print(f"\nTriangulation failed: {response['error']}")
        return 1

    print(f"✓ Response written to {output_path}")
    return 0


def main():
    parser = argparse.ArgumentParser(description="Point Cloud Triangulation")

    # Input/Output
    parser.add_argument('--input', type=str, required=True,
                       help='Point cloud file (.xyz, .txt, .csv, .pcd, .ply) or JSON point-set request')
    parser.add_argument('--output', type=str, default='./mesh.ply',
                       help='Output mesh (.ply, .obj, .stl) or JSON response when the input is JSON')

    # Configuration
    parser.add_argument('--preset', type=str, default='default',
                       choices=list(PRESET_CONFIGS.keys()),
                       help='Configuration preset')
    parser.add_argument('--config', type=str, default=None,
                       help='JSON configuration file (overrides --preset)')

    # Smoothing
    parser.add_argument('--radius', type=float, default=None,
                       help='MLS search radius in point units (default: 0.03)')
    parser.add_argument('--planar', action='store_true',
                       help='Fit local planes instead of polynomials')
    parser.add_argument('--workers', type=int, default=None,
                       help='Threads for per-point fits')

    # Reconstruction
    parser.add_argument('--fan-polygons', action='store_true',
                       help='Fan polygons with more than 3 vertices instead of truncating them')
    parser.add_argument('--merge-facets', action='store_true',
                       help='Merge coplanar hull facets into polygons')

    # Logging
    parser.add_argument('--verbose', action='store_true',
                       help='Enable verbose logging')
    parser.add_argument('--log-file', type=str, default=None,
                       help='Log to file')
    parser.add_argument('--quiet', action='store_true',
                       help='No log output on the console (use with --log-file to keep a log)')

    args = parser.parse_args()

    input_path = Path(args.input)
    output_path = Path(args.output)

    if not input_path.exists():
        print(f"Error: Input file not found: {input_path}")
        return 1

    try:
        config = build_config(args)
    except (ValueError, FileNotFoundError, json.JSONDecodeError) as e:
        print(f"Error loading configuration: {e}")
        return 1

    issues = validate_config(config)
    for warning in issues['warnings']:
        print(f"Warning: {warning}")
    if issues['errors']:
        for error in issues['errors']:
            print(f"Error: {error}")
        return 1

    configure_root_logger(level="DEBUG" if args.verbose else "INFO", log_file=args.log_file)
    if args.quiet:
        disable_console_logging()

    print("\n" + "="*70)
    print("POINT CLOUD TRIANGULATION")
    print("="*70)
    print(f"Input: {input_path}")
    print(f"Radius: {config.smoothing.search_radius}")
    print(f"Fit: {'polynomial' if config.smoothing.polynomial_fit else 'planar'}")
    print(f"Strategy: {config.reconstruction.strategy}")
    print(f"Output: {output_path}")
    print("="*70 + "\n")

    if input_path.suffix.lower() == '.json':
        try:
            return run_request(config, input_path, output_path)
        except ValueError as e:
            print(f"Error: Invalid request: {e}")
            return 1

    try:
        cloud = load_point_cloud(input_path)
    except (ValueError, OSError) as e:
        print(f"Error loading point cloud: {e}")
        return 1

    try:
        result = TriangulationPipeline(config).run(cloud)
    except InsufficientDataError as e:
        print(f"\nTriangulation failed: {e}")
        return 1
    except KeyboardInterrupt:
        print("\n\nInterrupted by user")
        return 130

    save_mesh(result.mesh, output_path)

    print("\n" + "="*70)
    print("TRIANGULATION SUCCESSFUL")
    print("="*70)
    print(f"Mesh: {output_path}")
    print("\nStatistics:")
    for key, value in result.statistics.items():
        print(f"  {key}: {value}")
    print("="*70)
    return 0


if __name__ == "__main__":
    sys.exit(main())
