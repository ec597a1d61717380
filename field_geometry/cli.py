"""
Command-line interface for the field_geometry package.

Provides an argparse-based CLI with subcommands that read a 2D variable from
a dataset file (anything ``xarray.open_dataset`` understands) and write the
resulting vertex buffers to a compressed ``.npz`` archive.

Usage:
    field-geometry contours data.nc --variable mslp --interval 4 --output mslp.npz
    field-geometry billboards data.nc --variable u10 --thinning-base 8 --output barbs.npz
    field-geometry mesh data.nc --variable t2m --output t2m_mesh.npz
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

import numpy as np
import xarray as xr

from .api import build_contour_layer, field_billboards, field_mesh
from .config import Config
from .exceptions import FieldGeometryError, InvalidConfiguration
from .grid import ScalarGrid
from .logging_config import setup_logging

logger = logging.getLogger(__name__)


def setup_logging_from_args(args: argparse.Namespace) -> None:
    """
    Configure logging based on command-line arguments.

    Args:
        args: Parsed command-line arguments with verbose, quiet, log_file
    """
    if getattr(args, "quiet", False):
        verbosity = -1  # WARNING
    elif getattr(args, "verbose", False):
        verbosity = 1  # DEBUG
    else:
        verbosity = 0  # INFO

    setup_logging(verbosity=verbosity, log_file=getattr(args, "log_file", None))


def parse_selection(items: Optional[List[str]]) -> Dict[str, int]:
    """
    Parse ``dim=index`` pairs used to reduce a variable to 2D.

    Raises:
        argparse.ArgumentTypeError: If an item is not of the form dim=int
    """
    selection: Dict[str, int] = {}
    for item in items or []:
        dim, sep, index = item.partition("=")
        if not sep or not dim:
            raise argparse.ArgumentTypeError(f"Invalid selection '{item}'. Expected dim=index")
        try:
            selection[dim] = int(index)
        except ValueError:
            raise argparse.ArgumentTypeError(f"Invalid index in '{item}'. Expected an integer")
    return selection


def load_config(args: argparse.Namespace) -> Config:
    """Load the config file (if any) and apply command-line overrides."""
    config = Config.load_from_file(args.config) if args.config else Config()

    if getattr(args, "interval", None) is not None:
        config.contour_interval = args.interval
    if getattr(args, "levels", None):
        config.contour_levels = [float(level) for level in args.levels]
    if getattr(args, "max_zoom", None) is not None:
        config.max_zoom = args.max_zoom
    if getattr(args, "thinning_base", None) is not None:
        config.thinning_base = args.thinning_base

    config.validate()
    return config


def load_grid(args: argparse.Namespace) -> ScalarGrid:
    """Open the input dataset and build a grid from the requested variable."""
    with xr.open_dataset(args.input) as ds:
        if args.variable not in ds:
            raise InvalidConfiguration(
                f"Variable '{args.variable}' not found. Available: {', '.join(map(str, ds.data_vars))}",
                "variable", args.variable
            )
        da = ds[args.variable]
        selection = parse_selection(args.select)
        if selection:
            da = da.isel(selection)
        da = da.squeeze().load()

    logger.info(f"Loaded '{args.variable}' from {args.input}: dims={da.dims}")
    return ScalarGrid.from_dataarray(da)


def _write_npz(path: str, arrays: Dict[str, np.ndarray]) -> Path:
    output = Path(path)
    output.parent.mkdir(parents=True, exist_ok=True)
    np.savez_compressed(output, **arrays)
    return output


def cmd_contours(args: argparse.Namespace) -> int:
    """Handle 'contours' subcommand."""
    config = load_config(args)
    layer = build_contour_layer(load_grid(args), config)

    arrays = {f"lines_{name}": arr for name, arr in layer.lines.as_dict().items()}
    arrays["label_lon"] = np.array([label.lon for label in layer.labels], dtype=np.float64)
    arrays["label_lat"] = np.array([label.lat for label in layer.labels], dtype=np.float64)
    arrays["label_min_zoom"] = np.array([label.min_zoom for label in layer.labels], dtype=np.int32)
    arrays["label_text"] = np.array([label.text for label in layer.labels], dtype=str)
    arrays["levels"] = np.array(list(layer.contours), dtype=np.float64)

    output = _write_npz(args.output, arrays)
    print(f"Success! {len(layer.contours)} levels, {len(layer.labels)} labels saved to: {output}")
    return 0


def cmd_billboards(args: argparse.Namespace) -> int:
    """Handle 'billboards' subcommand."""
    config = load_config(args)
    buffers = field_billboards(load_grid(args), config)
    output = _write_npz(args.output, buffers.as_dict())
    print(f"Success! {buffers.n_vertices} billboard vertices saved to: {output}")
    return 0


def cmd_mesh(args: argparse.Namespace) -> int:
    """Handle 'mesh' subcommand."""
    config = load_config(args)
    mesh = field_mesh(load_grid(args), config)
    output = _write_npz(args.output, mesh.as_dict())
    print(f"Success! {mesh.n_vertices} mesh vertices saved to: {output}")
    return 0


def create_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="field-geometry",
        description="Build render-ready geometry from gridded scalar fields",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    def _add_common_args(p: argparse.ArgumentParser) -> None:
        p.add_argument("input", type=str, help="Input dataset (NetCDF or any xarray-readable file)")
        p.add_argument("--variable", type=str, required=True, help="Name of the 2D variable to process")
        p.add_argument(
            "--select",
            type=str,
            nargs="*",
            metavar="DIM=INDEX",
            help="Index extra dimensions down to 2D, e.g. time=0"
        )
        p.add_argument("--output", type=str, required=True, help="Output .npz path")
        p.add_argument("--config", type=str, help="Config file path (YAML/JSON)")
        p.add_argument("--max-zoom", type=int, help="Override maximum map zoom")
        p.add_argument("-v", "--verbose", action="store_true", help="Enable DEBUG logging")
        p.add_argument("-q", "--quiet", action="store_true", help="Suppress INFO logging (WARNING+ only)")
        p.add_argument("--log-file", type=str, help="Write logs to file")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # ========================================================================
    # contours subcommand
    # ========================================================================
    parser_contours = subparsers.add_parser("contours", help="Contour lines and thinned labels")
    _add_common_args(parser_contours)
    parser_contours.add_argument("--interval", type=float, help="Contour interval")
    parser_contours.add_argument("--levels", type=float, nargs="+", help="Explicit contour levels")
    parser_contours.set_defaults(func=cmd_contours)

    # ========================================================================
    # billboards subcommand
    # ========================================================================
    parser_billboards = subparsers.add_parser("billboards", help="Zoom-thinned grid point billboards")
    _add_common_args(parser_billboards)
    parser_billboards.add_argument("--thinning-base", type=int, help="Power-of-two thinning base")
    parser_billboards.set_defaults(func=cmd_billboards)

    # ========================================================================
    # mesh subcommand
    # ========================================================================
    parser_mesh = subparsers.add_parser("mesh", help="Full-resolution raster mesh skeleton")
    _add_common_args(parser_mesh)
    parser_mesh.set_defaults(func=cmd_mesh)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for CLI."""
    parser = create_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    setup_logging_from_args(args)

    try:
        return args.func(args)
    except argparse.ArgumentTypeError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
    except FieldGeometryError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except (OSError, ValueError) as e:
        print(f"Error reading input: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
