"""Command-line interface for openfoamparser.

Prints the mesh summary, the available times and, for each requested field,
its class, internal size and per-patch condition types.
"""

import argparse
import logging
import sys
import traceback
from typing import List, Optional

from openfoamparser.core.case import FoamCase
from openfoamparser.core.config import ReaderConfig
from openfoamparser.exceptions import FoamError


def setup_logging(debug_mode: bool = False) -> None:
    """Configure logging based on debug mode.

    Args:
        debug_mode: If True, set logging level to DEBUG, otherwise INFO
    """
    log_level = logging.DEBUG if debug_mode else logging.INFO
    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments.

    Returns:
        Parsed command line arguments
    """
    parser = argparse.ArgumentParser(
        description='Read an OpenFOAM case and summarise its mesh, times and fields'
    )
    parser.add_argument('case', help='Path to the OpenFOAM case directory')

    time_group = parser.add_mutually_exclusive_group()
    time_group.add_argument('-t', '--time', default=None,
                            help='Time directory name or value (default: latest time)')
    time_group.add_argument('--latest', action='store_true', help='Use the latest time directory')

    parser.add_argument('-f', '--field', action='append', default=[], dest='fields',
                        help='Field to read at the selected time (repeatable)')
    parser.add_argument('-r', '--region', default=None, help='Mesh region (default region when omitted)')
    parser.add_argument('-c', '--config', default=None, help='Reader configuration file (JSON or YAML)')
    parser.add_argument('--save-config', default=None, metavar='FILE',
                        help='Write the effective reader configuration to FILE (JSON or YAML)')
    parser.add_argument('--debug', action='store_true', help='Enable debug output')

    return parser.parse_args(argv)


def _load_config(args: argparse.Namespace) -> ReaderConfig:
    config = ReaderConfig.from_file(args.config) if args.config else ReaderConfig()
    if args.region:
        config.region = args.region
    return config


def print_case(case: FoamCase, time: str, fields: List[str]) -> None:
    mesh = case.mesh
    print(f"Case: {case.root}")
    print(f"  cells: {mesh.num_cells}  faces: {mesh.num_faces} "
          f"(internal {mesh.num_internal_faces})  points: {mesh.num_points}")
    for patch in mesh.boundary:
        print(f"  patch {patch.name}: {patch.patch_type}, {patch.n_faces} faces from {patch.start_face}")

    print(f"Times: {' '.join(case.times.names) or '(none)'}")
    if not fields:
        return

    entry = case.resolve_time(time)
    print(f"Fields at time {entry.name}:")
    for name in fields:
        field = case.read_field(name, entry)
        print(f"  {field.name}: {field.field_class}, {len(field)} values")
        for patch_name, condition in field.condition_types().items():
            print(f"    {patch_name}: {condition}")


def main(argv: Optional[List[str]] = None) -> int:
    """Main function of the command-line reader.

    Returns:
        Exit code: 0 for success, non-zero for error
    """
    args = parse_arguments(argv)

    setup_logging(args.debug)
    logger = logging.getLogger(__name__)

    try:
        config = _load_config(args)
        if args.save_config:
            config.save(args.save_config)
            logger.info(f"Reader configuration saved to {args.save_config}")
        case = FoamCase(args.case, config=config)
        time = args.time if args.time is not None else "latestTime"
        print_case(case, time, args.fields)
    except (FoamError, OSError, ValueError, ImportError) as e:
        logger.error(f"Error reading case {args.case}: {e}")
        if args.debug:
            logger.debug(traceback.format_exc())
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
