"""
Drive Burn-In Command Line

Thin entry point: builds a validated configuration, runs the burn-in
sequence and maps its result to an exit code.

Exit codes:
    0 - every phase passed (or was skipped)
    2 - a phase failed or aborted, or the run could not start
"""

import argparse
import sys
from typing import Any, Dict, List, Optional

from burninkit.logger import Logger, get_module_logger
from burninkit.testtool.disk_burnin import BurnInConfig, BurnInController, BurnInError

EXIT_SUCCESS = 0
EXIT_FAILURE = 2


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """
    Parse command-line arguments.

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog='drive-burnin',
        description='Burn-in test a drive: SMART short test, destructive badblocks scan, SMART extended test',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog='''
Examples:
  # Dry run: log every command without touching the drive
  %(prog)s /dev/sdb

  # Live run (DESTROYS ALL DATA ON THE DRIVE)
  %(prog)s -x /dev/sdb

  # Live run, scan the whole drive with every pattern even after errors
  %(prog)s -x -f -o /var/log/burnin /dev/sdb
        '''
    )

    parser.add_argument(
        'device',
        type=str,
        help='Block device to test (e.g., /dev/sdb)'
    )

    parser.add_argument(
        '--block-size', '-b',
        type=int,
        help='badblocks block size in bytes (default: 8192)'
    )

    parser.add_argument(
        '--blocks-at-once', '-c',
        type=int,
        help='badblocks blocks tested at once (default: 64)'
    )

    parser.add_argument(
        '--full-pass', '-f',
        action='store_true',
        help='Scan every pattern even after a bad block is found'
    )

    parser.add_argument(
        '--execute', '-x',
        action='store_true',
        help='Really run the tests (default is a dry run)'
    )

    parser.add_argument(
        '--log-dir', '-o',
        type=str,
        help='Directory for log and bad-block files (default: ./burnin_logs)'
    )

    parser.add_argument(
        '--config',
        type=str,
        help='YAML file with configuration overrides'
    )

    return parser.parse_args(argv)


def build_overrides(args: argparse.Namespace) -> Dict[str, Any]:
    """Translate parsed arguments into configuration overrides."""
    overrides: Dict[str, Any] = {'device': args.device}
    if args.block_size is not None:
        overrides['block_size'] = args.block_size
    if args.blocks_at_once is not None:
        overrides['blocks_at_once'] = args.blocks_at_once
    if args.full_pass:
        overrides['full_pass'] = True
    if args.execute:
        overrides['dry_run'] = False
    if args.log_dir:
        overrides['log_dir'] = args.log_dir
    return overrides


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main entry point.

    Returns:
        Exit code (0 = success, 2 = failure)
    """
    args = parse_arguments(argv)

    try:
        config = BurnInConfig.build(build_overrides(args), path=args.config)
    except BurnInError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return EXIT_FAILURE

    Logger.init_logging(config['log_dir'])
    logger = get_module_logger(__name__)

    device = config.pop('device')
    try:
        controller = BurnInController(device, **config)
        report = controller.execute()
    except BurnInError as e:
        logger.error(f"Burn-in of {device} could not run: {e}")
        return EXIT_FAILURE

    return EXIT_SUCCESS if report.success else EXIT_FAILURE


if __name__ == '__main__':
    sys.exit(main())
