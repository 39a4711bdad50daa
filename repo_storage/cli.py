"""Command-line interface for repository storage."""

import argparse
import logging
import shutil
import sys
from pathlib import Path
from typing import List, Optional

from repo_storage import __version__
from repo_storage.config import load_config
from repo_storage.exceptions import StorageError
from repo_storage.selector import create_storage


def setup_logging(verbose: bool = False):
    """Configure logging."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='repo-storage',
        description='Inspect and manage files in repository storage',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show which backend the environment selects
  repo-storage info

  # Print where a file lives on disk
  repo-storage path files/3.0/library.zip

  # Write a stored file to stdout (downloads it on a cache miss)
  repo-storage cat files/3.0/library.zip > library.zip

  # Import a build artifact, removing the original
  repo-storage import ./dist/library.zip files/3.0/library.zip --move

  # Delete a file (local copy and remote object)
  repo-storage delete files/3.0/library.zip

Backend selection reads REPO_STORAGE_S3_BUCKET, REPO_STORAGE_S3_REGION,
REPO_STORAGE_S3_MOUNT and REPO_STORAGE_S3_ENDPOINT unless --config is given.
        """
    )

    parser.add_argument(
        '-c', '--config',
        type=str,
        help='YAML configuration file (overrides environment variables)'
    )

    parser.add_argument(
        '--root',
        type=str,
        help='Local root / cache directory (default: current directory)'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Enable debug logging'
    )

    parser.add_argument(
        '--version',
        action='version',
        version=f'%(prog)s {__version__}'
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('info', help='Describe the selected backend')

    path_parser = subparsers.add_parser('path', help='Print the local path of a file')
    path_parser.add_argument('file', help='Relative storage path')

    cat_parser = subparsers.add_parser('cat', help='Write a stored file to stdout')
    cat_parser.add_argument('file', help='Relative storage path')

    import_parser = subparsers.add_parser('import', help='Import a local file into storage')
    import_parser.add_argument('src', help='File to import')
    import_parser.add_argument('dst', help='Relative storage path')
    import_parser.add_argument('--move', action='store_true', help='Remove the source after importing')
    import_parser.add_argument('--content-type', type=str, default=None, help='MIME type for the stored object')

    delete_parser = subparsers.add_parser('delete', help='Delete a file from storage')
    delete_parser.add_argument('file', help='Relative storage path')

    return parser


def _copy_to_stdout(path: Path):
    with open(path, 'rb') as f:
        shutil.copyfileobj(f, sys.stdout.buffer)
    sys.stdout.buffer.flush()


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose)

    overrides = {'root': args.root} if args.root else {}

    try:
        config = load_config(args.config, **overrides)
        storage = create_storage(config)

        if args.command == 'info':
            print(storage.describe())
        elif args.command == 'path':
            print(storage.get_path(args.file))
        elif args.command == 'cat':
            storage.read_file(args.file, _copy_to_stdout)
        elif args.command == 'import':
            src = Path(args.src).expanduser().resolve()
            storage.import_file(src, args.dst, move=args.move, content_type=args.content_type)
            print(f"Imported {src} -> {args.dst}")
        elif args.command == 'delete':
            storage.delete_file(args.file)
            print(f"Deleted {args.file}")

    except (StorageError, ValueError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    return 0


if __name__ == '__main__':
    sys.exit(main())
