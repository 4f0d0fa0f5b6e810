"""CLI entry point for s3rest."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import TYPE_CHECKING, BinaryIO

from loguru import logger

from s3rest.client import S3Client
from s3rest.config import S3Config
from s3rest.exceptions import S3RestError
from s3rest.options import ListObjectsOptions

if TYPE_CHECKING:
    from s3rest.models import GetObjectStream


def _configure_logging(*, verbose: bool, quiet: bool) -> None:
    """Route loguru output to stderr at the level the flags ask for."""
    level = "DEBUG" if verbose else "WARNING" if quiet else "INFO"
    logger.remove()
    logger.add(sys.stderr, level=level)


class CliApp:
    """Command-line interface for s3rest."""

    def __init__(self, client_factory: type[S3Client] = S3Client) -> None:
        """Initialize parser; *client_factory* builds the client from config."""
        self._client_factory = client_factory
        self._parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="Work with buckets and objects on S3-compatible storage.",
        )
        parser.add_argument(
            "--config",
            type=Path,
            default=None,
            help="Path to config YAML (default: $S3REST_CONFIG or "
            "~/.config/s3rest/config.yaml).",
        )
        verbosity = parser.add_mutually_exclusive_group()
        verbosity.add_argument(
            "--verbose", "-v", action="store_true", help="Log every request."
        )
        verbosity.add_argument(
            "--quiet", "-q", action="store_true", help="Log warnings and errors only."
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        subparsers.add_parser("buckets", help="List buckets.")
        self._add_ls_parser(subparsers)
        self._add_get_parser(subparsers)
        self._add_put_parser(subparsers)
        self._add_rm_parser(subparsers)
        self._add_cp_parser(subparsers)

        return parser

    def _add_ls_parser(
        self,
        subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ) -> None:
        """Add the ``ls`` command parser."""
        parser = subparsers.add_parser("ls", help="List objects in a bucket.")
        parser.add_argument("bucket")
        parser.add_argument("--prefix", default=None, help="Only keys with this prefix.")
        parser.add_argument(
            "--max-keys",
            type=int,
            default=None,
            help="Page size requested from the service.",
        )

    def _add_get_parser(
        self,
        subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ) -> None:
        """Add the ``get`` command parser."""
        parser = subparsers.add_parser("get", help="Download an object.")
        parser.add_argument("bucket")
        parser.add_argument("key")
        parser.add_argument(
            "--output",
            "-o",
            type=Path,
            default=None,
            help="Write to this file instead of stdout.",
        )

    def _add_put_parser(
        self,
        subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ) -> None:
        """Add the ``put`` command parser."""
        parser = subparsers.add_parser("put", help="Upload a file as an object.")
        parser.add_argument("bucket")
        parser.add_argument("key")
        parser.add_argument("file", type=Path)

    def _add_rm_parser(
        self,
        subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ) -> None:
        """Add the ``rm`` command parser."""
        parser = subparsers.add_parser("rm", help="Delete objects (batch delete).")
        parser.add_argument("bucket")
        parser.add_argument("keys", nargs="+")

    def _add_cp_parser(
        self,
        subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ) -> None:
        """Add the ``cp`` command parser."""
        parser = subparsers.add_parser("cp", help="Copy an object within a bucket.")
        parser.add_argument("bucket")
        parser.add_argument("source")
        parser.add_argument("destination")

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def _run_buckets(self, client: S3Client) -> None:
        result = client.list_buckets()
        for bucket in result.buckets:
            print(f"{bucket.creation_date}\t{bucket.name}")

    def _run_ls(self, client: S3Client, args: argparse.Namespace) -> None:
        options = ListObjectsOptions(prefix=args.prefix, max_keys=args.max_keys)
        count = 0
        for obj in client.list_objects(args.bucket, options):
            print(f"{obj.last_modified}\t{obj.size}\t{obj.key}")
            count += 1
        logger.info(f"{count} object(s) in {args.bucket!r}")

    def _run_get(self, client: S3Client, args: argparse.Namespace) -> None:
        def copy_to(sink: BinaryIO) -> int:
            def handler(obj: GetObjectStream) -> int:
                written = 0
                for chunk in obj.iter_chunks():
                    sink.write(chunk)
                    written += len(chunk)
                return written

            return client.get_object_stream(args.bucket, args.key, handler)

        if args.output is None:
            written = copy_to(sys.stdout.buffer)
            sys.stdout.buffer.flush()
        else:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            with args.output.open("wb") as fh:
                written = copy_to(fh)
        logger.info(f"Downloaded {written} byte(s) from {args.bucket}/{args.key}")

    def _run_put(self, client: S3Client, args: argparse.Namespace) -> None:
        if not args.file.is_file():
            sys.exit(f"Error: file not found: {args.file}")
        with args.file.open("rb") as fh:
            result = client.put_object(args.bucket, args.key, fh)
        logger.info(f"Uploaded {args.file} to {args.bucket}/{args.key} ({result.etag})")

    def _run_rm(self, client: S3Client, args: argparse.Namespace) -> None:
        result = client.batch_delete(args.bucket, args.keys)
        for obj in result.deleted_objects:
            if obj.deleted:
                print(f"deleted\t{obj.key}")
            else:
                print(f"failed\t{obj.key}\t{obj.code}: {obj.message}")
        if not result.success:
            sys.exit(f"Error: {len(result.errors)} key(s) could not be deleted.")

    def _run_cp(self, client: S3Client, args: argparse.Namespace) -> None:
        result = client.copy_object(args.bucket, args.source, args.destination)
        logger.info(
            f"Copied {args.bucket}/{args.source} to {args.destination} ({result.etag})"
        )

    def _run_command(self, client: S3Client, args: argparse.Namespace) -> None:
        """Dispatch parsed args to the target command implementation."""
        if args.command == "buckets":
            self._run_buckets(client)
            return
        if args.command == "ls":
            self._run_ls(client, args)
            return
        if args.command == "get":
            self._run_get(client, args)
            return
        if args.command == "put":
            self._run_put(client, args)
            return
        if args.command == "rm":
            self._run_rm(client, args)
            return
        if args.command == "cp":
            self._run_cp(client, args)
            return
        sys.exit(f"Unknown command: {args.command}")

    def run(self, argv: list[str] | None = None) -> None:
        """Run the CLI with the given arguments."""
        args = self._parser.parse_args(argv)
        _configure_logging(verbose=args.verbose, quiet=args.quiet)
        try:
            cfg = S3Config.load(args.config)
            with self._client_factory(cfg) as client:
                self._run_command(client, args)
        except S3RestError as e:
            logger.debug(f"{type(e).__name__}: {e}")
            sys.exit(f"Error: {e}")


def main(argv: list[str] | None = None) -> None:
    """Compatibility entry point for setuptools/CLI wrappers."""
    CliApp().run(argv)


if __name__ == "__main__":
    main()
