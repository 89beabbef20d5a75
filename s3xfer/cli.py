"""CLI entry point for s3xfer."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

import yaml
from loguru import logger

from s3xfer.client import ObjectStoreClient
from s3xfer.config import StoreSettings, get_config_path
from s3xfer.exceptions import S3XferError
from s3xfer.transfer import download_file, list_all_keys, list_keys, upload_file

DEMO_UPLOAD_PATH = "src/main.rs"
DEMO_DOWNLOAD_KEY = "videos/ski-02.mp4"
DEMO_DOWNLOAD_DIR = ".test-data/downloads/"


def configure_logging(*, verbose: bool = False) -> None:
    """Send loguru output to stderr at INFO (or DEBUG with *verbose*)."""
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


class CliApp:
    """Command-line interface for s3xfer."""

    def __init__(self) -> None:
        """Initialize parser and command definitions."""
        self._parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="List, upload and download objects in an S3 bucket.",
        )
        parser.add_argument(
            "--config",
            default=None,
            help=(
                "Path to YAML config (default: ~/.config/s3xfer/config.yaml "
                "or S3XFER_CONFIG)."
            ),
        )
        parser.add_argument("--bucket", default=None, help="Override target bucket.")
        parser.add_argument("--region", default=None, help="Override target region.")
        parser.add_argument(
            "--endpoint-url",
            default=None,
            help="Custom S3-compatible endpoint (e.g. MinIO).",
        )
        parser.add_argument(
            "--verbose",
            "-v",
            action="store_true",
            help="Enable debug logging.",
        )
        subparsers = parser.add_subparsers(dest="command", required=True)

        self._add_list_parser(subparsers)
        self._add_upload_parser(subparsers)
        self._add_download_parser(subparsers)
        self._add_demo_parser(subparsers)
        self._add_config_parser(subparsers)

        return parser

    def _add_list_parser(
        self,
        subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ) -> None:
        """Add the ``list`` command parser."""
        parser = subparsers.add_parser("list", help="List object keys.")
        parser.add_argument(
            "--prefix",
            default="",
            help="Only keys starting with this prefix (default: all).",
        )
        parser.add_argument(
            "--all",
            action="store_true",
            help="Follow continuation tokens instead of returning one page.",
        )

    def _add_upload_parser(
        self,
        subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ) -> None:
        """Add the ``upload`` command parser."""
        parser = subparsers.add_parser(
            "upload",
            help="Upload a local file; the path is used as the object key.",
        )
        parser.add_argument("path", help="Local file to upload.")

    def _add_download_parser(
        self,
        subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ) -> None:
        """Add the ``download`` command parser."""
        parser = subparsers.add_parser(
            "download",
            help="Download an object into DEST_DIR/KEY.",
        )
        parser.add_argument("key", help="Object key.")
        parser.add_argument("dest_dir", help="Existing destination directory.")
        parser.add_argument(
            "--atomic",
            action="store_true",
            help="Write to a temporary file and rename it on success.",
        )

    def _add_demo_parser(
        self,
        subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ) -> None:
        """Add the ``demo`` command parser."""
        parser = subparsers.add_parser(
            "demo",
            help="List, upload one file, then download one object.",
        )
        parser.add_argument("--path", default=DEMO_UPLOAD_PATH)
        parser.add_argument("--key", default=DEMO_DOWNLOAD_KEY)
        parser.add_argument("--dest", default=DEMO_DOWNLOAD_DIR)

    def _add_config_parser(
        self,
        subparsers: argparse._SubParsersAction[argparse.ArgumentParser],
    ) -> None:
        """Add the ``config`` command parser."""
        parser = subparsers.add_parser(
            "config",
            help="Show the effective store settings; optionally save them.",
        )
        parser.add_argument(
            "--save",
            action="store_true",
            help=(
                "Write the effective settings (after --bucket/--region/"
                "--endpoint-url overrides) to the config file."
            ),
        )

    def _load_settings(self, args: argparse.Namespace) -> StoreSettings:
        """Load settings (preset < file < env) and apply CLI overrides."""
        config_path = Path(args.config) if args.config else None
        settings = StoreSettings.load(config_path=config_path)
        overrides = StoreSettings(
            bucket=args.bucket or "",
            region=args.region or "",
            endpoint_url=args.endpoint_url,
        )
        settings = settings.merge(overrides)
        if not settings.bucket:
            sys.exit(
                "Error: bucket is not configured.\n"
                "Pass --bucket, set S3XFER_BUCKET or add store.bucket to the config."
            )
        return settings

    @staticmethod
    def _run_config(settings: StoreSettings, args: argparse.Namespace) -> None:
        """Print the effective settings and save them when ``--save`` is given."""
        section = {"store": settings.model_dump(exclude_none=True)}
        print(yaml.safe_dump(section, sort_keys=False), end="")  # noqa: T201
        if args.save:
            config_path = Path(args.config) if args.config else None
            settings.save_to_file(get_config_path(config_path))

    @staticmethod
    def _run_list(
        client: ObjectStoreClient,
        settings: StoreSettings,
        prefix: str = "",
        *,
        all_pages: bool = False,
    ) -> None:
        lister = list_all_keys if all_pages else list_keys
        keys = lister(client, settings.bucket, prefix)
        print("List:\n" + "\n".join(keys))  # noqa: T201

    @staticmethod
    def _run_upload(
        client: ObjectStoreClient,
        settings: StoreSettings,
        path: str,
    ) -> None:
        upload_file(client, settings.bucket, path)
        print(f"Uploaded file {path}")  # noqa: T201

    @staticmethod
    def _run_download(  # noqa: PLR0913
        client: ObjectStoreClient,
        settings: StoreSettings,
        key: str,
        dest_dir: Path,
        *,
        atomic: bool = False,
    ) -> None:
        download_file(
            client,
            settings.bucket,
            key,
            dest_dir,
            atomic=atomic,
            progress=sys.stderr.isatty(),
        )
        print(f"Downloaded {key} in directory {dest_dir}")  # noqa: T201

    def _run_command(self, args: argparse.Namespace) -> None:
        """Dispatch parsed args to the target command implementation."""
        settings = self._load_settings(args)
        if args.command == "config":
            self._run_config(settings, args)
            return
        client = ObjectStoreClient.from_env(settings)
        if args.command == "list":
            self._run_list(client, settings, args.prefix, all_pages=args.all)
            return
        if args.command == "upload":
            self._run_upload(client, settings, args.path)
            return
        if args.command == "download":
            self._run_download(
                client, settings, args.key, Path(args.dest_dir), atomic=args.atomic
            )
            return
        if args.command == "demo":
            self._run_list(client, settings)
            self._run_upload(client, settings, args.path)
            self._run_download(client, settings, args.key, Path(args.dest))
            return
        sys.exit(f"Unknown command: {args.command}")

    def run(self, argv: list[str] | None = None) -> None:
        """Run the CLI with the given arguments."""
        args = self._parser.parse_args(argv)
        configure_logging(verbose=args.verbose)
        try:
            self._run_command(args)
        except S3XferError as e:
            sys.exit(f"Error: {e}")


def main(argv: list[str] | None = None) -> None:
    """Compatibility entry point for setuptools/CLI wrappers."""
    CliApp().run(argv)


if __name__ == "__main__":
    main()
