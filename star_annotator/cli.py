"""Headless command line front end for the annotation pipeline."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional
from urllib.parse import urlparse

from PIL import Image

from .config.settings import load_config, save_config, validate_upload_url
from .core.constants import VERSION
from .core.entities import ImageReference
from .core.exceptions import ConfigError
from .core.logging_config import configure_logging
from .services.factory import build_orchestrator
from .utils.file_utils import ensure_dirs

logger = logging.getLogger(__name__)


class ConsoleView:
    """Pipeline view that writes the result to disk and reports on stdout/stderr."""

    def __init__(self, output_path: Path):
        self.output_path = output_path
        self.saved_path: Optional[Path] = None
        self.error: Optional[str] = None

    def report_busy(self, busy: bool) -> None:
        if busy:
            print("Uploading and annotating...", flush=True)

    def set_controls_enabled(self, enabled: bool) -> None:
        pass

    def display_image(self, image: Image.Image) -> None:
        ensure_dirs(self.output_path.parent)
        image.save(self.output_path, format="PNG")
        self.saved_path = self.output_path
        print(f"Annotated image saved to {self.output_path}")

    def display_error(self, message: str) -> None:
        self.error = message
        print(message, file=sys.stderr)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="star-annotator-cli",
        description="Upload an image to the star annotation service and save the labeled result."
    )
    parser.add_argument("reference", help="Image path, file:// URI or http(s) URL")
    parser.add_argument("-o", "--output", help="Output PNG path (default: <output_dir>/<name>_annotated.png)")
    parser.add_argument("--url", help="Override the upload endpoint")
    parser.add_argument("--config", default="config.json", help="Path to config.json")
    parser.add_argument("--env-file", default=None, help="Path to .env file")
    parser.add_argument("--save-config", action="store_true",
                        help="Write the effective settings (including --url) back to --config")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def default_output_path(reference: ImageReference, output_dir: str) -> Path:
    if reference.local_path is not None:
        name = reference.local_path.name
    else:
        name = urlparse(reference.uri).path.rsplit("/", 1)[-1]
    stem = Path(name).stem or "image"
    return Path(output_dir) / f"{stem}_annotated.png"


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config = load_config(args.config, env_file=args.env_file)
    if args.url:
        try:
            config.upload_url = validate_upload_url(args.url)
        except ConfigError as e:
            print(e, file=sys.stderr)
            return 2
    if args.save_config:
        save_config(config, args.config)

    configure_logging(
        log_level="DEBUG" if args.verbose else config.effective_log_level,
        log_dir=config.log_dir,
        enable_file_logging=config.enable_file_logging,
        enable_console_logging=args.verbose,
        structured_logging=config.structured_logging
    )

    reference = ImageReference(args.reference)
    output = Path(args.output) if args.output else default_output_path(reference, config.output_dir)
    view = ConsoleView(output)
    logger.info(f"Annotating {reference} into {output}")

    orchestrator = build_orchestrator(config, view=view)
    result = asyncio.run(orchestrator.run(reference))
    return 0 if result.success else 1


if __name__ == "__main__":
    sys.exit(main())
