"""Main module for the photo gallery CLI."""

import sys
import argparse
from typing import List, Optional

from . import __version__
from .core import GalleryConfig, GalleryError, get_logger
from .core.factories import create_context
from .core.logging_config import set_debug_logging
from .core.models import FAILURE_POLICIES, PROCESSORS
from .core.services import GalleryContext


def _add_pipeline_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--photo-directory",
        default=None,
        help="Directory scanned for JPEG files (env: PHOTO_DIRECTORY, default: ./samples)",
    )
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum number of thumbnails generated at once (env: CONCURRENCY, default: CPU count)",
    )
    parser.add_argument(
        "--processor",
        type=str,
        default=None,
        choices=PROCESSORS,
        help="Processing strategy to use (env: PROCESSOR, default: multithread)",
    )
    parser.add_argument(
        "--failure-policy",
        type=str,
        default=None,
        choices=FAILURE_POLICIES,
        help="'strict' aborts on the first broken image, 'relaxed' keeps a placeholder",
    )
    parser.add_argument(
        "--no-progress", action="store_true", help="Disable the progress bar"
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")


def build_parser() -> argparse.ArgumentParser:
    """
    Builds the argument parser with the "serve", "build" and "version" commands.

    Returns:
        The configured `argparse.ArgumentParser`.
    """
    parser: argparse.ArgumentParser = argparse.ArgumentParser(
        prog="photo-gallery",
        description="Photo Gallery - thumbnails precomputed at startup, served over HTTP",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Serve ./samples on port 3000 (a random password is printed)
  photo-gallery serve

  # Serve another directory with four thumbnail workers
  PASSWORD=secret photo-gallery serve --photo-directory ~/Pictures --concurrency 4

  # Only build the thumbnails and report statistics
  photo-gallery build --photo-directory ~/Pictures --processor multiprocess

  # Show version
  photo-gallery version
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    serve_parser = subparsers.add_parser(
        "serve", help="Build the thumbnails, then serve the gallery"
    )
    _add_pipeline_arguments(serve_parser)
    serve_parser.add_argument(
        "--host", default=None, help="Interface to bind (env: HTTP_HOST, default: 0.0.0.0)"
    )
    serve_parser.add_argument(
        "--port", type=int, default=None, help="Port to listen on (env: HTTP_PORT, default: 3000)"
    )

    build_parser_ = subparsers.add_parser(
        "build", help="Build the thumbnails and print a summary"
    )
    _add_pipeline_arguments(build_parser_)

    subparsers.add_parser("version", help="Show version information")
    return parser


def load_config(args: argparse.Namespace) -> GalleryConfig:
    """Combine environment variables with command line overrides."""
    return GalleryConfig.from_env(
        photo_directory=args.photo_directory,
        concurrency=args.concurrency,
        processor=args.processor,
        failure_policy=args.failure_policy,
        host=getattr(args, "host", None),
        port=getattr(args, "port", None),
        progress=False if args.no_progress else None,
        debug=True if args.debug else None,
    )


def initialize_gallery(config: GalleryConfig) -> GalleryContext:
    """Run the startup pipeline; raises the fatal startup error on failure."""
    if config.debug:
        set_debug_logging()
    return create_context(config).initialize()


def serve(config: GalleryConfig) -> None:
    """Build the photo index, then block serving HTTP requests."""
    import uvicorn

    from .web.app import create_app

    context = initialize_gallery(config)
    app = create_app(context)
    get_logger("main").info(f"Listening on http://{config.host}:{config.port}")
    uvicorn.run(
        app,
        host=config.host,
        port=config.port,
        log_level="debug" if config.debug else "info",
    )


def build(config: GalleryConfig) -> None:
    """Build the photo index and print its summary."""
    context = initialize_gallery(config)
    summary = context.summary
    print(f"Photos:        {summary.total}")
    print(f"Thumbnails:    {summary.succeeded}")
    print(f"Failed:        {summary.failed}")
    print(f"Processor:     {summary.processor}")
    print(f"Concurrency:   {config.concurrency} (peak {summary.peak_concurrency})")
    print(f"Elapsed:       {summary.elapsed:.2f}s")


def run_command(args: argparse.Namespace) -> None:
    """Run "serve" or "build"; a startup error exits with status 1."""
    logger = get_logger("main")
    try:
        config = load_config(args)
        if args.command == "serve":
            serve(config)
        else:
            build(config)
    except KeyboardInterrupt:
        logger.warning("Interrupted by user.")
    except GalleryError as e:
        logger.error(f"Startup failed: {e}", exc_info=args.debug)
        sys.exit(1)


def main(argv: Optional[List[str]] = None) -> None:
    """
    Entry point for the command-line interface of the photo gallery.

    A failing startup pipeline exits with status 1 before anything is
    served.
    """
    parser = build_parser()
    args: argparse.Namespace = parser.parse_args(argv)

    if args.command in ("serve", "build"):
        run_command(args)

    elif args.command == "version":
        print("Photo Gallery")
        print(f"Version {__version__}")
        print("Bounded-concurrency thumbnail pipeline with a FastAPI gallery")
        sys.exit(0)

    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
