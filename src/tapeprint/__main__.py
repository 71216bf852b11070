"""Command line interface for tapeprint."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

from tapeprint.config import AppConfig, load_config, settings
from tapeprint.framebuffer import Framebuffer
from tapeprint.labels import image_label, qr_label
from tapeprint.models.printer import PrinterConfig
from tapeprint.printers import create_control_channel
from tapeprint.printers.base import MissingConfiguration, PrinterError
from tapeprint.protocol.analyzer import analyze_stream, decode_raster
from tapeprint.protocol.frames import FrameError
from tapeprint.protocol.raster import encode_label
from tapeprint.session import print_framebuffer, resolve_tape

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Print labels on a network tape printer.",
        prog="tapeprint",
    )
    parser.add_argument(
        "-c",
        "--config",
        type=Path,
        default=None,
        help=f"Config file (default: {settings.config_file})",
    )
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command", required=True)

    print_parser = subparsers.add_parser("print", help="Print a label")
    content = print_parser.add_mutually_exclusive_group(required=True)
    content.add_argument("--qr-text", help="Print a QR code with this text")
    content.add_argument("--image", type=Path, help="Print an image file")
    print_parser.add_argument("--width", type=int, default=None, help="Tape width in mm (default: auto)")
    print_parser.add_argument("--printer", default=None, help="Printer IPv4 address")
    print_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Do not print, just generate and analyze the print data",
    )
    print_parser.add_argument("--preview", type=Path, default=None, help="Preview PNG path")
    print_parser.add_argument("-o", "--output", type=Path, default=None, help="Also write the print data to a file")

    analyze_parser = subparsers.add_parser("analyze", help="Analyze a captured print data stream")
    analyze_parser.add_argument("dump", type=Path, help="Raw dump of the data channel")
    analyze_parser.add_argument("--preview", type=Path, default=None, help="Render the raster to a PNG file")

    status_parser = subparsers.add_parser("status", help="Query printer status")
    status_parser.add_argument("--printer", default=None, help="Printer IPv4 address")

    return parser


def _printer_config(config: AppConfig, address: str | None) -> PrinterConfig | None:
    """Merge the --printer address into the configured printer, if any."""
    if address is None:
        return config.printer
    if config.printer is None:
        return PrinterConfig(address=address)
    return config.printer.model_copy(update={"address": address})


def _build_label(args: argparse.Namespace, tape_width_px: int) -> Framebuffer:
    if args.qr_text is not None:
        return qr_label(args.qr_text, tape_width_px)
    return image_label(args.image, tape_width_px)


async def _print(args: argparse.Namespace, config: AppConfig) -> int:
    printer = _printer_config(config, args.printer)
    width_mm = args.width if args.width is not None else config.default_width_mm

    # A configured printer is only asked for the tape when no width is known
    detect = printer is not None and (args.printer is not None or width_mm is None)
    if detect:
        async with create_control_channel(printer) as control:
            tape = await resolve_tape(width_mm, control)
    else:
        tape = await resolve_tape(width_mm, None)
    logger.info(f"Printing on {tape}")

    fb = _build_label(args, tape.width_px)
    preview = args.preview or config.preview_path
    fb.save_preview(preview)
    logger.info(f"Preview written to {preview}")

    data = encode_label(fb)
    if args.output:
        args.output.write_bytes(data)
        logger.info(f"Print data written to {args.output}")

    if args.dry_run:
        report = analyze_stream(data)
        print(report.summary())
        return 0

    if printer is None:
        raise MissingConfiguration("Please specify --printer")
    await print_framebuffer(printer, fb)
    return 0


def _analyze(args: argparse.Namespace) -> int:
    data = args.dump.read_bytes()
    report = analyze_stream(data)
    print(report.summary())
    if args.preview:
        decode_raster(data).save_preview(args.preview)
        print(f"Rendered to {args.preview}")
    return 0


async def _status(args: argparse.Namespace, config: AppConfig) -> int:
    printer = _printer_config(config, args.printer)
    if printer is None:
        raise MissingConfiguration("Please specify --printer")
    async with create_control_channel(printer) as control:
        status = await control.query_status()
    print(status)
    return 0


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the tapeprint CLI."""
    args = _build_parser().parse_args(argv)

    # Configure logging
    log_level = logging.DEBUG if (args.debug or settings.debug) else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    config_path = args.config or settings.config_file
    try:
        config = load_config(config_path)
    except Exception as e:
        print(f"Error loading config {config_path}: {e}", file=sys.stderr)
        return 1

    try:
        if args.command == "print":
            return asyncio.run(_print(args, config))
        if args.command == "analyze":
            return _analyze(args)
        return asyncio.run(_status(args, config))
    except (PrinterError, FrameError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
