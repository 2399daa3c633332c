"""
Command line entry point.

  resolume-converter layers [list|get]
  resolume-converter composition [get]
  resolume-converter clips selected
  resolume-converter clips get <clip_id>
  resolume-converter clips thumbnail <clip_id> [--out FILE]
  resolume-converter convert input <in_dir>
  resolume-converter convert audio <in_dir> <audio_out>
  resolume-converter convert video <in_dir> <video_out>
  resolume-converter convert input-audio <in_dir> <audio_out>
  resolume-converter convert import <video_dir> <start> [end]
  resolume-converter convert place <audio_dir> <video_dir> <start> <end>

Layer numbers are 0-based positions in the composition, inclusive.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, List, Optional

from .cancel import CancelToken, install_sigint_handler
from .client import ResolumeHTTPClient
from .config import (
    DEFAULT_CONNECTIONS_PATH,
    ConverterSettings,
    HttpEndpoint,
    get_resolume_http_connection,
    load_connections,
)
from .convert import convert_audio_files, convert_inputs, convert_video_files, list_sources
from .errors import CancelledError, ConverterError
from .model import Clip
from .provisioner import Provisioner
from .transcoder import Transcoder

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_CANCELLED = 130


def setup_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)-7s %(message)s",
        datefmt="%H:%M:%S",
    )
    # requests/urllib3 are chatty at DEBUG
    logging.getLogger("urllib3").setLevel(logging.WARNING)


def print_json(data: Any) -> None:
    print(json.dumps(data, indent=2))


class Context:
    """Everything a command needs, built once from the global options."""

    def __init__(self, args: argparse.Namespace, cancel: CancelToken):
        self.cancel = cancel
        required = args.connections is not None
        cfg = load_connections(Path(args.connections or DEFAULT_CONNECTIONS_PATH), required=required)
        self.settings = ConverterSettings.from_config(cfg)
        if args.base_url:
            self.endpoint = HttpEndpoint.from_base_url(args.base_url)
        else:
            self.endpoint = get_resolume_http_connection(cfg, name=args.conn_name)
        self._client: Optional[ResolumeHTTPClient] = None
        self.transcoder = Transcoder(cancel=cancel)

    @property
    def client(self) -> ResolumeHTTPClient:
        if self._client is None:
            logger.debug("[HTTP] Using Resolume endpoint %s (%s)", self.endpoint.name, self.endpoint.base_url())
            self._client = ResolumeHTTPClient(self.endpoint, cancel=self.cancel)
        return self._client

    def close(self) -> None:
        if self._client is not None:
            self._client.close()


# ------------------------------------------------------------------------
# Commands
# ------------------------------------------------------------------------

def cmd_layers(ctx: Context, args: argparse.Namespace) -> None:
    layers = ctx.client.get_layers()
    if args.action == "get":
        print_json([l.to_json() for l in layers])
        return
    for idx, layer in enumerate(layers):
        empty = sum(1 for c in layer.clips if c.is_empty)
        print(f"{idx}: {layer.display_name} ({layer.id})  clips={len(layer.clips)} empty={empty}")


def cmd_composition(ctx: Context, args: argparse.Namespace) -> None:
    print_json(ctx.client.get_composition().to_json())


def cmd_clips(ctx: Context, args: argparse.Namespace) -> None:
    if args.action == "selected":
        print_json(ctx.client.get_selected_clip().to_json())
        return
    if args.action == "get":
        print_json(ctx.client.get_clip(args.clip_id).to_json())
        return

    data = ctx.client.get_thumbnail(args.clip_id)
    out = Path(args.out or f"{args.clip_id}.png")
    out.write_bytes(data)
    print(f"Wrote {out} ({len(data)} bytes)")


def cmd_convert(ctx: Context, args: argparse.Namespace) -> None:
    s = ctx.settings
    action = args.action

    if action in ("input", "input-audio"):
        renamed = convert_inputs(ctx.transcoder, Path(args.in_dir), ext=s.source_ext)
        print(f"Renamed {len(renamed)} file(s)")
    if action in ("audio", "input-audio"):
        outs = convert_audio_files(
            ctx.transcoder, Path(args.in_dir), Path(args.audio_out),
            source_ext=s.source_ext, audio_ext=s.audio_ext, cancel=ctx.cancel,
        )
        print(f"Audio ready: {len(outs)} file(s) in {args.audio_out}")
    if action == "video":
        outs = convert_video_files(
            ctx.transcoder, Path(args.in_dir), Path(args.video_out),
            source_ext=s.source_ext, video_ext=s.video_ext, cancel=ctx.cancel,
        )
        print(f"Video ready: {len(outs)} file(s) in {args.video_out}")

    if action == "import":
        end = args.end if args.end is not None else args.start
        provisioner = Provisioner(ctx.client, ctx.transcoder, s, ctx.cancel)
        for video in list_sources(Path(args.video_dir), s.video_ext):
            placed = provisioner.provision_file(video, args.start, end)
            if placed is not None:
                print(f"{placed.asset}: layer {placed.layer_id}, clip {placed.clip_id}")

    if action == "place":
        provisioner = Provisioner(ctx.client, ctx.transcoder, s, ctx.cancel)
        template = Clip() if args.no_template else None
        report = provisioner.run(
            Path(args.audio_dir), Path(args.video_dir), args.start, args.end, template=template
        )
        for p in report.provisioned:
            print(f"placed   {p.asset}: layer {p.layer_id}, clip {p.clip_id} ({p.audio_title})")
        for name in report.skipped:
            print(f"exists   {name}")
        for name in report.unmatched_audio:
            print(f"no video {name}")


# ------------------------------------------------------------------------
# Parser
# ------------------------------------------------------------------------

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="resolume-converter",
        description="Convert media and place it into empty Resolume clip slots.",
    )
    parser.add_argument(
        "--connections",
        type=str,
        default=None,
        help=f"Path to connections.yaml (default: {DEFAULT_CONNECTIONS_PATH}, optional)",
    )
    parser.add_argument(
        "--conn-name",
        type=str,
        default=None,
        help="Connection name to select from outputs.http.resolume_arena[*].name",
    )
    parser.add_argument(
        "--base-url",
        type=str,
        default=None,
        help="Base URL of Resolume, e.g. http://127.0.0.1:8080/api/v1/ (overrides connections.yaml)",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")

    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("layers", help="List or dump layers.")
    p.add_argument("action", nargs="?", choices=("list", "get"), default="list")
    p.set_defaults(func=cmd_layers)

    p = sub.add_parser("composition", help="Dump the composition.")
    p.add_argument("action", nargs="?", choices=("get",), default="get")
    p.set_defaults(func=cmd_composition)

    p = sub.add_parser("clips", help="Inspect clips.")
    clip_sub = p.add_subparsers(dest="action", required=True)
    clip_sub.add_parser("selected", help="Dump the selected clip.")
    g = clip_sub.add_parser("get", help="Dump one clip by id.")
    g.add_argument("clip_id", type=int)
    t = clip_sub.add_parser("thumbnail", help="Save a clip thumbnail.")
    t.add_argument("clip_id", type=int)
    t.add_argument("--out", type=str, default=None, help="Output file (default: <clip_id>.png)")
    p.set_defaults(func=cmd_clips)

    p = sub.add_parser("convert", help="Convert media and place clips.")
    conv = p.add_subparsers(dest="action", required=True)

    c = conv.add_parser("input", help="Rename source files after their embedded title.")
    c.add_argument("in_dir")

    c = conv.add_parser("audio", help="Extract audio from source files.")
    c.add_argument("in_dir")
    c.add_argument("audio_out")

    c = conv.add_parser("video", help="Strip audio from source files.")
    c.add_argument("in_dir")
    c.add_argument("video_out")

    c = conv.add_parser("input-audio", help="Rename source files, then extract audio.")
    c.add_argument("in_dir")
    c.add_argument("audio_out")

    c = conv.add_parser("import", help="Place every video file of a directory.")
    c.add_argument("video_dir")
    c.add_argument("start", type=int)
    c.add_argument("end", type=int, nargs="?", default=None)

    c = conv.add_parser("place", help="Place matched audio/video pairs.")
    c.add_argument("audio_dir")
    c.add_argument("video_dir")
    c.add_argument("start", type=int)
    c.add_argument("end", type=int)
    c.add_argument(
        "--no-template",
        action="store_true",
        help="Do not use the selected clip as template.",
    )
    p.set_defaults(func=cmd_convert)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    cancel = CancelToken()
    install_sigint_handler(cancel)

    ctx: Optional[Context] = None
    try:
        ctx = Context(args, cancel)
        args.func(ctx, args)
    except CancelledError as e:
        logger.warning("[CANCEL] %s", e.message)
        return EXIT_CANCELLED
    except ConverterError as e:
        logger.error("[ERROR] %s", e.message)
        return EXIT_ERROR
    finally:
        if ctx is not None:
            ctx.close()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
