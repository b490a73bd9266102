"""Command line interface for the rainbow steganography engine."""

from __future__ import annotations

import argparse
import re
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Tuple

from rich.console import Console
from rich.table import Table

from .api import DEFAULT_BANDWIDTH_SIZES, Rainbow
from .codec import Role
from .config import EngineConfig
from .dispatch import DecodeResult
from .exceptions import MissingChunksError, RainbowError
from .utils.logging import configure_logging

console = Console()

PACKET_GLOB = "packet_*.http"
_PACKET_NAME = re.compile(r"^packet_(\d+)\.http$")


def _read_bytes(path: Optional[str]) -> bytes:
    if not path or path == "-":
        return sys.stdin.buffer.read()
    return Path(path).read_bytes()


def _write_bytes(path: Optional[str], data: bytes) -> None:
    if not path or path == "-":
        sys.stdout.buffer.write(data)
        return
    Path(path).write_bytes(data)


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--config", dest="config_path", help="JSON engine configuration file")
    parser.add_argument("--log-level", dest="log_level", help="Logging level (default: INFO)")


def _engine(args: argparse.Namespace) -> Rainbow:
    configure_logging(args.log_level)
    if args.config_path:
        config = EngineConfig.from_file(args.config_path)
    else:
        config = EngineConfig.from_env()
    return Rainbow(config=config)


def _handle_encode(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="rainbowstego encode", description="Hide a file in HTTP packets.")
    parser.add_argument("-i", "--input", dest="input_path", required=True, help="Payload file (- for stdin)")
    parser.add_argument("-o", "--output", dest="output_dir", required=True, help="Directory for packet files")
    parser.add_argument("--client", action="store_true", help="Produce requests instead of responses")
    parser.add_argument("--mime-type", dest="mime_type", help="Force every packet to this MIME type")
    _add_common(parser)
    args = parser.parse_args(list(argv))

    try:
        engine = _engine(args)
        result = engine.encode_write(_read_bytes(args.input_path), args.client, args.mime_type)
    except RainbowError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return 1

    output = Path(args.output_dir)
    output.mkdir(parents=True, exist_ok=True)
    for packet, expected in zip(result.packets, result.expected_return_lengths):
        path = output / f"packet_{packet.index}.http"
        path.write_bytes(packet.data)
        console.print(
            f"packet {packet.index}: {packet.technique} ({packet.mime_type}), "
            f"{len(packet)} bytes, expected return {expected} bytes -> {path}"
        )
    console.print(f"[green]Encoded {result.total_len} bytes into {result.total} packet(s).[/green]")
    return 0


def _handle_decode(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="rainbowstego decode", description="Recover the chunk of one packet.")
    parser.add_argument("-i", "--input", dest="input_path", required=True, help="Packet file")
    parser.add_argument("-o", "--output", dest="output_path", required=True, help="Chunk output file (- for stdout)")
    parser.add_argument("--index", type=int, default=0, help="Index the packet was read at")
    parser.add_argument("--client", action="store_true", help="The packet is a client request")
    _add_common(parser)
    args = parser.parse_args(list(argv))

    try:
        engine = _engine(args)
        result = engine.decrypt_single_read(_read_bytes(args.input_path), args.index, args.client)
    except RainbowError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return 1

    _write_bytes(args.output_path, result.data)
    if args.output_path and args.output_path != "-":
        console.print(f"Decoded {len(result.data)} bytes ({result.technique}, index {result.index}).")
    return 0


def _packet_files(directory: Path) -> List[Tuple[int, Path]]:
    found = []
    for path in directory.glob(PACKET_GLOB):
        match = _PACKET_NAME.match(path.name)
        if match:
            found.append((int(match.group(1)), path))
    return sorted(found)


def _handle_assemble(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(
        prog="rainbowstego assemble", description="Decode a directory of packets and rebuild the payload."
    )
    parser.add_argument("-i", "--input", dest="input_dir", required=True, help="Directory of packet files")
    parser.add_argument("-o", "--output", dest="output_path", required=True, help="Payload output file")
    parser.add_argument("--client", action="store_true", help="The packets are client requests")
    _add_common(parser)
    args = parser.parse_args(list(argv))

    packet_files = _packet_files(Path(args.input_dir))
    if not packet_files:
        console.print(f"[red]Error:[/red] no packet files in {args.input_dir}")
        return 1

    try:
        engine = _engine(args)
        results: List[DecodeResult] = [
            engine.decrypt_single_read(path.read_bytes(), index, args.client)
            for index, path in packet_files
        ]
        payload = Rainbow.reassemble(results)
    except MissingChunksError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        _write_bytes(args.output_path, exc.partial_payload)
        console.print(f"[yellow]Wrote {len(exc.partial_payload)} bytes of partial payload.[/yellow]")
        return 1
    except RainbowError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return 1

    _write_bytes(args.output_path, payload)
    console.print(f"[green]Reassembled {len(payload)} bytes from {len(results)} packet(s).[/green]")
    return 0


def _handle_techniques(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="rainbowstego techniques", description="List the carrier catalog.")
    parser.add_argument("--role", choices=[role.value for role in Role], help="Only techniques for this role")
    _add_common(parser)
    args = parser.parse_args(list(argv))

    try:
        engine = _engine(args)
    except RainbowError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return 1

    role = Role(args.role) if args.role else None
    table = Table(title="Carrier techniques")
    table.add_column("technique")
    table.add_column("MIME type")
    table.add_column("client", justify="right")
    table.add_column("server", justify="right")
    for codec in engine.registry:
        if role is not None and not codec.supports(role):
            continue
        table.add_row(
            codec.technique,
            codec.mime_type,
            str(codec.capacity(Role.CLIENT) or "-"),
            str(codec.capacity(Role.SERVER) or "-"),
        )
    console.print(table)
    return 0


def _handle_bandwidth(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="rainbowstego bandwidth", description="Measure encoding overhead.")
    parser.add_argument(
        "--sizes",
        type=int,
        nargs="+",
        default=list(DEFAULT_BANDWIDTH_SIZES),
        help="Payload sizes in bytes",
    )
    parser.add_argument("--mime-type", dest="mime_type", help="Restrict packets to this MIME type")
    parser.add_argument("--client", action="store_true", help="Measure client requests")
    _add_common(parser)
    args = parser.parse_args(list(argv))

    try:
        engine = _engine(args)
        stats = engine.analyze_bandwidth(args.sizes, args.mime_type, args.client)
    except RainbowError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return 1

    table = Table(title=f"Bandwidth ({args.mime_type or 'mixed carriers'})")
    for column in ("payload", "packets", "packet bytes", "expected return", "overhead"):
        table.add_column(column, justify="right")
    for row in stats:
        table.add_row(
            str(row.original_size),
            str(row.packet_count),
            str(row.total_packet_size),
            str(row.expected_return_size),
            f"{row.overhead_ratio:.2f}x",
        )
    console.print(table)
    return 0


def _handle_cover(argv: Sequence[str]) -> int:
    parser = argparse.ArgumentParser(prog="rainbowstego cover", description="Write a decoy packet.")
    parser.add_argument("--length", type=int, required=True, help="Target packet length in bytes")
    parser.add_argument("-o", "--output", dest="output_path", required=True, help="Packet output file")
    parser.add_argument("--client", action="store_true", help="Produce a request instead of a response")
    _add_common(parser)
    args = parser.parse_args(list(argv))

    if args.length < 0:
        console.print("[red]Error:[/red] --length must be non-negative")
        return 1
    try:
        engine = _engine(args)
        packet = engine.generate_cover_packet(args.length, args.client)
    except RainbowError as exc:
        console.print(f"[red]Error:[/red] {exc}")
        return 1

    _write_bytes(args.output_path, packet)
    console.print(f"Wrote a {len(packet)} byte cover packet (target {args.length}).")
    return 0


_HANDLERS = {
    "encode": _handle_encode,
    "decode": _handle_decode,
    "assemble": _handle_assemble,
    "techniques": _handle_techniques,
    "bandwidth": _handle_bandwidth,
    "cover": _handle_cover,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rainbowstego",
        description="Hide data inside realistic HTTP request and response bodies.",
    )
    subparsers = parser.add_subparsers(dest="command")
    for command in _HANDLERS:
        subparsers.add_parser(command)
    return parser


def main(argv: Optional[Iterable[str]] = None) -> int:
    args = list(argv) if argv is not None else sys.argv[1:]
    if not args:
        build_parser().print_help()
        return 0

    command, rest = args[0], args[1:]
    handler = _HANDLERS.get(command)
    if handler is not None:
        return handler(rest)

    console.print(f"[red]Error:[/red] unknown command '{command}'")
    build_parser().print_help()
    return 1


if __name__ == "__main__":  # pragma: no cover - module entry point
    sys.exit(main())
