import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import commands
from .config import CONFIG_PATH, load_config, save_config
from .errors import NotFoundError, PngError
from .history import format_event, history_path, log_event, read_events
from .utils import describe_chunk, render_payload


def _lenient(args: argparse.Namespace) -> bool:
    return not args.strict and args.config.lenient_types


def _run_encode(args: argparse.Namespace) -> str:
    written = commands.encode_message(
        args.file,
        args.chunk_type,
        args.message,
        output=args.output,
        lenient=_lenient(args),
        verify=args.verify or args.config.verify_output,
    )
    return f"Encoded message into {args.chunk_type} chunk: {written}"


def _run_decode(args: argparse.Namespace) -> str:
    chunk = commands.decode_message(args.file, args.chunk_type, lenient=_lenient(args))
    if chunk is None:
        raise NotFoundError(f"No chunk of type {args.chunk_type} found in {args.file}.")
    return render_payload(chunk, best_effort=args.best_effort, encoding=args.encoding)


def _run_remove(args: argparse.Namespace) -> str:
    removed = commands.remove_chunk(args.file, args.chunk_type, lenient=_lenient(args))
    return f"Removed {removed.chunk_type} chunk ({removed.length} bytes) from {args.file}."


def _run_print(args: argparse.Namespace) -> str:
    chunks = commands.list_chunks(args.file, lenient=_lenient(args))
    if args.verbose:
        return "\n".join(str(chunk) for chunk in chunks)
    return "\n".join(describe_chunk(idx, chunk) for idx, chunk in enumerate(chunks))


def _run_config(args: argparse.Namespace) -> str:
    # Only CLI flags are written back; env overrides stay out of the file.
    stored = load_config(args.config_path, apply_env=False)
    changed = False
    for field_name in ["lenient_types", "record_history", "verify_output"]:
        value = getattr(args, f"set_{field_name}")
        if value is not None:
            setattr(stored, field_name, value)
            changed = True
    if changed:
        save_config(stored, args.config_path)
    config = load_config(args.config_path)
    lines = [
        f"config file: {args.config_path}",
        f"lenient_types: {config.lenient_types}",
        f"record_history: {config.record_history}",
        f"verify_output: {config.verify_output}",
    ]
    if changed:
        lines.append("Configuration saved; PNGME_* environment variables still take precedence.")
    return "\n".join(lines)


def _run_history(args: argparse.Namespace) -> str:
    events = read_events(limit=args.limit)
    if not events:
        return f"No history recorded in {history_path()}."
    return "\n".join(format_event(event) for event in events)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pngme", description="Hide, find and remove messages in PNG chunks."
    )
    parser.add_argument(
        "--no-history", action="store_true", help="Do not record the operation in history."
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Reject chunks whose type bytes are not ASCII letters instead of normalizing them.",
    )
    parser.add_argument(
        "--config-path",
        type=Path,
        default=CONFIG_PATH,
        help=f"Config file to use (default: {CONFIG_PATH}).",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    encode_parser = subparsers.add_parser("encode", help="Hide a message in a new chunk")
    encode_parser.add_argument("file", help="PNG file.")
    encode_parser.add_argument("chunk_type", help="Four-letter chunk type, e.g. ruSt.")
    encode_parser.add_argument("message", help="Message text to embed.")
    encode_parser.add_argument("output", nargs="?", help="Output file (default: overwrite input).")
    encode_parser.add_argument("--verify", action="store_true", help="Check the result opens with Pillow.")
    encode_parser.set_defaults(func=_run_encode)

    decode_parser = subparsers.add_parser("decode", help="Print the message stored in a chunk")
    decode_parser.add_argument("file", help="PNG file.")
    decode_parser.add_argument("chunk_type", help="Four-letter chunk type.")
    decode_parser.add_argument(
        "--best-effort",
        action="store_true",
        help="Fall back to other encodings (then hex) when the payload is not UTF-8.",
    )
    decode_parser.add_argument("--encoding", help="Encoding to try first with --best-effort.")
    decode_parser.set_defaults(func=_run_decode)

    remove_parser = subparsers.add_parser("remove", help="Remove the first chunk of a type")
    remove_parser.add_argument("file", help="PNG file (rewritten in place).")
    remove_parser.add_argument("chunk_type", help="Four-letter chunk type.")
    remove_parser.set_defaults(func=_run_remove)

    print_parser = subparsers.add_parser("print", help="List chunks in file order")
    print_parser.add_argument("file", help="PNG file.")
    print_parser.add_argument("-v", "--verbose", action="store_true", help="Show full chunk records.")
    print_parser.set_defaults(func=_run_print)

    config_parser = subparsers.add_parser("config", help="Show or update saved defaults")
    for name, on, off, text in [
        ("lenient_types", "--lenient", "--no-lenient", "normalize bad chunk type bytes"),
        ("record_history", "--record", "--no-record", "record commands in history"),
        ("verify_output", "--verify", "--no-verify", "verify encoded files with Pillow"),
    ]:
        group = config_parser.add_mutually_exclusive_group()
        group.add_argument(on, dest=f"set_{name}", action="store_const", const=True, help=f"Enable: {text}.")
        group.add_argument(off, dest=f"set_{name}", action="store_const", const=False, help=f"Disable: {text}.")
    config_parser.set_defaults(func=_run_config)

    history_parser = subparsers.add_parser("history", help="Show recently recorded commands")
    history_parser.add_argument("-n", "--limit", type=int, default=20, help="Number of entries (default: 20).")
    history_parser.set_defaults(func=_run_history)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    parser = build_parser()
    args = parser.parse_args(argv)
    args.config = load_config(args.config_path)
    status = "ok"
    try:
        result = args.func(args)
    except NotFoundError as exc:
        status = "not_found"
        result = None
        print(exc, file=sys.stderr)
    except (PngError, OSError) as exc:
        status = type(exc).__name__
        result = None
        print(f"error: {exc}", file=sys.stderr)
    if result is not None:
        print(result)
    if args.command != "history" and not args.no_history and args.config.record_history:
        log_event(
            action=args.command,
            payload={
                "file": getattr(args, "file", None),
                "chunk_type": getattr(args, "chunk_type", None),
                "output": getattr(args, "output", None),
                "status": status,
            },
        )
    if status != "ok":
        parser.exit(1)


if __name__ == "__main__":
    main()
