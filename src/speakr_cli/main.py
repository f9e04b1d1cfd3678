"""`speakr` command-line entry point."""

import argparse
import base64
import logging
import os
import sys
from typing import Any

import httpx

from speakr_common.context import OperationContext
from speakr_common.contract import (
    RECORDING_CANCEL,
    RECORDING_CANCELLED,
    RECORDING_FINISHED,
    RECORDING_START,
    RECORDING_STARTED,
    RECORDING_STOP,
    TRANSCRIPTION_FAILED,
    TRANSCRIPTION_RUN,
    TRANSCRIPTION_SUCCEEDED,
    CancelRecordingCommand,
    StartRecordingCommand,
    StopRecordingCommand,
    Subjects,
    TranscriptionRunCommand,
)
from speakr_common.logging import setup_logging
from speakr_common.rabbitmq import get_rabbit_connection

from speakr_cli.config import CliConfig, load_config
from speakr_cli.workflow import CommandClient, ReplyTimeoutError

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_TIMEOUT = 3

TRANSCRIPTION_OUTCOMES = {TRANSCRIPTION_SUCCEEDED, TRANSCRIPTION_FAILED}


def parse_metadata(items: list[str] | None) -> dict[str, str]:
    """Turns repeated `--meta key=value` options into a dict."""
    metadata: dict[str, str] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key:
            raise argparse.ArgumentTypeError(f"metadata must be key=value, got '{item}'")
        metadata[key] = value
    return metadata


def _print_transcription(name: str, payload: dict[str, Any]) -> int:
    if name == TRANSCRIPTION_SUCCEEDED:
        print(f"Transcription ({payload.get('recording_id', '')}):")
        print(payload.get("transcribed_text", ""))
        return EXIT_OK
    print(f"Transcription failed: {payload.get('error', 'unknown error')}", file=sys.stderr)
    return EXIT_FAILURE


def cmd_start(args, client: CommandClient, config: CliConfig) -> int:
    ctx = OperationContext()
    client.send(
        ctx,
        RECORDING_START,
        StartRecordingCommand(
            output_format=args.format, tags=args.tag or [], metadata=parse_metadata(args.meta)
        ),
    )
    _, payload = client.wait_for(ctx, {RECORDING_STARTED}, config.reply_timeout_seconds)
    print(payload["recording_id"])
    return EXIT_OK


def cmd_stop(args, client: CommandClient, config: CliConfig) -> int:
    ctx = OperationContext(recording_id=args.recording_id)
    client.send(
        ctx,
        RECORDING_STOP,
        StopRecordingCommand(
            recording_id=args.recording_id,
            transcribe_on_stop=args.transcribe,
            metadata=parse_metadata(args.meta),
        ),
    )
    _, payload = client.wait_for(ctx, {RECORDING_FINISHED}, config.reply_timeout_seconds)
    print(f"Recording stored at {payload['audio_file_path']}")
    if not args.transcribe:
        return EXIT_OK
    name, payload = client.wait_for(
        ctx, TRANSCRIPTION_OUTCOMES, config.transcription_timeout_seconds
    )
    return _print_transcription(name, payload)


def cmd_cancel(args, client: CommandClient, config: CliConfig) -> int:
    ctx = OperationContext(recording_id=args.recording_id)
    client.send(ctx, RECORDING_CANCEL, CancelRecordingCommand(recording_id=args.recording_id))
    client.wait_for(ctx, {RECORDING_CANCELLED}, config.reply_timeout_seconds)
    print(f"Recording {args.recording_id} cancelled")
    return EXIT_OK


def cmd_record(args, client: CommandClient, config: CliConfig) -> int:
    """Interactive capture: start, wait for Enter, stop and show the transcript."""
    ctx = OperationContext()
    client.send(
        ctx,
        RECORDING_START,
        StartRecordingCommand(
            output_format=args.format, tags=args.tag or [], metadata=parse_metadata(args.meta)
        ),
    )
    _, payload = client.wait_for(ctx, {RECORDING_STARTED}, config.reply_timeout_seconds)
    recording_id = payload["recording_id"]
    ctx = ctx.for_recording(recording_id)
    print(f"Recording {recording_id}. Press Enter to stop, Ctrl-C to cancel.")

    try:
        input()
    except (KeyboardInterrupt, EOFError):
        client.send(ctx, RECORDING_CANCEL, CancelRecordingCommand(recording_id=recording_id))
        client.wait_for(ctx, {RECORDING_CANCELLED}, config.reply_timeout_seconds)
        print("\nRecording cancelled")
        return EXIT_FAILURE

    transcribe = not args.no_transcribe
    client.send(
        ctx,
        RECORDING_STOP,
        StopRecordingCommand(recording_id=recording_id, transcribe_on_stop=transcribe),
    )
    _, payload = client.wait_for(ctx, {RECORDING_FINISHED}, config.reply_timeout_seconds)
    print(f"Recording stored at {payload['audio_file_path']}")
    if not transcribe:
        return EXIT_OK

    print("Transcribing...")
    name, payload = client.wait_for(
        ctx, TRANSCRIPTION_OUTCOMES, config.transcription_timeout_seconds
    )
    return _print_transcription(name, payload)


def cmd_transcribe(args, client: CommandClient, config: CliConfig) -> int:
    ctx = OperationContext()
    tags = args.tag or []
    metadata = parse_metadata(args.meta)
    if args.file:
        try:
            with open(args.file, "rb") as f:
                audio = f.read()
        except OSError as e:
            print(f"Cannot read {args.file}: {e}", file=sys.stderr)
            return EXIT_USAGE
        audio_format = os.path.splitext(args.file)[1].lstrip(".").lower() or "wav"
        command = TranscriptionRunCommand(
            audio_data=base64.b64encode(audio).decode("ascii"),
            audio_format=audio_format,
            tags=tags,
            metadata=metadata,
        )
    else:
        ctx = ctx.for_recording(args.recording_id)
        command = TranscriptionRunCommand(
            recording_id=args.recording_id, tags=tags, metadata=metadata
        )

    client.send(ctx, TRANSCRIPTION_RUN, command)
    name, payload = client.wait_for(
        ctx, TRANSCRIPTION_OUTCOMES, config.transcription_timeout_seconds
    )
    return _print_transcription(name, payload)


def cmd_query(args, config: CliConfig, http_client: httpx.Client | None = None) -> int:
    ctx = OperationContext()
    body: dict[str, Any] = {"query_text": args.text, "filter_tags": args.tag or []}
    if args.limit is not None:
        body["limit"] = args.limit

    client = http_client or httpx.Client(
        base_url=config.query_api_url, timeout=config.reply_timeout_seconds
    )
    try:
        response = client.post(
            "/api/v1/query", json=body, headers={"X-Correlation-ID": ctx.correlation_id}
        )
    except httpx.TimeoutException:
        print("Query API did not answer in time", file=sys.stderr)
        return EXIT_TIMEOUT
    except httpx.HTTPError as e:
        print(f"Query API unreachable: {e}", file=sys.stderr)
        return EXIT_FAILURE
    finally:
        if http_client is None:
            client.close()

    if response.status_code == 400:
        print(f"Invalid query: {response.json().get('detail')}", file=sys.stderr)
        return EXIT_USAGE
    if response.is_error:
        print(f"Query failed ({response.status_code}): {response.text}", file=sys.stderr)
        return EXIT_FAILURE

    results = response.json()["results"]
    if not results:
        print("No matching transcripts")
    for result in results:
        tags = ", ".join(result["tags"])
        print(f"{result['similarity']:.3f}  {result['recording_id']}  [{tags}]")
        print(f"    {result['transcribed_text']}")
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="speakr", description="Record, transcribe and search audio.")
    parser.add_argument("--verbose", action="store_true", help="show service logs")
    sub = parser.add_subparsers(dest="command", required=True)

    def add_tagging(p: argparse.ArgumentParser) -> None:
        p.add_argument("--tag", action="append", help="tag, may be repeated")
        p.add_argument("--meta", action="append", metavar="KEY=VALUE", help="metadata entry, may be repeated")

    record = sub.add_parser("record", help="record interactively and transcribe")
    record.add_argument("--format", default="wav", choices=["wav", "mp3"])
    record.add_argument("--no-transcribe", action="store_true")
    add_tagging(record)
    record.set_defaults(func=cmd_record)

    start = sub.add_parser("start", help="start a recording and print its id")
    start.add_argument("--format", default="wav", choices=["wav", "mp3"])
    add_tagging(start)
    start.set_defaults(func=cmd_start)

    stop = sub.add_parser("stop", help="stop a recording")
    stop.add_argument("recording_id")
    stop.add_argument("--transcribe", action="store_true")
    stop.add_argument("--meta", action="append", metavar="KEY=VALUE")
    stop.set_defaults(func=cmd_stop)

    cancel = sub.add_parser("cancel", help="cancel a recording")
    cancel.add_argument("recording_id")
    cancel.set_defaults(func=cmd_cancel)

    transcribe = sub.add_parser("transcribe", help="transcribe a stored recording or a file")
    source = transcribe.add_mutually_exclusive_group(required=True)
    source.add_argument("--recording-id")
    source.add_argument("--file")
    add_tagging(transcribe)
    transcribe.set_defaults(func=cmd_transcribe)

    query = sub.add_parser("query", help="semantic search over transcripts")
    query.add_argument("text")
    query.add_argument("--tag", action="append")
    query.add_argument("--limit", type=int)
    query.set_defaults(func=None)

    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(sys.stderr)
    if not args.verbose:
        logging.getLogger().setLevel(logging.WARNING)

    try:
        parse_metadata(getattr(args, "meta", None))
    except argparse.ArgumentTypeError as e:
        parser.print_usage(sys.stderr)
        print(f"speakr: error: {e}", file=sys.stderr)
        return EXIT_USAGE

    config = load_config()
    if args.command == "query":
        return cmd_query(args, config)

    try:
        connection = get_rabbit_connection(config.rabbitmq, heartbeat=0)
    except Exception as e:
        print(f"Cannot connect to the message bus: {e}", file=sys.stderr)
        return EXIT_FAILURE

    client = CommandClient(connection, Subjects(config.rabbitmq.namespace))
    try:
        return args.func(args, client, config)
    except ReplyTimeoutError as e:
        print(str(e), file=sys.stderr)
        return EXIT_TIMEOUT
    except KeyboardInterrupt:
        return EXIT_FAILURE
    finally:
        client.close()


if __name__ == "__main__":
    raise SystemExit(main())
