"""CLI interface with subcommand routing."""

import argparse
import logging
import os
import sys

from convo_audio.config import Settings, log_level_from_env
from convo_audio.constants import DEFAULT_PAUSE_SECONDS, VERSION
from convo_audio.errors import ConfigurationError, ConvoAudioError, UpstreamError
from convo_audio.models import OutputMode
from convo_audio.producer import GenerationRequest, produce
from convo_audio.tts import ElevenLabsSynthesizer


def _load_settings() -> Settings:
    """Load settings or exit; a missing API key is fatal."""
    try:
        return Settings.from_env()
    except ConfigurationError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)


def cmd_generate(args):
    """Generate an audio file from a script file."""
    script_path = args.script
    if not os.path.exists(script_path):
        print(f"Error: File not found: {script_path}", file=sys.stderr)
        raise SystemExit(1)

    with open(script_path, encoding="utf-8") as f:
        script = f.read()

    request = GenerationRequest(
        script=script,
        voice1=args.voice1 or "",
        voice2=args.voice2 or "",
        pause_default=max(0.0, args.pause),
        mode=OutputMode(args.format),
        title=args.title or "",
        filename=args.filename or "",
    )

    settings = _load_settings()
    try:
        with ElevenLabsSynthesizer(settings) as synthesizer:
            artifact = produce(request, synthesizer, settings.audio)
    except ConvoAudioError as e:
        print(f"Error: {e}", file=sys.stderr)
        raise SystemExit(1)

    os.makedirs(args.out, exist_ok=True)
    output_path = os.path.join(args.out, artifact.filename)
    with open(output_path, "wb") as f:
        f.write(artifact.data)

    for warning in artifact.warnings:
        print(f"Warning: {warning}", file=sys.stderr)
    print(f"Done: {output_path} ({len(artifact.data)} bytes, {artifact.content_type})")


def cmd_voices(args):
    """List available voices."""
    settings = _load_settings()
    try:
        with ElevenLabsSynthesizer(settings) as synthesizer:
            voices = synthesizer.list_voices()
    except UpstreamError as e:
        print(f"Error: Failed to load voices: {e}", file=sys.stderr)
        raise SystemExit(1)

    filter_str = args.filter.lower() if args.filter else None
    if filter_str:
        voices = [v for v in voices if filter_str in v.name.lower() or filter_str in v.id.lower()]
    if not voices:
        print("No matching voices found.")
        return
    print("Available voices:")
    for v in voices:
        print(f"  {v.id:<24} {v.name}")


def cmd_serve(args):
    """Run the web form."""
    import uvicorn

    from convo_audio.web import create_app

    settings = _load_settings()
    uvicorn.run(
        create_app(settings), host=args.host, port=args.port or settings.port, log_level=settings.log_level.lower()
    )


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="convo-audio",
        description="Conversation Audio: turn a two-speaker script into one audio file",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log per-segment progress")

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # generate
    gen_parser = subparsers.add_parser("generate", help="Generate audio from a script file")
    gen_parser.add_argument("script", help="Path to the script text file")
    gen_parser.add_argument("--voice1", help="Voice ID for [Speaker 1]")
    gen_parser.add_argument("--voice2", help="Voice ID for [Speaker 2]")
    gen_parser.add_argument("--pause", type=float, default=DEFAULT_PAUSE_SECONDS,
                            help="Seconds for a bare [pause] (default: %(default)s)")
    gen_parser.add_argument("--format", choices=[m.value for m in OutputMode], default=OutputMode.WAV.value,
                            help="wav = exact pauses, mp3 = best-effort (default: %(default)s)")
    gen_parser.add_argument("--title", help="Title (overrides the script's Title: line)")
    gen_parser.add_argument("--filename", help="Output filename override (slugified)")
    gen_parser.add_argument("--out", default=".", help="Output directory (default: current directory)")
    gen_parser.set_defaults(func=cmd_generate)

    # voices
    voices_parser = subparsers.add_parser("voices", help="List available voices")
    voices_parser.add_argument("--filter", help="Filter voices by substring")
    voices_parser.set_defaults(func=cmd_voices)

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the web form")
    serve_parser.add_argument("--host", default="0.0.0.0", help="Bind address (default: %(default)s)")
    serve_parser.add_argument("--port", type=int, help="Port (default: $PORT or 5000)")
    serve_parser.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else log_level_from_env()
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    if not args.command:
        parser.print_help()
        return

    args.func(args)
