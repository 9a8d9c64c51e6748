"""CLI entry point for campus-announcer."""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from typing import TYPE_CHECKING

from campus_announcer.config import AnnouncerConfig
from campus_announcer.errors import SynthesisError
from campus_announcer.playback import PlaybackController
from campus_announcer.rewriter import AnnouncementRewriter
from campus_announcer.session import AnnouncementSession
from campus_announcer.storage import JsonFileStore, SettingsStore
from campus_announcer.voices import VoiceCatalog

if TYPE_CHECKING:
    from campus_announcer.synthesizer import Synthesizer

logger = logging.getLogger(__name__)


def _add_voice_options(p: argparse.ArgumentParser) -> None:
    p.add_argument("--voice", help="Name of the voice to use (see `voices`)")
    p.add_argument("--volume", type=float, help="Volume from 0.0 to 1.0")
    p.add_argument("--rate", type=float, help="Speech rate from 0.5 to 2.0")
    p.add_argument("--pitch", type=float, help="Pitch from 0.0 to 2.0")


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="announcer",
        description="Craft, improve, and deliver announcements with AI assistance.",
    )
    parser.add_argument("--store", help="Path of the settings/history JSON file")
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    sub = parser.add_subparsers(dest="command")

    voices_p = sub.add_parser("voices", help="List the curated announcement voices")
    voices_p.add_argument(
        "--all", action="store_true", help="List every voice the system reports"
    )

    preview_p = sub.add_parser("preview", help="Play a sample phrase with a voice")
    preview_p.add_argument("name", help="Voice name")
    _add_voice_options(preview_p)

    announce_p = sub.add_parser("announce", help="Speak an announcement and log it")
    announce_p.add_argument("text", nargs="?", help="Text (defaults to the saved text)")
    announce_p.add_argument(
        "--humanize", action="store_true", help="Rewrite the text with AI first"
    )
    _add_voice_options(announce_p)

    humanize_p = sub.add_parser("humanize", help="Rewrite text to sound more natural")
    humanize_p.add_argument("text", help="Text to rewrite")

    save_p = sub.add_parser("save", help="Save text and voice settings for next time")
    save_p.add_argument("text", nargs="?", help="Text (defaults to the saved text)")
    _add_voice_options(save_p)

    sub.add_parser("load", help="Show the saved settings")

    history_p = sub.add_parser("history", help="Show recent announcements")
    history_p.add_argument(
        "--replay", type=int, metavar="ID", help="Announce a history entry again"
    )

    return parser


def _settings_store(args: argparse.Namespace, config: AnnouncerConfig) -> SettingsStore:
    return SettingsStore(JsonFileStore(args.store or config.store_path))


def _start_session(
    args: argparse.Namespace, config: AnnouncerConfig
) -> tuple[AnnouncementSession, Synthesizer]:
    from campus_announcer.synthesizer import Synthesizer

    synth = Synthesizer()
    session = AnnouncementSession(
        catalog=VoiceCatalog(synth),
        controller=PlaybackController(synth),
        store=_settings_store(args, config),
        rewriter=AnnouncementRewriter(config.api_key, config.model, config.timeout),
    )
    session.start()
    if not session.catalog.is_ready:
        print("No English voices found on this system.", file=sys.stderr)
        sys.exit(1)

    def _on_sigint(sig: int, frame: object) -> None:
        print("\nStopping...")
        session.handle_cancel()

    signal.signal(signal.SIGINT, _on_sigint)
    return session, synth


def _apply_overrides(session: AnnouncementSession, args: argparse.Namespace) -> None:
    if getattr(args, "text", None):
        session.set_text(args.text)
    if args.voice:
        voice = session.catalog.find(args.voice)
        if voice is None:
            print(f"Unknown voice: {args.voice}", file=sys.stderr)
            sys.exit(2)
        session.handle_select_voice(voice)
    if args.volume is not None:
        session.controller.set_volume(args.volume)
    if args.rate is not None:
        session.controller.set_rate(args.rate)
    if args.pitch is not None:
        session.controller.set_pitch(args.pitch)


def _play(session: AnnouncementSession, synth: Synthesizer) -> None:
    """Pump the speech engine; a failing engine only stops playback."""
    try:
        synth.run_until_idle()
    except SynthesisError as exc:
        logger.warning("Playback failed: %s", exc)
        session.handle_cancel()


def _cmd_voices(args: argparse.Namespace, config: AnnouncerConfig) -> None:
    from campus_announcer.synthesizer import Synthesizer

    synth = Synthesizer()
    if args.all:
        for hv in synth.enumerate_voices():
            print(f"  {hv.name}  [{hv.language or '?'}]  ({hv.handle})")
        return
    voices = VoiceCatalog(synth).refresh()
    if not voices:
        print("No voices found.")
        return
    for v in voices:
        print(f"  {v.name}  [{v.language}]  {v.gender}")


def _cmd_preview(args: argparse.Namespace, config: AnnouncerConfig) -> None:
    session, synth = _start_session(args, config)
    voice = session.catalog.find(args.name)
    if voice is None:
        print(f"Unknown voice: {args.name}", file=sys.stderr)
        sys.exit(2)
    args.voice = None
    _apply_overrides(session, args)
    session.handle_preview(voice)
    _play(session, synth)


def _cmd_announce(args: argparse.Namespace, config: AnnouncerConfig) -> None:
    session, synth = _start_session(args, config)
    _apply_overrides(session, args)
    if args.humanize:
        print(session.handle_improve_text())
    if not session.text.strip():
        print("Nothing to announce.", file=sys.stderr)
        sys.exit(1)
    session.handle_announce()
    _play(session, synth)


def _cmd_humanize(args: argparse.Namespace, config: AnnouncerConfig) -> None:
    rewriter = AnnouncementRewriter(config.api_key, config.model, config.timeout)
    print(rewriter.rewrite(args.text))


def _cmd_save(args: argparse.Namespace, config: AnnouncerConfig) -> None:
    session, _synth = _start_session(args, config)
    _apply_overrides(session, args)
    if not session.handle_save():
        print("Settings could not be saved.", file=sys.stderr)
        sys.exit(1)
    print("Settings saved.")


def _cmd_load(args: argparse.Namespace, config: AnnouncerConfig) -> None:
    settings = _settings_store(args, config).load()
    if settings is None:
        print("No saved settings.")
        return
    print(f"  Text:   {settings.text}")
    print(f"  Voice:  {settings.voice_name or '-'}")
    print(f"  Volume: {round(settings.volume * 100)}%")
    print(f"  Rate:   {settings.rate:.1f}x")
    print(f"  Pitch:  {settings.pitch:.1f}")


def _cmd_history(args: argparse.Namespace, config: AnnouncerConfig) -> None:
    if args.replay is None:
        history = _settings_store(args, config).load_history()
        if not history:
            print("No announcements yet.")
            return
        for entry in history:
            c = entry.configuration
            print(f"  {entry.id}  {entry.timestamp}  [{c.voice_name or '-'}]  {c.text[:60]}")
        return

    session, synth = _start_session(args, config)
    entry = next((e for e in session.history if e.id == args.replay), None)
    if entry is None:
        print(f"No history entry with id {args.replay}", file=sys.stderr)
        sys.exit(2)
    session.handle_load_from_history(entry)
    session.handle_announce()
    _play(session, synth)


def main(argv: list[str] | None = None) -> None:
    parser = _build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    try:
        config = AnnouncerConfig.from_env()
    except ValueError as exc:
        parser.error(str(exc))
    if config.api_key is None:
        logger.warning("API key environment variable not set. AI features will not work.")

    commands = {
        "voices": _cmd_voices,
        "preview": _cmd_preview,
        "announce": _cmd_announce,
        "humanize": _cmd_humanize,
        "save": _cmd_save,
        "load": _cmd_load,
        "history": _cmd_history,
    }
    commands[args.command](args, config)


if __name__ == "__main__":
    main()
