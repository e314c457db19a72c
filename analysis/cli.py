"""Command-line interface for pronunciation and intonation practice."""

from __future__ import annotations

import argparse
import json
import sys
import time
from pathlib import Path

from analysis.contour import PitchContour, collect_contour
from analysis.contour_similarity import compute_contour_similarity
from app.events import EventBus, RecognizingEvent
from app.report import report_to_dict, save_report
from app.session import PracticeSession
from capture import FileAudioSource, MicrophoneSource, write_audio
from configs.samples import SampleLibrary
from configs.settings import AppConfig, load_config
from contracts import PracticeReport
from exceptions import PronunciationCoachError
from integrations import NullAssessor, create_assessor
from log_config import configure_logging
from metrics.scoring import intonation_feedback, score_band


def _contour_from_file(path: str, config: AppConfig, label: str) -> PitchContour:
    source = FileAudioSource(
        path,
        frame_size=config.pitch.frame_size,
        poll_interval_ms=config.pitch.poll_interval_ms,
        source_id=label,
    )
    with source:
        return collect_contour((frame.samples for frame in source.frames()), source.sample_rate, label=label)


def _print_report(report: PracticeReport) -> None:
    intonation = report.intonation
    print(f"\nSample {report.sample_index}")
    print(f"  Intonation similarity: {intonation.similarity:.1f}%")
    print(f"    ({intonation.native_sample_count} native / {intonation.user_sample_count} user pitch samples)")
    print(f"    {intonation.feedback.message}")

    if report.assessment is None:
        print("  No pronunciation assessment available.")
        return

    scores = report.assessment.scores
    print(f"  Pronunciation Score: {report.overall_score}%")
    for label, value in (
        ("Accuracy", scores.accuracy),
        ("Fluency", scores.fluency),
        ("Completeness", scores.completeness),
        ("Pronunciation", scores.pronunciation),
    ):
        print(f"    {label:<14}{value:6.1f}  [{score_band(value)}]")
    if report.overall_feedback is not None:
        print(f"  {report.overall_feedback.message}")

    for word, tips in report.word_suggestions.items():
        print(f"  '{word}':")
        for tip in tips:
            print(f"    - {tip}")


def samples_command(args, config: AppConfig):
    """Handle samples command."""
    library = SampleLibrary(config.samples)
    if not len(library):
        print("No practice samples configured.")
        return 0

    for index in library.indices:
        sample = library.get(index)
        audio = sample.native_audio or f"(missing: {library.audio_path_for(index)})"
        preview = sample.text if len(sample.text) <= 60 else sample.text[:57] + "..."
        print(f"  {index}: {preview}")
        print(f"     audio: {audio}")
    return 0


def pitch_command(args, config: AppConfig):
    """Handle pitch command: print the pitch contour of one file."""
    contour = _contour_from_file(args.audio, config, label="file")
    values = contour.values
    if args.json:
        print(json.dumps({"audio": args.audio, "pitch_hz": [round(v, 2) for v in values]}))
        return 0

    print(f"{args.audio}: {len(values)} voiced frames ({contour.rejected_count} rejected)")
    if values:
        print(f"  min {min(values):.1f} Hz, max {max(values):.1f} Hz, mean {sum(values) / len(values):.1f} Hz")
    return 0


def compare_command(args, config: AppConfig):
    """Handle compare command: intonation similarity of two files."""
    native = _contour_from_file(args.native, config, label="native")
    user = _contour_from_file(args.user, config, label="user")
    similarity = compute_contour_similarity(native.values, user.values)
    feedback = intonation_feedback(similarity, config.feedback)

    if args.json:
        print(json.dumps({
            "similarity": round(similarity, 2),
            "tier": feedback.tier.value,
            "native_samples": len(native),
            "user_samples": len(user),
        }))
        return 0

    print(f"Intonation similarity: {similarity:.1f}%")
    print(f"  {feedback.message}")
    return 0


def _build_session(args, config: AppConfig, bus: EventBus) -> PracticeSession:
    library = SampleLibrary(config.samples)
    assessor = NullAssessor() if args.no_assess else create_assessor(config.assessment)
    return PracticeSession(config, library, assessor=assessor, event_bus=bus, sample_index=args.sample)


def _finish(session: PracticeSession, args) -> int:
    report = session.analyze()
    if args.json:
        print(json.dumps(report_to_dict(report), indent=2))
    else:
        _print_report(report)
    if args.output:
        save_report(report, args.output)
        if not args.json:
            print(f"\n  Report: {args.output}")
    return 0


def practice_command(args, config: AppConfig):
    """Handle practice command: score a recorded attempt from files."""
    bus = EventBus()
    session = _build_session(args, config, bus)
    pitch = config.pitch

    try:
        native_source = None
        if args.native:
            native_source = FileAudioSource(args.native, pitch.frame_size, pitch.poll_interval_ms, source_id="native")
        session.play_native(native_source)
        session.wait_for_playback()

        user_source = FileAudioSource(args.user, pitch.frame_size, pitch.poll_interval_ms, source_id="user")
        session.start_recording(user_source, audio_path=None if args.no_assess else args.user)
        session.wait_for_recording()
        session.stop_recording()
        return _finish(session, args)
    finally:
        session.close()


def live_command(args, config: AppConfig):
    """Handle live command: listen to the native speaker, then record from the microphone."""
    bus = EventBus()
    bus.subscribe(RecognizingEvent, lambda event: print(f"  Recognizing: {event.text}"))
    session = _build_session(args, config, bus)
    pitch = config.pitch
    seconds = args.seconds or config.recording.auto_stop_s or 5.0

    try:
        print(f"Sample {session.sample.index}: {session.sample.text}\n")
        print("Playing native speaker...")
        session.play_native(play_audio=True)
        session.wait_for_playback()

        microphone = MicrophoneSource(
            pitch.frame_size,
            pitch.poll_interval_ms,
            pitch.sample_rate,
            device=config.recording.device,
            channels=config.recording.channels,
        )
        print(f"Recording for {seconds:.0f}s... Speak now!")
        session.start_recording(microphone)
        time.sleep(seconds)
        session.stop_recording()
        print("Recording stopped")

        if args.save_recording:
            write_audio(args.save_recording, microphone.recorded_audio(), microphone.sample_rate)
        return _finish(session, args)
    finally:
        session.close()


COMMANDS = {
    'samples': samples_command,
    'pitch': pitch_command,
    'compare': compare_command,
    'practice': practice_command,
    'live': live_command,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pronunciation-coach",
        description="Pronunciation and intonation practice",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List practice texts
  pronunciation-coach samples

  # Compare intonation of two recordings
  pronunciation-coach compare audio/native-speaker1.mp3 takes/me.wav

  # Score a recorded attempt, with cloud assessment
  pronunciation-coach practice --sample 1 --user takes/me.wav --output report.json

  # Listen, then record from the microphone
  pronunciation-coach live --sample 2 --seconds 8
        """
    )
    parser.add_argument(
        '--config',
        type=Path,
        default=None,
        help='Path to configuration YAML (default: bundled configs/default.yaml)'
    )
    parser.add_argument(
        '--log-level',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        default=None,
        help='Console log level (default: $PRONUNCIATION_COACH_LOG_LEVEL or INFO)'
    )

    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    subparsers.add_parser('samples', help='List practice samples')

    pitch_parser = subparsers.add_parser('pitch', help='Print the pitch contour of an audio file')
    pitch_parser.add_argument('audio', help='Audio file')
    pitch_parser.add_argument('--json', action='store_true', help='Print contour as JSON')

    compare_parser = subparsers.add_parser('compare', help='Intonation similarity of two recordings')
    compare_parser.add_argument('native', help='Native speaker recording')
    compare_parser.add_argument('user', help='Learner recording')
    compare_parser.add_argument('--json', action='store_true', help='Print result as JSON')

    for name, help_text in (
        ('practice', 'Score a recorded attempt'),
        ('live', 'Practice with the microphone'),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument('--sample', type=int, default=None, help='Practice sample number')
        sub.add_argument('--no-assess', action='store_true', help='Skip cloud pronunciation assessment')
        sub.add_argument('--output', help='Write JSON report to this path')
        sub.add_argument('--json', action='store_true', help='Print the report as JSON')

    practice_parser = subparsers.choices['practice']
    practice_parser.add_argument('--user', required=True, help='Learner recording')
    practice_parser.add_argument('--native', help='Native recording (default: sample audio)')

    live_parser = subparsers.choices['live']
    live_parser.add_argument('--seconds', type=float, default=None, help='Recording length')
    live_parser.add_argument('--save-recording', help='Save the microphone take as WAV')

    return parser


def main(argv=None):
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    if args.log_level:
        configure_logging(level=args.log_level)

    try:
        config = load_config(args.config)
        return COMMANDS[args.command](args, config)
    except PronunciationCoachError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
