"""handsfree CLI.

Usage:
    handsfree replay    — Run a recorded session through the engine
    handsfree config    — Print, write or validate engine configuration
    handsfree record    — Record landmark frames from a webcam
    handsfree watch     — Recognize gestures live from a webcam
"""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Optional

import typer

app = typer.Typer(
    name="handsfree",
    help="Hands-free gesture control from hand landmark streams.",
    add_completion=False,
)

MAX_READ_FAILURES = 100


@app.callback()
def main_options(
    log_level: str = typer.Option("warning", help="Log level"),
):
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.WARNING),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )


def _load_config(
    config_path: Optional[str],
    hold_threshold: Optional[int] = None,
    cooldown_ms: Optional[float] = None,
    required_confidence: Optional[float] = None,
):
    import yaml

    from handsfree.config import ConfigurationError, EngineConfig

    try:
        config = EngineConfig.from_yaml(config_path) if config_path else EngineConfig()
        overrides = {
            k: v for k, v in {
                "hold_threshold": hold_threshold,
                "cooldown_ms": cooldown_ms,
                "required_confidence": required_confidence,
            }.items() if v is not None
        }
        return config.replace(**overrides) if overrides else config
    except (ConfigurationError, OSError, yaml.YAMLError) as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(1)


@app.command()
def replay(
    recording: str = typer.Argument(..., help="Path to recording file"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Engine YAML config"),
    hold_threshold: Optional[int] = typer.Option(None, help="Frames needed to confirm"),
    cooldown_ms: Optional[float] = typer.Option(None, help="Cooldown after a gesture (ms)"),
    required_confidence: Optional[float] = typer.Option(None, help="Minimum detector score"),
    realtime: bool = typer.Option(False, help="Play at original timing"),
    speed: float = typer.Option(1.0, help="Playback speed multiplier"),
    show_metrics: bool = typer.Option(False, "--metrics", help="Print Prometheus metrics"),
):
    """Replay a recorded session through the gesture engine."""
    from handsfree.engine import GestureEngine
    from handsfree.metrics import MetricsCollector
    from handsfree.recorder import SessionPlayer

    path = Path(recording)
    if not path.exists():
        typer.echo(f"Recording not found: {recording}", err=True)
        raise typer.Exit(1)

    config = _load_config(config_path, hold_threshold, cooldown_ms, required_confidence)

    try:
        player = SessionPlayer.load(path)
    except (ValueError, KeyError) as e:
        typer.echo(f"Could not read recording: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Replaying {path.name} ({player.frame_count} frames, {player.duration:.1f}s)")

    metrics = MetricsCollector()
    engine = GestureEngine(config, metrics=metrics)

    def on_gesture(event):
        typer.echo(
            f"  {event.fired_at:8.2f}s  {event.label.value} "
            f"(confidence: {event.confidence:.2f})"
        )

    engine.subscribe(on_gesture)
    engine.attach(player)
    player.run(realtime=realtime, speed=speed)

    stats = engine.stats
    typer.echo(
        f"\nReplay complete. {stats.total_gestures} gestures from "
        f"{stats.total_frames} frames ({stats.frames_with_hand} with a hand)."
    )
    if show_metrics:
        typer.echo(metrics.render())


@app.command()
def config(
    output: Optional[str] = typer.Option(None, "-o", "--output", help="Write defaults to this file"),
    check: Optional[str] = typer.Option(None, help="Validate a YAML config file"),
):
    """Print the default engine configuration, or validate a config file."""
    from handsfree.config import EngineConfig

    if check:
        loaded = _load_config(check)
        typer.echo(f"{check}: OK")
        typer.echo(loaded.dump())
        return

    defaults = EngineConfig()
    if output:
        defaults.to_yaml(output)
        typer.echo(f"Saved defaults to: {output}")
    else:
        typer.echo(defaults.dump())


def _open_camera(camera: int):
    import cv2

    cap = cv2.VideoCapture(camera)
    if not cap.isOpened():
        typer.echo(f"Could not open camera {camera}", err=True)
        raise typer.Exit(1)
    return cap


def _read_rgb(cap):
    ret, frame = cap.read()
    if not ret:
        return None
    import cv2

    return cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)


def _camera_loop(cap, source, duration: float = 0.0):
    """Read frames until Ctrl+C or ``duration`` seconds, pushing through ``source``.

    Stops early once the camera fails ``MAX_READ_FAILURES`` reads in a row.
    """
    start = time.monotonic()
    failures = 0
    try:
        while True:
            if duration > 0 and (time.monotonic() - start) >= duration:
                break
            frame_rgb = _read_rgb(cap)
            if frame_rgb is None:
                failures += 1
                if failures >= MAX_READ_FAILURES:
                    typer.echo("Camera stopped returning frames", err=True)
                    break
                continue
            failures = 0
            source.process(frame_rgb)
    except KeyboardInterrupt:
        pass


@app.command()
def record(
    output: str = typer.Option("session.json", "-o", help="Output file path"),
    duration: float = typer.Option(0, help="Recording duration in seconds (0 = until Ctrl+C)"),
    camera: int = typer.Option(0, help="Camera device index"),
):
    """Record hand landmark frames from the camera."""
    from handsfree.detector import MediaPipeSource
    from handsfree.recorder import SessionRecorder

    cap = _open_camera(camera)
    recorder = SessionRecorder()

    typer.echo(f"Recording from camera {camera}... press Ctrl+C to stop")
    with MediaPipeSource() as source:
        source.on_frame(recorder.add_frame)
        recorder.start()
        try:
            _camera_loop(cap, source, duration)
        finally:
            recorder.stop()
            cap.release()

    recorder.save(output)
    typer.echo(f"\nRecorded {recorder.frame_count} frames ({recorder.duration:.1f}s) to {output}")


@app.command()
def watch(
    camera: int = typer.Option(0, help="Camera device index"),
    config_path: Optional[str] = typer.Option(None, "--config", help="Engine YAML config"),
    actions_path: Optional[str] = typer.Option(None, "--actions", help="Gesture-to-command YAML"),
):
    """Recognize gestures live from the camera and print them."""
    from handsfree.actions import ActionMapper
    from handsfree.detector import MediaPipeSource
    from handsfree.engine import GestureEngine

    engine = GestureEngine(_load_config(config_path))
    mapper = ActionMapper.from_yaml(actions_path) if actions_path else ActionMapper.with_defaults()

    def on_gesture(event):
        command = mapper.command_for(event.label) or "-"
        typer.echo(f"{event.label.value} -> {command} (confidence: {event.confidence:.2f})")

    engine.subscribe(on_gesture)

    cap = _open_camera(camera)
    typer.echo(f"Watching camera {camera}... press Ctrl+C to stop")
    with MediaPipeSource(min_detection_confidence=engine.config.required_confidence) as source:
        engine.attach(source)
        try:
            _camera_loop(cap, source)
        finally:
            cap.release()

    typer.echo(f"\n{engine.stats.total_gestures} gestures recognized.")


def main():
    app()


if __name__ == "__main__":
    main()
