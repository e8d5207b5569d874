#!/usr/bin/env python3
"""Live webcam hands-free demo.

Shows the current hold progress and the last confirmed command on screen.

Usage:
    python examples/demo_webcam.py [--camera 0] [--no-display]
"""

import argparse
import sys

import cv2

from handsfree import ActionMapper, GestureEngine, GestureEvent
from handsfree.detector import MediaPipeSource


def draw_overlay(frame, engine: GestureEngine, last_command: str):
    """Draw hold progress and the last command on frame."""
    h, w = frame.shape[:2]

    state = engine.machine.state.value
    label = engine.machine.active_label
    text = f"{state}: {label.value}" if label else state
    cv2.putText(frame, text, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, (0, 255, 0), 2)

    bar_width = int((w - 20) * engine.progress)
    cv2.rectangle(frame, (10, 45), (10 + bar_width, 60), (0, 255, 255), -1)

    if last_command:
        cv2.putText(
            frame, last_command, (10, h - 20),
            cv2.FONT_HERSHEY_SIMPLEX, 1.0, (0, 255, 255), 2,
        )
    return frame


def main():
    parser = argparse.ArgumentParser(description="handsfree webcam demo")
    parser.add_argument("--camera", type=int, default=0, help="Camera index")
    parser.add_argument("--hold", type=int, default=30, help="Frames to hold a gesture")
    parser.add_argument("--no-display", action="store_true", help="Run headless")
    args = parser.parse_args()

    cap = cv2.VideoCapture(args.camera)
    if not cap.isOpened():
        print(f"Error: Cannot open camera {args.camera}")
        sys.exit(1)

    print("Starting handsfree...")
    print("Press 'q' to quit\n")

    engine = GestureEngine(hold_threshold=args.hold)
    mapper = ActionMapper.with_defaults()
    last = {"command": ""}

    def on_command(event: GestureEvent):
        command = mapper.command_for(event.label)
        last["command"] = f"{command} ({event.confidence:.0%})"
        print(f"  {event.label.value} -> {command}")

    for command in mapper.commands:
        mapper.on(command, on_command)
    mapper.bind(engine)

    with MediaPipeSource() as source:
        engine.attach(source)

        while True:
            ret, frame = cap.read()
            if not ret:
                break

            source.process(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))

            if not args.no_display:
                frame = draw_overlay(frame, engine, last["command"])
                cv2.imshow("handsfree", frame)

                if cv2.waitKey(1) & 0xFF == ord("q"):
                    break

    cap.release()
    cv2.destroyAllWindows()

    stats = engine.stats
    print(f"\nProcessed {stats.total_frames} frames, {stats.total_gestures} gestures")


if __name__ == "__main__":
    main()
