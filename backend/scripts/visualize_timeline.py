#!/usr/bin/env python3
"""
Timeline Visualization Script
=============================
Visualizes timeline segments overlaid on the transcript.

Creates ASCII-art timeline showing:
- Segment boundaries and topics
- Transcript line positions
- Keywords per segment

Usage:
    python scripts/visualize_timeline.py --input data/videos/<id>.json
    python scripts/visualize_timeline.py --test --policy analysis
    python scripts/visualize_timeline.py --test --compare
"""

import argparse
import json
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from video_insights.config import TimelineConfig
from video_insights.models import TopicRef, TranscriptLine, VideoAnalysis, VideoRecord
from video_insights.timeline import (
    POLICY_REGISTRY,
    TimelineBuilder,
    format_time,
    transcript_duration,
)


def create_test_transcript(duration: float = 300.0):
    """Create a test transcript alternating between two speakers."""
    phrases = [
        "Thanks everyone for joining the quarterly planning meeting.",
        "Budget numbers came in higher than forecast this quarter.",
        "Marketing spend should shift toward developer conferences.",
        "Hiring remains the biggest constraint for the platform team.",
        "We need two senior engineers before the summer release.",
        "Customer feedback points to onboarding as the weak spot.",
        "Let's schedule a design review for onboarding next week.",
        "Action items go out by email after this meeting.",
    ]

    lines = []
    current_time = 0.0
    index = 0

    while current_time < duration - 5:
        line_duration = 8.0 + (index % 4) * 3.0
        lines.append(TranscriptLine(
            speaker=f"SPEAKER_0{index % 2}",
            text=phrases[index % len(phrases)],
            start=current_time,
            end=min(current_time + line_duration, duration)
        ))
        current_time += line_duration
        index += 1

    return lines


def create_test_analysis():
    """Create a test analysis with three main topics."""
    return VideoAnalysis(
        summary="Quarterly planning covering budget, hiring and onboarding.",
        main_topics=[
            TopicRef(name="Budget", icon="BU"),
            TopicRef(name="Hiring", icon="HI"),
            TopicRef(name="Onboarding", icon="ON"),
        ]
    )


def load_record(path: str):
    """Load a stored record, or a bare list of transcript lines."""
    with open(path, 'r', encoding='utf-8') as f:
        data = json.load(f)

    if isinstance(data, list):
        return [TranscriptLine.from_dict(line) for line in data], None

    record = VideoRecord.from_dict(data)
    return record.transcript, record.analysis


def visualize_timeline(transcript, analysis, policy: str, width: int = 80):
    """
    Create ASCII visualization of a timeline.

    Args:
        transcript: Ordered transcript lines
        analysis: Optional analysis for topic names
        policy: Timeline policy name
        width: Output width in characters
    """
    builder = TimelineBuilder(TimelineConfig(), policy=policy)
    segments = builder.build(transcript, analysis)
    duration = transcript_duration(transcript)

    print("\n" + "="*width)
    print("TIMELINE VISUALIZATION")
    print(f"Transcript Duration: {format_time(duration)} ({duration:.1f}s)")
    print(f"Policy: {builder.policy.name} ({builder.policy.description})")
    print("="*width + "\n")

    if not segments:
        print("  No transcript, no segments")
        print("\n" + "="*width + "\n")
        return

    timeline_chars = width - 10
    scale = max(duration, 1.0) / timeline_chars

    # === TIMELINE ===
    print("TIMELINE (segment boundaries shown as |, transcript lines as .)")
    print("-" * width)

    boundary_row = ['-'] * timeline_chars
    for seg in segments:
        pos = min(int(seg.start_time / scale), timeline_chars - 1)
        boundary_row[pos] = '|'

    line_row = [' '] * timeline_chars
    for line in transcript:
        pos = min(int(line.start / scale), timeline_chars - 1)
        line_row[pos] = '.'

    print("Segments:" + "".join(boundary_row))
    print("Lines:   " + "".join(line_row))

    label_row = [' '] * timeline_chars
    for t in range(0, int(duration) + 1, 60):
        pos = min(int(t / scale), timeline_chars - 1)
        label = format_time(t)
        if pos + len(label) <= timeline_chars:
            for i, c in enumerate(label):
                label_row[pos + i] = c
    print("Time:    " + "".join(label_row))

    # === SEGMENTS ===
    print("\n" + "-"*width)
    print("SEGMENTS")
    print("-"*width)

    for i, seg in enumerate(segments):
        print(f"\nSegment {i+1}: {seg.topic}")
        print(f"  {format_time(seg.start_time)} -> {format_time(seg.end_time)} ({seg.duration_seconds}s)")
        print(f"  {seg.description}")
        print(f"  Keywords: {', '.join(seg.keywords) if seg.keywords else '(none)'}")
        print(f"  Color: {seg.color}")

    # === COVERAGE ===
    print("\n" + "-"*width)
    print("COVERAGE STATISTICS")
    print("-"*width)

    covered = sum(s.duration_seconds for s in segments)
    coverage_pct = (covered / duration) * 100 if duration > 0 else 0

    print(f"  Total segments: {len(segments)}")
    print(f"  Transcript lines: {len(transcript)}")
    print(f"  Covered: {covered}s ({coverage_pct:.1f}%)")

    print("\n" + "="*width + "\n")


def main():
    parser = argparse.ArgumentParser(
        description="Visualize timeline segmentation",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument(
        '--input', '-i',
        type=str,
        help='Stored video record JSON, or a JSON list of transcript lines'
    )

    parser.add_argument(
        '--test', '-t',
        action='store_true',
        help='Use test data instead of an input file'
    )

    parser.add_argument(
        '--duration', '-d',
        type=float,
        default=300.0,
        help='Test transcript duration in seconds (default: 300)'
    )

    parser.add_argument(
        '--policy', '-p',
        choices=sorted(POLICY_REGISTRY.keys()),
        default='duration',
        help='Timeline policy (default: duration)'
    )

    parser.add_argument(
        '--no-analysis',
        action='store_true',
        help='Ignore the analysis and use keyword topics only'
    )

    parser.add_argument(
        '--width', '-w',
        type=int,
        default=80,
        help='Output width in characters (default: 80)'
    )

    parser.add_argument(
        '--compare',
        action='store_true',
        help='Compare all policies'
    )

    args = parser.parse_args()

    if args.input:
        transcript, analysis = load_record(args.input)
    elif args.test:
        transcript, analysis = create_test_transcript(args.duration), create_test_analysis()
    else:
        parser.error("either --input or --test is required")

    if args.no_analysis:
        analysis = None

    policies = sorted(POLICY_REGISTRY.keys()) if args.compare else [args.policy]
    for policy in policies:
        visualize_timeline(transcript, analysis, policy, args.width)


if __name__ == "__main__":
    main()
