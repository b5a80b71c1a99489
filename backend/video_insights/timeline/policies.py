"""
Timeline Policies Module
========================
Decides how many timeline segments a transcript gets and how they are named.

Two policies are available. They disagree on the segment count and must not
be mixed:

DURATION (default):
  - Count grows with transcript length: at least `min_segment_seconds`
    per segment, otherwise a fifth of the total, capped at `max_segments`
  - Topic: analysis topic if any, else the top keywords of the segment,
    else "Part N"
  - Works without any analysis provider

ANALYSIS:
  - One segment per analysis topic (capped), `default_topic_count` when the
    analysis has none
  - Topic: analysis topic if any, else "Segment N"

Both split the duration into equal-width windows.
"""

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import List, Optional, Dict, Type

from ..config import TimelineConfig
from ..models import VideoAnalysis


@dataclass
class SegmentWindow:
    """Floating-point time window for one timeline segment."""
    index: int
    start: float
    end: float

    def contains_start(self, start: float) -> bool:
        """Whether a transcript line starting at `start` belongs here."""
        return self.start <= start < self.end


def analysis_topic(analysis: Optional[VideoAnalysis], index: int) -> Optional[str]:
    """Name of the index-th analysis topic, or None when missing or blank."""
    if analysis is None or index >= len(analysis.main_topics):
        return None
    return analysis.main_topics[index].name or None


class SegmentationPolicy(ABC):
    """
    Abstract base class for timeline policies.

    Subclasses decide the segment count and the topic of each segment;
    window layout is shared.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Policy name used in configuration and logs."""
        pass

    @property
    def description(self) -> str:
        return f"Timeline policy: {self.name}"

    @abstractmethod
    def segment_count(
        self,
        total_duration: float,
        analysis: Optional[VideoAnalysis],
        config: TimelineConfig
    ) -> int:
        """Number of segments for a transcript of positive duration."""
        pass

    @abstractmethod
    def choose_topic(
        self,
        index: int,
        keywords: List[str],
        analysis: Optional[VideoAnalysis],
        config: TimelineConfig
    ) -> str:
        """Topic label for the index-th segment."""
        pass

    def windows(
        self,
        total_duration: float,
        analysis: Optional[VideoAnalysis],
        config: TimelineConfig
    ) -> List[SegmentWindow]:
        """Split [0, total_duration] into equal-width windows."""
        count = self.segment_count(total_duration, analysis, config)
        width = total_duration / count
        return [
            SegmentWindow(
                index=i,
                start=i * width,
                end=min((i + 1) * width, total_duration)
            )
            for i in range(count)
        ]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}: {self.name}>"


class DurationPolicy(SegmentationPolicy):
    """Segment count driven by transcript duration; keyword topics."""

    @property
    def name(self) -> str:
        return "duration"

    @property
    def description(self) -> str:
        return "Equal segments of at least two minutes, named by analysis topic or keywords"

    def segment_count(self, total_duration, analysis, config) -> int:
        target = max(config.min_segment_seconds, total_duration / config.max_segments)
        count = math.ceil(total_duration / target)
        return max(1, min(config.max_segments, count))

    def choose_topic(self, index, keywords, analysis, config) -> str:
        topic = analysis_topic(analysis, index)
        if topic:
            return topic
        if keywords:
            return " & ".join(keywords[:config.topic_keyword_count])
        return f"Part {index + 1}"


class AnalysisTopicPolicy(SegmentationPolicy):
    """One segment per analysis topic."""

    @property
    def name(self) -> str:
        return "analysis"

    @property
    def description(self) -> str:
        return "One equal segment per analysis topic"

    def segment_count(self, total_duration, analysis, config) -> int:
        topic_count = len(analysis.main_topics) if analysis is not None else 0
        return min(topic_count, config.max_segments) or config.default_topic_count

    def choose_topic(self, index, keywords, analysis, config) -> str:
        return analysis_topic(analysis, index) or f"Segment {index + 1}"


# Policy registry
POLICY_REGISTRY: Dict[str, Type[SegmentationPolicy]] = {
    'duration': DurationPolicy,
    'analysis': AnalysisTopicPolicy,
}


def get_policy(name: str) -> SegmentationPolicy:
    """
    Instantiate a policy by name.

    Raises:
        ValueError: If the name is not registered
    """
    if name not in POLICY_REGISTRY:
        raise ValueError(f"Unknown timeline policy: {name}. Available: {list(POLICY_REGISTRY.keys())}")
    return POLICY_REGISTRY[name]()
