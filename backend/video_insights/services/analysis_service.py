"""
Analysis Service Module
=======================
Provides AI-powered analysis of transcripts using Google Gemini.

This service handles:
- Prompting Gemini for a structured conversation analysis
- Parsing the JSON response into a VideoAnalysis
- Falling back to the default analysis when Gemini is unavailable or fails
"""

import json
import logging
from typing import Any, Optional

import google.generativeai as genai

from ..config import GeminiConfig
from ..models import VideoAnalysis

logger = logging.getLogger(__name__)


ANALYSIS_PROMPT = """You are an expert at analyzing conversation transcripts. Analyze the following transcript and provide insights in JSON format with these fields:
- summary: A brief summary of the conversation (2-3 sentences)
- highlights: Array of key highlights or important moments (3-5 items)
- mainTopics: Array of main topics discussed, each with "name" and "icon" (use a simple text label or abbreviation for icon, not emoji)
- partialTopics: Array of partially discussed topics, each with "name" and "reason" why it was only partial
- speakers: Array of speaker info with "name" (e.g., "Consultant", "Client"), "role", and "speakingTime" (estimated in seconds)
- decisions: Array of decisions made, each with "decision" and "actionItems" array

IMPORTANT: Respond ONLY with a valid JSON object, with no markdown formatting, no code blocks, and no additional text.

Transcript:
{transcript}
"""


def parse_analysis_response(text: str) -> VideoAnalysis:
    """
    Parse a model response into a VideoAnalysis.

    Markdown code fences are stripped. Missing fields get defaults.

    Raises:
        ValueError: If the response is not a JSON object
    """
    result = text.strip().replace('```json', '').replace('```', '').strip()

    try:
        data = json.loads(result or '{}')
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid response from Gemini: {e}") from e

    if not isinstance(data, dict):
        raise ValueError("Invalid response from Gemini: expected a JSON object")

    return VideoAnalysis.from_dict(data)


class AnalysisService:
    """
    Service for AI-powered transcript analysis.

    Uses Google Gemini to summarise a transcript and list its topics,
    speakers and decisions. Never raises for provider failures; callers get
    VideoAnalysis.default() instead.
    """

    def __init__(self, config: Optional[GeminiConfig] = None, model: Optional[Any] = None):
        """
        Initialize the analysis service.

        Args:
            config: Gemini configuration (default: GeminiConfig())
            model: Optional pre-built model exposing generate_content()
        """
        self.config = config or GeminiConfig()
        self.model = model

        if self.model is None and self.config.is_available:
            genai.configure(api_key=self.config.api_key)
            self.model = genai.GenerativeModel(
                self.config.model_name,
                generation_config={
                    'temperature': self.config.temperature,
                    'top_k': self.config.top_k,
                    'top_p': self.config.top_p,
                    'max_output_tokens': self.config.max_output_tokens,
                }
            )

        if self.model is None:
            logger.warning("No Gemini API key found in configuration; analysis disabled")
        else:
            logger.info(
                f"Initialized AnalysisService with model: {self.config.model_name}, "
                f"temperature: {self.config.temperature}"
            )

    @property
    def enabled(self) -> bool:
        return self.model is not None

    def analyze_transcript(self, full_text: str) -> VideoAnalysis:
        """
        Analyze a transcript.

        Args:
            full_text: All transcript lines joined with spaces

        Returns:
            The parsed analysis, or VideoAnalysis.default() on any failure
        """
        if not self.enabled:
            return VideoAnalysis.default()

        if not full_text.strip():
            logger.info("Empty transcript, skipping analysis")
            return VideoAnalysis.default()

        logger.info(f"Analyzing transcript ({len(full_text)} characters)")

        try:
            response = self.model.generate_content(ANALYSIS_PROMPT.format(transcript=full_text))
            analysis = parse_analysis_response(response.text)
        except Exception as e:
            logger.error(f"Analysis error: {str(e)}")
            return VideoAnalysis.default()

        logger.info(f"Analysis complete: {len(analysis.main_topics)} main topics")
        return analysis
