"""Chart analysis for ChartJournal.

Builds the analyst prompt, calls the vision model, and normalizes its
loosely structured answer into an AIAnalysis.
"""

from chartjournal.analysis.gemini import (
    API_ERROR_MESSAGE,
    AnalysisAPIError,
    GeminiClient,
    analyze_chart,
)
from chartjournal.analysis.images import load_chart_image, split_data_url, to_data_url
from chartjournal.analysis.normalizer import (
    generate_fallback_analysis,
    normalize_analysis,
    parse_analysis_text,
    strip_code_fences,
)
from chartjournal.analysis.prompts import build_analysis_prompt

__all__ = [
    "API_ERROR_MESSAGE",
    "AnalysisAPIError",
    "GeminiClient",
    "analyze_chart",
    "load_chart_image",
    "split_data_url",
    "to_data_url",
    "generate_fallback_analysis",
    "normalize_analysis",
    "parse_analysis_text",
    "strip_code_fences",
    "build_analysis_prompt",
]
