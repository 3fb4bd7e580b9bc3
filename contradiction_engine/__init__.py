"""
Contradiction Engine - Contradiction detection analysis pipeline
================================================================

A standalone engine for:
1. Extracting temporal, numerical, logical and certainty statements from text
2. Detecting contradictions between them, within or across documents
3. Verifying each candidate by majority vote of three strategies
4. Scoring risk and anchoring every stage in a SHA-512 hash chain

No database, no persistence; results are immutable pydantic models.
"""

__version__ = "1.0.0"

from .analyzer import TextAnalyzer, analyze_text
from .config import AnalysisConfig, build_config
from .engine import ContradictionEngine, analyze, compare_documents
from .errors import ConfigError, ContradictionEngineError, InputError, StageFailure
from .forensic import verify_chain, verify_comparison, verify_result
from .schemas import AnalysisResult, ComparisonResult

__all__ = [
    "AnalysisConfig",
    "AnalysisResult",
    "ComparisonResult",
    "ConfigError",
    "ContradictionEngine",
    "ContradictionEngineError",
    "InputError",
    "StageFailure",
    "TextAnalyzer",
    "analyze",
    "analyze_text",
    "build_config",
    "compare_documents",
    "verify_chain",
    "verify_comparison",
    "verify_result",
]
