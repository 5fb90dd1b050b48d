"""
Application Services.

역할:
- normalize: LLM 응답 텍스트 → Specification / AssistantTurn
- router: Specification → PatternReference 목록
- orchestrator: 세션 단위 대화 → 스펙 → 빌드 흐름
"""

from .normalize import normalize_spec, parse_assistant_turn, parse_spec_text
from .orchestrator import Orchestrator, compile_spec, get_next_phase
from .router import get_unique_pattern_ids, match_patterns, sort_patterns_by_dependency

__all__ = [
    "normalize_spec",
    "parse_spec_text",
    "parse_assistant_turn",
    "match_patterns",
    "get_unique_pattern_ids",
    "sort_patterns_by_dependency",
    "Orchestrator",
    "compile_spec",
    "get_next_phase",
]
