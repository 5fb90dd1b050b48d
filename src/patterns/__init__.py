"""
Pattern layer: 고정 패턴 라이브러리.

역할:
- library/*.yaml: 14개 패턴 (HTML/CSS/JS 템플릿 + 의존성)
- registry: 읽기 전용 조회
- ordering: 우선순위 정렬, 의존성 위상 정렬
"""

from .ordering import sort_by_priority, topological_sort
from .registry import (
    PatternRegistry,
    check_library,
    get_all_pattern_ids,
    get_all_patterns,
    get_default_registry,
    get_pattern,
    get_patterns_by_category,
    has_pattern,
    validate_patterns,
)

__all__ = [
    "PatternRegistry",
    "get_default_registry",
    "get_pattern",
    "has_pattern",
    "get_all_pattern_ids",
    "get_all_patterns",
    "get_patterns_by_category",
    "validate_patterns",
    "check_library",
    "sort_by_priority",
    "topological_sort",
]
