"""
Pattern Registry: 고정 패턴 라이브러리 (닫힌 집합).

규칙:
- 패턴 id 집합은 PATTERN_IDS 로 고정 (런타임 추가/플러그인 로딩 없음)
- library/<id>.yaml 에서 한 번 로드 후 읽기 전용 (MappingProxyType)
- 파일 누락/형식 오류는 PatternError (라이브러리 자체 결함)
"""

import logging
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any

import yaml

from src.domain.constants import PATTERN_CATEGORIES, PATTERN_IDS
from src.domain.errors import ErrorCodes, PatternError
from src.domain.schemas import Pattern, PatternInput, PatternTemplate
from src.patterns.ordering import topological_sort

logger = logging.getLogger(__name__)

LIBRARY_DIR = Path(__file__).parent / "library"


def _parse_pattern(pattern_id: str, data: Any, path: Path) -> Pattern:
    """YAML dict → Pattern. 형식이 맞지 않으면 PatternError."""
    if not isinstance(data, dict):
        raise PatternError(ErrorCodes.PATTERN_INVALID, pattern_id=pattern_id, path=str(path))

    if data.get("id") != pattern_id:
        raise PatternError(
            ErrorCodes.PATTERN_INVALID,
            pattern_id=pattern_id,
            path=str(path),
            reason=f"id mismatch: {data.get('id')!r}",
        )

    category = data.get("category")
    if category not in PATTERN_CATEGORIES:
        raise PatternError(
            ErrorCodes.PATTERN_INVALID,
            pattern_id=pattern_id,
            reason=f"unknown category: {category!r}",
        )

    template = data.get("template") or {}
    inputs = tuple(
        PatternInput(
            name=item["name"],
            type=item.get("type", "string"),
            required=bool(item.get("required", False)),
            default=item.get("default"),
        )
        for item in data.get("inputs") or []
    )

    return Pattern(
        id=pattern_id,
        name=data.get("name", pattern_id),
        description=data.get("description", ""),
        category=category,
        inputs=inputs,
        template=PatternTemplate(
            html=template.get("html") or "",
            css=template.get("css") or "",
            js=template.get("js") or "",
        ),
        dependencies=tuple(data.get("dependencies") or ()),
    )


class PatternRegistry:
    """
    읽기 전용 패턴 레지스트리.

    Usage:
        registry = PatternRegistry()
        pattern = registry.get("view-list")
    """

    def __init__(self, library_dir: Path | None = None):
        self.library_dir = library_dir or LIBRARY_DIR
        self._patterns: MappingProxyType | None = None

    def _load(self) -> MappingProxyType:
        """라이브러리 로드 (lazy, 1회)."""
        if self._patterns is None:
            loaded: dict[str, Pattern] = {}
            for pattern_id in PATTERN_IDS:
                path = self.library_dir / f"{pattern_id}.yaml"
                if not path.exists():
                    raise PatternError(
                        ErrorCodes.PATTERN_FILE_MISSING,
                        pattern_id=pattern_id,
                        path=str(path),
                    )
                with open(path, encoding="utf-8") as f:
                    loaded[pattern_id] = _parse_pattern(pattern_id, yaml.safe_load(f), path)

            self._patterns = MappingProxyType(loaded)
            logger.debug(f"Loaded {len(loaded)} patterns from {self.library_dir}")

        return self._patterns

    @property
    def patterns(self) -> MappingProxyType:
        return self._load()

    def get(self, pattern_id: str) -> Pattern | None:
        return self._load().get(pattern_id)

    def has(self, pattern_id: str) -> bool:
        return pattern_id in self._load()

    def ids(self) -> list[str]:
        return list(self._load().keys())

    def all(self) -> list[Pattern]:
        return list(self._load().values())

    def by_category(self, category: str) -> list[Pattern]:
        return [p for p in self._load().values() if p.category == category]


@lru_cache(maxsize=1)
def get_default_registry() -> PatternRegistry:
    """프로세스 전역 기본 레지스트리."""
    return PatternRegistry()


# =============================================================================
# Module-level API (기본 레지스트리)
# =============================================================================

def get_pattern(pattern_id: str) -> Pattern | None:
    return get_default_registry().get(pattern_id)


def has_pattern(pattern_id: str) -> bool:
    return get_default_registry().has(pattern_id)


def get_all_pattern_ids() -> list[str]:
    return get_default_registry().ids()


def get_all_patterns() -> list[Pattern]:
    return get_default_registry().all()


def get_patterns_by_category(category: str) -> list[Pattern]:
    return get_default_registry().by_category(category)


def validate_patterns(pattern_ids: list[str]) -> dict[str, Any]:
    """
    패턴 id 목록 확인.

    Returns:
        {"valid": bool, "missing": [라이브러리에 없는 id]}
    """
    registry = get_default_registry()
    missing = [pid for pid in pattern_ids if not registry.has(pid)]
    return {"valid": len(missing) == 0, "missing": missing}


def check_library(registry: PatternRegistry | None = None) -> dict[str, Any]:
    """
    라이브러리 내부 일관성 검사 (선언된 의존성 그래프).

    Returns:
        {
            "valid": 순환/누락 의존성 없음,
            "order": 의존성 순서 패턴 id,
            "cycles": 순환에 걸린 패턴 id,
            "missing_dependencies": [{"pattern_id", "dependency"}]
        }
    """
    registry = registry or get_default_registry()
    result = topological_sort(registry.all())
    return {
        "valid": not result.cycles and not result.missing,
        "order": [p.id for p in result.order],
        "cycles": list(result.cycles),
        "missing_dependencies": [
            {"pattern_id": pid, "dependency": dep} for pid, dep in result.missing
        ],
    }
