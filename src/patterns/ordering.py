"""
Pattern 순서 결정.

- sort_by_priority: 빌드용. 고정 우선순위 테이블 기반 stable sort
- topological_sort: 라이브러리 자기 일관성 검사용. 선언된 dependencies 기반

우선순위 테이블은 의존성 그래프의 단순화 (얕고 순환 없는 그래프 전제).
라이브러리가 깊어지면 topological_sort 결과를 순서 기준으로 사용.
"""

import logging
from dataclasses import dataclass, field

from src.domain.constants import PATTERN_PRIORITY, UNLISTED_PATTERN_PRIORITY
from src.domain.errors import ErrorCodes
from src.domain.schemas import Pattern, PatternReference

logger = logging.getLogger(__name__)


def get_priority(pattern_id: str) -> int:
    """패턴 우선순위 (테이블에 없으면 10)."""
    return PATTERN_PRIORITY.get(pattern_id, UNLISTED_PATTERN_PRIORITY)


def sort_by_priority(refs: list[PatternReference]) -> list[PatternReference]:
    """
    우선순위 기준 stable sort (동순위는 입력 순서 유지).

    Args:
        refs: PatternReference 목록 (변경하지 않음)

    Returns:
        정렬된 새 목록
    """
    return sorted(refs, key=lambda ref: get_priority(ref.pattern_id))


@dataclass
class TopologicalOrder:
    """topological_sort 결과."""
    order: list[Pattern] = field(default_factory=list)
    cycles: list[str] = field(default_factory=list)  # 제외된 패턴 id
    missing: list[tuple[str, str]] = field(default_factory=list)  # (pattern_id, dependency)


def topological_sort(patterns: list[Pattern]) -> TopologicalOrder:
    """
    선언된 의존성 기준 위상 정렬 (Kahn).

    - 의존성이 먼저 오도록 정렬, 후보가 여럿이면 입력 순서 우선 (결정론적)
    - 목록에 없는 의존성: 경고 후 무시
    - 순환에 걸린 패턴 (및 그에 의존하는 패턴): 경고 후 제외

    Args:
        patterns: Pattern 목록

    Returns:
        TopologicalOrder
    """
    result = TopologicalOrder()
    known = {p.id for p in patterns}

    deps: dict[str, set[str]] = {}
    for pattern in patterns:
        deps[pattern.id] = set()
        for dep in pattern.dependencies:
            if dep in known:
                deps[pattern.id].add(dep)
            else:
                logger.warning(
                    f"[{ErrorCodes.DEPENDENCY_MISSING}] pattern={pattern.id} "
                    f"depends on unknown pattern={dep}"
                )
                result.missing.append((pattern.id, dep))

    emitted: set[str] = set()
    remaining = list(patterns)

    while remaining:
        ready = next((p for p in remaining if deps[p.id] <= emitted), None)
        if ready is None:
            break
        result.order.append(ready)
        emitted.add(ready.id)
        remaining.remove(ready)

    for pattern in remaining:
        logger.warning(
            f"[{ErrorCodes.DEPENDENCY_CYCLE}] pattern={pattern.id} dropped: "
            f"circular dependency"
        )
        result.cycles.append(pattern.id)

    return result
