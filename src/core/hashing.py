"""
해시 계산: spec_hash, artifact_hash

규칙:
- spec_hash: 스펙 동일성 (createdAt 제외 - 같은 내용이면 같은 앱)
- artifact_hash: 최종 문서 변경 감지
- 정렬된 키로 직렬화
- SHA-256
"""

import hashlib
import json
from typing import Any

from src.domain.schemas import Specification


def canonical_spec_dict(spec: Specification) -> dict[str, Any]:
    """
    해시 대상 스펙 dict.

    meta.createdAt은 정규화 시각이므로 제외.
    """
    data = spec.to_dict()
    data["meta"] = {k: v for k, v in data["meta"].items() if k != "createdAt"}
    return data


def compute_spec_hash(spec: Specification) -> str:
    """
    스펙 동일성 해시 계산.

    Args:
        spec: Specification

    Returns:
        SHA-256 해시 문자열
    """
    serialized = json.dumps(canonical_spec_dict(spec), sort_keys=True, ensure_ascii=False)
    return hashlib.sha256(serialized.encode()).hexdigest()


def compute_artifact_hash(html: str) -> str:
    """
    빌드 산출물(최종 HTML) 해시.

    Args:
        html: 최종 문서 문자열

    Returns:
        SHA-256 해시 문자열
    """
    return hashlib.sha256(html.encode("utf-8")).hexdigest()
