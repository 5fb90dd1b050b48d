"""
ID 생성: spec_id, build_id

규칙:
- spec_id는 결정론적: 동일 스펙 → 동일 spec_id (매니페스트 재현성)
- build_id만 매 빌드 새로 발급
"""

import uuid
from datetime import UTC, datetime

from src.core.hashing import compute_spec_hash
from src.domain.constants import BUILD_ID_PREFIX, SPEC_ID_PREFIX
from src.domain.schemas import Specification


def generate_spec_id(spec: Specification) -> str:
    """
    Spec ID 생성.

    결정론적: 동일 spec 내용 → 동일 spec_id
    포맷: SPEC-{app_name}-{hash[:8]}

    Args:
        spec: Specification

    Returns:
        spec_id 문자열
    """
    safe_name = sanitize_for_id(spec.meta.name)
    hash_value = compute_spec_hash(spec)[:8]
    return f"{SPEC_ID_PREFIX}{safe_name}-{hash_value}"


def generate_build_id() -> str:
    """
    Build ID 생성.

    포맷: BUILD-{timestamp}-{uuid[:8]}

    Returns:
        build_id 문자열
    """
    timestamp = datetime.now(UTC).strftime("%Y%m%d%H%M%S")
    unique = uuid.uuid4().hex[:8]
    return f"{BUILD_ID_PREFIX}{timestamp}-{unique}"


def sanitize_for_id(value: str, max_length: int = 20, fallback: str = "app") -> str:
    """
    ID/파일명에 사용할 수 있도록 문자열 정리.

    - 공백/밑줄/하이픈 → 하이픈
    - ASCII 영숫자만 유지, 소문자화
    - 최대 max_length자
    """
    sanitized = ""
    for c in value or "":
        if c.isascii() and c.isalnum():
            sanitized += c.lower()
        elif c in " _-":
            sanitized += "-"

    while "--" in sanitized:
        sanitized = sanitized.replace("--", "-")

    sanitized = sanitized.strip("-")[:max_length].rstrip("-")
    return sanitized if sanitized else fallback
