"""
Core layer: 판정/산출물 핵심 모듈.

빌드 게이트와 산출물 재현성이 여기 달려 있음 → 가장 보수적으로 관리

역할:
- 스펙 검증 (빌드 게이트), ID, 해시, 빌드 로그, 원자적 export
"""

from .artifacts import atomic_write_json, atomic_write_text, export_build
from .hashing import compute_artifact_hash, compute_spec_hash
from .ids import generate_build_id, generate_spec_id
from .logging import complete_build_log, create_build_log, emit_warning, save_build_log
from .validate import (
    calculate_completeness,
    get_validation_summary,
    is_valid_for_build,
    validate_spec,
)

__all__ = [
    # validate
    "validate_spec",
    "calculate_completeness",
    "is_valid_for_build",
    "get_validation_summary",
    # ids
    "generate_spec_id",
    "generate_build_id",
    # hashing
    "compute_spec_hash",
    "compute_artifact_hash",
    # logging
    "create_build_log",
    "emit_warning",
    "complete_build_log",
    "save_build_log",
    # artifacts
    "atomic_write_json",
    "atomic_write_text",
    "export_build",
]
