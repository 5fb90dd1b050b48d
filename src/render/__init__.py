"""
Render layer: 패턴 템플릿 → 최종 HTML 문서.

역할:
- template: logic template 엔진 (외부 템플릿 라이브러리 없음)
- assembler: 정렬, 중복 제거, 컨텍스트, 렌더, 결합
- builder: 빌드 게이트, shell 래핑, 매니페스트
"""

from .assembler import AssembledCode, assemble_patterns, build_context
from .builder import build, build_with_log, get_preview_html
from .template import compile_template, render_template

__all__ = [
    "render_template",
    "compile_template",
    "assemble_patterns",
    "build_context",
    "AssembledCode",
    "build",
    "build_with_log",
    "get_preview_html",
]
