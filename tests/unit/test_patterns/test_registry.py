"""
test_registry.py - 패턴 레지스트리 테스트

DoD:
- 14개 고정 패턴 로드, 읽기 전용
- 모든 패턴 템플릿이 파싱 가능
- 라이브러리 의존성 그래프: 순환/누락 없음
- 파일 누락/형식 오류 → PatternError
"""

import shutil

import pytest
import yaml

from src.domain.constants import PATTERN_IDS
from src.domain.errors import PatternError
from src.patterns.registry import (
    LIBRARY_DIR,
    PatternRegistry,
    check_library,
    get_all_pattern_ids,
    get_pattern,
    get_patterns_by_category,
    has_pattern,
    validate_patterns,
)
from src.render.template import compile_template


@pytest.fixture
def library_copy(tmp_path):
    """수정 가능한 라이브러리 사본."""
    target = tmp_path / "library"
    shutil.copytree(LIBRARY_DIR, target)
    return target


class TestDefaultRegistry:
    """기본 레지스트리 테스트."""

    def test_all_ids_loaded(self):
        """닫힌 집합 14개, 선언 순서 유지."""
        assert get_all_pattern_ids() == list(PATTERN_IDS)
        assert len(PATTERN_IDS) == 14

    def test_get_pattern(self):
        """id 로 조회."""
        pattern = get_pattern("view-list")

        assert pattern is not None
        assert pattern.category == "view"
        assert "style-base" in pattern.dependencies

    def test_unknown_pattern(self):
        """없는 id → None / False."""
        assert get_pattern("state-manager") is None
        assert has_pattern("state-manager") is False
        assert has_pattern("app-core") is True

    def test_by_category(self):
        """카테고리 필터."""
        ids = [p.id for p in get_patterns_by_category("utility")]

        assert ids == [
            "style-base",
            "app-core",
            "input-text",
            "input-checkbox",
            "input-date",
            "input-select",
        ]

    def test_read_only(self):
        """patterns 매핑은 수정 불가."""
        registry = PatternRegistry()

        with pytest.raises(TypeError):
            registry.patterns["custom"] = None  # type: ignore[index]

    def test_validate_patterns(self):
        """라이브러리에 없는 id 보고."""
        assert validate_patterns(["style-base", "app-shell"]) == {"valid": True, "missing": []}
        assert validate_patterns(["style-base", "chart"]) == {"valid": False, "missing": ["chart"]}

    @pytest.mark.parametrize("pattern_id", PATTERN_IDS)
    def test_templates_compile(self, pattern_id):
        """모든 템플릿 본문이 파싱 가능."""
        pattern = get_pattern(pattern_id)

        for source in (pattern.template.html, pattern.template.css, pattern.template.js):
            if source:
                compile_template(source)

    def test_shell_has_error_banner(self):
        """app-shell 에 런타임 에러 배너 핸들러 포함."""
        html = get_pattern("app-shell").template.html

        assert "window.onerror" in html
        assert "unhandledrejection" in html


class TestCheckLibrary:
    """check_library 테스트."""

    def test_library_consistent(self):
        """기본 라이브러리는 순환/누락 없음, style-base 가 먼저."""
        result = check_library()

        assert result["valid"] is True
        assert result["cycles"] == []
        assert result["missing_dependencies"] == []
        assert result["order"][0] == "style-base"
        assert result["order"].index("input-text") < result["order"].index("view-form")


class TestRegistryLoadErrors:
    """라이브러리 결함 테스트."""

    def test_missing_file(self, library_copy):
        """패턴 파일 누락 → PATTERN_FILE_MISSING."""
        (library_copy / "view-detail.yaml").unlink()

        with pytest.raises(PatternError) as exc_info:
            PatternRegistry(library_copy).get("style-base")

        assert exc_info.value.code == "PATTERN_FILE_MISSING"

    def test_id_mismatch(self, library_copy):
        """파일명과 id 불일치 → PATTERN_INVALID."""
        path = library_copy / "navigation.yaml"
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        data["id"] = "nav-bar"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")

        with pytest.raises(PatternError) as exc_info:
            PatternRegistry(library_copy).ids()

        assert exc_info.value.code == "PATTERN_INVALID"

    def test_unknown_category(self, library_copy):
        """알 수 없는 category → PATTERN_INVALID."""
        path = library_copy / "navigation.yaml"
        data = yaml.safe_load(path.read_text(encoding="utf-8"))
        data["category"] = "widget"
        path.write_text(yaml.safe_dump(data), encoding="utf-8")

        with pytest.raises(PatternError):
            PatternRegistry(library_copy).all()
