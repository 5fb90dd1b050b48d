"""
test_builder.py - 빌드 entry point 테스트

DoD:
- Todo 시나리오: success, 결과 HTML 에 "Tasks" 와 entity id "task"
- 같은 스펙 두 번 빌드 → 바이트 동일
- 검증 실패 스펙 → success=False + 검증 에러 (렌더 없음)
- shell 해석 실패만 구조적 실패
- 빌드 로그: artifact_hash, patterns_rendered
"""

from src.app.services.router import match_patterns
from src.core.hashing import compute_artifact_hash
from src.domain.constants import SHELL_PATTERN_ID
from src.domain.schemas import PatternReference
from src.patterns.registry import PatternRegistry
from src.render.builder import build, build_with_log, get_preview_html


class _NoShellRegistry(PatternRegistry):
    """app-shell 을 찾지 못하는 레지스트리."""

    def get(self, pattern_id):
        if pattern_id == SHELL_PATTERN_ID:
            return None
        return super().get(pattern_id)


class TestBuild:
    """build 함수 테스트."""

    def test_todo_scenario(self, todo_spec):
        """Todo 스펙 → 완전한 문서."""
        result = build(todo_spec, match_patterns(todo_spec))

        assert result.success is True
        assert result.errors is None
        assert result.html.startswith("<!DOCTYPE html>")
        assert "<title>Todo</title>" in result.html
        assert "Tasks" in result.html
        assert 'data-entity="task"' in result.html
        assert "window.onerror" in result.html

    def test_manifest(self, todo_spec):
        """매니페스트: specId, patternsUsed (shell 포함), deltasGenerated 빈 목록."""
        result = build(todo_spec, match_patterns(todo_spec))

        manifest = result.manifest.to_dict()
        assert manifest["specId"].startswith("SPEC-todo-")
        assert SHELL_PATTERN_ID in manifest["patternsUsed"]
        assert manifest["deltasGenerated"] == []
        assert manifest["builtAt"]

    def test_deterministic(self, full_spec):
        """같은 입력 → html/css/javascript 바이트 동일."""
        first = build(full_spec, match_patterns(full_spec))
        second = build(full_spec, match_patterns(full_spec))

        assert first.html == second.html
        assert first.css == second.css
        assert first.javascript == second.javascript

    def test_fragments_embedded(self, todo_spec):
        """css/javascript 는 문서 안에 그대로 포함."""
        result = build(todo_spec, match_patterns(todo_spec))

        assert result.css and result.css in result.html
        assert result.javascript and result.javascript in result.html

    def test_invalid_spec_refused(self, invalid_spec):
        """검증 실패 → 렌더 없이 실패."""
        result = build(invalid_spec, [PatternReference("style-base", "global")])

        assert result.success is False
        assert result.html == ""
        assert [e.code for e in result.errors] == ["NO_PROPERTIES"]

    def test_none_spec(self):
        """None → NO_SPEC."""
        result = build(None, [])

        assert result.success is False
        assert result.errors[0].code == "NO_SPEC"

    def test_unknown_pattern_does_not_fail(self, todo_spec):
        """없는 패턴은 경고만."""
        refs = match_patterns(todo_spec) + [PatternReference("chart", "c1")]

        result = build(todo_spec, refs)

        assert result.success is True
        assert result.warnings == ["Pattern not found: chart"]

    def test_shell_missing(self, todo_spec):
        """shell 해석 실패 → SHELL_NOT_FOUND."""
        result = build(todo_spec, match_patterns(todo_spec), registry=_NoShellRegistry())

        assert result.success is False
        assert result.errors[0].code == "SHELL_NOT_FOUND"
        assert result.errors[0].message == "App shell pattern not found"

    def test_html_escaped_app_name(self, todo_spec):
        """앱 이름은 title 에 escape 되어 들어감."""
        todo_spec.meta.name = "<Tasks & Co>"

        result = build(todo_spec, match_patterns(todo_spec))

        assert "<title>&lt;Tasks &amp; Co&gt;</title>" in result.html


class TestBuildWithLog:
    """build_with_log 테스트."""

    def test_success_log(self, todo_spec):
        """성공 로그: artifact_hash 와 렌더된 패턴."""
        result, build_log = build_with_log(todo_spec, match_patterns(todo_spec))

        assert build_log.result == "success"
        assert build_log.artifact_hash == compute_artifact_hash(result.html)
        assert build_log.patterns_rendered == result.manifest.patterns_used
        assert build_log.spec_id == result.manifest.spec_id

    def test_failure_log(self, invalid_spec):
        """실패 로그: 첫 에러 코드."""
        _, build_log = build_with_log(invalid_spec, [])

        assert build_log.result == "failed"
        assert build_log.error_code == "NO_PROPERTIES"


class TestPreviewHtml:
    """get_preview_html 테스트."""

    def test_wraps_fragments(self):
        """조각을 최소 문서로 감쌈."""
        html = get_preview_html("<p>x</p>", "p { color: red; }", "console.log(1);")

        assert html.startswith("<!DOCTYPE html>")
        assert '<div id="app"><p>x</p></div>' in html
        assert "<style>p { color: red; }</style>" in html
        assert "<script>console.log(1);</script>" in html
