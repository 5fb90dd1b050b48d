"""
Data schemas for the compiler.

규칙:
- JSON 키는 camelCase (저장/교환 포맷), Python 속성은 snake_case
- to_dict() / from_dict() 는 기본값 치환 없이 그대로 왕복 (정규화는 normalize 서비스 담당)
- from_dict() 는 문자열 필드의 비문자열 값을 "" 로 읽음 (검증기는 str 만 받음)
- Pattern 계열은 frozen: 라이브러리 로드 후 변경 불가
"""

from dataclasses import dataclass, field
from typing import Any


def _str(value: Any, default: str = "") -> str:
    """문자열 필드 읽기: 누락은 default, 비문자열은 빈 문자열."""
    if value is None:
        return default
    return value if isinstance(value, str) else ""


def _list(value: Any) -> list[Any]:
    return value if isinstance(value, list) else []


# =============================================================================
# Specification
# =============================================================================

@dataclass
class Property:
    """엔티티 속성."""
    name: str
    type: str = "string"  # string, number, boolean, date, enum
    required: bool = False
    options: list[str] | None = None  # enum 타입에서만 의미 있음

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "required": self.required,
        }
        if self.options is not None:
            data["options"] = list(self.options)
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Property":
        options = data.get("options")
        return cls(
            name=_str(data.get("name")),
            type=_str(data.get("type"), "string"),
            required=bool(data.get("required", False)),
            options=[str(o) for o in options] if isinstance(options, list) else None,
        )


@dataclass
class Relationship:
    """엔티티 간 관계."""
    target_entity: str
    type: str = "one-to-many"

    def to_dict(self) -> dict[str, Any]:
        return {
            "targetEntity": self.target_entity,
            "type": self.type,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Relationship":
        return cls(
            target_entity=_str(data.get("targetEntity")),
            type=_str(data.get("type"), "one-to-many"),
        )


@dataclass
class Entity:
    """데이터 엔티티."""
    id: str
    name: str
    properties: list[Property] = field(default_factory=list)
    relationships: list[Relationship] = field(default_factory=list)

    def unique_properties(self) -> list[Property]:
        """
        이름 중복 제거된 속성 목록.

        같은 이름이 두 번 이상 나오면 첫 번째만 유지 (DUPLICATE_PROPERTY 경고 대상).
        """
        seen: set[str] = set()
        unique = []
        for prop in self.properties:
            if prop.name in seen:
                continue
            seen.add(prop.name)
            unique.append(prop)
        return unique

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "properties": [p.to_dict() for p in self.properties],
            "relationships": [r.to_dict() for r in self.relationships],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Entity":
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            properties=[Property.from_dict(p) for p in _list(data.get("properties"))],
            relationships=[
                Relationship.from_dict(r) for r in _list(data.get("relationships"))
            ],
        )


@dataclass
class View:
    """화면 정의. entity는 Entity.id 참조 (빈 문자열 허용)."""
    id: str
    name: str
    type: str = "list"  # list, form, detail, dashboard
    entity: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "type": self.type,
            "entity": self.entity,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "View":
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            type=_str(data.get("type"), "list"),
            entity=_str(data.get("entity")),
        )


@dataclass
class Action:
    """사용자 액션."""
    id: str
    name: str
    trigger: str = "button"  # button, form_submit, auto
    logic: str = ""  # 자유 텍스트 설명

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "trigger": self.trigger,
            "logic": self.logic,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Action":
        return cls(
            id=_str(data.get("id")),
            name=_str(data.get("name")),
            trigger=_str(data.get("trigger")),
            logic=_str(data.get("logic")),
        )


@dataclass
class SpecMeta:
    """앱 메타데이터."""
    name: str
    description: str = ""
    created_at: str = ""  # ISO 8601

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "createdAt": self.created_at,
        }


@dataclass
class Specification:
    """
    앱 명세 (루트 aggregate).

    세션이 소유하며, 정규화 단계에서만 교체됨.
    Validator / Router / Assembler 는 읽기 전용으로 사용.
    """
    version: str
    meta: SpecMeta
    entities: list[Entity] = field(default_factory=list)
    views: list[View] = field(default_factory=list)
    actions: list[Action] = field(default_factory=list)
    patterns: list[str] = field(default_factory=list)  # 참고용 힌트 (Router가 재계산)

    def find_entity(self, entity_id: str | None) -> Entity | None:
        """id로 엔티티 조회 (없으면 None)."""
        if not entity_id:
            return None
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def to_dict(self) -> dict[str, Any]:
        """JSON 직렬화용."""
        return {
            "version": self.version,
            "meta": self.meta.to_dict(),
            "entities": [e.to_dict() for e in self.entities],
            "views": [v.to_dict() for v in self.views],
            "actions": [a.to_dict() for a in self.actions],
            "patterns": list(self.patterns),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Specification":
        """
        저장된 JSON → Specification.

        기본값 치환 없음: 이름이 비어 있으면 비어 있는 그대로 (Validator가 판정).
        LLM 출력처럼 형태가 불확실한 입력은 normalize_spec() 사용.
        """
        meta = data.get("meta") or {}
        return cls(
            version=_str(data.get("version")),
            meta=SpecMeta(
                name=_str(meta.get("name")),
                description=_str(meta.get("description")),
                created_at=_str(meta.get("createdAt")),
            ),
            entities=[Entity.from_dict(e) for e in _list(data.get("entities"))],
            views=[View.from_dict(v) for v in _list(data.get("views"))],
            actions=[Action.from_dict(a) for a in _list(data.get("actions"))],
            patterns=[p for p in _list(data.get("patterns")) if isinstance(p, str)],
        )


# =============================================================================
# Validation
# =============================================================================

@dataclass
class ValidationIssue:
    """검증 에러 또는 경고 한 건."""
    code: str
    message: str
    path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.path is not None:
            data["path"] = self.path
        return data


@dataclass
class ValidationResult:
    """
    검증 결과.

    valid는 errors가 하나도 없을 때만 True. warnings는 빌드를 막지 않음.
    """
    valid: bool
    errors: list[ValidationIssue] = field(default_factory=list)
    warnings: list[ValidationIssue] = field(default_factory=list)
    completeness: float = 0.0

    @property
    def error_codes(self) -> list[str]:
        return [e.code for e in self.errors]

    @property
    def warning_codes(self) -> list[str]:
        return [w.code for w in self.warnings]

    def to_dict(self) -> dict[str, Any]:
        return {
            "valid": self.valid,
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "completeness": self.completeness,
        }


# =============================================================================
# Pattern Schemas (라이브러리 정적 데이터)
# =============================================================================

@dataclass(frozen=True)
class PatternInput:
    """패턴이 기대하는 입력 필드 선언."""
    name: str
    type: str
    required: bool = False
    default: Any = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "name": self.name,
            "type": self.type,
            "required": self.required,
        }
        if self.default is not None:
            data["default"] = self.default
        return data


@dataclass(frozen=True)
class PatternTemplate:
    """HTML/CSS/JS 템플릿 본문 (비어 있을 수 있음)."""
    html: str = ""
    css: str = ""
    js: str = ""


@dataclass(frozen=True)
class Pattern:
    """
    패턴 descriptor.

    프로세스 전역 정적 데이터: 한 번 로드되고 변경되지 않음.
    """
    id: str
    name: str
    category: str  # layout, entity, view, action, utility
    template: PatternTemplate
    description: str = ""
    inputs: tuple[PatternInput, ...] = ()
    dependencies: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "description": self.description,
            "category": self.category,
            "inputs": [i.to_dict() for i in self.inputs],
            "dependencies": list(self.dependencies),
        }


@dataclass
class PatternReference:
    """
    패턴 인스턴스 하나를 렌더하라는 지시.

    Router가 빌드마다 생성. 저장되지 않음.
    """
    pattern_id: str
    target_id: str
    config: dict[str, Any] = field(default_factory=dict)

    @property
    def key(self) -> tuple[str, str]:
        """중복 판정 키: (patternId, targetId)."""
        return (self.pattern_id, self.target_id)

    def to_dict(self) -> dict[str, Any]:
        return {
            "patternId": self.pattern_id,
            "targetId": self.target_id,
            "config": self.config,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PatternReference":
        return cls(
            pattern_id=_str(data.get("patternId")),
            target_id=_str(data.get("targetId")),
            config=dict(data.get("config") or {}),
        )


# =============================================================================
# Build Schemas
# =============================================================================

@dataclass
class BuildError:
    """빌드 에러."""
    code: str
    message: str
    pattern_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"code": self.code, "message": self.message}
        if self.pattern_id is not None:
            data["patternId"] = self.pattern_id
        return data


@dataclass
class BuildManifest:
    """빌드 매니페스트."""
    spec_id: str
    built_at: str  # ISO 8601
    patterns_used: list[str] = field(default_factory=list)
    deltas_generated: list[str] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "specId": self.spec_id,
            "builtAt": self.built_at,
            "patternsUsed": list(self.patterns_used),
            "deltasGenerated": list(self.deltas_generated),
        }


@dataclass
class BuildResult:
    """
    빌드 결과.

    success는 구조적 실패(shell 미해결 등)가 없을 때 True.
    템플릿 렌더 에러만으로는 False가 되지 않음 (warnings에 기록).
    """
    success: bool
    html: str = ""
    css: str = ""
    javascript: str = ""
    manifest: BuildManifest | None = None
    errors: list[BuildError] | None = None
    warnings: list[str] = field(default_factory=list)

    @property
    def error_messages(self) -> list[str]:
        return [e.message for e in self.errors or []]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "success": self.success,
            "html": self.html,
            "css": self.css,
            "javascript": self.javascript,
            "manifest": self.manifest.to_dict() if self.manifest else None,
            "warnings": list(self.warnings),
        }
        if self.errors:
            data["errors"] = [e.to_dict() for e in self.errors]
        return data


@dataclass
class BuildWarning:
    """
    빌드 경고 로그.

    필수 컨텍스트: level, code, pattern_id, target_id, message
    """
    level: str = "warning"
    code: str = ""
    pattern_id: str = ""
    target_id: str = ""
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "level": self.level,
            "code": self.code,
            "pattern_id": self.pattern_id,
            "target_id": self.target_id,
            "message": self.message,
        }


@dataclass
class BuildLog:
    """
    빌드 실행 로그.

    빌드 단위 결과 및 메타데이터.
    """
    build_id: str
    spec_id: str
    started_at: str  # ISO 8601
    finished_at: str | None = None
    result: str = "pending"  # pending, success, failed

    warnings: list[BuildWarning] = field(default_factory=list)
    patterns_rendered: list[str] = field(default_factory=list)

    # 최종 문서 해시 (결정성 추적용)
    artifact_hash: str | None = None

    # Error (if failed)
    error_code: str | None = None
    error_context: dict[str, Any] | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "build_id": self.build_id,
            "spec_id": self.spec_id,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "warnings": [w.to_dict() for w in self.warnings],
            "patterns_rendered": list(self.patterns_rendered),
            "artifact_hash": self.artifact_hash,
            "error_code": self.error_code,
            "error_context": self.error_context,
        }


# =============================================================================
# LLM Output Schemas (app/services/normalize.py에서 사용)
# =============================================================================

@dataclass
class NormalizationResult:
    """스펙 텍스트 정규화 결과."""
    success: bool
    spec: Specification | None = None
    error_message: str | None = None


@dataclass
class AssistantTurn:
    """
    LLM 한 턴의 해석 결과.

    type:
    - question: 명확화 질문 (스펙 변경 없음)
    - spec_update: 스펙 교체
    - spec_complete: 스펙 교체 + 완성 신호
    """
    type: str
    question: str | None = None
    spec: Specification | None = None
    confidence: float = 0.5
    error_message: str | None = None  # 파싱 실패 시에만

    @property
    def is_question(self) -> bool:
        return self.type == "question"

    def to_dict(self) -> dict[str, Any]:
        return {
            "type": self.type,
            "question": self.question,
            "spec": self.spec.to_dict() if self.spec else None,
            "confidence": self.confidence,
            "error_message": self.error_message,
        }
