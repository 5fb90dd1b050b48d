"""
App layer: API 서버 (FastAPI).

역할:
- LLM 응답 해석, 패턴 매칭, 세션 관리
- HTTP 로 validate / build / export 노출
- ⚠️ 컴파일 로직 없음 (core/render 에 위임)
"""
