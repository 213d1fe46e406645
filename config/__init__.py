"""
Config 패키지

Zoho 메일 체커 설정 관리
- 포트: Core에서 필요한 설정 인터페이스 추상화 (core.domain.ports.ConfigPort)
- 어댑터: Pydantic Settings 기반 환경 변수/.env 로딩
- Factory: ENVIRONMENT 값에 따른 설정 클래스 선택
"""
