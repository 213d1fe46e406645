"""
Domain 패키지

도메인 엔티티, 값 객체, 비즈니스 규칙을 정의합니다.
외부 의존성 없이 순수한 비즈니스 로직만 포함합니다.

주요 구성:
- Credentials: 사용자 OAuth 자격 증명
- TokenState: 액세스 토큰 상태
- AuthSession: 자격 증명과 토큰 상태를 소유하는 세션
- regions: 리전별 엔드포인트 매핑
- errors: 사용자에게 전달되는 오류 분류
"""
