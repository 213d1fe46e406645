"""
도메인 오류 정의

UI 액션까지 전달되는 오류 분류입니다. 각 오류는 사용자에게 보여줄
조치 안내(user_message)를 함께 가집니다.
"""

from typing import Optional


class MailCheckerError(Exception):
    """메일 체커 오류 기본 클래스"""

    hint: str = ""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def user_message(self) -> str:
        if self.hint:
            return f"{self.message} {self.hint}"
        return self.message


class CredentialsMissing(MailCheckerError):
    """자격 증명이 설정되지 않음"""

    hint = "설정에서 Zoho API 자격 증명을 입력하세요."

    def __init__(self, message: str = "자격 증명이 설정되지 않았습니다."):
        super().__init__(message)


class SessionExpired(MailCheckerError):
    """리프레시 토큰이 거부되어 세션이 만료됨"""

    hint = "다시 로그인하세요."

    def __init__(self, message: str = "세션이 만료되었습니다."):
        super().__init__(message)


class RelayUnavailable(MailCheckerError):
    """로컬 릴레이에 연결할 수 없음"""

    hint = "로컬 릴레이 서버를 먼저 실행하세요 (zmail relay serve)."

    def __init__(self, message: str = "릴레이 서버가 실행 중이 아닙니다."):
        super().__init__(message)


class ApiError(MailCheckerError):
    """Zoho API가 요청을 거부함"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TrashFolderNotFound(MailCheckerError):
    """휴지통 폴더를 찾을 수 없음"""

    hint = "폴더 이름을 확인하세요."

    def __init__(self, message: str = "휴지통 폴더를 찾을 수 없습니다."):
        super().__init__(message)


class UnknownAction(MailCheckerError):
    """알 수 없는 메시지 액션"""

    def __init__(self, action: str):
        super().__init__(f"알 수 없는 액션: {action}")
        self.action = action
