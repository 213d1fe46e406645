"""
메일 확인 유즈케이스

주기적으로 받은편지함의 읽지 않은 메일을 조회하여 배지를 갱신하고,
이전 확인 이후 새로 도착한 메일을 알립니다.
"""

from typing import List

from ..domain.entities import MailCheckResult, MessageStatus
from ..domain.errors import CredentialsMissing, MailCheckerError, SessionExpired
from ..domain.ports import LoggerPort, NotifierPort
from ..domain.session import AuthSession
from .credential_store import CredentialStore
from .mail_api import MailApiUseCase

UNREAD_FETCH_LIMIT = 50
MAX_NOTIFICATIONS_PER_CHECK = 3
AUTH_ERROR_BADGE = "!"


def badge_text(count: int) -> str:
    """읽지 않은 메일 수를 배지 텍스트로 변환합니다."""
    if count <= 0:
        return ""
    if count > 99:
        return "99+"
    return str(count)


class MailCheckerUseCase:
    """메일 확인 유즈케이스"""

    def __init__(
        self,
        session: AuthSession,
        mail_api: MailApiUseCase,
        credential_store: CredentialStore,
        notifier: NotifierPort,
        logger: LoggerPort,
    ):
        self.session = session
        self.mail_api = mail_api
        self.credential_store = credential_store
        self.notifier = notifier
        self.logger = logger

    def update_badge(self, count: int) -> str:
        text = badge_text(count)
        self.notifier.update_badge(text)
        return text

    async def check_for_new_emails(self) -> MailCheckResult:
        """
        새 메일을 확인합니다.

        오류는 기록만 하고 결과에 담아 반환합니다. 인증 관련 오류일 때만
        배지에 오류 표시를 남깁니다.
        """
        if not self.session.is_logged_in():
            self.notifier.update_badge("")
            return MailCheckResult(skipped=True)

        try:
            return await self._check()
        except (SessionExpired, CredentialsMissing) as e:
            self.logger.error(f"메일 확인 중 인증 오류: {e.message}")
            self.notifier.update_badge(AUTH_ERROR_BADGE)
            return MailCheckResult(badge_text=AUTH_ERROR_BADGE, error=e.user_message)
        except MailCheckerError as e:
            self.logger.error(f"메일 확인 오류: {e.message}")
            return MailCheckResult(error=e.user_message)

    async def _check(self) -> MailCheckResult:
        discovery = await self.mail_api.ensure_inbox_folder()
        if not discovery.account_id:
            return MailCheckResult(skipped=True)

        emails = await self.mail_api.get_emails(
            discovery.account_id,
            folder_id=discovery.inbox_folder_id,
            status=MessageStatus.UNREAD,
            limit=UNREAD_FETCH_LIMIT,
        )

        unread_count = len(emails)
        text = self.update_badge(unread_count)

        last_ids = set(await self.credential_store.get_last_email_ids())
        current_ids: List[str] = [str(e.get("messageId")) for e in emails]
        new_ids = [mid for mid in current_ids if mid not in last_ids]

        notified: List[str] = []
        if new_ids:
            self.logger.info(f"새 메일 {len(new_ids)}건")
            preferences = await self.credential_store.load_preferences()
            if preferences.notifications_enabled:
                if preferences.sound_enabled:
                    self.notifier.play_sound()
                new_emails = [e for e in emails if str(e.get("messageId")) in new_ids]
                for email in new_emails[:MAX_NOTIFICATIONS_PER_CHECK]:
                    self.notifier.notify(email)
                    notified.append(str(email.get("messageId")))

        await self.credential_store.save_last_email_ids(current_ids)

        return MailCheckResult(
            unread_count=unread_count,
            badge_text=text,
            new_message_ids=new_ids,
            notified_message_ids=notified,
        )
