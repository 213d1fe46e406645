"""
메시지 디스패처 유즈케이스

UI 프로세스와 백그라운드 프로세스 사이의 요청/응답 메시지를 처리합니다.
요청은 문자열 action으로 구분되며, 응답은 결과 객체 또는 {"error": 메시지}입니다.
"""

from typing import Any, Awaitable, Callable, Dict

from ..domain.entities import ActionMessage, MessageStatus
from ..domain.errors import ApiError, MailCheckerError, UnknownAction
from ..domain.ports import LoggerPort
from .mail_api import MailApiUseCase
from .mail_checker import MailCheckerUseCase

DEFAULT_LIST_LIMIT = 20


class MessageDispatcher:
    """액션 메시지 디스패처"""

    def __init__(
        self,
        mail_api: MailApiUseCase,
        mail_checker: MailCheckerUseCase,
        logger: LoggerPort,
    ):
        self.mail_api = mail_api
        self.mail_checker = mail_checker
        self.logger = logger
        self._handlers: Dict[str, Callable[[ActionMessage], Awaitable[Dict[str, Any]]]] = {
            "checkEmails": self._check_emails,
            "getEmails": self._get_emails,
            "markAsRead": self._mark_as_read,
            "markAsUnread": self._mark_as_unread,
            "deleteEmails": self._delete_emails,
            "archiveEmails": self._archive_emails,
            "markAsSpam": self._mark_as_spam,
            "updateBadge": self._update_badge,
        }

    @property
    def actions(self):
        return list(self._handlers)

    async def dispatch(self, message: Dict[str, Any]) -> Dict[str, Any]:
        """메시지를 처리하고 응답을 반환합니다. 오류는 {"error": ...}로 변환됩니다."""
        try:
            request = ActionMessage.model_validate(message)
            return await self.handle(request)
        except MailCheckerError as e:
            self.logger.warning(f"액션 처리 실패: {message.get('action')} - {e.message}")
            return {"error": e.user_message}
        except ValueError as e:
            self.logger.warning(f"잘못된 액션 메시지: {e}")
            return {"error": str(e)}

    async def handle(self, request: ActionMessage) -> Dict[str, Any]:
        """
        타입이 지정된 요청을 처리합니다.

        Raises:
            UnknownAction: 등록되지 않은 액션인 경우
        """
        handler = self._handlers.get(request.action)
        if handler is None:
            raise UnknownAction(request.action)
        self.logger.debug(f"액션 처리: {request.action}")
        return await handler(request)

    async def _account_id(self) -> str:
        discovery = await self.mail_api.ensure_account()
        if not discovery.account_id:
            raise ApiError("메일 계정을 찾을 수 없습니다.")
        return discovery.account_id

    async def _check_emails(self, request: ActionMessage) -> Dict[str, Any]:
        # 확인 실패는 배지로만 알리고 응답은 항상 성공
        result = await self.mail_checker.check_for_new_emails()
        return {"success": True, "result": result.model_dump()}

    async def _get_emails(self, request: ActionMessage) -> Dict[str, Any]:
        discovery = await self.mail_api.ensure_inbox_folder()
        if not discovery.account_id:
            return {"emails": []}
        emails = await self.mail_api.get_emails(
            discovery.account_id,
            folder_id=discovery.inbox_folder_id,
            limit=request.limit or DEFAULT_LIST_LIMIT,
            status=request.status or MessageStatus.ALL,
        )
        return {"emails": emails}

    async def _after_mutation(self) -> Dict[str, Any]:
        await self.mail_checker.check_for_new_emails()
        return {"success": True}

    async def _mark_as_read(self, request: ActionMessage) -> Dict[str, Any]:
        await self.mail_api.mark_as_read(await self._account_id(), request.message_ids)
        return await self._after_mutation()

    async def _mark_as_unread(self, request: ActionMessage) -> Dict[str, Any]:
        await self.mail_api.mark_as_unread(await self._account_id(), request.message_ids)
        return await self._after_mutation()

    async def _delete_emails(self, request: ActionMessage) -> Dict[str, Any]:
        await self.mail_api.delete_emails(await self._account_id(), request.message_ids)
        return await self._after_mutation()

    async def _archive_emails(self, request: ActionMessage) -> Dict[str, Any]:
        await self.mail_api.archive_emails(await self._account_id(), request.message_ids)
        return await self._after_mutation()

    async def _mark_as_spam(self, request: ActionMessage) -> Dict[str, Any]:
        await self.mail_api.mark_as_spam(await self._account_id(), request.message_ids)
        return await self._after_mutation()

    async def _update_badge(self, request: ActionMessage) -> Dict[str, Any]:
        self.mail_checker.update_badge(request.count or 0)
        return {"success": True}
