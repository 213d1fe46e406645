"""
CLI 공통 도우미

비동기 명령 실행, 도메인 오류 출력, 메시지 표 출력을 모아 둡니다.
"""

import asyncio
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, TypeVar

import typer
from rich.console import Console
from rich.table import Table

from core.domain.errors import MailCheckerError
from adapters.factory import AdapterFactory, get_adapter_factory

console = Console()

T = TypeVar("T")


def run_async(command: Callable[[AdapterFactory], Awaitable[T]]) -> T:
    """
    전역 팩토리로 비동기 명령을 실행합니다.

    도메인 오류는 사용자 안내 메시지로 출력한 뒤 종료 코드 1로 끝냅니다.
    """

    async def _run():
        factory = get_adapter_factory()
        try:
            return await command(factory)
        finally:
            await factory.close()

    try:
        return asyncio.run(_run())
    except MailCheckerError as e:
        console.print(f"[red]오류: {e.user_message}[/red]")
        raise typer.Exit(1)


def mask(value: Optional[str], visible: int = 4) -> str:
    """시크릿 값을 앞 몇 글자만 남기고 가립니다."""
    if not value:
        return "[dim](없음)[/dim]"
    if len(value) <= visible:
        return "*" * len(value)
    return value[:visible] + "*" * 8


def format_timestamp(value: Any) -> str:
    """Zoho의 epoch ms 문자열을 사람이 읽을 수 있는 시각으로 변환합니다."""
    try:
        return datetime.fromtimestamp(int(value) / 1000).strftime("%Y-%m-%d %H:%M")
    except (TypeError, ValueError):
        return ""


def print_messages(messages: List[Dict[str, Any]], title: str) -> None:
    table = Table(title=title)
    table.add_column("", width=1)
    table.add_column("ID", style="cyan")
    table.add_column("보낸 사람", style="green")
    table.add_column("제목")
    table.add_column("받은 시각", style="dim")

    for message in messages:
        table.add_row(
            "●" if message.get("status") == "0" else "",
            str(message.get("messageId", "")),
            message.get("fromAddress") or message.get("sender") or "Unknown",
            message.get("subject") or "(제목 없음)",
            format_timestamp(message.get("receivedTime")),
        )

    console.print(table)
