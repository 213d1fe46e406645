"""
콘솔 알림 어댑터

NotifierPort를 rich 콘솔 출력으로 구현합니다.
배지 텍스트와 새 메일 알림을 터미널에 표시합니다.
"""

from typing import Any, Dict, Optional

from rich.console import Console
from rich.panel import Panel

from core.domain.ports import NotifierPort


class ConsoleNotifierAdapter(NotifierPort):
    """rich 콘솔 알림 어댑터"""

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()
        self.badge = ""

    def update_badge(self, text: str) -> None:
        if text == self.badge:
            return
        self.badge = text
        if text == "!":
            self.console.print("[bold red]● 인증 오류 - 다시 로그인하세요[/bold red]")
        elif text:
            self.console.print(f"[bold]📬 읽지 않은 메일: {text}[/bold]")
        else:
            self.console.print("[dim]읽지 않은 메일 없음[/dim]")

    def notify(self, message: Dict[str, Any]) -> None:
        sender = message.get("fromAddress") or message.get("sender") or "새 메일"
        subject = message.get("subject") or "(제목 없음)"
        self.console.print(Panel.fit(
            f"[bold]{subject}[/bold]\n{sender}",
            title="✉️ Zoho Mail",
        ))

    def play_sound(self) -> None:
        self.console.bell()
