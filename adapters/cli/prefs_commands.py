"""
환경설정 CLI 명령어
"""

from typing import Optional

import typer
from rich.table import Table

from core.domain.entities import Preferences
from .common import console, run_async

app = typer.Typer(name="prefs", help="환경설정 명령어")


@app.command("show")
def show_preferences():
    """환경설정을 표시합니다."""

    async def _show(factory):
        store = await factory.create_credential_store()
        return await store.load_preferences()

    preferences = run_async(_show)

    table = Table(title="환경설정")
    table.add_column("항목", style="cyan")
    table.add_column("값")
    table.add_row("새 메일 알림", "켜짐" if preferences.notifications_enabled else "꺼짐")
    table.add_row("알림 소리", "켜짐" if preferences.sound_enabled else "꺼짐")
    table.add_row("확인 간격 (분)", str(preferences.check_interval))
    table.add_row("최대 표시 메일 수", str(preferences.max_emails))
    console.print(table)


@app.command("set")
def set_preferences(
    notifications: Optional[bool] = typer.Option(None, "--notifications/--no-notifications", help="새 메일 알림"),
    sound: Optional[bool] = typer.Option(None, "--sound/--no-sound", help="알림 소리"),
    check_interval: Optional[int] = typer.Option(None, "--check-interval", help="확인 간격 (분)"),
    max_emails: Optional[int] = typer.Option(None, "--max-emails", help="최대 표시 메일 수"),
):
    """환경설정을 변경합니다. 지정한 값만 갱신됩니다."""
    updates = {
        "notifications_enabled": notifications,
        "sound_enabled": sound,
        "check_interval": check_interval,
        "max_emails": max_emails,
    }
    updates = {k: v for k, v in updates.items() if v is not None}
    if not updates:
        console.print("[red]오류: 변경할 값을 하나 이상 지정하세요.[/red]")
        raise typer.Exit(1)

    async def _set(factory):
        store = await factory.create_credential_store()
        current = await store.load_preferences()
        preferences = Preferences(**{**current.model_dump(), **updates})
        await store.save_preferences(preferences)

    try:
        run_async(_set)
    except ValueError as e:
        console.print(f"[red]오류: {str(e)}[/red]")
        raise typer.Exit(1)
    console.print("[green]✓ 환경설정이 저장되었습니다.[/green]")
