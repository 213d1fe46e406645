"""
자격 증명 CLI 명령어

Zoho API 클라이언트 ID, 시크릿, 리프레시 토큰, 리전을 저장하고 조회합니다.
"""

from typing import Optional

import typer
from rich.table import Table

from core.domain.entities import Credentials, Region
from .common import console, mask, run_async

app = typer.Typer(name="credentials", help="자격 증명 관리 명령어")


@app.command("set")
def set_credentials(
    client_id: Optional[str] = typer.Option(None, "--client-id", help="Zoho 클라이언트 ID"),
    client_secret: Optional[str] = typer.Option(None, "--client-secret", help="Zoho 클라이언트 시크릿"),
    refresh_token: Optional[str] = typer.Option(None, "--refresh-token", help="Zoho 리프레시 토큰"),
    region: Optional[Region] = typer.Option(None, "--region", "-r", help="데이터센터 리전"),
):
    """자격 증명을 저장합니다. 지정한 값만 갱신됩니다."""
    if not any([client_id, client_secret, refresh_token, region]):
        console.print("[red]오류: 저장할 값을 하나 이상 지정하세요.[/red]")
        raise typer.Exit(1)

    async def _set(factory):
        store = await factory.create_credential_store()
        await store.save_credentials(Credentials(
            client_id=client_id,
            client_secret=client_secret,
            refresh_token=refresh_token,
            region=region,
        ))
        return await store.load_credentials()

    credentials = run_async(_set)
    console.print("[green]✓ 자격 증명이 저장되었습니다.[/green]")
    if not credentials.is_complete():
        missing = ", ".join(credentials.missing_fields())
        console.print(f"[yellow]아직 누락된 항목: {missing}[/yellow]")


@app.command("show")
def show_credentials():
    """저장된 자격 증명을 표시합니다."""

    async def _show(factory):
        store = await factory.create_credential_store()
        return await store.load_credentials()

    credentials = run_async(_show)

    table = Table(title="Zoho 자격 증명")
    table.add_column("항목", style="cyan")
    table.add_column("값")
    table.add_row("클라이언트 ID", credentials.client_id or "[dim](없음)[/dim]")
    table.add_row("클라이언트 시크릿", mask(credentials.client_secret))
    table.add_row("리프레시 토큰", mask(credentials.refresh_token))
    table.add_row("리전", credentials.region.value if credentials.region else "[dim](기본값)[/dim]")
    console.print(table)

    status = "[green]설정 완료[/green]" if credentials.is_complete() else "[red]미설정[/red]"
    console.print(f"상태: {status}")


@app.command("clear")
def clear_credentials(
    force: bool = typer.Option(False, "--force", "-f", help="확인 없이 강제 실행"),
):
    """자격 증명, 토큰, 환경설정을 모두 삭제합니다."""
    if not force:
        confirm = typer.confirm("저장된 모든 데이터가 삭제됩니다. 계속하시겠습니까?")
        if not confirm:
            console.print("[yellow]취소되었습니다.[/yellow]")
            return

    async def _clear(factory):
        store = await factory.create_credential_store()
        await store.clear_all()

    run_async(_clear)
    console.print("[green]✓ 모든 저장 데이터가 삭제되었습니다.[/green]")
