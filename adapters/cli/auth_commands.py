"""
인증 관련 CLI 명령어

리프레시 토큰 기반 로그인/로그아웃과 인증 코드 플로우를 처리하는 CLI 명령어들입니다.
"""

from typing import Optional

import typer
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from core.domain.entities import Region
from core.usecases.token_manager import DEFAULT_SCOPE
from .common import console, run_async

auth_app = typer.Typer(help="인증 관련 명령어")


@auth_app.command("login")
def login(
    region: Optional[Region] = typer.Option(
        None, "--region", "-r", help="자격 증명에 리전이 없을 때 사용할 리전"
    ),
):
    """저장된 자격 증명으로 로그인합니다."""

    async def _login(factory):
        services = await factory.create_mail_services()
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            console=console,
        ) as progress:
            task = progress.add_task("토큰 교환 중...", total=None)
            token = await services.token_manager.login(region)
            progress.update(task, description="계정 확인 중...")
            discovery = await services.mail_api.ensure_inbox_folder()
            progress.update(task, description="완료!")
        return services.session, token, discovery

    session, token, discovery = run_async(_login)
    console.print(Panel.fit(
        f"[bold green]로그인 완료![/bold green]\n\n"
        f"[bold]리전:[/bold] {session.region.value}\n"
        f"[bold]계정:[/bold] {discovery.user_email or '(확인되지 않음)'}\n"
        f"[bold]토큰 유효 시간:[/bold] {token.expires_in_seconds()}초",
        title="✅ 인증 성공",
    ))


@auth_app.command("logout")
def logout():
    """로그아웃합니다. 자격 증명은 유지됩니다."""

    async def _logout(factory):
        services = await factory.create_mail_services()
        await services.token_manager.logout()
        await services.token_manager.drain_background_tasks()

    run_async(_logout)
    console.print("[green]✓ 로그아웃되었습니다.[/green]")


@auth_app.command("refresh")
def refresh():
    """액세스 토큰을 즉시 갱신합니다."""

    async def _refresh(factory):
        services = await factory.create_mail_services()
        await services.token_manager.refresh()
        return services.session.token

    token = run_async(_refresh)
    console.print(f"[green]✓ 토큰이 갱신되었습니다 (유효 시간: {token.expires_in_seconds()}초).[/green]")


@auth_app.command("status")
def status():
    """현재 인증 상태를 표시합니다."""

    async def _status(factory):
        services = await factory.create_mail_services()
        return services.session, factory.get_config()

    session, config = run_async(_status)

    table = Table(title="인증 상태")
    table.add_column("항목", style="cyan")
    table.add_column("값")
    table.add_row("자격 증명", "설정됨" if session.credentials.is_complete() else "[red]미설정[/red]")
    table.add_row("로그인", "[green]예[/green]" if session.is_logged_in() else "[red]아니오[/red]")
    table.add_row("리전", session.region.value)

    expires_in = session.token.expires_in_seconds()
    table.add_row("토큰 유효 시간", f"{expires_in}초" if expires_in is not None else "-")
    table.add_row("계정", session.discovery.user_email or "-")
    table.add_row("토큰 교환 경로", config.get_token_exchange_mode())
    table.add_row("릴레이", config.get_relay_url())
    console.print(table)


@auth_app.command("authorize-url")
def authorize_url(
    redirect_uri: str = typer.Option(..., "--redirect-uri", help="Zoho 콘솔에 등록한 리다이렉트 URI"),
    scope: str = typer.Option(DEFAULT_SCOPE, "--scope", "-s", help="요청할 권한 범위"),
    state: Optional[str] = typer.Option(None, "--state", help="State 값"),
):
    """인증 코드 발급용 URL을 생성합니다."""

    async def _authorize_url(factory):
        services = await factory.create_mail_services()
        return services.token_manager.get_authorization_url(redirect_uri, scope, state)

    url = run_async(_authorize_url)
    console.print(Panel.fit(
        f"[bold]다음 URL로 이동하여 인증을 완료하세요:[/bold]\n"
        f"[link]{url}[/link]\n\n"
        f"[yellow]인증 완료 후 받은 코드로 다음 명령어를 실행하세요:[/yellow]\n"
        f"[cyan]zmail auth exchange-code --code <CODE> --redirect-uri {redirect_uri}[/cyan]",
        title="🔐 Authorization Code",
    ))


@auth_app.command("exchange-code")
def exchange_code(
    code: str = typer.Option(..., "--code", "-c", help="인증 코드"),
    redirect_uri: Optional[str] = typer.Option(None, "--redirect-uri", help="인증 URL에 사용한 리다이렉트 URI"),
):
    """인증 코드를 토큰으로 교환하고 리프레시 토큰을 저장합니다."""

    async def _exchange_code(factory):
        services = await factory.create_mail_services()
        token = await services.token_manager.exchange_code(code, redirect_uri)
        return services.session, token

    session, token = run_async(_exchange_code)
    saved = "저장됨" if session.credentials.refresh_token else "[yellow]발급되지 않음[/yellow]"
    console.print(Panel.fit(
        f"[bold green]인증 완료![/bold green]\n\n"
        f"[bold]리프레시 토큰:[/bold] {saved}\n"
        f"[bold]토큰 유효 시간:[/bold] {token.expires_in_seconds()}초",
        title="✅ 인증 성공",
    ))
