"""
Zoho Mail 체커

메인 진입점 파일입니다.
"""

import asyncio
import json
from typing import Optional

import typer

from adapters.cli.auth_commands import auth_app
from adapters.cli.common import console, run_async
from adapters.cli.credentials_commands import app as credentials_app
from adapters.cli.mail_commands import app as mail_app
from adapters.cli.prefs_commands import app as prefs_app
from adapters.cli.relay_commands import app as relay_app
from adapters.db.database import DatabaseAdapter
from adapters.external.encryption_service import EncryptionServiceAdapter
from adapters.logger import create_logger
from config.adapters import get_config

__version__ = "1.0.0"

# 메인 CLI 앱
app = typer.Typer(
    name="zmail",
    help="Zoho Mail 체커",
    no_args_is_help=True,
)

# 서브 명령어 추가
app.add_typer(credentials_app, name="credentials")
app.add_typer(auth_app, name="auth")
app.add_typer(mail_app, name="mail")
app.add_typer(prefs_app, name="prefs")
app.add_typer(relay_app, name="relay")


@app.command("watch")
def watch(
    interval: Optional[float] = typer.Option(None, "--interval", "-i", help="확인 간격 (분, 기본값: 환경설정)"),
    once: bool = typer.Option(False, "--once", help="한 번만 확인하고 종료"),
):
    """받은편지함을 주기적으로 확인하고 새 메일을 알립니다."""

    async def _watch(factory):
        services = await factory.create_mail_services()
        if once:
            return await services.mail_checker.check_for_new_emails()

        preferences = await services.credential_store.load_preferences()
        scheduler = factory.create_poll_scheduler(
            services.mail_checker, interval or preferences.check_interval
        )
        await scheduler.run_forever()

    try:
        result = run_async(_watch)
    except KeyboardInterrupt:
        console.print("[yellow]메일 확인을 종료합니다.[/yellow]")
        return

    if result is not None:
        if result.skipped:
            console.print("[yellow]로그인되어 있지 않습니다. 'zmail auth login'을 먼저 실행하세요.[/yellow]")
        elif result.error:
            console.print(f"[red]오류: {result.error}[/red]")
            raise typer.Exit(1)
        else:
            console.print(
                f"읽지 않은 메일: {result.unread_count}개, 새 메일: {len(result.new_message_ids)}개"
            )


@app.command("action")
def dispatch_action(
    message: str = typer.Argument(..., help='액션 메시지 JSON (예: {"action": "getEmails", "limit": 5})'),
):
    """UI 액션 메시지를 처리하고 응답을 JSON으로 출력합니다."""
    try:
        payload = json.loads(message)
    except ValueError as e:
        console.print(f"[red]오류: 올바른 JSON이 아닙니다 ({str(e)})[/red]")
        raise typer.Exit(1)

    async def _dispatch(factory):
        services = await factory.create_mail_services()
        return await services.dispatcher.dispatch(payload)

    response = run_async(_dispatch)
    console.print_json(json.dumps(response, ensure_ascii=False, default=str))
    if "error" in response:
        raise typer.Exit(1)


@app.command("init-db")
def init_database(
    drop_existing: bool = typer.Option(False, "--drop", help="기존 테이블을 삭제하고 재생성"),
):
    """데이터베이스를 초기화합니다."""

    async def _init_db():
        try:
            config = get_config()
            console.print(f"[blue]환경: {config.get_environment()}[/blue]")
            console.print(f"[blue]데이터베이스: {config.get_database_url()}[/blue]")

            db_adapter = DatabaseAdapter(config)
            await db_adapter.initialize()

            if drop_existing:
                console.print("[yellow]기존 테이블을 삭제하는 중...[/yellow]")
                await db_adapter.drop_tables()

            console.print("[blue]데이터베이스 테이블을 생성하는 중...[/blue]")
            await db_adapter.create_tables()

            console.print("[green]✓ 데이터베이스가 성공적으로 초기화되었습니다![/green]")

            await db_adapter.close()

        except Exception as e:
            console.print(f"[red]오류: {str(e)}[/red]")
            raise typer.Exit(1)

    asyncio.run(_init_db())


@app.command("version")
def show_version():
    """버전 정보를 표시합니다."""
    console.print("[bold]Zoho Mail 체커[/bold]")
    console.print(f"버전: {__version__}")


@app.command("config")
def show_config():
    """현재 설정을 표시합니다."""
    try:
        config = get_config()

        console.print("[bold]현재 설정[/bold]")
        console.print(f"환경: {config.get_environment()}")
        console.print(f"디버그 모드: {config.is_debug()}")
        console.print(f"저장소: {config.get_storage_backend()}")
        console.print(f"데이터베이스 URL: {config.get_database_url()}")
        console.print(f"릴레이: {config.get_relay_url()}")
        console.print(f"토큰 교환 경로: {config.get_token_exchange_mode()}")
        console.print(f"기본 리전: {config.get_default_region()}")
        console.print(f"HTTP 타임아웃(초): {config.get_http_timeout()}")
        console.print(f"토큰 갱신 여유(초): {config.get_token_refresh_skew_seconds()}")
        console.print(f"기본 확인 간격(분): {config.get_default_check_interval_minutes()}")
        console.print(f"로그 레벨: {config.get_log_level()}")

        encryption = EncryptionServiceAdapter(config.get_encryption_key(), create_logger("config_cli"))
        key_status = "[green]정상[/green]" if encryption.verify_key() else "[red]오류[/red]"
        console.print(f"암호화 키: {key_status}")

    except Exception as e:
        console.print(f"[red]오류: {str(e)}[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
