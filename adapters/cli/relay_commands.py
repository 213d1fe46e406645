"""
릴레이 서버 CLI 명령어
"""

from typing import Optional

import typer

from .common import console

app = typer.Typer(name="relay", help="로컬 릴레이 서버 명령어")


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="바인드 주소 (기본값: 127.0.0.1)"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="포트 (기본값: 3847)"),
):
    """브라우저 확장 프로그램용 로컬 릴레이를 실행합니다."""
    import relay_server

    console.print("[blue]Zoho Mail 릴레이를 시작합니다. 종료하려면 Ctrl+C를 누르세요.[/blue]")
    relay_server.run(host=host, port=port)
