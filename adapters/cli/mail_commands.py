"""
메일 CLI 명령어

받은편지함 조회, 검색, 발송과 메시지 상태 변경 명령어입니다.
"""

from typing import List, Optional

import typer
from rich.panel import Panel

from core.domain.entities import MessageStatus
from core.domain.errors import ApiError
from .common import console, format_timestamp, print_messages, run_async

app = typer.Typer(name="mail", help="메일 조회/관리 명령어")


async def _account(services) -> str:
    discovery = await services.mail_api.ensure_account()
    if not discovery.account_id:
        raise ApiError("메일 계정을 찾을 수 없습니다.")
    return discovery.account_id


@app.command("list")
def list_emails(
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="최대 메일 수 (기본값: 환경설정)"),
    status: MessageStatus = typer.Option(MessageStatus.ALL, "--status", "-s", help="상태 필터"),
    all_folders: bool = typer.Option(False, "--all-folders", help="받은편지함 외 폴더도 포함"),
):
    """받은편지함 메일 목록을 표시합니다."""

    async def _list(factory):
        services = await factory.create_mail_services()
        preferences = await services.credential_store.load_preferences()
        discovery = await services.mail_api.ensure_inbox_folder()
        if not discovery.account_id:
            raise ApiError("메일 계정을 찾을 수 없습니다.")
        return await services.mail_api.get_emails(
            discovery.account_id,
            folder_id=None if all_folders else discovery.inbox_folder_id,
            limit=limit or preferences.max_emails,
            status=status,
        )

    messages = run_async(_list)
    if not messages:
        console.print("[yellow]메일이 없습니다.[/yellow]")
        return
    print_messages(messages, f"메일 목록 ({len(messages)}개)")


@app.command("show")
def show_email(
    message_id: str = typer.Argument(..., help="메시지 ID"),
    folder_id: Optional[str] = typer.Option(None, "--folder", help="폴더 ID (기본값: 받은편지함)"),
):
    """메일 본문을 표시합니다."""

    async def _show(factory):
        services = await factory.create_mail_services()
        discovery = await services.mail_api.ensure_inbox_folder()
        account_id = await _account(services)
        details = await services.mail_api.get_email_details(account_id, message_id)
        folder = folder_id or details.get("folderId") or discovery.inbox_folder_id
        content = await services.mail_api.get_email_content(account_id, folder, message_id)
        return details, content

    details, content = run_async(_show)
    console.print(Panel(
        f"[bold]보낸 사람:[/bold] {details.get('fromAddress') or details.get('sender') or 'Unknown'}\n"
        f"[bold]받은 시각:[/bold] {format_timestamp(details.get('receivedTime'))}\n\n"
        f"{content.get('content', '')}",
        title=details.get("subject") or "(제목 없음)",
    ))


@app.command("search")
def search_emails(
    query: str = typer.Argument(..., help="Zoho 검색 키 (예: subject:보고서)"),
    limit: int = typer.Option(25, "--limit", "-n", help="최대 결과 수"),
):
    """메일을 검색합니다."""

    async def _search(factory):
        services = await factory.create_mail_services()
        account_id = await _account(services)
        return await services.mail_api.search_emails(account_id, query, limit)

    messages = run_async(_search)
    if not messages:
        console.print("[yellow]검색 결과가 없습니다.[/yellow]")
        return
    print_messages(messages, f"검색 결과: {query}")


@app.command("send")
def send_email(
    to: str = typer.Option(..., "--to", help="받는 사람 주소"),
    subject: str = typer.Option(..., "--subject", help="제목"),
    content: str = typer.Option(..., "--content", help="본문"),
):
    """메일을 발송합니다."""

    async def _send(factory):
        services = await factory.create_mail_services()
        account_id = await _account(services)
        return await services.mail_api.send_email(account_id, to, subject, content)

    run_async(_send)
    console.print(f"[green]✓ 메일이 발송되었습니다: {to}[/green]")


def _update(operation: str, message_ids: List[str], done: str, **kwargs) -> None:
    async def _run(factory):
        services = await factory.create_mail_services()
        account_id = await _account(services)
        await getattr(services.mail_api, operation)(account_id, message_ids, **kwargs)
        await services.mail_checker.check_for_new_emails()

    run_async(_run)
    console.print(f"[green]✓ {len(message_ids)}개 메일을 {done}[/green]")


@app.command("read")
def mark_as_read(message_ids: List[str] = typer.Argument(..., help="메시지 ID 목록")):
    """메일을 읽음으로 표시합니다."""
    _update("mark_as_read", message_ids, "읽음으로 표시했습니다.")


@app.command("unread")
def mark_as_unread(message_ids: List[str] = typer.Argument(..., help="메시지 ID 목록")):
    """메일을 읽지 않음으로 표시합니다."""
    _update("mark_as_unread", message_ids, "읽지 않음으로 표시했습니다.")


@app.command("delete")
def delete_emails(
    message_ids: List[str] = typer.Argument(..., help="메시지 ID 목록"),
    force: bool = typer.Option(False, "--force", "-f", help="확인 없이 강제 실행"),
):
    """메일을 휴지통으로 이동합니다."""
    if not force:
        confirm = typer.confirm(f"{len(message_ids)}개 메일을 휴지통으로 이동하시겠습니까?")
        if not confirm:
            console.print("[yellow]취소되었습니다.[/yellow]")
            return
    _update("delete_emails", message_ids, "휴지통으로 이동했습니다.")


@app.command("archive")
def archive_emails(message_ids: List[str] = typer.Argument(..., help="메시지 ID 목록")):
    """메일을 보관합니다."""
    _update("archive_emails", message_ids, "보관했습니다.")


@app.command("spam")
def mark_as_spam(message_ids: List[str] = typer.Argument(..., help="메시지 ID 목록")):
    """메일을 스팸으로 표시합니다."""
    _update("mark_as_spam", message_ids, "스팸으로 표시했습니다.")


@app.command("flag")
def set_flag(
    message_ids: List[str] = typer.Argument(..., help="메시지 ID 목록"),
    flag: int = typer.Option(2, "--flag", min=0, max=3, help="플래그 (0: 없음, 1: 정보, 2: 중요, 3: 후속 조치)"),
):
    """메일에 플래그를 설정합니다."""
    _update("set_flag", message_ids, f"플래그 {flag}로 표시했습니다.", flag_id=flag)
