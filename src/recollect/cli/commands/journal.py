"""Session journal inspection commands."""

import asyncio
from datetime import UTC, datetime
from pathlib import Path
from typing import Annotated

import typer

from recollect.cli.console import console, create_table, dim, error, warning


def _resolve_db_path(ctx: typer.Context, db_path: Path | None) -> Path:
    if db_path is not None:
        return db_path.expanduser()

    from recollect.config import ConfigError, load_config

    config_path = (ctx.obj or {}).get("config_path")
    try:
        return load_config(config_path).db_path.expanduser()
    except (ConfigError, FileNotFoundError) as e:
        error(str(e))
        raise typer.Exit(1) from None


def _format_timestamp(timestamp_ms: int) -> str:
    if not timestamp_ms:
        return "-"
    return datetime.fromtimestamp(timestamp_ms / 1000, UTC).strftime(
        "%Y-%m-%d %H:%M:%S"
    )


def _truncate(text: str, max_len: int = 80) -> str:
    if len(text) <= max_len:
        return text
    return text[:max_len] + "..."


def register(app: typer.Typer) -> None:
    """Register the journal command group."""
    journal_app = typer.Typer(help="Inspect per-session capture journals")
    app.add_typer(journal_app, name="journal")

    db_option = typer.Option(
        "--db-path", help="Memory root (defaults to the configured db_path)"
    )

    @journal_app.command("list")
    def list_journals(
        ctx: typer.Context,
        db_path: Annotated[Path | None, db_option] = None,
    ) -> None:
        """List sessions that have a journal."""
        from recollect.memory.journal import SessionJournal

        journal = SessionJournal(_resolve_db_path(ctx, db_path))
        keys = journal.list_sessions()
        if not keys:
            dim(f"No journals in {journal.sessions_dir}")
            return

        async def load_all() -> list[tuple[str, int, int, int]]:
            rows = []
            for key in keys:
                data = await journal.get(key)
                rows.append(
                    (
                        key,
                        len(data.clean_context),
                        data.processed_index,
                        len(data.memory_logs),
                    )
                )
            return rows

        table = create_table(
            "Session journals",
            [
                ("Session", "cyan"),
                ("Messages", "white"),
                ("Processed", "white"),
                ("Operations", "green"),
            ],
        )
        for key, messages, processed, operations in asyncio.run(load_all()):
            table.add_row(key, str(messages), str(processed), str(operations))
        console.print(table)

        corrupt = sorted(journal.sessions_dir.glob("*.corrupt-*.json"))
        if corrupt:
            warning(f"{len(corrupt)} quarantined journal file(s) in {journal.sessions_dir}")

    @journal_app.command("show")
    def show_journal(
        ctx: typer.Context,
        session_key: Annotated[str, typer.Argument(help="Session key")],
        logs: Annotated[
            bool, typer.Option("--logs", "-l", help="Also show memory operations")
        ] = False,
        db_path: Annotated[Path | None, db_option] = None,
    ) -> None:
        """Show a session's clean context and processing state."""
        from recollect.memory.journal import SessionJournal

        journal = SessionJournal(_resolve_db_path(ctx, db_path))
        if not journal.journal_path(session_key).exists():
            error(f"No journal for session: {session_key}")
            raise typer.Exit(1)

        data = asyncio.run(journal.get(session_key))

        table = create_table(
            f"{session_key} (processed {data.processed_index}/{len(data.clean_context)})",
            [("#", "dim"), ("Role", "cyan"), ("Text", "white"), ("", "yellow")],
        )
        for index, message in enumerate(data.clean_context):
            pending = "pending" if index >= data.processed_index else ""
            table.add_row(
                str(index), message.role.value, _truncate(message.text), pending
            )
        console.print(table)

        if not logs:
            return

        if not data.memory_logs:
            dim("No memory operations recorded.")
            return

        log_table = create_table(
            "Memory operations",
            [
                ("When", "dim"),
                ("Action", "green"),
                ("Memory", "cyan"),
                ("Seen", "white"),
                ("Text", "white"),
            ],
        )
        for entry in data.memory_logs:
            log_table.add_row(
                _format_timestamp(entry.timestamp),
                entry.action.value,
                entry.memory_id[:8],
                str(entry.delta_index),
                _truncate(entry.text),
            )
        console.print(log_table)
