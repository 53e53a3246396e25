"""Note commands for the pyicnotes CLI."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from pyicnotes.cli.utils import auth
from pyicnotes.models import ActionOutcome

app = typer.Typer(help="Note commands")
console = Console()

NetworkOption = typer.Option(None, help="Network: 'ic' or 'local'")


def _report(outcome: ActionOutcome, success: str) -> None:
    if outcome.ok:
        console.print(success)
        if outcome.reload_error:
            console.print(
                f"[yellow]Warning:[/yellow] could not refresh notes: {outcome.reload_error}"
            )
        return
    if outcome.cancelled:
        console.print("Deletion cancelled")
        return
    console.print(f"[bold red]Error:[/bold red] {outcome.message}")
    raise typer.Exit(1)


@app.command("list")
def list_notes(network: Optional[str] = NetworkOption):
    """List all notes."""

    async def _list():
        service = await auth.get_service(network)
        return service.notes, await service.notes.load()

    store, outcome = auth.run(_list())
    if not outcome.ok:
        console.print(f"[bold red]Error:[/bold red] {outcome.message}")
        raise typer.Exit(1)

    if not store.notes:
        console.print("No notes yet. Create your first note!")
        return

    table = Table("ID", "Title", "Content")
    for note in store.notes:
        table.add_row(str(note.id), note.title, note.content)
    console.print(table)


@app.command("create")
def create_note(
    title: str = typer.Argument(..., help="Title of the note"),
    content: str = typer.Argument(..., help="Body of the note"),
    network: Optional[str] = NetworkOption,
):
    """Create a new note."""

    async def _create():
        service = await auth.get_service(network)
        return await service.notes.create(title, content)

    _report(auth.run(_create()), f"Created note [bold]{title}[/bold]")


@app.command("edit")
def edit_note(
    note_id: int = typer.Argument(..., help="ID of the note to edit"),
    title: Optional[str] = typer.Option(None, help="New title"),
    content: Optional[str] = typer.Option(None, help="New content"),
    network: Optional[str] = NetworkOption,
):
    """Update the title and/or content of a note."""

    async def _edit():
        service = await auth.get_service(network)
        store = service.notes
        current = None
        if title is None or content is None:
            loaded = await store.load()
            if not loaded.ok:
                return loaded
            current = store.get(note_id)
        new_title = title if title is not None else (current.title if current else "")
        new_content = (
            content if content is not None else (current.content if current else "")
        )
        return await store.edit(note_id, new_title, new_content)

    _report(auth.run(_edit()), f"Updated note [bold]{note_id}[/bold]")


@app.command("delete")
def delete_note(
    note_id: int = typer.Argument(..., help="ID of the note to delete"),
    force: bool = typer.Option(
        False, "--force", "-f", help="Delete without confirmation"
    ),
    network: Optional[str] = NetworkOption,
):
    """Delete a note. Remaining notes are renumbered by the service."""

    def _confirm(nid: int) -> bool:
        return force or typer.confirm(f"Are you sure you want to delete note {nid}?")

    async def _delete():
        service = await auth.get_service(network)
        return await service.notes.delete(note_id, confirm=_confirm)

    _report(auth.run(_delete()), f"Deleted note [bold]{note_id}[/bold]")
