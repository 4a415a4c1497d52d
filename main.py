import logging
from typing import Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from book import EDITABLE_FIELDS
from catalog import BookCatalog, Outcome
from config import settings
from http_client import BookApiClient
from ui_helpers import Carousel, print_books, print_carousel, print_error, set_output_mode

console = Console()


def configure_logging() -> None:
    logging.basicConfig(
        level=getattr(logging, settings.effective_log_level, logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_catalog() -> BookCatalog:
    """Build a catalog bound to the configured API."""
    return BookCatalog(BookApiClient())


def _load(catalog: BookCatalog) -> bool:
    result = catalog.refresh()
    if not result.ok:
        print_error(catalog.error)
    return result.ok


def _locate(catalog: BookCatalog, book_id: str) -> Optional[int]:
    index = catalog.index_of(book_id)
    if index is None:
        print(f"Book with ID {book_id} not found.")
    return index


# --- Typer CLI application ---
app = typer.Typer(help="Manage the remote book catalog")


@app.callback(invoke_without_command=True)
def _global_options(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
):
    """Global CLI options (e.g. output mode)."""
    configure_logging()
    if output:
        set_output_mode(output)
    if ctx.invoked_subcommand is None:
        run_menu()


@app.command("list")
def cli_list():
    """Fetch and show every book."""
    catalog = get_catalog()
    try:
        _load(catalog)
        print_books(catalog.books)
    finally:
        catalog.client.close()


@app.command("add")
def cli_add(
    book_id: str = typer.Option(..., "--id", help="Book ID"),
    name: str = typer.Option(..., "--name", help="Book name"),
    description: str = typer.Option(..., "--description", help="Book description"),
    published: str = typer.Option(..., "--published", help="Published date (YYYY-MM-DD)"),
    price: str = typer.Option(..., "--price", help="Book price"),
):
    """Insert a new book."""
    catalog = get_catalog()
    try:
        form = catalog.form
        form.book_id, form.book_name, form.book_description = book_id, name, description
        form.book_published, form.book_price = published, price
        result = catalog.submit_form()
        if result.ok:
            print(f"Book {book_id} added.")
            print_error(catalog.error)
        elif result.outcome is Outcome.INVALID:
            print(f"Error: {result.message}")
        else:
            print_error(catalog.error)
    finally:
        catalog.client.close()


@app.command("update")
def cli_update(
    book_id: str = typer.Argument(..., help="ID of the book to update"),
    name: Optional[str] = typer.Option(None, "--name", help="New name"),
    description: Optional[str] = typer.Option(None, "--description", help="New description"),
    published: Optional[str] = typer.Option(None, "--published", help="New published date"),
    price: Optional[str] = typer.Option(None, "--price", help="New price"),
):
    """Edit a book and save the full record."""
    changes = {
        "book_name": name,
        "book_description": description,
        "book_published": published,
        "book_price": price,
    }
    changes = {k: v for k, v in changes.items() if v is not None}
    if not changes:
        print("Nothing to update. Provide at least one of --name, --description, --published, --price.")
        return

    catalog = get_catalog()
    try:
        if not _load(catalog):
            return
        index = _locate(catalog, book_id)
        if index is None:
            return
        catalog.toggle_edit(index)
        for field, value in changes.items():
            catalog.edit_field(index, field, value)
        if catalog.save_edit(index).ok:
            print(f"Book {book_id} updated.")
        else:
            print_error(catalog.error)
    finally:
        catalog.client.close()


@app.command("delete")
def cli_delete(book_id: str = typer.Argument(..., help="ID of the book to delete")):
    """Delete a book by ID."""
    catalog = get_catalog()
    try:
        if not _load(catalog):
            return
        index = _locate(catalog, book_id)
        if index is None:
            return
        if catalog.delete(index).ok:
            print(f"Book {book_id} deleted.")
        else:
            print_error(catalog.error)
    finally:
        catalog.client.close()


@app.command("search")
def cli_search(book_id: str = typer.Argument(..., help="Exact book ID to look for")):
    """Show only the book with this exact ID."""
    catalog = get_catalog()
    try:
        if not _load(catalog):
            return
        if catalog.search(book_id).ok:
            print_books(catalog.books)
        else:
            print_error(catalog.error)
    finally:
        catalog.client.close()


@app.command("menu")
def cli_menu():
    """Open the interactive menu."""
    run_menu()


# --- Interactive menu ---
def _show(catalog: BookCatalog, carousel: Carousel) -> None:
    print_error(catalog.error)
    if catalog.search_text:
        console.print(f"[dim]🔎 Filtered by ID '{escape(catalog.search_text)}'[/]")
    print_carousel(catalog.books, carousel)


def _ask_position(catalog: BookCatalog) -> Optional[int]:
    if not catalog.books:
        console.print("[yellow]No books found.[/]")
        return None
    raw = Prompt.ask("Card number (#)")
    try:
        index = int(raw)
    except ValueError:
        console.print(f"[red]Not a number: {escape(raw)}[/]")
        return None
    if not 0 <= index < len(catalog.books):
        console.print(f"[red]No book at position {index}[/]")
        return None
    return index


def _insert(catalog: BookCatalog) -> None:
    form = catalog.form
    form.book_id = Prompt.ask("Book ID", default=form.book_id or None) or ""
    form.book_name = Prompt.ask("Book Name", default=form.book_name or None) or ""
    form.book_description = Prompt.ask("Book Description", default=form.book_description or None) or ""
    form.book_published = Prompt.ask("Published Date (YYYY-MM-DD)", default=form.book_published or None) or ""
    form.book_price = Prompt.ask("Book Price", default=form.book_price or None) or ""
    with console.status("[bold green]Inserting book..."):
        result = catalog.submit_form()
    if result.ok:
        console.print(Panel.fit("[green]Book inserted[/]", title="✅ Success", border_style="green"))
    elif result.outcome is Outcome.INVALID:
        console.print(f"[bold red]{escape(result.message)}[/]")


def _edit(catalog: BookCatalog) -> None:
    index = _ask_position(catalog)
    if index is None:
        return
    record = catalog.books[index]
    if not record.is_editing:
        catalog.toggle_edit(index)
    for field in EDITABLE_FIELDS:
        value = Prompt.ask(field.replace("_", " ").title(), default=getattr(record, field))
        catalog.edit_field(index, field, value)
    if Confirm.ask("💾 Save changes?", default=True):
        with console.status("[bold green]Saving..."):
            result = catalog.save_edit(index)
        if result.ok:
            console.print(f"[green]✅ [bold]{escape(record.book_id)}[/] saved.[/]")
    else:
        console.print("[blue]Changes kept locally; the card stays in edit mode.[/]")


def _delete(catalog: BookCatalog) -> None:
    index = _ask_position(catalog)
    if index is None:
        return
    record = catalog.books[index]
    if not Confirm.ask(f"🗑️ Delete [bold]{escape(record.book_id)}[/]?", default=False):
        console.print("[blue]🚫 Delete cancelled.[/]")
        return
    with console.status("[bold green]Deleting..."):
        result = catalog.delete(index)
    if result.ok:
        console.print(f"[green]✅ [bold]{escape(record.book_id)}[/] deleted.[/]")


def run_menu(catalog: Optional[BookCatalog] = None) -> None:
    """Interactive menu that keeps one catalog alive between actions."""
    catalog = catalog or get_catalog()
    carousel = Carousel()

    menu_items = [
        ("1", "Show books", "📚"),
        ("2", "Next card", "▶"),
        ("3", "Previous card", "◀"),
        ("4", "Insert book", "➕"),
        ("5", "Edit book", "✏️"),
        ("6", "Delete book", "🗑️"),
        ("7", "Search by ID", "🔎"),
        ("8", "Clear search", "🧹"),
        ("9", "Reload from server", "🔄"),
        ("0", "Exit", "🚪"),
    ]

    def render_menu() -> None:
        table = Table.grid(padding=(0, 2))
        table.add_column(justify="right", style="bold cyan", width=4)
        table.add_column(justify="left", style="white")
        for key, label, icon in menu_items:
            table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")
        console.print(Panel(table, title=settings.app_name, border_style="cyan", box=box.HEAVY, padding=(1, 2)))

    with console.status("[bold green]Loading books..."):
        catalog.refresh()

    try:
        while True:
            render_menu()
            choice = Prompt.ask("Choose an option", choices=[key for key, _, _ in menu_items], default="1")

            if choice == "1":
                _show(catalog, carousel)
            elif choice == "2":
                carousel.next(len(catalog.books))
                _show(catalog, carousel)
            elif choice == "3":
                carousel.prev(len(catalog.books))
                _show(catalog, carousel)
            elif choice == "4":
                _insert(catalog)
                carousel.reset()
                _show(catalog, carousel)
            elif choice == "5":
                _edit(catalog)
                _show(catalog, carousel)
            elif choice == "6":
                _delete(catalog)
                _show(catalog, carousel)
            elif choice == "7":
                catalog.search(Prompt.ask("Search by Book ID"))
                carousel.reset()
                _show(catalog, carousel)
            elif choice == "8":
                catalog.clear_search()
                carousel.reset()
                _show(catalog, carousel)
            elif choice == "9":
                with console.status("[bold green]Loading books..."):
                    catalog.refresh()
                carousel.reset()
                _show(catalog, carousel)
            elif choice == "0":
                console.print("[green]Goodbye![/]")
                break
            console.print()
    finally:
        catalog.client.close()


def run() -> None:
    app()


if __name__ == "__main__":
    app()
