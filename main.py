import logging
from dataclasses import replace
from typing import NoReturn, Optional

import typer
from rich import box
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import IntPrompt, Prompt
from rich.table import Table

from config import settings
from item import Item
from library import CatalogStore, DuplicateUserError, LibraryError
from ui_helpers import (
    items_table,
    print_items_result,
    print_stats_result,
    print_users_result,
    set_output_mode,
    users_table,
)
from user import User
from validators import NumberValidator, TextValidator


def _log_level() -> int:
    if settings.debug:
        return logging.DEBUG
    return getattr(logging, settings.log_level.upper(), logging.WARNING)


logging.basicConfig(level=_log_level())
logger = logging.getLogger(__name__)

APP_NAME = settings.app_name

console = Console()

SAMPLE_ITEMS = [
    Item.book("B001", "Java Programming", "eden gugsa", 2020),
    Item.book("B002", "Python Basics", "Jane Smith", 2019),
    Item.dvd("D001", "The Matrix", "Lana Wachowski", 136),
    Item.dvd("D002", "Inception", "Christopher Nolan", 148),
]

SAMPLE_USERS = [
    ("U001", "Alice Johnson"),
    ("U002", "Bob Williams"),
]


def initialize_sample_data(store: CatalogStore) -> None:
    """Add the demo books, DVDs and users. Users that already exist are skipped."""
    for sample in SAMPLE_ITEMS:
        store.add_item(replace(sample, details=replace(sample.details)))
    for user_id, name in SAMPLE_USERS:
        try:
            store.register_user(User(user_id, name))
        except DuplicateUserError as e:
            logger.warning(f"Skipping sample user: {e}")


# --- Typer CLI ---
app = typer.Typer(help="Library catalog CLI")


def _fail(message: str) -> NoReturn:
    print(f"Error: {message}")
    raise typer.Exit(code=1)


def _persist(store: CatalogStore) -> None:
    if not store.save():
        _fail(f"Could not save data: {store.save_error}")


@app.callback(invoke_without_command=True)
def _global_options(
    ctx: typer.Context,
    output: Optional[str] = typer.Option(
        None,
        "--output",
        "-o",
        help="Output format: plain | json | rich (default: plain)",
    ),
    data_file: Optional[str] = typer.Option(
        None,
        "--data-file",
        "-d",
        help="Snapshot file holding the catalog",
    ),
):
    """Global options; opens the catalog and starts the menu when no command is given."""
    set_output_mode(output or settings.output_mode)
    store = CatalogStore(data_file=data_file or settings.data_file)
    ctx.obj = store
    if ctx.invoked_subcommand is None:
        run_menu(store)
    elif store.load_error:
        print(f"Error loading data: {store.load_error}")


@app.command("add-book")
def cli_add_book(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="Book ID"),
    title: str = typer.Argument(..., help="Title"),
    author: str = typer.Argument(..., help="Author"),
    year: int = typer.Argument(..., help="Publication year"),
):
    """Add a book to the catalog (an existing item with the same ID is replaced)."""
    store: CatalogStore = ctx.obj
    try:
        item = Item.book(
            TextValidator.clean_identifier(item_id, "Book ID"),
            TextValidator.clean_text(title, "Title"),
            TextValidator.clean_text(author, "Author"),
            NumberValidator.parse_year(year),
        )
    except ValueError as e:
        _fail(str(e))
    store.add_item(item)
    _persist(store)
    print("Book added successfully.")


@app.command("add-dvd")
def cli_add_dvd(
    ctx: typer.Context,
    item_id: str = typer.Argument(..., help="DVD ID"),
    title: str = typer.Argument(..., help="Title"),
    director: str = typer.Argument(..., help="Director"),
    duration: int = typer.Argument(..., help="Duration in minutes"),
):
    """Add a DVD to the catalog (an existing item with the same ID is replaced)."""
    store: CatalogStore = ctx.obj
    try:
        item = Item.dvd(
            TextValidator.clean_identifier(item_id, "DVD ID"),
            TextValidator.clean_text(title, "Title"),
            TextValidator.clean_text(director, "Director"),
            NumberValidator.parse_duration(duration),
        )
    except ValueError as e:
        _fail(str(e))
    store.add_item(item)
    _persist(store)
    print("DVD added successfully.")


@app.command("register")
def cli_register(
    ctx: typer.Context,
    user_id: str = typer.Argument(..., help="User ID"),
    name: str = typer.Argument(..., help="Full name"),
):
    """Register a new user."""
    store: CatalogStore = ctx.obj
    try:
        user = User(TextValidator.clean_identifier(user_id, "User ID"), TextValidator.clean_text(name, "Name"))
        store.register_user(user)
    except (ValueError, LibraryError) as e:
        _fail(str(e))
    _persist(store)
    print("User registered successfully.")


@app.command("borrow")
def cli_borrow(ctx: typer.Context, user_id: str, item_id: str):
    """Lend an item to a user."""
    store: CatalogStore = ctx.obj
    try:
        store.borrow_item(user_id.strip(), item_id.strip())
    except LibraryError as e:
        _fail(str(e))
    _persist(store)
    print("Item borrowed successfully.")


@app.command("return")
def cli_return(ctx: typer.Context, item_id: str):
    """Take a borrowed item back."""
    store: CatalogStore = ctx.obj
    try:
        user_id = store.return_item(item_id.strip())
    except LibraryError as e:
        _fail(str(e))
    _persist(store)
    print(f"Item returned successfully (was held by {user_id}).")


@app.command("list")
def cli_list(ctx: typer.Context):
    """List all items."""
    print_items_result(ctx.obj.list_items())


@app.command("users")
def cli_users(ctx: typer.Context):
    """List all users."""
    print_users_result(ctx.obj.list_users())


@app.command("search")
def cli_search(ctx: typer.Context, query: str = typer.Argument(..., help="Part of the title, any case")):
    """Search items by title."""
    matches = ctx.obj.find_items_by_title(query)
    print_items_result(matches, empty_message="No items found with the given title.")


@app.command("stats")
def cli_stats(ctx: typer.Context):
    """Show catalog statistics."""
    print_stats_result(ctx.obj.get_statistics())


@app.command("save")
def cli_save(ctx: typer.Context):
    """Write the catalog to the snapshot file."""
    _persist(ctx.obj)
    print("Data saved successfully.")


@app.command("seed")
def cli_seed(ctx: typer.Context):
    """Load the sample books, DVDs and users."""
    store: CatalogStore = ctx.obj
    initialize_sample_data(store)
    _persist(store)
    print(f"Sample data loaded: {len(SAMPLE_ITEMS)} items, {len(SAMPLE_USERS)} users.")


# --- Interactive menu ---
def add_book(store: CatalogStore) -> None:
    item_id = TextValidator.clean_identifier(Prompt.ask("Enter Book ID"), "Book ID")
    title = TextValidator.clean_text(Prompt.ask("Enter Title"), "Title")
    author = TextValidator.clean_text(Prompt.ask("Enter Author"), "Author")
    year = NumberValidator.parse_year(IntPrompt.ask("Enter Publication Year"))
    store.add_item(Item.book(item_id, title, author, year))
    console.print("[green]Book added successfully.[/]")


def add_dvd(store: CatalogStore) -> None:
    item_id = TextValidator.clean_identifier(Prompt.ask("Enter DVD ID"), "DVD ID")
    title = TextValidator.clean_text(Prompt.ask("Enter Title"), "Title")
    director = TextValidator.clean_text(Prompt.ask("Enter Director"), "Director")
    duration = NumberValidator.parse_duration(IntPrompt.ask("Enter Duration (minutes)"))
    store.add_item(Item.dvd(item_id, title, director, duration))
    console.print("[green]DVD added successfully.[/]")


def register_user(store: CatalogStore) -> None:
    user_id = TextValidator.clean_identifier(Prompt.ask("Enter User ID"), "User ID")
    name = TextValidator.clean_text(Prompt.ask("Enter Name"), "Name")
    store.register_user(User(user_id, name))
    console.print("[green]User registered successfully.[/]")


def borrow_item(store: CatalogStore) -> None:
    user_id = Prompt.ask("Enter User ID").strip()
    item_id = Prompt.ask("Enter Item ID").strip()
    store.borrow_item(user_id, item_id)
    console.print("[green]Item borrowed successfully.[/]")


def return_item(store: CatalogStore) -> None:
    item_id = Prompt.ask("Enter Item ID to return").strip()
    store.return_item(item_id)
    console.print("[green]Item returned successfully.[/]")


def list_all_items(store: CatalogStore) -> None:
    items = list(store.list_items())
    if not items:
        console.print("[yellow]No items in library.[/]")
        return
    console.print(items_table(items, title="📚 Library Items"))
    console.print(f"[dim]📊 {len(items)} items[/]")


def list_all_users(store: CatalogStore) -> None:
    users = list(store.list_users())
    if not users:
        console.print("[yellow]No users registered.[/]")
        return
    console.print(users_table(users, title="👥 Library Users"))


def search(store: CatalogStore) -> None:
    query = Prompt.ask("Enter title to search")
    matches = store.find_items_by_title(query)
    if not matches:
        console.print("[yellow]No items found with the given title.[/]")
        return
    console.print(items_table(matches, title=f"🔎 Search Results for '{escape(query)}'"))


def save(store: CatalogStore) -> None:
    if store.save():
        console.print("[green]Data saved successfully.[/]")
    else:
        console.print(f"[bold red]Error saving data:[/] {escape(store.save_error or '')}")


MENU_ACTIONS = {
    "1": ("Add Book", "➕", add_book),
    "2": ("Add DVD", "📀", add_dvd),
    "3": ("Register User", "👤", register_user),
    "4": ("Borrow Item", "📤", borrow_item),
    "5": ("Return Item", "📥", return_item),
    "6": ("Display All Items", "📚", list_all_items),
    "7": ("Display All Users", "👥", list_all_users),
    "8": ("Search Items by Title", "🔎", search),
    "9": ("Save Data", "💾", save),
}


def run_menu(store: CatalogStore) -> None:
    """Interactive menu over a single catalog instance. Exiting does not save."""
    if store.load_error:
        console.print(f"[yellow]Error loading data: {escape(store.load_error)}[/]")
    if settings.load_sample_data and store.is_empty():
        initialize_sample_data(store)

    def render_menu() -> None:
        table = Table.grid(padding=(0, 2))
        table.add_column(justify="right", style="bold cyan", width=4)
        table.add_column(justify="left", style="white")
        for key, (label, icon, _) in MENU_ACTIONS.items():
            table.add_row(f"[reverse]{key}[/]", f"{icon} {label}")
        table.add_row("[reverse]0[/]", "🚪 Exit")

        console.print(Panel(table, title=APP_NAME, border_style="cyan", box=box.HEAVY, padding=(1, 2)))

    choices = list(MENU_ACTIONS) + ["0"]
    while True:
        render_menu()
        try:
            choice = Prompt.ask("Enter your choice", choices=choices)
        except EOFError:
            choice = "0"

        if choice == "0":
            console.print("Exiting...")
            break

        _, _, action = MENU_ACTIONS[choice]
        try:
            action(store)
        except LibraryError as e:
            console.print(f"[bold red]Error:[/] {escape(str(e))}")
        except ValueError as e:
            console.print(f"[bold red]Invalid input:[/] {escape(str(e))}")
        except EOFError:
            console.print("Exiting...")
            break
        print()


if __name__ == "__main__":
    app()
