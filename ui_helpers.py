import json
from typing import Any, Dict, Iterable

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from item import Item
from user import User

OUTPUT_MODES = ("plain", "json", "rich")

_console = Console()
_output_mode = "plain"


def set_output_mode(mode: str) -> None:
    global _output_mode
    mode = (mode or "").lower().strip()
    if mode in OUTPUT_MODES:
        _output_mode = mode
    # Unknown values are ignored; the current mode stays in place.


def get_output_mode() -> str:
    return _output_mode


def items_table(items: Iterable[Item], title: str = "📚 Items") -> Table:
    table = Table(title=title, show_lines=True, header_style="bold cyan")
    table.add_column("ID", style="magenta", no_wrap=True)
    table.add_column("Type", style="white")
    table.add_column("Title", style="white")
    table.add_column("Author / Director", style="white")
    table.add_column("Status", style="white")
    for item in items:
        status = "[green]Available[/]" if item.available else "[red]Borrowed[/]"
        table.add_row(escape(item.id), item.kind.upper(), escape(item.title), escape(item.summary()), status)
    return table


def users_table(users: Iterable[User], title: str = "👥 Users") -> Table:
    table = Table(title=title, show_lines=True, header_style="bold cyan")
    table.add_column("ID", style="magenta", no_wrap=True)
    table.add_column("Name", style="white")
    table.add_column("Borrowed", style="white", justify="right")
    table.add_column("Items", style="dim")
    for user in users:
        table.add_row(escape(user.id), escape(user.name), str(user.borrowed_count),
                      escape(", ".join(user.borrowed_item_ids)))
    return table


def print_items_result(items: Iterable[Item], empty_message: str = "No items in library.") -> None:
    """Print items in the current output mode.
    - plain: one description block per item, or ``empty_message``
    - json: JSON array of item dicts
    - rich: Rich table
    """
    items = list(items)
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([item.to_dict() for item in items], ensure_ascii=False))
        return

    if not items:
        print(empty_message)
        return

    if mode == "rich":
        _console.print(items_table(items))
    else:
        print("\n\n".join(item.describe() for item in items))


def print_users_result(users: Iterable[User]) -> None:
    users = list(users)
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps([user.to_dict() for user in users], ensure_ascii=False))
        return

    if not users:
        print("No users registered.")
        return

    if mode == "rich":
        _console.print(users_table(users))
    else:
        print("\n\n".join(user.describe() for user in users))


def print_stats_result(stats: Dict[str, Any]) -> None:
    mode = get_output_mode()

    if mode == "json":
        print(json.dumps(stats, ensure_ascii=False))
    elif mode == "rich":
        content = (
            f"[bold]Total Items:[/] {stats['total_items']} "
            f"({stats['books']} books, {stats['dvds']} DVDs)\n"
            f"[bold]Borrowed:[/] {stats['borrowed_items']}\n"
            f"[bold]Available:[/] {stats['available_items']}\n"
            f"[bold]Users:[/] {stats['users']}"
        )
        _console.print(Panel.fit(content, title="📊 Stats", border_style="blue"))
    else:
        print(f"Total Items: {stats['total_items']}")
        print(f"Books: {stats['books']}")
        print(f"DVDs: {stats['dvds']}")
        print(f"Borrowed Items: {stats['borrowed_items']}")
        print(f"Available Items: {stats['available_items']}")
        print(f"Users: {stats['users']}")
