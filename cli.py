# cli.py - interactive inventory console with autocomplete
import os
import sys
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.prompt import IntPrompt, Confirm, Prompt
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich import box

from prompt_toolkit import prompt
from prompt_toolkit.completion import WordCompleter

import requests

from sdk.inventory import InventoryClient

console = Console()
c = InventoryClient(base_url=os.getenv("INVENTORY_URL", "http://127.0.0.1:5000"))

# Status line and product cache used for autocompletion
status_message = "Ready"
product_cache: List[Dict[str, Any]] = []


# ---------------------------
# Display helpers
# ---------------------------
def show_products(products: List[Dict[str, Any]]):
    if not products:
        console.print("[italic yellow]No products found[/italic yellow]")
        return

    table = Table(
        title="📦 Inventory",
        box=box.ROUNDED,
        header_style="bold cyan",
        title_style="bold magenta",
        show_lines=True
    )
    table.add_column("ID", style="dim", width=34)
    table.add_column("Name", style="bold", width=24)
    table.add_column("Category", width=16)
    table.add_column("Stock", justify="right", width=8)
    table.add_column("Price", justify="right", width=10)
    table.add_column("Updated", style="dim", width=20)

    for p in products:
        stock = p.get("stock", 0)
        stock_style = "red" if stock == 0 else "green"
        table.add_row(
            p.get("id", "N/A"),
            p.get("name", "N/A"),
            p.get("category", "N/A"),
            f"[{stock_style}]{stock}[/{stock_style}]",
            f"{p.get('price', 0):.2f}",
            str(p.get("updatedAt", ""))[:19],
        )
    console.print(table)


def show_status(message: str, is_success: bool = True):
    style = "green" if is_success else "red"
    return Panel.fit(f"[{style}]{message}[/{style}]", title="Status")


def _error_text(e: Exception) -> str:
    # API errors come back as {"error": "..."}
    if isinstance(e, requests.HTTPError) and e.response is not None:
        try:
            return f"HTTP {e.response.status_code}: {e.response.json().get('error', e.response.text)}"
        except ValueError:
            return f"HTTP {e.response.status_code}: {e.response.text}"
    return str(e)


# ---------------------------
# API wrapper
# ---------------------------
def try_api(fn, *args, success_msg: Optional[str] = None, **kwargs):
    """
    Calls fn(*args, **kwargs) behind a spinner.
    Returns the decoded result, or None after printing the error.
    """
    global status_message
    try:
        with Progress(
            SpinnerColumn(),
            TextColumn("[progress.description]{task.description}"),
            transient=True,
        ) as progress:
            progress.add_task(description="Processing...", total=None)
            result = fn(*args, **kwargs)

        if success_msg:
            status_message = success_msg
            console.print(show_status(success_msg, True))
        return result
    except (requests.RequestException, ValueError) as e:
        status_message = f"Error: {_error_text(e)}"
        console.print(show_status(status_message, False))
        return None


def refresh_cache():
    global product_cache
    product_cache = try_api(c.list_products) or []


# ---------------------------
# Autocompletion helpers
# ---------------------------
def get_product_completer():
    if not product_cache:
        refresh_cache()
    ids = [p.get("id", "") for p in product_cache]
    return WordCompleter([i for i in ids if i], ignore_case=True)


def get_category_completer():
    categories = {p.get("category", "") for p in product_cache}
    return WordCompleter(sorted(cat for cat in categories if cat), ignore_case=True)


# ---------------------------
# Input helpers
# ---------------------------
def prompt_with_autocomplete(message: str, completer=None, default: str = ""):
    return prompt(f"{message} ", completer=completer, default=default)


def ask_float(message: str, default: float = 0.0) -> float:
    while True:
        raw = Prompt.ask(message, default=str(default))
        try:
            return float(raw)
        except ValueError:
            console.print("[red]Please enter a valid number.[/red]")


def ask_product_fields():
    name = prompt_with_autocomplete("Product name")
    category = prompt_with_autocomplete("🏷️ Category", completer=get_category_completer(), default="Uncategorized")
    stock = IntPrompt.ask("📦 Stock", default=0)
    price = ask_float("💰 Price", default=0.0)
    return name, category, stock, price


# ---------------------------
# Main menu
# ---------------------------
MENU = (
    "[bold cyan]1[/] list  [bold cyan]2[/] search  [bold cyan]3[/] get  [bold cyan]4[/] create  "
    "[bold cyan]5[/] replace  [bold cyan]6[/] patch  [bold cyan]7[/] stock  [bold cyan]8[/] delete  "
    "[bold cyan]9[/] health  [bold cyan]q[/] quit"
)


def menu():
    global status_message

    console.clear()
    console.rule(f"[bold blue]inventory console[/bold blue] [dim]{c.base_url}[/dim]")
    refresh_cache()

    while True:
        if status_message:
            console.print(show_status(status_message, "Error" not in status_message))

        console.print(MENU)

        choice = prompt_with_autocomplete(
            "\nChoose an option",
            completer=WordCompleter([str(i) for i in range(1, 10)] + ["q", "quit", "exit"])
        ).strip()

        if choice == "1":
            products = try_api(c.list_products, success_msg="Products loaded")
            if products is not None:
                show_products(products)

        elif choice == "2":
            term = prompt_with_autocomplete("Search term (blank for any)")
            category = prompt_with_autocomplete("Category (blank for any)", completer=get_category_completer())
            min_stock = prompt_with_autocomplete("Min stock (blank for none)")
            max_stock = prompt_with_autocomplete("Max stock (blank for none)")
            res = try_api(
                c.list_products, term or None, category or None,
                min_stock or None, max_stock or None,
                success_msg="Search completed"
            )
            if res is not None:
                show_products(res)

        elif choice == "3":
            pid = prompt_with_autocomplete("Product ID", completer=get_product_completer())
            resp = try_api(c.get_product, pid, success_msg=f"Product {pid} loaded")
            if resp:
                show_products([resp])

        elif choice == "4":
            name, category, stock, price = ask_product_fields()
            resp = try_api(c.create_product, name, category, stock, price, success_msg=f"Product '{name}' created")
            if resp:
                show_products([resp])
                refresh_cache()

        elif choice == "5":
            pid = prompt_with_autocomplete("Product ID", completer=get_product_completer())
            name, category, stock, price = ask_product_fields()
            resp = try_api(c.replace_product, pid, name, category, stock, price, success_msg=f"Product {pid} replaced")
            if resp:
                show_products([resp])
                refresh_cache()

        elif choice == "6":
            pid = prompt_with_autocomplete("Product ID", completer=get_product_completer())
            fields: Dict[str, Any] = {}
            for key in ("name", "category", "stock", "price"):
                raw = prompt_with_autocomplete(f"New {key} (blank to keep)")
                if raw:
                    fields[key] = raw
            if not fields:
                console.print("[yellow]Nothing to change[/yellow]")
                continue
            resp = try_api(c.patch_product, pid, success_msg=f"Product {pid} patched", **fields)
            if resp:
                show_products([resp])
                refresh_cache()

        elif choice == "7":
            pid = prompt_with_autocomplete("Product ID", completer=get_product_completer())
            delta = IntPrompt.ask("Delta (negative to remove)", default=1)
            resp = try_api(c.adjust_stock, pid, delta, success_msg=f"Stock of {pid} adjusted by {delta}")
            if resp:
                show_products([resp])

        elif choice == "8":
            pid = prompt_with_autocomplete("Product ID", completer=get_product_completer())
            if Confirm.ask(f"[red]Delete {pid}? This cannot be undone.[/red]"):
                try_api(c.delete_product, pid, success_msg=f"Product {pid} deleted")
                refresh_cache()

        elif choice == "9":
            resp = try_api(c.health)
            if resp:
                console.print(Panel.fit(str(resp), title="Health", border_style="green"))

        elif choice.lower() in ("q", "quit", "exit"):
            if Confirm.ask("Are you sure you want to quit?"):
                console.print(Panel.fit("[bold green]Bye! 👋[/bold green]", title="Goodbye"))
                sys.exit(0)

        console.print()
        console.rule(style="dim")


if __name__ == "__main__":
    try:
        menu()
    except KeyboardInterrupt:
        console.print("\n\n[bold red]Interrupted by user[/bold red]")
        sys.exit(1)
