"""Rich output for route entries."""

import json
from typing import Any, Optional

import yaml
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table


class RouteRenderer:
    """Renders route entries, specs and diffs with consistent styling."""

    COLORS = {
        "active": "green",
        "blackhole": "red",
        "noop": "dim",
        "create": "green",
        "replace": "yellow",
        "delete": "red",
    }

    def __init__(self, console: Optional[Console] = None):
        self.console = console or Console()

    def render(self, data: Any, fmt: str = "table") -> bool:
        """Render data as JSON or YAML.

        Returns:
            True if rendered, False if the caller should draw a table
        """
        if fmt == "json":
            self.console.print_json(json.dumps(data, default=str))
            return True
        if fmt == "yaml":
            self.console.print(yaml.safe_dump(data, sort_keys=False))
            return True
        return False

    def attributes(self, attrs: dict[str, str], title: str) -> None:
        """Render a flat attribute set, hiding unset values."""
        table = Table(title=title, show_header=False)
        table.add_column("Attribute", style="cyan")
        table.add_column("Value")
        for key, val in attrs.items():
            if not val:
                continue
            if key == "state":
                val = f"[{self.COLORS.get(val, 'white')}]{val}[/]"
            table.add_row(key, val)
        self.console.print(table)

    def route(self, attrs: dict[str, str], fmt: str = "table") -> None:
        if self.render(attrs, fmt):
            return
        title = f"Route {attrs['route_table_id']}_" + (
            attrs["destination_cidr_block"]
            or attrs["destination_ipv6_cidr_block"]
            or attrs["destination_prefix_list_id"]
        )
        self.attributes(attrs, title)

    def action(self, action: str, route_id: str) -> None:
        color = self.COLORS.get(action, "white")
        self.console.print(f"[{color}]{action}[/] {route_id}")

    def diff(self, changes: dict[str, tuple[str, str]], title: str) -> None:
        """Render desired vs observed values."""
        if not changes:
            self.console.print(f"[green]{title}: no changes[/]")
            return
        table = Table(title=title, show_header=True, header_style="bold")
        table.add_column("Attribute", style="cyan")
        table.add_column("Desired", style="green")
        table.add_column("Observed", style="red")
        for key, (want, have) in changes.items():
            table.add_row(key, want or "-", have or "-")
        self.console.print(table)

    def panel(self, lines: list[str], title: str) -> None:
        self.console.print(Panel("\n".join(lines), title=title))

    def status(self, message: str, style: str = "green") -> None:
        self.console.print(f"[{style}]{message}[/]")

    def error(self, message: str) -> None:
        self.console.print(f"[red]{escape(message)}[/]")

    def warning(self, message: str) -> None:
        self.console.print(f"[yellow]{escape(message)}[/]")
