#!/usr/bin/env python3
"""Initialize the review-state database schema."""

from rich.console import Console
from rich.panel import Panel

from qdrill.config import Config
from qdrill.db.database import Database


console = Console()


def main() -> None:
    console.rule("[bold blue]Initializing qdrill Database")

    # Load config
    config = Config.from_env()
    config.configure_logging()
    config.ensure_database_dir()

    console.print(f"Database path: {config.database_path}")

    db = Database(config.database_path)
    db.init_schema()
    console.print("[green]✓ Schema created[/green]")

    console.print(Panel("[bold green]Database initialized successfully!", title="Done"))


if __name__ == "__main__":
    main()
