#!/usr/bin/env python3
"""
NixDeck CLI

Command-line client for the NixDeck daemon.
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .errors import StartupError
from .settings import Settings

console = Console()


class NixDeckCLI:
    """CLI client for the NixDeck daemon."""

    def __init__(self, socket_path: Optional[Path] = None):
        """
        Initialize CLI client.

        Args:
            socket_path: Daemon socket (resolved from settings if None)
        """
        self.socket_path = socket_path

    async def send_request(self, method: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """
        Send JSON-RPC request to daemon.

        Args:
            method: RPC method name
            params: Method parameters

        Returns:
            The response result

        Raises:
            ConnectionError: If cannot connect to daemon
            RuntimeError: If the daemon reports an error
        """
        if not self.socket_path.exists():
            raise ConnectionError(f"Daemon not running (socket not found: {self.socket_path})")

        request = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or {},
            "id": 1
        }

        reader, writer = await asyncio.open_unix_connection(str(self.socket_path))
        try:
            writer.write((json.dumps(request) + "\n").encode())
            await writer.drain()

            data = await reader.readline()
        finally:
            writer.close()
            await writer.wait_closed()

        if not data:
            raise ConnectionError("Daemon closed the connection without a response")

        response = json.loads(data.decode())
        if "error" in response:
            raise RuntimeError(response["error"]["message"])

        return response.get("result")

    # Output helpers

    def print_names(self, title: str, names: List[str]) -> None:
        if not names:
            console.print(f"[dim]No {title.lower()} found[/dim]")
            return

        table = Table(title=title, show_header=False, border_style="blue")
        table.add_column("Name", style="bold green")
        for name in names:
            table.add_row(name)
        console.print(table)

    def print_capture(self, kind: str, metadata: Dict[str, Any]) -> None:
        components = metadata.get("files", metadata.get("components", []))
        console.print(f"[green]✓[/green] Created {kind} [bold]{metadata['name']}[/bold] ({metadata['created']})")
        console.print(f"  components: {', '.join(components) or '(none present)'}")

    def print_metadata(self, kind: str, metadata: Dict[str, Any]) -> None:
        components = metadata.get("files", metadata.get("components", []))
        table = Table(title=f"{kind} {escape(metadata['name'])}", show_header=False, border_style="blue")
        table.add_column("Field", style="bold cyan")
        table.add_column("Value")
        table.add_row("created", metadata["created"])
        table.add_row("description", escape(metadata.get("description", "")))
        table.add_row("components", ", ".join(components) or "(none)")
        console.print(table)

    def print_restored(self, kind: str, name: str, restored: List[str]) -> None:
        console.print(f"[green]✓[/green] Restored {kind} [bold]{name}[/bold]")
        console.print(f"  components: {', '.join(restored) or '(none)'}")

    # Commands

    async def cmd_snapshot(self, args) -> int:
        if args.action == "create":
            self.print_capture("snapshot", await self.send_request("snapshot_create", {"name": args.name}))
        elif args.action == "list":
            result = await self.send_request("snapshot_list")
            self.print_names("Snapshots", result["snapshots"])
        elif args.action == "show":
            self.print_metadata("Snapshot", await self.send_request("snapshot_get", {"name": args.name}))
        elif args.action == "restore":
            result = await self.send_request("snapshot_restore", {"name": args.name})
            self.print_restored("snapshot", args.name, result["restored"])
        elif args.action == "delete":
            await self.send_request("snapshot_delete", {"name": args.name})
            console.print(f"[green]✓[/green] Deleted snapshot [bold]{args.name}[/bold]")
        return 0

    async def cmd_container(self, args) -> int:
        if args.action == "create":
            self.print_capture("container", await self.send_request("container_create", {"name": args.name}))
        elif args.action == "list":
            result = await self.send_request("container_list")
            self.print_names("Containers", result["containers"])
        elif args.action == "show":
            self.print_metadata("Container", await self.send_request("container_get", {"name": args.name}))
        elif args.action == "load":
            result = await self.send_request("container_load", {"name": args.name})
            self.print_restored("container", args.name, result["restored"])
        elif args.action == "delete":
            await self.send_request("container_delete", {"name": args.name})
            console.print(f"[green]✓[/green] Deleted container [bold]{args.name}[/bold]")
        elif args.action == "export":
            archive = str(Path(args.path).expanduser().resolve())
            result = await self.send_request("container_export", {"name": args.name, "path": archive})
            console.print(f"[green]✓[/green] Exported [bold]{args.name}[/bold] to {result['archive']}")
        return 0

    async def cmd_rice(self, args) -> int:
        if args.action == "get":
            result = await self.send_request("rice_get", {"component": args.component})
            sys.stdout.write(result["content"])
            return 0

        content = Path(args.file).read_text(encoding="utf-8") if args.file != "-" else sys.stdin.read()
        params = {"component": args.component, "config": content}

        if args.action == "preview":
            result = await self.send_request("rice_preview", params)
            sys.stdout.write(result["preview"] + "\n")
        else:
            result = await self.send_request("rice_apply", params)
            console.print(f"[green]✓[/green] Applied {args.component} config (backup: {result['backup']})")
        return 0

    async def cmd_theme(self, args) -> int:
        if args.action == "list":
            result = await self.send_request("theme_list")
            self.print_names("Themes", result["themes"])
        elif args.action == "show":
            result = await self.send_request("theme_load", {"name": args.name})
            sys.stdout.write(result["content"])
        elif args.action == "save":
            content = Path(args.file).read_text(encoding="utf-8")
            await self.send_request("theme_save", {"name": args.name, "content": content})
            console.print(f"[green]✓[/green] Saved theme [bold]{args.name}[/bold]")
        return 0

    async def cmd_service(self, args) -> int:
        if args.action == "list":
            result = await self.send_request("service_list")
            for line in result["services"]:
                console.print(escape(line), highlight=False)
        elif args.action == "status":
            result = await self.send_request("service_status", {"name": args.name})
            sys.stdout.write(result["status"])
        else:
            await self.send_request(f"service_{args.action}", {"name": args.name})
            console.print(f"[green]✓[/green] {args.action} {args.name}")
        return 0

    async def cmd_cron(self, args) -> int:
        if args.action == "list":
            result = await self.send_request("cron_list")
        elif args.action == "add":
            result = await self.send_request("cron_create", {"schedule": args.schedule, "command": args.command})
        else:
            result = await self.send_request("cron_delete", {"id": args.id})

        jobs = result["jobs"]
        if not jobs:
            console.print("[dim]No cron jobs[/dim]")
            return 0

        table = Table(show_header=True, header_style="bold cyan")
        table.add_column("ID", justify="right", style="yellow")
        table.add_column("Job", style="white")
        for index, job in enumerate(jobs):
            table.add_row(str(index), escape(job))
        console.print(table)
        return 0

    async def cmd_system(self, args) -> int:
        info = await self.send_request("system_info")
        for key in ("hostname", "kernel", "distro", "uptime"):
            console.print(f"[bold cyan]{key:10}[/bold cyan] {info[key]}")
        return 0

    async def cmd_ping(self, args) -> int:
        """Ping daemon to check if running."""
        result = await self.send_request("ping")
        if result.get("status") == "ok":
            console.print("[green]✓[/green] Daemon is running")
            return 0
        console.print("[yellow]Daemon responded but status is not OK[/yellow]")
        return 1

    def build_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            description="NixDeck configuration snapshots, containers and editor",
            prog="nixdeck"
        )
        subparsers = parser.add_subparsers(dest="command", help="Command to execute")

        snapshot = subparsers.add_parser("snapshot", help="Manage snapshots of critical components")
        snapshot_actions = snapshot.add_subparsers(dest="action", required=True)
        for action in ("create", "show", "restore", "delete"):
            snapshot_actions.add_parser(action).add_argument("name")
        snapshot_actions.add_parser("list")

        container = subparsers.add_parser("container", help="Manage desktop containers")
        container_actions = container.add_subparsers(dest="action", required=True)
        for action in ("create", "show", "load", "delete"):
            container_actions.add_parser(action).add_argument("name")
        container_actions.add_parser("list")
        export_parser = container_actions.add_parser("export")
        export_parser.add_argument("name")
        export_parser.add_argument("path", help="Archive path (.tar.gz)")

        rice = subparsers.add_parser("rice", help="Read or edit one component's config file")
        rice_actions = rice.add_subparsers(dest="action", required=True)
        rice_actions.add_parser("get").add_argument("component")
        for action in ("preview", "apply"):
            action_parser = rice_actions.add_parser(action)
            action_parser.add_argument("component")
            action_parser.add_argument("file", help="New config file ('-' for stdin)")

        theme = subparsers.add_parser("theme", help="Manage UI themes")
        theme_actions = theme.add_subparsers(dest="action", required=True)
        theme_actions.add_parser("list")
        theme_actions.add_parser("show").add_argument("name")
        save_parser = theme_actions.add_parser("save")
        save_parser.add_argument("name")
        save_parser.add_argument("file", help="Stylesheet to store")

        service = subparsers.add_parser("service", help="Manage systemd user services")
        service_actions = service.add_subparsers(dest="action", required=True)
        service_actions.add_parser("list")
        for action in ("enable", "disable", "start", "stop", "status"):
            service_actions.add_parser(action).add_argument("name")

        cron = subparsers.add_parser("cron", help="Manage cron jobs")
        cron_actions = cron.add_subparsers(dest="action", required=True)
        cron_actions.add_parser("list")
        add_parser = cron_actions.add_parser("add")
        add_parser.add_argument("schedule", help="Cron schedule, e.g. '0 * * * *'")
        add_parser.add_argument("command")
        cron_actions.add_parser("delete").add_argument("id")

        subparsers.add_parser("system", help="Show host summary")
        subparsers.add_parser("ping", help="Check if daemon is running")

        return parser

    def run(self, argv: Optional[List[str]] = None) -> int:
        """Run CLI."""
        parser = self.build_parser()
        args = parser.parse_args(argv)

        if not args.command:
            parser.print_help()
            return 1

        cmd_map = {
            "snapshot": self.cmd_snapshot,
            "container": self.cmd_container,
            "rice": self.cmd_rice,
            "theme": self.cmd_theme,
            "service": self.cmd_service,
            "cron": self.cmd_cron,
            "system": self.cmd_system,
            "ping": self.cmd_ping,
        }

        if self.socket_path is None:
            try:
                self.socket_path = Settings.from_environment().ipc_socket
            except StartupError as e:
                console.print(f"[red]✗[/red] {escape(e.message)}")
                return 2

        try:
            return asyncio.run(cmd_map[args.command](args))
        except KeyboardInterrupt:
            console.print("\nInterrupted")
            return 130
        except ConnectionError as e:
            console.print(f"[red]✗[/red] {escape(str(e))}")
            return 1
        except (RuntimeError, OSError) as e:
            console.print(f"[red]✗[/red] Error: {escape(str(e))}", highlight=False)
            return 1


def main():
    """Main entry point."""
    cli = NixDeckCLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
