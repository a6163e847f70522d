#!/usr/bin/env python3
"""Interactive chat CLI for the operations assistant service."""

import getpass
import sys

import httpx
from rich.console import Console
from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Prompt
from rich.table import Table


class ChatCLI:
    """Interactive chat interface for the operations assistant."""

    def __init__(self, base_url: str = "http://localhost:8000", user_id: str | None = None):
        """Initialize chat CLI."""
        self.base_url = base_url
        self.user_id = user_id or getpass.getuser()
        self.session_id: str | None = None
        self.show_tools = True
        self.console = Console()
        # Each ask may run many model calls, each bounded at two minutes
        self.client = httpx.Client(timeout=600.0)

    def start(self) -> None:
        """Start the interactive chat session."""
        self.console.print(
            Panel.fit(
                "[bold blue]Ops Assistant - Interactive Chat[/bold blue]\n"
                "Ask questions about this server's state.\n"
                "Commands: /help, /clear, /sessions, /tools, /quit",
                border_style="blue",
            )
        )

        if not self._test_connection():
            self.console.print(f"[red]Cannot connect to the service at {self.base_url}.[/red]")
            return

        self.console.print("[green]Connected to ops assistant[/green]\n")

        try:
            while True:
                user_input = Prompt.ask("\n[bold cyan]You[/bold cyan]")

                if user_input.lower() in ["/quit", "/exit", "quit", "exit"]:
                    break
                elif user_input.lower() == "/help":
                    self._show_help()
                    continue
                elif user_input.lower() == "/clear":
                    self._clear_session()
                    continue
                elif user_input.lower() == "/sessions":
                    self._show_sessions()
                    continue
                elif user_input.lower() == "/tools":
                    self.show_tools = not self.show_tools
                    state = "shown" if self.show_tools else "hidden"
                    self.console.print(f"[yellow]Tool calls will be {state}[/yellow]")
                    continue
                elif user_input.strip() == "":
                    continue

                response = self._send_message(user_input)
                if response:
                    self._display_response(response)

        except KeyboardInterrupt:
            pass
        finally:
            self.console.print("\n[yellow]Goodbye![/yellow]")
            self.client.close()

    def _test_connection(self) -> bool:
        """Test connection to the service."""
        try:
            response = self.client.get(f"{self.base_url}/health")
            return response.status_code == 200
        except httpx.HTTPError:
            return False

    def _clear_session(self) -> None:
        """Forget the current conversation on the server."""
        if self.session_id:
            try:
                self.client.delete(f"{self.base_url}/sessions/{self.session_id}")
            except httpx.HTTPError as e:
                self.console.print(f"[red]Could not delete session: {e}[/red]")
        self.session_id = None
        self.console.print("[yellow]Session cleared[/yellow]")

    def _show_sessions(self) -> None:
        """List this user's recent conversations."""
        try:
            response = self.client.get(f"{self.base_url}/sessions", params={"user_id": self.user_id})
            response.raise_for_status()
        except httpx.HTTPError as e:
            self.console.print(f"[red]Could not list sessions: {e}[/red]")
            return

        table = Table(title="Your sessions", border_style="dim")
        table.add_column("Session")
        table.add_column("Messages", justify="right")
        table.add_column("Last activity")
        for row in response.json():
            marker = " *" if row["session_id"] == self.session_id else ""
            table.add_row(row["session_id"] + marker, str(row["messages"]), row["last_activity"])
        self.console.print(table)

    def _send_message(self, message: str) -> dict | None:
        """Send a question to the service."""
        payload = {"message": message, "user_id": self.user_id}
        if self.session_id:
            payload["session_id"] = self.session_id

        try:
            with self.console.status("[dim]Investigating...[/dim]"):
                response = self.client.post(f"{self.base_url}/ask", json=payload)
        except httpx.HTTPError as e:
            self.console.print(f"[red]Connection error: {e}[/red]")
            return None

        if response.status_code == 200:
            data = response.json()
            self.session_id = data.get("session_id")
            return data

        self.console.print(f"[red]API Error: {response.status_code} - {response.text}[/red]")
        return None

    def _display_response(self, response: dict) -> None:
        """Display the answer and, optionally, the tools used."""
        tool_calls = response.get("tool_calls", [])
        if self.show_tools and tool_calls:
            table = Table(title="Tools used", show_lines=False, border_style="dim")
            table.add_column("Tool", style="magenta")
            table.add_column("Input")
            table.add_column("Output preview", overflow="fold")
            for call in tool_calls:
                table.add_row(call["name"], str(call.get("input", {})), call.get("output_preview", "")[:80])
            self.console.print(table)

        self.console.print(
            Panel(
                Markdown(response.get("response", "No response")),
                title="[bold green]Ops Assistant[/bold green]",
                border_style="green",
                padding=(1, 2),
            )
        )

    def _show_help(self) -> None:
        """Show help information."""
        help_text = """
[bold]Available Commands:[/bold]
• /help - Show this help message
• /clear - Forget the conversation and start over
• /sessions - List your recent conversations (* marks the current one)
• /tools - Toggle display of tool calls
• /quit or /exit - Exit the chat

[bold]Example Questions:[/bold]
1. "How much disk space is left on /?"
2. "Is memory pressure high right now?"
3. "Which containers are running?"
        """

        self.console.print(Panel(help_text.strip(), title="[cyan]Help[/cyan]", border_style="cyan"))


def main():
    """Main entry point for the chat CLI."""
    base_url = sys.argv[1] if len(sys.argv) > 1 else "http://localhost:8000"

    chat = ChatCLI(base_url)
    chat.start()


if __name__ == "__main__":
    main()
