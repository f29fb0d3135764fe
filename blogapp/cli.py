# blogapp/cli.py
import click
from rich.console import Console
from rich.table import Table

from blogapp import db

console = Console()


def display_audit_table(entries):
    table = Table(title="Admin Audit Log")
    for c in ["Time", "Admin", "Action", "Description", "Target", "IP"]:
        table.add_column(c)
    for e in entries:
        target = f"{e.target_type or '-'}#{e.target_id}" if e.target_id is not None else (e.target_type or "-")
        table.add_row(
            e.created_at.strftime("%Y-%m-%d %H:%M:%S") if e.created_at else "",
            e.admin_username,
            e.action_type.value,
            e.action,
            target,
            e.ip_address or "-",
        )
    console.print(table)


def register_commands(app):

    @app.cli.command("init-settings")
    def init_settings():
        """Create any missing default site settings."""
        from blogapp.settings_store import settings_store

        created = settings_store.initialize_defaults()
        console.print(f"[bold cyan]{created} default setting(s) created.[/bold cyan]")

    @app.cli.command("create-admin")
    @click.argument("username")
    @click.argument("email")
    @click.password_option()
    def create_admin(username, email, password):
        """Create an administrator account."""
        from blogapp.accounts import validate_new_account
        from blogapp.errors import BlogError
        from blogapp.models.user import User, ROLE_ADMIN

        try:
            validate_new_account(username, email)
        except BlogError as exc:
            console.print(f"[red]{exc}[/red]")
            raise SystemExit(1)

        user = User(username=username, email=email, role=ROLE_ADMIN, is_enabled=True)
        user.set_password(password)
        db.session.add(user)
        db.session.commit()
        console.print(f"[green]Administrator {username} created.[/green]")

    @app.cli.command("purge-attempts")
    def purge_attempts():
        """Delete login attempts older than the retention period."""
        from blogapp.login_guard import login_guard

        deleted = login_guard.cleanup_old_attempts()
        console.print(f"[bold cyan]{deleted} old login attempt(s) removed.[/bold cyan]")

    @app.cli.command("audit-tail")
    @click.option("--limit", default=20, show_default=True, help="Number of entries to show.")
    def audit_tail(limit):
        """Print the most recent admin audit entries."""
        from blogapp.audit import audit_log

        entries = audit_log.recent_entries(limit)
        if not entries:
            console.print("[yellow]No audit entries yet.[/yellow]")
            return
        display_audit_table(entries)
