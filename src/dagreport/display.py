"""Console display functions for the report job."""

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich import box

from .models import ClassifiedDatabase, ReportResult, Severity

SEVERITY_STYLES = {
    Severity.SUCCESS: "green",
    Severity.FAIL: "bold red",
    Severity.IN_PROGRESS: "yellow",
    Severity.WARNING: "dark_orange",
    Severity.DISMOUNTED: "bold white on red",
    Severity.SUSPENDED: "orange3",
    Severity.RESYNCHRONIZING: "cyan",
    Severity.DEFAULT: "",
}


def _styled(text: str, severity: Severity) -> str:
    """Markup for fact text; the text itself is escaped."""
    style = SEVERITY_STYLES.get(severity, "")
    return f"[{style}]{escape(text)}[/]" if style else escape(text)


def _copy_alarm_line(db: ClassifiedDatabase) -> str:
    return f"{escape(db.name)}: {escape(db.health_summary or 'N/A')}"


def _disk_alarm_line(db: ClassifiedDatabase) -> str:
    return f"{escape(db.name)}: {db.min_disk_free_percent:g}% free ({escape(db.disk_info)})"


def display_summary(console: Console, result: ReportResult):
    """Display the counters and alarm lists."""
    grid = Table(show_header=False, box=None, padding=(0, 2))
    grid.add_column("Field", style="cyan bold")
    grid.add_column("Value")

    grid.add_row("Databases", str(result.total))
    grid.add_row("Backed Up", f"[green]{result.backed_up}[/]")
    grid.add_row("In Progress", f"[yellow]{result.in_progress}[/]")
    grid.add_row("Not Backed Up",
                 f"[red]{result.not_backed_up}[/]" if result.not_backed_up else "0")

    console.print(Panel(grid, title="Backup Summary", expand=False, border_style="cyan"))

    alarms = [
        ("Dismounted", result.dismounted, _copy_alarm_line),
        ("Failed Copies", result.failed, _copy_alarm_line),
        (f"Low Disk (< {result.thresholds.disk_free_percent}%)", result.low_disk, _disk_alarm_line),
    ]
    for title, databases, format_line in alarms:
        if not databases:
            continue
        lines = "\n".join(format_line(db) for db in databases)
        console.print(Panel(lines, title=title, expand=False, border_style="red"))


def display_databases(console: Console, result: ReportResult, verbose: bool = False):
    """Display one row per database, in report order."""
    table = Table(title="Mailbox Databases", box=box.SIMPLE_HEAVY, show_lines=verbose)
    table.add_column("Database", style="bold")
    table.add_column("Servers")
    table.add_column("Backup")
    table.add_column("Last Full")
    table.add_column("Status")
    table.add_column("Min Disk %", justify="right")
    if verbose:
        table.add_column("Copies")
        table.add_column("Free Space")

    for db in result.databases:
        disk = f"{db.min_disk_free_percent:g}"
        if db.min_disk_free_percent < result.thresholds.disk_free_percent:
            disk = f"[bold red]{disk}[/]"

        row = [
            escape(db.name),
            escape(db.server_group),
            _styled(db.backup_display, db.backup_severity),
            db.last_backup_display,
            _styled(db.database_status, db.database_severity),
            disk,
        ]
        if verbose:
            row.append("\n".join(_styled(h.text, h.severity) for h in db.copy_health) or "N/A")
            row.append(escape(db.free_space))
        table.add_row(*row)

    console.print(table)


def display_preview(console: Console, preview: dict, verbose: bool = False):
    """Display dry-run details of the message that would be sent."""
    console.print("\n[bold yellow]DRY-RUN MODE: Preview only, no email will be sent[/]\n")

    grid = Table(show_header=False, box=None, padding=(0, 2))
    grid.add_column("Field", style="cyan bold")
    grid.add_column("Value")

    grid.add_row("Subject", escape(preview['subject']))
    grid.add_row("From", escape(preview['sender']))
    grid.add_row("To", escape(", ".join(preview['recipients'])))
    grid.add_row("Priority", preview['priority'])
    grid.add_row("SMTP", escape(f"{preview['smtp_host']}:{preview['smtp_port']}"))
    grid.add_row("HTML Size", f"{len(preview['html_content'])} characters")

    console.print(Panel(grid, title="Dry-Run Summary", expand=False, border_style="yellow"))

    if verbose:
        console.print(Panel(escape(preview['text_content']), title="Text Body", border_style="dim"))
    else:
        console.print("[dim]Use --verbose to see the text body[/]")
