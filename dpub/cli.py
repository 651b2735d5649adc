"""dpub CLI: the operator entry point for the publishing backend."""

import sys

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from dpub import __version__
from dpub.auth.models import Role
from dpub.errors import DPubError

console = Console()


def _fail(exc: DPubError) -> None:
    console.print(f"[red]{exc.code}:[/] {exc.message}")
    sys.exit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--data-dir", envvar="DPUB_DATA_DIR", default=None, help="Data directory (default: ~/.dpub)")
@click.pass_context
def main(ctx: click.Context, data_dir: str | None):
    """dpub: peer review and content moderation backend.

    Manage users and their ID tokens, inspect review status, and work
    the moderation queue from the command line.
    """
    from dpub.config import configure_logging, load_settings
    from dpub.store import DocumentStore

    settings = load_settings()
    if data_dir:
        settings.data_dir = data_dir
    configure_logging(settings.log_level)
    ctx.obj = {"settings": settings, "store": DocumentStore(settings.documents_dir)}


# ── Users ────────────────────────────────────────────────────────────


@main.group()
def users():
    """Manage users and ID tokens."""


@users.command(name="add")
@click.argument("email")
@click.option("--role", default=Role.author.value, type=click.Choice([r.value for r in Role]))
@click.option("--name", "display_name", default="", help="Display name")
@click.pass_obj
def add_user(obj: dict, email: str, role: str, display_name: str):
    """Create a user."""
    from dpub.auth.store import IdentityStore

    try:
        user = IdentityStore(obj["store"]).create_user(email, role=role, display_name=display_name)
    except DPubError as exc:
        _fail(exc)
    console.print(f"[green]Created user[/] {user.email} ({user.role.value}) id={user.id}")


@users.command(name="token")
@click.argument("user_id")
@click.option("--hours", default=None, type=int, help="Token lifetime in hours")
@click.pass_obj
def issue_token(obj: dict, user_id: str, hours: int | None):
    """Issue an ID token for USER_ID. The token is shown only once."""
    from dpub.auth.store import IdentityStore

    ttl = hours or obj["settings"].id_token_ttl_hours
    try:
        token, raw = IdentityStore(obj["store"]).issue_id_token(user_id, expires_in_hours=ttl)
    except DPubError as exc:
        _fail(exc)
    console.print(Panel(raw, title="ID token", subtitle=f"expires {token.expires_at}"))


@users.command(name="list")
@click.pass_obj
def list_users(obj: dict):
    """List all users."""
    from dpub.auth.store import IdentityStore

    all_users = IdentityStore(obj["store"]).list_users()
    if not all_users:
        console.print("[yellow]No users.[/]")
        return

    table = Table(title=f"Users ({len(all_users)})")
    table.add_column("ID", style="dim")
    table.add_column("Email", style="cyan")
    table.add_column("Role")
    table.add_column("Name")
    for u in all_users:
        table.add_row(u.id, u.email, u.role.value, u.display_name)
    console.print(table)


# ── Articles ─────────────────────────────────────────────────────────


@main.group()
def articles():
    """Submit and inspect articles."""


@articles.command(name="submit")
@click.argument("title")
@click.option("--author", "author_id", required=True, help="Author user id")
@click.option("--abstract", default="", help="Article abstract")
@click.pass_obj
def submit_article(obj: dict, title: str, author_id: str, abstract: str):
    """Submit a new article."""
    from dpub.articles.service import ArticleService

    try:
        article = ArticleService(obj["store"]).submit(author_id, title, abstract)
    except DPubError as exc:
        _fail(exc)
    console.print(f"[green]Submitted[/] {article.title!r} id={article.id}")


@articles.command(name="show")
@click.argument("article_id")
@click.pass_obj
def show_article(obj: dict, article_id: str):
    """Show an article with its review and moderation state."""
    from dpub.reviews.service import ReviewService

    try:
        article, summary, view = ReviewService(obj["store"]).review_status(article_id)
    except DPubError as exc:
        _fail(exc)

    lines = [
        f"[bold]{article.title}[/]",
        f"Author: {article.author_id}",
        f"Stored status: {article.status}",
        f"Display status: {view.status.value}",
        f"Average score: {summary.average_score:.2f} ({summary.review_count} reviews)",
        f"Moderation: {article.moderation_status} ({article.flag_count} flags)",
    ]
    if article.pending_resolution:
        lines.append(f"[yellow]Pending resolution:[/] {article.pending_resolution.get('action')}")
    console.print(Panel("\n".join(lines), title=article.id))


# ── Reviews ──────────────────────────────────────────────────────────


@main.group()
def reviews():
    """Review status and reconciliation."""


@reviews.command(name="status")
@click.argument("article_id")
@click.pass_obj
def review_status(obj: dict, article_id: str):
    """Show the reviews of ARTICLE_ID and the resulting status."""
    from dpub.reviews.service import ReviewService

    service = ReviewService(obj["store"])
    try:
        article, summary, view = service.review_status(article_id)
    except DPubError as exc:
        _fail(exc)

    table = Table(title=f"Reviews for {article.title}")
    table.add_column("Reviewer", style="cyan")
    table.add_column("Score", justify="right", style="green")
    table.add_column("Recommendation")
    for r in service.get_reviews(article_id):
        table.add_row(r.reviewer_id, f"{r.score:g}", r.recommendation)
    console.print(table)

    verdict = "[green]passes[/]" if summary.passes_threshold else "[red]below threshold[/]"
    console.print(f"Average (0-5): {summary.average_score:.2f}, {verdict}")
    progress = f" ({view.progress:.0%})" if view.progress is not None else ""
    console.print(f"Display status: [bold]{view.status.value}[/]{progress}")


@reviews.command(name="reconcile")
@click.option("--article", "article_id", default=None, help="Reconcile one article (default: all)")
@click.pass_obj
def reconcile(obj: dict, article_id: str | None):
    """Write review outcomes back to stored article statuses."""
    from dpub.reviews.service import ReviewService

    service = ReviewService(obj["store"])
    try:
        if article_id:
            console.print(f"{article_id}: {service.reconcile(article_id)}")
            return
        changed = service.reconcile_all()
    except DPubError as exc:
        _fail(exc)

    if not changed:
        console.print("[green]All article statuses already match their reviews.[/]")
        return
    for aid, status in changed.items():
        console.print(f"  {aid} -> [bold]{status}[/]")
    console.print(f"[green]Reconciled {len(changed)} article(s).[/]")


# ── Moderation ───────────────────────────────────────────────────────


def _resolver(store):
    from dpub.moderation.resolver import ModerationResolver
    from dpub.security.audit_log import AdminLogger

    return ModerationResolver(store, AdminLogger(store))


@main.group()
def moderation():
    """Work the moderation queue."""


@moderation.command(name="queue")
@click.option(
    "--status",
    default="under_review",
    type=click.Choice(["all", "active", "under_review", "removed"]),
)
@click.option("--limit", default=None, type=int)
@click.pass_obj
def queue(obj: dict, status: str, limit: int | None):
    """List flagged articles."""
    items = _resolver(obj["store"]).moderation_queue(
        status, limit or obj["settings"].moderation_queue_limit
    )
    if not items:
        console.print("[yellow]Moderation queue is empty.[/]")
        return

    table = Table(title=f"Moderation queue: {status} ({len(items)})")
    table.add_column("Article", style="dim")
    table.add_column("Title", style="cyan")
    table.add_column("Flags", justify="right", style="red")
    table.add_column("Categories")
    table.add_column("Status")
    table.add_column("Last flagged")
    for item in items:
        a = item.article
        cats = ", ".join(f"{c}({len(fs)})" for c, fs in sorted(item.flags_by_category.items()))
        table.add_row(a.id, a.title[:40], str(a.flag_count), cats, a.moderation_status, a.last_flagged_at)
    console.print(table)


@moderation.command(name="resolve")
@click.argument("article_id")
@click.argument("action", type=click.Choice(["approve", "reject"]))
@click.option("--admin", "admin_id", required=True, help="Acting admin's user id")
@click.option("--notes", default="", help="Moderation notes")
@click.pass_obj
def resolve(obj: dict, article_id: str, action: str, admin_id: str, notes: str):
    """Approve or reject a flagged article."""
    from dpub.auth.permissions import require_role
    from dpub.auth.store import IdentityStore

    admin = IdentityStore(obj["store"]).get_user(admin_id)
    if admin is None:
        console.print(f"[red]Unknown user:[/] {admin_id}")
        sys.exit(1)
    try:
        require_role(admin, Role.junior_admin)
        outcome = _resolver(obj["store"]).resolve(article_id, action, notes, admin)
    except DPubError as exc:
        _fail(exc)
    console.print(
        f"[green]{action.capitalize()}:[/] {outcome.article_id}: {outcome.previous_status} -> "
        f"{outcome.moderation_status} ({outcome.flags_resolved} flags, log {outcome.log_id})"
    )


@moderation.command(name="pending")
@click.pass_obj
def pending(obj: dict):
    """List articles with an interrupted moderation decision."""
    items = _resolver(obj["store"]).pending_resolutions()
    if not items:
        console.print("[green]No interrupted resolutions.[/]")
        return
    for a in items:
        marker = a.pending_resolution or {}
        console.print(
            f"  {a.id}: {marker.get('action')} by {marker.get('adminId')} since {marker.get('startedAt')}"
        )


@moderation.command(name="resume")
@click.argument("article_id")
@click.pass_obj
def resume(obj: dict, article_id: str):
    """Finish an interrupted moderation decision."""
    try:
        outcome = _resolver(obj["store"]).resume(article_id)
    except DPubError as exc:
        _fail(exc)
    console.print(f"[green]Resumed[/] {outcome.article_id}: now {outcome.moderation_status}")


# ── Audit ────────────────────────────────────────────────────────────


@main.group()
def audit():
    """Inspect the admin activity log."""


@audit.command(name="list")
@click.option("--admin", "admin_id", default=None, help="Filter by admin id")
@click.option("--action", "action_type", default=None, help="Filter by action type")
@click.option("--target", "target_id", default=None, help="Filter by target id")
@click.option("--limit", default=50, type=int)
@click.pass_obj
def list_events(obj: dict, admin_id: str | None, action_type: str | None, target_id: str | None, limit: int):
    """Show recent admin actions, newest first."""
    from dpub.security.audit_log import AdminLogger

    events = AdminLogger(obj["store"]).get_events(
        admin_id=admin_id, action_type=action_type, target_id=target_id, limit=limit
    )
    if not events:
        console.print("[yellow]No audit events.[/]")
        return

    table = Table(title=f"Admin activity ({len(events)})")
    table.add_column("Time", style="dim")
    table.add_column("Admin", style="cyan")
    table.add_column("Action")
    table.add_column("Target")
    for e in events:
        table.add_row(e.timestamp, e.admin_email or e.admin_id, e.action_type, f"{e.target_type}:{e.target_id}")
    console.print(table)


@audit.command(name="export")
@click.option("--format", "fmt", default="json", type=click.Choice(["json", "csv"]))
@click.option("--output", "-o", default=None, help="Write to a file instead of stdout")
@click.pass_obj
def export(obj: dict, fmt: str, output: str | None):
    """Export the audit log as JSON or CSV."""
    from dpub.security.audit_log import AdminLogger

    data = AdminLogger(obj["store"]).export_events(fmt=fmt)
    if output:
        with open(output, "w") as f:
            f.write(data)
        console.print(f"[green]Audit log written to:[/] {output}")
    else:
        click.echo(data, nl=False)


if __name__ == "__main__":
    main()
