"""CLI interface for Taskboard."""

import asyncio
from datetime import datetime
from typing import Optional

import typer
from pydantic import ValidationError as SchemaValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from taskboard.database import close_db, init_db, session_scope
from taskboard.errors import NotFoundError, TaskboardError
from taskboard.logging_setup import setup_logging
from taskboard.models import Category, Task, TaskPriority, TaskStatus
from taskboard.schemas.category import CategoryCreate
from taskboard.schemas.task import TaskCreate, TaskUpdate
from taskboard.services.category_ledger import CategoryLedger
from taskboard.services.task_query import TaskFilters
from taskboard.services.task_store import TaskStore

app = typer.Typer(
    name="taskboard",
    help="Taskboard - tasks, categories and their lifecycle from the terminal.",
    no_args_is_help=True,
)
console = Console()

UserOption = typer.Option(..., "--user", "-u", envvar="TASKBOARD_USER", help="User ID to act as")

STATUS_STYLES = {
    TaskStatus.TODO: "white",
    TaskStatus.IN_PROGRESS: "yellow",
    TaskStatus.COMPLETED: "green",
    TaskStatus.ARCHIVED: "dim",
}
PRIORITY_STYLES = {
    TaskPriority.LOW: "green",
    TaskPriority.MEDIUM: "yellow",
    TaskPriority.HIGH: "red",
}


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show info-level logs"),
):
    setup_logging("INFO" if verbose else "WARNING")


def run_async(coro):
    """Run async function in sync context."""
    return asyncio.run(coro)


async def ensure_db():
    """Ensure database is initialized."""
    await init_db()


def _fail(message: str) -> None:
    console.print(f"[red]{message}[/red]")
    raise typer.Exit(1)


def _run(command):
    """Run a command coroutine, reporting domain and input errors."""

    async def _wrapped():
        try:
            await ensure_db()
            await command()
        finally:
            await close_db()

    try:
        run_async(_wrapped())
    except TaskboardError as e:
        _fail(e.message)
    except SchemaValidationError as e:
        for error in e.errors():
            field = ".".join(str(part) for part in error["loc"]) or "input"
            console.print(f"[red]{field}: {error['msg']}[/red]")
        raise typer.Exit(1)


def _parse_due(due: str | None) -> datetime | None:
    if not due:
        return None
    try:
        parsed = datetime.fromisoformat(due.replace(" ", "T"))
    except ValueError:
        console.print(f"[red]Invalid date format: {due}[/red]")
        console.print("Use format: YYYY-MM-DD or YYYY-MM-DD HH:MM")
        raise typer.Exit(1)
    # Naive input is local time
    return parsed if parsed.tzinfo else parsed.astimezone()


def _parse_tags(tags: str | None) -> list[str]:
    if not tags:
        return []
    return [t.strip() for t in tags.split(",") if t.strip()]


async def _category_by_name(ledger: CategoryLedger, user: str, name_or_id: str) -> Category:
    """Resolve a category by exact ID or case-insensitive name."""
    for category in await ledger.list_categories(user):
        if category.id == name_or_id or category.name.lower() == name_or_id.lower():
            return category
    raise NotFoundError("Category")


async def _find_task(store: TaskStore, user: str, task_id: str) -> Task:
    """Find a task by full or partial ID."""
    try:
        return await store.get_task(user, task_id)
    except NotFoundError:
        pass

    matches = await store.find_by_id_prefix(user, task_id)
    if len(matches) > 1:
        _fail(f"Ambiguous task ID: {task_id}")
    if not matches:
        raise NotFoundError("Task")
    return matches[0]


def _render_task(task: Task) -> Panel:
    lines = [
        f"[bold]{task.title}[/bold]",
        f"[dim]ID: {task.id}[/dim]",
        f"Status: [{STATUS_STYLES[task.status]}]{task.status.value}[/]",
        f"Priority: [{PRIORITY_STYLES[task.priority]}]{task.priority.value}[/]",
    ]
    if task.description:
        lines.append(f"\n{task.description}\n")
    if task.due_date:
        lines.append(f"Due: {task.due_date.astimezone():%Y-%m-%d %H:%M}")
    if task.category:
        lines.append(f"Category: [cyan]{task.category.name}[/cyan]")
    if task.tags:
        lines.append(f"Tags: [magenta]{', '.join(task.tags)}[/magenta]")
    if task.estimated_hours is not None:
        lines.append(f"Estimated: {task.estimated_hours:g}h")
    lines.append(f"Actual: {task.actual_hours:g}h")
    if task.completed_at:
        lines.append(f"Completed: {task.completed_at.astimezone():%Y-%m-%d %H:%M}")
    return Panel("\n".join(lines), title="Task")


@app.command()
def add(
    title: str = typer.Argument(..., help="Task title"),
    user: str = UserOption,
    description: Optional[str] = typer.Option(None, "--desc", "-d", help="Description"),
    due: Optional[str] = typer.Option(None, "--due", help="Due date (YYYY-MM-DD HH:MM)"),
    priority: TaskPriority = typer.Option(TaskPriority.MEDIUM, "--priority", "-p", help="Priority"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category name or ID"),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="Comma-separated tags"),
    estimate: Optional[float] = typer.Option(None, "--estimate", "-e", help="Estimated hours"),
):
    """Add a new task."""

    async def _add():
        async with session_scope() as session:
            category_id = None
            if category:
                found = await _category_by_name(CategoryLedger(session), user, category)
                category_id = found.id

            data = TaskCreate(
                title=title,
                description=description,
                due_date=_parse_due(due),
                priority=priority,
                category_id=category_id,
                tags=_parse_tags(tags),
                estimated_hours=estimate,
            )
            task = await TaskStore(session).create_task(user, data)

            console.print(Panel(
                f"[green]Created:[/green] {task.title}\n"
                f"[dim]ID: {task.id}[/dim]",
                title="Task Added",
            ))

    _run(_add)


@app.command("list")
def list_tasks(
    user: str = UserOption,
    status: Optional[str] = typer.Option(None, "--status", "-s", help="Comma-separated statuses"),
    priority: Optional[str] = typer.Option(None, "--priority", "-p", help="Comma-separated priorities"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category name or ID"),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Search title and description"),
    sort_by: str = typer.Option("createdAt", "--sort", help="Sort field"),
    sort_order: str = typer.Option("desc", "--order", help="asc or desc"),
    page: int = typer.Option(1, "--page", min=1),
    limit: int = typer.Option(20, "--limit", min=1, max=500),
):
    """List tasks."""

    async def _list():
        async with session_scope() as session:
            category_id = None
            if category:
                found = await _category_by_name(CategoryLedger(session), user, category)
                category_id = found.id

            filters = TaskFilters.from_query(
                status=status,
                priority=priority,
                category=category_id,
                search=search,
            )
            result = await TaskStore(session).list_tasks(
                user,
                filters,
                page=page,
                limit=limit,
                sort_by=sort_by,
                sort_order=sort_order,
            )

            summary = "  ".join(f"{s.value}: {n}" for s, n in result.stats.items())
            if not result.tasks:
                console.print("[dim]No tasks found.[/dim]")
                console.print(f"[dim]{summary}[/dim]")
                return

            table = Table(title=f"Tasks ({result.total} total, page {result.page}/{result.pages})")
            table.add_column("ID", style="dim", width=8)
            table.add_column("Status")
            table.add_column("Pri", justify="center")
            table.add_column("Title", style="bold")
            table.add_column("Due", width=16)
            table.add_column("Category", style="cyan")
            table.add_column("Tags", style="magenta")

            for task in result.tasks:
                title = task.title
                if task.status in (TaskStatus.COMPLETED, TaskStatus.ARCHIVED):
                    title = f"[strike dim]{title}[/strike dim]"
                table.add_row(
                    task.id[:8],
                    f"[{STATUS_STYLES[task.status]}]{task.status.value}[/]",
                    f"[{PRIORITY_STYLES[task.priority]}]{task.priority.value}[/]",
                    title,
                    task.due_date.astimezone().strftime("%Y-%m-%d %H:%M") if task.due_date else "",
                    task.category.name if task.category else "",
                    ", ".join(task.tags),
                )

            console.print(table)
            console.print(f"[dim]{summary}[/dim]")

    _run(_list)


@app.command()
def show(
    task_id: str = typer.Argument(..., help="Task ID (or partial ID)"),
    user: str = UserOption,
):
    """Show a task's details."""

    async def _show():
        async with session_scope() as session:
            task = await _find_task(TaskStore(session), user, task_id)
            console.print(_render_task(task))

    _run(_show)


@app.command()
def status(
    task_id: str = typer.Argument(..., help="Task ID (or partial ID)"),
    new_status: TaskStatus = typer.Argument(..., help="New status"),
    user: str = UserOption,
):
    """Move a task to a new status."""

    async def _status():
        async with session_scope() as session:
            store = TaskStore(session)
            found = await _find_task(store, user, task_id)
            previous = found.status
            task = await store.transition_status(user, found.id, new_status)
            console.print(f"[green]{task.title}:[/green] {previous.value} -> {task.status.value}")

    _run(_status)


@app.command()
def priority(
    task_id: str = typer.Argument(..., help="Task ID (or partial ID)"),
    new_priority: TaskPriority = typer.Argument(..., help="New priority"),
    user: str = UserOption,
):
    """Change a task's priority."""

    async def _priority():
        async with session_scope() as session:
            store = TaskStore(session)
            found = await _find_task(store, user, task_id)
            task = await store.update_priority(user, found.id, new_priority)
            console.print(f"[green]{task.title}:[/green] priority {task.priority.value}")

    _run(_priority)


@app.command()
def edit(
    task_id: str = typer.Argument(..., help="Task ID (or partial ID)"),
    user: str = UserOption,
    title: Optional[str] = typer.Option(None, "--title", help="New title"),
    description: Optional[str] = typer.Option(None, "--desc", "-d", help="New description"),
    due: Optional[str] = typer.Option(None, "--due", help="New due date (YYYY-MM-DD HH:MM)"),
    category: Optional[str] = typer.Option(None, "--category", "-c", help="Category name or ID"),
    no_category: bool = typer.Option(False, "--no-category", help="Remove the category"),
    tags: Optional[str] = typer.Option(None, "--tags", "-t", help="Comma-separated tags (replaces)"),
    estimate: Optional[float] = typer.Option(None, "--estimate", "-e", help="Estimated hours"),
    actual: Optional[float] = typer.Option(None, "--actual", "-a", help="Actual hours"),
):
    """Edit a task's fields."""

    async def _edit():
        async with session_scope() as session:
            store = TaskStore(session)
            found = await _find_task(store, user, task_id)

            changes: dict = {}
            if title is not None:
                changes["title"] = title
            if description is not None:
                changes["description"] = description
            if due is not None:
                changes["due_date"] = _parse_due(due)
            if no_category:
                changes["category_id"] = None
            elif category is not None:
                changes["category_id"] = (await _category_by_name(store.categories, user, category)).id
            if tags is not None:
                changes["tags"] = _parse_tags(tags)
            if estimate is not None:
                changes["estimated_hours"] = estimate
            if actual is not None:
                changes["actual_hours"] = actual

            if not changes:
                console.print("[dim]Nothing to change.[/dim]")
                return

            task = await store.update_task(user, found.id, TaskUpdate(**changes))
            console.print(_render_task(task))

    _run(_edit)


@app.command()
def delete(
    task_id: str = typer.Argument(..., help="Task ID (or partial ID)"),
    user: str = UserOption,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Delete a task."""

    async def _delete():
        async with session_scope() as session:
            store = TaskStore(session)
            task = await _find_task(store, user, task_id)

            if not force:
                confirm = typer.confirm(f"Delete '{task.title}'?")
                if not confirm:
                    raise typer.Abort()

            await store.delete_task(user, task.id)

            console.print(f"[red]Deleted:[/red] {task.title}")

    _run(_delete)


@app.command()
def categories(user: str = UserOption):
    """List categories."""

    async def _categories():
        async with session_scope() as session:
            cats = await CategoryLedger(session).list_categories(user)

            if not cats:
                console.print("[dim]No categories found.[/dim]")
                return

            table = Table(title="Categories")
            table.add_column("ID", style="dim", width=8)
            table.add_column("Name", style="bold")
            table.add_column("Color")
            table.add_column("Tasks", justify="right")

            for cat in cats:
                table.add_row(
                    cat.id[:8],
                    cat.name,
                    cat.color,
                    str(cat.task_count),
                )

            console.print(table)

    _run(_categories)


@app.command("category-add")
def category_add(
    name: str = typer.Argument(..., help="Category name"),
    user: str = UserOption,
    color: str = typer.Option("#808080", "--color", help="Hex color (#RGB or #RRGGBB)"),
):
    """Create a category."""

    async def _category_add():
        async with session_scope() as session:
            data = CategoryCreate(name=name, color=color)
            category = await CategoryLedger(session).create_category(user, data.name, data.color)
            console.print(f"[green]Created category:[/green] {category.name} [dim]({category.id})[/dim]")

    _run(_category_add)


@app.command("category-delete")
def category_delete(
    category: str = typer.Argument(..., help="Category name or ID"),
    user: str = UserOption,
    force: bool = typer.Option(False, "--force", "-f", help="Skip confirmation"),
):
    """Delete a category; its tasks keep existing without one."""

    async def _category_delete():
        async with session_scope() as session:
            ledger = CategoryLedger(session)
            found = await _category_by_name(ledger, user, category)

            if not force:
                confirm = typer.confirm(f"Delete category '{found.name}' ({found.task_count} tasks)?")
                if not confirm:
                    raise typer.Abort()

            detached = await ledger.delete_category(user, found.id)
            console.print(f"[red]Deleted category:[/red] {found.name} [dim]({detached} task(s) uncategorized)[/dim]")

    _run(_category_delete)


@app.command()
def recount(
    user: Optional[str] = typer.Option(None, "--user", "-u", envvar="TASKBOARD_USER", help="Only this user's categories"),
    all_users: bool = typer.Option(False, "--all-users", help="Repair every user's categories"),
):
    """Recompute category task counts from the tasks table."""
    if not all_users and not user:
        _fail("Pass --user or --all-users")

    async def _recount():
        async with session_scope() as session:
            corrections = await CategoryLedger(session).recount_task_counts(None if all_users else user)

            if not corrections:
                console.print("[green]All category counts are consistent.[/green]")
                return

            table = Table(title="Repaired Category Counts")
            table.add_column("Category", style="dim")
            table.add_column("Stored", justify="right")
            table.add_column("Actual", justify="right")
            for c in corrections:
                table.add_row(c.category_id, str(c.previous), str(c.actual))
            console.print(table)

    _run(_recount)


@app.command()
def server(
    host: str = typer.Option("0.0.0.0", "--host", "-h", help="Host to bind to"),
    port: int = typer.Option(8000, "--port", "-p", help="Port to bind to"),
):
    """Start the API server."""
    import uvicorn

    console.print(f"[green]Starting Taskboard server at http://{host}:{port}[/green]")
    console.print("[dim]Press Ctrl+C to stop[/dim]")

    uvicorn.run(
        "taskboard.main:app",
        host=host,
        port=port,
        reload=False,
        log_config=None,
    )


if __name__ == "__main__":
    app()
