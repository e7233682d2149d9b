"""CLI commands for the course manager.

Commands:
- init-db: Create the database schema
- serve: Run the Web API with uvicorn
- ping: Probe the remote backend
- ask: Ask a question through the remote backend
- tree: Print the course hierarchy
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.tree import Tree

from course_rag.backend.client import (
    BackendClient,
    BackendError,
    BackendTimeoutError,
    BackendUnavailableError,
)
from course_rag.config.app_config import AppConfig, load_app_config
from course_rag.core.questions import QuestionScope, QuestionValidationError, ask_question
from course_rag.db import hierarchy_repository as repo
from course_rag.db.database import Database
from course_rag.db.documents_repository import list_documents_by_unit

app = typer.Typer(
    name="course-rag",
    help="Course hierarchy manager with a remote question-answering backend.",
    no_args_is_help=True,
)

console = Console()


def _load_config() -> AppConfig:
    # Re-read so environment overrides given to this process always apply
    return load_app_config(force_reload=True)


def _open_database(config: AppConfig) -> Database:
    db = Database(config.paths.db_path)
    db.init()
    return db


def _truncate(text: str, max_len: int = 120) -> str:
    """Truncate text with ellipsis if too long."""
    if len(text) <= max_len:
        return text
    return text[:max_len - 3] + "..."


@app.command(name="init-db")
def init_db() -> None:
    """Create the database schema if it does not exist."""
    config = _load_config()
    db = _open_database(config)
    console.print(f"[green]✓ Database ready[/green] [dim]{db.path}[/dim]")


@app.command()
def serve(
    host: str = typer.Option("127.0.0.1", "--host", help="Bind address"),
    port: int = typer.Option(3000, "--port", "-p", help="Bind port"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the Web API."""
    import uvicorn

    config = _load_config()
    console.print(
        f"[bold]Serving on http://{host}:{port}[/bold]  "
        f"[dim]backend: {config.backend.base_url}[/dim]"
    )
    uvicorn.run(
        "course_rag.web.api:create_app",
        factory=True,
        host=host,
        port=port,
        reload=reload,
    )


@app.command()
def ping() -> None:
    """Check that the remote backend answers its liveness probe."""
    config = _load_config()

    with BackendClient(config.backend) as backend:
        try:
            backend.check()
        except BackendUnavailableError as e:
            console.print(f"[red]✗ {e}[/red]")
            console.print(
                f"  [dim]backend:[/dim] {config.backend.base_url}\n"
                "  Set BACKEND_API_URL to the current tunnel URL."
            )
            raise typer.Exit(code=1)

    console.print(f"[green]✓ Backend reachable[/green] [dim]{config.backend.base_url}[/dim]")


@app.command()
def ask(
    question: str = typer.Argument(..., help="Question to ask"),
    course_id: int | None = typer.Option(None, "--course-id", help="Restrict to a course"),
    year_id: int | None = typer.Option(None, "--year-id", help="Restrict to a year"),
    semester_id: int | None = typer.Option(None, "--semester-id", help="Restrict to a semester"),
    unit_id: int | None = typer.Option(None, "--unit-id", help="Restrict to a unit"),
) -> None:
    """Ask a question about the uploaded documents."""
    config = _load_config()
    db = _open_database(config)
    scope = QuestionScope(
        course_id=course_id,
        year_id=year_id,
        semester_id=semester_id,
        unit_id=unit_id,
    )

    with BackendClient(config.backend) as backend:
        try:
            result = ask_question(db, backend, question, scope)
        except QuestionValidationError as e:
            console.print(f"[red]✗ {e}[/red]")
            raise typer.Exit(code=1)
        except BackendUnavailableError as e:
            console.print(f"[red]✗ Cannot reach the backend API: {e}[/red]")
            raise typer.Exit(code=1)
        except BackendTimeoutError as e:
            console.print(f"[yellow]⚠ {e}[/yellow]")
            raise typer.Exit(code=2)
        except BackendError as e:
            console.print(f"[red]✗ Failed to process question: {e}[/red]")
            raise typer.Exit(code=1)

    console.print(result.get("answer", ""))

    sources = result.get("sources") or []
    if sources:
        console.print("\n[bold]Sources[/bold]")
        for source in sources:
            title = source.get("title", "untitled") if isinstance(source, dict) else str(source)
            excerpt = source.get("excerpt", "") if isinstance(source, dict) else ""
            console.print(f"  - {title}")
            if excerpt:
                console.print(f"    [dim]{_truncate(excerpt)}[/dim]")

    if result.get("context"):
        console.print(f"\n[dim]{result['context']}[/dim]")


@app.command()
def tree() -> None:
    """Print the Course → Year → Semester → Unit hierarchy."""
    config = _load_config()
    db = _open_database(config)

    courses = repo.list_courses(db)
    if not courses:
        console.print("[yellow]No courses yet.[/yellow]")
        return

    root = Tree("[bold]Courses[/bold]")
    for course in courses:
        course_node = root.add(f"[bold]{course.name}[/bold] [dim]#{course.id}[/dim]")
        for year in repo.list_years(db, course.id):
            year_node = course_node.add(f"{year.name} [dim]#{year.id}[/dim]")
            for semester in repo.list_semesters(db, year.id):
                semester_node = year_node.add(f"{semester.name} [dim]#{semester.id}[/dim]")
                for unit in repo.list_units(db, semester.id):
                    count = len(list_documents_by_unit(db, unit.id))
                    semester_node.add(
                        f"{unit.code} {unit.name} [dim]#{unit.id} · {count} document(s)[/dim]"
                    )

    console.print(root)


if __name__ == "__main__":
    app()
