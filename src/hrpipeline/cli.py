"""Typer CLI entrypoint for the applicant pipeline."""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

import typer

from .config import load_config_file
from .container import create_container
from .errors import LifecycleError
from .logging import bind_actor, configure_logging
from .queues import rate_test_score, status_counts, work_queues
from .schemas import Actor, Candidate, UserRole
from .service import ApplicantService

app = typer.Typer(help="Applicant lifecycle CLI.")


@dataclass
class CLIState:
    store: Path
    config: Optional[Path]
    log_level: str


@app.callback()
def main_options(
    ctx: typer.Context,
    store: Path = typer.Option(
        Path("candidates.json"),
        dir_okay=False,
        resolve_path=True,
        help="Candidate store (JSON document).",
    ),
    config: Optional[Path] = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path."),
    log_level: Optional[str] = typer.Option(None, help="Log level for structured logging."),
) -> None:
    """Operate on a JSON candidate store."""
    ctx.obj = CLIState(store=store, config=config, log_level=log_level or "")


def _service(ctx: typer.Context, actor: Actor | None = None) -> ApplicantService:
    state: CLIState = ctx.obj
    try:
        app_config = load_config_file(state.config)
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--config") from exc

    configure_logging(state.log_level or app_config.logging.level, json_logs=app_config.logging.json_logs)
    if actor is not None:
        bind_actor(actor.name, actor.role.value)

    settings = app_config.to_settings()
    settings["repository"] = {"path": str(state.store)}
    container = create_container(settings=settings)
    try:
        return container.service()
    except LifecycleError as exc:
        raise _fail(exc) from exc


def _actor(name: str, role: UserRole) -> Actor:
    return Actor(name=name or role.value, role=role)


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, ensure_ascii=False, indent=2, default=str))


def _read_json(path: Path, param_hint: str) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise typer.BadParameter(f"Invalid JSON: {exc}", param_hint=param_hint) from exc


def _fail(exc: LifecycleError) -> typer.Exit:
    typer.echo(f"Error: {exc}", err=True)
    return typer.Exit(code=1)


def _dump(candidate: Candidate) -> dict[str, Any]:
    return candidate.model_dump(mode="json")


RoleOption = typer.Option(..., "--role", help="Acting role.")
ActorOption = typer.Option("", "--actor", help="Acting user's display name.")


@app.command()
def create(
    ctx: typer.Context,
    data: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Candidate details (JSON)."),
    role: UserRole = RoleOption,
    actor_name: str = ActorOption,
) -> None:
    """Create a candidate in status New."""
    details = _read_json(data, "--data")
    if not isinstance(details, dict):
        raise typer.BadParameter("Candidate details must be a JSON object", param_hint="--data")

    actor = _actor(actor_name, role)
    service = _service(ctx, actor)
    try:
        candidate = service.create_candidate(details, actor)
    except LifecycleError as exc:
        raise _fail(exc) from exc
    _echo_json(_dump(candidate))


@app.command()
def transition(
    ctx: typer.Context,
    candidate_id: str = typer.Argument(..., help="Candidate id."),
    action: str = typer.Argument(..., help="Transition name, e.g. schedule_interview."),
    role: UserRole = RoleOption,
    actor_name: str = ActorOption,
    payload: Optional[str] = typer.Option(None, help="Transition payload as a JSON object."),
) -> None:
    """Move a candidate through the lifecycle."""
    parsed: dict[str, Any] = {}
    if payload:
        try:
            parsed = json.loads(payload)
        except json.JSONDecodeError as exc:
            raise typer.BadParameter(f"Invalid JSON: {exc}", param_hint="--payload") from exc
        if not isinstance(parsed, dict):
            raise typer.BadParameter("Payload must be a JSON object", param_hint="--payload")

    actor = _actor(actor_name, role)
    service = _service(ctx, actor)
    try:
        candidate = service.apply_transition(candidate_id, action, actor, parsed)
    except LifecycleError as exc:
        raise _fail(exc) from exc
    _echo_json({"id": candidate.id, "status": candidate.status.value, "version": candidate.version})


@app.command()
def edit(
    ctx: typer.Context,
    candidate_id: str = typer.Argument(..., help="Candidate id."),
    changes: Path = typer.Option(..., exists=True, readable=True, dir_okay=False, help="Edited fields (JSON)."),
    role: UserRole = RoleOption,
    actor_name: str = ActorOption,
) -> None:
    """Apply field edits allowed for the acting role."""
    edited = _read_json(changes, "--changes")
    if not isinstance(edited, dict):
        raise typer.BadParameter("Changes must be a JSON object", param_hint="--changes")

    actor = _actor(actor_name, role)
    service = _service(ctx, actor)
    try:
        before = service.get(candidate_id)
        candidate = service.apply_field_edits(candidate_id, actor, edited)
    except LifecycleError as exc:
        raise _fail(exc) from exc
    new_entries = candidate.history[len(before.history):]
    _echo_json([entry.action for entry in new_entries])


@app.command()
def comment(
    ctx: typer.Context,
    candidate_id: str = typer.Argument(..., help="Candidate id."),
    text: str = typer.Argument(..., help="Comment text."),
    role: UserRole = RoleOption,
    actor_name: str = ActorOption,
    emp_id: Optional[str] = typer.Option(None, help="Commenter's employee id."),
) -> None:
    """Attach a comment to a candidate."""
    actor = _actor(actor_name, role)
    service = _service(ctx, actor)
    try:
        candidate = service.add_comment(candidate_id, actor, text, emp_id=emp_id)
    except LifecycleError as exc:
        raise _fail(exc) from exc
    _echo_json(candidate.comments[-1].model_dump(mode="json"))


@app.command("test-result")
def test_result(
    ctx: typer.Context,
    candidate_id: str = typer.Argument(..., help="Candidate id."),
    score: int = typer.Argument(..., min=0, help="Number of correct answers."),
    role: UserRole = RoleOption,
    actor_name: str = ActorOption,
) -> None:
    """Record a pre-employment test score."""
    actor = _actor(actor_name, role)
    service = _service(ctx, actor)
    try:
        service.record_test_result(candidate_id, actor, score)
    except LifecycleError as exc:
        raise _fail(exc) from exc
    _echo_json({"score": score, "rating": rate_test_score(score)})


@app.command()
def stage(
    ctx: typer.Context,
    candidate_id: str = typer.Argument(..., help="Candidate id."),
) -> None:
    """Show where a candidate sits in the hiring pipeline."""
    service = _service(ctx)
    try:
        candidate = service.get(candidate_id)
    except LifecycleError as exc:
        raise _fail(exc) from exc
    resolution = service.resolve_stage(candidate)
    _echo_json(
        {
            "id": candidate.id,
            "status": candidate.status.value,
            "stage_index": resolution.stage_index,
            "stage": resolution.stage.value,
            "failed": resolution.failed,
            "stages": [
                {
                    "stage": view.stage.value,
                    "state": view.state,
                    "user": view.entry.user if view.entry else None,
                    "timestamp": view.entry.timestamp.isoformat() if view.entry else None,
                }
                for view in resolution.stages
            ],
        }
    )


@app.command()
def history(
    ctx: typer.Context,
    candidate_id: str = typer.Argument(..., help="Candidate id."),
) -> None:
    """Print a candidate's audit history, newest first."""
    service = _service(ctx)
    try:
        candidate = service.get(candidate_id)
    except LifecycleError as exc:
        raise _fail(exc) from exc
    _echo_json([entry.model_dump(mode="json") for entry in reversed(candidate.history)])


@app.command()
def queue(
    ctx: typer.Context,
    role: UserRole = RoleOption,
) -> None:
    """List the work queues of a role, plus overall status counts."""
    service = _service(ctx)
    candidates = service.list_candidates()
    queues = work_queues(candidates, role)
    _echo_json(
        {
            "queues": {
                name: [{"id": c.id, "full_name": c.full_name, "status": c.status.value} for c in members]
                for name, members in queues.items()
            },
            "counts": {status.value: count for status, count in status_counts(candidates).items()},
        }
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
