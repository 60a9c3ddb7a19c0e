from __future__ import annotations

from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.table import Table

from learnpath.data_models import Role
from learnpath.learning.activities import OpenEndedExam, Quiz, Survey
from learnpath.learning.definitions import load_definition
from learnpath.services import ActivityOutcome, LearningPathService, SessionContext
from learnpath.system import LearningSystem

app = typer.Typer(help="Track learning paths, activities, and student progress.")
console = Console()

ConfigOption = typer.Option(None, "--config", help="Path to configuration YAML.")
PasswordOption = typer.Option(..., prompt=True, hide_input=True)


def _load_service(config: Optional[Path]) -> LearningPathService:
    """Instantiate `LearningSystem` from the optional config path and return its service."""
    return LearningSystem.from_config(config).service


def _login(service: LearningPathService, username: str, password: str) -> SessionContext:
    ctx = service.login(username, password)
    if ctx is None:
        console.print("[red]Invalid username or password.[/red]")
        raise typer.Exit(code=1)
    return ctx


def _print_outcome(outcome: ActivityOutcome) -> None:
    colour = "green" if outcome.accepted else "yellow"
    console.print(f"[{colour}]{outcome.message}[/{colour}] ({outcome.status.value})")
    if outcome.evaluation is not None:
        for answer in outcome.evaluation.answers:
            if not answer.is_correct and answer.explanation:
                console.print(f"- Q{answer.index + 1}: {answer.explanation}")


@app.command()
def register(
    username: str = typer.Argument(...),
    name: str = typer.Option(..., prompt=True),
    role: Role = typer.Option(Role.STUDENT, case_sensitive=False),
    password: str = typer.Option(..., prompt=True, hide_input=True, confirmation_prompt=True),
    config: Optional[Path] = ConfigOption,
):
    """Register a new student or teacher account."""
    service = _load_service(config)
    if not service.register(username, password, name, role):
        console.print(f"[red]Username '{username}' is already taken.[/red]")
        raise typer.Exit(code=1)
    console.print(f"Registered {role.value} '{username}'.")


@app.command("create-path")
def create_path(
    definition: Path = typer.Argument(..., exists=True, dir_okay=False, readable=True),
    username: str = typer.Option(..., "--teacher", help="Teacher username."),
    password: str = PasswordOption,
    config: Optional[Path] = ConfigOption,
):
    """
    Create a learning path from a YAML definition.

    Parses the file via `load_definition`, then hands it to
    `LearningPathService.create_from_definition`, which rejects duplicate titles.
    """
    service = _load_service(config)
    ctx = _login(service, username, password)
    try:
        path = service.create_from_definition(ctx, load_definition(definition))
    except (PermissionError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    if path is None:
        console.print("[red]A learning path with that title already exists.[/red]")
        raise typer.Exit(code=1)
    console.print(
        f"Created '{path.title}' with {len(path.activities)} activities "
        f"({path.duration} minutes, version {path.version})."
    )


@app.command()
def paths(config: Optional[Path] = ConfigOption):
    """List every learning path."""
    service = _load_service(config)
    table = Table("Title", "Creator", "Difficulty", "Minutes", "Rating", "Version", "Activities")
    for path in service.learning_paths:
        table.add_row(
            path.title,
            path.creator.name,
            str(path.difficulty_level),
            str(path.duration),
            f"{path.rating:.2f}",
            path.version,
            str(len(path.activities)),
        )
    console.print(table)


@app.command()
def enroll(
    title: str = typer.Argument(...),
    username: str = typer.Option(..., "--student"),
    password: str = PasswordOption,
    config: Optional[Path] = ConfigOption,
):
    """Enroll a student in a learning path."""
    service = _load_service(config)
    ctx = _login(service, username, password)
    try:
        progress = service.enroll(ctx, title)
    except (PermissionError, LookupError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    if progress is None:
        console.print("Already enrolled.")
        return
    console.print(f"Enrolled in {progress.learning_path.title}.")


@app.command()
def status(
    title: str = typer.Argument(...),
    username: str = typer.Option(..., "--student"),
    password: str = PasswordOption,
    config: Optional[Path] = ConfigOption,
):
    """Show activity statuses and completion for an enrolled path."""
    service = _load_service(config)
    ctx = _login(service, username, password)
    try:
        progress = service.get_progress(ctx, title)
    except (PermissionError, LookupError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    table = Table("#", "Activity", "Type", "Mandatory", "Status")
    for idx, activity in enumerate(progress.learning_path.activities, start=1):
        table.add_row(
            str(idx),
            activity.title,
            activity.activity_type.label,
            "yes" if activity.is_mandatory else "no",
            progress.get_activity_status(activity).value,
        )
    console.print(table)
    console.print(f"Completion: {progress.calculate_completion_percentage():.2f}%")
    if progress.completion_date is not None:
        console.print(f"Completed on {progress.completion_date:%Y-%m-%d %H:%M}")


@app.command()
def perform(
    title: str = typer.Argument(...),
    activity_title: str = typer.Argument(...),
    username: str = typer.Option(..., "--student"),
    password: str = PasswordOption,
    config: Optional[Path] = ConfigOption,
):
    """
    Carry out one activity.

    Resource reviews and assignments are acknowledged directly; quizzes,
    surveys, and exams prompt for each answer before submitting.
    """
    service = _load_service(config)
    ctx = _login(service, username, password)
    try:
        progress = service.get_progress(ctx, title)
        activity = progress.learning_path.find_activity(activity_title)
        if activity is None:
            raise LookupError(f"Activity '{activity_title}' not found.")
        console.print(f"[bold]{activity.title}[/bold]: {activity.description}")
        console.print(activity.describe())

        submission = None
        if isinstance(activity, Quiz):
            submission = _prompt_quiz(activity)
        elif isinstance(activity, Survey):
            submission = [typer.prompt(q.text) for q in activity.questions]
        elif isinstance(activity, OpenEndedExam):
            submission = {q.text: typer.prompt(q.text) for q in activity.questions}

        outcome = service.perform_activity(ctx, title, activity.title, submission)
    except (PermissionError, LookupError, ValueError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    _print_outcome(outcome)


def _prompt_quiz(quiz: Quiz) -> List[int]:
    answers: List[int] = []
    for question in quiz.questions:
        console.print(f"\n{question.text}")
        for idx, option in enumerate(question.options, start=1):
            console.print(f"{idx}. {option}")
        choice = typer.prompt("Select an option", type=int)
        while not 1 <= choice <= len(question.options):
            choice = typer.prompt(f"Enter a number between 1 and {len(question.options)}", type=int)
        answers.append(choice - 1)
    return answers


@app.command()
def rate(
    title: str = typer.Argument(...),
    rating: float = typer.Argument(..., help="Rating between 0 and 5."),
    username: str = typer.Option(..., "--student"),
    password: str = PasswordOption,
    config: Optional[Path] = ConfigOption,
):
    """Rate an enrolled learning path."""
    service = _load_service(config)
    ctx = _login(service, username, password)
    try:
        accepted = service.rate(ctx, title, rating)
    except (PermissionError, LookupError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    if not accepted:
        console.print("[red]Rating must be between 0.0 and 5.0.[/red]")
        raise typer.Exit(code=1)
    console.print(f"New rating: {service.find_learning_path(title).rating:.2f}")


@app.command()
def feedback(
    title: str = typer.Argument(...),
    text: str = typer.Argument(...),
    username: str = typer.Option(..., "--student"),
    password: str = PasswordOption,
    config: Optional[Path] = ConfigOption,
):
    """Leave free-text feedback on an enrolled learning path."""
    service = _load_service(config)
    ctx = _login(service, username, password)
    try:
        accepted = service.leave_feedback(ctx, title, text)
    except (PermissionError, LookupError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    console.print("Feedback recorded." if accepted else "Empty feedback ignored.")


@app.command()
def students(
    title: str = typer.Argument(...),
    username: str = typer.Option(..., "--teacher"),
    password: str = PasswordOption,
    config: Optional[Path] = ConfigOption,
):
    """List students enrolled in one of your learning paths."""
    service = _load_service(config)
    ctx = _login(service, username, password)
    try:
        path = service.find_learning_path(title)
        enrolled = service.enrolled_students(ctx, title)
    except (PermissionError, LookupError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    if not enrolled:
        console.print("No students enrolled yet.")
        return
    table = Table("Username", "Name", "Completion")
    for progress in service.progresses:
        if progress.learning_path == path:
            table.add_row(
                progress.student.username,
                progress.student.name,
                f"{progress.calculate_completion_percentage():.2f}%",
            )
    console.print(table)


@app.command()
def responses(
    title: str = typer.Argument(...),
    activity_title: str = typer.Argument(...),
    username: str = typer.Option(..., "--teacher"),
    password: str = PasswordOption,
    config: Optional[Path] = ConfigOption,
):
    """Show submitted survey or exam responses for an activity."""
    service = _load_service(config)
    ctx = _login(service, username, password)
    try:
        activity = service.find_learning_path(title).find_activity(activity_title)
        if isinstance(activity, Survey):
            for response in service.survey_responses(ctx, title, activity.title):
                console.print(f"\n[bold]{response.student.name}[/bold]")
                for question, answer in zip(activity.questions, response.answers):
                    console.print(f"{question.text}: {answer}")
        elif isinstance(activity, OpenEndedExam):
            for response in service.exam_responses(ctx, title, activity.title):
                console.print(f"\n[bold]{response.student.name}[/bold]")
                for question, answer in response.answers.items():
                    console.print(f"{question}: {answer}")
        else:
            raise LookupError(f"'{activity_title}' has no stored responses.")
    except (PermissionError, LookupError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc


@app.command()
def grade(
    title: str = typer.Argument(...),
    activity_title: str = typer.Argument(...),
    student: str = typer.Argument(..., help="Username of the student being graded."),
    passed: bool = typer.Option(..., "--pass/--fail"),
    comment: str = typer.Option("", help="Optional note for the student."),
    username: str = typer.Option(..., "--teacher"),
    password: str = PasswordOption,
    config: Optional[Path] = ConfigOption,
):
    """Grade a submitted assignment or open-ended exam."""
    service = _load_service(config)
    ctx = _login(service, username, password)
    try:
        accepted = service.grade_activity(ctx, title, student, activity_title, passed, comment)
    except (PermissionError, LookupError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    if not accepted:
        console.print("[red]Only submitted assignments and exams can be graded.[/red]")
        raise typer.Exit(code=1)
    console.print("Grade recorded.")


@app.command("remove-activity")
def remove_activity(
    title: str = typer.Argument(...),
    activity_title: str = typer.Argument(...),
    username: str = typer.Option(..., "--teacher"),
    password: str = PasswordOption,
    config: Optional[Path] = ConfigOption,
):
    """Remove an activity from one of your learning paths."""
    service = _load_service(config)
    ctx = _login(service, username, password)
    try:
        removed = service.remove_activity(ctx, title, activity_title)
    except (PermissionError, LookupError) as exc:
        console.print(f"[red]{exc}[/red]")
        raise typer.Exit(code=1) from exc
    if not removed:
        console.print(f"[red]'{activity_title}' is not part of '{title}'.[/red]")
        raise typer.Exit(code=1)
    console.print(f"Removed. Version is now {service.find_learning_path(title).version}.")


if __name__ == "__main__":
    app()
