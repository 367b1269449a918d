"""CLI tools for complaint desk administration."""

import click

from complaint_desk.core.security import create_session_token
from complaint_desk.db.base import Base
from complaint_desk.db.enums import ActorRole, ComplaintStatus
from complaint_desk.db.session import SessionLocal, engine
from complaint_desk.services import complaint_service
from complaint_desk.services.complaint_errors import ComplaintServiceError


@click.group()
def cli():
    """Complaint desk CLI tools."""
    pass


@cli.command()
def init_db():
    """
    Create the complaint tables if they do not exist.

    Intended for local SQLite setups; deployed databases use Alembic.
    """
    import complaint_desk.db.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    click.echo("✓ Complaint tables ready")


@cli.command()
@click.argument("student_id")
@click.argument("status", type=click.Choice([s.value for s in ComplaintStatus]))
def set_status(student_id: str, status: str):
    """
    Set a complaint's status.

    Example:
        python -m complaint_desk.cli set-status 2024001 closed
    """
    db = SessionLocal()
    try:
        complaint = complaint_service.change_status(db, student_id, status)
        click.echo(f"✓ Complaint {complaint.student_id} is now {complaint.status.value}")
    except ComplaintServiceError as e:
        raise click.ClickException(str(e))
    finally:
        db.close()


@cli.command()
@click.argument("student_id")
def show(student_id: str):
    """Print a complaint and its conversation."""
    db = SessionLocal()
    try:
        thread = complaint_service.track_complaint(db, student_id)
        if thread is None:
            click.echo("No complaints found")
            return
        complaint = thread.complaint
        click.echo(f"{complaint.student_id}: {complaint.title} [{complaint.status.value}]")
        click.echo(f"  Department: {complaint.department}")
        click.echo(f"  Last text by: {complaint.last_text_by.value}")
        for message in thread.messages:
            click.echo(f"  {message.timestamp:%Y-%m-%d %H:%M:%S} {message.sent_by.value}: {message.text}")
    except ComplaintServiceError as e:
        raise click.ClickException(str(e))
    finally:
        db.close()


@cli.command()
@click.option("--subject", required=True, help="Admin identity recorded in the token")
def issue_admin_token(subject: str):
    """Mint an admin session token for the complaint desk cookie."""
    click.echo(create_session_token(subject=subject, role=ActorRole.ADMIN.value))


if __name__ == "__main__":
    cli()
