import click
from flask.cli import FlaskGroup

from vve_governance.extensions import db
from vve_governance.factory import create_app


def _create_app():
    return create_app()


cli = FlaskGroup(create_app=_create_app)


@cli.command("init-db")
def init_db():
    """Creates all governance tables that do not exist yet."""
    db.create_all()
    click.echo("Database tables created.")


if __name__ == '__main__':
    cli()
