import click
from dotenv import load_dotenv, find_dotenv

# Load environment variables before the configuration is read
load_dotenv(find_dotenv(usecwd=True))

from .cli.audit import audit
from .cli.check import check


@click.group()
def cli():
    """Kavita Audit: finds continuity problems in a Kavita library."""
    pass


cli.add_command(audit)
cli.add_command(check)


if __name__ == "__main__":
    cli()
