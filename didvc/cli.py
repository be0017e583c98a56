import click

from didvc.commands.client import client
from didvc.commands.credential import credential
from didvc.commands.did import did
from didvc.commands.keys import keys
from didvc.commands.serve import serve


@click.group()
def cli():
    """didvc - self-issued verifiable credentials over did:web"""
    pass


cli.add_command(serve)
cli.add_command(keys)
cli.add_command(did)
cli.add_command(credential)
cli.add_command(client)


if __name__ == "__main__":
    cli()
