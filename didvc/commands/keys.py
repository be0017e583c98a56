import click

from didvc.config import settings
from didvc.keys import KeyManager


@click.group("keys")
def keys():
    """Create and inspect the issuer's RSA key pair"""
    pass


@keys.command("init")
@click.option(
    "--key-dir",
    type=click.Path(file_okay=False),
    default=str(settings.key_dir),
    show_default=True,
    help="Directory holding private.pem and public.pem.",
)
def init_keys(key_dir: str):
    """Loads the key pair from KEY_DIR, generating and saving one if none exists."""
    key_manager = KeyManager(key_dir)
    key_manager.initialize()

    if key_manager.persistent:
        click.echo(click.style(f"Key pair ready in {key_manager.key_dir}", fg="green"))
        click.echo(f"  Private key: {key_manager.private_key_path}")
        click.echo(f"  Public key:  {key_manager.public_key_path}")
    else:
        click.echo(
            click.style(
                f"Warning: could not write keys to {key_manager.key_dir}. The generated pair was not saved.",
                fg="yellow",
            ),
            err=True,
        )


@keys.command("show")
@click.option(
    "--key-dir",
    type=click.Path(file_okay=False),
    default=str(settings.key_dir),
    show_default=True,
    help="Directory holding private.pem and public.pem.",
)
def show_public_key(key_dir: str):
    """Prints the public key PEM from KEY_DIR."""
    key_manager = KeyManager(key_dir)
    if not (key_manager.private_key_path.is_file() and key_manager.public_key_path.is_file()):
        click.echo(
            click.style(f"Error: No key pair found in {key_manager.key_dir}. Run 'didvc keys init' first.", fg="red"),
            err=True,
        )
        return
    key_manager.initialize()
    click.echo(key_manager.public_key_pem, nl=False)
