"""
Script for creating an administrator account.

The account is created with its e-mail verified and already approved, so
that it can approve others straight away.
"""

import click

from coursegate import domain
from coursegate.factory import create_web_app
from coursegate.services import accounts
from coursegate.services.exceptions import DuplicateAccount


@click.command()
@click.option('--username', prompt='Username')
@click.option('--email', prompt='Email')
@click.option('--first-name', prompt='First name')
@click.option('--last-name', prompt='Last name')
@click.option('--password', prompt=True, hide_input=True,
              confirmation_prompt=True)
def create_admin(username: str, email: str, first_name: str, last_name: str,
                 password: str) -> None:
    """Create a new admin account."""
    app = create_web_app()
    with app.app_context():
        accounts.create_all()
        registration = domain.Registration(
            username=username,
            email=email,
            password=password,
            name=domain.UserFullName(first_name, last_name),
            role=domain.ADMIN,
            is_email_verified=True
        )
        try:
            account = accounts.create_account(
                registration, rounds=app.config['BCRYPT_ROUNDS']
            )
        except DuplicateAccount as e:
            raise click.ClickException(str(e)) from e
        accounts.set_approval(account.account_id, True)
    click.echo(f'Created admin account {account.account_id} ({username})')


if __name__ == '__main__':
    create_admin()
