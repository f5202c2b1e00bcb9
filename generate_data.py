"""Generate synthetic accounts for development purposes."""

import random

import click
from mimesis import Person
from mimesis.locales import Locale

from coursegate import domain
from coursegate.factory import create_web_app
from coursegate.services import accounts
from coursegate.services.exceptions import DuplicateAccount

COURSES = ['course1', 'course2', 'course3', 'course4']


@click.command()
@click.option('--count', default=50, help='Number of accounts to create.')
@click.option('--password', default='password123',
              help='Password shared by every generated account.')
def generate_data(count: int, password: str) -> None:
    """Create student accounts in a mix of lifecycle states."""
    app = create_web_app()
    person = Person(Locale.EN)
    created = 0
    with app.app_context():
        accounts.create_all()
        for _ in range(count):
            registration = domain.Registration(
                username=person.username(mask='l_d'),
                email=person.email(unique=True),
                password=password,
                name=domain.UserFullName(person.first_name(),
                                         person.last_name()),
                is_email_verified=random.randint(0, 100) < 80
            )
            try:
                account = accounts.create_account(registration, rounds=10)
            except DuplicateAccount:
                continue
            created += 1
            if account.is_email_verified and random.randint(0, 100) < 60:
                accounts.set_approval(
                    account.account_id, True,
                    course_ids=random.sample(COURSES, random.randint(1, 3))
                )
    click.echo(f'Created {created} accounts')


if __name__ == '__main__':
    generate_data()
