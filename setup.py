"""Install the coursegate accounts service."""

from setuptools import setup, find_packages

setup(
    name='coursegate',
    version='0.1.0',
    packages=find_packages(exclude=['*test*']),
    install_requires=[
        "flask",
        "flask-sqlalchemy",
        "sqlalchemy",
        "pyjwt",
        "pytz",
        "wtforms",
        "email-validator",
        "bcrypt",
        "authlib",
        "requests",
        "click",
        "python-json-logger>=3.1",
        "mimesis"
    ],
    extras_require={
        'test': [
            "pytest",
            "hypothesis"
        ]
    },
    zip_safe=False
)
