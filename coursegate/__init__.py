"""
Accounts, e-mail verification and approval for a learning platform.

People register directly or through an upstream OAuth identity provider, prove
that they own their e-mail address with a short-lived one-time code, and wait
for an administrator to approve them for one or more courses. Logging in
yields a signed session token (JWT) that course routes honour; routes that
expose course material additionally require the account to be approved.

The application is built by :func:`coursegate.factory.create_web_app`.
"""
