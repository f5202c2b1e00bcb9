"""
Role-based authorization of requests.

:func:`scoped` protects Flask routes that require an authenticated user. It
can require a role (see :mod:`coursegate.domain`) and/or call an authorizer
function with the signature ``(claims: domain.Claims, *args, **kwargs) ->
bool``, where ``*args`` and ``**kwargs`` are the URL parameters passed to the
route.

.. code-block:: python

   @blueprint.route('/users/<int:account_id>', methods=['PATCH'])
   @scoped(authorizer=user_is_owner)
   def edit_profile(account_id: int) -> Response:
       ...

When the decorated route function is called...

- If no valid token was presented, :class:`Unauthorized` is raised.
- If a role was required, and the token does not carry it, :class:`Forbidden`
  is raised. Admins satisfy any role.
- If an authorizer was provided and returns ``False``, :class:`Forbidden` is
  raised.

"""

from typing import Optional, Callable, Any
from functools import wraps
import logging

from flask import request
from werkzeug.exceptions import Unauthorized, Forbidden

from .. import domain
from ..services.exceptions import ExpiredToken

logger = logging.getLogger(__name__)


def scoped(required: Optional[str] = None,
           authorizer: Optional[Callable] = None) -> Callable:
    """
    Generate a decorator to enforce authorization requirements.

    Parameters
    ----------
    required : str
        Role required to use the decorated route. If not provided, any
        authenticated user may proceed (subject to ``authorizer``).
    authorizer : function
        Called with the request claims and the route parameters. If it
        returns ``False``, a :class:`Forbidden` exception is raised.

    """
    def protector(func: Callable) -> Callable:
        """Decorator that enforces the role and authorizer."""
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            claims = getattr(request, 'auth', None)
            if isinstance(claims, ExpiredToken):
                raise Unauthorized('Token has expired')
            if not isinstance(claims, domain.Claims):
                logger.debug('No valid token; aborting')
                raise Unauthorized('Authentication required')

            if required and not (claims.role == required or claims.is_admin):
                logger.debug('Token role %s is not %s', claims.role, required)
                raise Forbidden('Access denied')

            if authorizer and not authorizer(claims, *args, **kwargs):
                logger.debug('Authorizer returned negative result')
                raise Forbidden('Access denied')

            logger.debug('Request is authorized, proceeding')
            return func(*args, **kwargs)
        return wrapper
    return protector


def user_is_owner(claims: domain.Claims, account_id: int,
                  **kwargs: Any) -> bool:
    """The authenticated user is the requested account, or an admin."""
    return claims.is_admin or claims.account_id == int(account_id)
