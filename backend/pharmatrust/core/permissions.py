"""
Role model for staff accounts.
Trust: all roles read; stock and catalogue writes need a pharmacist; deletes need an admin.
"""
ADMIN = "admin"
PHARMACIST = "pharmacist"
CASHIER = "cashier"

CATALOG_WRITERS = (ADMIN, PHARMACIST)
ADMIN_ONLY = (ADMIN,)


def role_allowed(role: str, allowed: tuple) -> bool:
    """True when ``role`` is one of ``allowed``."""
    return role in allowed
