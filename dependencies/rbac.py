"""
Role checks for ReBuy.lk routes.

Each dependency reads the user placed on ``request.state`` by the auth
dependency, so it must be declared after ``get_current_user``.
"""
from fastapi import HTTPException, status, Request
import logging

logger = logging.getLogger(__name__)

ADMIN_ROLES = ("admin", "super_admin")

METHOD_ACTIONS = {
    'GET': 'read',
    'HEAD': 'read',
    'POST': 'write',
    'PUT': 'write',
    'PATCH': 'write',
    'DELETE': 'delete',
}

_STAFF = {
    'admin': ('read', 'write', 'delete'),
    'admins': ('read',),
    'users': ('read', 'write', 'delete'),
    'stock': ('read', 'write', 'delete'),
    'products': ('read', 'write', 'delete'),
    'orders': ('read', 'write'),
    'delivery': ('read', 'write'),
    'reorders': ('read', 'write', 'delete'),
    'offers': ('read',),
    'offers/decisions': ('write',),
    'finance': ('read', 'write', 'delete'),
}

RESOURCES_FOR_ROLES = {
    'super_admin': {**_STAFF, 'admins': ('read', 'write')},
    'admin': _STAFF,
    'supplier': {
        'reorders': ('read',),
        'reorders/replies': ('write',),
        'offers/own': ('read', 'write', 'delete'),
    },
    'buyer': {
        'reorders': ('read',),
    },
}


def translate_method_to_action(method: str) -> str:
    # unknown verbs are treated as reads
    return METHOD_ACTIONS.get(method.upper(), 'read')


def has_permission(user_role: str, resource_name: str, required_permission: str) -> bool:
    """True when ``user_role`` may perform ``required_permission`` on ``resource_name``."""
    granted = RESOURCES_FOR_ROLES.get(user_role, {}).get(resource_name, ())
    return required_permission in granted


def _current_role(request: Request) -> str:
    current_user = getattr(request.state, 'current_user', None)
    if not current_user:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication required"
        )
    return current_user.get('role') or ''


def require_permission(resource: str, permission: str = None):
    """
    Build a dependency guarding ``resource``.

    Args:
        resource: key in RESOURCES_FOR_ROLES
        permission: action to demand; the request method decides when omitted
    """
    def check_rbac(request: Request):
        user_role = _current_role(request)
        required_permission = permission or translate_method_to_action(request.method)

        if not has_permission(user_role, resource, required_permission):
            logger.warning(f"Access denied - Role: {user_role}, Resource: {resource}, Permission: {required_permission}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Access denied. {user_role.title() or 'This'} role does not have {required_permission} permission for {resource}"
            )
        return True

    return check_rbac


def require_role(*roles: str):
    """Create a dependency accepting only the listed roles"""
    def check_role(request: Request):
        user_role = _current_role(request)
        if user_role not in roles:
            logger.warning(f"Access denied - Role: {user_role}, allowed: {', '.join(roles)}")
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Access denied"
            )
        return True

    return check_role


def is_admin(current_user: dict) -> bool:
    return current_user.get("role") in ADMIN_ROLES


require_admin = require_permission("admin", "read")
require_super_admin = require_role("super_admin")

require_user_management = require_permission("users")
require_stock_access = require_permission("stock")
require_product_management = require_permission("products")
require_order_management = require_permission("orders")
require_delivery_management = require_permission("delivery")
require_reorder_management = require_permission("reorders")
require_reorder_reply = require_permission("reorders/replies", "write")
require_offer_review = require_permission("offers", "read")
require_offer_decision = require_permission("offers/decisions", "write")
require_supplier = require_permission("offers/own")
require_finance_access = require_permission("finance")
