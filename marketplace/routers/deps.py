"""
Shared Dependencies for Routers

The app factory stores the cart store and parts context on app.state;
routers reach them through these dependencies.
"""

from fastapi import Request

from marketplace.cart import CartStore
from marketplace.contexts import PartsContext


def get_cart(request: Request) -> CartStore:
    return request.app.state.cart


def get_parts_context(request: Request) -> PartsContext:
    return request.app.state.parts
