"""API routers."""

from delivery_app.routes import auth, orders, rider_auth, riders, users

ROUTERS = [
    auth.router,
    users.router,
    orders.router,
    riders.router,
    rider_auth.router,
]

__all__ = ["ROUTERS"]
