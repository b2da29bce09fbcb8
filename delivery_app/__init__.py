"""
                Satvamirtham Delivery Backend

Async REST backend for a meal-delivery kitchen: customer and rider
accounts, the order ledger, the rider directory and rider assignment
with push alerts to the rider app.
"""

__version__ = "2.0.0"
