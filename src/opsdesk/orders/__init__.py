"""
Order subsystem.

Components:
- order_models.py: Order, OrderLine, order/line statuses, quantity fields
- permissions.py: role capability checks (field-level and order-level)
- reconciliation.py: quantity adjustment, submit validation, submit controller
- catalog.py: article catalog filtering + selection merge into order lines
"""
