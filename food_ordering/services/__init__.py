"""
                        Services Module

Business logic, each service constructed with the Database it reads from.

Services:
    - catalog: menu queries
    - orders: order placement, reads and status updates
    - users: registration, login and profile lookup
    - auth: password hashing and bearer tokens
    - fulfillment: what happens to an order after it is placed
"""
