"""
                Food Ordering API

Backend for a food-ordering web application: user accounts,
menu browsing, transactional order placement and order tracking.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
