"""
                Restaurant Ordering System

Order lifecycle engine for restaurant order taking: order state machine,
observer-based notification fan-out, and polymorphic payment processing,
backed by a SQLAlchemy record store and a thin FastAPI surface.

Version: 1.0.0
License: MIT
"""

__version__ = "1.0.0"
