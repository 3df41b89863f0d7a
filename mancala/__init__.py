"""
Mancala - Authoritative Kalah engine and two-player room relay.

The package provides:
- A pure rule engine (sowing, capture, extra turn, terminal sweep)
- An in-memory room registry with shareable codes
- A WebSocket relay that keeps two remote clients on one state
- A local hot-seat mode that calls the engine directly
"""

__version__ = "0.1.0"
