"""
Realtime app for WebSocket communication.

This app provides:
- WebSocket consumers for drivers and ride tracking
- Notification helpers for pushing ride events to connected clients
- JWT authentication middleware for WebSocket connections

Groups:
    - user_<user_id>: personal group of every connected user
    - driver_<user_id>: a driver's targeted events
    - drivers_pool: every connected driver, receives new/taken ride events
    - ride_<ride_id>: rider and bound driver of one ride

Usage:
    from realtime.notifications import notify_rider_event, notify_driver_event
"""
