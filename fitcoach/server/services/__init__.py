"""
Service layer of the fitcoach server.

Each service wraps one feature area and is constructed per request with the
database session and the outbound clients it needs.
"""
