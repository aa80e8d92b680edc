"""
Exchange Connectors Package

One subpackage per exchange:
- request.py: Canonical string, auth headers and envelope rules
- models.py: Pydantic models for responses and stream events
- api_client.py: Endpoint table + REST client
- ws_client.py: Private stream session (where the exchange has one wired up)

Adding an exchange means writing those modules; the request pipeline, endpoint
dispatch and stream state machine in core/ are shared.
"""
