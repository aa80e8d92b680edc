"""
Core Package

Exchange-agnostic machinery shared by every connector:
- signer / request: HMAC signing and the build -> sign -> execute -> decode pipeline
- endpoints / api_client: Endpoint tables and generic REST dispatch
- stream: The authenticated WebSocket session state machine
- decoder / schemas: Model decoding and shared pydantic types
- errors, config, logging: Error taxonomy, settings and logging
"""
