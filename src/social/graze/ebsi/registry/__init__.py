"""
Registry Access

This package talks to the EBSI DID registry contract and turns its raw output into typed values.

Key Components:
- attribute.py: Fixed width attribute name codec and attribute name grammar
- events.py: Pydantic models for the registry's change events
- abi.py: Function selectors, event topics and log decoding
- rpc.py: JSON-RPC client built from a request middleware chain
- contract.py: Registry contract binding (owner, last change, events at a block)
- networks.py: Immutable network table
"""
