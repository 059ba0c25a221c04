"""
EBSI DID Resolver

This module implements a resolver for the did:ebsi method. Identities live in the EBSI DID registry
contract, which records every change to an identity (owner transfer, delegates, attributes) as a
contract event. The resolver rebuilds the current DID document by replaying those events.

Key Components:
- registry: Registry contract access, event models, log decoding and attribute name handling
- resolve: Change log traversal, DID document materialization and DID parsing/routing
- app: Web application exposing the resolver over HTTP, with configuration and metrics
- model: Runtime state shared by the application (health monitoring)

Resolution Overview:
1. Parse the DID and select the network it belongs to
2. Ask the registry when the identity last changed and who currently owns it
3. Walk the change log backwards, block by block, until the first change
4. Replay the events oldest to newest to build the DID document
"""
