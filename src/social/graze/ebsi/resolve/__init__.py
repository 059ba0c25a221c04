"""
DID Resolution

This package turns a did:ebsi identifier into a DID document.

Key Components:
- did.py: DID parsing, network selection and the EbsiResolver entry point
- walker.py: Backward traversal of the registry change log
- document.py: DID document models and event replay
- __main__.py: CLI interface for resolution

The resolution flow follows these steps:
1. Parse the DID into an optional network name and an identity address
2. Read the identity's last change block and current owner from the network's registry
3. Walk previous_change pointers from the last change back to the first, collecting events
4. Replay the events oldest to newest, honouring validity, to produce the document
"""
