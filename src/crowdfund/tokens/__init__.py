# src/crowdfund/tokens/__init__.py
"""
Crowdfund: tokens package

The ledger never moves value itself; it talks to this package:
  - gateway: TokenGateway protocol, the ledger-side shim, and the
    single-token / allow-list routers that pick a gateway per contribution
  - memory: in-process MemoryToken used by tests and dev runtimes
"""
