"""Services Layer — imperative shell around the pure core.

Invariants:
    - Store mutations happen only inside MutationProcessor, one at a time
    - Transport details stay behind the Observer protocol
"""
