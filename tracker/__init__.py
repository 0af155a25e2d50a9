"""
Cycle Tracker

Reconstructs a position inside a fixed, cyclically repeating set of event
schedules from the events a user observes. Every layer communicates only
through explicit contracts, never through shared mutable state.

LAYER STRUCTURE:
================

1. CONTRACTS (contracts/)
   - Responsibility: Schedule table, hypotheses, errors and results
   - Outputs: Immutable shared types
   - MUST NOT: Depend on any other layer

2. TEMPORAL LAYER (temporal/)
   - Responsibility: Transition engine, history/undo, state codec
   - Allowed inputs: TrackerState, observed events, save codes
   - Outputs: New TrackerState values (pure functions only)
   - MUST NOT: Perform I/O

3. STORAGE LAYER (storage/)
   - Responsibility: Session persistence under one well-known key
   - MUST NOT: Interpret the blobs it stores

4. ENGINE (engine.py)
   - Responsibility: Command dispatch, collaborator coordination
   - MUST NOT: Let collaborator failures reach the caller

5. API LAYER (api/)
   - Responsibility: HTTP command surface

The read-only renderer projection lives in the sibling tracker_view package.
"""
