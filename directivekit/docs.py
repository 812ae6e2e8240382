"""`directivekit` invariants and boundaries.

This module exists to make repository-wide refactors and boundary tests explicit.

Generic invariants:

1) `directivekit` must not import `directive_project.*`.
2) Resolution is pure: `resolve()` consults a provider and returns a new
   sequence; it never calls an action capability.
3) Forced positions are global to one resolved batch: every front directive
   precedes every normal one, every back directive follows everything else,
   and relative order inside each group is declaration order.
4) Exclusions run after ordering and never see generator output.
5) Execution stops at the first failure; nothing already applied is undone.
6) `directivekit` does not define what enabling or disabling a target means.
   Project code supplies that via an action capability object.
"""
