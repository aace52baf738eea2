"""Elements Studio editor application layer.

- state: FletXr reactive state containers and the Store
- reactions: Reaction Registry and the studio's reactions
- router: fragment <-> state synchronization
- app: lifecycle wiring (StudioApp)
"""
