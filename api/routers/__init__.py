"""
API Routers - Organized endpoint handlers for the Housing API.

Each router handles a specific domain:
- inventory: buildings, rooms, bulk creation and import
- assignments: manual bed assignment, moves and releases
- auto_assign: batch planner runs (synchronous and background)
- reports: occupancy statistics and integrity audit
"""
