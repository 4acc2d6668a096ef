"""Feature routers (boards, tasks)."""
