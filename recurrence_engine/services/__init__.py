"""Domain services: occurrence math, completion, coordination and scheduling."""
