"""Feature services: references, repair, migration, orphans, maintenance."""
