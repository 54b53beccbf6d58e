"""Mock Ambi client: emulates a fleet of environmental sensors posting readings."""
