"""Safety modules: hazard assessments and the shared risk matrix."""
