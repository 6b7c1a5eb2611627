"""Settings, units and logging shared by all pipesplit modules."""
