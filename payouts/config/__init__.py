"""Pipeline configuration: paths, business defaults and column mappings."""
