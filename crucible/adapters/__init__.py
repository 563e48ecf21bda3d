"""
Adapters layer (CLI, configuration)
"""
