"""
Utility modules: constants, configuration, error handling and logging helpers.
"""
