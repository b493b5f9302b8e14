"""
Configuration and logging for the Naver Maps gateway.

Import from the submodules directly (config_module, logger_module).
"""
