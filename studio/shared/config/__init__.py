"""
Shared Config Module
====================

Structure:
- settings/: YAML configuration files (defaults, project, user)
"""
