"""
Shared Domain Module
====================

Navigation (address fragments, folder chains), gallery filtering and the
models they share.
"""
