"""
Core module - configuration, database, auth, email, storage and scheduling.

Import from the submodules directly (app.core.config, app.core.database, ...).
"""
