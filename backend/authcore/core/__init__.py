# authcore/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- bootstrap: Default role seeding and first-run admin creation
- clock: Timezone-aware "now"
- db: Database configuration and connection management
- security: Password hashing and action-token value generation
"""
