"""
Application-wide constants
"""

SERVICE_NAME = "pageperm-backend"

# Slug of the role granted by POST /admin/assign-admin and scripts/seed_admin.py
ADMIN_ROLE_SLUG = "admin"

# Pages gating the administration surface
SETTINGS_PAGE = "settings"
USERS_PAGE = "users"

SLUG_PATTERN = r"^[a-z0-9_-]+$"
UUID_PATTERN = r"^[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}$"
