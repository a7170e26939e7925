ROLE_ADMIN = "administrator"
ROLE_MANAGER = "manager"
ROLE_TEAM = "team"
ROLE_USER = "user"

ALL_ROLES = {ROLE_ADMIN, ROLE_MANAGER, ROLE_TEAM, ROLE_USER}

# Roles allowed to write tournament data
STAFF_ROLES = {ROLE_ADMIN, ROLE_MANAGER}
