# Overview: Role names and the static default capability table seeded into
# every shop's permission registry.


class Role:
    ADMIN = "admin"
    SHOP_OWNER = "shop_owner"
    OPTOMETRIST = "optometrist"
    ASSISTANT = "assistant"
    RECEPTIONIST = "receptionist"


ROLES = [
    Role.ADMIN,
    Role.SHOP_OWNER,
    Role.OPTOMETRIST,
    Role.ASSISTANT,
    Role.RECEPTIONIST,
]

# Roles a shop may assign to its own staff
SHOP_STAFF_ROLES = [
    Role.SHOP_OWNER,
    Role.OPTOMETRIST,
    Role.ASSISTANT,
    Role.RECEPTIONIST,
]

# Roles a shop may pick as the default for newly created staff
DEFAULT_USER_ROLE_CHOICES = [
    Role.OPTOMETRIST,
    Role.ASSISTANT,
    Role.RECEPTIONIST,
]

# Only granted capabilities are listed; everything else is false.
# Page access for a role defaults to the modules listed for it.
_OWNER_TABLE = {
    "dashboard": {"view": True, "manage": True},
    "customers": {"view": True, "create": True, "edit": True, "delete": True, "export": True, "import": True},
    "records": {"view": True, "create": True, "edit": True, "delete": True, "export": True, "import": True},
    "appointments": {"view": True, "create": True, "edit": True, "delete": True, "export": True},
    "billing": {"view": True, "create": True, "edit": True, "delete": True, "export": True},
    "inventory": {"view": True, "create": True, "edit": True, "delete": True, "export": True, "import": True},
    "reports": {"view": True, "create": True, "export": True, "manage": True},
    "settings": {"view": True, "edit": True, "manage": True},
    "users": {"view": True, "create": True, "edit": True, "delete": True, "manage": True},
    "permissions": {"view": True, "create": True, "edit": True, "delete": True, "manage": True},
}

DEFAULT_ROLE_PERMISSIONS = {
    Role.ADMIN: _OWNER_TABLE,
    Role.SHOP_OWNER: _OWNER_TABLE,
    Role.OPTOMETRIST: {
        "dashboard": {"view": True},
        "customers": {"view": True, "create": True, "edit": True, "export": True},
        "records": {"view": True, "create": True, "edit": True, "export": True},
        "appointments": {"view": True, "create": True, "edit": True},
        "reports": {"view": True, "export": True},
    },
    Role.ASSISTANT: {
        "dashboard": {"view": True},
        "customers": {"view": True, "create": True, "edit": True},
        "records": {"view": True, "create": True},
        "appointments": {"view": True, "create": True, "edit": True},
    },
    Role.RECEPTIONIST: {
        "dashboard": {"view": True},
        "customers": {"view": True, "create": True, "edit": True},
        "appointments": {"view": True, "create": True, "edit": True, "delete": True},
    },
}

# Unknown roles get the most restrictive clinical staff table
FALLBACK_ROLE = Role.ASSISTANT
