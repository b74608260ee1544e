# Overview: Module, page and capability definitions for the permission system.
# Modules and pages share one vocabulary: a module's capabilities gate its API,
# the page entry gates its navigation.


class Action:
    """Capability names carried by every module's capability record."""
    VIEW = "view"
    CREATE = "create"
    EDIT = "edit"
    DELETE = "delete"
    EXPORT = "export"
    IMPORT = "import"
    MANAGE = "manage"


ACTIONS = [
    Action.VIEW,
    Action.CREATE,
    Action.EDIT,
    Action.DELETE,
    Action.EXPORT,
    Action.IMPORT,
    Action.MANAGE,
]


# Each page is defined as: (name, label, description)
PAGE_DEFINITIONS = [
    ("dashboard", "Dashboard", "Shop overview and statistics"),
    ("customers", "Customers", "Patient directory"),
    ("records", "Records", "Optometry examination records"),
    ("appointments", "Appointments", "Appointment scheduling"),
    ("billing", "Billing", "Invoices and payments"),
    ("inventory", "Inventory", "Frames, lenses and stock"),
    ("reports", "Reports", "Clinical and business reports"),
    ("settings", "Settings", "Shop configuration"),
    ("users", "Users", "Staff accounts"),
    ("permissions", "Permissions", "Role and account permissions"),
    ("analytics", "Analytics", "Usage analytics"),
    ("notifications", "Notifications", "Alerts and reminders"),
    ("help", "Help", "Documentation and support"),
]

PAGES = [page[0] for page in PAGE_DEFINITIONS]

# Every page is also a permission module
MODULES = list(PAGES)
