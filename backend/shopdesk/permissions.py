"""
Permission codes and default role mappings.

Owners and managers hold every shop permission. Cashiers run the counter.
Staff start with read access and gain more through a CustomRole whose
permission list may contain any code defined here.
"""


class PermissionCategory:
    """Permission categories for grouping in role editors."""
    PRODUCTS = "PRODUCTS"
    SALES = "SALES"
    PURCHASING = "PURCHASING"
    INVENTORY = "INVENTORY"
    REPORTS = "REPORTS"
    USERS = "USERS"
    COMMUNICATIONS = "COMMUNICATIONS"


# Each permission is defined as: (code, name, description, category)
PERMISSION_DEFINITIONS = [
    ("VIEW_PRODUCTS", "View Products", "Browse products, scan barcodes, see stock", PermissionCategory.PRODUCTS),
    ("MANAGE_PRODUCTS", "Manage Products", "Create, edit and delete products", PermissionCategory.PRODUCTS),

    ("CREATE_SALE", "Create Sale", "Use the billing counter and check out bills", PermissionCategory.SALES),
    ("VIEW_TRANSACTIONS", "View Transactions", "Look up completed transactions and receipts", PermissionCategory.SALES),
    ("MANAGE_RETURNS", "Manage Returns", "Record customer returns and set their status", PermissionCategory.SALES),

    ("MANAGE_SUPPLIERS", "Manage Suppliers", "Create suppliers and record supplier payments", PermissionCategory.PURCHASING),
    ("MANAGE_PURCHASES", "Manage Purchases", "Record purchase entries and transfer them to inventory", PermissionCategory.PURCHASING),

    ("MANAGE_INVENTORY", "Manage Inventory", "Report damaged stock and review inventory logs", PermissionCategory.INVENTORY),

    ("VIEW_REPORTS", "View Reports", "Daily stats, cashier activity and exports", PermissionCategory.REPORTS),

    ("MANAGE_USERS", "Manage Users", "Create profiles and custom roles", PermissionCategory.USERS),

    ("VIEW_NOTIFICATIONS", "View Notifications", "Read notifications addressed to you", PermissionCategory.COMMUNICATIONS),
    ("SEND_NOTIFICATIONS", "Send Notifications", "Send notifications to shop members", PermissionCategory.COMMUNICATIONS),
]


def get_all_permission_codes() -> list[str]:
    return [perm[0] for perm in PERMISSION_DEFINITIONS]


def validate_permission_code(code: str) -> bool:
    return code in get_all_permission_codes()


DEFAULT_ROLE_PERMISSIONS = {
    "owner": set(get_all_permission_codes()),
    "manager": set(get_all_permission_codes()),
    "cashier": {
        "VIEW_PRODUCTS",
        "CREATE_SALE",
        "VIEW_TRANSACTIONS",
        "MANAGE_RETURNS",
        "VIEW_NOTIFICATIONS",
    },
    "staff": {
        "VIEW_PRODUCTS",
        "VIEW_NOTIFICATIONS",
    },
}
