# Overview: Role definitions and per-role note department visibility.
# Each role is defined as: (code, name, description)


class Role:
    """Role codes carried by users and actor scopes."""
    MANAGER = "manager"
    PRINTSHOP_MANAGER = "printshop_manager"
    DRIVER = "driver"


ROLE_DEFINITIONS = [
    (
        Role.MANAGER,
        "Manager",
        "Full access to every order, item and status",
    ),
    (
        Role.PRINTSHOP_MANAGER,
        "Printshop Manager",
        "Production updates for items assigned to their printshops",
    ),
    (
        Role.DRIVER,
        "Driver",
        "Delivery updates for items that are ready to leave the shop",
    ),
]


# -- NOTE DEPARTMENTS --

class NoteDepartment:
    PRINTSHOP = "printshop"
    DELIVERY = "delivery"
    BILLING = "billing"
    EVERYONE = "everyone"


NOTE_DEPARTMENTS = (
    NoteDepartment.PRINTSHOP,
    NoteDepartment.DELIVERY,
    NoteDepartment.BILLING,
    NoteDepartment.EVERYONE,
)

# Managers read every note; other roles only the departments addressed to them.
ROLE_NOTE_DEPARTMENTS = {
    Role.MANAGER: frozenset(NOTE_DEPARTMENTS),
    Role.PRINTSHOP_MANAGER: frozenset({NoteDepartment.EVERYONE, NoteDepartment.PRINTSHOP}),
    Role.DRIVER: frozenset({NoteDepartment.EVERYONE, NoteDepartment.PRINTSHOP, NoteDepartment.DELIVERY}),
}
