from rolepermissions.roles import AbstractUserRole

class Admin(AbstractUserRole):
    available_permissions = {
        'view_admin_dashboard': True,
        'manage_test_drives': True,
        'manage_inventory': True,
    }

class Seller(AbstractUserRole):
    available_permissions = {
        'view_seller_dashboard': True,
        'manage_own_inventory': True,
        'respond_to_test_drive': True,
    }

class Buyer(AbstractUserRole):
    available_permissions = {
        'view_buyer_dashboard': True,
        'view_cars': True,
        'request_test_drive': True,
    }
