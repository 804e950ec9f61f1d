from rest_framework.permissions import BasePermission
from rolepermissions.checkers import has_role

class IsAdmin(BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and (
            request.user.is_superuser or has_role(request.user, 'admin')
        )

class IsSeller(BasePermission):
    def has_permission(self, request, view):
        return request.user.is_authenticated and has_role(request.user, 'seller')
