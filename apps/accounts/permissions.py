from rest_framework import permissions


class IsOwnerOperator(permissions.BasePermission):
    """
    Permission: Operator must have the boat owner role.
    """

    message = 'Only the boat owner can do this.'

    def has_permission(self, request, view):
        return bool(request.user and request.user.is_authenticated and request.user.is_owner)
