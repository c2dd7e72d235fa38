from django.contrib.auth.models import AbstractBaseUser, BaseUserManager, PermissionsMixin
from django.db import models
import uuid


class OperatorRole(models.TextChoices):
    OWNER = 'owner', 'Boat owner'
    ACCOUNTANT = 'accountant', 'Accountant'


class UserManager(BaseUserManager):
    """Operators sign in with their email address; there is no username."""

    def _create(self, email, password, **extra_fields):
        if not email:
            raise ValueError('Operators need an email address')
        user = self.model(email=self.normalize_email(email), **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_user(self, email, password=None, **extra_fields):
        extra_fields.setdefault('is_staff', False)
        extra_fields.setdefault('is_superuser', False)
        return self._create(email, password, **extra_fields)

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.update(is_staff=True, is_superuser=True)
        extra_fields.setdefault('role', OperatorRole.OWNER)
        return self._create(email, password, **extra_fields)


class User(AbstractBaseUser, PermissionsMixin):
    """Back-office operator who keeps the vessel's books."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    email = models.EmailField(unique=True, max_length=255)
    display_name = models.CharField(max_length=100, blank=True)
    role = models.CharField(
        max_length=20,
        choices=OperatorRole.choices,
        default=OperatorRole.ACCOUNTANT
    )

    is_active = models.BooleanField(default=True)
    is_staff = models.BooleanField(default=False)

    created_at = models.DateTimeField(auto_now_add=True)
    last_login = models.DateTimeField(null=True, blank=True)

    objects = UserManager()

    USERNAME_FIELD = 'email'
    EMAIL_FIELD = 'email'
    REQUIRED_FIELDS = []

    class Meta:
        db_table = 'operators'
        ordering = ['email']

    def __str__(self):
        return f"{self.get_display_name()} <{self.email}>"

    @property
    def is_owner(self):
        return self.role == OperatorRole.OWNER

    def get_display_name(self):
        """Display name, falling back to the local part of the email."""
        return self.display_name or self.email.partition('@')[0]
