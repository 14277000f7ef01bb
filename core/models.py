"""
Account store models.
"""
from django.db import models
from django.utils import timezone

from utils.exceptions import InvalidCredentials, UsernameTaken


class AccountManager(models.Manager):
    """Manager for username based accounts."""

    def create_account(self, username, password, is_admin=False):
        """Create and save an account, refusing taken usernames."""
        if not username:
            raise ValueError('The username must be set')
        if self.filter(username=username).exists():
            raise UsernameTaken(username)
        return self.create(username=username, password=password, is_admin=is_admin)

    def authenticate(self, username, password):
        """
        Return the account whose password matches exactly.
        Unknown usernames and wrong passwords raise the same error.
        """
        account = self.filter(username=username).first()
        if account is None or account.password != password:
            raise InvalidCredentials()
        return account


class Account(models.Model):
    """
    A login for the reservation console.
    Passwords are stored and compared as plain text.
    """
    username = models.CharField(max_length=150, unique=True)
    password = models.CharField(max_length=128)
    is_admin = models.BooleanField(default=False)
    created_at = models.DateTimeField(default=timezone.now)

    objects = AccountManager()

    class Meta:
        db_table = 'accounts'
        ordering = ['username']

    def __str__(self):
        return self.username
