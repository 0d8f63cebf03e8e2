"""Database models for the medal ledger.


Tables:
- User: ledger identity (username is immutable once provisioned)
- Store: merchant/location scope that partitions balances and transactions
- Balance: current medal amount per (user, store); store NULL is the unscoped row
- TransactionType
- Transaction: append-only record of every balance mutation with before/after snapshots
- LoginHistory: audit trail of placeholder logins
"""

from django.db import models
from django.db.models import Q
from django.utils import timezone


class User(models.Model):
	"""
	Ledger user; created once at provisioning and never mutated by the API
	"""
	username = models.CharField(max_length=150, unique=True)
	email = models.EmailField()
	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		db_table = "users"

	def __str__(self):
		return self.username


class Store(models.Model):
	"""
	A merchant/location scope. Name uniqueness is checked by the store service before writes.
	"""
	name = models.CharField(max_length=100, unique=True)
	description = models.TextField(null=True, blank=True)
	color = models.CharField(max_length=16, default="#3B82F6")
	created_at = models.DateTimeField(auto_now_add=True)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		db_table = "stores"
		ordering = ["created_at", "id"]

	def __str__(self):
		return self.name


class Balance(models.Model):
	"""
	Current medal amount for a (user, store) pair.

	Only core.services mutates amount, always together with a new Transaction row.
	"""
	user = models.ForeignKey(User, on_delete=models.PROTECT, related_name="balances")
	store = models.ForeignKey(Store, null=True, blank=True, on_delete=models.PROTECT, related_name="balances")
	amount = models.BigIntegerField(default=0)
	updated_at = models.DateTimeField(auto_now=True)

	class Meta:
		db_table = "balance"
		constraints = [
			models.UniqueConstraint(fields=["user", "store"], name="balance_unique_user_store"),
			# NULLs never collide in a plain unique index, so the unscoped row needs its own
			models.UniqueConstraint(fields=["user"], condition=Q(store__isnull=True), name="balance_unique_unscoped"),
			models.CheckConstraint(condition=Q(amount__gte=0), name="balance_amount_non_negative"),
		]


class TransactionType(models.TextChoices):
	DEPOSIT = "deposit", "Deposit"
	WITHDRAW = "withdraw", "Withdraw"


class ImmutableRecordError(Exception):
	pass


class Transaction(models.Model):
	"""
	Immutable ledger record. balance_before/balance_after are snapshots, never recomputed.

	Rows are only ever removed in bulk by a forced store deletion.
	"""
	user = models.ForeignKey(User, on_delete=models.PROTECT, related_name="transactions")
	store = models.ForeignKey(Store, null=True, blank=True, on_delete=models.PROTECT, related_name="transactions")
	type = models.CharField(max_length=10, choices=TransactionType.choices)
	amount = models.BigIntegerField()
	balance_before = models.BigIntegerField()
	balance_after = models.BigIntegerField()
	description = models.CharField(max_length=255, blank=True, default="")
	created_at = models.DateTimeField(default=timezone.now, db_index=True)

	class Meta:
		db_table = "transactions"
		ordering = ["-created_at", "-id"]
		indexes = [
			models.Index(fields=["user", "created_at"]),
		]
		constraints = [
			models.CheckConstraint(condition=Q(type__in=TransactionType.values), name="transaction_type_valid"),
			models.CheckConstraint(condition=Q(amount__gt=0), name="transaction_amount_positive"),
		]

	def save(self, *args, **kwargs):
		if not self._state.adding:
			raise ImmutableRecordError(f"Transaction {self.pk} is immutable")
		super().save(*args, **kwargs)


class LoginHistory(models.Model):
	"""
	Append-only record of each placeholder login
	"""
	user = models.ForeignKey(User, on_delete=models.CASCADE, related_name="logins")
	session_id = models.CharField(max_length=100)
	device_info = models.CharField(max_length=255, default="Unknown Device")
	ip_address = models.CharField(max_length=64, default="Unknown IP")
	created_at = models.DateTimeField(default=timezone.now)

	class Meta:
		db_table = "login_history"
		ordering = ["-created_at", "-id"]
