"""Demo helper: seed the demo user with its starting balance."""

from core.services import DemoServices

from .responses import ok


def seed(request):
	"""
	POST: Create/fetch the demo user and its unscoped balance
	"""
	user, balance = DemoServices.seed_demo_user()
	return ok(
		{"user_id": user.id, "username": user.username, "email": user.email, "balance": balance.amount},
		"Demo user ready",
	)
