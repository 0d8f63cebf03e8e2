"""Public API surface.

- /balance, /transactions: ledger reads and single deposits/withdrawals
- /batch/*: ordered all-or-nothing batches, bulk repeats and net-change projection
- /stats/*: per-user statistics, summary and daily trends
- /stores/*: store CRUD with guarded deletion
- /auth/*: placeholder login, token introspection, login history
- /demo/seed: provisions the demo user
"""

from django.urls import path
from django.views.decorators.csrf import csrf_exempt

from .responses import method_not_allowed
from .views_auth import login, login_history, logout, me
from .views_demo import seed
from .views_ops import batch_transactions, bulk_deposit, bulk_withdraw, create_transaction
from .views_read import balance, transactions, user_stats, user_summary, user_trends, validate_net_change
from .views_stores import store_delete, store_detail, store_stats_view, store_update, stores_create, stores_index


def by_method(**handlers):
	"""
	Dispatch one URL to a view per HTTP method; anything else gets a JSON 405
	"""
	def view(request, *args, **kwargs):
		handler = handlers.get(request.method)
		if handler is None:
			return method_not_allowed(request, list(handlers))
		return handler(request, *args, **kwargs)
	return csrf_exempt(view)


urlpatterns = [
	path("balance/<str:user_id>", by_method(GET=balance)),
	path("transactions", by_method(GET=transactions, POST=create_transaction)),
	path("batch/transactions", by_method(POST=batch_transactions)),
	path("batch/bulk-deposit", by_method(POST=bulk_deposit)),
	path("batch/bulk-withdraw", by_method(POST=bulk_withdraw)),
	path("batch/validate", by_method(GET=validate_net_change)),
	path("stats/user/<str:user_id>", by_method(GET=user_stats)),
	path("stats/summary/<str:user_id>", by_method(GET=user_summary)),
	path("stats/trends/<str:user_id>", by_method(GET=user_trends)),
	path("stores", by_method(GET=stores_index, POST=stores_create)),
	path("stores/<str:store_id>", by_method(GET=store_detail, PUT=store_update, DELETE=store_delete)),
	path("stores/<str:store_id>/stats", by_method(GET=store_stats_view)),
	path("auth/login", by_method(POST=login)),
	path("auth/logout", by_method(POST=logout)),
	path("auth/me", by_method(GET=me)),
	path("auth/login-history/<str:user_id>", by_method(GET=login_history)),
	path("demo/seed", by_method(POST=seed)),
]
