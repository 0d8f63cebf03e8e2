import pytest

from core.models import Balance, Store, User
from core.services import DemoServices


@pytest.fixture(autouse=True)
def _api_settings(settings):
	settings.MEDALBANK_RATE_LIMIT_ENABLED = False


@pytest.fixture
def demo_user(db):
	"""testuser with an unscoped balance of 1000"""
	user, _ = DemoServices.seed_demo_user()
	return user


@pytest.fixture
def make_user(db):
	def _make(username, amount=0, store=None):
		user = User.objects.create(username=username, email=f"{username}@example.com")
		Balance.objects.create(user=user, store=store, amount=amount)
		return user
	return _make


@pytest.fixture
def store(db):
	return Store.objects.create(name="Shibuya")
