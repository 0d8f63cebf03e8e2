from django.apps import AppConfig
from django.conf import settings


class CoreConfig(AppConfig):
	name = "core"
	verbose_name = "MedalBank ledger"

	def ready(self):
		from .logging import configure_logging
		configure_logging(debug=settings.DEBUG, level=settings.LOG_LEVEL)
