"""URL routing: health check, the /api/ namespace, and a JSON 404 for everything else."""

from django.http import JsonResponse
from django.urls import include, path, re_path

from api.views_read import health

AVAILABLE_ENDPOINTS = [
	"GET /health",
	"GET /api/balance/:userId",
	"GET /api/transactions",
	"POST /api/transactions",
	"POST /api/batch/transactions",
	"POST /api/batch/bulk-deposit",
	"POST /api/batch/bulk-withdraw",
	"GET /api/batch/validate",
	"GET /api/stats/user/:userId",
	"GET /api/stats/summary/:userId",
	"GET /api/stats/trends/:userId",
	"GET /api/stores",
	"POST /api/stores",
	"GET /api/stores/:id",
	"PUT /api/stores/:id",
	"DELETE /api/stores/:id",
	"GET /api/stores/:id/stats",
	"POST /api/auth/login",
	"POST /api/auth/logout",
	"GET /api/auth/me",
	"GET /api/auth/login-history/:userId",
	"POST /api/demo/seed",
]


def not_found(request, *args, **kwargs):
	return JsonResponse(
		{
			"error": "endpoint_not_found",
			"message": "No endpoint matches this path",
			"path": request.path,
			"method": request.method,
			"available_endpoints": AVAILABLE_ENDPOINTS,
		},
		status=404,
	)


urlpatterns = [
	path("health", health),
	path("api/", include("api.urls")),
	re_path(r"^.*$", not_found),
]
