"""
URL configuration for the Gymfolio backend.

Package checkout, payment verification, the Stripe webhook and the order
endpoints live under `/api/gymfolio/`; the catalog under `/api/catalog/`.
JWT token endpoints are under `/api/token/`.
"""

from django.contrib import admin
from django.urls import include, path
from django.views.generic import RedirectView
from drf_spectacular.views import SpectacularAPIView, SpectacularSwaggerView, SpectacularRedocView
from rest_framework_simplejwt.views import (
    TokenObtainPairView,
    TokenRefreshView,
    TokenVerifyView,
)


urlpatterns = [
    path("admin/", admin.site.urls),

    path("api/", RedirectView.as_view(pattern_name="swagger-ui", permanent=False)),

    #  Swagger/Redoc
    path("api/schema/", SpectacularAPIView.as_view(), name="schema"),
    path("api/docs/", SpectacularSwaggerView.as_view(url_name="schema"), name="swagger-ui"),
    path("api/redoc/", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),

    path("api/token/", TokenObtainPairView.as_view(), name="token_obtain_pair"),
    path("api/token/refresh/", TokenRefreshView.as_view(), name="token_refresh"),
    path("api/token/verify/", TokenVerifyView.as_view(), name="token_verify"),

    path("api/catalog/", include("catalog.urls")),
    path("api/gymfolio/payment/", include("payments.urls")),
    path("api/gymfolio/", include("orders.urls")),
]
