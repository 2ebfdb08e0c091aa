"""
Accounts app URL configuration.

Included in the project-level ``urls.py`` as::

    path('api/accounts/', include('accounts.urls')),

Endpoint Map
------------
    POST   /token/           → TokenObtainPairView (SimpleJWT)
    POST   /token/refresh/   → TokenRefreshView (SimpleJWT)
    GET    /me/              → MeView
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from .views import MeView

app_name = "accounts"

urlpatterns = [
    path("token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    path("me/", MeView.as_view(), name="me"),
]
