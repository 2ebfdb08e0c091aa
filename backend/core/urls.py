"""
Core app URL configuration.

URL prefix (registered in ``backend/urls.py``)::

    path('api/core/', include('core.urls'))

Endpoint summary
----------------
GET  /api/core/notifications/               — Latest notifications of the citizen.
GET  /api/core/notifications/unread-count/  — Unseen notification counter.
POST /api/core/notifications/{id}/read/     — Mark a single notification as seen.
POST /api/core/notifications/read-all/      — Mark every notification as seen.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = "core"

router = DefaultRouter()
router.register(
    prefix=r"notifications",
    viewset=views.NotificationViewSet,
    basename="notification",
)

urlpatterns = [
    path("", include(router.urls)),
]
