"""
Chats app URL configuration.

Registered under ``/api/`` in ``backend/urls.py``; every route is keyed
by the report id::

    /api/chats/
    /api/chats/unread-count/
    /api/chats/{report_id}/
    /api/chats/{report_id}/read/
    /api/chats/{report_id}/messages/
    /api/chats/{report_id}/internal-comments/
"""

from rest_framework.routers import DefaultRouter

from .views import ChatViewSet

router = DefaultRouter()
router.register(
    prefix=r"chats",
    viewset=ChatViewSet,
    basename="chat",
)

urlpatterns = router.urls
