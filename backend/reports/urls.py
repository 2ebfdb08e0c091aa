"""
Reports app URL configuration.

All routes are registered under the ``/api/reports/`` prefix.

Route Hierarchy
---------------
  /api/reports/                                  → list / create
  GET  /api/reports/approved/                    → public listing
  GET  /api/reports/assigned/                    → caller's work queue

  ── Workflow ────────────────────────────────────────────────────
  PUT  /api/reports/{id}/status/

  ── Assignment ──────────────────────────────────────────────────
  POST /api/reports/{id}/assign-technician/
  POST /api/reports/{id}/auto-assign-technician/
  POST /api/reports/{id}/assign-maintainer/
  POST /api/reports/{id}/auto-assign-maintainer/
"""

from rest_framework.routers import DefaultRouter

from .views import ReportViewSet

router = DefaultRouter()
router.register(
    prefix=r"reports",
    viewset=ReportViewSet,
    basename="report",
)

urlpatterns = router.urls
