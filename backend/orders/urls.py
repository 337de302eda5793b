from django.urls import path, include
from rest_framework import routers

from .views import OrderViewSet

app_name = "orders"

router = routers.DefaultRouter()
router.include_root_view = False
router.register(r"", OrderViewSet, basename="order")

urlpatterns = [
    path("", include(router.urls)),
]
